"""
scaleplus.database.models — SQLAlchemy 2.0 Data Models
=======================================================

The loyalty core sees storage as an opaque key-value store, so the schema
is a single table.

Tables:
- kv_store — one row per logical collection (users, transactions,
  rewards, mechanics), value held as JSON text
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Scale+ ORM models."""


# ---------------------------------------------------------------------------
# KeyValue — durable home of every loyalty collection
# ---------------------------------------------------------------------------
class KeyValue(Base):
    """Key-value document store.

    Each logical collection is written wholesale as a JSON array on every
    successful mutation.  Typed access lives in
    :class:`~scaleplus.services.gateway.SqlAlchemyGateway`.
    """
    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<KeyValue key={self.key!r}>"
