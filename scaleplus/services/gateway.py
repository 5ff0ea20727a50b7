"""
scaleplus.services.gateway — Persistence Gateway
=================================================

The loyalty core's only durable boundary: a key-value store of JSON
documents.  Four keys hold the whole program state (see
:mod:`scaleplus.constants`).

``save_many`` writes several keys in one database transaction.  Services use
it so that a balance change, a stock change and a ledger append land
together or not at all.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy.orm import Session

from scaleplus.database.engine import get_session
from scaleplus.database.models import KeyValue
from scaleplus.exceptions import StorageError

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


class PersistenceGateway(Protocol):
    """Anything that can load and save JSON documents by key."""

    def load(self, key: str) -> Any | None: ...

    def save(self, key: str, value: Any) -> None: ...

    def save_many(self, values: Mapping[str, Any]) -> None: ...


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        raise StorageError(key=key) from exc


# ---------------------------------------------------------------------------
# SQLAlchemy-backed gateway
# ---------------------------------------------------------------------------
class SqlAlchemyGateway:
    """Gateway over the ``kv_store`` table.

    Usage::

        gateway = SqlAlchemyGateway(engine)
        gateway.save("rewards", [r.to_dict() for r in rewards])
        raw = gateway.load("rewards")
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def load(self, key: str) -> Any | None:
        with Session(self._engine) as session:
            row = session.get(KeyValue, key)
            if row is None:
                return None
            return _decode(key, row.value_json)

    def save(self, key: str, value: Any) -> None:
        self.save_many({key: value})

    def save_many(self, values: Mapping[str, Any]) -> None:
        encoded = {key: json.dumps(value) for key, value in values.items()}
        with get_session(self._engine) as session:
            for key, value_json in encoded.items():
                row = session.get(KeyValue, key)
                if row is None:
                    session.add(KeyValue(key=key, value_json=value_json))
                else:
                    row.value_json = value_json
        logger.debug("Persisted keys: %s", ", ".join(encoded))


# ---------------------------------------------------------------------------
# In-memory gateway
# ---------------------------------------------------------------------------
class InMemoryGateway:
    """Dict-backed gateway.

    Values are held as JSON text, so everything passing through it takes the
    same encode/decode trip it would against a real store.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, str] = {
            key: json.dumps(value) for key, value in (initial or {}).items()
        }

    def load(self, key: str) -> Any | None:
        with self._lock:
            raw = self._data.get(key)
        if raw is None:
            return None
        return _decode(key, raw)

    def save(self, key: str, value: Any) -> None:
        self.save_many({key: value})

    def save_many(self, values: Mapping[str, Any]) -> None:
        encoded = {key: json.dumps(value) for key, value in values.items()}
        with self._lock:
            self._data.update(encoded)

    def raw(self, key: str) -> str | None:
        """Stored JSON text for *key* (test inspection)."""
        with self._lock:
            return self._data.get(key)
