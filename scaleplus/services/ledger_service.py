"""
scaleplus.services.ledger_service — Append-Only Transaction Log
================================================================

The ledger is the source of truth for activity history.  Entries are
validated on the way in, never edited, never deleted.

Every append writes the full log through the gateway before it returns.
Multi-collection operations (grant, redeem) use :meth:`LedgerStore.payload_with`
and :meth:`LedgerStore.install` instead, so the log lands in the same
``save_many`` call as the balance change.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from scaleplus.constants import TRANSACTIONS_KEY, new_id
from scaleplus.engine.records import Transaction, TransactionType
from scaleplus.exceptions import InvalidTransaction

if TYPE_CHECKING:
    from scaleplus.services.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


def _as_utc(tx: Transaction) -> Transaction:
    """Entries stored without an offset are read as UTC."""
    if tx.timestamp.tzinfo is None:
        return replace(tx, timestamp=tx.timestamp.replace(tzinfo=timezone.utc))
    return tx


class LedgerStore:
    """In-memory ledger mirrored to the ``transactions`` key."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        lock: threading.RLock | None = None,
    ) -> None:
        self._gateway = gateway
        self._lock = lock or threading.RLock()
        raw = gateway.load(TRANSACTIONS_KEY) or []
        self._entries: list[Transaction] = [_as_utc(Transaction.from_dict(item)) for item in raw]
        self._ids: set[str] = {tx.id for tx in self._entries}
        self._last_timestamp: datetime | None = max(
            (tx.timestamp for tx in self._entries), default=None
        )

    # -------------------------------------------------------------------
    # Building & validating
    # -------------------------------------------------------------------
    def new_transaction(
        self,
        user_id: str,
        tx_type: TransactionType,
        points: int,
        description: str,
        reward_id: str | None = None,
    ) -> Transaction:
        """Build (but do not append) an entry with a fresh id and timestamp."""
        with self._lock:
            return Transaction(
                id=new_id("tx"),
                user_id=user_id,
                type=TransactionType(tx_type),
                points=points,
                description=description,
                timestamp=self._next_timestamp(),
                reward_id=reward_id,
            )

    def _next_timestamp(self) -> datetime:
        """Now, nudged forward so creation order is strictly increasing."""
        now = datetime.now(timezone.utc)
        last = self._last_timestamp
        if last is not None and now <= last:
            now = last + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def validate(self, tx: Transaction) -> None:
        if not isinstance(tx.type, TransactionType):
            raise InvalidTransaction("Unknown transaction type", type=tx.type)
        if not isinstance(tx.points, int) or isinstance(tx.points, bool) or tx.points <= 0:
            raise InvalidTransaction("Transaction points must be a positive integer", points=tx.points)
        if tx.type == TransactionType.REDEEM and not tx.reward_id:
            raise InvalidTransaction("Redeem transaction requires a rewardId", id=tx.id)
        if tx.type == TransactionType.EARN and tx.reward_id is not None:
            raise InvalidTransaction("Earn transaction cannot carry a rewardId", id=tx.id)
        if tx.id in self._ids:
            raise InvalidTransaction("Duplicate transaction id", id=tx.id)
        if tx.timestamp.tzinfo is None:
            raise InvalidTransaction("Transaction timestamp must be timezone-aware", id=tx.id)

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def payload_with(self, tx: Transaction) -> list[dict]:
        """Validate *tx* and return the serialized log as it would be after it."""
        with self._lock:
            self.validate(tx)
            return [entry.to_dict() for entry in self._entries] + [tx.to_dict()]

    def install(self, tx: Transaction) -> None:
        """Adopt an entry whose payload has already been persisted."""
        with self._lock:
            self._entries.append(tx)
            self._ids.add(tx.id)
            if self._last_timestamp is None or tx.timestamp > self._last_timestamp:
                self._last_timestamp = tx.timestamp

    def append(self, tx: Transaction) -> Transaction:
        with self._lock:
            payload = self.payload_with(tx)
            self._gateway.save(TRANSACTIONS_KEY, payload)
            self.install(tx)
        logger.info(
            "Ledger %s: user=%s points=%d (%s)", tx.type.value, tx.user_id, tx.points, tx.id
        )
        return tx

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def all(self) -> list[Transaction]:
        """Every entry in creation order."""
        with self._lock:
            return list(self._entries)

    def get(self, tx_id: str) -> Transaction | None:
        with self._lock:
            return next((tx for tx in self._entries if tx.id == tx_id), None)

    def for_user(self, user_id: str, limit: int | None = None) -> list[Transaction]:
        """A user's entries, most recent first."""
        with self._lock:
            entries = [tx for tx in self._entries if tx.user_id == user_id]
        entries.sort(key=lambda tx: tx.timestamp, reverse=True)
        return entries[:limit] if limit is not None else entries

    def __len__(self) -> int:
        return len(self._entries)
