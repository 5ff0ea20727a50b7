"""
scaleplus.services.grant_service — Admin Point Grants
======================================================

Two ways for an administrator to change a balance:

``grant``
    Adds points.  The multiplier of the member's tier *before* the grant is
    applied, the tier is recomputed from the new balance, and an ``earn``
    entry is written to the ledger.

``set_points``
    Overwrites the balance outright (a correction).  No multiplier and no
    ledger entry; the tier is still recomputed.

Both land as one gateway write.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import TYPE_CHECKING

from scaleplus.constants import TRANSACTIONS_KEY, USERS_KEY, round_half_up
from scaleplus.engine.records import TransactionType, User
from scaleplus.exceptions import InvalidTransaction

if TYPE_CHECKING:
    from scaleplus.engine.tiers import TierResolver
    from scaleplus.services.gateway import PersistenceGateway
    from scaleplus.services.ledger_service import LedgerStore
    from scaleplus.services.roster_service import UserRoster

logger = logging.getLogger(__name__)


def apply_multiplier(raw_points: float, multiplier: float | None) -> int:
    """Points actually credited for *raw_points* under *multiplier*."""
    if multiplier:
        return round_half_up(raw_points * multiplier)
    return round_half_up(raw_points)


class GrantEngine:
    """Admin-initiated balance changes.

    Usage::

        grants = GrantEngine(gateway, resolver, roster, ledger)
        applied = grants.grant("user1", 100, "Birthday bonus")
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        resolver: TierResolver,
        roster: UserRoster,
        ledger: LedgerStore,
        *,
        lock: threading.RLock | None = None,
    ) -> None:
        self._gateway = gateway
        self._resolver = resolver
        self._roster = roster
        self._ledger = ledger
        self._lock = lock or threading.RLock()

    def grant(self, user_id: str, raw_points: float, description: str) -> int:
        """Credit *raw_points* (times the current tier multiplier).

        Returns the points actually applied.

        Raises
        ------
        UserNotFound
            If *user_id* is not on the roster.
        InvalidTransaction
            If the applied amount would not be a positive integer.
        """
        with self._lock:
            user = self._roster.require(user_id)
            if (
                isinstance(raw_points, bool)
                or not isinstance(raw_points, (int, float))
                or not math.isfinite(raw_points)
                or raw_points <= 0
            ):
                raise InvalidTransaction("Granted points must be positive", points=raw_points)

            tier = self._resolver.resolve(user.points)
            applied = apply_multiplier(raw_points, tier.point_multiplier)

            tx = self._ledger.new_transaction(user.id, TransactionType.EARN, applied, description)
            transactions = self._ledger.payload_with(tx)
            updated = self._roster.with_points(user, user.points + applied)

            self._gateway.save_many({
                USERS_KEY: self._roster.payload_with(updated),
                TRANSACTIONS_KEY: transactions,
            })
            self._roster.install(updated)
            self._ledger.install(tx)

        logger.info(
            "Granted %d pts to %s (raw=%s, tier=%s) → %d pts, tier %s",
            applied, user.id, raw_points, tier.id, updated.points, updated.tier_id,
        )
        return applied

    def set_points(self, user_id: str, new_total: int) -> User:
        """Overwrite a balance.  Recomputes the tier; writes no ledger entry."""
        with self._lock:
            user = self._roster.require(user_id)
            updated = self._roster.with_points(user, new_total)
            self._gateway.save(USERS_KEY, self._roster.payload_with(updated))
            self._roster.install(updated)

        logger.info(
            "Admin correction: %s points %d → %d (tier %s)",
            user.id, user.points, updated.points, updated.tier_id,
        )
        return updated
