"""
scaleplus.services.redemption_service — Reward Redemption
==========================================================

Exchanges points for a catalog reward.  Checks run in a fixed order and
each has its own error:

  1. user exists           → UserNotFound
  2. reward exists         → RewardNotFound
  3. balance covers cost   → InsufficientPoints
  4. stock unset or > 0    → OutOfStock

On success the debit, tier change, stock decrement and ``redeem`` ledger
entry are written in a single gateway call.  Nothing is touched on failure.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import TYPE_CHECKING

from scaleplus.constants import REWARDS_KEY, TRANSACTIONS_KEY, USERS_KEY
from scaleplus.engine.records import Transaction, TransactionType
from scaleplus.exceptions import InsufficientPoints, OutOfStock

if TYPE_CHECKING:
    from scaleplus.services.catalog_service import CatalogStore
    from scaleplus.services.gateway import PersistenceGateway
    from scaleplus.services.ledger_service import LedgerStore
    from scaleplus.services.roster_service import UserRoster

logger = logging.getLogger(__name__)


class RedemptionEngine:
    """Validates and executes redemptions."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        roster: UserRoster,
        catalog: CatalogStore,
        ledger: LedgerStore,
        *,
        lock: threading.RLock | None = None,
    ) -> None:
        self._gateway = gateway
        self._roster = roster
        self._catalog = catalog
        self._ledger = ledger
        self._lock = lock or threading.RLock()

    def redeem(self, user_id: str, reward_id: str) -> Transaction:
        """Redeem *reward_id* for *user_id* and return the ledger entry."""
        with self._lock:
            user = self._roster.require(user_id)
            reward = self._catalog.require_reward(reward_id)

            if user.points < reward.points_required:
                raise InsufficientPoints(
                    user_id=user.id,
                    available=user.points,
                    required=reward.points_required,
                )
            if reward.stock is not None and reward.stock <= 0:
                raise OutOfStock(reward_id=reward.id)

            tx = self._ledger.new_transaction(
                user.id,
                TransactionType.REDEEM,
                reward.points_required,
                f"Redeemed: {reward.name}",
                reward_id=reward.id,
            )
            changes = {TRANSACTIONS_KEY: self._ledger.payload_with(tx)}

            updated_user = self._roster.with_points(user, user.points - reward.points_required)
            changes[USERS_KEY] = self._roster.payload_with(updated_user)

            updated_reward = reward
            if reward.stock is not None:
                updated_reward = replace(reward, stock=reward.stock - 1)
                changes[REWARDS_KEY] = self._catalog.reward_payload_with(updated_reward)

            self._gateway.save_many(changes)
            self._roster.install(updated_user)
            self._catalog.install_reward(updated_reward)
            self._ledger.install(tx)

        logger.info(
            "Redeemed %s for %s: -%d pts → %d pts, tier %s, stock %s",
            reward.id, user.id, reward.points_required,
            updated_user.points, updated_user.tier_id, updated_reward.stock,
        )
        return tx
