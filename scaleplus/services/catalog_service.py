"""
scaleplus.services.catalog_service — Reward & Mechanic Catalog
===============================================================

Admin CRUD over the two catalog collections.  Rewards are consumed by
:class:`~scaleplus.services.redemption_service.RedemptionEngine`; mechanics
are display-only.

Every write follows the pattern:
  1. Validate
  2. Build the replacement collection
  3. Persist it through the gateway
  4. Swap it into memory

Deleting a reward leaves past ledger entries untouched.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from scaleplus.constants import MECHANICS_KEY, REWARDS_KEY, new_id
from scaleplus.engine.records import Mechanic, Reward
from scaleplus.exceptions import InvalidCatalogEntry, MechanicNotFound, RewardNotFound

if TYPE_CHECKING:
    from scaleplus.services.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


def _is_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_reward(reward: Reward) -> None:
    """``points_required`` and ``stock`` (when set) must be integers >= 0."""
    if not _is_count(reward.points_required):
        raise InvalidCatalogEntry(
            "pointsRequired must be a non-negative integer",
            reward_id=reward.id,
            points_required=reward.points_required,
        )
    if reward.stock is not None and not _is_count(reward.stock):
        raise InvalidCatalogEntry(
            "stock must be a non-negative integer",
            reward_id=reward.id,
            stock=reward.stock,
        )


class CatalogStore:
    """In-memory catalog mirrored to the ``rewards`` and ``mechanics`` keys."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        lock: threading.RLock | None = None,
    ) -> None:
        self._gateway = gateway
        self._lock = lock or threading.RLock()
        self._rewards: dict[str, Reward] = {
            r.id: r for r in (Reward.from_dict(d) for d in gateway.load(REWARDS_KEY) or [])
        }
        self._mechanics: dict[str, Mechanic] = {
            m.id: m for m in (Mechanic.from_dict(d) for d in gateway.load(MECHANICS_KEY) or [])
        }

    # ===================================================================
    # Rewards
    # ===================================================================
    def rewards(self) -> list[Reward]:
        with self._lock:
            return list(self._rewards.values())

    def get_reward(self, reward_id: str) -> Reward | None:
        with self._lock:
            return self._rewards.get(reward_id)

    def require_reward(self, reward_id: str) -> Reward:
        reward = self.get_reward(reward_id)
        if reward is None:
            raise RewardNotFound(reward_id=reward_id)
        return reward

    def reward_payload_with(self, reward: Reward) -> list[dict]:
        """Serialized reward list with *reward* added or replaced."""
        with self._lock:
            staged = dict(self._rewards)
            staged[reward.id] = reward
            return [r.to_dict() for r in staged.values()]

    def install_reward(self, reward: Reward) -> None:
        with self._lock:
            self._rewards[reward.id] = reward

    def add_reward(
        self,
        name: str,
        points_required: int,
        *,
        description: str = "",
        image_url: str | None = None,
        stock: int | None = None,
    ) -> Reward:
        reward = Reward(
            id=new_id("reward"),
            name=name,
            description=description,
            points_required=points_required,
            image_url=image_url,
            stock=stock,
        )
        validate_reward(reward)
        with self._lock:
            self._gateway.save(REWARDS_KEY, self.reward_payload_with(reward))
            self.install_reward(reward)
        logger.info("Reward added: %s (%s, %d pts)", reward.id, reward.name, reward.points_required)
        return reward

    def update_reward(self, reward: Reward) -> Reward:
        """Replace the stored reward with the same id."""
        validate_reward(reward)
        with self._lock:
            self.require_reward(reward.id)
            self._gateway.save(REWARDS_KEY, self.reward_payload_with(reward))
            self.install_reward(reward)
        logger.info("Reward updated: %s", reward.id)
        return reward

    def delete_reward(self, reward_id: str) -> None:
        with self._lock:
            self.require_reward(reward_id)
            remaining = {k: v for k, v in self._rewards.items() if k != reward_id}
            self._gateway.save(REWARDS_KEY, [r.to_dict() for r in remaining.values()])
            self._rewards = remaining
        logger.info("Reward deleted: %s", reward_id)

    # ===================================================================
    # Mechanics
    # ===================================================================
    def mechanics(self, *, active_only: bool = False) -> list[Mechanic]:
        with self._lock:
            items = list(self._mechanics.values())
        if active_only:
            return [m for m in items if m.is_active]
        return items

    def get_mechanic(self, mechanic_id: str) -> Mechanic | None:
        with self._lock:
            return self._mechanics.get(mechanic_id)

    def _save_mechanics(self, staged: dict[str, Mechanic]) -> None:
        self._gateway.save(MECHANICS_KEY, [m.to_dict() for m in staged.values()])
        self._mechanics = staged

    def add_mechanic(self, title: str, description: str = "", *, is_active: bool = True) -> Mechanic:
        mechanic = Mechanic(
            id=new_id("mech"), title=title, description=description, is_active=is_active
        )
        with self._lock:
            self._save_mechanics({**self._mechanics, mechanic.id: mechanic})
        logger.info("Mechanic added: %s (%s)", mechanic.id, mechanic.title)
        return mechanic

    def update_mechanic(self, mechanic: Mechanic) -> Mechanic:
        with self._lock:
            if mechanic.id not in self._mechanics:
                raise MechanicNotFound(mechanic_id=mechanic.id)
            self._save_mechanics({**self._mechanics, mechanic.id: mechanic})
        logger.info("Mechanic updated: %s (active=%s)", mechanic.id, mechanic.is_active)
        return mechanic

    def delete_mechanic(self, mechanic_id: str) -> None:
        with self._lock:
            if mechanic_id not in self._mechanics:
                raise MechanicNotFound(mechanic_id=mechanic_id)
            self._save_mechanics(
                {k: v for k, v in self._mechanics.items() if k != mechanic_id}
            )
        logger.info("Mechanic deleted: %s", mechanic_id)
