"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

from scaleplus.constants import MECHANICS_KEY, REWARDS_KEY, TRANSACTIONS_KEY, USERS_KEY
from scaleplus.database.models import Base
from scaleplus.engine.records import Tier
from scaleplus.services.gateway import InMemoryGateway
from scaleplus.services.program import LoyaltyProgram, build_program

# bronze 0 / silver 500 ×1.1 / gold 1500 ×1.25
SCENARIO_TIERS: tuple[Tier, ...] = (
    Tier(id="bronze", name="Bronze", min_points=0),
    Tier(id="silver", name="Silver", min_points=500, point_multiplier=1.1),
    Tier(id="gold", name="Gold", min_points=1500, point_multiplier=1.25),
)


class FlakyGateway(InMemoryGateway):
    """In-memory gateway whose writes can be switched to fail."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        super().__init__(initial)
        self.fail_writes = False

    def save_many(self, values: Mapping[str, Any]) -> None:
        if self.fail_writes:
            raise RuntimeError("storage unavailable")
        super().save_many(values)


def user_dict(user_id: str = "u1", points: int = 0, tier_id: str = "bronze", **extra) -> dict:
    data = {
        "id": user_id,
        "name": extra.pop("name", f"User {user_id}"),
        "email": extra.pop("email", f"{user_id}@example.com"),
        "points": points,
        "tierId": tier_id,
    }
    data.update(extra)
    return data


def reward_dict(reward_id: str = "r1", points_required: int = 250, stock: int | None = None) -> dict:
    return {
        "id": reward_id,
        "name": f"Reward {reward_id}",
        "description": "",
        "pointsRequired": points_required,
        "stock": stock,
    }


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with the kv_store table.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def make_program() -> Callable[..., LoyaltyProgram]:
    """Factory building a program over a pre-filled FlakyGateway.

    All four storage keys are provided, so nothing is seeded.
    """

    def _make(
        users: list[dict] | None = None,
        rewards: list[dict] | None = None,
        transactions: list[dict] | None = None,
        mechanics: list[dict] | None = None,
        tiers: tuple[Tier, ...] = SCENARIO_TIERS,
    ) -> LoyaltyProgram:
        gateway = FlakyGateway({
            USERS_KEY: users or [],
            REWARDS_KEY: rewards or [],
            TRANSACTIONS_KEY: transactions or [],
            MECHANICS_KEY: mechanics or [],
        })
        return build_program(gateway, tiers)

    return _make
