"""
scaleplus.services.seed — First-Start Data Seeder
==================================================

Fills any of the four storage keys that are still absent so a fresh
install has a usable catalog.  Idempotent: existing keys are never
overwritten, even when they hold an empty list.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from scaleplus.constants import MECHANICS_KEY, REWARDS_KEY, TRANSACTIONS_KEY, USERS_KEY
from scaleplus.engine.records import Reward, User

if TYPE_CHECKING:
    from scaleplus.services.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


DEFAULT_REWARDS: tuple[Reward, ...] = (
    Reward(
        id="reward1",
        name="$5 Discount Coupon",
        description="Get $5 off your next purchase.",
        points_required=100,
        stock=100,
    ),
    Reward(
        id="reward2",
        name="Free Coffee",
        description="Enjoy a free cup of our signature blend coffee.",
        points_required=250,
        stock=50,
    ),
    Reward(
        id="reward3",
        name="20% Off Next Purchase",
        description="A hefty 20% discount on any single item.",
        points_required=750,
    ),
    Reward(
        id="reward4",
        name="Exclusive T-Shirt",
        description="Limited edition branded T-shirt.",
        points_required=2000,
        stock=20,
    ),
    Reward(
        id="reward5",
        name="Early Access Pass",
        description="Get early access to new product launches.",
        points_required=3500,
    ),
)

# Tier ids are recomputed by the roster on load.
DEMO_USERS: tuple[User, ...] = (
    User(
        id="user1",
        name="Alice Wonderland",
        email="alice@example.com",
        points=250,
        phone="555-0101",
        registration_date=datetime(2023, 1, 15, 10, 0, tzinfo=timezone.utc),
    ),
    User(
        id="user2",
        name="Bob The Builder",
        email="bob@example.com",
        points=1200,
        phone="555-0102",
        registration_date=datetime(2022, 11, 20, 14, 30, tzinfo=timezone.utc),
    ),
    User(
        id="user3",
        name="Scaleplus Admin",
        email="admin@scaleplus.com",
        points=5600,
        is_admin=True,
        phone="555-0199",
        registration_date=datetime(2022, 1, 1, 9, 0, tzinfo=timezone.utc),
    ),
)


def seed_missing(gateway: PersistenceGateway, *, demo_users: bool = False) -> list[str]:
    """Write defaults for absent keys.  Returns the keys that were seeded."""
    defaults: dict[str, list[dict[str, Any]]] = {
        USERS_KEY: [u.to_dict() for u in DEMO_USERS] if demo_users else [],
        TRANSACTIONS_KEY: [],
        REWARDS_KEY: [r.to_dict() for r in DEFAULT_REWARDS],
        MECHANICS_KEY: [],
    }
    missing = {key: value for key, value in defaults.items() if gateway.load(key) is None}
    if missing:
        gateway.save_many(missing)
        logger.info("Seeded storage keys: %s", ", ".join(missing))
    return list(missing)
