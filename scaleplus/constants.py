"""
scaleplus.constants — Shared Constants & Helpers
=================================================

Storage keys, id prefixes, the default tier table and the rounding rule
used when a tier multiplier is applied.
"""

from __future__ import annotations

import math
import uuid

from scaleplus.engine.records import Tier

# ---------------------------------------------------------------------------
# Persistence keys — the four durable collections
# ---------------------------------------------------------------------------
USERS_KEY = "users"
TRANSACTIONS_KEY = "transactions"
REWARDS_KEY = "rewards"
MECHANICS_KEY = "mechanics"

STORAGE_KEYS: tuple[str, ...] = (USERS_KEY, TRANSACTIONS_KEY, REWARDS_KEY, MECHANICS_KEY)


# ---------------------------------------------------------------------------
# Default tier table (used when config.yaml has no ``tiers`` block)
# ---------------------------------------------------------------------------
DEFAULT_TIERS: tuple[Tier, ...] = (
    Tier(id="bronze", name="Bronze", min_points=0),
    Tier(id="silver", name="Silver", min_points=500, point_multiplier=1.1),
    Tier(id="gold", name="Gold", min_points=1500, point_multiplier=1.25),
    Tier(id="platinum", name="Platinum", min_points=5000, point_multiplier=1.5),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def new_id(prefix: str) -> str:
    """Opaque record id, e.g. ``tx_3f2a…``."""
    return f"{prefix}_{uuid.uuid4().hex}"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity.

    Python's ``round`` uses banker's rounding (``round(2.5) == 2``); point
    awards must round 2.5 up to 3.
    """
    return math.floor(value + 0.5)
