"""
scaleplus.engine.tiers — Tier Resolution
=========================================

Pure functions over the static tier table.  No storage I/O.

A well-formed table has at least one tier, exactly one zero-floor tier
(``min_points == 0``), strictly increasing ``min_points`` and positive
multipliers.  :func:`validate_tiers` enforces this once, at startup, so
:func:`resolve_tier` can stay total.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from scaleplus.engine.records import Tier
from scaleplus.exceptions import ConfigurationError

__all__ = [
    "TierProgress",
    "TierResolver",
    "resolve_tier",
    "validate_tiers",
]


def validate_tiers(tiers: Iterable[Tier]) -> tuple[Tier, ...]:
    """Return *tiers* sorted by ``min_points``, or raise ConfigurationError."""
    ordered = tuple(sorted(tiers, key=lambda t: t.min_points))
    if not ordered:
        raise ConfigurationError("Tier table is empty")
    if ordered[0].min_points != 0:
        raise ConfigurationError(
            "Tier table has no zero-floor tier", lowest=ordered[0].id
        )

    seen: set[str] = set()
    previous: Tier | None = None
    for tier in ordered:
        if tier.id in seen:
            raise ConfigurationError("Duplicate tier id", tier=tier.id)
        seen.add(tier.id)
        if previous is not None and tier.min_points <= previous.min_points:
            raise ConfigurationError(
                "Tier minPoints must be strictly increasing",
                tier=tier.id,
                min_points=tier.min_points,
            )
        if tier.point_multiplier is not None and tier.point_multiplier <= 0:
            raise ConfigurationError(
                "Tier pointMultiplier must be positive", tier=tier.id
            )
        previous = tier
    return ordered


def resolve_tier(points: int, tiers: Sequence[Tier]) -> Tier:
    """Highest tier whose ``min_points`` does not exceed *points*.

    *tiers* must be ordered ascending (as returned by :func:`validate_tiers`).
    """
    if points < 0:
        raise ValueError(f"points must be non-negative, got {points}")
    for tier in reversed(tiers):
        if tier.min_points <= points:
            return tier
    raise ConfigurationError("Tier table has no zero-floor tier")


# ---------------------------------------------------------------------------
# Progress toward the next tier (member dashboard)
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TierProgress:
    """Where a balance sits inside its tier band."""

    current: Tier
    next: Tier | None
    points_to_next: int
    percent: float


class TierResolver:
    """Validated tier table with lookup helpers.

    Usage::

        resolver = TierResolver(cfg.tiers)
        tier = resolver.resolve(user.points)
        progress = resolver.progress(user.points)
    """

    def __init__(self, tiers: Iterable[Tier]) -> None:
        self._tiers = validate_tiers(tiers)
        self._by_id = {t.id: t for t in self._tiers}

    @property
    def tiers(self) -> tuple[Tier, ...]:
        return self._tiers

    @property
    def base(self) -> Tier:
        """The zero-floor tier every new member starts in."""
        return self._tiers[0]

    def resolve(self, points: int) -> Tier:
        return resolve_tier(points, self._tiers)

    def get(self, tier_id: str) -> Tier | None:
        return self._by_id.get(tier_id)

    def next_tier(self, tier: Tier) -> Tier | None:
        index = self._tiers.index(tier)
        if index + 1 < len(self._tiers):
            return self._tiers[index + 1]
        return None

    def progress(self, points: int) -> TierProgress:
        """Progress through the current band, 0-100.  Top tier is 100."""
        current = self.resolve(points)
        upcoming = self.next_tier(current)
        if upcoming is None:
            return TierProgress(current=current, next=None, points_to_next=0, percent=100.0)

        band = upcoming.min_points - current.min_points
        into_band = max(0, points - current.min_points)
        percent = min(100.0, into_band / band * 100)
        return TierProgress(
            current=current,
            next=upcoming,
            points_to_next=max(0, upcoming.min_points - points),
            percent=percent,
        )
