"""
scaleplus.engine.records — Loyalty Domain Records
==================================================

Immutable value objects shared by every service: users, tiers, rewards,
mechanics and ledger transactions.  Mutations never edit a record in place;
services build a replacement with :func:`dataclasses.replace`.

Each record converts to and from the JSON shape kept by the persistence
gateway.  Keys are camelCase (``tierId``, ``pointsRequired``, ``rewardId``)
and datetimes travel as ISO-8601 strings.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any

__all__ = [
    "Mechanic",
    "Reward",
    "Tier",
    "Transaction",
    "TransactionType",
    "User",
    "format_datetime",
    "parse_datetime",
]


class TransactionType(enum.StrEnum):
    """Direction of a ledger entry.  Points are stored as a magnitude."""
    EARN = "earn"
    REDEEM = "redeem"


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------
def format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Accept an ISO string (``Z`` suffix included) or a datetime."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


# ---------------------------------------------------------------------------
# Tier — static configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Tier:
    """A named point band.  ``point_multiplier`` scales earned points."""

    id: str
    name: str
    min_points: int
    point_multiplier: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "minPoints": self.min_points,
        }
        if self.point_multiplier is not None:
            data["pointMultiplier"] = self.point_multiplier
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Tier:
        multiplier = data.get("pointMultiplier", data.get("point_multiplier"))
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            min_points=int(data.get("minPoints", data.get("min_points", 0))),
            point_multiplier=float(multiplier) if multiplier is not None else None,
        )


# ---------------------------------------------------------------------------
# User — roster entry
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class User:
    """A program member.

    Only ``id``, ``points`` and ``tier_id`` matter to the ledger; the rest is
    profile payload carried through untouched.
    """

    id: str
    name: str
    email: str
    points: int = 0
    tier_id: str = ""
    is_admin: bool = False
    phone: str | None = None
    registration_date: datetime | None = None
    profile_image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "points": self.points,
            "tierId": self.tier_id,
            "isAdmin": self.is_admin,
            "phone": self.phone,
            "registrationDate": format_datetime(self.registration_date),
            "profileImageUrl": self.profile_image_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            email=data.get("email", ""),
            points=int(data.get("points", 0)),
            tier_id=data.get("tierId", ""),
            is_admin=bool(data.get("isAdmin", False)),
            phone=data.get("phone"),
            registration_date=parse_datetime(data.get("registrationDate")),
            profile_image_url=data.get("profileImageUrl"),
        )


# ---------------------------------------------------------------------------
# Catalog entries
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Reward:
    """A redeemable catalog item.  ``stock=None`` means unlimited."""

    id: str
    name: str = ""
    description: str = ""
    points_required: int = 0
    image_url: str | None = None
    stock: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "pointsRequired": self.points_required,
            "imageUrl": self.image_url,
            "stock": self.stock,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Reward:
        stock = data.get("stock")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            description=data.get("description") or "",
            points_required=int(data.get("pointsRequired") or 0),
            image_url=data.get("imageUrl"),
            stock=int(stock) if stock is not None else None,
        )


@dataclass(frozen=True, slots=True)
class Mechanic:
    """Display-only description of a way to earn points."""

    id: str
    title: str
    description: str = ""
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "isActive": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Mechanic:
        active = data.get("isActive")
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            description=data.get("description", ""),
            is_active=True if active is None else bool(active),
        )


# ---------------------------------------------------------------------------
# Transaction — ledger entry
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Transaction:
    """One immutable ledger entry.  ``reward_id`` is set iff type is redeem."""

    id: str
    user_id: str
    type: TransactionType
    points: int
    description: str
    timestamp: datetime
    reward_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type.value,
            "points": self.points,
            "description": self.description,
            "timestamp": format_datetime(self.timestamp),
        }
        if self.reward_id is not None:
            data["rewardId"] = self.reward_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transaction:
        return cls(
            id=str(data["id"]),
            user_id=str(data["userId"]),
            type=TransactionType(data["type"]),
            points=int(data["points"]),
            description=data.get("description", ""),
            timestamp=parse_datetime(data["timestamp"]),
            reward_id=data.get("rewardId"),
        )
