"""
scaleplus.services.roster_service — User Roster
================================================

Holds every program member and keeps each one's ``tier_id`` in step with
their balance.  Identity is opaque here: a caller hands in a user id (from a
login, a scanned card, an admin screen) and the roster only looks it up.

Balance changes are made by the grant and redemption services; the roster
owns registration and profile edits.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from scaleplus.constants import USERS_KEY, new_id
from scaleplus.engine.records import User
from scaleplus.exceptions import DuplicateEmail, InvalidPoints, InvalidProfile, UserNotFound

if TYPE_CHECKING:
    from scaleplus.engine.tiers import TierResolver
    from scaleplus.services.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

# Profile fields an edit may touch.  Points and tier are never among them.
PROFILE_FIELDS: frozenset[str] = frozenset({"name", "email", "phone", "profile_image_url"})


class UserRoster:
    """In-memory roster mirrored to the ``users`` key."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        resolver: TierResolver,
        *,
        lock: threading.RLock | None = None,
    ) -> None:
        self._gateway = gateway
        self._resolver = resolver
        self._lock = lock or threading.RLock()
        raw = gateway.load(USERS_KEY) or []
        self._users: dict[str, User] = {}
        stale = 0
        for item in raw:
            user = User.from_dict(item)
            fresh = self.with_points(user, user.points)
            if fresh.tier_id != user.tier_id:
                logger.warning(
                    "User %s had stale tier %r; corrected to %r",
                    user.id, user.tier_id, fresh.tier_id,
                )
                stale += 1
            self._users[fresh.id] = fresh
        if stale:
            gateway.save(USERS_KEY, self._serialize(self._users))

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def users(self) -> list[User]:
        with self._lock:
            return list(self._users.values())

    def get(self, user_id: str) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def require(self, user_id: str) -> User:
        user = self.get(user_id)
        if user is None:
            raise UserNotFound(user_id=user_id)
        return user

    def find_by_email(self, email: str) -> User | None:
        needle = email.strip().lower()
        with self._lock:
            return next(
                (u for u in self._users.values() if u.email.lower() == needle), None
            )

    # -------------------------------------------------------------------
    # Staging helpers used by the grant and redemption services
    # -------------------------------------------------------------------
    def with_points(self, user: User, points: int) -> User:
        """Copy of *user* at *points*, tier recomputed."""
        if isinstance(points, bool) or not isinstance(points, int) or points < 0:
            raise InvalidPoints(user_id=user.id, points=points)
        return replace(user, points=points, tier_id=self._resolver.resolve(points).id)

    def payload_with(self, user: User) -> list[dict]:
        """Serialized roster with *user* added or replaced."""
        with self._lock:
            staged = dict(self._users)
            staged[user.id] = user
            return self._serialize(staged)

    def install(self, user: User) -> None:
        with self._lock:
            self._users[user.id] = user

    def _commit(self, user: User) -> User:
        with self._lock:
            self._gateway.save(USERS_KEY, self.payload_with(user))
            self.install(user)
        return user

    @staticmethod
    def _serialize(users: dict[str, User]) -> list[dict]:
        return [u.to_dict() for u in users.values()]

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    @staticmethod
    def _required_text(field: str, value: str) -> str:
        cleaned = value.strip() if isinstance(value, str) else ""
        if not cleaned:
            raise InvalidProfile(field=field)
        return cleaned

    def register(self, name: str, email: str, phone: str | None = None) -> User:
        """Create a member with zero points in the base tier."""
        name = self._required_text("name", name)
        email = self._required_text("email", email)
        with self._lock:
            if self.find_by_email(email) is not None:
                raise DuplicateEmail(email=email)
            user = User(
                id=new_id("user"),
                name=name,
                email=email,
                phone=phone or None,
                points=0,
                tier_id=self._resolver.base.id,
                is_admin=False,
                registration_date=datetime.now(timezone.utc),
            )
            self._commit(user)
        logger.info("Registered user %s (%s)", user.id, user.email)
        return user

    def update_profile(self, user_id: str, **changes: str | None) -> User:
        """Edit opaque profile fields (name, email, phone, profile_image_url).

        ``None`` leaves a field as it is.  An empty phone or image URL clears
        it; name and email may not be blank.
        """
        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise TypeError(f"Not profile fields: {', '.join(sorted(unknown))}")
        changes = {field: value for field, value in changes.items() if value is not None}
        for field in ("name", "email"):
            if field in changes:
                changes[field] = self._required_text(field, changes[field])
        for field in ("phone", "profile_image_url"):
            if field in changes:
                changes[field] = changes[field] or None

        with self._lock:
            user = self.require(user_id)
            new_email = changes.get("email")
            if new_email is not None:
                owner = self.find_by_email(new_email)
                if owner is not None and owner.id != user_id:
                    raise DuplicateEmail(email=new_email)
            updated = self._commit(replace(user, **changes))
        logger.info("Profile updated: %s (%s)", user_id, ", ".join(sorted(changes)) or "no changes")
        return updated
