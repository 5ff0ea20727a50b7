"""
scaleplus.exceptions — Loyalty Error Taxonomy
==============================================

Every failure the loyalty core can report to a caller.  Each class carries
a stable ``code`` so a UI can map it to a specific message without parsing
text::

    try:
        redemptions.redeem(user_id, reward_id)
    except LoyaltyError as exc:
        if exc.code == "OUT_OF_STOCK":
            show_sold_out_banner()

None of these are retried by the core.
"""

from __future__ import annotations

from typing import Any


class LoyaltyError(Exception):
    """Base class for all loyalty errors.

    Extra keyword arguments are kept on ``context`` for logging and display.
    """

    code: str = "LOYALTY_ERROR"
    default_message: str = "Loyalty operation failed"

    def __init__(self, message: str | None = None, **context: Any) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v!r}" for k, v in sorted(self.context.items()))
        return f"{self.message} ({details})"


class UserNotFound(LoyaltyError, LookupError):
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class RewardNotFound(LoyaltyError, LookupError):
    code = "REWARD_NOT_FOUND"
    default_message = "Reward not found"


class MechanicNotFound(LoyaltyError, LookupError):
    code = "MECHANIC_NOT_FOUND"
    default_message = "Mechanic not found"


class InsufficientPoints(LoyaltyError):
    code = "INSUFFICIENT_POINTS"
    default_message = "Not enough points to redeem this reward"


class OutOfStock(LoyaltyError):
    code = "OUT_OF_STOCK"
    default_message = "This reward is out of stock"


class InvalidTransaction(LoyaltyError, ValueError):
    """A ledger entry that would break the append-only log's rules."""

    code = "INVALID_TRANSACTION"
    default_message = "Invalid transaction"


class InvalidPoints(LoyaltyError, ValueError):
    code = "INVALID_POINTS"
    default_message = "Points must be a non-negative integer"


class InvalidCatalogEntry(LoyaltyError, ValueError):
    code = "INVALID_CATALOG_ENTRY"
    default_message = "Invalid catalog entry"


class DuplicateEmail(LoyaltyError, ValueError):
    code = "DUPLICATE_EMAIL"
    default_message = "An account with this email address already exists"


class InvalidProfile(LoyaltyError, ValueError):
    code = "INVALID_PROFILE"
    default_message = "Name and email must not be blank"


class ConfigurationError(LoyaltyError, ValueError):
    """The tier table (or other static configuration) is malformed."""

    code = "CONFIGURATION_ERROR"
    default_message = "Invalid loyalty configuration"


class StorageError(LoyaltyError):
    """Persisted state could not be decoded."""

    code = "STORAGE_ERROR"
    default_message = "Stored loyalty data is unreadable"
