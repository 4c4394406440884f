"""Exceptions raised by the crates bot core."""

from __future__ import annotations


class CrateBotError(Exception):
    """Base class for errors the command layer turns into user-facing replies."""


class InvalidQuantityError(CrateBotError, ValueError):
    """Raised when a crate quantity is not a positive integer."""


class InvalidRewardError(CrateBotError, ValueError):
    """Raised when a manually added reward has an unknown kind or bad amount."""


class RoleTooLargeError(CrateBotError):
    """Raised when a role grant targets more members than the configured cap."""

    def __init__(self, count: int, cap: int):
        super().__init__(f"Role has {count} members, more than the limit of {cap}.")
        self.count = count
        self.cap = cap


class LedgerLoadError(CrateBotError):
    """Raised when the ledger file exists but cannot be parsed."""


__all__ = [
    "CrateBotError",
    "InvalidQuantityError",
    "InvalidRewardError",
    "LedgerLoadError",
    "RoleTooLargeError",
]
