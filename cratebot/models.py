"""Dataclasses and shared type definitions for the crates bot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


KIND_CURRENCY = "currency"
KIND_ITEM = "item"
REWARD_KINDS = (KIND_CURRENCY, KIND_ITEM)

STATUS_ACTIVE = "active"
STATUS_REMOVED = "removed"

DEFAULT_CURRENCY_NAME = "DC"


@dataclass(frozen=True)
class RewardOutcome:
    """A rolled or hand-made reward that has not been written to the ledger yet."""

    kind: str
    name: str
    amount: int
    special: bool = False
    description: Optional[str] = None
    currency_tier: Optional[str] = None

    @classmethod
    def currency(cls, amount: int, tier: Optional[str] = None, *, name: str = DEFAULT_CURRENCY_NAME) -> "RewardOutcome":
        return cls(kind=KIND_CURRENCY, name=name, amount=amount, currency_tier=tier)

    @classmethod
    def item(
        cls,
        name: str,
        *,
        amount: int = 1,
        description: Optional[str] = None,
        special: bool = False,
    ) -> "RewardOutcome":
        return cls(kind=KIND_ITEM, name=name, amount=amount, special=special, description=description)


@dataclass
class UserBalance:
    user_id: str
    crates: int
    created_at: datetime


@dataclass
class RewardRecord:
    id: str
    user_id: str
    kind: str
    name: str
    amount: int
    status: str
    created_at: datetime
    special: bool = False
    description: Optional[str] = None
    currency_tier: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE


__all__ = [
    "DEFAULT_CURRENCY_NAME",
    "KIND_CURRENCY",
    "KIND_ITEM",
    "REWARD_KINDS",
    "RewardOutcome",
    "RewardRecord",
    "STATUS_ACTIVE",
    "STATUS_REMOVED",
    "UserBalance",
]
