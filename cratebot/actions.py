"""Command logic shared by the slash commands, free of Discord objects."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from .bulk import BulkParseResult, parse_reward_batch
from .errors import InvalidRewardError, RoleTooLargeError
from .ledger import RewardLedger
from .loot import DEFAULT_LOOT_TABLE, LootTable, select_reward
from .models import REWARD_KINDS, RewardOutcome, RewardRecord

logger = logging.getLogger("cratebot.actions")

DEFAULT_PAGE_SIZE = 10
DEFAULT_ROLE_GRANT_CAP = 1000
MAX_REWARD_AMOUNT = 1_000_000


@dataclass
class OpenCrateResult:
    opened: bool
    outcome: Optional[RewardOutcome] = None
    record_id: Optional[str] = None
    crates_left: int = 0


@dataclass
class RoleGrantResult:
    quantity: int
    granted: List[str] = field(default_factory=list)

    @property
    def members_affected(self) -> int:
        return len(self.granted)


@dataclass
class RewardPage:
    page: int
    total_pages: int
    total: int
    records: List[RewardRecord]


def open_crate(
    ledger: RewardLedger,
    user_id: object,
    *,
    table: LootTable = DEFAULT_LOOT_TABLE,
    rng: Any = None,
) -> OpenCrateResult:
    if not ledger.consume_crate(user_id):
        return OpenCrateResult(opened=False)
    outcome = select_reward(table, rng)
    record_id = ledger.append_reward(user_id, outcome)
    crates_left = ledger.get_crate_balance(user_id)
    logger.info(
        "User %s opened a crate: %s %s x%s (special=%s, %s left)",
        user_id,
        outcome.kind,
        outcome.name,
        outcome.amount,
        outcome.special,
        crates_left,
    )
    return OpenCrateResult(opened=True, outcome=outcome, record_id=record_id, crates_left=crates_left)


def grant_crates(ledger: RewardLedger, user_id: object, qty: int) -> int:
    balance = ledger.add_crates(user_id, qty)
    logger.info("Granted %s crate(s) to %s (balance %s)", qty, user_id, balance)
    return balance


def grant_crates_to_members(
    ledger: RewardLedger,
    member_ids: Iterable[object],
    qty: int,
    *,
    cap: int = DEFAULT_ROLE_GRANT_CAP,
) -> RoleGrantResult:
    """Credit every member once. Earlier credits stand if a later one fails."""
    targets = list(dict.fromkeys(str(member_id) for member_id in member_ids))
    if len(targets) > cap:
        raise RoleTooLargeError(len(targets), cap)
    result = RoleGrantResult(quantity=qty)
    for member_id in targets:
        ledger.add_crates(member_id, qty)
        result.granted.append(member_id)
    logger.info("Granted %s crate(s) each to %s members", qty, result.members_affected)
    return result


def validate_reward(kind: str, name: str, amount: int) -> str:
    normalized = (kind or "").strip().lower()
    if normalized not in REWARD_KINDS:
        raise InvalidRewardError("Kind must be currency or item.")
    if not (name or "").strip():
        raise InvalidRewardError("Reward name cannot be empty.")
    if isinstance(amount, bool) or not isinstance(amount, int) or not 1 <= amount <= MAX_REWARD_AMOUNT:
        raise InvalidRewardError(f"Amount must be between 1 and {MAX_REWARD_AMOUNT:,}.")
    return normalized


def add_reward(
    ledger: RewardLedger,
    user_id: object,
    kind: str,
    name: str,
    amount: int,
    *,
    special: bool = False,
    description: Optional[str] = None,
) -> str:
    normalized = validate_reward(kind, name, amount)
    outcome = RewardOutcome(
        kind=normalized,
        name=name.strip(),
        amount=amount,
        special=special,
        description=(description or "").strip() or None,
    )
    record_id = ledger.append_reward(user_id, outcome)
    logger.info("Added reward %s (%s %s x%s) to %s", record_id, normalized, outcome.name, amount, user_id)
    return record_id


def add_rewards_bulk(ledger: RewardLedger, user_id: object, text: str) -> BulkParseResult:
    result = parse_reward_batch(text)
    for outcome in result.rewards:
        result.record_ids.append(ledger.append_reward(user_id, outcome))
    if result.skipped:
        logger.info("Bulk add for %s skipped %s invalid segment(s)", user_id, len(result.skipped))
    return result


def reward_page(
    ledger: RewardLedger,
    user_id: object,
    page: Optional[int] = None,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> RewardPage:
    page = max(1, page or 1)
    total = ledger.count_active_rewards(user_id)
    total_pages = max(1, math.ceil(total / page_size))
    records = ledger.list_active_rewards(user_id, page_size, (page - 1) * page_size)
    return RewardPage(page=page, total_pages=total_pages, total=total, records=records)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_ROLE_GRANT_CAP",
    "MAX_REWARD_AMOUNT",
    "OpenCrateResult",
    "RewardPage",
    "RoleGrantResult",
    "add_reward",
    "add_rewards_bulk",
    "grant_crates",
    "grant_crates_to_members",
    "open_crate",
    "reward_page",
    "validate_reward",
]
