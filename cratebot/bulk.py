"""Parser for the ``kind,name,amount;...`` bulk reward syntax."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .models import REWARD_KINDS, RewardOutcome

logger = logging.getLogger("cratebot.bulk")

ENTRY_SEPARATOR = ";"
FIELD_SEPARATOR = ","

_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")


@dataclass
class BulkParseResult:
    rewards: List[RewardOutcome] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    record_ids: List[str] = field(default_factory=list)


def parse_leading_int(raw: str) -> Optional[int]:
    """Read the integer prefix of ``raw`` (``"12abc"`` -> 12), or None."""
    match = _LEADING_INT.match(raw or "")
    if not match:
        return None
    return int(match.group(1))


def parse_reward_entry(entry: str) -> Tuple[Optional[RewardOutcome], Optional[str]]:
    """Parse one ``kind,name,amount[,special:true][,description:text]`` segment.

    Returns the outcome, or None plus the reason the segment was rejected.
    """
    parts = [part.strip() for part in entry.split(FIELD_SEPARATOR)]
    if len(parts) < 3:
        return None, "expected kind,name,amount"
    kind = parts[0].lower()
    name = parts[1]
    if kind not in REWARD_KINDS:
        return None, f"unknown kind '{parts[0]}'"
    if not name:
        return None, "missing name"
    amount = parse_leading_int(parts[2])
    if amount is None:
        return None, f"amount '{parts[2]}' is not a number"
    if amount <= 0:
        return None, "amount must be positive"

    special = False
    description: Optional[str] = None
    for extra in parts[3:]:
        lowered = extra.lower()
        if lowered.startswith("special:"):
            special = lowered.split(":", 1)[1].strip() == "true"
        elif lowered.startswith("description:"):
            description = extra[extra.index(":") + 1 :].strip() or None

    return (
        RewardOutcome(kind=kind, name=name, amount=amount, special=special, description=description),
        None,
    )


def parse_reward_batch(text: str) -> BulkParseResult:
    """Parse every segment, keeping the valid ones and reporting the rest."""
    result = BulkParseResult()
    for segment in (chunk.strip() for chunk in (text or "").split(ENTRY_SEPARATOR)):
        if not segment:
            continue
        outcome, reason = parse_reward_entry(segment)
        if outcome is None:
            logger.debug("Skipping bulk reward segment %r: %s", segment, reason)
            result.skipped.append((segment, reason or "invalid"))
            continue
        result.rewards.append(outcome)
    return result


__all__ = ["BulkParseResult", "parse_leading_int", "parse_reward_batch", "parse_reward_entry"]
