"""Crate balances and the reward log, persisted to a JSON file."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from .errors import InvalidQuantityError, LedgerLoadError
from .models import (
    REWARD_KINDS,
    STATUS_ACTIVE,
    STATUS_REMOVED,
    RewardOutcome,
    RewardRecord,
    UserBalance,
)
from .utils import utc_now

logger = logging.getLogger("cratebot.ledger")

# Unparseable log entries keep their slot so flush() writes them back verbatim.
LogEntry = Union[RewardRecord, Dict[str, object]]


def parse_timestamp(raw: object) -> datetime:
    """Parse an ISO timestamp, accepting a trailing ``Z``; missing means now."""
    if raw is None or raw == "":
        return utc_now()
    text = str(raw).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def serialize_balance(balance: UserBalance) -> Dict[str, object]:
    return {
        "crates": balance.crates,
        "created_at": balance.created_at.isoformat(),
    }


def deserialize_balance(user_id: str, payload: Dict[str, object]) -> UserBalance:
    crates = int(payload.get("crates", 0))  # type: ignore[arg-type]
    if crates < 0:
        raise ValueError(f"negative crate balance {crates}")
    return UserBalance(
        user_id=user_id,
        crates=crates,
        created_at=parse_timestamp(payload.get("created_at")),
    )


def serialize_reward(record: RewardRecord) -> Dict[str, object]:
    return {
        "id": record.id,
        "user_id": record.user_id,
        "kind": record.kind,
        "name": record.name,
        "amount": record.amount,
        "special": record.special,
        "description": record.description,
        "currency_tier": record.currency_tier,
        "status": record.status,
        "created_at": record.created_at.isoformat(),
    }


def deserialize_reward(payload: Dict[str, object]) -> RewardRecord:
    kind = str(payload["kind"])
    if kind not in REWARD_KINDS:
        raise ValueError(f"unknown reward kind {kind!r}")
    status = str(payload.get("status") or STATUS_ACTIVE)
    if status not in (STATUS_ACTIVE, STATUS_REMOVED):
        raise ValueError(f"unknown reward status {status!r}")
    amount = int(payload["amount"])  # type: ignore[arg-type]
    if amount <= 0:
        raise ValueError(f"non-positive reward amount {amount}")
    return RewardRecord(
        id=str(payload["id"]),
        user_id=str(payload["user_id"]),
        kind=kind,
        name=str(payload["name"]),
        amount=amount,
        status=status,
        created_at=parse_timestamp(payload.get("created_at")),
        special=bool(payload.get("special", False)),
        description=payload.get("description") or None,  # type: ignore[arg-type]
        currency_tier=payload.get("currency_tier") or payload.get("currencyTier") or None,  # type: ignore[arg-type]
    )


class RewardLedger:
    """Owns crate balances and the newest-first reward log.

    Every mutating call writes the whole document back to disk before it
    returns. Methods are synchronous, so a read-check-write such as
    :meth:`consume_crate` never yields to the event loop halfway through.
    Entries that fail to parse on load are kept as raw JSON and written back
    unchanged.
    """

    def __init__(self, path: Path):
        self.path = path
        self._users: Dict[str, UserBalance] = {}
        self._unparsed_users: Dict[str, object] = {}
        self._log: List[LogEntry] = []
        self._loaded = False

    # Lifecycle ---------------------------------------------------------

    def load(self) -> "RewardLedger":
        """Load the ledger file, creating an empty one when it is missing."""
        if not self.path.exists():
            logger.info("Ledger %s not found; creating an empty store.", self.path)
            self._users = {}
            self._unparsed_users = {}
            self._log = []
            self._loaded = True
            self.flush()
            return self
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            logger.error("Failed to parse %s: %s", self.path, exc)
            raise LedgerLoadError(f"Ledger file {self.path} is not valid JSON.") from exc
        if not isinstance(payload, dict):
            raise LedgerLoadError(f"Ledger file {self.path} must contain a JSON object.")

        users: Dict[str, UserBalance] = {}
        unparsed_users: Dict[str, object] = {}
        raw_users = payload.get("users", {})
        if not isinstance(raw_users, dict):
            raise LedgerLoadError(f"Ledger file {self.path} has a non-object 'users' section.")
        for user_id, entry in raw_users.items():
            try:
                users[str(user_id)] = deserialize_balance(str(user_id), entry)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Keeping unparsed balance for user %s as-is: %s", user_id, exc)
                unparsed_users[str(user_id)] = entry

        log: List[LogEntry] = []
        raw_rewards = payload.get("rewards", [])
        if not isinstance(raw_rewards, list):
            raise LedgerLoadError(f"Ledger file {self.path} has a non-list 'rewards' section.")
        for entry in raw_rewards:
            try:
                log.append(deserialize_reward(entry))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Keeping unparsed reward record as-is: %s", exc)
                log.append(entry)

        self._users = users
        self._unparsed_users = unparsed_users
        self._log = log
        self._loaded = True
        logger.info(
            "Loaded ledger %s: %s users, %s reward records (%s unparsed entries kept).",
            self.path,
            len(users),
            len(log),
            len(unparsed_users) + sum(1 for entry in log if not isinstance(entry, RewardRecord)),
        )
        return self

    def flush(self) -> None:
        if not self._loaded:
            raise RuntimeError("Ledger not loaded. Call load() first.")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        users: Dict[str, object] = dict(self._unparsed_users)
        users.update((user_id, serialize_balance(balance)) for user_id, balance in self._users.items())
        data = {
            "users": users,
            "rewards": [
                serialize_reward(entry) if isinstance(entry, RewardRecord) else entry for entry in self._log
            ],
        }
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    # Balances ----------------------------------------------------------

    def _ensure(self, user_id: str) -> tuple[UserBalance, bool]:
        balance = self._users.get(user_id)
        if balance is not None:
            return balance, False
        if user_id in self._unparsed_users:
            logger.warning("Replacing unparsed balance for user %s with a fresh one.", user_id)
        balance = UserBalance(user_id=user_id, crates=0, created_at=utc_now())
        self._users[user_id] = balance
        return balance, True

    def ensure_user(self, user_id: object) -> UserBalance:
        balance, created = self._ensure(str(user_id))
        if created:
            self.flush()
        return balance

    def add_crates(self, user_id: object, qty: int) -> int:
        """Add ``qty`` crates and return the new balance."""
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise InvalidQuantityError(f"Crate quantity must be a positive integer, got {qty!r}.")
        balance, _ = self._ensure(str(user_id))
        balance.crates += qty
        self.flush()
        return balance.crates

    def get_crate_balance(self, user_id: object) -> int:
        balance = self._users.get(str(user_id))
        return balance.crates if balance is not None else 0

    def consume_crate(self, user_id: object) -> bool:
        """Spend one crate. Returns False, changing nothing, when none are left."""
        balance = self._users.get(str(user_id))
        if balance is None or balance.crates <= 0:
            return False
        balance.crates -= 1
        self.flush()
        return True

    # Rewards -----------------------------------------------------------

    def append_reward(self, user_id: object, outcome: RewardOutcome) -> str:
        record = RewardRecord(
            id=uuid.uuid4().hex,
            user_id=str(user_id),
            kind=outcome.kind,
            name=outcome.name,
            amount=outcome.amount,
            status=STATUS_ACTIVE,
            created_at=utc_now(),
            special=outcome.special,
            description=outcome.description,
            currency_tier=outcome.currency_tier,
        )
        self._log.insert(0, record)
        self.flush()
        return record.id

    def _records(self) -> Iterator[RewardRecord]:
        return (entry for entry in self._log if isinstance(entry, RewardRecord))

    def _active_for(self, user_id: str) -> List[RewardRecord]:
        return [record for record in self._records() if record.user_id == user_id and record.is_active]

    def list_active_rewards(self, user_id: object, limit: int, offset: int = 0) -> List[RewardRecord]:
        if limit <= 0:
            return []
        offset = max(0, offset)
        return self._active_for(str(user_id))[offset : offset + limit]

    def count_active_rewards(self, user_id: object) -> int:
        return len(self._active_for(str(user_id)))

    def get_reward(self, record_id: str) -> Optional[RewardRecord]:
        for record in self._records():
            if record.id == record_id:
                return record
        return None

    def remove_reward(self, record_id: str) -> bool:
        record = self.get_reward(record_id.strip())
        if record is None or not record.is_active:
            return False
        record.status = STATUS_REMOVED
        self.flush()
        return True

    def clear_active_rewards(self, user_id: object) -> int:
        rows = self._active_for(str(user_id))
        if not rows:
            return 0
        for record in rows:
            record.status = STATUS_REMOVED
        self.flush()
        return len(rows)


def open_ledger(path: Path) -> RewardLedger:
    return RewardLedger(path).load()


__all__ = [
    "RewardLedger",
    "deserialize_balance",
    "deserialize_reward",
    "open_ledger",
    "parse_timestamp",
    "serialize_balance",
    "serialize_reward",
]
