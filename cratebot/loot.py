"""Weighted reward selection for crate openings."""

from __future__ import annotations

import json
import logging
import math
import random
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple, TypeVar

from .models import DEFAULT_CURRENCY_NAME, RewardOutcome

logger = logging.getLogger("cratebot.loot")
_roll_logger = logging.getLogger("cratebot.loot.rolls")

T = TypeVar("T")

CATEGORY_CURRENCY = "currency"
CATEGORY_WEAPON = "weapon"
CATEGORY_KIT = "kit"
CATEGORIES = (CATEGORY_CURRENCY, CATEGORY_WEAPON, CATEGORY_KIT)


@dataclass(frozen=True)
class LootItem:
    name: str
    description: Optional[str] = None
    weight: float = 1.0


@dataclass(frozen=True)
class LootCategory:
    name: str
    weight: float = 1.0


@dataclass(frozen=True)
class CurrencyTier:
    name: str
    minimum: int
    maximum: int
    weight: float = 1.0

    def roll_amount(self, rng: Any) -> int:
        """Return an amount in [minimum, maximum], both bounds inclusive."""
        span = self.maximum - self.minimum + 1
        return self.minimum + math.floor(rng.random() * span)


DEFAULT_SPECIAL_CHANCE = 0.05

DEFAULT_SPECIALS: Tuple[LootItem, ...] = (
    LootItem("Builder's Truck", "Fully equipped mobile base-building vehicle.", 30),
    LootItem("Weapons Car", "A vehicle fully stocked with weapons.", 30),
    LootItem("Storage Car", "A vehicle loaded with tents, barrels, and storage.", 30),
    LootItem("Humvee", "Military-grade armored transport vehicle.", 5),
    LootItem("24 Hour Build Spawn", "Special permit to place unlimited build items for 24 hours.", 5),
)

DEFAULT_CATEGORIES: Tuple[LootCategory, ...] = (
    LootCategory(CATEGORY_CURRENCY, 40),
    LootCategory(CATEGORY_WEAPON, 25),
    LootCategory(CATEGORY_KIT, 30),
)

DEFAULT_CURRENCY_TIERS: Tuple[CurrencyTier, ...] = (
    CurrencyTier("common", 1000, 5000, 70),
    CurrencyTier("uncommon", 5001, 15000, 20),
    CurrencyTier("rare", 15001, 30000, 8),
    CurrencyTier("jackpot", 30001, 50000, 2),
)

DEFAULT_WEAPONS: Tuple[str, ...] = (
    "M4A1",
    "LAR (FAL)",
    "SVD",
    "VSS Vintorez",
    "AK-101",
    "AK-74",
    "M70 Tundra",
    "Mosin 91/30",
    "M16A2",
    "AS VAL",
)

DEFAULT_KITS: Tuple[LootItem, ...] = (
    LootItem("Medical Kit", "Bandages, saline, morphine, and other essential medical supplies."),
    LootItem("Food Kit", "Canned goods, cooking pot, and utensils for survival."),
    LootItem("Hunter Kit", "Scoped rifle, hunting knife, and ammo."),
    LootItem("Camo Kit", "Ghillie suit and camo clothing for stealth."),
    LootItem("Clothing Kit", "Warm clothing and boots for harsh conditions."),
    LootItem("Repair Kit", "Weapon cleaning kit, sewing kit, duct tape."),
    LootItem("Vehicle Repair Kit", "Spare parts, wrench, and repair tools."),
    LootItem("Tool Kit", "Axe, shovel, saw, and other basic tools."),
    LootItem("Ammo Kit", "Mixed ammo types for various weapons."),
    LootItem("Survival Kit", "Matches, canteen, rope, tarp."),
)


@dataclass(frozen=True)
class LootTable:
    """Every pool and weight used when a crate is opened."""

    special_chance: float = DEFAULT_SPECIAL_CHANCE
    specials: Tuple[LootItem, ...] = DEFAULT_SPECIALS
    categories: Tuple[LootCategory, ...] = DEFAULT_CATEGORIES
    currency_tiers: Tuple[CurrencyTier, ...] = DEFAULT_CURRENCY_TIERS
    weapons: Tuple[str, ...] = DEFAULT_WEAPONS
    kits: Tuple[LootItem, ...] = DEFAULT_KITS
    currency_name: str = DEFAULT_CURRENCY_NAME
    _weapon_names: frozenset = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_weapon_names", frozenset(name.lower() for name in self.weapons))

    def is_weapon(self, name: str) -> bool:
        return name.strip().lower() in self._weapon_names

    def special_description(self, name: str) -> Optional[str]:
        lowered = name.strip().lower()
        for special in self.specials:
            if special.name.lower() == lowered:
                return special.description
        return None


DEFAULT_LOOT_TABLE = LootTable()


def _entry_weight(entry: object) -> float:
    if isinstance(entry, Mapping):
        weight = entry.get("weight")
    else:
        weight = getattr(entry, "weight", None)
    if weight is None:
        return 1.0
    return float(weight)


def pick_weighted(entries: Sequence[T], rng: Any = None) -> T:
    """Roulette-wheel pick; entries without a weight count as weight 1."""
    if not entries:
        raise ValueError("Cannot pick from an empty pool.")
    rng = rng or random
    total = sum(_entry_weight(entry) for entry in entries)
    remaining = rng.uniform(0, total)
    for entry in entries:
        remaining -= _entry_weight(entry)
        if remaining <= 0:
            return entry
    # Floating point drift can leave a sliver of weight unclaimed.
    return entries[-1]


def roll_currency(table: LootTable = DEFAULT_LOOT_TABLE, rng: Any = None) -> RewardOutcome:
    rng = rng or random
    tier = pick_weighted(table.currency_tiers, rng)
    return RewardOutcome.currency(tier.roll_amount(rng), tier.name, name=table.currency_name)


def select_reward(table: LootTable = DEFAULT_LOOT_TABLE, rng: Any = None) -> RewardOutcome:
    """Roll one crate reward.

    The special gate is checked before any category is picked; specials make up
    ``table.special_chance`` of all rolls.
    """
    rng = rng or random
    if table.specials and rng.random() < table.special_chance:
        special = pick_weighted(table.specials, rng)
        outcome = RewardOutcome.item(special.name, description=special.description, special=True)
    else:
        category = pick_weighted(table.categories, rng).name
        if category == CATEGORY_CURRENCY:
            outcome = roll_currency(table, rng)
        elif category == CATEGORY_WEAPON:
            outcome = RewardOutcome.item(rng.choice(table.weapons))
        else:
            kit = rng.choice(table.kits)
            outcome = RewardOutcome.item(kit.name, description=kit.description)
    _roll_logger.debug(
        "Rolled %s %s x%s (special=%s tier=%s)",
        outcome.kind,
        outcome.name,
        outcome.amount,
        outcome.special,
        outcome.currency_tier,
    )
    return outcome


# Loot table overrides ----------------------------------------------


def _positive_weight(raw: object, label: str) -> Optional[float]:
    try:
        weight = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.warning("Loot config: ignoring %s with invalid weight %r", label, raw)
        return None
    if weight <= 0 or math.isinf(weight) or math.isnan(weight):
        logger.warning("Loot config: ignoring %s with non-positive weight %r", label, raw)
        return None
    return weight


def _parse_items(raw: object, section: str, *, weighted: bool) -> List[LootItem]:
    items: List[LootItem] = []
    if not isinstance(raw, list):
        logger.warning("Loot config: %s must be a list.", section)
        return items
    for entry in raw:
        if isinstance(entry, str) and entry.strip():
            items.append(LootItem(entry.strip()))
            continue
        if not isinstance(entry, Mapping):
            logger.warning("Loot config: skipping %s entry %r", section, entry)
            continue
        name = str(entry.get("name") or "").strip()
        if not name:
            logger.warning("Loot config: skipping %s entry without a name", section)
            continue
        description = str(entry.get("description") or "").strip() or None
        weight = 1.0
        if weighted and "weight" in entry:
            parsed = _positive_weight(entry.get("weight"), f"{section} entry {name}")
            if parsed is None:
                continue
            weight = parsed
        items.append(LootItem(name, description, weight))
    return items


def _parse_categories(raw: object) -> List[LootCategory]:
    categories: List[LootCategory] = []
    if not isinstance(raw, Mapping):
        logger.warning("Loot config: categories must be an object of name -> weight.")
        return categories
    for key, value in raw.items():
        name = str(key).strip().lower()
        if name not in CATEGORIES:
            logger.warning("Loot config: ignoring unknown category %s", key)
            continue
        weight = _positive_weight(value, f"category {name}")
        if weight is not None:
            categories.append(LootCategory(name, weight))
    return categories


def _parse_tiers(raw: object) -> List[CurrencyTier]:
    tiers: List[CurrencyTier] = []
    if not isinstance(raw, list):
        logger.warning("Loot config: currency_tiers must be a list.")
        return tiers
    for entry in raw:
        if not isinstance(entry, Mapping):
            logger.warning("Loot config: skipping currency tier %r", entry)
            continue
        name = str(entry.get("name") or "").strip().lower()
        try:
            minimum = int(entry["min"])
            maximum = int(entry["max"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Loot config: skipping currency tier %s without integer min/max", name or entry)
            continue
        if not name or minimum < 1 or maximum < minimum:
            logger.warning("Loot config: skipping invalid currency tier %s (%s-%s)", name, minimum, maximum)
            continue
        weight = _positive_weight(entry.get("weight", 1), f"currency tier {name}")
        if weight is not None:
            tiers.append(CurrencyTier(name, minimum, maximum, weight))
    return tiers


def loot_table_from_mapping(payload: Mapping[str, object], base: LootTable = DEFAULT_LOOT_TABLE) -> LootTable:
    """Overlay the sections present in ``payload`` onto ``base``."""
    overrides: dict = {}

    if "special_chance" in payload:
        try:
            chance = float(payload["special_chance"])  # type: ignore[arg-type]
        except (TypeError, ValueError):
            logger.warning("Loot config: invalid special_chance %r", payload["special_chance"])
        else:
            if 0.0 <= chance <= 1.0:
                overrides["special_chance"] = chance
            else:
                logger.warning("Loot config: special_chance %s must be between 0 and 1", chance)

    if "specials" in payload:
        specials = _parse_items(payload["specials"], "specials", weighted=True)
        if specials:
            overrides["specials"] = tuple(specials)

    if "categories" in payload:
        categories = _parse_categories(payload["categories"])
        if categories:
            overrides["categories"] = tuple(categories)

    if "currency_tiers" in payload:
        tiers = _parse_tiers(payload["currency_tiers"])
        if tiers:
            overrides["currency_tiers"] = tuple(tiers)

    if "weapons" in payload:
        weapons = _parse_items(payload["weapons"], "weapons", weighted=False)
        if weapons:
            overrides["weapons"] = tuple(item.name for item in weapons)

    if "kits" in payload:
        kits = _parse_items(payload["kits"], "kits", weighted=False)
        if kits:
            overrides["kits"] = tuple(kits)

    currency_name = payload.get("currency_name")
    if isinstance(currency_name, str) and currency_name.strip():
        overrides["currency_name"] = currency_name.strip()

    if not overrides:
        return base
    return replace(base, **overrides)


def load_loot_table(path: Optional[Path]) -> LootTable:
    if not path:
        return DEFAULT_LOOT_TABLE
    try:
        if not path.exists():
            logger.warning("Loot config %s not found; using defaults.", path)
            return DEFAULT_LOOT_TABLE
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse loot config %s: %s", path, exc)
        return DEFAULT_LOOT_TABLE
    if not isinstance(payload, Mapping):
        logger.warning("Loot config %s must be a JSON object.", path)
        return DEFAULT_LOOT_TABLE
    table = loot_table_from_mapping(payload)
    logger.info("Loaded loot table overrides from %s", path)
    return table


__all__ = [
    "CATEGORIES",
    "CurrencyTier",
    "DEFAULT_LOOT_TABLE",
    "LootCategory",
    "LootItem",
    "LootTable",
    "load_loot_table",
    "loot_table_from_mapping",
    "pick_weighted",
    "roll_currency",
    "select_reward",
]
