import json
import random
import tempfile
import unittest
from collections import Counter
from pathlib import Path

from cratebot.loot import (
    DEFAULT_LOOT_TABLE,
    CurrencyTier,
    LootCategory,
    load_loot_table,
    loot_table_from_mapping,
    pick_weighted,
    roll_currency,
    select_reward,
)
from cratebot.models import KIND_CURRENCY, KIND_ITEM


class ScriptedRng:
    """Replays fixed draws so individual roll paths can be checked."""

    def __init__(self, *, randoms=(), uniforms=()):
        self._randoms = list(randoms)
        self._uniforms = list(uniforms)

    def random(self) -> float:
        return self._randoms.pop(0)

    def uniform(self, low: float, high: float) -> float:
        return self._uniforms.pop(0)

    def choice(self, seq):
        return seq[0]


class PickWeightedTests(unittest.TestCase):
    def test_returns_entry_that_crosses_zero(self) -> None:
        entries = [LootCategory("a", 1), LootCategory("b", 2), LootCategory("c", 3)]
        self.assertEqual(pick_weighted(entries, ScriptedRng(uniforms=[0.5])).name, "a")
        self.assertEqual(pick_weighted(entries, ScriptedRng(uniforms=[2.5])).name, "b")
        self.assertEqual(pick_weighted(entries, ScriptedRng(uniforms=[5.9])).name, "c")

    def test_exact_boundary_resolves_to_crossing_entry(self) -> None:
        entries = [LootCategory("a", 1), LootCategory("b", 2)]
        self.assertEqual(pick_weighted(entries, ScriptedRng(uniforms=[1.0])).name, "a")

    def test_missing_weight_defaults_to_one(self) -> None:
        entries = [{"name": "x"}, {"name": "y", "weight": None}, {"name": "z", "weight": 2}]
        self.assertEqual(pick_weighted(entries, ScriptedRng(uniforms=[1.5]))["name"], "y")

    def test_drift_falls_back_to_last_entry(self) -> None:
        entries = [LootCategory("a", 1), LootCategory("b", 1)]
        self.assertEqual(pick_weighted(entries, ScriptedRng(uniforms=[2.0000001])).name, "b")

    def test_empty_pool_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            pick_weighted([])


class SelectRewardTests(unittest.TestCase):
    def test_special_roll_is_marked_and_single(self) -> None:
        rng = ScriptedRng(randoms=[0.01], uniforms=[95.0])
        outcome = select_reward(DEFAULT_LOOT_TABLE, rng)
        self.assertEqual(outcome.kind, KIND_ITEM)
        self.assertEqual(outcome.name, "Humvee")
        self.assertTrue(outcome.special)
        self.assertEqual(outcome.amount, 1)
        self.assertEqual(outcome.description, "Military-grade armored transport vehicle.")

    def test_currency_roll_uses_tier_bounds(self) -> None:
        rng = ScriptedRng(randoms=[0.5, 0.0], uniforms=[10.0, 75.0])
        outcome = select_reward(DEFAULT_LOOT_TABLE, rng)
        self.assertEqual(outcome.kind, KIND_CURRENCY)
        self.assertEqual(outcome.name, "DC")
        self.assertEqual(outcome.currency_tier, "uncommon")
        self.assertEqual(outcome.amount, 5001)
        self.assertFalse(outcome.special)

    def test_weapon_and_kit_rolls(self) -> None:
        weapon = select_reward(DEFAULT_LOOT_TABLE, ScriptedRng(randoms=[0.5], uniforms=[50.0]))
        self.assertEqual(weapon.name, "M4A1")
        self.assertIsNone(weapon.description)
        kit = select_reward(DEFAULT_LOOT_TABLE, ScriptedRng(randoms=[0.5], uniforms=[90.0]))
        self.assertEqual(kit.name, "Medical Kit")
        self.assertTrue(kit.description)
        self.assertEqual(kit.amount, 1)

    def test_special_share_converges_to_five_percent(self) -> None:
        rng = random.Random(20261019)
        draws = 100_000
        specials = sum(1 for _ in range(draws) if select_reward(DEFAULT_LOOT_TABLE, rng).special)
        self.assertAlmostEqual(specials / draws, 0.05, delta=0.005)

    def test_category_shares_follow_weights(self) -> None:
        rng = random.Random(7)
        counts = {"currency": 0, "weapon": 0, "kit": 0}
        draws = 60_000
        for _ in range(draws):
            counts[pick_weighted(DEFAULT_LOOT_TABLE.categories, rng).name] += 1
        self.assertAlmostEqual(counts["currency"] / draws, 40 / 95, delta=0.01)
        self.assertAlmostEqual(counts["weapon"] / draws, 25 / 95, delta=0.01)
        self.assertAlmostEqual(counts["kit"] / draws, 30 / 95, delta=0.01)

    def test_special_items_follow_weights(self) -> None:
        rng = random.Random(11)
        draws = 60_000
        counts = Counter(pick_weighted(DEFAULT_LOOT_TABLE.specials, rng).name for _ in range(draws))
        expected = {
            "Builder's Truck": 0.30,
            "Weapons Car": 0.30,
            "Storage Car": 0.30,
            "Humvee": 0.05,
            "24 Hour Build Spawn": 0.05,
        }
        self.assertEqual(set(counts), set(expected))
        for name, share in expected.items():
            with self.subTest(name=name):
                self.assertAlmostEqual(counts[name] / draws, share, delta=0.01)


class CurrencyTierTests(unittest.TestCase):
    def test_tier_shares_follow_weights(self) -> None:
        rng = random.Random(29)
        draws = 60_000
        counts = Counter(roll_currency(DEFAULT_LOOT_TABLE, rng).currency_tier for _ in range(draws))
        expected = {"common": 0.70, "uncommon": 0.20, "rare": 0.08, "jackpot": 0.02}
        self.assertEqual(set(counts), set(expected))
        for tier, share in expected.items():
            with self.subTest(tier=tier):
                self.assertAlmostEqual(counts[tier] / draws, share, delta=0.01)

    def test_rolled_amounts_stay_inside_their_tier(self) -> None:
        bounds = {tier.name: (tier.minimum, tier.maximum) for tier in DEFAULT_LOOT_TABLE.currency_tiers}
        rng = random.Random(31)
        for _ in range(5_000):
            outcome = roll_currency(DEFAULT_LOOT_TABLE, rng)
            low, high = bounds[outcome.currency_tier]
            self.assertTrue(low <= outcome.amount <= high, outcome)

    def test_common_amounts_stay_inclusive(self) -> None:
        tier = CurrencyTier("common", 1000, 5000, 70)
        rng = random.Random(3)
        amounts = [tier.roll_amount(rng) for _ in range(20_000)]
        self.assertGreaterEqual(min(amounts), 1000)
        self.assertLessEqual(max(amounts), 5000)

    def test_extremes_hit_both_bounds(self) -> None:
        tier = CurrencyTier("common", 1000, 5000, 70)
        self.assertEqual(tier.roll_amount(ScriptedRng(randoms=[0.0])), 1000)
        self.assertEqual(tier.roll_amount(ScriptedRng(randoms=[0.9999999])), 5000)


class LootTableConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_overrides_replace_only_given_sections(self) -> None:
        table = loot_table_from_mapping(
            {
                "special_chance": 0.1,
                "categories": {"currency": 1, "weapon": 0, "bogus": 5},
                "weapons": ["Crossbow", {"name": ""}, 7],
                "currency_name": "Gold",
            }
        )
        self.assertEqual(table.special_chance, 0.1)
        self.assertEqual([c.name for c in table.categories], ["currency"])
        self.assertEqual(table.weapons, ("Crossbow",))
        self.assertTrue(table.is_weapon("crossbow"))
        self.assertEqual(table.currency_name, "Gold")
        self.assertEqual(table.kits, DEFAULT_LOOT_TABLE.kits)
        self.assertEqual(table.currency_tiers, DEFAULT_LOOT_TABLE.currency_tiers)

    def test_invalid_tiers_are_skipped(self) -> None:
        table = loot_table_from_mapping(
            {
                "currency_tiers": [
                    {"name": "tiny", "min": 1, "max": 10, "weight": 3},
                    {"name": "backwards", "min": 10, "max": 1},
                    {"name": "noweight", "min": 5, "max": 6, "weight": "x"},
                ]
            }
        )
        self.assertEqual([tier.name for tier in table.currency_tiers], ["tiny"])

    def test_out_of_range_chance_is_ignored(self) -> None:
        table = loot_table_from_mapping({"special_chance": 2})
        self.assertEqual(table.special_chance, DEFAULT_LOOT_TABLE.special_chance)

    def test_missing_or_corrupt_file_uses_defaults(self) -> None:
        self.assertIs(load_loot_table(None), DEFAULT_LOOT_TABLE)
        self.assertIs(load_loot_table(self.root / "missing.json"), DEFAULT_LOOT_TABLE)
        broken = self.root / "broken.json"
        broken.write_text("{not json", encoding="utf-8")
        self.assertIs(load_loot_table(broken), DEFAULT_LOOT_TABLE)

    def test_file_overrides_are_loaded(self) -> None:
        path = self.root / "loot.json"
        path.write_text(json.dumps({"kits": [{"name": "Fishing Kit", "description": "Rod and bait."}]}), encoding="utf-8")
        table = load_loot_table(path)
        self.assertEqual([kit.name for kit in table.kits], ["Fishing Kit"])
        self.assertEqual(table.kits[0].description, "Rod and bait.")


if __name__ == "__main__":
    unittest.main()
