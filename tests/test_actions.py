import asyncio
import random
import tempfile
import unittest
from pathlib import Path

from cratebot import actions
from cratebot.errors import InvalidQuantityError, InvalidRewardError, RoleTooLargeError
from cratebot.ledger import open_ledger
from cratebot.models import KIND_ITEM


class _LedgerCase:
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.ledger = open_ledger(Path(self._tmp.name) / "data.json")

    def tearDown(self) -> None:
        self._tmp.cleanup()


class OpenCrateTests(_LedgerCase, unittest.TestCase):
    def test_no_crates_means_no_reward(self) -> None:
        result = actions.open_crate(self.ledger, "u1", rng=random.Random(1))
        self.assertFalse(result.opened)
        self.assertIsNone(result.outcome)
        self.assertEqual(self.ledger.count_active_rewards("u1"), 0)

    def test_open_records_reward_and_spends_crate(self) -> None:
        actions.grant_crates(self.ledger, "u1", 2)
        result = actions.open_crate(self.ledger, "u1", rng=random.Random(1))
        self.assertTrue(result.opened)
        self.assertEqual(result.crates_left, 1)
        record = self.ledger.get_reward(result.record_id)
        self.assertEqual(record.name, result.outcome.name)
        self.assertEqual(record.amount, result.outcome.amount)
        self.assertEqual(record.special, result.outcome.special)
        self.assertEqual(record.currency_tier, result.outcome.currency_tier)


class ConcurrentOpenTests(_LedgerCase, unittest.IsolatedAsyncioTestCase):
    async def test_two_opens_on_one_crate_only_one_wins(self) -> None:
        self.ledger.add_crates("u1", 1)

        async def handler() -> bool:
            await asyncio.sleep(0)
            result = actions.open_crate(self.ledger, "u1")
            await asyncio.sleep(0)
            return result.opened

        outcomes = await asyncio.gather(handler(), handler(), handler())
        self.assertEqual(sorted(outcomes), [False, False, True])
        self.assertEqual(self.ledger.get_crate_balance("u1"), 0)
        self.assertEqual(self.ledger.count_active_rewards("u1"), 1)


class GrantTests(_LedgerCase, unittest.TestCase):
    def test_grant_to_members_credits_each_once(self) -> None:
        result = actions.grant_crates_to_members(self.ledger, [1, 2, 2, 3], 5)
        self.assertEqual(result.members_affected, 3)
        for member_id in (1, 2, 3):
            self.assertEqual(self.ledger.get_crate_balance(member_id), 5)

    def test_role_over_cap_is_rejected_without_credits(self) -> None:
        with self.assertRaises(RoleTooLargeError) as ctx:
            actions.grant_crates_to_members(self.ledger, range(11), 1, cap=10)
        self.assertEqual(ctx.exception.count, 11)
        self.assertEqual(self.ledger.get_crate_balance(0), 0)

    def test_empty_role_grants_nothing(self) -> None:
        result = actions.grant_crates_to_members(self.ledger, [], 3)
        self.assertEqual(result.members_affected, 0)

    def test_invalid_quantity_is_rejected(self) -> None:
        with self.assertRaises(InvalidQuantityError):
            actions.grant_crates(self.ledger, "u1", 0)


class AdminRewardTests(_LedgerCase, unittest.TestCase):
    def test_add_reward_normalizes_input(self) -> None:
        record_id = actions.add_reward(
            self.ledger, "u1", " Item ", " Medical Kit ", 2, special=True, description="  "
        )
        record = self.ledger.get_reward(record_id)
        self.assertEqual(record.kind, KIND_ITEM)
        self.assertEqual(record.name, "Medical Kit")
        self.assertTrue(record.special)
        self.assertIsNone(record.description)

    def test_add_reward_validation(self) -> None:
        for kind, name, amount in (("gift", "X", 1), ("item", " ", 1), ("item", "X", 0), ("currency", "DC", 2_000_000)):
            with self.subTest(kind=kind, name=name, amount=amount):
                with self.assertRaises(InvalidRewardError):
                    actions.add_reward(self.ledger, "u1", kind, name, amount)
        self.assertEqual(self.ledger.count_active_rewards("u1"), 0)

    def test_bulk_add_appends_valid_entries_only(self) -> None:
        result = actions.add_rewards_bulk(self.ledger, "u1", "currency,DC,5000;item,Medical Kit,1;bogus")
        self.assertEqual(len(result.record_ids), 2)
        self.assertEqual(len(result.skipped), 1)
        names = [record.name for record in self.ledger.list_active_rewards("u1", 10, 0)]
        self.assertEqual(names, ["Medical Kit", "DC"])


class RewardPageTests(_LedgerCase, unittest.TestCase):
    def test_pages_are_clamped_and_counted(self) -> None:
        for n in range(12):
            actions.add_reward(self.ledger, "u1", "item", f"Kit {n}", 1)
        first = actions.reward_page(self.ledger, "u1", 0)
        self.assertEqual((first.page, first.total_pages, first.total), (1, 2, 12))
        self.assertEqual(len(first.records), 10)
        second = actions.reward_page(self.ledger, "u1", 2)
        self.assertEqual([r.name for r in second.records], ["Kit 1", "Kit 0"])
        beyond = actions.reward_page(self.ledger, "u1", 5)
        self.assertEqual(beyond.records, [])

    def test_empty_listing_has_one_page(self) -> None:
        page = actions.reward_page(self.ledger, "nobody")
        self.assertEqual((page.page, page.total_pages, page.total), (1, 1, 0))


if __name__ == "__main__":
    unittest.main()
