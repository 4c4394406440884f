import unittest
from datetime import datetime, timezone

from cratebot.actions import RewardPage, RoleGrantResult
from cratebot.embeds import (
    CURRENCY_COLOR,
    KIT_COLOR,
    SPECIAL_COLOR,
    WEAPON_COLOR,
    build_bulk_added_embed,
    build_open_embed,
    build_rewards_embed,
    build_role_grant_embed,
    format_record_line,
    reward_color,
)
from cratebot.models import STATUS_ACTIVE, RewardOutcome, RewardRecord


def _record(**overrides) -> RewardRecord:
    values = dict(
        id="abc123",
        user_id="u1",
        kind="item",
        name="Tool Kit",
        amount=1,
        status=STATUS_ACTIVE,
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return RewardRecord(**values)


class RewardEmbedTests(unittest.TestCase):
    def test_colors_follow_reward_category(self) -> None:
        self.assertEqual(reward_color(RewardOutcome.item("Humvee", special=True)), SPECIAL_COLOR)
        self.assertEqual(reward_color(RewardOutcome.currency(1200, "common")), CURRENCY_COLOR)
        self.assertEqual(reward_color(RewardOutcome.item("AK-74")), WEAPON_COLOR)
        self.assertEqual(reward_color(RewardOutcome.item("Food Kit")), KIT_COLOR)

    def test_record_lines(self) -> None:
        self.assertEqual(format_record_line(_record()), "• **Tool Kit** x1 — ITEM")
        self.assertEqual(
            format_record_line(_record(special=True), show_id=True),
            "• [`abc123`] **Tool Kit** x1 — SPECIAL",
        )

    def test_open_embed_for_special_uses_catalog_description(self) -> None:
        embed = build_open_embed(RewardOutcome.item("Weapons Car", special=True), 4)
        self.assertEqual(embed.title, "🎉 SPECIAL PRIZE! Weapons Car")
        self.assertEqual(embed.color.value, SPECIAL_COLOR)
        fields = {field.name: field.value for field in embed.fields}
        self.assertEqual(fields["Reward"], "🏆 **Weapons Car x1**")
        self.assertEqual(fields["Description"], "A vehicle fully stocked with weapons.")
        self.assertEqual(fields["Crates Left"], "4")

    def test_open_embed_for_currency_shows_tier(self) -> None:
        embed = build_open_embed(RewardOutcome.currency(4321, "common"), 0)
        self.assertEqual(embed.title, "📦 Crate Opened")
        self.assertEqual(embed.fields[0].value, "💰 **4321 DC** (COMMON)")

    def test_rewards_listing_footer(self) -> None:
        page = RewardPage(page=2, total_pages=3, total=25, records=[_record()])
        embed = build_rewards_embed("Rewards", page, show_ids=True)
        self.assertIn("abc123", embed.description)
        self.assertEqual(embed.footer.text, "Page 2/3")

    def test_role_grant_and_bulk_embeds(self) -> None:
        result = RoleGrantResult(quantity=2, granted=["1", "2"])
        embed = build_role_grant_embed("@Survivors", result, "admin")
        fields = {field.name: field.value for field in embed.fields}
        self.assertEqual(fields["Quantity"], "2 each")
        self.assertEqual(fields["Members Affected"], "2")

        bulk = build_bulk_added_embed(
            "@player",
            [RewardOutcome.item("Humvee", special=True, description="Armored.")],
            "admin",
            skipped=1,
        )
        fields = {field.name: field.value for field in bulk.fields}
        self.assertEqual(fields["Rewards"], "🏆 **Humvee x1** ⭐\n*Armored.*")
        self.assertEqual(fields["Skipped"], "1 invalid entry")


if __name__ == "__main__":
    unittest.main()
