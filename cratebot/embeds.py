"""Embed builders for crate and reward replies."""

from __future__ import annotations

from typing import Optional, Sequence, Union

import discord

from .actions import RewardPage, RoleGrantResult
from .loot import DEFAULT_LOOT_TABLE, LootTable
from .models import KIND_CURRENCY, RewardOutcome, RewardRecord
from .utils import utc_now

RewardLike = Union[RewardOutcome, RewardRecord]

SPECIAL_COLOR = 0xF1C40F
CURRENCY_COLOR = 0x2ECC71
WEAPON_COLOR = 0xE74C3C
KIT_COLOR = 0x3498DB
GRANT_COLOR = 0x00B894
LIST_COLOR = 0x3498DB
ADMIN_LIST_COLOR = 0x6C5CE7
REMOVED_COLOR = 0xD63031

EMBED_DESCRIPTION_LIMIT = 4096
EMBED_FIELD_VALUE_LIMIT = 1024


def reward_color(reward: Optional[RewardLike], table: LootTable = DEFAULT_LOOT_TABLE) -> int:
    if reward is None:
        return GRANT_COLOR
    if reward.special:
        return SPECIAL_COLOR
    if reward.kind == KIND_CURRENCY:
        return CURRENCY_COLOR
    return WEAPON_COLOR if table.is_weapon(reward.name) else KIT_COLOR


def format_reward(reward: RewardLike) -> str:
    if reward.kind == KIND_CURRENCY:
        return f"💰 **{reward.amount} {reward.name}**"
    return f"🏆 **{reward.name} x{reward.amount}**"


def reward_label(record: RewardRecord) -> str:
    return "SPECIAL" if record.special else record.kind.upper()


def format_record_line(record: RewardRecord, *, show_id: bool = False) -> str:
    prefix = f"[`{record.id}`] " if show_id else ""
    return f"• {prefix}**{record.name}** x{record.amount} — {reward_label(record)}"


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def build_open_embed(
    outcome: RewardOutcome,
    crates_left: int,
    table: LootTable = DEFAULT_LOOT_TABLE,
) -> discord.Embed:
    title = f"🎉 SPECIAL PRIZE! {outcome.name}" if outcome.special else "📦 Crate Opened"
    embed = discord.Embed(title=title, color=reward_color(outcome, table), timestamp=utc_now())
    if outcome.kind == KIND_CURRENCY:
        tier = f" ({outcome.currency_tier.upper()})" if outcome.currency_tier else ""
        embed.add_field(name="Reward", value=f"{format_reward(outcome)}{tier}", inline=False)
    else:
        embed.add_field(name="Reward", value=format_reward(outcome), inline=False)
        description = outcome.description or table.special_description(outcome.name)
        if description:
            embed.add_field(name="Description", value=description, inline=False)
    embed.add_field(name="Crates Left", value=str(crates_left), inline=True)
    return embed


def build_grant_embed(target_mention: str, qty: int, requested_by: str) -> discord.Embed:
    embed = discord.Embed(
        title="🎁 Crates Granted",
        description=f"Gave **{qty}** crate(s) to {target_mention}.",
        color=GRANT_COLOR,
        timestamp=utc_now(),
    )
    embed.set_footer(text=f"Requested by {requested_by}")
    return embed


def build_role_grant_embed(role_mention: str, result: RoleGrantResult, requested_by: str) -> discord.Embed:
    embed = discord.Embed(title="🎁 Crates Granted to Role", color=GRANT_COLOR, timestamp=utc_now())
    embed.add_field(name="Role", value=role_mention, inline=True)
    embed.add_field(name="Quantity", value=f"{result.quantity} each", inline=True)
    embed.add_field(name="Members Affected", value=str(result.members_affected), inline=True)
    embed.set_footer(text=f"Requested by {requested_by}")
    return embed


def build_rewards_embed(title: str, page: RewardPage, *, show_ids: bool = False) -> discord.Embed:
    lines = [format_record_line(record, show_id=show_ids) for record in page.records]
    description = "\n".join(lines) if lines else "No rewards on this page."
    embed = discord.Embed(
        title=title,
        description=_truncate(description, EMBED_DESCRIPTION_LIMIT),
        color=ADMIN_LIST_COLOR if show_ids else LIST_COLOR,
        timestamp=utc_now(),
    )
    embed.set_footer(text=f"Page {page.page}/{page.total_pages}")
    return embed


def build_added_embed(
    target_mention: str,
    reward: RewardLike,
    added_by: str,
    table: LootTable = DEFAULT_LOOT_TABLE,
) -> discord.Embed:
    embed = discord.Embed(
        title="➕ Reward Added",
        description=reward.description,
        color=reward_color(reward, table),
        timestamp=utc_now(),
    )
    embed.add_field(name="Member", value=target_mention, inline=True)
    embed.add_field(name="Reward", value=format_reward(reward), inline=True)
    embed.add_field(name="Special", value="Yes" if reward.special else "No", inline=True)
    embed.set_footer(text=f"By {added_by}")
    return embed


def build_bulk_added_embed(
    target_mention: str,
    outcomes: Sequence[RewardOutcome],
    added_by: str,
    *,
    skipped: int = 0,
) -> discord.Embed:
    lines = []
    for outcome in outcomes:
        line = format_reward(outcome)
        if outcome.special:
            line += " ⭐"
        if outcome.description:
            line += f"\n*{outcome.description}*"
        lines.append(line)
    embed = discord.Embed(title="➕ Multiple Rewards Added", color=LIST_COLOR, timestamp=utc_now())
    embed.add_field(name="Member", value=target_mention, inline=False)
    embed.add_field(name="Rewards", value=_truncate("\n".join(lines), EMBED_FIELD_VALUE_LIMIT), inline=False)
    if skipped:
        embed.add_field(name="Skipped", value=f"{skipped} invalid entr{'y' if skipped == 1 else 'ies'}", inline=False)
    embed.set_footer(text=f"By {added_by}")
    return embed


def build_removed_embed(record_id: str, note: str, record: Optional[RewardRecord] = None) -> discord.Embed:
    embed = discord.Embed(title="🗑️ Reward Removed", color=REMOVED_COLOR, timestamp=utc_now())
    embed.add_field(name="Reward ID", value=f"`{record_id}`", inline=False)
    if record is not None:
        embed.add_field(name="Reward", value=format_reward(record), inline=False)
    embed.add_field(name="Note", value=_truncate(note, EMBED_FIELD_VALUE_LIMIT) if note else "—", inline=False)
    return embed


__all__ = [
    "build_added_embed",
    "build_bulk_added_embed",
    "build_grant_embed",
    "build_open_embed",
    "build_removed_embed",
    "build_rewards_embed",
    "build_role_grant_embed",
    "format_record_line",
    "format_reward",
    "reward_color",
    "reward_label",
]
