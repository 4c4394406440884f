"""Slash commands for opening crates and managing rewards."""

from __future__ import annotations

import logging
from typing import Literal, Optional, Sequence

import discord
from discord import app_commands
from discord.ext import commands

from . import actions
from .config import CrateBotConfig
from .embeds import (
    build_added_embed,
    build_bulk_added_embed,
    build_grant_embed,
    build_open_embed,
    build_removed_embed,
    build_rewards_embed,
    build_role_grant_embed,
)
from .errors import CrateBotError, RoleTooLargeError
from .ledger import RewardLedger
from .loot import LootTable
from .models import RewardRecord
from .utils import is_admin

logger = logging.getLogger("cratebot.crates")

NO_PERMISSION = "You lack permission."
GENERIC_FAILURE = "Something went wrong."
SELECT_OPTION_LIMIT = 25
VIEW_TIMEOUT = 300


async def send_ephemeral(interaction: discord.Interaction, content: str) -> None:
    try:
        if interaction.response.is_done():
            await interaction.followup.send(content, ephemeral=True)
        else:
            await interaction.response.send_message(content, ephemeral=True)
    except discord.HTTPException as exc:
        logger.warning("Failed to send reply for interaction %s: %s", interaction.id, exc)


class RewardSelect(discord.ui.Select):
    def __init__(self, parent: "RemoveRewardView", records: Sequence[RewardRecord]):
        options = [
            discord.SelectOption(label=f"{record.name} x{record.amount}"[:100], value=record.id)
            for record in records[:SELECT_OPTION_LIMIT]
        ]
        super().__init__(
            placeholder="Select a reward to remove",
            min_values=1,
            max_values=1,
            options=options,
            row=0,
        )
        self.parent_view = parent

    async def callback(self, interaction: discord.Interaction) -> None:
        cog = self.parent_view.cog
        if not cog.has_admin(interaction.user):
            await send_ephemeral(interaction, NO_PERMISSION)
            return
        reward_id = self.values[0]
        if not cog.ledger.remove_reward(reward_id):
            await send_ephemeral(interaction, "Reward not found or already removed.")
            return
        logger.info("%s removed reward %s via menu", interaction.user.id, reward_id)
        await interaction.response.edit_message(content="🗑️ Reward removed successfully.", view=None)
        self.parent_view.stop()


class RemoveRewardView(discord.ui.View):
    """Dropdown of a member's active rewards plus a clear-all button."""

    def __init__(self, cog: "CratesCog", target: discord.abc.User, records: Sequence[RewardRecord]):
        super().__init__(timeout=VIEW_TIMEOUT)
        self.cog = cog
        self.target = target
        self.add_item(RewardSelect(self, records))

    @discord.ui.button(label="Clear all rewards", style=discord.ButtonStyle.danger, row=1)
    async def clear_all(self, interaction: discord.Interaction, _button: discord.ui.Button) -> None:
        if not self.cog.has_admin(interaction.user):
            await send_ephemeral(interaction, NO_PERMISSION)
            return
        await interaction.response.send_message(
            f"Are you sure you want to clear all rewards for {self.target.mention}?",
            view=ConfirmClearView(self.cog, self.target),
            ephemeral=True,
        )


class ConfirmClearView(discord.ui.View):
    def __init__(self, cog: "CratesCog", target: discord.abc.User):
        super().__init__(timeout=VIEW_TIMEOUT)
        self.cog = cog
        self.target = target

    @discord.ui.button(label="✅ Confirm", style=discord.ButtonStyle.danger)
    async def confirm(self, interaction: discord.Interaction, _button: discord.ui.Button) -> None:
        if not self.cog.has_admin(interaction.user):
            await send_ephemeral(interaction, NO_PERMISSION)
            return
        removed = self.cog.ledger.clear_active_rewards(self.target.id)
        logger.info("%s cleared %s reward(s) from %s", interaction.user.id, removed, self.target.id)
        content = f"🧹 Cleared **{removed}** rewards." if removed else "No active rewards to clear."
        await interaction.response.edit_message(content=content, view=None)
        self.stop()

    @discord.ui.button(label="❌ Cancel", style=discord.ButtonStyle.secondary)
    async def cancel(self, interaction: discord.Interaction, _button: discord.ui.Button) -> None:
        await interaction.response.edit_message(content="❌ Action cancelled.", view=None)
        self.stop()


class CratesCog(commands.Cog):
    """Crate balances, crate opening and admin reward management."""

    def __init__(
        self,
        bot: commands.Bot,
        *,
        ledger: RewardLedger,
        loot_table: LootTable,
        config: CrateBotConfig,
    ):
        self.bot = bot
        self.ledger = ledger
        self.loot_table = loot_table
        self.config = config

    def has_admin(self, user: discord.abc.User) -> bool:
        return is_admin(user, admin_role=self.config.admin_role)

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        self.ledger.ensure_user(interaction.user.id)
        return True

    async def cog_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        original = getattr(error, "original", error)
        if isinstance(original, CrateBotError):
            await send_ephemeral(interaction, str(original))
            return
        command_name = interaction.command.qualified_name if interaction.command else "unknown"
        logger.error("Command %s failed for %s", command_name, interaction.user.id, exc_info=original)
        await send_ephemeral(interaction, GENERIC_FAILURE)

    # Crates ------------------------------------------------------------

    @app_commands.command(name="give-crate", description="Give crates to a member (admin)")
    @app_commands.describe(member="Target member", qty="How many crates")
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.guild_only()
    async def give_crate(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        qty: app_commands.Range[int, 1, 100],
    ) -> None:
        if not self.has_admin(interaction.user):
            await send_ephemeral(interaction, NO_PERMISSION)
            return
        actions.grant_crates(self.ledger, member.id, qty)
        await interaction.response.send_message(
            embed=build_grant_embed(member.mention, qty, interaction.user.name)
        )

    @app_commands.command(name="give-crate-role", description="Give crates to all members with a role (admin)")
    @app_commands.describe(role="Target role", qty="Crates each")
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.guild_only()
    async def give_crate_role(
        self,
        interaction: discord.Interaction,
        role: discord.Role,
        qty: app_commands.Range[int, 1, 100],
    ) -> None:
        if not self.has_admin(interaction.user):
            await send_ephemeral(interaction, NO_PERMISSION)
            return
        await interaction.response.defer(thinking=True)
        guild = interaction.guild
        if guild is not None and not guild.chunked:
            await guild.chunk()
        targets = [member.id for member in role.members if not member.bot]
        if not targets:
            await interaction.followup.send(f"No human members found with role {role.mention}.")
            return
        try:
            result = actions.grant_crates_to_members(self.ledger, targets, qty, cap=self.config.role_grant_cap)
        except RoleTooLargeError as exc:
            await interaction.followup.send(
                f"Role has {exc.count} members — too large for a single grant. Please narrow it down."
            )
            return
        await interaction.followup.send(
            embed=build_role_grant_embed(role.mention, result, interaction.user.name)
        )

    @app_commands.command(name="open-crate", description="Open one of your crates")
    @app_commands.guild_only()
    async def open_crate(self, interaction: discord.Interaction) -> None:
        channel_id = self.config.open_channel_id
        if channel_id and interaction.channel_id != channel_id:
            await send_ephemeral(interaction, f"❌ You can only open crates in <#{channel_id}>.")
            return
        result = actions.open_crate(self.ledger, interaction.user.id, table=self.loot_table)
        if not result.opened or result.outcome is None:
            await interaction.response.send_message("You have no crates to open.")
            return
        await interaction.response.send_message(
            embed=build_open_embed(result.outcome, result.crates_left, self.loot_table)
        )

    # Reward listings ---------------------------------------------------

    @app_commands.command(name="my-rewards", description="Show your active rewards")
    @app_commands.describe(page="Page number")
    async def my_rewards(self, interaction: discord.Interaction, page: Optional[int] = None) -> None:
        listing = actions.reward_page(self.ledger, interaction.user.id, page)
        if not listing.total:
            await interaction.response.send_message("You have no active rewards.")
            return
        await interaction.response.send_message(
            embed=build_rewards_embed(f"🧳 {interaction.user.name}'s Rewards", listing)
        )

    @app_commands.command(name="member-rewards", description="View a member's active rewards (admin)")
    @app_commands.describe(member="Target member", page="Page number")
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.guild_only()
    async def member_rewards(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        page: Optional[int] = None,
    ) -> None:
        if not self.has_admin(interaction.user):
            await send_ephemeral(interaction, NO_PERMISSION)
            return
        listing = actions.reward_page(self.ledger, member.id, page)
        if not listing.total:
            await send_ephemeral(interaction, f"{member.mention} has no active rewards.")
            return
        await interaction.response.send_message(
            embed=build_rewards_embed(f"🧳 {member.name}'s Rewards (Admin)", listing, show_ids=True),
            ephemeral=True,
        )

    # Admin reward management -------------------------------------------

    @app_commands.command(name="admin-remove-reward", description="Remove a reward by ID (admin)")
    @app_commands.describe(item_id="Reward ID", note="Reason (echoed back)")
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.guild_only()
    async def admin_remove_reward(
        self,
        interaction: discord.Interaction,
        item_id: str,
        note: Optional[str] = None,
    ) -> None:
        if not self.has_admin(interaction.user):
            await send_ephemeral(interaction, NO_PERMISSION)
            return
        item_id = item_id.strip()
        record = self.ledger.get_reward(item_id)
        if not self.ledger.remove_reward(item_id):
            await send_ephemeral(interaction, "Reward not found.")
            return
        logger.info("%s removed reward %s (%s)", interaction.user.id, item_id, note or "no note")
        await interaction.response.send_message(
            embed=build_removed_embed(item_id, note or "", record),
            ephemeral=True,
        )

    @app_commands.command(name="remove-reward-member", description="Remove a reward from a member via dropdown (admin)")
    @app_commands.describe(member="Target member")
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.guild_only()
    async def remove_reward_member(self, interaction: discord.Interaction, member: discord.Member) -> None:
        if not self.has_admin(interaction.user):
            await send_ephemeral(interaction, NO_PERMISSION)
            return
        records = self.ledger.list_active_rewards(member.id, SELECT_OPTION_LIMIT, 0)
        if not records:
            await send_ephemeral(interaction, f"{member.mention} has no active rewards.")
            return
        await interaction.response.send_message(
            f"Select a reward to remove from {member.mention}:",
            view=RemoveRewardView(self, member, records),
            ephemeral=True,
        )

    @app_commands.command(name="admin-add-reward", description="Manually add a reward to a member (admin)")
    @app_commands.describe(
        member="Target member",
        kind="currency | item",
        name="Reward name (e.g., DC or Medical Kit)",
        amount="Amount/quantity",
        special="Mark as special?",
        description="Optional description (shown in embeds for items)",
    )
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.guild_only()
    async def admin_add_reward(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        kind: Literal["currency", "item"],
        name: str,
        amount: app_commands.Range[int, 1, actions.MAX_REWARD_AMOUNT],
        special: Optional[bool] = False,
        description: Optional[str] = None,
    ) -> None:
        if not self.has_admin(interaction.user):
            await send_ephemeral(interaction, NO_PERMISSION)
            return
        record_id = actions.add_reward(
            self.ledger,
            member.id,
            kind,
            name,
            amount,
            special=bool(special),
            description=description,
        )
        record = self.ledger.get_reward(record_id)
        if record is None:
            raise RuntimeError(f"Reward {record_id} vanished right after it was added.")
        await interaction.response.send_message(
            embed=build_added_embed(member.mention, record, interaction.user.name, self.loot_table)
        )

    @app_commands.command(name="admin-add-rewards", description="Add multiple rewards to a member in one command (admin)")
    @app_commands.describe(
        member="Target member",
        rewards="Rewards string (e.g., currency,DC,5000; item,Medical Kit,1)",
    )
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.guild_only()
    async def admin_add_rewards(self, interaction: discord.Interaction, member: discord.Member, rewards: str) -> None:
        if not self.has_admin(interaction.user):
            await send_ephemeral(interaction, NO_PERMISSION)
            return
        result = actions.add_rewards_bulk(self.ledger, member.id, rewards)
        if not result.rewards and not result.skipped:
            await send_ephemeral(interaction, "No rewards provided.")
            return
        if not result.rewards:
            await send_ephemeral(interaction, "No valid rewards added.")
            return
        await interaction.response.send_message(
            embed=build_bulk_added_embed(
                member.mention,
                result.rewards,
                interaction.user.name,
                skipped=len(result.skipped),
            )
        )


async def add_crates_cog(
    bot: commands.Bot,
    *,
    ledger: RewardLedger,
    loot_table: LootTable,
    config: CrateBotConfig,
) -> CratesCog:
    cog = CratesCog(bot, ledger=ledger, loot_table=loot_table, config=config)
    await bot.add_cog(cog)
    logger.info("Crates commands registered (open channel: %s)", config.open_channel_id or "any")
    return cog


__all__ = ["ConfirmClearView", "CratesCog", "RemoveRewardView", "add_crates_cog", "send_ephemeral"]
