import logging
import os
from typing import Optional

import discord
from discord.ext import commands
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=os.getenv("CRATEBOT_LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("cratebot")

from cratebot.config import CrateBotConfig, load_config  # noqa: E402
from cratebot.crates import add_crates_cog  # noqa: E402
from cratebot.keepalive import KeepAliveServer  # noqa: E402
from cratebot.ledger import RewardLedger, open_ledger  # noqa: E402
from cratebot.loot import LootTable, load_loot_table  # noqa: E402


class CrateBot(commands.Bot):
    def __init__(self, config: CrateBotConfig, *, ledger: RewardLedger, loot_table: LootTable):
        intents = discord.Intents.default()
        intents.members = True
        super().__init__(command_prefix=commands.when_mentioned, intents=intents)
        self.config = config
        self.ledger = ledger
        self.loot_table = loot_table
        self.keepalive: Optional[KeepAliveServer] = None
        if config.keepalive_port > 0:
            self.keepalive = KeepAliveServer(port=config.keepalive_port)

    async def setup_hook(self) -> None:
        if self.keepalive is not None:
            await self.keepalive.start()
        await add_crates_cog(self, ledger=self.ledger, loot_table=self.loot_table, config=self.config)
        await self._sync_application_commands()

    async def _sync_application_commands(self) -> None:
        guild_id = self.config.guild_id
        try:
            if guild_id:
                guild = discord.Object(id=guild_id)
                self.tree.copy_global_to(guild=guild)
                await self.tree.sync(guild=guild)
                logger.info("Synced application commands for guild %s", guild_id)
            else:
                await self.tree.sync()
                logger.info("Synced global application commands")
        except discord.HTTPException as exc:
            logger.warning("Failed to sync application commands: %s", exc)

    async def on_ready(self) -> None:
        logger.info("Logged in as %s (%s)", self.user, getattr(self.user, "id", None))

    async def close(self) -> None:
        if self.keepalive is not None:
            await self.keepalive.stop()
        await super().close()


def create_bot(config: CrateBotConfig) -> CrateBot:
    ledger = open_ledger(config.data_path)
    loot_table = load_loot_table(config.loot_config_path)
    return CrateBot(config, ledger=ledger, loot_table=loot_table)


def main():
    config = load_config()
    bot = create_bot(config)
    bot.run(config.token, log_handler=None)


if __name__ == "__main__":
    main()
