"""Environment-driven settings for the crates bot."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .actions import DEFAULT_ROLE_GRANT_CAP
from .utils import DEFAULT_ADMIN_ROLE, int_from_env, path_from_env

logger = logging.getLogger("cratebot.config")

DEFAULT_DATA_PATH = Path("data.json")
DEFAULT_PORT = 3000


@dataclass(frozen=True)
class CrateBotConfig:
    token: str
    guild_id: int = 0
    open_channel_id: int = 0
    data_path: Path = DEFAULT_DATA_PATH
    loot_config_path: Optional[Path] = None
    admin_role: str = DEFAULT_ADMIN_ROLE
    role_grant_cap: int = DEFAULT_ROLE_GRANT_CAP
    keepalive_port: int = DEFAULT_PORT


def load_config() -> CrateBotConfig:
    token = os.getenv("DISCORD_TOKEN", "").strip()
    if not token:
        raise RuntimeError("Missing DISCORD_TOKEN. Set it in your environment or .env file.")

    data_path = path_from_env("CRATEBOT_DATA_PATH") or DEFAULT_DATA_PATH
    if not data_path.is_absolute():
        data_path = Path.cwd() / data_path

    role_grant_cap = int_from_env("CRATEBOT_ROLE_GRANT_CAP", DEFAULT_ROLE_GRANT_CAP)
    if role_grant_cap <= 0:
        logger.warning("CRATEBOT_ROLE_GRANT_CAP must be positive; using %s.", DEFAULT_ROLE_GRANT_CAP)
        role_grant_cap = DEFAULT_ROLE_GRANT_CAP

    port = int_from_env("CRATEBOT_PORT", int_from_env("PORT", DEFAULT_PORT))

    return CrateBotConfig(
        token=token,
        guild_id=int_from_env("CRATEBOT_GUILD_ID", 0),
        open_channel_id=int_from_env("CRATEBOT_OPEN_CHANNEL_ID", 0),
        data_path=data_path,
        loot_config_path=path_from_env("CRATEBOT_LOOT_CONFIG"),
        admin_role=os.getenv("CRATEBOT_ADMIN_ROLE", DEFAULT_ADMIN_ROLE).strip(),
        role_grant_cap=role_grant_cap,
        keepalive_port=max(0, port),
    )


__all__ = ["CrateBotConfig", "load_config"]
