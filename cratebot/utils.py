"""Utility helpers for the crates bot."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

import discord

logger = logging.getLogger("cratebot.utils")

DEFAULT_ADMIN_ROLE = "crate giver"


def int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%s. Falling back to %s.", name, raw, default)
        return default


def path_from_env(name: str) -> Optional[Path]:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    return Path(value).expanduser()


def is_admin(member: discord.abc.User, *, admin_role: str = DEFAULT_ADMIN_ROLE) -> bool:
    """Return True for members allowed to grant, inspect and revoke rewards."""
    if isinstance(member, discord.Member):
        permissions = member.guild_permissions
        if permissions.administrator or permissions.manage_guild:
            return True
        wanted = admin_role.strip().lower()
        if not wanted:
            return False
        roles: Iterable[discord.Role] = getattr(member, "roles", [])
        return any(role.name.lower() == wanted for role in roles)
    return False


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


__all__ = [
    "DEFAULT_ADMIN_ROLE",
    "int_from_env",
    "is_admin",
    "path_from_env",
    "utc_now",
]
