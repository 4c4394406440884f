"""Crates bot package: reward rolls, the reward ledger and Discord commands."""

from . import actions, bulk, config, crates, embeds, errors, keepalive, ledger, loot, models, utils  # noqa: F401

__all__ = [
    "actions",
    "bulk",
    "config",
    "crates",
    "embeds",
    "errors",
    "keepalive",
    "ledger",
    "loot",
    "models",
    "utils",
]
