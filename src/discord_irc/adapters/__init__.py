"""Protocol adapters. Each implements base.AdapterBase."""

from discord_irc.adapters.base import AdapterBase
from discord_irc.adapters.disc import DiscordAdapter, DiscordGuildDirectory
from discord_irc.adapters.irc import IRCAdapter, IRCClient

__all__ = ["AdapterBase", "DiscordAdapter", "DiscordGuildDirectory", "IRCAdapter", "IRCClient"]
