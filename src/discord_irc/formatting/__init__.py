"""Message formatting for cross-protocol bridging: markup, mentions, nick colours, templates."""

from discord_irc.formatting.colors import colorize_nick, nick_color_index
from discord_irc.formatting.discord_to_irc import discord_to_irc
from discord_irc.formatting.irc_split import split_irc_message
from discord_irc.formatting.irc_to_discord import irc_to_discord
from discord_irc.formatting.mentions import resolve_discord_mentions, resolve_irc_mentions
from discord_irc.formatting.patterns import substitute_pattern

__all__ = [
    "colorize_nick",
    "discord_to_irc",
    "irc_to_discord",
    "nick_color_index",
    "resolve_discord_mentions",
    "resolve_irc_mentions",
    "split_irc_message",
    "substitute_pattern",
]
