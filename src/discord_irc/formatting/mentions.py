"""Mentions across the bridge: Discord markers to names, IRC @nick to Discord pings."""

from __future__ import annotations

import re

from discord_irc.directory import GuildDirectory, Mentionable

DELETED_CHANNEL = "deleted-channel"
DELETED_ROLE = "deleted-role"

# Markers matched at a '<': users <@id> / <@!id>, roles <@&id>, channels <#id>, emoji <:name:id>
_USER = re.compile(r"<@!?(\d+)>")
_ROLE = re.compile(r"<@&(\d+)>")
_CHANNEL = re.compile(r"<#(\d+)>")
_EMOJI = re.compile(r"<a?(:\w+:)\d+>")

# Do not resolve these
_SKIP_IDENTIFIERS = frozenset({"everyone", "here"})


def _is_word(c: str) -> bool:
    return c.isalnum() or c == "_"


def _resolve_marker(text: str, i: int, guild: GuildDirectory) -> tuple[str, int] | None:
    """Replacement and end index for the marker at text[i], or None if there is none."""
    if m := _ROLE.match(text, i):
        name = guild.role_name(m.group(1))
        return f"@{name or DELETED_ROLE}", m.end()
    if m := _USER.match(text, i):
        display = guild.member_display_name(m.group(1))
        return (f"@{display}" if display else m.group(0)), m.end()
    if m := _CHANNEL.match(text, i):
        name = guild.channel_name(m.group(1))
        return f"#{name or DELETED_CHANNEL}", m.end()
    if m := _EMOJI.match(text, i):
        return m.group(1), m.end()
    return None


def resolve_discord_mentions(content: str, guild: GuildDirectory | None) -> str:
    """Replace Discord mention markers with readable names and flatten line breaks.

    Users become @nickname (or @username), roles @name, channels #name.
    Deleted roles and channels get a placeholder; unknown users stay literal.
    """
    if not content:
        return content

    result: list[str] = []
    i = 0
    while i < len(content):
        c = content[i]
        if c == "<" and guild is not None:
            resolved = _resolve_marker(content, i, guild)
            if resolved:
                replacement, i = resolved
                result.append(replacement)
                continue
        elif c == "<" and (m := _EMOJI.match(content, i)):
            result.append(m.group(1))
            i = m.end()
            continue
        if c in "\r\n":
            # \r\n, \r and \n each become one space
            if c == "\r" and content[i + 1 : i + 2] == "\n":
                i += 1
            result.append(" ")
        else:
            result.append(c)
        i += 1
    return "".join(result)


def _find_mentionable(guild: GuildDirectory, name: str) -> Mentionable | None:
    """Nickname first, then username, then mentionable role."""
    if name.lower() in _SKIP_IDENTIFIERS:
        return None
    return guild.find_by_nickname(name) or guild.find_by_username(name) or guild.find_role_by_name(name)


def _read_token(text: str, start: int) -> str:
    """Token after '@': up to whitespace, without trailing non-word characters."""
    end = start
    while end < len(text) and not text[end].isspace():
        end += 1
    while end > start and not _is_word(text[end - 1]):
        end -= 1
    return text[start:end]


def resolve_irc_mentions(content: str, guild: GuildDirectory | None) -> str:
    """Replace @name in IRC text with the Discord mention of the matching member or role.

    Matching is exact and case-sensitive. Backslashes added by markdown
    escaping are ignored. Unresolved names stay as written.
    """
    if not guild or not content:
        return content

    result: list[str] = []
    i = 0
    while i < len(content):
        c = content[i]
        # user@host is not a mention
        if c == "@" and not (i > 0 and _is_word(content[i - 1])):
            token = _read_token(content, i + 1)
            target = _find_mentionable(guild, token.replace("\\", "")) if token else None
            if target:
                result.append(target.mention)
                i += 1 + len(token)
                continue
        result.append(c)
        i += 1
    return "".join(result)
