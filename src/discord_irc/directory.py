"""Lookups the relay needs from the Discord session.

The relay and the mention resolver depend only on these protocols; the
Discord adapter implements them on top of discord.py, tests use fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Mentionable:
    """A user or role that can be pinged; mention is the Discord syntax (<@id>, <@&id>)."""

    id: str
    mention: str


class GuildDirectory(Protocol):
    """Members, roles and channels addressable from one guild."""

    def member_display_name(self, user_id: str) -> str | None:
        """Guild nickname, falling back to the username. None if unknown."""
        ...

    def channel_name(self, channel_id: str) -> str | None: ...

    def role_name(self, role_id: str) -> str | None: ...

    def find_by_nickname(self, name: str) -> Mentionable | None: ...

    def find_by_username(self, name: str) -> Mentionable | None: ...

    def find_role_by_name(self, name: str) -> Mentionable | None:
        """Only mentionable roles are returned."""
        ...


@dataclass(frozen=True)
class DiscordChannel:
    """A text channel the bridge can post to."""

    id: str
    name: str
    guild: GuildDirectory | None = None


class DiscordDirectory(Protocol):
    """Session-level lookups: the bot's own identity and its text channels."""

    @property
    def user_id(self) -> str | None: ...

    def find_text_channel(self, key: str) -> DiscordChannel | None:
        """Find a channel by id, or by name when key starts with '#'."""
        ...
