"""Event types and dispatcher: typed events in, typed send commands out."""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol

from loguru import logger

if TYPE_CHECKING:
    from discord_irc.directory import GuildDirectory

IRCMessageKind = Literal["message", "notice", "action"]


@dataclass
class DiscordMessageIn:
    """Text message posted in a Discord guild channel."""

    channel_id: str
    channel_name: str
    author_id: str
    author_username: str
    content: str
    message_id: str = ""
    author_nickname: str | None = None
    attachments: list[str] = field(default_factory=list)
    guild: GuildDirectory | None = None

    @property
    def author_display(self) -> str:
        """Guild nickname when set, else the username."""
        return self.author_nickname or self.author_username


@dataclass
class IRCMessageIn:
    """PRIVMSG, NOTICE or CTCP ACTION seen on IRC."""

    kind: IRCMessageKind
    author: str
    channel: str
    text: str


@dataclass
class IRCJoin:
    """User joined an IRC channel."""

    channel: str
    nick: str


@dataclass
class IRCPart:
    """User left an IRC channel."""

    channel: str
    nick: str
    reason: str | None = None


@dataclass
class IRCQuit:
    """User disconnected; channels are the ones they shared with the bridge."""

    nick: str
    reason: str | None = None
    channels: list[str] = field(default_factory=list)


@dataclass
class IRCInvite:
    """The bridge was invited to an IRC channel."""

    channel: str
    inviter: str


@dataclass
class IRCMessageOut:
    """Line to say in an IRC channel."""

    channel: str
    text: str


@dataclass
class IRCJoinOut:
    """Instruction for the IRC session to join a channel."""

    channel: str
    key: str | None = None


@dataclass
class DiscordMessageOut:
    """Message to post in a Discord channel."""

    channel_id: str
    text: str


OutboundEvent = IRCMessageOut | IRCJoinOut | DiscordMessageOut


class EventTarget(Protocol):
    """Adapter interface: accept_event + push_event."""

    def accept_event(self, source: str, evt: object) -> bool:
        """Return True if this target wants the event."""
        ...

    def push_event(self, source: str, evt: object) -> None:
        """Handle the event (may be async via queue)."""
        ...


def event(type_name: str):
    """Decorator to mark a factory as producing an event with a given type."""

    def decorator(f: Any) -> Any:
        @functools.wraps(f)
        def wrapper(*args: Any, **kwargs: Any) -> tuple[str, object]:
            evt = f(*args, **kwargs)
            return (type_name, evt)

        wrapper.TYPE = type_name
        return wrapper

    return decorator


@event("discord_message")
def discord_message(
    channel_id: str,
    channel_name: str,
    author_id: str,
    author_username: str,
    content: str,
    *,
    message_id: str = "",
    author_nickname: str | None = None,
    attachments: list[str] | None = None,
    guild: GuildDirectory | None = None,
) -> DiscordMessageIn:
    return DiscordMessageIn(
        channel_id=channel_id,
        channel_name=channel_name,
        author_id=author_id,
        author_username=author_username,
        content=content,
        message_id=message_id,
        author_nickname=author_nickname,
        attachments=list(attachments or []),
        guild=guild,
    )


@event("irc_message")
def irc_message(kind: IRCMessageKind, author: str, channel: str, text: str) -> IRCMessageIn:
    return IRCMessageIn(kind=kind, author=author, channel=channel, text=text)


@event("irc_join")
def irc_join(channel: str, nick: str) -> IRCJoin:
    return IRCJoin(channel=channel, nick=nick)


@event("irc_part")
def irc_part(channel: str, nick: str, *, reason: str | None = None) -> IRCPart:
    return IRCPart(channel=channel, nick=nick, reason=reason)


@event("irc_quit")
def irc_quit(nick: str, *, reason: str | None = None, channels: list[str] | None = None) -> IRCQuit:
    return IRCQuit(nick=nick, reason=reason, channels=list(channels or []))


@event("irc_invite")
def irc_invite(channel: str, inviter: str) -> IRCInvite:
    return IRCInvite(channel=channel, inviter=inviter)


class Dispatcher:
    """Central event dispatcher; targets filter by type and receive events."""

    def __init__(self) -> None:
        self._targets: list[EventTarget] = []

    def register(self, target: EventTarget) -> None:
        """Register an event target (adapter)."""
        self._targets.append(target)

    def unregister(self, target: EventTarget) -> None:
        """Unregister an event target."""
        if target in self._targets:
            self._targets.remove(target)

    def dispatch(self, source: str, evt: object) -> None:
        """Dispatch event to all targets that accept it. A failing target never stops the others."""
        for target in self._targets:
            try:
                if target.accept_event(source, evt):
                    target.push_event(source, evt)
            except Exception as exc:
                logger.exception("Failed to pass event to target {}: {}", target, exc)
