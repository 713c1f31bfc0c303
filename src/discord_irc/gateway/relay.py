"""Relay: inbound events from either side -> send commands for the other side.

route() is pure: it reads the immutable config, the channel table and the
Discord directory, and returns the outbound events in send order. push_event()
publishes them on the bus for the adapters to queue.
"""

from __future__ import annotations

from loguru import logger

from discord_irc.config import BridgeConfig
from discord_irc.directory import DiscordChannel, DiscordDirectory
from discord_irc.events import (
    DiscordMessageIn,
    DiscordMessageOut,
    IRCInvite,
    IRCJoin,
    IRCJoinOut,
    IRCMessageIn,
    IRCMessageOut,
    IRCPart,
    IRCQuit,
    OutboundEvent,
)
from discord_irc.formatting import (
    colorize_nick,
    discord_to_irc,
    irc_to_discord,
    resolve_discord_mentions,
    resolve_irc_mentions,
    substitute_pattern,
)
from discord_irc.gateway.bus import Bus
from discord_irc.gateway.router import ChannelRouter

_INBOUND = (DiscordMessageIn, IRCMessageIn, IRCJoin, IRCPart, IRCQuit, IRCInvite)


class Relay:
    """Translates and routes messages between the two sides. No adapter-to-adapter coupling."""

    def __init__(
        self,
        bus: Bus,
        router: ChannelRouter,
        config: BridgeConfig,
        directory: DiscordDirectory,
    ) -> None:
        self._bus = bus
        self._router = router
        self._config = config
        self._directory = directory

    def accept_event(self, source: str, evt: object) -> bool:
        return isinstance(evt, _INBOUND)

    def push_event(self, source: str, evt: object) -> None:
        self._bus.publish_all("relay", self.route(evt))

    def route(self, evt: object) -> list[OutboundEvent]:
        """Outbound events for one inbound event; empty when nothing should be sent."""
        if isinstance(evt, DiscordMessageIn):
            return self._from_discord(evt)
        if isinstance(evt, IRCMessageIn):
            return self._from_irc(evt)
        if isinstance(evt, IRCJoin):
            return self._on_join(evt)
        if isinstance(evt, IRCPart):
            return self._on_part(evt)
        if isinstance(evt, IRCQuit):
            return self._on_quit(evt)
        if isinstance(evt, IRCInvite):
            return self._on_invite(evt)
        return []

    # Discord -> IRC

    def _from_discord(self, evt: DiscordMessageIn) -> list[OutboundEvent]:
        own_id = self._directory.user_id
        if own_id and evt.author_id == own_id:
            return []

        mapping = self._router.get_mapping_for_discord(evt.channel_id, evt.channel_name)
        logger.debug("Channel mapping #{} -> {}", evt.channel_name, mapping.irc_channel if mapping else None)
        if not mapping:
            return []

        channel = mapping.irc_channel
        fmt = self._config.format
        nickname = evt.author_display
        text = resolve_discord_mentions(evt.content, evt.guild)
        patterns = {
            "nickname": nickname,
            "displayUsername": colorize_nick(nickname) if self._config.irc_nick_color else nickname,
            "text": text,
            "discordChannel": f"#{evt.channel_name}",
            "ircChannel": channel,
        }

        out: list[OutboundEvent] = []
        if self._config.is_command(text):
            # Commands go out verbatim so IRC bots can parse them
            out.append(IRCMessageOut(channel, substitute_pattern(fmt.command_prelude, patterns)))
            out.append(IRCMessageOut(channel, text))
        elif text:
            patterns["text"] = discord_to_irc(text)
            line = substitute_pattern(fmt.irc_text, patterns)
            logger.debug("Sending message to IRC {} {}", channel, line)
            out.append(IRCMessageOut(channel, line))

        for url in evt.attachments:
            line = substitute_pattern(fmt.url_attachment, {**patterns, "attachmentURL": url})
            logger.debug("Sending attachment URL to IRC {} {}", channel, line)
            out.append(IRCMessageOut(channel, line))
        return out

    # IRC -> Discord

    def _find_discord_channel(self, irc_channel: str) -> DiscordChannel | None:
        mapping = self._router.get_mapping_for_irc(irc_channel)
        if not mapping:
            logger.debug("No Discord channel mapped for {}", irc_channel)
            return None
        channel = self._directory.find_text_channel(mapping.discord_channel)
        if not channel:
            logger.warning("Tried to send a message to a channel the bot isn't in: {}", mapping.discord_channel)
        return channel

    def _from_irc(self, evt: IRCMessageIn) -> list[OutboundEvent]:
        channel = self._find_discord_channel(evt.channel)
        if not channel:
            return []

        with_format = irc_to_discord(evt.text)
        if not with_format:
            logger.debug("Dropping IRC line with no text after formatting from {}", evt.author)
            return []
        if evt.kind == "notice":
            with_format = f"*{with_format}*"
        elif evt.kind == "action":
            with_format = f"_{with_format}_"

        patterns = {
            "author": evt.author,
            "text": with_format,
            "withMentions": resolve_irc_mentions(with_format, channel.guild),
            "discordChannel": f"#{channel.name}",
            "ircChannel": evt.channel,
        }
        text = substitute_pattern(self._config.format.discord, patterns)
        logger.debug("Sending message to Discord {} {} -> #{}", text, evt.channel, channel.name)
        return [DiscordMessageOut(channel.id, text)]

    def _status(self, irc_channel: str, text: str) -> list[OutboundEvent]:
        """Status lines go out exactly as written, without the message template."""
        channel = self._find_discord_channel(irc_channel)
        if not channel:
            return []
        logger.debug("Sending special message to Discord {} {} -> #{}", text, irc_channel, channel.name)
        return [DiscordMessageOut(channel.id, text)]

    def _is_own_nick(self, nick: str) -> bool:
        return nick.lower() == self._config.nickname.lower()

    def _on_join(self, evt: IRCJoin) -> list[OutboundEvent]:
        if not self._config.irc_status_notices:
            return []
        if self._is_own_nick(evt.nick) and not self._config.announce_self_join:
            return []
        return self._status(evt.channel, f"*{evt.nick}* has joined the channel")

    def _on_part(self, evt: IRCPart) -> list[OutboundEvent]:
        if not self._config.irc_status_notices or self._is_own_nick(evt.nick):
            return []
        return self._status(evt.channel, f"*{evt.nick}* has left the channel{_reason(evt.reason)}")

    def _on_quit(self, evt: IRCQuit) -> list[OutboundEvent]:
        if not self._config.irc_status_notices or self._is_own_nick(evt.nick):
            return []
        out: list[OutboundEvent] = []
        for channel in evt.channels:
            out.extend(self._status(channel, f"*{evt.nick}* has quit{_reason(evt.reason)}"))
        return out

    def _on_invite(self, evt: IRCInvite) -> list[OutboundEvent]:
        logger.debug("Received invite: {} from {}", evt.channel, evt.inviter)
        mapping = self._router.get_mapping_for_irc(evt.channel)
        if not mapping:
            logger.debug("Channel not found in config, not joining: {}", evt.channel)
            return []
        logger.debug("Joining channel: {}", mapping.irc_channel)
        return [IRCJoinOut(mapping.irc_channel, mapping.irc_key)]


def _reason(reason: str | None) -> str:
    return f" ({reason})" if reason else ""
