"""Discord adapter: bot session, directory lookups, queue for outbound."""

from __future__ import annotations

import asyncio
import contextlib

import discord
from discord import AllowedMentions, Intents, Message, TextChannel
from loguru import logger

from discord_irc.adapters.base import AdapterBase
from discord_irc.config import BridgeConfig
from discord_irc.directory import DiscordChannel, Mentionable
from discord_irc.events import DiscordMessageOut, discord_message
from discord_irc.gateway import Bus

MAX_MESSAGE_LEN = 2000

# Relayed IRC text may name users and roles, never @everyone/@here
_ALLOWED_MENTIONS = AllowedMentions(everyone=False, users=True, roles=True)


def _snowflake(value: str) -> int | None:
    return int(value) if value.isdigit() else None


class DiscordGuildDirectory:
    """GuildDirectory over a discord.py guild and the client cache."""

    def __init__(self, client: discord.Client, guild: discord.Guild) -> None:
        self._client = client
        self._guild = guild

    def member_display_name(self, user_id: str) -> str | None:
        snowflake = _snowflake(user_id)
        if snowflake is None:
            return None
        member = self._guild.get_member(snowflake)
        if member:
            return member.nick or member.name
        user = self._client.get_user(snowflake)
        return user.name if user else None

    def channel_name(self, channel_id: str) -> str | None:
        snowflake = _snowflake(channel_id)
        channel = self._client.get_channel(snowflake) if snowflake is not None else None
        return channel.name if channel else None

    def role_name(self, role_id: str) -> str | None:
        snowflake = _snowflake(role_id)
        role = self._guild.get_role(snowflake) if snowflake is not None else None
        return role.name if role else None

    def find_by_nickname(self, name: str) -> Mentionable | None:
        member = discord.utils.get(self._guild.members, nick=name)
        return Mentionable(str(member.id), member.mention) if member else None

    def find_by_username(self, name: str) -> Mentionable | None:
        user = discord.utils.get(self._client.users, name=name)
        return Mentionable(str(user.id), user.mention) if user else None

    def find_role_by_name(self, name: str) -> Mentionable | None:
        role = discord.utils.get(self._guild.roles, name=name)
        if role and role.mentionable:
            return Mentionable(str(role.id), role.mention)
        return None


class DiscordAdapter(AdapterBase):
    """Discord adapter: publishes guild messages, posts relayed IRC lines in order."""

    outbound = (DiscordMessageOut,)

    def __init__(self, bus: Bus, config: BridgeConfig) -> None:
        self._bus = bus
        self._config = config
        self._queue: asyncio.Queue[DiscordMessageOut] = asyncio.Queue()
        self._client: discord.Client | None = None
        self._consumer_task: asyncio.Task | None = None
        self._client_task: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return "discord"

    @property
    def user_id(self) -> str | None:
        """The bot's own user id once logged in."""
        if self._client and self._client.user:
            return str(self._client.user.id)
        return None

    def find_text_channel(self, key: str) -> DiscordChannel | None:
        """Text channel by id, or by name when key starts with '#'."""
        client = self._client
        if not client:
            return None
        channel = None
        if key.startswith("#"):
            name = key[1:]
            for guild in client.guilds:
                channel = discord.utils.get(guild.text_channels, name=name)
                if channel:
                    break
        else:
            snowflake = _snowflake(key)
            found = client.get_channel(snowflake) if snowflake is not None else None
            if isinstance(found, TextChannel):
                channel = found
        if not channel:
            return None
        return DiscordChannel(str(channel.id), channel.name, DiscordGuildDirectory(client, channel.guild))

    def send(self, evt: DiscordMessageOut) -> None:
        self._queue.put_nowait(evt)

    async def _deliver(self, evt: DiscordMessageOut) -> None:
        client = self._client
        if not client:
            return
        snowflake = _snowflake(evt.channel_id)
        channel = client.get_channel(snowflake) if snowflake is not None else None
        if not isinstance(channel, TextChannel):
            logger.warning("Discord channel {} not found or not a text channel", evt.channel_id)
            return
        await channel.send(evt.text[:MAX_MESSAGE_LEN], allowed_mentions=_ALLOWED_MENTIONS)

    async def _queue_consumer(self) -> None:
        """Background consumer: pop from queue, send in order."""
        while True:
            try:
                evt = await self._queue.get()
                await self._deliver(evt)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.exception("Discord send failed: {}", exc)

    async def _on_message(self, message: Message) -> None:
        """Handle incoming guild message; emit DiscordMessageIn to bus."""
        if message.guild is None:
            return

        author = message.author
        nickname = getattr(author, "nick", None)
        _, evt = discord_message(
            channel_id=str(message.channel.id),
            channel_name=message.channel.name,
            author_id=str(author.id),
            author_username=author.name,
            content=message.content or "",
            message_id=str(message.id),
            author_nickname=nickname,
            attachments=[attachment.url for attachment in message.attachments],
            guild=DiscordGuildDirectory(self._client, message.guild),
        )
        self._bus.publish("discord", evt)

    async def start(self) -> None:
        """Start Discord client and queue consumer."""
        intents = Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.members = True

        client = discord.Client(intents=intents)

        @client.event
        async def on_ready() -> None:
            logger.info("Connected to Discord as {}", client.user)

        @client.event
        async def on_message(message: Message) -> None:
            await self._on_message(message)

        @client.event
        async def on_error(event_method: str, *args, **kwargs) -> None:
            logger.exception("Received error event from Discord in {}", event_method)

        self._client = client
        self._bus.register(self)
        self._consumer_task = asyncio.create_task(self._queue_consumer())
        self._client_task = asyncio.create_task(client.start(self._config.discord_token))

    async def stop(self) -> None:
        """Stop Discord client and consumer."""
        self._bus.unregister(self)
        if self._consumer_task:
            self._consumer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer_task
        if self._client:
            await self._client.close()
        if self._client_task:
            self._client_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._client_task
        self._client = None
        self._client_task = None
        self._consumer_task = None
