"""IRC adapter: pydle client publishing channel events, queue + flood control for sends."""

from __future__ import annotations

import asyncio
import contextlib
import random

import pydle
from loguru import logger

from discord_irc.adapters.base import AdapterBase
from discord_irc.adapters.throttle import TokenBucket
from discord_irc.config import BridgeConfig
from discord_irc.events import (
    IRCJoinOut,
    IRCMessageOut,
    irc_invite,
    irc_join,
    irc_message,
    irc_part,
    irc_quit,
)
from discord_irc.formatting import split_irc_message
from discord_irc.gateway import Bus, ChannelRouter

# Backoff: min 2s, max 60s, jitter
_BACKOFF_MIN = 2
_BACKOFF_MAX = 60


async def _connect_with_backoff(client: IRCClient, config: BridgeConfig) -> None:
    """Connect with exponential backoff and jitter; give up after retry_count attempts.

    Once connected, pydle reconnects on its own after unexpected disconnects.
    """
    opts = config.irc_options
    attempt = 0
    while True:
        try:
            await client.connect(
                hostname=config.server,
                port=opts.port,
                tls=opts.tls,
                tls_verify=opts.tls_verify,
                password=opts.password,
            )
            return
        except Exception as exc:
            attempt += 1
            if attempt >= opts.retry_count:
                logger.exception("IRC connect failed after {} attempts", attempt)
                return
            delay = min(_BACKOFF_MAX, _BACKOFF_MIN * (2 ** (attempt - 1)))
            wait = delay * random.uniform(0.5, 1.5)
            logger.warning(
                "IRC connect failed (attempt {}): {}, retrying in {:.1f}s",
                attempt,
                exc,
                wait,
            )
            await asyncio.sleep(wait)


class IRCClient(pydle.Client):
    """Pydle client: turns IRC callbacks into bus events and drains the outbound queue."""

    def __init__(
        self,
        bus: Bus,
        config: BridgeConfig,
        channels: list[tuple[str, str | None]],
        **kwargs,
    ):
        opts = config.irc_options
        super().__init__(
            config.nickname,
            username=opts.username or config.nickname,
            realname=opts.realname or config.nickname,
            **kwargs,
        )
        self.RECONNECT_MAX_ATTEMPTS = opts.retry_count
        self._bus = bus
        self._channels = channels
        self._auto_send_commands = config.auto_send_commands
        self._outbound: asyncio.Queue[IRCMessageOut | IRCJoinOut] = asyncio.Queue()
        self._consumer_task: asyncio.Task | None = None
        self._throttle = TokenBucket.from_delay(opts.flood_protection_delay) if opts.flood_protection else None

    async def on_connect(self):
        """Registered: send auto commands, join mapped channels, start the send queue."""
        await super().on_connect()
        logger.info("Connected to IRC")
        for command in self._auto_send_commands:
            logger.debug("Sending auto command: {}", " ".join(command))
            await self.rawmsg(*command)
        for channel, key in self._channels:
            await self.join(channel, key)
        if self._consumer_task is None or self._consumer_task.done():
            self._consumer_task = asyncio.create_task(self._consume_outbound())

    async def on_message(self, target, source, message):
        await super().on_message(target, source, message)
        _, evt = irc_message("message", source, target, message)
        self._bus.publish("irc", evt)

    async def on_notice(self, target, source, message):
        await super().on_notice(target, source, message)
        _, evt = irc_message("notice", source, target, message)
        self._bus.publish("irc", evt)

    async def on_ctcp_action(self, by, target, contents):
        """Handle /me action. Dispatched by pydle's CTCP support; no base implementation."""
        _, evt = irc_message("action", by, target, contents)
        self._bus.publish("irc", evt)

    async def on_join(self, channel, user):
        await super().on_join(channel, user)
        _, evt = irc_join(channel, user)
        self._bus.publish("irc", evt)

    async def on_part(self, channel, user, message=None):
        await super().on_part(channel, user, message)
        _, evt = irc_part(channel, user, reason=message)
        self._bus.publish("irc", evt)

    async def on_quit(self, user, message=None):
        """pydle calls this before dropping the user, so channel membership is still known."""
        await super().on_quit(user, message)
        channels = [name for name, info in self.channels.items() if user in info.get("users", ())]
        _, evt = irc_quit(user, reason=message, channels=channels)
        self._bus.publish("irc", evt)

    async def on_invite(self, channel, by):
        await super().on_invite(channel, by)
        _, evt = irc_invite(channel, by)
        self._bus.publish("irc", evt)

    async def _consume_outbound(self):
        """Consume outbound queue in order, with token bucket throttling."""
        while True:
            try:
                evt = await self._outbound.get()
                if isinstance(evt, IRCJoinOut):
                    await self.join(evt.channel, evt.key)
                    continue
                for chunk in split_irc_message(evt.text):
                    if self._throttle:
                        await self._throttle.wait()
                    await self.message(evt.channel, chunk)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.exception("IRC send failed: {}", exc)

    def queue_message(self, evt: IRCMessageOut | IRCJoinOut) -> None:
        """Queue outbound message or join."""
        self._outbound.put_nowait(evt)

    async def disconnect(self, expected=True):
        """Disconnect and cleanup."""
        if self._consumer_task:
            self._consumer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer_task
            self._consumer_task = None
        await super().disconnect(expected)


class IRCAdapter(AdapterBase):
    """IRC adapter: one pydle session for every mapped channel."""

    outbound = (IRCMessageOut, IRCJoinOut)

    def __init__(self, bus: Bus, router: ChannelRouter, config: BridgeConfig):
        self._bus = bus
        self._router = router
        self._config = config
        self._client: IRCClient | None = None
        self._task: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return "irc"

    def send(self, evt: IRCMessageOut | IRCJoinOut) -> None:
        if self._client:
            self._client.queue_message(evt)
        else:
            logger.warning("IRC send dropped: no client (channel={})", evt.channel)

    async def start(self) -> None:
        """Create the pydle client and connect in the background."""
        opts = self._config.irc_options
        irc_kwargs: dict = {}
        if opts.sasl_username and opts.sasl_password:
            irc_kwargs["sasl_username"] = opts.sasl_username
            irc_kwargs["sasl_password"] = opts.sasl_password

        channels = self._router.irc_join_channels()
        self._client = IRCClient(
            bus=self._bus,
            config=self._config,
            channels=channels,
            **irc_kwargs,
        )
        self._bus.register(self)
        self._task = asyncio.create_task(_connect_with_backoff(self._client, self._config))
        logger.info(
            "IRC connection started: {}:{}, channels {}",
            self._config.server,
            opts.port,
            [channel for channel, _ in channels],
        )

    async def stop(self) -> None:
        """Stop IRC connection."""
        self._bus.unregister(self)
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        if self._client and self._client.connected:
            await self._client.disconnect()
        self._client = None
        self._task = None
