"""Bridge orchestrator: wires bus, router, relay and both adapters."""

from __future__ import annotations

import asyncio
from typing import Protocol

from loguru import logger

from discord_irc.adapters.disc import DiscordAdapter
from discord_irc.adapters.irc import IRCAdapter
from discord_irc.config import BridgeConfig
from discord_irc.gateway import Bus, ChannelRouter, Relay


class Adapter(Protocol):
    """Protocol for adapters with start/stop methods."""

    @property
    def name(self) -> str: ...

    async def start(self) -> None: ...
    async def stop(self) -> None: ...


class Bridge:
    """One Discord session, one IRC session, and the relay between them.

    The config is validated before construction (BridgeConfig.from_dict), so a
    Bridge never opens a connection with a bad mapping.
    """

    def __init__(self, config: BridgeConfig) -> None:
        self.config = config
        self.bus = Bus()
        self.router = ChannelRouter()
        self.router.load_from_config(config.channel_mapping)

        self.discord = DiscordAdapter(self.bus, config)
        self.irc = IRCAdapter(self.bus, self.router, config)

        # Relay: inbound events -> send commands for the other side
        self.relay = Relay(self.bus, self.router, config, self.discord)
        self.bus.register(self.relay)
        self._adapters: list[Adapter] = [self.discord, self.irc]

    async def start(self) -> None:
        """Start both sessions. Discord first, so IRC traffic finds its channels."""
        logger.info("Starting adapters")
        for adapter in self._adapters:
            await adapter.start()
        logger.info("Bridge ready: {} mappings", len(self.router.all_mappings()))

    async def stop(self) -> None:
        for adapter in reversed(self._adapters):
            logger.info("Stopping {} adapter", adapter.name)
            try:
                await adapter.stop()
            except Exception as exc:
                logger.exception("Failed to stop {} adapter: {}", adapter.name, exc)

    async def run(self) -> None:
        """Start and wait until cancelled."""
        await self.start()
        try:
            while True:
                await asyncio.sleep(60)
        except asyncio.CancelledError:
            logger.info("Bridge shutting down")
            await self.stop()
            raise
