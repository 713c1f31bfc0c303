"""Channel router: static Discord channel <-> IRC channel table."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from loguru import logger

from discord_irc.config import split_channel_key


@dataclass(frozen=True)
class ChannelMapping:
    """One channel pair. discord_channel is a channel id or '#name'."""

    discord_channel: str
    irc_channel: str
    irc_key: str | None = None

    @property
    def discord_by_name(self) -> bool:
        return self.discord_channel.startswith("#")


class ChannelRouter:
    """Routes events by channel mapping. Both directions are dict lookups."""

    def __init__(self) -> None:
        self._mappings: list[ChannelMapping] = []
        self._by_discord: dict[str, ChannelMapping] = {}
        self._by_irc: dict[str, ChannelMapping] = {}

    def load_from_config(self, channel_mapping: Mapping[str, str]) -> None:
        """Load mappings from the validated config table (Discord channel -> 'IRC channel [key]')."""
        mappings: list[ChannelMapping] = []
        by_discord: dict[str, ChannelMapping] = {}
        by_irc: dict[str, ChannelMapping] = {}
        skipped = 0
        for discord_channel, irc_value in channel_mapping.items():
            if not isinstance(irc_value, str):
                skipped += 1
                continue
            irc_channel, key = split_channel_key(irc_value)
            if not irc_channel:
                skipped += 1
                continue
            mapping = ChannelMapping(
                discord_channel=str(discord_channel),
                irc_channel=irc_channel,
                irc_key=key,
            )
            if irc_channel in by_irc:
                # Config validation rejects this; last entry wins if it gets here
                logger.warning(
                    "Router: {} mapped from {} and {}; using {}",
                    irc_channel,
                    by_irc[irc_channel].discord_channel,
                    mapping.discord_channel,
                    mapping.discord_channel,
                )
            mappings.append(mapping)
            by_discord[mapping.discord_channel] = mapping
            by_irc[irc_channel] = mapping

        self._mappings = mappings
        self._by_discord = by_discord
        self._by_irc = by_irc
        logger.info(
            "Router: loaded {} mappings{}",
            len(mappings),
            f", skipped {skipped}" if skipped else "",
        )

    def get_mapping_for_discord(
        self,
        channel_id: str,
        channel_name: str | None = None,
    ) -> ChannelMapping | None:
        """Get mapping for a Discord channel, by id first, then by '#name'."""
        mapping = self._by_discord.get(str(channel_id))
        if mapping is None and channel_name:
            mapping = self._by_discord.get(f"#{channel_name}")
        return mapping

    def get_mapping_for_irc(self, channel: str) -> ChannelMapping | None:
        """Get mapping for an IRC channel (case-insensitive)."""
        return self._by_irc.get(channel.lower())

    def irc_join_channels(self) -> list[tuple[str, str | None]]:
        """(channel, key) pairs the IRC session joins on connect."""
        return [(m.irc_channel, m.irc_key) for m in self._mappings]

    def all_mappings(self) -> list[ChannelMapping]:
        """Return all channel mappings."""
        return list(self._mappings)
