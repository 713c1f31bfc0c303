"""Common shape of the Discord and IRC transport adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod

from discord_irc.events import OutboundEvent


class AdapterBase(ABC):
    """One transport session on the bus.

    Subclasses list the send commands they deliver in ``outbound``; the bus
    hands them only those, and ``send`` queues each one on the session.
    """

    outbound: tuple[type, ...] = ()

    @property
    @abstractmethod
    def name(self) -> str:
        """'discord' or 'irc'."""

    def accept_event(self, source: str, evt: object) -> bool:
        return isinstance(evt, self.outbound)

    def push_event(self, source: str, evt: object) -> None:
        if isinstance(evt, self.outbound):
            self.send(evt)

    @abstractmethod
    def send(self, evt: OutboundEvent) -> None:
        """Queue a send command for this session. Must not block."""

    @abstractmethod
    async def start(self) -> None:
        """Connect and register on the bus."""

    @abstractmethod
    async def stop(self) -> None:
        """Unregister and disconnect."""
