"""Event bus between the two transport adapters and the relay."""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from discord_irc.events import Dispatcher, EventTarget

__all__ = ["Bus", "EventTarget"]


class Bus:
    """Carries inbound events to the relay and send commands to the adapters.

    Delivery is synchronous and in registration order. A target that raises
    is logged and skipped.
    """

    def __init__(self) -> None:
        self._dispatcher = Dispatcher()

    def register(self, target: EventTarget) -> None:
        self._dispatcher.register(target)

    def unregister(self, target: EventTarget) -> None:
        self._dispatcher.unregister(target)

    def publish(self, source: str, evt: object) -> None:
        self._dispatcher.dispatch(source, evt)

    def publish_all(self, source: str, events: Iterable[object]) -> int:
        """Publish events one after another; returns how many went out."""
        count = 0
        for evt in events:
            self._dispatcher.dispatch(source, evt)
            count += 1
        if count:
            logger.debug("{} published {} events", source, count)
        return count
