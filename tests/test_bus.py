"""Test event bus, dispatcher and event factories."""

from __future__ import annotations

from unittest.mock import patch

from hypothesis import given
from hypothesis import strategies as st

from discord_irc.events import (
    DiscordMessageIn,
    Dispatcher,
    IRCQuit,
    discord_message,
    irc_join,
    irc_message,
    irc_part,
    irc_quit,
)
from discord_irc.gateway.bus import Bus


class _Collector:
    def __init__(self, accept=True):
        self.accept = accept
        self.events = []

    def accept_event(self, source, evt):
        return self.accept

    def push_event(self, source, evt):
        self.events.append((source, evt))


class _Exploding(_Collector):
    def push_event(self, source, evt):
        raise RuntimeError("boom")


class TestEventFactories:
    def test_factory_returns_type_name_and_event(self):
        type_name, evt = discord_message("1", "general", "2", "alice", "hi", author_nickname="Ally")

        assert type_name == "discord_message"
        assert discord_message.TYPE == "discord_message"
        assert isinstance(evt, DiscordMessageIn)
        assert evt.author_display == "Ally"
        assert evt.attachments == []

    def test_display_falls_back_to_username(self):
        _, evt = discord_message("1", "general", "2", "alice", "hi")

        assert evt.author_display == "alice"

    def test_irc_factories(self):
        assert irc_message("action", "bob", "#c", "waves")[0] == "irc_message"
        assert irc_join("#c", "bob")[1].nick == "bob"
        assert irc_part("#c", "bob", reason="bye")[1].reason == "bye"

    def test_quit_copies_channels(self):
        channels = ["#a"]
        _, evt = irc_quit("bob", channels=channels)
        channels.append("#b")

        assert evt == IRCQuit("bob", None, ["#a"])


class TestBus:
    def test_publish_to_accepting_targets(self):
        # Arrange
        bus = Bus()
        yes, no = _Collector(), _Collector(accept=False)
        bus.register(yes)
        bus.register(no)

        # Act
        bus.publish("irc", "evt")

        # Assert
        assert yes.events == [("irc", "evt")]
        assert no.events == []

    def test_publish_all_keeps_order(self):
        bus = Bus()
        target = _Collector()
        bus.register(target)

        count = bus.publish_all("relay", ["a", "b", "c"])

        assert count == 3
        assert target.events == [("relay", "a"), ("relay", "b"), ("relay", "c")]

    def test_publish_all_empty(self):
        bus = Bus()
        target = _Collector()
        bus.register(target)

        assert bus.publish_all("relay", []) == 0
        assert target.events == []

    def test_unregister(self):
        bus = Bus()
        target = _Collector()
        bus.register(target)
        bus.unregister(target)
        bus.unregister(target)

        bus.publish("irc", "evt")

        assert target.events == []

    def test_failing_target_does_not_stop_others(self):
        # Arrange
        dispatcher = Dispatcher()
        after = _Collector()
        dispatcher.register(_Exploding())
        dispatcher.register(after)

        # Act
        with patch("discord_irc.events.logger") as mock_logger:
            dispatcher.dispatch("discord", "first")
            dispatcher.dispatch("discord", "second")

        # Assert
        assert after.events == [("discord", "first"), ("discord", "second")]
        assert mock_logger.exception.call_count == 2

    @given(st.lists(st.text(), max_size=50))
    def test_dispatch_order(self, messages):
        """Property: events reach a target in publish order."""
        bus = Bus()
        target = _Collector()
        bus.register(target)

        for msg in messages:
            _, evt = irc_message("message", "bob", "#c", msg)
            bus.publish("irc", evt)

        assert [evt.text for _, evt in target.events] == messages
