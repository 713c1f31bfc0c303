"""Tests for mention resolution in both directions."""

from __future__ import annotations

import pytest

from discord_irc.formatting.mentions import resolve_discord_mentions, resolve_irc_mentions
from tests.mocks import FakeGuild, FakeMember, FakeRole


@pytest.fixture
def guild():
    return FakeGuild(
        members=[
            FakeMember("1", "alice", nickname="Ally"),
            FakeMember("2", "bob"),
            FakeMember("3", "under_score"),
            FakeMember("4", "Ally"),
        ],
        roles=[FakeRole("10", "mods"), FakeRole("11", "secret", mentionable=False)],
        channels={"100": "general"},
    )


class TestResolveDiscordMentions:
    @pytest.mark.parametrize(
        "content,expected",
        [
            ("hi <@1>", "hi @Ally"),
            ("hi <@!2>", "hi @bob"),
            ("<@&10> ping", "@mods ping"),
            ("<@&99> ping", "@deleted-role ping"),
            ("see <#100>", "see #general"),
            ("see <#5>", "see #deleted-channel"),
            ("nice <:smile:123>", "nice :smile:"),
            ("<a:dance:456>", ":dance:"),
        ],
    )
    def test_markers(self, guild, content, expected):
        assert resolve_discord_mentions(content, guild) == expected

    def test_unknown_user_left_literal(self, guild):
        assert resolve_discord_mentions("hi <@777>", guild) == "hi <@777>"

    def test_newlines_become_spaces(self, guild):
        assert resolve_discord_mentions("a\nb\r\nc\rd", guild) == "a b c d"

    def test_without_guild_only_emoji_and_newlines(self):
        assert resolve_discord_mentions("<@1> <:x:1>\nend", None) == "<@1> :x: end"

    def test_angle_brackets_without_marker(self, guild):
        assert resolve_discord_mentions("a < b > c <@x>", guild) == "a < b > c <@x>"

    def test_empty(self, guild):
        assert resolve_discord_mentions("", guild) == ""


class TestResolveIrcMentions:
    def test_nickname(self, guild):
        assert resolve_irc_mentions("hey @Ally", guild) == "hey <@1>"

    def test_nickname_wins_over_username(self, guild):
        # Member 4's username is also "Ally"
        assert resolve_irc_mentions("@Ally", guild) == "<@1>"

    def test_username(self, guild):
        assert resolve_irc_mentions("@bob: hi", guild) == "<@2>: hi"

    def test_role_only_when_mentionable(self, guild):
        assert resolve_irc_mentions("@mods look", guild) == "<@&10> look"
        assert resolve_irc_mentions("@secret look", guild) == "@secret look"

    def test_escaped_name(self, guild):
        # irc_to_discord escapes the underscore before mentions are resolved
        assert resolve_irc_mentions(r"ping @under\_score", guild) == "ping <@3>"

    def test_email_is_not_a_mention(self, guild):
        assert resolve_irc_mentions("mail me at me@bob", guild) == "mail me at me@bob"

    @pytest.mark.parametrize("text", ["@everyone", "@here", "@nobody", "@", "@ bob"])
    def test_unresolved_left_as_written(self, guild, text):
        assert resolve_irc_mentions(text, guild) == text

    def test_case_sensitive(self, guild):
        assert resolve_irc_mentions("@BOB", guild) == "@BOB"

    def test_without_guild(self):
        assert resolve_irc_mentions("@bob", None) == "@bob"
