"""Tests for cross-protocol message formatting."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from discord_irc.formatting.colors import NICK_COLORS, colorize_nick, nick_color, nick_color_index
from discord_irc.formatting.discord_to_irc import discord_to_irc
from discord_irc.formatting.irc_split import split_irc_message
from discord_irc.formatting.irc_to_discord import (
    BOLD,
    ITALIC,
    STRIKETHROUGH,
    UNDERLINE,
    irc_to_discord,
)

# Letters, digits, spaces and punctuation that neither side reads as markup
plain_text = st.text(
    alphabet=st.characters(
        whitelist_categories=("Lu", "Ll", "Nd", "Zs"),
        whitelist_characters=",.!?()#<>:-'\"%@+=",
    )
)


class TestDiscordToIrc:
    """Test Discord markdown -> IRC control codes."""

    @pytest.mark.parametrize(
        "input,expected",
        [
            ("**bold**", f"{BOLD}bold{BOLD}"),
            ("*italic*", f"{ITALIC}italic{ITALIC}"),
            ("_italic_", f"{ITALIC}italic{ITALIC}"),
            ("__underline__", f"{UNDERLINE}underline{UNDERLINE}"),
            ("~~strike~~", f"{STRIKETHROUGH}strike{STRIKETHROUGH}"),
            ("***both***", f"{BOLD}{ITALIC}both{ITALIC}{BOLD}"),
        ],
    )
    def test_converts_markdown(self, input, expected):
        assert discord_to_irc(input) == expected

    def test_mixed_spans(self):
        result = discord_to_irc("**bold** and *italic*")
        assert result == f"{BOLD}bold{BOLD} and {ITALIC}italic{ITALIC}"

    def test_nested_spans(self):
        result = discord_to_irc("**bold *and italic* done**")
        assert result == f"{BOLD}bold {ITALIC}and italic{ITALIC} done{BOLD}"

    def test_empty(self):
        assert discord_to_irc("") == ""
        assert discord_to_irc("   ") == "   "

    def test_preserves_urls(self):
        text = "See https://example.com/foo_bar_baz and http://test.org/*x*"
        assert discord_to_irc(text) == text

    def test_markdown_around_url(self):
        assert discord_to_irc("**https://x.com/a**") == f"{BOLD}https://x.com/a{BOLD}"

    def test_snake_case_is_not_emphasis(self):
        assert discord_to_irc("call some_function_name now") == "call some_function_name now"

    def test_code_spans_kept_verbatim(self):
        assert discord_to_irc("run `**not bold**` please") == "run `**not bold**` please"

    def test_escaped_markup_is_literal(self):
        assert discord_to_irc(r"\*not italic\*") == "*not italic*"

    def test_unpaired_delimiters_literal(self):
        assert discord_to_irc("**unclosed") == "**unclosed"
        assert discord_to_irc("2 * 3 * 4") == "2 * 3 * 4"
        assert discord_to_irc("~single~") == "~single~"

    @given(plain_text)
    def test_plain_text_unchanged(self, text):
        """Property: text with no markup passes through untouched."""
        assert discord_to_irc(text) == text


class TestIrcToDiscord:
    """Test IRC control codes -> Discord markdown."""

    @pytest.mark.parametrize(
        "input,expected",
        [
            (f"{BOLD}bold{BOLD}", "**bold**"),
            (f"{ITALIC}italic{ITALIC}", "*italic*"),
            (f"{UNDERLINE}underline{UNDERLINE}", "__underline__"),
            (f"{STRIKETHROUGH}strike{STRIKETHROUGH}", "~~strike~~"),
        ],
    )
    def test_converts_codes(self, input, expected):
        assert irc_to_discord(input) == expected

    def test_unclosed_span_closed_at_end(self):
        assert irc_to_discord(f"{BOLD}unclosed") == "**unclosed**"

    def test_reset_closes_everything(self):
        assert irc_to_discord(f"{BOLD}{ITALIC}loud\x0f quiet") == "***loud*** quiet"

    def test_empty_span_dropped(self):
        assert irc_to_discord(f"a{BOLD}{BOLD}b") == "ab"

    def test_strips_colors(self):
        assert irc_to_discord("\x0304red\x03 and \x0304,12blue on red\x03") == "red and blue on red"

    def test_strips_hex_colors_and_reverse(self):
        assert irc_to_discord("\x04ff0000red\x04 \x16rev\x16") == "red rev"

    def test_escapes_discord_markup(self):
        assert irc_to_discord("a_b*c~d`e|f") == r"a\_b\*c\~d\`e\|f"

    def test_preserves_urls(self):
        text = "see https://example.com/foo_bar"
        assert irc_to_discord(text) == text

    def test_empty(self):
        assert irc_to_discord("") == ""

    @given(plain_text)
    def test_plain_text_unchanged(self, text):
        """Property: text with no control codes or markup passes through untouched."""
        assert irc_to_discord(text) == text

    @given(plain_text)
    def test_round_trip(self, text):
        """Property: bolded plain text survives IRC -> Discord -> IRC."""
        irc = f"{BOLD}{text}{BOLD}" if text else text
        back = discord_to_irc(irc_to_discord(irc))
        if text.strip() == text:
            assert back == irc


class TestSplitIrcMessage:
    def test_empty(self):
        assert split_irc_message("") == []

    def test_short_message_single_chunk(self):
        assert split_irc_message("hello world") == ["hello world"]

    def test_splits_at_word_boundaries(self):
        content = "word " * 200
        chunks = split_irc_message(content)
        assert len(chunks) > 1
        assert "".join(chunks) == content
        assert all(len(c.encode("utf-8")) <= 450 for c in chunks)
        assert all(c.endswith(" ") for c in chunks[:-1])

    def test_hard_split_without_spaces(self):
        chunks = split_irc_message("a" * 1000)
        assert [len(c) for c in chunks] == [450, 450, 100]

    def test_never_splits_multibyte_characters(self):
        content = "é" * 300
        chunks = split_irc_message(content, max_bytes=101)
        assert "".join(chunks) == content
        assert all(len(c.encode("utf-8")) <= 101 for c in chunks)


class TestNickColors:
    def test_index_formula(self):
        # ord("a") + len("alice") = 102 -> 102 % 12
        assert nick_color_index("alice") == 6
        assert nick_color("alice") == "magenta"

    def test_colorize_wraps_in_color_and_reset(self):
        assert colorize_nick("alice") == "\x0306alice\x0f"
        assert colorize_nick("Bob") == "\x0308Bob\x0f"

    def test_empty_name_unchanged(self):
        assert nick_color_index("") == 0
        assert colorize_nick("") == ""

    @given(st.text(min_size=1))
    def test_index_in_range_and_stable(self, name):
        """Property: the same name always gets the same colour from the table."""
        index = nick_color_index(name)
        assert 0 <= index < len(NICK_COLORS)
        assert nick_color_index(name) == index
        assert colorize_nick(name).endswith(f"{name}\x0f")
