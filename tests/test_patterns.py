"""Tests for {$name} template substitution."""

from __future__ import annotations

import pytest
from hypothesis import assume, given
from hypothesis import strategies as st

from discord_irc.formatting.patterns import substitute_pattern


class TestSubstitutePattern:
    def test_replaces_known_placeholders(self):
        result = substitute_pattern("<{$displayUsername}> {$text}", {"displayUsername": "alice", "text": "hi"})
        assert result == "<alice> hi"

    def test_unknown_placeholder_left_as_written(self):
        assert substitute_pattern("{$author}: {$missing}", {"author": "bob"}) == "bob: {$missing}"

    def test_empty_value_substituted(self):
        assert substitute_pattern("[{$text}]", {"text": ""}) == "[]"
        assert substitute_pattern("{$a}{$b}", {"a": "", "b": "x"}) == "x"

    def test_substituted_values_are_not_rescanned(self):
        result = substitute_pattern("{$a}", {"a": "{$b}", "b": "nope"})
        assert result == "{$b}"

    def test_adjacent_and_repeated_placeholders(self):
        assert substitute_pattern("{$a}{$a}{$b}", {"a": "x", "b": "y"}) == "xxy"

    @pytest.mark.parametrize("template", ["{$}", "{text}", "$text", "{$text", "plain"])
    def test_non_placeholders_untouched(self, template):
        assert substitute_pattern(template, {"text": "value"}) == template

    def test_name_is_case_sensitive(self):
        assert substitute_pattern("{$Text}", {"text": "value"}) == "{$Text}"

    @given(st.text(), st.dictionaries(st.text(min_size=1), st.text()))
    def test_text_without_placeholders_unchanged(self, template, mapping):
        """Property: a template with no {$ marker is returned as is."""
        assume("{$" not in template)
        assert substitute_pattern(template, mapping) == template

    @given(st.text(alphabet=st.characters(blacklist_characters="{}$"), min_size=1))
    def test_missing_name_preserved(self, name):
        """Property: placeholders with no mapping entry survive verbatim."""
        template = f"before {{${name}}} after"
        assert substitute_pattern(template, {}) == template
