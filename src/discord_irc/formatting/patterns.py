"""Render {$name} placeholders in configurable message templates."""

from __future__ import annotations

import re
from collections.abc import Mapping

_PLACEHOLDER = re.compile(r"\{\$(.+?)\}")


def substitute_pattern(template: str, mapping: Mapping[str, str]) -> str:
    """Replace each {$name} in template with mapping[name].

    Placeholders whose name is missing from mapping are left as written; an
    empty value is still substituted. Substituted values are never re-scanned.
    """
    return _PLACEHOLDER.sub(lambda m: mapping[m.group(1)] if m.group(1) in mapping else m.group(0), template)
