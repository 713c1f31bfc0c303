"""URL detection shared by both converters: URLs pass through unmodified."""

from __future__ import annotations

import re

URL_PATTERN = re.compile(
    r"https?://[^\s<>\[\]()]+(?:\([^\s<>\[\]()]*\)|[^\s<>\[\]()])*",
    re.IGNORECASE,
)

# Markup that closes around a URL ("**https://x.com**") is not part of it
_TRAILING_MARKUP = "*_~|\\"


def url_spans(text: str) -> dict[int, int]:
    """Map start -> end index of each URL in text."""
    spans: dict[int, int] = {}
    for m in URL_PATTERN.finditer(text):
        end = m.end()
        while end > m.start() and text[end - 1] in _TRAILING_MARKUP:
            end -= 1
        if end > m.start() + len("http://"):
            spans[m.start()] = end
    return spans
