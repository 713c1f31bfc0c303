"""Convert IRC control codes to Discord markdown."""

from __future__ import annotations

import re

from discord_irc.formatting.urls import url_spans

# IRC control codes
BOLD = "\x02"
COLOR = "\x03"
HEX_COLOR = "\x04"
RESET = "\x0f"
MONOSPACE = "\x11"
REVERSE = "\x16"
ITALIC = "\x1d"
STRIKETHROUGH = "\x1e"
UNDERLINE = "\x1f"

_MARKDOWN = {
    BOLD: "**",
    ITALIC: "*",
    UNDERLINE: "__",
    STRIKETHROUGH: "~~",
}

# Characters Discord would read as markup
_ESCAPE_CHARS = frozenset("\\*_`~|")

_COLOR_PATTERN = re.compile(r"\x03(?:\d{1,2}(?:,\d{1,2})?)?|\x04(?:[0-9a-fA-F]{6}(?:,[0-9a-fA-F]{6})?)?")
_STRIP_CHARS = str.maketrans("", "", MONOSPACE + REVERSE)


def irc_to_discord(content: str) -> str:
    """Convert IRC formatting to Discord markdown. Strip colors. Preserve URLs."""
    if not content:
        return content

    content = _COLOR_PATTERN.sub("", content).translate(_STRIP_CHARS)
    urls = {start: content[start:end] for start, end in url_spans(content).items()}
    return _IrcConverter().convert(content, urls)


class _IrcConverter:
    """Single pass over IRC text. Spans are toggled by control codes and kept properly nested."""

    def __init__(self) -> None:
        self._out: list[str] = []
        self._open: list[str] = []
        # Output index of each open marker, so empty spans can be dropped
        self._opened_at: dict[str, int] = {}

    def convert(self, text: str, urls: dict[int, str]) -> str:
        i = 0
        while i < len(text):
            if i in urls:
                self._out.append(urls[i])
                i += len(urls[i])
                continue
            c = text[i]
            marker = _MARKDOWN.get(c)
            if marker is not None:
                if marker in self._open:
                    self._close(marker)
                else:
                    self._push(marker)
            elif c == RESET:
                self._close_all()
            elif c in _ESCAPE_CHARS:
                self._out.append("\\" + c)
            else:
                self._out.append(c)
            i += 1
        self._close_all()
        return "".join(self._out)

    def _push(self, marker: str) -> None:
        self._open.append(marker)
        self._opened_at[marker] = len(self._out)
        self._out.append(marker)

    def _emit_close(self, marker: str) -> None:
        if self._opened_at.pop(marker) == len(self._out) - 1:
            self._out.pop()
        else:
            self._out.append(marker)

    def _close(self, marker: str) -> None:
        idx = self._open.index(marker)
        inner = self._open[idx + 1 :]
        for m in reversed(self._open[idx:]):
            self._emit_close(m)
        del self._open[idx:]
        for m in inner:
            self._push(m)

    def _close_all(self) -> None:
        for m in reversed(self._open):
            self._emit_close(m)
        self._open.clear()
