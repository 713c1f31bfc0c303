"""Convert Discord markdown to IRC control codes.

A small tokenizer instead of chained regexes: the text is split into
delimiter runs, code spans, URLs and plain text, then runs are paired
closer-to-nearest-opener. Anything left unpaired is emitted literally.
"""

from __future__ import annotations

from dataclasses import dataclass

from discord_irc.formatting.irc_to_discord import BOLD, ITALIC, STRIKETHROUGH, UNDERLINE
from discord_irc.formatting.urls import url_spans

# (delimiter char, run length) -> IRC codes opened, in order
_SPANS: dict[tuple[str, int], str] = {
    ("*", 1): ITALIC,
    ("*", 2): BOLD,
    ("*", 3): BOLD + ITALIC,
    ("_", 1): ITALIC,
    ("_", 2): UNDERLINE,
    ("_", 3): UNDERLINE + ITALIC,
    ("~", 2): STRIKETHROUGH,
}

_DELIMITERS = frozenset("*_~")
_ESCAPABLE = frozenset("\\*_~`|<>#-:[]()")


@dataclass
class _Token:
    text: str
    char: str = ""  # delimiter char; empty for literal text
    can_open: bool = False
    can_close: bool = False
    codes: str = ""  # IRC codes once paired

    @property
    def is_delimiter(self) -> bool:
        return bool(self.char)


def discord_to_irc(content: str) -> str:
    """Convert Discord bold/italic/underline/strikethrough to IRC codes. Preserves URLs and code."""
    if not content:
        return content

    tokens = _tokenize(content)
    _pair_delimiters(tokens)
    return "".join(_render(tok) for tok in tokens)


def _tokenize(text: str) -> list[_Token]:
    urls = url_spans(text)
    tokens: list[_Token] = []
    literal: list[str] = []

    def flush() -> None:
        if literal:
            tokens.append(_Token("".join(literal)))
            literal.clear()

    i = 0
    n = len(text)
    while i < n:
        if i in urls:
            literal.append(text[i : urls[i]])
            i = urls[i]
            continue
        c = text[i]
        if c == "\\" and i + 1 < n and text[i + 1] in _ESCAPABLE:
            literal.append(text[i + 1])
            i += 2
            continue
        if c == "`":
            end = _code_span_end(text, i)
            literal.append(text[i:end])
            i = end
            continue
        if c in _DELIMITERS:
            j = i
            while j < n and text[j] == c:
                j += 1
            run = text[i:j]
            if (c, len(run)) not in _SPANS:
                literal.append(run)
                i = j
                continue
            before = text[i - 1] if i > 0 else " "
            after = text[j] if j < n else " "
            can_open = not after.isspace()
            can_close = not before.isspace()
            if c == "_":
                # snake_case is not emphasis
                can_open = can_open and not before.isalnum()
                can_close = can_close and not after.isalnum()
            if can_open or can_close:
                flush()
                tokens.append(_Token(run, char=c, can_open=can_open, can_close=can_close))
            else:
                literal.append(run)
            i = j
            continue
        literal.append(c)
        i += 1
    flush()
    return tokens


def _code_span_end(text: str, start: int) -> int:
    """End index of the code span opened at start, or start + run length when unclosed."""
    j = start
    while j < len(text) and text[j] == "`":
        j += 1
    fence = text[start:j]
    close = text.find(fence, j)
    while close != -1:
        # The closing run must be exactly as long as the opening one
        k = close + len(fence)
        if k >= len(text) or text[k] != "`":
            return k
        while k < len(text) and text[k] == "`":
            k += 1
        close = text.find(fence, k)
    return j


def _pair_delimiters(tokens: list[_Token]) -> None:
    """Pair each closer with the nearest same-char, same-length opener."""
    openers: list[int] = []
    for idx, tok in enumerate(tokens):
        if not tok.is_delimiter:
            continue
        if tok.can_close:
            match = next(
                (
                    pos
                    for pos in range(len(openers) - 1, -1, -1)
                    if tokens[openers[pos]].text == tok.text
                ),
                None,
            )
            if match is not None:
                opener = tokens[openers[match]]
                codes = _SPANS[(tok.char, len(tok.text))]
                opener.codes = codes
                tok.codes = codes[::-1]
                # Openers crossed by this pair can no longer close properly
                del openers[match:]
                continue
        if tok.can_open:
            openers.append(idx)


def _render(tok: _Token) -> str:
    if tok.is_delimiter and tok.codes:
        return tok.codes
    return tok.text
