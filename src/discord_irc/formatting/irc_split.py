"""Split long lines for IRC (512 byte limit) at word boundaries."""

from __future__ import annotations


def _width(text: str) -> int:
    return len(text.encode("utf-8", errors="replace"))


def split_irc_message(content: str, max_bytes: int = 450) -> list[str]:
    """Split content into chunks of at most max_bytes UTF-8 bytes.

    IRC lines are limited to 512 bytes including "PRIVMSG #channel :" and CRLF,
    hence the 450 default. A chunk breaks after its last space when that keeps
    it more than half full; characters are never split.
    """
    if not content:
        return []
    if _width(content) <= max_bytes:
        return [content]

    chunks: list[str] = []
    current: list[str] = []
    size = 0
    for ch in content:
        width = _width(ch)
        if current and size + width > max_bytes:
            text = "".join(current)
            cut = text.rfind(" ") + 1
            if cut and _width(text[:cut]) > max_bytes // 2:
                chunks.append(text[:cut])
                current = list(text[cut:])
            else:
                chunks.append(text)
                current = []
            size = _width("".join(current))
        current.append(ch)
        size += width
    if current:
        chunks.append("".join(current))
    return chunks
