"""Stable per-nick IRC colours for names relayed from Discord."""

from __future__ import annotations

COLOR = "\x03"
RESET = "\x0f"

# mIRC colour numbers
IRC_COLOR_CODES: dict[str, str] = {
    "white": "00",
    "black": "01",
    "dark_blue": "02",
    "dark_green": "03",
    "light_red": "04",
    "dark_red": "05",
    "magenta": "06",
    "orange": "07",
    "yellow": "08",
    "light_green": "09",
    "cyan": "10",
    "light_cyan": "11",
    "light_blue": "12",
    "light_magenta": "13",
    "gray": "14",
    "light_gray": "15",
}

NICK_COLORS: tuple[str, ...] = (
    "light_blue",
    "dark_blue",
    "light_red",
    "dark_red",
    "light_green",
    "dark_green",
    "magenta",
    "light_magenta",
    "orange",
    "yellow",
    "cyan",
    "light_cyan",
)


def nick_color_index(nickname: str) -> int:
    """Index into NICK_COLORS: (first code point + length) mod table size."""
    if not nickname:
        return 0
    return (ord(nickname[0]) + len(nickname)) % len(NICK_COLORS)


def nick_color(nickname: str) -> str:
    """Colour name assigned to nickname."""
    return NICK_COLORS[nick_color_index(nickname)]


def wrap_color(color: str, text: str) -> str:
    """Wrap text in an mIRC colour code followed by a reset."""
    return f"{COLOR}{IRC_COLOR_CODES[color]}{text}{RESET}"


def colorize_nick(nickname: str) -> str:
    """Nickname wrapped in its stable colour. Empty names are returned as is."""
    if not nickname:
        return nickname
    return wrap_color(nick_color(nickname), nickname)
