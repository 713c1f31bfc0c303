"""discord-irc: relay chat between a Discord guild and IRC channels."""

__version__ = "0.1.0"
