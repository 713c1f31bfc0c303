"""Command line entrypoint: validate the config, then run the bridge until interrupted."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import yaml
from loguru import logger

from discord_irc import __version__
from discord_irc.bridge import Bridge
from discord_irc.config import BridgeConfig, load_config_with_env
from discord_irc.errors import ConfigurationError

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"

# discord.py and pydle log through the standard library; child loggers propagate here
_LIBRARY_LOGGERS = ("discord", "pydle")

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class InterceptHandler(logging.Handler):
    """Re-emit standard logging records through loguru, under the library's logger name."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        origin = {"name": record.name, "function": record.funcName, "line": record.lineno}
        logger.patch(lambda r: r.update(origin)).opt(exception=record.exc_info).log(level, record.getMessage())


def _log_level(verbose: bool) -> str:
    """DEBUG when verbose, else LOG_LEVEL from the environment, else INFO."""
    if verbose:
        return "DEBUG"
    env_level = (os.environ.get("LOG_LEVEL") or "").upper()
    return env_level if env_level in _LEVELS else "INFO"


def setup_logging(verbose: bool = False) -> None:
    """Replace loguru's default sink and route library logging into it."""
    level = _log_level(verbose)
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    handler = InterceptHandler()
    for name in _LIBRARY_LOGGERS:
        lib_logger = logging.getLogger(name)
        lib_logger.handlers = [handler]
        lib_logger.propagate = False
        lib_logger.setLevel(level)


def load_bridge_config(config_path: Path) -> BridgeConfig:
    """Read the file (plus env overrides) and validate it. Raises ConfigurationError."""
    try:
        data = load_config_with_env(config_path)
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Could not parse {config_path}",
            code="invalid_yaml",
            original_error=exc,
        ) from exc
    return BridgeConfig.from_dict(data)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="discord-irc",
        description="Relay messages between Discord and IRC channels",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="YAML or JSON config file (default: %(default)s)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main() -> None:
    """Parse arguments, validate config, run the bridge. Exits 1 on a bad config."""
    args = _build_parser().parse_args()
    setup_logging(args.verbose)

    if not args.config.is_file():
        logger.error("No config file at {}", args.config)
        sys.exit(1)

    try:
        config = load_bridge_config(args.config)
    except ConfigurationError as exc:
        logger.error("Invalid configuration ({}): {}", exc.code, exc)
        sys.exit(1)
    logger.info("Using config {}: {} channel mappings", args.config, len(config.channel_mapping))

    bridge = Bridge(config)
    try:
        asyncio.run(bridge.run())
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")


if __name__ == "__main__":
    main()
