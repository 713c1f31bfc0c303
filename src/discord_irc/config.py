"""Configuration: YAML + env overlay, validated into an immutable BridgeConfig."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml
from loguru import logger

from discord_irc.errors import ConfigurationError

REQUIRED_FIELDS = ("server", "nickname", "channel_mapping", "discord_token")

# Env var -> config key; set values win over the file
_ENV_OVERRIDES = {
    "DISCORD_TOKEN": "discord_token",
    "IRC_SERVER": "server",
    "IRC_NICKNAME": "nickname",
}

# camelCase keys accepted from discord-irc style JSON configs
_LEGACY_KEYS = {
    "channelMapping": "channel_mapping",
    "discordToken": "discord_token",
    "ircOptions": "irc_options",
    "commandCharacters": "command_characters",
    "ircNickColor": "irc_nick_color",
    "ircStatusNotices": "irc_status_notices",
    "announceSelfJoin": "announce_self_join",
    "autoSendCommands": "auto_send_commands",
}

_LEGACY_IRC_KEYS = {
    "secure": "tls",
    "userName": "username",
    "realName": "realname",
    "floodProtection": "flood_protection",
    "floodProtectionDelay": "flood_protection_delay",
    "retryCount": "retry_count",
}

DEFAULT_COMMAND_PRELUDE = "Command sent from Discord by {$nickname}:"
DEFAULT_IRC_TEXT = "<{$displayUsername}> {$text}"
DEFAULT_URL_ATTACHMENT = "<{$displayUsername}> {$attachmentURL}"
DEFAULT_DISCORD_TEXT = "**<{$author}>** {$withMentions}"


def _deep_update(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_update(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML (or JSON) file. Use SafeLoader. Returns raw dict."""
    path = Path(path)
    if not path.exists():
        logger.warning("Config file not found: {}", path)
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            logger.warning("Config file {} has invalid structure (expected dict)", path)
            return {}
        return data
    except yaml.YAMLError as exc:
        logger.error("Failed to parse config {}: {}", path, exc)
        raise


def _load_env_overrides() -> dict[str, str]:
    """Config values taken from the process environment (non-empty only)."""
    return {key: os.environ[env] for env, key in _ENV_OVERRIDES.items() if os.environ.get(env)}


def load_config_with_env(path: str | Path) -> dict[str, Any]:
    """Load config from YAML and overlay env-derived values.

    Loads .env via python-dotenv when present; DISCORD_TOKEN, IRC_SERVER and
    IRC_NICKNAME then override the file.
    """
    from dotenv import load_dotenv

    load_dotenv()
    return _deep_update(_normalize_keys(load_config(path)), _load_env_overrides())


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Rename legacy camelCase top-level keys to their snake_case form."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        new_key = _LEGACY_KEYS.get(key, key)
        if new_key != key:
            logger.debug("Config key {} is deprecated; use {}", key, new_key)
        result[new_key] = value
    return result


def _parse_bool(data: Mapping[str, Any], key: str, default: bool) -> bool:
    val = data.get(key)
    if val is None:
        return default
    if isinstance(val, bool):
        return val
    if isinstance(val, str):
        v = val.lower()
        if v in ("1", "true", "yes"):
            return True
        if v in ("0", "false", "no"):
            return False
    raise ConfigurationError(
        f"{key} must be a boolean",
        code="invalid_bool",
        details={"key": key, "value": val},
    )


def _parse_int(data: Mapping[str, Any], key: str, default: int) -> int:
    val = data.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"{key} must be an integer",
            code="invalid_int",
            details={"key": key, "value": val},
            original_error=exc,
        ) from exc


def _parse_optional_str(data: Mapping[str, Any], key: str) -> str | None:
    val = data.get(key)
    if val is None or val == "":
        return None
    return str(val)


def split_channel_key(value: str) -> tuple[str, str | None]:
    """Split an IRC mapping value into (lowercased channel, key or None)."""
    parts = value.split()
    channel = parts[0].lower() if parts else ""
    key = parts[1] if len(parts) > 1 else None
    return channel, key


def validate_channel_mapping(mapping: Any) -> dict[str, str]:
    """Validate the Discord -> IRC channel table; return it with string keys.

    Raises ConfigurationError when the table is not a non-empty mapping of
    strings, or when two Discord channels share one IRC channel.
    """
    if not isinstance(mapping, Mapping):
        raise ConfigurationError(
            "Invalid channel mapping given",
            code="invalid_channel_mapping",
            details={"type": type(mapping).__name__},
        )
    if not mapping:
        raise ConfigurationError("Channel mapping is empty", code="empty_channel_mapping")

    result: dict[str, str] = {}
    seen: dict[str, str] = {}
    for discord_channel, irc_value in mapping.items():
        # YAML reads unquoted snowflakes as ints
        if isinstance(discord_channel, bool) or not isinstance(discord_channel, (str, int)):
            raise ConfigurationError(
                f"Invalid Discord channel in mapping: {discord_channel!r}",
                code="invalid_mapping_entry",
                details={"discord_channel": discord_channel},
            )
        key = str(discord_channel).strip()
        if not key or not isinstance(irc_value, str) or not irc_value.strip():
            raise ConfigurationError(
                f"Invalid channel mapping entry for {key or discord_channel!r}",
                code="invalid_mapping_entry",
                details={"discord_channel": key, "irc_channel": irc_value},
            )
        irc_channel, _ = split_channel_key(irc_value)
        if irc_channel in seen:
            raise ConfigurationError(
                f"IRC channel {irc_channel} is mapped from both {seen[irc_channel]} and {key}",
                code="duplicate_irc_channel",
                details={"irc_channel": irc_channel, "discord_channels": [seen[irc_channel], key]},
            )
        seen[irc_channel] = key
        result[key] = irc_value.strip()
    return result


@dataclass(frozen=True)
class IRCOptions:
    """Transport options for the IRC session."""

    port: int = 6667
    tls: bool = False
    tls_verify: bool = True
    password: str | None = None
    username: str | None = None
    realname: str | None = None
    flood_protection: bool = True
    flood_protection_delay: int = 500  # milliseconds
    retry_count: int = 10
    sasl_username: str | None = None
    sasl_password: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> IRCOptions:
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                "irc_options must be a mapping",
                code="invalid_irc_options",
                details={"type": type(data).__name__},
            )
        data = {_LEGACY_IRC_KEYS.get(key, key): value for key, value in data.items()}
        known = set(cls.__dataclass_fields__)
        for key in data:
            if key not in known:
                logger.warning("Ignoring unknown irc_options key: {}", key)
        return cls(
            port=_parse_int(data, "port", 6667),
            tls=_parse_bool(data, "tls", False),
            tls_verify=_parse_bool(data, "tls_verify", True),
            password=_parse_optional_str(data, "password"),
            username=_parse_optional_str(data, "username"),
            realname=_parse_optional_str(data, "realname"),
            flood_protection=_parse_bool(data, "flood_protection", True),
            flood_protection_delay=_parse_int(data, "flood_protection_delay", 500),
            retry_count=_parse_int(data, "retry_count", 10),
            sasl_username=_parse_optional_str(data, "sasl_username"),
            sasl_password=_parse_optional_str(data, "sasl_password"),
        )


@dataclass(frozen=True)
class FormatConfig:
    """Message templates. Placeholders are written {$name}."""

    command_prelude: str = DEFAULT_COMMAND_PRELUDE
    irc_text: str = DEFAULT_IRC_TEXT
    url_attachment: str = DEFAULT_URL_ATTACHMENT
    discord: str = DEFAULT_DISCORD_TEXT

    @classmethod
    def from_dict(cls, data: Any) -> FormatConfig:
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                "format must be a mapping",
                code="invalid_format",
                details={"type": type(data).__name__},
            )
        values: dict[str, str] = {}
        for key in cls.__dataclass_fields__:
            val = data.get(key)
            if val is None:
                continue
            if not isinstance(val, str):
                raise ConfigurationError(
                    f"format.{key} must be a string",
                    code="invalid_format",
                    details={"key": key},
                )
            values[key] = val
        return cls(**values)


def _parse_command_characters(val: Any) -> tuple[str, ...]:
    if val is None:
        return ()
    if not isinstance(val, list) or not all(isinstance(c, str) and c for c in val):
        raise ConfigurationError(
            "command_characters must be a list of non-empty strings",
            code="invalid_command_characters",
        )
    return tuple(val)


def _parse_auto_send_commands(val: Any) -> tuple[tuple[str, ...], ...]:
    if val is None:
        return ()
    if not isinstance(val, list):
        raise ConfigurationError(
            "auto_send_commands must be a list",
            code="invalid_auto_send_commands",
        )
    commands: list[tuple[str, ...]] = []
    for i, item in enumerate(val):
        if not isinstance(item, list) or not item:
            raise ConfigurationError(
                f"auto_send_commands[{i}] must be a non-empty list",
                code="invalid_auto_send_commands",
                details={"index": i},
            )
        commands.append(tuple(str(part) for part in item))
    return tuple(commands)


@dataclass(frozen=True)
class BridgeConfig:
    """Validated bridge configuration. Built once; shared read-only by every component."""

    server: str
    nickname: str
    channel_mapping: Mapping[str, str]
    discord_token: str
    irc_options: IRCOptions = field(default_factory=IRCOptions)
    command_characters: tuple[str, ...] = ()
    irc_nick_color: bool = True
    irc_status_notices: bool = False
    announce_self_join: bool = False
    format: FormatConfig = field(default_factory=FormatConfig)
    auto_send_commands: tuple[tuple[str, ...], ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BridgeConfig:
        """Validate raw config data. Raises ConfigurationError on any problem."""
        if not isinstance(data, Mapping):
            raise ConfigurationError("Config must be a mapping", code="invalid_config")
        data = _normalize_keys(dict(data))

        for key in REQUIRED_FIELDS:
            if not data.get(key):
                raise ConfigurationError(
                    f"Missing configuration field {key}",
                    code="missing_field",
                    details={"field": key},
                )

        channel_mapping = validate_channel_mapping(data["channel_mapping"])
        config = cls(
            server=str(data["server"]),
            nickname=str(data["nickname"]),
            channel_mapping=MappingProxyType(channel_mapping),
            discord_token=str(data["discord_token"]),
            irc_options=IRCOptions.from_dict(data.get("irc_options")),
            command_characters=_parse_command_characters(data.get("command_characters")),
            irc_nick_color=_parse_bool(data, "irc_nick_color", True),
            irc_status_notices=_parse_bool(data, "irc_status_notices", False),
            announce_self_join=_parse_bool(data, "announce_self_join", False),
            format=FormatConfig.from_dict(data.get("format")),
            auto_send_commands=_parse_auto_send_commands(data.get("auto_send_commands")),
        )
        logger.debug("Config validated: {} channel mappings", len(channel_mapping))
        return config

    def is_command(self, text: str) -> bool:
        """True when text starts with one of the configured command characters."""
        return any(text.startswith(prefix) for prefix in self.command_characters)
