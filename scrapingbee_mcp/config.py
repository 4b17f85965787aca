"""Configuration loading for the ScrapingBee MCP gateway."""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

DEFAULT_API_URL = "https://app.scrapingbee.com/api/v1/"
DEFAULT_TIMEOUT = 120.0
DEFAULT_PORT = 3000

API_KEY_ENV = "SCRAPINGBEE_API_KEY"
PORT_ENV = "PORT"

CONFIG_LOCATIONS = [
    Path.home() / ".scrapingbee-mcp.yaml",
    Path.cwd() / ".scrapingbee-mcp.yaml",
    Path.cwd() / "scrapingbee-mcp.yaml",
]

_VALID_SECTION_KEYS: dict[str, set[str]] = {
    "scrapingbee": {"api_key", "api_url", "timeout"},
    "server": {"host", "port"},
    "logging": {"level", "file"},
}

_config_logger = logging.getLogger("scrapingbee_mcp.config")


class ApiKeyMode(str, Enum):
    """Where a deployment takes the ScrapingBee API key from.

    CONFIG: process configuration (stdio). Tools do not declare ``api_key``.
    ARGUMENT: a required ``api_key`` argument on every call (HTTP).
    """

    CONFIG = "config"
    ARGUMENT = "argument"


def _interpolate_env(value: str | None) -> str | None:
    """Replace ${VAR} with environment variable values. Leave as-is if unset."""
    if value is None:
        return None
    return re.sub(
        r"\$\{(\w+)\}",
        lambda m: os.environ.get(m.group(1), m.group(0)),
        value,
    )


def _warn_unknown_keys(config: dict, source: str) -> None:
    """Emit warnings for unrecognised sections and keys."""
    for section, keys in config.items():
        if section not in _VALID_SECTION_KEYS:
            _config_logger.warning(
                "Config file '%s': unknown section '%s' (ignored)", source, section
            )
            continue
        if not isinstance(keys, dict):
            continue
        for key in keys:
            if key not in _VALID_SECTION_KEYS[section]:
                _config_logger.warning(
                    "Config file '%s': unknown key '%s.%s' (ignored)",
                    source, section, key,
                )


def load_config(path: Path | None = None) -> dict:
    """Load config from file, checking default locations.

    Args:
        path: Explicit config file path. If None, searches default locations.

    Returns:
        Configuration dictionary, or empty dict if no config found.
    """
    locations = [path] if path else CONFIG_LOCATIONS

    for loc in locations:
        if loc.exists():
            with open(loc) as f:
                data = yaml.safe_load(f) or {}
            _warn_unknown_keys(data, str(loc))
            return data
    return {}


@dataclass(frozen=True)
class GatewayConfig:
    """Process-wide settings, built once at start-up and passed explicitly.

    Nothing in the gateway reads the environment after this is constructed.
    """

    api_key: str | None = None
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    log_file: str | None = None

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")

    @classmethod
    def from_sources(
        cls,
        file_config: dict[str, Any],
        env: Mapping[str, str] | None = None,
        *,
        api_key: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        host: str | None = None,
        port: int | None = None,
        log_level: str | None = None,
        log_file: str | None = None,
    ) -> "GatewayConfig":
        """Merge defaults, file config, environment and explicit CLI values.

        Later layers win; None means "not given" at every layer.
        """
        env = os.environ if env is None else env
        values: dict[str, Any] = {}

        section = file_config.get("scrapingbee") or {}
        if section.get("api_key") is not None:
            values["api_key"] = _interpolate_env(str(section["api_key"]))
        if section.get("api_url") is not None:
            values["api_url"] = str(section["api_url"])
        if section.get("timeout") is not None:
            values["timeout"] = float(section["timeout"])

        section = file_config.get("server") or {}
        if section.get("host") is not None:
            values["host"] = str(section["host"])
        if section.get("port") is not None:
            values["port"] = int(section["port"])

        section = file_config.get("logging") or {}
        if section.get("level") is not None:
            values["log_level"] = str(section["level"])
        if section.get("file") is not None:
            values["log_file"] = str(section["file"])

        if env.get(API_KEY_ENV):
            values["api_key"] = env[API_KEY_ENV]
        if env.get(PORT_ENV):
            values["port"] = int(env[PORT_ENV])

        cli_values = {
            "api_key": api_key,
            "api_url": api_url,
            "timeout": timeout,
            "host": host,
            "port": port,
            "log_level": log_level,
            "log_file": log_file,
        }
        values.update({k: v for k, v in cli_values.items() if v is not None})

        return cls(**values)
