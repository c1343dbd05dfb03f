"""Static configuration for geosite-sync.

All user-editable settings (list source, group prefix, routing interface,
server, logging) live in a single JSON file so they can be edited on the
router without touching Python.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Optional

from dotenv import load_dotenv

from core.config import (
    DEFAULT_BASE_URL,
    DEFAULT_DELAY_BETWEEN_LISTS_MS,
    DEFAULT_MAX_ENTRIES,
    DEFAULT_PREFIX,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_MS,
    SyncConfig,
)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# `.env` may point at another config file (GEOSITE_SYNC_CONFIG) and carry the
# values the log formatter has to mask.
load_dotenv()

CONFIG_PATH = os.getenv("GEOSITE_SYNC_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")

DEFAULT_SERVER_HOST = "0.0.0.0"
DEFAULT_SERVER_PORT = 3939


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ServerSettings:
    """Where the trigger server listens and whether `run` starts it."""

    enabled: bool
    host: str
    port: int


def load_json_config(path: Optional[str] = None) -> dict:
    """Load config.json with a flat, user-friendly schema."""

    path = path or CONFIG_PATH
    if not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Config is not valid JSON: {path} ({e})") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a JSON object: {path}")
    return data


def _positive_int(raw: dict, key: str, default: int) -> int:
    value = raw.get(key, default)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None
    if number <= 0:
        raise ConfigError(f"{key} must be > 0")
    return number


def build_sync_config(raw: dict[str, Any]) -> SyncConfig:
    """Turn the raw JSON object into the core `SyncConfig`."""

    initial_domains = raw.get("initial_domains") or []
    if not isinstance(initial_domains, list):
        raise ConfigError("initial_domains must be a list of descriptions")

    delay = int(raw.get("delay_between_lists_ms", DEFAULT_DELAY_BETWEEN_LISTS_MS))
    if delay < 0:
        raise ConfigError("delay_between_lists_ms must be >= 0")

    return SyncConfig(
        base_url=str(raw.get("base_url") or DEFAULT_BASE_URL),
        timeout_ms=_positive_int(raw, "timeout_ms", DEFAULT_TIMEOUT_MS),
        prefix=str(raw.get("prefix", DEFAULT_PREFIX)),
        dry_run=bool(raw.get("dry_run", False)),
        max_entries_per_group=_positive_int(raw, "max_entries_per_group", DEFAULT_MAX_ENTRIES),
        retries=_positive_int(raw, "retries", DEFAULT_RETRIES),
        route_interface=(str(raw.get("route_interface") or "").strip() or None),
        initial_domains=tuple(str(item) for item in initial_domains),
        delay_between_lists_ms=delay,
    )


def build_server_settings(raw: dict[str, Any]) -> ServerSettings:
    server = raw.get("server", {}) or {}
    return ServerSettings(
        enabled=bool(server.get("enabled", True)),
        host=str(server.get("host", DEFAULT_SERVER_HOST)),
        port=int(server.get("port", DEFAULT_SERVER_PORT)),
    )


def logging_config(raw: dict[str, Any]) -> dict:
    # Logging configuration (optional).
    return raw.get("logging", {}) or {}
