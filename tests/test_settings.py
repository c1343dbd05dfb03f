from __future__ import annotations

import json

import pytest

import settings
from core.config import SyncConfig


def test_defaults_from_empty_config() -> None:
    config = settings.build_sync_config({})

    assert config == SyncConfig()
    assert config.fetch_context().base_url.endswith("/data/")
    assert config.prefix == "domain-list"
    assert config.max_entries_per_group == 300
    assert config.route_interface is None


def test_values_are_normalized() -> None:
    config = settings.build_sync_config(
        {
            "base_url": "https://mirror.example/data",
            "timeout_ms": "5000",
            "prefix": "geo-",
            "dry_run": True,
            "max_entries_per_group": 50,
            "retries": 2,
            "route_interface": "  Wireguard0 ",
            "initial_domains": ["YouTube", "Facebook"],
            "delay_between_lists_ms": 0,
        }
    )

    assert config.fetch_context().base_url == "https://mirror.example/data/"
    assert config.timeout_ms == 5000
    assert config.route_interface == "Wireguard0"
    assert config.initial_domains == ("YouTube", "Facebook")
    assert config.delay_between_lists_ms == 0


@pytest.mark.parametrize(
    "raw",
    [
        {"timeout_ms": 0},
        {"retries": "many"},
        {"max_entries_per_group": -1},
        {"initial_domains": "YouTube"},
        {"delay_between_lists_ms": -5},
    ],
)
def test_invalid_values_raise_config_error(raw: dict) -> None:
    with pytest.raises(settings.ConfigError):
        settings.build_sync_config(raw)


def test_server_settings() -> None:
    assert settings.build_server_settings({}) == settings.ServerSettings(enabled=True, host="0.0.0.0", port=3939)
    server = settings.build_server_settings({"server": {"enabled": False, "port": "8080"}})
    assert (server.enabled, server.port) == (False, 8080)


def test_load_json_config(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"prefix": "x"}), encoding="utf-8")

    assert settings.load_json_config(str(path)) == {"prefix": "x"}


@pytest.mark.parametrize(("content", "message"), [(None, "not found"), ("{oops", "not valid JSON"), ("[1]", "JSON object")])
def test_load_json_config_errors(tmp_path, content: "str | None", message: str) -> None:
    path = tmp_path / "config.json"
    if content is not None:
        path.write_text(content, encoding="utf-8")

    with pytest.raises(settings.ConfigError, match=message):
        settings.load_json_config(str(path))
