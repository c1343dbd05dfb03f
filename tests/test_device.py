from __future__ import annotations

import logging

import pytest

from core.device import DeviceCommands, quote_description, route_command
from core.errors import CommandError
from core.models import RouteInfo
from core.routes import DEFAULT_ROUTE, RouteState, find_route_template
from core.running_config import parse_routes


class FlakyCommands:
    def __init__(self, failing: "dict[str, CommandError] | None" = None) -> None:
        self.commands: list[str] = []
        self._failing = failing or {}

    def run(self, command: str, dry_run: bool) -> str:
        self.commands.append(command)
        if command in self._failing:
            raise self._failing[command]
        return ""


def _error(command: str, status: int = 1, stderr: str = "") -> CommandError:
    return CommandError(command, f"command failed: {command}", status=status, stderr=stderr)


def test_route_command_and_description_quoting() -> None:
    assert route_command("g", "Wg0", RouteInfo(auto=True, reject=True)) == "dns-proxy route object-group g Wg0 auto reject"
    assert route_command("g", "Wg0", RouteInfo(auto=False)) == "dns-proxy route object-group g Wg0"
    assert quote_description('say "hi"') == '"say \\"hi\\""'


@pytest.mark.parametrize(
    "error",
    [
        _error("no object-group fqdn g", status=123),
        _error("no object-group fqdn g", stderr="Object-group Not Found"),
        _error("no object-group fqdn g", stderr="unknown group"),
    ],
)
def test_missing_group_delete_is_silent(error: CommandError, caplog: pytest.LogCaptureFixture) -> None:
    device = DeviceCommands(FlakyCommands({"no object-group fqdn g": error}), dry_run=False)

    with caplog.at_level(logging.WARNING):
        assert device.try_run("no object-group fqdn g") == ""

    assert caplog.text == ""


def test_other_failures_are_logged_and_reported(caplog: pytest.LogCaptureFixture) -> None:
    error = _error("object-group fqdn g include x", status=2, stderr="bad entry")
    device = DeviceCommands(FlakyCommands({"object-group fqdn g include x": error}), dry_run=False)

    with caplog.at_level(logging.WARNING):
        assert device.try_run("object-group fqdn g include x") is None

    assert 'Command failed: "object-group fqdn g include x"' in caplog.text
    assert "status=2" in caplog.text
    assert "stderr=bad entry" in caplog.text


def test_failed_create_skips_includes(caplog: pytest.LogCaptureFixture) -> None:
    commands = FlakyCommands({"object-group fqdn g": _error("object-group fqdn g")})
    device = DeviceCommands(commands, dry_run=True)

    with caplog.at_level(logging.WARNING):
        applied = device.recreate_group("g", ["a.com", "b.com"], "G")

    assert applied == 0
    assert commands.commands == ["no object-group fqdn g", "object-group fqdn g"]
    assert "Failed to create group g, skipping includes" in caplog.text


def test_recreate_without_description() -> None:
    commands = FlakyCommands()
    applied = DeviceCommands(commands, dry_run=True).recreate_group("g", ["a.com"])

    assert applied == 1
    assert commands.commands == ["no object-group fqdn g", "object-group fqdn g", "object-group fqdn g include a.com"]


def test_save_only_outside_dry_run() -> None:
    commands = FlakyCommands()
    DeviceCommands(commands, dry_run=True).save_configuration()
    assert commands.commands == []

    DeviceCommands(commands, dry_run=False).save_configuration()
    assert commands.commands == ["system configuration save"]


ROUTES = """
dns-proxy route object-group list Wg0 reject
dns-proxy route object-group list-2 Wg0 auto
dns-proxy route object-group other Wg0 auto
dns-proxy route object-group other L2TP0 auto
route disable
"""


def test_find_route_template_prefers_exact_then_family() -> None:
    routes = parse_routes(ROUTES)

    assert find_route_template("list-2", "Wg0", routes) == RouteInfo(auto=True)
    assert find_route_template("list-3", "Wg0", routes) == RouteInfo(auto=False, reject=True)
    assert find_route_template("other-2", "L2TP0", routes) == RouteInfo(auto=True, disabled=True)
    assert find_route_template("list", "L2TP0", routes) is None
    assert find_route_template("list", None, routes) is None


def test_route_state_issues_each_route_once() -> None:
    commands = FlakyCommands()
    state = RouteState(ROUTES, DeviceCommands(commands, dry_run=True))

    assert state.ensure("fresh", "Wg0") == DEFAULT_ROUTE
    assert state.ensure("fresh", "Wg0") is None
    assert state.ensure("fresh", None) is None
    assert state.ensure("other", "L2TP0") == RouteInfo(auto=True, disabled=True)
    assert state.created == 2
    assert commands.commands == [
        "dns-proxy route object-group fresh Wg0 auto",
        "dns-proxy route object-group other L2TP0 auto",
        "dns-proxy route disable",
    ]


def test_route_state_hint_wins() -> None:
    commands = FlakyCommands()
    state = RouteState("", DeviceCommands(commands, dry_run=True))

    state.ensure("g", "Wg0", RouteInfo(auto=False, reject=True))

    assert commands.commands == ["dns-proxy route object-group g Wg0 reject"]
