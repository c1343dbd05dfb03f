"""Router command helpers built on top of `CommandPort`.

Commands are issued one by one and a failing command never aborts the run:
deleting a group that does not exist counts as success, anything else is
logged and the caller moves on with a partially applied group.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from core.errors import CommandError
from core.models import RouteInfo
from core.ports import CommandPort

LOGGER = logging.getLogger(__name__)

SAVE_COMMAND = "system configuration save"
ROUTE_DISABLE_COMMAND = "dns-proxy route disable"


def route_command(group_name: str, interface: str, info: RouteInfo) -> str:
    tokens = ["dns-proxy route object-group", group_name, interface]
    if info.auto:
        tokens.append("auto")
    if info.reject:
        tokens.append("reject")
    return " ".join(tokens)


def quote_description(description: str) -> str:
    escaped = description.replace('"', '\\"')
    return f'"{escaped}"'


class DeviceCommands:
    """Tolerant wrapper around the router command sink."""

    def __init__(self, commands: CommandPort, dry_run: bool) -> None:
        self._commands = commands
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def try_run(self, command: str) -> Optional[str]:
        """Run `command`; return its output, or None when it failed."""

        try:
            return self._commands.run(command, self._dry_run)
        except CommandError as exc:
            if exc.is_missing_delete:
                return ""
            LOGGER.warning('Command failed: "%s" (%s)', command, exc.details())
            return None

    def delete_group(self, name: str) -> None:
        self.try_run(f"no object-group fqdn {name}")

    def recreate_group(self, name: str, entries: Iterable[str], description: str = "") -> int:
        """Delete and re-create `name` with one include per entry.

        Returns the number of includes the router accepted.
        """

        self.delete_group(name)
        if self.try_run(f"object-group fqdn {name}") is None:
            LOGGER.warning("Failed to create group %s, skipping includes", name)
            return 0

        if description:
            self.try_run(f"object-group fqdn {name} description {quote_description(description)}")

        entries = list(entries)
        applied = 0
        first_failed: Optional[str] = None
        for value in entries:
            command = f"object-group fqdn {name} include {value}"
            if self.try_run(command) is not None:
                applied += 1
            elif first_failed is None:
                first_failed = command

        if applied != len(entries):
            LOGGER.warning(
                "Applied %s/%s include(s) for %s (first failed: %s)",
                applied,
                len(entries),
                name,
                first_failed,
            )
        return applied

    def add_route(self, group_name: str, interface: str, info: RouteInfo) -> None:
        command = route_command(group_name, interface, info)
        LOGGER.info("Route: %s%s", command, " (will disable)" if info.disabled else "")
        self.try_run(command)
        # `route disable` applies to the route issued right before it.
        if info.disabled:
            self.try_run(ROUTE_DISABLE_COMMAND)

    def save_configuration(self) -> None:
        if self._dry_run:
            return
        self.try_run(SAVE_COMMAND)
