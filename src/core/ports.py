"""Ports (interfaces) used by the core.

Ports define the minimal contracts for the list source and the router so that
the core can run against real HTTP/ndmc adapters or in-memory test doubles.
"""

from __future__ import annotations

from typing import Protocol


class ListSourcePort(Protocol):
    """Fetches the raw text of one domain-list document."""

    async def fetch_text(self, url: str, timeout_ms: int) -> str:
        ...


class CommandPort(Protocol):
    """Issues one configuration command to the router.

    Implementations raise `CommandError` on failure. In dry-run mode the
    command must only be logged and an empty string returned.
    """

    def run(self, command: str, dry_run: bool) -> str:
        ...


class RunningConfigPort(Protocol):
    """Returns the full running configuration text of the router."""

    def read_running_config(self) -> str:
        ...
