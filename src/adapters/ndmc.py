"""Keenetic `ndmc` command adapter.

Implements the core CommandPort and RunningConfigPort by shelling out to
`ndmc -c <command>` on the router.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Optional, Sequence

from core.errors import CommandError, CommandUnavailableError

LOGGER = logging.getLogger(__name__)

UNAVAILABLE_HINT = "ndmc is not available (missing binary or permissions); run on the router or enable dry_run"


class NdmcCommandRunner:
    """Runs router commands through the `ndmc` CLI."""

    def __init__(self, binary: str = "ndmc", timeout: Optional[float] = 60.0) -> None:
        self._binary = binary
        self._timeout = timeout

    def _argv(self, command: str) -> Sequence[str]:
        return [self._binary, "-c", command]

    def run(self, command: str, dry_run: bool) -> str:
        if dry_run:
            LOGGER.info("[dry_run] %s -c %s", self._binary, command)
            return ""

        try:
            result = subprocess.run(
                self._argv(command),
                check=False,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise CommandUnavailableError(command, f"{UNAVAILABLE_HINT}: {command}") from e
        except subprocess.TimeoutExpired as e:
            raise CommandError(command, f"timeout after {self._timeout}s: {command}") from e

        if result.returncode != 0:
            raise CommandError(
                command,
                f"command failed: {command}",
                status=result.returncode,
                stderr=result.stderr or "",
            )
        return result.stdout.strip()

    def read_running_config(self) -> str:
        # The running config is needed even in dry-run mode to plan the changes.
        return self.run("show running-config", dry_run=False)
