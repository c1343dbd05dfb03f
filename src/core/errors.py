"""Error taxonomy for the sync core.

Every error raised by the core derives from `SyncError` so the reconciler can
catch per-group failures in one place without hiding programming errors.
"""

from __future__ import annotations

from typing import Optional


class SyncError(Exception):
    """Base class for all core errors."""


class ParseError(SyncError):
    """Malformed attribute, rule or list document."""


class CycleError(SyncError):
    """An include chain leads back to a list that is still being expanded."""

    def __init__(self, path: list[str]) -> None:
        super().__init__(f"include cycle: {' -> '.join(path)}")
        self.path = path


class FetchError(SyncError):
    """A list could not be fetched (or parsed) after all retries."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class CommandError(SyncError):
    """A router command failed."""

    def __init__(
        self,
        command: str,
        message: str,
        status: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command
        self.status = status
        self.stderr = stderr

    @property
    def is_missing_delete(self) -> bool:
        """True when deleting a group that does not exist on the router."""

        if not self.command.startswith("no object-group fqdn"):
            return False
        stderr = self.stderr.lower()
        return self.status == 123 or "not found" in stderr or "unknown" in stderr

    def details(self) -> str:
        parts = [str(self)]
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.stderr:
            parts.append(f"stderr={self.stderr.strip()[:200]}")
        return "; ".join(parts)


class CommandUnavailableError(CommandError):
    """The router CLI binary is missing or cannot be executed."""
