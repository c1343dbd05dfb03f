"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "https://raw.githubusercontent.com/v2fly/domain-list-community/master/data/"
DEFAULT_TIMEOUT_MS = 20000
DEFAULT_PREFIX = "domain-list"
DEFAULT_MAX_ENTRIES = 300
DEFAULT_RETRIES = 3
DEFAULT_DELAY_BETWEEN_LISTS_MS = 500


def normalize_base_url(base_url: str) -> str:
    """Make sure list keys can be appended directly to the base URL."""

    base_url = base_url.strip()
    if base_url and not base_url.endswith("/"):
        base_url += "/"
    return base_url


@dataclass(frozen=True)
class FetchContext:
    """Settings the list resolver needs to turn a key into rules."""

    base_url: str
    timeout_ms: int
    retries: int


@dataclass(frozen=True)
class SyncConfig:
    """Reconciliation settings."""

    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    prefix: str = DEFAULT_PREFIX
    dry_run: bool = False
    max_entries_per_group: int = DEFAULT_MAX_ENTRIES
    retries: int = DEFAULT_RETRIES
    route_interface: Optional[str] = None
    initial_domains: tuple[str, ...] = ()
    delay_between_lists_ms: int = DEFAULT_DELAY_BETWEEN_LISTS_MS

    def fetch_context(self) -> FetchContext:
        return FetchContext(
            base_url=normalize_base_url(self.base_url),
            timeout_ms=self.timeout_ms,
            retries=self.retries,
        )
