"""HTTP list source adapter.

Implements the core ListSourcePort with urllib so list documents can be
pulled from raw.githubusercontent.com (or any mirror, including file:// URLs).
"""

from __future__ import annotations

import asyncio
import urllib.error
import urllib.request

USER_AGENT = "keenetic-geosite-sync/1.0"


class HttpListSource:
    """Fetches list documents over HTTP(S)."""

    def __init__(self, user_agent: str = USER_AGENT) -> None:
        self._user_agent = user_agent

    def _get(self, url: str, timeout_ms: int) -> str:
        request = urllib.request.Request(url, method="GET")
        request.add_header("User-Agent", self._user_agent)
        try:
            with urllib.request.urlopen(request, timeout=timeout_ms / 1000) as response:
                return response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            # HTTPError is an OSError, the resolver retries it like any other I/O failure.
            raise OSError(f"HTTP {e.code} for {url}") from e

    async def fetch_text(self, url: str, timeout_ms: int) -> str:
        """Fetch `url` in a worker thread so the event loop stays responsive."""

        return await asyncio.to_thread(self._get, url, timeout_ms)
