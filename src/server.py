"""HTTP trigger surface for manual syncs.

Exposes `/sync`, `/clean` and `/health`. Only one sync or clean runs at a
time; a trigger that arrives while one is in flight is rejected with 429
instead of being queued.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

LOGGER = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Any]]


def create_app(run: Optional[Action] = None, drop: Optional[Action] = None) -> FastAPI:
    """Build the trigger app around the sync (`run`) and clean-up (`drop`) actions."""

    app = FastAPI(title="geosite-sync", version="1.0.0")
    lock = asyncio.Lock()

    async def _trigger(request: Request, name: str, action: Optional[Action]) -> JSONResponse:
        if lock.locked():
            return JSONResponse(status_code=429, content={"status": "busy", "message": "Sync already running"})
        if action is None:
            return JSONResponse(
                status_code=500,
                content={"status": "error", "message": f"{name} handler not configured"},
            )

        async with lock:
            client = request.client.host if request.client else "unknown"
            LOGGER.info("Manual %s requested from %s", name, client)
            try:
                await action()
            except Exception as e:
                LOGGER.exception("Manual %s failed", name)
                return JSONResponse(status_code=500, content={"status": "error", "message": str(e)})
        return JSONResponse(content={"status": "ok"})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness endpoint."""

        return {"status": "ok"}

    @app.api_route("/sync", methods=["GET", "POST"])
    async def sync(request: Request) -> JSONResponse:
        return await _trigger(request, "sync", run)

    @app.api_route("/clean", methods=["GET", "POST"])
    async def clean(request: Request) -> JSONResponse:
        return await _trigger(request, "clean", drop)

    return app
