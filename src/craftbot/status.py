# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Read-only HTTP status surface for uptime monitors.

Served by uvicorn on the same event loop as the supervisor.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable

import uvicorn
from fastapi import APIRouter, FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from craftbot import __version__
from craftbot.core.supervisor import SupervisorStatus
from craftbot.logging import get_logger

logger = get_logger(__name__)

NO_CACHE = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

StatusProvider = Callable[[], SupervisorStatus]


def status_router(provider: StatusProvider) -> APIRouter:
    router = APIRouter()

    @router.get("/health", response_class=PlainTextResponse)
    async def health() -> PlainTextResponse:
        return PlainTextResponse("OK", headers=NO_CACHE)

    @router.get("/ping", response_class=PlainTextResponse)
    async def ping() -> PlainTextResponse:
        return PlainTextResponse("OK", headers=NO_CACHE)

    @router.get("/")
    @router.get("/status")
    async def status() -> JSONResponse:
        return JSONResponse(provider().model_dump(mode="json", by_alias=True), headers=NO_CACHE)

    return router


def create_status_app(provider: StatusProvider) -> FastAPI:
    app = FastAPI(title="craftbot status", version=__version__, docs_url=None, redoc_url=None)
    app.include_router(status_router(provider))
    return app


class _Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to the application."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class StatusServer:
    """Runs the status app as a task on the current loop."""

    def __init__(self, provider: StatusProvider, host: str, port: int) -> None:
        self.host = host
        self.port = port
        config = uvicorn.Config(
            create_status_app(provider),
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
            lifespan="off",
        )
        self._server = _Server(config)
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        logger.info("status_server_starting", host=self.host, port=self.port)
        self._task = asyncio.create_task(self._serve())

    async def _serve(self) -> None:
        try:
            await self._server.serve()
        except (OSError, SystemExit) as e:
            # Port in use: the bot keeps running without a status endpoint.
            logger.error("status_server_failed", host=self.host, port=self.port, error=str(e))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._server.should_exit = True
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("status_server_stopped")
