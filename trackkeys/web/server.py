"""
Web Server Module for trackkeys.

Creates and manages the FastAPI application that exposes the migration report
and path-key lookups. The server is read-only; it never touches the stores.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI

from trackkeys import __version__
from trackkeys.web.routes.api import register_api_routes

if TYPE_CHECKING:
    from trackkeys.core.migration_service import PathKeyMigrationService

logger = logging.getLogger(__name__)


class WebServer:
    """FastAPI-based reporting server."""

    def __init__(self, migration_service: PathKeyMigrationService) -> None:
        self.migration_service = migration_service

        self.app = FastAPI(
            title="trackkeys",
            description="Path-key canonicalization and store migration",
            version=__version__,
        )

        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._host = "127.0.0.1"
        self._port = 9100

        self._register_routes()

    def _register_routes(self) -> None:
        @self.app.get("/health")
        async def health_check() -> dict[str, str]:
            """Health check endpoint."""
            return {"status": "ok", "server": "trackkeys"}

        register_api_routes(self.app, migration_service=self.migration_service)

    async def start(self, host: str = "127.0.0.1", port: int = 9100) -> None:
        """
        Start the web server in the background.

        Args:
            host: Host address to bind to
            port: Port to listen on
        """
        self._host = host
        self._port = port

        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)
        self._serve_task = asyncio.create_task(self._server.serve())

        logger.info("Web server started on http://%s:%d", host, port)

    async def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
            self._server = None
        if self._serve_task is not None:
            await self._serve_task
            self._serve_task = None

        logger.info("Web server stopped")

    @property
    def port(self) -> int:
        return self._port

    @property
    def host(self) -> str:
        return self._host
