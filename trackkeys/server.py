"""
trackkeys - Main Server Module

TrackKeysServer wires the preferences store, the one-shot path-key migration
and the optional reporting web server, and owns their lifecycle.
"""

import asyncio
import logging
import signal

from trackkeys.config import AppConfig, get_config
from trackkeys.core.migration_service import PathKeyMigrationService
from trackkeys.core.migrator import IncrementalRunResult
from trackkeys.core.preferences_db import PreferencesDb
from trackkeys.web.server import WebServer

logger = logging.getLogger(__name__)


class TrackKeysServer:
    """
    Startup sequence for a host process.

    Order matters: the migration must finish before any other component opens
    the tracked store files, so `start()` runs it before starting anything else.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        serve_web: bool = False,
        force_migration: bool = False,
    ) -> None:
        """
        Initialize the server.

        Args:
            config: Application configuration (defaults to the global config).
            serve_web: Start the reporting web server after the migration.
            force_migration: Ignore the stored run state.
        """
        self.config = config or get_config()
        self.serve_web = serve_web
        self.force_migration = force_migration

        storage = self.config.storage
        self.preferences = PreferencesDb(storage.preferences_db_path)
        self.migration_service = PathKeyMigrationService(
            base_dir=storage.app_support_dir,
            preferences=self.preferences,
            state_key=self.config.migration.state_key,
        )
        self.web_server: WebServer | None = None
        self.migration_report: IncrementalRunResult | None = None

        self._running = False
        self._shutdown_event: asyncio.Event | None = None

    async def start(self) -> None:
        """Open preferences, migrate, then start the optional web server."""
        logger.info("Starting trackkeys for %s", self.config.storage.app_support_dir)

        self._running = True
        self._shutdown_event = asyncio.Event()

        await self.preferences.open()
        await self.preferences.ensure_schema()

        if self.config.migration.enabled:
            self.migration_report = await self.migration_service.run_once(
                force=self.force_migration
            )
        else:
            logger.info("Path-key migration disabled by configuration")

        if self.serve_web:
            self.web_server = WebServer(self.migration_service)
            await self.web_server.start(host=self.config.web.host, port=self.config.web.port)

    async def stop(self) -> None:
        """Stop all components gracefully."""
        if not self._running:
            return

        logger.info("Stopping trackkeys...")
        self._running = False

        if self.web_server:
            await self.web_server.stop()
            self.web_server = None

        await self.preferences.close()

        if self._shutdown_event:
            self._shutdown_event.set()

        logger.info("trackkeys stopped")

    async def run(self) -> IncrementalRunResult | None:
        """
        Start, and when serving, wait for SIGINT/SIGTERM before stopping.

        Returns:
            The migration report, or None when the migration is disabled.
        """
        await self.start()

        if self.serve_web:
            loop = asyncio.get_running_loop()

            def handle_signal() -> None:
                logger.info("Received shutdown signal")
                if self._shutdown_event:
                    self._shutdown_event.set()

            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.add_signal_handler(sig, handle_signal)
                except NotImplementedError:
                    # Signal handlers not supported on Windows
                    pass

            if self._shutdown_event:
                await self._shutdown_event.wait()

        await self.stop()
        return self.migration_report

    @property
    def is_running(self) -> bool:
        return self._running
