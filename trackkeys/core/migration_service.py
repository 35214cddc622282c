"""
Host-facing wrapper around the path-key migration.

The host calls `run_once()` early in its startup sequence, before any component
opens the tracked stores. The service:

- loads the previous run state from the preferences store
- runs the synchronous migration on the calling thread (one run at a time)
- persists the new state only after a fully successful run
- publishes a `PathKeyMigrationEvent`, whose `warning_text` names the failed
  files for the host to show

The completion and failure log lines come from the migrator; the service only
adds a debug line.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from trackkeys.core.events import EventBus, PathKeyMigrationEvent, event_bus
from trackkeys.core.migrator import IncrementalRunResult, run_incremental_migration
from trackkeys.core.preferences_db import PreferencesDb
from trackkeys.core.state import MigrationState

logger = logging.getLogger(__name__)

DEFAULT_STATE_KEY = "pathKeyDiskMigrationState"


class PathKeyMigrationService:
    """One-shot path-key migration for a single process."""

    def __init__(
        self,
        *,
        base_dir: Path,
        preferences: PreferencesDb,
        state_key: str = DEFAULT_STATE_KEY,
        bus: EventBus | None = None,
    ) -> None:
        self._base_dir = base_dir
        self._preferences = preferences
        self._state_key = state_key
        self._bus = bus if bus is not None else event_bus
        self._lock = asyncio.Lock()
        self._last_run: IncrementalRunResult | None = None

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def last_run(self) -> IncrementalRunResult | None:
        """Report of the run this process performed, if any."""
        return self._last_run

    async def stored_state(self) -> MigrationState | None:
        return MigrationState.from_json(await self._preferences.get(self._state_key))

    async def run_once(self, *, force: bool = False) -> IncrementalRunResult:
        """
        Run the migration if it has not run in this process yet.

        Args:
            force: Ignore the stored state and migrate even if the tracked files
                look unchanged.

        Returns:
            The report of this process's run (repeated calls return the first one).
        """
        async with self._lock:
            if self._last_run is not None:
                return self._last_run

            previous = None if force else await self.stored_state()
            # Runs on the calling thread; no other component has the stores open yet.
            outcome = run_incremental_migration(self._base_dir, previous)

            if outcome.saved_state is not None:
                await self._preferences.set(self._state_key, outcome.saved_state.to_json())

            self._last_run = outcome

        await self._report(outcome)
        return outcome

    async def _report(self, outcome: IncrementalRunResult) -> None:
        result = outcome.result
        if not outcome.did_run:
            status = "skipped"
        elif result.succeeded:
            status = "completed"
        else:
            status = "failed"

        event = PathKeyMigrationEvent(
            status=status,
            changed_files=result.changed_files,
            changed_entries=result.changed_entries,
            failed_files=result.failed_files,
        )

        logger.debug(
            "Path-key migration %s (files changed: %d, entries migrated: %d)",
            status,
            result.changed_files,
            result.changed_entries,
        )

        await self._bus.publish(event)
