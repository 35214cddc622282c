"""
Path-key disk migration orchestrator.

Rewrites legacy (lower-cased, non-NFC) path keys in the six tracked stores to
their canonical form, once, before any other component opens those files.

State machine of an incremental run:

    Start -> compare signatures -> UpToDate -> Done
                                -> Stale -> run all files -> aggregate
                                     -> no failures: persist "after" state -> Done
                                     -> any failure: log, keep stale state -> Done

Keeping the stored state stale after a failure means the next launch simply
retries. The run is synchronous and not re-entrant; callers serialize it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from trackkeys.core import CoreError
from trackkeys.core.resolver import DirectoryCaseResolver
from trackkeys.core.state import MigrationState, current_state, is_up_to_date
from trackkeys.core.tracked_files import (
    TRACKED_FILES,
    FileMigrationOutcome,
    FileStatus,
    TrackedFile,
    migrate_tracked_file,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MigrationResult:
    """Aggregate report handed back to the host."""

    changed_files: int = 0
    changed_entries: int = 0
    failed_files: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return not self.failed_files

    def to_dict(self) -> dict[str, object]:
        return {
            "changedFiles": self.changed_files,
            "changedEntries": self.changed_entries,
            "failedFiles": list(self.failed_files),
        }


@dataclass(frozen=True, slots=True)
class IncrementalRunResult:
    """
    Outcome of `run_incremental_migration`.

    `saved_state` is the state the caller should persist, or None when nothing
    must be written (up to date, or a file failed).
    """

    did_run: bool
    result: MigrationResult = field(default_factory=MigrationResult)
    saved_state: MigrationState | None = None


def _run_file(
    base_dir: Path,
    tracked: TrackedFile,
    resolver: DirectoryCaseResolver,
) -> FileMigrationOutcome:
    try:
        return migrate_tracked_file(base_dir, tracked, resolver)
    except CoreError as e:
        logger.warning("Path-key migration failed for %s: %s", tracked.file_name, e)
        return FileMigrationOutcome(tracked.file_name, FileStatus.FAILED, error=str(e))
    except Exception as e:  # noqa: BLE001 - one broken store must not stop the others
        logger.exception("Unexpected error migrating %s", tracked.file_name)
        return FileMigrationOutcome(
            tracked.file_name,
            FileStatus.FAILED,
            error=f"{type(e).__name__}: {e}",
        )


def migrate_directory(
    base_dir: Path,
    *,
    resolver: DirectoryCaseResolver | None = None,
    tracked_files: Sequence[TrackedFile] = TRACKED_FILES,
) -> MigrationResult:
    """
    Migrate every tracked file under `base_dir`.

    One resolver (and so one directory-listing cache) is shared by all files.
    Failures are isolated per file and reported by name; nothing is raised.
    """
    if resolver is None:
        resolver = DirectoryCaseResolver()

    changed_files = 0
    changed_entries = 0
    failed_files: list[str] = []

    for tracked in tracked_files:
        outcome = _run_file(base_dir, tracked, resolver)
        if outcome.status == FileStatus.CHANGED:
            changed_files += 1
            changed_entries += outcome.changed_entries
        elif outcome.status == FileStatus.FAILED:
            failed_files.append(outcome.file_name)

    if changed_files > 0:
        logger.info(
            "Path-key migration complete: %d files changed, %d entries migrated",
            changed_files,
            changed_entries,
        )

    return MigrationResult(
        changed_files=changed_files,
        changed_entries=changed_entries,
        failed_files=tuple(failed_files),
    )


def run_incremental_migration(
    base_dir: Path,
    previous_state: MigrationState | None,
    *,
    tracked_files: Sequence[TrackedFile] = TRACKED_FILES,
) -> IncrementalRunResult:
    """
    Skip the migration when the tracked files are unchanged since the last
    successful run; otherwise migrate and return the state to persist.
    """
    names = [t.file_name for t in tracked_files]

    before = current_state(base_dir, names)
    if is_up_to_date(before, previous_state):
        logger.debug("Path-key migration state is up to date, skipping")
        return IncrementalRunResult(did_run=False)

    result = migrate_directory(base_dir, tracked_files=tracked_files)
    if not result.succeeded:
        logger.warning(
            "Path-key migration incomplete, failed files: %s",
            ", ".join(result.failed_files),
        )
        return IncrementalRunResult(did_run=True, result=result)

    after = current_state(base_dir, names)
    return IncrementalRunResult(did_run=True, result=result, saved_state=after)
