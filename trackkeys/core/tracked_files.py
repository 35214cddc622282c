"""
The six persisted stores and how their path keys are migrated.

Instead of one migrator per file, each file is described by a list of field
rules. A rule names a top-level field and the shape of the paths inside it:

- PATH_MAP:         {path: value}
- NESTED_PATH_MAP:  {id: {path: value}}   (ids are never altered)
- PATH_ARRAY:       [path]
- PLAYLIST_TRACKS:  [{..., "tracks": [{"path": ..., ...}]}]

A required field that is missing or has the wrong type makes the whole file a
decode failure. An optional field with the wrong type is left alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Final

from trackkeys.core import DocumentDecodeError
from trackkeys.core.documents import (
    JsonDocument,
    PlaylistRecord,
    read_json_object,
    write_json_atomic,
)
from trackkeys.core.keys import migrate_path_array, migrate_path_map, migrate_track_objects
from trackkeys.core.resolver import DirectoryCaseResolver

logger = logging.getLogger(__name__)


class FieldMode(Enum):
    """Shape of the paths stored in a field."""

    PATH_MAP = "map"
    NESTED_PATH_MAP = "nested_map"
    PATH_ARRAY = "array"
    PLAYLIST_TRACKS = "playlist_tracks"


class FileStatus(Enum):
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FieldRule:
    name: str
    mode: FieldMode
    required: bool = True


@dataclass(frozen=True, slots=True)
class TrackedFile:
    """A store file the migration owns, by name relative to the app support dir."""

    file_name: str
    rules: tuple[FieldRule, ...]

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(rule.name for rule in self.rules)


@dataclass(frozen=True, slots=True)
class FileMigrationOutcome:
    file_name: str
    status: FileStatus
    changed_entries: int = 0
    error: str | None = None


# Order matters only for logging; files are migrated independently.
TRACKED_FILES: Final[tuple[TrackedFile, ...]] = (
    TrackedFile("metadata-cache.json", (FieldRule("entries", FieldMode.PATH_MAP),)),
    TrackedFile("duration-cache.json", (FieldRule("entries", FieldMode.PATH_MAP),)),
    TrackedFile("volume-cache.json", (FieldRule("loudnessDbByPath", FieldMode.PATH_MAP),)),
    TrackedFile(
        "playback-weights.json",
        (
            FieldRule("queueLevels", FieldMode.PATH_MAP, required=False),
            FieldRule("playlistLevels", FieldMode.NESTED_PATH_MAP, required=False),
        ),
    ),
    TrackedFile("playlist.json", (FieldRule("paths", FieldMode.PATH_ARRAY),)),
    TrackedFile("user-playlists.json", (FieldRule("playlists", FieldMode.PLAYLIST_TRACKS),)),
)


def _decode_field(rule: FieldRule, value: Any) -> Any:
    """Return the typed value for `rule`, or raise ValueError on a shape mismatch."""
    if rule.mode in (FieldMode.PATH_MAP, FieldMode.NESTED_PATH_MAP):
        if not isinstance(value, dict):
            raise ValueError(f"expected object, got {type(value).__name__}")
        return value

    if rule.mode == FieldMode.PATH_ARRAY:
        if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
            raise ValueError("expected a list of strings")
        return value

    if rule.mode == FieldMode.PLAYLIST_TRACKS:
        if not isinstance(value, list) or not all(isinstance(p, dict) for p in value):
            raise ValueError("expected a list of objects")
        return [PlaylistRecord.from_object(p) for p in value]

    raise ValueError(f"unknown field mode {rule.mode!r}")


def decode_document(tracked: TrackedFile, root: dict[str, Any]) -> JsonDocument:
    """Split `root` into recognized fields and extras according to the file's rules."""
    fields: dict[str, Any] = {}
    for rule in tracked.rules:
        if rule.name not in root:
            if rule.required:
                raise DocumentDecodeError(f"{tracked.file_name}: missing field {rule.name!r}")
            continue
        try:
            fields[rule.name] = _decode_field(rule, root[rule.name])
        except ValueError as e:
            if rule.required:
                raise DocumentDecodeError(f"{tracked.file_name}: field {rule.name!r}: {e}") from e
            logger.debug("%s: leaving optional field %r as-is: %s", tracked.file_name, rule.name, e)

    extras = {k: v for k, v in root.items() if k not in fields}
    return JsonDocument(fields=fields, extras=extras, key_order=tuple(root))


def _migrate_nested_map(
    nested: dict[str, Any],
    resolver: DirectoryCaseResolver,
) -> tuple[dict[str, Any], int]:
    out: dict[str, Any] = {}
    changed = 0
    for scope_id, value in nested.items():
        if not isinstance(value, dict):
            out[scope_id] = value
            continue
        migrated, count = migrate_path_map(value, resolver)
        out[scope_id] = migrated
        changed += count
    return out, changed


def _migrate_playlists(
    playlists: list[PlaylistRecord],
    resolver: DirectoryCaseResolver,
) -> tuple[list[PlaylistRecord], int]:
    out: list[PlaylistRecord] = []
    changed = 0
    for playlist in playlists:
        if playlist.tracks is None:
            out.append(playlist)
            continue
        tracks, count = migrate_track_objects(playlist.tracks, resolver)
        out.append(playlist.with_tracks(tracks) if count else playlist)
        changed += count
    return out, changed


def migrate_field(rule: FieldRule, value: Any, resolver: DirectoryCaseResolver) -> tuple[Any, int]:
    """Migrate one decoded field. Returns the new value and its changed-entry count."""
    if rule.mode == FieldMode.PATH_MAP:
        return migrate_path_map(value, resolver)
    if rule.mode == FieldMode.NESTED_PATH_MAP:
        return _migrate_nested_map(value, resolver)
    if rule.mode == FieldMode.PATH_ARRAY:
        return migrate_path_array(value, resolver)
    if rule.mode == FieldMode.PLAYLIST_TRACKS:
        return _migrate_playlists(value, resolver)
    raise ValueError(f"unknown field mode {rule.mode!r}")


def migrate_document(
    tracked: TrackedFile,
    document: JsonDocument,
    resolver: DirectoryCaseResolver,
) -> int:
    """Migrate every recognized field of `document` in place. Returns total changed entries."""
    total = 0
    for rule in tracked.rules:
        if rule.name not in document.fields:
            continue
        migrated, changed = migrate_field(rule, document.fields[rule.name], resolver)
        if changed:
            document.fields[rule.name] = migrated
            total += changed
    return total


def migrate_tracked_file(
    base_dir: Path,
    tracked: TrackedFile,
    resolver: DirectoryCaseResolver,
) -> FileMigrationOutcome:
    """
    Migrate one store file.

    - absent file: unchanged
    - no entry changed: unchanged, file not rewritten
    - otherwise: atomically rewritten

    Raises:
        DocumentDecodeError: the file exists but cannot be decoded.
        DocumentWriteError: the migrated content cannot be written back.
    """
    path = base_dir / tracked.file_name
    try:
        root = read_json_object(path)
    except FileNotFoundError:
        return FileMigrationOutcome(tracked.file_name, FileStatus.UNCHANGED)

    document = decode_document(tracked, root)
    changed = migrate_document(tracked, document, resolver)
    if changed == 0:
        return FileMigrationOutcome(tracked.file_name, FileStatus.UNCHANGED)

    write_json_atomic(path, document.to_object())
    logger.debug("Migrated %d entries in %s", changed, tracked.file_name)
    return FileMigrationOutcome(tracked.file_name, FileStatus.CHANGED, changed_entries=changed)
