"""
Shared key migration primitives.

All schema migrators reduce to three shapes:
- a map keyed by path          -> `migrate_path_map`
- an ordered list of paths     -> `migrate_path_array`
- an ordered list of tracks    -> `migrate_track_objects` (by their path)

Each returns the migrated structure plus a changed-entry count. An entry is
changed when its key/path changed or when it was dropped as a duplicate; it is
counted once either way. Values are never touched.

Only legacy (all lower-case) paths are resolved against the filesystem, with
one exception: entries of the same collection that differ only by case are
all resolved, so that case variants of one file collapse to its on-disk
spelling instead of surviving side by side.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from trackkeys.core import pathkey
from trackkeys.core.documents import TrackRecord
from trackkeys.core.resolver import DirectoryCaseResolver

logger = logging.getLogger(__name__)


def is_legacy_lowercased_key(key: str) -> bool:
    """
    Heuristic: an all-lowercase path is a migration candidate.

    Real media paths nearly always carry upper-case somewhere (artist, album,
    file name). A genuinely lower-case path is just re-probed and comes back
    unchanged.
    """
    return key == key.lower()


def migrate_path_key(
    raw_path: str,
    resolver: DirectoryCaseResolver,
    *,
    force_resolve: bool = False,
) -> str:
    """
    Return the canonical, case-resolved key for `raw_path`.

    Relative paths are only canonicalized. Absolute non-legacy paths are only
    canonicalized too, unless `force_resolve` is set.
    """
    standardized = pathkey.canonical(raw_path)
    if not standardized.startswith("/"):
        return standardized
    if not force_resolve and not is_legacy_lowercased_key(standardized):
        return standardized

    resolved = resolver.resolve(standardized)
    return pathkey.canonical(resolved)


def case_collisions(paths: Iterable[str]) -> set[str]:
    """Legacy forms shared by two or more distinct canonical paths."""
    variants: dict[str, set[str]] = {}
    for path in paths:
        key = pathkey.canonical(path)
        variants.setdefault(key.lower(), set()).add(key)
    return {folded for folded, keys in variants.items() if len(keys) > 1}


def _needs_resolve(path: str, collisions: set[str]) -> bool:
    return bool(collisions) and pathkey.legacy(path) in collisions


def _migration_order(keys: Sequence[str], migrated: Sequence[str]) -> list[int]:
    # Non-legacy keys first; within a group, keys already in migrated form
    # before rewritten ones; then lexical.
    return sorted(
        range(len(keys)),
        key=lambda i: (is_legacy_lowercased_key(keys[i]), migrated[i] != keys[i], keys[i]),
    )


def migrate_path_map(
    raw_map: Mapping[str, Any],
    resolver: DirectoryCaseResolver,
) -> tuple[dict[str, Any], int]:
    """
    Migrate the keys of a path-keyed map.

    When several keys land on the same migrated key, the one processed first
    wins: mixed-case keys are processed before legacy lower-case ones, and a
    key already spelled as on disk before a variant that had to be rewritten,
    so the trustworthy value survives. Surviving entries keep their original order.
    """
    if not raw_map:
        return dict(raw_map), 0

    keys = list(raw_map.keys())
    collisions = case_collisions(keys)
    winners: dict[str, int] = {}
    changed = 0

    migrated_keys = [
        migrate_path_key(key, resolver, force_resolve=_needs_resolve(key, collisions))
        for key in keys
    ]

    for index in _migration_order(keys, migrated_keys):
        key = keys[index]
        migrated_key = migrated_keys[index]
        if migrated_key in winners:
            logger.debug("Dropping duplicate key %r (collides on %r)", key, migrated_key)
            changed += 1
            continue
        winners[migrated_key] = index
        if migrated_key != key:
            changed += 1

    survivors = sorted(winners.items(), key=lambda item: item[1])
    migrated = {new_key: raw_map[keys[index]] for new_key, index in survivors}
    return migrated, changed


def migrate_path_array(
    raw_paths: Sequence[str],
    resolver: DirectoryCaseResolver,
) -> tuple[list[str], int]:
    """Migrate a list of paths, keeping the first occurrence of each canonical key."""
    collisions = case_collisions(raw_paths)
    migrated: list[str] = []
    seen: set[str] = set()
    changed = 0

    for path in raw_paths:
        migrated_path = migrate_path_key(
            path, resolver, force_resolve=_needs_resolve(path, collisions)
        )
        dedup_key = pathkey.canonical(migrated_path)
        if dedup_key in seen:
            changed += 1
            continue
        seen.add(dedup_key)
        migrated.append(migrated_path)
        if migrated_path != path:
            changed += 1

    return migrated, changed


def migrate_track_objects(
    raw_tracks: Sequence[TrackRecord],
    resolver: DirectoryCaseResolver,
) -> tuple[list[TrackRecord], int]:
    """
    Same rule as `migrate_path_array`, applied to tracks by their path.

    Tracks without a string path are kept as they are. Other fields on each
    track are preserved.
    """
    collisions = case_collisions(t.path for t in raw_tracks if t.path is not None)
    migrated: list[TrackRecord] = []
    seen: set[str] = set()
    changed = 0

    for track in raw_tracks:
        if track.path is None:
            migrated.append(track)
            continue

        migrated_path = migrate_path_key(
            track.path, resolver, force_resolve=_needs_resolve(track.path, collisions)
        )
        dedup_key = pathkey.canonical(migrated_path)
        if dedup_key in seen:
            changed += 1
            continue
        seen.add(dedup_key)

        if migrated_path != track.path:
            track = track.with_path(migrated_path)
            changed += 1
        migrated.append(track)

    return migrated, changed
