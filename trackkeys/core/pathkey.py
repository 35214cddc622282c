"""
Path keys for the persisted stores.

Every store (metadata, durations, loudness, weights, queue snapshot, user
playlists) addresses a file on disk by a string key. Two forms exist:

- canonical: POSIX-standardized path in Unicode NFC
- legacy:    canonical lower-cased (written by older versions of the stores)

Readers should probe `lookup_keys(path)` in order: the canonical key first,
then the legacy one. Everything here is pure string work, no filesystem access.
"""

from __future__ import annotations

import os
import posixpath
import unicodedata
from collections.abc import MutableMapping
from typing import TypeVar

V = TypeVar("V")

PathLike = str | os.PathLike[str]


def _standardize(path: str) -> str:
    if not path:
        return path
    standardized = posixpath.normpath(path)
    # normpath keeps exactly two leading slashes (POSIX "implementation defined")
    if standardized.startswith("//"):
        standardized = "/" + standardized.lstrip("/")
    return standardized


def canonical(path: PathLike) -> str:
    """Return the canonical key for `path`."""
    raw = os.fspath(path)
    return unicodedata.normalize("NFC", _standardize(raw))


def legacy(path: PathLike) -> str:
    """Return the lower-cased key used by older versions of the stores."""
    return canonical(path).lower()


def lookup_keys(path: PathLike) -> list[str]:
    """
    Keys to probe when reading a store, most trustworthy first.

    Returns `[canonical]` when the path has no upper-case characters,
    otherwise `[canonical, legacy]`.
    """
    primary = canonical(path)
    secondary = primary.lower()
    if primary == secondary:
        return [primary]
    return [primary, secondary]


def lookup(
    mapping: MutableMapping[str, V],
    path: PathLike,
    *,
    promote: bool = False,
) -> V | None:
    """
    Find the value stored for `path` under any of its lookup keys.

    With `promote=True`, a value found under the legacy key is moved to the
    canonical key so subsequent reads hit directly.
    """
    keys = lookup_keys(path)
    primary = keys[0]
    if primary in mapping:
        return mapping[primary]

    for key in keys[1:]:
        if key in mapping:
            value = mapping[key]
            if promote:
                mapping[primary] = value
                del mapping[key]
            return value
    return None


def remove_key_variants(mapping: MutableMapping[str, object], path: PathLike) -> bool:
    """Remove both the canonical and legacy keys of `path`. Returns True if any existed."""
    removed = False
    for key in (canonical(path), legacy(path)):
        if key in mapping:
            del mapping[key]
            removed = True
    return removed
