"""
Typed views over the tracked JSON documents.

The stores are written by other components and may carry fields this package
does not know about. Each model keeps the fields it understands as typed
attributes and everything else in an `extras` bag, together with the original
key order, so a rewrite only changes the keys/paths that were migrated.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from trackkeys.core import DocumentDecodeError, DocumentWriteError

logger = logging.getLogger(__name__)


def _ordered(
    key_order: tuple[str, ...],
    known: dict[str, Any],
    extras: dict[str, Any],
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in key_order:
        if key in known:
            out[key] = known[key]
        elif key in extras:
            out[key] = extras[key]
    # Fields added after loading go last.
    for key, value in known.items():
        out.setdefault(key, value)
    return out


@dataclass(frozen=True, slots=True)
class TrackRecord:
    """A track object inside a user playlist. `path` is None when absent or not a string."""

    path: str | None
    extras: dict[str, Any] = field(default_factory=dict)
    key_order: tuple[str, ...] = ()

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> TrackRecord:
        raw_path = obj.get("path")
        if isinstance(raw_path, str):
            extras = {k: v for k, v in obj.items() if k != "path"}
            return cls(path=raw_path, extras=extras, key_order=tuple(obj))
        return cls(path=None, extras=dict(obj), key_order=tuple(obj))

    def with_path(self, path: str) -> TrackRecord:
        return replace(self, path=path)

    def to_object(self) -> dict[str, Any]:
        known = {"path": self.path} if self.path is not None else {}
        return _ordered(self.key_order, known, self.extras)


@dataclass(frozen=True, slots=True)
class PlaylistRecord:
    """
    A user playlist. `tracks` is None when the playlist has no usable track
    list (missing, not a list, or not a list of objects); it is then kept as-is.
    """

    tracks: list[TrackRecord] | None
    extras: dict[str, Any] = field(default_factory=dict)
    key_order: tuple[str, ...] = ()

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> PlaylistRecord:
        raw_tracks = obj.get("tracks")
        if isinstance(raw_tracks, list) and all(isinstance(t, dict) for t in raw_tracks):
            extras = {k: v for k, v in obj.items() if k != "tracks"}
            tracks = [TrackRecord.from_object(t) for t in raw_tracks]
            return cls(tracks=tracks, extras=extras, key_order=tuple(obj))
        return cls(tracks=None, extras=dict(obj), key_order=tuple(obj))

    def with_tracks(self, tracks: list[TrackRecord]) -> PlaylistRecord:
        return replace(self, tracks=tracks)

    def to_object(self) -> dict[str, Any]:
        known: dict[str, Any] = {}
        if self.tracks is not None:
            known["tracks"] = [t.to_object() for t in self.tracks]
        return _ordered(self.key_order, known, self.extras)


@dataclass(slots=True)
class JsonDocument:
    """
    A tracked file's top-level object.

    `fields` holds the recognized (and already shape-checked) values; their
    concrete types depend on the field rule that decoded them.
    """

    fields: dict[str, Any]
    extras: dict[str, Any] = field(default_factory=dict)
    key_order: tuple[str, ...] = ()

    def to_object(self) -> dict[str, Any]:
        known = {name: _plain(value) for name, value in self.fields.items()}
        return _ordered(self.key_order, known, self.extras)


def _plain(value: Any) -> Any:
    if isinstance(value, (PlaylistRecord, TrackRecord)):
        return value.to_object()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def read_json_object(path: Path) -> dict[str, Any]:
    """
    Load a JSON object from `path`.

    Raises:
        FileNotFoundError: the file does not exist (callers treat this as "nothing to do").
        DocumentDecodeError: unreadable bytes, invalid JSON, or a non-object root.
    """
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        raise
    except OSError as e:
        raise DocumentDecodeError(f"{path.name}: cannot read: {e}") from e

    try:
        root = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DocumentDecodeError(f"{path.name}: invalid JSON: {e}") from e

    if not isinstance(root, dict):
        raise DocumentDecodeError(f"{path.name}: root is {type(root).__name__}, expected object")
    return root


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    """
    Replace `path` with `payload` via a sibling temp file.

    The original file is untouched if serialization or the replace fails.
    """
    try:
        output = json.dumps(
            payload,
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise DocumentWriteError(f"{path.name}: cannot serialize: {e}") from e

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp_path.write_bytes(output)
        tmp_path.replace(path)
    except OSError as e:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            logger.debug("Could not remove temp file %s", tmp_path)
        raise DocumentWriteError(f"{path.name}: cannot write: {e}") from e
