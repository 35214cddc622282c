"""
Tests for trackkeys.core.tracked_files.

Tests cover:
- the six tracked store schemas
- unknown top-level and per-entry fields preserved
- required vs. optional fields
- no rewrite when nothing changed
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from trackkeys.core import DocumentDecodeError
from trackkeys.core.resolver import DirectoryCaseResolver
from trackkeys.core.tracked_files import (
    TRACKED_FILES,
    FileStatus,
    TrackedFile,
    decode_document,
    migrate_tracked_file,
)

# =============================================================================
# Helpers
# =============================================================================


def tracked(file_name: str) -> TrackedFile:
    return next(t for t in TRACKED_FILES if t.file_name == file_name)


def write_store(base_dir: Path, file_name: str, payload: Any) -> Path:
    path = base_dir / file_name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def read_store(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


# =============================================================================
# Tests
# =============================================================================


class TestTrackedFiles:
    """Tests for the tracked file table."""

    def test_six_stores(self) -> None:
        assert [t.file_name for t in TRACKED_FILES] == [
            "metadata-cache.json",
            "duration-cache.json",
            "volume-cache.json",
            "playback-weights.json",
            "playlist.json",
            "user-playlists.json",
        ]

    def test_field_names(self) -> None:
        assert tracked("playback-weights.json").field_names == ("queueLevels", "playlistLevels")


class TestDecodeDocument:
    """Tests for decode_document()."""

    def test_missing_required_field(self) -> None:
        with pytest.raises(DocumentDecodeError, match="entries"):
            decode_document(tracked("metadata-cache.json"), {"version": 1})

    def test_wrong_type_required_field(self) -> None:
        with pytest.raises(DocumentDecodeError):
            decode_document(tracked("playlist.json"), {"paths": ["/a.mp3", 3]})

    def test_wrong_type_optional_field_kept_as_extra(self) -> None:
        doc = decode_document(tracked("playback-weights.json"), {"queueLevels": [1, 2]})
        assert doc.fields == {}
        assert doc.to_object() == {"queueLevels": [1, 2]}


class TestPathMapStores:
    """metadata-cache.json, duration-cache.json, volume-cache.json."""

    def test_metadata_cache(self, tmp_path: Path, resolver: DirectoryCaseResolver) -> None:
        path = write_store(
            tmp_path,
            "metadata-cache.json",
            {
                "version": 3,
                "entries": {
                    "/music/song.mp3": {"title": "Song", "artist": "X"},
                    "/Music/A.mp3": {"title": "A"},
                },
            },
        )
        outcome = migrate_tracked_file(tmp_path, tracked("metadata-cache.json"), resolver)

        assert outcome.status == FileStatus.CHANGED
        assert outcome.changed_entries == 1
        data = read_store(path)
        assert list(data) == ["version", "entries"]
        assert data["entries"] == {
            "/Music/Song.mp3": {"title": "Song", "artist": "X"},
            "/Music/A.mp3": {"title": "A"},
        }

    def test_volume_cache(self, tmp_path: Path, resolver: DirectoryCaseResolver) -> None:
        path = write_store(
            tmp_path,
            "volume-cache.json",
            {"loudnessDbByPath": {"/music/b.mp3": -14.5, "/Music/B.mp3": -9.0}},
        )
        outcome = migrate_tracked_file(tmp_path, tracked("volume-cache.json"), resolver)

        assert outcome.changed_entries == 1
        assert read_store(path) == {"loudnessDbByPath": {"/Music/B.mp3": -9.0}}

    def test_absent_file(self, tmp_path: Path, resolver: DirectoryCaseResolver) -> None:
        outcome = migrate_tracked_file(tmp_path, tracked("duration-cache.json"), resolver)
        assert outcome.status == FileStatus.UNCHANGED
        assert not (tmp_path / "duration-cache.json").exists()

    def test_unchanged_file_not_rewritten(
        self, tmp_path: Path, resolver: DirectoryCaseResolver
    ) -> None:
        path = tmp_path / "duration-cache.json"
        original = b'{\n  "entries": {"/Music/A.mp3": 180.5}\n}\n'
        path.write_bytes(original)

        outcome = migrate_tracked_file(tmp_path, tracked("duration-cache.json"), resolver)

        assert outcome.status == FileStatus.UNCHANGED
        assert path.read_bytes() == original

    def test_invalid_json_raises(self, tmp_path: Path, resolver: DirectoryCaseResolver) -> None:
        (tmp_path / "volume-cache.json").write_text("{oops")
        with pytest.raises(DocumentDecodeError):
            migrate_tracked_file(tmp_path, tracked("volume-cache.json"), resolver)


class TestPlaybackWeights:
    """playback-weights.json: two optional fields, one of them nested."""

    def test_both_fields(self, tmp_path: Path, resolver: DirectoryCaseResolver) -> None:
        path = write_store(
            tmp_path,
            "playback-weights.json",
            {
                "queueLevels": {"/music/a.mp3": 2},
                "playlistLevels": {"P1": {"/music/b.mp3": 1}, "broken": 5},
                "schema": 1,
            },
        )
        outcome = migrate_tracked_file(tmp_path, tracked("playback-weights.json"), resolver)

        assert outcome.changed_entries == 2
        assert read_store(path) == {
            "queueLevels": {"/Music/A.mp3": 2},
            "playlistLevels": {"P1": {"/Music/B.mp3": 1}, "broken": 5},
            "schema": 1,
        }

    def test_bad_optional_field_left_alone(
        self, tmp_path: Path, resolver: DirectoryCaseResolver
    ) -> None:
        path = write_store(
            tmp_path,
            "playback-weights.json",
            {"queueLevels": ["/music/a.mp3"], "playlistLevels": {"P1": {"/music/a.mp3": 3}}},
        )
        outcome = migrate_tracked_file(tmp_path, tracked("playback-weights.json"), resolver)

        assert outcome.changed_entries == 1
        assert read_store(path) == {
            "queueLevels": ["/music/a.mp3"],
            "playlistLevels": {"P1": {"/Music/A.mp3": 3}},
        }

    def test_no_known_fields(self, tmp_path: Path, resolver: DirectoryCaseResolver) -> None:
        write_store(tmp_path, "playback-weights.json", {"other": {}})
        outcome = migrate_tracked_file(tmp_path, tracked("playback-weights.json"), resolver)
        assert outcome.status == FileStatus.UNCHANGED


class TestQueueAndPlaylists:
    """playlist.json and user-playlists.json."""

    def test_queue_snapshot(self, tmp_path: Path, resolver: DirectoryCaseResolver) -> None:
        path = write_store(
            tmp_path,
            "playlist.json",
            {"paths": ["/music/a.mp3", "/Music/B.mp3", "/music/./a.mp3"], "currentIndex": 1},
        )
        outcome = migrate_tracked_file(tmp_path, tracked("playlist.json"), resolver)

        assert outcome.changed_entries == 2
        assert read_store(path) == {"paths": ["/Music/A.mp3", "/Music/B.mp3"], "currentIndex": 1}

    def test_user_playlists(self, tmp_path: Path, resolver: DirectoryCaseResolver) -> None:
        path = write_store(
            tmp_path,
            "user-playlists.json",
            {
                "playlists": [
                    {
                        "id": "p1",
                        "name": "Mix",
                        "tracks": [
                            {"path": "/music/song.mp3", "title": "S"},
                            {"path": "/Music/Song.mp3", "title": "dup"},
                            {"title": "stream", "url": "http://radio"},
                        ],
                    },
                    {"id": "p2", "tracks": "broken"},
                ],
                "selected": "p1",
            },
        )
        outcome = migrate_tracked_file(tmp_path, tracked("user-playlists.json"), resolver)

        assert outcome.changed_entries == 2
        assert read_store(path) == {
            "playlists": [
                {
                    "id": "p1",
                    "name": "Mix",
                    "tracks": [
                        {"path": "/Music/Song.mp3", "title": "S"},
                        {"title": "stream", "url": "http://radio"},
                    ],
                },
                {"id": "p2", "tracks": "broken"},
            ],
            "selected": "p1",
        }

    def test_playlists_not_objects(self, tmp_path: Path, resolver: DirectoryCaseResolver) -> None:
        write_store(tmp_path, "user-playlists.json", {"playlists": ["a", "b"]})
        with pytest.raises(DocumentDecodeError):
            migrate_tracked_file(tmp_path, tracked("user-playlists.json"), resolver)
