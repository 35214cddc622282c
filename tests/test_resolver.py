"""
Tests for trackkeys.core.resolver.

Tests cover:
- case- and width-insensitive component matching
- unresolvable remainders kept verbatim
- one directory listing per unique directory (including failures)
- a real directory tree on disk
"""

from __future__ import annotations

from pathlib import Path

from trackkeys.core import pathkey
from trackkeys.core.resolver import DirectoryCaseResolver, ResolverCache


class TestResolve:
    """Tests for DirectoryCaseResolver.resolve()."""

    def test_recovers_on_disk_casing(self, resolver: DirectoryCaseResolver) -> None:
        assert resolver.resolve("/users/x/music/song.mp3") == "/Users/x/Music/Song.mp3"

    def test_exact_path_unchanged(self, resolver: DirectoryCaseResolver) -> None:
        assert resolver.resolve("/Users/x/Music/Song.mp3") == "/Users/x/Music/Song.mp3"

    def test_missing_tail_kept_verbatim(self, resolver: DirectoryCaseResolver) -> None:
        """Resolution stops at the first missing component."""
        result = resolver.resolve("/users/x/music/gone/track.mp3")
        assert result == "/Users/x/Music/gone/track.mp3"

    def test_missing_top_level(self, resolver: DirectoryCaseResolver) -> None:
        assert resolver.resolve("/nowhere/a.mp3") == "/nowhere/a.mp3"

    def test_file_used_as_directory(self, resolver: DirectoryCaseResolver) -> None:
        """A listing failure (not a directory) stops resolution without raising."""
        result = resolver.resolve("/users/x/music/song.mp3/extra")
        assert result == "/Users/x/Music/Song.mp3/extra"

    def test_root(self, resolver: DirectoryCaseResolver) -> None:
        assert resolver.resolve("/") == "/"

    def test_prefers_exact_match(self, make_tree) -> None:
        """On case-sensitive volumes the exact spelling wins over a case variant."""
        tree = make_tree("/Music/Song.mp3", "/Music/song.mp3")
        resolver = DirectoryCaseResolver(ResolverCache(list_dir=tree))
        assert resolver.resolve("/music/song.mp3") == "/Music/song.mp3"

    def test_width_insensitive(self, make_tree) -> None:
        tree = make_tree("/Music/ＡＢＣ.mp3")
        resolver = DirectoryCaseResolver(ResolverCache(list_dir=tree))
        assert resolver.resolve("/music/abc.mp3") == "/Music/ＡＢＣ.mp3"

    def test_decomposed_entry_names(self, make_tree) -> None:
        """Entries stored decomposed still match a composed component."""
        tree = make_tree("/Music/Cafe\u0301.mp3")
        resolver = DirectoryCaseResolver(ResolverCache(list_dir=tree))
        resolved = resolver.resolve("/music/caf\u00e9.mp3")
        assert pathkey.canonical(resolved) == "/Music/Caf\u00e9.mp3"


class TestResolverCache:
    """Tests for listing reuse."""

    def test_one_listing_per_directory(self, fake_tree) -> None:
        cache = ResolverCache(list_dir=fake_tree)
        resolver = DirectoryCaseResolver(cache)

        resolver.resolve("/users/x/music/song.mp3")
        resolver.resolve("/users/x/music/other.flac")
        resolver.resolve("/users/x/podcasts/ep1.mp3")

        assert sorted(fake_tree.calls) == sorted(
            ["/", "/Users", "/Users/x", "/Users/x/Music", "/Users/x/Podcasts"]
        )
        assert cache.listings == 5
        assert len(cache) == 5

    def test_failures_are_cached(self, fake_tree) -> None:
        cache = ResolverCache(list_dir=fake_tree)
        resolver = DirectoryCaseResolver(cache)

        resolver.resolve("/users/x/music/song.mp3/a")
        resolver.resolve("/users/x/music/song.mp3/b")

        assert fake_tree.calls.count("/Users/x/Music/Song.mp3") == 1
        assert cache.entries("/Users/x/Music/Song.mp3") is None

    def test_shared_cache_between_resolvers(self, fake_tree) -> None:
        cache = ResolverCache(list_dir=fake_tree)
        DirectoryCaseResolver(cache).resolve("/music/song.mp3")
        DirectoryCaseResolver(cache).resolve("/music/a.mp3")
        assert fake_tree.calls.count("/Music") == 1


class TestRealFilesystem:
    """Resolution against an actual directory tree."""

    def test_resolves_real_directory(self, tmp_path: Path) -> None:
        folder = tmp_path / "CaseFolder" / "SubFolder"
        folder.mkdir(parents=True)
        song = folder / "TestSong.mp3"
        song.write_bytes(b"ok")

        canonical = pathkey.canonical(str(song))
        resolver = DirectoryCaseResolver()

        assert resolver.resolve(canonical.lower()) == canonical

    def test_missing_directory_on_disk(self, tmp_path: Path) -> None:
        resolver = DirectoryCaseResolver()
        missing = pathkey.canonical(str(tmp_path / "gone" / "song.mp3"))
        assert resolver.resolve(missing) == missing
