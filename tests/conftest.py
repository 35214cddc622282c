"""
Shared fixtures.

`FakeTree` stands in for `os.listdir` so resolver behaviour does not depend on
whether the machine running the tests has a case-insensitive filesystem.
"""

from __future__ import annotations

import posixpath
from collections.abc import Callable

import pytest

from trackkeys.core.resolver import DirectoryCaseResolver, ResolverCache


class FakeTree:
    """In-memory directory tree built from absolute file paths."""

    def __init__(self, *files: str) -> None:
        self.dirs: dict[str, set[str]] = {"/": set()}
        self.files: set[str] = set()
        self.calls: list[str] = []
        for path in files:
            parts = [p for p in path.split("/") if p]
            current = "/"
            for index, part in enumerate(parts):
                self.dirs.setdefault(current, set()).add(part)
                current = posixpath.join(current, part)
                if index < len(parts) - 1:
                    self.dirs.setdefault(current, set())
            self.files.add(current)

    def __call__(self, directory: str) -> list[str]:
        self.calls.append(directory)
        if directory in self.dirs:
            return list(self.dirs[directory])
        if directory in self.files:
            raise NotADirectoryError(directory)
        raise FileNotFoundError(directory)


@pytest.fixture
def make_tree() -> Callable[..., FakeTree]:
    """Build a FakeTree from absolute file paths."""
    return FakeTree


@pytest.fixture
def fake_tree() -> FakeTree:
    return FakeTree(
        "/Users/x/Music/Song.mp3",
        "/Users/x/Music/Other.flac",
        "/Users/x/Podcasts/Ep1.mp3",
        "/Music/Song.mp3",
        "/Music/A.mp3",
        "/Music/B.mp3",
        "/A/x.mp3",
    )


@pytest.fixture
def resolver(fake_tree: FakeTree) -> DirectoryCaseResolver:
    return DirectoryCaseResolver(ResolverCache(list_dir=fake_tree))

