"""
Recover the on-disk casing of a path.

Legacy keys were lower-cased before being stored, so `/users/x/music/song.mp3`
has to be walked component by component against real directory listings to
find `/Users/x/Music/Song.mp3`.

Design notes:
- One listing per unique directory for a whole migration run (`ResolverCache`)
- A listing failure is cached as well ("cannot resolve further")
- Missing files and directories are expected; the unresolved tail is kept
  verbatim instead of dropping the path
"""

from __future__ import annotations

import logging
import os
import posixpath
import unicodedata
from collections.abc import Callable

logger = logging.getLogger(__name__)

ListDir = Callable[[str], list[str]]


def _fold(name: str) -> str:
    """Case- and width-insensitive comparison key."""
    return unicodedata.normalize("NFKC", name).casefold()


class ResolverCache:
    """
    Directory listings for a single migration run.

    Maps an absolute directory path to its sorted entry names, or None when the
    directory could not be listed. Never persisted.
    """

    def __init__(self, list_dir: ListDir = os.listdir) -> None:
        self._list_dir = list_dir
        self._entries: dict[str, tuple[str, ...] | None] = {}
        self.listings = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, directory: str) -> bool:
        return directory in self._entries

    def entries(self, directory: str) -> tuple[str, ...] | None:
        if directory in self._entries:
            return self._entries[directory]

        self.listings += 1
        try:
            names: tuple[str, ...] | None = tuple(sorted(self._list_dir(directory)))
        except OSError as e:
            logger.debug("Cannot list %s: %s", directory, e)
            names = None
        self._entries[directory] = names
        return names


class DirectoryCaseResolver:
    """Resolve absolute paths case-insensitively against live directory listings."""

    def __init__(self, cache: ResolverCache | None = None) -> None:
        self.cache = cache if cache is not None else ResolverCache()

    def resolve_component(self, component: str, directory: str) -> str | None:
        """Return the on-disk spelling of `component` inside `directory`, if any."""
        entries = self.cache.entries(directory)
        if entries is None:
            return None

        for entry in entries:
            if entry == component or unicodedata.normalize("NFC", entry) == component:
                return entry

        wanted = _fold(component)
        for entry in entries:
            if _fold(entry) == wanted:
                return entry
        return None

    def resolve(self, absolute_path: str) -> str:
        """
        Walk `absolute_path` left to right, substituting the on-disk spelling of
        each component.

        Stops at the first component that cannot be matched and appends the rest
        unchanged. Never raises for filesystem reasons.
        """
        normalized = posixpath.normpath(absolute_path)
        if normalized.startswith("//"):
            normalized = "/" + normalized.lstrip("/")
        components = [c for c in normalized.split("/") if c]
        if not components:
            return normalized

        current = "/"
        for index, component in enumerate(components):
            matched = self.resolve_component(component, current)
            if matched is None:
                remaining = "/".join(components[index:])
                return posixpath.join(current, remaining)
            current = posixpath.join(current, matched)
        return current
