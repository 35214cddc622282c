"""
Core domain package.

This package holds the path-key logic and the on-disk key migration. It does
not know about the web layer or the CLI; both import from the specific module
they need (e.g. `trackkeys.core.pathkey` or `trackkeys.core.migrator`).
"""

from __future__ import annotations

__all__: list[str] = [
    "CoreError",
    "DocumentDecodeError",
    "DocumentWriteError",
]


class CoreError(Exception):
    """Base class for core-layer exceptions."""


class DocumentDecodeError(CoreError):
    """Raised when a tracked JSON file cannot be read or has an unexpected shape."""


class DocumentWriteError(CoreError):
    """Raised when migrated content cannot be serialized or atomically replaced."""
