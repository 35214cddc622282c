"""
Idempotency gate for the path-key migration.

The migration is expensive in the worst case (directory listings for every
legacy key), so each run records a signature (existence, size, mtime) of the
tracked files. On the next launch the signatures are recomputed and, if they
match the stored state, nothing else happens.

Signatures only decide *whether* to migrate. They are never used to judge the
correctness of migrated content.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

logger = logging.getLogger(__name__)

# Bump to force exactly one re-migration on every installation.
MIGRATION_STATE_VERSION: Final[int] = 1


@dataclass(frozen=True, slots=True)
class FileSignature:
    """`missing()` or `present(size, mtime_ns)`. A zero-length file is present."""

    exists: bool
    size: int = 0
    mtime_ns: int = 0

    @classmethod
    def missing(cls) -> FileSignature:
        return cls(exists=False)

    @classmethod
    def present(cls, size: int, mtime_ns: int) -> FileSignature:
        return cls(exists=True, size=size, mtime_ns=mtime_ns)

    def to_dict(self) -> dict[str, Any]:
        if not self.exists:
            return {"exists": False}
        return {"exists": True, "size": self.size, "mtimeNs": self.mtime_ns}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileSignature:
        exists = data.get("exists")
        if exists is False:
            return cls.missing()
        size = data.get("size")
        mtime_ns = data.get("mtimeNs")
        if exists is not True or not isinstance(size, int) or not isinstance(mtime_ns, int):
            raise ValueError(f"invalid file signature: {data!r}")
        return cls.present(size, mtime_ns)


@dataclass(frozen=True, slots=True)
class MigrationState:
    """Persisted snapshot of the tracked files after the last successful run."""

    version: int
    signatures: dict[str, FileSignature] = field(default_factory=dict)

    def to_json(self) -> str:
        payload = {
            "version": self.version,
            "signatures": {name: sig.to_dict() for name, sig in sorted(self.signatures.items())},
        }
        return json.dumps(payload, separators=(",", ":"), sort_keys=True)

    @classmethod
    def from_json(cls, text: str | None) -> MigrationState | None:
        """
        Decode a stored state.

        Returns None for absent or unreadable data; a bad record simply means
        "never migrated" and the next run rebuilds it.
        """
        if not text:
            return None
        try:
            data = json.loads(text)
            version = data["version"]
            raw = data["signatures"]
            if not isinstance(version, int) or not isinstance(raw, dict):
                raise ValueError("unexpected state shape")
            signatures = {str(name): FileSignature.from_dict(sig) for name, sig in raw.items()}
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable path-key migration state: %s", e)
            return None
        return cls(version=version, signatures=signatures)


def compute_signature(path: Path) -> FileSignature:
    """Stat a tracked file. Any stat failure counts as missing."""
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return FileSignature.missing()
    except OSError as e:
        logger.debug("Cannot stat %s, treating as missing: %s", path, e)
        return FileSignature.missing()
    return FileSignature.present(st.st_size, st.st_mtime_ns)


def compute_signatures(base_dir: Path, file_names: Iterable[str]) -> dict[str, FileSignature]:
    return {name: compute_signature(base_dir / name) for name in file_names}


def current_state(base_dir: Path, file_names: Iterable[str]) -> MigrationState:
    return MigrationState(
        version=MIGRATION_STATE_VERSION,
        signatures=compute_signatures(base_dir, file_names),
    )


def is_up_to_date(current: MigrationState, stored: MigrationState | None) -> bool:
    """True when the stored state matches the live one, format version included."""
    if stored is None:
        return False
    return current == stored
