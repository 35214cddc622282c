"""
Application preferences store.

A small key/value table in SQLite (aiosqlite). The path-key migration keeps its
run state here under a fixed key; the record is opaque to everyone else.
"""

from __future__ import annotations

from pathlib import Path

import aiosqlite

from trackkeys.core.db.schema import ensure_schema as ensure_schema_sql


class PreferencesDb:
    """
    Async access layer for persisted preferences.

    Usage:
        prefs = PreferencesDb("trackkeys-preferences.sqlite3")
        await prefs.open()
        await prefs.ensure_schema()
        value = await prefs.get("someKey")
        await prefs.close()
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> None:
        if self._conn is not None:
            return
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row
        await self._conn.execute("PRAGMA journal_mode = WAL;")
        await self._conn.execute("PRAGMA synchronous = NORMAL;")

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("PreferencesDb is not open. Call await prefs.open() first.")
        return self._conn

    async def ensure_schema(self) -> None:
        conn = self._require_conn()
        await ensure_schema_sql(conn)

    async def get(self, key: str) -> str | None:
        conn = self._require_conn()
        cursor = await conn.execute("SELECT value FROM preferences WHERE key = ?;", (key,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return str(row["value"])

    async def set(self, key: str, value: str) -> None:
        conn = self._require_conn()
        await conn.execute(
            """
            INSERT INTO preferences(key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value      = excluded.value,
                updated_at = strftime('%s', 'now')
            """,
            (key, value),
        )
        await conn.commit()

    async def delete(self, key: str) -> bool:
        """Remove `key`. Returns True if it existed."""
        conn = self._require_conn()
        cursor = await conn.execute("DELETE FROM preferences WHERE key = ?;", (key,))
        await conn.commit()
        return cursor.rowcount > 0
