"""
Preferences database schema + migrations.

Design notes:
- SQLite `PRAGMA user_version` is the schema version.
- Migrations are forward-only (no downgrade support).
- The store is a plain key/value table; values are opaque text owned by the
  component that wrote them.
"""

from __future__ import annotations

from typing import Final

import aiosqlite

# Bump when you change the schema and add a step in `migrate()`.
SCHEMA_VERSION: Final[int] = 1


async def ensure_schema(conn: aiosqlite.Connection) -> None:
    """Create or migrate the schema to the current version."""
    cursor = await conn.execute("PRAGMA user_version;")
    row = await cursor.fetchone()
    current = int(row[0]) if row is not None else 0

    if current > SCHEMA_VERSION:
        raise RuntimeError(
            f"Preferences schema version {current} is newer than supported {SCHEMA_VERSION}."
        )

    if current == SCHEMA_VERSION:
        return

    await migrate(conn, from_version=current, to_version=SCHEMA_VERSION)
    await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION};")
    await conn.commit()


async def migrate(conn: aiosqlite.Connection, *, from_version: int, to_version: int) -> None:
    """Perform forward-only migrations."""
    # v0 -> v1
    if from_version == 0 and to_version >= 1:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS preferences (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now'))
            )
            """
        )
        await conn.commit()
        from_version = 1
