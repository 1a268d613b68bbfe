"""
SQLite key-value store using aiosqlite.

Snapshots are stored as JSON text in a single ``kv_store`` table.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from nexmind.core.storage.base import KeyValueStore
from nexmind.utils.exceptions import StoreError


class SQLiteKeyValueStore(KeyValueStore):
    """
    SQLite-backed snapshot store.

    Shares its database file with SQLiteNoteRepository when both are enabled.
    """

    def __init__(self, db_path: str = "data/nexmind.db"):
        """
        Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file (":memory:" for tests)
        """
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None
        self._initialized = False

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Open the connection once."""
        if self.connection is None:
            self.connection = await aiosqlite.connect(self.db_path)
            if self.db_path != ":memory:":
                await self.connection.execute("PRAGMA journal_mode = WAL")
            await self.connection.commit()

    async def initialize(self) -> None:
        """Create the table (once per connection)."""
        if self._initialized:
            return
        await self.connect()
        await self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """
        )
        await self.connection.commit()
        self._initialized = True

    async def get(self, key: str) -> Any | None:
        await self.initialize()
        async with self.connection.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupted value for key '{key}'", context={"key": key}) from e

    async def set(self, key: str, value: Any) -> None:
        await self.initialize()
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Value for key '{key}' is not JSON serializable") from e

        await self.connection.execute(
            """
            INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, payload, datetime.now().isoformat()),
        )
        await self.connection.commit()

    async def delete(self, key: str) -> None:
        await self.initialize()
        await self.connection.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await self.connection.commit()

    async def keys(self) -> list[str]:
        await self.initialize()
        async with self.connection.execute("SELECT key FROM kv_store ORDER BY key") as cursor:
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def close(self) -> None:
        """Close database connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None
            self._initialized = False
