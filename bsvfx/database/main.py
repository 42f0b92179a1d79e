"""
Database - Key/value store behind application settings.

Usage:
    db = Database('data/bsvfx.db')
    await db.connect()
    await db.set_setting('preferred_currency', 'EUR')
    currency = await db.get_setting('preferred_currency')
    await db.close()

Only settings (including the user's preferred currency) are stored here.
Exchange rates are kept in memory and never persisted.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import aiosqlite

from bsvfx.database.schemas import SCHEMA

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data"
DEFAULT_PATH = DATA_DIR / "bsvfx.db"


class Database:
    """Settings store on top of a single aiosqlite connection."""

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path) if path is not None else DEFAULT_PATH
        self._connection: Optional[aiosqlite.Connection] = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def conn(self) -> aiosqlite.Connection:
        """Get database connection."""
        if not self._connection:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    @property
    def connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> "Database":
        """Connect to database and initialize schema."""
        if self._connection is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._path)
            self._connection.row_factory = aiosqlite.Row
            await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute("PRAGMA busy_timeout=30000")
            await self._connection.executescript(SCHEMA)
            await self._connection.commit()
            logger.info(f"Database connected at {self._path}")
        return self

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    async def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting value by key."""
        cursor = await self.conn.execute("SELECT value FROM settings WHERE key = ?", (key,))
        row = await cursor.fetchone()
        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except (json.JSONDecodeError, TypeError):
            return row["value"]

    async def set_setting(self, key: str, value: Any) -> None:
        """Set a setting value."""
        json_value = json.dumps(value) if not isinstance(value, str) else value
        await self.conn.execute(
            "INSERT OR REPLACE INTO settings (key, value, updated_at) VALUES (?, ?, datetime('now'))",
            (key, json_value),
        )
        await self.conn.commit()

    async def delete_setting(self, key: str) -> bool:
        """Delete a setting. Returns True if it existed."""
        cursor = await self.conn.execute("DELETE FROM settings WHERE key = ?", (key,))
        await self.conn.commit()
        return cursor.rowcount > 0

    async def get_all_settings(self) -> dict:
        """Get all settings as a dictionary."""
        cursor = await self.conn.execute("SELECT key, value FROM settings")
        rows = await cursor.fetchall()
        result = {}
        for row in rows:
            try:
                result[row["key"]] = json.loads(row["value"])
            except (json.JSONDecodeError, TypeError):
                result[row["key"]] = row["value"]
        return result
