# src/cache/sqlite_store.py - v1
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from avatarkit.cache.base_cache_store import BaseCacheStore
from avatarkit.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS avatar_cache (
    identity TEXT PRIMARY KEY,
    location TEXT NOT NULL,
    recorded_at TEXT NOT NULL
);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store surviving process restarts."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._conn: sqlite3.Connection | None = None

    async def init(self) -> None:
        if self._conn is not None:
            return
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    @property
    def _db(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("SqliteCacheStore not initialized. Call init() first.")
        return self._conn

    async def get(self, identity: str) -> CacheEntry | None:
        """Retrieve cache entry by identity."""
        row = self._db.execute(
            "SELECT location, recorded_at FROM avatar_cache WHERE identity = ?",
            (identity,),
        ).fetchone()
        if row is None:
            return None
        try:
            return CacheEntry(
                location=row[0], recorded_at=datetime.fromisoformat(row[1])
            )
        except ValueError as e:
            logger.warning("Failed to deserialize cache entry %s: %s", identity, e)
            return None

    async def put(self, identity: str, location: str, recorded_at: datetime) -> None:
        """Store a cache entry (upsert)."""
        self._db.execute(
            """INSERT OR REPLACE INTO avatar_cache (identity, location, recorded_at)
               VALUES (?, ?, ?)""",
            (identity, location, recorded_at.isoformat()),
        )
        self._db.commit()

    async def delete(self, identity: str) -> None:
        """Remove a cache entry."""
        self._db.execute("DELETE FROM avatar_cache WHERE identity = ?", (identity,))
        self._db.commit()

    async def clear(self) -> None:
        self._db.execute("DELETE FROM avatar_cache")
        self._db.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
