# src/cache/json_store.py - v1
"""JSON file-based cache store (default CACHE_BACKEND=json).

Stores one JSON file per identity under CACHE_ROOT.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from avatarkit.cache.base_cache_store import BaseCacheStore
from avatarkit.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_FILE_PREFIX = "avatar_"


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()

    async def init(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, identity: str) -> CacheEntry | None:
        """Retrieve cache entry by identity."""
        path = self._entry_path(identity)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return CacheEntry(**data)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning("Failed to read cache entry %s: %s", identity, e)
            return None

    async def put(self, identity: str, location: str, recorded_at: datetime) -> None:
        """Store a cache entry."""
        entry = CacheEntry(location=location, recorded_at=recorded_at)
        path = self._entry_path(identity)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(entry.model_dump_json(), encoding="utf-8")

    async def delete(self, identity: str) -> None:
        """Remove a cache entry."""
        self._entry_path(identity).unlink(missing_ok=True)

    async def clear(self) -> None:
        """Remove every cache file."""
        if not self._root.is_dir():
            return
        for path in self._root.glob(f"{_FILE_PREFIX}*.json"):
            path.unlink(missing_ok=True)

    def _entry_path(self, identity: str) -> Path:
        """Return file path for an identity."""
        safe_key = identity.replace("/", "_").replace("\\", "_")
        return self._root / f"{_FILE_PREFIX}{safe_key}.json"
