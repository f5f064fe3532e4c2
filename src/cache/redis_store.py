# src/cache/redis_store.py - v1
"""Redis-based cache store (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for multi-instance deployments sharing one persistent tier.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from avatarkit.cache.base_cache_store import BaseCacheStore
from avatarkit.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_KEY_PREFIX = "avatarkit:cache:"
_INDEX_KEY = "avatarkit:cache:__index__"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed cache store."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def init(self) -> None:
        self._client.ping()

    async def get(self, identity: str) -> CacheEntry | None:
        """Retrieve cache entry by identity."""
        data = self._client.get(f"{_KEY_PREFIX}{identity}")
        if data is None:
            return None
        try:
            return CacheEntry(**json.loads(data))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning("Failed to deserialize cache entry %s: %s", identity, e)
            return None

    async def put(self, identity: str, location: str, recorded_at: datetime) -> None:
        """Store a cache entry."""
        entry = CacheEntry(location=location, recorded_at=recorded_at)
        self._client.set(f"{_KEY_PREFIX}{identity}", entry.model_dump_json())
        # Index of identities so clear() need not SCAN the keyspace
        self._client.sadd(_INDEX_KEY, identity)

    async def delete(self, identity: str) -> None:
        """Remove a cache entry."""
        self._client.delete(f"{_KEY_PREFIX}{identity}")
        self._client.srem(_INDEX_KEY, identity)

    async def clear(self) -> None:
        for identity in self._client.smembers(_INDEX_KEY):
            self._client.delete(f"{_KEY_PREFIX}{identity}")
        self._client.delete(_INDEX_KEY)

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()
