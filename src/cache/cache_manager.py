# src/cache/cache_manager.py - v1
"""Two-tier avatar location cache: in-process dict (L1) over a persistent store (L2).

Read-through with promotion into L1, write-through to L2. Expiry is lazy:
TTL is checked against ``recorded_at`` at read time, so there is no
background sweeper. ``clean_expired`` only sweeps L1; stale L2 entries are
filtered on read and overwritten by the next successful write.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from avatarkit.cache.base_cache_store import BaseCacheStore
from avatarkit.cache.models import CacheEntry, utc_now
from avatarkit.core.errors import CacheBackendError

logger = logging.getLogger(__name__)


class AvatarCacheManager:
    """Resolve and persist identity -> location mappings with TTL validity.

    L1 and L2 hold independent copies of each entry. L1 is refreshed from L2
    on a miss, never the reverse. L1 is only mutated from the owning event
    loop, and every mutation is a single dict operation, so concurrent tasks
    see last-write-wins semantics without locking.
    """

    def __init__(
        self,
        ttl: timedelta | None = None,
        store: BaseCacheStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._ttl = ttl
        self._store = store
        self._clock = clock
        self._memory: dict[str, CacheEntry] = {}

    @property
    def ttl(self) -> timedelta | None:
        return self._ttl

    @property
    def store(self) -> BaseCacheStore | None:
        return self._store

    async def init(self) -> None:
        """Initialise the persistent tier, if any."""
        if self._store is not None:
            await self._store.init()

    async def get(self, identity: str) -> str | None:
        """Return the cached location for identity, or None on miss/expiry.

        A persistent-tier read failure is logged and treated as a miss.
        """
        now = self._clock()
        cached = self._memory.get(identity)
        if cached is not None and cached.is_valid(self._ttl, now):
            return cached.location

        if self._store is None:
            return None

        try:
            stored = await self._store.get(identity)
        except Exception as e:
            logger.warning("Persistent cache read failed for %s: %s", identity, e)
            return None

        if stored is not None and stored.is_valid(self._ttl, now):
            self._memory[identity] = stored.model_copy()
            logger.debug("Promoted %s from persistent cache", identity)
            return stored.location

        return None

    async def set(self, identity: str, location: str) -> None:
        """Cache location for identity, stamped with the current time.

        L1 is written first and kept even if the persistent write fails.

        Raises:
            CacheBackendError: If the persistent tier rejects the write.
        """
        recorded_at = self._clock()
        self._memory[identity] = CacheEntry(location=location, recorded_at=recorded_at)

        if self._store is None:
            return
        try:
            await self._store.put(identity, location, recorded_at)
        except Exception as e:
            raise CacheBackendError(
                f"Persistent cache write failed for {identity!r}: {e}"
            ) from e

    async def delete(self, identity: str) -> None:
        """Remove identity from both tiers. Absent entries are not an error."""
        self._memory.pop(identity, None)

        if self._store is None:
            return
        try:
            await self._store.delete(identity)
        except Exception as e:
            raise CacheBackendError(
                f"Persistent cache delete failed for {identity!r}: {e}"
            ) from e

    async def clear(self) -> None:
        """Remove every entry from both tiers. Safe to call repeatedly."""
        self._memory.clear()

        if self._store is None:
            return
        try:
            await self._store.clear()
        except Exception as e:
            raise CacheBackendError(f"Persistent cache clear failed: {e}") from e

    def close(self) -> None:
        """Close the L2 store. L1 entries are kept."""
        if self._store is not None:
            self._store.close()

    def clean_expired(self) -> int:
        """Drop expired L1 entries; returns how many were removed."""
        if self._ttl is None:
            return 0
        now = self._clock()
        expired = [k for k, v in self._memory.items() if not v.is_valid(self._ttl, now)]
        for identity in expired:
            self._memory.pop(identity, None)
        if expired:
            logger.debug("Swept %d expired in-memory entries", len(expired))
        return len(expired)

    def peek(self, identity: str) -> CacheEntry | None:
        """Raw L1 entry for identity, without a validity check."""
        return self._memory.get(identity)

    def __len__(self) -> int:
        return len(self._memory)
