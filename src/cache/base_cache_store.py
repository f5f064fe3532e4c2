# src/cache/base_cache_store.py - v1
"""Abstract persistent cache backend (the L2 tier)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from avatarkit.cache.models import CacheEntry


class BaseCacheStore(ABC):
    """Unified interface for persistent identity -> location backends.

    Implementations store raw entries and never evaluate TTL; validity is
    decided by the cache manager at read time.
    """

    async def init(self) -> None:
        """Prepare the backend (open files, connections). Idempotent."""

    def close(self) -> None:
        """Release connections or handles. Idempotent; init() reopens."""

    @abstractmethod
    async def get(self, identity: str) -> CacheEntry | None:
        """Retrieve the stored entry for identity, or None."""

    @abstractmethod
    async def put(self, identity: str, location: str, recorded_at: datetime) -> None:
        """Store (replace) the entry for identity."""

    @abstractmethod
    async def delete(self, identity: str) -> None:
        """Remove the entry for identity. No error if absent."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry."""
