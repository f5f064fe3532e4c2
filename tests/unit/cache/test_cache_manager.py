# tests/unit/cache/test_cache_manager.py - v1
"""Tests for cache/cache_manager.py: two-tier lookup with lazy TTL expiry."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from avatarkit.cache.cache_manager import AvatarCacheManager
from avatarkit.cache.json_store import JsonCacheStore
from avatarkit.core.errors import CacheBackendError

URL = "https://cdn.example.com/avatars/alice/avatar.webp"


@pytest.fixture
def l2(tmp_path):
    return JsonCacheStore(cache_root=tmp_path / "l2")


class TestMemoryOnly:
    @pytest.mark.asyncio
    async def test_set_get(self, clock):
        cache = AvatarCacheManager(clock=clock)
        await cache.init()
        await cache.set("alice", URL)
        assert await cache.get("alice") == URL

    @pytest.mark.asyncio
    async def test_miss(self, clock):
        cache = AvatarCacheManager(clock=clock)
        assert await cache.get("alice") is None

    @pytest.mark.asyncio
    async def test_expired_entry_not_returned(self, clock):
        cache = AvatarCacheManager(ttl=timedelta(hours=24), clock=clock)
        await cache.set("alice", URL)
        clock.advance(hours=24, seconds=1)
        assert await cache.get("alice") is None
        # Removal is deferred; the entry is still held but never served
        assert cache.peek("alice") is not None

    @pytest.mark.asyncio
    async def test_no_ttl_never_expires(self, clock):
        cache = AvatarCacheManager(ttl=None, clock=clock)
        await cache.set("alice", URL)
        clock.advance(days=3650)
        assert await cache.get("alice") == URL

    @pytest.mark.asyncio
    async def test_set_stamps_current_time(self, clock):
        cache = AvatarCacheManager(clock=clock)
        await cache.set("alice", "old")
        first = cache.peek("alice").recorded_at
        clock.advance(seconds=5)
        await cache.set("alice", "new")
        second = cache.peek("alice")
        assert second.location == "new"
        assert second.recorded_at > first

    @pytest.mark.asyncio
    async def test_delete_absent_is_fine(self, clock):
        cache = AvatarCacheManager(clock=clock)
        await cache.delete("ghost")


class TestTwoTier:
    @pytest.mark.asyncio
    async def test_write_through(self, l2, clock):
        cache = AvatarCacheManager(store=l2, clock=clock)
        await cache.init()
        await cache.set("alice", URL)
        stored = await l2.get("alice")
        assert stored.location == URL
        assert stored.recorded_at == clock.now

    @pytest.mark.asyncio
    async def test_promotion_from_l2(self, l2, clock):
        await l2.init()
        await l2.put("alice", URL, clock.now)
        cache = AvatarCacheManager(ttl=timedelta(hours=1), store=l2, clock=clock)
        await cache.init()
        assert cache.peek("alice") is None

        assert await cache.get("alice") == URL
        promoted = cache.peek("alice")
        assert promoted is not None
        assert promoted.location == URL

    @pytest.mark.asyncio
    async def test_l1_hit_skips_l2(self, clock):
        l2 = AsyncMock()
        cache = AvatarCacheManager(store=l2, clock=clock)
        await cache.set("alice", URL)
        assert await cache.get("alice") == URL
        l2.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_expired_l2_entry_is_miss(self, l2, clock):
        await l2.init()
        await l2.put("alice", URL, clock.now - timedelta(hours=2))
        cache = AvatarCacheManager(ttl=timedelta(hours=1), store=l2, clock=clock)
        assert await cache.get("alice") is None
        assert cache.peek("alice") is None

    @pytest.mark.asyncio
    async def test_tiers_hold_independent_copies(self, l2, clock):
        await l2.init()
        await l2.put("alice", URL, clock.now)
        cache = AvatarCacheManager(store=l2, clock=clock)
        await cache.get("alice")
        await l2.put("alice", "https://elsewhere", clock.now)
        # L1 is warm; L2 changes are not pulled until an L1 miss
        assert await cache.get("alice") == URL

    @pytest.mark.asyncio
    async def test_l2_read_failure_is_miss(self, clock):
        l2 = AsyncMock()
        l2.get.side_effect = ConnectionError("redis down")
        cache = AvatarCacheManager(store=l2, clock=clock)
        assert await cache.get("alice") is None

    @pytest.mark.asyncio
    async def test_l2_write_failure_surfaces_and_keeps_l1(self, clock):
        l2 = AsyncMock()
        l2.put.side_effect = OSError("disk full")
        cache = AvatarCacheManager(store=l2, clock=clock)
        with pytest.raises(CacheBackendError, match="disk full"):
            await cache.set("alice", URL)
        assert await cache.get("alice") == URL

    @pytest.mark.asyncio
    async def test_l2_delete_failure_surfaces(self, clock):
        l2 = AsyncMock()
        l2.delete.side_effect = OSError("denied")
        cache = AvatarCacheManager(store=l2, clock=clock)
        await cache.set("alice", URL)
        with pytest.raises(CacheBackendError):
            await cache.delete("alice")
        assert cache.peek("alice") is None

    @pytest.mark.asyncio
    async def test_delete_both_tiers(self, l2, clock):
        cache = AvatarCacheManager(store=l2, clock=clock)
        await cache.init()
        await cache.set("alice", URL)
        await cache.delete("alice")
        assert await cache.get("alice") is None
        assert await l2.get("alice") is None

    @pytest.mark.asyncio
    async def test_clear_twice(self, l2, clock):
        cache = AvatarCacheManager(store=l2, clock=clock)
        await cache.init()
        await cache.set("a", "1")
        await cache.set("b", "2")
        await cache.clear()
        await cache.clear()
        assert len(cache) == 0
        assert await l2.get("a") is None
        assert await l2.get("b") is None


class TestCleanExpired:
    @pytest.mark.asyncio
    async def test_noop_without_ttl(self, clock):
        cache = AvatarCacheManager(clock=clock)
        await cache.set("a", "1")
        clock.advance(days=365)
        assert cache.clean_expired() == 0
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_sweeps_l1_only(self, clock):
        l2 = AsyncMock()
        cache = AvatarCacheManager(ttl=timedelta(minutes=10), store=l2, clock=clock)
        await cache.set("old", "1")
        clock.advance(minutes=11)
        await cache.set("fresh", "2")
        assert cache.clean_expired() == 1
        assert cache.peek("old") is None
        assert cache.peek("fresh") is not None
        l2.delete.assert_not_called()
        l2.clear.assert_not_called()



class TestClose:
    def test_closes_store(self, clock):
        l2 = AsyncMock()
        l2.close = MagicMock()
        AvatarCacheManager(store=l2, clock=clock).close()
        l2.close.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_memory_kept(self, clock):
        cache = AvatarCacheManager(clock=clock)
        await cache.set("alice", URL)
        cache.close()
        assert await cache.get("alice") == URL
