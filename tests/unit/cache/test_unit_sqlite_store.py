# tests/unit/cache/test_sqlite_store.py - v1
"""Tests for cache/sqlite_store.py: full functional tests (stdlib sqlite3)."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from avatarkit.cache.sqlite_store import SqliteCacheStore

TS = datetime(2026, 2, 16, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    return SqliteCacheStore(db_path=tmp_path / "test_cache.db")


class TestSqliteCacheStore:
    @pytest.mark.asyncio
    async def test_requires_init(self, store):
        with pytest.raises(RuntimeError, match="init"):
            await store.get("alice")

    @pytest.mark.asyncio
    async def test_put_and_get(self, store):
        await store.init()
        await store.put("alice", "https://x/a.webp?t=1", TS)
        entry = await store.get("alice")
        assert entry.location == "https://x/a.webp?t=1"
        assert entry.recorded_at == TS

    @pytest.mark.asyncio
    async def test_upsert_replaces(self, store):
        await store.init()
        await store.put("alice", "old", TS)
        await store.put("alice", "new", TS)
        assert (await store.get("alice")).location == "new"

    @pytest.mark.asyncio
    async def test_delete_and_clear(self, store):
        await store.init()
        await store.put("a", "1", TS)
        await store.put("b", "2", TS)
        await store.delete("a")
        await store.delete("missing")
        assert await store.get("a") is None
        await store.clear()
        assert await store.get("b") is None

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        db = tmp_path / "shared.db"
        first = SqliteCacheStore(db_path=db)
        await first.init()
        await first.put("alice", "https://x/a.webp", TS)
        first.close()

        second = SqliteCacheStore(db_path=db)
        await second.init()
        assert (await second.get("alice")).location == "https://x/a.webp"
        second.close()

    @pytest.mark.asyncio
    async def test_init_idempotent(self, store):
        await store.init()
        await store.init()
        await store.put("a", "1", TS)
        assert await store.get("a") is not None
