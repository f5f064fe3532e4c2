# tests/integration/test_int_avatar_lifecycle.py - v1
"""End-to-end: Pillow conversion, local store and SQLite cache together.

No external services; everything runs on tmp_path.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest
from PIL import Image

from avatarkit.cache.sqlite_store import SqliteCacheStore
from avatarkit.conversion.pillow_converter import PillowImageConverter
from avatarkit.core.cache_busting import remove_timestamp
from avatarkit.core.models import AvatarData, AvatarLoading
from avatarkit.identity.static_source import StaticIdentitySource
from avatarkit.services.avatar_service import AvatarService
from avatarkit.storage.local_store import LocalObjectStore


def _build(tmp_path, identity_source, clock, cache_store) -> AvatarService:
    return AvatarService(
        store=LocalObjectStore(tmp_path / "bucket", public_base_url="https://cdn.example.com"),
        identity_source=identity_source,
        converter=PillowImageConverter(output_dir=tmp_path / "converted"),
        cache_store=cache_store,
        cache_ttl=timedelta(hours=24),
        max_dimension=128,
        clock=clock,
    )


async def _next(sub):
    return await asyncio.wait_for(sub.__anext__(), 5.0)


class TestAvatarLifecycle:
    @pytest.mark.asyncio
    async def test_upload_resolve_delete(self, tmp_path, sample_png, clock):
        cache_store = SqliteCacheStore(tmp_path / "cache.db")
        source = StaticIdentitySource("alice")
        service = _build(tmp_path, source, clock, cache_store)
        states = service.subscribe()

        async with service:
            assert isinstance(await _next(states), AvatarLoading)
            assert await _next(states) == AvatarData(location=None)

            progress: list[float] = []
            result = await service.upload_for_current_identity(
                sample_png, on_progress=progress.append
            )
            assert await _next(states) == AvatarData(location=result.location)

            assert remove_timestamp(result.location) == (
                "https://cdn.example.com/avatars/alice/avatar.webp"
            )
            assert progress[-1] == 1.0
            stored = tmp_path / "bucket" / "avatars" / "alice" / "avatar.webp"
            with Image.open(stored) as img:
                assert img.format == "WEBP"
                assert max(img.size) == 128
            assert sample_png.exists()

            await service.delete_for_current_identity()
            assert await _next(states) == AvatarData(location=None)
            assert not stored.exists()
            assert await service.resolve("alice") is None
        cache_store.close()

    @pytest.mark.asyncio
    async def test_persistent_cache_survives_restart(self, tmp_path, sample_jpeg, clock):
        first_cache = SqliteCacheStore(tmp_path / "cache.db")
        first = _build(tmp_path, StaticIdentitySource("bob"), clock, first_cache)
        result = await first.upload_for_current_identity(sample_jpeg)
        first_cache.close()

        # Remove the object behind the cache's back: only L2 can answer now
        (tmp_path / "bucket" / "avatars" / "bob" / "avatar.webp").unlink()

        second_cache = SqliteCacheStore(tmp_path / "cache.db")
        second = _build(tmp_path, StaticIdentitySource("bob"), clock, second_cache)
        assert await second.resolve("bob") == result.location

        clock.advance(hours=24, seconds=1)
        assert await second.resolve("bob") is None
        second_cache.close()
