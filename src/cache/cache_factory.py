# src/cache/cache_factory.py - v1
"""Factory for persistent cache store instantiation."""

from __future__ import annotations

from avatarkit.cache.base_cache_store import BaseCacheStore
from avatarkit.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore | None:
    """Instantiate the configured persistent cache backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseCacheStore, or None when CACHE_BACKEND=none
        (memory-only caching).
    """
    backend = "json" if settings is None else settings.cache_backend
    cache_root = "~/.avatarkit/cache" if settings is None else str(settings.cache_root)

    if backend == "none":
        return None

    if backend == "json":
        from avatarkit.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=cache_root)

    if backend == "sqlite":
        from avatarkit.cache.sqlite_store import SqliteCacheStore
        return SqliteCacheStore(db_path=f"{cache_root}/avatarkit_cache.db")

    if backend == "redis":
        from avatarkit.cache.redis_store import RedisCacheStore
        if settings is None or not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheStore(redis_url=settings.cache_redis_url)

    raise ValueError(f"Unsupported cache backend: {backend!r}")
