# src/services/avatar_service.py - v1
"""Avatar orchestrator: conversion, upload, delete, lookup and live state.

Usage:
    service = AvatarService(store=..., identity_source=..., converter=...)
    async with service:
        async for state in service.subscribe():
            ...

The service owns one subscription to the identity source and fans the
resulting ``AvatarState`` values out to any number of subscribers, so
observers never trigger duplicate resolutions.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import AsyncContextManager

from avatarkit.cache.base_cache_store import BaseCacheStore
from avatarkit.cache.cache_manager import AvatarCacheManager
from avatarkit.cache.models import utc_now
from avatarkit.config.settings import ConfigurationError
from avatarkit.conversion.base_converter import BaseImageConverter
from avatarkit.core.broadcast import Broadcast, Subscription
from avatarkit.core.cache_busting import add_timestamp
from avatarkit.core.errors import NoIdentityError
from avatarkit.core.models import (
    AvatarData,
    AvatarFailed,
    AvatarLoading,
    AvatarState,
    UploadResult,
)
from avatarkit.core.paths import (
    DEFAULT_PATH_TEMPLATE,
    build_path,
    content_type_for,
    template_problems,
    validate_identity,
)
from avatarkit.identity.base_identity_source import BaseIdentitySource
from avatarkit.logging.context import set_operation_context
from avatarkit.storage.base_object_store import BaseObjectStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
SuccessCallback = Callable[[str], None]
ErrorCallback = Callable[[BaseException], None]


class AvatarService:
    """Coordinates the avatar of every identity and broadcasts the current one."""

    def __init__(
        self,
        store: BaseObjectStore,
        identity_source: BaseIdentitySource,
        converter: BaseImageConverter,
        cache_store: BaseCacheStore | None = None,
        path_template: str = DEFAULT_PATH_TEMPLATE,
        cache_ttl: timedelta | None = None,
        quality: int = 80,
        max_dimension: int | None = None,
        cache_busting: bool = True,
        serialize_uploads: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Build a fully configured service.

        Args:
            store: Remote object store holding the avatar files.
            identity_source: Current identity and its change stream.
            converter: Image conversion gateway.
            cache_store: Persistent cache tier. None = memory-only cache.
            path_template: Storage path with an ``{identity}`` placeholder.
            cache_ttl: Max age of cached locations. None = never expire.
            quality: Encoder quality (0-100).
            max_dimension: Longest side of converted images, or None.
            cache_busting: Append ``t=<epoch-millis>`` to returned locations.
            serialize_uploads: Serialise uploads/deletes per identity.
            clock: Time source for cache timestamps.

        Raises:
            ConfigurationError: Missing collaborator or invalid parameter.
        """
        errors: list[str] = []
        if store is None:
            errors.append("store is required")
        if identity_source is None:
            errors.append("identity_source is required")
        if converter is None:
            errors.append("converter is required")
        errors.extend(f"path_template: {p}" for p in template_problems(path_template))
        if not 0 <= quality <= 100:
            errors.append("quality must be between 0 and 100")
        if max_dimension is not None and max_dimension <= 0:
            errors.append("max_dimension must be > 0")
        if errors:
            raise ConfigurationError("; ".join(errors))

        self._store = store
        self._identity_source = identity_source
        self._converter = converter
        self._path_template = path_template
        self._quality = quality
        self._max_dimension = max_dimension
        self._cache_busting = cache_busting
        self._serialize_uploads = serialize_uploads

        self.cache = AvatarCacheManager(ttl=cache_ttl, store=cache_store, clock=clock)
        self._states: Broadcast[AvatarState] = Broadcast()
        self._listener: asyncio.Task[None] | None = None
        self._cache_ready = False
        self._identity_locks: dict[str, asyncio.Lock] = {}

    # --- Lifecycle ---

    async def start(self) -> None:
        """Initialise the cache and start following identity changes."""
        await self._ensure_cache()
        if self._listener is None:
            self._listener = asyncio.create_task(self._listen())

    async def close(self) -> None:
        """Stop the identity listener, then release subscriptions and the cache store."""
        if self._listener is not None:
            self._listener.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listener
            self._listener = None
        if not self._states.closed:
            self._states.close()
        if self._cache_ready:
            self.cache.close()
            self._cache_ready = False

    async def __aenter__(self) -> AvatarService:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # --- Observable state ---

    @property
    def current_state(self) -> AvatarState | None:
        """Most recently broadcast state of the current identity's avatar."""
        return self._states.latest

    def subscribe(self, replay: bool = True) -> Subscription[AvatarState]:
        """Stream of AvatarState values, in emission order.

        Args:
            replay: Start with the most recent state, if any.
        """
        return self._states.subscribe(replay=replay)

    # --- Operations ---

    async def resolve(self, identity: str) -> str | None:
        """Location of identity's avatar, or None if it has none.

        Cache first; on a miss the remote store is consulted and a found
        location is cached. A missing avatar is never cached, so the next
        call checks the store again.

        Raises:
            InvalidIdentityError: Before any cache or remote call.
        """
        path = build_path(self._path_template, identity)
        await self._ensure_cache()

        cached = await self.cache.get(identity)
        if cached is not None:
            logger.debug("Cache hit for %s", identity)
            return cached

        if not await self._store.exists(path):
            logger.debug("No avatar stored for %s at %s", identity, path)
            return None

        location = await self._store.get_location(path)
        if location is None:
            return None
        if self._cache_busting:
            location = add_timestamp(location)

        await self.cache.set(identity, location)
        return location

    get_avatar_location = resolve

    async def upload_for_current_identity(
        self,
        source: Path | str,
        on_progress: ProgressCallback | None = None,
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> UploadResult:
        """Convert and upload source as the current identity's avatar.

        Every failure invokes ``on_error``, broadcasts ``AvatarFailed`` and
        is re-raised.

        Raises:
            NoIdentityError: Nobody is signed in (nothing else is touched).
            InvalidIdentityError: Identity unusable as a path component.
            ConversionError: Source could not be converted.
            RemoteStoreError: Upload failed.
            CacheBackendError: Upload succeeded but the persistent cache
                write failed; the in-memory cache holds the new location.
        """
        identity = self._identity_source.current_identity()
        set_operation_context("upload", identity)
        if identity is None:
            error = NoIdentityError()
            self._fail(error, on_error)
            raise error

        source = Path(source)
        async with self._lock_for(identity):
            try:
                path = build_path(self._path_template, identity)
                await self._ensure_cache()
                converted = await self._converter.convert(
                    source, quality=self._quality, max_dimension=self._max_dimension
                )
                location = await self._upload(path, converted, on_progress)
                if self._cache_busting:
                    location = add_timestamp(location)

                await self.cache.set(identity, location)
                self._publish(AvatarData(location=location))
                if on_success is not None:
                    on_success(location)
            except Exception as e:
                self._fail(e, on_error)
                raise

        logger.info("Uploaded avatar for %s to %s", identity, path)
        return UploadResult(location=location, source=source, converted=converted)

    async def delete_for_current_identity(self) -> None:
        """Delete the current identity's avatar from the store and the cache.

        Raises:
            NoIdentityError: Nobody is signed in.
            RemoteStoreError: Remote delete failed (cache left untouched).
            CacheBackendError: Persistent cache delete failed.
        """
        identity = self._identity_source.current_identity()
        set_operation_context("delete", identity)
        if identity is None:
            error = NoIdentityError()
            self._fail(error)
            raise error

        async with self._lock_for(identity):
            try:
                path = build_path(self._path_template, identity)
                await self._ensure_cache()
                await self._store.delete(path)
                await self.cache.delete(identity)
                self._publish(AvatarData(location=None))
            except Exception as e:
                self._fail(e)
                raise

        logger.info("Deleted avatar for %s at %s", identity, path)

    async def invalidate(self, identity: str) -> None:
        """Forget the cached location for identity; the stored file is kept.

        Raises:
            InvalidIdentityError: Before the cache is touched.
        """
        validate_identity(identity)
        await self._ensure_cache()
        await self.cache.delete(identity)

    invalidate_cache = invalidate

    async def clear_all_caches(self) -> None:
        await self._ensure_cache()
        await self.cache.clear()

    # --- Internals ---

    async def _ensure_cache(self) -> None:
        if not self._cache_ready:
            await self.cache.init()
            self._cache_ready = True

    async def _listen(self) -> None:
        """Single subscription to the identity source feeding the broadcast."""
        changes = self._identity_source.identity_changes()
        try:
            async for identity in changes:
                await self._on_identity(identity)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Identity stream failed: %s", e, exc_info=True)
            self._publish(AvatarFailed.from_exception(e))
        finally:
            close = getattr(changes, "close", None)
            if callable(close):
                close()

    async def _on_identity(self, identity: str | None) -> None:
        set_operation_context("identity_change", identity)
        if identity is None:
            self._publish(AvatarData(location=None))
            return

        self._publish(AvatarLoading())
        try:
            location = await self.resolve(identity)
        except Exception as e:
            logger.warning("Failed to resolve avatar for %s: %s", identity, e)
            self._publish(AvatarFailed.from_exception(e))
            return
        self._publish(AvatarData(location=location))

    async def _upload(
        self, path: str, converted: Path, on_progress: ProgressCallback | None
    ) -> str:
        """Upload while forwarding the store's progress feed for path."""
        content_type = content_type_for(path)
        if on_progress is None:
            return await self._store.upload(path, converted, content_type=content_type)

        feed = self._store.progress_feed(path)
        forwarder = asyncio.create_task(_forward_progress(feed, on_progress))
        try:
            return await self._store.upload(path, converted, content_type=content_type)
        finally:
            feed.close()
            await forwarder

    def _lock_for(self, identity: str) -> AsyncContextManager[object]:
        if not self._serialize_uploads:
            return contextlib.nullcontext()
        lock = self._identity_locks.get(identity)
        if lock is None:
            lock = self._identity_locks[identity] = asyncio.Lock()
        return lock

    def _publish(self, state: AvatarState) -> None:
        if not self._states.closed:
            self._states.publish(state)

    def _fail(self, error: BaseException, on_error: ErrorCallback | None = None) -> None:
        logger.warning("Avatar operation failed: %s", error)
        if on_error is not None:
            on_error(error)
        self._publish(AvatarFailed.from_exception(error))


async def _forward_progress(feed: Subscription[float], on_progress: ProgressCallback) -> None:
    """Relay fractions to on_progress. A failing callback never fails the upload."""
    async for fraction in feed:
        try:
            on_progress(fraction)
        except Exception as e:
            logger.warning("Progress callback failed at %.2f: %s", fraction, e)
