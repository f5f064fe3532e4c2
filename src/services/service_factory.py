# src/services/service_factory.py - v1
"""Build an AvatarService from Settings."""

from __future__ import annotations

from avatarkit.cache.cache_factory import create_cache_store
from avatarkit.config.settings import Settings
from avatarkit.conversion.base_converter import BaseImageConverter
from avatarkit.identity.base_identity_source import BaseIdentitySource
from avatarkit.services.avatar_service import AvatarService
from avatarkit.storage.base_object_store import BaseObjectStore
from avatarkit.storage.store_factory import create_object_store


def create_avatar_service(
    settings: Settings,
    identity_source: BaseIdentitySource,
    converter: BaseImageConverter | None = None,
    store: BaseObjectStore | None = None,
) -> AvatarService:
    """Wire an AvatarService from settings.

    Args:
        settings: Application settings.
        identity_source: Source of the current identity (never from settings).
        converter: Image converter. Defaults to Pillow in AVATAR_IMAGE_FORMAT.
        store: Object store. Defaults to the one selected by STORAGE_BACKEND.
    """
    if converter is None:
        from avatarkit.conversion.pillow_converter import PillowImageConverter
        converter = PillowImageConverter(image_format=settings.avatar_image_format)

    return AvatarService(
        store=store or create_object_store(settings),
        identity_source=identity_source,
        converter=converter,
        cache_store=create_cache_store(settings),
        path_template=settings.avatar_path_template,
        cache_ttl=settings.cache_ttl,
        quality=settings.avatar_quality,
        max_dimension=settings.avatar_max_dimension,
        cache_busting=settings.cache_busting_enabled,
        serialize_uploads=settings.serialize_uploads,
    )
