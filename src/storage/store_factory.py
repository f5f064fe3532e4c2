# src/storage/store_factory.py - v1
"""Factory: instantiate the remote object store from configuration."""

from __future__ import annotations

from avatarkit.config.settings import Settings
from avatarkit.storage.base_object_store import BaseObjectStore
from avatarkit.storage.local_store import LocalObjectStore


def create_object_store(settings: Settings) -> BaseObjectStore:
    """Create the object store selected by STORAGE_BACKEND.

    Raises:
        ValueError: If the backend is not supported or under-configured.
    """
    if settings.storage_backend == "local":
        return LocalObjectStore(
            root=settings.storage_local_root,
            public_base_url=settings.storage_public_base_url or None,
        )

    if settings.storage_backend == "s3":
        from avatarkit.storage.s3_store import S3ObjectStore
        if not settings.storage_s3_bucket:
            raise ValueError(
                "STORAGE_S3_BUCKET must be set when STORAGE_BACKEND=s3"
            )
        return S3ObjectStore(
            bucket=settings.storage_s3_bucket,
            prefix=settings.storage_s3_prefix,
            region=settings.storage_s3_region or None,
            endpoint_url=settings.storage_s3_endpoint_url or None,
            public_base_url=settings.storage_public_base_url or None,
            presign_expiry=settings.storage_presign_expiry_seconds,
        )

    raise ValueError(f"Unsupported storage backend: {settings.storage_backend!r}")
