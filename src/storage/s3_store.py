# src/storage/s3_store.py - v1
"""S3-compatible object store (STORAGE_BACKEND=s3).

Supports AWS S3, MinIO, and other S3-compatible storage.
Requires 'boto3' package: pip install boto3.

``delete`` follows S3 semantics and is idempotent. Locations are public
URLs when ``public_base_url`` is set, otherwise presigned GET URLs.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from avatarkit.core.broadcast import Subscription
from avatarkit.core.errors import RemoteStoreError
from avatarkit.storage.base_object_store import BaseObjectStore
from avatarkit.storage.progress import ProgressFeed

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class S3ObjectStore(BaseObjectStore):
    """Store avatars in an S3 bucket."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        region: str | None = None,
        endpoint_url: str | None = None,
        public_base_url: str | None = None,
        presign_expiry: int = 3600,
    ) -> None:
        """Initialize S3 store.

        Args:
            bucket: S3 bucket name.
            prefix: Key prefix for all objects (e.g. "prod/").
            region: AWS region (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for MinIO/compatible storage.
            public_base_url: Public URL prefix (CDN or bucket website).
            presign_expiry: Presigned URL lifetime in seconds.
        """
        try:
            import boto3
        except ImportError as e:
            raise ImportError(
                "boto3 package required for S3 store: pip install boto3"
            ) from e

        kwargs: dict = {}
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url

        self._s3 = boto3.client("s3", **kwargs)
        self._bucket = bucket
        self._prefix = prefix.rstrip("/") + "/" if prefix else ""
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._presign_expiry = presign_expiry
        self._progress = ProgressFeed()

    def _full_key(self, path: str) -> str:
        """Build the full S3 key from a storage path."""
        return f"{self._prefix}{path}"

    async def upload(
        self, path: str, source: Path, content_type: str | None = None
    ) -> str:
        """Upload in a worker thread; boto3 transfer callbacks feed progress."""
        key = self._full_key(path)
        loop = asyncio.get_running_loop()
        total = Path(source).stat().st_size
        sent = 0

        def on_bytes(amount: int) -> None:
            nonlocal sent
            sent += amount
            fraction = sent / total if total else 1.0
            loop.call_soon_threadsafe(self._progress.publish, path, fraction)

        extra_args = {"ContentType": content_type} if content_type else {}
        self._progress.publish(path, 0.0)
        try:
            await asyncio.to_thread(
                self._s3.upload_file,
                str(source),
                self._bucket,
                key,
                ExtraArgs=extra_args,
                Callback=on_bytes,
            )
        except Exception as e:
            raise RemoteStoreError(
                f"Upload to s3://{self._bucket}/{key} failed: {e}", path=path
            ) from e
        finally:
            # Thread-scheduled publishes are already ahead of us on the loop
            self._progress.complete(path)

        logger.debug("S3 upload: s3://%s/%s (%d bytes)", self._bucket, key, total)
        return self._location(key)

    async def get_location(self, path: str) -> str | None:
        if not await self.exists(path):
            return None
        return self._location(self._full_key(path))

    async def delete(self, path: str) -> None:
        key = self._full_key(path)
        try:
            self._s3.delete_object(Bucket=self._bucket, Key=key)
        except self._s3.exceptions.ClientError as e:
            raise RemoteStoreError(
                f"Delete of s3://{self._bucket}/{key} failed: {e}", path=path
            ) from e

    async def exists(self, path: str) -> bool:
        """Check if an S3 object exists (404 -> False, other errors raise)."""
        key = self._full_key(path)
        try:
            self._s3.head_object(Bucket=self._bucket, Key=key)
            return True
        except self._s3.exceptions.ClientError as e:
            code = str(getattr(e, "response", {}).get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                return False
            raise RemoteStoreError(
                f"Existence check for s3://{self._bucket}/{key} failed: {e}", path=path
            ) from e

    def progress_feed(self, path: str) -> Subscription[float]:
        return self._progress.subscribe(path)

    def _location(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        return self._s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self._bucket, "Key": key},
            ExpiresIn=self._presign_expiry,
        )
