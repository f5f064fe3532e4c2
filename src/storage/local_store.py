# src/storage/local_store.py - v1
"""Local filesystem object store (default STORAGE_BACKEND=local).

``delete`` is idempotent: deleting a missing object succeeds.
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

_CHUNK_SIZE = 64 * 1024


class LocalObjectStore(BaseObjectStore):
    """Store avatars under a root directory.

    Locations are ``<public_base_url>/<path>`` when a base URL is configured,
    otherwise ``file://`` URIs.
    """

    def __init__(self, root: Path | str, public_base_url: str | None = None) -> None:
        self._root = Path(root).expanduser()
        self._base_url = public_base_url.rstrip("/") if public_base_url else None
        self._progress = ProgressFeed()

    def _resolve(self, path: str) -> Path:
        return self._root / path

    def _location(self, path: str) -> str:
        if self._base_url:
            return f"{self._base_url}/{path}"
        return self._resolve(path).resolve().as_uri()

    async def upload(
        self, path: str, source: Path, content_type: str | None = None
    ) -> str:
        """Copy source to path in chunks, reporting progress per chunk."""
        target = self._resolve(path)
        try:
            total = Path(source).stat().st_size
            target.parent.mkdir(parents=True, exist_ok=True)
            self._progress.publish(path, 0.0)
            sent = 0
            with open(source, "rb") as src, open(target, "wb") as dst:
                while chunk := src.read(_CHUNK_SIZE):
                    dst.write(chunk)
                    sent += len(chunk)
                    self._progress.publish(path, sent / total if total else 1.0)
                    # Let progress subscribers run between chunks
                    await asyncio.sleep(0)
            self._progress.publish(path, 1.0)
        except OSError as e:
            raise RemoteStoreError(f"Upload to {path} failed: {e}", path=path) from e
        finally:
            self._progress.complete(path)

        logger.debug("Local upload: %s (%d bytes, %s)", target, total, content_type)
        return self._location(path)

    async def get_location(self, path: str) -> str | None:
        if not self._resolve(path).is_file():
            return None
        return self._location(path)

    async def delete(self, path: str) -> None:
        try:
            self._resolve(path).unlink(missing_ok=True)
        except OSError as e:
            raise RemoteStoreError(f"Delete of {path} failed: {e}", path=path) from e

    async def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def progress_feed(self, path: str) -> Subscription[float]:
        return self._progress.subscribe(path)
