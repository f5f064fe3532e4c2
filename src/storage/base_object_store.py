# src/storage/base_object_store.py - v1
"""Abstract remote object store holding avatar files."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from avatarkit.core.broadcast import Subscription


class BaseObjectStore(ABC):
    """Unified interface for avatar storage backends.

    Paths are normalised storage keys (``avatars/alice/avatar.webp``);
    locations are opaque handles (usually URLs) handed to clients.
    """

    @abstractmethod
    async def upload(
        self, path: str, source: Path, content_type: str | None = None
    ) -> str:
        """Upload source to path and return its location."""

    @abstractmethod
    async def get_location(self, path: str) -> str | None:
        """Location of the object at path, or None if it does not exist."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete the object at path."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check if an object exists at path."""

    @abstractmethod
    def progress_feed(self, path: str) -> Subscription[float]:
        """Live upload progress (0.0-1.0) for path; ends when the upload does.

        Subscribe before starting the upload; close the subscription to stop
        listening early.
        """
