# tests/conftest.py - v1
"""Shared test fixtures for unit and integration tests.

Provides an in-memory object store, a mock converter, sample images and a
controllable clock. No network: every remote collaborator is faked.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from avatarkit.core.broadcast import Subscription
from avatarkit.core.errors import RemoteStoreError
from avatarkit.identity.static_source import StaticIdentitySource
from avatarkit.storage.base_object_store import BaseObjectStore
from avatarkit.storage.progress import ProgressFeed


class InMemoryObjectStore(BaseObjectStore):
    """Object store keeping uploads in a dict and recording every call."""

    def __init__(self, base_url: str = "https://cdn.example.com") -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str | None] = {}
        self.calls: list[tuple[str, str]] = []
        self.base_url = base_url
        self.fail_on: set[str] = set()
        self.progress_steps: list[float] = [0.0, 0.5, 1.0]
        # Loop iterations each upload yields, so concurrent uploads overlap
        self.upload_yields = 0
        self.active_uploads = 0
        self.max_active_uploads = 0
        self._progress = ProgressFeed()

    def _check(self, op: str, path: str) -> None:
        self.calls.append((op, path))
        if op in self.fail_on:
            raise RemoteStoreError(f"{op} failed", path=path)

    async def upload(self, path, source, content_type=None):
        self.active_uploads += 1
        self.max_active_uploads = max(self.max_active_uploads, self.active_uploads)
        try:
            self._check("upload", path)
            for _ in range(self.upload_yields):
                await asyncio.sleep(0)
            for step in self.progress_steps:
                self._progress.publish(path, step)
            self.objects[path] = Path(source).read_bytes()
            self.content_types[path] = content_type
        finally:
            self.active_uploads -= 1
            self._progress.complete(path)
        return f"{self.base_url}/{path}"

    async def get_location(self, path):
        self._check("get_location", path)
        if path not in self.objects:
            return None
        return f"{self.base_url}/{path}"

    async def delete(self, path):
        self._check("delete", path)
        self.objects.pop(path, None)

    async def exists(self, path):
        self._check("exists", path)
        return path in self.objects

    def progress_feed(self, path) -> Subscription[float]:
        return self._progress.subscribe(path)

    @property
    def remote_calls(self) -> int:
        return len(self.calls)


class FakeClock:
    """Settable UTC clock for TTL tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


# === FIXTURES: Collaborators ===


@pytest.fixture
def memory_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def identity_source() -> StaticIdentitySource:
    return StaticIdentitySource("alice")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def converted_file(tmp_path: Path) -> Path:
    path = tmp_path / "converted.webp"
    path.write_bytes(b"RIFF0000WEBPVP8 fake")
    return path


@pytest.fixture
def mock_converter(converted_file: Path) -> AsyncMock:
    """Mock BaseImageConverter returning a fixed converted file."""
    converter = AsyncMock()
    converter.convert = AsyncMock(return_value=converted_file)
    return converter


# === FIXTURES: Sample images ===


@pytest.fixture
def sample_png(tmp_path: Path) -> Path:
    """400x200 RGBA PNG."""
    path = tmp_path / "source.png"
    Image.new("RGBA", (400, 200), (200, 30, 30, 255)).save(path, format="PNG")
    return path


@pytest.fixture
def sample_jpeg(tmp_path: Path) -> Path:
    """120x300 RGB JPEG."""
    path = tmp_path / "source.jpg"
    Image.new("RGB", (120, 300), (10, 120, 200)).save(path, format="JPEG")
    return path
