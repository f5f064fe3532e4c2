# tests/unit/storage/test_store_factory.py - v1
"""Tests for storage/store_factory.py."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from avatarkit.config.settings import Settings
from avatarkit.storage.local_store import LocalObjectStore
from avatarkit.storage.store_factory import create_object_store


class TestCreateObjectStore:
    def test_local_default(self, tmp_path):
        settings = Settings(_env_file=None, storage_local_root=tmp_path)
        store = create_object_store(settings)
        assert isinstance(store, LocalObjectStore)

    def test_s3(self):
        settings = Settings(
            _env_file=None,
            storage_backend="s3",
            storage_s3_bucket="avatars",
            storage_s3_region="eu-west-1",
        )
        fake_boto3 = MagicMock()
        with patch.dict("sys.modules", {"boto3": fake_boto3}):
            store = create_object_store(settings)
        assert type(store).__name__ == "S3ObjectStore"
        fake_boto3.client.assert_called_once_with("s3", region_name="eu-west-1")

    def test_unsupported(self):
        settings = Settings(_env_file=None)
        settings.storage_backend = "ftp"  # type: ignore[assignment]
        with pytest.raises(ValueError, match="Unsupported storage backend"):
            create_object_store(settings)
