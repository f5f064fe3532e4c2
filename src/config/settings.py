# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for storage, cache, conversion and logging settings.
Collaborator objects (identity source, converter) are passed explicitly to
the service factory; everything else is read from here.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from avatarkit.core.paths import template_problems


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Avatar ===
    avatar_path_template: str = "avatars/{identity}/avatar.webp"
    avatar_quality: int = 80
    avatar_max_dimension: int | None = None
    avatar_image_format: Literal["WEBP", "PNG", "JPEG"] = "WEBP"
    cache_busting_enabled: bool = True
    serialize_uploads: bool = False

    # === Cache ===
    cache_ttl_seconds: int | None = None
    cache_backend: Literal["none", "json", "sqlite", "redis"] = "json"
    cache_root: Path = Path("~/.avatarkit/cache")
    cache_redis_url: str = ""

    # === Remote storage ===
    storage_backend: Literal["local", "s3"] = "local"
    storage_local_root: Path = Path("~/.avatarkit/storage")
    storage_public_base_url: str = ""
    storage_s3_bucket: str = ""
    storage_s3_prefix: str = ""
    storage_s3_region: str = ""
    storage_s3_endpoint_url: str = ""
    storage_presign_expiry_seconds: int = 3600

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("avatar_quality")
    @classmethod
    def validate_quality(cls, v: int) -> int:  # noqa: N805
        if not 0 <= v <= 100:
            raise ValueError("avatar_quality must be between 0 and 100")
        return v

    @field_validator("avatar_max_dimension")
    @classmethod
    def validate_max_dimension(cls, v: int | None) -> int | None:  # noqa: N805
        if v is not None and v <= 0:
            raise ValueError("avatar_max_dimension must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Cross-field consistency rules."""
        errors: list[str] = []

        errors.extend(
            f"AVATAR_PATH_TEMPLATE: {problem}"
            for problem in template_problems(
                self.avatar_path_template, self.avatar_image_format
            )
        )

        if self.cache_ttl_seconds is not None and self.cache_ttl_seconds <= 0:
            errors.append("CACHE_TTL_SECONDS must be > 0 (unset for no expiry)")

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_REDIS_URL must be set when CACHE_BACKEND=redis")

        if self.storage_backend == "s3" and not self.storage_s3_bucket:
            errors.append("STORAGE_S3_BUCKET must be set when STORAGE_BACKEND=s3")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cache_ttl(self) -> timedelta | None:
        """Cache max-age as a timedelta (None = entries never expire)."""
        if self.cache_ttl_seconds is None:
            return None
        return timedelta(seconds=self.cache_ttl_seconds)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
