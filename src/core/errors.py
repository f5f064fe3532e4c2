# src/core/errors.py - v1
"""Error taxonomy for avatar operations.

Every error raised by the orchestrator derives from AvatarError so callers
can catch the whole family. "No avatar yet" is never an error: it resolves
to ``None`` / ``AvatarData(location=None)``.
"""

from __future__ import annotations


class AvatarError(Exception):
    """Base class for avatar operation failures."""


class NoIdentityError(AvatarError):
    """No identity is resolvable for an identity-scoped operation."""

    def __init__(self, message: str = "No identity is currently authenticated") -> None:
        super().__init__(message)


class InvalidIdentityError(AvatarError, ValueError):
    """Identity is empty or contains characters that break storage paths."""


class ConversionError(AvatarError):
    """Source image could not be converted (unreadable or unsupported format)."""


class RemoteStoreError(AvatarError):
    """Remote object store failure (unreachable, denied, missing object)."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class CacheBackendError(AvatarError):
    """Persistent cache tier failed on a write, delete or clear."""
