# src/identity/base_identity_source.py - v1
"""Abstract identity source: who is signed in, and when that changes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator


class BaseIdentitySource(ABC):
    """Auth-agnostic view of the current identity."""

    @abstractmethod
    def current_identity(self) -> str | None:
        """Best-effort current identity, or None when signed out."""

    @abstractmethod
    def identity_changes(self) -> AsyncIterator[str | None]:
        """Stream of identities, emitting on every change including logout (None)."""
