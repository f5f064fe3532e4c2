# src/identity/static_source.py - v1
"""In-process identity source driven by explicit set_identity() calls.

Useful for CLIs, workers and tests where the identity is known up front or
pushed in by a surrounding auth layer.
"""

from __future__ import annotations

import logging

from avatarkit.core.broadcast import Broadcast, Subscription
from avatarkit.identity.base_identity_source import BaseIdentitySource

logger = logging.getLogger(__name__)


class StaticIdentitySource(BaseIdentitySource):
    """Holds a current identity and broadcasts every change.

    New subscribers receive the current value first, then each change.
    """

    def __init__(self, identity: str | None = None) -> None:
        self._current = identity
        self._changes: Broadcast[str | None] = Broadcast()
        self._changes.publish(identity)

    def current_identity(self) -> str | None:
        return self._current

    def identity_changes(self) -> Subscription[str | None]:
        return self._changes.subscribe(replay=True)

    def set_identity(self, identity: str | None) -> None:
        """Switch identity (None = logout) and notify subscribers."""
        logger.debug("Identity changed: %r -> %r", self._current, identity)
        self._current = identity
        self._changes.publish(identity)

    def close(self) -> None:
        """End all identity_changes() streams."""
        self._changes.close()
