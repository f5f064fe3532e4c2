# src/services/upload_notifier.py - v1
"""Tracks the lifecycle of one avatar upload as an observable UploadState."""

from __future__ import annotations

import logging
from pathlib import Path

from avatarkit.core.broadcast import Broadcast, Subscription
from avatarkit.core.models import (
    UploadFailed,
    UploadIdle,
    UploadInProgress,
    UploadResult,
    UploadState,
    UploadSucceeded,
)
from avatarkit.services.avatar_service import AvatarService

logger = logging.getLogger(__name__)


class UploadNotifier:
    """Drives uploads through an AvatarService and publishes their state.

    One upload is modelled at a time; starting a new one overwrites any
    previous terminal state. Failures end up in ``UploadFailed`` rather than
    being raised, since observers of this notifier are the error channel.
    """

    def __init__(self, service: AvatarService) -> None:
        self._service = service
        self._states: Broadcast[UploadState] = Broadcast()
        self._states.publish(UploadIdle())

    @property
    def state(self) -> UploadState:
        return self._states.latest or UploadIdle()

    def subscribe(self, replay: bool = True) -> Subscription[UploadState]:
        return self._states.subscribe(replay=replay)

    async def upload(self, source: Path | str) -> UploadResult | None:
        """Upload source for the current identity; None if it failed."""
        self._set(UploadInProgress(fraction=0.0))
        try:
            return await self._service.upload_for_current_identity(
                source,
                on_progress=lambda fraction: self._set(UploadInProgress(fraction=fraction)),
                on_success=lambda location: self._set(UploadSucceeded(location=location)),
                on_error=lambda error: self._set(UploadFailed.from_exception(error)),
            )
        except Exception as e:
            logger.warning("Avatar upload failed: %s", e)
            current = self.state
            if not (isinstance(current, UploadFailed) and current.cause is e):
                self._set(UploadFailed.from_exception(e))
            return None

    def reset(self) -> None:
        self._set(UploadIdle())

    def close(self) -> None:
        self._states.close()

    def _set(self, state: UploadState) -> None:
        self._states.publish(state)
