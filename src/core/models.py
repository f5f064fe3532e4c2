# src/core/models.py - v1
"""Observable state types: AvatarState, UploadState, UploadResult.

Both state families are closed unions of frozen models discriminated by
``kind``. Consumers are expected to ``match`` on the concrete classes and
treat anything else as unreachable.
"""

from __future__ import annotations

import traceback
from pathlib import Path
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


def format_trace(exc: BaseException) -> str | None:
    """Render an exception's traceback, or None if it was never raised."""
    if exc.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


class _State(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


# === Current-identity avatar state ===


class AvatarLoading(_State):
    """Resolution of the current identity's avatar is in flight."""

    kind: Literal["loading"] = "loading"


class AvatarData(_State):
    """Resolved avatar. ``location`` is None when the identity has no avatar."""

    kind: Literal["data"] = "data"
    location: str | None = None

    @property
    def has_avatar(self) -> bool:
        return bool(self.location)


class AvatarFailed(_State):
    """Resolution, upload or delete failed."""

    kind: Literal["failed"] = "failed"
    cause: BaseException
    trace: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> AvatarFailed:
        return cls(cause=exc, trace=format_trace(exc))


AvatarState = Union[AvatarLoading, AvatarData, AvatarFailed]


# === Upload lifecycle state ===


class UploadIdle(_State):
    kind: Literal["idle"] = "idle"


class UploadInProgress(_State):
    kind: Literal["in_progress"] = "in_progress"
    fraction: float = Field(default=0.0, ge=0.0, le=1.0)

    @property
    def percent(self) -> int:
        """Progress as a rounded percentage (0-100)."""
        return round(self.fraction * 100)


class UploadSucceeded(_State):
    kind: Literal["succeeded"] = "succeeded"
    location: str


class UploadFailed(_State):
    kind: Literal["failed"] = "failed"
    cause: BaseException
    trace: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> UploadFailed:
        return cls(cause=exc, trace=format_trace(exc))


UploadState = Union[UploadIdle, UploadInProgress, UploadSucceeded, UploadFailed]


class UploadResult(BaseModel):
    """Outcome of a completed upload.

    The caller owns both files; the service keeps no reference to them.
    """

    model_config = ConfigDict(frozen=True)

    location: str
    source: Path
    converted: Path
