# src/cache/models.py - v1
"""Cache domain model: CacheEntry."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheEntry(BaseModel):
    """One cached resolution of an identity's avatar location.

    ``recorded_at`` is when the location was cached, not when it was uploaded.
    """

    location: str
    recorded_at: datetime

    def is_valid(self, ttl: timedelta | None, now: datetime | None = None) -> bool:
        """True if ttl is None (no expiry) or the entry is younger than ttl."""
        if ttl is None:
            return True
        current = now or utc_now()
        recorded = self.recorded_at
        if recorded.tzinfo is None:
            recorded = recorded.replace(tzinfo=timezone.utc)
        return current - recorded < ttl
