# src/storage/progress.py - v1
"""Upload progress feeds, multiplexed by storage path.

Feeds are keyed by path, not by upload call: two concurrent uploads to the
same path share one feed, and a subscriber sees the fractions of both.
Callers that need isolated progress must serialise uploads per path.
"""

from __future__ import annotations

from avatarkit.core.broadcast import Broadcast, Subscription


class ProgressFeed:
    """Per-path broadcast of upload fractions."""

    def __init__(self) -> None:
        self._feeds: dict[str, Broadcast[float]] = {}

    def subscribe(self, path: str) -> Subscription[float]:
        return self._feed(path).subscribe()

    def publish(self, path: str, fraction: float) -> None:
        self._feed(path).publish(min(max(fraction, 0.0), 1.0))

    def complete(self, path: str) -> None:
        """End every subscription on path and forget the feed."""
        feed = self._feeds.pop(path, None)
        if feed is not None:
            feed.close()

    def close(self) -> None:
        for path in list(self._feeds):
            self.complete(path)

    def active_paths(self) -> list[str]:
        return sorted(self._feeds)

    def _feed(self, path: str) -> Broadcast[float]:
        feed = self._feeds.get(path)
        if feed is None:
            feed = self._feeds[path] = Broadcast()
        return feed
