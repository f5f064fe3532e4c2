# src/core/broadcast.py - v1
"""Multi-subscriber, in-order broadcast of values over asyncio queues.

Each subscriber owns an unbounded queue, so a slow consumer never blocks the
publisher or other subscribers. Subscriptions are registered as soon as
``subscribe()`` returns, so nothing published afterwards is missed.
"""

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

T = TypeVar("T")

_CLOSED = object()


class Subscription(Generic[T]):
    """Async iterator over values published after (or replayed at) subscription."""

    def __init__(self, owner: Broadcast[T]) -> None:
        self._owner = owner
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    def _push(self, item: object) -> None:
        if not self._closed:
            self._queue.put_nowait(item)

    def close(self) -> None:
        """Stop receiving. Values already queued are still delivered."""
        if self._closed:
            return
        self._queue.put_nowait(_CLOSED)
        self._closed = True
        self._owner._discard(self)

    def __aiter__(self) -> Subscription[T]:
        return self

    async def __anext__(self) -> T:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    async def __aenter__(self) -> Subscription[T]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class Broadcast(Generic[T]):
    """Ordered fan-out of published values to every live subscription."""

    def __init__(self) -> None:
        self._subscribers: list[Subscription[T]] = []
        self._latest: list[T] = []
        self._closed = False

    @property
    def latest(self) -> T | None:
        return self._latest[0] if self._latest else None

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, value: T) -> None:
        if self._closed:
            raise RuntimeError("Cannot publish to a closed broadcast")
        self._latest[:] = [value]
        for sub in list(self._subscribers):
            sub._push(value)

    def subscribe(self, replay: bool = False) -> Subscription[T]:
        """Register a new subscriber.

        Args:
            replay: Deliver the most recently published value first.
        """
        sub: Subscription[T] = Subscription(self)
        if replay and self._latest:
            sub._push(self._latest[0])
        if self._closed:
            sub.close()
        else:
            self._subscribers.append(sub)
        return sub

    def close(self) -> None:
        """End every subscription after its queued values are drained."""
        self._closed = True
        for sub in list(self._subscribers):
            sub.close()

    def _discard(self, sub: Subscription[T]) -> None:
        if sub in self._subscribers:
            self._subscribers.remove(sub)

    def __len__(self) -> int:
        return len(self._subscribers)
