"""Status broadcaster: fire-and-forget publish/subscribe.

Each subscriber owns a bounded queue. ``publish`` never blocks: if a
subscriber's queue is full the event is dropped for that subscriber only,
so slow or stalled listeners simply miss events.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from app.gateway.types import StatusAction, StatusEvent

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


class Subscription:
    """A single listener's view of the status channel."""

    def __init__(self, subscriber_id: int, maxsize: int = DEFAULT_QUEUE_SIZE):
        self.id = subscriber_id
        self.queue: asyncio.Queue[StatusEvent] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    async def get(self) -> StatusEvent:
        return await self.queue.get()

    def drain(self) -> list[StatusEvent]:
        """Return every event already queued, without waiting."""
        events = []
        while not self.queue.empty():
            events.append(self.queue.get_nowait())
        return events

    def __aiter__(self) -> AsyncIterator[StatusEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[StatusEvent]:
        while True:
            yield await self.queue.get()


class StatusBroadcaster:
    """Broadcasts every StatusEvent to every connected subscriber.

    Usage:
        broadcaster = StatusBroadcaster()

        # Listener side
        async with broadcaster.subscribe() as sub:
            async for event in sub:
                ...

        # Publisher side
        broadcaster.publish(StatusEvent(StatusAction.TRANSLATE, "Translating..."))
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._published = 0

    def publish(self, event: StatusEvent) -> int:
        """Deliver ``event`` to all subscribers. Returns how many received it."""
        self._published += 1
        delivered = 0
        for sub in list(self._subscribers.values()):
            try:
                sub.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                sub.dropped += 1
        return delivered

    def emit(self, action: StatusAction, message: str) -> int:
        return self.publish(StatusEvent(action=action, message=message))

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[Subscription]:
        sub = Subscription(next(self._ids), maxsize=self.queue_size)
        self._subscribers[sub.id] = sub
        logger.info("Status listener connected: %d", sub.id)
        try:
            yield sub
        finally:
            self._subscribers.pop(sub.id, None)
            logger.info("Status listener disconnected: %d (dropped %d events)", sub.id, sub.dropped)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def get_stats(self) -> dict:
        return {"subscribers": self.subscriber_count, "published": self._published}
