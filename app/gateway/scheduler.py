"""Single-slot scheduler for outbound AI provider calls.

At most one job runs at a time and consecutive dispatches are spaced by at
least ``min_interval`` seconds. Concurrent callers wait on an
``asyncio.Lock``, so they queue instead of running in parallel.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SerialScheduler:
    """Serializes coroutine jobs with a minimum gap between job starts.

    Usage:
        scheduler = SerialScheduler(min_interval=1.0)
        response = await scheduler.schedule(client.complete, prompt)
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_dispatch: float | None = None
        self._waiting = 0
        self._dispatched = 0

    async def schedule(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run ``fn(*args, **kwargs)`` once the slot is free and the gap has passed."""
        self._waiting += 1
        try:
            await self._lock.acquire()
        finally:
            self._waiting -= 1

        try:
            if self._last_dispatch is not None:
                wait = (self._last_dispatch + self.min_interval) - self._clock()
                if wait > 0:
                    logger.debug("Scheduler spacing: waiting %.2fs", wait)
                    await self._sleep(wait)

            self._last_dispatch = self._clock()
            self._dispatched += 1
            return await fn(*args, **kwargs)
        finally:
            self._lock.release()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def get_stats(self) -> dict:
        return {
            "busy": self.busy,
            "waiting": self._waiting,
            "dispatched": self._dispatched,
            "min_interval_seconds": self.min_interval,
        }
