"""Response cache: in-memory key/value store with a fixed time-to-live.

Entries become visible as soon as they are set and report a miss once the
TTL has elapsed since the ``set``. There is no capacity bound and no LRU:
the only way out is expiry (expired entries are dropped lazily on read)
or being overwritten by a fresh ``set``.

Reads and writes are single dict operations, so no lock is taken; two
concurrent misses on the same key may both compute, and the last ``set``
wins.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from app.gateway.types import CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600.0


def make_key(endpoint: str, *parts: str) -> str:
    """Build a cache fingerprint, e.g. ``translate:Hola:en``."""
    return ":".join([endpoint, *parts])


class TTLCache:
    """Time-expiring cache.

    Usage:
        cache = TTLCache(ttl=3600)
        cache.set("summarize:some text", "short summary")
        cache.get("summarize:some text")  # -> "short summary", or None on miss
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(self._clock()):
            # Lazy cleanup; indistinguishable from a miss to callers
            self._entries.pop(key, None)
            self._misses += 1
            return None

        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any) -> None:
        """Store (or overwrite) a value; it expires ``ttl`` seconds from now."""
        self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + self.ttl)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict:
        return {
            "entries": len(self._entries),
            "ttl_seconds": self.ttl,
            "hits": self._hits,
            "misses": self._misses,
        }
