"""In-memory TTL map with atomic read-modify-write operations.

Holds the verification records: every mutation runs under one lock, so a
check and the write that depends on it never interleave with another
request's mutation of the same key. Expired entries behave as absent and are
evicted lazily.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class CacheItem(Generic[V]):
    """Container for cached values with expiration metadata."""

    value: V
    stored_at: float
    expires_at: float


class SimpleTTLCache(Generic[V]):
    """Thread-safe, in-memory TTL map.

    Attributes:
        ttl_seconds: Time-to-live applied to all entries.
        max_entries: Maximum number of live items (None for unlimited).
    """

    def __init__(
        self,
        ttl_seconds: float = 900,
        max_entries: int | None = 100_000,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._store: dict[str, CacheItem[V]] = {}
        self._lock = threading.RLock()
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"SimpleTTLCache(ttl_seconds={self._ttl}, max_entries={self._max_entries}, "
            f"size={len(self._store)}, evictions={self._evictions})"
        )

    def _now(self) -> float:
        return self._clock() if self._clock else time.time()

    def _live_item_locked(self, key: str, now: float) -> CacheItem[V] | None:
        item = self._store.get(key)
        if item is None:
            return None
        if now >= item.expires_at:
            del self._store[key]
            self._evictions += 1
            return None
        return item

    def get(self, key: str) -> V | None:
        """Return the live value for ``key`` or None."""

        with self._lock:
            item = self._live_item_locked(key, self._now())
            return item.value if item else None

    def age(self, key: str) -> float | None:
        """Seconds since ``key`` was stored, or None when absent/expired."""

        with self._lock:
            now = self._now()
            item = self._live_item_locked(key, now)
            return now - item.stored_at if item else None

    def set(self, key: str, value: V) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""

        with self._lock:
            now = self._now()
            self._store.pop(key, None)
            self._store[key] = CacheItem(value=value, stored_at=now, expires_at=now + self._ttl)
            self._evict_if_over_capacity_locked(now)

    def set_unless_younger(self, key: str, min_age: float, factory: Callable[[], V]) -> V | None:
        """Store ``factory()`` unless a live entry younger than ``min_age`` exists.

        Returns:
            The newly stored value, or None when the existing entry was kept.
        """

        with self._lock:
            now = self._now()
            item = self._live_item_locked(key, now)
            if item is not None and now - item.stored_at < min_age:
                return None
            value = factory()
            self._store.pop(key, None)
            self._store[key] = CacheItem(value=value, stored_at=now, expires_at=now + self._ttl)
            self._evict_if_over_capacity_locked(now)
            return value

    def pop_if(self, key: str, predicate: Callable[[V], bool]) -> tuple[bool, V | None]:
        """Remove the live entry for ``key`` when ``predicate`` accepts it.

        Returns:
            ``(found, value)``: ``found`` tells whether a live entry existed;
            ``value`` is the removed value, or None when nothing was removed.
        """

        with self._lock:
            item = self._live_item_locked(key, self._now())
            if item is None:
                return False, None
            if not predicate(item.value):
                return True, None
            del self._store[key]
            return True, item.value

    def pop(self, key: str) -> V | None:
        with self._lock:
            item = self._store.pop(key, None)
            return item.value if item else None

    def clear(self) -> None:
        """Remove all entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._evictions = 0

    def stats(self) -> dict[str, int | float | None]:
        """Return lightweight metrics without exposing keys or values."""

        with self._lock:
            return {
                "ttl_seconds": self._ttl,
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "evictions": self._evictions,
            }

    def _evict_if_over_capacity_locked(self, now: float) -> None:
        if self._max_entries is None or len(self._store) <= self._max_entries:
            return

        expired = [k for k, item in self._store.items() if now >= item.expires_at]
        for key in expired:
            del self._store[key]
            self._evictions += 1

        # Still full: drop the oldest entries (dicts keep insertion order).
        while len(self._store) > self._max_entries:
            oldest = next(iter(self._store))
            del self._store[oldest]
            self._evictions += 1
            logger.warning("cache.capacity_eviction", extra={"size": len(self._store)})
