"""In-memory fixed-window counters.

A window opens with the first request a key makes and closes once
``window_seconds`` have elapsed since then; the next request opens a fresh
window. Rejected requests do not count against the budget, and ``refund``
hands back units of a request that another limiter rejected.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: increment-and-compare happens under one lock.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from coursehub.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractSharedCounter,
    RateLimitResult,
)


@dataclass
class _Window:
    started_at: float
    count: int = 0


class _FixedWindowPolicy:
    """Window arithmetic shared by both counter shapes."""

    def __init__(self, *, limit: int, window_seconds: int, clock: Callable[[], float]) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock

    def current(self, window: _Window | None, now: float) -> _Window:
        if window is None or now - window.started_at >= self.window_seconds:
            return _Window(started_at=now)
        return window

    def apply(self, window: _Window, now: float, cost: int) -> RateLimitResult:
        """Consume ``cost`` from ``window`` if it fits. Caller holds the lock."""
        reset_at = window.started_at + self.window_seconds

        if window.count + cost <= self.limit:
            window.count += cost
            return RateLimitResult(
                allowed=True,
                limit=self.limit,
                remaining=self.limit - window.count,
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=None,
            )

        return RateLimitResult(
            allowed=False,
            limit=self.limit,
            remaining=max(0, self.limit - window.count),
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=max(1, int(math.ceil(reset_at - now))),
        )

    def give_back(self, window: _Window | None, now: float, cost: int) -> None:
        """Return ``cost`` units to a still-open window. Caller holds the lock."""
        if window is None or now - window.started_at >= self.window_seconds:
            return
        window.count = max(0, window.count - cost)


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Per-key fixed-window limiter (e.g. 30 requests per 60 seconds per caller).

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Length of a window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        self._policy = _FixedWindowPolicy(limit=limit, window_seconds=window_seconds, clock=clock)
        self._lock = threading.Lock()
        self._windows: dict[str, _Window] = {}

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Check the key's window and consume ``cost`` units when it fits.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            now = self._policy.clock()
            window = self._policy.current(self._windows.get(key), now)
            self._windows[key] = window
            self._prune_locked(now)
            return self._policy.apply(window, now, cost)

    def refund(self, key: str, *, cost: int = 1) -> None:
        if cost < 1:
            raise ValueError("cost must be >= 1")

        with self._lock:
            self._policy.give_back(self._windows.get(key), self._policy.clock(), cost)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _prune_locked(self, now: float) -> None:
        # Closed windows carry no information; drop them once the map grows.
        if len(self._windows) < 10_000:
            return
        expired = [
            k for k, w in self._windows.items()
            if now - w.started_at >= self._policy.window_seconds
        ]
        for k in expired:
            del self._windows[k]


class InMemorySharedWindowCounter(AbstractSharedCounter):
    """A single fixed-window budget shared by all callers (anti-spam guard)."""

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._policy = _FixedWindowPolicy(limit=limit, window_seconds=window_seconds, clock=clock)
        self._lock = threading.Lock()
        self._window: _Window | None = None

    def consume(self, *, cost: int = 1) -> RateLimitResult:
        if cost < 1:
            raise ValueError("cost must be >= 1")

        with self._lock:
            now = self._policy.clock()
            self._window = self._policy.current(self._window, now)
            return self._policy.apply(self._window, now, cost)

    def refund(self, *, cost: int = 1) -> None:
        if cost < 1:
            raise ValueError("cost must be >= 1")

        with self._lock:
            self._policy.give_back(self._window, self._policy.clock(), cost)

    def reset(self) -> None:
        with self._lock:
            self._window = None
