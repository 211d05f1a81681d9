"""Rate limiter interfaces.

The admission layer depends on these abstractions, not on the in-memory
implementations, so counters can move to a shared store later.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Budget tracked independently for every key."""

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for a given key.

        Args:
            key: Unique identifier (e.g., caller network address).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def refund(self, key: str, *, cost: int = 1) -> None:
        """Give back units consumed earlier in the key's current window.

        Used when a request passed this limiter but was rejected by another
        one. A window that has since closed is left alone.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Forget every key's window."""
        raise NotImplementedError


class AbstractSharedCounter(ABC):
    """One budget shared by every caller."""

    @abstractmethod
    def consume(self, *, cost: int = 1) -> RateLimitResult:
        raise NotImplementedError

    @abstractmethod
    def refund(self, *, cost: int = 1) -> None:
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError
