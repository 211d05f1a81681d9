"""Rate limiting adapters.

Two counter shapes back the admission tiers: a per-key limiter for tiers
keyed by caller, and a single shared counter for tiers that budget all
callers together. Both are in-memory; a shared store can replace them behind
the same interfaces.
"""

from coursehub.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractSharedCounter,
    RateLimitResult,
)
from coursehub.adapters.rate_limit.in_memory import (
    InMemoryFixedWindowRateLimiter,
    InMemorySharedWindowCounter,
)

__all__ = [
    "AbstractRateLimiter",
    "AbstractSharedCounter",
    "InMemoryFixedWindowRateLimiter",
    "InMemorySharedWindowCounter",
    "RateLimitResult",
]
