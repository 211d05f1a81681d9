"""Tiered admission control for FastAPI routes.

Every endpoint declares the tiers it belongs to through ``admit(...)``. The
dependency runs before the route body is handled and rejects with HTTP 429
when any tier's budget is exhausted.

Tier scopes:
- ``caller``: one window per caller network address.
- ``global``: one window shared by every caller, backed by a dedicated
  shared counter rather than a per-key limiter with a constant key.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Iterable, Sequence

from fastapi import Request

from coursehub.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractSharedCounter,
    RateLimitResult,
)
from coursehub.adapters.rate_limit.in_memory import (
    InMemoryFixedWindowRateLimiter,
    InMemorySharedWindowCounter,
)
from coursehub.core.config import settings
from coursehub.core.errors import RateLimitedAppError
from coursehub.core.logging import hash_identifier

logger = logging.getLogger(__name__)

DAY = 24 * 60 * 60

COURSE_CREATION = "course_creation"
SECTION_CREATION = "section_creation"
LINK_ACTIVITY = "link_activity"
COURSE_SEARCH = "course_search"
COURSE_DETAIL = "course_detail"
LINK_CLICK_BURST = "link_click_burst"
LINK_CLICK_HOURLY = "link_click_hourly"
REPORT_SUBMISSION = "report_submission"
VERIFICATION_CALLER = "verification_caller"
VERIFICATION_GLOBAL = "verification_global"


class TierScope(str, Enum):
    CALLER = "caller"
    GLOBAL = "global"


@dataclass(frozen=True)
class Tier:
    """One rate-limit rule.

    Attributes:
        name: Stable identifier referenced by routes.
        window_seconds: Window length.
        limit: Maximum requests per window.
        scope: Whether the budget is per caller or shared by all callers.
    """

    name: str
    window_seconds: int
    limit: int
    scope: TierScope = TierScope.CALLER


DEFAULT_TIERS: tuple[Tier, ...] = (
    Tier(COURSE_CREATION, window_seconds=DAY, limit=10),
    Tier(SECTION_CREATION, window_seconds=DAY, limit=10),
    Tier(LINK_ACTIVITY, window_seconds=60, limit=30),
    Tier(COURSE_SEARCH, window_seconds=1, limit=100),
    Tier(COURSE_DETAIL, window_seconds=1, limit=20),
    Tier(LINK_CLICK_BURST, window_seconds=60, limit=3),
    Tier(LINK_CLICK_HOURLY, window_seconds=60 * 60, limit=10),
    Tier(REPORT_SUBMISSION, window_seconds=60, limit=1),
    Tier(VERIFICATION_CALLER, window_seconds=60, limit=1),
    Tier(VERIFICATION_GLOBAL, window_seconds=DAY, limit=300, scope=TierScope.GLOBAL),
)


class AdmissionController:
    """Holds one counter per tier and evaluates stacked tiers in order.

    Tiers are checked in the order the endpoint lists them; the first tier
    that rejects stops evaluation. A rejected request costs nothing: later
    tiers are never charged and earlier ones are refunded.
    """

    def __init__(
        self,
        tiers: Iterable[Tier] = DEFAULT_TIERS,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._tiers: dict[str, Tier] = {}
        self._per_caller: dict[str, AbstractRateLimiter] = {}
        self._shared: dict[str, AbstractSharedCounter] = {}

        for tier in tiers:
            if tier.name in self._tiers:
                raise ValueError(f"duplicate tier name: {tier.name}")
            self._tiers[tier.name] = tier
            if tier.scope is TierScope.GLOBAL:
                self._shared[tier.name] = InMemorySharedWindowCounter(
                    limit=tier.limit, window_seconds=tier.window_seconds, clock=clock
                )
            else:
                self._per_caller[tier.name] = InMemoryFixedWindowRateLimiter(
                    limit=tier.limit, window_seconds=tier.window_seconds, clock=clock
                )

    @property
    def tiers(self) -> dict[str, Tier]:
        return dict(self._tiers)

    def _consume(self, tier: Tier, caller: str) -> RateLimitResult:
        if tier.scope is TierScope.GLOBAL:
            return self._shared[tier.name].consume()
        return self._per_caller[tier.name].consume(caller)

    def _refund(self, tier: Tier, caller: str) -> None:
        if tier.scope is TierScope.GLOBAL:
            self._shared[tier.name].refund()
        else:
            self._per_caller[tier.name].refund(caller)

    def check(self, tier_names: Sequence[str], caller: str) -> None:
        """Admit the request or raise.

        Args:
            tier_names: Tiers the endpoint belongs to, in evaluation order.
            caller: Caller network identity used by caller-scoped tiers.

        Raises:
            KeyError: If a tier name is not configured.
            RateLimitedAppError: When any tier's budget is exhausted.
        """
        caller_hash = hash_identifier(caller)
        tiers = [self._tiers[name] for name in tier_names]
        charged: list[Tier] = []
        for tier in tiers:
            name = tier.name
            result = self._consume(tier, caller)
            if result.allowed:
                charged.append(tier)
                logger.debug(
                    "admission.allowed",
                    extra={"tier": name, "caller_hash": caller_hash, "remaining": result.remaining},
                )
                continue

            # The request never runs, so earlier tiers get their unit back.
            for passed in charged:
                self._refund(passed, caller)

            retry_after = result.retry_after_seconds or 0
            logger.warning(
                "admission.exceeded",
                extra={
                    "tier": name,
                    "scope": tier.scope.value,
                    "caller_hash": caller_hash,
                    "limit": result.limit,
                    "window_s": tier.window_seconds,
                    "retry_after_s": retry_after,
                },
            )
            raise RateLimitedAppError(
                code="rate_limited",
                message="Rate limit reached. Try again later.",
                details={"tier": name, "limit": result.limit, "retry_after": retry_after},
                headers=_rate_limit_headers(result) if settings.app.rate_limit_include_headers else None,
            )

    def reset(self) -> None:
        """Clear every counter."""
        for limiter in self._per_caller.values():
            limiter.reset()
        for counter in self._shared.values():
            counter.reset()


def _rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
        "Access-Control-Expose-Headers": "Retry-After, X-RateLimit-Reset",
    }


def caller_identity(request: Request) -> str:
    """Network identity of the caller as seen by the server."""
    return request.client.host if request.client else "unknown"


def admit(*tier_names: str) -> Callable[[Request], Awaitable[None]]:
    """Build a route dependency enforcing the given tiers.

    The dependency runs before path, query and body fields are validated, so
    a request with a well-formed but invalid body still counts. FastAPI reads
    and decodes the JSON body before resolving any dependency, though: a body
    that is not JSON at all is answered with 400 without reaching admission
    and without consuming budget.

    Usage:
        @router.post("/report", dependencies=[Depends(admit(REPORT_SUBMISSION))])
    """

    async def enforce_admission(request: Request) -> None:
        if not settings.app.rate_limit_enabled:
            return
        controller: AdmissionController = request.app.state.admission
        controller.check(tier_names, caller_identity(request))

    return enforce_admission
