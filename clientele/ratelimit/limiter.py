"""Sliding-window rate limiter keyed by caller identity.

Each identity keeps a log of request timestamps. A request is admitted when
fewer than ``limit`` timestamps fall inside the trailing ``interval_ms``
window. Requests for the same identity serialize on a per-key
``asyncio.Lock``; different identities never contend. ``check`` keeps a
separate log per preset, so reads never spend the write budget.

Presets:
    - READ: 60 requests / 60s
    - WRITE: 30 requests / 60s
    - SEARCH: 30 requests / 60s
    - IMPORT: 5 requests / hour
    - AUTH: 10 requests / 60s
"""

from __future__ import annotations

import asyncio
import weakref
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from clientele.core.errors import ValidationError
from clientele.core.logging import get_logger
from clientele.ratelimit.store import (
    AtomicRateLimitStore,
    Clock,
    HitOutcome,
    RateLimitStore,
    system_clock_ms,
)

logger = get_logger(__name__)

RATE_LIMIT_HEADERS = (
    "X-RateLimit-Limit",
    "X-RateLimit-Remaining",
    "X-RateLimit-Reset",
    "Retry-After",
)


@dataclass(frozen=True)
class RateLimitRule:
    limit: int
    interval_ms: int


class RateLimitCategory(Enum):
    """Fixed policy presets; callers cannot negotiate these per request."""

    READ = RateLimitRule(limit=60, interval_ms=60_000)
    WRITE = RateLimitRule(limit=30, interval_ms=60_000)
    SEARCH = RateLimitRule(limit=30, interval_ms=60_000)
    IMPORT = RateLimitRule(limit=5, interval_ms=3_600_000)
    AUTH = RateLimitRule(limit=10, interval_ms=60_000)

    @property
    def rule(self) -> RateLimitRule:
        return self.value


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one ``allow`` call.

    ``reset_at_ms`` is when the oldest request in the window expires on
    rejection, or one interval from now on success.
    """

    success: bool
    limit: int
    remaining: int
    reset_at_ms: int

    @property
    def reset_at(self) -> datetime:
        return datetime.fromtimestamp(self.reset_at_ms / 1000, tz=timezone.utc)

    def retry_after_seconds(self, now_ms: int) -> int:
        return max(0, -(-(self.reset_at_ms - now_ms) // 1000))

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": self.reset_at.isoformat().replace("+00:00", "Z"),
        }


class RateLimiter:
    """Sliding-window limiter over an injected ``RateLimitStore``.

    Create one per process (the app lifespan does this) and share it.

    Usage:
        limiter = RateLimiter(InMemoryRateLimitStore())
        result = await limiter.allow("203.0.113.7", limit=30, interval_ms=60_000)
        if not result.success:
            ...
    """

    ANONYMOUS = "anonymous"

    def __init__(self, store: RateLimitStore, clock: Clock = system_clock_ms):
        self.store = store
        self._clock = clock
        # Locks live only while some request holds a reference to them.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def allow(self, identity: str | None, limit: int, interval_ms: int) -> RateLimitResult:
        """Record a request for ``identity`` if it fits inside the window.

        Raises:
            ValidationError: If limit or interval_ms is not positive.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError("limit must be a positive integer", field="limit", value=limit)
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms < 1:
            raise ValidationError(
                "interval_ms must be a positive integer",
                field="interval_ms",
                value=interval_ms,
            )
        key = self._normalize(identity)

        if isinstance(self.store, AtomicRateLimitStore):
            now_ms = self._clock()
            outcome = await self.store.hit(key, limit, interval_ms, now_ms)
        else:
            lock = self._lock_for(key)
            async with lock:
                now_ms = self._clock()
                outcome = await self._hit_locked(key, limit, interval_ms, now_ms)

        if outcome.admitted:
            return RateLimitResult(
                success=True,
                limit=limit,
                remaining=limit - outcome.count,
                reset_at_ms=now_ms + interval_ms,
            )

        logger.warning(
            "rate_limit_rejected",
            identity=key,
            limit=limit,
            interval_ms=interval_ms,
        )
        return RateLimitResult(
            success=False,
            limit=limit,
            remaining=0,
            reset_at_ms=outcome.oldest_ms + interval_ms,
        )

    async def check(self, identity: str | None, category: RateLimitCategory) -> RateLimitResult:
        """Apply a preset. Each category keeps its own log per identity."""
        rule = category.rule
        key = f"{category.name.lower()}:{self._normalize(identity)}"
        return await self.allow(key, rule.limit, rule.interval_ms)

    def _normalize(self, identity: str | None) -> str:
        return (identity or "").strip() or self.ANONYMOUS

    async def _hit_locked(
        self, key: str, limit: int, interval_ms: int, now_ms: int
    ) -> HitOutcome:
        window_start = now_ms - interval_ms
        logged = await self.store.get(key) or []
        in_window = sorted(ts for ts in logged if ts > window_start)

        if len(in_window) >= limit:
            if len(in_window) != len(logged):
                await self.store.set(key, in_window, interval_ms)
            return HitOutcome(admitted=False, count=len(in_window), oldest_ms=in_window[0])

        in_window.append(now_ms)
        await self.store.set(key, in_window, interval_ms)
        return HitOutcome(admitted=True, count=len(in_window), oldest_ms=in_window[0])

    async def reset(self, identity: str, category: RateLimitCategory | None = None) -> None:
        """Forget an identity, for one category or for the raw key."""
        key = self._normalize(identity)
        if category is not None:
            key = f"{category.name.lower()}:{key}"
        await self.store.evict(key)


__all__ = [
    "RATE_LIMIT_HEADERS",
    "RateLimitCategory",
    "RateLimitResult",
    "RateLimitRule",
    "RateLimiter",
]
