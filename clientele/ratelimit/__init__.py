"""Sliding-window request throttling shared by all mutation endpoints."""

from typing import TYPE_CHECKING

from clientele.core.config import settings
from clientele.core.logging import get_logger
from clientele.ratelimit.limiter import (
    RATE_LIMIT_HEADERS,
    RateLimitCategory,
    RateLimiter,
    RateLimitResult,
    RateLimitRule,
)
from clientele.ratelimit.store import (
    AtomicRateLimitStore,
    InMemoryRateLimitStore,
    RateLimitStore,
    RedisRateLimitStore,
)

if TYPE_CHECKING:
    import redis.asyncio as redis

logger = get_logger(__name__)


def create_rate_limiter(redis_client: "redis.Redis | None" = None) -> RateLimiter:
    """Build the process-wide limiter for the configured backend.

    Args:
        redis_client: Required when RATE_LIMIT_BACKEND is ``redis``.

    Returns:
        RateLimiter bound to a fresh store.
    """
    if settings.rate_limit_backend == "redis":
        if redis_client is None:
            raise RuntimeError("RATE_LIMIT_BACKEND=redis requires a Redis client")
        store: RateLimitStore = RedisRateLimitStore(redis_client)
    else:
        store = InMemoryRateLimitStore(max_identities=settings.rate_limit_max_identities)

    logger.info(
        "rate_limiter_created",
        backend=settings.rate_limit_backend,
        store=type(store).__name__,
    )
    return RateLimiter(store)


__all__ = [
    "RATE_LIMIT_HEADERS",
    "AtomicRateLimitStore",
    "InMemoryRateLimitStore",
    "RateLimitCategory",
    "RateLimitResult",
    "RateLimitRule",
    "RateLimitStore",
    "RateLimiter",
    "RedisRateLimitStore",
    "create_rate_limiter",
]
