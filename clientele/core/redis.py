"""Redis client used for shared rate limit windows and the health probe."""

import redis.asyncio as redis
from redis.exceptions import RedisError

from clientele.core.config import settings
from clientele.core.logging import get_logger

logger = get_logger(__name__)

MAX_CONNECTIONS = 20


async def create_redis_pool(redis_url: str | None = None) -> redis.Redis:
    """Build a pooled client. No connection is opened until the first command."""
    return redis.Redis.from_url(
        redis_url or settings.redis_url,
        decode_responses=True,
        max_connections=MAX_CONNECTIONS,
    )


async def check_redis_health(pool: redis.Redis) -> bool:
    """Return True when ``PING`` succeeds."""
    try:
        await pool.ping()
    except (RedisError, OSError, RuntimeError) as exc:
        logger.warning("redis_unreachable", error=str(exc))
        return False
    return True
