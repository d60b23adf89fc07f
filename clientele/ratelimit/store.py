"""Storage backends for per-identity request logs.

A store maps an identity key to the timestamps (epoch milliseconds) of its
recent requests. ``RateLimiter`` drives a store through ``get``/``set``/
``evict`` under its own per-key lock. A store that can also run the whole
prune-check-append step atomically (``AtomicRateLimitStore``) is used that
way instead, which is what makes the Redis backend safe across processes.
"""

from __future__ import annotations

import time
import uuid
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from clientele.core.errors import ValidationError
from clientele.core.logging import get_logger

if TYPE_CHECKING:
    import redis.asyncio as redis

logger = get_logger(__name__)

Clock = Callable[[], int]


def system_clock_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class HitOutcome:
    """Result of one prune-check-append step.

    ``count`` is the number of requests in the window after the step and
    ``oldest_ms`` the oldest surviving timestamp.
    """

    admitted: bool
    count: int
    oldest_ms: int


@runtime_checkable
class RateLimitStore(Protocol):
    async def get(self, key: str) -> list[int] | None: ...

    async def set(self, key: str, timestamps: Sequence[int], ttl_ms: int) -> None: ...

    async def evict(self, key: str) -> None: ...


@runtime_checkable
class AtomicRateLimitStore(RateLimitStore, Protocol):
    async def hit(
        self, key: str, limit: int, interval_ms: int, now_ms: int
    ) -> HitOutcome: ...


@dataclass
class _LogEntry:
    timestamps: tuple[int, ...]
    expires_at_ms: int


class InMemoryRateLimitStore:
    """Process-local store bounded to ``max_identities`` keys.

    Each key expires ``ttl_ms`` after its last write. When the store is full
    the least recently used key is evicted. Eviction only ever drops a log;
    a concurrent writer for the evicted key re-inserts its full log on
    ``set``, so at worst the limiter forgets old requests (a false negative)
    and never admits beyond the limit because of eviction.
    """

    DEFAULT_MAX_IDENTITIES = 500

    def __init__(
        self,
        max_identities: int = DEFAULT_MAX_IDENTITIES,
        clock: Clock = system_clock_ms,
    ):
        if max_identities < 1:
            raise ValidationError(
                "max_identities must be positive", field="max_identities"
            )
        self.max_identities = max_identities
        self._clock = clock
        self._entries: OrderedDict[str, _LogEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    async def get(self, key: str) -> list[int] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at_ms <= self._clock():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return list(entry.timestamps)

    async def set(self, key: str, timestamps: Sequence[int], ttl_ms: int) -> None:
        self._entries[key] = _LogEntry(
            timestamps=tuple(timestamps),
            expires_at_ms=self._clock() + ttl_ms,
        )
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_identities:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("rate_limit_identity_evicted", evicted=evicted)

    async def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()


# Prune, count, and append in one round trip. Returns {admitted, count, oldest}.
_HIT_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local interval = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
redis.call('ZREMRANGEBYSCORE', key, '-inf', now - interval)
local count = redis.call('ZCARD', key)
if count >= limit then
  local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
  return {0, count, tonumber(oldest[2])}
end
redis.call('ZADD', key, now, ARGV[4])
redis.call('PEXPIRE', key, interval)
local first = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
return {1, count + 1, tonumber(first[2])}
"""


class RedisRateLimitStore:
    """Redis sorted-set store shared by every process of the deployment.

    One sorted set per identity, scored by request time. Keys expire with
    their interval, and capacity is bounded by the server's maxmemory
    eviction policy rather than by this class.
    """

    BASE_NAME = "rate_limit"

    def __init__(self, redis_client: redis.Redis):
        self._redis = redis_client
        self._hit = redis_client.register_script(_HIT_SCRIPT)

    def _key(self, key: str) -> str:
        return f"{self.BASE_NAME}:{key}"

    async def get(self, key: str) -> list[int] | None:
        members = await self._redis.zrange(self._key(key), 0, -1, withscores=True)
        if not members:
            return None
        return [int(score) for _, score in members]

    async def set(self, key: str, timestamps: Sequence[int], ttl_ms: int) -> None:
        redis_key = self._key(key)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.delete(redis_key)
            if timestamps:
                pipe.zadd(
                    redis_key,
                    {f"{ts}-{i}-{uuid.uuid4().hex[:8]}": ts for i, ts in enumerate(timestamps)},
                )
                pipe.pexpire(redis_key, ttl_ms)
            await pipe.execute()

    async def evict(self, key: str) -> None:
        await self._redis.delete(self._key(key))

    async def hit(self, key: str, limit: int, interval_ms: int, now_ms: int) -> HitOutcome:
        member = f"{now_ms}-{uuid.uuid4().hex}"
        admitted, count, oldest = await self._hit(
            keys=[self._key(key)], args=[now_ms, interval_ms, limit, member]
        )
        return HitOutcome(admitted=bool(int(admitted)), count=int(count), oldest_ms=int(oldest))


__all__ = [
    "AtomicRateLimitStore",
    "HitOutcome",
    "InMemoryRateLimitStore",
    "RateLimitStore",
    "RedisRateLimitStore",
    "system_clock_ms",
]
