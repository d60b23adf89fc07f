"""FastAPI dependency injection for database, Redis, repository and rate limiting."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clientele.core.config import settings
from clientele.core.errors import PersistenceError, RateLimitExceeded
from clientele.core.logging import identity_ctx
from clientele.ratelimit import RateLimitCategory, RateLimiter, RateLimitResult
from clientele.repository import ClienteleRepository

if TYPE_CHECKING:
    import redis.asyncio as redis


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session from the app's session factory.

    The session commits once the handler returns and rolls back if it
    raises. A failed commit is reported as ``PersistenceError`` so it reaches
    the same handler as repository failures.

    Args:
        request: FastAPI request containing app state.

    Yields:
        AsyncSession bound to the request.

    Raises:
        PersistenceError: If the final commit fails.
    """
    async with request.app.state.async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        try:
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise PersistenceError("commit") from exc


async def get_redis(request: Request) -> "redis.Redis":
    """Get Redis connection pool from app state."""
    return request.app.state.redis


# Function scope: the commit runs before the response is sent, so its errors
# still reach the exception handlers
DbSession = Annotated[AsyncSession, Depends(get_db, scope="function")]


async def get_repository(db: DbSession) -> ClienteleRepository:
    """Repository over the request's session.

    Args:
        db: Session from ``get_db``; committed after the handler returns.

    Returns:
        ClienteleRepository bound to that session.
    """
    return ClienteleRepository(db)


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the process-wide limiter created in the app lifespan."""
    return request.app.state.rate_limiter


def client_identity(request: Request) -> str:
    """Identity used for rate limiting: the caller's address.

    The first X-Forwarded-For hop is used only when the deployment says the
    proxy in front of it can be trusted.
    """
    if settings.rate_limit_trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return RateLimiter.ANONYMOUS


def rate_limit(
    category: RateLimitCategory,
) -> Callable[..., Awaitable[RateLimitResult]]:
    """Build a dependency that throttles an endpoint with a preset.

    Usage:
        @router.post("", dependencies=[Depends(rate_limit(RateLimitCategory.WRITE))])
        async def create_thing(...): ...
    """

    async def dependency(
        request: Request,
        response: Response,
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> RateLimitResult:
        identity = client_identity(request)
        identity_ctx.set(identity)
        result = await limiter.check(identity, category)
        if not result.success:
            raise RateLimitExceeded(result, identity=identity)
        for name, value in result.headers().items():
            response.headers[name] = value
        return result

    dependency.__name__ = f"rate_limit_{category.name.lower()}"
    return dependency
