"""Fixtures for API tests: sqlite-backed sessions and a fresh rate limiter."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clientele.core.database import create_engine, create_session_factory, create_tables
from clientele.main import app
from clientele.ratelimit import InMemoryRateLimitStore, RateLimiter


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create sqlite-backed session factory with every table."""
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)

    factory = create_session_factory(engine)
    app.state.async_session = factory
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def rate_limiter() -> RateLimiter:
    """Fresh limiter per test; the lifespan does not run under ASGITransport."""
    limiter = RateLimiter(InMemoryRateLimitStore())
    app.state.rate_limiter = limiter
    return limiter


@pytest_asyncio.fixture
async def api_client(
    session_factory: async_sessionmaker[AsyncSession],
    rate_limiter: RateLimiter,
) -> AsyncGenerator[AsyncClient, None]:
    """Client over the real app; sessions come from ``session_factory`` via ``get_db``."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def seed(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[list]]:
    """Insert ORM rows and return them with primary keys assigned."""

    async def insert(*rows: object) -> list:
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()
        return list(rows)

    return insert


@pytest.fixture
def ago() -> Callable[[float], datetime]:
    """Instant ``days`` before the real current time (endpoints use the wall clock)."""

    def helper(days: float) -> datetime:
        return datetime.now(timezone.utc) - timedelta(days=days)

    return helper
