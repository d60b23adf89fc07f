"""Async SQLAlchemy engine and session factory."""

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from clientele.core.config import settings
from clientele.core.logging import get_logger

logger = get_logger(__name__)

# Pool settings for server databases; sqlite's driver rejects them
SERVER_POOL_OPTIONS: dict[str, Any] = {
    "pool_size": 20,
    "max_overflow": 0,
    "pool_pre_ping": True,
}


def create_engine(database_url: str | None = None, **overrides: Any) -> AsyncEngine:
    """Create the engine for ``database_url`` (settings by default).

    Keyword ``overrides`` win over the pool defaults, e.g. ``poolclass=NullPool``
    in tests.
    """
    url = database_url or settings.database_url
    options: dict[str, Any] = {"echo": settings.debug}
    if not url.startswith("sqlite"):
        options |= SERVER_POOL_OPTIONS
    options |= overrides
    return create_async_engine(url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Snapshots are built after commit, so loaded attributes must survive it
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def create_tables(engine: AsyncEngine) -> None:
    """Create any missing tables for the ORM models."""
    from clientele.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_tables_ensured", tables=sorted(Base.metadata.tables))
