"""Liveness probe reporting database and Redis reachability."""

from typing import Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clientele.api.deps import DbSession, get_redis
from clientele.core.config import settings
from clientele.core.logging import get_logger
from clientele.core.redis import check_redis_health

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["health"])

Connectivity = Literal["connected", "disconnected"]


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    db: Connectivity
    redis: Connectivity
    rate_limit_backend: Literal["memory", "redis"]


async def _database_status(db: AsyncSession) -> Connectivity:
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError, RuntimeError) as exc:
        logger.warning("database_unreachable", error=str(exc))
        return "disconnected"
    return "connected"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    db: DbSession,
) -> HealthResponse:
    """Probe both stores. Not rate limited, so monitors never see a 429."""
    db_status = await _database_status(db)
    redis_ok = await check_redis_health(await get_redis(request))
    redis_status: Connectivity = "connected" if redis_ok else "disconnected"

    healthy = db_status == "connected" and redis_ok
    return HealthResponse(
        status="ok" if healthy else "degraded",
        db=db_status,
        redis=redis_status,
        rate_limit_backend=settings.rate_limit_backend,
    )
