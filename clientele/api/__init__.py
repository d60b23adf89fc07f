"""API module exports."""

from clientele.api.alerts import router as alerts_router
from clientele.api.clients import router as clients_router
from clientele.api.deps import get_db, get_rate_limiter, get_redis, get_repository, rate_limit
from clientele.api.health import router as health_router
from clientele.api.reminders import router as reminders_router
from clientele.api.tiers import router as tiers_router
from clientele.api.waitlist import router as waitlist_router

__all__ = [
    "alerts_router",
    "clients_router",
    "get_db",
    "get_rate_limiter",
    "get_redis",
    "get_repository",
    "health_router",
    "rate_limit",
    "reminders_router",
    "tiers_router",
    "waitlist_router",
]
