"""ASGI entry point: ``uvicorn clientele.main:app``."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clientele.api import (
    alerts_router,
    clients_router,
    health_router,
    reminders_router,
    tiers_router,
    waitlist_router,
)
from clientele.api.errors import register_exception_handlers
from clientele.api.middleware import REQUEST_ID_HEADER, RequestContextMiddleware
from clientele.core.config import settings
from clientele.core.database import create_engine, create_session_factory, create_tables
from clientele.core.logging import configure_logging, get_logger
from clientele.core.redis import create_redis_pool
from clientele.core.sentry import init_sentry
from clientele.ratelimit import RATE_LIMIT_HEADERS, create_rate_limiter

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database, Redis and the shared rate limiter for the app's lifetime."""
    configure_logging()
    init_sentry()

    engine = create_engine()
    if settings.database_create_tables:
        await create_tables(engine)
    app.state.db_engine = engine
    app.state.async_session = create_session_factory(engine)
    app.state.redis = await create_redis_pool()
    app.state.rate_limiter = create_rate_limiter(app.state.redis)
    logger.info(
        "clientele_started",
        environment=settings.environment,
        rate_limit_backend=settings.rate_limit_backend,
    )

    try:
        yield
    finally:
        await app.state.redis.aclose()
        await engine.dispose()
        logger.info("clientele_stopped")


def create_app() -> FastAPI:
    application = FastAPI(
        title="Clientele",
        description="Client tiering, follow-up scheduling and allocation alerts for luxury retail",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Added last so it wraps CORS and sees every response
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, *RATE_LIMIT_HEADERS],
    )
    application.add_middleware(RequestContextMiddleware)

    register_exception_handlers(application)
    for router in (
        health_router,
        alerts_router,
        tiers_router,
        clients_router,
        waitlist_router,
        reminders_router,
    ):
        application.include_router(router)
    return application


app = create_app()
