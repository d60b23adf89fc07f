"""Map domain errors onto HTTP responses.

Validation and not-found details are safe to show. Persistence failures are
logged in full server-side and reported to the caller generically.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from clientele.core.errors import (
    NotFoundError,
    PersistenceError,
    RateLimitExceeded,
    ValidationError,
)
from clientele.core.logging import get_logger
from clientele.core.sentry import capture_exception
from clientele.ratelimit.store import system_clock_ms

logger = get_logger(__name__)

GENERIC_ERRORS = {
    "VALIDATION": "Invalid request data",
    "NOT_FOUND": "Resource not found",
    "DATABASE": "Unable to process request",
    "RATE_LIMIT": "Too many requests",
}


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": GENERIC_ERRORS["VALIDATION"], "details": [exc.to_detail()]},
    )


async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": f"{exc.resource} not found"},
    )


async def handle_rate_limit(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    headers = exc.result.headers()
    headers["Retry-After"] = str(exc.result.retry_after_seconds(system_clock_ms()))
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": GENERIC_ERRORS["RATE_LIMIT"],
            "reset_at": headers["X-RateLimit-Reset"],
        },
        headers=headers,
    )


async def handle_persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    cause = exc.__cause__
    logger.error(
        "request_failed_persistence",
        operation=exc.operation,
        path=request.url.path,
        method=request.method,
        cause=repr(cause) if cause is not None else None,
        exc_info=exc,
    )
    capture_exception(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": GENERIC_ERRORS["DATABASE"]},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(NotFoundError, handle_not_found)
    app.add_exception_handler(RateLimitExceeded, handle_rate_limit)
    app.add_exception_handler(PersistenceError, handle_persistence_error)
