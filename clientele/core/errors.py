"""Domain error types shared by the engine, the rate limiter and the API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from clientele.ratelimit.limiter import RateLimitResult


class ClienteleError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(ClienteleError, ValueError):
    """Input rejected before scoring (bad tier, negative spend, invalid date).

    The detail is safe to return to the caller.
    """

    def __init__(self, message: str, *, field: str | None = None, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(message)

    def to_detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"message": str(self)}
        if self.field is not None:
            detail["field"] = self.field
        return detail


class NotFoundError(ClienteleError):
    """A referenced client, inventory item or reminder does not exist."""

    def __init__(self, resource: str, resource_id: Any):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} not found")


class RateLimitExceeded(ClienteleError):
    """The caller exhausted its sliding window; retry after ``result.reset_at``."""

    def __init__(self, result: RateLimitResult, identity: str | None = None):
        self.result = result
        self.identity = identity
        super().__init__(
            f"Rate limit of {result.limit} requests exceeded; "
            f"resets at {result.reset_at.isoformat()}"
        )


class PersistenceError(ClienteleError):
    """The persistence collaborator failed.

    ``operation`` names the repository call. The original exception is kept as
    ``__cause__`` for server-side logging and never reaches the caller.
    """

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Persistence operation '{operation}' failed")


__all__ = [
    "ClienteleError",
    "NotFoundError",
    "PersistenceError",
    "RateLimitExceeded",
    "ValidationError",
]
