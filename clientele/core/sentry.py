"""Opt-in Sentry reporting for server errors."""

from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from clientele.core.config import settings

# Client record fields that must never leave the process
SCRUBBED_KEYS = frozenset({"name", "email", "phone", "total_spend", "notes"})
SCRUBBED = "[scrubbed]"


def _scrub(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: SCRUBBED if key in SCRUBBED_KEYS else _scrub(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_scrub(item) for item in value]
    return value


def scrub_event(event: dict[str, Any], _hint: dict[str, Any]) -> dict[str, Any]:
    """``before_send`` hook: mask client details in extras, contexts and request data."""
    for section in ("extra", "contexts"):
        if section in event:
            event[section] = _scrub(event[section])
    request = event.get("request")
    if isinstance(request, dict) and "data" in request:
        request["data"] = _scrub(request["data"])
    return event


def init_sentry() -> bool:
    """Start Sentry when ``SENTRY_DSN`` is set; returns whether it was started.

    Only 5xx responses become events, and 10% of transactions are traced.
    """
    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1,
        send_default_pii=False,
        before_send=scrub_event,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(
                transaction_style="endpoint",
                failed_request_status_codes={*range(500, 600)},
            ),
        ],
    )
    return True


def capture_exception(exc: BaseException) -> None:
    """Report a handled exception. Does nothing until ``init_sentry`` succeeds."""
    sentry_sdk.capture_exception(exc)
