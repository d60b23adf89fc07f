"""Correlation middleware: tags every request and its log events with an ID."""

import time
import uuid

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from clientele.core.logging import client_id_ctx, get_logger, identity_ctx, request_id_ctx

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware:
    """Pure ASGI middleware that scopes the logging context to one request.

    The caller's ``X-Request-ID`` is reused when present, otherwise a UUID is
    minted. The ID is echoed on the response, and the client and identity
    context set by handlers is cleared when the request ends.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = dict(scope["headers"]).get(REQUEST_ID_HEADER.lower().encode())
        request_id = incoming.decode("latin-1") if incoming else str(uuid.uuid4())
        tokens = (
            request_id_ctx.set(request_id),
            client_id_ctx.set(None),
            identity_ctx.set(None),
        )
        started = time.perf_counter()
        status_code = 500

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            logger.debug(
                "request_finished",
                method=scope["method"],
                path=scope["path"],
                status=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            identity_ctx.reset(tokens[2])
            client_id_ctx.reset(tokens[1])
            request_id_ctx.reset(tokens[0])
