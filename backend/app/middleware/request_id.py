"""
HeartSmiles Backend — Request ID Middleware
=============================================

What:  Assigns a short correlation ID to each request and echoes it back.
Why:   Access log lines, error log lines and error response bodies all carry
       the same ID, so a support report can be matched to server logs.
How:   Reuses a client-provided X-Request-ID or generates one, stores it in
       a ContextVar for loggers and in request.state for handlers, and adds
       it to the response headers.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware that assigns a unique ID to each request for tracing."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 chars is enough for correlation and stays readable in logs
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
