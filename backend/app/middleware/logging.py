"""
HeartSmiles Backend — Request Logging Middleware
==================================================

What:  One access log line per request: method, path, status, duration.
Why:   Operability. Proxy path rewriting problems in particular are only
       diagnosable if every request is logged with what the app received.
How:   Times the inner pipeline and logs at a level chosen by status class.

What we log vs what we DON'T log (privacy):
    Log:        method, path, query, status, duration, client IP, request ID
    Don't log:  request bodies (participant data), Authorization headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("heartsmiles.access")

# Load balancer probes; logging them drowns out real traffic
QUIET_PATHS = {"/health", "/api/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs structured information about each HTTP request and response.

    Log level by status:
        5xx → ERROR, 4xx → WARNING, otherwise INFO
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        query = request.url.query
        rid = request_id_var.get("")

        if path in QUIET_PATHS:
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path + (f"?{query}" if query else ""),
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
