"""
HeartSmiles Backend — Error / 404 Responder
=============================================

What:  Terminal stage of the pipeline. Turns failures into structured JSON.
Why:   One place decides what internal detail reaches the client:
       everything in non-production, only safe messages in production.
       Full detail is always logged server-side.
How:   ErrorResponderMiddleware wraps every inner stage (CORS, rate limit,
       body decoding, path normalization, routing, collaborators). Any
       exception escaping them is rendered by `error_response()`.
       The router calls `not_found_response()` when no prefix matches.

Branches:
    Error:      {"error": "Something went wrong!", "message": ..., "request_id": ...}
                + "stack" in non-production
    Not found:  {"error": "Route not found", "debug": {...},
                 "availableRoutes": [...], "note": ...}

Neither branch touches shared state; they only build the response.
"""

import logging
import traceback
from typing import Optional

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.exceptions import HeartSmilesError, status_code_of
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong!"
REDACTED_MESSAGE = "Internal server error"

AVAILABLE_ROUTES = [
    "GET /",
    "GET /test",
    "GET /api/test",
    "GET /api/health",
    "GET /health",
    "POST /api/auth/login",
    "POST /auth/login",
]


def _public_message(exc: BaseException, production: bool) -> str:
    if not production:
        return getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
    if isinstance(exc, HeartSmilesError) and exc.expose:
        return exc.message
    return REDACTED_MESSAGE


def error_response(request: Request, exc: BaseException, production: bool) -> JSONResponse:
    """
    Render the error branch.

    Status is the exception's declared status, or 500. The stack trace is
    logged in every mode but returned only outside production.
    """
    rid = request_id_var.get("")
    status = status_code_of(exc)
    context = getattr(exc, "context", None)

    log = logger.error if status >= 500 else logger.warning
    log(
        "[%s] %s %s failed with %d: %s: %s | Context: %s",
        rid,
        request.method,
        request.url.path,
        status,
        exc.__class__.__name__,
        exc,
        context,
        exc_info=status >= 500,
    )

    content = {
        "error": GENERIC_ERROR,
        "message": _public_message(exc, production),
        "request_id": rid,
    }
    if not production:
        content["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return JSONResponse(status_code=status, content=content)


def not_found_response(request: Request, original_url: Optional[str] = None) -> JSONResponse:
    """Render the not-found branch, echoing what the router received."""
    url = request.url.path + (f"?{request.url.query}" if request.url.query else "")
    debug = {
        "path": request.url.path,
        "originalUrl": original_url or url,
        "url": url,
        "method": request.method,
        "route": "no route matched",
        "query": dict(request.query_params),
        "headers": {
            "content-type": request.headers.get("content-type"),
            "user-agent": request.headers.get("user-agent"),
            "host": request.headers.get("host"),
        },
    }
    logger.info("404 - Route not found: %s %s", request.method, request.url.path, extra={"debug": debug})
    return JSONResponse(
        status_code=404,
        content={
            "error": "Route not found",
            "debug": debug,
            "availableRoutes": AVAILABLE_ROUTES,
            "note": "Check the debug object to see what path the API received",
        },
    )


class ErrorResponderMiddleware:
    """
    Catches exceptions from every inner stage and renders the error branch.

    Pure ASGI (not BaseHTTPMiddleware) so that exceptions raised inside
    other middleware, before any route runs, are caught as well.
    If the response has already started streaming the exception is
    re-raised; there is no way to replace a half-sent response.
    """

    def __init__(self, app: ASGIApp, production: bool = False) -> None:
        self.app = app
        self.production = production

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                raise
            response = error_response(Request(scope), exc, self.production)
            await response(scope, receive, send)
