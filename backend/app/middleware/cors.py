"""
HeartSmiles Backend — CORS Origin Validation Middleware
=========================================================

What:  Cross-origin handling driven by the OriginMatcher allow-list.
Why:   Starlette's stock CORSMiddleware silently omits CORS headers for a
       disallowed origin and still runs the request. Here a disallowed
       origin FAILS the request: CorsRejectedError is raised and rendered
       by the Error Responder (403, no CORS headers).
How:   Subclass of Starlette's CORSMiddleware that
       1. evaluates the Origin header once with OriginMatcher.is_allowed()
          (logged), raising on denial;
       2. delegates preflight and simple-response header handling to the
          parent, whose origin check is answered by the matcher.
       3. answers successful preflights with 204 and no body.
"""

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from app.exceptions import CorsRejectedError
from app.services.origin_matcher import OriginMatcher

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS")
ALLOWED_HEADERS = (
    "Content-Type",
    "Authorization",
    "X-Requested-With",
    "Accept",
    "Origin",
    "Access-Control-Request-Method",
    "Access-Control-Request-Headers",
)
EXPOSED_HEADERS = ("Content-Length", "Content-Type")
PREFLIGHT_SUCCESS_STATUS = 204


class OriginValidationMiddleware(CORSMiddleware):
    """CORS with a closed allow-list and hard rejection of unknown origins."""

    def __init__(self, app: ASGIApp, matcher: OriginMatcher) -> None:
        super().__init__(
            app,
            allow_origins=(),
            allow_methods=ALLOWED_METHODS,
            allow_headers=ALLOWED_HEADERS,
            allow_credentials=True,
            expose_headers=EXPOSED_HEADERS,
        )
        self.matcher = matcher

    def is_allowed_origin(self, origin: str) -> bool:
        # Called by the parent while building headers; decision already logged
        return self.matcher.matches(origin)

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        # Successful preflights answer 204 with an empty body
        headers = {
            name: value
            for name, value in response.headers.items()
            if name not in ("content-length", "content-type")
        }
        return Response(status_code=PREFLIGHT_SUCCESS_STATUS, headers=headers)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            origin = Headers(scope=scope).get("origin")
            if not self.matcher.is_allowed(origin):
                raise CorsRejectedError(origin)
        await super().__call__(scope, receive, send)
