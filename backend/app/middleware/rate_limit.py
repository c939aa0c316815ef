"""
HeartSmiles Backend — Rate Limiting Middleware
================================================

What:  Applies the fixed-window RateLimiter to every request.
Why:   Protects the API and its collaborators from abusive clients.
How:   Resolves the client identity (one trusted proxy hop), asks the
       limiter for a decision, and either answers 429 directly or lets
       the request through with advisory headers.

Response headers (IETF draft "RateLimit header fields", standard form):
    RateLimit-Policy:     100;w=900
    RateLimit-Limit:      100
    RateLimit-Remaining:  42
    RateLimit-Reset:      611          (seconds until the window resets)
    Retry-After:          611          (429 responses only)

Exempt paths (health checks, diagnostics) get neither counting nor headers.
A 429 is a normal response, not an error: it never reaches the Error
Responder.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from app.services.rate_limiter import (
    RATE_LIMIT_MESSAGE,
    RateDecision,
    RateLimiter,
    resolve_client_identity,
)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-client admission control.

    The limiter (and its store) is injected, so every app instance and
    every test owns its own counters.
    """

    def __init__(self, app: ASGIApp, limiter: RateLimiter, trusted_proxy_hops: int = 1):
        super().__init__(app)
        self.limiter = limiter
        self.trusted_proxy_hops = trusted_proxy_hops

    def client_identity(self, request: Request) -> str:
        peer = request.client.host if request.client else None
        return resolve_client_identity(
            request.headers.get("x-forwarded-for"),
            peer,
            self.trusted_proxy_hops,
        )

    def _headers(self, decision: RateDecision) -> dict:
        reset_after = decision.reset_after(self.limiter.clock())
        window = int(self.limiter.window_seconds)
        return {
            "RateLimit-Policy": f"{decision.limit};w={window}",
            "RateLimit-Limit": str(decision.limit),
            "RateLimit-Remaining": str(decision.remaining),
            "RateLimit-Reset": str(reset_after),
        }

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        decision = self.limiter.admit(self.client_identity(request), request.url.path)
        if decision.exempt:
            return await call_next(request)

        headers = self._headers(decision)
        if not decision.allowed:
            headers["Retry-After"] = headers["RateLimit-Reset"]
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": RATE_LIMIT_MESSAGE,
                },
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
