"""
HeartSmiles Backend — Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions raised by the request pipeline and
       by the collaborator wrappers.
Why:   Each failure carries its HTTP status and a message that is safe to
       show to API consumers. The Error Responder (middleware/errors.py)
       turns them into structured JSON; anything else is treated as an
       unexpected 500.
How:   Each exception class carries a message, an optional context dict
       (logged, never returned) and a `status_code`.

Exception Hierarchy:
    HeartSmilesError (base)                 → 500
    ├── MalformedBodyError                  → 400 Bad Request
    ├── CorsRejectedError                   → 403 Forbidden
    ├── PayloadTooLargeError                → 413 Payload Too Large
    ├── AuthConfigurationError              → 500 (JWT_SECRET missing)
    └── CollaboratorUnavailableError        → 503 Service Unavailable

Rate limiting is intentionally absent: the limiter answers 429 itself
and never reaches the generic error branch.
"""

from typing import Any, Dict, Optional


class HeartSmilesError(Exception):
    """
    Base exception for all HeartSmiles application errors.

    Attributes:
        message:      User-facing error description.
        context:      Additional debug info (logged but NOT returned to client)
        status_code:  HTTP status the Error Responder answers with.
        expose:       Whether `message` may be shown in production.
    """

    status_code = 500
    expose = False

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class MalformedBodyError(HeartSmilesError):
    """
    Raised when a JSON or form-encoded body cannot be decoded.

    HTTP: 400 Bad Request
    """

    status_code = 400
    expose = True

    def __init__(
        self,
        message: str = "Request body could not be parsed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CorsRejectedError(HeartSmilesError):
    """
    Raised when a browser origin is not on the allow-list.

    HTTP: 403 Forbidden. The response carries no CORS headers, so the
    browser blocks the page from reading it.
    """

    status_code = 403
    expose = True

    def __init__(self, origin: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["origin"] = origin
        super().__init__(message="Not allowed by CORS", context=ctx)
        self.origin = origin


class PayloadTooLargeError(HeartSmilesError):
    """
    Raised when a JSON or form-encoded body exceeds the configured limit.

    HTTP: 413 Payload Too Large
    """

    status_code = 413
    expose = True

    def __init__(self, limit: int, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["limit"] = limit
        super().__init__(
            message=f"Request body exceeds the {limit} byte limit",
            context=ctx,
        )
        self.limit = limit


class AuthConfigurationError(HeartSmilesError):
    """
    Raised by the auth collaborator guard while JWT_SECRET is unset.

    When: Every auth call until the secret is configured.
    HTTP: 500. The operator must fix the deployment; the client cannot.
    """

    def __init__(
        self,
        message: str = "Authentication is not configured: JWT_SECRET is missing",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CollaboratorUnavailableError(HeartSmilesError):
    """
    Raised when a resource collaborator failed to initialize at startup.

    HTTP: 503 Service Unavailable
    """

    status_code = 503
    expose = True

    def __init__(self, resource: str = "resource", context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["resource"] = resource
        super().__init__(
            message=f"The {resource} service is temporarily unavailable",
            context=ctx,
        )
        self.resource = resource


def status_code_of(exc: BaseException) -> int:
    """Declared HTTP status of any exception, defaulting to 500."""
    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and 400 <= value <= 599:
            return value
    return 500
