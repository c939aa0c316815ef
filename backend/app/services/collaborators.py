"""
HeartSmiles Backend — Resource Collaborator Contract
======================================================

What:  The uniform interface between the router and the resource handlers
       (auth, participants, programs, staff, upload, export, import).
Why:   The admission pipeline owns no resource logic. Every handler is an
       external collaborator reached the same way:
           (method, path, query, headers, body) -> (status, body)
How:   A collaborator is any object with an async `handle(HandlerRequest)`
       method returning a HandlerResponse (ResourceHandler protocol).

Startup faults:
    `build_handlers()` constructs collaborators from factories. A factory
    that raises is logged and replaced by an UnavailableHandler, so the
    process still starts and the failure surfaces on first use (503).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, runtime_checkable

from app.exceptions import AuthConfigurationError, CollaboratorUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandlerRequest:
    """
    Normalized request handed to a collaborator.

    Attributes:
        method:   Upper-case HTTP method.
        path:     Path relative to the resource mount ("/" for the mount root).
        query:    Raw query string, exactly as received.
        headers:  Lower-cased request headers.
        body:     Decoded JSON / form body, or None.
        resource: Segment the request was routed to (e.g. "staff").
    """

    method: str
    path: str
    query: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    resource: str = ""


@dataclass
class HandlerResponse:
    status: int = 200
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)


@runtime_checkable
class ResourceHandler(Protocol):
    async def handle(self, request: HandlerRequest) -> HandlerResponse:
        ...


class UnavailableHandler:
    """Stands in for a collaborator that could not be initialized."""

    def __init__(self, resource: str, reason: Optional[BaseException] = None):
        self.resource = resource
        self.reason = reason

    async def handle(self, request: HandlerRequest) -> HandlerResponse:
        raise CollaboratorUnavailableError(
            resource=self.resource,
            context={"reason": repr(self.reason) if self.reason else "not configured"},
        )


class AuthGuard:
    """
    Wraps the auth collaborator and refuses calls while JWT_SECRET is unset.

    The check runs per call so a misconfigured deployment fails loudly at
    first use rather than at import time.
    """

    def __init__(self, inner: ResourceHandler, secret_configured: bool):
        self.inner = inner
        self.secret_configured = secret_configured

    async def handle(self, request: HandlerRequest) -> HandlerResponse:
        if not self.secret_configured:
            raise AuthConfigurationError()
        return await self.inner.handle(request)


HandlerFactory = Callable[[], ResourceHandler]


def build_handlers(
    factories: Mapping[str, HandlerFactory],
    resources: Any,
) -> Dict[str, ResourceHandler]:
    """
    Instantiate one collaborator per resource segment.

    Resources without a factory, or whose factory raises, get an
    UnavailableHandler. Initialization errors are logged, never raised.
    """
    handlers: Dict[str, ResourceHandler] = {}
    for resource in resources:
        factory = factories.get(resource)
        if factory is None:
            logger.warning("No collaborator configured for /%s", resource)
            handlers[resource] = UnavailableHandler(resource)
            continue
        try:
            handlers[resource] = factory()
        except Exception as exc:
            logger.error(
                "Collaborator initialization failed for /%s: %s", resource, exc, exc_info=True
            )
            handlers[resource] = UnavailableHandler(resource, exc)
    return handlers
