"""
HeartSmiles Backend — Test Doubles
====================================

What:  Fakes shared by the fixtures in conftest.py and by the tests that
       build their own apps.
"""

from typing import List

from httpx import ASGITransport, AsyncClient

from app.services.collaborators import HandlerRequest, HandlerResponse


class FakeClock:
    """Time source that only moves when a test says so."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingHandler:
    """Collaborator that records every call and echoes it back."""

    def __init__(self, resource: str):
        self.resource = resource
        self.calls: List[HandlerRequest] = []

    async def handle(self, request: HandlerRequest) -> HandlerResponse:
        self.calls.append(request)
        return HandlerResponse(
            status=200,
            body={
                "resource": request.resource,
                "method": request.method,
                "path": request.path,
                "query": request.query,
                "body": request.body,
            },
        )


class FailingHandler:
    """Collaborator whose backing service is down."""

    def __init__(self, exc: Exception):
        self.exc = exc

    async def handle(self, request: HandlerRequest) -> HandlerResponse:
        raise self.exc


class ConflictError(Exception):
    """Collaborator error that declares its own HTTP status."""

    status_code = 409


def asgi_client(app) -> AsyncClient:
    """HTTPX client that talks to `app` in-process."""
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
