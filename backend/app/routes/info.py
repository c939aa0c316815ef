"""
HeartSmiles Backend — Service Info & Diagnostic Routes
========================================================

What:  GET / (capability listing), GET /test and /api/test (routing
       diagnostics), favicon placeholders.
Why:   When a proxy rewrites paths unexpectedly, these endpoints show what
       the application actually received versus what the client sent.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request, Response

from app import __version__
from app.config import API_PREFIX, RESOURCE_SEGMENTS
from app.schemas.system import DiagnosticResponse, RequestDebug, ServiceInfoResponse

router = APIRouter(tags=["Info"])


def _request_urls(request: Request) -> dict:
    url = request.url.path + (f"?{request.url.query}" if request.url.query else "")
    original = getattr(request.state, "original_url", None) or url
    return {"path": request.url.path, "originalUrl": original, "url": url}


@router.get("/", response_model=ServiceInfoResponse, summary="Service capability listing")
async def service_info(request: Request) -> ServiceInfoResponse:
    endpoints = {"health": f"{API_PREFIX}/health"}
    endpoints.update({segment: f"{API_PREFIX}/{segment}" for segment in RESOURCE_SEGMENTS})
    return ServiceInfoResponse(
        name="HeartSmiles Backend API",
        version=__version__,
        status="OK",
        message="HeartSmiles Youth Success App Backend API",
        endpoints=endpoints,
        timestamp=datetime.now(timezone.utc),
        debug=RequestDebug(method=request.method, **_request_urls(request)),
        note="If you see this, the API is running. Test /api/test or /test to see routing.",
    )


@router.get("/test", response_model=DiagnosticResponse, include_in_schema=False)
async def routing_test(request: Request) -> DiagnosticResponse:
    return DiagnosticResponse(message="Test endpoint works!", **_request_urls(request))


@router.get("/api/test", response_model=DiagnosticResponse, summary="Routing diagnostic")
async def api_routing_test(request: Request) -> DiagnosticResponse:
    return DiagnosticResponse(message="API test endpoint works!", **_request_urls(request))


@router.get("/favicon.ico", include_in_schema=False)
@router.get("/favicon.png", include_in_schema=False)
async def favicon() -> Response:
    return Response(status_code=204)
