"""
HeartSmiles Backend — Health Check Route
==========================================

What:  Liveness endpoint for monitoring and load balancer probes.
Why:   Reachable on both mounts (`/api/health`, `/health`) so probes work
       whichever way the proxy forwards. Exempt from rate limiting and
       from access logging.
How:   Answers without touching any collaborator: a healthy process is
       one that can run the admission pipeline.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from app.schemas.system import HealthResponse

router = APIRouter(tags=["Health"])

HEALTH_MESSAGE = "HeartSmiles Backend API is running"


@router.get("/api/health", response_model=HealthResponse, summary="Service health check")
@router.get("/health", response_model=HealthResponse, include_in_schema=False)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="OK",
        message=HEALTH_MESSAGE,
        timestamp=datetime.now(timezone.utc),
    )
