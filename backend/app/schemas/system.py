"""
HeartSmiles Backend — System Endpoint Schemas
===============================================

What:  Pydantic models for the endpoints owned by the API shell itself
       (health, service info, diagnostics, errors).
Why:   Resource payloads belong to the collaborators; only these few
       responses have a fixed contract here, and they are documented in
       the OpenAPI schema.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    What:  Liveness answer for load balancers and uptime monitors.
    Who:   Returned by GET /api/health and GET /health.
    """
    status: str = Field(default="OK", description="Always OK while the process serves requests")
    message: str = Field(description="Human-readable status line")
    timestamp: datetime = Field(description="Server time (UTC ISO 8601)")


class RequestDebug(BaseModel):
    """Request attributes as the API received them."""
    path: str
    originalUrl: str
    url: str
    method: str


class ServiceInfoResponse(BaseModel):
    """
    What:  Static capability listing returned by GET /.
    Why:   Lets a frontend developer confirm which deployment answered and
           which resource bases it exposes.
    """
    name: str
    version: str
    status: str
    message: str
    endpoints: Dict[str, str]
    timestamp: datetime
    debug: RequestDebug
    note: str


class DiagnosticResponse(BaseModel):
    message: str
    path: str
    originalUrl: str
    url: str


class ErrorResponse(BaseModel):
    """
    What:  Body of every error-branch response.

    Example (non-production):
        {
            "error": "Something went wrong!",
            "message": "connection refused",
            "request_id": "a1b2c3d4",
            "stack": "Traceback (most recent call last): ..."
        }
    """
    error: str = Field(description="Generic failure label")
    message: str = Field(description="Safe message; raw message outside production")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
    stack: Optional[str] = Field(default=None, description="Traceback, non-production only")
