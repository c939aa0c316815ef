"""
HeartSmiles Backend — Security Headers Middleware
===================================================

What:  Adds the standard hardening headers to every response.
Why:   The API serves JSON to browsers; these headers block MIME sniffing,
       framing, referrer leakage and cross-origin window access.
How:   Outermost middleware, so 429s, 404s and error responses are covered
       too. Headers already set by an inner stage are left alone.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp


@dataclass(frozen=True)
class SecurityHeadersConfig:
    """Header values applied as-is."""

    content_security_policy: Optional[str] = (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    )
    cross_origin_opener_policy: str = "same-origin"
    cross_origin_resource_policy: str = "same-origin"
    origin_agent_cluster: str = "?1"
    referrer_policy: str = "no-referrer"
    strict_transport_security: Optional[str] = "max-age=31536000; includeSubDomains"
    x_content_type_options: str = "nosniff"
    x_dns_prefetch_control: str = "off"
    x_download_options: str = "noopen"
    x_frame_options: str = "SAMEORIGIN"
    x_permitted_cross_domain_policies: str = "none"
    x_xss_protection: str = "0"

    def as_headers(self) -> Dict[str, str]:
        headers = {
            "Cross-Origin-Opener-Policy": self.cross_origin_opener_policy,
            "Cross-Origin-Resource-Policy": self.cross_origin_resource_policy,
            "Origin-Agent-Cluster": self.origin_agent_cluster,
            "Referrer-Policy": self.referrer_policy,
            "X-Content-Type-Options": self.x_content_type_options,
            "X-DNS-Prefetch-Control": self.x_dns_prefetch_control,
            "X-Download-Options": self.x_download_options,
            "X-Frame-Options": self.x_frame_options,
            "X-Permitted-Cross-Domain-Policies": self.x_permitted_cross_domain_policies,
            "X-XSS-Protection": self.x_xss_protection,
        }
        if self.content_security_policy:
            headers["Content-Security-Policy"] = self.content_security_policy
        if self.strict_transport_security:
            headers["Strict-Transport-Security"] = self.strict_transport_security
        return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, config: Optional[SecurityHeadersConfig] = None):
        super().__init__(app)
        self.headers = (config or SecurityHeadersConfig()).as_headers()

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response
