"""
HeartSmiles Backend — Path Normalization Middleware
=====================================================

What:  Rewrites the ASGI scope path when a proxy stripped the `/api` prefix.
Why:   See services/path_normalizer.py for the two deployment topologies.
How:   Builds the observed target (path + raw query), asks normalize_url()
       for the effective target and, if it differs, rewrites `path` and
       `raw_path` in a copy of the scope. `query_string` bytes are never
       touched. The pre-rewrite target is kept in scope["state"] so the
       404 branch can report what actually arrived.
"""

import logging

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

from app.services.path_normalizer import normalize_url, original_url_from

logger = logging.getLogger(__name__)


class PathNormalizerMiddleware:
    def __init__(self, app: ASGIApp, prefix: str = "/api") -> None:
        self.app = app
        self.prefix = prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope["path"]
        query = scope.get("query_string", b"").decode("latin-1")
        raw_url = path + (f"?{query}" if query else "")
        original_url = original_url_from(
            Headers(scope=scope), path, query, scope.get("root_path", "")
        )

        state = scope.setdefault("state", {})
        state["raw_url"] = raw_url
        state["original_url"] = original_url or raw_url

        effective = normalize_url(raw_url, original_url, self.prefix)
        if effective != raw_url:
            new_path = effective.partition("?")[0]
            logger.info("Fixing path: %s -> %s (original %s)", path, new_path, original_url)
            scope = dict(scope)
            scope["path"] = new_path
            scope["raw_path"] = new_path.encode("latin-1")

        await self.app(scope, receive, send)
