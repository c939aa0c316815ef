"""
HeartSmiles Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes the admission pipeline (middleware order), route
       registration and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
       Everything the pipeline needs is passed in explicitly
       (PipelineConfig, collaborator factories, rate limiter), so tests can
       build isolated apps with fake clocks and fake collaborators.
Who:   uvicorn (`python -m app`) or a serverless runtime (`api/index.py`).

Request Pipeline (outermost first):
    ┌──────────────────────────────────────────────────────────────┐
    │ SecurityHeaders → RequestID → RequestLogging                 │
    │   → ErrorResponder (CORS rejections)                         │
    │     → OriginValidation (CORS) → ErrorResponder               │
    │       → RateLimit → BodyDecoding → PathNormalizer            │
    │         → routes (health, info, dispatcher)                  │
    └──────────────────────────────────────────────────────────────┘
    Starlette runs the LAST added middleware first, so create_app()
    adds them innermost-first.

Process-level faults:
    - asyncio "exception was never retrieved" → logged, keeps serving
    - uncaught exception in a worker thread → logged; the process exits
      unless running in production
"""

import asyncio
import logging
import os
import sys
import threading
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Mapping, Optional

from fastapi import FastAPI

from app import __version__
from app.config import RESOURCE_SEGMENTS, PipelineConfig, settings
from app.middleware.body import BodyDecodingMiddleware
from app.middleware.cors import OriginValidationMiddleware
from app.middleware.errors import ErrorResponderMiddleware
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.path_normalizer import PathNormalizerMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.routes import health, info, resources
from app.schemas.system import ErrorResponse
from app.services.collaborators import AuthGuard, HandlerFactory, build_handlers
from app.services.origin_matcher import OriginMatcher
from app.services.rate_limiter import RateLimiter
from app.services.route_table import RouteTable

logger = logging.getLogger(__name__)

# Documented on every route; the Error Responder renders these bodies
ERROR_RESPONSES = {
    500: {"model": ErrorResponse, "description": "Unexpected failure"},
    503: {"model": ErrorResponse, "description": "Resource collaborator unavailable"},
}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] app.main: message
    Serverless platforms and Docker both capture stdout.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Process-Level Fault Handling
# ══════════════════════════════════════════════════════════════════════════

def _log_unhandled_rejection(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    logger.error(
        "Unhandled Rejection: %s",
        context.get("message", "unknown"),
        exc_info=context.get("exception"),
    )


def install_fault_handlers(production: bool) -> None:
    """
    Log uncaught exceptions everywhere; fail fast outside production.

    Called by the lifespan (event loop handler) and by `python -m app`.
    """

    def handle_thread_exception(args: threading.ExceptHookArgs) -> None:
        thread_name = args.thread.name if args.thread else "unknown"
        logger.critical(
            "Uncaught Exception in thread %s",
            thread_name,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        if not production:
            os._exit(1)

    def handle_exception(exc_type, exc_value, exc_traceback) -> None:
        logger.critical(
            "Uncaught Exception", exc_info=(exc_type, exc_value, exc_traceback)
        )

    threading.excepthook = handle_thread_exception
    sys.excepthook = handle_exception


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: PipelineConfig = app.state.pipeline_config
    matcher: OriginMatcher = app.state.origin_matcher

    asyncio.get_running_loop().set_exception_handler(_log_unhandled_rejection)
    install_fault_handlers(config.production)

    logger.info("=" * 60)
    logger.info("HeartSmiles Backend API %s starting up", __version__)
    logger.info("Environment: %s", "production" if config.production else "development")
    logger.info("CORS allowed origins: %s", ", ".join(matcher.describe()))
    logger.info("=" * 60)

    yield

    logger.info("HeartSmiles Backend API shutting down")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    config: Optional[PipelineConfig] = None,
    handlers: Optional[Mapping[str, HandlerFactory]] = None,
    limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Build the API with its admission pipeline.

    Args:
        config:   Pipeline configuration; derived from `settings` if omitted.
        handlers: Resource segment → collaborator factory. Resources
                  without a factory answer 503 until one is provided.
        limiter:  Rate limiter (with its store); built from config if omitted.
    """
    config = config or PipelineConfig.from_settings(settings)

    if not config.jwt_secret_configured:
        logger.error("Missing required environment variables: JWT_SECRET")
        logger.error("Authentication requests will fail until it is set.")

    matcher = OriginMatcher(config.origin_rules)
    limiter = limiter or RateLimiter(
        limit=config.rate_limit_max,
        window_seconds=config.rate_limit_window_seconds,
        exempt_paths=config.rate_limit_exempt_paths,
    )

    collaborators = build_handlers(handlers or {}, RESOURCE_SEGMENTS)
    if "auth" in collaborators:
        collaborators["auth"] = AuthGuard(collaborators["auth"], config.jwt_secret_configured)
    route_table = RouteTable.from_handlers(collaborators, bases=(config.api_prefix, ""))

    app = FastAPI(
        title="HeartSmiles Backend API",
        description="HeartSmiles Youth Success App Backend API",
        version=__version__,
        lifespan=lifespan,
        responses=ERROR_RESPONSES,
    )
    app.state.pipeline_config = config
    app.state.origin_matcher = matcher
    app.state.rate_limiter = limiter
    app.state.route_table = route_table

    # ── Register Middleware (innermost first) ─────────────────────────────
    app.add_middleware(PathNormalizerMiddleware, prefix=config.api_prefix)
    app.add_middleware(BodyDecodingMiddleware, limit_bytes=config.body_limit_bytes)
    app.add_middleware(
        RateLimitMiddleware, limiter=limiter, trusted_proxy_hops=config.trusted_proxy_hops
    )
    # Inside CORS: error responses to allowed origins carry CORS headers
    app.add_middleware(ErrorResponderMiddleware, production=config.production)
    app.add_middleware(OriginValidationMiddleware, matcher=matcher)
    # Outside CORS: renders CORS rejections, without CORS headers
    app.add_middleware(ErrorResponderMiddleware, production=config.production)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    # ── Register Routes (dispatcher must stay last) ───────────────────────
    app.include_router(info.router)
    app.include_router(health.router)
    app.include_router(resources.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn and serverless runtimes import `app.main:app`
setup_logging(settings.log_level)
app = create_app()
