"""
HeartSmiles Backend — Test Configuration (conftest.py)
========================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Every test builds its own app instance with a fake clock and fake
       collaborators, so rate-limit counters and handler call logs never
       leak between tests.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── fake_clock:          controllable time source for the rate limiter
    ├── recording_handlers:  one RecordingHandler per resource segment
    ├── pipeline_config:     PipelineConfig with a small, known allow-list
    ├── make_app:            factory building isolated FastAPI apps
    └── client:              HTTPX AsyncClient bound to a default app
"""

import os
from dataclasses import replace
from typing import Any, Dict, Optional

import pytest
import pytest_asyncio

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Override settings for testing BEFORE any app imports
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["NODE_ENV"] = "development"
os.environ["LOG_LEVEL"] = "WARNING"

from app.config import RESOURCE_SEGMENTS, PREVIEW_ORIGIN, PipelineConfig  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.origin_matcher import ExactOrigin  # noqa: E402
from app.services.rate_limiter import RateLimiter  # noqa: E402

from support import FakeClock, RecordingHandler, asgi_client  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()

@pytest.fixture
def recording_handlers() -> Dict[str, RecordingHandler]:
    return {segment: RecordingHandler(segment) for segment in RESOURCE_SEGMENTS}

@pytest.fixture
def pipeline_config() -> PipelineConfig:
    """
    Development-mode config with a known allow-list:
        http://localhost:3000, https://heart-smiles-frontend.vercel.app,
        and the heart-smiles-frontend preview pattern.
    """
    return PipelineConfig(
        origin_rules=(
            ExactOrigin("http://localhost:3000"),
            ExactOrigin("https://heart-smiles-frontend.vercel.app"),
            PREVIEW_ORIGIN,
        ),
        production=False,
        jwt_secret_configured=True,
    )

@pytest.fixture
def make_app(pipeline_config, recording_handlers, fake_clock):
    """
    Build an isolated app.

    Usage:
        app = make_app(production=True, rate_limit_max=2)
        app = make_app(handlers={"participants": lambda: FailingHandler(exc)})
    """

    def _make(handlers: Optional[Dict[str, Any]] = None, **overrides):
        config = replace(pipeline_config, **overrides)
        limiter = RateLimiter(
            limit=config.rate_limit_max,
            window_seconds=config.rate_limit_window_seconds,
            exempt_paths=config.rate_limit_exempt_paths,
            clock=fake_clock,
        )
        if handlers is None:
            handlers = {
                segment: (lambda handler=handler: handler)
                for segment, handler in recording_handlers.items()
            }
        return create_app(config=config, handlers=handlers, limiter=limiter)

    return _make

@pytest_asyncio.fixture
async def client(make_app):
    """
    Async HTTP client for the default test app.

    Usage:
        async def test_health(client):
            response = await client.get("/api/health")
            assert response.status_code == 200
    """
    async with asgi_client(make_app()) as http_client:
        yield http_client
