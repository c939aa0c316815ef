"""
HeartSmiles Backend — Application Package Initializer
=======================================================

What: The HTTP entry point of the HeartSmiles Youth Success App.
Who:  Imported by uvicorn (`python -m app`), the serverless shim
      (`api/index.py`) and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │      Middleware (Admission)         │  ← CORS, rate limit, body, paths, errors
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← health, info, resource dispatcher
    ├─────────────────────────────────────┤
    │   Services (Decision Logic)         │  ← origin matcher, rate limiter,
    │                                     │    path normalizer, route table
    ├─────────────────────────────────────┤
    │   Collaborators (External)          │  ← auth, participants, programs, staff,
    │                                     │    upload, export, import
    └─────────────────────────────────────┘

    The decision logic lives in services/ and is plain Python, so it can be
    tested without HTTP. Middleware only adapts it to ASGI.
"""

__version__ = "1.0.0"
