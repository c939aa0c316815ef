"""
Vercel serverless entrypoint.

Re-exports the FastAPI app so the platform invokes the same middleware
stack per request that `python -m app` serves locally.
"""

import sys
from pathlib import Path

backend_root = Path(__file__).resolve().parents[1] / "backend"
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from app.main import app  # noqa: E402,F401
