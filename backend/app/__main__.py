"""
HeartSmiles Backend — Process Entry Point
===========================================

Usage:
    python -m app

Listens on PORT (default 5000) with uvicorn. Under a serverless host
(VERCEL=1 or VERCEL_ENV set) the platform imports `app.main:app` itself,
so nothing is started here.
"""

import logging

import uvicorn

from app.config import settings
from app.main import app, install_fault_handlers

logger = logging.getLogger("app")


def main() -> None:
    if settings.is_serverless:
        logger.info("Serverless environment detected; not binding a port")
        return

    install_fault_handlers(settings.is_production)
    logger.info("HeartSmiles Backend API running on port %d", settings.port)
    logger.info("Environment: %s", settings.node_env)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
