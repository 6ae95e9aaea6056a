"""
FastAPI application entrypoint for the Gitea bridge.
"""

from __future__ import annotations

from fastapi import FastAPI

from gitea_bridge.api.routes import router as api_router
from gitea_bridge.core.config import get_settings
from gitea_bridge.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Gitea Bridge",
        version="0.1.0",
        description="Gitea account linking and token-refreshing repository file access.",
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
