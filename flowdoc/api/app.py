"""FastAPI application factory for FlowDoc.

Creates and configures the FastAPI app with CORS, error handlers,
and all route modules registered.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..core.config import Settings, get_settings
from .core import register_exception_handlers

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings instance (defaults to the process-wide settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="FlowDoc API",
        description="Keyword-driven documentation to Mermaid flowcharts",
        version=__version__,
    )

    # CORS for the browser front end
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings

    register_exception_handlers(app)

    from .routes.flowchart import router as flowchart_router

    app.include_router(flowchart_router, prefix="/api")

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok", "service": "flowdoc"}

    logger.info("FastAPI app created with all routes registered")
    return app
