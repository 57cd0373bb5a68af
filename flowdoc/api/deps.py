"""FastAPI dependencies for FlowDoc.

Provides shared dependencies via FastAPI's Depends() injection system.
"""

import logging

from fastapi import Request

from ..core.config import Settings

logger = logging.getLogger(__name__)


async def get_settings(request: Request) -> Settings:
    """Get Settings from app state."""
    return request.app.state.settings
