"""Flowchart API routes.

  POST /generate-flowchart      → compile documentation to Mermaid
  GET  /flowchart/samples       → bundled sample documents
  GET  /flowchart/directives    → keyword reference by category
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from ...core.config import Settings
from ...core.flowchart import directive_reference, generate
from ...core.flowchart.samples import list_samples
from ..core import GenerationError, PayloadTooLargeError, ValidationError
from ..deps import get_settings
from ..schemas import (
    DirectiveCategory,
    FlowchartRequest,
    FlowchartResponse,
    SampleDocument,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["flowchart"])


@router.post("/generate-flowchart", response_model=FlowchartResponse)
async def generate_flowchart(
    payload: FlowchartRequest,
    settings: Settings = Depends(get_settings),
):
    """Compile keyword-driven documentation into Mermaid flowchart source."""
    documentation = payload.documentation
    if not documentation or not isinstance(documentation, str):
        raise ValidationError("Documentation text is required")

    if len(documentation) > settings.max_document_chars:
        raise PayloadTooLargeError(
            f"Documentation text exceeds {settings.max_document_chars} characters"
        )

    try:
        mermaid_code = generate(documentation)
    except Exception as e:
        logger.exception(f"Error generating flowchart: {e}")
        raise GenerationError("Failed to generate flowchart") from e

    return FlowchartResponse(mermaid_code=mermaid_code)


@router.get("/flowchart/samples", response_model=List[SampleDocument])
async def get_samples():
    """Return the sample documents."""
    return list_samples()


@router.get("/flowchart/directives", response_model=List[DirectiveCategory])
async def get_directives():
    """Return the keyword reference grouped by category."""
    return directive_reference()
