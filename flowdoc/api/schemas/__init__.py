"""Pydantic schemas for API request/response models."""

from .flowchart import (
    DirectiveCategory,
    DirectiveInfo,
    FlowchartRequest,
    FlowchartResponse,
    SampleDocument,
)

__all__ = [
    'DirectiveCategory',
    'DirectiveInfo',
    'FlowchartRequest',
    'FlowchartResponse',
    'SampleDocument',
]
