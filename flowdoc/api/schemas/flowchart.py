"""Flowchart request/response schemas."""

from typing import Any, List, Optional
from pydantic import BaseModel, Field


class FlowchartRequest(BaseModel):
    """Generate flowchart request.

    ``documentation`` is typed loosely so the route can answer a missing or
    non-string value with its own 400 message.
    """
    documentation: Optional[Any] = Field(None, description="Keyword-driven documentation text")


class FlowchartResponse(BaseModel):
    """Generated Mermaid source."""
    mermaid_code: str = Field(..., description="Mermaid flowchart source")


class SampleDocument(BaseModel):
    """A bundled sample document."""
    key: str = Field(..., description="Sample identifier")
    title: str = Field(..., description="Display title")
    documentation: str = Field(..., description="Sample documentation text")


class DirectiveInfo(BaseModel):
    """One keyword in the reference."""
    keyword: str = Field(..., description="Keyword as typed, e.g. 'DATABASE:'")
    shape: Optional[str] = Field(None, description="Node shape, if the keyword creates a node")
    description: str = Field("", description="What the keyword is for")


class DirectiveCategory(BaseModel):
    """Keywords grouped under one heading."""
    category: str
    directives: List[DirectiveInfo] = Field(default_factory=list)
