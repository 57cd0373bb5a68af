"""
REST API module for FlowDoc.

Provides FastAPI endpoints for:
- Flowchart generation
- Sample documentation and keyword reference
"""
