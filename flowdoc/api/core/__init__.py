"""API Core - Shared utilities for API routes.

This package provides:
- Domain exceptions (ValidationError, PayloadTooLargeError, GenerationError)
- Exception handlers that render them as {"error": message}

Usage:
    from flowdoc.api.core import ValidationError
    from flowdoc.api.core.exceptions import register_exception_handlers
"""

from .exceptions import (
    FlowDocError,
    ValidationError,
    PayloadTooLargeError,
    GenerationError,
    error_response,
    register_exception_handlers,
)

__all__ = [
    "FlowDocError",
    "ValidationError",
    "PayloadTooLargeError",
    "GenerationError",
    "error_response",
    "register_exception_handlers",
]
