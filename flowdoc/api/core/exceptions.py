"""Domain exceptions and their HTTP rendering.

Every API error body has the shape {"error": "<message>"}.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FlowDocError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(FlowDocError):
    status_code = 400


class PayloadTooLargeError(FlowDocError):
    status_code = 413


class GenerationError(FlowDocError):
    status_code = 500


def error_response(message: str, status_code: int) -> JSONResponse:
    """Build the standard error body."""
    return JSONResponse(status_code=status_code, content={"error": message})


async def _handle_flowdoc_error(request: Request, exc: FlowDocError) -> JSONResponse:
    return error_response(exc.message, exc.status_code)


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug(f"Rejected request to {request.url.path}: {exc.errors()}")
    return error_response("Invalid request body", 400)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the FlowDoc error handlers on an app."""
    app.add_exception_handler(FlowDocError, _handle_flowdoc_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
