"""Structured error responses for the dashboard API.

Every error leaves the API as::

    {"error": {"error_code": "...", "message": "...", "details": {...}}}
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from secops_warden.errors import WardenError

logger = logging.getLogger(__name__)


class ErrorDetail(BaseModel):
    """Body of a structured error."""

    error_code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Envelope for API errors."""

    error: ErrorDetail


ERROR_STATUS_MAP: dict[str, int] = {
    "PROPOSAL_NOT_FOUND": 404,
    "ACTIVITY_NOT_RUNNING": 404,
    "PROPOSAL_ALREADY_PROCESSED": 409,
    "INVALID_REQUEST": 400,
    "ENGINE_FAILED": 502,
}


def get_status_code(error_code: str) -> int:
    """Get HTTP status code for an error code."""
    return ERROR_STATUS_MAP.get(error_code, 500)


def error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    content = ErrorResponse(
        error=ErrorDetail(error_code=error_code, message=message, details=details or {})
    )
    return JSONResponse(status_code=status_code, content=content.model_dump())


async def warden_exception_handler(request: Request, exc: WardenError) -> JSONResponse:
    """FastAPI exception handler for :class:`WardenError`."""
    status_code = get_status_code(exc.code)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(status_code, exc.code, exc.message, exc.details)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed query parameters as 400 instead of FastAPI's 422."""
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": str(err.get("msg", ""))}
        for err in exc.errors()
    ]
    return error_response(400, "INVALID_REQUEST", "request validation failed", {"errors": errors})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WardenError, warden_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, validation_exception_handler  # type: ignore[arg-type]
    )
