"""Exception handlers that turn every failure into the same JSON error body.

Every error response carries ``error`` (a short machine-readable name),
``message`` and the request ``path``; validation failures add ``details``.
"""

from typing import Any

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinic_portal.core.exceptions import AppException

logger = structlog.get_logger(__name__)


def error_response(
    request: Request,
    status_code: int,
    error: str,
    message: Any,
    **extra: Any,
) -> JSONResponse:
    """Build the error body shared by all handlers."""
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, **extra, "path": str(request.url)},
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Render domain exceptions (not found, conflict, invalid token, ...).

    The exception class name becomes the ``error`` field, so clients can tell
    ``SlotUnavailable`` apart from ``DuplicatePrescription`` without parsing text.
    """
    if exc.status_code >= 500:
        logger.error("application_error", path=request.url.path, message=exc.message)

    return error_response(request, exc.status_code, exc.__class__.__name__, exc.message)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Render framework errors such as unknown routes and wrong methods."""
    return error_response(request, exc.status_code, "HTTPException", exc.detail)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Render request validation failures as 400 Bad Request.

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        JSON error response with the per-field errors under ``details``
    """
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "ValidationError",
        "Request validation failed",
        details=jsonable_encoder(exc.errors()),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error_type=exc.__class__.__name__,
        exc_info=exc,
    )

    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "InternalServerError",
        "An unexpected error occurred",
    )
