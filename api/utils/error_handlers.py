"""
Global Exception Handlers

Maps HTTP, validation, triage, and unexpected errors to the standard
ErrorResponse body with matching status codes, logging each one with its
request context.
"""

import logging
import traceback
from typing import Dict

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models.errors import ErrorResponse, ValidationErrorResponse, ValidationErrorItem
from src.notification_triage.exceptions import (
    CalendarAccessError,
    DeliveryTransportError,
    DuplicateMessageError,
    EventNotFoundError,
    MessageNotFoundError,
    TriageError
)

logger = logging.getLogger(__name__)

# Status code and error code per triage error type
TRIAGE_ERROR_MAP: Dict[type, tuple] = {
    MessageNotFoundError: (status.HTTP_404_NOT_FOUND, "MESSAGE_NOT_FOUND"),
    EventNotFoundError: (status.HTTP_404_NOT_FOUND, "EVENT_NOT_FOUND"),
    CalendarAccessError: (status.HTTP_403_FORBIDDEN, "CALENDAR_ACCESS_DENIED"),
    DeliveryTransportError: (status.HTTP_502_BAD_GATEWAY, "DELIVERY_FAILED"),
    DuplicateMessageError: (status.HTTP_409_CONFLICT, "DUPLICATE_MESSAGE"),
}


def _respond(status_code: int, error_response: ErrorResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_response.model_dump())
    )


def add_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(TriageError, triage_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions with standardized format."""
    log_exception(request, exc, exc.status_code)

    return _respond(exc.status_code, ErrorResponse(
        message=str(exc.detail),
        error_code=f"HTTP_{exc.status_code}"
    ))


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors with field-level detail.

    Args:
        request: Request that caused exception
        exc: Validation exception

    Returns:
        Detailed validation error response
    """
    log_exception(request, exc, status.HTTP_422_UNPROCESSABLE_ENTITY)

    validation_errors = [
        ValidationErrorItem(
            loc=[str(loc_item) for loc_item in error["loc"]],
            msg=error["msg"],
            type=error["type"]
        )
        for error in exc.errors()
    ]

    return _respond(status.HTTP_422_UNPROCESSABLE_ENTITY, ValidationErrorResponse(
        message="Request validation error",
        error_code="VALIDATION_ERROR",
        validation_errors=validation_errors
    ))


async def triage_exception_handler(
    request: Request,
    exc: TriageError
) -> JSONResponse:
    """
    Handle triage engine errors.

    Delivery failures are non-fatal: the message remains recorded as
    processed and the response carries its ID.
    """
    status_code, error_code = status.HTTP_400_BAD_REQUEST, "TRIAGE_ERROR"
    for error_type, mapping in TRIAGE_ERROR_MAP.items():
        if isinstance(exc, error_type):
            status_code, error_code = mapping
            break

    log_exception(request, exc, status_code)

    details = None
    if isinstance(exc, DeliveryTransportError):
        details = {"message_id": exc.message_id, "transport_error": exc.detail}

    return _respond(status_code, ErrorResponse(
        message=str(exc),
        error_code=error_code,
        details=details
    ))


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle all unhandled exceptions with a sanitized response."""
    log_exception(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, include_traceback=True)

    return _respond(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorResponse(
        message="An unexpected error occurred",
        error_code="INTERNAL_SERVER_ERROR",
        details={"type": exc.__class__.__name__}
    ))


def log_exception(
    request: Request,
    exc: Exception,
    status_code: int,
    include_traceback: bool = False
) -> None:
    """
    Log exception with request context and appropriate severity.

    Args:
        request: Request that caused exception
        exc: Exception instance
        status_code: HTTP status code
        include_traceback: Whether to include full traceback
    """
    if status_code >= 500:
        log_level = logging.ERROR
    elif status_code >= 400:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO

    message = (
        f"Exception during request to {request.method} {request.url.path}: "
        f"{status_code} {exc.__class__.__name__}: {exc}"
    )
    if include_traceback:
        message += f"\n{traceback.format_exc()}"

    logger.log(log_level, message)
