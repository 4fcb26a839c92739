"""Custom exceptions and handlers for consistent error responses.

Every error leaves the API as:

    {
        "error": {
            "code": "ERROR_CODE",
            "message": "Human-readable error message",
            "details": {...}  // optional
        }
    }

Step validation failures are NOT errors: they are returned as data by
the wizard endpoints so the client can render them inline.
"""

import logging
from typing import Union

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ReportStudioException(Exception):
    """Base exception for application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(self.message)


class BusinessLogicError(ReportStudioException):
    def __init__(self, message: str, error_code: str = "BUSINESS_LOGIC_ERROR"):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code=error_code,
        )


class ImmutableFieldError(BusinessLogicError):
    """A draft field that is fixed at creation was changed."""

    def __init__(self, field: str):
        super().__init__(
            message=f"{field} cannot be changed once the report is created",
            error_code="IMMUTABLE_FIELD",
        )


class StepNotReachedError(BusinessLogicError):
    """An operation needs a wizard step the session is not on."""

    def __init__(self, required_step: int, current_step: int):
        super().__init__(
            message=f"Only available on step {required_step} (wizard is on step {current_step})",
            error_code="STEP_NOT_REACHED",
        )


class ResourceNotFoundError(ReportStudioException):
    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
        )


class StoreUnavailableError(ReportStudioException):
    """The persistence collaborator returned an error on a read."""

    def __init__(self, message: str = "Report store temporarily unavailable. Please try again."):
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="STORE_UNAVAILABLE",
        )


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: Union[dict, list, None] = None,
    headers: dict | None = None,
) -> JSONResponse:
    content = {
        "error": {
            "code": error_code,
            "message": message,
        }
    }

    if details:
        content["error"]["details"] = details

    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def report_studio_exception_handler(
    request: Request,
    exc: ReportStudioException,
) -> JSONResponse:
    logger.warning(
        f"Application exception: {exc.error_code} - {exc.message}",
        extra={
            "error_code": exc.error_code,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return create_error_response(
        status_code=exc.status_code,
        message=exc.message,
        error_code=exc.error_code,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code}: {exc.detail}",
            extra={"path": request.url.path, "method": request.method},
        )

    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code=f"HTTP_{exc.status_code}",
        headers=exc.headers,
    )


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, ValidationError],
) -> JSONResponse:
    """Handle request-body and draft-model validation errors."""
    logger.warning(
        f"Validation error on {request.url.path}",
        extra={"path": request.url.path, "method": request.method},
    )

    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Validation error",
        error_code="VALIDATION_ERROR",
        details={"errors": errors},
    )


async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.url.path}: {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    # Don't expose internal details
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An unexpected error occurred. Please try again later.",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app):
    """Register all custom exception handlers with the FastAPI app."""
    app.add_exception_handler(ReportStudioException, report_studio_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
