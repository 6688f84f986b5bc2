"""
Global exception handlers for FastAPI application.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from loguru import logger
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError

from app.utils.exceptions import (
    DocVaultException,
    AuthenticationError,
    PermissionDeniedError,
    NotFoundError,
    ConflictError,
    TamperError,
    ConfigurationError,
    AIProviderError,
    ValidationError as CustomValidationError,
)
from app.core.logging import log_error
from app.utils.formatters import format_error_response


def status_code_for(exc: DocVaultException) -> int:
    """Map a domain exception to its HTTP status code."""
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, PermissionDeniedError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, CustomValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, (ConflictError, TamperError)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, AIProviderError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def docvault_exception_handler(request: Request, exc: DocVaultException) -> JSONResponse:
    """Handle custom DocVault exceptions."""
    status_code = status_code_for(exc)

    if isinstance(exc, TamperError):
        # Never echo cipher internals back to the client
        error_response = {
            "error": "TamperError",
            "detail": "Stored secret is unusable. Please re-enter it.",
            "status_code": status_code,
        }
        logger.warning(f"Tamper detected on {request.url.path}")
    elif isinstance(exc, ConfigurationError):
        error_response = {
            "error": "ConfigurationError",
            "detail": "Service is misconfigured",
            "status_code": status_code,
        }
        logger.error(exc.message)
    else:
        error_response = format_error_response(exc, status_code)
        if status_code >= 500:
            logger.error(f"DocVault exception: {exc.message}")
        else:
            logger.info(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content=error_response
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", []))
        errors.append({
            "field": field,
            "message": error.get("msg"),
            "type": error.get("type")
        })

    error_response = {
        "error": "ValidationError",
        "detail": "Request validation failed",
        "status_code": status.HTTP_422_UNPROCESSABLE_ENTITY,
        "errors": errors
    }

    logger.warning(f"Validation error: {errors}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions."""
    if isinstance(exc, SQLAlchemyTimeoutError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": "ServiceUnavailable",
                "detail": "Database is busy (connection pool exhausted). Please retry in a moment.",
                "status_code": status.HTTP_503_SERVICE_UNAVAILABLE,
            },
            headers={"Retry-After": "3"},
        )

    log_error(exc, {"path": request.url.path, "method": request.method})

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "InternalServerError",
            "detail": "Internal server error",
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR
        }
    )
