"""
Exception Handlers.

FastAPI exception handlers that convert application exceptions
to standardized API responses. All exceptions are logged and
returned in the standard ErrorResponse format.

Usage:
    from notevault.backend.core.exception_handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notevault.backend.core.exceptions import (
    ApplicationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DatabaseError,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from notevault.backend.core.logging import get_logger
from notevault.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

# Map exception types to HTTP status codes
EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    NotFoundError: 404,
    ValidationError: 422,
    AuthenticationError: 401,
    AuthorizationError: 403,
    ConflictError: 409,
    RateLimitError: 429,
    ExternalServiceError: 502,
    DatabaseError: 503,
}


def _get_request_id(request: Request) -> str | None:
    """Extract request ID from request state or headers."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("x-request-id")


def _error_response(
    request: Request,
    status_code: int,
    error_detail: ErrorDetail,
) -> JSONResponse:
    metadata = ResponseMetadata(request_id=_get_request_id(request))
    response = ErrorResponse(error=error_detail, metadata=metadata)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json"),
        headers=headers,
    )


async def application_error_handler(
    request: Request,
    exc: ApplicationError,
) -> JSONResponse:
    """
    Handle all ApplicationError subclasses.

    Converts application exceptions to standardized JSON responses
    with appropriate HTTP status codes.
    """
    status_code = EXCEPTION_STATUS_MAP.get(type(exc), 500)

    log_extra = {
        "code": exc.code,
        "error_message": exc.message,
        "status": status_code,
    }
    if status_code >= 500:
        logger.error("Server error", extra=log_extra)
    else:
        logger.warning("Client error", extra=log_extra)

    error_detail = ErrorDetail(code=exc.code, message=exc.message)
    if isinstance(exc, ValidationError) and exc.details:
        error_detail.details = exc.details

    return _error_response(request, status_code, error_detail)


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle FastAPI/Pydantic request validation errors.

    Malformed payloads use the same details shape as domain validation
    failures: 422 with one {field, message} entry per problem.
    """
    errors = exc.errors()
    details = {
        "errors": [
            {
                # Drop the leading "body"/"query"/"path" location segment
                "field": ".".join(str(loc) for loc in err.get("loc", [])[1:]) or "request",
                "message": err.get("msg", "Validation error"),
            }
            for err in errors
        ]
    }

    logger.warning(
        "Request validation failed",
        extra={"error_count": len(errors)},
    )

    error_detail = ErrorDetail(
        code="VAL_REQUEST_INVALID",
        message="Request validation failed",
        details=details,
    )
    return _error_response(request, 422, error_detail)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Catches all unhandled exceptions and returns a generic error
    response. Internal details are only exposed when the
    api_detailed_errors feature flag is on.
    """
    from notevault.backend.core.config import get_app_config

    logger.exception(
        "Unhandled exception",
        extra={"exception_type": type(exc).__name__},
    )

    message = "An unexpected error occurred"
    if get_app_config().features.api_detailed_errors:
        message = f"{type(exc).__name__}: {exc}"

    error_detail = ErrorDetail(code="SYS_INTERNAL_ERROR", message=message)
    return _error_response(request, 500, error_detail)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.debug("Exception handlers registered")
