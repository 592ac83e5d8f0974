"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses -> mapped HTTP status (400, 404, 409, 503)
- Unexpected Exception -> generic 500 (safety net)
- All error bodies carry a human-readable "message"
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from users_api.core.errors import (
    AppError,
    ConflictAppError,
    DatabaseAppError,
    NotFoundAppError,
    ValidationAppError,
)
from users_api.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong!"

_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (NotFoundAppError, 404),
    (ConflictAppError, 409),
    (DatabaseAppError, 503),
)


def status_for_error(exc: AppError) -> int:
    """Map an AppError to its HTTP status code (500 when unmapped)."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Routes domain errors to appropriate HTTP status codes:
    - ValidationAppError -> 400 Bad Request
    - NotFoundAppError -> 404 Not Found
    - ConflictAppError -> 409 Conflict
    - DatabaseAppError -> 503 Service Unavailable

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_for_error(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    content = {
        "message": exc.message,
        "code": exc.code,
        "request_id": get_request_id(),
    }
    if exc.details:
        content["details"] = exc.details

    return JSONResponse(status_code=status_code, content=content)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure with its traceback and returns a generic message so no
    implementation details reach the client.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={"message": GENERIC_ERROR_MESSAGE},
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Specific handlers are registered before the general fallback.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
