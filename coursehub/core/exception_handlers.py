"""Global exception handlers for consistent error responses.

Every failure leaves the API in the same envelope::

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": ...}}

Design:
- AppError subclasses → the status listed in ``STATUS_BY_ERROR``
- Request schema violations → 400 (missing or malformed fields)
- Unexpected Exception → generic 500 (safety net, detail stays in the logs)
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from coursehub.core.errors import (
    AppError,
    ConflictAppError,
    DeliveryAppError,
    GoneAppError,
    NotFoundAppError,
    RateLimitedAppError,
    StoreAppError,
    UnauthorizedAppError,
    UnprocessableAppError,
    ValidationAppError,
)
from coursehub.core.logging import get_request_id

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (UnauthorizedAppError, 401),
    (NotFoundAppError, 404),
    (ConflictAppError, 409),
    (GoneAppError, 410),
    (UnprocessableAppError, 422),
    (RateLimitedAppError, 429),
    (DeliveryAppError, 500),
    (StoreAppError, 500),
)


def status_for(exc: AppError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    error_content: dict = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error_content["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error_content}, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error with its mapped HTTP status.

    Server-side failures (5xx) are logged at error level with the internal
    message; the client only sees the error code and a generic message.
    """
    status_code = status_for(exc)

    if status_code >= 500:
        logger.error(
            "app_error_handled",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "status_code": status_code,
                "request_path": request.url.path,
            },
        )
        return _error_response(status_code, exc.code, "A server error occurred.")

    logger.info(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )
    return _error_response(
        status_code,
        exc.code,
        exc.message,
        dict(exc.details) if exc.details else None,
        getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report schema violations as a 400 with field locations only.

    Input values are left out of the response and the logs because bodies
    carry captcha tokens and one-time codes.
    """
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "type": err.get("type", "")}
        for err in exc.errors()
    ]
    logger.info(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(errors)},
    )
    return _error_response(
        400,
        "bad_request",
        "Bad request. Check parameters.",
        {"errors": errors},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. No stack traces or exception text reach the client.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return _error_response(
        500,
        "internal_server_error",
        "An unexpected error occurred. Please try again later.",
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
