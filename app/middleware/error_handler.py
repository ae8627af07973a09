"""Exception handlers that turn errors into JSON responses."""

from typing import Any

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException

logger = structlog.get_logger(__name__)


def error_body(request: Request, error: str, message: Any, **extra: Any) -> dict[str, Any]:
    """
    Build the error payload shared by every handler.

    Every body carries ``error``, ``message`` and ``path``; the request id is
    added when the logging middleware has bound one.
    """
    body = {"error": error, "message": message, "path": str(request.url)}
    request_id = structlog.contextvars.get_contextvars().get("request_id")
    if request_id:
        body["request_id"] = request_id
    body.update(extra)
    return body


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom application exceptions.

    Server-side failures (store unavailable, rejected writes) are logged as
    errors, client-side ones (conflicting runs) as warnings.

    Args:
        request: Request object
        exc: Application exception

    Returns:
        JSON error response
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "app_exception",
        error=exc.__class__.__name__,
        message=exc.message,
        path=request.url.path,
        **exc.details,
    )

    extra = {"details": exc.details} if exc.details else {}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.__class__.__name__, exc.message, **extra),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions, keeping headers such as WWW-Authenticate."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, "HTTPException", exc.detail),
        headers=exc.headers,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            request,
            "ValidationError",
            "Request validation failed",
            details=jsonable_encoder(exc.errors()),
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking internals."""
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request, "InternalServerError", "An unexpected error occurred"),
    )


EXCEPTION_HANDLERS = {
    AppException: app_exception_handler,
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: validation_exception_handler,
    Exception: general_exception_handler,
}
