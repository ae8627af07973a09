"""Structured logging setup and request logging middleware."""

import logging
import sys
import time
from collections.abc import Callable
from typing import TextIO
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.types import Processor

from app.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

# Probes and scrapes that would otherwise drown the request log
QUIET_PATHS = frozenset({"/metrics", f"{settings.api_v1_prefix}/ping"})


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(
    log_level: str | None = None,
    log_format: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog for the API and the command-line jobs.

    Args:
        log_level: Standard logging level name; defaults to LOG_LEVEL
        log_format: "json" or "console"; defaults to LOG_FORMAT
        stream: Where log lines go; defaults to stdout
    """
    log_level = (log_level or settings.log_level).upper()
    log_format = log_format or settings.log_format

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(log_format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=getattr(logging, log_level, logging.INFO),
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each request once it completes, tagged with a request id."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """
        Bind a request id, run the request and log its outcome.

        The id comes from the ``X-Request-ID`` header when the caller sends one
        and is echoed back on the response. Every log line emitted while the
        request is handled carries it.

        Args:
            request: Request object
            call_next: Next middleware in chain

        Returns:
            Response object
        """
        logger = structlog.get_logger()

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration=time.perf_counter() - start_time,
            )
            raise

        duration = time.perf_counter() - start_time
        if request.url.path not in QUIET_PATHS:
            logger.info(
                "request_completed",
                status_code=response.status_code,
                client=request.client.host if request.client else None,
                duration=duration,
            )

        response.headers["X-Process-Time"] = str(duration)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
