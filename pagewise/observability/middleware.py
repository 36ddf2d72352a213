"""
FastAPI middleware for request tracing.

CorrelationMiddleware binds an ``X-Correlation-ID`` to the request context
(reusing the caller's header when present) so log lines from the request,
including those from services and CRUD helpers, can be grouped.
RequestLoggingMiddleware writes one line per request with its status and
timing. Health probes are logged at DEBUG since they are polled.

For the NDJSON chat stream the recorded time covers building the response,
not the whole stream.

Dependencies: fastapi, starlette
System role: Request/response observability injection
"""

import logging
import time
import uuid
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
QUIET_PATH_PREFIXES = ("/health",)

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Correlation ID of the current request, empty outside a request."""
    return correlation_id_ctx.get()


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        route = f"{request.method} {request.url.path}"

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"{__name__}:dispatch - {route} raised {type(e).__name__}",
                extra={"route": route, "duration_ms": _elapsed_ms(start)},
            )
            raise

        level = logging.DEBUG if request.url.path.startswith(QUIET_PATH_PREFIXES) else logging.INFO
        logger.log(
            level,
            f"{__name__}:dispatch - {route} -> {response.status_code}",
            extra={"route": route, "status_code": response.status_code, "duration_ms": _elapsed_ms(start)},
        )
        return response


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Binds a correlation ID for the request and echoes it in the response."""

    async def dispatch(self, request: Request, call_next):
        """
        Args:
            request: Incoming request; an existing X-Correlation-ID is kept
            call_next: Next middleware in chain

        Returns:
            Response: Response carrying the X-Correlation-ID header
        """
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        token = correlation_id_ctx.set(correlation_id)
        try:
            response: Response = await call_next(request)
        finally:
            correlation_id_ctx.reset(token)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
