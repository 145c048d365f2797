"""
Observability Middleware and logging setup.

Every request gets a correlation ID. It is echoed in the response headers and
stamped on each log record emitted while the request runs, so a posting,
reversal or rollback in the ledger services can be traced back to its call.
"""

import time
import uuid
import logging
from contextvars import ContextVar
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from bookkeeping.app.core.config import settings

CORRELATION_HEADER = "X-Correlation-ID"

# "-" outside a request (scripts, seeding)
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

logger = logging.getLogger("bookkeeping")


class CorrelationIdFilter(logging.Filter):
    """Copy the current request's correlation ID onto the record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


def configure_logging(level: str = None) -> None:
    """Attach a stream handler to the package logger (idempotent)."""
    logger.setLevel((level or settings.log_level).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s]: %(message)s"
        ))
        logger.addHandler(handler)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        token = correlation_id_var.set(correlation_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - started) * 1000

            response.headers[CORRELATION_HEADER] = correlation_id
            response.headers["X-Process-Time"] = f"{duration_ms:.2f}"

            status = response.status_code
            level = logging.ERROR if status >= 500 else logging.WARNING if status >= 400 else logging.INFO
            logger.log(
                level,
                "%s %s -> %s (%.2f ms)",
                request.method,
                request.url.path,
                status,
                duration_ms,
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status,
                    "duration_ms": round(duration_ms, 2),
                    "ip": request.client.host if request.client else "unknown",
                },
            )
            return response
        finally:
            correlation_id_var.reset(token)
