import time
import uuid
from typing import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from vitalsync.core.config import settings

# Polled by load balancers and uptime checks; logged at debug only.
QUIET_PATHS = frozenset({"/health"})


class StructlogMiddleware(BaseHTTPMiddleware):
    """
    Per-request log context.

    Binds request and correlation ids (taken from the caller when present so a
    dashboard action can be traced through send-alert), logs one line per
    request with its duration in milliseconds, and echoes both ids back.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        correlation_id = request.headers.get("X-Correlation-ID") or request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        )

        log = structlog.get_logger()
        quiet = request.url.path in QUIET_PATHS
        if settings.ENVIRONMENT in ["local", "dev"] and not quiet:
            log.debug("request_started")

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log.exception("request_failed", duration_ms=_elapsed_ms(started))
            raise

        emit = log.debug if quiet else log.info
        emit("request_finished", status_code=response.status_code, duration_ms=_elapsed_ms(started))
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Correlation-ID"] = correlation_id
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
