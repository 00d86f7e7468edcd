"""Request correlation and access logging."""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = structlog.get_logger()

# Probe endpoints hit every few seconds by the orchestrator
QUIET_PATHS = frozenset({"/health", "/ready"})


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Correlate logs and error bodies with one request ID.

    A client-supplied X-Request-ID is reused; otherwise a UUID is minted.
    The ID lands in request.state, the structlog context and the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log with timing; server errors are logged at error level."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = request.url.path
        quiet = path in QUIET_PATHS
        started = time.perf_counter()

        if not quiet:
            logger.info("request_started", method=request.method, path=path)

        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"

        if response.status_code >= 500:
            log = logger.error
        elif quiet:
            return response
        else:
            log = logger.info
        log(
            "request_completed",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_ms=round(elapsed_ms, 2),
        )
        return response
