"""aiohttp middleware for API endpoints.

- request_logging_middleware: correlation_id + latency for every request.
- security_headers_middleware: standard security headers on every response.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from aiohttp import web

log = structlog.get_logger()


@web.middleware
async def request_logging_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Bind a correlation_id (reused from X-Request-Id when present), log latency."""
    correlation_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    request["correlation_id"] = correlation_id

    start = time.monotonic()
    with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
        try:
            response = await handler(request)
        except web.HTTPException as exc:
            log.info("request_rejected", method=request.method, path=request.path, status=exc.status)
            raise
        except Exception:
            log.error(
                "request_failed",
                method=request.method,
                path=request.path,
                latency_ms=round((time.monotonic() - start) * 1000, 2),
                exc_info=True,
            )
            raise
        log.info(
            "request_handled",
            method=request.method,
            path=request.path,
            status=response.status,
            user_id=request.get("user_id"),
            latency_ms=round((time.monotonic() - start) * 1000, 2),
        )
    response.headers["X-Request-Id"] = correlation_id
    return response


@web.middleware
async def security_headers_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Add security headers to every HTTP response."""
    response = await handler(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    # X-XSS-Protection: 0 disables legacy XSS auditor (modern CSP is preferred)
    response.headers["X-XSS-Protection"] = "0"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Content-Security-Policy"] = "default-src 'none'"
    response.headers["Cache-Control"] = "no-store"
    return response
