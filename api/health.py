"""Health check endpoint.

GET /api/health -- public status or detailed checks with Bearer token.
"""

import hmac
import time
from typing import Any

import structlog
from aiohttp import web

log = structlog.get_logger()

_VERSION = "1.0.0"
_START_TIME = time.monotonic()


async def health_handler(request: web.Request) -> web.Response:
    """Health check: public or detailed depending on Bearer token."""
    auth = request.headers.get("Authorization", "")
    settings = request.app["settings"]
    token = settings.health_check_token.get_secret_value()

    # Public response (no token or invalid token): no version/details
    if not token or not auth.startswith("Bearer ") or not hmac.compare_digest(auth[7:], token):
        return web.json_response({"status": "ok"})

    checks: dict[str, dict[str, Any]] = {}
    overall = "ok"

    # Database check (with latency)
    t0 = time.monotonic()
    try:
        db = request.app["db"]
        await db.table("store_settings").select("key").limit(1).execute()
        checks["database"] = {"status": "ok", "latency_ms": round((time.monotonic() - t0) * 1000)}
    except Exception:
        checks["database"] = {"status": "error", "latency_ms": round((time.monotonic() - t0) * 1000)}
        overall = "down"
        log.warning("health_db_failed", exc_info=True)

    # Redis check (non-critical: settings fall back to the database)
    t0 = time.monotonic()
    try:
        redis = request.app["redis"]
        is_ok = await redis.ping()
        latency = round((time.monotonic() - t0) * 1000)
        checks["redis"] = {"status": "ok" if is_ok else "error", "latency_ms": latency}
        if not is_ok and overall != "down":
            overall = "degraded"
    except Exception:
        checks["redis"] = {"status": "error", "latency_ms": round((time.monotonic() - t0) * 1000)}
        if overall != "down":
            overall = "degraded"
        log.warning("health_redis_failed", exc_info=True)

    return web.json_response({
        "status": overall,
        "version": _VERSION,
        "uptime_seconds": round(time.monotonic() - _START_TIME),
        "checks": checks,
    })
