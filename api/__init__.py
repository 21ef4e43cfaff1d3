"""HTTP API endpoints (aiohttp.web) -- storefront, admin settings, health."""

import hmac
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any

import sentry_sdk
import structlog
from aiohttp import web

from api.responses import app_error_response, error_response
from storefront.exceptions import AppError, InvalidRequestError

log = structlog.get_logger()

Handler = Callable[..., Coroutine[Any, Any, web.Response]]

ADMIN_ROLE = "admin"
INVALID_JSON_MSG = "Invalid JSON payload provided."


async def read_json_object(request: web.Request) -> dict[str, Any]:
    """Parse the body as a JSON object. An empty body counts as ``{}``."""
    if not request.can_read_body:
        return {}
    try:
        body = await request.json()
    except ValueError as exc:
        raise InvalidRequestError(INVALID_JSON_MSG, code="INVALID_JSON_PAYLOAD") from exc
    if not isinstance(body, dict):
        raise InvalidRequestError(INVALID_JSON_MSG, code="INVALID_JSON_PAYLOAD")
    return body


def _authenticate(request: web.Request) -> web.Response | None:
    """Check the gateway headers. Returns an error response or None on success.

    The panel gateway authenticates the session and forwards X-User-Id /
    X-User-Role together with the shared X-Internal-Token. On success stores
    ``request["user_id"]`` and ``request["user_role"]``.
    """
    settings = request.app["settings"]
    expected = settings.internal_api_token.get_secret_value()
    token = request.headers.get("X-Internal-Token", "")

    if not expected or not token or not hmac.compare_digest(token.encode(), expected.encode()):
        log.warning("api_invalid_internal_token", path=request.path)
        return error_response("Unauthorized", "UNAUTHORIZED", 401)

    try:
        user_id = int(request.headers.get("X-User-Id", ""))
    except ValueError:
        user_id = 0
    if user_id <= 0:
        log.warning("api_missing_user", path=request.path)
        return error_response("Unauthorized", "UNAUTHORIZED", 401)

    request["user_id"] = user_id
    request["user_role"] = request.headers.get("X-User-Role", "").strip().lower()
    return None


def require_user(handler: Handler) -> Handler:
    """Decorator: require a gateway-authenticated user (401 otherwise)."""

    @wraps(handler)
    async def wrapper(request: web.Request) -> web.Response:
        rejected = _authenticate(request)
        if rejected is not None:
            return rejected
        return await handler(request)

    return wrapper


def require_admin(handler: Handler) -> Handler:
    """Decorator: require a gateway-authenticated admin (401 / 403 otherwise)."""

    @wraps(handler)
    async def wrapper(request: web.Request) -> web.Response:
        rejected = _authenticate(request)
        if rejected is not None:
            return rejected
        if request["user_role"] != ADMIN_ROLE:
            log.warning("api_forbidden", path=request.path, user_id=request["user_id"])
            return error_response("Forbidden", "FORBIDDEN", 403)
        return await handler(request)

    return wrapper


def handle_errors(code: str, message: str) -> Callable[[Handler], Handler]:
    """Decorator: render AppError with its own code, anything else as ``code`` (500).

    Unexpected exceptions are logged and reported to Sentry.
    """

    def decorator(handler: Handler) -> Handler:
        @wraps(handler)
        async def wrapper(request: web.Request) -> web.Response:
            try:
                return await handler(request)
            except AppError as exc:
                log.info("api_app_error", path=request.path, error_code=exc.code, reason=exc.message)
                return app_error_response(exc)
            except Exception:
                log.exception("api_unhandled_error", path=request.path, error_code=code)
                sentry_sdk.capture_exception()
                return error_response(message, code, 500)

        return wrapper

    return decorator
