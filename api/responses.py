"""JSON envelope shared by every endpoint.

Success: {"success": true, "message": str, "data": {...}}
Error:   {"success": false, "message": str, "error_code": str, "errors"?: {...}}
"""

from typing import Any

from aiohttp import web

from storefront.exceptions import AppError


def success_response(data: dict[str, Any], message: str, status: int = 200) -> web.Response:
    return web.json_response({"success": True, "message": message, "data": data}, status=status)


def error_response(
    message: str,
    code: str,
    status: int,
    errors: dict[str, Any] | None = None,
) -> web.Response:
    body: dict[str, Any] = {"success": False, "message": message, "error_code": code}
    if errors:
        body["errors"] = errors
    return web.json_response(body, status=status)


def app_error_response(exc: AppError) -> web.Response:
    """Render an AppError with its user-facing message, code and status."""
    return error_response(exc.user_message, exc.code, exc.status, exc.details() or None)
