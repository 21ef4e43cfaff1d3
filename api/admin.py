"""Admin endpoints for store-wide settings (aiohttp.web)."""

from aiohttp import web
from pydantic import ValidationError

from api import INVALID_JSON_MSG, handle_errors, read_json_object, require_admin
from api.responses import error_response, success_response
from services.settings import SettingsService, StoreSettingsUpdate


@require_admin
@handle_errors("GET_SETTINGS_FAILED", "Failed to retrieve settings")
async def get_settings(request: web.Request) -> web.Response:
    """GET /api/admin/store/settings"""
    service: SettingsService = request.app["settings_service"]
    settings = await service.get()
    return success_response({"settings": settings.public_view()}, "Settings retrieved successfully")


@require_admin
@handle_errors("UPDATE_SETTINGS_FAILED", "Failed to update settings")
async def update_settings(request: web.Request) -> web.Response:
    """PUT /api/admin/store/settings -- partial update, only provided keys are written."""
    body = await read_json_object(request)
    try:
        changes = StoreSettingsUpdate.model_validate(body)
    except ValidationError as exc:
        errors = {".".join(str(p) for p in err["loc"]): err["msg"] for err in exc.errors()}
        return error_response(INVALID_JSON_MSG, "INVALID_JSON_PAYLOAD", 400, errors)

    service: SettingsService = request.app["settings_service"]
    settings = await service.update(changes)
    return success_response({"settings": settings.public_view()}, "Settings updated successfully")
