"""Storefront endpoints for end users (aiohttp.web).

Thin handlers -- all logic delegated to PurchaseService / PurchaseHistoryService.
"""

import structlog
from aiohttp import web
from pydantic import ValidationError

from api import INVALID_JSON_MSG, handle_errors, read_json_object, require_user
from api.models import PackagePurchasePayload, ResourcePurchasePayload
from api.responses import success_response
from services.history import DEFAULT_PAGE_SIZE, PurchaseHistoryService
from services.purchases import PurchaseService
from services.settings import SettingsService
from storefront.exceptions import IndividualPurchasesDisabledError, InvalidRequestError

log = structlog.get_logger()


def _int_query(request: web.Request, name: str, default: int) -> int:
    """Integer query parameter; non-numeric values fall back to ``default``."""
    try:
        return int(request.query.get(name, default))
    except ValueError:
        return default


@require_user
@handle_errors("GET_PACKAGES_FAILED", "Failed to retrieve packages")
async def list_packages(request: web.Request) -> web.Response:
    """GET /api/user/store/packages"""
    service: PurchaseService = request.app["purchase_service"]
    packages = await service.list_packages()
    return success_response({"packages": packages}, "Packages retrieved successfully")


@require_user
@handle_errors("PURCHASE_FAILED", "Failed to purchase package")
async def purchase_package(request: web.Request) -> web.Response:
    """POST /api/user/store/purchase {package_id}"""
    body = await read_json_object(request)
    try:
        payload = PackagePurchasePayload.model_validate(body)
    except ValidationError as exc:
        raise InvalidRequestError(INVALID_JSON_MSG, code="INVALID_JSON_PAYLOAD") from exc
    if payload.package_id <= 0:
        raise InvalidRequestError("Invalid package ID", code="INVALID_PACKAGE_ID")

    service: PurchaseService = request.app["purchase_service"]
    receipt = await service.purchase_package(request["user_id"], payload.package_id)
    return success_response(receipt.to_dict(), "Package purchased successfully")


@require_user
@handle_errors("GET_PURCHASES_FAILED", "Failed to retrieve purchases")
async def list_purchases(request: web.Request) -> web.Response:
    """GET /api/user/store/purchases?page&limit"""
    history: PurchaseHistoryService = request.app["history_service"]
    page = await history.list_purchases(
        request["user_id"],
        page=_int_query(request, "page", 1),
        limit=_int_query(request, "limit", DEFAULT_PAGE_SIZE),
    )
    return success_response(page.to_dict(), "Purchases retrieved successfully")


@require_user
@handle_errors("GET_PRICES_FAILED", "Failed to retrieve resource prices")
async def list_individual_resources(request: web.Request) -> web.Response:
    """GET /api/user/store/individual-resources"""
    service: PurchaseService = request.app["purchase_service"]
    listing = await service.list_resources()
    return success_response(
        {"resources": listing.resources, "enabled": listing.enabled},
        "Resource prices retrieved successfully",
    )


@require_user
@handle_errors("PURCHASE_FAILED", "Failed to purchase resources")
async def purchase_individual_resource(request: web.Request) -> web.Response:
    """POST /api/user/store/individual-resources/purchase {resource_id, amount}"""
    # Disabled store wins over a malformed body.
    settings_service: SettingsService = request.app["settings_service"]
    if not (await settings_service.get()).individual_purchases_enabled:
        raise IndividualPurchasesDisabledError

    body = await read_json_object(request)
    try:
        payload = ResourcePurchasePayload.model_validate(body)
    except ValidationError as exc:
        raise InvalidRequestError(INVALID_JSON_MSG, code="INVALID_JSON_PAYLOAD") from exc
    if payload.resource_id <= 0:
        raise InvalidRequestError("Invalid resource ID", code="INVALID_RESOURCE_ID")

    service: PurchaseService = request.app["purchase_service"]
    receipt = await service.purchase_resource(request["user_id"], payload.resource_id, payload.amount)
    return success_response(receipt.to_dict(), "Resources purchased successfully")
