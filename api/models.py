"""Pydantic v2 models for storefront request payloads."""

from pydantic import BaseModel


class PackagePurchasePayload(BaseModel):
    """POST /api/user/store/purchase body."""

    package_id: int = 0


class ResourcePurchasePayload(BaseModel):
    """POST /api/user/store/individual-resources/purchase body."""

    resource_id: int = 0
    amount: int = 0
