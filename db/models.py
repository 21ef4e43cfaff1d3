"""Pydantic v2 models for the store tables.

Tables: resource_packages, individual_resources, resource_purchases,
store_settings (key/value), user_resources (ledger, write-only from here).
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ResourceType(StrEnum):
    """The seven resource-limit columns a user's hosting account carries."""

    MEMORY = "memory_limit"  # MB
    CPU = "cpu_limit"  # %
    DISK = "disk_limit"  # MB
    SERVER = "server_limit"
    DATABASE = "database_limit"
    BACKUP = "backup_limit"
    ALLOCATION = "allocation_limit"


RESOURCE_FIELDS: tuple[str, ...] = tuple(rt.value for rt in ResourceType)


# ---------------------------------------------------------------------------
# 1. resource_packages
# ---------------------------------------------------------------------------


class ResourcePackage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    memory_limit: int = Field(default=0, ge=0)
    cpu_limit: int = Field(default=0, ge=0)
    disk_limit: int = Field(default=0, ge=0)
    server_limit: int = Field(default=0, ge=0)
    database_limit: int = Field(default=0, ge=0)
    backup_limit: int = Field(default=0, ge=0)
    allocation_limit: int = Field(default=0, ge=0)
    price: int = 0
    enabled: bool = True
    sort_order: int = 0
    discount_percentage: float = 0.0
    discount_start_date: str | None = None  # raw: unparseable values close the window
    discount_end_date: str | None = None
    discount_enabled: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def resource_limits(self) -> dict[str, int]:
        """All seven limits keyed by resource type, zeros included."""
        return {field: int(getattr(self, field)) for field in RESOURCE_FIELDS}


# ---------------------------------------------------------------------------
# 2. individual_resources
# ---------------------------------------------------------------------------


class IndividualResource(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    resource_type: ResourceType
    unit: str = "MB"
    price_per_unit: int = 0
    minimum_amount: int = 1
    maximum_amount: int | None = None  # None = unlimited
    discount_percentage: float = 0.0
    discount_start_date: str | None = None
    discount_end_date: str | None = None
    discount_enabled: bool = False
    enabled: bool = True
    sort_order: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def _normalize_bounds(self) -> "IndividualResource":
        # Non-positive maximums are stored by admins to mean "unlimited".
        if self.maximum_amount is not None and self.maximum_amount <= 0:
            self.maximum_amount = None
        self.minimum_amount = max(1, self.minimum_amount)
        return self


# ---------------------------------------------------------------------------
# 3. resource_purchases
# ---------------------------------------------------------------------------


class Purchase(BaseModel):
    """Append-only purchase receipt, optionally joined with the package name."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    package_id: int | None = None
    package_name: str | None = None
    price: int
    memory_limit: int = 0
    cpu_limit: int = 0
    disk_limit: int = 0
    server_limit: int = 0
    database_limit: int = 0
    backup_limit: int = 0
    allocation_limit: int = 0
    created_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_package_join(cls, data: Any) -> Any:
        """PostgREST embeds the joined row as ``resource_packages: {name}``."""
        if isinstance(data, dict) and "resource_packages" in data:
            data = dict(data)
            joined = data.pop("resource_packages") or {}
            data.setdefault("package_name", joined.get("name"))
        return data


class PurchaseCreate(BaseModel):
    user_id: int
    package_id: int
    price: int
    memory_limit: int = 0
    cpu_limit: int = 0
    disk_limit: int = 0
    server_limit: int = 0
    database_limit: int = 0
    backup_limit: int = 0
    allocation_limit: int = 0


# ---------------------------------------------------------------------------
# 4. store_settings
# ---------------------------------------------------------------------------


class StoreSettingRow(BaseModel):
    """Raw key/value row. Values are strings; typing happens in services/settings.py."""

    key: str
    value: str | None = None
    updated_at: datetime | None = None
