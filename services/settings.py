"""Typed store settings over the store_settings key/value table.

The table stores strings ("true"/"false", decimal strings, a JSON object for
bulk discounts). Everything outside this module sees StoreSettings.
Snapshots are cached in Redis; cache errors are non-fatal.
"""

from __future__ import annotations

import json
from typing import Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict, field_validator

from cache.client import RedisClient
from cache.keys import SETTINGS_CACHE_TTL, CacheKeys
from db.client import SupabaseClient
from db.repositories.settings import SettingsRepository

log = structlog.get_logger()

DEFAULT_MAINTENANCE_MESSAGE = "The resource store is currently under maintenance. Please check back later."
DEFAULT_MAX_DISCOUNT = 50.0

FrontPageDisplay = Literal["packages", "individual"]
_FRONT_PAGE_VALUES: tuple[str, ...] = ("packages", "individual")


def _clamp_pct(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def _sanitize_bulk(raw: dict[Any, Any]) -> dict[int, float]:
    """Keep positive thresholds with positive percentages, sorted by threshold."""
    result: dict[int, float] = {}
    for amount, pct in raw.items():
        try:
            threshold = int(amount)
            discount = _clamp_pct(float(pct))
        except (TypeError, ValueError):
            continue
        if threshold > 0 and discount > 0:
            result[threshold] = discount
    return dict(sorted(result.items()))


class StoreSettings(BaseModel):
    """Process-wide store configuration snapshot."""

    model_config = ConfigDict(frozen=True)

    store_enabled: bool = True
    maintenance_message: str = DEFAULT_MAINTENANCE_MESSAGE
    individual_purchases_enabled: bool = False
    global_discount: float = 0.0
    minimum_purchase_for_discount: int = 0  # stored and exposed, not enforced
    bulk_discounts: dict[int, float] = {}
    max_discount: float = DEFAULT_MAX_DISCOUNT
    front_page_display: FrontPageDisplay = "packages"
    invoice_generation_enabled: bool = False
    invoice_generation_packages: bool = False
    invoice_generation_individual: bool = False

    @field_validator("bulk_discounts", mode="after")
    @classmethod
    def _sorted_bulk(cls, v: dict[int, float]) -> dict[int, float]:
        return dict(sorted(v.items()))

    @property
    def should_invoice_packages(self) -> bool:
        return self.invoice_generation_enabled and self.invoice_generation_packages

    @property
    def should_invoice_individual(self) -> bool:
        return self.invoice_generation_enabled and self.invoice_generation_individual

    def public_view(self) -> dict[str, Any]:
        """Admin-facing shape. Per-type invoice flags are reported as effective values."""
        return {
            "store_enabled": self.store_enabled,
            "maintenance_message": self.maintenance_message,
            "individual_purchases_enabled": self.individual_purchases_enabled,
            "global_discount": self.global_discount,
            "minimum_purchase_for_discount": self.minimum_purchase_for_discount,
            "bulk_discounts": {str(k): v for k, v in self.bulk_discounts.items()},
            "max_discount": self.max_discount,
            "front_page_display": self.front_page_display,
            "invoice_generation_enabled": self.invoice_generation_enabled,
            "invoice_generation_packages": self.should_invoice_packages,
            "invoice_generation_individual": self.should_invoice_individual,
        }

    @classmethod
    def from_raw(cls, raw: dict[str, str | None]) -> StoreSettings:
        """Decode the string-typed key/value rows, applying defaults and clamps."""

        def flag(key: str) -> bool:
            return raw.get(key) == "true"

        def number(key: str, default: float) -> float:
            value = raw.get(key)
            if value is None or value == "":
                return default
            try:
                return float(value)
            except ValueError:
                log.warning("store_setting_not_numeric", key=key, value=value)
                return default

        store_raw = raw.get("store_enabled")
        bulk: dict[int, float] = {}
        bulk_raw = raw.get("bulk_discounts")
        if bulk_raw:
            try:
                decoded = json.loads(bulk_raw)
            except json.JSONDecodeError:
                log.warning("store_setting_bad_json", key="bulk_discounts")
                decoded = None
            if isinstance(decoded, dict):
                bulk = _sanitize_bulk(decoded)

        display = raw.get("front_page_display") or "packages"

        return cls(
            store_enabled=store_raw is None or store_raw == "true",
            maintenance_message=raw.get("maintenance_message") or DEFAULT_MAINTENANCE_MESSAGE,
            individual_purchases_enabled=flag("individual_purchases_enabled"),
            global_discount=_clamp_pct(number("global_discount", 0.0)),
            minimum_purchase_for_discount=max(0, int(number("minimum_purchase_for_discount", 0))),
            bulk_discounts=bulk,
            max_discount=_clamp_pct(number("max_discount", DEFAULT_MAX_DISCOUNT)),
            front_page_display=display if display in _FRONT_PAGE_VALUES else "packages",  # type: ignore[arg-type]
            invoice_generation_enabled=flag("invoice_generation_enabled"),
            invoice_generation_packages=flag("invoice_generation_packages"),
            invoice_generation_individual=flag("invoice_generation_individual"),
        )


class StoreSettingsUpdate(BaseModel):
    """Partial admin update. Only fields that are set get written."""

    model_config = ConfigDict(extra="ignore")

    store_enabled: bool | None = None
    maintenance_message: str | None = None
    individual_purchases_enabled: bool | None = None
    global_discount: float | None = None
    minimum_purchase_for_discount: int | None = None
    bulk_discounts: dict[str, float] | None = None
    max_discount: float | None = None
    front_page_display: str | None = None
    invoice_generation_enabled: bool | None = None
    invoice_generation_packages: bool | None = None
    invoice_generation_individual: bool | None = None

    def to_raw(self) -> dict[str, str]:
        """Encode set fields into the key/value wire format, sanitized."""
        raw: dict[str, str] = {}
        for key, value in self.model_dump(exclude_none=True).items():
            if isinstance(value, bool):
                raw[key] = "true" if value else "false"
            elif key in ("global_discount", "max_discount"):
                raw[key] = str(_clamp_pct(value))
            elif key == "minimum_purchase_for_discount":
                raw[key] = str(max(0, value))
            elif key == "bulk_discounts":
                sanitized = _sanitize_bulk(value)
                raw[key] = json.dumps({str(k): v for k, v in sanitized.items()})
            elif key == "front_page_display":
                raw[key] = value if value in _FRONT_PAGE_VALUES else "packages"
            else:
                raw[key] = str(value)
        return raw


class SettingsService:
    """Reads and writes StoreSettings. Injected into services that need pricing config."""

    def __init__(
        self,
        db: SupabaseClient,
        redis: RedisClient | None = None,
        cache_ttl: int = SETTINGS_CACHE_TTL,
    ) -> None:
        self._repo = SettingsRepository(db)
        self._redis = redis
        self._cache_ttl = cache_ttl

    async def get(self) -> StoreSettings:
        """Current settings, from cache when possible."""
        if self._redis:
            try:
                cached = await self._redis.get(CacheKeys.store_settings())
                if cached:
                    return StoreSettings.model_validate_json(cached)
            except Exception:
                log.warning("settings_cache_read_failed", exc_info=True)

        settings = StoreSettings.from_raw(await self._repo.get_all())

        if self._redis:
            try:
                await self._redis.set(
                    CacheKeys.store_settings(),
                    settings.model_dump_json(),
                    ex=self._cache_ttl,
                )
            except Exception:
                log.warning("settings_cache_write_failed", exc_info=True)
        return settings

    async def update(self, changes: StoreSettingsUpdate) -> StoreSettings:
        """Write the provided keys, drop the cached snapshot, return fresh settings."""
        raw = changes.to_raw()
        await self._repo.set_many(raw)
        log.info("store_settings_updated", keys=sorted(raw))

        if self._redis:
            try:
                await self._redis.delete(CacheKeys.store_settings())
            except Exception:
                log.warning("settings_cache_invalidate_failed", exc_info=True)
        return await self.get()
