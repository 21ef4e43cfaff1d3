"""Purchase orchestration: catalog listings, package and per-unit purchases.

Source of truth for the money path. A purchase is:
    debit (atomic, conditional) -> grant resources -> record -> invoice
Only the debit is compensated. Recording and invoicing are best-effort.
Zero dependencies on aiohttp.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from db.client import SupabaseClient
from db.models import IndividualResource, PurchaseCreate, ResourcePackage, ResourceType
from db.repositories.credits import CreditsRepository
from db.repositories.individual_resources import IndividualResourcesRepository
from db.repositories.packages import PackagesRepository
from db.repositories.purchases import PurchasesRepository
from db.repositories.resources import ResourcesRepository
from services.external.billing import BillingClient, InvoiceItem, InvoiceMeta
from services.pricing import PriceQuote, calculate_price, item_discount
from services.saga import PurchaseSaga
from services.settings import SettingsService
from storefront.exceptions import (
    AboveMaximumError,
    BelowMinimumError,
    CreditDeductionError,
    IndividualPurchasesDisabledError,
    InsufficientCreditsError,
    InvalidPackagePriceError,
    PackageDisabledError,
    PackageNotFoundError,
    ResourceAdditionError,
    ResourceNotFoundError,
    StoreDisabledError,
)

log = structlog.get_logger()

MB_PER_GB = 1024
_GB_CONVERTIBLE = frozenset({ResourceType.MEMORY, ResourceType.DISK})

PACKAGE_INVOICE_NOTES = "Resource Package Purchase"
INDIVIDUAL_INVOICE_NOTES = "Individual Resource Purchase"


# ---------------------------------------------------------------------------
# Receipts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PackageReceipt:
    package: ResourcePackage
    resources_added: dict[str, int]
    credits_remaining: int
    price_paid: int
    original_price: int
    discount_applied: float
    invoice_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "package": self.package.model_dump(mode="json"),
            "resources_added": self.resources_added,
            "credits_remaining": self.credits_remaining,
            "price_paid": self.price_paid,
            "original_price": self.original_price,
            "discount_applied": self.discount_applied,
            "invoice_id": self.invoice_id,
        }


@dataclass(frozen=True, slots=True)
class ResourceReceipt:
    resource_id: int
    resource_type: ResourceType
    amount: int
    unit: str
    price_paid: int
    price_per_unit: float
    discount_applied: float
    credits_remaining: int
    invoice_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource_id": self.resource_id,
            "resource_type": str(self.resource_type),
            "amount": self.amount,
            "unit": self.unit,
            "price_paid": self.price_paid,
            "price_per_unit": self.price_per_unit,
            "discount_applied": self.discount_applied,
            "credits_remaining": self.credits_remaining,
            "invoice_id": self.invoice_id,
        }


@dataclass(frozen=True, slots=True)
class ResourceListing:
    resources: list[dict[str, Any]] = field(default_factory=list)
    enabled: bool = False


def grant_amount(resource: IndividualResource, amount: int) -> int:
    """Amount in ledger units. Memory and disk sold in GB are granted in MB."""
    if resource.resource_type in _GB_CONVERTIBLE and resource.unit == "GB":
        return amount * MB_PER_GB
    return amount


def _describe(name: str, description: str | None) -> str:
    return f"{name} - {description}" if description else name


# ---------------------------------------------------------------------------
# Purchase service
# ---------------------------------------------------------------------------


class PurchaseService:
    """Prices catalog items and runs purchases against the credit and resource ledgers."""

    def __init__(
        self,
        db: SupabaseClient,
        settings: SettingsService,
        billing: BillingClient | None = None,
    ) -> None:
        self._packages = PackagesRepository(db)
        self._individual = IndividualResourcesRepository(db)
        self._credits = CreditsRepository(db)
        self._resources = ResourcesRepository(db)
        self._purchases = PurchasesRepository(db)
        self._settings = settings
        self._billing = billing

    # --- listings ---------------------------------------------------------

    async def list_packages(self) -> list[dict[str, Any]]:
        """Enabled packages with their current prices. Raises StoreDisabledError."""
        settings = await self._settings.get()
        if not settings.store_enabled:
            raise StoreDisabledError(user_message=settings.maintenance_message)

        rows: list[dict[str, Any]] = []
        for package in await self._packages.get_enabled():
            quote = calculate_price(package.price, item_discount(package), settings)
            rows.append({
                **package.model_dump(mode="json"),
                "original_price": quote.original_price,
                "final_price": quote.final_price,
                "discount_applied": quote.discount_applied,
            })
        return rows

    async def list_resources(self) -> ResourceListing:
        """Enabled per-unit resources priced for a single unit."""
        settings = await self._settings.get()
        if not settings.individual_purchases_enabled:
            return ResourceListing(resources=[], enabled=False)

        rows: list[dict[str, Any]] = []
        for resource in await self._individual.get_enabled():
            quote = calculate_price(resource.price_per_unit, item_discount(resource), settings)
            rows.append({
                "id": resource.id,
                "name": resource.name,
                "description": resource.description,
                "resource_type": str(resource.resource_type),
                "unit": resource.unit,
                "price_per_unit": resource.price_per_unit,
                "final_price_per_unit": quote.final_price,
                "discount_applied": quote.discount_applied,
                "minimum_amount": resource.minimum_amount,
                "maximum_amount": resource.maximum_amount,
            })
        return ResourceListing(resources=rows, enabled=True)

    # --- package purchase -------------------------------------------------

    async def purchase_package(self, user_id: int, package_id: int) -> PackageReceipt:
        """Buy one resource package.

        Raises PackageNotFoundError, PackageDisabledError, StoreDisabledError,
        InvalidPackagePriceError before anything is mutated; then
        InsufficientCreditsError / CreditDeductionError from the debit and
        ResourceAdditionError (after refund) from ledger setup or the grants.
        """
        package = await self._packages.get_by_id(package_id)
        if package is None:
            raise PackageNotFoundError(message=f"Package {package_id} not found")
        if not package.enabled:
            raise PackageDisabledError(message=f"Package {package_id} is disabled")

        settings = await self._settings.get()
        if not settings.store_enabled:
            raise StoreDisabledError(user_message=settings.maintenance_message)
        if package.price <= 0:
            raise InvalidPackagePriceError(message=f"Package {package_id} has price {package.price}")

        quote = calculate_price(package.price, item_discount(package), settings)
        saga = PurchaseSaga("package_purchase", user_id=user_id, package_id=package_id)

        credits_remaining = await self._debit(saga, user_id, quote.final_price)

        resources_added = {k: v for k, v in package.resource_limits().items() if v > 0}
        if resources_added:
            await self._ensure_ledger(saga, user_id)
            for field_name, amount in resources_added.items():
                await self._grant(saga, user_id, ResourceType(field_name), amount)

        await self._record_purchase(user_id, package, quote)

        invoice_id = None
        if settings.should_invoice_packages:
            invoice_id = await self._invoice(
                user_id,
                notes=PACKAGE_INVOICE_NOTES,
                item=InvoiceItem(
                    description=_describe(package.name, package.description),
                    quantity=1.0,
                    unit_price=float(quote.final_price),
                    total=float(quote.final_price),
                ),
            )

        log.info(
            "package_purchased",
            user_id=user_id,
            package_id=package_id,
            price_paid=quote.final_price,
            discount=quote.discount_applied,
            invoice_id=invoice_id,
        )
        return PackageReceipt(
            package=package,
            resources_added=resources_added,
            credits_remaining=credits_remaining,
            price_paid=quote.final_price,
            original_price=quote.original_price,
            discount_applied=quote.discount_applied,
            invoice_id=invoice_id,
        )

    # --- individual purchase ----------------------------------------------

    async def purchase_resource(self, user_id: int, resource_id: int, amount: int) -> ResourceReceipt:
        """Buy ``amount`` units (in the resource's declared unit) of one resource.

        Individual purchases are not written to the purchase history.
        """
        settings = await self._settings.get()
        if not settings.individual_purchases_enabled:
            raise IndividualPurchasesDisabledError

        resource = await self._individual.get_by_id(resource_id)
        if resource is None or not resource.enabled:
            raise ResourceNotFoundError(message=f"Resource {resource_id} not found or disabled")
        if amount < resource.minimum_amount:
            raise BelowMinimumError(resource.minimum_amount, resource.unit)
        if resource.maximum_amount is not None and amount > resource.maximum_amount:
            raise AboveMaximumError(resource.maximum_amount, resource.unit)

        quote = calculate_price(resource.price_per_unit * amount, item_discount(resource), settings)
        price_per_unit = quote.final_price / amount
        saga = PurchaseSaga("resource_purchase", user_id=user_id, resource_id=resource_id)

        credits_remaining = await self._debit(saga, user_id, quote.final_price)

        await self._ensure_ledger(saga, user_id)
        await self._grant(saga, user_id, resource.resource_type, grant_amount(resource, amount))

        invoice_id = None
        if settings.should_invoice_individual:
            invoice_id = await self._invoice(
                user_id,
                notes=INDIVIDUAL_INVOICE_NOTES,
                item=InvoiceItem(
                    description=f"{_describe(resource.name, resource.description)} ({amount} {resource.unit})",
                    quantity=float(amount),
                    unit_price=price_per_unit,
                    total=float(quote.final_price),
                ),
            )

        log.info(
            "resource_purchased",
            user_id=user_id,
            resource_id=resource_id,
            amount=amount,
            unit=resource.unit,
            price_paid=quote.final_price,
            invoice_id=invoice_id,
        )
        return ResourceReceipt(
            resource_id=resource.id,
            resource_type=resource.resource_type,
            amount=amount,
            unit=resource.unit,
            price_paid=quote.final_price,
            price_per_unit=price_per_unit,
            discount_applied=quote.discount_applied,
            credits_remaining=credits_remaining,
            invoice_id=invoice_id,
        )

    # --- steps ------------------------------------------------------------

    async def _debit(self, saga: PurchaseSaga, user_id: int, amount: int) -> int:
        """Conditional debit; records a refund compensator on success."""

        async def refund(_: int) -> None:
            await self._credits.refund(user_id, amount)
            log.info("purchase_refunded", user_id=user_id, amount=amount)

        try:
            return await saga.step("debit", self._credits.charge(user_id, amount), compensate=refund)
        except InsufficientCreditsError:
            raise
        except Exception as exc:
            log.error("credit_deduction_failed", user_id=user_id, amount=amount, exc_info=True)
            raise CreditDeductionError(message=f"Debit of {amount} for user {user_id} failed: {exc}") from exc

    async def _ensure_ledger(self, saga: PurchaseSaga, user_id: int) -> None:
        """Create the user's resource row; on failure refund and raise ResourceAdditionError."""
        try:
            await self._resources.ensure_user_resources(user_id)
        except Exception as exc:
            log.error("resource_ledger_unavailable", user_id=user_id, exc_info=True)
            await self._abort(saga, user_id, f"Could not prepare resource ledger for user {user_id}", exc)

    async def _abort(self, saga: PurchaseSaga, user_id: int, message: str, cause: Exception | None = None) -> None:
        _, failed = await saga.compensate()
        log.error("resource_addition_failed", user_id=user_id, reason=message, refunded=failed == 0)
        raise ResourceAdditionError(message=message, refunded=failed == 0) from cause

    async def _grant(self, saga: PurchaseSaga, user_id: int, resource_type: ResourceType, amount: int) -> None:
        """Grant one resource; on failure refund and raise ResourceAdditionError.

        TODO: grants that already succeeded stay in place because the resource
        ledger has no remove_user_resource RPC; register one as a compensator
        here once it exists.
        """
        try:
            accepted = await self._resources.add_user_resource(user_id, resource_type, amount)
        except Exception:
            log.error("resource_grant_raised", user_id=user_id, resource_type=str(resource_type), exc_info=True)
            accepted = False

        if accepted:
            saga.record(f"grant:{resource_type}", amount)
            return

        await self._abort(saga, user_id, f"Failed to add {amount} {resource_type} to user {user_id}")

    async def _record_purchase(self, user_id: int, package: ResourcePackage, quote: PriceQuote) -> None:
        """Append to purchase history. Failures are logged, never raised."""
        try:
            await self._purchases.create(
                PurchaseCreate(
                    user_id=user_id,
                    package_id=package.id,
                    price=quote.final_price,
                    **package.resource_limits(),
                )
            )
        except Exception:
            log.warning("purchase_record_failed", user_id=user_id, package_id=package.id, exc_info=True)

    async def _invoice(self, user_id: int, notes: str, item: InvoiceItem) -> int | None:
        """Create a paid one-line invoice. Failures are logged, never raised."""
        if self._billing is None:
            return None
        try:
            if not await self._billing.can_create_invoice(user_id):
                return None
            invoice = await self._billing.create_invoice_with_items(
                user_id,
                InvoiceMeta(status="paid", tax_rate=0.0, notes=notes),
                [item],
            )
        except Exception:
            log.error("invoice_creation_failed", user_id=user_id, notes=notes, exc_info=True)
            return None
        return invoice.id if invoice else None

