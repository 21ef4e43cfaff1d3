"""Billing core client: invoice eligibility and invoice creation.

Invoices are a courtesy record of a purchase that already happened, so
every method degrades gracefully: on any HTTP or decoding error it logs
and returns False / None instead of raising.

Endpoints (relative to BILLING_API_URL):
    GET  /users/{user_id}/invoices/eligibility -> {"can_create": bool}
    POST /users/{user_id}/invoices             -> {"id": int, ...}
Responses may be wrapped in the panel envelope {"success", "data"}.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

log = structlog.get_logger()

_BILLING_TIMEOUT = 10.0


class InvoiceItem(BaseModel):
    description: str
    quantity: float
    unit_price: float
    total: float


class InvoiceMeta(BaseModel):
    status: str = "paid"
    tax_rate: float = 0.0
    notes: str = ""


class Invoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int


def _unwrap(body: Any) -> Any:
    """Strip the panel {"success", "data"} envelope if present."""
    if isinstance(body, dict) and "data" in body and isinstance(body["data"], dict):
        return body["data"]
    return body


class BillingClient:
    """Client for the panel's billing core.

    Uses shared httpx.AsyncClient (never creates its own).
    """

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient,
        api_token: str = "",
        timeout: float = _BILLING_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_client
        self._api_token = api_token
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    async def can_create_invoice(self, user_id: int) -> bool:
        """Whether the billing core accepts invoices for this user."""
        try:
            resp = await self._http.get(
                f"{self._base_url}/users/{user_id}/invoices/eligibility",
                headers=self._headers(),
                timeout=self._timeout,
            )
            resp.raise_for_status()
            data = _unwrap(resp.json())
            return bool(data.get("can_create", False)) if isinstance(data, dict) else False
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("billing.eligibility_failed", user_id=user_id, error=str(exc))
            return False

    async def create_invoice_with_items(
        self,
        user_id: int,
        meta: InvoiceMeta,
        items: list[InvoiceItem],
    ) -> Invoice | None:
        """Create an invoice with line items. Returns None on failure."""
        payload = {**meta.model_dump(), "items": [item.model_dump() for item in items]}
        try:
            resp = await self._http.post(
                f"{self._base_url}/users/{user_id}/invoices",
                headers=self._headers(),
                json=payload,
                timeout=self._timeout,
            )
            resp.raise_for_status()
            invoice = Invoice.model_validate(_unwrap(resp.json()))
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            log.warning("billing.create_invoice_failed", user_id=user_id, error=str(exc))
            return None

        log.info("billing.invoice_created", user_id=user_id, invoice_id=invoice.id, items=len(items))
        return invoice
