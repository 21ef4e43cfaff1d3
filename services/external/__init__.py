"""External service clients -- billing core."""

from services.external.billing import BillingClient, Invoice, InvoiceItem, InvoiceMeta

__all__ = [
    "BillingClient",
    "Invoice",
    "InvoiceItem",
    "InvoiceMeta",
]
