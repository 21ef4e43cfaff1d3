"""Discount windows and final-price calculation.

Pure functions, no I/O. The caller passes a StoreSettings snapshot.

Discount rule: the applied percentage is the MAX of the item discount, the
global discount and every qualifying bulk discount, capped at max_discount.
Discounts never stack.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from services.settings import StoreSettings


class Discountable(Protocol):
    """Any catalog row carrying the discount column set."""

    discount_enabled: bool
    discount_percentage: float
    discount_start_date: str | None
    discount_end_date: str | None


@dataclass(frozen=True, slots=True)
class PriceQuote:
    """Result of a price calculation."""

    final_price: int
    discount_applied: float
    original_price: int


def _parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 or ``YYYY-MM-DD HH:MM:SS`` string. Naive values are UTC."""
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def active_discount(
    enabled: bool,
    percentage: float,
    start_date: str | None = None,
    end_date: str | None = None,
    now: datetime | None = None,
) -> float | None:
    """Return the item discount percentage if its window is open, else None.

    An unparseable start or end date closes the window.
    """
    if not enabled:
        return None

    now = now or datetime.now(tz=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    try:
        if start_date and now < _parse_instant(start_date):
            return None
        if end_date and now > _parse_instant(end_date):
            return None
    except (ValueError, TypeError):
        return None

    if percentage > 0:
        return float(percentage)
    return None


def item_discount(item: Discountable, now: datetime | None = None) -> float | None:
    """active_discount() applied to a package or individual resource."""
    return active_discount(
        item.discount_enabled,
        item.discount_percentage,
        item.discount_start_date,
        item.discount_end_date,
        now=now,
    )


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3).

    Goes through the shortest float repr so 850.0000000000001-style noise
    from the percentage multiply doesn't shift a tie.
    """
    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def calculate_price(
    base_price: int,
    discount: float | None,
    settings: StoreSettings,
) -> PriceQuote:
    """Apply item, global and bulk discounts to ``base_price``.

    Note: settings.minimum_purchase_for_discount is intentionally not
    consulted here; the setting is stored and exposed but has never gated
    discounts.
    """
    total = 0.0

    if discount is not None and discount > 0:
        total = max(total, discount)

    total = max(total, settings.global_discount)

    # Every threshold the price reaches is a candidate, not just the closest.
    for threshold, pct in settings.bulk_discounts.items():
        if base_price >= threshold:
            total = max(total, pct)

    total = min(total, settings.max_discount)

    final = round_half_away_from_zero(base_price * (1 - total / 100))
    return PriceQuote(
        final_price=max(0, final),
        discount_applied=total,
        original_price=base_price,
    )
