"""Tests for services/pricing.py — discount windows and final price.

Covers: window open/closed/unparseable, max-of discounts, bulk selection,
cap, rounding ties, floor at zero.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from db.models import IndividualResource, ResourcePackage
from services.pricing import (
    PriceQuote,
    active_discount,
    calculate_price,
    item_discount,
    round_half_away_from_zero,
)
from services.settings import StoreSettings

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def _settings(**overrides: object) -> StoreSettings:
    return StoreSettings(**{"global_discount": 0.0, "max_discount": 50.0, **overrides})


# ---------------------------------------------------------------------------
# DiscountWindow
# ---------------------------------------------------------------------------


class TestActiveDiscount:
    def test_disabled(self) -> None:
        assert active_discount(False, 20, now=NOW) is None

    def test_enabled_without_dates(self) -> None:
        assert active_discount(True, 20, now=NOW) == 20.0

    def test_zero_percentage(self) -> None:
        assert active_discount(True, 0, now=NOW) is None

    def test_start_in_future(self) -> None:
        start = (NOW + timedelta(days=1)).isoformat()
        assert active_discount(True, 20, start_date=start, now=NOW) is None

    def test_end_in_past(self) -> None:
        assert active_discount(True, 20, end_date="2025-05-31 23:59:59", now=NOW) is None

    def test_inside_window(self) -> None:
        assert active_discount(True, 15, "2025-05-01 00:00:00", "2025-07-01T00:00:00+00:00", now=NOW) == 15.0

    def test_unparseable_date_closes_window(self) -> None:
        assert active_discount(True, 20, start_date="next tuesday", now=NOW) is None
        assert active_discount(True, 20, end_date="31/12/2025", now=NOW) is None

    def test_naive_dates_are_utc(self) -> None:
        # 12:00 UTC is after a naive 11:59 end
        assert active_discount(True, 20, end_date="2025-06-01 11:59:00", now=NOW) is None
        assert active_discount(True, 20, end_date="2025-06-01 12:01:00", now=NOW) == 20.0

    def test_offset_dates_compare_as_instants(self) -> None:
        # 14:30+02:00 == 12:30 UTC, still open at 12:00 UTC
        assert active_discount(True, 20, end_date="2025-06-01T14:30:00+02:00", now=NOW) == 20.0

    def test_empty_strings_ignored(self) -> None:
        assert active_discount(True, 20, start_date="", end_date="", now=NOW) == 20.0

    def test_naive_now_treated_as_utc(self) -> None:
        naive_now = NOW.replace(tzinfo=None)
        assert active_discount(True, 20, end_date="2025-06-01 13:00:00", now=naive_now) == 20.0


def test_item_discount_reads_catalog_fields() -> None:
    package = ResourcePackage(
        id=1, name="p", price=100, discount_enabled=True, discount_percentage=30,
        discount_start_date="2099-01-01 00:00:00",
    )
    resource = IndividualResource(
        id=2, name="r", resource_type="cpu_limit", price_per_unit=5,
        discount_enabled=True, discount_percentage=10,
    )
    assert item_discount(package, now=NOW) is None
    assert item_discount(resource, now=NOW) == 10.0


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("value", "expected"),
    [(2.5, 3), (3.5, 4), (-2.5, -3), (4.4999, 4), (800.0000000000001, 800), (849.9999999999999, 850), (0.5, 1)],
)
def test_round_half_away_from_zero(value: float, expected: int) -> None:
    assert round_half_away_from_zero(value) == expected


# ---------------------------------------------------------------------------
# PriceCalculator
# ---------------------------------------------------------------------------


class TestCalculatePrice:
    def test_no_discounts(self) -> None:
        assert calculate_price(1000, None, _settings()) == PriceQuote(1000, 0.0, 1000)

    def test_item_discount_only(self) -> None:
        quote = calculate_price(1000, 20.0, _settings())
        assert quote.final_price == 800
        assert quote.discount_applied == 20.0
        assert quote.original_price == 1000

    def test_discounts_do_not_stack(self) -> None:
        # item 20 vs global 10 -> 20, not 30
        assert calculate_price(1000, 20.0, _settings(global_discount=10.0)).final_price == 800

    def test_global_beats_smaller_item(self) -> None:
        quote = calculate_price(1000, 5.0, _settings(global_discount=15.0))
        assert quote.discount_applied == 15.0
        assert quote.final_price == 850

    def test_bulk_uses_max_of_all_qualifying(self) -> None:
        settings = _settings(bulk_discounts={1000: 5.0, 5000: 10.0})
        assert calculate_price(6000, None, settings).discount_applied == 10.0

    def test_bulk_max_even_when_lower_threshold_is_larger(self) -> None:
        settings = _settings(bulk_discounts={1000: 12.0, 5000: 8.0})
        assert calculate_price(6000, None, settings).discount_applied == 12.0

    def test_bulk_threshold_is_inclusive(self) -> None:
        settings = _settings(bulk_discounts={1000: 5.0})
        assert calculate_price(1000, None, settings).discount_applied == 5.0
        assert calculate_price(999, None, settings).discount_applied == 0.0

    def test_cap(self) -> None:
        quote = calculate_price(1000, 80.0, _settings(max_discount=50.0))
        assert quote.discount_applied == 50.0
        assert quote.final_price == 500

    def test_cap_zero_disables_discounts(self) -> None:
        assert calculate_price(1000, 80.0, _settings(global_discount=30.0, max_discount=0.0)).final_price == 1000

    def test_full_discount_is_free(self) -> None:
        assert calculate_price(1000, 100.0, _settings(max_discount=100.0)).final_price == 0

    def test_tie_rounds_up(self) -> None:
        # 5 * 0.9 = 4.5 -> 5
        assert calculate_price(5, 10.0, _settings()).final_price == 5
        # 15 * 0.9 = 13.5 -> 14
        assert calculate_price(15, 10.0, _settings()).final_price == 14

    def test_end_to_end_example(self) -> None:
        settings = _settings(global_discount=10.0, max_discount=50.0, bulk_discounts={500: 5.0})
        quote = calculate_price(1000, 20.0, settings)
        assert quote == PriceQuote(final_price=800, discount_applied=20.0, original_price=1000)

    def test_minimum_purchase_for_discount_is_not_consulted(self) -> None:
        settings = _settings(global_discount=10.0, minimum_purchase_for_discount=10_000)
        assert calculate_price(1000, None, settings).final_price == 900

    @pytest.mark.parametrize("base", [0, 1, 7, 99, 1000, 123_457])
    @pytest.mark.parametrize("pct", [0.0, 12.5, 33.0, 50.0])
    def test_final_price_bounds(self, base: int, pct: float) -> None:
        quote = calculate_price(base, pct, _settings())
        assert 0 <= quote.final_price <= base
        assert quote.discount_applied <= 50.0
