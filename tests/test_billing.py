"""Tests for the rental accrual calculator."""

from datetime import date

import pytest

from equipment_rental.domain.models import Rental, RentalItem, RentalStatus
from equipment_rental.services.billing import (
    build_invoice_lines,
    calculate_amount,
    calculate_rental_amount,
    compute_invoice_totals,
    daily_charge,
    rental_days,
)


def _items():
    return [
        RentalItem(id=1, rental_id=1, category_id=1, quantity=2, daily_rate=25.0, category_name="18x18"),
        RentalItem(id=2, rental_id=1, category_id=2, quantity=3, daily_rate=15.0, category_name="12x12"),
    ]


class TestRentalDays:
    def test_same_day_counts_as_one(self):
        assert rental_days("2026-01-01", "2026-01-01") == 1

    def test_inclusive_counting(self):
        assert rental_days(date(2026, 1, 1), date(2026, 1, 5)) == 5

    def test_end_before_start_floors_at_one(self):
        assert rental_days("2026-01-10", "2026-01-01") == 1

    def test_accepts_timestamps(self):
        assert rental_days("2026-01-01T09:00:00", "2026-01-02T18:30:00") == 2


class TestCalculateRentalAmount:
    def test_same_day_equals_one_day_charge(self):
        items = _items()
        amount = calculate_amount("2026-03-01", "2026-03-01", items)
        assert amount == pytest.approx(daily_charge(items))
        assert amount == pytest.approx(2 * 25 + 3 * 15)

    def test_open_rental_accrues_until_today(self):
        rental = Rental(id=1, client_id=1, rental_date="2026-01-01", items=_items())
        assert calculate_rental_amount(rental, today="2026-01-01") == pytest.approx(95.0)
        assert calculate_rental_amount(rental, today="2026-01-10") == pytest.approx(950.0)

    def test_closed_rental_ignores_today(self):
        rental = Rental(
            id=1,
            client_id=1,
            rental_date="2026-01-01",
            status=RentalStatus.COMPLETED,
            actual_return_date="2026-01-05",
            items=[_items()[0]],
        )
        assert calculate_rental_amount(rental, today="2026-12-31") == pytest.approx(250.0)

    def test_live_amount_is_not_the_stored_total(self):
        rental = Rental(
            id=1,
            client_id=1,
            rental_date="2026-01-01",
            total_amount=50.0,
            items=[_items()[0]],
        )
        assert calculate_rental_amount(rental, today="2026-01-03") == pytest.approx(150.0)
        assert rental.total_amount == 50.0

    def test_explicit_items_override_attached_items(self):
        rental = Rental(id=1, client_id=1, rental_date="2026-01-01", items=_items())
        only_first = [_items()[0]]
        assert calculate_rental_amount(rental, only_first, today="2026-01-02") == pytest.approx(100.0)


def test_invoice_lines_spread_rate_over_days():
    lines = build_invoice_lines(_items(), days=5)

    assert lines[0].description == "18x18 (5 days)"
    assert lines[0].rate == pytest.approx(125.0)
    assert lines[0].amount == pytest.approx(250.0)
    assert lines[1].description == "12x12 (5 days)"
    assert lines[1].amount == pytest.approx(225.0)


def test_invoice_totals_round_to_paise():
    totals = compute_invoice_totals(250.0, 18.0)
    assert totals.tax_amount == pytest.approx(45.0)
    assert totals.total == pytest.approx(295.0)

    odd = compute_invoice_totals(333.333, 18.0)
    assert odd.subtotal == pytest.approx(333.33)
    assert odd.tax_amount == pytest.approx(60.0)
    assert odd.total == pytest.approx(393.33)
