"""Rental accrual and invoice arithmetic.

Everything here is a pure function of its arguments. The amount returned by
:func:`calculate_rental_amount` is a live estimate that keeps growing while a
rental is open; it is never the same thing as the ``total_amount`` frozen on
the rental record when an invoice is issued.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Mapping, Optional

from dateutil import parser

from equipment_rental.domain.models import Rental, RentalItem


def to_date(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parser.isoparse(value).date()


def rental_days(start: str | date, end: str | date) -> int:
    """Inclusive day count between two dates, never less than one."""
    elapsed = (to_date(end) - to_date(start)).days
    return max(1, elapsed + 1)


def line_amount(quantity: int, daily_rate: float, days: int) -> float:
    return quantity * daily_rate * days


def billing_end_date(rental: Rental, today: Optional[str | date] = None) -> date:
    """Actual return date for a closed rental, otherwise ``today``."""
    if rental.actual_return_date:
        return to_date(rental.actual_return_date)
    if today is None:
        return date.today()
    return to_date(today)


def calculate_amount(
    start: str | date, end: str | date, items: Iterable[RentalItem]
) -> float:
    days = rental_days(start, end)
    return sum(line_amount(item.quantity, item.daily_rate, days) for item in items)


def calculate_rental_amount(
    rental: Rental,
    items: Optional[Iterable[RentalItem]] = None,
    today: Optional[str | date] = None,
) -> float:
    """Billable amount of a rental as of its return date or ``today``."""
    if items is None:
        items = rental.items
    return calculate_amount(rental.rental_date, billing_end_date(rental, today), items)


def daily_charge(items: Iterable[RentalItem]) -> float:
    """Sum of quantity times daily rate: one day's charge."""
    return sum(item.quantity * item.daily_rate for item in items)


@dataclass(frozen=True)
class InvoiceLine:
    description: str
    quantity: int
    rate: float
    amount: float


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: float
    tax_rate: float
    tax_amount: float
    total: float


def build_invoice_lines(
    items: Iterable[RentalItem],
    days: int,
    category_names: Optional[Mapping[int, str]] = None,
) -> list[InvoiceLine]:
    lines: list[InvoiceLine] = []
    for item in items:
        name = item.category_name
        if category_names and item.category_id in category_names:
            name = category_names[item.category_id]
        label = name or f"Category {item.category_id}"
        lines.append(
            InvoiceLine(
                description=f"{label} ({days} days)",
                quantity=item.quantity,
                rate=item.daily_rate * days,
                amount=line_amount(item.quantity, item.daily_rate, days),
            )
        )
    return lines


def compute_invoice_totals(subtotal: float, tax_rate: float) -> InvoiceTotals:
    subtotal = round(subtotal, 2)
    tax_amount = round(subtotal * tax_rate / 100, 2)
    return InvoiceTotals(
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        total=round(subtotal + tax_amount, 2),
    )


@dataclass(frozen=True)
class InvoiceDocument:
    """Input of the invoice composer: a fully computed invoice."""

    invoice_number: str
    client_name: str
    client_phone: str
    issue_date: date
    items: list[InvoiceLine]
    subtotal: float
    tax_rate: float
    tax_amount: float
    total: float
    rental_start: date
    rental_end: date
    days: int
    due_date: Optional[date] = None
    client_address: Optional[str] = None
    client_gst: Optional[str] = None
    notes: Optional[str] = None
