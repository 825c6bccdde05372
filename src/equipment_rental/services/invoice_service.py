"""Invoice generation: frozen totals plus the composer document."""

from __future__ import annotations

import sqlite3
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from equipment_rental.config import (
    DEFAULT_COMPANY,
    DEFAULT_TAX_RATE,
    INVOICE_DUE_DAYS,
    INVOICE_NUMBER_PREFIX,
    CompanyInfo,
)
from equipment_rental.db.connection import transaction
from equipment_rental.domain.models import Invoice, InvoiceStatus, RentalStatus
from equipment_rental.logging_config import get_logger
from equipment_rental.repositories import rental_repo
from equipment_rental.repositories.client_repo import ClientRepo
from equipment_rental.repositories.invoice_repo import InvoiceRepository
from equipment_rental.services.billing import (
    InvoiceDocument,
    billing_end_date,
    build_invoice_lines,
    calculate_rental_amount,
    compute_invoice_totals,
    rental_days,
    to_date,
)
from equipment_rental.services.errors import NotFoundError, ValidationError
from equipment_rental.utils.documents import build_invoice_filename
from equipment_rental.utils.pdf_generator import generate_invoice_pdf


def invoice_number_prefix(issue_date: date) -> str:
    return f"{INVOICE_NUMBER_PREFIX}-{issue_date:%Y%m}-"


class InvoiceService:
    """Service for invoice operations."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        default_tax_rate: float = DEFAULT_TAX_RATE,
        company: CompanyInfo = DEFAULT_COMPANY,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = InvoiceRepository(connection)
        self._client_repo = ClientRepo(connection)
        self._default_tax_rate = default_tax_rate
        self._company = company
        self._logger = get_logger(self.__class__.__name__)

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self._repo.get_by_id(invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found.")
        return invoice

    def list_invoices(self, status: Optional[InvoiceStatus] = None) -> list[Invoice]:
        return self._repo.list_all(status)

    def _next_number(self, issue_date: date) -> str:
        prefix = invoice_number_prefix(issue_date)
        sequence = self._repo.count_with_prefix(prefix) + 1
        return f"{prefix}{sequence:04d}"

    def generate_invoice(
        self,
        rental_id: int,
        issue_date: Optional[str | date] = None,
        due_date: Optional[str | date] = None,
        tax_rate: Optional[float] = None,
    ) -> Invoice:
        """Freeze the rental's accrued amount into a numbered invoice.

        The subtotal is the accrual up to the actual return date of a closed
        rental, or up to the issue date of an open one. That subtotal also
        becomes the rental's stored ``total_amount``.
        """
        try:
            issued_on = to_date(issue_date) if issue_date else date.today()
            due_on = (
                to_date(due_date)
                if due_date
                else issued_on + timedelta(days=INVOICE_DUE_DAYS)
            )
        except (ValueError, OverflowError) as exc:
            raise ValidationError("Invalid invoice dates.") from exc
        if due_on < issued_on:
            raise ValidationError("Due date cannot be before the issue date.")
        rate = self._default_tax_rate if tax_rate is None else float(tax_rate)
        if rate < 0:
            raise ValidationError("Tax rate cannot be negative.")

        with transaction(self._connection):
            rental = rental_repo.get_rental_with_items(
                rental_id, connection=self._connection
            )
            if rental is None:
                raise NotFoundError(f"Rental {rental_id} not found.")
            if rental.status == RentalStatus.CANCELLED:
                raise ValidationError("Cancelled rentals cannot be invoiced.")
            subtotal = calculate_rental_amount(rental, today=issued_on)
            totals = compute_invoice_totals(subtotal, rate)
            invoice = self._repo.create(
                Invoice(
                    id=None,
                    invoice_number=self._next_number(issued_on),
                    client_id=rental.client_id,
                    rental_id=rental_id,
                    issue_date=issued_on.isoformat(),
                    due_date=due_on.isoformat(),
                    subtotal=totals.subtotal,
                    tax_rate=totals.tax_rate,
                    tax_amount=totals.tax_amount,
                    total_amount=totals.total,
                )
            )
            rental_repo.set_total_amount(
                rental_id, totals.subtotal, connection=self._connection
            )
        self._logger.info(
            "Generated invoice %s rental_id=%s total=%.2f",
            invoice.invoice_number,
            rental_id,
            invoice.total_amount,
        )
        return invoice

    def _transition(
        self,
        invoice_id: int,
        status: InvoiceStatus,
        from_statuses: tuple[InvoiceStatus, ...],
    ) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        with transaction(self._connection):
            changed = self._repo.set_status(
                invoice_id, status, from_statuses=from_statuses
            )
        if not changed:
            raise ValidationError(
                f"Invoice {invoice.invoice_number} is {invoice.status.value} "
                f"and cannot become {status.value}."
            )
        return self.get_invoice(invoice_id)

    def mark_paid(self, invoice_id: int) -> Invoice:
        return self._transition(
            invoice_id,
            InvoiceStatus.PAID,
            (InvoiceStatus.PENDING, InvoiceStatus.OVERDUE),
        )

    def cancel_invoice(self, invoice_id: int) -> Invoice:
        return self._transition(
            invoice_id,
            InvoiceStatus.CANCELLED,
            (InvoiceStatus.PENDING, InvoiceStatus.OVERDUE),
        )

    def mark_overdue(self, today: Optional[str | date] = None) -> int:
        try:
            reference = to_date(today) if today else date.today()
        except (ValueError, OverflowError) as exc:
            raise ValidationError("Invalid reference date.") from exc
        with transaction(self._connection):
            count = self._repo.mark_overdue(reference.isoformat())
        if count:
            self._logger.info("Marked %s invoices overdue", count)
        return count

    def build_document(self, invoice_id: int) -> InvoiceDocument:
        invoice = self.get_invoice(invoice_id)
        if invoice.rental_id is None:
            raise ValidationError(f"Invoice {invoice.invoice_number} has no rental.")
        rental = rental_repo.get_rental_with_items(
            invoice.rental_id, connection=self._connection
        )
        if rental is None:
            raise NotFoundError(f"Rental {invoice.rental_id} not found.")
        client = self._client_repo.get_by_id(invoice.client_id)
        if client is None:
            raise NotFoundError(f"Client {invoice.client_id} not found.")

        start = to_date(rental.rental_date)
        end = billing_end_date(rental, invoice.issue_date)
        days = rental_days(start, end)
        return InvoiceDocument(
            invoice_number=invoice.invoice_number,
            client_name=client.name,
            client_phone=client.phone,
            client_address=client.address,
            client_gst=client.gst_number,
            issue_date=to_date(invoice.issue_date),
            due_date=to_date(invoice.due_date) if invoice.due_date else None,
            items=build_invoice_lines(rental.items, days),
            subtotal=invoice.subtotal,
            tax_rate=invoice.tax_rate,
            tax_amount=invoice.tax_amount,
            total=invoice.total_amount,
            rental_start=start,
            rental_end=end,
            days=days,
            notes=(
                f"Rental Period: {start:%b %d, %Y} to {end:%b %d, %Y} ({days} days)"
            ),
        )

    def render_pdf(self, invoice_id: int, output_dir: Path) -> Path:
        document = self.build_document(invoice_id)
        output_path = output_dir / build_invoice_filename(document.invoice_number)
        generate_invoice_pdf(document, output_path, company=self._company)
        with transaction(self._connection):
            self._repo.set_pdf_path(invoice_id, str(output_path))
        self._logger.info("Rendered invoice %s to %s", document.invoice_number, output_path)
        return output_path
