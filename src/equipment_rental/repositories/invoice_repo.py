"""Repository for invoice snapshots."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional

from equipment_rental.domain.models import Invoice, InvoiceStatus
from equipment_rental.logging_config import get_logger
from equipment_rental.repositories.mappers import invoice_from_row
from equipment_rental.services.errors import StoreError


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class InvoiceRepository:
    """Data access for invoices."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(self, invoice: Invoice) -> Invoice:
        created_at = _now_iso()
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO invoices (
                    invoice_number,
                    client_id,
                    rental_id,
                    issue_date,
                    due_date,
                    subtotal,
                    tax_rate,
                    tax_amount,
                    total_amount,
                    status,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    invoice.invoice_number,
                    invoice.client_id,
                    invoice.rental_id,
                    invoice.issue_date,
                    invoice.due_date,
                    invoice.subtotal,
                    invoice.tax_rate,
                    invoice.tax_amount,
                    invoice.total_amount,
                    invoice.status.value,
                    created_at,
                ),
            )
        except sqlite3.Error as exc:
            self._logger.exception(
                "Failed to create invoice number=%s", invoice.invoice_number
            )
            raise StoreError("Could not save invoice.") from exc
        invoice.id = int(cursor.lastrowid)
        invoice.created_at = created_at
        return invoice

    def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        try:
            row = self._connection.execute(
                "SELECT * FROM invoices WHERE id = ?",
                (invoice_id,),
            ).fetchone()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to fetch invoice id=%s", invoice_id)
            raise StoreError("Could not load invoice.") from exc
        return invoice_from_row(row) if row else None

    def list_all(self, status: Optional[InvoiceStatus] = None) -> list[Invoice]:
        sql = "SELECT * FROM invoices"
        params: list[object] = []
        if status is not None:
            sql += " WHERE status = ?"
            params.append(status.value)
        sql += " ORDER BY issue_date DESC, id DESC"
        try:
            rows = self._connection.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to list invoices")
            raise StoreError("Could not load invoices.") from exc
        return [invoice_from_row(row) for row in rows]

    def count_with_prefix(self, prefix: str) -> int:
        try:
            row = self._connection.execute(
                "SELECT COUNT(*) AS total FROM invoices WHERE invoice_number LIKE ?",
                (f"{prefix}%",),
            ).fetchone()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to count invoices prefix=%s", prefix)
            raise StoreError("Could not count invoices.") from exc
        return int(row["total"]) if row else 0

    def set_status(
        self,
        invoice_id: int,
        status: InvoiceStatus,
        *,
        from_statuses: tuple[InvoiceStatus, ...],
    ) -> bool:
        """Move an invoice to ``status`` only if it is currently in ``from_statuses``."""
        placeholders = ", ".join(["?"] * len(from_statuses))
        try:
            cursor = self._connection.execute(
                f"""
                UPDATE invoices
                SET status = ?
                WHERE id = ?
                  AND status IN ({placeholders})
                """,
                (status.value, invoice_id, *[item.value for item in from_statuses]),
            )
        except sqlite3.Error as exc:
            self._logger.exception("Failed to update invoice status id=%s", invoice_id)
            raise StoreError("Could not update invoice.") from exc
        return cursor.rowcount > 0

    def mark_overdue(self, today: str) -> int:
        try:
            cursor = self._connection.execute(
                """
                UPDATE invoices
                SET status = ?
                WHERE status = ?
                  AND due_date IS NOT NULL
                  AND due_date < ?
                """,
                (InvoiceStatus.OVERDUE.value, InvoiceStatus.PENDING.value, today),
            )
        except sqlite3.Error as exc:
            self._logger.exception("Failed to mark overdue invoices")
            raise StoreError("Could not update invoices.") from exc
        return cursor.rowcount

    def set_pdf_path(self, invoice_id: int, pdf_path: str) -> bool:
        try:
            cursor = self._connection.execute(
                "UPDATE invoices SET pdf_path = ? WHERE id = ?",
                (pdf_path, invoice_id),
            )
        except sqlite3.Error as exc:
            self._logger.exception("Failed to set invoice pdf path id=%s", invoice_id)
            raise StoreError("Could not update invoice.") from exc
        return cursor.rowcount > 0
