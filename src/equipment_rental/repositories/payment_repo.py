"""Repository for payments persistence."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional

from equipment_rental.domain.models import Payment, PaymentMethod
from equipment_rental.logging_config import get_logger
from equipment_rental.repositories.mappers import payment_from_row
from equipment_rental.services.errors import StoreError


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class PaymentRepository:
    """Data access for payments."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def list_by_client(
        self, client_id: int, limit: Optional[int] = None
    ) -> list[Payment]:
        """Payments of a client, most recent first."""
        sql = """
            SELECT *
            FROM payments
            WHERE client_id = ?
            ORDER BY payment_date DESC, id DESC
        """
        params: list[object] = [client_id]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        try:
            rows = self._connection.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to list payments client_id=%s", client_id)
            raise StoreError("Could not load payments.") from exc
        return [payment_from_row(row) for row in rows]

    def create(
        self,
        client_id: int,
        amount: float,
        payment_date: str,
        method: PaymentMethod,
        rental_id: Optional[int] = None,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        created_at = _now_iso()
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO payments (
                    client_id,
                    rental_id,
                    amount,
                    payment_date,
                    payment_method,
                    reference_number,
                    notes,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    client_id,
                    rental_id,
                    amount,
                    payment_date,
                    method.value,
                    reference_number,
                    notes,
                    created_at,
                ),
            )
        except sqlite3.Error as exc:
            self._logger.exception("Failed to create payment client_id=%s", client_id)
            raise StoreError("Could not save payment.") from exc
        return Payment(
            id=int(cursor.lastrowid),
            client_id=client_id,
            amount=amount,
            payment_date=payment_date,
            method=method,
            rental_id=rental_id,
            reference_number=reference_number,
            notes=notes,
            created_at=created_at,
        )

    def get_total_received(self) -> float:
        try:
            row = self._connection.execute(
                "SELECT COALESCE(SUM(amount), 0) AS total_received FROM payments"
            ).fetchone()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to calculate total received")
            raise StoreError("Could not load payment totals.") from exc
        return float(row["total_received"] or 0) if row else 0.0
