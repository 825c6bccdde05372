"""Payment service for business rules."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Optional

from equipment_rental.db.connection import transaction
from equipment_rental.domain.models import Payment, PaymentMethod
from equipment_rental.logging_config import get_logger
from equipment_rental.repositories import rental_repo
from equipment_rental.repositories.client_repo import ClientRepo
from equipment_rental.repositories.payment_repo import PaymentRepository
from equipment_rental.services.billing import to_date
from equipment_rental.services.errors import NotFoundError, ValidationError


class PaymentService:
    """Service for payment operations."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = PaymentRepository(connection)
        self._client_repo = ClientRepo(connection)
        self._logger = get_logger(self.__class__.__name__)

    def list_client_payments(
        self, client_id: int, limit: Optional[int] = None
    ) -> list[Payment]:
        return self._repo.list_by_client(client_id, limit=limit)

    def total_received(self) -> float:
        return self._repo.get_total_received()

    def record_payment(
        self,
        client_id: int,
        amount: float,
        method: PaymentMethod | str = PaymentMethod.CASH,
        payment_date: Optional[str | date] = None,
        rental_id: Optional[int] = None,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero.")
        try:
            payment_method = PaymentMethod(method)
        except ValueError as exc:
            raise ValidationError(f"Unknown payment method: {method!r}.") from exc
        try:
            paid_on = to_date(payment_date) if payment_date else date.today()
        except (ValueError, OverflowError) as exc:
            raise ValidationError("Invalid payment date.") from exc
        if self._client_repo.get_by_id(client_id) is None:
            raise NotFoundError(f"Client {client_id} not found.")
        if rental_id is not None:
            rental = rental_repo.get_rental_with_items(
                rental_id, connection=self._connection
            )
            if rental is None:
                raise NotFoundError(f"Rental {rental_id} not found.")
            if rental.client_id != client_id:
                raise ValidationError(
                    f"Rental {rental_id} does not belong to client {client_id}."
                )
        with transaction(self._connection):
            payment = self._repo.create(
                client_id,
                round(float(amount), 2),
                paid_on.isoformat(),
                payment_method,
                rental_id=rental_id,
                reference_number=reference_number,
                notes=notes,
            )
        self._logger.info(
            "Recorded payment id=%s client_id=%s amount=%.2f",
            payment.id,
            client_id,
            payment.amount,
        )
        return payment
