"""Client ledger (khata) balances."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Iterable, Optional

from equipment_rental.config import RECENT_PAYMENTS_LIMIT
from equipment_rental.domain.models import OPEN_RENTAL_STATUSES, Client, Payment, Rental
from equipment_rental.logging_config import get_logger
from equipment_rental.repositories import rental_repo
from equipment_rental.repositories.client_repo import ClientRepo
from equipment_rental.repositories.payment_repo import PaymentRepository
from equipment_rental.services.errors import NotFoundError, ValidationError


@dataclass(frozen=True)
class ClientLedger:
    client: Client
    total_outstanding: float
    total_paid: float
    current_balance: float
    active_rentals: list[Rental] = field(default_factory=list)
    recent_payments: list[Payment] = field(default_factory=list)

    @property
    def balance_label(self) -> str:
        if self.current_balance > 0:
            return "due"
        if self.current_balance < 0:
            return "credit"
        return "settled"


def _check_limit(payment_limit: Optional[int]) -> None:
    if payment_limit is not None and payment_limit < 0:
        raise ValidationError("Payment limit cannot be negative.")


def _most_recent(payments: Iterable[Payment], limit: Optional[int]) -> list[Payment]:
    ordered = sorted(
        payments,
        key=lambda payment: (payment.payment_date, payment.id or 0),
        reverse=True,
    )
    if limit is None:
        return ordered
    return ordered[:limit]


def aggregate_ledger(
    client: Client,
    rentals: Iterable[Rental],
    payments: Iterable[Payment],
    payment_limit: Optional[int] = None,
) -> ClientLedger:
    """Derive outstanding, paid and net balance for one client.

    Only active and partially returned rentals count towards the outstanding
    amount, using their frozen ``total_amount``. ``payment_limit`` restricts
    the paid total to the most recent payments; ``None`` means all of them.
    """
    _check_limit(payment_limit)
    open_rentals = [rental for rental in rentals if rental.status in OPEN_RENTAL_STATUSES]
    counted = _most_recent(payments, payment_limit)
    total_outstanding = round(sum(rental.total_amount for rental in open_rentals), 2)
    total_paid = round(sum(payment.amount for payment in counted), 2)
    return ClientLedger(
        client=client,
        total_outstanding=total_outstanding,
        total_paid=total_paid,
        current_balance=round(total_outstanding - total_paid, 2),
        active_rentals=open_rentals,
        recent_payments=counted[:RECENT_PAYMENTS_LIMIT],
    )


class LedgerService:
    """Read-only projection over rentals and payments."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._client_repo = ClientRepo(connection)
        self._payment_repo = PaymentRepository(connection)
        self._logger = get_logger(self.__class__.__name__)

    def _ledger_for(self, client: Client, payment_limit: Optional[int]) -> ClientLedger:
        rentals = rental_repo.list_rentals(
            statuses=OPEN_RENTAL_STATUSES,
            client_id=client.id,
            connection=self._connection,
        )
        payments = self._payment_repo.list_by_client(int(client.id), limit=payment_limit)
        return aggregate_ledger(client, rentals, payments, payment_limit)

    def client_ledger(
        self, client_id: int, payment_limit: Optional[int] = None
    ) -> ClientLedger:
        _check_limit(payment_limit)
        client = self._client_repo.get_by_id(client_id)
        if client is None:
            raise NotFoundError(f"Client {client_id} not found.")
        return self._ledger_for(client, payment_limit)

    def all_ledgers(
        self, search: Optional[str] = None, payment_limit: Optional[int] = None
    ) -> list[ClientLedger]:
        _check_limit(payment_limit)
        clients = (
            self._client_repo.search(search) if search else self._client_repo.list_all()
        )
        return [self._ledger_for(client, payment_limit) for client in clients]
