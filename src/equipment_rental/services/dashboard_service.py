"""Headline figures for the dashboard."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import date
from typing import Optional

from equipment_rental.domain.models import OPEN_RENTAL_STATUSES
from equipment_rental.repositories import rental_repo
from equipment_rental.repositories.client_repo import ClientRepo
from equipment_rental.repositories.payment_repo import PaymentRepository
from equipment_rental.repositories.stock_repo import StockRepo
from equipment_rental.services.billing import to_date
from equipment_rental.services.errors import ValidationError


@dataclass(frozen=True)
class DashboardStats:
    active_rentals: int
    total_clients: int
    available_stock: int
    pending_returns: int
    total_revenue: float
    overdue_rentals: int


class DashboardService:
    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._client_repo = ClientRepo(connection)
        self._payment_repo = PaymentRepository(connection)
        self._stock_repo = StockRepo(connection)

    def stats(self, today: Optional[str | date] = None) -> DashboardStats:
        try:
            reference = to_date(today) if today else date.today()
        except (ValueError, OverflowError) as exc:
            raise ValidationError("Invalid reference date.") from exc
        active = rental_repo.count_rentals(
            statuses=OPEN_RENTAL_STATUSES, connection=self._connection
        )
        overdue = rental_repo.count_rentals(
            statuses=OPEN_RENTAL_STATUSES,
            expected_before=reference.isoformat(),
            connection=self._connection,
        )
        return DashboardStats(
            active_rentals=active,
            total_clients=self._client_repo.count(),
            available_stock=self._stock_repo.total_available(),
            pending_returns=active,
            total_revenue=round(self._payment_repo.get_total_received(), 2),
            overdue_rentals=overdue,
        )
