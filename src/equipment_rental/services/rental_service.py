"""Rental issuance and lifecycle rules."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Iterable, Mapping, Optional

from equipment_rental.db.connection import transaction
from equipment_rental.domain.models import (
    OPEN_RENTAL_STATUSES,
    Rental,
    RentalItem,
    RentalStatus,
)
from equipment_rental.logging_config import get_logger
from equipment_rental.repositories import rental_repo
from equipment_rental.repositories.client_repo import ClientRepo
from equipment_rental.services.billing import (
    calculate_rental_amount,
    daily_charge,
    to_date,
)
from equipment_rental.services.errors import (
    ConcurrencyError,
    NotFoundError,
    ValidationError,
)
from equipment_rental.services.inventory_service import (
    InventoryService,
    aggregate_quantities,
)


class RentalService:
    """Service for rental business rules."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._inventory = InventoryService(connection)
        self._client_repo = ClientRepo(connection)
        self._logger = get_logger(self.__class__.__name__)

    def get_rental(self, rental_id: int) -> Rental:
        rental = rental_repo.get_rental_with_items(
            rental_id, connection=self._connection
        )
        if rental is None:
            raise NotFoundError(f"Rental {rental_id} not found.")
        return rental

    def list_open_rentals(self, client_id: Optional[int] = None) -> list[Rental]:
        return rental_repo.list_rentals(
            statuses=OPEN_RENTAL_STATUSES,
            client_id=client_id,
            connection=self._connection,
        )

    def list_rentals(
        self,
        statuses: Optional[Iterable[RentalStatus]] = None,
        client_id: Optional[int] = None,
    ) -> list[Rental]:
        return rental_repo.list_rentals(
            statuses=statuses, client_id=client_id, connection=self._connection
        )

    def live_amount(self, rental_id: int, today: Optional[str | date] = None) -> float:
        """Amount accrued so far; grows daily until the rental closes."""
        rental = self.get_rental(rental_id)
        try:
            return calculate_rental_amount(rental, today=today)
        except (ValueError, OverflowError) as exc:
            raise ValidationError("Invalid reference date.") from exc

    def _normalize_dates(
        self, rental_date: str | date, expected_return_date: Optional[str | date]
    ) -> tuple[str, Optional[str]]:
        try:
            start = to_date(rental_date)
            expected = to_date(expected_return_date) if expected_return_date else None
        except (ValueError, OverflowError) as exc:
            raise ValidationError("Invalid rental dates.") from exc
        if expected is not None and expected < start:
            raise ValidationError(
                "Expected return date cannot be before the rental date."
            )
        return start.isoformat(), expected.isoformat() if expected else None

    def _build_items(self, items: Iterable[Mapping[str, object]]) -> list[RentalItem]:
        built: list[RentalItem] = []
        for raw in items:
            try:
                category_id = int(raw["category_id"])
                quantity = int(raw["quantity"])
            except (KeyError, TypeError, ValueError) as exc:
                raise ValidationError(
                    "Each rental item needs a category and a quantity."
                ) from exc
            if quantity <= 0:
                raise ValidationError("Rental quantity must be greater than zero.")
            category = self._inventory.get_category(category_id)
            built.append(
                RentalItem(
                    id=None,
                    rental_id=None,
                    category_id=category_id,
                    quantity=quantity,
                    daily_rate=float(category.daily_rate),
                    category_name=category.name,
                )
            )
        if not built:
            raise ValidationError("A rental needs at least one item.")
        return built

    def issue_rental(
        self,
        client_id: int,
        rental_date: str | date,
        items: Iterable[Mapping[str, object]],
        expected_return_date: Optional[str | date] = None,
        notes: Optional[str] = None,
        signature_data: Optional[str] = None,
    ) -> Rental:
        """Create an active rental and move its units from available to rented.

        Each line freezes the category's current daily rate. The stored
        ``total_amount`` starts as one day's charge and is re-frozen when the
        rental is invoiced.
        """
        if self._client_repo.get_by_id(client_id) is None:
            raise NotFoundError(f"Client {client_id} not found.")
        start, expected = self._normalize_dates(rental_date, expected_return_date)
        rental_items = self._build_items(items)
        requested = aggregate_quantities(
            (item.category_id, item.quantity) for item in rental_items
        )
        self._inventory.validate_issue(requested)

        with transaction(self._connection):
            rental = rental_repo.create_rental(
                client_id,
                start,
                rental_items,
                daily_charge(rental_items),
                expected_return_date=expected,
                notes=notes,
                signature_data=signature_data,
                connection=self._connection,
            )
            for category_id, qty in requested:
                self._inventory.issue(category_id, qty)
        self._logger.info(
            "Issued rental id=%s client_id=%s items=%s",
            rental.id,
            client_id,
            requested,
        )
        return rental

    def cancel_rental(self, rental_id: int) -> Rental:
        """Cancel an untouched active rental and put its units back on the shelf."""
        rental = self.get_rental(rental_id)
        if rental.status != RentalStatus.ACTIVE:
            raise ValidationError(
                f"Only active rentals can be cancelled (rental is {rental.status.value})."
            )
        if any(item.returned_quantity for item in rental.items):
            raise ValidationError(
                "Rentals with processed returns cannot be cancelled."
            )
        with transaction(self._connection):
            updated = rental_repo.update_status(
                rental_id,
                RentalStatus.CANCELLED,
                expected_version=rental.version,
                connection=self._connection,
            )
            if not updated:
                raise ConcurrencyError(
                    f"Rental {rental_id} was modified by another user."
                )
            for category_id, qty in aggregate_quantities(
                (item.category_id, item.quantity) for item in rental.items
            ):
                self._inventory.return_good(category_id, qty)
        self._logger.info("Cancelled rental id=%s", rental_id)
        return self.get_rental(rental_id)
