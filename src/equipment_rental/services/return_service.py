"""Return reconciliation: inspected units back into the quantity ledger."""

from __future__ import annotations

import math
import sqlite3
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, Optional

from equipment_rental.db.connection import transaction
from equipment_rental.domain.models import (
    Rental,
    RentalItem,
    RentalStatus,
    Return,
    ReturnCondition,
    ReturnItem,
)
from equipment_rental.logging_config import get_logger
from equipment_rental.repositories import rental_repo
from equipment_rental.repositories.return_repo import ReturnRepository
from equipment_rental.services.billing import to_date
from equipment_rental.services.errors import (
    ConcurrencyError,
    NotFoundError,
    ValidationError,
)
from equipment_rental.services.inventory_service import InventoryService


@dataclass(frozen=True)
class ReturnSubmission:
    """One inspected line of a return batch as entered by the inspector."""

    rental_item_id: int
    returned_quantity: int
    condition: ReturnCondition | str = ReturnCondition.GOOD
    damage_cost: float = 0.0
    damage_description: Optional[str] = None
    damage_photos: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReturnPlan:
    """Everything a return batch changes, computed before anything is written."""

    return_date: str
    return_items: list[ReturnItem]
    total_damage_cost: float
    item_increments: dict[int, int]
    updated_items: list[RentalItem]
    status: RentalStatus
    actual_return_date: Optional[str]
    stock_moves: list[tuple[int, int, ReturnCondition]] = field(default_factory=list)


@dataclass(frozen=True)
class ReturnResult:
    record: Return
    rental: Rental


def _coerce_condition(value: ReturnCondition | str) -> ReturnCondition:
    if isinstance(value, ReturnCondition):
        return value
    try:
        return ReturnCondition(str(value).strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Unknown return condition: {value!r}.") from exc


def _coerce_quantity(value: object) -> int:
    if isinstance(value, bool):
        raise ValidationError("Returned quantity must be a whole number.")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError("Returned quantity must be a whole number.")
    try:
        qty = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError("Returned quantity must be a whole number.") from exc
    return qty


def _coerce_item_id(value: object) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid rental item reference: {value!r}.")
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid rental item reference: {value!r}.") from exc


def _coerce_cost(value: object) -> float:
    if isinstance(value, bool):
        raise ValidationError("Damage cost must be a number.")
    try:
        cost = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError("Damage cost must be a number.") from exc
    if not math.isfinite(cost):
        raise ValidationError("Damage cost must be a finite number.")
    if cost < 0:
        raise ValidationError("Damage cost cannot be negative.")
    return cost


def plan_return(
    rental: Rental,
    submissions: Iterable[ReturnSubmission],
    return_date: str | date,
) -> ReturnPlan:
    """Validate a return batch against a rental snapshot and compute its effects.

    Several submissions may target the same rental item (for instance part of
    it came back good and part damaged); their quantities are summed against
    the item's pending quantity. Zero-quantity submissions are dropped.
    """
    if not rental.is_open:
        raise ValidationError(
            f"Rental {rental.id} is {rental.status.value}; returns are closed."
        )
    try:
        returned_on = to_date(return_date)
    except (ValueError, OverflowError) as exc:
        raise ValidationError("Invalid return date.") from exc
    if returned_on < to_date(rental.rental_date):
        raise ValidationError("Return date cannot be before the rental date.")

    items_by_id = {int(item.id): item for item in rental.items if item.id is not None}
    increments: dict[int, int] = {}
    return_items: list[ReturnItem] = []
    moves: dict[tuple[int, ReturnCondition], int] = {}

    for submission in submissions:
        item = items_by_id.get(_coerce_item_id(submission.rental_item_id))
        if item is None:
            raise ValidationError(
                f"Item {submission.rental_item_id} does not belong to rental {rental.id}."
            )
        qty = _coerce_quantity(submission.returned_quantity)
        condition = _coerce_condition(submission.condition)
        if qty < 0:
            raise ValidationError("Returned quantity cannot be negative.")
        damage_cost = _coerce_cost(submission.damage_cost)
        already = increments.get(int(item.id), 0)
        if already + qty > item.pending_quantity:
            label = item.category_name or f"item {item.id}"
            raise ValidationError(
                f"Cannot return {already + qty} units of {label}: "
                f"only {item.pending_quantity} pending."
            )
        if qty == 0:
            continue
        increments[int(item.id)] = already + qty
        if condition == ReturnCondition.GOOD:
            damage_cost = 0.0
        return_items.append(
            ReturnItem(
                id=None,
                return_id=None,
                rental_item_id=int(item.id),
                returned_quantity=qty,
                condition=condition,
                damage_cost=damage_cost,
                damage_description=submission.damage_description,
                damage_photos=tuple(submission.damage_photos),
            )
        )
        key = (item.category_id, condition)
        moves[key] = moves.get(key, 0) + qty

    if not return_items:
        raise ValidationError("Nothing to return: every quantity is zero.")

    updated_items = [
        replace(item, returned_quantity=item.returned_quantity + increments.get(int(item.id), 0))
        for item in rental.items
    ]
    completed = all(item.is_fully_returned for item in updated_items)
    status = RentalStatus.COMPLETED if completed else RentalStatus.PARTIALLY_RETURNED
    return ReturnPlan(
        return_date=returned_on.isoformat(),
        return_items=return_items,
        total_damage_cost=round(sum(item.damage_cost for item in return_items), 2),
        item_increments=increments,
        updated_items=updated_items,
        status=status,
        actual_return_date=returned_on.isoformat() if completed else None,
        stock_moves=[(category_id, qty, condition) for (category_id, condition), qty in moves.items()],
    )


class ReturnService:
    """Applies return batches as a single all-or-nothing unit."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = ReturnRepository(connection)
        self._inventory = InventoryService(connection)
        self._logger = get_logger(self.__class__.__name__)

    def list_returns(self, rental_id: int) -> list[Return]:
        return self._repo.list_by_rental(rental_id)

    def process_return(
        self,
        rental_id: int,
        return_date: str | date,
        submissions: Iterable[ReturnSubmission],
        notes: Optional[str] = None,
        inspector_name: Optional[str] = None,
    ) -> ReturnResult:
        submissions = list(submissions)
        with transaction(self._connection):
            rental = rental_repo.get_rental_with_items(
                rental_id, connection=self._connection
            )
            if rental is None:
                raise NotFoundError(f"Rental {rental_id} not found.")
            plan = plan_return(rental, submissions, return_date)

            record = self._repo.create(
                rental_id,
                plan.return_date,
                plan.total_damage_cost,
                plan.return_items,
                notes=notes,
                inspector_name=inspector_name,
            )
            for rental_item_id, qty in plan.item_increments.items():
                if not rental_repo.add_returned_quantity(
                    rental_item_id, qty, connection=self._connection
                ):
                    raise ConcurrencyError(
                        f"Rental item {rental_item_id} changed while the return was processed."
                    )
            if not rental_repo.update_status(
                rental_id,
                plan.status,
                expected_version=rental.version,
                actual_return_date=plan.actual_return_date,
                connection=self._connection,
            ):
                raise ConcurrencyError(
                    f"Rental {rental_id} was modified by another user."
                )
            for category_id, qty, condition in plan.stock_moves:
                self._inventory.apply_return(category_id, qty, condition)

        updated = rental_repo.get_rental_with_items(
            rental_id, connection=self._connection
        )
        self._logger.info(
            "Processed return id=%s rental_id=%s status=%s damage=%.2f",
            record.id,
            rental_id,
            plan.status.value,
            plan.total_damage_cost,
        )
        return ReturnResult(record=record, rental=updated or rental)
