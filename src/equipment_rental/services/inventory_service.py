"""Quantity ledger: available, rented and damaged counters per category."""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from typing import Iterable, Optional

from equipment_rental.db.connection import transaction
from equipment_rental.domain.models import ReturnCondition, StockCategory, StockItem
from equipment_rental.logging_config import get_logger
from equipment_rental.repositories.stock_repo import StockRepo
from equipment_rental.services.errors import (
    InsufficientStockError,
    NotFoundError,
    StoreError,
    ValidationError,
)


def _require_positive(qty: int) -> None:
    if qty <= 0:
        raise ValidationError("Quantity must be greater than zero.")


def _label(stock: StockItem) -> str:
    return stock.category_name or f"category {stock.category_id}"


def issue(stock: StockItem, qty: int) -> StockItem:
    """Move ``qty`` units from available to rented."""
    _require_positive(qty)
    if qty > stock.available_quantity:
        raise InsufficientStockError(_label(stock), stock.available_quantity, qty)
    return replace(
        stock,
        available_quantity=stock.available_quantity - qty,
        rented_quantity=stock.rented_quantity + qty,
    )


def _check_rented(stock: StockItem, qty: int) -> None:
    _require_positive(qty)
    if qty > stock.rented_quantity:
        raise ValidationError(
            f"Cannot return {qty} units of {_label(stock)}: "
            f"only {stock.rented_quantity} are rented out."
        )


def return_good(stock: StockItem, qty: int) -> StockItem:
    _check_rented(stock, qty)
    return replace(
        stock,
        rented_quantity=stock.rented_quantity - qty,
        available_quantity=stock.available_quantity + qty,
    )


def return_damaged(stock: StockItem, qty: int) -> StockItem:
    """Damaged and lost units leave circulation but stay in the total."""
    _check_rented(stock, qty)
    return replace(
        stock,
        rented_quantity=stock.rented_quantity - qty,
        damaged_quantity=stock.damaged_quantity + qty,
    )


def apply_return(stock: StockItem, qty: int, condition: ReturnCondition) -> StockItem:
    if condition == ReturnCondition.GOOD:
        return return_good(stock, qty)
    return return_damaged(stock, qty)


def aggregate_quantities(items: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    aggregated: dict[int, int] = {}
    for category_id, qty in items:
        aggregated[int(category_id)] = aggregated.get(int(category_id), 0) + int(qty)
    return list(aggregated.items())


class InventoryService:
    """Persisted quantity ledger.

    The mutating methods do not commit on their own when called inside an
    outer :func:`transaction`; rental issuance and return processing rely on
    this to keep stock and rental rows consistent.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = StockRepo(connection)
        self._logger = get_logger(self.__class__.__name__)

    def list_categories(self) -> list[StockCategory]:
        return self._repo.list_categories()

    def list_stock(self) -> list[StockItem]:
        return self._repo.list_stock()

    def get_category(self, category_id: int) -> StockCategory:
        category = self._repo.get_category(category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found.")
        return category

    def get_stock(self, category_id: int) -> StockItem:
        stock = self._repo.get_by_category(category_id)
        if stock is None:
            raise NotFoundError(f"No stock tracked for category {category_id}.")
        return stock

    def add_category(
        self,
        name: str,
        daily_rate: float,
        initial_quantity: int = 0,
        description: Optional[str] = None,
        size_specification: Optional[str] = None,
        weight_kg: Optional[float] = None,
        material: Optional[str] = None,
    ) -> tuple[StockCategory, StockItem]:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required.")
        if daily_rate < 0:
            raise ValidationError("Daily rate cannot be negative.")
        if initial_quantity < 0:
            raise ValidationError("Initial quantity cannot be negative.")
        with transaction(self._connection):
            if self._repo.get_category_by_name(name) is not None:
                raise ValidationError(f"Category {name} already exists.")
            category = self._repo.create_category(
                name,
                daily_rate,
                description=description,
                size_specification=size_specification,
                weight_kg=weight_kg,
                material=material,
            )
            stock = self._repo.create_stock_item(int(category.id), initial_quantity)
        self._logger.info(
            "Added category %s at %.2f/day with %s units",
            name,
            daily_rate,
            initial_quantity,
        )
        return category, stock

    def update_category(
        self,
        category_id: int,
        name: str,
        daily_rate: float,
        description: Optional[str] = None,
        size_specification: Optional[str] = None,
        weight_kg: Optional[float] = None,
        material: Optional[str] = None,
    ) -> StockCategory:
        """Edit category metadata; issued rental items keep their frozen rate."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required.")
        if daily_rate < 0:
            raise ValidationError("Daily rate cannot be negative.")
        with transaction(self._connection):
            category = self._repo.update_category(
                category_id,
                name,
                daily_rate,
                description=description,
                size_specification=size_specification,
                weight_kg=weight_kg,
                material=material,
            )
        if category is None:
            raise NotFoundError(f"Category {category_id} not found.")
        return category

    def restock(self, category_id: int, qty: int) -> StockItem:
        _require_positive(qty)
        with transaction(self._connection):
            if not self._repo.restock(category_id, qty):
                raise NotFoundError(f"No stock tracked for category {category_id}.")
            stock = self.get_stock(category_id)
        self._logger.info("Restocked category_id=%s by %s", category_id, qty)
        return stock

    def issue(self, category_id: int, qty: int) -> None:
        _require_positive(qty)
        with transaction(self._connection):
            if self._repo.issue(category_id, qty):
                return
            stock = self.get_stock(category_id)
            raise InsufficientStockError(_label(stock), stock.available_quantity, qty)

    def return_good(self, category_id: int, qty: int) -> None:
        self._release(category_id, qty, damaged=False)

    def return_damaged(self, category_id: int, qty: int) -> None:
        self._release(category_id, qty, damaged=True)

    def apply_return(
        self, category_id: int, qty: int, condition: ReturnCondition
    ) -> None:
        self._release(category_id, qty, damaged=condition != ReturnCondition.GOOD)

    def validate_issue(self, items: Iterable[tuple[int, int]]) -> None:
        """Best-effort availability check; the conditional update is authoritative."""
        for category_id, qty in aggregate_quantities(items):
            issue(self.get_stock(category_id), qty)

    def unbalanced_stock(self) -> list[StockItem]:
        return [stock for stock in self._repo.list_stock() if not stock.is_balanced]

    def _release(self, category_id: int, qty: int, *, damaged: bool) -> None:
        _require_positive(qty)
        with transaction(self._connection):
            if self._repo.release(category_id, qty, damaged=damaged):
                return
            stock = self.get_stock(category_id)
            if qty > stock.rented_quantity:
                raise ValidationError(
                    f"Cannot return {qty} units of {_label(stock)}: "
                    f"only {stock.rented_quantity} are rented out."
                )
            raise StoreError(f"Stock update for {_label(stock)} was not applied.")
