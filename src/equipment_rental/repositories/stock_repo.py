"""Repository for stock categories and quantity ledger rows."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List, Optional

from equipment_rental.domain.models import StockCategory, StockItem
from equipment_rental.logging_config import get_logger
from equipment_rental.repositories.mappers import category_from_row, stock_item_from_row
from equipment_rental.services.errors import StoreError


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


STOCK_SELECT = """
    SELECT si.*, sc.name AS category_name
    FROM stock_items si
    JOIN stock_categories sc ON sc.id = si.category_id
"""


class StockRepo:
    """Data access for stock categories and their counters.

    Counter changes are single conditional UPDATE statements so that two
    writers touching the same category never lose each other's deltas.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create_category(
        self,
        name: str,
        daily_rate: float,
        description: Optional[str] = None,
        size_specification: Optional[str] = None,
        weight_kg: Optional[float] = None,
        material: Optional[str] = None,
    ) -> StockCategory:
        created_at = _now_iso()
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO stock_categories (
                    name,
                    description,
                    daily_rate,
                    size_specification,
                    weight_kg,
                    material,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    name,
                    description,
                    daily_rate,
                    size_specification,
                    weight_kg,
                    material,
                    created_at,
                ),
            )
        except sqlite3.Error as exc:
            self._logger.exception("Failed to create category name=%s", name)
            raise StoreError(f"Could not save category {name}.") from exc
        return StockCategory(
            id=cursor.lastrowid,
            name=name,
            daily_rate=daily_rate,
            description=description,
            size_specification=size_specification,
            weight_kg=weight_kg,
            material=material,
            created_at=created_at,
        )

    def update_category(
        self,
        category_id: int,
        name: str,
        daily_rate: float,
        description: Optional[str] = None,
        size_specification: Optional[str] = None,
        weight_kg: Optional[float] = None,
        material: Optional[str] = None,
    ) -> Optional[StockCategory]:
        try:
            cursor = self._connection.execute(
                """
                UPDATE stock_categories
                SET
                    name = ?,
                    description = ?,
                    daily_rate = ?,
                    size_specification = ?,
                    weight_kg = ?,
                    material = ?
                WHERE id = ?
                """,
                (
                    name,
                    description,
                    daily_rate,
                    size_specification,
                    weight_kg,
                    material,
                    category_id,
                ),
            )
        except sqlite3.Error as exc:
            self._logger.exception("Failed to update category id=%s", category_id)
            raise StoreError("Could not update category.") from exc
        if cursor.rowcount == 0:
            return None
        return self.get_category(category_id)

    def get_category(self, category_id: int) -> Optional[StockCategory]:
        try:
            row = self._connection.execute(
                "SELECT * FROM stock_categories WHERE id = ?",
                (category_id,),
            ).fetchone()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to fetch category id=%s", category_id)
            raise StoreError("Could not load category.") from exc
        return category_from_row(row) if row else None

    def get_category_by_name(self, name: str) -> Optional[StockCategory]:
        try:
            row = self._connection.execute(
                "SELECT * FROM stock_categories WHERE name = ?",
                (name,),
            ).fetchone()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to fetch category name=%s", name)
            raise StoreError("Could not load category.") from exc
        return category_from_row(row) if row else None

    def list_categories(self) -> List[StockCategory]:
        try:
            rows = self._connection.execute(
                "SELECT * FROM stock_categories ORDER BY name"
            ).fetchall()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to list categories")
            raise StoreError("Could not load categories.") from exc
        return [category_from_row(row) for row in rows]

    def create_stock_item(self, category_id: int, quantity: int) -> StockItem:
        created_at = _now_iso()
        try:
            self._connection.execute(
                """
                INSERT INTO stock_items (
                    category_id,
                    total_quantity,
                    available_quantity,
                    rented_quantity,
                    damaged_quantity,
                    created_at,
                    updated_at
                )
                VALUES (?, ?, ?, 0, 0, ?, ?)
                """,
                (category_id, quantity, quantity, created_at, created_at),
            )
        except sqlite3.Error as exc:
            self._logger.exception(
                "Failed to create stock item category_id=%s", category_id
            )
            raise StoreError("Could not save stock item.") from exc
        stock = self.get_by_category(category_id)
        if stock is None:
            raise StoreError(f"Stock item for category {category_id} vanished.")
        return stock

    def get_by_category(self, category_id: int) -> Optional[StockItem]:
        try:
            row = self._connection.execute(
                f"{STOCK_SELECT} WHERE si.category_id = ?",
                (category_id,),
            ).fetchone()
        except sqlite3.Error as exc:
            self._logger.exception(
                "Failed to fetch stock item category_id=%s", category_id
            )
            raise StoreError("Could not load stock item.") from exc
        return stock_item_from_row(row) if row else None

    def list_stock(self) -> List[StockItem]:
        try:
            rows = self._connection.execute(
                f"{STOCK_SELECT} ORDER BY sc.name"
            ).fetchall()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to list stock items")
            raise StoreError("Could not load stock.") from exc
        return [stock_item_from_row(row) for row in rows]

    def total_available(self) -> int:
        try:
            row = self._connection.execute(
                "SELECT COALESCE(SUM(available_quantity), 0) AS total FROM stock_items"
            ).fetchone()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to sum available stock")
            raise StoreError("Could not load stock totals.") from exc
        return int(row["total"]) if row else 0

    def _apply(self, sql: str, params: tuple[object, ...], action: str) -> bool:
        try:
            cursor = self._connection.execute(sql, params)
        except sqlite3.Error as exc:
            self._logger.exception("Failed to %s stock params=%s", action, params)
            raise StoreError(f"Could not {action} stock.") from exc
        return cursor.rowcount > 0

    def issue(self, category_id: int, quantity: int) -> bool:
        """Move units from available to rented; False when stock is short."""
        return self._apply(
            """
            UPDATE stock_items
            SET available_quantity = available_quantity - ?,
                rented_quantity = rented_quantity + ?,
                updated_at = ?
            WHERE category_id = ?
              AND available_quantity >= ?
            """,
            (quantity, quantity, _now_iso(), category_id, quantity),
            "issue",
        )

    def release(self, category_id: int, quantity: int, *, damaged: bool) -> bool:
        """Move units out of rented into available, or into damaged."""
        target = "damaged_quantity" if damaged else "available_quantity"
        return self._apply(
            f"""
            UPDATE stock_items
            SET rented_quantity = rented_quantity - ?,
                {target} = {target} + ?,
                updated_at = ?
            WHERE category_id = ?
              AND rented_quantity >= ?
            """,
            (quantity, quantity, _now_iso(), category_id, quantity),
            "release",
        )

    def restock(self, category_id: int, quantity: int) -> bool:
        return self._apply(
            """
            UPDATE stock_items
            SET total_quantity = total_quantity + ?,
                available_quantity = available_quantity + ?,
                updated_at = ?
            WHERE category_id = ?
            """,
            (quantity, quantity, _now_iso(), category_id),
            "restock",
        )
