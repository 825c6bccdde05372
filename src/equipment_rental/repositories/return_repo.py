"""Repository for return headers and inspected return items."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Iterable, Optional

from equipment_rental.domain.models import Return, ReturnItem
from equipment_rental.logging_config import get_logger
from equipment_rental.repositories.mappers import (
    return_from_row,
    return_item_from_row,
    return_item_to_record,
)
from equipment_rental.services.errors import StoreError


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class ReturnRepository:
    """Data access for returns."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(
        self,
        rental_id: int,
        return_date: str,
        total_damage_cost: float,
        items: Iterable[ReturnItem],
        notes: Optional[str] = None,
        inspector_name: Optional[str] = None,
    ) -> Return:
        created_at = _now_iso()
        stored_items: list[ReturnItem] = []
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO returns (
                    rental_id,
                    return_date,
                    total_damage_cost,
                    notes,
                    inspector_name,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    rental_id,
                    return_date,
                    total_damage_cost,
                    notes,
                    inspector_name,
                    created_at,
                ),
            )
            return_id = int(cursor.lastrowid)
            for item in items:
                record = return_item_to_record(item)
                item_cursor = self._connection.execute(
                    """
                    INSERT INTO return_items (
                        return_id,
                        rental_item_id,
                        returned_quantity,
                        condition,
                        damage_cost,
                        damage_description,
                        damage_photos,
                        created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        return_id,
                        record["rental_item_id"],
                        record["returned_quantity"],
                        record["condition"],
                        record["damage_cost"],
                        record["damage_description"],
                        record["damage_photos"],
                        created_at,
                    ),
                )
                stored_items.append(
                    ReturnItem(
                        id=int(item_cursor.lastrowid),
                        return_id=return_id,
                        rental_item_id=item.rental_item_id,
                        returned_quantity=item.returned_quantity,
                        condition=item.condition,
                        damage_cost=item.damage_cost,
                        damage_description=item.damage_description,
                        damage_photos=item.damage_photos,
                        created_at=created_at,
                    )
                )
        except sqlite3.Error as exc:
            self._logger.exception("Failed to create return rental_id=%s", rental_id)
            raise StoreError("Could not save return.") from exc
        return Return(
            id=return_id,
            rental_id=rental_id,
            return_date=return_date,
            total_damage_cost=total_damage_cost,
            notes=notes,
            inspector_name=inspector_name,
            items=stored_items,
            created_at=created_at,
        )

    def list_by_rental(self, rental_id: int) -> list[Return]:
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM returns
                WHERE rental_id = ?
                ORDER BY return_date, id
                """,
                (rental_id,),
            ).fetchall()
            returns = [return_from_row(row) for row in rows]
            for return_ in returns:
                item_rows = self._connection.execute(
                    "SELECT * FROM return_items WHERE return_id = ? ORDER BY id",
                    (return_.id,),
                ).fetchall()
                return_.items = [return_item_from_row(row) for row in item_rows]
        except sqlite3.Error as exc:
            self._logger.exception("Failed to list returns rental_id=%s", rental_id)
            raise StoreError("Could not load returns.") from exc
        return returns

    def count(self) -> int:
        try:
            row = self._connection.execute(
                "SELECT COUNT(*) AS total FROM returns"
            ).fetchone()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to count returns")
            raise StoreError("Could not count returns.") from exc
        return int(row["total"]) if row else 0
