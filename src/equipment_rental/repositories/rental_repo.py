"""Repository helpers for rental persistence."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Optional

from equipment_rental.db.connection import get_connection
from equipment_rental.domain.models import Rental, RentalItem, RentalStatus
from equipment_rental.logging_config import get_logger
from equipment_rental.paths import get_db_path
from equipment_rental.repositories.mappers import rental_from_row, rental_item_from_row
from equipment_rental.services.errors import StoreError


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def _coerce_status(status: str | RentalStatus) -> RentalStatus:
    if isinstance(status, RentalStatus):
        return status
    return RentalStatus(status)


ITEM_SELECT = """
    SELECT ri.*, sc.name AS category_name
    FROM rental_items ri
    JOIN stock_categories sc ON sc.id = ri.category_id
"""


@contextmanager
def _optional_connection(
    connection: Optional[sqlite3.Connection],
) -> Iterator[sqlite3.Connection]:
    if connection is not None:
        connection.row_factory = sqlite3.Row
        yield connection
        return
    new_connection = get_connection(get_db_path())
    try:
        yield new_connection
    finally:
        new_connection.close()


def _status_filter(
    statuses: Optional[Iterable[str | RentalStatus]],
) -> tuple[str, list[object]]:
    if statuses is None:
        return "", []
    values = [_coerce_status(status).value for status in statuses]
    placeholders = ", ".join(["?"] * len(values))
    return f"AND r.status IN ({placeholders})", list(values)


def create_rental(
    client_id: int,
    rental_date: str,
    items: Iterable[RentalItem],
    total_amount: float,
    expected_return_date: Optional[str] = None,
    notes: Optional[str] = None,
    signature_data: Optional[str] = None,
    *,
    connection: sqlite3.Connection,
) -> Rental:
    """Insert a rental header and its line items on the given connection."""
    logger = get_logger("rental_repo")
    created_at = _now_iso()
    stored_items: list[RentalItem] = []
    try:
        cursor = connection.execute(
            """
            INSERT INTO rentals (
                client_id,
                rental_date,
                expected_return_date,
                status,
                total_amount,
                notes,
                signature_data,
                version,
                created_at,
                updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, 1, ?, ?)
            """,
            (
                client_id,
                rental_date,
                expected_return_date,
                RentalStatus.ACTIVE.value,
                total_amount,
                notes,
                signature_data,
                created_at,
                created_at,
            ),
        )
        rental_id = int(cursor.lastrowid)
        for item in items:
            item_cursor = connection.execute(
                """
                INSERT INTO rental_items (
                    rental_id,
                    category_id,
                    quantity,
                    daily_rate,
                    returned_quantity,
                    created_at
                )
                VALUES (?, ?, ?, ?, 0, ?)
                """,
                (rental_id, item.category_id, item.quantity, item.daily_rate, created_at),
            )
            stored_items.append(
                RentalItem(
                    id=int(item_cursor.lastrowid),
                    rental_id=rental_id,
                    category_id=item.category_id,
                    quantity=item.quantity,
                    daily_rate=item.daily_rate,
                    returned_quantity=0,
                    category_name=item.category_name,
                    created_at=created_at,
                )
            )
    except sqlite3.Error as exc:
        logger.exception("Failed to create rental client_id=%s", client_id)
        raise StoreError("Could not save rental.") from exc
    return Rental(
        id=rental_id,
        client_id=client_id,
        rental_date=rental_date,
        status=RentalStatus.ACTIVE,
        total_amount=total_amount,
        expected_return_date=expected_return_date,
        notes=notes,
        signature_data=signature_data,
        version=1,
        items=stored_items,
        created_at=created_at,
        updated_at=created_at,
    )


def _load_items(
    conn: sqlite3.Connection, rental_ids: list[int]
) -> dict[int, list[RentalItem]]:
    if not rental_ids:
        return {}
    placeholders = ", ".join(["?"] * len(rental_ids))
    rows = conn.execute(
        f"{ITEM_SELECT} WHERE ri.rental_id IN ({placeholders}) ORDER BY ri.id",
        rental_ids,
    ).fetchall()
    grouped: dict[int, list[RentalItem]] = {rental_id: [] for rental_id in rental_ids}
    for row in rows:
        item = rental_item_from_row(row)
        grouped[int(item.rental_id)].append(item)
    return grouped


def get_rental_with_items(
    rental_id: int,
    *,
    connection: Optional[sqlite3.Connection] = None,
) -> Optional[Rental]:
    """Fetch a rental with its items attached."""
    logger = get_logger("rental_repo")
    try:
        with _optional_connection(connection) as conn:
            rental_row = conn.execute(
                "SELECT * FROM rentals WHERE id = ?",
                (rental_id,),
            ).fetchone()
            if not rental_row:
                return None
            items = _load_items(conn, [rental_id])
    except sqlite3.Error as exc:
        logger.exception("Failed to fetch rental id=%s", rental_id)
        raise StoreError(f"Could not load rental {rental_id}.") from exc
    rental = rental_from_row(rental_row)
    rental.items = items.get(rental_id, [])
    return rental


def list_rentals(
    *,
    statuses: Optional[Iterable[str | RentalStatus]] = None,
    client_id: Optional[int] = None,
    connection: Optional[sqlite3.Connection] = None,
) -> list[Rental]:
    """List rentals with items, newest rental date first."""
    logger = get_logger("rental_repo")
    status_clause, params = _status_filter(statuses)
    client_clause = ""
    if client_id is not None:
        client_clause = "AND r.client_id = ?"
        params.append(client_id)
    try:
        with _optional_connection(connection) as conn:
            rows = conn.execute(
                f"""
                SELECT r.*
                FROM rentals r
                WHERE 1 = 1
                  {status_clause}
                  {client_clause}
                ORDER BY r.rental_date DESC, r.id DESC
                """,
                params,
            ).fetchall()
            rentals = [rental_from_row(row) for row in rows]
            items = _load_items(conn, [int(rental.id) for rental in rentals])
    except sqlite3.Error as exc:
        logger.exception("Failed to list rentals")
        raise StoreError("Could not load rentals.") from exc
    for rental in rentals:
        rental.items = items.get(int(rental.id), [])
    return rentals


def count_rentals(
    *,
    statuses: Optional[Iterable[str | RentalStatus]] = None,
    expected_before: Optional[str] = None,
    connection: Optional[sqlite3.Connection] = None,
) -> int:
    logger = get_logger("rental_repo")
    status_clause, params = _status_filter(statuses)
    date_clause = ""
    if expected_before is not None:
        date_clause = "AND r.expected_return_date IS NOT NULL AND r.expected_return_date < ?"
        params.append(expected_before)
    try:
        with _optional_connection(connection) as conn:
            row = conn.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM rentals r
                WHERE 1 = 1
                  {status_clause}
                  {date_clause}
                """,
                params,
            ).fetchone()
    except sqlite3.Error as exc:
        logger.exception("Failed to count rentals")
        raise StoreError("Could not count rentals.") from exc
    return int(row["total"]) if row else 0


def add_returned_quantity(
    rental_item_id: int,
    quantity: int,
    *,
    connection: sqlite3.Connection,
) -> bool:
    """Advance an item's returned counter; False if it would pass the issued quantity."""
    logger = get_logger("rental_repo")
    try:
        cursor = connection.execute(
            """
            UPDATE rental_items
            SET returned_quantity = returned_quantity + ?
            WHERE id = ?
              AND returned_quantity + ? <= quantity
            """,
            (quantity, rental_item_id, quantity),
        )
    except sqlite3.Error as exc:
        logger.exception("Failed to update rental item id=%s", rental_item_id)
        raise StoreError("Could not update rental item.") from exc
    return cursor.rowcount > 0


def update_status(
    rental_id: int,
    status: str | RentalStatus,
    *,
    expected_version: int,
    actual_return_date: Optional[str] = None,
    connection: sqlite3.Connection,
) -> bool:
    """Update rental status guarded by its version; False on a version mismatch."""
    logger = get_logger("rental_repo")
    rental_status = _coerce_status(status)
    try:
        cursor = connection.execute(
            """
            UPDATE rentals
            SET status = ?,
                actual_return_date = COALESCE(?, actual_return_date),
                version = version + 1,
                updated_at = ?
            WHERE id = ?
              AND version = ?
            """,
            (
                rental_status.value,
                actual_return_date,
                _now_iso(),
                rental_id,
                expected_version,
            ),
        )
    except sqlite3.Error as exc:
        logger.exception("Failed to update rental status id=%s", rental_id)
        raise StoreError("Could not update rental status.") from exc
    return cursor.rowcount > 0


def set_total_amount(
    rental_id: int,
    total_amount: float,
    *,
    connection: sqlite3.Connection,
) -> bool:
    logger = get_logger("rental_repo")
    try:
        cursor = connection.execute(
            """
            UPDATE rentals
            SET total_amount = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (total_amount, _now_iso(), rental_id),
        )
    except sqlite3.Error as exc:
        logger.exception("Failed to set total amount rental id=%s", rental_id)
        raise StoreError("Could not update rental total.") from exc
    return cursor.rowcount > 0
