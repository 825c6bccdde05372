"""SQLite row mappers for domain models."""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Dict

from equipment_rental.domain.models import (
    Client,
    Invoice,
    InvoiceStatus,
    Payment,
    PaymentMethod,
    Rental,
    RentalItem,
    RentalStatus,
    Return,
    ReturnCondition,
    ReturnItem,
    StockCategory,
    StockItem,
)


def _row_value(row: sqlite3.Row, key: str) -> Any:
    return row[key] if key in row.keys() else None


def client_from_row(row: sqlite3.Row) -> Client:
    return Client(
        id=_row_value(row, "id"),
        name=row["name"],
        phone=row["phone"],
        company_name=_row_value(row, "company_name"),
        email=_row_value(row, "email"),
        address=_row_value(row, "address"),
        gst_number=_row_value(row, "gst_number"),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def category_from_row(row: sqlite3.Row) -> StockCategory:
    return StockCategory(
        id=_row_value(row, "id"),
        name=row["name"],
        daily_rate=float(row["daily_rate"]),
        description=_row_value(row, "description"),
        size_specification=_row_value(row, "size_specification"),
        weight_kg=_row_value(row, "weight_kg"),
        material=_row_value(row, "material"),
        created_at=_row_value(row, "created_at"),
    )


def stock_item_from_row(row: sqlite3.Row) -> StockItem:
    return StockItem(
        id=_row_value(row, "id"),
        category_id=row["category_id"],
        total_quantity=int(row["total_quantity"]),
        available_quantity=int(row["available_quantity"]),
        rented_quantity=int(row["rented_quantity"]),
        damaged_quantity=int(row["damaged_quantity"]),
        category_name=_row_value(row, "category_name"),
        updated_at=_row_value(row, "updated_at"),
    )


def rental_from_row(row: sqlite3.Row) -> Rental:
    return Rental(
        id=_row_value(row, "id"),
        client_id=row["client_id"],
        rental_date=row["rental_date"],
        status=RentalStatus(row["status"]),
        total_amount=float(row["total_amount"] or 0),
        expected_return_date=_row_value(row, "expected_return_date"),
        actual_return_date=_row_value(row, "actual_return_date"),
        notes=_row_value(row, "notes"),
        signature_data=_row_value(row, "signature_data"),
        version=int(_row_value(row, "version") or 1),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def rental_item_from_row(row: sqlite3.Row) -> RentalItem:
    return RentalItem(
        id=_row_value(row, "id"),
        rental_id=row["rental_id"],
        category_id=row["category_id"],
        quantity=int(row["quantity"]),
        daily_rate=float(row["daily_rate"]),
        returned_quantity=int(row["returned_quantity"] or 0),
        category_name=_row_value(row, "category_name"),
        created_at=_row_value(row, "created_at"),
    )


def return_from_row(row: sqlite3.Row) -> Return:
    return Return(
        id=_row_value(row, "id"),
        rental_id=row["rental_id"],
        return_date=row["return_date"],
        total_damage_cost=float(row["total_damage_cost"] or 0),
        notes=_row_value(row, "notes"),
        inspector_name=_row_value(row, "inspector_name"),
        created_at=_row_value(row, "created_at"),
    )


def return_item_from_row(row: sqlite3.Row) -> ReturnItem:
    raw_photos = _row_value(row, "damage_photos") or "[]"
    return ReturnItem(
        id=_row_value(row, "id"),
        return_id=row["return_id"],
        rental_item_id=row["rental_item_id"],
        returned_quantity=int(row["returned_quantity"]),
        condition=ReturnCondition(row["condition"]),
        damage_cost=float(row["damage_cost"] or 0),
        damage_description=_row_value(row, "damage_description"),
        damage_photos=tuple(json.loads(raw_photos)),
        created_at=_row_value(row, "created_at"),
    )


def return_item_to_record(item: ReturnItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "return_id": item.return_id,
        "rental_item_id": item.rental_item_id,
        "returned_quantity": item.returned_quantity,
        "condition": item.condition.value,
        "damage_cost": item.damage_cost,
        "damage_description": item.damage_description,
        "damage_photos": json.dumps(list(item.damage_photos)),
        "created_at": item.created_at,
    }


def payment_from_row(row: sqlite3.Row) -> Payment:
    return Payment(
        id=_row_value(row, "id"),
        client_id=row["client_id"],
        amount=float(row["amount"]),
        payment_date=row["payment_date"],
        method=PaymentMethod(_row_value(row, "payment_method") or "cash"),
        rental_id=_row_value(row, "rental_id"),
        reference_number=_row_value(row, "reference_number"),
        notes=_row_value(row, "notes"),
        created_at=_row_value(row, "created_at"),
    )


def invoice_from_row(row: sqlite3.Row) -> Invoice:
    return Invoice(
        id=_row_value(row, "id"),
        invoice_number=row["invoice_number"],
        client_id=row["client_id"],
        rental_id=_row_value(row, "rental_id"),
        issue_date=row["issue_date"],
        due_date=_row_value(row, "due_date"),
        subtotal=float(row["subtotal"]),
        tax_rate=float(row["tax_rate"] or 0),
        tax_amount=float(row["tax_amount"] or 0),
        total_amount=float(row["total_amount"]),
        status=InvoiceStatus(row["status"]),
        pdf_path=_row_value(row, "pdf_path"),
        created_at=_row_value(row, "created_at"),
    )
