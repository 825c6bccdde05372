"""Repositories for data access."""

from equipment_rental.repositories.client_repo import ClientRepo
from equipment_rental.repositories.invoice_repo import InvoiceRepository
from equipment_rental.repositories.mappers import (
    category_from_row,
    client_from_row,
    invoice_from_row,
    payment_from_row,
    rental_from_row,
    rental_item_from_row,
    return_from_row,
    return_item_from_row,
    return_item_to_record,
    stock_item_from_row,
)
from equipment_rental.repositories.payment_repo import PaymentRepository
from equipment_rental.repositories.return_repo import ReturnRepository
from equipment_rental.repositories.stock_repo import StockRepo

__all__ = [
    "category_from_row",
    "ClientRepo",
    "client_from_row",
    "invoice_from_row",
    "InvoiceRepository",
    "payment_from_row",
    "PaymentRepository",
    "rental_from_row",
    "rental_item_from_row",
    "return_from_row",
    "return_item_from_row",
    "return_item_to_record",
    "ReturnRepository",
    "stock_item_from_row",
    "StockRepo",
]
