"""Domain models for EquipmentRental."""

from equipment_rental.domain.models import (
    OPEN_RENTAL_STATUSES,
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

__all__ = [
    "Client",
    "Invoice",
    "InvoiceStatus",
    "OPEN_RENTAL_STATUSES",
    "Payment",
    "PaymentMethod",
    "Rental",
    "RentalItem",
    "RentalStatus",
    "Return",
    "ReturnCondition",
    "ReturnItem",
    "StockCategory",
    "StockItem",
]
