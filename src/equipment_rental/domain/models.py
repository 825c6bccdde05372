"""Domain dataclasses and enums."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RentalStatus(str, Enum):
    ACTIVE = "active"
    PARTIALLY_RETURNED = "partially_returned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


OPEN_RENTAL_STATUSES = (RentalStatus.ACTIVE, RentalStatus.PARTIALLY_RETURNED)


class ReturnCondition(str, Enum):
    GOOD = "good"
    DAMAGED = "damaged"
    LOST = "lost"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    UPI = "upi"


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class Client:
    id: Optional[int]
    name: str
    phone: str
    company_name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    gst_number: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(slots=True)
class StockCategory:
    id: Optional[int]
    name: str
    daily_rate: float
    description: Optional[str] = None
    size_specification: Optional[str] = None
    weight_kg: Optional[float] = None
    material: Optional[str] = None
    created_at: Optional[str] = None


@dataclass(frozen=True, slots=True)
class StockItem:
    """Quantity ledger counters for one stock category."""

    id: Optional[int]
    category_id: int
    total_quantity: int
    available_quantity: int
    rented_quantity: int = 0
    damaged_quantity: int = 0
    category_name: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_balanced(self) -> bool:
        return self.total_quantity == (
            self.available_quantity + self.rented_quantity + self.damaged_quantity
        )


@dataclass(slots=True)
class RentalItem:
    id: Optional[int]
    rental_id: Optional[int]
    category_id: int
    quantity: int
    daily_rate: float
    returned_quantity: int = 0
    category_name: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def pending_quantity(self) -> int:
        return self.quantity - self.returned_quantity

    @property
    def is_fully_returned(self) -> bool:
        return self.returned_quantity >= self.quantity


@dataclass(slots=True)
class Rental:
    id: Optional[int]
    client_id: int
    rental_date: str
    status: RentalStatus = RentalStatus.ACTIVE
    total_amount: float = 0.0
    expected_return_date: Optional[str] = None
    actual_return_date: Optional[str] = None
    notes: Optional[str] = None
    signature_data: Optional[str] = None
    version: int = 1
    items: list[RentalItem] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_RENTAL_STATUSES


@dataclass(slots=True)
class ReturnItem:
    id: Optional[int]
    return_id: Optional[int]
    rental_item_id: int
    returned_quantity: int
    condition: ReturnCondition
    damage_cost: float = 0.0
    damage_description: Optional[str] = None
    damage_photos: tuple[str, ...] = ()
    created_at: Optional[str] = None


@dataclass(slots=True)
class Return:
    id: Optional[int]
    rental_id: int
    return_date: str
    total_damage_cost: float = 0.0
    notes: Optional[str] = None
    inspector_name: Optional[str] = None
    items: list[ReturnItem] = field(default_factory=list)
    created_at: Optional[str] = None


@dataclass(slots=True)
class Payment:
    id: Optional[int]
    client_id: int
    amount: float
    payment_date: str
    method: PaymentMethod = PaymentMethod.CASH
    rental_id: Optional[int] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None


@dataclass(slots=True)
class Invoice:
    id: Optional[int]
    invoice_number: str
    client_id: int
    rental_id: Optional[int]
    issue_date: str
    due_date: Optional[str]
    subtotal: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    status: InvoiceStatus = InvoiceStatus.PENDING
    pdf_path: Optional[str] = None
    created_at: Optional[str] = None
