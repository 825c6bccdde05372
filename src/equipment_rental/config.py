"""Application configuration."""

from __future__ import annotations

from dataclasses import dataclass

from equipment_rental.version import __app_name__, __company__

APP_NAME = __app_name__
APP_HOME_ENV = "EQUIPMENT_RENTAL_HOME"
APP_DATA_DIRNAME = ".equipment_rental"
DB_FILENAME = "equipment_rental.db"
LOGS_DIRNAME = "logs"
LOG_FILENAME = "app.log"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3
PDF_DIRNAME = "invoices"
CONFIG_FILENAME = "config.json"

DEFAULT_TAX_RATE = 18.0
INVOICE_DUE_DAYS = 30
INVOICE_NUMBER_PREFIX = "INV"
RECENT_PAYMENTS_LIMIT = 10
CURRENCY_SYMBOL = "₹"


@dataclass(frozen=True)
class CompanyInfo:
    """Issuer information printed on invoices."""

    name: str
    address: str
    phone: str
    email: str
    gst: str | None = None


DEFAULT_COMPANY = CompanyInfo(
    name=__company__,
    address="123 Construction Street, Industrial Area, City - 123456",
    phone="+91 98765 43210",
    email="info@centeringplates.com",
    gst="29ABCDE1234F1Z5",
)


@dataclass(frozen=True)
class CategorySeed:
    name: str
    description: str
    daily_rate: float
    initial_quantity: int = 100


DEFAULT_CATEGORIES: tuple[CategorySeed, ...] = (
    CategorySeed("12x12", "12 inch x 12 inch centering plates", 15.0),
    CategorySeed("18x18", "18 inch x 18 inch centering plates", 25.0),
    CategorySeed("24x24", "24 inch x 24 inch centering plates", 35.0),
    CategorySeed("30x30", "30 inch x 30 inch centering plates", 45.0),
    CategorySeed("36x36", "36 inch x 36 inch centering plates", 55.0),
)
