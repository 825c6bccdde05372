"""Billing document settings and file naming."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from pathlib import Path

from equipment_rental.config import DEFAULT_COMPANY, DEFAULT_TAX_RATE, CompanyInfo
from equipment_rental.utils.config_store import load_config_data, save_config_data


@dataclass(frozen=True)
class BillingSettings:
    """Configuration for invoices: issuer, default tax and output folder."""

    company: CompanyInfo = field(default_factory=lambda: DEFAULT_COMPANY)
    tax_rate: float = DEFAULT_TAX_RATE
    invoices_dir: str | None = None


def sanitize_filename(value: str) -> str:
    """Normalize text to be safe for filenames."""
    cleaned = " ".join(value.strip().split())
    cleaned = cleaned.replace(" ", "_")
    cleaned = re.sub(r"[^A-Za-z0-9_-]", "", cleaned)
    return cleaned or "Invoice"


def build_invoice_filename(invoice_number: str) -> str:
    return f"Invoice-{sanitize_filename(invoice_number)}.pdf"


def _load_company(data: object) -> CompanyInfo:
    if not isinstance(data, dict):
        return DEFAULT_COMPANY
    defaults = asdict(DEFAULT_COMPANY)
    values = {
        key: data[key] if isinstance(data.get(key), str) else default
        for key, default in defaults.items()
    }
    return CompanyInfo(**values)


def load_billing_settings(config_path: Path) -> BillingSettings:
    """Load billing settings from config JSON, falling back to defaults."""
    data = load_config_data(config_path)
    tax_rate = data.get("tax_rate")
    if not isinstance(tax_rate, (int, float)) or isinstance(tax_rate, bool) or tax_rate < 0:
        tax_rate = DEFAULT_TAX_RATE
    invoices_dir = data.get("invoices_dir")
    if not isinstance(invoices_dir, str) or not invoices_dir.strip():
        invoices_dir = None
    return BillingSettings(
        company=_load_company(data.get("company")),
        tax_rate=float(tax_rate),
        invoices_dir=invoices_dir,
    )


def save_billing_settings(config_path: Path, settings: BillingSettings) -> None:
    """Persist billing settings to config JSON, keeping unrelated keys."""
    payload = load_config_data(config_path)
    payload["company"] = asdict(settings.company)
    payload["tax_rate"] = settings.tax_rate
    payload["invoices_dir"] = settings.invoices_dir
    save_config_data(config_path, payload)
