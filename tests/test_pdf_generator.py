"""Tests for the invoice PDF composer."""

from datetime import date

from equipment_rental.config import CompanyInfo
from equipment_rental.services.billing import InvoiceDocument, InvoiceLine
from equipment_rental.utils.pdf_generator import generate_invoice_pdf


def _document(**overrides):
    values = dict(
        invoice_number="INV-202601-0007",
        client_name="Patel & Sons <Builders>",
        client_phone="+91 98200 11111",
        issue_date=date(2026, 1, 31),
        items=[
            InvoiceLine("18x18 (5 days)", 2, 125.0, 250.0),
            InvoiceLine("12x12 (5 days)", 3, 75.0, 225.0),
        ],
        subtotal=475.0,
        tax_rate=18.0,
        tax_amount=85.5,
        total=560.5,
        rental_start=date(2026, 1, 1),
        rental_end=date(2026, 1, 5),
        days=5,
    )
    values.update(overrides)
    return InvoiceDocument(**values)


def test_writes_a_pdf(tmp_path):
    output = generate_invoice_pdf(_document(), tmp_path / "nested" / "invoice.pdf")

    assert output == tmp_path / "nested" / "invoice.pdf"
    assert output.read_bytes().startswith(b"%PDF")


def test_optional_fields_and_custom_company(tmp_path):
    company = CompanyInfo(
        name="Shree Centering Works",
        address="Plot 12, GIDC",
        phone="+91 79 2222 3333",
        email="accounts@example.com",
        gst="24BBBBB1111B1Z5",
    )
    document = _document(
        due_date=date(2026, 3, 2),
        client_address="Sector 4, Ahmedabad",
        client_gst="24AAAAA0000A1Z5",
        notes="Rental Period: Jan 01, 2026 to Jan 05, 2026 (5 days)",
    )

    output = generate_invoice_pdf(document, tmp_path / "full.pdf", company=company)

    assert output.stat().st_size > 0
