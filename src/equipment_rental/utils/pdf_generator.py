"""PDF generation for rental invoices."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from equipment_rental.config import DEFAULT_COMPANY, CompanyInfo
from equipment_rental.services.billing import InvoiceDocument

# The base-14 fonts have no rupee glyph.
PDF_CURRENCY = "Rs."

PRIMARY = colors.HexColor("#2563EB")


def _format_currency(value: float) -> str:
    return f"{PDF_CURRENCY} {value:,.2f}"


def _format_date(value: Optional[date]) -> str:
    if value is None:
        return "-"
    return value.strftime("%b %d, %Y")


def _text(value: Optional[str]) -> str:
    return escape(value) if value else "-"


def _build_styles() -> dict[str, ParagraphStyle]:
    styles = getSampleStyleSheet()
    styles.add(
        ParagraphStyle(
            name="CompanyName",
            parent=styles["Title"],
            alignment=0,
            textColor=PRIMARY,
            fontSize=22,
            spaceAfter=4,
        )
    )
    styles.add(
        ParagraphStyle(
            name="SectionTitle",
            parent=styles["Heading3"],
            spaceBefore=12,
            spaceAfter=6,
        )
    )
    styles.add(
        ParagraphStyle(
            name="SmallText",
            parent=styles["Normal"],
            fontSize=9,
            leading=12,
        )
    )
    return styles


def generate_invoice_pdf(
    document: InvoiceDocument,
    output_path: Path,
    *,
    company: CompanyInfo = DEFAULT_COMPANY,
) -> Path:
    """Render an invoice document to ``output_path``."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=f"Invoice {document.invoice_number}",
        author=company.name,
    )
    styles = _build_styles()

    elements: list[object] = []
    elements.append(Paragraph(_text(company.name), styles["CompanyName"]))
    company_lines = [
        _text(company.address),
        f"Phone: {_text(company.phone)}",
        f"Email: {_text(company.email)}",
    ]
    if company.gst:
        company_lines.append(f"GST: {_text(company.gst)}")
    elements.append(Paragraph("<br/>".join(company_lines), styles["Normal"]))
    elements.append(Spacer(1, 10))

    details_table = Table(
        [
            ["Invoice No.", document.invoice_number],
            ["Issue Date", _format_date(document.issue_date)],
            ["Due Date", _format_date(document.due_date)],
        ],
        colWidths=[40 * mm, 60 * mm],
    )
    details_table.setStyle(
        TableStyle(
            [
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("BACKGROUND", (0, 0), (0, -1), colors.whitesmoke),
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
            ]
        )
    )
    elements.append(Paragraph("INVOICE", styles["Heading2"]))
    elements.append(details_table)
    elements.append(Spacer(1, 10))

    client_lines = [
        f"<b>{_text(document.client_name)}</b>",
        f"Phone: {_text(document.client_phone)}",
    ]
    if document.client_address:
        client_lines.append(_text(document.client_address))
    if document.client_gst:
        client_lines.append(f"GST: {_text(document.client_gst)}")
    elements.append(Paragraph("Bill To", styles["SectionTitle"]))
    elements.append(Paragraph("<br/>".join(client_lines), styles["Normal"]))
    elements.append(Spacer(1, 12))

    items_data = [["Description", "Qty", "Rate", "Amount"]]
    for line in document.items:
        items_data.append(
            [
                line.description,
                str(line.quantity),
                _format_currency(line.rate),
                _format_currency(line.amount),
            ]
        )
    items_table = Table(items_data, colWidths=[80 * mm, 18 * mm, 35 * mm, 35 * mm])
    items_table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    elements.append(items_table)
    elements.append(Spacer(1, 12))

    totals_table = Table(
        [
            ["Subtotal", _format_currency(document.subtotal)],
            [f"Tax ({document.tax_rate:g}%)", _format_currency(document.tax_amount)],
            ["Total", _format_currency(document.total)],
        ],
        colWidths=[40 * mm, 50 * mm],
        hAlign="RIGHT",
    )
    totals_table.setStyle(
        TableStyle(
            [
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                ("BACKGROUND", (0, -1), (-1, -1), colors.whitesmoke),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ]
        )
    )
    elements.append(totals_table)
    elements.append(Spacer(1, 12))

    if document.notes:
        elements.append(Paragraph("Notes", styles["SectionTitle"]))
        elements.append(Paragraph(_text(document.notes), styles["SmallText"]))
        elements.append(Spacer(1, 12))

    terms = (
        "Payment is due by the date shown above. Damaged or lost plates are "
        "charged separately as assessed at return."
    )
    elements.append(Paragraph("Terms", styles["SectionTitle"]))
    elements.append(Paragraph(terms, styles["SmallText"]))
    elements.append(Spacer(1, 18))

    footer = (
        f"Thank you for your business. Generated on "
        f"{datetime.now().strftime('%d/%m/%Y %H:%M')}"
    )
    elements.append(Paragraph(footer, styles["SmallText"]))

    doc.build(elements)
    return output_path
