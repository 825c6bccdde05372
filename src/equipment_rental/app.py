"""Command line entry point."""

from __future__ import annotations

import argparse
import sqlite3
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from equipment_rental.config import APP_NAME, CURRENCY_SYMBOL
from equipment_rental.db.connection import get_connection
from equipment_rental.db.migrations import apply_migrations
from equipment_rental.domain.models import PaymentMethod, Rental, ReturnCondition
from equipment_rental.logging_config import configure_logging, get_logger
from equipment_rental.paths import get_config_path, get_db_path, get_pdfs_dir
from equipment_rental.services.client_service import ClientService
from equipment_rental.services.dashboard_service import DashboardService
from equipment_rental.services.errors import ServiceError
from equipment_rental.services.inventory_service import InventoryService
from equipment_rental.services.invoice_service import InvoiceService
from equipment_rental.services.ledger_service import LedgerService
from equipment_rental.services.payment_service import PaymentService
from equipment_rental.services.rental_service import RentalService
from equipment_rental.services.return_service import ReturnService, ReturnSubmission
from equipment_rental.utils.documents import load_billing_settings
from equipment_rental.version import __version__


def _money(value: float) -> str:
    return f"{CURRENCY_SYMBOL}{value:,.2f}"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="equipment_rental", description=APP_NAME)
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="SQLite database file (defaults to the app data directory)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="create or upgrade the database schema")
    commands.add_parser("stock", help="show the quantity ledger per category")

    ledger = commands.add_parser("ledger", help="show client balances")
    ledger.add_argument("--client-id", type=int, default=None)
    ledger.add_argument("--search", default=None)
    ledger.add_argument(
        "--payment-limit",
        type=int,
        default=None,
        help="count only the N most recent payments",
    )

    dashboard = commands.add_parser("dashboard", help="show headline figures")
    dashboard.add_argument("--today", default=None)

    overdue = commands.add_parser("mark-overdue", help="flag pending invoices past due")
    overdue.add_argument("--today", default=None)

    invoice_pdf = commands.add_parser("invoice-pdf", help="render an invoice as PDF")
    invoice_pdf.add_argument("invoice_id", type=int)
    invoice_pdf.add_argument("--output-dir", type=Path, default=None)

    add_client = commands.add_parser("add-client", help="register a client")
    add_client.add_argument("name")
    add_client.add_argument("phone")
    add_client.add_argument("--company", default=None)
    add_client.add_argument("--email", default=None)
    add_client.add_argument("--address", default=None)
    add_client.add_argument("--gst", default=None)

    issue = commands.add_parser("issue", help="issue a rental to a client")
    issue.add_argument("client_id", type=int)
    issue.add_argument(
        "--item",
        dest="items",
        action="append",
        required=True,
        type=_issue_line,
        metavar="CATEGORY_ID:QTY",
    )
    issue.add_argument("--date", default=None, help="rental date (default today)")
    issue.add_argument("--expected-return", default=None)
    issue.add_argument("--notes", default=None)

    return_cmd = commands.add_parser("return", help="process returned units")
    return_cmd.add_argument("rental_id", type=int)
    return_cmd.add_argument(
        "--item",
        dest="items",
        action="append",
        required=True,
        type=_return_line,
        metavar="RENTAL_ITEM_ID:QTY[:CONDITION[:DAMAGE_COST]]",
    )
    return_cmd.add_argument("--date", default=None, help="return date (default today)")
    return_cmd.add_argument("--inspector", default=None)
    return_cmd.add_argument("--notes", default=None)

    pay = commands.add_parser("pay", help="record a client payment")
    pay.add_argument("client_id", type=int)
    pay.add_argument("amount", type=float)
    pay.add_argument(
        "--method",
        default=PaymentMethod.CASH.value,
        choices=[method.value for method in PaymentMethod],
    )
    pay.add_argument("--date", default=None)
    pay.add_argument("--rental-id", type=int, default=None)
    pay.add_argument("--reference", default=None)

    invoice = commands.add_parser("invoice", help="generate an invoice for a rental")
    invoice.add_argument("rental_id", type=int)
    invoice.add_argument("--date", default=None, help="issue date (default today)")
    invoice.add_argument("--tax-rate", type=float, default=None)
    return parser


def _issue_line(value: str) -> dict[str, int]:
    try:
        category_id, quantity = (int(part) for part in value.split(":"))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"expected CATEGORY_ID:QTY, got {value!r}"
        ) from exc
    return {"category_id": category_id, "quantity": quantity}


def _return_line(value: str) -> ReturnSubmission:
    parts = value.split(":")
    if not 2 <= len(parts) <= 4:
        raise argparse.ArgumentTypeError(
            f"expected RENTAL_ITEM_ID:QTY[:CONDITION[:DAMAGE_COST]], got {value!r}"
        )
    try:
        rental_item_id, quantity = int(parts[0]), int(parts[1])
        damage_cost = float(parts[3]) if len(parts) == 4 else 0.0
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid return line {value!r}") from exc
    condition = parts[2] if len(parts) >= 3 else ReturnCondition.GOOD.value
    return ReturnSubmission(rental_item_id, quantity, condition, damage_cost)


def _print_stock(connection: sqlite3.Connection) -> None:
    service = InventoryService(connection)
    print(f"{'Category':<12}{'Total':>8}{'Available':>11}{'Rented':>8}{'Damaged':>9}")
    for stock in service.list_stock():
        print(
            f"{stock.category_name or stock.category_id:<12}"
            f"{stock.total_quantity:>8}{stock.available_quantity:>11}"
            f"{stock.rented_quantity:>8}{stock.damaged_quantity:>9}"
        )


def _print_ledgers(connection: sqlite3.Connection, args: argparse.Namespace) -> None:
    service = LedgerService(connection)
    if args.client_id is not None:
        ledgers = [service.client_ledger(args.client_id, args.payment_limit)]
    else:
        ledgers = service.all_ledgers(args.search, args.payment_limit)
    for ledger in ledgers:
        print(
            f"{ledger.client.name:<24} outstanding {_money(ledger.total_outstanding):>12} "
            f"paid {_money(ledger.total_paid):>12} "
            f"balance {_money(abs(ledger.current_balance)):>12} ({ledger.balance_label})"
        )


def _print_dashboard(connection: sqlite3.Connection, today: Optional[str]) -> None:
    stats = DashboardService(connection).stats(today)
    print(f"Active rentals:   {stats.active_rentals}")
    print(f"Total clients:    {stats.total_clients}")
    print(f"Available stock:  {stats.available_stock}")
    print(f"Pending returns:  {stats.pending_returns}")
    print(f"Total revenue:    {_money(stats.total_revenue)}")
    print(f"Overdue rentals:  {stats.overdue_rentals}")


def _print_rental(rental: Rental) -> None:
    print(f"Rental {rental.id} ({rental.status.value}) from {rental.rental_date}")
    for item in rental.items:
        print(
            f"  item {item.id}: {item.category_name or item.category_id} "
            f"{item.returned_quantity}/{item.quantity} returned "
            f"at {_money(item.daily_rate)}/day"
        )


def _invoice_service(connection: sqlite3.Connection) -> InvoiceService:
    settings = load_billing_settings(get_config_path())
    return InvoiceService(
        connection, default_tax_rate=settings.tax_rate, company=settings.company
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line interface."""
    args = _build_parser().parse_args(argv)
    configure_logging()
    logger = get_logger(__name__)

    connection = get_connection(args.db or get_db_path())
    try:
        version = apply_migrations(connection)
        if args.command == "init-db":
            print(f"Database ready (schema version {version}).")
        elif args.command == "stock":
            _print_stock(connection)
        elif args.command == "ledger":
            _print_ledgers(connection, args)
        elif args.command == "dashboard":
            _print_dashboard(connection, args.today)
        elif args.command == "mark-overdue":
            count = _invoice_service(connection).mark_overdue(args.today)
            print(f"{count} invoice(s) marked overdue.")
        elif args.command == "invoice-pdf":
            settings = load_billing_settings(get_config_path())
            output_dir = args.output_dir or (
                Path(settings.invoices_dir) if settings.invoices_dir else get_pdfs_dir()
            )
            path = _invoice_service(connection).render_pdf(args.invoice_id, output_dir)
            print(f"Invoice written to {path}")
        elif args.command == "add-client":
            client = ClientService(connection).create_client(
                args.name,
                args.phone,
                company_name=args.company,
                email=args.email,
                address=args.address,
                gst_number=args.gst,
            )
            print(f"Client {client.id} created: {client.name}")
        elif args.command == "issue":
            rental = RentalService(connection).issue_rental(
                args.client_id,
                args.date or date.today(),
                args.items,
                expected_return_date=args.expected_return,
                notes=args.notes,
            )
            _print_rental(rental)
        elif args.command == "return":
            result = ReturnService(connection).process_return(
                args.rental_id,
                args.date or date.today(),
                args.items,
                notes=args.notes,
                inspector_name=args.inspector,
            )
            print(
                f"Return {result.record.id} recorded, "
                f"damage {_money(result.record.total_damage_cost)}."
            )
            _print_rental(result.rental)
        elif args.command == "pay":
            payment = PaymentService(connection).record_payment(
                args.client_id,
                args.amount,
                args.method,
                payment_date=args.date,
                rental_id=args.rental_id,
                reference_number=args.reference,
            )
            print(f"Payment {payment.id} of {_money(payment.amount)} recorded.")
        elif args.command == "invoice":
            invoice = _invoice_service(connection).generate_invoice(
                args.rental_id, issue_date=args.date, tax_rate=args.tax_rate
            )
            print(
                f"Invoice {invoice.invoice_number} (id {invoice.id}): "
                f"subtotal {_money(invoice.subtotal)}, "
                f"tax {_money(invoice.tax_amount)}, "
                f"total {_money(invoice.total_amount)}"
            )
    except ServiceError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}")
        return 1
    finally:
        connection.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
