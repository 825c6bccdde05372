"""Tests for the command line interface."""

import logging
import sys

import pytest

from equipment_rental.app import main
from equipment_rental.db.connection import get_connection
from equipment_rental.db.migrations import apply_migrations
from equipment_rental.services.client_service import ClientService
from equipment_rental.services.invoice_service import InvoiceService
from equipment_rental.services.payment_service import PaymentService
from equipment_rental.services.rental_service import RentalService
from equipment_rental.services.return_service import ReturnService, ReturnSubmission


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def populated_db(tmp_path):
    path = tmp_path / "cli.db"
    connection = get_connection(path)
    try:
        apply_migrations(connection)
        client = ClientService(connection).create_client("Ramesh Patel", "+91 98200 11111")
        plates = RentalService(connection).issue_rental(
            client.id, "2026-01-01", [{"category_id": 2, "quantity": 2}]
        )
        ReturnService(connection).process_return(
            plates.id, "2026-01-05", [ReturnSubmission(plates.items[0].id, 2)]
        )
        RentalService(connection).issue_rental(
            client.id, "2026-01-01", [{"category_id": 1, "quantity": 4}], expected_return_date="2026-01-10"
        )
        PaymentService(connection).record_payment(client.id, 20.0, payment_date="2026-01-02")
        invoice = InvoiceService(connection).generate_invoice(plates.id, issue_date="2026-01-06")
    finally:
        connection.close()
    return path, client, invoice


def test_init_db(tmp_path, capsys, app_home):
    assert main(["--db", str(tmp_path / "new.db"), "init-db"]) == 0
    assert "schema version 2" in capsys.readouterr().out
    assert (app_home / "logs").is_dir()


def test_stock(populated_db, capsys):
    path, _, _ = populated_db

    assert main(["--db", str(path), "stock"]) == 0

    out = capsys.readouterr().out
    assert "18x18" in out
    assert "12x12" in out


def test_ledger(populated_db, capsys):
    path, client, _ = populated_db

    assert main(["--db", str(path), "ledger", "--client-id", str(client.id)]) == 0

    out = capsys.readouterr().out
    assert "Ramesh Patel" in out
    assert "(due)" in out


def test_ledger_unknown_client_fails(populated_db, capsys):
    path, _, _ = populated_db

    assert main(["--db", str(path), "ledger", "--client-id", "404"]) == 1
    assert "Client 404 not found" in capsys.readouterr().out


def test_dashboard(populated_db, capsys):
    path, _, _ = populated_db

    assert main(["--db", str(path), "dashboard", "--today", "2026-01-20"]) == 0

    out = capsys.readouterr().out
    assert "Active rentals:   1" in out
    assert "Overdue rentals:  1" in out


def test_mark_overdue_and_invoice_pdf(populated_db, capsys, tmp_path):
    path, _, invoice = populated_db

    assert main(["--db", str(path), "mark-overdue", "--today", "2026-03-01"]) == 0
    assert "1 invoice(s) marked overdue." in capsys.readouterr().out

    out_dir = tmp_path / "pdfs"
    assert main(["--db", str(path), "invoice-pdf", str(invoice.id), "--output-dir", str(out_dir)]) == 0
    pdf = out_dir / "Invoice-INV-202601-0001.pdf"
    assert pdf.read_bytes().startswith(b"%PDF")


@pytest.mark.parametrize("command", ["dashboard", "mark-overdue"])
def test_bad_reference_date_fails_cleanly(populated_db, capsys, command):
    path, _, _ = populated_db

    assert main(["--db", str(path), command, "--today", "not-a-date"]) == 1
    assert "Error: Invalid reference date." in capsys.readouterr().out


def test_negative_payment_limit_fails_cleanly(populated_db, capsys):
    path, _, _ = populated_db

    assert main(["--db", str(path), "ledger", "--payment-limit", "-1"]) == 1
    assert "Payment limit cannot be negative." in capsys.readouterr().out


def test_rental_workflow(tmp_path, capsys):
    db = str(tmp_path / "flow.db")

    assert main(["--db", db, "add-client", "Anita Desai", "+91 98200 33333", "--company", "Desai Infra"]) == 0
    assert "Client 1 created: Anita Desai" in capsys.readouterr().out

    assert main(["--db", db, "issue", "1", "--item", "2:2", "--date", "2026-01-01"]) == 0
    out = capsys.readouterr().out
    assert "Rental 1 (active)" in out
    assert "item 1: 18x18 0/2 returned" in out

    assert main(
        [
            "--db", db, "return", "1",
            "--item", "1:1",
            "--item", "1:1:damaged:500",
            "--date", "2026-01-05",
            "--inspector", "Mahesh",
        ]
    ) == 0
    out = capsys.readouterr().out
    assert "damage ₹500.00" in out
    assert "Rental 1 (completed)" in out

    assert main(["--db", db, "pay", "1", "100", "--method", "upi", "--date", "2026-01-06"]) == 0
    assert "Payment 1 of ₹100.00 recorded." in capsys.readouterr().out

    assert main(["--db", db, "invoice", "1", "--date", "2026-01-06"]) == 0
    assert "Invoice INV-202601-0001 (id 1)" in capsys.readouterr().out

    assert main(["--db", db, "stock"]) == 0
    stock_line = next(line for line in capsys.readouterr().out.splitlines() if line.startswith("18x18"))
    assert stock_line.split() == ["18x18", "100", "99", "0", "1"]


def test_workflow_errors_exit_with_status_one(tmp_path, capsys):
    db = str(tmp_path / "flow.db")
    main(["--db", db, "add-client", "Anita Desai", "+91 98200 33333"])
    main(["--db", db, "issue", "1", "--item", "2:2", "--date", "2026-01-01"])
    capsys.readouterr()

    assert main(["--db", db, "issue", "1", "--item", "2:500"]) == 1
    assert "Insufficient stock for 18x18" in capsys.readouterr().out
    assert main(["--db", db, "return", "1", "--item", "1:3", "--date", "2026-01-02"]) == 1
    assert main(["--db", db, "return", "1", "--item", "1:1:broken", "--date", "2026-01-02"]) == 1
    assert main(["--db", db, "add-client", " ", "123"]) == 1


def test_malformed_item_lines_are_usage_errors(tmp_path):
    db = str(tmp_path / "flow.db")

    with pytest.raises(SystemExit) as excinfo:
        main(["--db", db, "issue", "1", "--item", "2x2"])
    assert excinfo.value.code == 2
    with pytest.raises(SystemExit):
        main(["--db", db, "return", "1", "--item", "1:1:damaged:lots"])
