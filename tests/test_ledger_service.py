"""Tests for the client ledger."""

import pytest

from equipment_rental.domain.models import Client, Payment, Rental, RentalStatus
from equipment_rental.services.errors import NotFoundError, ValidationError
from equipment_rental.services.ledger_service import LedgerService, aggregate_ledger
from equipment_rental.services.payment_service import PaymentService
from equipment_rental.services.rental_service import RentalService
from equipment_rental.services.return_service import ReturnService, ReturnSubmission

CLIENT = Client(id=1, name="Ramesh Patel", phone="+91 98200 11111")


def _rental(rental_id, status, total):
    return Rental(id=rental_id, client_id=1, rental_date="2026-01-01", status=status, total_amount=total)


def _payment(payment_id, amount, paid_on):
    return Payment(id=payment_id, client_id=1, amount=amount, payment_date=paid_on)


RENTALS = [
    _rental(1, RentalStatus.ACTIVE, 1000.0),
    _rental(2, RentalStatus.PARTIALLY_RETURNED, 500.0),
    _rental(3, RentalStatus.COMPLETED, 9000.0),
    _rental(4, RentalStatus.CANCELLED, 700.0),
]
PAYMENTS = [
    _payment(1, 200.0, "2026-01-05"),
    _payment(2, 300.0, "2026-01-20"),
    _payment(3, 100.0, "2026-01-10"),
]


def test_outstanding_counts_only_open_rentals():
    ledger = aggregate_ledger(CLIENT, RENTALS, PAYMENTS)

    assert ledger.total_outstanding == pytest.approx(1500.0)
    assert ledger.total_paid == pytest.approx(600.0)
    assert ledger.current_balance == pytest.approx(900.0)
    assert ledger.balance_label == "due"
    assert [rental.id for rental in ledger.active_rentals] == [1, 2]


def test_aggregation_is_idempotent():
    assert aggregate_ledger(CLIENT, RENTALS, PAYMENTS) == aggregate_ledger(CLIENT, RENTALS, PAYMENTS)


def test_payment_limit_keeps_most_recent():
    ledger = aggregate_ledger(CLIENT, RENTALS, PAYMENTS, payment_limit=2)

    assert ledger.total_paid == pytest.approx(400.0)
    assert [payment.id for payment in ledger.recent_payments] == [2, 3]


def test_overpayment_shows_as_credit():
    ledger = aggregate_ledger(CLIENT, [_rental(1, RentalStatus.ACTIVE, 100.0)], [_payment(1, 250.0, "2026-01-02")])
    assert ledger.current_balance == pytest.approx(-150.0)
    assert ledger.balance_label == "credit"


def test_no_activity_is_settled():
    ledger = aggregate_ledger(CLIENT, [], [])
    assert (ledger.total_outstanding, ledger.total_paid, ledger.current_balance) == (0, 0, 0)
    assert ledger.balance_label == "settled"


def test_client_ledger_from_storage(connection, client, other_client, categories):
    rentals = RentalService(connection)
    plates = categories["18x18"]
    open_rental = rentals.issue_rental(client.id, "2026-01-01", [{"category_id": plates.id, "quantity": 4}])
    closed = rentals.issue_rental(client.id, "2026-01-01", [{"category_id": plates.id, "quantity": 1}])
    ReturnService(connection).process_return(closed.id, "2026-01-02", [ReturnSubmission(closed.items[0].id, 1)])
    rentals.issue_rental(other_client.id, "2026-01-01", [{"category_id": plates.id, "quantity": 9}])
    payments = PaymentService(connection)
    payments.record_payment(client.id, 40.0, payment_date="2026-01-03")
    payments.record_payment(client.id, 10.0, "upi", payment_date="2026-01-04")

    ledger = LedgerService(connection).client_ledger(client.id)

    assert [rental.id for rental in ledger.active_rentals] == [open_rental.id]
    assert ledger.total_outstanding == pytest.approx(100.0)
    assert ledger.total_paid == pytest.approx(50.0)
    assert ledger.current_balance == pytest.approx(50.0)
    assert LedgerService(connection).client_ledger(client.id, payment_limit=1).total_paid == pytest.approx(10.0)


def test_all_ledgers_supports_search(connection, client, other_client):
    service = LedgerService(connection)

    assert {ledger.client.id for ledger in service.all_ledgers()} == {client.id, other_client.id}
    assert [ledger.client.id for ledger in service.all_ledgers("Patel")] == [client.id]


def test_unknown_client_ledger(connection):
    with pytest.raises(NotFoundError):
        LedgerService(connection).client_ledger(404)


def test_negative_payment_limit_is_rejected(connection, client):
    payments = PaymentService(connection)
    payments.record_payment(client.id, 100.0, payment_date="2026-01-01")
    payments.record_payment(client.id, 200.0, payment_date="2026-01-02")
    service = LedgerService(connection)

    with pytest.raises(ValidationError):
        service.client_ledger(client.id, payment_limit=-1)
    with pytest.raises(ValidationError):
        service.all_ledgers(payment_limit=-1)
    with pytest.raises(ValidationError):
        aggregate_ledger(CLIENT, RENTALS, PAYMENTS, payment_limit=-1)
    assert service.client_ledger(client.id).total_paid == pytest.approx(300.0)
    assert service.client_ledger(client.id, payment_limit=0).total_paid == 0
