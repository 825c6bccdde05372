"""Tests for payment recording."""

import pytest

from equipment_rental.domain.models import PaymentMethod
from equipment_rental.services.errors import NotFoundError, ValidationError
from equipment_rental.services.payment_service import PaymentService
from equipment_rental.services.rental_service import RentalService


def test_record_payment(connection, client, categories):
    rental = RentalService(connection).issue_rental(
        client.id, "2026-01-01", [{"category_id": categories["18x18"].id, "quantity": 1}]
    )
    service = PaymentService(connection)

    payment = service.record_payment(
        client.id,
        1500.456,
        PaymentMethod.BANK_TRANSFER,
        payment_date="2026-01-07",
        rental_id=rental.id,
        reference_number="UTR123",
    )

    assert payment.amount == pytest.approx(1500.46)
    assert payment.method == PaymentMethod.BANK_TRANSFER
    assert payment.payment_date == "2026-01-07"
    assert [item.id for item in service.list_client_payments(client.id)] == [payment.id]
    assert service.total_received() == pytest.approx(1500.46)


def test_payments_are_listed_newest_first(connection, client):
    service = PaymentService(connection)
    service.record_payment(client.id, 100.0, payment_date="2026-01-01")
    latest = service.record_payment(client.id, 200.0, "cheque", payment_date="2026-02-01")

    payments = service.list_client_payments(client.id, limit=1)

    assert [payment.id for payment in payments] == [latest.id]


@pytest.mark.parametrize(
    "amount, method, payment_date",
    [
        (0, "cash", None),
        (-10, "cash", None),
        (10, "crypto", None),
        (10, "cash", "not a date"),
    ],
)
def test_invalid_payments(connection, client, amount, method, payment_date):
    with pytest.raises(ValidationError):
        PaymentService(connection).record_payment(client.id, amount, method, payment_date=payment_date)


def test_rental_must_belong_to_client(connection, client, other_client, categories):
    rental = RentalService(connection).issue_rental(
        other_client.id, "2026-01-01", [{"category_id": categories["18x18"].id, "quantity": 1}]
    )
    service = PaymentService(connection)

    with pytest.raises(ValidationError):
        service.record_payment(client.id, 50.0, rental_id=rental.id)
    with pytest.raises(NotFoundError):
        service.record_payment(client.id, 50.0, rental_id=404)
    with pytest.raises(NotFoundError):
        service.record_payment(404, 50.0)
