"""Tests for rental issuance and cancellation."""

import pytest

from equipment_rental.domain.models import RentalStatus
from equipment_rental.services.errors import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from equipment_rental.services.inventory_service import InventoryService
from equipment_rental.services.rental_service import RentalService
from equipment_rental.services.return_service import ReturnService, ReturnSubmission


def test_issue_rental_moves_stock_and_freezes_rates(connection, client, categories, stock_of):
    plates = categories["18x18"]
    service = RentalService(connection)

    rental = service.issue_rental(
        client.id,
        "2026-01-01",
        [{"category_id": plates.id, "quantity": 10}],
        expected_return_date="2026-01-15",
        notes="Site B slab",
        signature_data="data:image/png;base64,iVBORw0KGgo",
    )

    assert rental.status == RentalStatus.ACTIVE
    assert rental.total_amount == pytest.approx(250.0)
    assert rental.items[0].daily_rate == pytest.approx(25.0)
    assert rental.items[0].returned_quantity == 0
    stock = stock_of(plates)
    assert (stock.available_quantity, stock.rented_quantity) == (90, 10)

    stored = service.get_rental(rental.id)
    assert stored.signature_data == "data:image/png;base64,iVBORw0KGgo"
    assert stored.expected_return_date == "2026-01-15"


def test_rate_edits_do_not_touch_issued_items(connection, client, categories):
    plates = categories["18x18"]
    service = RentalService(connection)
    rental = service.issue_rental(client.id, "2026-01-01", [{"category_id": plates.id, "quantity": 2}])

    InventoryService(connection).update_category(plates.id, plates.name, 40.0)

    assert service.get_rental(rental.id).items[0].daily_rate == pytest.approx(25.0)
    assert service.live_amount(rental.id, today="2026-01-05") == pytest.approx(250.0)


def test_live_amount_grows_while_open(connection, client, categories):
    service = RentalService(connection)
    rental = service.issue_rental(
        client.id, "2026-01-01", [{"category_id": categories["12x12"].id, "quantity": 4}]
    )

    assert service.live_amount(rental.id, today="2026-01-01") == pytest.approx(60.0)
    assert service.live_amount(rental.id, today="2026-01-31") == pytest.approx(1860.0)
    assert service.get_rental(rental.id).total_amount == pytest.approx(60.0)


def test_insufficient_stock_creates_nothing(connection, client, stock_of):
    category, _ = InventoryService(connection).add_category("Props 3m", 10.0, initial_quantity=6)
    service = RentalService(connection)

    with pytest.raises(InsufficientStockError):
        service.issue_rental(client.id, "2026-01-01", [{"category_id": category.id, "quantity": 8}])

    assert stock_of(category).available_quantity == 6
    assert service.list_rentals() == []


def test_duplicate_lines_are_checked_together(connection, client):
    category, _ = InventoryService(connection).add_category("Props 3m", 10.0, initial_quantity=6)

    with pytest.raises(InsufficientStockError):
        RentalService(connection).issue_rental(
            client.id,
            "2026-01-01",
            [
                {"category_id": category.id, "quantity": 4},
                {"category_id": category.id, "quantity": 4},
            ],
        )


@pytest.mark.parametrize(
    "items",
    [
        [],
        [{"category_id": 1, "quantity": 0}],
        [{"category_id": 1}],
    ],
)
def test_invalid_items_are_rejected(connection, client, items):
    with pytest.raises(ValidationError):
        RentalService(connection).issue_rental(client.id, "2026-01-01", items)


def test_expected_return_before_start_is_rejected(connection, client, categories):
    with pytest.raises(ValidationError):
        RentalService(connection).issue_rental(
            client.id,
            "2026-01-10",
            [{"category_id": categories["18x18"].id, "quantity": 1}],
            expected_return_date="2026-01-09",
        )


def test_unknown_client_or_category(connection, client):
    service = RentalService(connection)
    with pytest.raises(NotFoundError):
        service.issue_rental(999, "2026-01-01", [{"category_id": 1, "quantity": 1}])
    with pytest.raises(NotFoundError):
        service.issue_rental(client.id, "2026-01-01", [{"category_id": 999, "quantity": 1}])


def test_cancel_returns_units_to_available(connection, client, categories, stock_of):
    plates = categories["18x18"]
    service = RentalService(connection)
    rental = service.issue_rental(client.id, "2026-01-01", [{"category_id": plates.id, "quantity": 7}])

    cancelled = service.cancel_rental(rental.id)

    assert cancelled.status == RentalStatus.CANCELLED
    assert cancelled.version == rental.version + 1
    stock = stock_of(plates)
    assert (stock.available_quantity, stock.rented_quantity) == (100, 0)
    assert service.list_open_rentals() == []


def test_cancel_after_a_return_is_rejected(connection, client, categories):
    service = RentalService(connection)
    rental = service.issue_rental(
        client.id, "2026-01-01", [{"category_id": categories["18x18"].id, "quantity": 3}]
    )
    ReturnService(connection).process_return(
        rental.id, "2026-01-02", [ReturnSubmission(rental.items[0].id, 1)]
    )

    with pytest.raises(ValidationError):
        service.cancel_rental(rental.id)


def test_open_rentals_filter_by_client(connection, client, other_client, categories):
    service = RentalService(connection)
    plates = categories["18x18"]
    mine = service.issue_rental(client.id, "2026-01-01", [{"category_id": plates.id, "quantity": 1}])
    service.issue_rental(other_client.id, "2026-01-01", [{"category_id": plates.id, "quantity": 1}])

    assert [rental.id for rental in service.list_open_rentals(client.id)] == [mine.id]
    assert len(service.list_open_rentals()) == 2


def test_live_amount_rejects_bad_reference_date(connection, client, categories):
    service = RentalService(connection)
    rental = service.issue_rental(
        client.id, "2026-01-01", [{"category_id": categories["18x18"].id, "quantity": 1}]
    )

    with pytest.raises(ValidationError):
        service.live_amount(rental.id, today="soon")
