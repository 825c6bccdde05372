"""Tests for the quantity ledger."""

import random
import sqlite3

import pytest

from equipment_rental.domain.models import ReturnCondition, StockItem
from equipment_rental.services import inventory_service
from equipment_rental.services.errors import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from equipment_rental.services.inventory_service import InventoryService


def _stock(available=10, rented=0, damaged=0):
    return StockItem(
        id=1,
        category_id=1,
        total_quantity=available + rented + damaged,
        available_quantity=available,
        rented_quantity=rented,
        damaged_quantity=damaged,
        category_name="18x18",
    )


class TestSnapshotOperations:
    def test_issue_moves_available_to_rented(self):
        after = inventory_service.issue(_stock(10), 4)
        assert (after.available_quantity, after.rented_quantity) == (6, 4)
        assert after.total_quantity == 10

    def test_issue_beyond_available_is_rejected(self):
        with pytest.raises(InsufficientStockError) as excinfo:
            inventory_service.issue(_stock(6), 8)
        assert excinfo.value.available == 6
        assert excinfo.value.requested == 8
        assert "Available 6, requested 8" in str(excinfo.value)

    def test_non_positive_quantities_are_rejected(self):
        with pytest.raises(ValidationError):
            inventory_service.issue(_stock(), 0)
        with pytest.raises(ValidationError):
            inventory_service.return_good(_stock(5, 5), -1)

    def test_returns_split_between_available_and_damaged(self):
        stock = _stock(5, 5)
        good = inventory_service.return_good(stock, 2)
        damaged = inventory_service.apply_return(good, 1, ReturnCondition.LOST)
        assert (damaged.available_quantity, damaged.rented_quantity, damaged.damaged_quantity) == (7, 2, 1)

    def test_cannot_return_more_than_rented(self):
        with pytest.raises(ValidationError):
            inventory_service.return_damaged(_stock(5, 1), 2)

    def test_total_is_conserved_over_any_sequence(self):
        rng = random.Random(7)
        stock = _stock(50)
        for _ in range(500):
            op = rng.choice(["issue", "good", "damaged"])
            qty = rng.randint(1, 5)
            try:
                if op == "issue":
                    stock = inventory_service.issue(stock, qty)
                elif op == "good":
                    stock = inventory_service.return_good(stock, qty)
                else:
                    stock = inventory_service.return_damaged(stock, qty)
            except (InsufficientStockError, ValidationError):
                pass
            assert stock.is_balanced
            assert stock.total_quantity == 50
            assert min(stock.available_quantity, stock.rented_quantity, stock.damaged_quantity) >= 0


def test_seeded_categories_are_balanced(connection):
    service = InventoryService(connection)
    stock = service.list_stock()
    assert [item.category_name for item in stock] == ["12x12", "18x18", "24x24", "30x30", "36x36"]
    assert all(item.available_quantity == 100 for item in stock)
    assert service.unbalanced_stock() == []


def test_issue_and_release_persist(connection, categories):
    service = InventoryService(connection)
    category_id = categories["24x24"].id

    service.issue(category_id, 10)
    service.return_good(category_id, 4)
    service.return_damaged(category_id, 2)

    stock = service.get_stock(category_id)
    assert (stock.available_quantity, stock.rented_quantity, stock.damaged_quantity) == (94, 4, 2)
    assert stock.total_quantity == 100


def test_issue_beyond_available_leaves_storage_unchanged(connection):
    service = InventoryService(connection)
    category, _ = service.add_category("Props 3m", 10.0, initial_quantity=6)

    with pytest.raises(InsufficientStockError) as excinfo:
        service.issue(category.id, 8)

    assert excinfo.value.category == "Props 3m"
    stock = service.get_stock(category.id)
    assert (stock.available_quantity, stock.rented_quantity) == (6, 0)


def test_release_more_than_rented_is_rejected(connection, categories):
    service = InventoryService(connection)
    category_id = categories["30x30"].id
    service.issue(category_id, 2)

    with pytest.raises(ValidationError):
        service.return_good(category_id, 3)

    assert service.get_stock(category_id).rented_quantity == 2


def test_restock_raises_total_and_available(connection, categories):
    service = InventoryService(connection)
    stock = service.restock(categories["12x12"].id, 25)
    assert (stock.total_quantity, stock.available_quantity) == (125, 125)
    assert stock.is_balanced


def test_add_category_rejects_duplicates_and_bad_input(connection):
    service = InventoryService(connection)
    with pytest.raises(ValidationError):
        service.add_category("18x18", 30.0)
    with pytest.raises(ValidationError):
        service.add_category("  ", 30.0)
    with pytest.raises(ValidationError):
        service.add_category("48x48", -1.0)


def test_unknown_category_is_not_found(connection):
    with pytest.raises(NotFoundError):
        InventoryService(connection).get_stock(999)


def test_storage_rejects_negative_counters(connection, categories):
    with pytest.raises(sqlite3.IntegrityError):
        connection.execute(
            """
            UPDATE stock_items
            SET available_quantity = available_quantity - 101,
                rented_quantity = rented_quantity + 101
            WHERE category_id = ?
            """,
            (categories["18x18"].id,),
        )
    connection.rollback()


def test_storage_rejects_unbalanced_counters(connection, categories):
    with pytest.raises(sqlite3.IntegrityError):
        connection.execute(
            "UPDATE stock_items SET damaged_quantity = 3 WHERE category_id = ?",
            (categories["18x18"].id,),
        )
    connection.rollback()
