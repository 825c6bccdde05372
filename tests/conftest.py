"""Shared fixtures: a migrated throwaway database per test."""

from __future__ import annotations

import pytest

from equipment_rental.db.connection import get_connection
from equipment_rental.db.migrations import apply_migrations
from equipment_rental.services.client_service import ClientService
from equipment_rental.services.inventory_service import InventoryService


@pytest.fixture(autouse=True)
def app_home(tmp_path, monkeypatch):
    """Keep logs, PDFs and config of every test inside its tmp dir."""
    home = tmp_path / "app_home"
    monkeypatch.setenv("EQUIPMENT_RENTAL_HOME", str(home))
    return home


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "rental.db"


@pytest.fixture
def connection(db_path):
    conn = get_connection(db_path)
    apply_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def client(connection):
    return ClientService(connection).create_client(
        "Ramesh Patel",
        "+91 98200 11111",
        company_name="Patel Builders",
        address="Sector 4, Ahmedabad",
        gst_number="24AAAAA0000A1Z5",
    )


@pytest.fixture
def other_client(connection):
    return ClientService(connection).create_client("Suresh Kumar", "+91 98200 22222")


@pytest.fixture
def categories(connection):
    """Seeded plate categories keyed by name (18x18 rents at 25/day)."""
    return {
        category.name: category
        for category in InventoryService(connection).list_categories()
    }


@pytest.fixture
def stock_of(connection):
    inventory = InventoryService(connection)

    def _stock(category):
        return inventory.get_stock(category.id)

    return _stock
