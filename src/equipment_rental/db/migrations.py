"""Database migrations for SQLite schema versioning."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from equipment_rental.config import DEFAULT_CATEGORIES
from equipment_rental.db.connection import transaction
from equipment_rental.logging_config import get_logger


@dataclass(frozen=True)
class Migration:
    version: int
    script: str
    description: str = ""


def _default_categories_script() -> str:
    statements: list[str] = []
    for seed in DEFAULT_CATEGORIES:
        name = seed.name.replace("'", "''")
        description = seed.description.replace("'", "''")
        statements.append(
            "INSERT OR IGNORE INTO stock_categories (name, description, daily_rate, created_at) "
            f"VALUES ('{name}', '{description}', {seed.daily_rate:.2f}, datetime('now'));"
        )
        statements.append(
            "INSERT OR IGNORE INTO stock_items "
            "(category_id, total_quantity, available_quantity, created_at, updated_at) "
            f"SELECT id, {seed.initial_quantity}, {seed.initial_quantity}, "
            "datetime('now'), datetime('now') "
            f"FROM stock_categories WHERE name = '{name}';"
        )
    return "\n".join(statements)


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        description="initial schema",
        script="""
        CREATE TABLE IF NOT EXISTS clients (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            company_name TEXT,
            phone TEXT NOT NULL,
            email TEXT,
            address TEXT,
            gst_number TEXT,
            created_at TEXT,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS stock_categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            description TEXT,
            daily_rate REAL NOT NULL DEFAULT 0 CHECK (daily_rate >= 0),
            size_specification TEXT,
            weight_kg REAL,
            material TEXT,
            created_at TEXT
        );

        CREATE TABLE IF NOT EXISTS stock_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            category_id INTEGER NOT NULL UNIQUE,
            total_quantity INTEGER NOT NULL DEFAULT 0 CHECK (total_quantity >= 0),
            available_quantity INTEGER NOT NULL DEFAULT 0 CHECK (available_quantity >= 0),
            rented_quantity INTEGER NOT NULL DEFAULT 0 CHECK (rented_quantity >= 0),
            damaged_quantity INTEGER NOT NULL DEFAULT 0 CHECK (damaged_quantity >= 0),
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY (category_id) REFERENCES stock_categories(id),
            CHECK (
                total_quantity = available_quantity + rented_quantity + damaged_quantity
            )
        );

        CREATE TABLE IF NOT EXISTS rentals (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            client_id INTEGER NOT NULL,
            rental_date TEXT NOT NULL,
            expected_return_date TEXT,
            actual_return_date TEXT,
            status TEXT NOT NULL DEFAULT 'active'
                CHECK (status IN ('active', 'partially_returned', 'completed', 'cancelled')),
            total_amount REAL NOT NULL DEFAULT 0 CHECK (total_amount >= 0),
            notes TEXT,
            signature_data TEXT,
            version INTEGER NOT NULL DEFAULT 1,
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY (client_id) REFERENCES clients(id)
        );

        CREATE TABLE IF NOT EXISTS rental_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            rental_id INTEGER NOT NULL,
            category_id INTEGER NOT NULL,
            quantity INTEGER NOT NULL CHECK (quantity > 0),
            daily_rate REAL NOT NULL CHECK (daily_rate >= 0),
            returned_quantity INTEGER NOT NULL DEFAULT 0,
            created_at TEXT,
            FOREIGN KEY (rental_id) REFERENCES rentals(id) ON DELETE CASCADE,
            FOREIGN KEY (category_id) REFERENCES stock_categories(id),
            CHECK (returned_quantity >= 0 AND returned_quantity <= quantity)
        );

        CREATE TABLE IF NOT EXISTS returns (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            rental_id INTEGER NOT NULL,
            return_date TEXT NOT NULL,
            total_damage_cost REAL NOT NULL DEFAULT 0 CHECK (total_damage_cost >= 0),
            notes TEXT,
            inspector_name TEXT,
            created_at TEXT,
            FOREIGN KEY (rental_id) REFERENCES rentals(id)
        );

        CREATE TABLE IF NOT EXISTS return_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            return_id INTEGER NOT NULL,
            rental_item_id INTEGER NOT NULL,
            returned_quantity INTEGER NOT NULL CHECK (returned_quantity > 0),
            condition TEXT NOT NULL DEFAULT 'good'
                CHECK (condition IN ('good', 'damaged', 'lost')),
            damage_cost REAL NOT NULL DEFAULT 0 CHECK (damage_cost >= 0),
            damage_description TEXT,
            damage_photos TEXT NOT NULL DEFAULT '[]',
            created_at TEXT,
            FOREIGN KEY (return_id) REFERENCES returns(id) ON DELETE CASCADE,
            FOREIGN KEY (rental_item_id) REFERENCES rental_items(id)
        );

        CREATE TABLE IF NOT EXISTS payments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            client_id INTEGER NOT NULL,
            rental_id INTEGER,
            amount REAL NOT NULL CHECK (amount > 0),
            payment_date TEXT NOT NULL,
            payment_method TEXT NOT NULL DEFAULT 'cash'
                CHECK (payment_method IN ('cash', 'bank_transfer', 'cheque', 'upi')),
            reference_number TEXT,
            notes TEXT,
            created_at TEXT,
            FOREIGN KEY (client_id) REFERENCES clients(id),
            FOREIGN KEY (rental_id) REFERENCES rentals(id)
        );

        CREATE TABLE IF NOT EXISTS invoices (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            invoice_number TEXT NOT NULL UNIQUE,
            client_id INTEGER NOT NULL,
            rental_id INTEGER,
            issue_date TEXT NOT NULL,
            due_date TEXT,
            subtotal REAL NOT NULL CHECK (subtotal >= 0),
            tax_rate REAL NOT NULL DEFAULT 0 CHECK (tax_rate >= 0),
            tax_amount REAL NOT NULL DEFAULT 0,
            total_amount REAL NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'paid', 'overdue', 'cancelled')),
            pdf_path TEXT,
            created_at TEXT,
            FOREIGN KEY (client_id) REFERENCES clients(id),
            FOREIGN KEY (rental_id) REFERENCES rentals(id)
        );

        CREATE INDEX IF NOT EXISTS idx_rentals_client_status
            ON rentals(client_id, status);
        CREATE INDEX IF NOT EXISTS idx_rentals_rental_date
            ON rentals(rental_date);
        CREATE INDEX IF NOT EXISTS idx_rental_items_rental_id
            ON rental_items(rental_id);
        CREATE INDEX IF NOT EXISTS idx_returns_rental_id
            ON returns(rental_id);
        CREATE INDEX IF NOT EXISTS idx_return_items_return_id
            ON return_items(return_id);
        CREATE INDEX IF NOT EXISTS idx_payments_client_date
            ON payments(client_id, payment_date);
        CREATE INDEX IF NOT EXISTS idx_invoices_client_id
            ON invoices(client_id);
        """,
    ),
    Migration(
        version=2,
        description="default plate categories",
        script=_default_categories_script(),
    ),
]


def _fetch_schema_version(connection: sqlite3.Connection) -> int:
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS app_meta (
            schema_version INTEGER NOT NULL
        );
        """
    )
    row = connection.execute(
        "SELECT schema_version FROM app_meta LIMIT 1"
    ).fetchone()
    if row is None:
        connection.execute("INSERT INTO app_meta (schema_version) VALUES (0)")
        return 0
    return int(row[0])


def current_schema_version(connection: sqlite3.Connection) -> int:
    with transaction(connection):
        return _fetch_schema_version(connection)


def apply_migrations(connection: sqlite3.Connection) -> int:
    """Apply pending database migrations and return the resulting version."""
    logger = get_logger("migrations")
    current_version = current_schema_version(connection)

    for migration in MIGRATIONS:
        if migration.version <= current_version:
            continue
        # executescript commits any open transaction first, so the version
        # bump lives inside the script to keep each migration atomic.
        try:
            connection.executescript(
                "BEGIN;\n"
                f"{migration.script}\n"
                f"UPDATE app_meta SET schema_version = {migration.version};\n"
                "COMMIT;"
            )
        except sqlite3.Error:
            if connection.in_transaction:
                connection.rollback()
            logger.exception("Migration %s failed", migration.version)
            raise
        logger.info(
            "Applied migration %s (%s)", migration.version, migration.description
        )
        current_version = migration.version
    return current_version
