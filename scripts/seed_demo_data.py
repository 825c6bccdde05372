"""Seed demo data into the EquipmentRental SQLite database."""

from __future__ import annotations

import argparse
import random
import sys
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from equipment_rental.db.connection import get_connection  # noqa: E402
from equipment_rental.db.migrations import apply_migrations  # noqa: E402
from equipment_rental.domain.models import PaymentMethod, ReturnCondition  # noqa: E402
from equipment_rental.logging_config import configure_logging, get_logger  # noqa: E402
from equipment_rental.paths import get_db_path  # noqa: E402
from equipment_rental.services.client_service import ClientService  # noqa: E402
from equipment_rental.services.inventory_service import InventoryService  # noqa: E402
from equipment_rental.services.payment_service import PaymentService  # noqa: E402
from equipment_rental.services.rental_service import RentalService  # noqa: E402
from equipment_rental.services.return_service import (  # noqa: E402
    ReturnService,
    ReturnSubmission,
)

DEFAULT_SEED = 42


@dataclass(frozen=True)
class ClientSeed:
    name: str
    phone: str
    company_name: str
    address: str


CLIENTS = (
    ClientSeed("Ramesh Patel", "+91 98200 11111", "Patel Builders", "Sector 4, Ahmedabad"),
    ClientSeed("Suresh Kumar", "+91 98200 22222", "Kumar Constructions", "MG Road, Pune"),
    ClientSeed("Anita Desai", "+91 98200 33333", "Desai Infra", "Ring Road, Surat"),
)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo data for EquipmentRental")
    parser.add_argument("--db", type=Path, default=None, help="database file to seed")
    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_SEED,
        help="random seed for repeatable data",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    configure_logging()
    logger = get_logger("seed_demo_data")
    rng = random.Random(args.seed)

    connection = get_connection(args.db or get_db_path())
    try:
        apply_migrations(connection)
        clients = ClientService(connection)
        inventory = InventoryService(connection)
        rentals = RentalService(connection)
        returns = ReturnService(connection)
        payments = PaymentService(connection)

        categories = inventory.list_categories()
        today = date.today()
        for index, seed in enumerate(CLIENTS):
            client = clients.create_client(
                seed.name,
                seed.phone,
                company_name=seed.company_name,
                address=seed.address,
            )
            picked = rng.sample(categories, k=2)
            rental_date = today - timedelta(days=10 + index * 3)
            rental = rentals.issue_rental(
                int(client.id),
                rental_date,
                [
                    {"category_id": category.id, "quantity": rng.randint(5, 20)}
                    for category in picked
                ],
                expected_return_date=rental_date + timedelta(days=7),
                notes="Seed demo",
            )
            if index == 0:
                first = rental.items[0]
                returns.process_return(
                    int(rental.id),
                    today,
                    [
                        ReturnSubmission(int(first.id), first.quantity - 1),
                        ReturnSubmission(
                            int(first.id),
                            1,
                            ReturnCondition.DAMAGED,
                            damage_cost=250.0,
                            damage_description="Bent edge",
                        ),
                    ],
                    inspector_name="Seed inspector",
                )
            payments.record_payment(
                int(client.id),
                round(rental.total_amount * rng.uniform(0.5, 2.0), 2),
                rng.choice(list(PaymentMethod)),
                payment_date=rental_date + timedelta(days=1),
                rental_id=int(rental.id),
            )
        logger.info("Seeded %s demo clients", len(CLIENTS))
        print(f"Seeded {len(CLIENTS)} clients with rentals and payments.")
    finally:
        connection.close()


if __name__ == "__main__":
    main()
