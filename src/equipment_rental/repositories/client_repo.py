"""Repository for client persistence."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List, Optional

from equipment_rental.domain.models import Client
from equipment_rental.logging_config import get_logger
from equipment_rental.repositories.mappers import client_from_row
from equipment_rental.services.errors import StoreError


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class ClientRepo:
    """CRUD operations for clients."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(
        self,
        name: str,
        phone: str,
        company_name: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
        gst_number: Optional[str] = None,
    ) -> Client:
        created_at = _now_iso()
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO clients (
                    name,
                    company_name,
                    phone,
                    email,
                    address,
                    gst_number,
                    created_at,
                    updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    name,
                    company_name,
                    phone,
                    email,
                    address,
                    gst_number,
                    created_at,
                    created_at,
                ),
            )
        except sqlite3.Error as exc:
            self._logger.exception("Failed to create client")
            raise StoreError("Could not save client.") from exc

        return Client(
            id=cursor.lastrowid,
            name=name,
            phone=phone,
            company_name=company_name,
            email=email,
            address=address,
            gst_number=gst_number,
            created_at=created_at,
            updated_at=created_at,
        )

    def update(
        self,
        client_id: int,
        name: str,
        phone: str,
        company_name: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
        gst_number: Optional[str] = None,
    ) -> Optional[Client]:
        updated_at = _now_iso()
        try:
            cursor = self._connection.execute(
                """
                UPDATE clients
                SET
                    name = ?,
                    company_name = ?,
                    phone = ?,
                    email = ?,
                    address = ?,
                    gst_number = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    name,
                    company_name,
                    phone,
                    email,
                    address,
                    gst_number,
                    updated_at,
                    client_id,
                ),
            )
        except sqlite3.Error as exc:
            self._logger.exception("Failed to update client id=%s", client_id)
            raise StoreError("Could not update client.") from exc

        if cursor.rowcount == 0:
            return None
        return self.get_by_id(client_id)

    def get_by_id(self, client_id: int) -> Optional[Client]:
        try:
            row = self._connection.execute(
                "SELECT * FROM clients WHERE id = ?",
                (client_id,),
            ).fetchone()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to fetch client id=%s", client_id)
            raise StoreError("Could not load client.") from exc
        return client_from_row(row) if row else None

    def list_all(self) -> List[Client]:
        try:
            rows = self._connection.execute(
                "SELECT * FROM clients ORDER BY name COLLATE NOCASE, id"
            ).fetchall()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to list clients")
            raise StoreError("Could not load clients.") from exc
        return [client_from_row(row) for row in rows]

    def search(self, term: str) -> List[Client]:
        pattern = f"%{term.strip()}%"
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM clients
                WHERE name LIKE ?
                   OR phone LIKE ?
                   OR COALESCE(company_name, '') LIKE ?
                ORDER BY name COLLATE NOCASE, id
                """,
                (pattern, pattern, pattern),
            ).fetchall()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to search clients")
            raise StoreError("Could not search clients.") from exc
        return [client_from_row(row) for row in rows]

    def count(self) -> int:
        try:
            row = self._connection.execute(
                "SELECT COUNT(*) AS total FROM clients"
            ).fetchone()
        except sqlite3.Error as exc:
            self._logger.exception("Failed to count clients")
            raise StoreError("Could not count clients.") from exc
        return int(row["total"]) if row else 0
