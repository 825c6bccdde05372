"""Client records."""

from __future__ import annotations

import sqlite3
from typing import Optional

from equipment_rental.db.connection import transaction
from equipment_rental.domain.models import Client
from equipment_rental.repositories.client_repo import ClientRepo
from equipment_rental.services.errors import NotFoundError, ValidationError


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ClientService:
    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._repo = ClientRepo(connection)

    def _validate(self, name: str, phone: str) -> tuple[str, str]:
        name = _clean(name) or ""
        phone = _clean(phone) or ""
        if not name:
            raise ValidationError("Client name is required.")
        if not phone:
            raise ValidationError("Client phone is required.")
        return name, phone

    def create_client(
        self,
        name: str,
        phone: str,
        company_name: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
        gst_number: Optional[str] = None,
    ) -> Client:
        name, phone = self._validate(name, phone)
        with transaction(self._connection):
            return self._repo.create(
                name,
                phone,
                company_name=_clean(company_name),
                email=_clean(email),
                address=_clean(address),
                gst_number=_clean(gst_number),
            )

    def update_client(
        self,
        client_id: int,
        name: str,
        phone: str,
        company_name: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
        gst_number: Optional[str] = None,
    ) -> Client:
        name, phone = self._validate(name, phone)
        with transaction(self._connection):
            client = self._repo.update(
                client_id,
                name,
                phone,
                company_name=_clean(company_name),
                email=_clean(email),
                address=_clean(address),
                gst_number=_clean(gst_number),
            )
        if client is None:
            raise NotFoundError(f"Client {client_id} not found.")
        return client

    def get_client(self, client_id: int) -> Client:
        client = self._repo.get_by_id(client_id)
        if client is None:
            raise NotFoundError(f"Client {client_id} not found.")
        return client

    def list_clients(self, search: Optional[str] = None) -> list[Client]:
        if search and search.strip():
            return self._repo.search(search)
        return self._repo.list_all()
