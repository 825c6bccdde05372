"""Custom service layer errors."""


class ServiceError(Exception):
    """Base error for service-layer failures."""


class ValidationError(ServiceError):
    """Raised when a business rule validation fails."""


class NotFoundError(ServiceError):
    """Raised when an entity is not found."""


class InsufficientStockError(ServiceError):
    """Raised when an issuance exceeds the available quantity of a category."""

    def __init__(self, category: str, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for {category}. "
            f"Available {available}, requested {requested}."
        )
        self.category = category
        self.available = available
        self.requested = requested


class StoreError(ServiceError):
    """Raised when the record store fails to read or write."""


class ConcurrencyError(ServiceError):
    """Raised when a record was modified by another writer in the meantime."""
