from typing import Optional


class StorageError(Exception):
    """Base class for every failure surfaced by a database adapter."""


class DatabaseConnectionError(StorageError, ConnectionError):
    """The engine is unreachable or misconfigured."""


class DuplicateKeyError(StorageError):
    """A unique field (email, username, sku, cart customer) already exists."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(StorageError):
    """Raised by callers when a lookup returned nothing.

    Adapters themselves return ``None`` for missing records.
    """

    def __init__(self, entity: str, key: str):
        super().__init__(f"{entity} {key} not found")
        self.entity = entity
        self.key = key


class InvalidRecordError(StorageError):
    """A record violates the canonical schema (enum, required field, invariant)."""
