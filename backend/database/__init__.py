"""
Multi-backend storage layer for the farm marketplace.

    provider = DatabaseProvider(config_from_settings(Settings()))
    db = await connect_with_retry(provider)
    product = await db.create_product({...})
    await provider.disconnect()

Concrete adapters (MongoDB, PostgreSQL, MySQL, SQLite, Turso) live in
``database.adapters`` and are imported on demand by the factory.
"""
from database.adapter import (
    AdapterOptions, ConnectionOptions, DatabaseAdapter, DatabaseConfig, DatabaseType, DATABASE_TYPES
)
from database.errors import (
    DatabaseConnectionError, DuplicateKeyError, InvalidRecordError, NotFoundError, StorageError
)
from database.factory import config_from_settings, connect_with_retry, create_adapter
from database.provider import DatabaseProvider, get_db

__all__ = [
    "AdapterOptions",
    "ConnectionOptions",
    "DatabaseAdapter",
    "DatabaseConfig",
    "DatabaseType",
    "DATABASE_TYPES",
    "DatabaseConnectionError",
    "DuplicateKeyError",
    "InvalidRecordError",
    "NotFoundError",
    "StorageError",
    "config_from_settings",
    "connect_with_retry",
    "create_adapter",
    "DatabaseProvider",
    "get_db",
]
