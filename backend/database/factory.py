"""
Backend selection: environment settings -> DatabaseConfig -> adapter.
"""
import asyncio
import importlib
import logging
from typing import TYPE_CHECKING, Dict, Optional

from config import Settings
from database.adapter import (
    AdapterOptions, ConnectionOptions, DatabaseAdapter, DatabaseConfig, DATABASE_TYPES
)
from database.adapters import ADAPTER_CLASSES
from database.errors import StorageError

if TYPE_CHECKING:
    from database.provider import DatabaseProvider

logger = logging.getLogger(__name__)

# Per-engine connection defaults: pool size, connect timeout (ms), retries
ENGINE_DEFAULTS: Dict[str, AdapterOptions] = {
    "mongodb": AdapterOptions(pool_size=50, timeout=1500, retry_attempts=3),
    "postgresql": AdapterOptions(pool_size=20, timeout=5000, retry_attempts=3),
    "mysql": AdapterOptions(pool_size=20, timeout=5000, retry_attempts=3),
    "sqlite": AdapterOptions(timeout=1000, retry_attempts=3),
    "turso": AdapterOptions(timeout=3000, retry_attempts=3),
}


def _connection_for(db_type: str, settings: Settings) -> ConnectionOptions:
    if db_type == "mongodb":
        return ConnectionOptions(uri=settings.MONGODB_URI)
    if db_type == "postgresql":
        return ConnectionOptions(uri=settings.POSTGRES_URL or settings.DATABASE_URL)
    if db_type == "mysql":
        return ConnectionOptions(uri=settings.MYSQL_URL or settings.DATABASE_URL)
    if db_type == "sqlite":
        # The serverless filesystem is read-only, keep the database in memory there
        return ConnectionOptions(path=":memory:" if settings.VERCEL else settings.SQLITE_PATH)
    return ConnectionOptions(uri=settings.TURSO_DATABASE_URL, auth_token=settings.TURSO_AUTH_TOKEN)


def config_from_settings(settings: Settings) -> DatabaseConfig:
    db_type = (settings.DATABASE_TYPE or "").strip().lower()
    if db_type not in DATABASE_TYPES:
        raise StorageError(f"No configuration found for database type: {settings.DATABASE_TYPE}")

    defaults = ENGINE_DEFAULTS[db_type]
    options = AdapterOptions(
        pool_size=settings.DB_POOL_SIZE or defaults.pool_size,
        timeout=settings.DB_TIMEOUT_MS or defaults.timeout,
        retry_attempts=settings.DB_RETRY_ATTEMPTS or defaults.retry_attempts,
    )
    logger.info("Using database type: %s", db_type)
    return DatabaseConfig(type=db_type, connection=_connection_for(db_type, settings), options=options)


def create_adapter(config: DatabaseConfig) -> DatabaseAdapter:
    """Instantiate (but do not connect) the adapter for ``config.type``."""
    target = ADAPTER_CLASSES.get(config.type)
    if target is None:
        raise StorageError(f"Unsupported database type: {config.type}")
    module_name, class_name = target.split(":")
    adapter_class = getattr(importlib.import_module(module_name), class_name)
    return adapter_class(config)


async def connect_with_retry(
    provider: "DatabaseProvider",
    max_retries: Optional[int] = None,
    delay: float = 1.0,
) -> DatabaseAdapter:
    """Get a connected adapter, retrying the initial connection with exponential backoff."""
    attempts = max_retries or provider.config.options.retry_attempts
    last_error: Optional[Exception] = None

    for attempt in range(1, attempts + 1):
        try:
            adapter = await provider.get_adapter()
            logger.info("Database connected successfully on attempt %d", attempt)
            return adapter
        except StorageError as e:
            last_error = e
            logger.warning("Database connection attempt %d failed: %s", attempt, e)
            if attempt < attempts:
                logger.info("Retrying in %.1fs...", delay)
                await asyncio.sleep(delay)
                delay *= 2

    raise StorageError(
        f"Failed to connect to database after {attempts} attempts. Last error: {last_error}"
    ) from last_error
