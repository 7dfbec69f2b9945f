# backend/database/adapters/sqlite.py
import logging
from pathlib import Path
from typing import Any, Dict

from sqlalchemy import event, func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncEngine

from database.adapters.sql import SQLAlchemyAdapter
from models import Cart

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


class SQLiteAdapter(SQLAlchemyAdapter):
    """Embedded file store through aiosqlite.

    JSON columns are stored as text and booleans as 0/1; the SQLAlchemy
    column types convert both ways.
    """

    @property
    def path(self) -> str:
        return self.config.connection.path or MEMORY

    @property
    def in_memory(self) -> bool:
        return self.path == MEMORY

    def _url(self) -> str:
        if self.in_memory:
            return "sqlite+aiosqlite:///:memory:"
        # Ensure directory exists
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        logger.debug("SQLite database file: %s", self.path)
        return f"sqlite+aiosqlite:///{self.path}"

    def _engine_options(self) -> Dict[str, Any]:
        return {"connect_args": {"timeout": self.config.options.timeout_seconds}}

    def _install_listeners(self, engine: AsyncEngine) -> None:
        wal = not self.in_memory

        # Enable foreign keys and WAL mode on every new DBAPI connection
        @event.listens_for(engine.sync_engine, "connect")
        def _set_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if wal:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    def _upsert_cart_statement(self, values: Dict[str, Any]):
        stmt = sqlite_insert(Cart).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[Cart.customer_id],
            set_={"items": stmt.excluded["items"], "updated_at": func.now()},
        )
