# backend/database/adapters/postgresql.py
from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.engine import URL, make_url

from database.adapters.sql import SQLAlchemyAdapter
from database.errors import DatabaseConnectionError
from models import Cart


class PostgreSQLAdapter(SQLAlchemyAdapter):
    """PostgreSQL through asyncpg; nested data lives in JSONB columns."""

    def __init__(self, config):
        super().__init__(config)
        self._ssl = None

    def _url(self) -> URL:
        uri = self.config.connection.uri
        if not uri:
            raise DatabaseConnectionError("PostgreSQL URI is not configured (POSTGRES_URL or DATABASE_URL)")

        # Hosted providers hand out postgres:// URLs
        if uri.startswith("postgres://"):
            uri = uri.replace("postgres://", "postgresql://", 1)
        url = make_url(uri).set(drivername="postgresql+asyncpg")

        # asyncpg takes ``ssl`` rather than libpq's ``sslmode``
        sslmode = url.query.get("sslmode")
        if sslmode:
            url = url.difference_update_query(["sslmode"])
            self._ssl = sslmode if sslmode != "disable" else False
        return url

    def _engine_options(self) -> Dict[str, Any]:
        options = self.config.options
        connect_args: Dict[str, Any] = {"timeout": options.timeout_seconds}
        if self._ssl is not None:
            connect_args["ssl"] = self._ssl
        return {
            "pool_size": options.pool_size or 20,
            "pool_pre_ping": True,
            "connect_args": connect_args,
        }

    def _upsert_cart_statement(self, values: Dict[str, Any]):
        stmt = pg_insert(Cart).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[Cart.customer_id],
            set_={"items": stmt.excluded["items"], "updated_at": func.now()},
        )
