# backend/database/adapters/mysql.py
from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.engine import URL, make_url

from database.adapters.sql import SQLAlchemyAdapter
from database.errors import DatabaseConnectionError
from models import Cart


class MySQLAdapter(SQLAlchemyAdapter):
    """MySQL / MariaDB through aiomysql; nested data lives in JSON columns."""

    def _url(self) -> URL:
        uri = self.config.connection.uri
        if not uri:
            raise DatabaseConnectionError("MySQL URI is not configured (MYSQL_URL or DATABASE_URL)")
        url = make_url(uri).set(drivername="mysql+aiomysql")
        if "charset" not in url.query:
            url = url.update_query_dict({"charset": "utf8mb4"})
        return url

    def _engine_options(self) -> Dict[str, Any]:
        options = self.config.options
        return {
            "pool_size": options.pool_size or 20,
            "pool_pre_ping": True,
            # MySQL drops idle connections after wait_timeout
            "pool_recycle": 3600,
            "connect_args": {"connect_timeout": max(1, round(options.timeout_seconds))},
        }

    def _upsert_cart_statement(self, values: Dict[str, Any]):
        stmt = mysql_insert(Cart).values(**values)
        return stmt.on_duplicate_key_update(items=stmt.inserted["items"], updated_at=func.now())
