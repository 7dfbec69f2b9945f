# backend/database/adapters/turso.py
import asyncio
import logging
import sqlite3
from typing import Any, Dict, List, Optional, Sequence

import libsql_client
from sqlalchemy.dialects import sqlite as sqlite_dialect
from sqlalchemy.schema import CreateIndex, CreateTable

from database import mapping
from database.adapter import DatabaseAdapter, DatabaseConfig, Record
from database.adapters.sql import _duplicate_field
from database.errors import (
    DatabaseConnectionError, DuplicateKeyError, InvalidRecordError, StorageError
)
from models import Base, MODELS

logger = logging.getLogger(__name__)

ORDER_COLUMNS = {
    "user": "created_at",
    "product": "created_at",
    "order": "order_date",
    "cart": "created_at",
}


def schema_statements() -> List[str]:
    """DDL for the canonical schema, rendered for SQLite/LibSQL."""
    dialect = sqlite_dialect.dialect()
    statements = []
    for table in Base.metadata.sorted_tables:
        statements.append(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)).strip())
        for index in sorted(table.indexes, key=lambda i: i.name):
            statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)).strip())
    return statements


class TursoAdapter(DatabaseAdapter):
    """Edge-replicated LibSQL over libsql-client with hand-written SQL.

    LibSQL has no JSON or boolean column types: nested data is stored as JSON
    text, flags as 0/1 and timestamps as ISO text, all converted by the
    shared mapping table.
    """

    profile = mapping.TEXT_SQL

    def __init__(self, config: DatabaseConfig):
        super().__init__(config)
        self.client: Optional[libsql_client.Client] = None

    async def connect(self) -> None:
        if self.client is not None:
            return

        url = self.config.connection.uri
        if not url:
            raise DatabaseConnectionError("Turso database URL is not configured (TURSO_DATABASE_URL)")

        try:
            client = libsql_client.create_client(url, auth_token=self.config.connection.auth_token)
        except (libsql_client.LibsqlError, ValueError) as e:
            raise DatabaseConnectionError(f"turso connection failed: {e}") from e

        try:
            await asyncio.wait_for(self._provision(client), timeout=self.config.options.timeout_seconds)
        except asyncio.TimeoutError as e:
            await client.close()
            raise DatabaseConnectionError(
                f"turso connection timed out after {self.config.options.timeout} ms"
            ) from e
        except (libsql_client.LibsqlError, sqlite3.Error, OSError) as e:
            await client.close()
            logger.error("Turso connection error: %s", e)
            raise DatabaseConnectionError(f"turso connection failed: {e}") from e

        self.client = client
        logger.info("turso connected successfully")

    async def _provision(self, client: libsql_client.Client) -> None:
        for statement in schema_statements():
            await client.execute(statement)

    async def disconnect(self) -> None:
        if self.client is not None:
            await self.client.close()
            self.client = None
            logger.info("turso disconnected")

    async def ping(self) -> bool:
        if self.client is None:
            return False
        try:
            await self.client.execute("SELECT 1")
            return True
        except (libsql_client.LibsqlError, OSError) as e:
            logger.warning("turso ping failed: %s", e)
            return False

    # ---- helpers ----
    async def _execute(self, sql: str, args: Sequence[Any] = ()) -> libsql_client.ResultSet:
        # file: URLs run on the local sqlite3 driver and may surface its errors
        if self.client is None:
            raise DatabaseConnectionError("turso adapter is not connected")
        try:
            return await self.client.execute(sql, list(args))
        except (libsql_client.LibsqlError, sqlite3.Error) as e:
            message = str(e)
            if "UNIQUE constraint failed" in message:
                field = _duplicate_field(message)
                raise DuplicateKeyError(f"duplicate {field or 'key'}", field=field) from e
            if "constraint failed" in message.lower():
                raise InvalidRecordError(message) from e
            raise StorageError(message) from e
        except OSError as e:
            raise DatabaseConnectionError(f"turso request failed: {e}") from e

    @staticmethod
    def _rows(result: libsql_client.ResultSet) -> List[Dict[str, Any]]:
        columns = list(result.columns)
        return [{col: row[i] for i, col in enumerate(columns)} for row in result.rows]

    @staticmethod
    def _table(entity: str) -> str:
        return MODELS[entity].__tablename__

    @staticmethod
    def _pk(id: Any) -> Optional[int]:
        try:
            return int(id)
        except (TypeError, ValueError):
            return None

    async def _select(self, entity: str, where: Dict[str, Any], extra: str = "", limit: Optional[int] = None) -> List[Record]:
        clauses = [f"{column} = ?" for column in where]
        if extra:
            clauses.append(extra)
        sql = f"SELECT * FROM {self._table(entity)}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += f" ORDER BY {ORDER_COLUMNS[entity]} DESC, id DESC"
        if limit:
            sql += f" LIMIT {int(limit)}"
        result = await self._execute(sql, list(where.values()))
        return [mapping.from_storage(entity, row, self.profile) for row in self._rows(result)]

    async def _select_one(self, entity: str, where: Dict[str, Any]) -> Optional[Record]:
        rows = await self._select(entity, where, limit=1)
        return rows[0] if rows else None

    async def _create(self, entity: str, data: Record) -> Record:
        values = mapping.to_storage(entity, mapping.prepare_create(entity, data), self.profile)
        columns = list(values)
        sql = (
            f"INSERT INTO {self._table(entity)} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})"
        )
        result = await self._execute(sql, [values[c] for c in columns])
        return await self._select_one(entity, {"id": result.last_insert_rowid})

    async def _find_by_id(self, entity: str, id: str) -> Optional[Record]:
        pk = self._pk(id)
        if pk is None:
            return None
        return await self._select_one(entity, {"id": pk})

    async def _update(self, entity: str, id: str, updates: Record) -> Optional[Record]:
        pk = self._pk(id)
        if pk is None:
            return None
        values = mapping.to_storage(entity, updates or {}, self.profile)
        if values:
            assignments = ", ".join(f"{column} = ?" for column in values)
            await self._execute(
                f"UPDATE {self._table(entity)} SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                list(values.values()) + [pk],
            )
        return await self._select_one(entity, {"id": pk})

    async def _delete(self, entity: str, column: str, value: Any) -> bool:
        result = await self._execute(f"DELETE FROM {self._table(entity)} WHERE {column} = ?", [value])
        return result.rows_affected > 0

    async def _delete_by_id(self, entity: str, id: str) -> bool:
        pk = self._pk(id)
        if pk is None:
            return False
        return await self._delete(entity, "id", pk)

    # ---- users ----
    async def create_user(self, data: Record) -> Record:
        return await self._create("user", data)

    async def find_users(self, filter: Optional[Record] = None) -> List[Record]:
        return await self._select("user", mapping.filter_columns("user", filter, self.profile))

    async def find_user_by_id(self, id: str) -> Optional[Record]:
        return await self._find_by_id("user", id)

    async def find_user_by_email(self, email: str) -> Optional[Record]:
        return await self._select_one("user", {"email": email})

    async def find_user_by_username(self, username: str) -> Optional[Record]:
        return await self._select_one("user", {"username": username})

    async def update_user(self, id: str, updates: Record) -> Optional[Record]:
        return await self._update("user", id, updates)

    async def delete_user(self, id: str) -> bool:
        return await self._delete_by_id("user", id)

    # ---- products ----
    async def create_product(self, data: Record) -> Record:
        return await self._create("product", data)

    async def find_products(self, filter: Optional[Record] = None) -> List[Record]:
        extra = "stock > 0" if filter and filter.get("inStock") else ""
        return await self._select("product", mapping.filter_columns("product", filter, self.profile), extra)

    async def find_product_by_id(self, id: str) -> Optional[Record]:
        return await self._find_by_id("product", id)

    async def update_product(self, id: str, updates: Record) -> Optional[Record]:
        return await self._update("product", id, updates)

    async def delete_product(self, id: str) -> bool:
        return await self._delete_by_id("product", id)

    # ---- orders ----
    async def create_order(self, data: Record) -> Record:
        return await self._create("order", data)

    async def find_orders(self, filter: Optional[Record] = None) -> List[Record]:
        return await self._select("order", mapping.filter_columns("order", filter, self.profile))

    async def find_order_by_id(self, id: str) -> Optional[Record]:
        return await self._find_by_id("order", id)

    async def update_order(self, id: str, updates: Record) -> Optional[Record]:
        return await self._update("order", id, updates)

    async def delete_order(self, id: str) -> bool:
        return await self._delete_by_id("order", id)

    # ---- cart ----
    async def find_cart(self, customer_id: str) -> Optional[Record]:
        return await self._select_one("cart", {"customer_id": str(customer_id)})

    async def update_cart(self, customer_id: str, data: Record) -> Record:
        record = mapping.prepare_create("cart", {"items": (data or {}).get("items"), "customerId": customer_id})
        values = mapping.to_storage("cart", record, self.profile)
        await self._execute(
            "INSERT INTO carts (customer_id, items) VALUES (?, ?) "
            "ON CONFLICT(customer_id) DO UPDATE SET items = excluded.items, updated_at = CURRENT_TIMESTAMP",
            [values["customer_id"], values["items"]],
        )
        return await self.find_cart(customer_id)

    async def clear_cart(self, customer_id: str) -> bool:
        return await self._delete("cart", "customer_id", str(customer_id))
