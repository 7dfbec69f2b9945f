# backend/database/adapters/sql.py
import asyncio
import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select, delete, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from database import mapping
from database.adapter import DatabaseAdapter, DatabaseConfig, Record
from database.errors import (
    DatabaseConnectionError, DuplicateKeyError, InvalidRecordError, StorageError
)
from models import Base, MODELS, User, Product, Order, Cart

logger = logging.getLogger(__name__)

# Unique column -> logical field reported on DuplicateKeyError
UNIQUE_COLUMNS = (
    ("username", "username"),
    ("email", "email"),
    ("sku", "sku"),
    ("customer_id", "customerId"),
)


def _is_unique_violation(message: str) -> bool:
    lowered = message.lower()
    return "unique" in lowered or "duplicate" in lowered


# Where each driver names the violated column, constraint or index
CONSTRAINT_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: \w+\.(\w+)"),  # SQLite / LibSQL
    re.compile(r'unique constraint "([^"]+)"'),  # PostgreSQL
    re.compile(r"for key '([^']+)'"),  # MySQL
)


def _duplicate_field(message: str) -> Optional[str]:
    """Logical field behind a unique violation, read from the constraint name only."""
    for pattern in CONSTRAINT_PATTERNS:
        match = pattern.search(message)
        if match:
            break
    else:
        return None
    # "users.ix_users_email" (MySQL 8), "users_email_key" (PostgreSQL default)
    key = match.group(1).lower().rsplit(".", 1)[-1]
    if key.endswith("_key"):
        key = key[: -len("_key")]
    for column, name in UNIQUE_COLUMNS:
        if key == column or key.endswith("_" + column):
            return name
    return None


class SQLAlchemyAdapter(DatabaseAdapter):
    """Relational adapter on the SQLAlchemy asyncio extension.

    Subclasses supply the connection URL, engine options and the dialect's
    upsert statement for carts. Every operation checks a connection out of
    the pool through its own session and hands it back when the ``async
    with`` block exits, errors included.
    """

    profile = mapping.RELATIONAL

    def __init__(self, config: DatabaseConfig):
        super().__init__(config)
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    # ---- engine specifics ----
    def _url(self) -> Union[str, URL]:
        raise NotImplementedError

    def _engine_options(self) -> Dict[str, Any]:
        return {}

    def _install_listeners(self, engine: AsyncEngine) -> None:
        pass

    def _upsert_cart_statement(self, values: Dict[str, Any]):
        raise NotImplementedError

    # ---- lifecycle ----
    async def connect(self) -> None:
        if self.engine is not None:
            return

        engine = create_async_engine(self._url(), **self._engine_options())
        self._install_listeners(engine)
        try:
            await asyncio.wait_for(self._provision(engine), timeout=self.config.options.timeout_seconds)
        except asyncio.TimeoutError as e:
            await engine.dispose()
            logger.error("%s connection timed out after %d ms", self.backend, self.config.options.timeout)
            raise DatabaseConnectionError(
                f"{self.backend} connection timed out after {self.config.options.timeout} ms"
            ) from e
        except (SQLAlchemyError, OSError) as e:
            await engine.dispose()
            logger.error("%s connection error: %s", self.backend, e)
            raise DatabaseConnectionError(f"{self.backend} connection failed: {e}") from e

        self.engine = engine
        self.session_factory = async_sessionmaker(engine, expire_on_commit=False)
        logger.info("%s connected successfully", self.backend)

    async def _provision(self, engine: AsyncEngine) -> None:
        # CREATE TABLE / INDEX IF NOT EXISTS for the canonical schema
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def disconnect(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            logger.info("%s disconnected", self.backend)

    async def ping(self) -> bool:
        if self.engine is None:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning("%s ping failed: %s", self.backend, e)
            return False

    # ---- helpers ----
    def _sessions(self) -> async_sessionmaker:
        if self.session_factory is None:
            raise DatabaseConnectionError(f"{self.backend} adapter is not connected")
        return self.session_factory

    @contextmanager
    def _translate_errors(self, action: str):
        try:
            yield
        except StorageError:
            raise
        except IntegrityError as e:
            message = str(e.orig)
            if _is_unique_violation(message):
                field = _duplicate_field(message)
                raise DuplicateKeyError(f"{action}: duplicate {field or 'key'}", field=field) from e
            raise InvalidRecordError(f"{action}: {message}") from e
        except DBAPIError as e:
            if e.connection_invalidated:
                raise DatabaseConnectionError(f"{action}: connection lost") from e
            raise StorageError(f"{action}: {e.orig}") from e
        except OSError as e:
            raise DatabaseConnectionError(f"{action}: {e}") from e
        except (SQLAlchemyError, ValueError) as e:
            raise StorageError(f"{action}: {e}") from e

    @staticmethod
    def _pk(id: Any) -> Optional[int]:
        try:
            return int(id)
        except (TypeError, ValueError):
            return None

    def _normalize(self, entity: str, obj: Any) -> Optional[Record]:
        if obj is None:
            return None
        row = {c.key: getattr(obj, c.key) for c in obj.__table__.columns}
        return mapping.from_storage(entity, row, self.profile)

    def _conditions(self, entity: str, filter: Optional[Record]) -> list:
        model = MODELS[entity]
        return [
            getattr(model, column) == value
            for column, value in mapping.filter_columns(entity, filter, self.profile).items()
        ]

    async def _create(self, entity: str, data: Record) -> Record:
        values = mapping.to_storage(entity, mapping.prepare_create(entity, data), self.profile)
        with self._translate_errors(f"create {entity}"):
            async with self._sessions()() as session:
                obj = MODELS[entity](**values)
                session.add(obj)
                await session.commit()
                await session.refresh(obj)
                return self._normalize(entity, obj)

    async def _find_one(self, entity: str, *conditions) -> Optional[Record]:
        model = MODELS[entity]
        with self._translate_errors(f"find {entity}"):
            async with self._sessions()() as session:
                obj = await session.scalar(select(model).where(*conditions).limit(1))
                return self._normalize(entity, obj)

    async def _find_by_id(self, entity: str, id: str) -> Optional[Record]:
        pk = self._pk(id)
        if pk is None:
            return None
        return await self._find_one(entity, MODELS[entity].id == pk)

    async def _find_many(self, entity: str, conditions: list, order_by) -> List[Record]:
        model = MODELS[entity]
        stmt = select(model).where(*conditions).order_by(order_by.desc(), model.id.desc())
        with self._translate_errors(f"find {entity}"):
            async with self._sessions()() as session:
                rows = (await session.scalars(stmt)).all()
                return [self._normalize(entity, obj) for obj in rows]

    async def _update(self, entity: str, id: str, updates: Record) -> Optional[Record]:
        pk = self._pk(id)
        if pk is None:
            return None
        values = mapping.to_storage(entity, updates or {}, self.profile)
        with self._translate_errors(f"update {entity}"):
            async with self._sessions()() as session:
                obj = await session.get(MODELS[entity], pk)
                if obj is None:
                    return None
                if not values:
                    logger.debug("No valid fields to update for %s %s", entity, id)
                    return self._normalize(entity, obj)
                for column, value in values.items():
                    setattr(obj, column, value)
                await session.commit()
                await session.refresh(obj)
                return self._normalize(entity, obj)

    async def _delete(self, entity: str, *conditions) -> bool:
        model = MODELS[entity]
        with self._translate_errors(f"delete {entity}"):
            async with self._sessions()() as session:
                result = await session.execute(delete(model).where(*conditions))
                await session.commit()
                return result.rowcount > 0

    async def _delete_by_id(self, entity: str, id: str) -> bool:
        pk = self._pk(id)
        if pk is None:
            return False
        return await self._delete(entity, MODELS[entity].id == pk)

    # ---- users ----
    async def create_user(self, data: Record) -> Record:
        return await self._create("user", data)

    async def find_users(self, filter: Optional[Record] = None) -> List[Record]:
        return await self._find_many("user", self._conditions("user", filter), User.created_at)

    async def find_user_by_id(self, id: str) -> Optional[Record]:
        return await self._find_by_id("user", id)

    async def find_user_by_email(self, email: str) -> Optional[Record]:
        return await self._find_one("user", User.email == email)

    async def find_user_by_username(self, username: str) -> Optional[Record]:
        return await self._find_one("user", User.username == username)

    async def update_user(self, id: str, updates: Record) -> Optional[Record]:
        return await self._update("user", id, updates)

    async def delete_user(self, id: str) -> bool:
        return await self._delete_by_id("user", id)

    # ---- products ----
    async def create_product(self, data: Record) -> Record:
        return await self._create("product", data)

    async def find_products(self, filter: Optional[Record] = None) -> List[Record]:
        conditions = self._conditions("product", filter)
        if filter and filter.get("inStock"):
            conditions.append(Product.stock > 0)
        return await self._find_many("product", conditions, Product.created_at)

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
        return await self._find_many("order", self._conditions("order", filter), Order.order_date)

    async def find_order_by_id(self, id: str) -> Optional[Record]:
        return await self._find_by_id("order", id)

    async def update_order(self, id: str, updates: Record) -> Optional[Record]:
        return await self._update("order", id, updates)

    async def delete_order(self, id: str) -> bool:
        return await self._delete_by_id("order", id)

    # ---- cart ----
    async def find_cart(self, customer_id: str) -> Optional[Record]:
        return await self._find_one("cart", Cart.customer_id == str(customer_id))

    async def update_cart(self, customer_id: str, data: Record) -> Record:
        record = mapping.prepare_create("cart", {"items": (data or {}).get("items"), "customerId": customer_id})
        values = mapping.to_storage("cart", record, self.profile)
        with self._translate_errors("update cart"):
            async with self._sessions()() as session:
                await session.execute(self._upsert_cart_statement(values))
                await session.commit()
        return await self.find_cart(customer_id)

    async def clear_cart(self, customer_id: str) -> bool:
        return await self._delete("cart", Cart.customer_id == str(customer_id))
