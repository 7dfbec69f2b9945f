"""
Uniform storage contract implemented by every backend.

All methods are coroutines. Records go in and come out in the logical shape
described in ``database.mapping``; lookups that find nothing return ``None``
and deletes report whether a row was removed.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

DatabaseType = Literal["mongodb", "postgresql", "mysql", "sqlite", "turso"]
DATABASE_TYPES = ("mongodb", "postgresql", "mysql", "sqlite", "turso")

Record = Dict[str, Any]


class ConnectionOptions(BaseModel):
    uri: Optional[str] = None
    path: Optional[str] = None  # SQLite file, or ":memory:"
    auth_token: Optional[str] = None  # Turso


class AdapterOptions(BaseModel):
    pool_size: Optional[int] = Field(default=None, ge=1)
    timeout: int = Field(default=5000, ge=1, description="Connect timeout in milliseconds")
    retry_attempts: int = Field(default=3, ge=1)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000.0


class DatabaseConfig(BaseModel):
    type: DatabaseType
    connection: ConnectionOptions = Field(default_factory=ConnectionOptions)
    options: AdapterOptions = Field(default_factory=AdapterOptions)


class DatabaseAdapter(ABC):
    """Backend-agnostic CRUD over users, products, orders and carts."""

    def __init__(self, config: DatabaseConfig):
        self.config = config

    @property
    def backend(self) -> str:
        return self.config.type

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection or pool and provision the schema. Idempotent."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the connection or pool. Idempotent."""

    @abstractmethod
    async def ping(self) -> bool: ...

    # Users
    @abstractmethod
    async def create_user(self, data: Record) -> Record: ...

    @abstractmethod
    async def find_users(self, filter: Optional[Record] = None) -> List[Record]: ...

    @abstractmethod
    async def find_user_by_id(self, id: str) -> Optional[Record]: ...

    @abstractmethod
    async def find_user_by_email(self, email: str) -> Optional[Record]: ...

    @abstractmethod
    async def find_user_by_username(self, username: str) -> Optional[Record]: ...

    @abstractmethod
    async def update_user(self, id: str, updates: Record) -> Optional[Record]: ...

    @abstractmethod
    async def delete_user(self, id: str) -> bool: ...

    # Products
    @abstractmethod
    async def create_product(self, data: Record) -> Record: ...

    @abstractmethod
    async def find_products(self, filter: Optional[Record] = None) -> List[Record]: ...

    @abstractmethod
    async def find_product_by_id(self, id: str) -> Optional[Record]: ...

    @abstractmethod
    async def update_product(self, id: str, updates: Record) -> Optional[Record]: ...

    @abstractmethod
    async def delete_product(self, id: str) -> bool: ...

    # Orders
    @abstractmethod
    async def create_order(self, data: Record) -> Record: ...

    @abstractmethod
    async def find_orders(self, filter: Optional[Record] = None) -> List[Record]: ...

    @abstractmethod
    async def find_order_by_id(self, id: str) -> Optional[Record]: ...

    @abstractmethod
    async def update_order(self, id: str, updates: Record) -> Optional[Record]: ...

    @abstractmethod
    async def delete_order(self, id: str) -> bool: ...

    # Cart
    @abstractmethod
    async def find_cart(self, customer_id: str) -> Optional[Record]: ...

    @abstractmethod
    async def update_cart(self, customer_id: str, data: Record) -> Record:
        """Insert the customer's cart or overwrite its items (no merging)."""

    @abstractmethod
    async def clear_cart(self, customer_id: str) -> bool: ...

    # Older call sites use these names
    async def get_cart(self, customer_id: str) -> Optional[Record]:
        return await self.find_cart(customer_id)

    async def save_cart(self, customer_id: str, data: Record) -> Record:
        return await self.update_cart(customer_id, data)
