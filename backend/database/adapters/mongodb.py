# backend/database/adapters/mongodb.py
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING, IndexModel, ReturnDocument
from pymongo import errors as mongo_errors

from database import mapping
from database.adapter import DatabaseAdapter, DatabaseConfig, Record
from database.errors import DatabaseConnectionError, DuplicateKeyError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "farm_ecommerce"

COLLECTIONS = {
    "user": "users",
    "product": "products",
    "order": "orders",
    "cart": "carts",
}

# Sort key for find_* results, newest first
SORT_FIELDS = {
    "user": "createdAt",
    "product": "createdAt",
    "order": "orderDate",
    "cart": "createdAt",
}

INDEXES = {
    "user": [
        IndexModel([("username", ASCENDING)], unique=True),
        IndexModel([("email", ASCENDING)], unique=True),
        IndexModel([("role", ASCENDING)]),
        IndexModel([("email", ASCENDING), ("role", ASCENDING)]),
    ],
    "product": [
        IndexModel([("sku", ASCENDING)], unique=True),
        IndexModel([("name", ASCENDING)]),
        IndexModel([("category", ASCENDING)]),
        IndexModel([("farmerId", ASCENDING)]),
        IndexModel([("farmerId", ASCENDING), ("category", ASCENDING)]),
        IndexModel([("category", ASCENDING), ("price", ASCENDING)]),
    ],
    "order": [
        IndexModel([("customerId", ASCENDING)]),
        IndexModel([("status", ASCENDING)]),
        IndexModel([("orderDate", DESCENDING)]),
        IndexModel([("customerId", ASCENDING), ("status", ASCENDING)]),
        IndexModel([("orderDate", DESCENDING), ("status", ASCENDING)]),
    ],
    "cart": [
        IndexModel([("customerId", ASCENDING)], unique=True),
    ],
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _object_id(id: Any) -> Optional[ObjectId]:
    try:
        return ObjectId(id)
    except (InvalidId, TypeError):
        return None


class MongoDBAdapter(DatabaseAdapter):
    """Document store through motor. Documents keep the logical field names."""

    profile = mapping.DOCUMENT

    def __init__(self, config: DatabaseConfig, client: Optional[AsyncIOMotorClient] = None,
                 database_name: Optional[str] = None):
        super().__init__(config)
        self.client = client
        self._owns_client = client is None
        self.database_name = database_name or self._database_from_uri(config.connection.uri)
        self.db = None
        self.connected = False

    @staticmethod
    def _database_from_uri(uri: Optional[str]) -> str:
        if not uri:
            return DEFAULT_DATABASE
        return urlsplit(uri).path.lstrip("/") or DEFAULT_DATABASE

    async def connect(self) -> None:
        if self.connected:
            return

        options = self.config.options
        try:
            if self.client is None:
                uri = self.config.connection.uri
                if not uri:
                    raise DatabaseConnectionError("MongoDB URI is not configured (MONGODB_URI)")
                self.client = AsyncIOMotorClient(
                    uri,
                    maxPoolSize=options.pool_size or 50,
                    serverSelectionTimeoutMS=options.timeout,
                    connectTimeoutMS=options.timeout,
                    socketTimeoutMS=5000,
                    maxIdleTimeMS=30000,
                    retryWrites=True,
                    w="majority",
                    tz_aware=True,
                )
                await self.client.admin.command("ping")

            self.db = self.client[self.database_name]
            for entity, indexes in INDEXES.items():
                await self.db[COLLECTIONS[entity]].create_indexes(indexes)
        except mongo_errors.PyMongoError as e:
            logger.error("MongoDB connection error: %s", e)
            if self._owns_client and self.client is not None:
                self.client.close()
                self.client = None
            raise DatabaseConnectionError(f"mongodb connection failed: {e}") from e

        self.connected = True
        logger.info("MongoDB connected successfully")

    async def disconnect(self) -> None:
        if self.connected:
            if self._owns_client and self.client is not None:
                self.client.close()
                self.client = None
            self.db = None
            self.connected = False
            logger.info("MongoDB disconnected")

    async def ping(self) -> bool:
        if not self.connected:
            return False
        try:
            await self.db.command("ping")
            return True
        except mongo_errors.PyMongoError as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False

    # ---- helpers ----
    def _collection(self, entity: str):
        if self.db is None:
            raise DatabaseConnectionError("mongodb adapter is not connected")
        return self.db[COLLECTIONS[entity]]

    @contextmanager
    def _translate_errors(self, action: str):
        try:
            yield
        except mongo_errors.DuplicateKeyError as e:
            key_value = (e.details or {}).get("keyValue") or {}
            field = next(iter(key_value), None)
            raise DuplicateKeyError(f"{action}: duplicate {field or 'key'}", field=field) from e
        except (mongo_errors.AutoReconnect, mongo_errors.ConnectionFailure) as e:
            raise DatabaseConnectionError(f"{action}: {e}") from e
        except mongo_errors.PyMongoError as e:
            raise StorageError(f"{action}: {e}") from e

    def _normalize(self, entity: str, doc: Optional[Dict[str, Any]]) -> Optional[Record]:
        return mapping.from_storage(entity, doc, self.profile, id_key="_id")

    async def _create(self, entity: str, data: Record) -> Record:
        doc = mapping.to_storage(entity, mapping.prepare_create(entity, data), self.profile)
        now = _now()
        doc["createdAt"] = now
        doc["updatedAt"] = now
        if entity == "order":
            doc.setdefault("orderDate", now)
        with self._translate_errors(f"create {entity}"):
            result = await self._collection(entity).insert_one(doc)
            saved = await self._collection(entity).find_one({"_id": result.inserted_id})
        return self._normalize(entity, saved)

    async def _find_one(self, entity: str, query: Dict[str, Any]) -> Optional[Record]:
        with self._translate_errors(f"find {entity}"):
            doc = await self._collection(entity).find_one(query)
        return self._normalize(entity, doc)

    async def _find_by_id(self, entity: str, id: str) -> Optional[Record]:
        oid = _object_id(id)
        if oid is None:
            return None
        return await self._find_one(entity, {"_id": oid})

    async def _find_many(self, entity: str, query: Dict[str, Any]) -> List[Record]:
        cursor = self._collection(entity).find(query).sort([(SORT_FIELDS[entity], DESCENDING), ("_id", DESCENDING)])
        with self._translate_errors(f"find {entity}"):
            docs = await cursor.to_list(length=None)
        return [self._normalize(entity, doc) for doc in docs]

    async def _update(self, entity: str, id: str, updates: Record) -> Optional[Record]:
        oid = _object_id(id)
        if oid is None:
            return None
        values = mapping.to_storage(entity, updates or {}, self.profile)
        if not values:
            return await self._find_one(entity, {"_id": oid})
        values["updatedAt"] = _now()
        with self._translate_errors(f"update {entity}"):
            doc = await self._collection(entity).find_one_and_update(
                {"_id": oid}, {"$set": values}, return_document=ReturnDocument.AFTER
            )
        return self._normalize(entity, doc)

    async def _delete(self, entity: str, query: Dict[str, Any]) -> bool:
        with self._translate_errors(f"delete {entity}"):
            result = await self._collection(entity).delete_one(query)
        return result.deleted_count > 0

    async def _delete_by_id(self, entity: str, id: str) -> bool:
        oid = _object_id(id)
        if oid is None:
            return False
        return await self._delete(entity, {"_id": oid})

    # ---- users ----
    async def create_user(self, data: Record) -> Record:
        return await self._create("user", data)

    async def find_users(self, filter: Optional[Record] = None) -> List[Record]:
        return await self._find_many("user", mapping.filter_columns("user", filter, self.profile))

    async def find_user_by_id(self, id: str) -> Optional[Record]:
        return await self._find_by_id("user", id)

    async def find_user_by_email(self, email: str) -> Optional[Record]:
        return await self._find_one("user", {"email": email})

    async def find_user_by_username(self, username: str) -> Optional[Record]:
        return await self._find_one("user", {"username": username})

    async def update_user(self, id: str, updates: Record) -> Optional[Record]:
        return await self._update("user", id, updates)

    async def delete_user(self, id: str) -> bool:
        return await self._delete_by_id("user", id)

    # ---- products ----
    async def create_product(self, data: Record) -> Record:
        return await self._create("product", data)

    async def find_products(self, filter: Optional[Record] = None) -> List[Record]:
        query = mapping.filter_columns("product", filter, self.profile)
        if filter and filter.get("inStock"):
            query["stock"] = {"$gt": 0}
        return await self._find_many("product", query)

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
        return await self._find_many("order", mapping.filter_columns("order", filter, self.profile))

    async def find_order_by_id(self, id: str) -> Optional[Record]:
        return await self._find_by_id("order", id)

    async def update_order(self, id: str, updates: Record) -> Optional[Record]:
        return await self._update("order", id, updates)

    async def delete_order(self, id: str) -> bool:
        return await self._delete_by_id("order", id)

    # ---- cart ----
    async def find_cart(self, customer_id: str) -> Optional[Record]:
        return await self._find_one("cart", {"customerId": str(customer_id)})

    async def update_cart(self, customer_id: str, data: Record) -> Record:
        record = mapping.prepare_create("cart", {"items": (data or {}).get("items"), "customerId": customer_id})
        values = mapping.to_storage("cart", record, self.profile)
        now = _now()
        with self._translate_errors("update cart"):
            doc = await self._collection("cart").find_one_and_update(
                {"customerId": values["customerId"]},
                {
                    "$set": {"items": values["items"], "updatedAt": now},
                    "$setOnInsert": {"createdAt": now},
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        return self._normalize("cart", doc)

    async def clear_cart(self, customer_id: str) -> bool:
        return await self._delete("cart", {"customerId": str(customer_id)})
