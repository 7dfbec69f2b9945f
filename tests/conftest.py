import os

import pytest

from database import AdapterOptions, ConnectionOptions, DatabaseConfig

BACKENDS = ["sqlite", "turso", "mongodb", "postgresql", "mysql"]


def make_config(db_type, **connection):
    return DatabaseConfig(
        type=db_type,
        connection=ConnectionOptions(**connection),
        options=AdapterOptions(timeout=10000),
    )


async def _drop_tables(adapter):
    from models import Base

    async with adapter.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


def _build_adapter(backend, tmp_path):
    if backend == "sqlite":
        from database.adapters.sqlite import SQLiteAdapter

        return SQLiteAdapter(make_config("sqlite", path=":memory:"))

    if backend == "turso":
        pytest.importorskip("libsql_client")
        from database.adapters.turso import TursoAdapter

        return TursoAdapter(make_config("turso", uri=f"file:{tmp_path / 'turso.db'}"))

    if backend == "mongodb":
        mongomock_motor = pytest.importorskip("mongomock_motor")
        from database.adapters.mongodb import MongoDBAdapter

        return MongoDBAdapter(
            make_config("mongodb"),
            client=mongomock_motor.AsyncMongoMockClient(),
            database_name="farm_ecommerce_test",
        )

    # Server engines only run against a database provided by the environment
    url = os.getenv(f"TEST_{backend.upper()}_URL")
    if not url:
        pytest.skip(f"TEST_{backend.upper()}_URL not set")
    if backend == "postgresql":
        from database.adapters.postgresql import PostgreSQLAdapter

        return PostgreSQLAdapter(make_config("postgresql", uri=url))
    from database.adapters.mysql import MySQLAdapter

    return MySQLAdapter(make_config("mysql", uri=url))


@pytest.fixture(params=BACKENDS)
async def adapter(request, tmp_path):
    """A connected adapter with an empty schema, once per storage engine."""
    db = _build_adapter(request.param, tmp_path)
    await db.connect()
    if request.param in ("postgresql", "mysql"):
        # Start from empty tables left behind by an earlier run
        await _drop_tables(db)
        await db.disconnect()
        await db.connect()
    yield db
    if request.param in ("postgresql", "mysql"):
        await _drop_tables(db)
    await db.disconnect()


@pytest.fixture
def user_data():
    return {
        "username": "alice",
        "email": "alice@greenfarm.org",
        "password": "$2b$12$hashedpasswordvalue",
        "role": "customer",
        "profile": {"firstName": "Alice", "lastName": "Green", "phone": "555-0100", "address": "1 Farm Lane"},
    }


@pytest.fixture
def product_data():
    return {
        "name": "Heirloom Carrots",
        "category": "vegetables",
        "price": 3.5,
        "sku": "CARROT-001",
        "farmerId": "farmer-1",
        "stock": 40,
        "description": "Purple and orange mix",
        "images": ["carrots-1.jpg", "carrots-2.jpg"],
    }


@pytest.fixture
def order_data():
    return {
        "customerId": "customer-1",
        "items": [
            {"productId": "p1", "quantity": 2, "price": 3.5, "name": "Heirloom Carrots"},
            {"productId": "p2", "quantity": 1, "price": 6.0, "name": "Goat Cheese"},
        ],
        "totalAmount": 13.0,
        "shippingAddress": {"street": "1 Farm Lane", "city": "Springfield", "zipCode": "12345"},
    }
