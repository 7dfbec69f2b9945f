import asyncio

import pytest

from config import Settings
from database import (
    DatabaseConnectionError, DatabaseProvider, StorageError, config_from_settings,
    connect_with_retry, create_adapter,
)
from database.adapters.sqlite import SQLiteAdapter
from database.factory import ENGINE_DEFAULTS


def settings(**values):
    return Settings(_env_file=None, **values)


def test_sqlite_config_from_settings():
    config = config_from_settings(settings(DATABASE_TYPE="sqlite", SQLITE_PATH="/tmp/farm.db"))

    assert config.type == "sqlite"
    assert config.connection.path == "/tmp/farm.db"
    assert config.options.timeout == ENGINE_DEFAULTS["sqlite"].timeout


def test_serverless_deploy_forces_in_memory_sqlite():
    config = config_from_settings(settings(DATABASE_TYPE="sqlite", SQLITE_PATH="/tmp/farm.db", VERCEL="1"))

    assert config.connection.path == ":memory:"


def test_database_type_is_case_insensitive():
    config = config_from_settings(settings(DATABASE_TYPE="MongoDB", MONGODB_URI="mongodb://db:27017/shop"))

    assert config.type == "mongodb"
    assert config.connection.uri == "mongodb://db:27017/shop"
    assert config.options.pool_size == 50
    assert config.options.timeout == 1500


def test_postgres_url_falls_back_to_database_url():
    config = config_from_settings(
        settings(DATABASE_TYPE="postgresql", POSTGRES_URL=None, DATABASE_URL="postgresql://u:p@h/db")
    )
    assert config.connection.uri == "postgresql://u:p@h/db"

    config = config_from_settings(
        settings(DATABASE_TYPE="postgresql", POSTGRES_URL="postgresql://u:p@pg/db", DATABASE_URL="postgresql://u:p@h/db")
    )
    assert config.connection.uri == "postgresql://u:p@pg/db"


def test_turso_config_carries_auth_token():
    config = config_from_settings(
        settings(DATABASE_TYPE="turso", TURSO_DATABASE_URL="libsql://farm.turso.io", TURSO_AUTH_TOKEN="token")
    )

    assert config.connection.uri == "libsql://farm.turso.io"
    assert config.connection.auth_token == "token"


def test_environment_overrides_engine_defaults():
    config = config_from_settings(
        settings(DATABASE_TYPE="mysql", MYSQL_URL="mysql://u:p@h/db", DB_POOL_SIZE=5, DB_TIMEOUT_MS=250, DB_RETRY_ATTEMPTS=7)
    )

    assert config.options.pool_size == 5
    assert config.options.timeout == 250
    assert config.options.retry_attempts == 7


def test_unknown_database_type_is_rejected():
    with pytest.raises(StorageError, match="No configuration found for database type: oracle"):
        config_from_settings(settings(DATABASE_TYPE="oracle"))


def test_create_adapter_selects_class_without_connecting():
    adapter = create_adapter(config_from_settings(settings(DATABASE_TYPE="sqlite", SQLITE_PATH=":memory:")))

    assert isinstance(adapter, SQLiteAdapter)
    assert adapter.engine is None


def test_create_adapter_rejects_unsupported_type():
    config = config_from_settings(settings(DATABASE_TYPE="sqlite")).model_copy(update={"type": "oracle"})

    with pytest.raises(StorageError, match="Unsupported database type"):
        create_adapter(config)


# ---- provider ----
def memory_provider():
    return DatabaseProvider(config_from_settings(settings(DATABASE_TYPE="sqlite", SQLITE_PATH=":memory:")))


async def test_provider_returns_one_connected_instance():
    provider = memory_provider()
    assert provider.adapter is None

    first, second = await asyncio.gather(provider.get_adapter(), provider.get_adapter())

    assert first is second
    assert provider.adapter is first
    assert await first.ping() is True
    await provider.disconnect()


async def test_provider_disconnect_clears_instance():
    provider = memory_provider()
    first = await provider.get_adapter()

    await provider.disconnect()

    assert provider.adapter is None
    assert await first.ping() is False
    second = await provider.get_adapter()
    assert second is not first
    await provider.disconnect()


class FlakyAdapter:
    def __init__(self, failures):
        self.failures = failures
        self.attempts = 0

    async def connect(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise DatabaseConnectionError("database is starting up")

    async def disconnect(self):
        pass


@pytest.fixture
def sleeps(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("database.factory.asyncio.sleep", fake_sleep)
    return delays


async def test_connect_with_retry_backs_off_exponentially(sleeps):
    flaky = FlakyAdapter(failures=2)
    provider = DatabaseProvider(config_from_settings(settings(DATABASE_TYPE="sqlite")), adapter=flaky)

    adapter = await connect_with_retry(provider, max_retries=3, delay=0.5)

    assert adapter is flaky
    assert flaky.attempts == 3
    assert sleeps == [0.5, 1.0]


async def test_connect_with_retry_gives_up(sleeps):
    flaky = FlakyAdapter(failures=10)
    provider = DatabaseProvider(
        config_from_settings(settings(DATABASE_TYPE="sqlite", DB_RETRY_ATTEMPTS=4)), adapter=flaky
    )

    with pytest.raises(StorageError, match="Failed to connect to database after 4 attempts"):
        await connect_with_retry(provider)

    assert flaky.attempts == 4
    assert sleeps == [1.0, 2.0, 4.0]
