# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    # Backend selector: mongodb | postgresql | mysql | sqlite | turso
    DATABASE_TYPE: str = "sqlite"
    DATABASE_URL: Optional[str] = None

    MONGODB_URI: str = "mongodb://localhost:27017/farm_ecommerce"
    POSTGRES_URL: Optional[str] = None
    MYSQL_URL: Optional[str] = None
    SQLITE_PATH: str = "./database/farm_ecommerce.db"
    TURSO_DATABASE_URL: Optional[str] = None
    TURSO_AUTH_TOKEN: Optional[str] = None

    # Set by the hosting platform; the SQLite file is not writable there
    VERCEL: Optional[str] = None

    # Optional overrides of the per-engine connection defaults
    DB_POOL_SIZE: Optional[int] = None
    DB_TIMEOUT_MS: Optional[int] = None
    DB_RETRY_ATTEMPTS: Optional[int] = None

    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

def get_settings() -> Settings:
    return Settings()
