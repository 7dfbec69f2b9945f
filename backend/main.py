# backend/main.py
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from config import Settings, get_settings
from database import (
    DatabaseConnectionError, DatabaseProvider, DuplicateKeyError, InvalidRecordError,
    NotFoundError, StorageError, config_from_settings, connect_with_retry,
)

load_dotenv()

# Routers
from routes.auth import router as auth_router
from routes.admin import router as admin_router
from routes.users import router as users_router
from routes.products import router as products_router
from routes.orders import router as orders_router
from routes.cart import router as cart_router

logger = logging.getLogger(__name__)

# Storage error -> HTTP status
ERROR_STATUS = (
    (NotFoundError, 404),
    (DuplicateKeyError, 409),
    (InvalidRecordError, 422),
    (DatabaseConnectionError, 503),
    (StorageError, 500),
)


async def storage_error_handler(request: Request, exc: StorageError):
    status_code = next(code for cls, code in ERROR_STATUS if isinstance(exc, cls))
    if status_code >= 500:
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    body = {"detail": str(exc)}
    if isinstance(exc, DuplicateKeyError) and exc.field:
        body["field"] = exc.field
    return JSONResponse(status_code=status_code, content=body)


def create_app(settings: Optional[Settings] = None, provider: Optional[DatabaseProvider] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    provider = provider or DatabaseProvider(config_from_settings(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await connect_with_retry(provider)
        yield
        await provider.disconnect()

    app = FastAPI(title="Farm Marketplace API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.db_provider = provider

    # CORS Configuration
    origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
    if settings.FRONTEND_URL:
        origins.append(settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StorageError, storage_error_handler)

    # Router registration
    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(users_router)
    app.include_router(products_router)
    app.include_router(orders_router)
    app.include_router(cart_router)

    @app.get("/health")
    async def health():
        adapter = await provider.get_adapter()
        return {"database": provider.config.type, "connected": await adapter.ping()}

    return app


app = create_app()
