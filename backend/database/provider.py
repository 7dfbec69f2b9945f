import asyncio
import logging
from typing import Optional

from fastapi import Request

from database.adapter import DatabaseAdapter, DatabaseConfig
from database.factory import create_adapter

logger = logging.getLogger(__name__)


class DatabaseProvider:
    """Holds the one active adapter for the process.

    Created by the composition root (``main.create_app``) and kept on
    ``app.state``. The adapter is built and connected on first use, the same
    instance is handed out afterwards, and ``disconnect`` drops it so the
    next ``get_adapter`` call starts over.
    """

    def __init__(self, config: DatabaseConfig, adapter: Optional[DatabaseAdapter] = None):
        self.config = config
        self._adapter = adapter
        self._connected = False
        self._lock = asyncio.Lock()

    @property
    def adapter(self) -> Optional[DatabaseAdapter]:
        return self._adapter if self._connected else None

    async def get_adapter(self) -> DatabaseAdapter:
        if self._connected:
            return self._adapter
        async with self._lock:
            if not self._connected:
                adapter = self._adapter or create_adapter(self.config)
                await adapter.connect()
                self._adapter = adapter
                self._connected = True
        return self._adapter

    async def disconnect(self) -> None:
        async with self._lock:
            if self._adapter is not None and self._connected:
                await self._adapter.disconnect()
                logger.info("Database adapter for %s released", self.config.type)
            self._adapter = None
            self._connected = False


async def get_db(request: Request) -> DatabaseAdapter:
    """FastAPI dependency returning the connected adapter."""
    provider: DatabaseProvider = request.app.state.db_provider
    return await provider.get_adapter()
