"""
MongoDB client ownership for the territory engine.

One motor client per process, created on first use. Beanie is initialized
against it at application startup.
"""

from __future__ import annotations

import logging
import os
from datetime import UTC
from typing import Any, Final

import certifi
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

DEFAULT_MONGO_URI: Final[str] = "mongodb://localhost:27017"
DEFAULT_DATABASE: Final[str] = "stride_wars"


def client_options(mongo_uri: str) -> dict[str, Any]:
    """Keyword arguments for AsyncIOMotorClient.

    Timeouts bound every storage call made by the services.
    """
    options: dict[str, Any] = {
        "tz_aware": True,
        "tzinfo": UTC,
        "maxPoolSize": int(os.getenv("MONGODB_MAX_POOL_SIZE", "50")),
        "serverSelectionTimeoutMS": int(
            os.getenv("MONGODB_SERVER_SELECTION_TIMEOUT_MS", "10000"),
        ),
        "socketTimeoutMS": int(os.getenv("MONGODB_SOCKET_TIMEOUT_MS", "30000")),
        "retryWrites": True,
        "appname": "StrideWars",
    }
    # Atlas SRV endpoints require TLS
    if mongo_uri.startswith("mongodb+srv://"):
        options.update(tls=True, tlsCAFile=certifi.where())
    return options


class DatabaseManager:
    """Lazily builds the motor client from MONGODB_URI / MONGODB_DATABASE."""

    client_factory = AsyncIOMotorClient

    def __init__(self) -> None:
        self._client: Any = None
        self._db: AsyncIOMotorDatabase | None = None
        self._beanie_initialized = False

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self._db is None:
            mongo_uri = os.getenv("MONGODB_URI", "").strip() or DEFAULT_MONGO_URI
            db_name = os.getenv("MONGODB_DATABASE", "").strip() or DEFAULT_DATABASE
            self._client = self.client_factory(mongo_uri, **client_options(mongo_uri))
            self._db = self._client[db_name]
            logger.info("MongoDB client created for database %s", db_name)
        return self._db

    async def init_beanie(self) -> None:
        """Register every document model and create its indexes. Idempotent."""
        if self._beanie_initialized:
            logger.debug("Beanie already initialized, skipping")
            return

        from beanie import init_beanie

        from db.models import ALL_DOCUMENT_MODELS

        await init_beanie(database=self.db, document_models=ALL_DOCUMENT_MODELS)
        self._beanie_initialized = True
        logger.info(
            "Beanie ODM initialized with %d document models",
            len(ALL_DOCUMENT_MODELS),
        )

    async def ping(self) -> bool:
        try:
            await self.db.command("ping")
        except PyMongoError:
            logger.warning("MongoDB ping failed", exc_info=True)
            return False
        return True

    async def cleanup_connections(self) -> None:
        if self._client is None:
            return
        logger.info("Closing MongoDB client")
        self._client.close()
        self._client = None
        self._db = None
        self._beanie_initialized = False


db_manager = DatabaseManager()
