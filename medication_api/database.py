"""
Medication API - MongoDB Connection Management
==============================================

What:  Async MongoDB adapter (motor), collection handle, and FastAPI dependency.
How:   MongoDatabase.connect() builds one AsyncIOMotorClient, pings the server
       within the connect timeout, and keeps a handle to one collection.
       The instance lives on `app.state.database`; handlers receive the
       collection through the get_collection dependency.
Who:   Created by the lifespan handler in main.py (or injected by tests).
When:  Connected once at startup, closed once at shutdown.

Connection Pooling:
    The motor client owns a connection pool. The collection handle is shared
    by every in-flight request; the driver makes it safe for concurrent use.
"""

import asyncio
import logging
from typing import Any, Optional

from fastapi import Request
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
)
from pymongo import errors as mongo_errors

from medication_api.config import Settings
from medication_api.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    DatabaseError,
)

logger = logging.getLogger(__name__)


class MongoDatabase:
    """
    Owns the lifecycle of one client connected to one collection.

    Usage:
        database = await MongoDatabase.connect(settings)
        collection = database.collection
        ...
        await database.close()
    """

    def __init__(
        self,
        client: AsyncIOMotorClient,
        collection: AsyncIOMotorCollection,
        ping_timeout: float = 10.0,
    ):
        self._client = client
        self._collection = collection
        self._ping_timeout = ping_timeout
        self._closed = False

    @classmethod
    async def connect(cls, settings: Settings) -> "MongoDatabase":
        """
        Open the connection described by `settings`.

        Workflow Steps:
            1. Validate the three required MongoDB settings
            2. Build the client (URI parsing happens here)
            3. Ping the server, bounded by connect_timeout_seconds

        Raises:
            ConfigurationError: A required setting is missing, or the URI is invalid
            DatabaseConnectionError: The ping failed or timed out
        """
        settings.validate_required()

        timeout_ms = int(settings.connect_timeout_seconds * 1000)
        try:
            client = AsyncIOMotorClient(
                settings.mongodb_uri,
                serverSelectionTimeoutMS=timeout_ms,
                connectTimeoutMS=timeout_ms,
            )
        except (mongo_errors.ConfigurationError, mongo_errors.InvalidURI, ValueError) as e:
            raise ConfigurationError(
                message="MONGODB_URI is not a valid MongoDB connection string",
                context={"error_type": type(e).__name__},
            ) from e

        try:
            await asyncio.wait_for(
                client.admin.command("ping"),
                timeout=settings.connect_timeout_seconds,
            )
        except (asyncio.TimeoutError, mongo_errors.PyMongoError) as e:
            client.close()
            raise DatabaseConnectionError(
                message="Failed to connect to MongoDB",
                context={"error_type": type(e).__name__, "detail": str(e)},
            ) from e

        collection = client[settings.mongodb_db_name][settings.mongodb_collection]
        logger.info(
            "Connected to MongoDB: database=%s collection=%s",
            settings.mongodb_db_name,
            settings.mongodb_collection,
        )
        return cls(client, collection, ping_timeout=settings.connect_timeout_seconds)

    @property
    def collection(self) -> AsyncIOMotorCollection:
        """The live collection handle used by all resource operations."""
        return self._collection

    async def ping(self) -> bool:
        """Liveness check for the health route, bounded by the connect timeout."""
        try:
            await asyncio.wait_for(
                self._client.admin.command("ping"), timeout=self._ping_timeout
            )
            return True
        except asyncio.TimeoutError:
            logger.warning("MongoDB ping timed out after %.1fs", self._ping_timeout)
            return False
        except mongo_errors.PyMongoError as e:
            logger.warning("MongoDB ping failed: %s", str(e))
            return False

    async def close(self) -> None:
        """
        What:  Releases the client and its pooled connections.
        When:  Called once during application shutdown (lifespan handler).
        How:   Best-effort. A failure is logged and swallowed so the rest of
               the shutdown sequence still runs. Repeated calls are no-ops.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._client.close()
        except Exception as e:
            logger.error("Error disconnecting from MongoDB: %s", str(e))
        else:
            logger.info("Disconnected from MongoDB")


# ── Collection Dependency ─────────────────────────────────────────────────
def get_collection(request: Request) -> Any:
    """
    FastAPI dependency that provides the collection handle.

    The handle is read from the application that received the request,
    so each app instance (and each test) can carry its own database.

    Example usage in a route:
        @router.get("/medications")
        async def list_medications(collection=Depends(get_collection)):
            ...
    """
    database: Optional[MongoDatabase] = getattr(request.app.state, "database", None)
    if database is None:
        raise DatabaseError(
            message="Database is not available",
            context={"reason": "no database attached to application state"},
        )
    return database.collection
