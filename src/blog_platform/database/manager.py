"""
# Database Management Module

This module provides the **MongoDB infrastructure** for the Blog Platform API.
It implements a `DatabaseManager` that owns the **Motor** async client, the connection
pool behind it, and the indexes the blog queries rely on.

## Architecture Overview

```
┌──────────────┐      ┌────────────────────┐      ┌──────────────────┐
│ Repository / │─────▶│  DatabaseManager   │─────▶│  Motor client +  │
│ Query Service│      │    (singleton)     │      │  connection pool │
└──────────────┘      └────────────────────┘      └──────────────────┘
```

## Key Features

### 1. Connection Lifecycle
- **Async Initialization**: `connect()` runs during application startup (FastAPI lifespan).
- **Exponential Backoff**: Up to 3 attempts with 1s, 2s delays between them.
- **Graceful Shutdown**: `disconnect()` closes every pooled socket.
- **Health Monitoring**: `health_check()` issues a lightweight `ping`.

### 2. Index Management
`create_indexes()` ensures the indexes backing the blog queries. A failure on the unique
`slug` index aborts startup; the others are logged and skipped:
- unique `slug` (slug lookups and the uniqueness invariant)
- `(author, status)` (author listings)
- `publishedAt` descending (public listings)
- `categories`, `tags` (multikey equality filters)
- text index over `title` + `content` (full-text search)

## Usage

```python
from blog_platform.database import db_manager

await db_manager.connect()
blogs = db_manager.get_collection("blogs")
blog = await blogs.find_one({"slug": "hello-world"})
await db_manager.disconnect()
```

## Thread Safety

The manager is designed for **asyncio** and must be used from a single event loop.

Attributes:
    db_logger (Logger): Logger for database operations (`[DATABASE]`).
    perf_logger (Logger): Logger for timing information (`[DB_PERFORMANCE]`).
    health_logger (Logger): Logger for health checks (`[DB_HEALTH]`).
    db_manager (DatabaseManager): Global singleton instance.
"""

import asyncio
import time
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, TEXT
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from blog_platform.config import settings
from blog_platform.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")

BLOGS_COLLECTION = "blogs"
USERS_COLLECTION = "users"


class DatabaseManager:
    """
    Manages the MongoDB connection, collection access and index creation.

    **Lifecycle:**
    1. **Instantiation**: no I/O, `client` and `database` are `None`.
    2. **Connection**: `connect()` creates the client and pings the server.
    3. **Operations**: `get_collection()` hands out Motor collections.
    4. **Shutdown**: `disconnect()` closes the client.

    Attributes:
        client (Optional[AsyncIOMotorClient]): The Motor client, set by `connect()`.
        database (Optional[AsyncIOMotorDatabase]): The selected database, set by `connect()`.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    def _build_connection_string(self) -> str:
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return (
                f"mongodb://{settings.MONGODB_USERNAME}:{password}@"
                f"{settings.MONGODB_URL.replace('mongodb://', '')}"
            )
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def connect(self):
        """
        Establish the MongoDB connection with exponential backoff.

        Raises:
            ServerSelectionTimeoutError: If MongoDB is unreachable after every attempt.
            ConnectionFailure: If authentication fails or the connection is refused on the
                last attempt.
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)
                db_logger.info(
                    "MongoDB connection config - Database: %s, MaxPool: %d, MinPool: %d, ServerTimeout: %dms, ConnTimeout: %dms",
                    settings.MONGODB_DATABASE,
                    settings.MONGODB_MAX_POOL_SIZE,
                    settings.MONGODB_MIN_POOL_SIZE,
                    settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    settings.MONGODB_CONNECTION_TIMEOUT,
                )

                self.client = AsyncIOMotorClient(
                    self._build_connection_string(),
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
                    minPoolSize=settings.MONGODB_MIN_POOL_SIZE,
                    tz_aware=True,
                )
                self.database = self.client[settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                perf_logger.info(
                    "MongoDB connection established in %.3fs (ping: %.3fs)", time.time() - start_time, ping_duration
                )
                db_logger.info("Successfully connected to MongoDB database: %s", settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                perf_logger.warning("Connection attempt %d failed after %.3fs", attempt + 1, time.time() - attempt_start)
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                if attempt == self._connection_retries - 1:
                    db_logger.error("All connection attempts failed after %.3fs", time.time() - start_time)
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

    async def disconnect(self):
        """Close the Motor client and every pooled connection. Safe to call when not connected."""
        start_time = time.time()
        db_logger.info("Starting MongoDB disconnection process")

        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        self.client.close()
        self.client = None
        self.database = None
        perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
        db_logger.info("Successfully disconnected from MongoDB")

    async def health_check(self) -> bool:
        """
        Verify the connection with a `ping`.

        Returns:
            bool: `True` if the server answered, `False` otherwise. Never raises.
        """
        start_time = time.time()
        if self.client is None:
            health_logger.warning("Health check failed: No database client available")
            return False

        try:
            await self.client.admin.command("ping")
            perf_logger.debug("Database health check completed in %.3fs", time.time() - start_time)
            return True
        except (ServerSelectionTimeoutError, ConnectionFailure) as e:
            health_logger.error("Database health check failed: %s", e)
            return False
        except Exception as e:
            health_logger.error("Unexpected error during health check: %s", e)
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Return a Motor collection from the connected database.

        Args:
            collection_name (str): Collection name, e.g. `"blogs"` or `"users"`.

        Returns:
            AsyncIOMotorCollection: The collection handle.

        Raises:
            ConnectionError: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")

        return self.database[collection_name]

    async def create_indexes(self):
        """Create the indexes used by the blog repository and query service."""
        start_time = time.time()
        db_logger.info("Creating indexes for '%s' collection", BLOGS_COLLECTION)

        blogs = self.get_collection(BLOGS_COLLECTION)

        await self._create_index_if_not_exists(blogs, "slug", {"unique": True, "sparse": True})
        await self._create_index_if_not_exists(blogs, [("author", ASCENDING), ("status", ASCENDING)], {})
        await self._create_index_if_not_exists(blogs, [("publishedAt", DESCENDING)], {})
        await self._create_index_if_not_exists(blogs, "categories", {})
        await self._create_index_if_not_exists(blogs, "tags", {})
        await self._create_index_if_not_exists(
            blogs, [("title", TEXT), ("content", TEXT)], {"name": "blog_text_search"}
        )

        perf_logger.info("Database index creation completed in %.3fs", time.time() - start_time)

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any]
    ):
        """Create an index if it doesn't already exist. Failing to build a unique index is fatal."""
        start_time = time.time()
        try:
            await collection.create_index(field_spec, **options)
            perf_logger.debug("Created/ensured index '%s' in %.3fs", field_spec, time.time() - start_time)
        except Exception as e:
            if options.get("unique"):
                db_logger.error("Could not create unique index '%s': %s", field_spec, e)
                raise
            db_logger.warning("Could not create/ensure index '%s': %s", field_spec, e)


db_manager = DatabaseManager()
