"""
# Database Management Module

This module provides the **MongoDB infrastructure** for the Referral Chains API. It implements
the `DatabaseManager` class, which owns the **Motor** async client, and the module-level
`db_manager` singleton shared by the whole application.

## Key Features

### 1. Connection Lifecycle Management
- **Async Initialization**: `connect()` is awaited from the FastAPI lifespan
- **Exponential Backoff**: up to 3 attempts (1s, 2s between them)
- **Graceful Shutdown**: `disconnect()` closes every pooled socket

### 2. Scoped Access
`scoped_database()` hands out a database handle for exactly one query execution. When the
application is connected the shared pool is reused; otherwise a dedicated client is opened
for the invocation and closed on every exit path, including exceptions.

### 3. Observability
- **Performance Logging**: query timing via `log_query_start()` / `log_query_success()`
- **Sanitized Logging**: credentials are never written to logs

## Usage Examples

```python
from referral_chains.database import db_manager

async with db_manager.scoped_database() as database:
    chains = await database["chains"].count_documents({})
```

## Configuration

- `MONGODB_URL`: Connection string (e.g., `mongodb://host:27017`)
- `MONGODB_DATABASE`: Target database name
- `MONGODB_MIN_POOL_SIZE` / `MONGODB_MAX_POOL_SIZE`: Pool bounds
- `MONGODB_SERVER_SELECTION_TIMEOUT` / `MONGODB_CONNECTION_TIMEOUT`: Timeouts (ms)

## Thread Safety

The `DatabaseManager` is designed for **asyncio** and is **not thread-safe**.
"""

import asyncio
from contextlib import asynccontextmanager
import time
from typing import Any, AsyncIterator, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from referral_chains.config import settings
from referral_chains.managers.logging_manager import get_logger

logger = get_logger()
db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")


class DatabaseManager:
    """
    Manages MongoDB connections and collection access.

    **Lifecycle:**
    1. **Instantiation**: `client=None`, `database=None`, no I/O
    2. **Connection**: `connect()` establishes the pooled client
    3. **Operations**: `get_collection()` or `scoped_database()`
    4. **Shutdown**: `disconnect()` closes the pool

    Attributes:
        client (`Optional[AsyncIOMotorClient]`): The Motor client, `None` until connected.
        database (`Optional[AsyncIOMotorDatabase]`): The selected database, `None` until connected.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    @property
    def is_connected(self) -> bool:
        return self.client is not None and self.database is not None

    def _build_connection_string(self) -> str:
        """Inject optional credentials into the configured URL."""
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = (
                settings.MONGODB_PASSWORD.get_secret_value()
                if hasattr(settings.MONGODB_PASSWORD, "get_secret_value")
                else settings.MONGODB_PASSWORD
            )
            db_logger.debug("Using authenticated connection to MongoDB")
            return (
                f"mongodb://{settings.MONGODB_USERNAME}:"
                f"{password}@"
                f"{settings.MONGODB_URL.replace('mongodb://', '')}"
            )
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    def _create_client(self) -> AsyncIOMotorClient:
        return AsyncIOMotorClient(
            self._build_connection_string(),
            serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
            connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
            maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
            minPoolSize=settings.MONGODB_MIN_POOL_SIZE,
        )

    async def connect(self):
        """
        Establish connection to MongoDB with exponential backoff retry logic.

        Steps:
        1. Build the connection string (credentials are unwrapped from `SecretStr`)
        2. Create the Motor client with the configured pool bounds
        3. Ping the server to verify connectivity

        Raises:
            `ServerSelectionTimeoutError`: If MongoDB is unreachable after all attempts.
            `ConnectionFailure`: If authentication fails or the connection is refused.
        """
        if self.is_connected:
            db_logger.debug("connect() called on an already connected manager")
            return

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

                self.client = self._create_client()
                self.database = self.client[settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                total_duration = time.time() - start_time
                perf_logger.info(
                    "MongoDB connection established successfully in %.3fs (ping: %.3fs)", total_duration, ping_duration
                )
                db_logger.info("Successfully connected to MongoDB database: %s", settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                attempt_duration = time.time() - attempt_start
                perf_logger.warning("Connection attempt %d failed after %.3fs", attempt + 1, attempt_duration)
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                self._reset()
                if attempt == self._connection_retries - 1:
                    total_duration = time.time() - start_time
                    db_logger.error("All connection attempts failed after %.3fs", total_duration)
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

    def _reset(self):
        if self.client is not None:
            self.client.close()
        self.client = None
        self.database = None

    async def disconnect(self):
        """
        Gracefully disconnect from MongoDB and close all pooled connections.

        Safe to call when not connected (logs a warning and returns).
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB disconnection process")

        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        self._reset()
        perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
        db_logger.info("Successfully disconnected from MongoDB")

    async def health_check(self) -> bool:
        """
        Verify MongoDB connection health with a lightweight `ping`.

        Returns:
            `bool`: `True` if the server answers, `False` otherwise (never raises).
        """
        start_time = time.time()
        health_logger.debug("Starting database health check")

        if self.client is None:
            health_logger.warning("Health check failed: No database client available")
            return False

        try:
            await self.client.admin.command("ping")
        except (ServerSelectionTimeoutError, ConnectionFailure) as e:
            perf_logger.warning("Database health check failed after %.3fs", time.time() - start_time)
            health_logger.error("Database health check failed: %s", e)
            return False

        perf_logger.debug("Database health check completed successfully in %.3fs", time.time() - start_time)
        return True

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Retrieve a collection from the connected database.

        Raises:
            `ConnectionError`: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")

        db_logger.debug("Retrieving collection: %s", collection_name)
        return self.database[collection_name]

    @asynccontextmanager
    async def scoped_database(self) -> AsyncIterator[AsyncIOMotorDatabase]:
        """
        Acquire a database handle for the duration of one query execution.

        Reuses the shared pool when connected. Otherwise opens a dedicated client that is
        closed when the block exits, whether normally or through an exception.

        Yields:
            `AsyncIOMotorDatabase`: The database to run the query against.
        """
        if self.is_connected:
            yield self.database
            return

        db_logger.debug("No shared connection; opening a per-invocation client")
        client = self._create_client()
        try:
            yield client[settings.MONGODB_DATABASE]
        finally:
            client.close()
            db_logger.debug("Per-invocation client closed")

    def log_query_start(self, collection_name: str, operation: str, query: Optional[Any] = None) -> float:
        """Log the start of a database query and return start time for performance tracking"""
        start_time = time.time()
        db_logger.debug(
            "Starting %s operation on collection '%s' - Query: %s",
            operation,
            collection_name,
            self._sanitize_query_for_logging(query),
        )
        return start_time

    def log_query_success(
        self, collection_name: str, operation: str, start_time: float, result_count: Optional[int] = None
    ):
        """Log successful completion of a database query with performance metrics"""
        duration = time.time() - start_time
        if result_count is not None:
            perf_logger.info(
                "%s on '%s' completed successfully in %.3fs - %d records",
                operation,
                collection_name,
                duration,
                result_count,
            )
        else:
            perf_logger.info("%s on '%s' completed successfully in %.3fs", operation, collection_name, duration)

    def log_query_error(self, collection_name: str, operation: str, start_time: float, error: Exception):
        """Log database query errors with context and performance metrics"""
        duration = time.time() - start_time
        perf_logger.error("%s on '%s' failed after %.3fs", operation, collection_name, duration)
        db_logger.error(
            "%s operation failed on collection '%s' after %.3fs - Error: %s",
            operation,
            collection_name,
            duration,
            error,
        )

    def _sanitize_query_for_logging(self, query: Any) -> Any:
        """Redact values whose keys look like secrets; recurse through pipelines and sub-documents."""
        if isinstance(query, list):
            return [self._sanitize_query_for_logging(item) for item in query]
        if not isinstance(query, dict):
            return query

        sensitive_fields = {"password", "token", "secret", "credential", "api_key"}
        sanitized: Dict[str, Any] = {}
        for key, value in query.items():
            if any(sensitive_field in str(key).lower() for sensitive_field in sensitive_fields):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = self._sanitize_query_for_logging(value)
        return sanitized


# Global database manager instance
db_manager = DatabaseManager()
