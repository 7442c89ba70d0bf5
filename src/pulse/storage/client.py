"""MongoDB storage client for Pulse.

Provides connection management, retry logic, and repository access.
"""

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from functools import wraps
from typing import Any, TypeVar

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from pulse.analytics.errors import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_on_connection_failure(
    max_retries: int = 5,
    base_delay: float = 1.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for exponential backoff retry on connection failures.

    Connection failures are retried; any other MongoDB error, and the
    last connection failure, is raised as ``StorageError``.

    Args:
        max_retries: Maximum number of retry attempts.
        base_delay: Base delay in seconds (doubles each retry).

    Returns:
        Decorated function with retry logic.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            last_exception: Exception | None = None

            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            "Connection failed (attempt %d/%d), retrying in %.1fs: %s",
                            attempt + 1,
                            max_retries,
                            delay,
                            str(e),
                        )
                        time.sleep(delay)
                    else:
                        logger.error(
                            "Connection failed after %d attempts: %s",
                            max_retries,
                            str(e),
                        )
                except PyMongoError as e:
                    raise StorageError(f"{func.__name__} failed: {e}", backend="mongodb") from e

            if last_exception:
                raise StorageError(
                    f"{func.__name__} failed: {last_exception}", backend="mongodb"
                ) from last_exception
            raise RuntimeError("Unexpected retry loop exit")

        return wrapper

    return decorator


def to_mongo_datetime(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to the naive UTC form MongoDB stores."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


def from_mongo_datetime(value: datetime | None) -> datetime | None:
    """Re-attach UTC to a datetime read back from MongoDB."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


class MongoStorageClient:
    """High-level MongoDB storage client.

    Manages the connection and provides access to the analytics
    repositories.
    """

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017",
        database_name: str = "pulse",
        max_pool_size: int = 50,
        min_pool_size: int = 10,
        connect_timeout_ms: int = 5000,
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        """Initialize the storage client.

        Args:
            uri: MongoDB connection URI.
            database_name: Name of the database to use.
            max_pool_size: Maximum connection pool size.
            min_pool_size: Minimum connection pool size.
            connect_timeout_ms: Connection timeout in milliseconds.
            server_selection_timeout_ms: Server selection timeout in milliseconds.
        """
        self._uri = uri
        self._database_name = database_name
        self._client: MongoClient[dict[str, Any]] | None = None
        self._db: Database[dict[str, Any]] | None = None
        self._repositories: dict[str, Any] = {}

        self._max_pool_size = max_pool_size
        self._min_pool_size = min_pool_size
        self._connect_timeout_ms = connect_timeout_ms
        self._server_selection_timeout_ms = server_selection_timeout_ms

        self._connected = False

    def connect(self) -> None:
        """Connect to MongoDB.

        Raises:
            StorageError: If the server cannot be reached.
        """
        if self._connected:
            return

        try:
            self._client = MongoClient(
                self._uri,
                maxPoolSize=self._max_pool_size,
                minPoolSize=self._min_pool_size,
                connectTimeoutMS=self._connect_timeout_ms,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
            )

            # Verify connection
            self._client.admin.command("ping")
            self.attach(self._client[self._database_name])

            logger.info("Connected to MongoDB at %s", self._uri)

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error("Failed to connect to MongoDB: %s", str(e))
            self._connected = False
            raise StorageError(f"could not connect to MongoDB: {e}", backend="mongodb") from e

    def attach(self, database: Database[dict[str, Any]]) -> None:
        """Bind the repositories to an already opened database."""
        from .mongo import (
            MongoGoalRepository,
            MongoInsightRepository,
            MongoSessionRepository,
            MongoSnapshotRepository,
            MongoSummaryRepository,
        )

        self._db = database
        self._repositories = {
            "snapshots": MongoSnapshotRepository(database["productivity_snapshots"]),
            "summaries": MongoSummaryRepository(database["weekly_summaries"]),
            "goals": MongoGoalRepository(database["productivity_goals"]),
            "insights": MongoInsightRepository(database["actionable_insights"]),
            "sessions": MongoSessionRepository(database["time_sessions"]),
        }
        self._connected = True

    def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Disconnected from MongoDB")
        self._db = None
        self._repositories = {}
        self._connected = False

    def is_connected(self) -> bool:
        """Check if connected to MongoDB.

        Returns:
            True if connected, False otherwise.
        """
        if not self._connected or self._db is None:
            return False
        if self._client is None:
            return True

        try:
            self._client.admin.command("ping")
            return True
        except PyMongoError:
            self._connected = False
            return False

    def health_check(self) -> bool:
        """Perform a health check on the database.

        Returns:
            True if healthy, False otherwise.
        """
        return self.is_connected()

    def _repository(self, name: str) -> Any:
        if name not in self._repositories:
            raise RuntimeError("Not connected to MongoDB. Call connect() first.")
        return self._repositories[name]

    @property
    def snapshots(self) -> Any:
        """Get the snapshot repository.

        Raises:
            RuntimeError: If not connected.
        """
        return self._repository("snapshots")

    @property
    def summaries(self) -> Any:
        return self._repository("summaries")

    @property
    def goals(self) -> Any:
        return self._repository("goals")

    @property
    def insights(self) -> Any:
        return self._repository("insights")

    @property
    def sessions(self) -> Any:
        return self._repository("sessions")

    @property
    def database(self) -> Database[dict[str, Any]]:
        """Get the database instance.

        Raises:
            RuntimeError: If not connected.
        """
        if self._db is None:
            raise RuntimeError("Not connected to MongoDB. Call connect() first.")
        return self._db

    def __enter__(self) -> "MongoStorageClient":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.disconnect()


__all__ = [
    "MongoStorageClient",
    "from_mongo_datetime",
    "retry_on_connection_failure",
    "to_mongo_datetime",
]
