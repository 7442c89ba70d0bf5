"""Builds repositories for the configured storage backend."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pulse.analytics.repository import (
    AnalyticsDataSource,
    GoalRepository,
    InsightRepository,
    SessionRepository,
    SnapshotRepository,
    SummaryRepository,
)
from pulse.config import StorageConfig

from .client import MongoStorageClient
from .datasource import SQLiteAnalyticsDataSource
from .sqlite import (
    SQLiteDatabase,
    SQLiteGoalRepository,
    SQLiteInsightRepository,
    SQLiteSessionRepository,
    SQLiteSnapshotRepository,
    SQLiteSummaryRepository,
)

logger = logging.getLogger(__name__)

BACKENDS = ("sqlite", "mongodb")


@dataclass
class Repositories:
    """The set of stores an analytics service needs."""

    snapshots: SnapshotRepository
    summaries: SummaryRepository
    goals: GoalRepository
    insights: InsightRepository
    sessions: SessionRepository
    data_source: AnalyticsDataSource | None
    close: Callable[[], None]

    def __enter__(self) -> "Repositories":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def sqlite_repositories(db: SQLiteDatabase) -> Repositories:
    """Bind all repositories and the activity data source to one database."""
    return Repositories(
        snapshots=SQLiteSnapshotRepository(db),
        summaries=SQLiteSummaryRepository(db),
        goals=SQLiteGoalRepository(db),
        insights=SQLiteInsightRepository(db),
        sessions=SQLiteSessionRepository(db),
        data_source=SQLiteAnalyticsDataSource(db),
        close=db.close,
    )


def mongo_repositories(client: MongoStorageClient) -> Repositories:
    """Bind all repositories to a connected MongoDB client.

    Activity tables only exist in SQLite, so there is no data source.
    """
    return Repositories(
        snapshots=client.snapshots,
        summaries=client.summaries,
        goals=client.goals,
        insights=client.insights,
        sessions=client.sessions,
        data_source=None,
        close=client.disconnect,
    )


def open_repositories(config: StorageConfig) -> Repositories:
    """Open the configured backend.

    Args:
        config: Storage configuration.

    Returns:
        Repositories bound to the backend.

    Raises:
        ValueError: If the backend name is unknown.
        StorageError: If the backend cannot be opened.
    """
    backend = config.backend.lower()
    if backend == "sqlite":
        logger.debug("Using SQLite storage at %s", config.sqlite_path)
        return sqlite_repositories(SQLiteDatabase(config.resolved_sqlite_path()))
    if backend == "mongodb":
        client = MongoStorageClient(
            uri=config.mongo_uri,
            database_name=config.mongo_database,
            server_selection_timeout_ms=config.server_selection_timeout_ms,
        )
        client.connect()
        return mongo_repositories(client)

    raise ValueError(f"Unknown storage backend '{config.backend}', expected one of {BACKENDS}")


__all__ = [
    "BACKENDS",
    "Repositories",
    "mongo_repositories",
    "open_repositories",
    "sqlite_repositories",
]
