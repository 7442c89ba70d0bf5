"""Storage backends for Pulse analytics.

SQLite is the default single-file backend; MongoDB is available for shared
deployments. Both implement the repository protocols in
``pulse.analytics.repository``.
"""

from .client import MongoStorageClient, retry_on_connection_failure
from .datasource import SQLiteAnalyticsDataSource
from .factory import Repositories, open_repositories
from .mongo import (
    MongoGoalRepository,
    MongoInsightRepository,
    MongoSessionRepository,
    MongoSnapshotRepository,
    MongoSummaryRepository,
)
from .sqlite import (
    SQLiteDatabase,
    SQLiteGoalRepository,
    SQLiteInsightRepository,
    SQLiteSessionRepository,
    SQLiteSnapshotRepository,
    SQLiteSummaryRepository,
)

__all__ = [
    "MongoGoalRepository",
    "MongoInsightRepository",
    "MongoSessionRepository",
    "MongoSnapshotRepository",
    "MongoStorageClient",
    "MongoSummaryRepository",
    "Repositories",
    "SQLiteAnalyticsDataSource",
    "SQLiteDatabase",
    "SQLiteGoalRepository",
    "SQLiteInsightRepository",
    "SQLiteSessionRepository",
    "SQLiteSnapshotRepository",
    "SQLiteSummaryRepository",
    "open_repositories",
    "retry_on_connection_failure",
]
