"""Analytics repositories for MongoDB storage.

Documents use the entity ID as ``_id``. Calendar dates are stored as
ISO strings so range queries compare them lexicographically; datetimes
are stored as naive UTC and returned timezone-aware.
"""

import logging
from datetime import UTC, date, datetime
from typing import Any

from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection

from pulse.analytics.goals import ProductivityGoal
from pulse.analytics.models import ActionableInsight, InsightPriority, InsightType, WeeklySummary
from pulse.analytics.sessions import SessionStatus, SessionType, TimeSession
from pulse.analytics.snapshot import ProductivitySnapshot

from .client import from_mongo_datetime, retry_on_connection_failure, to_mongo_datetime

logger = logging.getLogger(__name__)

PRIORITY_RANK = {
    InsightPriority.HIGH: 0,
    InsightPriority.MEDIUM: 1,
    InsightPriority.LOW: 2,
}


def to_document(data: dict[str, Any]) -> dict[str, Any]:
    """Turn an entity dictionary into a MongoDB document."""
    doc = {
        key: to_mongo_datetime(value) if isinstance(value, datetime) else value
        for key, value in data.items()
    }
    doc["_id"] = doc.pop("id")
    return doc


def from_document(doc: dict[str, Any]) -> dict[str, Any]:
    """Turn a MongoDB document back into an entity dictionary."""
    data = {
        key: from_mongo_datetime(value) if isinstance(value, datetime) else value
        for key, value in doc.items()
    }
    data["id"] = data.pop("_id")
    return data


class MongoSnapshotRepository:
    """Repository for daily productivity snapshots."""

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        """Initialize repository with MongoDB collection.

        Args:
            collection: MongoDB collection for snapshots.
        """
        self._collection = collection
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        """Create indexes for efficient queries."""
        self._collection.create_index(
            [("user_id", ASCENDING), ("snapshot_date", DESCENDING)], unique=True
        )

    @retry_on_connection_failure()
    def save(self, snapshot: ProductivitySnapshot) -> None:
        """Insert or replace the snapshot for its (user, date)."""
        doc = to_document(snapshot.to_dict())
        doc["updated_at"] = to_mongo_datetime(datetime.now(UTC))
        key = {"user_id": snapshot.user_id, "snapshot_date": doc["snapshot_date"]}

        existing = self._collection.find_one(key, {"_id": 1, "created_at": 1})
        if existing is not None:
            doc["_id"] = existing["_id"]
            doc["created_at"] = existing.get("created_at", doc["created_at"])
        self._collection.replace_one(key, doc, upsert=True)

    @retry_on_connection_failure()
    def get_by_date(self, user_id: str, day: date) -> ProductivitySnapshot | None:
        doc = self._collection.find_one({"user_id": user_id, "snapshot_date": day.isoformat()})
        if doc is None:
            return None
        return ProductivitySnapshot.from_dict(from_document(doc))

    @retry_on_connection_failure()
    def get_date_range(self, user_id: str, start: date, end: date) -> list[ProductivitySnapshot]:
        cursor = self._collection.find(
            {
                "user_id": user_id,
                "snapshot_date": {"$gte": start.isoformat(), "$lte": end.isoformat()},
            }
        ).sort("snapshot_date", ASCENDING)
        return [ProductivitySnapshot.from_dict(from_document(doc)) for doc in cursor]

    def get_latest(self, user_id: str) -> ProductivitySnapshot | None:
        recent = self.get_recent(user_id, 1)
        return recent[0] if recent else None

    @retry_on_connection_failure()
    def get_recent(self, user_id: str, limit: int) -> list[ProductivitySnapshot]:
        cursor = (
            self._collection.find({"user_id": user_id})
            .sort("snapshot_date", DESCENDING)
            .limit(limit)
        )
        return [ProductivitySnapshot.from_dict(from_document(doc)) for doc in cursor]

    @retry_on_connection_failure()
    def get_average_score(self, user_id: str, start: date, end: date) -> int:
        pipeline: list[dict[str, Any]] = [
            {
                "$match": {
                    "user_id": user_id,
                    "snapshot_date": {"$gte": start.isoformat(), "$lte": end.isoformat()},
                }
            },
            {"$group": {"_id": None, "avg_score": {"$avg": "$productivity_score"}}},
        ]
        result = list(self._collection.aggregate(pipeline))
        if not result or result[0].get("avg_score") is None:
            return 0
        return int(result[0]["avg_score"])


class MongoSummaryRepository:
    """Repository for weekly summaries."""

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        self._collection = collection
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        """Create indexes for efficient queries."""
        self._collection.create_index(
            [("user_id", ASCENDING), ("week_start", DESCENDING)], unique=True
        )

    @retry_on_connection_failure()
    def save(self, summary: WeeklySummary) -> None:
        """Insert or replace the summary for its (user, week)."""
        doc = to_document(summary.to_dict())
        key = {"user_id": summary.user_id, "week_start": doc["week_start"]}

        existing = self._collection.find_one(key, {"_id": 1})
        if existing is not None:
            doc["_id"] = existing["_id"]
        self._collection.replace_one(key, doc, upsert=True)

    @retry_on_connection_failure()
    def get_by_week(self, user_id: str, week_start: date) -> WeeklySummary | None:
        doc = self._collection.find_one({"user_id": user_id, "week_start": week_start.isoformat()})
        if doc is None:
            return None
        return WeeklySummary.from_dict(from_document(doc))

    @retry_on_connection_failure()
    def get_recent(self, user_id: str, limit: int) -> list[WeeklySummary]:
        cursor = (
            self._collection.find({"user_id": user_id})
            .sort("week_start", DESCENDING)
            .limit(limit)
        )
        return [WeeklySummary.from_dict(from_document(doc)) for doc in cursor]

    def get_latest(self, user_id: str) -> WeeklySummary | None:
        recent = self.get_recent(user_id, 1)
        return recent[0] if recent else None


class MongoGoalRepository:
    """Repository for productivity goals."""

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        self._collection = collection
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        """Create indexes for efficient queries."""
        self._collection.create_index([("user_id", ASCENDING), ("period_end", ASCENDING)])
        self._collection.create_index([("user_id", ASCENDING), ("achieved_at", DESCENDING)])

    @retry_on_connection_failure()
    def create(self, goal: ProductivityGoal) -> None:
        self._collection.insert_one(to_document(goal.to_dict()))

    @retry_on_connection_failure()
    def update(self, goal: ProductivityGoal) -> None:
        goal.updated_at = datetime.now(UTC)
        doc = to_document(goal.to_dict())
        self._collection.replace_one({"_id": doc["_id"]}, doc)

    @retry_on_connection_failure()
    def get_by_id(self, goal_id: str) -> ProductivityGoal | None:
        doc = self._collection.find_one({"_id": goal_id})
        if doc is None:
            return None
        return ProductivityGoal.from_dict(from_document(doc))

    @retry_on_connection_failure()
    def get_active(self, user_id: str, now: datetime | None = None) -> list[ProductivityGoal]:
        now_utc = to_mongo_datetime(now or datetime.now(UTC))
        cursor = self._collection.find(
            {
                "user_id": user_id,
                "achieved": False,
                "period_start": {"$lte": now_utc},
                "period_end": {"$gte": now_utc},
            }
        ).sort("period_end", ASCENDING)
        return [ProductivityGoal.from_dict(from_document(doc)) for doc in cursor]

    @retry_on_connection_failure()
    def get_by_period(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[ProductivityGoal]:
        cursor = self._collection.find(
            {
                "user_id": user_id,
                "period_start": {"$gte": to_mongo_datetime(start)},
                "period_end": {"$lte": to_mongo_datetime(end)},
            }
        ).sort("period_start", ASCENDING)
        return [ProductivityGoal.from_dict(from_document(doc)) for doc in cursor]

    @retry_on_connection_failure()
    def get_achieved(self, user_id: str, limit: int) -> list[ProductivityGoal]:
        cursor = (
            self._collection.find({"user_id": user_id, "achieved": True})
            .sort("achieved_at", DESCENDING)
            .limit(limit)
        )
        return [ProductivityGoal.from_dict(from_document(doc)) for doc in cursor]

    @retry_on_connection_failure()
    def delete(self, goal_id: str) -> None:
        self._collection.delete_one({"_id": goal_id})


class MongoInsightRepository:
    """Repository for actionable insights."""

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        self._collection = collection
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        """Create indexes for efficient queries."""
        self._collection.create_index([("user_id", ASCENDING), ("type", ASCENDING)])
        self._collection.create_index([("user_id", ASCENDING), ("generated_at", DESCENDING)])
        self._collection.create_index("valid_to")

    @retry_on_connection_failure()
    def create(self, insight: ActionableInsight) -> None:
        self._collection.insert_one(to_document(insight.to_dict()))

    @retry_on_connection_failure()
    def update(self, insight: ActionableInsight) -> None:
        doc = to_document(insight.to_dict())
        self._collection.replace_one({"_id": doc["_id"]}, doc)

    @retry_on_connection_failure()
    def get_by_id(self, insight_id: str) -> ActionableInsight | None:
        doc = self._collection.find_one({"_id": insight_id})
        if doc is None:
            return None
        return ActionableInsight.from_dict(from_document(doc))

    @retry_on_connection_failure()
    def get_active(self, user_id: str, now: datetime | None = None) -> list[ActionableInsight]:
        now_utc = to_mongo_datetime(now or datetime.now(UTC))
        cursor = self._collection.find(
            {
                "user_id": user_id,
                "dismissed": False,
                "acted_on": False,
                "valid_from": {"$lte": now_utc},
                "valid_to": {"$gte": now_utc},
            }
        ).sort("generated_at", DESCENDING)
        insights = [ActionableInsight.from_dict(from_document(doc)) for doc in cursor]
        # Stable sort keeps newest first within a priority
        return sorted(insights, key=lambda i: PRIORITY_RANK[i.priority])

    @retry_on_connection_failure()
    def get_by_type(self, user_id: str, insight_type: InsightType) -> list[ActionableInsight]:
        cursor = self._collection.find({"user_id": user_id, "type": insight_type.value}).sort(
            "generated_at", DESCENDING
        )
        return [ActionableInsight.from_dict(from_document(doc)) for doc in cursor]

    @retry_on_connection_failure()
    def get_recent(self, user_id: str, limit: int) -> list[ActionableInsight]:
        cursor = (
            self._collection.find({"user_id": user_id})
            .sort("generated_at", DESCENDING)
            .limit(limit)
        )
        return [ActionableInsight.from_dict(from_document(doc)) for doc in cursor]

    @retry_on_connection_failure()
    def delete(self, insight_id: str) -> None:
        self._collection.delete_one({"_id": insight_id})

    @retry_on_connection_failure()
    def delete_expired(self, now: datetime | None = None) -> int:
        now_utc = to_mongo_datetime(now or datetime.now(UTC))
        result = self._collection.delete_many({"valid_to": {"$lt": now_utc}})
        return result.deleted_count


class MongoSessionRepository:
    """Repository for time sessions."""

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        self._collection = collection
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        """Create indexes for efficient queries."""
        self._collection.create_index([("user_id", ASCENDING), ("started_at", DESCENDING)])
        self._collection.create_index([("user_id", ASCENDING), ("status", ASCENDING)])

    @retry_on_connection_failure()
    def create(self, session: TimeSession) -> None:
        self._collection.insert_one(to_document(session.to_dict()))

    @retry_on_connection_failure()
    def update(self, session: TimeSession) -> None:
        doc = to_document(session.to_dict())
        self._collection.replace_one({"_id": doc["_id"]}, doc)

    @retry_on_connection_failure()
    def get_by_id(self, session_id: str) -> TimeSession | None:
        doc = self._collection.find_one({"_id": session_id})
        if doc is None:
            return None
        return TimeSession.from_dict(from_document(doc))

    @retry_on_connection_failure()
    def get_active(self, user_id: str) -> TimeSession | None:
        doc = self._collection.find_one(
            {"user_id": user_id, "status": SessionStatus.ACTIVE.value},
            sort=[("started_at", DESCENDING)],
        )
        if doc is None:
            return None
        return TimeSession.from_dict(from_document(doc))

    @retry_on_connection_failure()
    def get_by_date_range(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[TimeSession]:
        cursor = self._collection.find(
            {
                "user_id": user_id,
                "started_at": {"$gte": to_mongo_datetime(start), "$lte": to_mongo_datetime(end)},
            }
        ).sort("started_at", ASCENDING)
        return [TimeSession.from_dict(from_document(doc)) for doc in cursor]

    @retry_on_connection_failure()
    def get_by_type(
        self, user_id: str, session_type: SessionType, limit: int
    ) -> list[TimeSession]:
        cursor = (
            self._collection.find({"user_id": user_id, "session_type": session_type.value})
            .sort("started_at", DESCENDING)
            .limit(limit)
        )
        return [TimeSession.from_dict(from_document(doc)) for doc in cursor]

    @retry_on_connection_failure()
    def get_total_focus_minutes(self, user_id: str, start: datetime, end: datetime) -> int:
        pipeline: list[dict[str, Any]] = [
            {
                "$match": {
                    "user_id": user_id,
                    "session_type": SessionType.FOCUS.value,
                    "status": SessionStatus.COMPLETED.value,
                    "started_at": {
                        "$gte": to_mongo_datetime(start),
                        "$lte": to_mongo_datetime(end),
                    },
                }
            },
            {"$group": {"_id": None, "total": {"$sum": "$duration_minutes"}}},
        ]
        result = list(self._collection.aggregate(pipeline))
        if not result:
            return 0
        return int(result[0].get("total") or 0)

    @retry_on_connection_failure()
    def delete(self, session_id: str) -> None:
        self._collection.delete_one({"_id": session_id})


__all__ = [
    "MongoGoalRepository",
    "MongoInsightRepository",
    "MongoSessionRepository",
    "MongoSnapshotRepository",
    "MongoSummaryRepository",
    "from_document",
    "to_document",
]
