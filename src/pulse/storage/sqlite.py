"""SQLite storage backend for analytics data.

One database file holds snapshots, weekly summaries, goals, insights and
time sessions. Timestamps are stored as fixed-width UTC ISO strings so
they order correctly as text; maps are stored as JSON.
"""

import json
import logging
import sqlite3
from collections.abc import Callable
from datetime import UTC, date, datetime
from functools import wraps
from pathlib import Path
from typing import Any, TypeVar

from pulse.analytics.errors import StorageError
from pulse.analytics.goals import ProductivityGoal
from pulse.analytics.models import ActionableInsight, InsightType, WeeklySummary
from pulse.analytics.sessions import SessionStatus, SessionType, TimeSession
from pulse.analytics.snapshot import ProductivitySnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

MEMORY_DATABASE = ":memory:"

SCHEMA = """
CREATE TABLE IF NOT EXISTS productivity_snapshots (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    snapshot_date TEXT NOT NULL,
    tasks_created INTEGER NOT NULL DEFAULT 0,
    tasks_completed INTEGER NOT NULL DEFAULT 0,
    tasks_overdue INTEGER NOT NULL DEFAULT 0,
    task_completion_rate REAL NOT NULL DEFAULT 0,
    avg_task_duration_minutes INTEGER NOT NULL DEFAULT 0,
    blocks_scheduled INTEGER NOT NULL DEFAULT 0,
    blocks_completed INTEGER NOT NULL DEFAULT 0,
    blocks_missed INTEGER NOT NULL DEFAULT 0,
    scheduled_minutes INTEGER NOT NULL DEFAULT 0,
    completed_minutes INTEGER NOT NULL DEFAULT 0,
    block_completion_rate REAL NOT NULL DEFAULT 0,
    habits_due INTEGER NOT NULL DEFAULT 0,
    habits_completed INTEGER NOT NULL DEFAULT 0,
    habit_completion_rate REAL NOT NULL DEFAULT 0,
    longest_streak INTEGER NOT NULL DEFAULT 0,
    focus_sessions INTEGER NOT NULL DEFAULT 0,
    total_focus_minutes INTEGER NOT NULL DEFAULT 0,
    avg_focus_session_minutes INTEGER NOT NULL DEFAULT 0,
    productivity_score INTEGER NOT NULL DEFAULT 0,
    peak_hours TEXT NOT NULL DEFAULT '[]',
    time_by_category TEXT NOT NULL DEFAULT '{}',
    computed_at TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (user_id, snapshot_date)
);

CREATE TABLE IF NOT EXISTS weekly_summaries (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    week_start TEXT NOT NULL,
    week_end TEXT NOT NULL,
    total_tasks_completed INTEGER NOT NULL DEFAULT 0,
    total_habits_completed INTEGER NOT NULL DEFAULT 0,
    total_blocks_completed INTEGER NOT NULL DEFAULT 0,
    total_focus_minutes INTEGER NOT NULL DEFAULT 0,
    avg_daily_productivity_score REAL NOT NULL DEFAULT 0,
    avg_daily_focus_minutes INTEGER NOT NULL DEFAULT 0,
    productivity_trend REAL NOT NULL DEFAULT 0,
    focus_trend REAL NOT NULL DEFAULT 0,
    most_productive_day TEXT,
    least_productive_day TEXT,
    habits_with_streak INTEGER NOT NULL DEFAULT 0,
    longest_streak INTEGER NOT NULL DEFAULT 0,
    computed_at TEXT NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE (user_id, week_start)
);

CREATE TABLE IF NOT EXISTS productivity_goals (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    goal_type TEXT NOT NULL,
    target_value INTEGER NOT NULL,
    current_value INTEGER NOT NULL DEFAULT 0,
    period_type TEXT NOT NULL,
    period_start TEXT NOT NULL,
    period_end TEXT NOT NULL,
    achieved INTEGER NOT NULL DEFAULT 0,
    achieved_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS actionable_insights (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    type TEXT NOT NULL,
    priority TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT NOT NULL,
    suggestion TEXT NOT NULL,
    data_context TEXT NOT NULL DEFAULT '{}',
    valid_from TEXT NOT NULL,
    valid_to TEXT NOT NULL,
    dismissed INTEGER NOT NULL DEFAULT 0,
    dismissed_at TEXT,
    acted_on INTEGER NOT NULL DEFAULT 0,
    acted_on_at TEXT,
    generated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS time_sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    session_type TEXT NOT NULL,
    reference_id TEXT,
    title TEXT NOT NULL,
    category TEXT,
    started_at TEXT NOT NULL,
    ended_at TEXT,
    duration_minutes INTEGER,
    status TEXT NOT NULL DEFAULT 'active',
    interruptions INTEGER NOT NULL DEFAULT 0,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_snapshots_user_date
    ON productivity_snapshots(user_id, snapshot_date);
CREATE INDEX IF NOT EXISTS idx_goals_user_period
    ON productivity_goals(user_id, period_end);
CREATE INDEX IF NOT EXISTS idx_insights_user_type
    ON actionable_insights(user_id, type);
CREATE INDEX IF NOT EXISTS idx_insights_valid_to
    ON actionable_insights(valid_to);
CREATE INDEX IF NOT EXISTS idx_sessions_user_started
    ON time_sessions(user_id, started_at);
"""


def translate_errors(func: Callable[..., T]) -> Callable[..., T]:
    """Decorator raising ``sqlite3`` failures as ``StorageError``."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return func(*args, **kwargs)
        except sqlite3.Error as e:
            logger.error("SQLite %s failed: %s", func.__name__, e)
            raise StorageError(f"{func.__name__} failed: {e}", backend="sqlite") from e

    return wrapper


def format_timestamp(value: datetime | None) -> str | None:
    """Format a datetime as a fixed-width UTC ISO string."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _encode(data: dict[str, Any], json_fields: tuple[str, ...] = ()) -> dict[str, Any]:
    """Prepare an entity dictionary for binding as SQL parameters."""
    row: dict[str, Any] = {}
    for key, value in data.items():
        if key in json_fields:
            row[key] = json.dumps(value)
        elif isinstance(value, datetime):
            row[key] = format_timestamp(value)
        elif isinstance(value, bool):
            row[key] = int(value)
        else:
            row[key] = value
    return row


def _decode(
    row: sqlite3.Row,
    json_fields: tuple[str, ...] = (),
    timestamp_fields: tuple[str, ...] = (),
    bool_fields: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Turn a row back into an entity dictionary."""
    data = dict(row)
    for key in json_fields:
        data[key] = json.loads(data[key]) if data.get(key) else None
    for key in timestamp_fields:
        data[key] = parse_timestamp(data.get(key))
    for key in bool_fields:
        data[key] = bool(data.get(key))
    return data


def _insert_sql(table: str, columns: list[str]) -> str:
    placeholders = ", ".join(f":{c}" for c in columns)
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


def _upsert_sql(table: str, columns: list[str], conflict: str, keep: tuple[str, ...]) -> str:
    updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c not in keep)
    return f"{_insert_sql(table, columns)} ON CONFLICT({conflict}) DO UPDATE SET {updates}"


def _update_sql(table: str, columns: list[str]) -> str:
    assignments = ", ".join(f"{c} = :{c}" for c in columns if c != "id")
    return f"UPDATE {table} SET {assignments} WHERE id = :id"


class SQLiteDatabase:
    """SQLite connection holding the analytics tables.

    Uses WAL mode for better concurrent access and performance.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize SQLite storage.

        Args:
            db_path: Path to the database file, or ``":memory:"``.
        """
        self._db_path = str(db_path)
        if self._db_path != MEMORY_DATABASE:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row

            # Enable WAL mode for better concurrency
            self._conn.execute("PRAGMA journal_mode=WAL")

            self._conn.executescript(SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"could not open {self._db_path}: {e}", backend="sqlite") from e

        logger.debug("Opened SQLite database at %s", self._db_path)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def execute(self, sql: str, params: Any = ()) -> sqlite3.Cursor:
        return self._conn.execute(sql, params)

    def write(self, sql: str, params: Any = ()) -> sqlite3.Cursor:
        """Execute a statement and commit it."""
        cursor = self._conn.execute(sql, params)
        self._conn.commit()
        return cursor

    def has_table(self, name: str) -> bool:
        cursor = self._conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
        )
        return cursor.fetchone() is not None

    def is_wal_mode_enabled(self) -> bool:
        """Check if WAL mode is enabled."""
        cursor = self._conn.execute("PRAGMA journal_mode")
        return cursor.fetchone()[0].lower() == "wal"

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()


SNAPSHOT_COLUMNS = [
    "id", "user_id", "snapshot_date",
    "tasks_created", "tasks_completed", "tasks_overdue",
    "task_completion_rate", "avg_task_duration_minutes",
    "blocks_scheduled", "blocks_completed", "blocks_missed",
    "scheduled_minutes", "completed_minutes", "block_completion_rate",
    "habits_due", "habits_completed", "habit_completion_rate", "longest_streak",
    "focus_sessions", "total_focus_minutes", "avg_focus_session_minutes",
    "productivity_score", "peak_hours", "time_by_category",
    "computed_at", "created_at", "updated_at",
]  # fmt: skip
SNAPSHOT_JSON = ("peak_hours", "time_by_category")
SNAPSHOT_TIMESTAMPS = ("computed_at", "created_at", "updated_at")


class SQLiteSnapshotRepository:
    """Repository for daily productivity snapshots."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def _to_snapshot(self, row: sqlite3.Row) -> ProductivitySnapshot:
        return ProductivitySnapshot.from_dict(_decode(row, SNAPSHOT_JSON, SNAPSHOT_TIMESTAMPS))

    @translate_errors
    def save(self, snapshot: ProductivitySnapshot) -> None:
        """Insert or replace the snapshot for its (user, date)."""
        row = _encode(snapshot.to_dict(), SNAPSHOT_JSON)
        row["updated_at"] = format_timestamp(datetime.now(UTC))
        self._db.write(
            _upsert_sql(
                "productivity_snapshots",
                SNAPSHOT_COLUMNS,
                "user_id, snapshot_date",
                keep=("id", "user_id", "snapshot_date", "created_at"),
            ),
            row,
        )

    @translate_errors
    def get_by_date(self, user_id: str, day: date) -> ProductivitySnapshot | None:
        cursor = self._db.execute(
            "SELECT * FROM productivity_snapshots WHERE user_id = ? AND snapshot_date = ?",
            (user_id, day.isoformat()),
        )
        row = cursor.fetchone()
        return self._to_snapshot(row) if row else None

    @translate_errors
    def get_date_range(self, user_id: str, start: date, end: date) -> list[ProductivitySnapshot]:
        cursor = self._db.execute(
            """
            SELECT * FROM productivity_snapshots
            WHERE user_id = ? AND snapshot_date >= ? AND snapshot_date <= ?
            ORDER BY snapshot_date ASC
            """,
            (user_id, start.isoformat(), end.isoformat()),
        )
        return [self._to_snapshot(row) for row in cursor.fetchall()]

    def get_latest(self, user_id: str) -> ProductivitySnapshot | None:
        recent = self.get_recent(user_id, 1)
        return recent[0] if recent else None

    @translate_errors
    def get_recent(self, user_id: str, limit: int) -> list[ProductivitySnapshot]:
        cursor = self._db.execute(
            """
            SELECT * FROM productivity_snapshots
            WHERE user_id = ?
            ORDER BY snapshot_date DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        return [self._to_snapshot(row) for row in cursor.fetchall()]

    @translate_errors
    def get_average_score(self, user_id: str, start: date, end: date) -> int:
        cursor = self._db.execute(
            """
            SELECT CAST(COALESCE(AVG(productivity_score), 0) AS INTEGER)
            FROM productivity_snapshots
            WHERE user_id = ? AND snapshot_date >= ? AND snapshot_date <= ?
            """,
            (user_id, start.isoformat(), end.isoformat()),
        )
        return int(cursor.fetchone()[0])


SUMMARY_COLUMNS = [
    "id", "user_id", "week_start", "week_end",
    "total_tasks_completed", "total_habits_completed",
    "total_blocks_completed", "total_focus_minutes",
    "avg_daily_productivity_score", "avg_daily_focus_minutes",
    "productivity_trend", "focus_trend",
    "most_productive_day", "least_productive_day",
    "habits_with_streak", "longest_streak",
    "computed_at", "created_at",
]  # fmt: skip
SUMMARY_TIMESTAMPS = ("computed_at", "created_at")


class SQLiteSummaryRepository:
    """Repository for weekly summaries."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def _to_summary(self, row: sqlite3.Row) -> WeeklySummary:
        return WeeklySummary.from_dict(_decode(row, timestamp_fields=SUMMARY_TIMESTAMPS))

    @translate_errors
    def save(self, summary: WeeklySummary) -> None:
        """Insert or replace the summary for its (user, week)."""
        self._db.write(
            _upsert_sql(
                "weekly_summaries",
                SUMMARY_COLUMNS,
                "user_id, week_start",
                keep=("id", "user_id", "week_start", "created_at"),
            ),
            _encode(summary.to_dict()),
        )

    @translate_errors
    def get_by_week(self, user_id: str, week_start: date) -> WeeklySummary | None:
        cursor = self._db.execute(
            "SELECT * FROM weekly_summaries WHERE user_id = ? AND week_start = ?",
            (user_id, week_start.isoformat()),
        )
        row = cursor.fetchone()
        return self._to_summary(row) if row else None

    @translate_errors
    def get_recent(self, user_id: str, limit: int) -> list[WeeklySummary]:
        cursor = self._db.execute(
            "SELECT * FROM weekly_summaries WHERE user_id = ? ORDER BY week_start DESC LIMIT ?",
            (user_id, limit),
        )
        return [self._to_summary(row) for row in cursor.fetchall()]

    def get_latest(self, user_id: str) -> WeeklySummary | None:
        recent = self.get_recent(user_id, 1)
        return recent[0] if recent else None


GOAL_COLUMNS = [
    "id", "user_id", "goal_type", "target_value", "current_value",
    "period_type", "period_start", "period_end",
    "achieved", "achieved_at", "created_at", "updated_at",
]  # fmt: skip
GOAL_TIMESTAMPS = ("period_start", "period_end", "achieved_at", "created_at", "updated_at")


class SQLiteGoalRepository:
    """Repository for productivity goals."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def _to_goal(self, row: sqlite3.Row) -> ProductivityGoal:
        return ProductivityGoal.from_dict(
            _decode(row, timestamp_fields=GOAL_TIMESTAMPS, bool_fields=("achieved",))
        )

    @translate_errors
    def create(self, goal: ProductivityGoal) -> None:
        self._db.write(_insert_sql("productivity_goals", GOAL_COLUMNS), _encode(goal.to_dict()))

    @translate_errors
    def update(self, goal: ProductivityGoal) -> None:
        goal.updated_at = datetime.now(UTC)
        self._db.write(_update_sql("productivity_goals", GOAL_COLUMNS), _encode(goal.to_dict()))

    @translate_errors
    def get_by_id(self, goal_id: str) -> ProductivityGoal | None:
        cursor = self._db.execute("SELECT * FROM productivity_goals WHERE id = ?", (goal_id,))
        row = cursor.fetchone()
        return self._to_goal(row) if row else None

    @translate_errors
    def get_active(self, user_id: str, now: datetime | None = None) -> list[ProductivityGoal]:
        now_ts = format_timestamp(now or datetime.now(UTC))
        cursor = self._db.execute(
            """
            SELECT * FROM productivity_goals
            WHERE user_id = ? AND achieved = 0 AND period_start <= ? AND period_end >= ?
            ORDER BY period_end ASC
            """,
            (user_id, now_ts, now_ts),
        )
        return [self._to_goal(row) for row in cursor.fetchall()]

    @translate_errors
    def get_by_period(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[ProductivityGoal]:
        cursor = self._db.execute(
            """
            SELECT * FROM productivity_goals
            WHERE user_id = ? AND period_start >= ? AND period_end <= ?
            ORDER BY period_start ASC
            """,
            (user_id, format_timestamp(start), format_timestamp(end)),
        )
        return [self._to_goal(row) for row in cursor.fetchall()]

    @translate_errors
    def get_achieved(self, user_id: str, limit: int) -> list[ProductivityGoal]:
        cursor = self._db.execute(
            """
            SELECT * FROM productivity_goals
            WHERE user_id = ? AND achieved = 1
            ORDER BY achieved_at DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        return [self._to_goal(row) for row in cursor.fetchall()]

    @translate_errors
    def delete(self, goal_id: str) -> None:
        self._db.write("DELETE FROM productivity_goals WHERE id = ?", (goal_id,))


INSIGHT_COLUMNS = [
    "id", "user_id", "type", "priority", "title", "description", "suggestion",
    "data_context", "valid_from", "valid_to",
    "dismissed", "dismissed_at", "acted_on", "acted_on_at", "generated_at",
]  # fmt: skip
INSIGHT_JSON = ("data_context",)
INSIGHT_TIMESTAMPS = ("valid_from", "valid_to", "dismissed_at", "acted_on_at", "generated_at")


class SQLiteInsightRepository:
    """Repository for actionable insights."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def _to_insight(self, row: sqlite3.Row) -> ActionableInsight:
        return ActionableInsight.from_dict(
            _decode(row, INSIGHT_JSON, INSIGHT_TIMESTAMPS, bool_fields=("dismissed", "acted_on"))
        )

    @translate_errors
    def create(self, insight: ActionableInsight) -> None:
        self._db.write(
            _insert_sql("actionable_insights", INSIGHT_COLUMNS),
            _encode(insight.to_dict(), INSIGHT_JSON),
        )

    @translate_errors
    def update(self, insight: ActionableInsight) -> None:
        self._db.write(
            _update_sql("actionable_insights", INSIGHT_COLUMNS),
            _encode(insight.to_dict(), INSIGHT_JSON),
        )

    @translate_errors
    def get_by_id(self, insight_id: str) -> ActionableInsight | None:
        cursor = self._db.execute("SELECT * FROM actionable_insights WHERE id = ?", (insight_id,))
        row = cursor.fetchone()
        return self._to_insight(row) if row else None

    @translate_errors
    def get_active(self, user_id: str, now: datetime | None = None) -> list[ActionableInsight]:
        now_ts = format_timestamp(now or datetime.now(UTC))
        cursor = self._db.execute(
            """
            SELECT * FROM actionable_insights
            WHERE user_id = ? AND dismissed = 0 AND acted_on = 0
                AND valid_from <= ? AND valid_to >= ?
            ORDER BY
                CASE priority WHEN 'high' THEN 0 WHEN 'medium' THEN 1 ELSE 2 END,
                generated_at DESC
            """,
            (user_id, now_ts, now_ts),
        )
        return [self._to_insight(row) for row in cursor.fetchall()]

    @translate_errors
    def get_by_type(self, user_id: str, insight_type: InsightType) -> list[ActionableInsight]:
        cursor = self._db.execute(
            """
            SELECT * FROM actionable_insights
            WHERE user_id = ? AND type = ?
            ORDER BY generated_at DESC
            """,
            (user_id, insight_type.value),
        )
        return [self._to_insight(row) for row in cursor.fetchall()]

    @translate_errors
    def get_recent(self, user_id: str, limit: int) -> list[ActionableInsight]:
        cursor = self._db.execute(
            """
            SELECT * FROM actionable_insights
            WHERE user_id = ?
            ORDER BY generated_at DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        return [self._to_insight(row) for row in cursor.fetchall()]

    @translate_errors
    def delete(self, insight_id: str) -> None:
        self._db.write("DELETE FROM actionable_insights WHERE id = ?", (insight_id,))

    @translate_errors
    def delete_expired(self, now: datetime | None = None) -> int:
        cursor = self._db.write(
            "DELETE FROM actionable_insights WHERE valid_to < ?",
            (format_timestamp(now or datetime.now(UTC)),),
        )
        return cursor.rowcount


SESSION_COLUMNS = [
    "id", "user_id", "session_type", "reference_id", "title", "category",
    "started_at", "ended_at", "duration_minutes", "status",
    "interruptions", "notes", "created_at", "updated_at",
]  # fmt: skip
SESSION_TIMESTAMPS = ("started_at", "ended_at", "created_at", "updated_at")


class SQLiteSessionRepository:
    """Repository for time sessions."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def _to_session(self, row: sqlite3.Row) -> TimeSession:
        return TimeSession.from_dict(_decode(row, timestamp_fields=SESSION_TIMESTAMPS))

    @translate_errors
    def create(self, session: TimeSession) -> None:
        self._db.write(_insert_sql("time_sessions", SESSION_COLUMNS), _encode(session.to_dict()))

    @translate_errors
    def update(self, session: TimeSession) -> None:
        self._db.write(_update_sql("time_sessions", SESSION_COLUMNS), _encode(session.to_dict()))

    @translate_errors
    def get_by_id(self, session_id: str) -> TimeSession | None:
        cursor = self._db.execute("SELECT * FROM time_sessions WHERE id = ?", (session_id,))
        row = cursor.fetchone()
        return self._to_session(row) if row else None

    @translate_errors
    def get_active(self, user_id: str) -> TimeSession | None:
        cursor = self._db.execute(
            """
            SELECT * FROM time_sessions
            WHERE user_id = ? AND status = ?
            ORDER BY started_at DESC
            LIMIT 1
            """,
            (user_id, SessionStatus.ACTIVE.value),
        )
        row = cursor.fetchone()
        return self._to_session(row) if row else None

    @translate_errors
    def get_by_date_range(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[TimeSession]:
        cursor = self._db.execute(
            """
            SELECT * FROM time_sessions
            WHERE user_id = ? AND started_at >= ? AND started_at <= ?
            ORDER BY started_at ASC
            """,
            (user_id, format_timestamp(start), format_timestamp(end)),
        )
        return [self._to_session(row) for row in cursor.fetchall()]

    @translate_errors
    def get_by_type(
        self, user_id: str, session_type: SessionType, limit: int
    ) -> list[TimeSession]:
        cursor = self._db.execute(
            """
            SELECT * FROM time_sessions
            WHERE user_id = ? AND session_type = ?
            ORDER BY started_at DESC
            LIMIT ?
            """,
            (user_id, session_type.value, limit),
        )
        return [self._to_session(row) for row in cursor.fetchall()]

    @translate_errors
    def get_total_focus_minutes(self, user_id: str, start: datetime, end: datetime) -> int:
        cursor = self._db.execute(
            """
            SELECT COALESCE(SUM(duration_minutes), 0) FROM time_sessions
            WHERE user_id = ? AND session_type = ? AND status = ?
                AND started_at >= ? AND started_at <= ?
            """,
            (
                user_id,
                SessionType.FOCUS.value,
                SessionStatus.COMPLETED.value,
                format_timestamp(start),
                format_timestamp(end),
            ),
        )
        return int(cursor.fetchone()[0])

    @translate_errors
    def delete(self, session_id: str) -> None:
        self._db.write("DELETE FROM time_sessions WHERE id = ?", (session_id,))


__all__ = [
    "SQLiteDatabase",
    "SQLiteGoalRepository",
    "SQLiteInsightRepository",
    "SQLiteSessionRepository",
    "SQLiteSnapshotRepository",
    "SQLiteSummaryRepository",
    "format_timestamp",
    "parse_timestamp",
    "translate_errors",
]
