"""Activity statistics read from the task, calendar and habit tables.

The activity tables are owned by the task, scheduling and habit features
that share the SQLite database. A table that does not exist yet means the
feature has never been used, which reads as "no data".
"""

import logging
from datetime import UTC, date, datetime

from pulse.analytics.snapshot import BlockStats, HabitStats, PeakHour, TaskStats

from .sqlite import SQLiteDatabase, translate_errors

logger = logging.getLogger(__name__)

PEAK_HOURS_LIMIT = 5

# Minutes between two stored timestamps
BLOCK_MINUTES = "CAST(ROUND((julianday(end_time) - julianday(start_time)) * 24 * 60) AS INTEGER)"


def format_bound(value: datetime) -> str:
    """Format a range bound the way activity rows store timestamps."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class SQLiteAnalyticsDataSource:
    """Reads raw per-range activity statistics for snapshot computation."""

    def __init__(self, db: SQLiteDatabase, today: date | None = None) -> None:
        """Initialize the data source.

        Args:
            db: Database holding the activity tables.
            today: Fixed "today" for overdue checks, defaults to the current UTC date.
        """
        self._db = db
        self._today = today

    def _today_iso(self) -> str:
        return (self._today or datetime.now(UTC).date()).isoformat()

    def _missing(self, *tables: str) -> bool:
        for table in tables:
            if not self._db.has_table(table):
                logger.debug("Activity table %s not found, treating as empty", table)
                return True
        return False

    @translate_errors
    def get_task_stats(self, user_id: str, start: datetime, end: datetime) -> TaskStats | None:
        """Count tasks created in the range and how many are completed or overdue."""
        if self._missing("tasks"):
            return None

        row = self._db.execute(
            """
            SELECT
                COUNT(*),
                COALESCE(SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END), 0),
                COALESCE(SUM(CASE WHEN status != 'completed' AND due_date < ? THEN 1 ELSE 0 END), 0)
            FROM tasks
            WHERE user_id = ? AND created_at >= ? AND created_at <= ?
            """,
            (self._today_iso(), user_id, format_bound(start), format_bound(end)),
        ).fetchone()
        return TaskStats(created=row[0], completed=row[1], overdue=row[2])

    @translate_errors
    def get_block_stats(self, user_id: str, start: datetime, end: datetime) -> BlockStats | None:
        """Count time blocks starting in the range and their scheduled minutes."""
        if self._missing("time_blocks"):
            return None

        row = self._db.execute(
            f"""
            SELECT
                COUNT(*),
                COALESCE(SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END), 0),
                COALESCE(SUM(CASE WHEN status = 'missed' THEN 1 ELSE 0 END), 0),
                COALESCE(SUM({BLOCK_MINUTES}), 0),
                COALESCE(SUM(CASE WHEN status = 'completed' THEN {BLOCK_MINUTES} ELSE 0 END), 0)
            FROM time_blocks
            WHERE user_id = ? AND start_time >= ? AND start_time <= ?
            """,
            (user_id, format_bound(start), format_bound(end)),
        ).fetchone()
        return BlockStats(
            scheduled=row[0],
            completed=row[1],
            missed=row[2],
            scheduled_minutes=row[3],
            completed_minutes=row[4],
        )

    @translate_errors
    def get_habit_stats(self, user_id: str, start: datetime, end: datetime) -> HabitStats | None:
        """Count habit completions in the range against the user's active habits."""
        if self._missing("habits", "habit_completions"):
            return None

        completed = self._db.execute(
            """
            SELECT COUNT(*) FROM habit_completions
            WHERE habit_id IN (SELECT id FROM habits WHERE user_id = ?)
                AND completed_at >= ? AND completed_at <= ?
            """,
            (user_id, format_bound(start), format_bound(end)),
        ).fetchone()[0]

        due, longest_streak = self._db.execute(
            """
            SELECT COUNT(*), COALESCE(MAX(current_streak), 0)
            FROM habits
            WHERE user_id = ? AND archived = 0
            """,
            (user_id,),
        ).fetchone()

        return HabitStats(due=due, completed=completed, longest_streak=longest_streak)

    @translate_errors
    def get_peak_hours(self, user_id: str, start: datetime, end: datetime) -> list[PeakHour]:
        """Hours of day with the most task completions, busiest first."""
        if self._missing("tasks"):
            return []

        cursor = self._db.execute(
            """
            SELECT CAST(strftime('%H', completed_at) AS INTEGER) AS hour, COUNT(*) AS completions
            FROM tasks
            WHERE user_id = ? AND status = 'completed'
                AND completed_at >= ? AND completed_at <= ?
            GROUP BY hour
            ORDER BY completions DESC
            LIMIT ?
            """,
            (user_id, format_bound(start), format_bound(end), PEAK_HOURS_LIMIT),
        )
        return [
            PeakHour(hour=row["hour"], completions=row["completions"])
            for row in cursor.fetchall()
            if row["hour"] is not None
        ]

    @translate_errors
    def get_time_by_category(
        self, user_id: str, start: datetime, end: datetime
    ) -> dict[str, int]:
        """Minutes of completed time blocks per block type."""
        if self._missing("time_blocks"):
            return {}

        cursor = self._db.execute(
            f"""
            SELECT COALESCE(block_type, 'other') AS category,
                COALESCE(SUM({BLOCK_MINUTES}), 0) AS minutes
            FROM time_blocks
            WHERE user_id = ? AND status = 'completed'
                AND start_time >= ? AND start_time <= ?
            GROUP BY category
            """,
            (user_id, format_bound(start), format_bound(end)),
        )
        return {row["category"]: row["minutes"] for row in cursor.fetchall()}


__all__ = ["SQLiteAnalyticsDataSource", "format_bound"]
