"""Persistence contracts consumed by the analytics engine.

The engine depends only on these protocols. Concrete SQLite and MongoDB
implementations live in ``pulse.storage``.
"""

from datetime import date, datetime
from typing import Protocol

from .goals import ProductivityGoal
from .models import ActionableInsight, InsightType, WeeklySummary
from .sessions import SessionType, TimeSession
from .snapshot import BlockStats, HabitStats, PeakHour, ProductivitySnapshot, TaskStats


class SnapshotRepository(Protocol):
    """Protocol for storing daily snapshots."""

    def save(self, snapshot: ProductivitySnapshot) -> None:
        """Insert or replace the snapshot for (user, date)."""
        ...

    def get_by_date(self, user_id: str, day: date) -> ProductivitySnapshot | None:
        ...

    def get_date_range(
        self, user_id: str, start: date, end: date
    ) -> list[ProductivitySnapshot]:
        """Get snapshots with start <= date <= end, oldest first."""
        ...

    def get_latest(self, user_id: str) -> ProductivitySnapshot | None:
        ...

    def get_recent(self, user_id: str, limit: int) -> list[ProductivitySnapshot]:
        ...

    def get_average_score(self, user_id: str, start: date, end: date) -> int:
        """Average productivity score in the range, 0 when empty."""
        ...


class SummaryRepository(Protocol):
    """Protocol for storing weekly summaries."""

    def save(self, summary: WeeklySummary) -> None:
        """Insert or replace the summary for (user, week_start)."""
        ...

    def get_by_week(self, user_id: str, week_start: date) -> WeeklySummary | None:
        ...

    def get_recent(self, user_id: str, limit: int) -> list[WeeklySummary]:
        ...

    def get_latest(self, user_id: str) -> WeeklySummary | None:
        ...


class GoalRepository(Protocol):
    """Protocol for storing productivity goals."""

    def create(self, goal: ProductivityGoal) -> None:
        ...

    def update(self, goal: ProductivityGoal) -> None:
        ...

    def get_by_id(self, goal_id: str) -> ProductivityGoal | None:
        ...

    def get_active(self, user_id: str, now: datetime | None = None) -> list[ProductivityGoal]:
        """Unachieved goals whose period contains ``now``."""
        ...

    def get_by_period(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[ProductivityGoal]:
        """Goals whose period lies within [start, end]."""
        ...

    def get_achieved(self, user_id: str, limit: int) -> list[ProductivityGoal]:
        """Achieved goals, most recently achieved first."""
        ...

    def delete(self, goal_id: str) -> None:
        ...


class InsightRepository(Protocol):
    """Protocol for storing generated insights."""

    def create(self, insight: ActionableInsight) -> None:
        ...

    def update(self, insight: ActionableInsight) -> None:
        ...

    def get_by_id(self, insight_id: str) -> ActionableInsight | None:
        ...

    def get_active(self, user_id: str, now: datetime | None = None) -> list[ActionableInsight]:
        """Insights that are actionable at ``now``, highest priority first."""
        ...

    def get_by_type(self, user_id: str, insight_type: InsightType) -> list[ActionableInsight]:
        ...

    def get_recent(self, user_id: str, limit: int) -> list[ActionableInsight]:
        ...

    def delete(self, insight_id: str) -> None:
        ...

    def delete_expired(self, now: datetime | None = None) -> int:
        """Delete insights whose validity ended before ``now``.

        Returns:
            Number of deleted insights.
        """
        ...


class SessionRepository(Protocol):
    """Protocol for storing time sessions."""

    def create(self, session: TimeSession) -> None:
        ...

    def update(self, session: TimeSession) -> None:
        ...

    def get_by_id(self, session_id: str) -> TimeSession | None:
        ...

    def get_active(self, user_id: str) -> TimeSession | None:
        ...

    def get_by_date_range(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[TimeSession]:
        """Sessions started within [start, end], oldest first."""
        ...

    def get_by_type(
        self, user_id: str, session_type: SessionType, limit: int
    ) -> list[TimeSession]:
        ...

    def get_total_focus_minutes(self, user_id: str, start: datetime, end: datetime) -> int:
        """Sum of completed focus session minutes started in [start, end]."""
        ...

    def delete(self, session_id: str) -> None:
        ...


class AnalyticsDataSource(Protocol):
    """Protocol for raw per-range activity statistics.

    ``None`` from a stats method means no data and is treated as zeros.
    """

    def get_task_stats(self, user_id: str, start: datetime, end: datetime) -> TaskStats | None:
        ...

    def get_block_stats(self, user_id: str, start: datetime, end: datetime) -> BlockStats | None:
        ...

    def get_habit_stats(self, user_id: str, start: datetime, end: datetime) -> HabitStats | None:
        ...

    def get_peak_hours(self, user_id: str, start: datetime, end: datetime) -> list[PeakHour]:
        ...

    def get_time_by_category(
        self, user_id: str, start: datetime, end: datetime
    ) -> dict[str, int]:
        ...


__all__ = [
    "AnalyticsDataSource",
    "GoalRepository",
    "InsightRepository",
    "SessionRepository",
    "SnapshotRepository",
    "SummaryRepository",
]
