"""Shared fixtures: in-memory repositories and snapshot factories."""

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, date, datetime
from typing import Any

import pytest

from pulse.analytics.goals import ProductivityGoal
from pulse.analytics.models import ActionableInsight, InsightPriority, InsightType, WeeklySummary
from pulse.analytics.sessions import SessionStatus, SessionType, TimeSession
from pulse.analytics.snapshot import (
    BlockStats,
    HabitStats,
    PeakHour,
    ProductivitySnapshot,
    TaskStats,
)
from pulse.service import AnalyticsService

PRIORITY_ORDER = {InsightPriority.HIGH: 0, InsightPriority.MEDIUM: 1, InsightPriority.LOW: 2}


class InMemorySnapshotRepository:
    """Snapshot store keyed by (user, date)."""

    def __init__(self) -> None:
        self.items: dict[tuple[str, date], ProductivitySnapshot] = {}

    def save(self, snapshot: ProductivitySnapshot) -> None:
        self.items[(snapshot.user_id, snapshot.snapshot_date)] = snapshot

    def get_by_date(self, user_id: str, day: date) -> ProductivitySnapshot | None:
        return self.items.get((user_id, day))

    def get_date_range(self, user_id: str, start: date, end: date) -> list[ProductivitySnapshot]:
        return sorted(
            (
                s
                for (uid, day), s in self.items.items()
                if uid == user_id and start <= day <= end
            ),
            key=lambda s: s.snapshot_date,
        )

    def get_latest(self, user_id: str) -> ProductivitySnapshot | None:
        recent = self.get_recent(user_id, 1)
        return recent[0] if recent else None

    def get_recent(self, user_id: str, limit: int) -> list[ProductivitySnapshot]:
        mine = [s for (uid, _), s in self.items.items() if uid == user_id]
        return sorted(mine, key=lambda s: s.snapshot_date, reverse=True)[:limit]

    def get_average_score(self, user_id: str, start: date, end: date) -> int:
        scores = [s.productivity_score for s in self.get_date_range(user_id, start, end)]
        return int(sum(scores) / len(scores)) if scores else 0


class InMemorySummaryRepository:
    """Weekly summary store keyed by (user, week start)."""

    def __init__(self) -> None:
        self.items: dict[tuple[str, date], WeeklySummary] = {}

    def save(self, summary: WeeklySummary) -> None:
        self.items[(summary.user_id, summary.week_start)] = summary

    def get_by_week(self, user_id: str, week_start: date) -> WeeklySummary | None:
        return self.items.get((user_id, week_start))

    def get_recent(self, user_id: str, limit: int) -> list[WeeklySummary]:
        mine = [s for (uid, _), s in self.items.items() if uid == user_id]
        return sorted(mine, key=lambda s: s.week_start, reverse=True)[:limit]

    def get_latest(self, user_id: str) -> WeeklySummary | None:
        recent = self.get_recent(user_id, 1)
        return recent[0] if recent else None


class InMemoryGoalRepository:
    """Goal store keyed by ID."""

    def __init__(self) -> None:
        self.items: dict[str, ProductivityGoal] = {}

    def create(self, goal: ProductivityGoal) -> None:
        self.items[goal.id] = goal

    def update(self, goal: ProductivityGoal) -> None:
        self.items[goal.id] = goal

    def get_by_id(self, goal_id: str) -> ProductivityGoal | None:
        return self.items.get(goal_id)

    def get_active(self, user_id: str, now: datetime | None = None) -> list[ProductivityGoal]:
        now = now or datetime.now(UTC)
        active = [g for g in self.items.values() if g.user_id == user_id and g.is_active(now)]
        return sorted(active, key=lambda g: g.period_end)

    def get_by_period(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[ProductivityGoal]:
        goals = [
            g
            for g in self.items.values()
            if g.user_id == user_id and g.period_start >= start and g.period_end <= end
        ]
        return sorted(goals, key=lambda g: g.period_start)

    def get_achieved(self, user_id: str, limit: int) -> list[ProductivityGoal]:
        achieved = [g for g in self.items.values() if g.user_id == user_id and g.achieved]
        return sorted(achieved, key=lambda g: g.achieved_at, reverse=True)[:limit]

    def delete(self, goal_id: str) -> None:
        self.items.pop(goal_id, None)


class InMemoryInsightRepository:
    """Insight store keyed by ID."""

    def __init__(self) -> None:
        self.items: dict[str, ActionableInsight] = {}

    def create(self, insight: ActionableInsight) -> None:
        self.items[insight.id] = insight

    def update(self, insight: ActionableInsight) -> None:
        self.items[insight.id] = insight

    def get_by_id(self, insight_id: str) -> ActionableInsight | None:
        return self.items.get(insight_id)

    def get_active(self, user_id: str, now: datetime | None = None) -> list[ActionableInsight]:
        now = now or datetime.now(UTC)
        active = [
            i for i in self.items.values() if i.user_id == user_id and i.is_actionable(now)
        ]
        active.sort(key=lambda i: i.generated_at, reverse=True)
        return sorted(active, key=lambda i: PRIORITY_ORDER[i.priority])

    def get_by_type(self, user_id: str, insight_type: InsightType) -> list[ActionableInsight]:
        return [
            i for i in self.items.values() if i.user_id == user_id and i.type == insight_type
        ]

    def get_recent(self, user_id: str, limit: int) -> list[ActionableInsight]:
        mine = [i for i in self.items.values() if i.user_id == user_id]
        return sorted(mine, key=lambda i: i.generated_at, reverse=True)[:limit]

    def delete(self, insight_id: str) -> None:
        self.items.pop(insight_id, None)

    def delete_expired(self, now: datetime | None = None) -> int:
        now = now or datetime.now(UTC)
        expired = [i.id for i in self.items.values() if i.valid_to < now]
        for insight_id in expired:
            del self.items[insight_id]
        return len(expired)


class InMemorySessionRepository:
    """Time session store keyed by ID."""

    def __init__(self) -> None:
        self.items: dict[str, TimeSession] = {}

    def create(self, session: TimeSession) -> None:
        self.items[session.id] = session

    def update(self, session: TimeSession) -> None:
        self.items[session.id] = session

    def get_by_id(self, session_id: str) -> TimeSession | None:
        return self.items.get(session_id)

    def get_active(self, user_id: str) -> TimeSession | None:
        for session in self.items.values():
            if session.user_id == user_id and session.status == SessionStatus.ACTIVE:
                return session
        return None

    def get_by_date_range(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[TimeSession]:
        sessions = [
            s
            for s in self.items.values()
            if s.user_id == user_id and start <= s.started_at <= end
        ]
        return sorted(sessions, key=lambda s: s.started_at)

    def get_by_type(
        self, user_id: str, session_type: SessionType, limit: int
    ) -> list[TimeSession]:
        sessions = [
            s
            for s in self.items.values()
            if s.user_id == user_id and s.session_type == session_type
        ]
        return sorted(sessions, key=lambda s: s.started_at, reverse=True)[:limit]

    def get_total_focus_minutes(self, user_id: str, start: datetime, end: datetime) -> int:
        return sum(
            s.duration_minutes or 0
            for s in self.get_by_date_range(user_id, start, end)
            if s.session_type == SessionType.FOCUS and s.status == SessionStatus.COMPLETED
        )

    def delete(self, session_id: str) -> None:
        self.items.pop(session_id, None)


class StaticDataSource:
    """Data source returning the same statistics for any range."""

    def __init__(
        self,
        tasks: TaskStats | None = None,
        blocks: BlockStats | None = None,
        habits: HabitStats | None = None,
        peak_hours: list[PeakHour] | None = None,
        time_by_category: dict[str, int] | None = None,
    ) -> None:
        self.tasks = tasks
        self.blocks = blocks
        self.habits = habits
        self.peak_hours = peak_hours or []
        self.time_by_category = time_by_category or {}

    def get_task_stats(self, user_id: str, start: datetime, end: datetime) -> TaskStats | None:
        return self.tasks

    def get_block_stats(self, user_id: str, start: datetime, end: datetime) -> BlockStats | None:
        return self.blocks

    def get_habit_stats(self, user_id: str, start: datetime, end: datetime) -> HabitStats | None:
        return self.habits

    def get_peak_hours(self, user_id: str, start: datetime, end: datetime) -> list[PeakHour]:
        return self.peak_hours

    def get_time_by_category(
        self, user_id: str, start: datetime, end: datetime
    ) -> dict[str, int]:
        return self.time_by_category


@pytest.fixture
def snapshots() -> InMemorySnapshotRepository:
    return InMemorySnapshotRepository()


@pytest.fixture
def summaries() -> InMemorySummaryRepository:
    return InMemorySummaryRepository()


@pytest.fixture
def goals() -> InMemoryGoalRepository:
    return InMemoryGoalRepository()


@pytest.fixture
def insights() -> InMemoryInsightRepository:
    return InMemoryInsightRepository()


@pytest.fixture
def sessions() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def data_source() -> StaticDataSource:
    return StaticDataSource()


@pytest.fixture
def service(
    snapshots: InMemorySnapshotRepository,
    summaries: InMemorySummaryRepository,
    goals: InMemoryGoalRepository,
    insights: InMemoryInsightRepository,
    sessions: InMemorySessionRepository,
    data_source: StaticDataSource,
) -> AnalyticsService:
    return AnalyticsService(
        snapshots, summaries, goals, insights, sessions, data_source=data_source
    )


@pytest.fixture
def make_snapshot() -> Callable[..., ProductivitySnapshot]:
    """Factory for snapshots with explicit field values.

    Scores and rates are taken as given rather than derived, so rule
    thresholds can be hit exactly.
    """

    def _make(user_id: str = "user-1", day: date = date(2024, 1, 15), **fields: Any):
        return replace(ProductivitySnapshot(user_id=user_id, snapshot_date=day), **fields)

    return _make
