"""End-to-end analytics flow against a SQLite database file.

Seeds activity tables, records focus sessions, then computes snapshots,
a weekly summary, trends, goals and insights through the service.
"""

from collections.abc import Iterator
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

import pytest

from pulse.analytics.goals import GoalType
from pulse.analytics.models import InsightType
from pulse.analytics.periods import PeriodType
from pulse.analytics.sessions import SessionType
from pulse.service import AnalyticsService
from pulse.storage.factory import Repositories, sqlite_repositories
from pulse.storage.sqlite import SQLiteDatabase

pytestmark = pytest.mark.integration

USER = "alice"
# Two full weeks of history ending on Sunday 2024-01-28
FIRST_DAY = date(2024, 1, 15)
LAST_DAY = date(2024, 1, 28)
NOW = datetime(2024, 1, 28, 20, 0, tzinfo=UTC)


def seed_tasks(db: SQLiteDatabase, day: date, completed: int, created: int) -> None:
    db.connection.executemany(
        "INSERT INTO tasks (id, user_id, status, created_at, completed_at) VALUES (?, ?, ?, ?, ?)",
        [
            (
                f"{day.isoformat()}-{i}",
                USER,
                "completed" if i < completed else "pending",
                f"{day.isoformat()}T08:00:00Z",
                f"{day.isoformat()}T10:15:00Z" if i < completed else None,
            )
            for i in range(created)
        ],
    )
    db.connection.commit()


@pytest.fixture
def db(tmp_path: Path) -> SQLiteDatabase:
    database = SQLiteDatabase(tmp_path / "pulse.db")
    database.connection.executescript(
        """
        CREATE TABLE tasks (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            status TEXT NOT NULL,
            due_date TEXT,
            created_at TEXT NOT NULL,
            completed_at TEXT
        );
        """
    )
    return database


@pytest.fixture
def repos(db: SQLiteDatabase) -> Iterator[Repositories]:
    with sqlite_repositories(db) as bundle:
        yield bundle


@pytest.fixture
def service(repos: Repositories) -> AnalyticsService:
    return AnalyticsService(
        repos.snapshots,
        repos.summaries,
        repos.goals,
        repos.insights,
        repos.sessions,
        data_source=repos.data_source,
    )


def record_focus(service: AnalyticsService, day: date, minutes: int) -> None:
    start = datetime(day.year, day.month, day.day, 13, 0, tzinfo=UTC)
    service.start_session(USER, SessionType.FOCUS, "Deep work", now=start)
    service.end_session(USER, now=start + timedelta(minutes=minutes))


def test_two_weeks_of_activity(service: AnalyticsService, db: SQLiteDatabase) -> None:
    """Test a strong first week followed by a weak second week."""
    day = FIRST_DAY
    while day <= LAST_DAY:
        strong = day < date(2024, 1, 22)
        seed_tasks(db, day, completed=8 if strong else 2, created=10)
        record_focus(service, day, 120 if strong else 30)
        service.compute_snapshot(USER, day)
        day += timedelta(days=1)

    first_week = service.compute_weekly_summary(USER, FIRST_DAY, now=NOW)
    second_week = service.compute_weekly_summary(USER, LAST_DAY, now=NOW)

    assert first_week.days_with_data == 7
    assert first_week.summary.total_tasks_completed == 56
    assert second_week.summary.total_focus_minutes == 210
    assert second_week.summary.productivity_trend < -10
    assert second_week.productivity_trend == "significantly declined"

    trends = service.get_trends(USER, days=7, today=LAST_DAY)
    assert trends.productivity_trend is not None
    assert trends.productivity_trend.direction == "down"
    assert trends.best_hour_of_day == 10

    result = service.generate_insights(USER, now=NOW)
    generated = {insight.type for insight in result.insights}
    assert InsightType.PRODUCTIVITY_DROP in generated
    assert InsightType.FOCUS_TIME_LOW in generated
    assert InsightType.PEAK_HOUR in generated
    assert result.errors == []

    again = service.generate_insights(USER, now=NOW + timedelta(hours=1))
    assert again.insights_generated == 0

    active = service.get_active_insights(USER, now=NOW)
    assert active.total_count == len(result.insights)
    assert active.high_priority >= 2


def test_goal_and_dashboard(service: AnalyticsService) -> None:
    goal = service.create_goal(USER, GoalType.WEEKLY_FOCUS_MINUTES, 300, PeriodType.WEEKLY, now=NOW)
    record_focus(service, LAST_DAY, 90)
    service.compute_snapshot(USER, LAST_DAY)
    service.update_goal_progress(USER, goal.id, 90, now=NOW)

    dashboard = service.get_dashboard(USER, now=NOW)

    assert dashboard.today is not None
    assert dashboard.today.total_focus_minutes == 90
    assert dashboard.focus_this_week == 90
    assert [g.current_value for g in dashboard.active_goals] == [90]
    assert dashboard.active_session is None


def test_insight_lifecycle(service: AnalyticsService) -> None:
    """Test dismissed and expired insights leave the active list."""
    for offset in range(3):
        day = LAST_DAY - timedelta(days=offset)
        record_focus(service, day, 20)
        service.compute_snapshot(USER, day)

    result = service.generate_insights(USER, now=NOW)
    low_focus = next(i for i in result.insights if i.type == InsightType.FOCUS_TIME_LOW)

    service.dismiss_insight(USER, low_focus.id, now=NOW)
    remaining = service.get_active_insights(USER, now=NOW)
    assert low_focus.id not in {i.id for i in remaining.insights}

    assert service.cleanup_expired_insights(now=NOW + timedelta(days=30)) == len(result.insights)
    assert service.get_recent_insights(USER) == []
