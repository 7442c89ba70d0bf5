"""Tests for AnalyticsService."""

from datetime import UTC, date, datetime, timedelta

import pytest

from pulse.analytics.errors import (
    GoalAlreadyAchievedError,
    GoalNotFoundError,
    InsightNotFoundError,
    InvalidSessionError,
    InvalidTargetError,
    NoActiveSessionError,
    SessionAlreadyActiveError,
    StorageError,
)
from pulse.analytics.goals import GoalType
from pulse.analytics.models import ActionableInsight, InsightPriority, InsightType
from pulse.analytics.periods import PeriodType
from pulse.analytics.sessions import SessionStatus, SessionType
from pulse.analytics.snapshot import PeakHour, TaskStats
from pulse.service import AnalyticsService

DAY = date(2024, 1, 15)
NOW = datetime(2024, 1, 17, 15, 0, tzinfo=UTC)  # Wednesday
NINE_AM = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)


def make_insight(
    user_id: str = "user-1", priority: InsightPriority = InsightPriority.MEDIUM
) -> ActionableInsight:
    return ActionableInsight.create(
        user_id,
        InsightType.PEAK_HOUR,
        priority,
        "Peak productivity at 9:00",
        "You complete the most tasks around 9:00.",
        "Schedule important work then.",
        timedelta(days=3),
        now=NOW,
    )


class TestComputeSnapshot:
    """Tests for compute_snapshot."""

    def test_combines_activity_and_sessions(self, service, sessions, data_source) -> None:
        """Test raw statistics and completed focus sessions feed the snapshot."""
        data_source.tasks = TaskStats(created=6, completed=4)
        data_source.peak_hours = [PeakHour(9, 3)]
        data_source.time_by_category = {"work": 120}

        service.start_session("user-1", SessionType.FOCUS, "Deep work", now=NINE_AM)
        service.end_session("user-1", now=NINE_AM + timedelta(minutes=50))
        eleven = NINE_AM.replace(hour=11)
        service.start_session("user-1", SessionType.FOCUS, "Cut short", now=eleven)
        service.end_session(
            "user-1", SessionStatus.INTERRUPTED, now=eleven + timedelta(minutes=10)
        )
        service.start_session("user-1", SessionType.TASK, "Email", now=NINE_AM.replace(hour=13))
        service.end_session("user-1", now=NINE_AM.replace(hour=13, minute=30))

        snapshot = service.compute_snapshot("user-1", DAY)

        assert snapshot.tasks_completed == 4
        assert snapshot.task_completion_rate == pytest.approx(0.4)
        assert snapshot.focus_sessions == 1
        assert snapshot.total_focus_minutes == 50
        assert snapshot.avg_focus_session_minutes == 50
        assert snapshot.peak_hours == (PeakHour(9, 3),)
        assert snapshot.time_by_category == {"work": 120}
        assert snapshot.productivity_score == 15

    def test_missing_statistics_count_as_zero(self, service) -> None:
        """Test a data source without rows yields an empty snapshot."""
        snapshot = service.compute_snapshot("user-1", DAY)
        assert snapshot.tasks_created == 0
        assert snapshot.blocks_scheduled == 0
        assert snapshot.habits_due == 0
        assert snapshot.productivity_score == 0

    def test_without_data_source(self, snapshots, summaries, goals, insights, sessions) -> None:
        """Test snapshots still carry session data without activity statistics."""
        service = AnalyticsService(snapshots, summaries, goals, insights, sessions)
        service.start_session("user-1", SessionType.FOCUS, "Deep work", now=NINE_AM)
        service.end_session("user-1", now=NINE_AM + timedelta(minutes=30))

        snapshot = service.compute_snapshot("user-1", DAY)

        assert snapshot.total_focus_minutes == 30
        assert snapshot.tasks_created == 0

    def test_recompute_replaces_under_same_id(self, service, snapshots, data_source) -> None:
        """Test recomputing a day keeps one snapshot with a stable ID."""
        first = service.compute_snapshot("user-1", DAY)
        data_source.tasks = TaskStats(created=2, completed=2)
        second = service.compute_snapshot("user-1", DAY)

        assert second.id == first.id
        assert second.tasks_completed == 2
        assert len(snapshots.items) == 1


class TestGoals:
    """Tests for goal operations."""

    def test_create_and_progress(self, service) -> None:
        goal = service.create_goal("user-1", GoalType.DAILY_TASKS, 3, PeriodType.DAILY, now=NOW)
        service.increment_goal("user-1", goal.id, 2, now=NOW)
        updated = service.update_goal_progress("user-1", goal.id, 3, now=NOW)

        assert updated.achieved
        assert updated.achieved_at == NOW
        assert service.get_active_goals("user-1", now=NOW) == []
        assert service.get_achieved_goals("user-1") == [updated]

    def test_create_rejects_non_positive_target(self, service) -> None:
        with pytest.raises(InvalidTargetError):
            service.create_goal("user-1", GoalType.DAILY_TASKS, 0, PeriodType.DAILY, now=NOW)

    def test_achieved_goal_rejects_progress(self, service) -> None:
        goal = service.create_goal("user-1", GoalType.DAILY_TASKS, 1, PeriodType.DAILY, now=NOW)
        service.update_goal_progress("user-1", goal.id, 1, now=NOW)
        with pytest.raises(GoalAlreadyAchievedError):
            service.increment_goal("user-1", goal.id, now=NOW)

    def test_unknown_goal(self, service) -> None:
        with pytest.raises(GoalNotFoundError):
            service.update_goal_progress("user-1", "missing", 1, now=NOW)

    def test_other_users_goal_is_not_found(self, service) -> None:
        """Test goals are only reachable by their owner."""
        goal = service.create_goal("user-2", GoalType.DAILY_TASKS, 3, PeriodType.DAILY, now=NOW)
        with pytest.raises(GoalNotFoundError):
            service.update_goal_progress("user-1", goal.id, 1, now=NOW)
        with pytest.raises(GoalNotFoundError):
            service.delete_goal("user-1", goal.id)

    def test_goals_for_period(self, service) -> None:
        daily = service.create_goal("user-1", GoalType.DAILY_TASKS, 3, PeriodType.DAILY, now=NOW)
        service.create_goal("user-1", GoalType.MONTHLY_TASKS, 30, PeriodType.MONTHLY, now=NOW)

        week_start = datetime(2024, 1, 15, tzinfo=UTC)
        found = service.get_goals_for_period("user-1", week_start, week_start + timedelta(days=7))

        assert [g.id for g in found] == [daily.id]

    def test_delete_goal(self, service, goals) -> None:
        goal = service.create_goal("user-1", GoalType.DAILY_TASKS, 3, PeriodType.DAILY, now=NOW)
        service.delete_goal("user-1", goal.id)
        assert goal.id not in goals.items


class TestInsights:
    """Tests for insight operations."""

    def test_active_insights_count_high_priority(self, service, insights) -> None:
        insights.create(make_insight(priority=InsightPriority.HIGH))
        insights.create(make_insight(priority=InsightPriority.LOW))

        active = service.get_active_insights("user-1", now=NOW)

        assert active.total_count == 2
        assert active.high_priority == 1
        assert active.insights[0].priority == InsightPriority.HIGH

    def test_dismiss(self, service, insights) -> None:
        insight = make_insight()
        insights.create(insight)

        service.dismiss_insight("user-1", insight.id, now=NOW)

        assert insights.items[insight.id].dismissed
        assert service.get_active_insights("user-1", now=NOW).total_count == 0

    def test_mark_acted_on(self, service, insights) -> None:
        insight = make_insight()
        insights.create(insight)

        service.mark_insight_acted_on("user-1", insight.id, now=NOW)

        assert insights.items[insight.id].acted_on_at == NOW

    def test_unknown_insight(self, service) -> None:
        with pytest.raises(InsightNotFoundError):
            service.dismiss_insight("user-1", "missing")
        with pytest.raises(InsightNotFoundError):
            service.mark_insight_acted_on("user-1", "missing")

    def test_other_users_insight_is_left_alone(self, service, insights) -> None:
        """Test acting on another user's insight changes nothing."""
        insight = make_insight(user_id="user-2")
        insights.create(insight)

        service.dismiss_insight("user-1", insight.id, now=NOW)
        service.mark_insight_acted_on("user-1", insight.id, now=NOW)

        assert not insight.dismissed
        assert not insight.acted_on

    def test_recent_limit_defaults(self, service, insights) -> None:
        """Test a non-positive limit falls back to twenty."""
        for _ in range(25):
            insights.create(make_insight())
        assert len(service.get_recent_insights("user-1", limit=0)) == 20
        assert len(service.get_recent_insights("user-1", limit=5)) == 5

    def test_insights_by_type(self, service, insights) -> None:
        insights.create(make_insight())
        assert len(service.get_insights_by_type("user-1", InsightType.PEAK_HOUR)) == 1
        assert service.get_insights_by_type("user-1", InsightType.BEST_DAY) == []

    def test_cleanup_expired(self, service, insights) -> None:
        insights.create(make_insight())
        assert service.cleanup_expired_insights(now=NOW + timedelta(days=4)) == 1
        assert insights.items == {}


class TestSessions:
    """Tests for session operations."""

    def test_start_and_end(self, service) -> None:
        session = service.start_session(
            "user-1", SessionType.FOCUS, "Deep work", category="work", now=NINE_AM
        )
        assert service.get_active_session("user-1") is session

        ended = service.end_session(
            "user-1", notes="Wrote intro", now=NINE_AM + timedelta(minutes=45)
        )

        assert ended.status == SessionStatus.COMPLETED
        assert ended.duration_minutes == 45
        assert ended.notes == "Wrote intro"
        assert service.get_active_session("user-1") is None

    def test_one_active_session_per_user(self, service) -> None:
        """Test starting while a session runs is rejected."""
        service.start_session("user-1", SessionType.FOCUS, "Deep work", now=NINE_AM)
        with pytest.raises(SessionAlreadyActiveError):
            service.start_session("user-1", SessionType.TASK, "Email", now=NINE_AM)

        other = service.start_session("user-2", SessionType.TASK, "Email", now=NINE_AM)
        assert other.is_active()

    def test_end_as_active_leaves_session_running(self, service, sessions) -> None:
        """Test an active final status is rejected and the user can still end."""
        session = service.start_session("user-1", SessionType.FOCUS, "Deep work", now=NINE_AM)

        with pytest.raises(InvalidSessionError):
            service.end_session(
                "user-1",
                SessionStatus.ACTIVE,
                notes="Halfway",
                now=NINE_AM + timedelta(minutes=30),
            )

        stored = sessions.get_active("user-1")
        assert stored is not None and stored.id == session.id
        assert stored.ended_at is None
        assert stored.notes == ""

        ended = service.end_session("user-1", now=NINE_AM + timedelta(minutes=45))
        assert ended.status == SessionStatus.COMPLETED
        assert service.start_session("user-1", SessionType.TASK, "Email", now=NINE_AM).is_active()

    def test_end_without_active_session(self, service) -> None:
        with pytest.raises(NoActiveSessionError):
            service.end_session("user-1")


class TestDashboard:
    """Tests for get_dashboard."""

    def test_assembles_sections(self, service, snapshots, make_snapshot) -> None:
        snapshots.save(make_snapshot(day=date(2024, 1, 15), productivity_score=60))
        snapshots.save(make_snapshot(day=date(2024, 1, 17), productivity_score=80))
        service.compute_weekly_summary("user-1", date(2024, 1, 15), now=NOW)
        service.create_goal("user-1", GoalType.WEEKLY_TASKS, 10, PeriodType.WEEKLY, now=NOW)
        service.start_session("user-1", SessionType.FOCUS, "Deep work", now=NOW)

        dashboard = service.get_dashboard("user-1", now=NOW)

        assert dashboard.today is not None and dashboard.today.productivity_score == 80
        assert dashboard.this_week is not None
        assert dashboard.active_session is not None
        assert len(dashboard.active_goals) == 1
        assert len(dashboard.recent_snapshots) == 2
        assert dashboard.avg_score == 70

    def test_focus_this_week(self, service) -> None:
        service.start_session("user-1", SessionType.FOCUS, "Deep work", now=NINE_AM)
        service.end_session("user-1", now=NINE_AM + timedelta(minutes=40))
        assert service.get_dashboard("user-1", now=NOW).focus_this_week == 40

    def test_failing_section_is_left_empty(
        self, service, summaries, snapshots, make_snapshot, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test one failed lookup does not abort the dashboard."""
        snapshots.save(make_snapshot(day=NOW.date(), productivity_score=50))

        def broken(*args, **kwargs):
            raise StorageError("database is locked", backend="sqlite")

        monkeypatch.setattr(summaries, "get_by_week", broken)

        dashboard = service.get_dashboard("user-1", now=NOW)

        assert dashboard.this_week is None
        assert dashboard.today is not None
        assert dashboard.avg_score == 50
