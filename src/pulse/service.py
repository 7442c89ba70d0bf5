"""Analytics service.

Single entry point for callers: computes snapshots and summaries, manages
goals, sessions and insights, and assembles the dashboard. Depends only on
the repository protocols, never on a concrete backend.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta

from pulse.analytics.errors import (
    GoalNotFoundError,
    InsightNotFoundError,
    NoActiveSessionError,
    PulseError,
    SessionAlreadyActiveError,
)
from pulse.analytics.goals import GoalType, ProductivityGoal
from pulse.analytics.models import ActionableInsight, InsightPriority, InsightType, WeeklySummary
from pulse.analytics.periods import PeriodType, day_bounds, period_bounds
from pulse.analytics.repository import (
    AnalyticsDataSource,
    GoalRepository,
    InsightRepository,
    SessionRepository,
    SnapshotRepository,
    SummaryRepository,
)
from pulse.analytics.sessions import SessionStatus, SessionType, TimeSession
from pulse.analytics.snapshot import (
    BlockStats,
    HabitStats,
    ProductivitySnapshot,
    SnapshotBuilder,
    TaskStats,
)
from pulse.digest.insights import GenerationResult, InsightGenerator
from pulse.digest.trends import DEFAULT_TREND_DAYS, TrendAnalyzer, TrendsResult
from pulse.digest.weekly import WeeklySummaryAggregator, WeeklySummaryResult

logger = logging.getLogger(__name__)

DEFAULT_RECENT_INSIGHTS = 20
DEFAULT_ACHIEVED_GOALS = 10
DASHBOARD_RECENT_DAYS = 7


@dataclass
class DashboardResult:
    """Overview of a user's current productivity."""

    today: ProductivitySnapshot | None = None
    this_week: WeeklySummary | None = None
    active_session: TimeSession | None = None
    active_goals: list[ProductivityGoal] = field(default_factory=list)
    recent_snapshots: list[ProductivitySnapshot] = field(default_factory=list)
    avg_score: int = 0
    focus_this_week: int = 0


@dataclass
class ActiveInsights:
    """Currently actionable insights with counts."""

    insights: list[ActionableInsight]
    total_count: int
    high_priority: int


class AnalyticsService:
    """Productivity analytics operations for any number of users.

    Every operation takes an explicit user ID.
    """

    def __init__(
        self,
        snapshots: SnapshotRepository,
        summaries: SummaryRepository,
        goals: GoalRepository,
        insights: InsightRepository,
        sessions: SessionRepository,
        data_source: AnalyticsDataSource | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            snapshots: Daily snapshot store
            summaries: Weekly summary store
            goals: Goal store
            insights: Insight store
            sessions: Time session store
            data_source: Raw activity statistics. Without one, snapshots
                only carry session data.
        """
        self._snapshots = snapshots
        self._summaries = summaries
        self._goals = goals
        self._insights = insights
        self._sessions = sessions
        self._data_source = data_source

        self._aggregator = WeeklySummaryAggregator(snapshots, summaries)
        self._trends = TrendAnalyzer(snapshots)
        self._generator = InsightGenerator(snapshots, goals, insights)

    # Snapshots and summaries

    def compute_snapshot(self, user_id: str, day: date) -> ProductivitySnapshot:
        """Compute and store the snapshot for one day.

        Recomputing a day replaces the stored snapshot.

        Args:
            user_id: User to compute for.
            day: Calendar day (UTC).

        Returns:
            The stored snapshot.
        """
        start, end = day_bounds(day, UTC)
        builder = SnapshotBuilder(user_id, day)

        if self._data_source is not None:
            tasks = self._data_source.get_task_stats(user_id, start, end) or TaskStats()
            blocks = self._data_source.get_block_stats(user_id, start, end) or BlockStats()
            habits = self._data_source.get_habit_stats(user_id, start, end) or HabitStats()
            builder.set_task_metrics(
                tasks.created, tasks.completed, tasks.overdue, tasks.avg_duration_minutes
            )
            builder.set_block_metrics(
                blocks.scheduled,
                blocks.completed,
                blocks.missed,
                blocks.scheduled_minutes,
                blocks.completed_minutes,
            )
            builder.set_habit_metrics(habits.due, habits.completed, habits.longest_streak)

        focus_minutes = self._sessions.get_total_focus_minutes(user_id, start, end)
        focus_sessions = sum(
            1
            for s in self._sessions.get_by_date_range(user_id, start, end)
            if s.session_type == SessionType.FOCUS and s.status == SessionStatus.COMPLETED
        )
        builder.set_focus_metrics(focus_sessions, focus_minutes)

        if self._data_source is not None:
            builder.set_peak_hours(self._data_source.get_peak_hours(user_id, start, end))
            builder.set_time_by_category(
                self._data_source.get_time_by_category(user_id, start, end)
            )

        existing = self._snapshots.get_by_date(user_id, day)
        snapshot = builder.build(snapshot_id=existing.id if existing else None)
        self._snapshots.save(snapshot)

        logger.info(
            "Computed snapshot for %s on %s: score %d",
            user_id,
            day.isoformat(),
            snapshot.productivity_score,
        )
        return snapshot

    def compute_weekly_summary(
        self, user_id: str, week_of: date, now: datetime | None = None
    ) -> WeeklySummaryResult:
        """Compute and store the summary of the week containing ``week_of``."""
        return self._aggregator.compute(user_id, week_of, now=now)

    def compute_current_week_summary(
        self, user_id: str, now: datetime | None = None
    ) -> WeeklySummaryResult:
        return self._aggregator.compute_current_week(user_id, now=now)

    def get_trends(
        self, user_id: str, days: int = DEFAULT_TREND_DAYS, today: date | None = None
    ) -> TrendsResult:
        return self._trends.analyze(user_id, days, today=today)

    def get_dashboard(self, user_id: str, now: datetime | None = None) -> DashboardResult:
        """Assemble the dashboard.

        A section whose lookup fails is left empty and the rest is still
        filled in.
        """
        now = now or datetime.now(UTC)
        today = now.date()
        week_start_at, _ = period_bounds(
            datetime.combine(today, time.min, tzinfo=UTC), PeriodType.WEEKLY
        )
        week_start = week_start_at.date()
        result = DashboardResult()

        try:
            result.today = self._snapshots.get_by_date(user_id, today)
        except PulseError as e:
            logger.warning("Dashboard: today's snapshot unavailable for %s: %s", user_id, e)

        try:
            result.this_week = self._summaries.get_by_week(user_id, week_start)
        except PulseError as e:
            logger.warning("Dashboard: weekly summary unavailable for %s: %s", user_id, e)

        try:
            result.active_session = self._sessions.get_active(user_id)
        except PulseError as e:
            logger.warning("Dashboard: active session unavailable for %s: %s", user_id, e)

        try:
            result.active_goals = self._goals.get_active(user_id, now=now)
        except PulseError as e:
            logger.warning("Dashboard: active goals unavailable for %s: %s", user_id, e)

        try:
            result.recent_snapshots = self._snapshots.get_date_range(
                user_id, today - timedelta(days=DASHBOARD_RECENT_DAYS), today
            )
        except PulseError as e:
            logger.warning("Dashboard: recent snapshots unavailable for %s: %s", user_id, e)

        try:
            result.avg_score = self._snapshots.get_average_score(user_id, week_start, today)
        except PulseError as e:
            logger.warning("Dashboard: average score unavailable for %s: %s", user_id, e)

        try:
            result.focus_this_week = self._sessions.get_total_focus_minutes(
                user_id, week_start_at, now
            )
        except PulseError as e:
            logger.warning("Dashboard: focus minutes unavailable for %s: %s", user_id, e)

        return result

    # Goals

    def create_goal(
        self,
        user_id: str,
        goal_type: GoalType,
        target_value: int,
        period_type: PeriodType,
        now: datetime | None = None,
    ) -> ProductivityGoal:
        """Create a goal for the current period.

        Raises:
            InvalidTargetError: If target_value is not positive.
        """
        goal = ProductivityGoal.create(user_id, goal_type, target_value, period_type, now=now)
        self._goals.create(goal)
        logger.info("Created %s goal %s for %s", goal_type.value, goal.id, user_id)
        return goal

    def update_goal_progress(
        self, user_id: str, goal_id: str, value: int, now: datetime | None = None
    ) -> ProductivityGoal:
        """Set a goal's progress to an absolute value.

        Raises:
            GoalNotFoundError: If the user has no such goal.
            GoalAlreadyAchievedError: If the goal was already achieved.
        """
        goal = self._get_goal(user_id, goal_id)
        goal.update_progress(value, now=now)
        self._goals.update(goal)
        if goal.achieved:
            logger.info("Goal %s achieved by %s", goal.id, user_id)
        return goal

    def increment_goal(
        self, user_id: str, goal_id: str, amount: int = 1, now: datetime | None = None
    ) -> ProductivityGoal:
        """Add to a goal's progress."""
        goal = self._get_goal(user_id, goal_id)
        return self.update_goal_progress(user_id, goal_id, goal.current_value + amount, now=now)

    def get_active_goals(self, user_id: str, now: datetime | None = None) -> list[ProductivityGoal]:
        return self._goals.get_active(user_id, now=now)

    def get_achieved_goals(
        self, user_id: str, limit: int = DEFAULT_ACHIEVED_GOALS
    ) -> list[ProductivityGoal]:
        return self._goals.get_achieved(user_id, limit)

    def get_goals_for_period(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[ProductivityGoal]:
        return self._goals.get_by_period(user_id, start, end)

    def delete_goal(self, user_id: str, goal_id: str) -> None:
        goal = self._get_goal(user_id, goal_id)
        self._goals.delete(goal.id)

    def _get_goal(self, user_id: str, goal_id: str) -> ProductivityGoal:
        goal = self._goals.get_by_id(goal_id)
        if goal is None or goal.user_id != user_id:
            raise GoalNotFoundError(goal_id)
        return goal

    # Insights

    def generate_insights(self, user_id: str, now: datetime | None = None) -> GenerationResult:
        return self._generator.generate(user_id, now=now)

    def get_active_insights(self, user_id: str, now: datetime | None = None) -> ActiveInsights:
        insights = self._insights.get_active(user_id, now=now)
        return ActiveInsights(
            insights=insights,
            total_count=len(insights),
            high_priority=sum(1 for i in insights if i.priority == InsightPriority.HIGH),
        )

    def get_insights_by_type(
        self, user_id: str, insight_type: InsightType
    ) -> list[ActionableInsight]:
        return self._insights.get_by_type(user_id, insight_type)

    def get_recent_insights(
        self, user_id: str, limit: int = DEFAULT_RECENT_INSIGHTS
    ) -> list[ActionableInsight]:
        if limit <= 0:
            limit = DEFAULT_RECENT_INSIGHTS
        return self._insights.get_recent(user_id, limit)

    def dismiss_insight(self, user_id: str, insight_id: str, now: datetime | None = None) -> None:
        """Dismiss an insight. Another user's insight is left untouched.

        Raises:
            InsightNotFoundError: If the insight does not exist.
        """
        insight = self._get_insight(insight_id)
        if insight.user_id != user_id:
            return
        insight.dismiss(now)
        self._insights.update(insight)

    def mark_insight_acted_on(
        self, user_id: str, insight_id: str, now: datetime | None = None
    ) -> None:
        """Mark an insight as acted on. Another user's insight is left untouched.

        Raises:
            InsightNotFoundError: If the insight does not exist.
        """
        insight = self._get_insight(insight_id)
        if insight.user_id != user_id:
            return
        insight.mark_acted_on(now)
        self._insights.update(insight)

    def cleanup_expired_insights(self, now: datetime | None = None) -> int:
        """Delete insights whose validity has ended, for all users."""
        deleted = self._insights.delete_expired(now)
        logger.info("Removed %d expired insights", deleted)
        return deleted

    def _get_insight(self, insight_id: str) -> ActionableInsight:
        insight = self._insights.get_by_id(insight_id)
        if insight is None:
            raise InsightNotFoundError(insight_id)
        return insight

    # Sessions

    def start_session(
        self,
        user_id: str,
        session_type: SessionType,
        title: str,
        reference_id: str | None = None,
        category: str = "",
        now: datetime | None = None,
    ) -> TimeSession:
        """Start a session.

        Raises:
            SessionAlreadyActiveError: If the user already has an active session.
            InvalidSessionError: If the title is empty.
        """
        active = self._sessions.get_active(user_id)
        if active is not None:
            raise SessionAlreadyActiveError(active.title)

        session = TimeSession.start(
            user_id, session_type, title, reference_id=reference_id, category=category, now=now
        )
        self._sessions.create(session)
        logger.info("Started %s session %s for %s", session_type.value, session.id, user_id)
        return session

    def end_session(
        self,
        user_id: str,
        status: SessionStatus = SessionStatus.COMPLETED,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> TimeSession:
        """End the user's active session.

        Raises:
            NoActiveSessionError: If the user has no active session.
            InvalidSessionError: If the final status is still active.
        """
        session = self._sessions.get_active(user_id)
        if session is None:
            raise NoActiveSessionError()

        session.end(status, now=now)
        if notes:
            session.add_notes(notes, now=now)
        self._sessions.update(session)
        logger.info(
            "Ended session %s for %s after %s minutes",
            session.id,
            user_id,
            session.duration_minutes,
        )
        return session

    def get_active_session(self, user_id: str) -> TimeSession | None:
        return self._sessions.get_active(user_id)


__all__ = ["ActiveInsights", "AnalyticsService", "DashboardResult"]
