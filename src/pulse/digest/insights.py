"""Actionable insight generation.

Runs a fixed sequence of rules over the last week of snapshots, the week
before it and the user's goals. Each rule yields candidate insights; a
candidate is stored only when no actionable insight of the same type
already exists.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta

from pulse.analytics.errors import PulseError
from pulse.analytics.models import (
    ActionableInsight,
    InsightPriority,
    InsightType,
    percentage_change,
)
from pulse.analytics.repository import GoalRepository, InsightRepository, SnapshotRepository
from pulse.analytics.snapshot import ProductivitySnapshot

from .trends import find_best_day_of_week, find_best_hour

logger = logging.getLogger(__name__)

WINDOW_DAYS = 7
# Statistical rules need this many days in a window
MIN_WINDOW_SNAPSHOTS = 3
MIN_PATTERN_SNAPSHOTS = 5

PRODUCTIVITY_CHANGE_THRESHOLD = 15.0
PEAK_HOUR_MIN_COMPLETIONS = 5
BEST_DAY_MIN_SCORE = 50.0
LOW_FOCUS_MINUTES = 60
HIGH_FOCUS_MINUTES = 180
FOCUS_DECLINE_THRESHOLD = -25.0
GOAL_AT_RISK_PROGRESS = 50.0
GOAL_AT_RISK_TIME_LEFT = 30.0
GOAL_ALMOST_THERE_PROGRESS = 75.0
RECENT_ACHIEVEMENT_WINDOW = timedelta(hours=24)
ACHIEVED_GOALS_LIMIT = 5
STREAK_MILESTONES = (7, 14, 21, 30, 60, 90)
STREAK_RISK_MIN_MISSED = 2
STREAK_RISK_MIN_STREAK = 3
OVERDUE_TASKS_THRESHOLD = 5
SCHEDULE_COMPLETION_THRESHOLD = 0.6


@dataclass
class GenerationResult:
    """Outcome of one insight generation run."""

    insights_generated: int = 0
    insights: list[ActionableInsight] = field(default_factory=list)
    skipped_duplicate: int = 0
    errors: list[Exception] = field(default_factory=list)


@dataclass
class RuleContext:
    """Data shared by every rule in a run."""

    user_id: str
    now: datetime
    recent: list[ProductivitySnapshot]  # Oldest first
    previous: list[ProductivitySnapshot]  # Oldest first

    @property
    def latest(self) -> ProductivitySnapshot | None:
        return self.recent[-1] if self.recent else None


def _average_score(snapshots: list[ProductivitySnapshot]) -> float:
    if not snapshots:
        return 0.0
    return sum(s.productivity_score for s in snapshots) / len(snapshots)


def _total_focus(snapshots: list[ProductivitySnapshot]) -> int:
    return sum(s.total_focus_minutes for s in snapshots)


def _average_block_completion(snapshots: list[ProductivitySnapshot]) -> float:
    """Average block completion rate over days that had blocks scheduled."""
    rates = [s.block_completion_rate for s in snapshots if s.blocks_scheduled > 0]
    if not rates:
        return 0.0
    return sum(rates) / len(rates)


class InsightGenerator:
    """Generates actionable insights from productivity data.

    Rules run in a fixed order. A failing rule has its error collected and
    the remaining rules still run.
    """

    def __init__(
        self,
        snapshots: SnapshotRepository,
        goals: GoalRepository,
        insights: InsightRepository,
    ) -> None:
        """Initialize insight generator.

        Args:
            snapshots: Source of daily snapshots
            goals: Source of active and achieved goals
            insights: Store for generated insights
        """
        self._snapshots = snapshots
        self._goals = goals
        self._insights = insights
        self._rules: list[Callable[[RuleContext], Iterator[ActionableInsight]]] = [
            self._productivity_trend_insights,
            self._peak_hour_insights,
            self._best_day_insights,
            self._focus_time_insights,
            self._goal_insights,
            self._habit_streak_insights,
            self._task_insights,
        ]

    def generate(self, user_id: str, now: datetime | None = None) -> GenerationResult:
        """Analyze recent data and store new insights for a user.

        Args:
            user_id: User to analyze.
            now: Current time. Defaults to the current UTC time.

        Returns:
            GenerationResult with stored insights, skip count and errors.

        Raises:
            StorageError: If the snapshot windows cannot be loaded.
        """
        now = now or datetime.now(UTC)
        today = now.date()
        context = RuleContext(
            user_id=user_id,
            now=now,
            recent=self._window(user_id, today - timedelta(days=WINDOW_DAYS - 1), today),
            previous=self._window(
                user_id,
                today - timedelta(days=2 * WINDOW_DAYS - 1),
                today - timedelta(days=WINDOW_DAYS),
            ),
        )

        result = GenerationResult()
        for rule in self._rules:
            try:
                for insight in rule(context):
                    try:
                        self._save_insight(insight, result, now)
                    except PulseError as e:
                        logger.warning(
                            "Could not store %s insight for %s: %s", insight.type.value, user_id, e
                        )
                        result.errors.append(e)
            except Exception as e:
                logger.warning("Insight rule %s failed for %s: %s", rule.__name__, user_id, e)
                result.errors.append(e)

        logger.debug(
            "Generated %d insights for %s (%d duplicates skipped, %d errors)",
            result.insights_generated,
            user_id,
            result.skipped_duplicate,
            len(result.errors),
        )
        return result

    def _window(self, user_id: str, start: date, end: date) -> list[ProductivitySnapshot]:
        snapshots = self._snapshots.get_date_range(user_id, start, end)
        return sorted(snapshots, key=lambda s: s.snapshot_date)

    def _save_insight(
        self, insight: ActionableInsight, result: GenerationResult, now: datetime
    ) -> None:
        """Store an insight unless a live one of the same type exists."""
        existing = self._insights.get_by_type(insight.user_id, insight.type)
        if any(e.is_actionable(now) for e in existing):
            result.skipped_duplicate += 1
            logger.debug(
                "Skipping duplicate %s insight for %s", insight.type.value, insight.user_id
            )
            return

        self._insights.create(insight)
        result.insights_generated += 1
        result.insights.append(insight)
        logger.info(
            "Generated insight type=%s priority=%s title=%r",
            insight.type.value,
            insight.priority.value,
            insight.title,
        )

    def _productivity_trend_insights(self, ctx: RuleContext) -> Iterator[ActionableInsight]:
        if len(ctx.recent) < MIN_WINDOW_SNAPSHOTS or len(ctx.previous) < MIN_WINDOW_SNAPSHOTS:
            return

        recent_avg = _average_score(ctx.recent)
        previous_avg = _average_score(ctx.previous)
        if previous_avg <= 0:
            return

        change = percentage_change(recent_avg, previous_avg)
        if change < -PRODUCTIVITY_CHANGE_THRESHOLD:
            insight = ActionableInsight.create(
                ctx.user_id,
                InsightType.PRODUCTIVITY_DROP,
                InsightPriority.HIGH,
                "Productivity has declined",
                f"Your productivity score dropped {-change:.0f}% compared to last week "
                f"(from {previous_avg:.0f} to {recent_avg:.0f}).",
                "Review your schedule for overcommitments. "
                "Consider focusing on fewer, high-impact tasks.",
                timedelta(days=7),
                now=ctx.now,
            )
        elif change > PRODUCTIVITY_CHANGE_THRESHOLD:
            insight = ActionableInsight.create(
                ctx.user_id,
                InsightType.PRODUCTIVITY_IMPROVE,
                InsightPriority.LOW,
                "Great progress this week!",
                f"Your productivity improved by {change:.0f}% compared to last week "
                f"(from {previous_avg:.0f} to {recent_avg:.0f}).",
                "Keep up the good work! Consider writing down what's working well for you.",
                timedelta(days=3),
                now=ctx.now,
            )
        else:
            return

        insight.set_context("recent_avg", recent_avg)
        insight.set_context("previous_avg", previous_avg)
        insight.set_context("change_percent", change)
        yield insight

    def _peak_hour_insights(self, ctx: RuleContext) -> Iterator[ActionableInsight]:
        best = find_best_hour(ctx.recent)
        if best is None:
            return

        hour, completions = best
        if completions <= PEAK_HOUR_MIN_COMPLETIONS:
            return

        insight = ActionableInsight.create(
            ctx.user_id,
            InsightType.PEAK_HOUR,
            InsightPriority.MEDIUM,
            f"Peak productivity at {hour}:00",
            f"You complete the most tasks around {hour}:00. "
            f"This week, you completed {completions} items during this hour.",
            "Schedule your most important work during this peak hour.",
            timedelta(days=7),
            now=ctx.now,
        )
        insight.set_context("peak_hour", hour)
        insight.set_context("completions", completions)
        yield insight

    def _best_day_insights(self, ctx: RuleContext) -> Iterator[ActionableInsight]:
        if len(ctx.recent) < MIN_PATTERN_SNAPSHOTS:
            return

        best = find_best_day_of_week(ctx.recent)
        if best is None or best[1] <= BEST_DAY_MIN_SCORE:
            return

        day, avg = best
        insight = ActionableInsight.create(
            ctx.user_id,
            InsightType.BEST_DAY,
            InsightPriority.MEDIUM,
            f"{day} is your most productive day",
            f"Your average productivity score on {day}s is {avg:.0f}, higher than other days.",
            f"Plan your most challenging tasks for {day}s "
            "to take advantage of your natural rhythm.",
            timedelta(days=7),
            now=ctx.now,
        )
        insight.set_context("best_day", day)
        insight.set_context("average_score", avg)
        yield insight

    def _focus_time_insights(self, ctx: RuleContext) -> Iterator[ActionableInsight]:
        recent_focus = _total_focus(ctx.recent)
        previous_focus = _total_focus(ctx.previous)
        avg_daily = recent_focus // len(ctx.recent) if ctx.recent else 0

        if avg_daily < LOW_FOCUS_MINUTES and len(ctx.recent) >= MIN_WINDOW_SNAPSHOTS:
            insight = ActionableInsight.create(
                ctx.user_id,
                InsightType.FOCUS_TIME_LOW,
                InsightPriority.HIGH,
                "Focus time is below target",
                f"You're averaging only {avg_daily} minutes of focus time per day this week.",
                "Try blocking 2 hours of uninterrupted time each morning. "
                "Start with just one focused block.",
                timedelta(days=5),
                now=ctx.now,
            )
            insight.set_context("avg_daily_focus", avg_daily)
            insight.set_context("total_focus", recent_focus)
            yield insight
        elif avg_daily > HIGH_FOCUS_MINUTES:
            insight = ActionableInsight.create(
                ctx.user_id,
                InsightType.FOCUS_TIME_HIGH,
                InsightPriority.LOW,
                "Excellent focus time!",
                f"You're averaging {avg_daily} minutes of focused work daily, "
                "above the recommended target.",
                "Make sure to take breaks to keep this pace sustainable.",
                timedelta(days=3),
                now=ctx.now,
            )
            insight.set_context("avg_daily_focus", avg_daily)
            yield insight

        if (
            previous_focus > 0
            and len(ctx.recent) >= MIN_WINDOW_SNAPSHOTS
            and len(ctx.previous) >= MIN_WINDOW_SNAPSHOTS
        ):
            change = percentage_change(recent_focus, previous_focus)
            if change < FOCUS_DECLINE_THRESHOLD:
                insight = ActionableInsight.create(
                    ctx.user_id,
                    InsightType.FOCUS_TIME_LOW,
                    InsightPriority.MEDIUM,
                    "Focus time dropped significantly",
                    f"Your focus time decreased by {-change:.0f}% compared to last week.",
                    "Review what interrupted your focus sessions and protect your focus blocks.",
                    timedelta(days=5),
                    now=ctx.now,
                )
                insight.set_context("change_percent", change)
                insight.set_context("recent_total", recent_focus)
                insight.set_context("previous_total", previous_focus)
                yield insight

    def _goal_insights(self, ctx: RuleContext) -> Iterator[ActionableInsight]:
        for goal in self._goals.get_active(ctx.user_id, now=ctx.now):
            progress = goal.progress_percentage
            days_remaining = goal.days_remaining(ctx.now)
            period_days = goal.period_days()
            time_remaining = days_remaining / period_days * 100 if period_days > 0 else 100.0

            if (
                progress < GOAL_AT_RISK_PROGRESS
                and time_remaining < GOAL_AT_RISK_TIME_LEFT
                and days_remaining > 0
            ):
                insight = ActionableInsight.create(
                    ctx.user_id,
                    InsightType.GOAL_AT_RISK,
                    InsightPriority.HIGH,
                    f"Goal at risk: {goal.description}",
                    f"You're at {progress:.0f}% progress "
                    f"with only {days_remaining} days remaining.",
                    f"Focus on completing {goal.remaining_value} more to reach "
                    f"your target of {goal.target_value}.",
                    timedelta(days=days_remaining),
                    now=ctx.now,
                )
                insight.set_context("goal_id", goal.id)
                insight.set_context("progress", progress)
                insight.set_context("days_remaining", days_remaining)
                insight.set_context("remaining_value", goal.remaining_value)
                yield insight
            elif GOAL_ALMOST_THERE_PROGRESS <= progress < 100:
                insight = ActionableInsight.create(
                    ctx.user_id,
                    InsightType.GOAL_PROGRESS,
                    InsightPriority.LOW,
                    f"Almost there: {goal.description}",
                    f"You're at {progress:.0f}% of your goal. "
                    f"Just {goal.remaining_value} more to go!",
                    "A focused push today could help you achieve this goal.",
                    timedelta(days=2),
                    now=ctx.now,
                )
                insight.set_context("goal_id", goal.id)
                insight.set_context("progress", progress)
                insight.set_context("remaining_value", goal.remaining_value)
                yield insight

        for goal in self._goals.get_achieved(ctx.user_id, ACHIEVED_GOALS_LIMIT):
            if goal.achieved_at is None or ctx.now - goal.achieved_at >= RECENT_ACHIEVEMENT_WINDOW:
                continue

            insight = ActionableInsight.create(
                ctx.user_id,
                InsightType.GOAL_ACHIEVED,
                InsightPriority.LOW,
                f"Goal achieved: {goal.description}",
                f"Congratulations! You reached your target of {goal.target_value}.",
                "Consider setting a slightly higher goal next period.",
                timedelta(days=2),
                now=ctx.now,
            )
            insight.set_context("goal_id", goal.id)
            insight.set_context("target_value", goal.target_value)
            yield insight

    def _habit_streak_insights(self, ctx: RuleContext) -> Iterator[ActionableInsight]:
        if len(ctx.recent) < MIN_WINDOW_SNAPSHOTS:
            return

        streak = ctx.recent[-1].longest_streak
        if streak in STREAK_MILESTONES:
            insight = ActionableInsight.create(
                ctx.user_id,
                InsightType.HABIT_STREAK,
                InsightPriority.LOW,
                f"{streak}-day habit streak!",
                f"Amazing! You've maintained a {streak}-day streak on your habits.",
                "Consistency is the key to lasting change. Keep going!",
                timedelta(days=3),
                now=ctx.now,
            )
            insight.set_context("streak_length", streak)
            yield insight

        missed = sum(
            1
            for s in ctx.recent[-3:]
            if s.habits_due > 0 and s.habits_completed < s.habits_due
        )
        if missed >= STREAK_RISK_MIN_MISSED and streak > STREAK_RISK_MIN_STREAK:
            insight = ActionableInsight.create(
                ctx.user_id,
                InsightType.HABIT_STREAK_RISK,
                InsightPriority.MEDIUM,
                "Habit streak at risk",
                f"You've missed habits on {missed} of the last 3 days. "
                f"Your {streak}-day streak might be at risk.",
                "Focus on completing just one habit today to keep momentum.",
                timedelta(days=2),
                now=ctx.now,
            )
            insight.set_context("missed_days", missed)
            insight.set_context("current_streak", streak)
            yield insight

    def _task_insights(self, ctx: RuleContext) -> Iterator[ActionableInsight]:
        latest = ctx.latest
        if latest is None:
            return

        if latest.tasks_overdue >= OVERDUE_TASKS_THRESHOLD:
            insight = ActionableInsight.create(
                ctx.user_id,
                InsightType.TASK_OVERDUE,
                InsightPriority.HIGH,
                "Multiple overdue tasks",
                f"You have {latest.tasks_overdue} overdue tasks. "
                "This might be affecting your productivity.",
                "Review your overdue tasks and either reschedule them "
                "or break them into smaller pieces.",
                timedelta(days=3),
                now=ctx.now,
            )
            insight.set_context("overdue_count", latest.tasks_overdue)
            yield insight

        if len(ctx.recent) >= MIN_PATTERN_SNAPSHOTS:
            rate = _average_block_completion(ctx.recent)
            if 0 < rate < SCHEDULE_COMPLETION_THRESHOLD:
                insight = ActionableInsight.create(
                    ctx.user_id,
                    InsightType.SCHEDULE_OPTIMIZE,
                    InsightPriority.MEDIUM,
                    "Schedule might need adjustment",
                    f"You're completing only {rate * 100:.0f}% of your scheduled time blocks.",
                    "Try scheduling fewer or shorter blocks. "
                    "Completing a lighter schedule beats missing a heavy one.",
                    timedelta(days=5),
                    now=ctx.now,
                )
                insight.set_context("completion_rate", rate)
                yield insight


__all__ = ["GenerationResult", "InsightGenerator", "RuleContext"]
