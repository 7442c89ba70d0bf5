"""Weekly summary aggregation.

Rolls a Monday-aligned week of daily snapshots up into a stored weekly
summary with totals, averages, best and worst days and the trend against
the previous week.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from pulse.analytics.errors import PulseError
from pulse.analytics.models import WeeklySummary
from pulse.analytics.periods import PeriodType, period_bounds
from pulse.analytics.repository import SnapshotRepository, SummaryRepository
from pulse.analytics.snapshot import ProductivitySnapshot

logger = logging.getLogger(__name__)


@dataclass
class WeeklySummaryResult:
    """Outcome of a weekly summary computation."""

    summary: WeeklySummary
    days_with_data: int
    productivity_trend: str  # Human readable trend direction
    is_complete: bool  # Whether the week has fully elapsed


def aggregate_week(summary: WeeklySummary, snapshots: list[ProductivitySnapshot]) -> int:
    """Fill a summary's totals, averages, days and streak info.

    Averages are taken over days that have a snapshot, not calendar days.

    Args:
        summary: Summary to populate.
        snapshots: The week's snapshots, in date order.

    Returns:
        Number of days with data.
    """
    total_score = 0.0
    best: ProductivitySnapshot | None = None
    worst: ProductivitySnapshot | None = None

    summary.total_tasks_completed = 0
    summary.total_habits_completed = 0
    summary.total_blocks_completed = 0
    summary.total_focus_minutes = 0

    for snapshot in snapshots:
        summary.total_tasks_completed += snapshot.tasks_completed
        summary.total_habits_completed += snapshot.habits_completed
        summary.total_blocks_completed += snapshot.blocks_completed
        summary.total_focus_minutes += snapshot.total_focus_minutes
        total_score += snapshot.productivity_score

        if best is None or snapshot.productivity_score > best.productivity_score:
            best = snapshot
        if worst is None or snapshot.productivity_score < worst.productivity_score:
            worst = snapshot

    days_with_data = len(snapshots)
    if days_with_data > 0:
        summary.avg_daily_productivity_score = total_score / days_with_data
        summary.avg_daily_focus_minutes = summary.total_focus_minutes // days_with_data

    summary.most_productive_day = best.snapshot_date if best else None
    # A single-day week has no separate worst day
    if worst is not None and worst is not best:
        summary.least_productive_day = worst.snapshot_date
    else:
        summary.least_productive_day = None

    summary.longest_streak = max((s.longest_streak for s in snapshots), default=0)
    summary.habits_with_streak = sum(1 for s in snapshots if s.longest_streak > 0)

    return days_with_data


class WeeklySummaryAggregator:
    """Computes and stores weekly summaries.

    Summaries are keyed by (user, Monday), so recomputing a week replaces
    the stored summary.
    """

    def __init__(
        self,
        snapshots: SnapshotRepository,
        summaries: SummaryRepository,
    ) -> None:
        """Initialize the aggregator.

        Args:
            snapshots: Source of daily snapshots
            summaries: Store for weekly summaries
        """
        self._snapshots = snapshots
        self._summaries = summaries

    def compute(
        self,
        user_id: str,
        week_of: date | datetime,
        now: datetime | None = None,
    ) -> WeeklySummaryResult:
        """Compute the summary of the week containing ``week_of``.

        Args:
            user_id: User to summarize.
            week_of: Any date within the target week.
            now: Current time, used to decide whether the week is complete.

        Returns:
            WeeklySummaryResult with the saved summary.
        """
        if isinstance(week_of, datetime):
            week_of = week_of.date()
        now = now or datetime.now(UTC)

        start, end = period_bounds(
            datetime.combine(week_of, time.min, tzinfo=UTC), PeriodType.WEEKLY
        )
        week_start, week_end = start.date(), end.date()

        snapshots = sorted(
            self._snapshots.get_date_range(user_id, week_start, week_end),
            key=lambda s: s.snapshot_date,
        )

        summary = WeeklySummary(user_id=user_id, week_start=week_start)
        existing = self._summaries.get_by_week(user_id, week_start)
        if existing is not None:
            summary.id = existing.id
            summary.created_at = existing.created_at

        days_with_data = aggregate_week(summary, snapshots)

        previous = self._previous_summary(user_id, week_start)
        summary.calculate_trends(previous)

        self._summaries.save(summary)
        logger.info(
            "Weekly summary for %s week of %s: %d days, trend %.1f%%",
            user_id,
            week_start.isoformat(),
            days_with_data,
            summary.productivity_trend,
        )

        week_over = datetime.combine(week_end + timedelta(days=1), time.min, tzinfo=UTC)
        return WeeklySummaryResult(
            summary=summary,
            days_with_data=days_with_data,
            productivity_trend=summary.trend_direction(),
            is_complete=now > week_over,
        )

    def compute_current_week(
        self, user_id: str, now: datetime | None = None
    ) -> WeeklySummaryResult:
        """Compute the summary of the week containing today."""
        now = now or datetime.now(UTC)
        return self.compute(user_id, now.date(), now=now)

    def _previous_summary(self, user_id: str, week_start: date) -> WeeklySummary | None:
        """Fetch the prior week's summary; a failed lookup means no trend."""
        previous_week = week_start - timedelta(days=7)
        try:
            return self._summaries.get_by_week(user_id, previous_week)
        except PulseError as e:
            logger.warning("Could not load previous summary for %s: %s", user_id, e)
            return None


__all__ = ["WeeklySummaryAggregator", "WeeklySummaryResult", "aggregate_week"]
