"""Productivity trend analysis.

Compares a trailing window of daily snapshots with the window of equal
length immediately before it.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from pulse.analytics.models import percentage_change
from pulse.analytics.repository import SnapshotRepository
from pulse.analytics.snapshot import ProductivitySnapshot

logger = logging.getLogger(__name__)

DEFAULT_TREND_DAYS = 14
# Changes inside +/- this percentage are reported as stable
TREND_DEAD_ZONE = 5.0

WEEKDAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


@dataclass
class TrendMetric:
    """Direction and magnitude of one metric between two windows."""

    direction: str  # "up", "down", "stable"
    change: float  # Percentage change
    current_avg: float
    previous_avg: float


@dataclass
class DaySummary:
    """Headline numbers for a single day."""

    date: date
    productivity_score: int
    tasks_completed: int
    habits_completed: int
    focus_minutes: int

    @classmethod
    def from_snapshot(cls, snapshot: ProductivitySnapshot) -> "DaySummary":
        return cls(
            date=snapshot.snapshot_date,
            productivity_score=snapshot.productivity_score,
            tasks_completed=snapshot.tasks_completed,
            habits_completed=snapshot.habits_completed,
            focus_minutes=snapshot.total_focus_minutes,
        )


@dataclass
class TrendsResult:
    """Trend analysis over a trailing window."""

    days: int
    snapshots: list[ProductivitySnapshot] = field(default_factory=list)
    productivity_trend: TrendMetric | None = None
    task_completion_trend: TrendMetric | None = None
    habit_completion_trend: TrendMetric | None = None
    focus_time_trend: TrendMetric | None = None
    best_day: DaySummary | None = None
    worst_day: DaySummary | None = None
    best_day_of_week: str | None = None
    best_hour_of_day: int | None = None

    @property
    def current_period_avg(self) -> float:
        return self.productivity_trend.current_avg if self.productivity_trend else 0.0

    @property
    def previous_period_avg(self) -> float:
        return self.productivity_trend.previous_avg if self.productivity_trend else 0.0

    @property
    def percentage_change(self) -> float:
        return self.productivity_trend.change if self.productivity_trend else 0.0


def _average(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def calculate_trend(current: list[float], previous: list[float]) -> TrendMetric:
    """Classify the change between two sets of values.

    Args:
        current: Values from the current window.
        previous: Values from the preceding window.

    Returns:
        TrendMetric with averages, percent change and direction.
    """
    current_avg = _average(current)
    previous_avg = _average(previous)
    change = percentage_change(current_avg, previous_avg)

    direction = "stable"
    if change > TREND_DEAD_ZONE:
        direction = "up"
    elif change < -TREND_DEAD_ZONE:
        direction = "down"

    return TrendMetric(
        direction=direction,
        change=change,
        current_avg=current_avg,
        previous_avg=previous_avg,
    )


def find_best_worst_days(
    snapshots: Iterable[ProductivitySnapshot],
) -> tuple[DaySummary | None, DaySummary | None]:
    """Find the highest and lowest scoring days. Ties keep the first seen."""
    best: ProductivitySnapshot | None = None
    worst: ProductivitySnapshot | None = None

    for snapshot in snapshots:
        if best is None or snapshot.productivity_score > best.productivity_score:
            best = snapshot
        if worst is None or snapshot.productivity_score < worst.productivity_score:
            worst = snapshot

    if best is None or worst is None:
        return None, None
    return DaySummary.from_snapshot(best), DaySummary.from_snapshot(worst)


def find_best_day_of_week(snapshots: Iterable[ProductivitySnapshot]) -> tuple[str, float] | None:
    """Find the weekday with the highest average score.

    Returns:
        Tuple of (weekday name, average score), or None without data.
    """
    day_scores: dict[int, list[int]] = {}
    for snapshot in snapshots:
        weekday = snapshot.snapshot_date.weekday()
        day_scores.setdefault(weekday, []).append(snapshot.productivity_score)

    best: tuple[str, float] | None = None
    for weekday in sorted(day_scores):
        scores = day_scores[weekday]
        avg = sum(scores) / len(scores)
        if best is None or avg > best[1]:
            best = (WEEKDAY_NAMES[weekday], avg)
    return best


def find_best_hour(snapshots: Iterable[ProductivitySnapshot]) -> tuple[int, int] | None:
    """Find the hour with the most completions across all snapshots.

    Returns:
        Tuple of (hour, total completions), or None when nothing was completed.
    """
    hour_completions: dict[int, int] = {}
    for snapshot in snapshots:
        for peak in snapshot.peak_hours:
            hour_completions[peak.hour] = hour_completions.get(peak.hour, 0) + peak.completions

    best: tuple[int, int] | None = None
    for hour in sorted(hour_completions):
        completions = hour_completions[hour]
        if completions > 0 and (best is None or completions > best[1]):
            best = (hour, completions)
    return best


def _extract(
    snapshots: list[ProductivitySnapshot],
    extractor: Callable[[ProductivitySnapshot], float],
) -> list[float]:
    return [extractor(s) for s in snapshots]


class TrendAnalyzer:
    """Computes productivity trends from stored snapshots."""

    def __init__(self, snapshots: SnapshotRepository) -> None:
        """Initialize trend analyzer.

        Args:
            snapshots: Snapshot store to read both windows from
        """
        self._snapshots = snapshots

    def analyze(
        self, user_id: str, days: int = DEFAULT_TREND_DAYS, today: date | None = None
    ) -> TrendsResult:
        """Compare the trailing ``days`` with the ``days`` before them.

        Args:
            user_id: User to analyze.
            days: Window length. Values <= 0 fall back to 14.
            today: Reference day. Defaults to the current date.

        Returns:
            TrendsResult for the current window.
        """
        if days <= 0:
            days = DEFAULT_TREND_DAYS

        today = today or date.today()
        current_start = today - timedelta(days=days)
        previous_start = current_start - timedelta(days=days)

        current = self._snapshots.get_date_range(user_id, current_start, today)
        previous = self._snapshots.get_date_range(user_id, previous_start, current_start)
        logger.debug(
            "Trends for %s: %d current, %d previous snapshots", user_id, len(current), len(previous)
        )

        result = TrendsResult(days=days, snapshots=current)
        result.productivity_trend = calculate_trend(
            _extract(current, lambda s: float(s.productivity_score)),
            _extract(previous, lambda s: float(s.productivity_score)),
        )
        result.task_completion_trend = calculate_trend(
            _extract(current, lambda s: s.task_completion_rate * 100),
            _extract(previous, lambda s: s.task_completion_rate * 100),
        )
        result.habit_completion_trend = calculate_trend(
            _extract(current, lambda s: s.habit_completion_rate * 100),
            _extract(previous, lambda s: s.habit_completion_rate * 100),
        )
        result.focus_time_trend = calculate_trend(
            _extract(current, lambda s: float(s.total_focus_minutes)),
            _extract(previous, lambda s: float(s.total_focus_minutes)),
        )

        ordered = sorted(current, key=lambda s: s.snapshot_date)
        result.best_day, result.worst_day = find_best_worst_days(ordered)

        best_weekday = find_best_day_of_week(ordered)
        if best_weekday:
            result.best_day_of_week = best_weekday[0]

        best_hour = find_best_hour(ordered)
        if best_hour:
            result.best_hour_of_day = best_hour[0]

        return result


__all__ = [
    "DEFAULT_TREND_DAYS",
    "DaySummary",
    "TrendAnalyzer",
    "TrendMetric",
    "TrendsResult",
    "calculate_trend",
    "find_best_day_of_week",
    "find_best_hour",
    "find_best_worst_days",
]
