"""Weekly summaries and actionable insights.

Defines the rolled-up weekly metrics entity and the generated,
time-bounded recommendation entity along with their enums.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from enum import Enum
from typing import Any

from .periods import week_start_date


def percentage_change(current: float, previous: float) -> float:
    """Return the percent change from ``previous`` to ``current``.

    Returns 0 when there is no positive baseline to compare against.
    """
    if previous > 0:
        return (current - previous) / previous * 100
    return 0.0


@dataclass
class WeeklySummary:
    """One user's rolled-up metrics for a Monday-aligned week.

    ``week_start`` is normalized to the Monday of its calendar week and
    ``week_end`` is the following Sunday.
    """

    user_id: str
    week_start: date
    total_tasks_completed: int = 0
    total_habits_completed: int = 0
    total_blocks_completed: int = 0
    total_focus_minutes: int = 0
    avg_daily_productivity_score: float = 0.0
    avg_daily_focus_minutes: int = 0
    productivity_trend: float = 0.0
    focus_trend: float = 0.0
    most_productive_day: date | None = None
    least_productive_day: date | None = None
    habits_with_streak: int = 0
    longest_streak: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    computed_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    week_end: date = field(init=False)

    def __post_init__(self) -> None:
        if isinstance(self.week_start, datetime):
            self.week_start = self.week_start.date()
        self.week_start = week_start_date(self.week_start)
        self.week_end = self.week_start + timedelta(days=6)

    def calculate_trends(self, previous: "WeeklySummary | None") -> None:
        """Set trends relative to the preceding week's summary."""
        if previous is None:
            self.productivity_trend = 0.0
            self.focus_trend = 0.0
            return

        self.productivity_trend = percentage_change(
            self.avg_daily_productivity_score, previous.avg_daily_productivity_score
        )
        self.focus_trend = percentage_change(
            self.total_focus_minutes, previous.total_focus_minutes
        )

    def trend_direction(self) -> str:
        """Describe the productivity trend in words."""
        trend = self.productivity_trend
        if trend > 10:
            return "significantly improved"
        if trend > 0:
            return "improved"
        if trend < -10:
            return "significantly declined"
        if trend < 0:
            return "declined"
        return "stable"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for storage."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "total_tasks_completed": self.total_tasks_completed,
            "total_habits_completed": self.total_habits_completed,
            "total_blocks_completed": self.total_blocks_completed,
            "total_focus_minutes": self.total_focus_minutes,
            "avg_daily_productivity_score": self.avg_daily_productivity_score,
            "avg_daily_focus_minutes": self.avg_daily_focus_minutes,
            "productivity_trend": self.productivity_trend,
            "focus_trend": self.focus_trend,
            "most_productive_day": _iso_or_none(self.most_productive_day),
            "least_productive_day": _iso_or_none(self.least_productive_day),
            "habits_with_streak": self.habits_with_streak,
            "longest_streak": self.longest_streak,
            "computed_at": self.computed_at,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeeklySummary":
        """Create from a stored dictionary."""
        now = datetime.now(UTC)
        return cls(
            id=str(data["id"]),
            user_id=str(data.get("user_id", "")),
            week_start=_parse_date(data["week_start"]),
            total_tasks_completed=data.get("total_tasks_completed", 0),
            total_habits_completed=data.get("total_habits_completed", 0),
            total_blocks_completed=data.get("total_blocks_completed", 0),
            total_focus_minutes=data.get("total_focus_minutes", 0),
            avg_daily_productivity_score=float(data.get("avg_daily_productivity_score", 0.0)),
            avg_daily_focus_minutes=data.get("avg_daily_focus_minutes", 0),
            productivity_trend=float(data.get("productivity_trend", 0.0)),
            focus_trend=float(data.get("focus_trend", 0.0)),
            most_productive_day=_parse_date(data.get("most_productive_day")),
            least_productive_day=_parse_date(data.get("least_productive_day")),
            habits_with_streak=data.get("habits_with_streak", 0),
            longest_streak=data.get("longest_streak", 0),
            computed_at=data.get("computed_at") or now,
            created_at=data.get("created_at") or now,
        )


class InsightType(Enum):
    """Kinds of generated insight. At most one live insight per kind."""

    PRODUCTIVITY_DROP = "productivity_drop"
    PRODUCTIVITY_IMPROVE = "productivity_improve"
    PEAK_HOUR = "peak_hour"
    BEST_DAY = "best_day"
    HABIT_STREAK = "habit_streak"
    HABIT_STREAK_RISK = "habit_streak_risk"
    FOCUS_TIME_HIGH = "focus_time_high"
    FOCUS_TIME_LOW = "focus_time_low"
    GOAL_PROGRESS = "goal_progress"
    GOAL_AT_RISK = "goal_at_risk"
    GOAL_ACHIEVED = "goal_achieved"
    TASK_OVERDUE = "task_overdue"
    SCHEDULE_OPTIMIZE = "schedule_optimize"


class InsightPriority(Enum):
    """How urgently an insight should be surfaced."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class ActionableInsight:
    """A generated recommendation valid for a fixed window.

    An insight is actionable while the current time is inside its
    validity window and it has been neither dismissed nor acted on.
    """

    user_id: str
    type: InsightType
    priority: InsightPriority
    title: str
    description: str
    suggestion: str
    valid_from: datetime
    valid_to: datetime
    data_context: dict[str, Any] = field(default_factory=dict)
    dismissed: bool = False
    dismissed_at: datetime | None = None
    acted_on: bool = False
    acted_on_at: datetime | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    generated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def create(
        cls,
        user_id: str,
        insight_type: InsightType,
        priority: InsightPriority,
        title: str,
        description: str,
        suggestion: str,
        valid_for: timedelta,
        now: datetime | None = None,
    ) -> "ActionableInsight":
        """Create an insight valid from ``now`` for ``valid_for``."""
        now = now or datetime.now(UTC)
        return cls(
            user_id=user_id,
            type=insight_type,
            priority=priority,
            title=title,
            description=description,
            suggestion=suggestion,
            valid_from=now,
            valid_to=now + valid_for,
            generated_at=now,
        )

    def set_context(self, key: str, value: Any) -> "ActionableInsight":
        self.data_context[key] = value
        return self

    def is_actionable(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        if self.dismissed or self.acted_on:
            return False
        return self.valid_from <= now <= self.valid_to

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        return now > self.valid_to

    def dismiss(self, now: datetime | None = None) -> None:
        self.dismissed = True
        self.dismissed_at = now or datetime.now(UTC)

    def mark_acted_on(self, now: datetime | None = None) -> None:
        self.acted_on = True
        self.acted_on_at = now or datetime.now(UTC)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for storage."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type.value,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
            "suggestion": self.suggestion,
            "data_context": dict(self.data_context),
            "valid_from": self.valid_from,
            "valid_to": self.valid_to,
            "dismissed": self.dismissed,
            "dismissed_at": self.dismissed_at,
            "acted_on": self.acted_on,
            "acted_on_at": self.acted_on_at,
            "generated_at": self.generated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActionableInsight":
        """Create from a stored dictionary."""
        return cls(
            id=str(data["id"]),
            user_id=str(data.get("user_id", "")),
            type=InsightType(data["type"]),
            priority=InsightPriority(data.get("priority", "medium")),
            title=data.get("title", ""),
            description=data.get("description", ""),
            suggestion=data.get("suggestion", ""),
            data_context=dict(data.get("data_context") or {}),
            valid_from=data["valid_from"],
            valid_to=data["valid_to"],
            dismissed=bool(data.get("dismissed", False)),
            dismissed_at=data.get("dismissed_at"),
            acted_on=bool(data.get("acted_on", False)),
            acted_on_at=data.get("acted_on_at"),
            generated_at=data.get("generated_at") or data["valid_from"],
        )


def _iso_or_none(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


__all__ = [
    "ActionableInsight",
    "InsightPriority",
    "InsightType",
    "WeeklySummary",
    "percentage_change",
]
