"""Productivity goals.

A goal is a numeric target over a daily, weekly or monthly period. The
period is fixed when the goal is created and progress is immutable once
the goal has been achieved.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .errors import GoalAlreadyAchievedError, InvalidTargetError
from .periods import PeriodType, period_bounds


class GoalType(Enum):
    """What a goal counts."""

    DAILY_TASKS = "daily_tasks"
    DAILY_FOCUS_MINUTES = "daily_focus_minutes"
    DAILY_HABITS = "daily_habits"
    WEEKLY_TASKS = "weekly_tasks"
    WEEKLY_FOCUS_MINUTES = "weekly_focus_minutes"
    WEEKLY_HABITS = "weekly_habits"
    MONTHLY_TASKS = "monthly_tasks"
    MONTHLY_FOCUS_MINUTES = "monthly_focus_minutes"
    HABIT_STREAK = "habit_streak"


GOAL_DESCRIPTIONS: dict[GoalType, str] = {
    GoalType.DAILY_TASKS: "Complete tasks today",
    GoalType.DAILY_FOCUS_MINUTES: "Focus time today (minutes)",
    GoalType.DAILY_HABITS: "Complete habits today",
    GoalType.WEEKLY_TASKS: "Complete tasks this week",
    GoalType.WEEKLY_FOCUS_MINUTES: "Focus time this week (minutes)",
    GoalType.WEEKLY_HABITS: "Complete habits this week",
    GoalType.MONTHLY_TASKS: "Complete tasks this month",
    GoalType.MONTHLY_FOCUS_MINUTES: "Focus time this month (minutes)",
    GoalType.HABIT_STREAK: "Maintain habit streak (days)",
}

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class ProductivityGoal:
    """A personal productivity target.

    Attributes:
        user_id: Owner of the goal
        goal_type: What the goal counts
        target_value: Value to reach, always positive
        period_type: Length of the goal period
        period_start: First instant of the period
        period_end: Last instant of the period
        current_value: Progress so far; may exceed the target
        achieved: Whether the target has been reached
        achieved_at: When the target was reached
        id: Goal identifier
    """

    user_id: str
    goal_type: GoalType
    target_value: int
    period_type: PeriodType
    period_start: datetime
    period_end: datetime
    current_value: int = 0
    achieved: bool = False
    achieved_at: datetime | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def create(
        cls,
        user_id: str,
        goal_type: GoalType,
        target_value: int,
        period_type: PeriodType,
        now: datetime | None = None,
    ) -> "ProductivityGoal":
        """Create a goal for the period containing ``now``.

        Args:
            user_id: Owner of the goal.
            goal_type: What the goal counts.
            target_value: Target, must be positive.
            period_type: Daily, weekly or monthly.
            now: Creation instant. Defaults to the current UTC time.

        Returns:
            New goal with zero progress.

        Raises:
            InvalidTargetError: If target_value is not positive.
        """
        if target_value <= 0:
            raise InvalidTargetError(target_value)

        now = now or datetime.now(UTC)
        start, end = period_bounds(now, period_type)
        return cls(
            user_id=user_id,
            goal_type=goal_type,
            target_value=target_value,
            period_type=period_type,
            period_start=start,
            period_end=end,
            created_at=now,
            updated_at=now,
        )

    def update_progress(self, value: int, now: datetime | None = None) -> None:
        """Set the current progress value.

        Raises:
            GoalAlreadyAchievedError: If the goal was already achieved.
        """
        if self.achieved:
            raise GoalAlreadyAchievedError()

        now = now or datetime.now(UTC)
        self.current_value = value
        self.updated_at = now

        if self.current_value >= self.target_value:
            self.achieved = True
            self.achieved_at = now

    def increment_progress(self, amount: int, now: datetime | None = None) -> None:
        """Add ``amount`` to the current progress value."""
        self.update_progress(self.current_value + amount, now=now)

    @property
    def progress_percentage(self) -> float:
        if self.target_value == 0:
            return 0.0
        return min(self.current_value / self.target_value * 100, 100.0)

    @property
    def remaining_value(self) -> int:
        return max(self.target_value - self.current_value, 0)

    @property
    def description(self) -> str:
        return GOAL_DESCRIPTIONS.get(self.goal_type, self.goal_type.value)

    def is_active(self, now: datetime | None = None) -> bool:
        """Check the goal is unachieved and its period is current."""
        now = now or datetime.now(UTC)
        return not self.achieved and self.period_start <= now <= self.period_end

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check the period has passed without achievement."""
        now = now or datetime.now(UTC)
        return not self.achieved and now > self.period_end

    def days_remaining(self, now: datetime | None = None) -> int:
        """Whole days left until the end of the period."""
        now = now or datetime.now(UTC)
        if self.achieved or now > self.period_end:
            return 0
        return int((self.period_end - now).total_seconds() / SECONDS_PER_DAY)

    def period_days(self) -> int:
        """Whole days spanned by the period."""
        return int((self.period_end - self.period_start).total_seconds() / SECONDS_PER_DAY)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for storage."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "goal_type": self.goal_type.value,
            "target_value": self.target_value,
            "current_value": self.current_value,
            "period_type": self.period_type.value,
            "period_start": self.period_start,
            "period_end": self.period_end,
            "achieved": self.achieved,
            "achieved_at": self.achieved_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductivityGoal":
        """Create from a stored dictionary."""
        now = datetime.now(UTC)
        return cls(
            id=str(data["id"]),
            user_id=str(data.get("user_id", "")),
            goal_type=GoalType(data["goal_type"]),
            target_value=int(data["target_value"]),
            current_value=int(data.get("current_value", 0)),
            period_type=PeriodType(data["period_type"]),
            period_start=data["period_start"],
            period_end=data["period_end"],
            achieved=bool(data.get("achieved", False)),
            achieved_at=data.get("achieved_at"),
            created_at=data.get("created_at") or now,
            updated_at=data.get("updated_at") or now,
        )


__all__ = ["GOAL_DESCRIPTIONS", "GoalType", "ProductivityGoal"]
