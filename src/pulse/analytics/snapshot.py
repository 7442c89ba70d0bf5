"""Daily productivity snapshot and scoring.

A snapshot aggregates one user's task, time block, habit and focus
activity for a single calendar day into counts, derived completion rates
and a 0-100 productivity score.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from typing import Any

# Category weights of the productivity score
TASK_WEIGHT = 0.30
BLOCK_WEIGHT = 0.30
HABIT_WEIGHT = 0.25
FOCUS_WEIGHT = 0.15

BONUS_MULTIPLIER = 1.1
STREAK_BONUS_DAYS = 7
POMODORO_MINUTES = 25
# Four hours of focus counts as a full focus share
FOCUS_TARGET_MINUTES = 240


@dataclass(frozen=True)
class PeakHour:
    """Completions recorded during one hour of the day."""

    hour: int
    completions: int

    def to_dict(self) -> dict[str, int]:
        return {"hour": self.hour, "completions": self.completions}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PeakHour":
        return cls(hour=int(data.get("hour", 0)), completions=int(data.get("completions", 0)))


@dataclass(frozen=True)
class TaskStats:
    """Raw task counts for a date range."""

    created: int = 0
    completed: int = 0
    overdue: int = 0
    avg_duration_minutes: int = 0


@dataclass(frozen=True)
class BlockStats:
    """Raw time block counts for a date range."""

    scheduled: int = 0
    completed: int = 0
    missed: int = 0
    scheduled_minutes: int = 0
    completed_minutes: int = 0


@dataclass(frozen=True)
class HabitStats:
    """Raw habit counts for a date range."""

    due: int = 0
    completed: int = 0
    longest_streak: int = 0


@dataclass(frozen=True)
class ProductivitySnapshot:
    """One user's aggregated productivity metrics for one calendar day.

    Completion rates and the score are derived from the counts by
    ``SnapshotBuilder``; they are never set on their own.
    """

    user_id: str
    snapshot_date: date

    # Tasks
    tasks_created: int = 0
    tasks_completed: int = 0
    tasks_overdue: int = 0
    task_completion_rate: float = 0.0
    avg_task_duration_minutes: int = 0

    # Time blocks
    blocks_scheduled: int = 0
    blocks_completed: int = 0
    blocks_missed: int = 0
    scheduled_minutes: int = 0
    completed_minutes: int = 0
    block_completion_rate: float = 0.0

    # Habits
    habits_due: int = 0
    habits_completed: int = 0
    habit_completion_rate: float = 0.0
    longest_streak: int = 0

    # Focus
    focus_sessions: int = 0
    total_focus_minutes: int = 0
    avg_focus_session_minutes: int = 0

    productivity_score: int = 0
    peak_hours: tuple[PeakHour, ...] = ()
    time_by_category: dict[str, int] = field(default_factory=dict)

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    computed_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for storage."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "snapshot_date": self.snapshot_date.isoformat(),
            "tasks_created": self.tasks_created,
            "tasks_completed": self.tasks_completed,
            "tasks_overdue": self.tasks_overdue,
            "task_completion_rate": self.task_completion_rate,
            "avg_task_duration_minutes": self.avg_task_duration_minutes,
            "blocks_scheduled": self.blocks_scheduled,
            "blocks_completed": self.blocks_completed,
            "blocks_missed": self.blocks_missed,
            "scheduled_minutes": self.scheduled_minutes,
            "completed_minutes": self.completed_minutes,
            "block_completion_rate": self.block_completion_rate,
            "habits_due": self.habits_due,
            "habits_completed": self.habits_completed,
            "habit_completion_rate": self.habit_completion_rate,
            "longest_streak": self.longest_streak,
            "focus_sessions": self.focus_sessions,
            "total_focus_minutes": self.total_focus_minutes,
            "avg_focus_session_minutes": self.avg_focus_session_minutes,
            "productivity_score": self.productivity_score,
            "peak_hours": [ph.to_dict() for ph in self.peak_hours],
            "time_by_category": dict(self.time_by_category),
            "computed_at": self.computed_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductivitySnapshot":
        """Create from a stored dictionary."""
        snapshot_date = data["snapshot_date"]
        if isinstance(snapshot_date, str):
            snapshot_date = date.fromisoformat(snapshot_date)
        elif isinstance(snapshot_date, datetime):
            snapshot_date = snapshot_date.date()

        now = datetime.now(UTC)
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            user_id=str(data.get("user_id", "")),
            snapshot_date=snapshot_date,
            tasks_created=data.get("tasks_created", 0),
            tasks_completed=data.get("tasks_completed", 0),
            tasks_overdue=data.get("tasks_overdue", 0),
            task_completion_rate=float(data.get("task_completion_rate", 0.0)),
            avg_task_duration_minutes=data.get("avg_task_duration_minutes", 0),
            blocks_scheduled=data.get("blocks_scheduled", 0),
            blocks_completed=data.get("blocks_completed", 0),
            blocks_missed=data.get("blocks_missed", 0),
            scheduled_minutes=data.get("scheduled_minutes", 0),
            completed_minutes=data.get("completed_minutes", 0),
            block_completion_rate=float(data.get("block_completion_rate", 0.0)),
            habits_due=data.get("habits_due", 0),
            habits_completed=data.get("habits_completed", 0),
            habit_completion_rate=float(data.get("habit_completion_rate", 0.0)),
            longest_streak=data.get("longest_streak", 0),
            focus_sessions=data.get("focus_sessions", 0),
            total_focus_minutes=data.get("total_focus_minutes", 0),
            avg_focus_session_minutes=data.get("avg_focus_session_minutes", 0),
            productivity_score=data.get("productivity_score", 0),
            peak_hours=tuple(PeakHour.from_dict(ph) for ph in data.get("peak_hours") or []),
            time_by_category=dict(data.get("time_by_category") or {}),
            computed_at=data.get("computed_at") or now,
            created_at=data.get("created_at") or now,
            updated_at=data.get("updated_at") or now,
        )


def calculate_productivity_score(snapshot: ProductivitySnapshot) -> int:
    """Compute the 0-100 productivity score of a snapshot.

    A category contributes only when it has data for the day. Missing
    categories are not renormalized away, so a day without habits simply
    has a lower reachable maximum.

    Args:
        snapshot: Snapshot whose counts and rates are already set.

    Returns:
        Integer score, truncated and capped at 100.
    """
    score = 0.0
    weights = 0.0

    if snapshot.tasks_created > 0 or snapshot.tasks_completed > 0:
        task_score = snapshot.task_completion_rate * TASK_WEIGHT
        # Clearing backlog earns a bonus
        if snapshot.tasks_overdue > 0 and snapshot.tasks_completed > snapshot.tasks_overdue:
            task_score *= BONUS_MULTIPLIER
        score += task_score * 100
        weights += TASK_WEIGHT

    if snapshot.blocks_scheduled > 0:
        score += snapshot.block_completion_rate * BLOCK_WEIGHT * 100
        weights += BLOCK_WEIGHT

    if snapshot.habits_due > 0:
        habit_score = snapshot.habit_completion_rate * HABIT_WEIGHT
        if snapshot.longest_streak >= STREAK_BONUS_DAYS:
            habit_score *= BONUS_MULTIPLIER
        score += habit_score * 100
        weights += HABIT_WEIGHT

    if snapshot.focus_sessions > 0:
        focus_ratio = min(snapshot.total_focus_minutes / FOCUS_TARGET_MINUTES, 1.0)
        focus_score = focus_ratio * FOCUS_WEIGHT
        if snapshot.avg_focus_session_minutes >= POMODORO_MINUTES:
            focus_score *= BONUS_MULTIPLIER
        score += focus_score * 100
        weights += FOCUS_WEIGHT

    if weights == 0:
        return 0

    return int(min(score, 100.0))


class SnapshotBuilder:
    """Staged builder for ``ProductivitySnapshot``.

    Each ``set_*`` call stores raw counts. ``build`` derives the rates and
    the score once and returns a finished snapshot.

    Example:
        >>> snapshot = (
        ...     SnapshotBuilder("user-1", date(2024, 1, 10))
        ...     .set_task_metrics(created=10, completed=8)
        ...     .build()
        ... )
        >>> round(snapshot.task_completion_rate, 4)
        0.4444
    """

    def __init__(self, user_id: str, snapshot_date: date) -> None:
        self._user_id = user_id
        self._date = snapshot_date
        self._tasks = TaskStats()
        self._blocks = BlockStats()
        self._habits = HabitStats()
        self._focus_sessions = 0
        self._focus_minutes = 0
        self._peak_hours: tuple[PeakHour, ...] = ()
        self._time_by_category: dict[str, int] = {}

    def set_task_metrics(
        self,
        created: int = 0,
        completed: int = 0,
        overdue: int = 0,
        avg_duration_minutes: int = 0,
    ) -> "SnapshotBuilder":
        self._tasks = TaskStats(created, completed, overdue, avg_duration_minutes)
        return self

    def set_block_metrics(
        self,
        scheduled: int = 0,
        completed: int = 0,
        missed: int = 0,
        scheduled_minutes: int = 0,
        completed_minutes: int = 0,
    ) -> "SnapshotBuilder":
        self._blocks = BlockStats(
            scheduled, completed, missed, scheduled_minutes, completed_minutes
        )
        return self

    def set_habit_metrics(
        self, due: int = 0, completed: int = 0, longest_streak: int = 0
    ) -> "SnapshotBuilder":
        self._habits = HabitStats(due, completed, longest_streak)
        return self

    def set_focus_metrics(self, sessions: int = 0, total_minutes: int = 0) -> "SnapshotBuilder":
        self._focus_sessions = sessions
        self._focus_minutes = total_minutes
        return self

    def set_peak_hours(self, peak_hours: list[PeakHour]) -> "SnapshotBuilder":
        self._peak_hours = tuple(peak_hours)
        return self

    def set_time_by_category(self, time_by_category: dict[str, int]) -> "SnapshotBuilder":
        self._time_by_category = dict(time_by_category)
        return self

    def build(self, snapshot_id: str | None = None) -> ProductivitySnapshot:
        """Derive rates and score and return the snapshot.

        Args:
            snapshot_id: Reuse an existing ID when recomputing a stored day.

        Returns:
            Fully derived snapshot.
        """
        tasks, blocks, habits = self._tasks, self._blocks, self._habits

        # Tasks that could have been completed that day
        task_total = tasks.created + tasks.completed
        task_rate = tasks.completed / task_total if task_total > 0 else 0.0
        block_rate = blocks.completed / blocks.scheduled if blocks.scheduled > 0 else 0.0
        habit_rate = habits.completed / habits.due if habits.due > 0 else 0.0
        avg_focus = (
            self._focus_minutes // self._focus_sessions if self._focus_sessions > 0 else 0
        )

        now = datetime.now(UTC)
        snapshot = ProductivitySnapshot(
            id=snapshot_id or str(uuid.uuid4()),
            user_id=self._user_id,
            snapshot_date=self._date,
            tasks_created=tasks.created,
            tasks_completed=tasks.completed,
            tasks_overdue=tasks.overdue,
            task_completion_rate=task_rate,
            avg_task_duration_minutes=tasks.avg_duration_minutes,
            blocks_scheduled=blocks.scheduled,
            blocks_completed=blocks.completed,
            blocks_missed=blocks.missed,
            scheduled_minutes=blocks.scheduled_minutes,
            completed_minutes=blocks.completed_minutes,
            block_completion_rate=block_rate,
            habits_due=habits.due,
            habits_completed=habits.completed,
            habit_completion_rate=habit_rate,
            longest_streak=habits.longest_streak,
            focus_sessions=self._focus_sessions,
            total_focus_minutes=self._focus_minutes,
            avg_focus_session_minutes=avg_focus,
            peak_hours=self._peak_hours,
            time_by_category=self._time_by_category,
            computed_at=now,
            created_at=now,
            updated_at=now,
        )

        return replace(snapshot, productivity_score=calculate_productivity_score(snapshot))


__all__ = [
    "BlockStats",
    "HabitStats",
    "PeakHour",
    "ProductivitySnapshot",
    "SnapshotBuilder",
    "TaskStats",
    "calculate_productivity_score",
]
