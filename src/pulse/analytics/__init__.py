"""Analytics domain for Pulse.

Provides snapshots, goals, sessions, weekly summaries, insights and the
persistence protocols they are stored through.
"""

from .errors import (
    GoalAlreadyAchievedError,
    GoalNotFoundError,
    InsightNotFoundError,
    InvalidSessionError,
    InvalidTargetError,
    NoActiveSessionError,
    NotFoundError,
    PulseError,
    SessionAlreadyActiveError,
    SessionAlreadyEndedError,
    SessionNotActiveError,
    StateConflictError,
    StorageError,
    ValidationError,
)
from .goals import GOAL_DESCRIPTIONS, GoalType, ProductivityGoal
from .models import (
    ActionableInsight,
    InsightPriority,
    InsightType,
    WeeklySummary,
    percentage_change,
)
from .periods import PeriodType, day_bounds, period_bounds, week_start_date
from .repository import (
    AnalyticsDataSource,
    GoalRepository,
    InsightRepository,
    SessionRepository,
    SnapshotRepository,
    SummaryRepository,
)
from .sessions import SessionStatus, SessionType, TimeSession
from .snapshot import (
    BlockStats,
    HabitStats,
    PeakHour,
    ProductivitySnapshot,
    SnapshotBuilder,
    TaskStats,
    calculate_productivity_score,
)

__all__ = [
    "GOAL_DESCRIPTIONS",
    "ActionableInsight",
    "AnalyticsDataSource",
    "BlockStats",
    "GoalAlreadyAchievedError",
    "GoalNotFoundError",
    "GoalRepository",
    "GoalType",
    "HabitStats",
    "InsightNotFoundError",
    "InsightPriority",
    "InsightRepository",
    "InsightType",
    "InvalidSessionError",
    "InvalidTargetError",
    "NoActiveSessionError",
    "NotFoundError",
    "PeakHour",
    "PeriodType",
    "ProductivityGoal",
    "ProductivitySnapshot",
    "PulseError",
    "SessionAlreadyActiveError",
    "SessionAlreadyEndedError",
    "SessionNotActiveError",
    "SessionRepository",
    "SessionStatus",
    "SessionType",
    "SnapshotBuilder",
    "SnapshotRepository",
    "StateConflictError",
    "StorageError",
    "SummaryRepository",
    "TaskStats",
    "TimeSession",
    "ValidationError",
    "WeeklySummary",
    "calculate_productivity_score",
    "day_bounds",
    "percentage_change",
    "period_bounds",
    "week_start_date",
]
