"""Error types for the analytics engine.

Validation and state-conflict errors are raised before any state is
mutated. Not-found errors are expected outcomes callers branch on, while
storage errors wrap backend failures and abort the operation.
"""


class PulseError(Exception):
    """Base exception for analytics errors."""

    pass


class ValidationError(PulseError):
    """Raised when input fails validation."""

    pass


class InvalidTargetError(ValidationError):
    """Raised when a goal target value is not positive."""

    def __init__(self, target_value: int) -> None:
        """Initialize invalid target error.

        Args:
            target_value: The rejected target value.
        """
        super().__init__(f"target value must be positive (got {target_value})")
        self.target_value = target_value


class InvalidSessionError(ValidationError):
    """Raised when a session is missing required fields."""

    pass


class StateConflictError(PulseError):
    """Raised when an operation conflicts with the entity's current state."""

    pass


class GoalAlreadyAchievedError(StateConflictError):
    """Raised when updating progress on an achieved goal."""

    def __init__(self) -> None:
        super().__init__("goal already achieved")


class SessionNotActiveError(StateConflictError):
    """Raised when ending or interrupting a session that is not active."""

    def __init__(self) -> None:
        super().__init__("session is not active")


class SessionAlreadyEndedError(StateConflictError):
    """Raised when ending a session that already has an end time."""

    def __init__(self) -> None:
        super().__init__("session already ended")


class SessionAlreadyActiveError(StateConflictError):
    """Raised when starting a session while another one is active."""

    def __init__(self, title: str) -> None:
        super().__init__(f"a session is already active: {title}")
        self.title = title


class NotFoundError(PulseError):
    """Raised when a requested entity does not exist."""

    pass


class NoActiveSessionError(NotFoundError):
    """Raised when no session is active for the user."""

    def __init__(self) -> None:
        super().__init__("no active session")


class GoalNotFoundError(NotFoundError):
    """Raised when a goal cannot be found."""

    def __init__(self, goal_id: str) -> None:
        super().__init__(f"goal not found: {goal_id}")
        self.goal_id = goal_id


class InsightNotFoundError(NotFoundError):
    """Raised when an insight cannot be found."""

    def __init__(self, insight_id: str) -> None:
        super().__init__(f"insight not found: {insight_id}")
        self.insight_id = insight_id


class StorageError(PulseError):
    """Raised when a persistence backend fails."""

    def __init__(self, message: str, backend: str | None = None) -> None:
        """Initialize storage error.

        Args:
            message: Error message.
            backend: Name of the failing backend if known.
        """
        super().__init__(message)
        self.backend = backend


__all__ = [
    "GoalAlreadyAchievedError",
    "GoalNotFoundError",
    "InsightNotFoundError",
    "InvalidSessionError",
    "InvalidTargetError",
    "NoActiveSessionError",
    "NotFoundError",
    "PulseError",
    "SessionAlreadyActiveError",
    "SessionAlreadyEndedError",
    "SessionNotActiveError",
    "StateConflictError",
    "StorageError",
    "ValidationError",
]
