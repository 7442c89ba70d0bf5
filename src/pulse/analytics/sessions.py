"""Tracked focus and work sessions."""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from .errors import InvalidSessionError, SessionAlreadyEndedError, SessionNotActiveError


class SessionType(Enum):
    """What a session was spent on."""

    TASK = "task"
    HABIT = "habit"
    FOCUS = "focus"
    MEETING = "meeting"
    OTHER = "other"


class SessionStatus(Enum):
    """Lifecycle state of a session."""

    ACTIVE = "active"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    ABANDONED = "abandoned"


@dataclass
class TimeSession:
    """A tracked interval of work.

    Duration is frozen when the session ends. While the session is active
    it is computed from the start time.
    """

    user_id: str
    session_type: SessionType
    title: str
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    reference_id: str | None = None
    category: str = ""
    ended_at: datetime | None = None
    duration_minutes: int | None = None
    status: SessionStatus = SessionStatus.ACTIVE
    interruptions: int = 0
    notes: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def start(
        cls,
        user_id: str,
        session_type: SessionType,
        title: str,
        reference_id: str | None = None,
        category: str = "",
        now: datetime | None = None,
    ) -> "TimeSession":
        """Start a new active session.

        Raises:
            InvalidSessionError: If the title is empty.
        """
        if not title or not title.strip():
            raise InvalidSessionError("session title is required")

        now = now or datetime.now(UTC)
        return cls(
            user_id=user_id,
            session_type=session_type,
            title=title.strip(),
            started_at=now,
            reference_id=reference_id,
            category=category,
            created_at=now,
            updated_at=now,
        )

    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def end(
        self, status: SessionStatus = SessionStatus.COMPLETED, now: datetime | None = None
    ) -> None:
        """End the session with a final status.

        Raises:
            SessionAlreadyEndedError: If the session already has an end time.
            SessionNotActiveError: If the session is not active.
            InvalidSessionError: If the final status is still active.
        """
        if self.ended_at is not None:
            raise SessionAlreadyEndedError()
        if not self.is_active():
            raise SessionNotActiveError()
        if status == SessionStatus.ACTIVE:
            raise InvalidSessionError("an ended session cannot stay active")

        now = now or datetime.now(UTC)
        self.ended_at = now
        self.status = status
        self.duration_minutes = int((now - self.started_at).total_seconds() // 60)
        self.updated_at = now

    def complete(self, now: datetime | None = None) -> None:
        self.end(SessionStatus.COMPLETED, now=now)

    def interrupt(self, now: datetime | None = None) -> None:
        self.end(SessionStatus.INTERRUPTED, now=now)

    def abandon(self, now: datetime | None = None) -> None:
        self.end(SessionStatus.ABANDONED, now=now)

    def record_interruption(self) -> None:
        """Count an interruption without ending the session."""
        if not self.is_active():
            raise SessionNotActiveError()
        self.interruptions += 1
        self.updated_at = datetime.now(UTC)

    def add_notes(self, notes: str, now: datetime | None = None) -> None:
        self.notes = notes
        self.updated_at = now or datetime.now(UTC)

    def duration(self, now: datetime | None = None) -> timedelta:
        """Return how long the session ran (or has been running)."""
        if self.duration_minutes is not None:
            return timedelta(minutes=self.duration_minutes)
        end = self.ended_at or now or datetime.now(UTC)
        return end - self.started_at

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for storage."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "session_type": self.session_type.value,
            "reference_id": self.reference_id,
            "title": self.title,
            "category": self.category,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "duration_minutes": self.duration_minutes,
            "status": self.status.value,
            "interruptions": self.interruptions,
            "notes": self.notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeSession":
        """Create from a stored dictionary."""
        now = datetime.now(UTC)
        return cls(
            id=str(data["id"]),
            user_id=str(data.get("user_id", "")),
            session_type=SessionType(data.get("session_type", "other")),
            reference_id=data.get("reference_id"),
            title=data.get("title", ""),
            category=data.get("category") or "",
            started_at=data["started_at"],
            ended_at=data.get("ended_at"),
            duration_minutes=data.get("duration_minutes"),
            status=SessionStatus(data.get("status", "active")),
            interruptions=int(data.get("interruptions", 0)),
            notes=data.get("notes") or "",
            created_at=data.get("created_at") or now,
            updated_at=data.get("updated_at") or now,
        )


__all__ = ["SessionStatus", "SessionType", "TimeSession"]
