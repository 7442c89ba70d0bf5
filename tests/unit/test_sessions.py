"""Unit tests for time sessions."""

from datetime import UTC, datetime, timedelta

import pytest

from pulse.analytics.errors import (
    InvalidSessionError,
    SessionAlreadyEndedError,
    SessionNotActiveError,
)
from pulse.analytics.sessions import SessionStatus, SessionType, TimeSession

START = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)


def start_focus(title: str = "Write report") -> TimeSession:
    return TimeSession.start("user-1", SessionType.FOCUS, title, now=START)


class TestSessionStart:
    """Tests for TimeSession.start."""

    def test_starts_active(self) -> None:
        """Test a new session is active with no end."""
        session = start_focus()
        assert session.is_active()
        assert session.started_at == START
        assert session.ended_at is None
        assert session.duration_minutes is None

    def test_strips_title(self) -> None:
        """Test surrounding whitespace is removed from the title."""
        assert start_focus("  Deep work ").title == "Deep work"

    @pytest.mark.parametrize("title", ["", "   "])
    def test_requires_title(self, title: str) -> None:
        """Test an empty title is rejected."""
        with pytest.raises(InvalidSessionError):
            start_focus(title)


class TestSessionEnd:
    """Tests for ending sessions."""

    def test_complete_freezes_duration(self) -> None:
        """Test completing records whole minutes."""
        session = start_focus()
        session.complete(now=START + timedelta(minutes=50, seconds=59))
        assert session.status == SessionStatus.COMPLETED
        assert session.duration_minutes == 50
        assert session.duration() == timedelta(minutes=50)

    def test_interrupt_and_abandon(self) -> None:
        """Test the other final statuses."""
        interrupted = start_focus()
        interrupted.interrupt(now=START + timedelta(minutes=10))
        abandoned = start_focus()
        abandoned.abandon(now=START + timedelta(minutes=5))
        assert interrupted.status == SessionStatus.INTERRUPTED
        assert abandoned.status == SessionStatus.ABANDONED

    def test_cannot_end_twice(self) -> None:
        """Test ending an ended session fails."""
        session = start_focus()
        session.complete(now=START + timedelta(minutes=25))
        with pytest.raises(SessionAlreadyEndedError):
            session.complete(now=START + timedelta(minutes=30))

    def test_cannot_end_inactive_session(self) -> None:
        """Test a non-active session without end time cannot be ended."""
        session = start_focus()
        session.status = SessionStatus.ABANDONED
        with pytest.raises(SessionNotActiveError):
            session.end(now=START + timedelta(minutes=1))

    def test_active_is_not_a_final_status(self) -> None:
        """Test ending with the active status is rejected and changes nothing."""
        session = start_focus()
        with pytest.raises(InvalidSessionError):
            session.end(SessionStatus.ACTIVE, now=START + timedelta(minutes=30))

        assert session.is_active()
        assert session.ended_at is None
        assert session.duration_minutes is None
        assert session.updated_at == START


class TestSessionHelpers:
    """Tests for interruptions, notes and running duration."""

    def test_record_interruption(self) -> None:
        """Test interruptions are counted while active."""
        session = start_focus()
        session.record_interruption()
        session.record_interruption()
        assert session.interruptions == 2

    def test_record_interruption_requires_active(self) -> None:
        """Test an ended session cannot be interrupted."""
        session = start_focus()
        session.complete(now=START + timedelta(minutes=30))
        with pytest.raises(SessionNotActiveError):
            session.record_interruption()

    def test_running_duration(self) -> None:
        """Test an active session's duration runs until now."""
        session = start_focus()
        assert session.duration(START + timedelta(minutes=12)) == timedelta(minutes=12)

    def test_add_notes(self) -> None:
        """Test notes are stored."""
        session = start_focus()
        session.add_notes("Finished the intro")
        assert session.notes == "Finished the intro"

    def test_round_trip_keeps_status(self) -> None:
        """Test serialization restores enum fields."""
        session = start_focus()
        session.complete(now=START + timedelta(minutes=25))
        restored = TimeSession.from_dict(session.to_dict())
        assert restored.status == SessionStatus.COMPLETED
        assert restored.session_type == SessionType.FOCUS
        assert restored.duration_minutes == 25
