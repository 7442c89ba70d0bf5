"""Unit tests for productivity goals."""

from datetime import UTC, datetime, timedelta

import pytest

from pulse.analytics.errors import GoalAlreadyAchievedError, InvalidTargetError
from pulse.analytics.goals import GOAL_DESCRIPTIONS, GoalType, ProductivityGoal
from pulse.analytics.periods import PeriodType

NOW = datetime(2024, 1, 17, 10, 0, tzinfo=UTC)  # Wednesday


def make_goal(target: int = 10, period: PeriodType = PeriodType.WEEKLY) -> ProductivityGoal:
    return ProductivityGoal.create("user-1", GoalType.WEEKLY_TASKS, target, period, now=NOW)


class TestGoalCreate:
    """Tests for ProductivityGoal.create."""

    def test_weekly_goal_spans_monday_to_sunday(self) -> None:
        """Test the period is aligned to the containing week."""
        goal = make_goal()
        assert goal.period_start == datetime(2024, 1, 15, tzinfo=UTC)
        assert goal.period_end.date().isoformat() == "2024-01-21"
        assert goal.current_value == 0
        assert not goal.achieved

    def test_daily_goal(self) -> None:
        """Test a daily goal covers one day."""
        goal = make_goal(period=PeriodType.DAILY)
        assert goal.period_start == datetime(2024, 1, 17, tzinfo=UTC)
        assert goal.period_days() == 0

    @pytest.mark.parametrize("target", [0, -5])
    def test_rejects_non_positive_target(self, target: int) -> None:
        """Test targets must be positive."""
        with pytest.raises(InvalidTargetError):
            make_goal(target=target)


class TestGoalProgress:
    """Tests for progress updates and achievement."""

    def test_progress_below_target(self) -> None:
        """Test partial progress is tracked."""
        goal = make_goal()
        goal.update_progress(4, now=NOW)
        assert goal.current_value == 4
        assert goal.progress_percentage == 40.0
        assert goal.remaining_value == 6
        assert not goal.achieved

    def test_reaching_target_marks_achieved(self) -> None:
        """Test reaching the target records the achievement time."""
        goal = make_goal()
        later = NOW + timedelta(hours=2)
        goal.update_progress(10, now=later)
        assert goal.achieved
        assert goal.achieved_at == later

    def test_overshoot_is_capped_in_percentage(self) -> None:
        """Test progress beyond the target reports 100% and nothing remaining."""
        goal = make_goal()
        goal.update_progress(15, now=NOW)
        assert goal.current_value == 15
        assert goal.progress_percentage == 100.0
        assert goal.remaining_value == 0

    def test_increment_progress(self) -> None:
        """Test increments accumulate."""
        goal = make_goal()
        goal.increment_progress(3, now=NOW)
        goal.increment_progress(2, now=NOW)
        assert goal.current_value == 5

    def test_achieved_goal_rejects_updates(self) -> None:
        """Test an achieved goal is frozen."""
        goal = make_goal()
        goal.update_progress(10, now=NOW)
        with pytest.raises(GoalAlreadyAchievedError):
            goal.update_progress(11, now=NOW)
        assert goal.current_value == 10


class TestGoalTime:
    """Tests for time-based goal queries."""

    def test_is_active_within_period(self) -> None:
        """Test an unachieved goal is active during its period."""
        goal = make_goal()
        assert goal.is_active(NOW)
        assert not goal.is_expired(NOW)

    def test_expired_after_period(self) -> None:
        """Test an unachieved goal expires after its period."""
        goal = make_goal()
        after = goal.period_end + timedelta(seconds=1)
        assert not goal.is_active(after)
        assert goal.is_expired(after)
        assert goal.days_remaining(after) == 0

    def test_days_remaining_truncates(self) -> None:
        """Test whole days remaining until Sunday night."""
        goal = make_goal()
        assert goal.days_remaining(NOW) == 4
        assert goal.period_days() == 6

    def test_achieved_goal_has_no_days_remaining(self) -> None:
        """Test achievement stops the countdown."""
        goal = make_goal()
        goal.update_progress(10, now=NOW)
        assert goal.days_remaining(NOW) == 0
        assert not goal.is_expired(goal.period_end + timedelta(days=1))


class TestGoalDescriptions:
    """Tests for goal type descriptions."""

    def test_every_type_has_description(self) -> None:
        """Test all goal types are described."""
        assert set(GOAL_DESCRIPTIONS) == set(GoalType)

    def test_description_property(self) -> None:
        """Test the goal exposes its type description."""
        assert make_goal().description == "Complete tasks this week"


class TestGoalSerialization:
    """Tests for to_dict/from_dict."""

    def test_from_dict_restores_enums(self) -> None:
        """Test stored string values become enums again."""
        goal = make_goal()
        goal.update_progress(10, now=NOW)
        restored = ProductivityGoal.from_dict(goal.to_dict())
        assert restored.goal_type == GoalType.WEEKLY_TASKS
        assert restored.period_type == PeriodType.WEEKLY
        assert restored.achieved is True
        assert restored.achieved_at == NOW
