"""Calendar period boundaries.

Goals and weekly summaries both align to these boundaries, so every
period computation in the package goes through this module.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum


class PeriodType(Enum):
    """Time period a goal is measured over."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# Last representable instant before the next period starts.
_EPSILON = timedelta(microseconds=1)


def start_of_day(moment: datetime) -> datetime:
    """Return midnight of the given instant's day, keeping its timezone."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(moment: datetime) -> datetime:
    """Return midnight of the Monday on or before the given instant.

    Sunday maps back six days to the Monday of the same week.
    """
    midnight = start_of_day(moment)
    return midnight - timedelta(days=midnight.weekday())


def week_start_date(day: date) -> date:
    """Return the Monday of the week containing ``day``."""
    start, _ = period_bounds(datetime.combine(day, time.min), PeriodType.WEEKLY)
    return start.date()


def period_bounds(reference: datetime, period_type: PeriodType) -> tuple[datetime, datetime]:
    """Compute the period containing a reference instant.

    Args:
        reference: Instant the period must contain. Its timezone is kept.
        period_type: Daily, weekly (Monday start) or monthly.

    Returns:
        Tuple of (start, end) where end is the last instant of the period.
    """
    if period_type == PeriodType.DAILY:
        start = start_of_day(reference)
        next_start = start + timedelta(days=1)
    elif period_type == PeriodType.WEEKLY:
        start = start_of_week(reference)
        next_start = start + timedelta(days=7)
    elif period_type == PeriodType.MONTHLY:
        start = start_of_day(reference).replace(day=1)
        if start.month == 12:
            next_start = start.replace(year=start.year + 1, month=1)
        else:
            next_start = start.replace(month=start.month + 1)
    else:
        raise ValueError(f"Unknown period type: {period_type}")

    return start, next_start - _EPSILON


def day_bounds(day: date, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Return the first and last instant of a calendar day."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    return period_bounds(start, PeriodType.DAILY)


__all__ = [
    "PeriodType",
    "day_bounds",
    "period_bounds",
    "start_of_day",
    "start_of_week",
    "week_start_date",
]
