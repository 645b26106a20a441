"""Calendar bucket planning for time-series charts.

Bucket keys are canonical ``YYYY-MM-DD`` strings built from the calendar
fields of :class:`datetime.date` values, so no timezone conversion can shift
them by a day.
"""

from __future__ import annotations

from datetime import date, timedelta

import pandas as pd

SATURDAY = 6
SUNDAY = 7


def format_date_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date_key(value) -> date | None:
    """Parse the leading ``YYYY-MM-DD`` part of ``value``; None when malformed."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def is_weekend(value: date) -> bool:
    return value.isoweekday() in (SATURDAY, SUNDAY)


def next_anchor_date(value: date, anchor_weekday: int) -> date:
    """Return the first date on or after ``value`` falling on ``anchor_weekday``.

    ``anchor_weekday`` uses ISO numbering (1=Monday .. 7=Sunday).
    """
    return value + timedelta(days=(anchor_weekday - value.isoweekday()) % 7)


def shift_weekend_to_monday(value: date) -> date:
    """Move Saturday (+2) and Sunday (+1) onto the following Monday."""
    weekday = value.isoweekday()
    if weekday == SATURDAY:
        return value + timedelta(days=2)
    if weekday == SUNDAY:
        return value + timedelta(days=1)
    return value


def plan_daily_buckets(from_date: date, to_date: date, *, hide_weekends: bool = False) -> list[str]:
    if from_date > to_date:
        return []
    days = pd.date_range(from_date, to_date, freq="D")
    keys: list[str] = []
    for ts in days:
        day = ts.date()
        if hide_weekends and is_weekend(day):
            continue
        keys.append(format_date_key(day))
    return keys


def plan_weekly_buckets(from_date: date, to_date: date, anchor_weekday: int) -> list[str]:
    """Anchor dates from the first one on/after ``from_date`` through the first one on/after ``to_date``.

    The trailing bucket may fall after ``to_date``; it collects the current,
    still-open week.
    """
    if from_date > to_date:
        return []
    first = next_anchor_date(from_date, anchor_weekday)
    last = next_anchor_date(to_date, anchor_weekday)
    return [format_date_key(ts.date()) for ts in pd.date_range(first, last, freq="7D")]


def plan_buckets(
    from_date: date,
    to_date: date,
    *,
    weekly: bool = False,
    hide_weekends: bool = False,
    anchor_weekday: int = 1,
) -> list[str]:
    """Ordered, unique bucket keys covering ``[from_date, to_date]``.

    Parameters
    ----------
    from_date, to_date : date
        Inclusive window bounds.
    weekly : bool
        Emit one key per week on ``anchor_weekday`` instead of one per day.
    hide_weekends : bool
        Daily mode only: omit Saturday and Sunday keys entirely.
    anchor_weekday : int
        1=Monday .. 5=Friday. Validated by
        :class:`redmine_graph.core.models.AggregationOptions`, not here.

    Returns
    -------
    list[str]
        Strictly increasing ``YYYY-MM-DD`` keys.
    """
    if weekly:
        return plan_weekly_buckets(from_date, to_date, anchor_weekday)
    return plan_daily_buckets(from_date, to_date, hide_weekends=hide_weekends)
