"""Date parsing and period utilities."""

from datetime import date, datetime, time, timedelta, UTC
from typing import Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

DateLike = Union[date, datetime]

PERIODS = ("this-month", "this-year", "this-week", "last-month", "last-year", "last-week")


def _period_start(period: str, today: date) -> date:
    if period == "month":
        return today.replace(day=1)
    if period == "year":
        return today.replace(month=1, day=1)
    if period == "week":
        return today - timedelta(days=today.weekday())
    raise ValueError(f"Unknown period '{period}'")


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and relative
    ones: "today", "yesterday", "tomorrow", and "this"/"last" followed by
    "week", "month" or "year" (the first day of that period).

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = date.today()

    relative_days = {"today": 0, "yesterday": -1, "tomorrow": 1}
    if text in relative_days:
        return today + timedelta(days=relative_days[text])

    prefix, _, period = text.partition(" ")
    if prefix in ("this", "last") and period in ("week", "month", "year"):
        start = _period_start(period, today)
        if prefix == "this":
            return start
        if period == "week":
            return start - timedelta(days=7)
        return start - relativedelta(**{f"{period}s": 1})

    try:
        return date_parser.parse(text).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a named period.

    "this-*" periods end today; "last-*" periods end on the last day of the
    previous week, month or year.

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    if period not in PERIODS:
        raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")
    today = date.today()
    which, unit = period.split("-")
    start = _period_start(unit, today)
    if which == "this":
        return start, today
    previous_start = parse_date(f"last {unit}")
    return previous_start, start - timedelta(days=1)


def to_datetime(value: Optional[DateLike], end_of_day: bool = False) -> Optional[datetime]:
    """Convert a date or datetime to an aware UTC datetime.

    Plain dates become midnight, or the last microsecond of the day when
    ``end_of_day`` is set, so that a date range is inclusive at both ends.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    bound = time.max if end_of_day else time.min
    return datetime.combine(value, bound, tzinfo=UTC)


def period_bounds(
    start: Optional[DateLike], end: Optional[DateLike]
) -> tuple[Optional[datetime], Optional[datetime]]:
    """Inclusive UTC datetime bounds for an optional date range."""
    return to_datetime(start), to_datetime(end, end_of_day=True)
