"""Helpers for Monday-first scheduling weeks."""

from datetime import date, timedelta

DAYS_PER_WEEK = 7


def week_start(d: date) -> date:
    """Get the Monday of the week containing a date."""
    return d - timedelta(days=d.weekday())


def week_dates(start: date) -> list[date]:
    """Get the seven dates of the week containing ``start``, Monday first.

    Example:
        >>> week_dates(date(2024, 6, 12))[0]
        datetime.date(2024, 6, 10)
    """
    monday = week_start(start)
    return [monday + timedelta(days=i) for i in range(DAYS_PER_WEEK)]


def week_id(d: date) -> str:
    """Identifier of the week containing a date (its Monday, ISO formatted)."""
    return week_start(d).isoformat()


def shift_week(start: date, weeks: int) -> date:
    """Move a week start forward or backward by whole weeks."""
    return week_start(start) + timedelta(weeks=weeks)
