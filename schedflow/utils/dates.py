from datetime import date, datetime, timedelta
from typing import Optional, Union

DateLike = Union[date, datetime, str]


def to_date(value: Optional[DateLike]) -> Optional[date]:
    """
    Normalise a date-like value to a calendar date.

    Accepts ``date``, ``datetime`` (time part dropped), ISO ``YYYY-MM-DD``
    strings or ``None``.

    Raises:
        ValueError: If the value cannot be interpreted as a date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        # Tolerate full timestamps, only the date part matters
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Cannot interpret {value!r} as a date")


def add_days(start: date, days: int) -> date:
    return start + timedelta(days=int(days))


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative if end is earlier)."""
    return (end - start).days


def format_date(value: Optional[date]) -> str:
    return value.isoformat() if value is not None else "-"
