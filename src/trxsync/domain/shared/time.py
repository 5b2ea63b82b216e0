"""Time utilities for the domain layer."""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def today_utc() -> date:
    """Return current date in UTC (timezone-aware)."""
    return datetime.now(tz=timezone.utc).date()


def parse_calendar_date(value: date | datetime | str) -> date:
    """Normalize a date-like value to a calendar date.

    Accepts ``date``, ``datetime`` and ISO strings (``YYYY-MM-DD`` or a
    full ISO timestamp, of which only the date part is kept).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) > 10 and text[10] in ("T", " "):
        text = text[:10]
    return date.fromisoformat(text)
