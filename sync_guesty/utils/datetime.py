"""UTC date and datetime utilities."""

from datetime import date, datetime, timezone
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    This function should be used instead of datetime.now() or datetime.utcnow()
    to ensure all timestamps are timezone-aware and stored in UTC. Tests patch
    it at the import site to pin the clock.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Return the current UTC calendar day."""
    return utc_now().date()


def add_months(day: date, months: int) -> date:
    """
    Add calendar months to a date, clamping to the last day of the target month.

    Example:
        >>> add_months(date(2026, 8, 31), 6)
        datetime.date(2027, 2, 28)
    """
    return day + relativedelta(months=months)


def calendar_window(today: date, months: int) -> tuple[date, date]:
    """
    Build the forward availability window starting at ``today``.

    Args:
        today: First day of the window (UTC day)
        months: Number of calendar months the window spans

    Returns:
        (start, end) tuple of dates, both inclusive
    """
    return today, add_months(today, months)


def to_utc_date(value: object) -> Optional[date]:
    """
    Normalize a vendor date value to a UTC calendar day.

    Accepts ``YYYY-MM-DD`` strings and ISO-8601 timestamps. Timestamps with an
    offset are converted to UTC before truncation; naive ones are taken as UTC.

    Returns:
        The UTC date, or None when the value is missing or unparseable
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()
