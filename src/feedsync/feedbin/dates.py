"""Feedbin timestamp formatting."""

import calendar
from datetime import UTC, datetime


FEEDBIN_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_feedbin_date(value: datetime) -> str:
    """Format a timestamp the way Feedbin expects in ``since`` parameters.

    Args:
        value: Timestamp; naive values are taken as UTC.

    Returns:
        String such as ``2024-01-15T10:00:00.000000Z``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(FEEDBIN_DATE_FORMAT)


def subtract_months(value: datetime, months: int) -> datetime:
    """Move a timestamp back by calendar months.

    The day is clamped to the length of the target month, so March 31
    minus one month is the last day of February.
    """
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
