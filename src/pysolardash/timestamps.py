"""Timestamp normalization and date-range helpers.

The energy endpoint reports point dates in several shapes depending on the
requested ``timeUnit``:

- ``"2024-05-01"`` for daily values
- ``"2024-05-01 10:15:00"`` for quarter-hour values
- ``"2024-05-01T10:15:00"`` from some proxies

:func:`normalize_timestamp` folds all of them into one ISO-like form.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any

_LOGGER = logging.getLogger(__name__)

MIDNIGHT_SUFFIX = "T00:00:00"


def normalize_timestamp(value: Any) -> str | None:
    """Normalize a raw point date to an ISO-like string.

    Strings already containing ``T`` pass through unchanged, space-separated
    date-times have their first space replaced with ``T`` and bare dates get
    ``T00:00:00`` appended.

    Args:
        value: Raw ``date`` field from a series entry

    Returns:
        Normalized string, or None when ``value`` is not a string (the
        caller must drop the entry)
    """
    if not isinstance(value, str):
        return None
    if "T" in value:
        return value
    if " " in value:
        return value.replace(" ", "T", 1)
    return f"{value}{MIDNIGHT_SUFFIX}"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a raw or normalized timestamp into a datetime.

    Used by display collaborators (e.g. the ``lastUpdateTime`` label). The
    pipeline itself never needs parsed datetimes.
    """
    normalized = normalize_timestamp(value)
    if normalized is None:
        return None
    try:
        return datetime.fromisoformat(normalized)
    except ValueError:
        _LOGGER.debug("Unparseable timestamp %r", value)
        return None


def format_ymd(day: date) -> str:
    """Format a date as ``YYYY-MM-DD``."""
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def history_window(today: date, history_days: int) -> tuple[str, str]:
    """Return the ``(startDate, endDate)`` of a trailing window ending today.

    Args:
        today: Last day of the window (local date)
        history_days: Window length in days, today included

    Returns:
        Tuple of ``YYYY-MM-DD`` strings
    """
    start = today - timedelta(days=history_days - 1)
    return format_ymd(start), format_ymd(today)


__all__ = [
    "format_ymd",
    "history_window",
    "normalize_timestamp",
    "parse_timestamp",
]
