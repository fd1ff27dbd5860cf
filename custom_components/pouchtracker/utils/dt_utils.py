# File: utils/dt_utils.py
"""Date and time utilities for Pouch Tracker.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.
   Uses standard library: datetime, zoneinfo, dateutil.

Functions:
    - dt_today_local: Get today's date in local timezone
    - dt_now_local: Get current datetime in local timezone
    - dt_to_epoch_ms / dt_from_epoch_ms: Epoch millisecond conversions
    - dt_parse_date: Parse ISO date strings
    - week_start / week_end / week_key: Monday-anchored week helpers
    - month_start / month_end / month_key: Calendar month helpers
    - trailing_range: Inclusive window of N days ending on a date
    - iter_days: Iterate every calendar day in an inclusive range
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, timedelta
import logging
from zoneinfo import ZoneInfo

# Third-party date utilities (no HA dependency)
from dateutil.relativedelta import relativedelta

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MONTH_KEY_FORMAT = "%Y-%m"


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this during integration setup to configure the user's timezone.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in local timezone as a `datetime.date`.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Today's date in the specified timezone.

    Example:
        datetime.date(2025, 4, 7)
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware).

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Current datetime in the specified timezone.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info)


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to the local timezone.

    Naive datetimes are assumed to already be local and get the tzinfo attached.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        return dt_obj.replace(tzinfo=tz_info)
    return dt_obj.astimezone(tz_info)


# ==============================================================================
# Epoch Millisecond Conversions
# ==============================================================================


def dt_to_epoch_ms(dt_obj: datetime) -> int:
    """Convert a timezone-aware datetime to integer epoch milliseconds.

    Example:
        dt_to_epoch_ms(datetime(1970, 1, 1, 0, 0, 1, tzinfo=UTC)) → 1000
    """
    return int(dt_obj.timestamp() * MS_PER_SECOND)


def dt_from_epoch_ms(epoch_ms: int, tz: ZoneInfo | None = None) -> datetime:
    """Convert integer epoch milliseconds to a local timezone-aware datetime."""
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.fromtimestamp(epoch_ms / MS_PER_SECOND, tz_info)


def minutes_to_ms(minutes: float) -> int:
    """Convert a duration in minutes to milliseconds."""
    return int(minutes * MS_PER_MINUTE)


def seconds_between_ms(start_ms: int, end_ms: int) -> int:
    """Return whole seconds elapsed between two epoch-ms timestamps (floored)."""
    return (end_ms - start_ms) // MS_PER_SECOND


# ==============================================================================
# Date Keys
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Parse an ISO date string (YYYY-MM-DD) into a date.

    Args:
        date_str: ISO date string, or None.

    Returns:
        Parsed date, or None when the input is empty or malformed.
    """
    if not date_str:
        return None
    try:
        return date.fromisoformat(date_str)
    except (TypeError, ValueError):
        _LOGGER.warning("Invalid ISO date string: %s", date_str)
        return None


def week_start(day: date) -> date:
    """Return the Monday of the ISO week containing `day`."""
    return day - timedelta(days=day.weekday())


def week_end(day: date) -> date:
    """Return the Sunday of the ISO week containing `day`."""
    return week_start(day) + timedelta(days=6)


def week_key(day: date | str) -> str:
    """Return the Monday-anchored week key for a date.

    The key is the ISO date of that week's Monday, so buckets sort
    chronologically as plain strings.

    Example:
        week_key(date(2026, 10, 18)) → "2026-10-12"   # Sunday → previous Monday
        week_key("2026-10-12") → "2026-10-12"
    """
    if isinstance(day, str):
        day = date.fromisoformat(day)
    return week_start(day).isoformat()


def month_start(day: date) -> date:
    """Return the first day of the calendar month containing `day`."""
    return day.replace(day=1)


def month_end(day: date) -> date:
    """Return the last day of the calendar month containing `day`."""
    return month_start(day) + relativedelta(months=1, days=-1)


def month_key(day: date | str) -> str:
    """Return the calendar month key (YYYY-MM) for a date or ISO date string."""
    if isinstance(day, str):
        day = date.fromisoformat(day)
    return day.strftime(MONTH_KEY_FORMAT)


# ==============================================================================
# Ranges
# ==============================================================================


def trailing_range(end: date, days: int) -> tuple[date, date]:
    """Return the inclusive (start, end) window of `days` days ending on `end`.

    Example:
        trailing_range(date(2026, 1, 30), 30) → (date(2026, 1, 1), date(2026, 1, 30))
    """
    if days < 1:
        raise ValueError(f"Window must contain at least one day, got {days}")
    return end - timedelta(days=days - 1), end


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from `start` to `end` inclusive.

    Yields nothing when `end` is before `start`.
    """
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
