"""Tests for the pure date helpers in utils/dt_utils.py."""

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

import pytest

from custom_components.pouchtracker.utils import dt_utils


class TestEpochConversions:
    """Epoch millisecond helpers."""

    def test_to_and_from_epoch_ms(self) -> None:
        """Conversions agree on a known instant."""
        moment = datetime(2026, 1, 14, 9, 30, tzinfo=UTC)
        epoch_ms = dt_utils.dt_to_epoch_ms(moment)

        assert epoch_ms % 1000 == 0
        assert dt_utils.dt_from_epoch_ms(epoch_ms, UTC) == moment

    def test_from_epoch_ms_uses_requested_zone(self) -> None:
        """The returned datetime is expressed in the requested zone."""
        tz = ZoneInfo("Europe/Stockholm")
        local = dt_utils.dt_from_epoch_ms(0, tz)
        assert local.hour == 1
        assert local.tzinfo == tz

    def test_seconds_between_floors(self) -> None:
        """Partial seconds are dropped."""
        assert dt_utils.seconds_between_ms(0, 1999) == 1
        assert dt_utils.minutes_to_ms(1.5) == 90_000


class TestLocalDates:
    """Timezone-dependent helpers."""

    def test_as_local_converts_aware_datetimes(self) -> None:
        """Late UTC evening is already tomorrow further east."""
        moment = datetime(2026, 1, 14, 23, 30, tzinfo=UTC)
        local = dt_utils.as_local(moment, ZoneInfo("Asia/Tokyo"))
        assert local.date() == date(2026, 1, 15)

    def test_as_local_attaches_zone_to_naive(self) -> None:
        """Naive values keep their wall-clock time."""
        tz = ZoneInfo("America/New_York")
        local = dt_utils.as_local(datetime(2026, 1, 14, 8, 0), tz)
        assert local.hour == 8
        assert local.tzinfo == tz

    def test_parse_date(self) -> None:
        """Malformed and empty strings parse to None."""
        assert dt_utils.dt_parse_date("2026-01-14") == date(2026, 1, 14)
        assert dt_utils.dt_parse_date("14/01/2026") is None
        assert dt_utils.dt_parse_date(None) is None


class TestCalendarKeys:
    """Week and month boundaries."""

    @pytest.mark.parametrize(
        ("day", "expected"),
        [
            (date(2026, 10, 12), "2026-10-12"),  # Monday
            (date(2026, 10, 18), "2026-10-12"),  # Sunday
            ("2026-01-01", "2025-12-29"),  # Year boundary
        ],
    )
    def test_week_key(self, day: date | str, expected: str) -> None:
        """Weeks are keyed by their Monday."""
        assert dt_utils.week_key(day) == expected

    def test_week_bounds(self) -> None:
        """A week runs Monday to Sunday."""
        day = date(2026, 10, 15)
        assert dt_utils.week_start(day) == date(2026, 10, 12)
        assert dt_utils.week_end(day) == date(2026, 10, 18)

    @pytest.mark.parametrize(
        ("day", "expected"),
        [
            (date(2026, 2, 10), date(2026, 2, 28)),
            (date(2028, 2, 10), date(2028, 2, 29)),
            (date(2026, 12, 31), date(2026, 12, 31)),
        ],
    )
    def test_month_end(self, day: date, expected: date) -> None:
        """Month ends follow month lengths and leap years."""
        assert dt_utils.month_end(day) == expected

    def test_month_key(self) -> None:
        """Month keys are YYYY-MM."""
        assert dt_utils.month_key("2026-03-09") == "2026-03"
        assert dt_utils.month_start(date(2026, 3, 9)) == date(2026, 3, 1)


class TestRanges:
    """Inclusive day ranges."""

    def test_trailing_range(self) -> None:
        """A window of N days ends on and includes the end day."""
        assert dt_utils.trailing_range(date(2026, 1, 30), 30) == (
            date(2026, 1, 1),
            date(2026, 1, 30),
        )
        assert dt_utils.trailing_range(date(2026, 1, 30), 1) == (
            date(2026, 1, 30),
            date(2026, 1, 30),
        )

    def test_trailing_range_rejects_empty_window(self) -> None:
        """Zero-day windows are a programming error."""
        with pytest.raises(ValueError):
            dt_utils.trailing_range(date(2026, 1, 30), 0)

    def test_iter_days_crosses_month(self) -> None:
        """Iteration covers both ends and month boundaries."""
        days = list(dt_utils.iter_days(date(2026, 1, 30), date(2026, 2, 2)))
        assert days == [
            date(2026, 1, 30),
            date(2026, 1, 31),
            date(2026, 2, 1),
            date(2026, 2, 2),
        ]
        assert not list(dt_utils.iter_days(date(2026, 2, 2), date(2026, 2, 1)))
