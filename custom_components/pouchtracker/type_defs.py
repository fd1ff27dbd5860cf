"""Type definitions for Pouch Tracker data structures.

TypedDict is used for every structure whose keys are fixed at design time:
stored daily records, week bucket entries, user settings and the sections of
a statistics snapshot. Mappings keyed by runtime values (date → count,
week key → bucket) stay as plain ``dict[...]`` aliases.

IMPORTANT: This file must NOT import from coordinator.py, managers or any file
that imports the coordinator, to avoid circular dependencies.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime defaults and ``.get()``
fallbacks still live in the store and the managers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

ISODate = str  # ISO 8601 date string (no time) "2026-01-18"
WeekKey = str  # ISO date of the Monday that owns the week "2026-01-12"
MonthKey = str  # "2026-01"
EpochMs = int  # Milliseconds since the Unix epoch


# =============================================================================
# Stored records
# =============================================================================


class WeekBucketEntry(TypedDict):
    """Reduced daily record kept inside a week bucket (no owning date)."""

    count: int
    limit: int
    longest_pause: int  # seconds
    current_session_start: EpochMs | None
    last_session_end: EpochMs | None
    next_allowed_at: EpochMs | None


class DailyRecord(WeekBucketEntry):
    """One record per calendar day.

    ``limit`` is the daily-intake setting at the time of the last write, so
    over/under-limit accounting stays correct after the setting changes.
    """

    date: ISODate


WeekBucket = dict[ISODate, WeekBucketEntry]
DayEntry = tuple[ISODate, DailyRecord]


# =============================================================================
# Settings
# =============================================================================


class UserSettings(TypedDict):
    """User-configured limits, costs and timings."""

    daily_intake: int
    cost_per_can: float
    portions_per_can: int
    session_time: int  # minutes
    wait_time: int  # minutes
    nicotine_content: float  # mg per portion
    goal: str
    pace: str
    target_daily_intake: NotRequired[int]
    target_session_time: NotRequired[int]
    target_wait_time: NotRequired[int]


# =============================================================================
# Statistics results
# =============================================================================


class StreakResult(TypedDict):
    """Current and longest within-limit streaks."""

    current: int
    longest: int


class TrendResult(TypedDict):
    """First-half vs second-half comparison of daily counts."""

    direction: str
    percentage: int


class RollupResult(TypedDict):
    """Aggregate of a range of daily records."""

    total_count: int
    average_per_day: float
    cost: float
    nicotine: float
    days_over_limit: int
    days_under_limit: int


class WeeklyStats(RollupResult):
    """Rollup for the Monday-anchored week containing today."""

    daily_counts: dict[ISODate, int]
    longest_streak: int
    best_pause: int
    limit: int


class MonthlyStats(RollupResult):
    """Rollup for the calendar month containing today."""

    trend: str


class YearlyStats(RollupResult):
    """Rollup for the trailing 365-day window ending today."""

    best_month: MonthKey | None
    worst_month: MonthKey | None


class ConsumptionScope(TypedDict):
    """Consumption figures for one scope (day/week/month/year)."""

    count: int
    saved: int
    cost: float
    nicotine: float


class ConsumptionStats(TypedDict):
    """Consumption breakdown across scopes."""

    daily: ConsumptionScope
    weekly: ConsumptionScope
    monthly: ConsumptionScope
    yearly: ConsumptionScope
    average_session_time: int
    average_wait_time: int


class ProgressStats(TypedDict):
    """Streaks, trend and goal progress."""

    current_streak: int
    longest_streak: int
    trend: TrendResult
    goal_progress: float
    weekly_within_limit: int
    weekly_over_limit: int


class ProjectionResult(TypedDict):
    """Savings projected from today's daily saving."""

    three_months: float
    six_months: float
    one_year: float


class SavingsStats(TypedDict):
    """Daily and accumulated savings."""

    daily: float
    total: float
    projections: ProjectionResult


class HealthStats(TypedDict):
    """Nicotine intake and pause metrics."""

    nicotine_today: float
    nicotine_week: float
    nicotine_month: float
    max_nicotine_day: ISODate | None
    max_nicotine_amount: float
    reduction_days: int
    current_pause: int
    longest_pause: int


# =============================================================================
# Snapshot
# =============================================================================


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    """Result of one aggregation pass.

    Built fresh on every successful pass and replaced wholesale, never merged.
    """

    generated_for: ISODate
    daily: DailyRecord
    weekly: WeeklyStats
    monthly: MonthlyStats
    yearly: YearlyStats
    consumption: ConsumptionStats
    progress: ProgressStats
    savings: SavingsStats
    health: HealthStats

    def as_dict(self) -> dict[str, Any]:
        """Return a deep, JSON-friendly copy of the snapshot."""
        return asdict(self)
