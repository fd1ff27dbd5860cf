"""Statistics Engine - Pure aggregation of daily usage records.

This engine turns ordered sequences of ``(date, DailyRecord)`` pairs plus the
user's settings into every derived metric Pouch Tracker shows:
- Range rollups (week/month/year totals, cost, nicotine, over/under limit)
- Streaks and first-half/second-half trends
- Savings, saved portions and projections
- Health metrics and the current pause
- Assembly of the full ``StatsSnapshot``

Design Principles:
    - Stateless: No hass or store reference, operates on passed data structures
    - Deterministic: "now" and "today" are always passed in by the caller
    - Historical: over/under-limit accounting uses each day's own recorded limit
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from .. import const
from ..type_defs import StatsSnapshot
from ..utils import dt_utils
from ..utils.math_utils import (
    calculate_percentage,
    portion_cost,
    round_half_up,
    safe_average,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..type_defs import (
        ConsumptionScope,
        DailyRecord,
        DayEntry,
        HealthStats,
        ISODate,
        MonthKey,
        ProjectionResult,
        RollupResult,
        StreakResult,
        TrendResult,
        UserSettings,
    )


class StatisticsEngine:
    """Stateless calculations over daily usage records.

    Example:
        days = [("2026-01-05", record_a), ("2026-01-06", record_b)]
        rollup = StatisticsEngine.compute_rollup(days, settings)
        streak = StatisticsEngine.compute_streak(days, date(2026, 1, 6), 10)
    """

    # ────────────────────────────────────────────────────────────────
    # Records
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def synthesize_record(day: ISODate, limit: int) -> DailyRecord:
        """Build the zero record used for days with no stored data."""
        return {
            const.DATA_RECORD_DATE: day,
            const.DATA_RECORD_COUNT: const.DEFAULT_ZERO,
            const.DATA_RECORD_LIMIT: limit,
            const.DATA_RECORD_LONGEST_PAUSE: const.DEFAULT_ZERO,
            const.DATA_RECORD_CURRENT_SESSION_START: None,
            const.DATA_RECORD_LAST_SESSION_END: None,
            const.DATA_RECORD_NEXT_ALLOWED_AT: None,
        }  # type: ignore[return-value]

    @staticmethod
    def record_from_bucket(day: ISODate, entry: dict) -> DailyRecord:
        """Rebuild a full daily record from a week bucket entry."""
        record = {field: entry.get(field) for field in const.WEEK_BUCKET_FIELDS}
        record[const.DATA_RECORD_DATE] = day
        for field in (
            const.DATA_RECORD_COUNT,
            const.DATA_RECORD_LIMIT,
            const.DATA_RECORD_LONGEST_PAUSE,
        ):
            if record[field] is None:
                record[field] = const.DEFAULT_ZERO
        return record  # type: ignore[return-value]

    @staticmethod
    def _count(record: DailyRecord) -> int:
        return record.get(const.DATA_RECORD_COUNT) or const.DEFAULT_ZERO

    @staticmethod
    def _limit(record: DailyRecord) -> int:
        return record.get(const.DATA_RECORD_LIMIT) or const.DEFAULT_ZERO

    @staticmethod
    def is_within_limit(count: int, limit: int) -> bool:
        """Return True when a day counts toward a streak (0 < count ≤ limit)."""
        return 0 < count <= limit

    # ────────────────────────────────────────────────────────────────
    # Streaks and Trends
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def compute_streak(
        days: Sequence[DayEntry], as_of: date, limit: int
    ) -> StreakResult:
        """Compute the current and longest within-limit streaks.

        Days are processed in chronological order. A day counts iff
        ``0 < count ≤ limit``. A zero-count ``as_of`` day neither extends nor
        breaks the run, since today may simply not have been used yet.
        Days after ``as_of`` are skipped.

        Args:
            days: Chronologically ordered (date, record) pairs.
            as_of: The evaluation date, normally today.
            limit: Daily limit to evaluate against.

        Returns:
            ``{"current": run ending at as_of, "longest": longest run}``

        Example:
            counts [5, 5, 0, 5, 5, 5, 5] with limit 5 → current 4, longest 4
        """
        as_of_key = as_of.isoformat()
        run = 0
        longest = 0

        for day, record in days:
            if day > as_of_key:
                continue
            count = StatisticsEngine._count(record)
            if StatisticsEngine.is_within_limit(count, limit):
                run += 1
                longest = max(longest, run)
            elif day == as_of_key and count == 0:
                continue
            else:
                run = 0

        return {"current": run, "longest": longest}

    @staticmethod
    def compute_trend(counts: Sequence[int]) -> TrendResult:
        """Compare the mean of the older half against the newer half.

        Odd-length windows give the extra day to the first (older) half.

        Example:
            compute_trend([10, 10, 10, 2, 2, 2]) → {"direction": "down", "percentage": 80}
        """
        if len(counts) < 2:
            return {"direction": const.TREND_STABLE, "percentage": 0}

        split = (len(counts) + 1) // 2
        first_avg = safe_average(counts[:split])
        second_avg = safe_average(counts[split:])

        if first_avg == 0:
            return {"direction": const.TREND_STABLE, "percentage": 0}

        if second_avg < first_avg:
            direction = const.TREND_DOWN
        elif second_avg > first_avg:
            direction = const.TREND_UP
        else:
            direction = const.TREND_STABLE

        percentage = round_half_up(abs(second_avg - first_avg) / first_avg * 100)
        return {"direction": direction, "percentage": percentage}

    # ────────────────────────────────────────────────────────────────
    # Rollups
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def compute_rollup(days: Sequence[DayEntry], settings: UserSettings) -> RollupResult:
        """Aggregate a range of days.

        Over/under limit uses each day's own recorded limit, not the current
        setting, so history stays accurate after the limit changes.
        """
        counts = [StatisticsEngine._count(record) for _, record in days]
        total = sum(counts)
        unit_cost = portion_cost(
            settings[const.CONF_COST_PER_CAN], settings[const.CONF_PORTIONS_PER_CAN]
        )

        over = 0
        under = 0
        for _, record in days:
            count = StatisticsEngine._count(record)
            day_limit = StatisticsEngine._limit(record)
            if count > day_limit:
                over += 1
            elif count > 0:
                under += 1

        return {
            "total_count": total,
            "average_per_day": safe_average(counts),
            "cost": total * unit_cost,
            "nicotine": total * settings[const.CONF_NICOTINE_CONTENT],
            "days_over_limit": over,
            "days_under_limit": under,
        }

    @staticmethod
    def compute_month_extremes(
        days: Sequence[DayEntry],
    ) -> tuple[MonthKey | None, MonthKey | None]:
        """Return (best, worst) months among those with any usage.

        Best is the lowest monthly total, worst the highest. Ties go to the
        earlier month.
        """
        totals: dict[MonthKey, int] = {}
        for day, record in days:
            count = StatisticsEngine._count(record)
            if count > 0:
                key = dt_utils.month_key(day)
                totals[key] = totals.get(key, 0) + count

        if not totals:
            return None, None

        best = min(totals, key=lambda key: totals[key])
        worst = max(totals, key=lambda key: totals[key])
        return best, worst

    # ────────────────────────────────────────────────────────────────
    # Savings
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def compute_savings(today_count: int, limit: int, unit_cost: float) -> float:
        """Return today's saving: ``max(0, (limit - today_count) * unit_cost)``."""
        return max(0.0, (limit - today_count) * unit_cost)

    @staticmethod
    def compute_total_savings(days: Sequence[DayEntry], unit_cost: float) -> float:
        """Sum the savings of every day with usage, against each day's own limit.

        Days with zero usage contribute nothing, they are not credited as
        fully saved.

        Example:
            limit 10, counts [10, 8, 0, 12] → 2 portions worth
        """
        return sum(
            StatisticsEngine.compute_savings(
                StatisticsEngine._count(record),
                StatisticsEngine._limit(record),
                unit_cost,
            )
            for _, record in days
            if StatisticsEngine._count(record) > 0
        )

    @staticmethod
    def compute_saved_portions(days: Sequence[DayEntry]) -> int:
        """Count portions kept under each day's own limit on days with usage."""
        return sum(
            max(0, StatisticsEngine._limit(record) - StatisticsEngine._count(record))
            for _, record in days
            if StatisticsEngine._count(record) > 0
        )

    @staticmethod
    def compute_projections(daily_savings: float) -> ProjectionResult:
        """Project today's saving over three months, six months and a year."""
        return {
            "three_months": daily_savings * const.PROJECTION_DAYS_THREE_MONTHS,
            "six_months": daily_savings * const.PROJECTION_DAYS_SIX_MONTHS,
            "one_year": daily_savings * const.PROJECTION_DAYS_ONE_YEAR,
        }

    @staticmethod
    def compute_goal_progress(goal: str, limit: int, today_count: int) -> float:
        """Return today's progress toward a reduce goal as a percentage.

        Only the reduce goal has progress. Other goals report 0.
        """
        if goal != const.GOAL_REDUCE or limit <= 0:
            return 0.0
        return max(0.0, calculate_percentage(limit - today_count, limit))

    # ────────────────────────────────────────────────────────────────
    # Pauses and Health
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def compute_current_pause(record: DailyRecord, now_ms: int) -> int:
        """Return whole seconds since the last session ended, or 0."""
        last_end = record.get(const.DATA_RECORD_LAST_SESSION_END)
        if last_end is None:
            return 0
        return max(0, dt_utils.seconds_between_ms(last_end, now_ms))

    @staticmethod
    def compute_max_nicotine_day(
        days: Sequence[DayEntry], nicotine_content: float
    ) -> tuple[ISODate | None, float]:
        """Return the day with the highest nicotine intake and its amount."""
        best_day: ISODate | None = None
        best_count = 0
        for day, record in days:
            count = StatisticsEngine._count(record)
            if count > best_count:
                best_day = day
                best_count = count
        return best_day, best_count * nicotine_content

    # ────────────────────────────────────────────────────────────────
    # Snapshot Assembly
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def _consumption_scope(
        days: Sequence[DayEntry], settings: UserSettings, unit_cost: float
    ) -> ConsumptionScope:
        total = sum(StatisticsEngine._count(record) for _, record in days)
        return {
            "count": total,
            "saved": StatisticsEngine.compute_saved_portions(days),
            "cost": total * unit_cost,
            "nicotine": total * settings[const.CONF_NICOTINE_CONTENT],
        }

    @staticmethod
    def build_snapshot(
        settings: UserSettings,
        today: date,
        now_ms: int,
        *,
        week: Sequence[DayEntry],
        month: Sequence[DayEntry],
        year: Sequence[DayEntry],
        streak_window: Sequence[DayEntry],
    ) -> StatsSnapshot:
        """Assemble every snapshot section from pre-loaded ranges.

        Args:
            settings: Current user settings.
            today: Local date the snapshot is generated for.
            now_ms: Current time in epoch milliseconds.
            week: Monday to Sunday of the week containing today.
            month: Every day of the calendar month containing today.
            year: Trailing 365 days ending today.
            streak_window: Trailing 30 days ending today.

        Returns:
            A new, fully populated StatsSnapshot.
        """
        today_key = today.isoformat()
        limit = settings[const.CONF_DAILY_INTAKE]
        nicotine_content = settings[const.CONF_NICOTINE_CONTENT]
        unit_cost = portion_cost(
            settings[const.CONF_COST_PER_CAN], settings[const.CONF_PORTIONS_PER_CAN]
        )

        today_record = next(
            (dict(record) for day, record in week if day == today_key),
            StatisticsEngine.synthesize_record(today_key, limit),
        )
        today_count = StatisticsEngine._count(today_record)  # type: ignore[arg-type]
        longest_pause = today_record.get(const.DATA_RECORD_LONGEST_PAUSE) or 0

        streak = StatisticsEngine.compute_streak(streak_window, today, limit)
        trend_counts = [
            StatisticsEngine._count(record)
            for _, record in streak_window[-const.TREND_WINDOW_DAYS :]
        ]
        trend = StatisticsEngine.compute_trend(trend_counts)

        week_rollup = StatisticsEngine.compute_rollup(week, settings)
        month_rollup = StatisticsEngine.compute_rollup(month, settings)
        year_rollup = StatisticsEngine.compute_rollup(year, settings)
        best_month, worst_month = StatisticsEngine.compute_month_extremes(year)

        daily_savings = StatisticsEngine.compute_savings(today_count, limit, unit_cost)
        max_day, max_amount = StatisticsEngine.compute_max_nicotine_day(
            month, nicotine_content
        )

        health: HealthStats = {
            "nicotine_today": today_count * nicotine_content,
            "nicotine_week": week_rollup["nicotine"],
            "nicotine_month": month_rollup["nicotine"],
            "max_nicotine_day": max_day,
            "max_nicotine_amount": max_amount,
            "reduction_days": week_rollup["days_under_limit"],
            "current_pause": StatisticsEngine.compute_current_pause(
                today_record,  # type: ignore[arg-type]
                now_ms,
            ),
            "longest_pause": longest_pause,
        }

        return StatsSnapshot(
            generated_for=today_key,
            daily=today_record,  # type: ignore[arg-type]
            weekly={
                **week_rollup,
                "daily_counts": {
                    day: StatisticsEngine._count(record) for day, record in week
                },
                "longest_streak": streak["longest"],
                "best_pause": longest_pause,
                "limit": limit,
            },
            monthly={**month_rollup, "trend": trend["direction"]},
            yearly={
                **year_rollup,
                "best_month": best_month,
                "worst_month": worst_month,
            },
            consumption={
                "daily": {
                    "count": today_count,
                    "saved": max(0, limit - today_count),
                    "cost": today_count * unit_cost,
                    "nicotine": today_count * nicotine_content,
                },
                "weekly": StatisticsEngine._consumption_scope(week, settings, unit_cost),
                "monthly": StatisticsEngine._consumption_scope(
                    month, settings, unit_cost
                ),
                "yearly": StatisticsEngine._consumption_scope(year, settings, unit_cost),
                "average_session_time": settings[const.CONF_SESSION_TIME],
                "average_wait_time": settings[const.CONF_WAIT_TIME],
            },
            progress={
                "current_streak": streak["current"],
                "longest_streak": streak["longest"],
                "trend": trend,
                "goal_progress": StatisticsEngine.compute_goal_progress(
                    settings[const.CONF_GOAL], limit, today_count
                ),
                "weekly_within_limit": week_rollup["days_under_limit"],
                "weekly_over_limit": week_rollup["days_over_limit"],
            },
            savings={
                "daily": daily_savings,
                "total": StatisticsEngine.compute_total_savings(year, unit_cost),
                "projections": StatisticsEngine.compute_projections(daily_savings),
            },
            health=health,
        )
