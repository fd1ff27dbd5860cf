"""Statistics Manager - Async orchestration of the aggregation pass.

This manager owns every read the aggregation pass makes:
- Range loading with the daily key → week bucket → synthesized fallback chain
- Concurrent loading of the week, month, year and streak windows
- Handing the loaded ranges to ``StatisticsEngine`` for the pure math

It also owns the one write the statistics side is allowed to make: the
throttled longest-pause maintenance, which runs as its own explicit operation
and never as part of snapshot assembly.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import TYPE_CHECKING

from .. import const
from ..engines.statistics_engine import StatisticsEngine
from ..store import StorageReadError
from ..utils import dt_utils
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from ..store import RecordStore
    from ..type_defs import (
        DayEntry,
        StatsSnapshot,
        StreakResult,
        TrendResult,
        UserSettings,
        WeekBucket,
        WeekKey,
    )
    from .settings_manager import SettingsManager


__all__ = ["StatisticsManager"]


class StatisticsManager(BaseManager):
    """Manager for loading ranges and assembling statistics snapshots.

    Responsibilities:
    - Load any inclusive date range without gaps, regardless of storage sparsity
    - Assemble a complete StatsSnapshot without writing to the store
    - Commit a longer pause back to today's record at most once per second

    NOT responsible for:
    - Deciding when a pass runs (PouchTrackerCoordinator)
    - Mutating usage counts or sessions (SessionManager)
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        record_store: RecordStore,
        settings_manager: SettingsManager,
    ) -> None:
        """Initialize the StatisticsManager.

        Args:
            hass: Home Assistant instance
            config_entry: Config entry that owns this instance
            record_store: Daily record store backend
            settings_manager: Source of the current settings
        """
        super().__init__(hass, config_entry)
        self._store = record_store
        self._settings_manager = settings_manager
        self._last_pause_write_ms: int | None = None

    async def async_setup(self) -> None:
        """Nothing to subscribe to; the coordinator drives every pass."""
        const.LOGGER.debug("DEBUG: StatisticsManager ready for %s", self.entry_id)

    # ------------------------------------------------------------------
    # Range loading
    # ------------------------------------------------------------------

    async def async_load_range(
        self,
        start: date,
        end: date,
        limit: int | None = None,
        known_weeks: set[WeekKey] | None = None,
    ) -> list[DayEntry]:
        """Return one (date, record) pair per day in [start, end], in order.

        Lookup order per day: the daily key, then the owning week bucket when
        its week is known, then a synthesized zero record. Read errors are
        logged and the affected days are synthesized.

        Args:
            start: First day (inclusive).
            end: Last day (inclusive).
            limit: Limit stamped on synthesized days. Defaults to the current
                daily-intake setting.
            known_weeks: Week keys with buckets. Listed from the store when
                not given.
        """
        if limit is None:
            settings = await self._settings_manager.async_get()
            limit = settings[const.CONF_DAILY_INTAKE]

        if known_weeks is None:
            known_weeks = await self._async_known_weeks()

        days = list(dt_utils.iter_days(start, end))
        day_keys = [day.isoformat() for day in days]
        try:
            stored = await self._store.async_get_many(day_keys)
        except StorageReadError as err:
            const.LOGGER.warning(
                "WARNING: Failed to read records for %s..%s, using empty days: %s",
                start,
                end,
                err,
            )
            stored = {}

        buckets: dict[WeekKey, WeekBucket | None] = {}
        entries: list[DayEntry] = []

        for day, day_key in zip(days, day_keys, strict=True):
            record = stored.get(day_key)
            if record is None:
                week = dt_utils.week_key(day)
                if week in known_weeks:
                    if week not in buckets:
                        buckets[week] = await self._async_get_bucket(week)
                    entry = (buckets[week] or {}).get(day_key)
                    if entry is not None:
                        record = StatisticsEngine.record_from_bucket(day_key, entry)

            if record is None:
                record = StatisticsEngine.synthesize_record(day_key, limit)

            entries.append((day_key, record))

        return entries

    async def _async_known_weeks(self) -> set[WeekKey]:
        try:
            return await self._store.async_list_known_week_keys()
        except StorageReadError as err:
            const.LOGGER.warning(
                "WARNING: Could not list known weeks, skipping bucket fallback: %s",
                err,
            )
            return set()

    async def _async_get_bucket(self, week: WeekKey) -> WeekBucket | None:
        try:
            return await self._store.async_get_week_bucket(week)
        except StorageReadError as err:
            const.LOGGER.warning(
                "WARNING: Failed to read week bucket %s: %s", week, err
            )
            return None

    # ------------------------------------------------------------------
    # Standalone statistics
    # ------------------------------------------------------------------

    async def async_compute_streak(
        self, as_of: date | None = None, limit: int | None = None
    ) -> StreakResult:
        """Compute streaks over the trailing 30 days ending at `as_of`."""
        as_of = as_of or dt_utils.dt_today_local()
        if limit is None:
            settings = await self._settings_manager.async_get()
            limit = settings[const.CONF_DAILY_INTAKE]
        start, end = dt_utils.trailing_range(as_of, const.STREAK_WINDOW_DAYS)
        days = await self.async_load_range(start, end, limit)
        return StatisticsEngine.compute_streak(days, as_of, limit)

    async def async_compute_trend(
        self, window_days: int = const.TREND_WINDOW_DAYS, as_of: date | None = None
    ) -> TrendResult:
        """Compute the trend over the trailing `window_days` ending today."""
        as_of = as_of or dt_utils.dt_today_local()
        start, end = dt_utils.trailing_range(as_of, window_days)
        days = await self.async_load_range(start, end)
        return StatisticsEngine.compute_trend(
            [record[const.DATA_RECORD_COUNT] for _, record in days]
        )

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    async def async_assemble_snapshot(
        self, settings: UserSettings | None = None, now: datetime | None = None
    ) -> StatsSnapshot:
        """Build a complete snapshot for the local date of `now`.

        The week, month, year and streak windows load concurrently. Nothing
        is written to the store.

        Raises:
            MissingSettingsError: If settings are not available.
        """
        if settings is None:
            settings = await self._settings_manager.async_get()
        now = now or dt_utils.dt_now_local()
        today = dt_utils.as_local(now).date()
        limit = settings[const.CONF_DAILY_INTAKE]

        year_start, year_end = dt_utils.trailing_range(today, const.YEAR_WINDOW_DAYS)
        streak_start, streak_end = dt_utils.trailing_range(
            today, const.STREAK_WINDOW_DAYS
        )
        known_weeks = await self._async_known_weeks()

        week, month, year, streak_window = await asyncio.gather(
            self.async_load_range(
                dt_utils.week_start(today),
                dt_utils.week_end(today),
                limit,
                known_weeks,
            ),
            self.async_load_range(
                dt_utils.month_start(today),
                dt_utils.month_end(today),
                limit,
                known_weeks,
            ),
            self.async_load_range(year_start, year_end, limit, known_weeks),
            self.async_load_range(streak_start, streak_end, limit, known_weeks),
        )

        return StatisticsEngine.build_snapshot(
            settings,
            today,
            dt_utils.dt_to_epoch_ms(now),
            week=week,
            month=month,
            year=year,
            streak_window=streak_window,
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def async_commit_longest_pause(
        self, settings: UserSettings, now: datetime | None = None
    ) -> bool:
        """Write the current pause to today's record if it beats the stored one.

        Writes at most once per second.

        Returns:
            True when a write happened.
        """
        now = now or dt_utils.dt_now_local()
        now_ms = dt_utils.dt_to_epoch_ms(now)
        if (
            self._last_pause_write_ms is not None
            and now_ms - self._last_pause_write_ms
            < const.PAUSE_WRITE_THROTTLE_SECONDS * 1000
        ):
            return False

        today_key = dt_utils.as_local(now).date().isoformat()
        record = await self._store.async_get(today_key)
        if record is None:
            return False

        current_pause = StatisticsEngine.compute_current_pause(record, now_ms)
        if current_pause <= (record.get(const.DATA_RECORD_LONGEST_PAUSE) or 0):
            return False

        record[const.DATA_RECORD_LONGEST_PAUSE] = current_pause
        record[const.DATA_RECORD_LIMIT] = settings[const.CONF_DAILY_INTAKE]
        await self._store.async_set(today_key, record)
        self._last_pause_write_ms = now_ms
        const.LOGGER.debug(
            "DEBUG: Longest pause for %s raised to %s seconds", today_key, current_pause
        )
        return True
