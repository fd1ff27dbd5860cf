"""Session Manager - User actions that mutate today's record.

A day's record moves between three session states:

- idle: no session running, no wait period pending
- active: ``current_session_start`` is set
- waiting: ``next_allowed_at`` is set and still in the future

At most one of active/waiting holds at a time. Every action writes the whole
record back, stamps ``limit`` from the current settings and emits
``SIGNAL_SUFFIX_RECORD_UPDATED`` so the coordinator refreshes.

Session state does not stop at midnight. The first read of a new day with no
record yet moves the previous day's session fields onto a fresh record for
today, so a running session, a pending wait and the pause since the last
session all continue.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.event import async_track_time_interval

from .. import const
from ..engines.statistics_engine import StatisticsEngine
from ..utils import dt_utils
from .base_manager import BaseManager
from .settings_manager import MissingSettingsError, SettingsManager

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from ..store import RecordStore
    from ..type_defs import DailyRecord, ISODate, UserSettings


__all__ = ["SessionBlockedError", "SessionManager"]


class SessionBlockedError(HomeAssistantError):
    """Raised when usage is logged while a session or wait period is active."""


class SessionManager(BaseManager):
    """Manager for logging usage and tracking session/wait timers."""

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        record_store: RecordStore,
        settings_manager: SettingsManager,
    ) -> None:
        """Initialize the SessionManager.

        Args:
            hass: Home Assistant instance
            config_entry: Config entry that owns this instance
            record_store: Daily record store backend
            settings_manager: Source of session/wait times and the daily limit
        """
        super().__init__(hass, config_entry)
        self._store = record_store
        self._settings_manager = settings_manager

    async def async_setup(self) -> None:
        """Start the timer that completes sessions whose time has elapsed."""
        self.config_entry.async_on_unload(
            async_track_time_interval(
                self.hass,
                self._async_check_session,
                const.SESSION_CHECK_INTERVAL,
                cancel_on_shutdown=True,
            )
        )

    async def _async_check_session(self, now: datetime) -> None:
        if not await self.async_complete_expired_session(now):
            await self.async_clear_expired_wait(now)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _async_load_today(
        self, now: datetime
    ) -> tuple[ISODate, DailyRecord, UserSettings]:
        settings = await self._settings_manager.async_get()
        today_key, record = await self._async_get_today(now, settings)
        if record is None:
            record = StatisticsEngine.synthesize_record(
                today_key, settings[const.CONF_DAILY_INTAKE]
            )
        return today_key, record, settings

    async def _async_get_today(
        self, now: datetime, settings: UserSettings
    ) -> tuple[ISODate, DailyRecord | None]:
        """Return today's stored record, carrying session state over midnight."""
        today = dt_utils.as_local(now).date()
        today_key = today.isoformat()
        record = await self._store.async_get(today_key)
        if record is not None:
            return today_key, record

        previous_key = (today - timedelta(days=1)).isoformat()
        previous = await self._store.async_get(previous_key)
        if previous is None or all(
            previous.get(field) is None for field in const.SESSION_STATE_FIELDS
        ):
            return today_key, None

        record = StatisticsEngine.synthesize_record(
            today_key, settings[const.CONF_DAILY_INTAKE]
        )
        for field in const.SESSION_STATE_FIELDS:
            record[field] = previous.get(field)
            previous[field] = None
        await self._store.async_set(previous_key, previous)
        await self._async_write(today_key, record, settings)
        const.LOGGER.debug(
            "DEBUG: Carried session state from %s to %s", previous_key, today_key
        )
        return today_key, record

    async def _async_write(
        self, day: ISODate, record: DailyRecord, settings: UserSettings
    ) -> DailyRecord:
        record[const.DATA_RECORD_LIMIT] = settings[const.CONF_DAILY_INTAKE]
        await self._store.async_set(day, record)
        self.emit(const.SIGNAL_SUFFIX_RECORD_UPDATED, date=day)
        return record

    @staticmethod
    def _end_session(
        record: DailyRecord, settings: UserSettings, now_ms: int
    ) -> None:
        record[const.DATA_RECORD_CURRENT_SESSION_START] = None
        record[const.DATA_RECORD_LAST_SESSION_END] = now_ms
        record[const.DATA_RECORD_NEXT_ALLOWED_AT] = now_ms + dt_utils.minutes_to_ms(
            settings[const.CONF_WAIT_TIME]
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def async_log_usage(
        self, *, ignore_wait: bool = False, now: datetime | None = None
    ) -> DailyRecord:
        """Log one portion and start a session.

        The pause since the previous session end is folded into
        ``longest_pause`` before the session starts.

        Args:
            ignore_wait: Log even while a session or wait period is active.
            now: Override for the current time.

        Raises:
            SessionBlockedError: If a session or wait period is active and
                ignore_wait is False.
        """
        now = now or dt_utils.dt_now_local()
        now_ms = dt_utils.dt_to_epoch_ms(now)
        day, record, settings = await self._async_load_today(now)

        if not ignore_wait:
            if record.get(const.DATA_RECORD_CURRENT_SESSION_START) is not None:
                raise SessionBlockedError("A session is already active")
            next_allowed = record.get(const.DATA_RECORD_NEXT_ALLOWED_AT)
            if next_allowed is not None and now_ms < next_allowed:
                raise SessionBlockedError(
                    "Wait period active until "
                    f"{dt_utils.dt_from_epoch_ms(next_allowed).isoformat()}"
                )

        pause = StatisticsEngine.compute_current_pause(record, now_ms)
        record[const.DATA_RECORD_LONGEST_PAUSE] = max(
            record.get(const.DATA_RECORD_LONGEST_PAUSE) or 0, pause
        )
        record[const.DATA_RECORD_COUNT] = (
            record.get(const.DATA_RECORD_COUNT) or const.DEFAULT_ZERO
        ) + 1
        record[const.DATA_RECORD_CURRENT_SESSION_START] = now_ms
        record[const.DATA_RECORD_NEXT_ALLOWED_AT] = None
        record[const.DATA_RECORD_LAST_SESSION_END] = None

        const.LOGGER.debug(
            "DEBUG: Logged usage for %s, count now %s",
            day,
            record[const.DATA_RECORD_COUNT],
        )
        return await self._async_write(day, record, settings)

    async def async_end_session(self, now: datetime | None = None) -> bool:
        """End the active session and start the wait period.

        Returns:
            False when no session was active.
        """
        now = now or dt_utils.dt_now_local()
        day, record, settings = await self._async_load_today(now)
        if record.get(const.DATA_RECORD_CURRENT_SESSION_START) is None:
            const.LOGGER.debug("DEBUG: End session ignored, no active session")
            return False

        self._end_session(record, settings, dt_utils.dt_to_epoch_ms(now))
        await self._async_write(day, record, settings)
        return True

    async def async_override_wait(self, now: datetime | None = None) -> DailyRecord:
        """Clear any session and wait period so usage can be logged right away."""
        now = now or dt_utils.dt_now_local()
        day, record, settings = await self._async_load_today(now)
        record[const.DATA_RECORD_CURRENT_SESSION_START] = None
        record[const.DATA_RECORD_LAST_SESSION_END] = None
        record[const.DATA_RECORD_NEXT_ALLOWED_AT] = None
        const.LOGGER.info("INFO: Wait period overridden for %s", day)
        return await self._async_write(day, record, settings)

    async def async_complete_expired_session(
        self, now: datetime | None = None
    ) -> bool:
        """End the active session once the configured session time has elapsed.

        Returns:
            True when a session was completed.
        """
        now = now or dt_utils.dt_now_local()
        now_ms = dt_utils.dt_to_epoch_ms(now)
        try:
            settings = await self._settings_manager.async_get()
        except MissingSettingsError:
            return False

        today_key, record = await self._async_get_today(now, settings)
        if record is None:
            return False

        started = record.get(const.DATA_RECORD_CURRENT_SESSION_START)
        if started is None:
            return False
        if now_ms - started < dt_utils.minutes_to_ms(settings[const.CONF_SESSION_TIME]):
            return False

        self._end_session(record, settings, now_ms)
        await self._async_write(today_key, record, settings)
        const.LOGGER.debug("DEBUG: Session for %s completed automatically", today_key)
        return True

    async def async_clear_expired_wait(self, now: datetime | None = None) -> bool:
        """Clear ``next_allowed_at`` once the wait period has passed.

        ``last_session_end`` is kept so the current pause keeps counting.

        Returns:
            True when a wait period was cleared.
        """
        now = now or dt_utils.dt_now_local()
        try:
            settings = await self._settings_manager.async_get()
        except MissingSettingsError:
            return False

        today_key, record = await self._async_get_today(now, settings)
        if record is None:
            return False

        next_allowed = record.get(const.DATA_RECORD_NEXT_ALLOWED_AT)
        if next_allowed is None or dt_utils.dt_to_epoch_ms(now) < next_allowed:
            return False

        record[const.DATA_RECORD_NEXT_ALLOWED_AT] = None
        await self._async_write(today_key, record, settings)
        const.LOGGER.debug("DEBUG: Wait period for %s is over", today_key)
        return True

    async def async_reset_all_data(self) -> None:
        """Delete every usage record. Settings are kept."""
        await self._store.async_clear()
        self.emit(const.SIGNAL_SUFFIX_RECORD_UPDATED, date=None)
        const.LOGGER.warning("WARNING: All usage records have been reset")
