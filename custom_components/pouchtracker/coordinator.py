# File: coordinator.py
"""Coordinator for the Pouch Tracker integration.

Decides when the statistics snapshot is rebuilt and publishes it to entities.

Triggers:
- a 500 ms poll that forces a full reload when the local date rolls over and
  otherwise requests a lightweight refresh
- settings changes, which force a full reload with freshly read settings
- record updates from the session manager
- manual ``refresh()`` calls (the refresh_stats service)

Only one aggregation pass runs at a time. Requests that arrive during a pass
collapse into a single follow-up pass scheduled shortly after it finishes.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.event import async_call_later, async_track_time_interval
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from . import const
from .helpers import get_event_signal
from .managers.settings_manager import MissingSettingsError
from .store import StorageReadError
from .type_defs import StatsSnapshot
from .utils import dt_utils

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .managers.settings_manager import SettingsManager
    from .managers.statistics_manager import StatisticsManager


class PouchTrackerCoordinator(DataUpdateCoordinator[StatsSnapshot]):
    """Refresh scheduler and snapshot publisher for Pouch Tracker.

    The built-in coordinator polling is disabled (``update_interval=None``);
    every pass is started by this class's own triggers. A failed pass keeps
    the previous snapshot in ``data`` and exposes the reason as ``error``.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        settings_manager: SettingsManager,
        statistics_manager: StatisticsManager,
    ) -> None:
        """Initialize the PouchTrackerCoordinator."""
        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=None,
        )
        self.settings_manager = settings_manager
        self.statistics_manager = statistics_manager

        self._running = False
        self._pending = False
        self._pending_force = False
        self._force_current = False
        self._pass_completed = False
        self._last_completed: float | None = None
        self._last_date: date | None = None
        self._error: str | None = None

        self._rerun_unsub: CALLBACK_TYPE | None = None
        self._unsubs: list[CALLBACK_TYPE] = []

    # -------------------------------------------------------------------------------------
    # Consumer-facing state
    # -------------------------------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        """Return True until the first pass has finished (successfully or not)."""
        return not self._pass_completed

    @property
    def error(self) -> str | None:
        """Return the error from the most recent pass, or None if it succeeded."""
        return self._error

    @property
    def pass_in_flight(self) -> bool:
        """Return True while an aggregation pass is running."""
        return self._running

    async def refresh(self) -> None:
        """Force a full reload (manual trigger)."""
        await self.async_request_stats_refresh(force=True)

    # -------------------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------------------

    @callback
    def async_start(self) -> None:
        """Register the poll timer and subscribe to change notifications."""
        if self._unsubs:
            return

        self._unsubs.append(
            async_track_time_interval(
                self.hass,
                self._async_handle_poll,
                const.POLL_INTERVAL,
                cancel_on_shutdown=True,
            )
        )
        self._unsubs.append(
            self.settings_manager.subscribe(self._handle_settings_changed)
        )
        self._unsubs.append(
            async_dispatcher_connect(
                self.hass,
                get_event_signal(
                    self.config_entry.entry_id, const.SIGNAL_SUFFIX_RECORD_UPDATED
                ),
                self._handle_record_updated,
            )
        )
        self.config_entry.async_on_unload(self.async_stop)
        const.LOGGER.debug("DEBUG: Refresh scheduler started")

    @callback
    def async_stop(self) -> None:
        """Cancel the poll timer, any pending follow-up and all subscriptions."""
        while self._unsubs:
            self._unsubs.pop()()
        if self._rerun_unsub is not None:
            self._rerun_unsub()
            self._rerun_unsub = None
        self._pending = False
        self._pending_force = False
        const.LOGGER.debug("DEBUG: Refresh scheduler stopped")

    # -------------------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------------------

    async def _async_handle_poll(self, now: datetime) -> None:
        today = dt_utils.dt_today_local()
        rolled_over = self._last_date is not None and today != self._last_date
        if rolled_over:
            const.LOGGER.info(
                "INFO: Local date changed from %s to %s, reloading statistics",
                self._last_date,
                today,
            )
        await self.async_request_stats_refresh(force=rolled_over)

    @callback
    def _handle_settings_changed(self) -> None:
        self.hass.async_create_task(self.async_request_stats_refresh(force=True))

    @callback
    def _handle_record_updated(self, payload: dict[str, Any]) -> None:
        self.hass.async_create_task(self.async_request_stats_refresh())

    # -------------------------------------------------------------------------------------
    # Single flight and coalescing
    # -------------------------------------------------------------------------------------

    async def async_request_stats_refresh(self, *, force: bool = False) -> None:
        """Run a pass now, or fold the request into the single follow-up slot.

        Args:
            force: Drop cached settings and reload everything.
        """
        if self._running:
            self._pending = True
            self._pending_force = self._pending_force or force
            return

        if self._rerun_unsub is not None:
            self._pending_force = self._pending_force or force
            return

        if (
            not force
            and self._last_completed is not None
            and self.hass.loop.time() - self._last_completed
            < const.REFRESH_COOLDOWN_SECONDS
        ):
            self._schedule_rerun()
            return

        await self._async_run_pass(force)

    async def _async_run_pass(self, force: bool) -> None:
        self._running = True
        self._force_current = force
        try:
            await self.async_refresh()
        finally:
            self._running = False
            self._force_current = False

        if self._pending:
            self._pending = False
            self._schedule_rerun()

    @callback
    def _schedule_rerun(self) -> None:
        if self._rerun_unsub is None:
            self._rerun_unsub = async_call_later(
                self.hass, const.RERUN_DELAY_SECONDS, self._async_handle_rerun
            )

    async def _async_handle_rerun(self, _now: datetime) -> None:
        self._rerun_unsub = None
        if self._running:
            self._pending = True
            return
        force = self._pending_force
        self._pending_force = False
        await self._async_run_pass(force)

    # -------------------------------------------------------------------------------------
    # Aggregation pass
    # -------------------------------------------------------------------------------------

    async def _async_update_data(self) -> StatsSnapshot:
        """Assemble a fresh snapshot.

        Raises:
            UpdateFailed: When settings are missing or the pass fails. The
                previous snapshot stays published.
        """
        now = dt_utils.dt_now_local()
        try:
            if self._force_current:
                self.settings_manager.invalidate()
            settings = await self.settings_manager.async_get()
            snapshot = await self.statistics_manager.async_assemble_snapshot(
                settings, now
            )
        except MissingSettingsError as err:
            self._error = const.ERROR_NO_SETTINGS
            raise UpdateFailed(const.ERROR_NO_SETTINGS) from err
        except Exception as err:  # pylint: disable=broad-exception-caught
            self._error = str(err) or const.ERROR_STATS_FAILED
            raise UpdateFailed(f"{const.ERROR_STATS_FAILED}: {err}") from err
        finally:
            self._pass_completed = True

        self._error = None
        self._last_completed = self.hass.loop.time()
        self._last_date = dt_utils.dt_parse_date(snapshot.generated_for)

        try:
            await self.statistics_manager.async_commit_longest_pause(settings, now)
        except StorageReadError as err:
            const.LOGGER.warning("WARNING: Could not update longest pause: %s", err)

        return snapshot
