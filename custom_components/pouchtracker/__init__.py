# File: __init__.py
"""Initialization file for the Pouch Tracker integration.

Handles setting up the integration, including loading configuration entries,
initializing record and settings storage, and starting the refresh scheduler.

Key Features:
- Config entry setup and unload support.
- Storage backend selection (key-value store or SQLite).
- Coordinator initialization and scheduler start-up.
"""

from __future__ import annotations

from zoneinfo import ZoneInfo

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from . import const
from .coordinator import PouchTrackerCoordinator
from .managers import SessionManager, SettingsManager, StatisticsManager
from .services import async_setup_services, async_unload_services
from .store import async_create_record_store
from .utils import dt_utils


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Starting setup for Pouch Tracker entry: %s", entry.entry_id)

    # Day boundaries follow the Home Assistant time zone
    dt_utils.set_default_timezone(ZoneInfo(hass.config.time_zone))

    record_store = await async_create_record_store(
        hass,
        entry.data.get(const.CONF_STORAGE_BACKEND, const.DEFAULT_STORAGE_BACKEND),
    )

    settings_manager = SettingsManager(hass, entry)
    await settings_manager.async_setup()

    statistics_manager = StatisticsManager(
        hass, entry, record_store, settings_manager
    )
    await statistics_manager.async_setup()

    session_manager = SessionManager(hass, entry, record_store, settings_manager)
    await session_manager.async_setup()

    coordinator = PouchTrackerCoordinator(
        hass, entry, settings_manager, statistics_manager
    )

    try:
        # Perform the first pass so entities start with a snapshot.
        await coordinator.async_config_entry_first_refresh()
    except ConfigEntryNotReady as e:
        const.LOGGER.error("ERROR: Failed to load initial statistics: %s", e)
        raise

    coordinator.async_start()

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.RECORD_STORE: record_store,
        const.SETTINGS_MANAGER: settings_manager,
        const.SESSION_MANAGER: session_manager,
    }

    async_setup_services(hass)

    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)

    const.LOGGER.info("INFO: Pouch Tracker setup complete for entry: %s", entry.entry_id)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading Pouch Tracker entry: %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)

    if unload_ok:
        hass.data[const.DOMAIN].pop(entry.entry_id)
        if not hass.data[const.DOMAIN]:
            await async_unload_services(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry by deleting its stored data."""
    const.LOGGER.info("INFO: Removing Pouch Tracker entry: %s", entry.entry_id)

    record_store = await async_create_record_store(
        hass,
        entry.data.get(const.CONF_STORAGE_BACKEND, const.DEFAULT_STORAGE_BACKEND),
    )
    await record_store.async_remove()
    await SettingsManager(hass, entry).async_delete_storage()

    const.LOGGER.info("INFO: Pouch Tracker entry data cleared: %s", entry.entry_id)
