"""Diagnostics support for Pouch Tracker integration.

Exports the current settings, scheduler state and the latest snapshot for
troubleshooting. Usage records are summarized rather than dumped.
"""

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import PouchTrackerCoordinator
from .store import RecordStore


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    data = hass.data[const.DOMAIN][entry.entry_id]
    coordinator: PouchTrackerCoordinator = data[const.COORDINATOR]
    record_store: RecordStore = data[const.RECORD_STORE]

    snapshot = coordinator.data
    return {
        const.CONF_STORAGE_BACKEND: record_store.backend,
        "known_weeks": sorted(await record_store.async_list_known_week_keys()),
        const.DATA_SETTINGS: coordinator.settings_manager.settings,
        "scheduler": {
            "is_loading": coordinator.is_loading,
            "error": coordinator.error,
            "last_update_success": coordinator.last_update_success,
        },
        "snapshot": snapshot.as_dict() if snapshot is not None else None,
    }
