"""Shared Home Assistant helpers for Pouch Tracker."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo

from . import const

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant


def get_first_entry_id(hass: HomeAssistant) -> str | None:
    """Retrieve the first loaded Pouch Tracker config entry ID."""
    domain_entries = hass.data.get(const.DOMAIN)
    if not domain_entries:
        return None
    return next(iter(domain_entries.keys()), None)


def create_device_info(entry: ConfigEntry) -> DeviceInfo:
    """Return the single service device that groups an instance's entities."""
    return DeviceInfo(
        identifiers={(const.DOMAIN, entry.entry_id)},
        name=entry.title or const.POUCHTRACKER_TITLE,
        manufacturer=const.POUCHTRACKER_TITLE,
        entry_type=DeviceEntryType.SERVICE,
    )


def get_event_signal(entry_id: str, suffix: str) -> str:
    """Build instance-scoped event signal name for dispatcher.

    Each config entry gets its own signal namespace using its entry_id.

    Format: 'pouchtracker_{entry_id}_{suffix}'

    Args:
        entry_id: ConfigEntry.entry_id
        suffix: Signal suffix constant from const.py (e.g., SIGNAL_SUFFIX_SETTINGS_UPDATED)

    Returns:
        Fully qualified signal name scoped to this integration instance

    Example:
        >>> get_event_signal("abc123", const.SIGNAL_SUFFIX_RECORD_UPDATED)
        'pouchtracker_abc123_record_updated'
    """
    return f"{const.DOMAIN}_{entry_id}_{suffix}"
