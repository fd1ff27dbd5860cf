"""Base manager class for Pouch Tracker managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.dispatcher import async_dispatcher_send

from .. import const
from ..helpers import get_event_signal

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant


class BaseManager(ABC):
    """Base class for all Pouch Tracker managers with scoped event support.

    Provides:
    - Instance-scoped event emitting (emit)

    Subclasses must implement:
    - async_setup(): Load state, subscribe to events
    """

    def __init__(self, hass: HomeAssistant, config_entry: ConfigEntry) -> None:
        """Initialize manager.

        Args:
            hass: Home Assistant instance
            config_entry: Config entry that owns this integration instance
        """
        self.hass = hass
        self.config_entry = config_entry
        self.entry_id = config_entry.entry_id

    def emit(self, suffix: str, **payload: Any) -> None:
        """Emit instance-scoped event to other managers and the coordinator.

        Args:
            suffix: Signal suffix constant (e.g., const.SIGNAL_SUFFIX_RECORD_UPDATED)
            **payload: Event data dict passed to listeners

        Example:
            self.emit(const.SIGNAL_SUFFIX_RECORD_UPDATED, date="2026-01-18")
        """
        signal = get_event_signal(self.entry_id, suffix)
        const.LOGGER.debug(
            "DEBUG: Emitting event '%s' for instance %s with payload keys: %s",
            suffix,
            self.entry_id,
            list(payload.keys()),
        )
        # Pass payload as single dict argument (dispatcher only supports *args)
        async_dispatcher_send(self.hass, signal, payload)

    @abstractmethod
    async def async_setup(self) -> None:
        """Set up the manager (load state, subscribe to events).

        Called once during config entry setup, before the first refresh.
        """
