# File: options_flow.py
"""Options Flow for the Pouch Tracker integration.

Edits go through the running SettingsManager, so they are persisted to the
settings store and picked up by the scheduler without reloading the entry.
"""

from typing import Any, Optional

from homeassistant import config_entries

from . import const
from . import flow_helpers as fh
from .managers.settings_manager import SettingsManager, SettingsValidationError


class PouchTrackerOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for editing the user settings."""

    def __init__(self, _config_entry: config_entries.ConfigEntry):
        """Initialize the options flow."""

    def _get_settings_manager(self) -> SettingsManager:
        """Get the settings manager from hass.data."""
        return self.hass.data[const.DOMAIN][self.config_entry.entry_id][
            const.SETTINGS_MANAGER
        ]

    async def async_step_init(self, user_input: Optional[dict[str, Any]] = None):
        """Show and apply the settings form."""
        settings_manager = self._get_settings_manager()
        errors: dict[str, str] = {}

        if user_input is not None:
            errors = fh.validate_settings_inputs(user_input)
            if not errors:
                try:
                    await settings_manager.async_update(
                        **fh.build_settings_data(user_input)
                    )
                except SettingsValidationError as err:
                    errors = {err.field: const.TRANS_KEY_ERROR_INVALID_SETTINGS}
                else:
                    return self.async_create_entry(title="", data={})

        current = dict(settings_manager.settings or {})
        return self.async_show_form(
            step_id="init",
            data_schema=fh.build_settings_schema(user_input or current),
            errors=errors,
        )
