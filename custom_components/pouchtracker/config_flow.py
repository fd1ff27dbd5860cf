# File: config_flow.py
"""Config flow for the Pouch Tracker integration.

A single setup step collects the initial settings and the storage backend.
The backend is fixed for the life of the entry; settings stay editable
through the options flow and the update_settings service.
"""

from typing import Any, Optional

from homeassistant import config_entries
from homeassistant.core import callback

from . import const
from . import flow_helpers as fh
from .options_flow import PouchTrackerOptionsFlowHandler


class PouchTrackerConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Pouch Tracker."""

    VERSION = 1

    async def async_step_user(self, user_input: Optional[dict[str, Any]] = None):
        """Collect the initial settings."""
        if any(self._async_current_entries()):
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        errors: dict[str, str] = {}
        if user_input is not None:
            errors = fh.validate_settings_inputs(user_input)
            if not errors:
                data = {
                    const.CONF_STORAGE_BACKEND: user_input.get(
                        const.CONF_STORAGE_BACKEND, const.DEFAULT_STORAGE_BACKEND
                    ),
                    **fh.build_settings_data(user_input),
                }
                const.LOGGER.info(
                    "INFO: Creating Pouch Tracker entry with %s storage",
                    data[const.CONF_STORAGE_BACKEND],
                )
                return self.async_create_entry(
                    title=const.POUCHTRACKER_TITLE, data=data
                )

        return self.async_show_form(
            step_id="user",
            data_schema=fh.build_settings_schema(user_input, include_backend=True),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Return the Options Flow."""
        return PouchTrackerOptionsFlowHandler(config_entry)
