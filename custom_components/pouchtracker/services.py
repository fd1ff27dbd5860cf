# File: services.py
"""Defines custom services for the Pouch Tracker integration.

These services allow usage to be logged and settings edited from scripts,
automations and dashboards.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv

from . import const
from .coordinator import PouchTrackerCoordinator
from .helpers import get_first_entry_id
from .managers.session_manager import SessionManager
from .managers.settings_manager import SettingsManager

# --- Service Schemas ---
LOG_USAGE_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_IGNORE_WAIT, default=False): cv.boolean,
    }
)

END_SESSION_SCHEMA = vol.Schema({})
OVERRIDE_WAIT_SCHEMA = vol.Schema({})
REFRESH_STATS_SCHEMA = vol.Schema({})
RESET_ALL_DATA_SCHEMA = vol.Schema({})

UPDATE_SETTINGS_SCHEMA = vol.Schema(
    {
        vol.Optional(const.CONF_DAILY_INTAKE): vol.Coerce(int),
        vol.Optional(const.CONF_COST_PER_CAN): vol.Coerce(float),
        vol.Optional(const.CONF_PORTIONS_PER_CAN): vol.Coerce(int),
        vol.Optional(const.CONF_SESSION_TIME): vol.Coerce(int),
        vol.Optional(const.CONF_WAIT_TIME): vol.Coerce(int),
        vol.Optional(const.CONF_NICOTINE_CONTENT): vol.Coerce(float),
        vol.Optional(const.CONF_GOAL): vol.In(const.GOALS),
        vol.Optional(const.CONF_PACE): vol.In(const.PACES),
        vol.Optional(const.CONF_TARGET_DAILY_INTAKE): vol.Coerce(int),
        vol.Optional(const.CONF_TARGET_SESSION_TIME): vol.Coerce(int),
        vol.Optional(const.CONF_TARGET_WAIT_TIME): vol.Coerce(int),
    }
)

SERVICES = (
    const.SERVICE_LOG_USAGE,
    const.SERVICE_END_SESSION,
    const.SERVICE_OVERRIDE_WAIT,
    const.SERVICE_REFRESH_STATS,
    const.SERVICE_UPDATE_SETTINGS,
    const.SERVICE_RESET_ALL_DATA,
)


def _get_entry_data(hass: HomeAssistant, service: str) -> dict[str, Any]:
    """Return hass.data for the first loaded entry or raise."""
    entry_id = get_first_entry_id(hass)
    if not entry_id:
        const.LOGGER.warning("WARNING: %s: %s", service, const.MSG_NO_ENTRY_FOUND)
        raise HomeAssistantError(const.MSG_NO_ENTRY_FOUND)
    return hass.data[const.DOMAIN][entry_id]


def async_setup_services(hass: HomeAssistant) -> None:
    """Register Pouch Tracker services."""
    if hass.services.has_service(const.DOMAIN, const.SERVICE_LOG_USAGE):
        return

    async def handle_log_usage(call: ServiceCall) -> None:
        """Handle logging one portion."""
        data = _get_entry_data(hass, const.SERVICE_LOG_USAGE)
        session_manager: SessionManager = data[const.SESSION_MANAGER]
        record = await session_manager.async_log_usage(
            ignore_wait=call.data[const.FIELD_IGNORE_WAIT]
        )
        const.LOGGER.info(
            "INFO: Usage logged, today's count is %s", record[const.DATA_RECORD_COUNT]
        )

    async def handle_end_session(call: ServiceCall) -> None:
        """Handle ending the active session."""
        data = _get_entry_data(hass, const.SERVICE_END_SESSION)
        session_manager: SessionManager = data[const.SESSION_MANAGER]
        if not await session_manager.async_end_session():
            const.LOGGER.info("INFO: End session requested with no active session")

    async def handle_override_wait(call: ServiceCall) -> None:
        """Handle clearing the wait period."""
        data = _get_entry_data(hass, const.SERVICE_OVERRIDE_WAIT)
        session_manager: SessionManager = data[const.SESSION_MANAGER]
        await session_manager.async_override_wait()

    async def handle_refresh_stats(call: ServiceCall) -> None:
        """Handle a manual statistics refresh."""
        data = _get_entry_data(hass, const.SERVICE_REFRESH_STATS)
        coordinator: PouchTrackerCoordinator = data[const.COORDINATOR]
        await coordinator.refresh()

    async def handle_update_settings(call: ServiceCall) -> None:
        """Handle a settings edit."""
        data = _get_entry_data(hass, const.SERVICE_UPDATE_SETTINGS)
        settings_manager: SettingsManager = data[const.SETTINGS_MANAGER]
        await settings_manager.async_update(**call.data)

    async def handle_reset_all_data(call: ServiceCall) -> None:
        """Handle deleting every usage record."""
        data = _get_entry_data(hass, const.SERVICE_RESET_ALL_DATA)
        session_manager: SessionManager = data[const.SESSION_MANAGER]
        coordinator: PouchTrackerCoordinator = data[const.COORDINATOR]
        await session_manager.async_reset_all_data()
        await coordinator.refresh()

    # --- Register Services ---
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_LOG_USAGE,
        handle_log_usage,
        schema=LOG_USAGE_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_END_SESSION,
        handle_end_session,
        schema=END_SESSION_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_OVERRIDE_WAIT,
        handle_override_wait,
        schema=OVERRIDE_WAIT_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_REFRESH_STATS,
        handle_refresh_stats,
        schema=REFRESH_STATS_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_UPDATE_SETTINGS,
        handle_update_settings,
        schema=UPDATE_SETTINGS_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_RESET_ALL_DATA,
        handle_reset_all_data,
        schema=RESET_ALL_DATA_SCHEMA,
    )

    const.LOGGER.info("INFO: Pouch Tracker services have been registered successfully")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister Pouch Tracker services when unloading the integration."""
    for service in SERVICES:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: Pouch Tracker services have been unregistered")
