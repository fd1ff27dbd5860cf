# File: flow_helpers.py
"""Helpers for the Pouch Tracker config and options flows.

Builds the settings form and turns its input into validated settings.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.helpers import selector

from . import const
from .managers.settings_manager import SettingsManager, SettingsValidationError


def _number(
    low: float, high: float, step: float = 1, unit: str | None = None
) -> selector.NumberSelector:
    return selector.NumberSelector(
        selector.NumberSelectorConfig(
            min=low,
            max=high,
            step=step,
            unit_of_measurement=unit,
            mode=selector.NumberSelectorMode.BOX,
        )
    )


def _select(options: list[str], translation_key: str) -> selector.SelectSelector:
    return selector.SelectSelector(
        selector.SelectSelectorConfig(
            options=options,
            mode=selector.SelectSelectorMode.DROPDOWN,
            translation_key=translation_key,
        )
    )


def build_settings_schema(
    defaults: dict[str, Any] | None = None, include_backend: bool = False
) -> vol.Schema:
    """Build the settings form, pre-filled with `defaults`.

    Args:
        defaults: Current values; falls back to DEFAULT_SETTINGS.
        include_backend: Add the storage backend choice (initial setup only).
    """
    values = {**const.DEFAULT_SETTINGS, **(defaults or {})}
    ranges = const.SETTINGS_RANGES

    fields: dict[Any, Any] = {}
    if include_backend:
        fields[
            vol.Required(
                const.CONF_STORAGE_BACKEND, default=const.DEFAULT_STORAGE_BACKEND
            )
        ] = _select(const.STORAGE_BACKENDS, const.CONF_STORAGE_BACKEND)

    fields.update(
        {
            vol.Required(
                const.CONF_DAILY_INTAKE, default=values[const.CONF_DAILY_INTAKE]
            ): _number(*ranges[const.CONF_DAILY_INTAKE]),
            vol.Required(
                const.CONF_COST_PER_CAN, default=values[const.CONF_COST_PER_CAN]
            ): _number(*ranges[const.CONF_COST_PER_CAN], step=0.5),
            vol.Required(
                const.CONF_PORTIONS_PER_CAN, default=values[const.CONF_PORTIONS_PER_CAN]
            ): _number(*ranges[const.CONF_PORTIONS_PER_CAN]),
            vol.Required(
                const.CONF_SESSION_TIME, default=values[const.CONF_SESSION_TIME]
            ): _number(*ranges[const.CONF_SESSION_TIME], unit="min"),
            vol.Required(
                const.CONF_WAIT_TIME, default=values[const.CONF_WAIT_TIME]
            ): _number(*ranges[const.CONF_WAIT_TIME], unit="min"),
            vol.Required(
                const.CONF_NICOTINE_CONTENT, default=values[const.CONF_NICOTINE_CONTENT]
            ): _number(*ranges[const.CONF_NICOTINE_CONTENT], step=0.1, unit="mg"),
            vol.Required(const.CONF_GOAL, default=values[const.CONF_GOAL]): _select(
                const.GOALS, const.CONF_GOAL
            ),
            vol.Required(const.CONF_PACE, default=values[const.CONF_PACE]): _select(
                const.PACES, const.CONF_PACE
            ),
        }
    )

    # Reduce-goal targets are optional and only checked when goal is "reduce"
    for key, range_key, unit in (
        (const.CONF_TARGET_DAILY_INTAKE, const.CONF_DAILY_INTAKE, None),
        (const.CONF_TARGET_SESSION_TIME, const.CONF_SESSION_TIME, "min"),
        (const.CONF_TARGET_WAIT_TIME, const.CONF_WAIT_TIME, "min"),
    ):
        fields[
            vol.Optional(key, description={"suggested_value": values.get(key)})
        ] = _number(*ranges[range_key], unit=unit)

    return vol.Schema(fields)


def build_settings_data(user_input: dict[str, Any]) -> dict[str, Any]:
    """Extract and normalize the settings part of a form submission."""
    return dict(SettingsManager.normalize(SettingsManager.extract_settings(user_input)))


def validate_settings_inputs(user_input: dict[str, Any]) -> dict[str, str]:
    """Validate settings form input.

    Returns:
        Errors keyed by the offending field, empty when the input is valid.
    """
    settings = {**const.DEFAULT_SETTINGS, **build_settings_data(user_input)}
    try:
        SettingsManager.validate_settings(settings)
    except SettingsValidationError as err:
        const.LOGGER.debug("DEBUG: Settings form rejected: %s", err)
        return {err.field: const.TRANS_KEY_ERROR_INVALID_SETTINGS}
    return {}
