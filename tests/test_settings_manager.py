"""Tests for SettingsManager - persistence, validation and change notification."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.pouchtracker import const
from custom_components.pouchtracker.helpers import get_event_signal
from custom_components.pouchtracker.managers.settings_manager import (
    MissingSettingsError,
    SettingsManager,
    SettingsValidationError,
)


@pytest.fixture
async def settings_manager(
    hass: HomeAssistant, mock_config_entry: MockConfigEntry
) -> SettingsManager:
    """Return a SettingsManager seeded from the mock config entry."""
    mock_config_entry.add_to_hass(hass)
    manager = SettingsManager(hass, mock_config_entry)
    await manager.async_setup()
    return manager


# ============================================================================
# Loading
# ============================================================================


async def test_setup_seeds_from_entry_and_saves(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    settings_manager: SettingsManager,
    settings: dict[str, Any],
) -> None:
    """First setup copies the entry's settings into the settings store."""
    current = await settings_manager.async_get()

    assert current == settings
    assert hass_storage[const.STORAGE_KEY_SETTINGS]["data"] == settings


async def test_setup_prefers_stored_settings(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    mock_config_entry: MockConfigEntry,
    settings: dict[str, Any],
) -> None:
    """Stored settings win over the entry data they were seeded from."""
    stored = {**settings, const.CONF_DAILY_INTAKE: 6}
    hass_storage[const.STORAGE_KEY_SETTINGS] = {
        "version": const.STORAGE_VERSION,
        "minor_version": 1,
        "key": const.STORAGE_KEY_SETTINGS,
        "data": stored,
    }
    mock_config_entry.add_to_hass(hass)

    manager = SettingsManager(hass, mock_config_entry)
    await manager.async_setup()

    assert (await manager.async_get())[const.CONF_DAILY_INTAKE] == 6


async def test_missing_settings_raise(hass: HomeAssistant) -> None:
    """Without stored settings or a seed, reads raise MissingSettingsError."""
    entry = MockConfigEntry(domain=const.DOMAIN, data={}, entry_id="empty_entry")
    entry.add_to_hass(hass)
    manager = SettingsManager(hass, entry)
    await manager.async_setup()

    assert manager.settings is None
    with pytest.raises(MissingSettingsError) as excinfo:
        await manager.async_get()
    assert str(excinfo.value) == const.ERROR_NO_SETTINGS


async def test_invalidate_rereads_storage(
    hass_storage: dict[str, Any], settings_manager: SettingsManager
) -> None:
    """After invalidate, the next read comes from storage."""
    hass_storage[const.STORAGE_KEY_SETTINGS]["data"][const.CONF_WAIT_TIME] = 90

    settings_manager.invalidate()

    assert settings_manager.settings is None
    assert (await settings_manager.async_get())[const.CONF_WAIT_TIME] == 90


async def test_invalidate_keeps_unsaved_settings(
    settings_manager: SettingsManager,
) -> None:
    """An edit whose save failed survives invalidate until a save succeeds."""
    with patch.object(
        settings_manager._store,  # pylint: disable=protected-access
        "async_save",
        AsyncMock(side_effect=OSError("disk full")),
    ):
        await settings_manager.async_update(wait_time=90)

    settings_manager.invalidate()
    assert (await settings_manager.async_get())[const.CONF_WAIT_TIME] == 90

    await settings_manager.async_update(wait_time=100)
    settings_manager.invalidate()
    assert settings_manager.settings is None
    assert (await settings_manager.async_get())[const.CONF_WAIT_TIME] == 100


# ============================================================================
# Updating
# ============================================================================


async def test_update_persists_and_notifies(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    settings_manager: SettingsManager,
) -> None:
    """A valid edit is saved, then subscribers and the dispatcher hear about it."""
    listener = MagicMock()
    unsubscribe = settings_manager.subscribe(listener)
    signals: list[dict[str, Any]] = []

    @callback
    def _collect(payload: dict[str, Any]) -> None:
        signals.append(payload)

    async_dispatcher_connect(
        hass,
        get_event_signal("test_entry_id", const.SIGNAL_SUFFIX_SETTINGS_UPDATED),
        _collect,
    )

    updated = await settings_manager.async_update(daily_intake="8")
    await hass.async_block_till_done()

    assert updated[const.CONF_DAILY_INTAKE] == 8
    assert hass_storage[const.STORAGE_KEY_SETTINGS]["data"][const.CONF_DAILY_INTAKE] == 8
    listener.assert_called_once_with()
    assert signals == [{}]

    unsubscribe()
    await settings_manager.async_update(daily_intake=7)
    listener.assert_called_once_with()


async def test_update_rejects_unknown_keys(settings_manager: SettingsManager) -> None:
    """Keys that are not settings are refused."""
    with pytest.raises(SettingsValidationError) as excinfo:
        await settings_manager.async_update(favourite_flavour="mint")
    assert excinfo.value.field == "favourite_flavour"


async def test_update_rejects_out_of_range(
    hass_storage: dict[str, Any], settings_manager: SettingsManager
) -> None:
    """A value outside its range is refused and nothing is saved."""
    with pytest.raises(SettingsValidationError) as excinfo:
        await settings_manager.async_update(wait_time=500)

    assert excinfo.value.field == const.CONF_WAIT_TIME
    assert hass_storage[const.STORAGE_KEY_SETTINGS]["data"][const.CONF_WAIT_TIME] == 60
    assert (await settings_manager.async_get())[const.CONF_WAIT_TIME] == 60


async def test_update_without_prior_settings_uses_defaults(
    hass: HomeAssistant,
) -> None:
    """The first edit on an empty store starts from the defaults."""
    entry = MockConfigEntry(domain=const.DOMAIN, data={}, entry_id="empty_entry")
    entry.add_to_hass(hass)
    manager = SettingsManager(hass, entry)
    await manager.async_setup()

    updated = await manager.async_update(daily_intake=5)

    assert updated[const.CONF_DAILY_INTAKE] == 5
    assert updated[const.CONF_PORTIONS_PER_CAN] == const.DEFAULT_PORTIONS_PER_CAN


# ============================================================================
# Validation
# ============================================================================


class TestValidation:
    """Test the static validation rules."""

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            (const.CONF_TARGET_DAILY_INTAKE, 10),
            (const.CONF_TARGET_WAIT_TIME, 60),
            (const.CONF_TARGET_SESSION_TIME, 45),
        ],
    )
    def test_reduce_targets_must_improve(
        self, settings: dict[str, Any], field: str, value: int
    ) -> None:
        """Reduce targets must be lower (or, for wait time, higher) than now."""
        with pytest.raises(SettingsValidationError) as excinfo:
            SettingsManager.validate_settings({**settings, field: value})
        assert excinfo.value.field == field

    def test_targets_ignored_for_other_goals(self, settings: dict[str, Any]) -> None:
        """Targets are only checked for the reduce goal."""
        SettingsManager.validate_settings(
            {
                **settings,
                const.CONF_GOAL: const.GOAL_TRACK,
                const.CONF_TARGET_DAILY_INTAKE: 20,
            }
        )

    def test_valid_reduce_targets(self, settings: dict[str, Any]) -> None:
        """Improving targets pass."""
        SettingsManager.validate_settings(
            {
                **settings,
                const.CONF_TARGET_DAILY_INTAKE: 5,
                const.CONF_TARGET_WAIT_TIME: 90,
                const.CONF_TARGET_SESSION_TIME: 20,
            }
        )

    def test_unknown_goal(self, settings: dict[str, Any]) -> None:
        """Goals outside the known set are refused."""
        with pytest.raises(SettingsValidationError):
            SettingsManager.validate_settings({**settings, const.CONF_GOAL: "maybe"})

    def test_normalize_coerces_numbers(self) -> None:
        """Form and service input arrive as floats or strings."""
        normalized = SettingsManager.normalize(
            {const.CONF_DAILY_INTAKE: 8.0, const.CONF_COST_PER_CAN: "45"}
        )
        assert normalized[const.CONF_DAILY_INTAKE] == 8
        assert isinstance(normalized[const.CONF_DAILY_INTAKE], int)
        assert normalized[const.CONF_COST_PER_CAN] == 45.0
