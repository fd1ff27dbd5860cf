"""Shared fixtures for Pouch Tracker tests."""

from datetime import date, timedelta
from typing import Any

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.pouchtracker import const
from custom_components.pouchtracker.engines.statistics_engine import StatisticsEngine

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture
def settings() -> dict[str, Any]:
    """Return a complete, valid settings dict.

    cost_per_can / portions_per_can gives a round 2.5 per portion.
    """
    return {
        const.CONF_DAILY_INTAKE: 10,
        const.CONF_COST_PER_CAN: 50.0,
        const.CONF_PORTIONS_PER_CAN: 20,
        const.CONF_SESSION_TIME: 30,
        const.CONF_WAIT_TIME: 60,
        const.CONF_NICOTINE_CONTENT: 8.0,
        const.CONF_GOAL: const.GOAL_REDUCE,
        const.CONF_PACE: const.PACE_MEDIUM,
    }


@pytest.fixture
def mock_config_entry(
    settings: dict[str, Any],  # pylint: disable=redefined-outer-name
) -> MockConfigEntry:
    """Return a mock config entry using the key-value backend."""
    return MockConfigEntry(
        domain=const.DOMAIN,
        title=const.POUCHTRACKER_TITLE,
        data={
            const.CONF_STORAGE_BACKEND: const.STORAGE_BACKEND_KEY_VALUE,
            **settings,
        },
        entry_id="test_entry_id",
        unique_id="test_unique_id",
    )


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,  # pylint: disable=redefined-outer-name
) -> MockConfigEntry:
    """Set up the Pouch Tracker integration for testing."""
    await hass.config.async_set_time_zone("UTC")
    mock_config_entry.add_to_hass(hass)

    assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()

    yield mock_config_entry

    # Cancel the scheduler and session timers before the hass fixture tears down
    await hass.config_entries.async_unload(mock_config_entry.entry_id)
    await hass.async_block_till_done()


def make_record(
    day: str,
    count: int,
    limit: int = 10,
    **fields: Any,
) -> dict[str, Any]:
    """Create a daily record for `day` with the given count and limit."""
    record = StatisticsEngine.synthesize_record(day, limit)
    record[const.DATA_RECORD_COUNT] = count
    record.update(fields)
    return dict(record)


def make_days(
    start: str, counts: list[int], limit: int = 10
) -> list[tuple[str, dict[str, Any]]]:
    """Create consecutive (date, record) pairs starting at `start`."""
    first = date.fromisoformat(start)
    days = [(first + timedelta(days=offset)).isoformat() for offset in range(len(counts))]
    return [
        (day, make_record(day, count, limit))
        for day, count in zip(days, counts, strict=True)
    ]
