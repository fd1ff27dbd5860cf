"""Tests for StatisticsManager - range loading, snapshots and pause maintenance."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.pouchtracker import const
from custom_components.pouchtracker.managers.settings_manager import SettingsManager
from custom_components.pouchtracker.managers.statistics_manager import (
    StatisticsManager,
)
from custom_components.pouchtracker.store import KeyValueRecordStore, StorageReadError
from custom_components.pouchtracker.utils import dt_utils

from .conftest import make_record

NOW = datetime(2026, 1, 14, 12, 0, tzinfo=UTC)
NOW_MS = dt_utils.dt_to_epoch_ms(NOW)


@pytest.fixture
async def record_store(hass: HomeAssistant) -> KeyValueRecordStore:
    """Return an initialized key-value record store."""
    store = KeyValueRecordStore(hass)
    await store.async_initialize()
    return store


@pytest.fixture
async def statistics_manager(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    record_store: KeyValueRecordStore,
) -> StatisticsManager:
    """Return a StatisticsManager over the key-value store."""
    mock_config_entry.add_to_hass(hass)
    settings_manager = SettingsManager(hass, mock_config_entry)
    await settings_manager.async_setup()
    manager = StatisticsManager(hass, mock_config_entry, record_store, settings_manager)
    await manager.async_setup()
    return manager


# ============================================================================
# Range loading
# ============================================================================


async def test_load_range_has_no_gaps(
    statistics_manager: StatisticsManager, record_store: KeyValueRecordStore
) -> None:
    """Every day in the range appears once, in order, stored or not."""
    await record_store.async_set("2026-01-03", make_record("2026-01-03", 4, limit=6))

    days = await statistics_manager.async_load_range(
        date(2026, 1, 1), date(2026, 1, 10)
    )

    assert [day for day, _ in days] == [
        (date(2026, 1, 1) + timedelta(days=offset)).isoformat() for offset in range(10)
    ]
    stored = dict(days)
    assert stored["2026-01-03"][const.DATA_RECORD_COUNT] == 4
    assert stored["2026-01-03"][const.DATA_RECORD_LIMIT] == 6
    assert stored["2026-01-04"][const.DATA_RECORD_COUNT] == 0
    assert stored["2026-01-04"][const.DATA_RECORD_LIMIT] == 10


async def test_load_range_limit_override(
    statistics_manager: StatisticsManager,
) -> None:
    """Synthesized days carry the limit passed in."""
    days = await statistics_manager.async_load_range(
        date(2026, 1, 1), date(2026, 1, 2), limit=3
    )
    assert all(record[const.DATA_RECORD_LIMIT] == 3 for _, record in days)


async def test_load_range_falls_back_to_week_bucket(
    statistics_manager: StatisticsManager, record_store: KeyValueRecordStore
) -> None:
    """A day missing its daily key is recovered from its week bucket."""
    await record_store.async_set("2026-01-06", make_record("2026-01-06", 9))
    record_store.data[const.DATA_DAILY_RECORDS].pop("2026-01-06")

    days = dict(
        await statistics_manager.async_load_range(date(2026, 1, 5), date(2026, 1, 7))
    )

    assert days["2026-01-06"][const.DATA_RECORD_COUNT] == 9
    assert days["2026-01-06"][const.DATA_RECORD_DATE] == "2026-01-06"


async def test_load_range_synthesizes_on_read_error(
    statistics_manager: StatisticsManager, record_store: KeyValueRecordStore
) -> None:
    """A failed batch read degrades to empty days instead of failing."""
    await record_store.async_set("2026-01-06", make_record("2026-01-06", 9))

    with (
        patch.object(
            record_store,
            "async_get_many",
            AsyncMock(side_effect=StorageReadError("disk on fire")),
        ),
        patch.object(
            record_store,
            "async_list_known_week_keys",
            AsyncMock(side_effect=StorageReadError("disk on fire")),
        ),
    ):
        days = await statistics_manager.async_load_range(
            date(2026, 1, 5), date(2026, 1, 7)
        )

    assert len(days) == 3
    assert all(record[const.DATA_RECORD_COUNT] == 0 for _, record in days)


async def test_standalone_streak_and_trend(
    statistics_manager: StatisticsManager, record_store: KeyValueRecordStore
) -> None:
    """Streak and trend can be computed outside a snapshot."""
    for offset, count in enumerate([10, 10, 10, 2, 2, 2, 2]):
        day = (date(2026, 1, 8) + timedelta(days=offset)).isoformat()
        await record_store.async_set(day, make_record(day, count))

    streak = await statistics_manager.async_compute_streak(as_of=date(2026, 1, 14))
    trend = await statistics_manager.async_compute_trend(as_of=date(2026, 1, 14))

    assert streak == {"current": 7, "longest": 7}
    # [10, 10, 10, 2] vs [2, 2, 2]
    assert trend == {"direction": const.TREND_DOWN, "percentage": 75}


# ============================================================================
# Snapshot assembly
# ============================================================================


async def test_assemble_snapshot_reads_only(
    statistics_manager: StatisticsManager,
    record_store: KeyValueRecordStore,
    settings: dict[str, Any],
) -> None:
    """Assembly never writes, and the same state gives the same snapshot."""
    await record_store.async_set(
        "2026-01-14",
        make_record("2026-01-14", 3, last_session_end=NOW_MS - 600_000),
    )

    with patch.object(record_store, "async_set", AsyncMock()) as mock_set:
        first = await statistics_manager.async_assemble_snapshot(settings, NOW)
        second = await statistics_manager.async_assemble_snapshot(settings, NOW)

    mock_set.assert_not_called()
    assert first == second
    assert first.generated_for == "2026-01-14"
    assert first.daily[const.DATA_RECORD_COUNT] == 3
    assert first.health["current_pause"] == 600
    # The stored value is reported, not the live pause
    assert first.health["longest_pause"] == 0


async def test_assemble_snapshot_loads_settings(
    statistics_manager: StatisticsManager,
) -> None:
    """Settings are fetched when not passed in."""
    snapshot = await statistics_manager.async_assemble_snapshot(now=NOW)
    assert snapshot.weekly["limit"] == 10


async def test_assemble_snapshot_lists_weeks_once(
    statistics_manager: StatisticsManager,
    record_store: KeyValueRecordStore,
    settings: dict[str, Any],
) -> None:
    """The four windows share one listing of known weeks."""
    await record_store.async_set("2026-01-12", make_record("2026-01-12", 2))

    with patch.object(
        record_store,
        "async_list_known_week_keys",
        AsyncMock(return_value={"2026-01-12"}),
    ) as mock_list:
        snapshot = await statistics_manager.async_assemble_snapshot(settings, NOW)

    mock_list.assert_awaited_once()
    assert snapshot.weekly["total_count"] == 2


# ============================================================================
# Longest pause maintenance
# ============================================================================


async def test_commit_longest_pause(
    statistics_manager: StatisticsManager,
    record_store: KeyValueRecordStore,
    settings: dict[str, Any],
) -> None:
    """A longer live pause is written back, at most once per second."""
    await record_store.async_set(
        "2026-01-14",
        make_record(
            "2026-01-14", 2, longest_pause=100, last_session_end=NOW_MS - 200_000
        ),
    )

    assert await statistics_manager.async_commit_longest_pause(settings, NOW)
    stored = await record_store.async_get("2026-01-14")
    assert stored[const.DATA_RECORD_LONGEST_PAUSE] == 200

    # Throttled inside the same second
    later = NOW + timedelta(milliseconds=500)
    assert not await statistics_manager.async_commit_longest_pause(settings, later)

    later = NOW + timedelta(seconds=5)
    assert await statistics_manager.async_commit_longest_pause(settings, later)
    stored = await record_store.async_get("2026-01-14")
    assert stored[const.DATA_RECORD_LONGEST_PAUSE] == 205


async def test_commit_longest_pause_skips_shorter_pause(
    statistics_manager: StatisticsManager,
    record_store: KeyValueRecordStore,
    settings: dict[str, Any],
) -> None:
    """Nothing is written while the live pause is not a new maximum."""
    await record_store.async_set(
        "2026-01-14",
        make_record(
            "2026-01-14", 2, longest_pause=900, last_session_end=NOW_MS - 200_000
        ),
    )

    assert not await statistics_manager.async_commit_longest_pause(settings, NOW)
    stored = await record_store.async_get("2026-01-14")
    assert stored[const.DATA_RECORD_LONGEST_PAUSE] == 900


async def test_commit_longest_pause_without_today(
    statistics_manager: StatisticsManager,
    record_store: KeyValueRecordStore,
    settings: dict[str, Any],
) -> None:
    """No record for today means nothing to update, and nothing is created."""
    assert not await statistics_manager.async_commit_longest_pause(settings, NOW)
    assert await record_store.async_get("2026-01-14") is None
