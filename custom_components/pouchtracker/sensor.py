# File: sensor.py
"""Sensors for the Pouch Tracker integration.

Every sensor reads from the coordinator's current StatsSnapshot and never
touches storage directly.

Sensors Defined in This File (8):
01. TodayCountSensor
02. CurrentStreakSensor
03. WeeklyTotalSensor
04. MonthlyCostSensor
05. TotalSavingsSensor
06. TrendSensor
07. CurrentPauseSensor
08. NicotineTodaySensor
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.const import UnitOfMass, UnitOfTime

from . import const
from .coordinator import PouchTrackerCoordinator
from .entity import PouchTrackerCoordinatorEntity
from .utils.math_utils import round_amount

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .type_defs import StatsSnapshot


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up sensors for Pouch Tracker integration."""
    coordinator: PouchTrackerCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]

    async_add_entities(
        [
            TodayCountSensor(coordinator, entry),
            CurrentStreakSensor(coordinator, entry),
            WeeklyTotalSensor(coordinator, entry),
            MonthlyCostSensor(coordinator, entry),
            TotalSavingsSensor(coordinator, entry),
            TrendSensor(coordinator, entry),
            CurrentPauseSensor(coordinator, entry),
            NicotineTodaySensor(coordinator, entry),
        ]
    )


class PouchTrackerStatsSensor(PouchTrackerCoordinatorEntity, SensorEntity):
    """Base sensor that derives its state from one snapshot field."""

    _sensor_key: str

    def __init__(self, coordinator: PouchTrackerCoordinator, entry: ConfigEntry) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry, self._sensor_key)

    @abstractmethod
    def _value(self, snapshot: StatsSnapshot) -> Any:
        """Return the state for this sensor from the snapshot."""

    @property
    def native_value(self) -> Any:
        """Return the value taken from the current snapshot."""
        snapshot = self.snapshot
        if snapshot is None:
            return None
        return self._value(snapshot)


# ------------------------------------------------------------------------------------------
# Daily usage
# ------------------------------------------------------------------------------------------


class TodayCountSensor(PouchTrackerStatsSensor):
    """Portions used today, with the session state as attributes."""

    _sensor_key = const.SENSOR_KEY_TODAY_COUNT
    _attr_state_class = SensorStateClass.TOTAL
    _attr_icon = "mdi:counter"

    def _value(self, snapshot: StatsSnapshot) -> int:
        return snapshot.daily[const.DATA_RECORD_COUNT]

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        attributes = super().extra_state_attributes
        snapshot = self.snapshot
        if snapshot is not None:
            attributes.update(
                {
                    const.DATA_RECORD_LIMIT: snapshot.daily[const.DATA_RECORD_LIMIT],
                    const.DATA_RECORD_CURRENT_SESSION_START: snapshot.daily[
                        const.DATA_RECORD_CURRENT_SESSION_START
                    ],
                    const.DATA_RECORD_NEXT_ALLOWED_AT: snapshot.daily[
                        const.DATA_RECORD_NEXT_ALLOWED_AT
                    ],
                    "goal_progress": round_amount(snapshot.progress["goal_progress"]),
                }
            )
        return attributes


class NicotineTodaySensor(PouchTrackerStatsSensor):
    """Nicotine taken in today."""

    _sensor_key = const.SENSOR_KEY_NICOTINE_TODAY
    _attr_native_unit_of_measurement = UnitOfMass.MILLIGRAMS
    _attr_device_class = SensorDeviceClass.WEIGHT
    _attr_state_class = SensorStateClass.MEASUREMENT

    def _value(self, snapshot: StatsSnapshot) -> float:
        return round_amount(snapshot.health["nicotine_today"])

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        attributes = super().extra_state_attributes
        snapshot = self.snapshot
        if snapshot is not None:
            attributes.update(
                {
                    "nicotine_week": round_amount(snapshot.health["nicotine_week"]),
                    "nicotine_month": round_amount(snapshot.health["nicotine_month"]),
                    "max_nicotine_day": snapshot.health["max_nicotine_day"],
                    "reduction_days": snapshot.health["reduction_days"],
                }
            )
        return attributes


class CurrentPauseSensor(PouchTrackerStatsSensor):
    """Seconds since the last session ended."""

    _sensor_key = const.SENSOR_KEY_CURRENT_PAUSE
    _attr_native_unit_of_measurement = UnitOfTime.SECONDS
    _attr_device_class = SensorDeviceClass.DURATION

    def _value(self, snapshot: StatsSnapshot) -> int:
        return snapshot.health["current_pause"]

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        attributes = super().extra_state_attributes
        snapshot = self.snapshot
        if snapshot is not None:
            attributes["longest_pause"] = snapshot.health["longest_pause"]
        return attributes


# ------------------------------------------------------------------------------------------
# Progress
# ------------------------------------------------------------------------------------------


class CurrentStreakSensor(PouchTrackerStatsSensor):
    """Consecutive days at or under the limit."""

    _sensor_key = const.SENSOR_KEY_CURRENT_STREAK
    _attr_native_unit_of_measurement = UnitOfTime.DAYS
    _attr_icon = "mdi:fire"

    def _value(self, snapshot: StatsSnapshot) -> int:
        return snapshot.progress["current_streak"]

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        attributes = super().extra_state_attributes
        snapshot = self.snapshot
        if snapshot is not None:
            attributes["longest_streak"] = snapshot.progress["longest_streak"]
        return attributes


class TrendSensor(PouchTrackerStatsSensor):
    """Direction of the trailing 7-day trend."""

    _sensor_key = const.SENSOR_KEY_TREND
    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = [const.TREND_UP, const.TREND_DOWN, const.TREND_STABLE]

    def _value(self, snapshot: StatsSnapshot) -> str:
        return snapshot.progress["trend"]["direction"]

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        attributes = super().extra_state_attributes
        snapshot = self.snapshot
        if snapshot is not None:
            attributes["percentage"] = snapshot.progress["trend"]["percentage"]
        return attributes


# ------------------------------------------------------------------------------------------
# Rollups and savings
# ------------------------------------------------------------------------------------------


class WeeklyTotalSensor(PouchTrackerStatsSensor):
    """Portions used this week (Monday to Sunday)."""

    _sensor_key = const.SENSOR_KEY_WEEKLY_TOTAL
    _attr_state_class = SensorStateClass.TOTAL
    _attr_icon = "mdi:calendar-week"

    def _value(self, snapshot: StatsSnapshot) -> int:
        return snapshot.weekly["total_count"]

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        attributes = super().extra_state_attributes
        snapshot = self.snapshot
        if snapshot is not None:
            attributes.update(
                {
                    "daily_counts": snapshot.weekly["daily_counts"],
                    "average_per_day": round_amount(
                        snapshot.weekly["average_per_day"]
                    ),
                    "days_over_limit": snapshot.weekly["days_over_limit"],
                    "days_under_limit": snapshot.weekly["days_under_limit"],
                }
            )
        return attributes


class MonthlyCostSensor(PouchTrackerStatsSensor):
    """Money spent this calendar month."""

    _sensor_key = const.SENSOR_KEY_MONTHLY_COST
    _attr_state_class = SensorStateClass.TOTAL
    _attr_icon = "mdi:cash"

    def _value(self, snapshot: StatsSnapshot) -> float:
        return round_amount(snapshot.monthly["cost"])

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        attributes = super().extra_state_attributes
        snapshot = self.snapshot
        if snapshot is not None:
            attributes.update(
                {
                    "total_count": snapshot.monthly["total_count"],
                    "yearly_cost": round_amount(snapshot.yearly["cost"]),
                    "best_month": snapshot.yearly["best_month"],
                    "worst_month": snapshot.yearly["worst_month"],
                }
            )
        return attributes


class TotalSavingsSensor(PouchTrackerStatsSensor):
    """Money saved over the trailing year on days with usage."""

    _sensor_key = const.SENSOR_KEY_TOTAL_SAVINGS
    _attr_state_class = SensorStateClass.TOTAL
    _attr_icon = "mdi:piggy-bank"

    def _value(self, snapshot: StatsSnapshot) -> float:
        return round_amount(snapshot.savings["total"])

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        attributes = super().extra_state_attributes
        snapshot = self.snapshot
        if snapshot is not None:
            projections = snapshot.savings["projections"]
            attributes.update(
                {
                    "daily": round_amount(snapshot.savings["daily"]),
                    "three_months": round_amount(projections["three_months"]),
                    "six_months": round_amount(projections["six_months"]),
                    "one_year": round_amount(projections["one_year"]),
                }
            )
        return attributes
