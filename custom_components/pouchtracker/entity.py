"""Base entity classes for Pouch Tracker integration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.helpers.update_coordinator import CoordinatorEntity

from . import const
from .coordinator import PouchTrackerCoordinator
from .helpers import create_device_info

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry

    from .type_defs import StatsSnapshot


class PouchTrackerCoordinatorEntity(CoordinatorEntity[PouchTrackerCoordinator]):
    """Base entity class for Pouch Tracker sensors with typed coordinator access.

    Entities stay available while a previous snapshot exists, so a failed
    pass never blanks out numbers that were already shown.
    """

    _attr_has_entity_name = True

    def __init__(
        self, coordinator: PouchTrackerCoordinator, entry: ConfigEntry, key: str
    ) -> None:
        """Initialize the entity.

        Args:
            coordinator: The Pouch Tracker coordinator.
            entry: Config entry owning the entity.
            key: Sensor key, used for the unique id and translation key.
        """
        super().__init__(coordinator)
        self._attr_unique_id = f"{entry.entry_id}_{key}"
        self._attr_translation_key = key
        self._attr_device_info = create_device_info(entry)

    @property
    def coordinator(self) -> PouchTrackerCoordinator:
        """Return typed coordinator."""
        return object.__getattribute__(self, "_coordinator")

    @coordinator.setter
    def coordinator(self, value: PouchTrackerCoordinator) -> None:
        object.__setattr__(self, "_coordinator", value)

    @property
    def snapshot(self) -> StatsSnapshot | None:
        """Return the latest published snapshot."""
        return self.coordinator.data

    @property
    def available(self) -> bool:
        """Return True once any snapshot has been published."""
        return self.coordinator.data is not None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Expose the snapshot date and the last pass error."""
        snapshot = self.snapshot
        return {
            const.ATTR_GENERATED_FOR: snapshot.generated_for if snapshot else None,
            const.ATTR_ERROR: self.coordinator.error,
        }
