"""Settings Manager - Owns the user's limits, costs and timings.

Settings are loaded once at setup, edited through ``async_update`` and
persisted immediately on every change. Changes are broadcast two ways:

- explicit subscribers registered with ``subscribe()`` (the coordinator)
- the instance-scoped dispatcher signal ``SIGNAL_SUFFIX_SETTINGS_UPDATED``

Neither carries a payload of settings values; listeners re-fetch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from .. import const
from .base_manager import BaseManager

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from ..type_defs import UserSettings


__all__ = ["MissingSettingsError", "SettingsManager", "SettingsValidationError"]

SETTINGS_KEYS = (
    *const.DEFAULT_SETTINGS,
    const.CONF_TARGET_DAILY_INTAKE,
    const.CONF_TARGET_SESSION_TIME,
    const.CONF_TARGET_WAIT_TIME,
)

INT_SETTINGS = (
    const.CONF_DAILY_INTAKE,
    const.CONF_PORTIONS_PER_CAN,
    const.CONF_SESSION_TIME,
    const.CONF_WAIT_TIME,
    const.CONF_TARGET_DAILY_INTAKE,
    const.CONF_TARGET_SESSION_TIME,
    const.CONF_TARGET_WAIT_TIME,
)

FLOAT_SETTINGS = (const.CONF_COST_PER_CAN, const.CONF_NICOTINE_CONTENT)


class MissingSettingsError(Exception):
    """Raised when settings are requested before any have been stored."""

    def __init__(self) -> None:
        super().__init__(const.ERROR_NO_SETTINGS)


class SettingsValidationError(HomeAssistantError):
    """Raised when a settings edit is rejected."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class SettingsManager(BaseManager):
    """Manager for persisted user settings with an explicit observer interface."""

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        storage_key: str = const.STORAGE_KEY_SETTINGS,
    ) -> None:
        """Initialize the SettingsManager.

        Args:
            hass: Home Assistant instance
            config_entry: Config entry whose data seeds a fresh settings store
            storage_key: Storage key for the settings document
        """
        super().__init__(hass, config_entry)
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._settings: UserSettings | None = None
        self._unsaved = False
        self._subscribers: list[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_setup(self) -> None:
        """Load settings, seeding them from the config entry on first setup."""
        stored = await self._store.async_load()
        if stored is not None:
            self._settings = stored
            const.LOGGER.debug("DEBUG: Loaded settings from storage")
            return

        seed = self.extract_settings(self.config_entry.data)
        if not seed:
            const.LOGGER.warning(
                "WARNING: No stored settings and nothing to seed them from"
            )
            return

        settings = self.normalize({**const.DEFAULT_SETTINGS, **seed})
        self.validate_settings(settings)
        self._settings = settings
        await self._async_save()
        const.LOGGER.info("INFO: Seeded settings from config entry data")

    @property
    def settings(self) -> UserSettings | None:
        """Return the cached settings, or None when not loaded."""
        return self._settings

    async def async_get(self) -> UserSettings:
        """Return current settings, reloading from storage if the cache was dropped.

        Raises:
            MissingSettingsError: If no settings have ever been stored.
        """
        if self._settings is None:
            self._settings = await self._store.async_load()
        if self._settings is None:
            raise MissingSettingsError
        return self._settings

    @callback
    def invalidate(self) -> None:
        """Drop the cached settings so the next async_get re-reads storage.

        Settings whose last save failed stay cached.
        """
        if self._unsaved:
            const.LOGGER.debug("DEBUG: Keeping unsaved settings in memory")
            return
        self._settings = None

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    async def async_update(self, **changes: Any) -> UserSettings:
        """Validate, persist and broadcast a settings edit.

        Args:
            **changes: Settings keys and their new values.

        Returns:
            The updated settings.

        Raises:
            SettingsValidationError: If any value is out of range or a reduce
                target does not improve on the current value.
        """
        unknown = set(changes) - set(SETTINGS_KEYS)
        if unknown:
            raise SettingsValidationError(
                sorted(unknown)[0], f"Unknown settings: {', '.join(sorted(unknown))}"
            )

        try:
            current = await self.async_get()
        except MissingSettingsError:
            current = dict(const.DEFAULT_SETTINGS)  # type: ignore[assignment]

        updated = self.normalize({**current, **changes})
        self.validate_settings(updated)

        self._settings = updated
        await self._async_save()
        const.LOGGER.info(
            "INFO: Settings updated: %s", ", ".join(sorted(changes)) or "none"
        )
        self._notify()
        return updated

    @callback
    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a change listener.

        Args:
            listener: Called with no arguments after every persisted change.

        Returns:
            A callable that removes the listener.
        """
        self._subscribers.append(listener)

        @callback
        def _unsubscribe() -> None:
            if listener in self._subscribers:
                self._subscribers.remove(listener)

        return _unsubscribe

    @callback
    def _notify(self) -> None:
        for listener in list(self._subscribers):
            listener()
        self.emit(const.SIGNAL_SUFFIX_SETTINGS_UPDATED)

    async def _async_save(self) -> None:
        self._unsaved = True
        try:
            await self._store.async_save(self._settings)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save settings due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
        except (TypeError, ValueError) as err:
            const.LOGGER.error("ERROR: Failed to save settings: %s", err)
        else:
            self._unsaved = False

    async def async_delete_storage(self) -> None:
        """Delete the settings file from disk."""
        self._settings = None
        self._unsaved = False
        try:
            await self._store.async_remove()
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove settings file %s: %s", self._store.path, err
            )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def extract_settings(data: Mapping[str, Any]) -> dict[str, Any]:
        """Pick settings keys out of a config entry data or options mapping."""
        return {key: data[key] for key in SETTINGS_KEYS if data.get(key) is not None}

    @staticmethod
    def normalize(settings: Mapping[str, Any]) -> UserSettings:
        """Coerce numeric settings to their stored types."""
        normalized = dict(settings)
        for key in INT_SETTINGS:
            if normalized.get(key) is not None:
                normalized[key] = int(normalized[key])
        for key in FLOAT_SETTINGS:
            if normalized.get(key) is not None:
                normalized[key] = float(normalized[key])
        return normalized  # type: ignore[return-value]

    @staticmethod
    def validate_settings(settings: Mapping[str, Any]) -> None:
        """Validate ranges, enums and reduce-goal targets.

        Raises:
            SettingsValidationError: On the first failing field.
        """
        for key, (low, high) in const.SETTINGS_RANGES.items():
            value = settings.get(key)
            if value is None or not low <= value <= high:
                raise SettingsValidationError(
                    key, f"{key} must be between {low:g} and {high:g}, got {value}"
                )

        if settings.get(const.CONF_GOAL) not in const.GOALS:
            raise SettingsValidationError(
                const.CONF_GOAL, f"goal must be one of {', '.join(const.GOALS)}"
            )
        if settings.get(const.CONF_PACE) not in const.PACES:
            raise SettingsValidationError(
                const.CONF_PACE, f"pace must be one of {', '.join(const.PACES)}"
            )

        if settings[const.CONF_GOAL] != const.GOAL_REDUCE:
            return

        target_intake = settings.get(const.CONF_TARGET_DAILY_INTAKE)
        if target_intake and target_intake >= settings[const.CONF_DAILY_INTAKE]:
            raise SettingsValidationError(
                const.CONF_TARGET_DAILY_INTAKE,
                "Target daily intake must be lower than the current daily intake",
            )

        target_wait = settings.get(const.CONF_TARGET_WAIT_TIME)
        if target_wait and target_wait <= settings[const.CONF_WAIT_TIME]:
            raise SettingsValidationError(
                const.CONF_TARGET_WAIT_TIME,
                "Target wait time must be higher than the current wait time",
            )

        target_session = settings.get(const.CONF_TARGET_SESSION_TIME)
        if target_session and target_session >= settings[const.CONF_SESSION_TIME]:
            raise SettingsValidationError(
                const.CONF_TARGET_SESSION_TIME,
                "Target session time must be lower than the current session time",
            )
