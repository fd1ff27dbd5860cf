"""Manager modules for Pouch Tracker integration.

Managers orchestrate workflows and coordinate between the store and engines.
They are stateful, event-aware, and handle cross-cutting concerns.
"""

from .base_manager import BaseManager
from .session_manager import SessionBlockedError, SessionManager
from .settings_manager import (
    MissingSettingsError,
    SettingsManager,
    SettingsValidationError,
)
from .statistics_manager import StatisticsManager

__all__ = [
    "BaseManager",
    "MissingSettingsError",
    "SessionBlockedError",
    "SessionManager",
    "SettingsManager",
    "SettingsValidationError",
    "StatisticsManager",
]
