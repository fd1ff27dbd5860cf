# File: const.py
"""Constants for the Pouch Tracker integration.

This file centralizes configuration keys, defaults, storage keys, signal names,
service names, and platform identifiers for consistency across the integration.
"""

import logging
from datetime import timedelta
from typing import Final

from homeassistant.const import Platform

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
# Integration Name
POUCHTRACKER_TITLE = "Pouch Tracker"

# Integration Domain
DOMAIN = "pouchtracker"

# Logger
LOGGER = logging.getLogger(__package__)

# Supported Platforms
PLATFORMS = [
    Platform.SENSOR,
]

# hass.data keys
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"
RECORD_STORE = "record_store"
SETTINGS_MANAGER = "settings_manager"
SESSION_MANAGER = "session_manager"

# Storage and Versioning
STORAGE_KEY_RECORDS = "pouchtracker_records"
STORAGE_KEY_SETTINGS = "pouchtracker_settings"
STORAGE_VERSION = 1
SQLITE_DB_FILENAME = "pouchtracker.db"

# Storage backends (chosen once in the config flow)
STORAGE_BACKEND_KEY_VALUE = "key_value"
STORAGE_BACKEND_SQLITE = "sqlite"
STORAGE_BACKENDS = [STORAGE_BACKEND_KEY_VALUE, STORAGE_BACKEND_SQLITE]

# ------------------------------------------------------------------------------------------------
# Refresh Scheduling
# ------------------------------------------------------------------------------------------------
POLL_INTERVAL: Final = timedelta(milliseconds=500)
RERUN_DELAY_SECONDS: Final = 0.1
REFRESH_COOLDOWN_SECONDS: Final = 0.1
PAUSE_WRITE_THROTTLE_SECONDS: Final = 1.0
SESSION_CHECK_INTERVAL: Final = timedelta(seconds=1)

# ------------------------------------------------------------------------------------------------
# Aggregation Windows
# ------------------------------------------------------------------------------------------------
STREAK_WINDOW_DAYS: Final = 30
TREND_WINDOW_DAYS: Final = 7
YEAR_WINDOW_DAYS: Final = 365
DAYS_PER_WEEK: Final = 7

PROJECTION_DAYS_THREE_MONTHS: Final = 90
PROJECTION_DAYS_SIX_MONTHS: Final = 180
PROJECTION_DAYS_ONE_YEAR: Final = 365

TREND_UP = "up"
TREND_DOWN = "down"
TREND_STABLE = "stable"

# ------------------------------------------------------------------------------------------------
# Configuration Keys (settings)
# ------------------------------------------------------------------------------------------------
CONF_STORAGE_BACKEND = "storage_backend"

CONF_DAILY_INTAKE = "daily_intake"
CONF_COST_PER_CAN = "cost_per_can"
CONF_PORTIONS_PER_CAN = "portions_per_can"
CONF_SESSION_TIME = "session_time"
CONF_WAIT_TIME = "wait_time"
CONF_NICOTINE_CONTENT = "nicotine_content"
CONF_GOAL = "goal"
CONF_PACE = "pace"
CONF_TARGET_DAILY_INTAKE = "target_daily_intake"
CONF_TARGET_SESSION_TIME = "target_session_time"
CONF_TARGET_WAIT_TIME = "target_wait_time"

GOAL_QUIT = "quit"
GOAL_REDUCE = "reduce"
GOAL_TRACK = "track"
GOALS = [GOAL_QUIT, GOAL_REDUCE, GOAL_TRACK]

PACE_FAST = "fast"
PACE_MEDIUM = "medium"
PACE_SLOW = "slow"
PACES = [PACE_FAST, PACE_MEDIUM, PACE_SLOW]

# Defaults
DEFAULT_DAILY_INTAKE = 10
DEFAULT_COST_PER_CAN = 50.0
DEFAULT_PORTIONS_PER_CAN = 24
DEFAULT_SESSION_TIME = 30
DEFAULT_WAIT_TIME = 30
DEFAULT_NICOTINE_CONTENT = 8.0
DEFAULT_GOAL = GOAL_REDUCE
DEFAULT_PACE = PACE_MEDIUM
DEFAULT_STORAGE_BACKEND = STORAGE_BACKEND_KEY_VALUE
DEFAULT_ZERO = 0

DEFAULT_SETTINGS: Final[dict[str, object]] = {
    CONF_PORTIONS_PER_CAN: DEFAULT_PORTIONS_PER_CAN,
    CONF_GOAL: DEFAULT_GOAL,
    CONF_PACE: DEFAULT_PACE,
    CONF_DAILY_INTAKE: DEFAULT_DAILY_INTAKE,
    CONF_COST_PER_CAN: DEFAULT_COST_PER_CAN,
    CONF_SESSION_TIME: DEFAULT_SESSION_TIME,
    CONF_WAIT_TIME: DEFAULT_WAIT_TIME,
    CONF_NICOTINE_CONTENT: DEFAULT_NICOTINE_CONTENT,
}

# Inclusive (min, max) validation ranges
SETTINGS_RANGES: Final[dict[str, tuple[float, float]]] = {
    CONF_PORTIONS_PER_CAN: (1, 50),
    CONF_DAILY_INTAKE: (1, 50),
    CONF_COST_PER_CAN: (1, 1000),
    CONF_SESSION_TIME: (1, 120),
    CONF_WAIT_TIME: (1, 240),
    CONF_NICOTINE_CONTENT: (0, 50),
}

# ------------------------------------------------------------------------------------------------
# Data Keys (storage)
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schema_version"
DATA_DAILY_RECORDS = "daily_records"
DATA_WEEK_BUCKETS = "week_buckets"
DATA_SETTINGS = "settings"

SCHEMA_VERSION_CURRENT = 1

# DailyRecord fields
DATA_RECORD_DATE = "date"
DATA_RECORD_COUNT = "count"
DATA_RECORD_LIMIT = "limit"
DATA_RECORD_LONGEST_PAUSE = "longest_pause"
DATA_RECORD_CURRENT_SESSION_START = "current_session_start"
DATA_RECORD_LAST_SESSION_END = "last_session_end"
DATA_RECORD_NEXT_ALLOWED_AT = "next_allowed_at"

# Fields kept in week buckets (everything but the owning date)
WEEK_BUCKET_FIELDS: Final = (
    DATA_RECORD_COUNT,
    DATA_RECORD_LIMIT,
    DATA_RECORD_LONGEST_PAUSE,
    DATA_RECORD_CURRENT_SESSION_START,
    DATA_RECORD_LAST_SESSION_END,
    DATA_RECORD_NEXT_ALLOWED_AT,
)

# Session state carried onto the next day's record at midnight
SESSION_STATE_FIELDS: Final = (
    DATA_RECORD_CURRENT_SESSION_START,
    DATA_RECORD_LAST_SESSION_END,
    DATA_RECORD_NEXT_ALLOWED_AT,
)

# ------------------------------------------------------------------------------------------------
# Events / Signals
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_SETTINGS_UPDATED = "settings_updated"
SIGNAL_SUFFIX_RECORD_UPDATED = "record_updated"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_LOG_USAGE = "log_usage"
SERVICE_END_SESSION = "end_session"
SERVICE_OVERRIDE_WAIT = "override_wait"
SERVICE_REFRESH_STATS = "refresh_stats"
SERVICE_UPDATE_SETTINGS = "update_settings"
SERVICE_RESET_ALL_DATA = "reset_all_data"

FIELD_IGNORE_WAIT = "ignore_wait"

# ------------------------------------------------------------------------------------------------
# Error strings (surfaced to consumers)
# ------------------------------------------------------------------------------------------------
ERROR_NO_SETTINGS = "No settings found"
ERROR_STATS_FAILED = "Failed to load statistics"
MSG_NO_ENTRY_FOUND = "No Pouch Tracker entry found"

# Config flow error / abort keys
TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_ERROR_INVALID_SETTINGS = "invalid_settings"

# ------------------------------------------------------------------------------------------------
# Sensors
# ------------------------------------------------------------------------------------------------
SENSOR_KEY_TODAY_COUNT = "today_count"
SENSOR_KEY_CURRENT_STREAK = "current_streak"
SENSOR_KEY_WEEKLY_TOTAL = "weekly_total"
SENSOR_KEY_MONTHLY_COST = "monthly_cost"
SENSOR_KEY_TOTAL_SAVINGS = "total_savings"
SENSOR_KEY_TREND = "trend"
SENSOR_KEY_CURRENT_PAUSE = "current_pause"
SENSOR_KEY_NICOTINE_TODAY = "nicotine_today"

ATTR_GENERATED_FOR = "generated_for"
ATTR_ERROR = "error"
