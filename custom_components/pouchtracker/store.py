# File: store.py
"""Handles persistent daily record storage for the Pouch Tracker integration.

Two backends sit behind the same ``RecordStore`` interface:

- ``KeyValueRecordStore`` uses Home Assistant's Storage helper. Daily records
  are kept under their ISO date and mirrored into Monday-anchored week buckets.
- ``SqliteRecordStore`` keeps one row per day in a SQLite table. Week buckets
  are derived from the table with a date range query.

The backend is chosen once in the config flow and passed to
``async_create_record_store`` at setup time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager, suppress
import os
import sqlite3
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.storage import Store

from . import const
from .utils import dt_utils

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .type_defs import DailyRecord, ISODate, WeekBucket, WeekKey


class StorageReadError(Exception):
    """Raised when a record store backend cannot read its data."""


class RecordStore(ABC):
    """Capability interface for daily record persistence.

    ``async_get`` returns ``None`` for absent days. Absence is never an error.
    ``async_set`` is a plain write: a record written and read back compares
    equal in every field.
    """

    def __init__(self, hass: HomeAssistant) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
        """
        self.hass = hass

    @property
    @abstractmethod
    def backend(self) -> str:
        """Return the backend identifier (one of const.STORAGE_BACKENDS)."""

    @abstractmethod
    async def async_initialize(self) -> None:
        """Prepare the backend for use (load file or create schema)."""

    @abstractmethod
    async def async_get(self, day: ISODate) -> DailyRecord | None:
        """Return the stored record for `day`, or None."""

    async def async_get_many(self, days: list[ISODate]) -> dict[ISODate, DailyRecord]:
        """Return the stored records for `days`, omitting absent days.

        Backends that can read a batch in one round trip override this. The
        default reads day by day, and a day that fails to read is logged and
        left out.
        """
        records: dict[ISODate, DailyRecord] = {}
        for day in days:
            try:
                record = await self.async_get(day)
            except StorageReadError as err:
                const.LOGGER.warning(
                    "WARNING: Failed to read record for %s, using empty day: %s",
                    day,
                    err,
                )
                continue
            if record is not None:
                records[day] = record
        return records

    @abstractmethod
    async def async_set(self, day: ISODate, record: DailyRecord) -> None:
        """Write the record for `day` and keep its week bucket consistent."""

    @abstractmethod
    async def async_get_week_bucket(self, week_key: WeekKey) -> WeekBucket | None:
        """Return the week bucket stored under `week_key`, or None."""

    @abstractmethod
    async def async_list_known_week_keys(self) -> set[WeekKey]:
        """Return every week key that has at least one stored day."""

    @abstractmethod
    async def async_clear(self) -> None:
        """Remove every stored record."""

    @abstractmethod
    async def async_remove(self) -> None:
        """Clear all data and delete the backing file from disk."""


# ==============================================================================
# Key-value backend (Home Assistant Storage helper)
# ==============================================================================


class KeyValueRecordStore(RecordStore):
    """Record store backed by Home Assistant's JSON Storage helper.

    Keeps the whole document in an in-memory cache and writes it back on
    every ``async_set``.
    """

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY_RECORDS
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location.
        """
        super().__init__(hass)
        self._storage_key = storage_key
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: dict[str, Any] = {}  # In-memory data cache for quick access.

    @property
    def backend(self) -> str:
        return const.STORAGE_BACKEND_KEY_VALUE

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return canonical empty data structure for fresh installations."""
        return {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION_CURRENT,
            },
            const.DATA_DAILY_RECORDS: {},
            const.DATA_WEEK_BUCKETS: {},
        }

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data cache."""
        return self._data

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        If no data exists, initializes with an empty structure.
        """
        const.LOGGER.debug("DEBUG: KeyValueRecordStore: Loading data from storage")
        existing_data = await self._store.async_load()

        if existing_data is None:
            const.LOGGER.info("INFO: No existing record storage found. Initializing")
            self._data = KeyValueRecordStore.get_default_structure()
        else:
            self._data = existing_data
            for key, default in KeyValueRecordStore.get_default_structure().items():
                self._data.setdefault(key, default)
            const.LOGGER.debug(
                "DEBUG: Loaded record storage: %s days in %s weeks",
                len(self._data[const.DATA_DAILY_RECORDS]),
                len(self._data[const.DATA_WEEK_BUCKETS]),
            )

    async def async_get(self, day: ISODate) -> DailyRecord | None:
        record = self._data.get(const.DATA_DAILY_RECORDS, {}).get(day)
        if record is None:
            return None
        return dict(record)  # type: ignore[return-value]

    async def async_set(self, day: ISODate, record: DailyRecord) -> None:
        stored: dict[str, Any] = {**record, const.DATA_RECORD_DATE: day}
        self._data[const.DATA_DAILY_RECORDS][day] = stored

        bucket = self._data[const.DATA_WEEK_BUCKETS].setdefault(
            dt_utils.week_key(day), {}
        )
        bucket[day] = {field: stored.get(field) for field in const.WEEK_BUCKET_FIELDS}

        await self.async_save()

    async def async_get_week_bucket(self, week_key: WeekKey) -> WeekBucket | None:
        bucket = self._data.get(const.DATA_WEEK_BUCKETS, {}).get(week_key)
        if bucket is None:
            return None
        return {day: dict(entry) for day, entry in bucket.items()}  # type: ignore[misc]

    async def async_list_known_week_keys(self) -> set[WeekKey]:
        return set(self._data.get(const.DATA_WEEK_BUCKETS, {}))

    async def async_save(self) -> None:
        """Save the current data structure to storage asynchronously.

        Raises:
            No exceptions raised - errors are logged but do not stop execution.
            OSError: Logged when file system issues prevent saving.
            TypeError: Logged when data contains non-serializable types.
            ValueError: Logged when data is invalid for JSON serialization.
        """
        try:
            await self._store.async_save(self._data)
            const.LOGGER.debug("DEBUG: Record data saved successfully to storage")
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save records due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
        except TypeError as err:
            const.LOGGER.error(
                "ERROR: Failed to save records due to non-serializable data: %s",
                err,
            )
        except ValueError as err:
            const.LOGGER.error(
                "ERROR: Failed to save records due to invalid data format: %s",
                err,
            )

    async def async_clear(self) -> None:
        const.LOGGER.warning("WARNING: Clearing all Pouch Tracker usage records")
        self._data = KeyValueRecordStore.get_default_structure()
        await self.async_save()

    async def async_remove(self) -> None:
        await self.async_clear()
        try:
            await self._store.async_remove()
            const.LOGGER.info(
                "INFO: Record storage file removed successfully: %s",
                self._store.path,
            )
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove record storage file %s: %s",
                self._store.path,
                err,
            )


# ==============================================================================
# Relational backend (SQLite, run in the executor)
# ==============================================================================

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS daily_records (
        date TEXT PRIMARY KEY,
        count INTEGER NOT NULL DEFAULT 0,
        daily_limit INTEGER NOT NULL DEFAULT 0,
        longest_pause INTEGER NOT NULL DEFAULT 0,
        current_session_start INTEGER,
        last_session_end INTEGER,
        next_allowed_at INTEGER
    );
"""

_SELECT_COLUMNS = (
    "date, count, daily_limit, longest_pause, "
    "current_session_start, last_session_end, next_allowed_at"
)


@contextmanager
def get_connection(db_path: str) -> Iterator[sqlite3.Connection]:
    """Context manager for database connections."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _row_to_record(row: sqlite3.Row) -> DailyRecord:
    return {
        const.DATA_RECORD_DATE: row["date"],
        const.DATA_RECORD_COUNT: row["count"],
        const.DATA_RECORD_LIMIT: row["daily_limit"],
        const.DATA_RECORD_LONGEST_PAUSE: row["longest_pause"],
        const.DATA_RECORD_CURRENT_SESSION_START: row["current_session_start"],
        const.DATA_RECORD_LAST_SESSION_END: row["last_session_end"],
        const.DATA_RECORD_NEXT_ALLOWED_AT: row["next_allowed_at"],
    }  # type: ignore[return-value]


class SqliteRecordStore(RecordStore):
    """Record store backed by a SQLite database in the config directory.

    Every call opens its own short-lived connection inside the executor, so
    no connection is shared between threads.
    """

    def __init__(self, hass: HomeAssistant, db_path: str | None = None) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            db_path: Database file path. Defaults to the HA config directory.
        """
        super().__init__(hass)
        self._db_path = db_path or hass.config.path(const.SQLITE_DB_FILENAME)

    @property
    def backend(self) -> str:
        return const.STORAGE_BACKEND_SQLITE

    async def _async_run(self, func: Any, *args: Any) -> Any:
        """Run a blocking database function in the executor.

        sqlite3 errors are re-raised as StorageReadError.
        """
        try:
            return await self.hass.async_add_executor_job(func, *args)
        except sqlite3.Error as err:
            raise StorageReadError(
                f"SQLite operation failed on {self._db_path}: {err}"
            ) from err

    # ------------------------------------------------------------------
    # Blocking helpers (executor only)
    # ------------------------------------------------------------------

    def _init_schema(self) -> None:
        with get_connection(self._db_path) as conn:
            conn.executescript(_SCHEMA)

    def _select_day(self, day: str) -> DailyRecord | None:
        with get_connection(self._db_path) as conn:
            row = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM daily_records WHERE date = ?",  # noqa: S608
                (day,),
            ).fetchone()
        return _row_to_record(row) if row else None

    def _upsert_day(self, day: str, record: DailyRecord) -> None:
        with get_connection(self._db_path) as conn:
            conn.execute(
                """
                INSERT INTO daily_records (
                    date, count, daily_limit, longest_pause,
                    current_session_start, last_session_end, next_allowed_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(date) DO UPDATE SET
                    count = excluded.count,
                    daily_limit = excluded.daily_limit,
                    longest_pause = excluded.longest_pause,
                    current_session_start = excluded.current_session_start,
                    last_session_end = excluded.last_session_end,
                    next_allowed_at = excluded.next_allowed_at
                """,
                (
                    day,
                    record.get(const.DATA_RECORD_COUNT, const.DEFAULT_ZERO),
                    record.get(const.DATA_RECORD_LIMIT, const.DEFAULT_ZERO),
                    record.get(const.DATA_RECORD_LONGEST_PAUSE, const.DEFAULT_ZERO),
                    record.get(const.DATA_RECORD_CURRENT_SESSION_START),
                    record.get(const.DATA_RECORD_LAST_SESSION_END),
                    record.get(const.DATA_RECORD_NEXT_ALLOWED_AT),
                ),
            )

    def _select_range(self, start: str, end: str) -> list[DailyRecord]:
        with get_connection(self._db_path) as conn:
            rows = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM daily_records "  # noqa: S608
                "WHERE date BETWEEN ? AND ? ORDER BY date",
                (start, end),
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def _select_dates(self) -> list[str]:
        with get_connection(self._db_path) as conn:
            rows = conn.execute("SELECT DISTINCT date FROM daily_records").fetchall()
        return [row["date"] for row in rows]

    def _delete_all(self) -> None:
        with get_connection(self._db_path) as conn:
            conn.execute("DELETE FROM daily_records")

    # ------------------------------------------------------------------
    # RecordStore interface
    # ------------------------------------------------------------------

    async def async_initialize(self) -> None:
        const.LOGGER.debug(
            "DEBUG: SqliteRecordStore: Preparing database at %s", self._db_path
        )
        await self._async_run(self._init_schema)

    async def async_get(self, day: ISODate) -> DailyRecord | None:
        return await self._async_run(self._select_day, day)

    async def async_get_many(self, days: list[ISODate]) -> dict[ISODate, DailyRecord]:
        if not days:
            return {}
        records = await self._async_run(self._select_range, min(days), max(days))
        wanted = set(days)
        return {
            record[const.DATA_RECORD_DATE]: record
            for record in records
            if record[const.DATA_RECORD_DATE] in wanted
        }

    async def async_set(self, day: ISODate, record: DailyRecord) -> None:
        await self._async_run(self._upsert_day, day, record)

    async def async_get_week_bucket(self, week_key: WeekKey) -> WeekBucket | None:
        monday = dt_utils.dt_parse_date(week_key)
        if monday is None:
            return None
        records = await self._async_run(
            self._select_range, week_key, dt_utils.week_end(monday).isoformat()
        )
        if not records:
            return None
        return {
            record[const.DATA_RECORD_DATE]: {
                field: record[field] for field in const.WEEK_BUCKET_FIELDS
            }
            for record in records
        }  # type: ignore[misc]

    async def async_list_known_week_keys(self) -> set[WeekKey]:
        dates = await self._async_run(self._select_dates)
        return {dt_utils.week_key(day) for day in dates}

    async def async_clear(self) -> None:
        const.LOGGER.warning("WARNING: Clearing all Pouch Tracker usage records")
        await self._async_run(self._delete_all)

    async def async_remove(self) -> None:
        def _unlink() -> None:
            with suppress(FileNotFoundError):
                os.remove(self._db_path)

        try:
            await self.hass.async_add_executor_job(_unlink)
            const.LOGGER.info(
                "INFO: Record database removed successfully: %s", self._db_path
            )
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove record database %s: %s", self._db_path, err
            )


async def async_create_record_store(
    hass: HomeAssistant, backend: str = const.DEFAULT_STORAGE_BACKEND
) -> RecordStore:
    """Create and initialize the record store for the configured backend.

    Args:
        hass: Home Assistant core object.
        backend: One of const.STORAGE_BACKENDS, read from the config entry.

    Raises:
        ValueError: If the backend is unknown.
    """
    store: RecordStore
    if backend == const.STORAGE_BACKEND_KEY_VALUE:
        store = KeyValueRecordStore(hass)
    elif backend == const.STORAGE_BACKEND_SQLITE:
        store = SqliteRecordStore(hass)
    else:
        raise ValueError(f"Unknown storage backend: {backend}")

    await store.async_initialize()
    const.LOGGER.info("INFO: Using '%s' record storage backend", store.backend)
    return store
