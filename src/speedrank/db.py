# Copyright (c) Syntropy Systems
"""Key-value storage backends: SQLite (WAL mode) and in-memory."""
from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol

from speedrank.errors import StorageError

if TYPE_CHECKING:
    from pathlib import Path

# SQL schema for speedrank database
SCHEMA = """
-- Key-value table holding persisted snapshots
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT (datetime('now'))
);
"""


class KeyValueStore(Protocol):
    """Minimal persistence capability consumed by the result store.

    Implementations raise StorageError when the backend fails.
    """

    def read(self, key: str) -> str | None:
        ...

    def write(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


def get_connection(db_path: Path) -> sqlite3.Connection:
    """
    Get a database connection with proper settings for concurrent access.

    - isolation_level=None for autocommit of single statements
    - WAL mode for concurrent readers/writers
    - busy_timeout to wait for locks instead of failing immediately
    - Row factory for dict-like access
    """
    conn = sqlite3.connect(str(db_path), timeout=5.0, isolation_level=None)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path) -> None:
    """Initialize the database with the schema."""
    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA)
    finally:
        conn.close()


def utcnow() -> str:
    """Get current UTC time as ISO format string."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class SQLiteKeyValueStore:
    """KeyValueStore backed by a single SQLite table.

    A connection is opened per operation so the store can be shared
    between threads.
    """

    db_path: Path

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        conn = get_connection(self.db_path)
        if not self._initialized:
            try:
                conn.executescript(SCHEMA)
            except sqlite3.Error:
                conn.close()
                raise
            self._initialized = True
        return conn

    def read(self, key: str) -> str | None:
        """Return the stored value for key, or None if absent."""
        try:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT value FROM kv WHERE key = ?",
                    (key,),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            msg = f"Failed to read {key!r} from {self.db_path}: {e}"
            raise StorageError(msg) from e

        return row["value"] if row else None

    def write(self, key: str, value: str) -> None:
        """Insert or replace the value stored under key."""
        try:
            conn = self._connect()
            try:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE
                    SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, value, utcnow()),
                )
            finally:
                conn.close()
        except sqlite3.Error as e:
            msg = f"Failed to write {key!r} to {self.db_path}: {e}"
            raise StorageError(msg) from e

    def delete(self, key: str) -> None:
        """Remove key. Deleting a missing key is not an error."""
        try:
            conn = self._connect()
            try:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            finally:
                conn.close()
        except sqlite3.Error as e:
            msg = f"Failed to delete {key!r} from {self.db_path}: {e}"
            raise StorageError(msg) from e

    def updated_at(self, key: str) -> str | None:
        """Return when key was last written, or None if absent."""
        try:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT updated_at FROM kv WHERE key = ?",
                    (key,),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            msg = f"Failed to read {key!r} from {self.db_path}: {e}"
            raise StorageError(msg) from e

        return row["updated_at"] if row else None


class MemoryKeyValueStore:
    """KeyValueStore kept in process memory."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            _ = self._data.pop(key, None)
