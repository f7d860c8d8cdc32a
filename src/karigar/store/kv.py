"""Durable key-value persistence for the data store.

Values are opaque strings (JSON text written by DataStore). Writes are
last-writer-wins; there is no versioning or locking across processes.
"""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Protocol

from ..logging import get_logger
from ..paths import find_project_root, var_dir


LOG = get_logger("store-kv")

DEFAULT_DB_FOLDER = "karigar"
DEFAULT_DB_FILENAME = "storage.sqlite3"
TABLE_NAME = "kv"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...


class MemoryKeyValueStore:
    """Dict-backed store for ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)


class SqliteKeyValueStore:
    """SQLite-backed key-value table.

    - Places the DB under `<repo-root>/var/karigar/storage.sqlite3` unless an
      explicit `db_path` is given.
    - Ensures schema on construction.
    """

    def __init__(self, db_path: Optional[str] = None, *, root_dir: Optional[str] = None) -> None:
        if db_path:
            self.db_path = os.path.abspath(db_path)
        else:
            root = find_project_root(root_dir)
            self.db_path = os.path.join(var_dir(root), DEFAULT_DB_FOLDER, DEFAULT_DB_FILENAME)
        os.makedirs(os.path.dirname(self.db_path), exist_ok=True)
        self._ensure_schema()
        LOG.debug(f"Key-value store ready at {self.db_path}")

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self.connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                    key        TEXT PRIMARY KEY,
                    value      TEXT NOT NULL,
                    updated_at TEXT DEFAULT (datetime('now'))
                );
                """
            )
            conn.commit()

    def get(self, key: str) -> Optional[str]:
        with self.connect() as conn:
            row = conn.execute(f"SELECT value FROM {TABLE_NAME} WHERE key = ?;", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self.connect() as conn:
            conn.execute(
                f"""
                INSERT INTO {TABLE_NAME} (key, value, updated_at) VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at;
                """,
                (key, value),
            )
            conn.commit()

    def remove(self, key: str) -> None:
        with self.connect() as conn:
            conn.execute(f"DELETE FROM {TABLE_NAME} WHERE key = ?;", (key,))
            conn.commit()

    def keys(self) -> List[str]:
        with self.connect() as conn:
            rows = conn.execute(f"SELECT key FROM {TABLE_NAME} ORDER BY key;").fetchall()
        return [r[0] for r in rows]
