"""SQLite database holding the engine's persisted key-value state."""

from __future__ import annotations

import os
import sqlite3

from tabage.persistence.database.meta_sql import MetaOperations

META_DDL = "CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT NOT NULL)"

# Bumped when the layout of stored values changes
STORE_LAYOUT_VERSION = 1
LAYOUT_KEY = "schema_version"


class Database:
    """
    One SQLite file with a single ``meta`` table of JSON-encoded values.

    Stands in for the browser's local extension storage. Usable as a context
    manager; leaving the block commits and closes.
    """

    def __init__(self, path: str):
        self.path = path
        self.conn = self._connect(path)
        self.conn.execute(META_DDL)
        self.conn.commit()

        self.meta = MetaOperations(self.conn)
        if self.meta.get(LAYOUT_KEY) is None:
            self.meta.set_many({LAYOUT_KEY: str(STORE_LAYOUT_VERSION)})

    @staticmethod
    def _connect(path: str) -> sqlite3.Connection:
        if path == ":memory:":
            return sqlite3.connect(path, check_same_thread=False)

        parent = os.path.dirname(path) or "."
        try:
            os.makedirs(parent, exist_ok=True)
            conn = sqlite3.connect(path, check_same_thread=False)
        except (OSError, sqlite3.OperationalError) as exc:
            raise RuntimeError(f"Cannot open tabage database at '{path}': {exc}") from exc
        conn.execute("PRAGMA journal_mode=WAL;")
        return conn

    @property
    def layout_version(self) -> int:
        return int(self.meta.get(LAYOUT_KEY) or STORE_LAYOUT_VERSION)

    def close(self):
        self.conn.commit()
        self.conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
