"""KeyValueStore implementations: SQLite-backed and in-memory."""

from __future__ import annotations

import copy
import json
import logging
import sqlite3
from typing import Any

from tabage.helpers.exceptions import StorageError
from tabage.persistence.db import Database

logger = logging.getLogger(__name__)


class SqliteKeyValueStore:
    """Stores each key as one JSON document in the ``meta`` table."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def get(self, keys: list[str]) -> dict[str, Any]:
        try:
            raw = self.db.meta.get_many(keys)
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read {keys}: {exc}") from exc
        result: dict[str, Any] = {}
        for key, text in raw.items():
            try:
                result[key] = json.loads(text)
            except json.JSONDecodeError as exc:
                raise StorageError(f"Stored value for '{key}' is not valid JSON: {exc}") from exc
        return result

    async def set(self, values: dict[str, Any]) -> None:
        try:
            encoded = {key: json.dumps(value) for key, value in values.items()}
            self.db.meta.set_many(encoded)
        except (sqlite3.Error, TypeError, ValueError) as exc:
            raise StorageError(f"Failed to write {sorted(values)}: {exc}") from exc
        logger.debug("Stored keys %s", sorted(values))


class InMemoryKeyValueStore:
    """Dict-backed store. ``writes`` records every ``set`` call for inspection."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = copy.deepcopy(initial or {})
        self.writes: list[dict[str, Any]] = []
        self.fail_reads = False
        self.fail_writes = False

    async def get(self, keys: list[str]) -> dict[str, Any]:
        if self.fail_reads:
            raise StorageError("Simulated read failure")
        return {key: copy.deepcopy(self.data[key]) for key in keys if key in self.data}

    async def set(self, values: dict[str, Any]) -> None:
        if self.fail_writes:
            raise StorageError("Simulated write failure")
        snapshot = copy.deepcopy(values)
        self.data.update(snapshot)
        self.writes.append(snapshot)
