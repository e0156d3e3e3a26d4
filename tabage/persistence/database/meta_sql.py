"""Meta key-value store operations."""

import sqlite3


class MetaOperations:
    """Operations for the meta key-value store table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def get(self, key: str) -> str | None:
        """Get a metadata value by key."""
        cur = self.conn.execute("SELECT value FROM meta WHERE key=?", (key,))
        row = cur.fetchone()
        return row[0] if row else None

    def get_many(self, keys: list[str]) -> dict[str, str]:
        """Get values for several keys in one query. Missing keys are omitted."""
        if not keys:
            return {}
        placeholders = ",".join("?" for _ in keys)
        cur = self.conn.execute(f"SELECT key, value FROM meta WHERE key IN ({placeholders})", tuple(keys))
        return {row[0]: row[1] for row in cur.fetchall()}

    def set_many(self, values: dict[str, str]) -> None:
        """Replace several key-value pairs in a single transaction."""
        with self.conn:
            self.conn.executemany(
                "INSERT OR REPLACE INTO meta(key, value) VALUES(?,?)",
                list(values.items()),
            )

