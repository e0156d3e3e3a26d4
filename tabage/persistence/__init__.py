"""
Persistence package.
"""

from .db import STORE_LAYOUT_VERSION, Database
from .kv_store import InMemoryKeyValueStore, SqliteKeyValueStore

__all__ = [
    "STORE_LAYOUT_VERSION",
    "Database",
    "InMemoryKeyValueStore",
    "SqliteKeyValueStore",
]
