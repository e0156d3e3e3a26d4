"""CLI Bootstrap Service - service container for CLI commands.

CLI commands run in their own process and read the same SQLite store the
engine writes. They get their service instances here instead of building an
Application (which would attach to a host and arm alarms).
"""

from __future__ import annotations

import logging

from tabage.components.tracking.identity_store_comp import IdentityStore
from tabage.persistence.db import Database
from tabage.persistence.kv_store import SqliteKeyValueStore
from tabage.services.config_svc import ConfigService

logger = logging.getLogger(__name__)


def get_database() -> Database:
    """Open the Database at the configured db_path (YAML and env vars respected)."""
    db_path = ConfigService().settings.db_path
    logger.debug("[CLI Bootstrap] Opening database at %s", db_path)
    return Database(db_path)


def get_config_service(db: Database | None = None) -> ConfigService:
    """ConfigService that also reads the user settings stored in ``db``."""
    return ConfigService(SqliteKeyValueStore(db or get_database()))


def get_identity_store(db: Database | None = None) -> IdentityStore:
    """IdentityStore over ``db``. Call ``await store.load()`` before reading entries."""
    return IdentityStore(SqliteKeyValueStore(db or get_database()))
