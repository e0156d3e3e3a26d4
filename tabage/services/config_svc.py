#!/usr/bin/env python3
# ======================================================================
#  Config Service - Configuration loading and caching
#  - Loads defaults, YAML, env vars, then user settings from the KV store
#  - Validates bucket definitions and schedule, falling back to defaults
#  - Provides reload() for settings-changed messages
# ======================================================================

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import yaml

from tabage.components.buckets.bucket_config_comp import (
    DEFAULT_BUCKETS,
    load_bucket_definitions,
    parse_bucket_definitions,
)
from tabage.helpers.dto.config_dto import EngineSettings
from tabage.helpers.exceptions import ConfigInvalidError

if TYPE_CHECKING:
    from tabage.host.host_protocols import KeyValueStore


# ======================================================================
# Internal Constants (Not User-Configurable)
# ======================================================================
INTERNAL_FLUSH_DEBOUNCE_S = 5.0  # Identity store write coalescing window
INTERNAL_ALARM_NAME = "scheduledTask"
INTERNAL_DEFAULT_HOUR = 4
INTERNAL_DEFAULT_MINUTE = 0
INTERNAL_HOST = "127.0.0.1"
INTERNAL_PORT = 8357

# KeyValueStore keys written by the settings surface
KEY_BUCKETS = "rootGroups"
KEY_HOUR = "scheduledHour"
KEY_MINUTE = "scheduledMinute"
KEY_SORT_ON_STARTUP = "sortOnStartup"
SETTINGS_KEYS = [KEY_BUCKETS, KEY_HOUR, KEY_MINUTE, KEY_SORT_ON_STARTUP]

_ENV_PREFIX = "TABAGE_"
_ENV_KEYS = {
    "db_path": str,
    "scheduled_hour": int,
    "scheduled_minute": int,
    "sort_on_startup": bool,
}


def validate_schedule(hour: Any, minute: Any) -> tuple[int, int, list[str]]:
    """
    Coerce a stored hour/minute pair, replacing bad values with 04:00 defaults.

    Returns:
        Tuple of (hour, minute, problems)
    """
    problems: list[str] = []

    def _coerce(value: Any, upper: int, default: int, label: str) -> int:
        if value is None or value == "":
            return default
        try:
            number = int(value)
        except (TypeError, ValueError):
            problems.append(f"{label} must be a whole number, got '{value}'")
            return default
        if isinstance(value, bool) or not 0 <= number <= upper:
            problems.append(f"{label} must be between 0 and {upper}, got {value}")
            return default
        return number

    h = _coerce(hour, 23, INTERNAL_DEFAULT_HOUR, "Hour")
    m = _coerce(minute, 59, INTERNAL_DEFAULT_MINUTE, "Minute")
    return h, m, problems


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


class ConfigService:
    """
    Service for loading and caching engine configuration.

    Composition order (later wins):
      1) Built-in defaults
      2) /etc/tabage/config.yaml, ./config/config.yaml, $TABAGE_CONFIG_PATH
      3) Environment variables (TABAGE_DB_PATH, TABAGE_SCHEDULED_HOUR, ...)
      4) User settings in the KeyValueStore (skipped with TABAGE_IGNORE_STORE_CONFIG=true)

    Invalid user settings never stop the engine: defaults are used and the
    problems are reported through ``EngineSettings.config_errors``.
    """

    def __init__(self, kv: KeyValueStore | None = None) -> None:
        self._kv = kv
        self._settings: EngineSettings | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def settings(self) -> EngineSettings:
        """Last loaded settings (file/env layers only if load() has not run yet)."""
        if self._settings is None:
            self._settings = self._validate(self._compose_static())
        return self._settings

    async def load(self) -> EngineSettings:
        """
        Compose settings from every layer, including the KeyValueStore.

        Raises:
            StorageError: The store could not be read
        """
        cfg = self._compose_static()
        if self._kv is not None and os.getenv("TABAGE_IGNORE_STORE_CONFIG", "").lower() != "true":
            stored = await self._kv.get(SETTINGS_KEYS)
            self._merge_stored(cfg, stored)
        elif self._kv is not None:
            self._logger.warning("Ignoring stored settings (TABAGE_IGNORE_STORE_CONFIG=true)")

        self._settings = self._validate(cfg)
        for problem in self._settings.config_errors:
            self._logger.warning("Config problem: %s", problem)
        return self._settings

    async def reload(self) -> EngineSettings:
        self._logger.info("Reloading configuration from all sources")
        return await self.load()

    async def save_user_settings(
        self,
        buckets: list[dict[str, Any]] | None = None,
        hour: int | None = None,
        minute: int | None = None,
        sort_on_startup: bool | None = None,
    ) -> None:
        """
        Validate and store settings edited by the user. Only given values are written.

        Raises:
            ConfigInvalidError: Any value is invalid; nothing is written
            StorageError: The store could not be written
        """
        if self._kv is None:
            raise ConfigInvalidError(["No settings store configured"])

        problems: list[str] = []
        values: dict[str, Any] = {}
        if buckets is not None:
            try:
                values[KEY_BUCKETS] = [d.to_dict() for d in parse_bucket_definitions(buckets)]
            except ConfigInvalidError as exc:
                problems.extend(exc.problems)
        if hour is not None or minute is not None:
            current = self.settings
            h, m, schedule_problems = validate_schedule(
                hour if hour is not None else current.scheduled_hour,
                minute if minute is not None else current.scheduled_minute,
            )
            problems.extend(schedule_problems)
            values[KEY_HOUR] = h
            values[KEY_MINUTE] = m
        if sort_on_startup is not None:
            values[KEY_SORT_ON_STARTUP] = bool(sort_on_startup)

        if problems:
            raise ConfigInvalidError(problems)
        if values:
            await self._kv.set(values)
            self._logger.info("Saved user settings: %s", sorted(values))

    # ----------------------------------------------------------------------
    # Private composition logic
    # ----------------------------------------------------------------------

    def _default_config(self) -> dict[str, Any]:
        return {
            "db_path": "./config/tabage.db",
            "buckets": None,  # None → DEFAULT_BUCKETS
            "scheduled_hour": INTERNAL_DEFAULT_HOUR,
            "scheduled_minute": INTERNAL_DEFAULT_MINUTE,
            "sort_on_startup": True,
        }

    def _compose_static(self) -> dict[str, Any]:
        cfg = self._default_config()
        cfg.update(self._load_yaml("/etc/tabage/config.yaml"))
        cfg.update(self._load_yaml(os.path.join(os.getcwd(), "config", "config.yaml")))
        env_path = os.getenv("TABAGE_CONFIG_PATH")
        if env_path:
            cfg.update(self._load_yaml(env_path))
        self._apply_env_overrides(cfg)
        return cfg

    def _load_yaml(self, path: str) -> dict[str, Any]:
        """Load a YAML mapping; returns {} if missing or unreadable."""
        if not path or not os.path.exists(path):
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            self._logger.warning("Ignoring unreadable config file %s: %s", path, exc)
            return {}
        if not isinstance(data, dict):
            self._logger.warning("Ignoring config file %s: top level is not a mapping", path)
            return {}
        return data

    def _apply_env_overrides(self, cfg: dict[str, Any]) -> None:
        for key, kind in _ENV_KEYS.items():
            raw = os.getenv(f"{_ENV_PREFIX}{key.upper()}")
            if raw is None:
                continue
            cfg[key] = _parse_bool(raw) if kind is bool else raw

    def _merge_stored(self, cfg: dict[str, Any], stored: dict[str, Any]) -> None:
        if KEY_BUCKETS in stored:
            cfg["buckets"] = stored[KEY_BUCKETS]
        if KEY_HOUR in stored:
            cfg["scheduled_hour"] = stored[KEY_HOUR]
        if KEY_MINUTE in stored:
            cfg["scheduled_minute"] = stored[KEY_MINUTE]
        if KEY_SORT_ON_STARTUP in stored:
            cfg["sort_on_startup"] = stored[KEY_SORT_ON_STARTUP]

    def _validate(self, cfg: dict[str, Any]) -> EngineSettings:
        definitions, problems = load_bucket_definitions(cfg.get("buckets"))
        hour, minute, schedule_problems = validate_schedule(cfg.get("scheduled_hour"), cfg.get("scheduled_minute"))
        return EngineSettings(
            bucket_definitions=definitions or list(DEFAULT_BUCKETS),
            scheduled_hour=hour,
            scheduled_minute=minute,
            sort_on_startup=_parse_bool(cfg.get("sort_on_startup", True)),
            db_path=str(cfg.get("db_path") or "./config/tabage.db"),
            config_errors=problems + schedule_problems,
        )
