"""
Application composition root and dependency injection container.

The Application wires the identity store, resolver, reconciler and services to
one host and one key-value store, and owns their lifecycle.

Architecture:
- Application owns: config, database (when it opens one), store, services
- Services are registered via register_service() in __init__
- Access services via: application.get_service("name") or application.services["name"]
- Interfaces (CLI, API) receive an Application instead of building services themselves
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import tzinfo
from typing import Any

from tabage.components.buckets.bucket_reconciler_comp import BucketReconciler
from tabage.components.tracking.fingerprint_comp import FingerprintResolver
from tabage.components.tracking.identity_store_comp import IdentityStore
from tabage.helpers.time_helper import now_ms
from tabage.host.host_protocols import KeyValueStore
from tabage.host.memory_host import InMemoryHost
from tabage.persistence.db import Database
from tabage.persistence.kv_store import SqliteKeyValueStore
from tabage.services.config_svc import INTERNAL_FLUSH_DEBOUNCE_S, INTERNAL_HOST, INTERNAL_PORT, ConfigService
from tabage.services.lifecycle_svc import LifecycleService
from tabage.services.scheduler_svc import SchedulerService


# ----------------------------------------------------------------------
#  Application Class - Composition Root & DI Container
# ----------------------------------------------------------------------
class Application:
    """
    Composition root for one engine instance.

    Args:
        host: Object implementing every host capability protocol
              (an InMemoryHost sandbox when None)
        kv: Key-value store (SQLite at the configured db_path when None)
        debounce_s: Identity store write coalescing window
        clock: Epoch-ms clock used for creation times
        tz: Timezone for calendar-day ages (system local when None)
    """

    def __init__(
        self,
        host: Any | None = None,
        kv: KeyValueStore | None = None,
        debounce_s: float = INTERNAL_FLUSH_DEBOUNCE_S,
        clock: Callable[[], int] = now_ms,
        tz: tzinfo | None = None,
    ) -> None:
        self.host = host if host is not None else InMemoryHost()

        self.db: Database | None = None
        if kv is None:
            db_path = ConfigService().settings.db_path
            self.db = Database(db_path)
            kv = SqliteKeyValueStore(self.db)
        self.kv = kv

        self.api_host: str = INTERNAL_HOST
        self.api_port: int = INTERNAL_PORT

        self.services: dict[str, Any] = {}

        config = ConfigService(self.kv)
        store = IdentityStore(self.kv, debounce_s=debounce_s, clock=clock)
        resolver = FingerprintResolver(store)
        reconciler = BucketReconciler(self.host, resolver, tz=tz)
        scheduler = SchedulerService(self.host)
        lifecycle = LifecycleService(
            store=store,
            resolver=resolver,
            reconciler=reconciler,
            config=config,
            scheduler=scheduler,
            directory=self.host,
            containers=self.host,
        )

        self.register_service("config", config)
        self.register_service("store", store)
        self.register_service("resolver", resolver)
        self.register_service("reconciler", reconciler)
        self.register_service("scheduler", scheduler)
        self.register_service("lifecycle", lifecycle)

        self._attached = False
        self._running = False

    def register_service(self, name: str, service: Any) -> None:
        self.services[name] = service

    def get_service(self, name: str) -> Any:
        """
        Get a service from the DI container.

        Raises:
            KeyError: If service not found
        """
        if name not in self.services:
            raise KeyError(f"Service '{name}' not found. Available services: {list(self.services.keys())}")
        return self.services[name]

    @property
    def lifecycle(self) -> LifecycleService:
        return self.services["lifecycle"]

    @property
    def store(self) -> IdentityStore:
        return self.services["store"]

    @property
    def config(self) -> ConfigService:
        return self.services["config"]

    @property
    def is_ready(self) -> bool:
        return self.lifecycle.is_ready

    async def start(self, reason: str = "startup") -> bool:
        """
        Attach to the host and bring the engine to READY.

        Returns:
            True if the engine is ready; False if stored state could not be read
            (the next alarm retries)
        """
        if self._running:
            logging.warning("[Application] Already running, ignoring start() call")
            return self.lifecycle.is_ready

        if not self._attached:
            self.lifecycle.attach(self.host, self.host, self.host)
            self._attached = True

        logging.info("[Application] Starting (%s)...", reason)
        self._running = True
        ready = await self.lifecycle.start(reason)
        if ready:
            logging.info("[Application] Started")
        else:
            logging.warning("[Application] Not ready, will retry on the next alarm")
        return ready

    async def stop(self) -> None:
        """Flush pending state and release the database."""
        logging.info("[Application] Stopping...")
        await self.lifecycle.shutdown()
        if self.db is not None:
            self.db.close()
            self.db = None
        self._running = False
        logging.info("[Application] Stopped")
