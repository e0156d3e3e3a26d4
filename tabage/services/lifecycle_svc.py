"""
LifecycleService - orchestrates startup, host events, the daily alarm and settings reloads.

State machine:
    UNINITIALIZED → LOADING → READY
    LOADING → UNINITIALIZED when the store cannot be read

Resource events that arrive before READY are queued in arrival order and
replayed once loading finishes. Replaying is safe because recording a tab that
is already tracked returns the existing entry.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from tabage.components.buckets.age_classifier_comp import summarize_entries
from tabage.helpers.dto.lifecycle_dto import EngineStatus, PassReport
from tabage.components.tracking.fingerprint_comp import agrees_with, fingerprint_matches
from tabage.components.tracking.identity_store_comp import NO_REF
from tabage.helpers.dto.tracking_dto import Fingerprint
from tabage.helpers.exceptions import HostOperationFailedError, NotFoundError, StorageError
from tabage.helpers.logging_helper import clear_log_context, set_log_context
from tabage.helpers.time_helper import now_ms
from tabage.services.config_svc import INTERNAL_ALARM_NAME
from tabage.workflows import (
    ensure_bucket_containers_workflow,
    reclaim_orphans_workflow,
    reconcile_buckets_workflow,
    seed_store_workflow,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable

    from tabage.components.buckets.bucket_reconciler_comp import BucketReconciler
    from tabage.components.tracking.fingerprint_comp import FingerprintResolver
    from tabage.components.tracking.identity_store_comp import IdentityStore
    from tabage.helpers.dto.buckets_dto import EntrySummary
    from tabage.helpers.dto.config_dto import EngineSettings
    from tabage.helpers.dto.host_dto import Resource
    from tabage.host.host_protocols import (
        ContainerService,
        MessageBus,
        ResourceDirectory,
        ResourceWatch,
        TimerService,
    )
    from tabage.services.config_svc import ConfigService
    from tabage.services.scheduler_svc import SchedulerService

logger = logging.getLogger(__name__)

SETTINGS_MESSAGE_TYPES = {"settings_changed", "reloadOptions"}

# Host failures a single startup step or pass may hit without stopping the engine
HOST_ERRORS = (HostOperationFailedError, NotFoundError)


class LifecycleState(Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


class LifecycleService:
    """
    Single owner of engine state transitions.

    Implements the ResourceEventListener protocol; ``attach()`` also registers
    the alarm and message callbacks with the host.
    """

    def __init__(
        self,
        store: IdentityStore,
        resolver: FingerprintResolver,
        reconciler: BucketReconciler,
        config: ConfigService,
        scheduler: SchedulerService,
        directory: ResourceDirectory,
        containers: ContainerService,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.reconciler = reconciler
        self.config = config
        self.scheduler = scheduler
        self.directory = directory
        self.containers = containers

        self.state = LifecycleState.UNINITIALIZED
        self.last_pass: PassReport | None = None
        self._deferred: list[tuple[str, tuple[Any, ...]]] = []
        # Seed tabs opened to keep empty bucket containers alive are not aged
        self._untracked_refs: set[int] = set()
        self._pass_lock = asyncio.Lock()

    def attach(self, watch: ResourceWatch, timer: TimerService, bus: MessageBus) -> None:
        """Register with the host. Call once, before the host starts delivering events."""
        watch.add_resource_listener(self)
        timer.add_alarm_listener(self.on_alarm)
        bus.add_message_listener(self.on_message)

    @property
    def is_ready(self) -> bool:
        return self.state is LifecycleState.READY

    @property
    def untracked_refs(self) -> frozenset[int]:
        return frozenset(self._untracked_refs)

    def describe_entries(self, now: int | None = None) -> list[EntrySummary]:
        """Tracked entries with their current age and bucket, oldest first."""
        return summarize_entries(
            self.store.all(),
            self.config.settings.bucket_definitions,
            now if now is not None else now_ms(),
            self.reconciler.tz,
        )

    def status(self) -> EngineStatus:
        return EngineStatus(
            state=self.state.value,
            entry_count=len(self.store),
            deferred_events=len(self._deferred),
            flush_pending=self.store.flush_pending,
            last_pass=self.last_pass,
            config_errors=list(self.config.settings.config_errors),
        )

    # ------------------------------------------------------------------
    # Startup / shutdown
    # ------------------------------------------------------------------

    async def start(self, reason: str = "startup") -> bool:
        """
        Load state, reclaim orphans, optionally sort, and arm the daily alarm.

        Args:
            reason: "install" on first install (seeds the store), "startup" otherwise

        Returns:
            True when the engine reached READY
        """
        if self.state is not LifecycleState.UNINITIALIZED:
            logger.debug("Ignoring start(%s) in state %s", reason, self.state.value)
            return self.is_ready

        self.state = LifecycleState.LOADING
        set_log_context(phase=reason)
        try:
            try:
                settings = await self.config.load()
                await self.store.load()
            except StorageError as exc:
                logger.error("Could not load stored state, staying uninitialized: %s", exc)
                self._fail_start()
                return False

            # Host failures past this point are logged per step; the engine still becomes ready
            await self._contained(
                "orphan reclamation",
                reclaim_orphans_workflow(self.store, self.resolver, self.directory),
            )

            if reason == "install" and len(self.store) == 0:
                await self._contained("install seeding", seed_store_workflow(self.store, self.directory))

            await self._contained("bucket containers", self._ensure_containers(settings))

            if settings.sort_on_startup:
                await self._contained("startup sort", self._run_pass_locked(settings, reason=reason))

            self.scheduler.schedule_daily(settings.scheduled_hour, settings.scheduled_minute)
            self.state = LifecycleState.READY
            logger.info("Engine ready with %d tracked tab(s)", len(self.store))
        except BaseException:
            self._fail_start()
            raise
        finally:
            clear_log_context()

        await self._replay_deferred()
        return True

    def _fail_start(self) -> None:
        """Drop back to UNINITIALIZED and arm the alarm that retries start()."""
        self.state = LifecycleState.UNINITIALIZED
        settings = self.config.settings
        delay = self.scheduler.schedule_daily(settings.scheduled_hour, settings.scheduled_minute)
        logger.info("Start retry armed in %.0f s", delay)

    async def _contained(self, step: str, work: Awaitable[Any]) -> None:
        try:
            await work
        except HOST_ERRORS as exc:
            logger.warning("Startup step '%s' failed, continuing: %s", step, exc)

    async def shutdown(self) -> None:
        """Write pending entries immediately."""
        await self.store.flush()
        self.store.close()
        logger.info("Engine stopped, %d tracked tab(s) saved", len(self.store))

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    async def run_pass(self, reason: str = "manual", now: int | None = None) -> PassReport:
        """Reclaim orphans, then regroup every tracked tab by age."""
        return await self._run_pass_locked(self.config.settings, reason=reason, now=now)

    async def _run_pass_locked(
        self,
        settings: EngineSettings,
        reason: str,
        now: int | None = None,
    ) -> PassReport:
        async with self._pass_lock:
            sweep = await reclaim_orphans_workflow(self.store, self.resolver, self.directory)
            result = await reconcile_buckets_workflow(
                self.store,
                self.reconciler,
                self.directory,
                settings.bucket_definitions,
                now=now,
            )
            self.last_pass = PassReport(sweep=sweep, reconcile=result, finished_at=now_ms(), reason=reason)
            logger.info(
                "Pass (%s) done: %d orphan(s) removed, %d tab(s) moved, %d container(s) created",
                reason,
                sweep.removed,
                result.moved,
                result.created_containers,
            )
            return self.last_pass

    async def _ensure_containers(self, settings: EngineSettings) -> None:
        seeds = await ensure_bucket_containers_workflow(settings.bucket_definitions, self.directory, self.containers)
        if seeds:
            self._untrack(seeds.values())

    def _untrack(self, refs: Iterable[int]) -> None:
        refs = set(refs)
        self._untracked_refs.update(refs)
        for entry in self.store.all():
            if entry.transient_ref in refs:
                self.store.forget(entry.id)

    # ------------------------------------------------------------------
    # Resource events (ResourceEventListener)
    # ------------------------------------------------------------------

    async def on_resource_created(self, resource: Resource) -> None:
        if not self.is_ready:
            self._defer("created", resource.ref)
            return
        if resource.ref in self._untracked_refs:
            return
        dead_refs = await self._dead_fingerprint_refs(resource)
        # The host may have delivered other events while the refs were checked
        if resource.ref in self._untracked_refs:
            return
        self.store.record(resource, dead_refs=dead_refs)

    async def _dead_fingerprint_refs(self, resource: Resource) -> set[int]:
        """Refs of fingerprint-matching entries whose tab the host no longer has."""
        candidate = Fingerprint.of(resource)
        matching = [
            entry
            for entry in self.store.all()
            if entry.transient_ref not in (NO_REF, resource.ref) and fingerprint_matches(entry.fingerprint, candidate)
        ]
        dead: set[int] = set()
        for entry in matching:
            try:
                holder = await self.directory.get_resource(entry.transient_ref)
            except NotFoundError:
                dead.add(entry.transient_ref)
                continue
            # A ref handed to an unrelated tab after a restart counts as gone
            if not agrees_with(entry, holder):
                dead.add(entry.transient_ref)
        return dead

    async def on_resource_removed(self, ref: int) -> None:
        if not self.is_ready:
            self._defer("removed", ref)
            return
        self._untracked_refs.discard(ref)
        for entry in self.store.all():
            if entry.transient_ref == ref:
                self.store.forget(entry.id)

    async def on_resource_updated(self, ref: int, resource: Resource, complete: bool) -> None:
        # Only a finished navigation carries a stable locator
        if not complete:
            return
        if not self.is_ready:
            self._defer("updated", ref)
            return
        for entry in self.store.all():
            if entry.transient_ref == ref and entry.fingerprint.locator != resource.locator:
                self.store.repair(entry.id, ref, locator=resource.locator)

    def _defer(self, kind: str, ref: int) -> None:
        self._deferred.append((kind, (ref,)))
        logger.debug("Deferred %s event for tab %s (state %s)", kind, ref, self.state.value)

    async def _replay_deferred(self) -> None:
        events, self._deferred = self._deferred, []
        if events:
            logger.info("Replaying %d event(s) received while loading", len(events))
        for kind, (ref,) in events:
            if kind == "removed":
                await self.on_resource_removed(ref)
                continue
            # The tab may have changed or closed since the event; use its current state
            try:
                resource = await self.directory.get_resource(ref)
            except NotFoundError:
                logger.debug("Tab %s from deferred %s event is gone", ref, kind)
                continue
            if kind == "created":
                await self.on_resource_created(resource)
            else:
                await self.on_resource_updated(ref, resource, complete=True)

    # ------------------------------------------------------------------
    # Alarm and message callbacks
    # ------------------------------------------------------------------

    async def on_alarm(self, name: str) -> None:
        if name != INTERNAL_ALARM_NAME:
            return
        if self.state is LifecycleState.UNINITIALIZED:
            logger.info("Alarm fired before the engine loaded, retrying start")
            previous = self.last_pass
            if not await self.start("startup"):
                return
            if self.last_pass is not previous:
                # start() sorted and armed the next alarm already
                return
        elif self.state is LifecycleState.LOADING:
            logger.debug("Alarm fired while loading, start() will reschedule")
            return

        settings = self.config.settings
        set_log_context(phase="alarm")
        try:
            await self._run_pass_locked(settings, reason="scheduled")
        except HOST_ERRORS as exc:
            logger.warning("Scheduled pass failed, next attempt at the next alarm: %s", exc)
        finally:
            clear_log_context()
            self.scheduler.schedule_daily(settings.scheduled_hour, settings.scheduled_minute)

    async def on_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        kind = message.get("type") if isinstance(message, dict) else None
        if kind not in SETTINGS_MESSAGE_TYPES:
            return None
        if not self.is_ready:
            # start() reads the settings fresh anyway
            return {"ok": False, "state": self.state.value}

        try:
            settings = await self.config.reload()
        except StorageError as exc:
            logger.error("Could not reload settings: %s", exc)
            return {"ok": False, "error": str(exc)}

        self.scheduler.schedule_daily(settings.scheduled_hour, settings.scheduled_minute)
        await self._ensure_containers(settings)
        return {"ok": True, "config_errors": list(settings.config_errors)}
