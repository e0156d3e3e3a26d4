"""Trailing-edge debounce for coalescing bursts of writes into one."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from tabage.helpers.exceptions import StorageError

logger = logging.getLogger(__name__)


class DebouncedAction:
    """
    Run an async action once, ``delay_s`` after the last ``trigger()``.

    Every trigger restarts the quiet window. A run that is already writing is
    never cancelled; a trigger during a write arms a fresh window instead.
    If the action fails with StorageError the action stays dirty and the next
    trigger or ``flush()`` retries it.

    Outside a running event loop ``trigger()`` only marks the action dirty;
    the next trigger inside a loop or an explicit ``flush()`` picks it up.
    """

    def __init__(self, action: Callable[[], Awaitable[None]], delay_s: float, name: str = "flush") -> None:
        self._action = action
        self.delay_s = delay_s
        self.name = name
        self._task: asyncio.Task | None = None
        self._dirty = False
        self._firing = False
        self.runs = 0

    @property
    def pending(self) -> bool:
        return self._dirty

    def trigger(self) -> None:
        self._dirty = True
        if self._task is not None and not self._task.done() and not self._firing:
            self._task.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("[%s] No running loop, deferring until next flush", self.name)
            self._task = None
            return
        self._task = loop.create_task(self._run_after_delay(), name=f"debounce:{self.name}")

    async def flush(self) -> None:
        """Run the action now if anything is pending, cancelling the timer."""
        if self._task is not None and not self._task.done() and not self._firing:
            self._task.cancel()
        self._task = None
        if self._dirty:
            await self._fire()

    def cancel(self) -> None:
        """Drop the pending timer without running the action."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run_after_delay(self) -> None:
        await asyncio.sleep(self.delay_s)
        await self._fire()

    async def _fire(self) -> None:
        # Cleared before awaiting so triggers during the write mark it dirty again
        self._dirty = False
        self._firing = True
        try:
            await self._action()
            self.runs += 1
        except StorageError as exc:
            self._dirty = True
            logger.error("[%s] Debounced write failed, will retry on next trigger: %s", self.name, exc)
        finally:
            self._firing = False
