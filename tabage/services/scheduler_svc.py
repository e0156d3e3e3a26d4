"""
SchedulerService - keeps the daily sort alarm armed.

The host's timer outlives the engine process, so every (re)schedule clears the
previous alarm first and only one ``scheduledTask`` alarm ever exists.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from tabage.helpers.time_helper import next_daily_run_delay_s
from tabage.services.config_svc import INTERNAL_ALARM_NAME

if TYPE_CHECKING:
    from tabage.host.host_protocols import TimerService

logger = logging.getLogger(__name__)


class SchedulerService:
    """Arms the host alarm for the next local occurrence of the configured time."""

    def __init__(self, timer: TimerService, alarm_name: str = INTERNAL_ALARM_NAME) -> None:
        self.timer = timer
        self.alarm_name = alarm_name
        self.next_delay_s: float | None = None

    def schedule_daily(self, hour: int, minute: int, now: datetime | None = None) -> float:
        """
        Replace the alarm with one firing at the next hour:minute.

        Returns:
            Delay in seconds until the alarm fires
        """
        delay = next_daily_run_delay_s(hour, minute, now)
        self.timer.clear_alarm(self.alarm_name)
        self.timer.create_alarm(self.alarm_name, delay)
        self.next_delay_s = delay
        logger.info("Next sort at %02d:%02d (in %.0f s)", hour, minute, delay)
        return delay

    def cancel(self) -> None:
        self.timer.clear_alarm(self.alarm_name)
        self.next_delay_s = None
