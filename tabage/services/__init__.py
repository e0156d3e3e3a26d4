"""Services layer - long-lived objects that own state and wire workflows to the host.

Services:
- ConfigService: layered configuration and user settings
- SchedulerService: the daily sort alarm
- LifecycleService: state machine, host event handling, passes
"""

from .config_svc import ConfigService
from .lifecycle_svc import LifecycleService, LifecycleState
from .scheduler_svc import SchedulerService

__all__ = [
    "ConfigService",
    "LifecycleService",
    "LifecycleState",
    "SchedulerService",
]
