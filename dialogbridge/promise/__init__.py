"""Promise engine: futures settled on later turns of a cooperative event loop."""

from .deferred import Deferred
from .promise import Promise, PromiseState, as_thenable, is_thenable
from .retry import RetryPolicy, with_retry
from .scheduler import AsyncioScheduler, ManualScheduler, Scheduler, get_scheduler, use_scheduler
from .timers import delay, timeout

__all__ = [
    "as_thenable",
    "AsyncioScheduler",
    "Deferred",
    "ManualScheduler",
    "Promise",
    "PromiseState",
    "RetryPolicy",
    "Scheduler",
    "delay",
    "get_scheduler",
    "is_thenable",
    "timeout",
    "use_scheduler",
    "with_retry",
]
