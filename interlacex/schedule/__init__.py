"""Cooperative batch scheduling of interlaced traversals."""

from .hosts import AsyncioHost, QueueHost, TaskHost
from .scheduler import (
    TERMINAL_STATES,
    BatchRecord,
    InterlaceScheduler,
    RunHandle,
    RunState,
    default_scheduler,
    reset_default_scheduler,
    run_interlaced_traversal,
    set_default_scheduler,
)

__all__ = [
    "AsyncioHost",
    "QueueHost",
    "TaskHost",
    "TERMINAL_STATES",
    "BatchRecord",
    "InterlaceScheduler",
    "RunHandle",
    "RunState",
    "default_scheduler",
    "reset_default_scheduler",
    "run_interlaced_traversal",
    "set_default_scheduler",
]
