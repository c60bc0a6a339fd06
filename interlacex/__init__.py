"""Interlacex: progressive interlaced traversal of pixel grids.

Quick Start
-----------
>>> from interlacex import InterlaceScheduler, QueueHost
>>>
>>> host = QueueHost()
>>> scheduler = InterlaceScheduler(host)
>>> blocks = []
>>> handle = scheduler.start(64, 64, lambda x, y, dx, dy: blocks.append((x, y, dx, dy)))
>>> _ = host.run_until_idle()  # the embedding loop drives the remaining batches
>>> handle.state.value, len(blocks)
('completed', 4096)

Classes
-------
InterlaceScheduler : Time-bounded batch scheduler owning at most one live run.
BlockSequence : The interlaced block schedule as a plain iterator.
Runtime : Declarative configuration façade.
"""

from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("interlacex")
except Exception:  # pragma: no cover - best effort during local development
    __version__ = "0.1.0"

from .api import Runtime
from .algo import (
    BatchTuner,
    Block,
    BlockSequence,
    PassInfo,
    Phase,
    count_blocks,
    coverage_counts,
    iter_blocks,
    pass_schedule,
)
from .schedule import (
    AsyncioHost,
    InterlaceScheduler,
    QueueHost,
    RunHandle,
    RunState,
    TaskHost,
    default_scheduler,
    run_interlaced_traversal,
)

__all__ = [
    "__version__",
    "Runtime",
    "BatchTuner",
    "Block",
    "BlockSequence",
    "PassInfo",
    "Phase",
    "count_blocks",
    "coverage_counts",
    "iter_blocks",
    "pass_schedule",
    "AsyncioHost",
    "InterlaceScheduler",
    "QueueHost",
    "RunHandle",
    "RunState",
    "TaskHost",
    "default_scheduler",
    "run_interlaced_traversal",
]
