from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, List, Optional

from interlacex import config as cx_config
from interlacex.algo.sequence import BlockSequence
from interlacex.algo.tuning import BatchTuner
from interlacex.diagnostics import log_operation
from interlacex.logging import get_logger
from interlacex.telemetry.writer import generate_run_id

from .hosts import QueueHost, TaskHost

LOGGER = get_logger("schedule.scheduler")

BlockCallback = Callable[[int, int, int, int], Any]
CompleteCallback = Callable[[], Any]


class RunState(str, Enum):
    STARTED = "started"
    RUNNING = "running"
    COMPLETED = "completed"
    SUPERSEDED = "superseded"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATES = frozenset(
    {RunState.COMPLETED, RunState.SUPERSEDED, RunState.CANCELLED, RunState.FAILED}
)


@dataclass(frozen=True)
class BatchRecord:
    index: int
    budget: int
    blocks: int
    elapsed_ms: float
    next_budget: int
    pass_index: int
    finished: bool


@dataclass(eq=False)
class RunHandle:
    """Caller-facing handle of one traversal run."""

    run_id: str
    width: int
    height: int
    initial_block: int
    state: RunState = RunState.STARTED
    blocks_visited: int = 0
    batches: List[BatchRecord] = field(default_factory=list)
    error: Optional[BaseException] = None
    _sequence: Optional[BlockSequence] = field(default=None, repr=False)
    _on_block: Optional[BlockCallback] = field(default=None, repr=False)
    _on_complete: Optional[CompleteCallback] = field(default=None, repr=False)
    _cancel_requested: bool = field(default=False, repr=False)

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    def _release(self) -> None:
        self._sequence = None
        self._on_block = None
        self._on_complete = None


class InterlaceScheduler:
    """Run interlaced traversals in time-bounded batches on a cooperative host.

    The scheduler owns at most one live run. Starting another run, or calling
    :meth:`cancel`, retires the previous one at its next batch boundary: that
    batch returns without touching any callback and is not rescheduled. The
    batch-size estimate lives in :attr:`tuner` and carries over between runs.
    """

    def __init__(
        self,
        host: TaskHost | None = None,
        *,
        config: cx_config.RuntimeConfig | None = None,
        tuner: BatchTuner | None = None,
        clock: Callable[[], float] | None = None,
        observer: Any = None,
    ) -> None:
        self.config = config or cx_config.runtime_config()
        self.host: TaskHost = host if host is not None else QueueHost()
        self.tuner = tuner if tuner is not None else BatchTuner.from_config(self.config)
        self._clock = clock or time.perf_counter
        self._observer = observer
        self._active: Optional[RunHandle] = None

    @property
    def active(self) -> Optional[RunHandle]:
        return self._active

    @property
    def batch_size(self) -> int:
        return self.tuner.size

    def start(
        self,
        width: int,
        height: int,
        on_block: BlockCallback,
        on_complete: CompleteCallback | None = None,
        initial_block: int | None = None,
    ) -> RunHandle:
        """Begin a run and execute its first batch synchronously."""

        if not callable(on_block):
            raise TypeError("on_block must be callable")
        if on_complete is not None and not callable(on_complete):
            raise TypeError("on_complete must be callable or None")
        ib = self.config.initial_block if initial_block is None else initial_block
        sequence = BlockSequence(width, height, ib)
        handle = RunHandle(
            run_id=generate_run_id(),
            width=sequence.width,
            height=sequence.height,
            initial_block=sequence.initial_block,
            _sequence=sequence,
            _on_block=on_block,
            _on_complete=on_complete,
        )
        previous = self._active
        if previous is not None:
            LOGGER.debug("Run %s supersedes %s", handle.run_id, previous.run_id)
        self._active = handle
        self._run_batch(handle)
        return handle

    def cancel(self, handle: RunHandle) -> bool:
        """Request cancellation; returns ``False`` if the run already ended."""

        if handle.done or handle.cancel_requested:
            return False
        handle._cancel_requested = True
        if self._active is handle:
            self._active = None
        return True

    def _retire(self, handle: RunHandle) -> None:
        state = RunState.CANCELLED if handle.cancel_requested else RunState.SUPERSEDED
        self._finish(handle, state)

    def _finish(self, handle: RunHandle, state: RunState) -> None:
        handle.state = state
        handle._release()
        if self._active is handle:
            self._active = None
        LOGGER.info(
            "op=interlace_run run=%s state=%s blocks=%d batches=%d",
            handle.run_id,
            state.value,
            handle.blocks_visited,
            len(handle.batches),
        )
        if self._observer is not None:
            self._observer.record_run(handle)

    def _record(self, handle: RunHandle, record: BatchRecord) -> None:
        handle.batches.append(record)
        if self._observer is not None:
            self._observer.record_batch(handle, record)

    def _run_batch(self, handle: RunHandle) -> None:
        if handle.done:
            return
        if handle is not self._active:
            self._retire(handle)
            return
        handle.state = RunState.RUNNING
        sequence = handle._sequence
        on_block = handle._on_block
        if sequence is None or on_block is None:
            raise RuntimeError(f"Run {handle.run_id} has no traversal state left")
        budget = self.tuner.size
        pass_start = sequence.pass_index
        yield_on_pass = self.config.yield_on_pass

        with log_operation(LOGGER, "interlace_batch", level=logging.DEBUG) as op_log:
            visited = 0
            started = self._clock()
            try:
                while visited < budget:
                    on_block(*sequence.next_block())
                    visited += 1
                    if sequence.done:
                        break
                    if yield_on_pass and sequence.pass_index != pass_start:
                        break
            except Exception as exc:
                handle.blocks_visited += visited
                handle.error = exc
                op_log.add_metadata(run=handle.run_id, blocks=visited, failed=True)
                LOGGER.error("Run %s aborted: on_block raised %r", handle.run_id, exc)
                self._finish(handle, RunState.FAILED)
                raise
            elapsed_ms = (self._clock() - started) * 1e3
            handle.blocks_visited += visited
            finished = sequence.done
            next_budget = budget if finished else self.tuner.update(elapsed_ms)
            op_log.add_metadata(
                run=handle.run_id,
                batch=len(handle.batches),
                budget=budget,
                blocks=visited,
                elapsed_ms=elapsed_ms,
                next_budget=next_budget,
            )
            self._record(
                handle,
                BatchRecord(
                    index=len(handle.batches),
                    budget=budget,
                    blocks=visited,
                    elapsed_ms=elapsed_ms,
                    next_budget=next_budget,
                    pass_index=sequence.pass_index,
                    finished=finished,
                ),
            )

        if handle is not self._active:
            # Superseded or cancelled from inside one of its own callbacks.
            self._retire(handle)
            return
        if finished:
            on_complete = handle._on_complete
            self._finish(handle, RunState.COMPLETED)
            if on_complete is not None:
                on_complete()
            return
        self.host.defer(partial(self._run_batch, handle))


_DEFAULT_SCHEDULER: Optional[InterlaceScheduler] = None


def default_scheduler() -> InterlaceScheduler:
    """Return the process-wide scheduler, creating it on first use.

    It defers through a :class:`QueueHost`; the embedding loop drives it with
    ``default_scheduler().host.run_until_idle()`` or installs its own scheduler
    via :func:`set_default_scheduler`.
    """

    global _DEFAULT_SCHEDULER
    if _DEFAULT_SCHEDULER is None:
        _DEFAULT_SCHEDULER = InterlaceScheduler()
    return _DEFAULT_SCHEDULER


def set_default_scheduler(scheduler: InterlaceScheduler) -> InterlaceScheduler:
    global _DEFAULT_SCHEDULER
    _DEFAULT_SCHEDULER = scheduler
    return scheduler


def reset_default_scheduler() -> None:
    global _DEFAULT_SCHEDULER
    _DEFAULT_SCHEDULER = None


def run_interlaced_traversal(
    width: int,
    height: int,
    on_block: BlockCallback,
    on_complete: CompleteCallback | None = None,
    initial_block: int | None = None,
    *,
    scheduler: InterlaceScheduler | None = None,
) -> RunHandle:
    """Traverse ``width`` x ``height`` in interlaced order, calling ``on_block(x, y, dx, dy)``.

    Any run still pending on the same scheduler is abandoned. ``on_complete``
    fires once after the final 1x1 block.
    """

    scheduler = scheduler or default_scheduler()
    return scheduler.start(width, height, on_block, on_complete, initial_block)


__all__ = [
    "RunState",
    "TERMINAL_STATES",
    "BatchRecord",
    "RunHandle",
    "InterlaceScheduler",
    "default_scheduler",
    "set_default_scheduler",
    "reset_default_scheduler",
    "run_interlaced_traversal",
]
