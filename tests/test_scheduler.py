import asyncio
from typing import List, Tuple

import pytest

from interlacex import config as cx_config
from interlacex.algo import Block, pass_schedule
from interlacex.schedule import (
    AsyncioHost,
    InterlaceScheduler,
    QueueHost,
    RunState,
    default_scheduler,
    reset_default_scheduler,
    run_interlaced_traversal,
)


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class _Recorder:
    """Collects blocks per run label in global call order."""

    def __init__(self, clock: _FakeClock | None = None, cost_ms: float = 0.0) -> None:
        self.calls: List[Tuple[str, Block]] = []
        self.completions: List[str] = []
        self._clock = clock
        self._cost = cost_ms * 1e-3

    def on_block(self, label: str):
        def _callback(x: int, y: int, dx: int, dy: int) -> None:
            if self._clock is not None:
                self._clock.now += self._cost
            self.calls.append((label, Block(x, y, dx, dy)))

        return _callback

    def on_complete(self, label: str):
        return lambda: self.completions.append(label)

    def blocks(self, label: str) -> List[Block]:
        return [block for owner, block in self.calls if owner == label]


@pytest.fixture(autouse=True)
def _isolated_runtime(monkeypatch: pytest.MonkeyPatch):
    for key in ("INTERLACEX_BATCH_SIZE", "INTERLACEX_YIELD_ON_PASS", "INTERLACEX_INITIAL_BLOCK"):
        monkeypatch.delenv(key, raising=False)
    cx_config.reset_runtime_context()
    reset_default_scheduler()
    yield
    reset_default_scheduler()
    cx_config.reset_runtime_context()


def _scheduler(host: QueueHost, clock: _FakeClock, **overrides) -> InterlaceScheduler:
    config = cx_config.RuntimeConfig(**overrides)
    return InterlaceScheduler(host, config=config, clock=clock)


def test_run_completes_once_with_full_block_sequence():
    host = QueueHost()
    clock = _FakeClock()
    recorder = _Recorder(clock, cost_ms=0.01)
    scheduler = _scheduler(host, clock)

    handle = scheduler.start(256, 256, recorder.on_block("a"), recorder.on_complete("a"))
    assert handle.state is RunState.RUNNING
    assert handle.blocks_visited == 1024
    assert host.pending == 1

    host.run_until_idle()

    assert handle.state is RunState.COMPLETED
    assert recorder.completions == ["a"]
    assert handle.blocks_visited == 256 * 256
    assert len(recorder.blocks("a")) == 256 * 256
    assert recorder.blocks("a")[-1] == Block(255, 255, 1, 1)
    assert scheduler.active is None
    assert host.pending == 0


def test_batch_budget_tracks_measured_duration():
    host = QueueHost()
    clock = _FakeClock()
    recorder = _Recorder(clock, cost_ms=0.01)
    scheduler = _scheduler(host, clock)

    handle = scheduler.start(256, 256, recorder.on_block("a"))
    host.run_until_idle()

    budgets = [record.budget for record in handle.batches]
    assert budgets[:5] == [1024, 2048, 4096, 8192, 16384]
    assert all(budget == 16384 for budget in budgets[5:])
    assert all(record.blocks == record.budget for record in handle.batches[:-1])
    assert handle.batches[-1].finished
    assert sum(record.blocks for record in handle.batches) == 256 * 256
    assert scheduler.batch_size == 16384


def test_batch_size_estimate_carries_over_between_runs():
    host = QueueHost()
    clock = _FakeClock()
    recorder = _Recorder(clock, cost_ms=1.0)
    scheduler = _scheduler(host, clock)

    scheduler.start(128, 128, recorder.on_block("a"))
    host.run_until_idle()
    settled = scheduler.batch_size
    second = scheduler.start(128, 128, recorder.on_block("b"))

    assert settled == 128
    assert second.batches[0].budget == settled


def test_small_grid_completes_inside_start():
    host = QueueHost()
    recorder = _Recorder()
    scheduler = _scheduler(host, _FakeClock())

    handle = scheduler.start(8, 8, recorder.on_block("a"), recorder.on_complete("a"))

    assert handle.state is RunState.COMPLETED
    assert recorder.completions == ["a"]
    assert len(handle.batches) == 1
    assert host.pending == 0


def test_new_run_supersedes_pending_run():
    host = QueueHost()
    recorder = _Recorder()
    scheduler = _scheduler(host, _FakeClock(), batch_size=64)

    first = scheduler.start(64, 64, recorder.on_block("a"), recorder.on_complete("a"))
    assert host.pending == 1
    second = scheduler.start(32, 32, recorder.on_block("b"), recorder.on_complete("b"))

    host.run_until_idle()

    labels = [label for label, _ in recorder.calls]
    first_b = labels.index("b")
    assert "a" not in labels[first_b:]
    assert len(recorder.blocks("a")) == 64
    assert first.state is RunState.SUPERSEDED
    assert second.state is RunState.COMPLETED
    assert recorder.completions == ["b"]
    assert len(recorder.blocks("b")) == 32 * 32


def test_cancel_stops_run_at_next_boundary():
    host = QueueHost()
    recorder = _Recorder()
    scheduler = _scheduler(host, _FakeClock(), batch_size=64)

    handle = scheduler.start(64, 64, recorder.on_block("a"), recorder.on_complete("a"))
    assert scheduler.cancel(handle) is True
    assert scheduler.active is None
    assert handle.state is RunState.RUNNING

    host.run_until_idle()

    assert handle.state is RunState.CANCELLED
    assert handle.blocks_visited == 64
    assert recorder.completions == []
    assert scheduler.cancel(handle) is False


def test_cancel_of_finished_run_is_a_no_op():
    scheduler = _scheduler(QueueHost(), _FakeClock())
    handle = scheduler.start(4, 4, lambda x, y, dx, dy: None)

    assert handle.state is RunState.COMPLETED
    assert scheduler.cancel(handle) is False
    assert handle.state is RunState.COMPLETED


def test_callback_failure_aborts_the_run():
    host = QueueHost()
    scheduler = _scheduler(host, _FakeClock(), batch_size=64)
    calls = []
    completions = []

    def on_block(x: int, y: int, dx: int, dy: int) -> None:
        calls.append((x, y))
        if len(calls) == 100:
            raise RuntimeError("draw failed")

    handle = scheduler.start(64, 64, on_block, lambda: completions.append(True))
    with pytest.raises(RuntimeError, match="draw failed"):
        host.run_until_idle()

    assert handle.state is RunState.FAILED
    assert isinstance(handle.error, RuntimeError)
    assert handle.blocks_visited == 99
    assert scheduler.active is None
    assert host.pending == 0
    assert completions == []


def test_failure_in_first_batch_propagates_from_start():
    scheduler = _scheduler(QueueHost(), _FakeClock())

    def on_block(x: int, y: int, dx: int, dy: int) -> None:
        raise KeyError("boom")

    with pytest.raises(KeyError):
        scheduler.start(16, 16, on_block)
    assert scheduler.active is None


def test_invalid_arguments_leave_active_run_untouched():
    host = QueueHost()
    scheduler = _scheduler(host, _FakeClock(), batch_size=64)
    handle = scheduler.start(64, 64, lambda x, y, dx, dy: None)

    with pytest.raises(ValueError):
        scheduler.start(0, 64, lambda x, y, dx, dy: None)
    with pytest.raises(ValueError):
        scheduler.start(64, 64, lambda x, y, dx, dy: None, initial_block=12)
    with pytest.raises(TypeError):
        scheduler.start(64, 64, None)

    assert scheduler.active is handle
    host.run_until_idle()
    assert handle.state is RunState.COMPLETED


def test_yield_on_pass_ends_batches_at_pass_boundaries():
    host = QueueHost()
    recorder = _Recorder()
    scheduler = _scheduler(host, _FakeClock(), yield_on_pass=True)

    handle = scheduler.start(64, 64, recorder.on_block("a"), recorder.on_complete("a"))
    assert handle.blocks_visited == 16
    host.run_until_idle()

    expected = [info.blocks for info in pass_schedule(64, 64, 16)]
    assert [record.blocks for record in handle.batches] == expected
    assert [record.pass_index for record in handle.batches][:3] == [1, 2, 3]
    assert recorder.completions == ["a"]


def test_on_complete_may_start_the_next_run():
    host = QueueHost()
    recorder = _Recorder()
    scheduler = _scheduler(host, _FakeClock())
    follow_up = []

    def _restart() -> None:
        follow_up.append(scheduler.start(32, 32, recorder.on_block("b"), recorder.on_complete("b")))

    first = scheduler.start(8, 8, recorder.on_block("a"), _restart)
    host.run_until_idle()

    assert first.state is RunState.COMPLETED
    assert follow_up and follow_up[0].state is RunState.COMPLETED
    assert recorder.completions == ["b"]


def test_run_superseded_from_its_own_callback_never_completes():
    host = QueueHost()
    recorder = _Recorder()
    scheduler = _scheduler(host, _FakeClock())
    nested = []

    def on_block(x: int, y: int, dx: int, dy: int) -> None:
        recorder.calls.append(("a", Block(x, y, dx, dy)))
        if len(recorder.calls) == 10:
            nested.append(scheduler.start(4, 4, recorder.on_block("b"), recorder.on_complete("b")))

    first = scheduler.start(8, 8, on_block, recorder.on_complete("a"))
    host.run_until_idle()

    assert first.state is RunState.SUPERSEDED
    assert nested[0].state is RunState.COMPLETED
    assert recorder.completions == ["b"]


def test_initial_block_defaults_to_runtime_config():
    host = QueueHost()
    recorder = _Recorder()
    scheduler = _scheduler(host, _FakeClock(), initial_block=4)

    handle = scheduler.start(8, 8, recorder.on_block("a"))

    assert handle.initial_block == 4
    assert recorder.blocks("a")[0] == Block(0, 0, 4, 4)


def test_module_entry_point_uses_default_scheduler():
    recorder = _Recorder()

    handle = run_interlaced_traversal(
        96, 96, recorder.on_block("a"), recorder.on_complete("a"), initial_block=32
    )
    default_scheduler().host.run_until_idle()

    assert handle.state is RunState.COMPLETED
    assert recorder.completions == ["a"]
    assert recorder.blocks("a")[0] == Block(0, 0, 32, 32)
    assert len(recorder.blocks("a")) == 96 * 96


def test_asyncio_host_interleaves_with_other_tasks():
    blocks = []
    ticks = []

    async def _ticker(stop: asyncio.Event) -> None:
        while not stop.is_set():
            ticks.append(len(blocks))
            await asyncio.sleep(0)

    async def _main():
        done = asyncio.Event()
        config = cx_config.RuntimeConfig(batch_size=64, batch_max=64)
        scheduler = InterlaceScheduler(AsyncioHost(), config=config)
        ticker = asyncio.create_task(_ticker(done))
        await asyncio.sleep(0)
        handle = scheduler.start(32, 32, lambda x, y, dx, dy: blocks.append((x, y)), done.set)
        await asyncio.wait_for(done.wait(), timeout=5)
        await ticker
        return handle

    handle = asyncio.run(_main())

    assert handle.state is RunState.COMPLETED
    assert len(blocks) == 32 * 32
    assert len(handle.batches) == 16
    assert any(0 < tick < len(blocks) for tick in ticks)


def test_run_ids_come_from_telemetry_generator():
    scheduler = _scheduler(QueueHost(), _FakeClock())

    first = scheduler.start(4, 4, lambda x, y, dx, dy: None)
    second = scheduler.start(4, 4, lambda x, y, dx, dy: None)

    assert first.run_id.startswith("interlace-")
    assert second.run_id.startswith("interlace-")
    assert first.run_id != second.run_id


def test_batch_without_traversal_state_raises():
    host = QueueHost()
    scheduler = _scheduler(host, _FakeClock(), batch_size=64)
    handle = scheduler.start(64, 64, lambda x, y, dx, dy: None)

    handle._release()

    with pytest.raises(RuntimeError, match="no traversal state"):
        host.run_next()
