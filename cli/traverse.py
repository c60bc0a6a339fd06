from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import typer
from typing_extensions import Annotated

from interlacex.algo.coverage import clip_block, uncovered_pixels
from interlacex.algo.sequence import Block
from interlacex.schedule import InterlaceScheduler, QueueHost, RunHandle
from interlacex.telemetry import BatchLogWriter

from cli.runtime import runtime_from_args


@dataclass
class SimulatedClock:
    """Clock advanced by the simulated drawing cost instead of wall time."""

    now: float = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class TraverseCLIOptions:
    width: int = 640
    height: int = 480
    initial_block: Optional[int] = None
    block_cost_us: float = 50.0
    batch_size: Optional[int] = None
    batch_min: Optional[int] = None
    batch_max: Optional[int] = None
    target_low_ms: Optional[float] = None
    target_high_ms: Optional[float] = None
    yield_on_pass: Optional[bool] = None
    diagnostics: Optional[bool] = None
    log_level: Optional[str] = None
    log_file: Optional[str] = None


@dataclass(frozen=True)
class TraversalSummary:
    handle: RunHandle
    coverage: np.ndarray
    simulated_seconds: float
    final_batch_size: int

    @property
    def uncovered(self) -> int:
        return int(uncovered_pixels(self.coverage).shape[0])

    @property
    def max_overdraw(self) -> int:
        return int(self.coverage.max()) if self.coverage.size else 0

    def render(self) -> List[str]:
        handle = self.handle
        lines = [
            f"run={handle.run_id} state={handle.state.value} "
            f"grid={handle.width}x{handle.height} initial_block={handle.initial_block}",
        ]
        for record in handle.batches:
            lines.append(
                f"  batch {record.index:4d}: budget={record.budget:8d} "
                f"blocks={record.blocks:8d} elapsed_ms={record.elapsed_ms:9.2f} "
                f"next={record.next_budget:8d} pass={record.pass_index}"
            )
        lines.append(
            f"blocks={handle.blocks_visited} batches={len(handle.batches)} "
            f"final_batch_size={self.final_batch_size} "
            f"simulated_s={self.simulated_seconds:.3f}"
        )
        lines.append(f"uncovered_pixels={self.uncovered} max_overdraw={self.max_overdraw}")
        return lines


def run_traversal(options: TraverseCLIOptions) -> TraversalSummary:
    config = runtime_from_args(options).activate().config
    clock = SimulatedClock()
    host = QueueHost()
    coverage = np.zeros((options.height, options.width), dtype=np.int32)
    cost_seconds = max(options.block_cost_us, 0.0) * 1e-6

    def on_block(x: int, y: int, dx: int, dy: int) -> None:
        clock.advance(cost_seconds)
        clipped = clip_block(Block(x, y, dx, dy), options.width, options.height)
        if clipped is not None:
            x0, y0, x1, y1 = clipped
            coverage[y0:y1, x0:x1] += 1

    writer = BatchLogWriter(options.log_file) if options.log_file else None
    try:
        scheduler = InterlaceScheduler(host, config=config, clock=clock, observer=writer)
        handle = scheduler.start(options.width, options.height, on_block)
        host.run_until_idle()
    finally:
        if writer is not None:
            writer.close()
    return TraversalSummary(
        handle=handle,
        coverage=coverage,
        simulated_seconds=clock.now,
        final_batch_size=scheduler.batch_size,
    )


app = typer.Typer(
    add_completion=False,
    pretty_exceptions_enable=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Simulate an interlaced traversal with a fixed per-block drawing cost.",
)

_GRID_PANEL = "Grid"
_BATCH_PANEL = "Batching"
_TELEMETRY_PANEL = "Telemetry"


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    width: Annotated[
        int,
        typer.Option("--width", min=1, help="Grid width in pixels.", rich_help_panel=_GRID_PANEL),
    ] = 640,
    height: Annotated[
        int,
        typer.Option("--height", min=1, help="Grid height in pixels.", rich_help_panel=_GRID_PANEL),
    ] = 480,
    initial_block: Annotated[
        Optional[int],
        typer.Option(
            "--initial-block",
            help="Initial block edge (power of two).",
            rich_help_panel=_GRID_PANEL,
        ),
    ] = None,
    block_cost_us: Annotated[
        float,
        typer.Option(
            "--block-cost-us",
            min=0.0,
            help="Simulated drawing cost per block in microseconds.",
            rich_help_panel=_BATCH_PANEL,
        ),
    ] = 50.0,
    batch_size: Annotated[
        Optional[int],
        typer.Option("--batch-size", help="Initial blocks per batch.", rich_help_panel=_BATCH_PANEL),
    ] = None,
    batch_min: Annotated[
        Optional[int],
        typer.Option("--batch-min", help="Lower batch-size bound.", rich_help_panel=_BATCH_PANEL),
    ] = None,
    batch_max: Annotated[
        Optional[int],
        typer.Option("--batch-max", help="Upper batch-size bound.", rich_help_panel=_BATCH_PANEL),
    ] = None,
    target_low_ms: Annotated[
        Optional[float],
        typer.Option(
            "--target-low-ms",
            help="Batches faster than this double the budget.",
            rich_help_panel=_BATCH_PANEL,
        ),
    ] = None,
    target_high_ms: Annotated[
        Optional[float],
        typer.Option(
            "--target-high-ms",
            help="Batches slower than this halve the budget.",
            rich_help_panel=_BATCH_PANEL,
        ),
    ] = None,
    yield_on_pass: Annotated[
        Optional[bool],
        typer.Option(
            "--yield-on-pass/--no-yield-on-pass",
            help="End a batch whenever a pass completes.",
            rich_help_panel=_BATCH_PANEL,
        ),
    ] = None,
    diagnostics: Annotated[
        Optional[bool],
        typer.Option(
            "--diagnostics/--no-diagnostics",
            help="Collect CPU/RSS figures in batch logs.",
            rich_help_panel=_TELEMETRY_PANEL,
        ),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="interlacex log level.", rich_help_panel=_TELEMETRY_PANEL),
    ] = None,
    log_file: Annotated[
        Optional[str],
        typer.Option(
            "--log-file",
            help="Append per-batch JSONL telemetry to this path.",
            rich_help_panel=_TELEMETRY_PANEL,
        ),
    ] = None,
) -> None:
    if ctx.invoked_subcommand is not None:
        return
    options = TraverseCLIOptions(
        width=width,
        height=height,
        initial_block=initial_block,
        block_cost_us=block_cost_us,
        batch_size=batch_size,
        batch_min=batch_min,
        batch_max=batch_max,
        target_low_ms=target_low_ms,
        target_high_ms=target_high_ms,
        yield_on_pass=yield_on_pass,
        diagnostics=diagnostics,
        log_level=log_level,
        log_file=log_file,
    )
    try:
        summary = run_traversal(options)
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    for line in summary.render():
        typer.echo(line)
    if summary.uncovered:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()


__all__ = ["SimulatedClock", "TraverseCLIOptions", "TraversalSummary", "run_traversal", "main"]
