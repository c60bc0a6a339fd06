from __future__ import annotations

import argparse
import time
from dataclasses import dataclass
from typing import Literal

from interlacex.algo.sequence import BlockSequence
from interlacex.schedule import InterlaceScheduler, QueueHost
from interlacex.config import RuntimeConfig


@dataclass(frozen=True)
class BenchmarkResult:
    mode: Literal["sequence", "scheduler"]
    elapsed_seconds: float
    repeats: int
    blocks_per_run: int
    batches_per_run: float
    throughput_blocks_per_sec: float


def benchmark_sequence(
    *,
    width: int,
    height: int,
    initial_block: int,
    repeats: int,
) -> BenchmarkResult:
    blocks = 0
    start = time.perf_counter()
    for _ in range(repeats):
        blocks = sum(1 for _ in BlockSequence(width, height, initial_block))
    elapsed = time.perf_counter() - start
    throughput = blocks * repeats / elapsed if elapsed > 0 else float("inf")
    return BenchmarkResult(
        mode="sequence",
        elapsed_seconds=elapsed,
        repeats=repeats,
        blocks_per_run=blocks,
        batches_per_run=0.0,
        throughput_blocks_per_sec=throughput,
    )


def benchmark_scheduler(
    *,
    width: int,
    height: int,
    initial_block: int,
    repeats: int,
) -> BenchmarkResult:
    host = QueueHost()
    scheduler = InterlaceScheduler(host, config=RuntimeConfig(initial_block=initial_block))
    blocks = 0
    batches = 0

    def on_block(x: int, y: int, dx: int, dy: int) -> None:
        return None

    start = time.perf_counter()
    for _ in range(repeats):
        handle = scheduler.start(width, height, on_block)
        host.run_until_idle()
        blocks = handle.blocks_visited
        batches += len(handle.batches)
    elapsed = time.perf_counter() - start
    throughput = blocks * repeats / elapsed if elapsed > 0 else float("inf")
    return BenchmarkResult(
        mode="scheduler",
        elapsed_seconds=elapsed,
        repeats=repeats,
        blocks_per_run=blocks,
        batches_per_run=batches / repeats if repeats else 0.0,
        throughput_blocks_per_sec=throughput,
    )


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Benchmark interlaced block generation and batch scheduling throughput."
    )
    parser.add_argument(
        "mode",
        choices=("sequence", "scheduler"),
        help="Component to benchmark.",
    )
    parser.add_argument("--width", type=int, default=1024, help="Grid width in pixels.")
    parser.add_argument("--height", type=int, default=768, help="Grid height in pixels.")
    parser.add_argument(
        "--initial-block",
        type=int,
        default=16,
        help="Initial block edge (power of two).",
    )
    parser.add_argument(
        "--repeats",
        type=int,
        default=3,
        help="Number of full traversals to execute.",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    runner = benchmark_sequence if args.mode == "sequence" else benchmark_scheduler
    result = runner(
        width=args.width,
        height=args.height,
        initial_block=args.initial_block,
        repeats=args.repeats,
    )
    print(
        f"{result.mode} | repeats={result.repeats} "
        f"blocks={result.blocks_per_run} "
        f"batches={result.batches_per_run:.1f} "
        f"time={result.elapsed_seconds:.4f}s "
        f"throughput={result.throughput_blocks_per_sec:,.1f} blocks/s"
    )


if __name__ == "__main__":
    main()
