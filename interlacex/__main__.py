#!/usr/bin/env python
"""Quick-start guide for interlacex library usage.

Run with: python -m interlacex

This module intentionally avoids importing interlacex internals to provide
a fast, clean startup for displaying help text.
"""

from __future__ import annotations

QUICKSTART = """\
================================================================================
                               INTERLACEX
        Progressive interlaced traversal of pixel grids, in batches
================================================================================

BASIC USAGE
-----------
    from interlacex import InterlaceScheduler, QueueHost

    def draw(x, y, dx, dy):
        ...  # fill the (clipped) block with the colour at (x, y)

    host = QueueHost()
    scheduler = InterlaceScheduler(host)
    handle = scheduler.start(640, 480, draw, on_complete=lambda: print("done"))

    # From the render loop, between frames:
    host.run_next()          # one batch (~100-200 ms of drawing)
    host.run_until_idle()    # or everything that is left

BLOCK ORDER
-----------
    16x16 squares on a coarse lattice first, then 8x16 blocks on the skipped
    columns, 8x8 blocks on the skipped rows, and so on down to 1x1. Blocks may
    overhang the grid; clip them when drawing.

    from interlacex import iter_blocks, pass_schedule
    for x, y, dx, dy in iter_blocks(64, 64, initial_block=16):
        ...

ASYNCIO
-------
    from interlacex import AsyncioHost, InterlaceScheduler

    scheduler = InterlaceScheduler(AsyncioHost())   # inside a running loop
    scheduler.start(width, height, draw)

CANCELLATION
------------
    Starting a new run on the same scheduler abandons the previous run at its
    next batch boundary. scheduler.cancel(handle) does so explicitly.

CONFIGURATION
-------------
    INTERLACEX_INITIAL_BLOCK=16        initial block edge (power of two)
    INTERLACEX_BATCH_SIZE=1024         first batch budget (blocks)
    INTERLACEX_BATCH_MIN=64            lower bound of the budget
    INTERLACEX_BATCH_MAX=1048576       upper bound of the budget
    INTERLACEX_TARGET_LOW_MS=100       double the budget below this
    INTERLACEX_TARGET_HIGH_MS=200      halve the budget above this
    INTERLACEX_YIELD_ON_PASS=0         also yield after every completed pass
    INTERLACEX_LOG_LEVEL=INFO
    INTERLACEX_ENABLE_DIAGNOSTICS=1

    from interlacex import Runtime
    Runtime(initial_block=32, yield_on_pass=True).activate()

SIMULATION CLI
--------------
    python -m cli.traverse --width 640 --height 480 --block-cost-us 50

================================================================================
"""


def main() -> None:
    """Print quick-start guide."""
    print(QUICKSTART)


if __name__ == "__main__":
    main()
