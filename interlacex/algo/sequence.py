from __future__ import annotations

import operator
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, List, NamedTuple, Tuple

from interlacex.config import require_power_of_two

DEFAULT_INITIAL_BLOCK = 1 << 4


class Block(NamedTuple):
    """Axis-aligned block handed to the pixel callback (may overhang the grid)."""

    x: int
    y: int
    dx: int
    dy: int


class Phase(str, Enum):
    COARSE = "coarse"
    X_SPLIT = "x_split"
    Y_SPLIT = "y_split"


@dataclass(frozen=True)
class PassInfo:
    """Static description of one traversal pass."""

    index: int
    phase: Phase
    dx: int
    dy: int
    sx: int
    sy: int
    x0: int
    y0: int
    blocks: int


@dataclass
class TraversalState:
    x: int
    y: int
    x0: int
    y0: int
    dx: int
    dy: int
    sx: int
    sy: int
    phase: Phase = Phase.COARSE
    pass_index: int = 0
    done: bool = False

    @classmethod
    def initial(cls, initial_block: int) -> "TraversalState":
        ib = require_power_of_two(initial_block, "initial_block")
        return cls(x=0, y=0, x0=0, y0=0, dx=ib, dy=ib, sx=ib, sy=ib)

    @property
    def block(self) -> Block:
        return Block(self.x, self.y, self.dx, self.dy)

    def begin_next_pass(self) -> None:
        """Switch to the following pass, or mark the schedule finished."""

        if self.dy <= 1:
            self.done = True
            return
        if self.dx == self.dy:
            # Square pass done: half-width blocks on the odd columns.
            self.sx = self.dx
            self.dx //= 2
            self.x0 = self.dx
            self.sy = self.dy
            self.y0 = 0
            self.phase = Phase.X_SPLIT
        else:
            # Column pass done: half-height blocks on the odd rows.
            self.sy = self.dy
            self.dy //= 2
            self.y0 = self.dy
            self.sx //= 2
            self.x0 = 0
            self.phase = Phase.Y_SPLIT
        self.x = self.x0
        self.y = self.y0
        self.pass_index += 1

    def advance(self, width: int, height: int) -> None:
        self.x += self.sx
        if self.x < width:
            return
        self.x = self.x0
        self.y += self.sy
        if self.y < height:
            return
        self.begin_next_pass()


def validate_geometry(width: int, height: int) -> Tuple[int, int]:
    try:
        w = operator.index(width)
        h = operator.index(height)
    except TypeError as exc:
        raise ValueError(
            f"width and height must be integers, got {width!r} x {height!r}"
        ) from exc
    if isinstance(width, bool) or isinstance(height, bool):
        raise ValueError("width and height must be integers, not booleans")
    if w <= 0 or h <= 0:
        raise ValueError(f"width and height must be positive, got {w} x {h}")
    return int(w), int(h)


class BlockSequence:
    """Iterator over the interlaced block schedule of a ``width`` x ``height`` grid.

    The schedule starts with a coarse lattice of ``initial_block`` squares and
    refines it level by level: every level halves the block width (x-split
    pass over the skipped columns) and then the block height (y-split pass
    over the skipped rows) until 1x1 blocks have been visited. Blocks are not
    clamped and origins past the grid edge are still emitted; callers clip
    against the grid.
    """

    def __init__(self, width: int, height: int, initial_block: int = DEFAULT_INITIAL_BLOCK):
        self.width, self.height = validate_geometry(width, height)
        self.initial_block = require_power_of_two(initial_block, "initial_block")
        self.state = TraversalState.initial(self.initial_block)
        self.visited = 0

    @property
    def done(self) -> bool:
        return self.state.done

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def pass_index(self) -> int:
        return self.state.pass_index

    def snapshot(self) -> TraversalState:
        return replace(self.state)

    def next_block(self) -> Block:
        """Return the current block and step past it."""

        state = self.state
        if state.done:
            raise StopIteration
        block = state.block
        state.advance(self.width, self.height)
        self.visited += 1
        return block

    def __iter__(self) -> Iterator[Block]:
        return self

    def __next__(self) -> Block:
        return self.next_block()


def iter_blocks(
    width: int, height: int, initial_block: int = DEFAULT_INITIAL_BLOCK
) -> Iterator[Block]:
    return BlockSequence(width, height, initial_block)


def _axis_count(extent: int, origin: int, step: int) -> int:
    # The first position of a row or pass is visited even past the edge.
    if origin >= extent:
        return 1
    return (extent - origin + step - 1) // step


def pass_schedule(
    width: int, height: int, initial_block: int = DEFAULT_INITIAL_BLOCK
) -> List[PassInfo]:
    """Describe every pass of the schedule without visiting its blocks."""

    width, height = validate_geometry(width, height)
    state = TraversalState.initial(initial_block)
    passes: List[PassInfo] = []
    while not state.done:
        blocks = _axis_count(width, state.x0, state.sx) * _axis_count(
            height, state.y0, state.sy
        )
        passes.append(
            PassInfo(
                index=state.pass_index,
                phase=state.phase,
                dx=state.dx,
                dy=state.dy,
                sx=state.sx,
                sy=state.sy,
                x0=state.x0,
                y0=state.y0,
                blocks=blocks,
            )
        )
        state.begin_next_pass()
    return passes


def count_blocks(width: int, height: int, initial_block: int = DEFAULT_INITIAL_BLOCK) -> int:
    return sum(info.blocks for info in pass_schedule(width, height, initial_block))


__all__ = [
    "DEFAULT_INITIAL_BLOCK",
    "Block",
    "Phase",
    "PassInfo",
    "TraversalState",
    "BlockSequence",
    "validate_geometry",
    "iter_blocks",
    "pass_schedule",
    "count_blocks",
]
