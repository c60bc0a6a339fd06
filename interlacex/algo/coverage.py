from __future__ import annotations

from typing import Callable, Iterable, Optional, Tuple

import numpy as np

from .sequence import Block, validate_geometry


def clip_block(block: Block, width: int, height: int) -> Optional[Tuple[int, int, int, int]]:
    """Clip ``block`` to the grid as ``(x0, y0, x1, y1)`` or ``None`` if empty."""

    x, y, dx, dy = block
    x0 = max(int(x), 0)
    y0 = max(int(y), 0)
    x1 = min(int(x) + int(dx), width)
    y1 = min(int(y) + int(dy), height)
    if x0 >= x1 or y0 >= y1:
        return None
    return x0, y0, x1, y1


def coverage_counts(
    width: int,
    height: int,
    blocks: Iterable[Block],
    *,
    dtype: np.dtype | type = np.int32,
) -> np.ndarray:
    """Return a ``(height, width)`` array counting how often each pixel was drawn."""

    width, height = validate_geometry(width, height)
    counts = np.zeros((height, width), dtype=dtype)
    for block in blocks:
        clipped = clip_block(block, width, height)
        if clipped is None:
            continue
        x0, y0, x1, y1 = clipped
        counts[y0:y1, x0:x1] += 1
    return counts


def uncovered_pixels(counts: np.ndarray) -> np.ndarray:
    """Return ``(n, 2)`` ``(x, y)`` coordinates of pixels never drawn."""

    rows, cols = np.nonzero(counts == 0)
    return np.stack((cols, rows), axis=1).astype(np.int64, copy=False)


def paint_blocks(
    canvas: np.ndarray,
    blocks: Iterable[Block],
    value_at: Callable[[int, int], object],
) -> np.ndarray:
    """Fill each clipped block of ``canvas`` with ``value_at(x, y)`` of its origin."""

    height, width = canvas.shape[:2]
    for block in blocks:
        clipped = clip_block(block, width, height)
        if clipped is None:
            continue
        x0, y0, x1, y1 = clipped
        canvas[y0:y1, x0:x1] = value_at(block.x, block.y)
    return canvas


__all__ = ["clip_block", "coverage_counts", "uncovered_pixels", "paint_blocks"]
