"""Interlaced block schedules, batch tuning, and coverage helpers."""

from .coverage import clip_block, coverage_counts, paint_blocks, uncovered_pixels
from .sequence import (
    DEFAULT_INITIAL_BLOCK,
    Block,
    BlockSequence,
    PassInfo,
    Phase,
    TraversalState,
    count_blocks,
    iter_blocks,
    pass_schedule,
    validate_geometry,
)
from .tuning import BatchTuner

__all__ = [
    "DEFAULT_INITIAL_BLOCK",
    "Block",
    "BlockSequence",
    "PassInfo",
    "Phase",
    "TraversalState",
    "count_blocks",
    "iter_blocks",
    "pass_schedule",
    "validate_geometry",
    "BatchTuner",
    "clip_block",
    "coverage_counts",
    "paint_blocks",
    "uncovered_pixels",
]
