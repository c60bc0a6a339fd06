from __future__ import annotations

from typing import Dict, Tuple

INTERLACE_BATCH_SCHEMA_ID = "interlacex.interlace_batch.v1"
INTERLACE_BATCH_FIELDS: Tuple[str, ...] = (
    "schema_id",
    "run_id",
    "timestamp",
    "batch_index",
    "budget",
    "blocks",
    "elapsed_ms",
    "next_budget",
    "pass_index",
    "finished",
)
INTERLACE_BATCH_SCHEMA: Dict[str, object] = {
    "id": INTERLACE_BATCH_SCHEMA_ID,
    "description": "Per-batch scheduler telemetry emitted during interlaced traversals.",
    "required": INTERLACE_BATCH_FIELDS,
}

INTERLACE_RUN_SCHEMA_ID = "interlacex.interlace_run.v1"
INTERLACE_RUN_SCHEMA: Dict[str, object] = {
    "id": INTERLACE_RUN_SCHEMA_ID,
    "description": "Terminal summary of one interlaced traversal run.",
    "required": (
        "schema_id",
        "run_id",
        "timestamp",
        "width",
        "height",
        "initial_block",
        "state",
        "blocks",
        "batches",
    ),
}

__all__ = [
    "INTERLACE_BATCH_SCHEMA",
    "INTERLACE_BATCH_SCHEMA_ID",
    "INTERLACE_BATCH_FIELDS",
    "INTERLACE_RUN_SCHEMA",
    "INTERLACE_RUN_SCHEMA_ID",
]
