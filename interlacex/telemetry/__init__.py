from __future__ import annotations

from .schemas import (
    INTERLACE_BATCH_FIELDS,
    INTERLACE_BATCH_SCHEMA,
    INTERLACE_BATCH_SCHEMA_ID,
    INTERLACE_RUN_SCHEMA,
    INTERLACE_RUN_SCHEMA_ID,
)
from .writer import BatchLogWriter, generate_run_id

__all__ = [
    "INTERLACE_BATCH_FIELDS",
    "INTERLACE_BATCH_SCHEMA",
    "INTERLACE_BATCH_SCHEMA_ID",
    "INTERLACE_RUN_SCHEMA",
    "INTERLACE_RUN_SCHEMA_ID",
    "BatchLogWriter",
    "generate_run_id",
]
