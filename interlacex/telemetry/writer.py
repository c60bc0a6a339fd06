from __future__ import annotations

import json
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from .schemas import INTERLACE_BATCH_SCHEMA_ID, INTERLACE_RUN_SCHEMA_ID


def generate_run_id(prefix: str = "interlace") -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return f"{prefix}-{stamp}-{uuid.uuid4().hex[:8]}"


class BatchLogWriter:
    """Append per-batch and per-run JSONL records to ``path``."""

    def __init__(self, path: str | Path):
        self._path = Path(path).expanduser()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self._path.open("a", encoding="utf-8")

    @property
    def path(self) -> Path:
        return self._path

    def close(self) -> None:
        if self._handle and not self._handle.closed:
            self._handle.close()

    def __enter__(self) -> "BatchLogWriter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _write(self, payload: Dict[str, Any]) -> None:
        self._handle.write(json.dumps(payload, sort_keys=True))
        self._handle.write("\n")
        self._handle.flush()

    def record_batch(self, handle: Any, record: Any) -> None:
        self._write(
            {
                "schema_id": INTERLACE_BATCH_SCHEMA_ID,
                "run_id": handle.run_id,
                "timestamp": time.time(),
                "batch_index": int(record.index),
                "budget": int(record.budget),
                "blocks": int(record.blocks),
                "elapsed_ms": float(record.elapsed_ms),
                "next_budget": int(record.next_budget),
                "pass_index": int(record.pass_index),
                "finished": bool(record.finished),
            }
        )

    def record_run(self, handle: Any) -> None:
        self._write(
            {
                "schema_id": INTERLACE_RUN_SCHEMA_ID,
                "run_id": handle.run_id,
                "timestamp": time.time(),
                "width": int(handle.width),
                "height": int(handle.height),
                "initial_block": int(handle.initial_block),
                "state": handle.state.value,
                "blocks": int(handle.blocks_visited),
                "batches": len(handle.batches),
            }
        )


__all__ = ["BatchLogWriter", "generate_run_id"]
