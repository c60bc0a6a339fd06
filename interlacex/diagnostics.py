from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator

try:  # pragma: no cover - platform dependent
    import resource
except ImportError:  # pragma: no cover - Windows
    resource = None  # type: ignore

from interlacex import config as cx_config


def _cpu_user_seconds() -> float | None:
    if resource is None:
        return None
    return float(resource.getrusage(resource.RUSAGE_SELF).ru_utime)


def _max_rss_bytes() -> int | None:
    if resource is None:
        return None
    # ru_maxrss is reported in kilobytes on Linux.
    return int(resource.getrusage(resource.RUSAGE_SELF).ru_maxrss) * 1024


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


@dataclass
class OperationMetrics:
    """Mutable record of a single logged operation."""

    op: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    wall_ms: float | None = None
    cpu_user_ms: float | None = None
    rss_delta: int | None = None

    def add_metadata(self, **fields: Any) -> None:
        self.metadata.update(fields)

    def render(self) -> str:
        parts = [f"op={self.op}"]
        parts.append(
            "wall_ms=NA" if self.wall_ms is None else f"wall_ms={self.wall_ms:.3f}"
        )
        parts.append(
            "cpu_user_ms=NA"
            if self.cpu_user_ms is None
            else f"cpu_user_ms={self.cpu_user_ms:.3f}"
        )
        parts.append("rss_delta=NA" if self.rss_delta is None else f"rss_delta={self.rss_delta}")
        parts.extend(f"{key}={_format_value(value)}" for key, value in self.metadata.items())
        return " ".join(parts)


@contextmanager
def log_operation(
    logger: logging.Logger,
    op: str,
    *,
    level: int = logging.INFO,
) -> Iterator[OperationMetrics]:
    """Time the wrapped block and emit one ``op=<name> ...`` log line.

    CPU and RSS figures are collected only when diagnostics are enabled in the
    active runtime configuration. The line is emitted even if the block
    raises; the exception is not suppressed.
    """

    metrics = OperationMetrics(op=op)
    if not logger.isEnabledFor(level):
        yield metrics
        return
    diagnostics = cx_config.runtime_config().enable_diagnostics
    cpu_start = _cpu_user_seconds() if diagnostics else None
    rss_start = _max_rss_bytes() if diagnostics else None
    start = time.perf_counter()
    try:
        yield metrics
    finally:
        metrics.wall_ms = (time.perf_counter() - start) * 1e3
        if cpu_start is not None:
            cpu_end = _cpu_user_seconds()
            if cpu_end is not None:
                metrics.cpu_user_ms = (cpu_end - cpu_start) * 1e3
        if rss_start is not None:
            rss_end = _max_rss_bytes()
            if rss_end is not None:
                metrics.rss_delta = rss_end - rss_start
        logger.log(level, metrics.render())


__all__ = ["OperationMetrics", "log_operation"]
