from __future__ import annotations

from dataclasses import dataclass

from interlacex import config as cx_config
from interlacex.config import validate_batching


@dataclass
class BatchTuner:
    """Adaptive blocks-per-batch estimate.

    After every batch the estimate is halved when the batch overran
    ``high_ms`` and doubled when it finished under ``low_ms``. All sizes are
    powers of two, so the estimate never leaves ``[min_size, max_size]``.
    """

    size: int = 1 << 10
    min_size: int = 1 << 6
    max_size: int = 1 << 20
    low_ms: float = 100.0
    high_ms: float = 200.0

    def __post_init__(self) -> None:
        validate_batching(
            batch_size=self.size,
            batch_min=self.min_size,
            batch_max=self.max_size,
            target_low_ms=self.low_ms,
            target_high_ms=self.high_ms,
        )

    @classmethod
    def from_config(cls, config: cx_config.RuntimeConfig | None = None) -> "BatchTuner":
        config = config or cx_config.runtime_config()
        return cls(
            size=config.batch_size,
            min_size=config.batch_min,
            max_size=config.batch_max,
            low_ms=config.target_low_ms,
            high_ms=config.target_high_ms,
        )

    def update(self, elapsed_ms: float) -> int:
        """Retune the estimate from one batch duration and return it."""

        size = self.size
        if elapsed_ms > self.high_ms and size > self.min_size:
            size >>= 1
        if elapsed_ms < self.low_ms and size < self.max_size:
            size <<= 1
        self.size = size
        return size

    def in_band(self, elapsed_ms: float) -> bool:
        return self.low_ms <= elapsed_ms <= self.high_ms


__all__ = ["BatchTuner"]
