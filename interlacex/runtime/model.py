from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from interlacex import config as cx_config


class DiagnosticsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level '{value}'")
        return level


class TraversalModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    initial_block: int = Field(default=16, gt=0)
    yield_on_pass: bool = False

    @field_validator("initial_block")
    @classmethod
    def _power_of_two(cls, value: int) -> int:
        return cx_config.require_power_of_two(value, "initial_block")


class BatchingModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    size: int = Field(default=1 << 10, gt=0)
    min: int = Field(default=1 << 6, gt=0)
    max: int = Field(default=1 << 20, gt=0)
    target_low_ms: float = Field(default=100.0, gt=0.0)
    target_high_ms: float = Field(default=200.0, gt=0.0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "BatchingModel":
        cx_config.validate_batching(
            batch_size=self.size,
            batch_min=self.min,
            batch_max=self.max,
            target_low_ms=self.target_low_ms,
            target_high_ms=self.target_high_ms,
        )
        return self


class RuntimeModel(BaseModel):
    """Nested, validated view of :class:`interlacex.config.RuntimeConfig`."""

    model_config = ConfigDict(extra="forbid")

    diagnostics: DiagnosticsModel = Field(default_factory=DiagnosticsModel)
    traversal: TraversalModel = Field(default_factory=TraversalModel)
    batching: BatchingModel = Field(default_factory=BatchingModel)

    @classmethod
    def from_env(cls) -> "RuntimeModel":
        return cls.from_legacy_config(cx_config.RuntimeConfig.from_env())

    @classmethod
    def from_legacy_config(cls, config: cx_config.RuntimeConfig) -> "RuntimeModel":
        return cls(
            diagnostics=DiagnosticsModel(
                enabled=config.enable_diagnostics,
                log_level=config.log_level,
            ),
            traversal=TraversalModel(
                initial_block=config.initial_block,
                yield_on_pass=config.yield_on_pass,
            ),
            batching=BatchingModel(
                size=config.batch_size,
                min=config.batch_min,
                max=config.batch_max,
                target_low_ms=config.target_low_ms,
                target_high_ms=config.target_high_ms,
            ),
        )

    def to_runtime_config(self) -> cx_config.RuntimeConfig:
        return cx_config.RuntimeConfig(
            log_level=self.diagnostics.log_level,
            enable_diagnostics=self.diagnostics.enabled,
            initial_block=self.traversal.initial_block,
            yield_on_pass=self.traversal.yield_on_pass,
            batch_size=self.batching.size,
            batch_min=self.batching.min,
            batch_max=self.batching.max,
            target_low_ms=self.batching.target_low_ms,
            target_high_ms=self.batching.target_high_ms,
        )


__all__ = ["RuntimeModel", "DiagnosticsModel", "TraversalModel", "BatchingModel"]
