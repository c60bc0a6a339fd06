from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Sequence, Tuple

from interlacex import config as cx_config
from interlacex.runtime.model import RuntimeModel

_ATTR_TO_FIELD = {
    "diagnostics": "enable_diagnostics",
    "log_level": "log_level",
    "initial_block": "initial_block",
    "yield_on_pass": "yield_on_pass",
    "batch_size": "batch_size",
    "batch_min": "batch_min",
    "batch_max": "batch_max",
    "target_low_ms": "target_low_ms",
    "target_high_ms": "target_high_ms",
}


_FIELD_PATHS: Dict[str, Tuple[str, ...]] = {
    "enable_diagnostics": ("diagnostics", "enabled"),
    "log_level": ("diagnostics", "log_level"),
    "initial_block": ("traversal", "initial_block"),
    "yield_on_pass": ("traversal", "yield_on_pass"),
    "batch_size": ("batching", "size"),
    "batch_min": ("batching", "min"),
    "batch_max": ("batching", "max"),
    "target_low_ms": ("batching", "target_low_ms"),
    "target_high_ms": ("batching", "target_high_ms"),
}


def _resolve_field_path(field: str) -> Tuple[str, ...]:
    if "." in field:
        parts = tuple(part for part in field.split(".") if part)
        if parts:
            return parts
    path = _FIELD_PATHS.get(field)
    if path is None:
        raise ValueError(f"Unknown runtime field '{field}'")
    return path


def _set_nested(payload: Dict[str, Any], path: Sequence[str], value: Any) -> None:
    if not path:
        raise ValueError("Field path cannot be empty")
    target: Dict[str, Any] = payload
    for key in path[:-1]:
        next_value = target.get(key)
        if not isinstance(next_value, dict):
            next_value = {}
            target[key] = next_value
        target = next_value
    target[path[-1]] = value


@dataclass(frozen=True)
class Runtime:
    """Declarative runtime configuration that can activate an interlacex context."""

    diagnostics: bool | None = None
    log_level: str | None = None
    initial_block: int | None = None
    yield_on_pass: bool | None = None
    batch_size: int | None = None
    batch_min: int | None = None
    batch_max: int | None = None
    target_low_ms: float | None = None
    target_high_ms: float | None = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_model(self, base: RuntimeModel | None = None) -> RuntimeModel:
        base_model = base or RuntimeModel.from_env()
        payload = base_model.model_dump()
        for attr, field_name in _ATTR_TO_FIELD.items():
            value = getattr(self, attr)
            if value is None:
                continue
            _set_nested(payload, _resolve_field_path(field_name), value)
        for key, value in self.extra.items():
            _set_nested(payload, _resolve_field_path(key), value)
        return RuntimeModel(**payload)

    def to_config(self, base: cx_config.RuntimeConfig | None = None) -> cx_config.RuntimeConfig:
        base_model = (
            RuntimeModel.from_env()
            if base is None
            else RuntimeModel.from_legacy_config(base)
        )
        return self.to_model(base=base_model).to_runtime_config()

    def activate(self) -> cx_config.RuntimeContext:
        """Install this runtime as the active global context and return it."""

        return cx_config.configure_runtime(self.to_config())

    def describe(self) -> Dict[str, Any]:
        config = self.to_config()
        return {
            "log_level": config.log_level,
            "enable_diagnostics": config.enable_diagnostics,
            "initial_block": config.initial_block,
            "yield_on_pass": config.yield_on_pass,
            "batch_size": config.batch_size,
            "batch_bounds": (config.batch_min, config.batch_max),
            "target_band_ms": (config.target_low_ms, config.target_high_ms),
        }

    def with_updates(self, **kwargs: Any) -> "Runtime":
        return replace(self, **kwargs)

    @classmethod
    def from_active(cls) -> "Runtime":
        active = cx_config.current_runtime_context()
        if active is not None:
            return cls.from_config(active.config)
        return cls.from_config(cx_config.RuntimeConfig.from_env())

    @classmethod
    def from_config(cls, config: cx_config.RuntimeConfig) -> "Runtime":
        return cls(
            diagnostics=config.enable_diagnostics,
            log_level=config.log_level,
            initial_block=config.initial_block,
            yield_on_pass=config.yield_on_pass,
            batch_size=config.batch_size,
            batch_min=config.batch_min,
            batch_max=config.batch_max,
            target_low_ms=config.target_low_ms,
            target_high_ms=config.target_high_ms,
        )


__all__ = ["Runtime"]
