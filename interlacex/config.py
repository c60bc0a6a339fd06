from __future__ import annotations

import logging
import operator
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

_LOGGER = logging.getLogger("interlacex")

_SUPPORTED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_INITIAL_BLOCK = 1 << 4
_DEFAULT_BATCH_SIZE = 1 << 10
_DEFAULT_BATCH_MIN = 1 << 6
_DEFAULT_BATCH_MAX = 1 << 20
_DEFAULT_TARGET_LOW_MS = 100.0
_DEFAULT_TARGET_HIGH_MS = 200.0


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_optional_int(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value '{raw}'") from exc


def _parse_optional_float(raw: str | None, *, default: float) -> float:
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid float value '{raw}'") from exc


def _normalise_log_level(value: str | None) -> str:
    if value is None:
        return _DEFAULT_LOG_LEVEL
    level = value.strip().upper()
    if level not in _SUPPORTED_LOG_LEVELS:
        raise ValueError(
            f"Unsupported log level '{value}'. Expected one of {sorted(_SUPPORTED_LOG_LEVELS)}."
        )
    return level


def is_power_of_two(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        value = operator.index(value)
    except TypeError:
        return False
    return value > 0 and (value & (value - 1)) == 0


def require_power_of_two(value: Any, name: str) -> int:
    if not is_power_of_two(value):
        raise ValueError(f"{name} must be a positive power of two, got {value!r}")
    return operator.index(value)


def _int_from_env(var: str, default: int) -> int:
    raw = _parse_optional_int(os.getenv(var))
    return default if raw is None else raw


def validate_batching(
    *,
    batch_size: int,
    batch_min: int,
    batch_max: int,
    target_low_ms: float,
    target_high_ms: float,
) -> None:
    """Check the batch-size bounds and the target duration band."""

    require_power_of_two(batch_min, "batch_min")
    require_power_of_two(batch_max, "batch_max")
    require_power_of_two(batch_size, "batch_size")
    if batch_min > batch_max:
        raise ValueError("batch_min must not exceed batch_max")
    if not batch_min <= batch_size <= batch_max:
        raise ValueError(
            f"batch_size {batch_size} must lie within [{batch_min}, {batch_max}]"
        )
    if target_low_ms <= 0.0:
        raise ValueError("target_low_ms must be positive")
    if target_low_ms >= target_high_ms:
        raise ValueError("target_low_ms must be smaller than target_high_ms")


@dataclass(frozen=True)
class RuntimeConfig:
    log_level: str = _DEFAULT_LOG_LEVEL
    enable_diagnostics: bool = True
    initial_block: int = _DEFAULT_INITIAL_BLOCK
    batch_size: int = _DEFAULT_BATCH_SIZE
    batch_min: int = _DEFAULT_BATCH_MIN
    batch_max: int = _DEFAULT_BATCH_MAX
    target_low_ms: float = _DEFAULT_TARGET_LOW_MS
    target_high_ms: float = _DEFAULT_TARGET_HIGH_MS
    yield_on_pass: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "log_level", _normalise_log_level(self.log_level))
        object.__setattr__(
            self, "initial_block", require_power_of_two(self.initial_block, "initial_block")
        )
        validate_batching(
            batch_size=self.batch_size,
            batch_min=self.batch_min,
            batch_max=self.batch_max,
            target_low_ms=self.target_low_ms,
            target_high_ms=self.target_high_ms,
        )

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        log_level = _normalise_log_level(os.getenv("INTERLACEX_LOG_LEVEL"))
        enable_diagnostics = _bool_from_env(
            os.getenv("INTERLACEX_ENABLE_DIAGNOSTICS"), default=True
        )
        initial_block = _int_from_env("INTERLACEX_INITIAL_BLOCK", _DEFAULT_INITIAL_BLOCK)
        batch_size = _int_from_env("INTERLACEX_BATCH_SIZE", _DEFAULT_BATCH_SIZE)
        batch_min = _int_from_env("INTERLACEX_BATCH_MIN", _DEFAULT_BATCH_MIN)
        batch_max = _int_from_env("INTERLACEX_BATCH_MAX", _DEFAULT_BATCH_MAX)
        target_low_ms = _parse_optional_float(
            os.getenv("INTERLACEX_TARGET_LOW_MS"), default=_DEFAULT_TARGET_LOW_MS
        )
        target_high_ms = _parse_optional_float(
            os.getenv("INTERLACEX_TARGET_HIGH_MS"), default=_DEFAULT_TARGET_HIGH_MS
        )
        yield_on_pass = _bool_from_env(os.getenv("INTERLACEX_YIELD_ON_PASS"), default=False)
        if not is_power_of_two(initial_block):
            raise ValueError(
                "INTERLACEX_INITIAL_BLOCK must be a positive power of two, "
                f"got {initial_block}"
            )
        if os.getenv("INTERLACEX_BATCH_SIZE") is None:
            # An explicit bound override pulls the default estimate inside it.
            batch_size = min(max(batch_size, batch_min), batch_max)
        return cls(
            log_level=log_level,
            enable_diagnostics=enable_diagnostics,
            initial_block=initial_block,
            batch_size=batch_size,
            batch_min=batch_min,
            batch_max=batch_max,
            target_low_ms=target_low_ms,
            target_high_ms=target_high_ms,
            yield_on_pass=yield_on_pass,
        )


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("interlacex")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    else:
        for handler in logger.handlers:
            handler.setLevel(level)


@dataclass
class RuntimeContext:
    """Aggregate runtime configuration and its one-time side effects."""

    config: RuntimeConfig
    _activated: bool = False

    def activate(self) -> None:
        """Apply logging side effects once."""

        if self._activated:
            return
        _configure_logging(self.config.log_level)
        self._activated = True


_CONTEXT_CACHE: Optional[RuntimeContext] = None


def runtime_context() -> RuntimeContext:
    """Return the cached runtime context, constructing it if necessary."""

    global _CONTEXT_CACHE
    if _CONTEXT_CACHE is None:
        config = RuntimeConfig.from_env()
        context = RuntimeContext(config=config)
        context.activate()
        _CONTEXT_CACHE = context
    return _CONTEXT_CACHE


def current_runtime_context() -> Optional[RuntimeContext]:
    return _CONTEXT_CACHE


def runtime_config() -> RuntimeConfig:
    return runtime_context().config


def configure_runtime(config: RuntimeConfig) -> RuntimeContext:
    """Force the active runtime context to use ``config`` instead of env defaults."""

    global _CONTEXT_CACHE
    context = RuntimeContext(config=config)
    context.activate()
    _CONTEXT_CACHE = context
    return context


def reset_runtime_context() -> None:
    """Clear the cached runtime context (used in tests)."""

    global _CONTEXT_CACHE
    _CONTEXT_CACHE = None


def describe_runtime() -> Dict[str, Any]:
    """Return a serialisable view of the active runtime configuration."""

    config = runtime_config()
    return {
        "log_level": config.log_level,
        "enable_diagnostics": config.enable_diagnostics,
        "initial_block": config.initial_block,
        "batch_size": config.batch_size,
        "batch_min": config.batch_min,
        "batch_max": config.batch_max,
        "target_low_ms": config.target_low_ms,
        "target_high_ms": config.target_high_ms,
        "yield_on_pass": config.yield_on_pass,
    }


__all__ = [
    "RuntimeConfig",
    "RuntimeContext",
    "runtime_context",
    "current_runtime_context",
    "runtime_config",
    "configure_runtime",
    "reset_runtime_context",
    "describe_runtime",
    "is_power_of_two",
    "require_power_of_two",
    "validate_batching",
]
