from __future__ import annotations

from typing import Any, Mapping

from interlacex.api import Runtime as ApiRuntime


def _get_arg(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def runtime_from_args(
    args: Any,
    *,
    extra_overrides: Mapping[str, Any] | None = None,
) -> ApiRuntime:
    runtime_kwargs: dict[str, Any] = {}
    log_level = _get_arg(args, "log_level")
    if log_level:
        runtime_kwargs["log_level"] = log_level
    diagnostics = _get_arg(args, "diagnostics")
    if diagnostics is not None:
        runtime_kwargs["diagnostics"] = bool(diagnostics)
    initial_block = _get_arg(args, "initial_block")
    if initial_block is not None:
        runtime_kwargs["initial_block"] = int(initial_block)
    yield_on_pass = _get_arg(args, "yield_on_pass")
    if yield_on_pass is not None:
        runtime_kwargs["yield_on_pass"] = bool(yield_on_pass)
    batch_size = _get_arg(args, "batch_size")
    if batch_size is not None:
        runtime_kwargs["batch_size"] = int(batch_size)
    batch_min = _get_arg(args, "batch_min")
    if batch_min is not None:
        runtime_kwargs["batch_min"] = int(batch_min)
    batch_max = _get_arg(args, "batch_max")
    if batch_max is not None:
        runtime_kwargs["batch_max"] = int(batch_max)
    target_low_ms = _get_arg(args, "target_low_ms")
    if target_low_ms is not None:
        runtime_kwargs["target_low_ms"] = float(target_low_ms)
    target_high_ms = _get_arg(args, "target_high_ms")
    if target_high_ms is not None:
        runtime_kwargs["target_high_ms"] = float(target_high_ms)
    if extra_overrides:
        runtime_kwargs.update(extra_overrides)
    return ApiRuntime(**runtime_kwargs)


__all__ = ["runtime_from_args"]
