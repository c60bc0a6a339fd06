"""Public ergonomic façade for interlacex."""

from .runtime import Runtime

__all__ = ["Runtime"]
