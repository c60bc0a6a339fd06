from .model import BatchingModel, DiagnosticsModel, RuntimeModel, TraversalModel

__all__ = ["RuntimeModel", "DiagnosticsModel", "TraversalModel", "BatchingModel"]
