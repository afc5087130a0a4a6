from .engine import ResolutionEngine, ResolutionResult, coerce_resolution

__all__ = ["ResolutionEngine", "ResolutionResult", "coerce_resolution"]
