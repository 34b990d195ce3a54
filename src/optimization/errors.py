"""Exception hierarchy shared by the simplex optimisation modules."""

from __future__ import annotations


class OptimizationError(Exception):
    """Base class for every error raised by the optimisation package."""


class InvalidConfigurationError(OptimizationError, ValueError):
    """Raised before iterating when the run cannot start from the given setup."""


class UnknownMetaParameterError(OptimizationError, KeyError):
    """Raised when a meta-parameter is looked up that was never set."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown meta-parameter: {self.name!r}"


class CostEvaluationError(OptimizationError):
    """Raised when the cost function cannot produce a value for a vertex."""


class WorkerCommunicationError(OptimizationError):
    """Raised when a dispatched evaluation is not answered by its worker."""


class CheckpointError(OptimizationError):
    """Raised when a persisted engine state cannot be decoded."""
