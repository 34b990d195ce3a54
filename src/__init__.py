"""Bounded Nelder-Mead simplex minimisation."""

from .optimization import OptimizationExecutor, OptimizationResult, ParameterDefinition, ParameterSpace, SimplexEngine

__all__ = [
    "OptimizationExecutor",
    "OptimizationResult",
    "ParameterDefinition",
    "ParameterSpace",
    "SimplexEngine",
]

__version__ = "0.1.0"
