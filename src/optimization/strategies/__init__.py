"""Vertex evaluation strategies."""

from .base import EvaluationStrategy, StrategyState
from .parallel import ParallelEvaluation
from .serial import SerialEvaluation

__all__ = [
    "EvaluationStrategy",
    "StrategyState",
    "ParallelEvaluation",
    "SerialEvaluation",
]
