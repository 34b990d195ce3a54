"""Synchronous evaluation in the calling thread."""

from __future__ import annotations

from ..vertex import Vertex
from .base import EvaluationStrategy


class SerialEvaluation(EvaluationStrategy):
    """Call the cost function once per vertex, one after another."""

    def _evaluate_batch(self, vertices: list[Vertex], iteration: int) -> list[Vertex]:
        assert self.cost_function is not None  # for type checkers
        scored: list[Vertex] = []
        for vertex in vertices:
            result = vertex.copy()
            result.cost = self.cost_function.get_evaluation(result.coordinates)
            scored.append(result)
        return scored
