"""Base classes and interfaces for vertex evaluation strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from ..vertex import Vertex

if TYPE_CHECKING:  # pragma: no cover
    from ..cost_function import CostFunction


@dataclass
class StrategyState:
    """Counters shared between evaluation batches."""

    batches: int = 0
    evaluations: int = 0


class EvaluationStrategy(ABC):
    """Abstract base class for the way a batch of vertices gets scored."""

    def __init__(self) -> None:
        self.cost_function: "CostFunction | None" = None
        self.state = StrategyState()

    def bind(self, cost_function: "CostFunction") -> None:
        """Attach the cost function used for the coming run."""
        self.cost_function = cost_function
        self.state = StrategyState()

    def release(self) -> None:
        """Free whatever :meth:`bind` acquired."""
        self.cost_function = None

    def evaluate(self, vertices: Sequence[Vertex], iteration: int = 0) -> list[Vertex]:
        """
        Score every vertex of the batch.

        Returns:
            New vertices, in input order, carrying the computed cost.
        """
        if self.cost_function is None:
            raise RuntimeError(f"{type(self).__name__} must be bound to a cost function before evaluating")
        if not vertices:
            return []
        scored = self._evaluate_batch(list(vertices), iteration)
        self.state.batches += 1
        self.state.evaluations += len(scored)
        return scored

    @abstractmethod
    def _evaluate_batch(self, vertices: list[Vertex], iteration: int) -> list[Vertex]:
        """Evaluate a non-empty batch."""
