"""Nelder-Mead simplex engine for bounded, derivative-free minimisation.

The method follows "A simplex method for function minimization", J. Nelder and R. Mead,
Computer Journal (1965). Vertex evaluation is delegated to an :class:`EvaluationStrategy`, so the
same iteration runs serially or with a coordinator fanning evaluations out to workers
(see Lee & Wiswall, Computational Economics 2007, and Klein & Neira, Computational Economics 2013).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Sequence

import numpy as np

from .checkpoint import CheckpointStoreProtocol, EngineState
from .cost_function import CostFunction
from .errors import InvalidConfigurationError
from .meta_parameters import MetaParameters
from .parameter_space import ParameterSpace
from .reporting import SimplexReporter
from .result import OptimizationResult
from .strategies.base import EvaluationStrategy
from .strategies.serial import SerialEvaluation
from .vertex import Vertex, VertexSet

EXPAND = "expand"
REFLECT = "reflect"
REFLECT_ACCEPT = "reflect-accept"
CONTRACT = "contract"
SHRINK = "shrink"

STOP_FLAG = "checkboundary"
BUDGET_EXHAUSTED = "iteration budget reached"


@dataclass(frozen=True)
class IterationRecord:
    """What happened during one completed cycle."""

    iteration: int
    decision: str
    best_cost: float
    simplex_size: float


IterationCallback = Callable[[IterationRecord], None]
LogWriter = Callable[[str], None]


# Geometric transforms ---------------------------------------------------------

def reflect(centroid: np.ndarray, vertex: np.ndarray, alpha: float) -> np.ndarray:
    """Ar = M + alpha * (M - Aj)"""
    return centroid + alpha * (centroid - vertex)


def expand(reflected: np.ndarray, centroid: np.ndarray, gamma: float) -> np.ndarray:
    """Ae = Ar + gamma * (Ar - M)"""
    return reflected + gamma * (reflected - centroid)


def contract(centroid: np.ndarray, pivot: np.ndarray, beta: float) -> np.ndarray:
    """Ac = M + beta * (Ap - M)"""
    return centroid + beta * (pivot - centroid)


def shrink(best: np.ndarray, vertex: np.ndarray, tau: float) -> np.ndarray:
    """As = tau * A0 + (1 - tau) * Ai"""
    return tau * best + (1.0 - tau) * vertex


class SimplexEngine:
    """Drive the reflect/expand/contract/shrink cycle until the stopping condition fails."""

    def __init__(
        self,
        stopping_iteration: int,
        *,
        meta_parameters: MetaParameters | Mapping[str, float] | None = None,
        step_size: Sequence[float] | None = None,
        function_name: str = "",
        evaluation: EvaluationStrategy | None = None,
        checkpoint_store: CheckpointStoreProtocol | None = None,
        reporter: SimplexReporter | None = None,
        callbacks: Iterable[IterationCallback] = (),
        log: LogWriter | None = None,
        speculative: bool = False,
    ) -> None:
        self.stopping_iteration = int(stopping_iteration)
        if isinstance(meta_parameters, MetaParameters):
            self.meta_parameters = meta_parameters
        else:
            self.meta_parameters = MetaParameters(meta_parameters)
        self._step_size = None if step_size is None else np.array(step_size, dtype=float)
        self.function_name = function_name
        self.evaluation = evaluation or SerialEvaluation()
        self.checkpoint_store = checkpoint_store
        self.reporter = reporter
        self.callbacks = tuple(callbacks)
        self._log_writer = log
        self.speculative = speculative
        self.state = EngineState()
        self._additional_information: dict[str, str] = {STOP_FLAG: ""}
        self._stop_reason: str | None = None
        self._decisions: dict[str, int] = {}

    # Configuration -----------------------------------------------------------

    def set_meta_parameter(self, name: str, value: float) -> None:
        self.meta_parameters.set(name, value)

    def get_meta_parameter(self, name: str) -> float:
        return self.meta_parameters.get(name)

    def set_step_size(self, step_size: Sequence[float]) -> None:
        """Override the automatic step sizes used to build the initial simplex."""
        self._step_size = np.array(step_size, dtype=float)

    def set_stopping_iteration(self, stopping_iteration: int) -> None:
        self.stopping_iteration = int(stopping_iteration)

    def set_function_name(self, name: str) -> None:
        self.function_name = name

    @property
    def additional_information(self) -> dict[str, str]:
        return self._additional_information

    def set_additional_information(self, key: str, value: str) -> None:
        self._additional_information[key] = value

    def request_stop(self, reason: str = "stop requested") -> None:
        """Ask the run to end before its next cycle."""
        self.set_additional_information(STOP_FLAG, reason)

    # Main loop -----------------------------------------------------------------

    def run(self, cost_function: CostFunction) -> OptimizationResult:
        """
        Minimise ``cost_function`` inside its parameter boundaries.

        Raises:
            InvalidConfigurationError: when the parameter space, step sizes or restored simplex are unusable.
            CostEvaluationError: when a vertex cannot be evaluated.
            WorkerCommunicationError: when a parallel evaluation is not answered.
        """
        space = cost_function.parameter_space
        space.validate()
        step_sizes = self._resolve_step_sizes(space)
        if not self.function_name:
            self.function_name = cost_function.name
        if self.reporter is not None and not self.reporter.function_name:
            self.reporter.function_name = self.function_name
        self._stop_reason = None
        self._decisions = {}

        self.evaluation.bind(cost_function)
        try:
            self._prepare_state(space, step_sizes)
            self._log(f"Start. Current iteration = {self.state.iteration}")
            while self.check_stopping_condition():
                self._run_cycle(space)
            return self._finish(space)
        finally:
            self.evaluation.release()

    def check_stopping_condition(self) -> bool:
        """Return True and advance the counter when another cycle may run."""
        flag = self._additional_information.get(STOP_FLAG, "")
        if flag:
            self._log(flag)
            self._stop_reason = flag
            return False
        if self.state.iteration >= self.stopping_iteration:
            self._stop_reason = BUDGET_EXHAUSTED
            return False
        self.state.iteration += 1
        return True

    def initialize_vertices(self, space: ParameterSpace, step_sizes: Sequence[float]) -> VertexSet:
        """Start point plus one vertex per dimension shifted by that dimension's step."""
        start = space.starting_point()
        vertices = [Vertex(start)]
        for index, step in enumerate(step_sizes):
            shifted = start.copy()
            shifted[index] += step
            vertices.append(Vertex(shifted))
        return VertexSet(vertices)

    def _prepare_state(self, space: ParameterSpace, step_sizes: np.ndarray) -> None:
        restored = self.checkpoint_store.restore() if self.checkpoint_store is not None else None
        if restored is not None and restored.vertices is not None:
            self._check_restored(restored.vertices, space.dimension)
            self.state = restored
            self._log(f"Restored simplex from checkpoint at iteration {restored.iteration}")
        else:
            self.state = EngineState(vertices=self.initialize_vertices(space, step_sizes), iteration=0)
        vertices = self._vertices
        for index, vertex in enumerate(vertices):
            vertices.replace(index, self._clamp(vertex, space))

    def _run_cycle(self, space: ParameterSpace) -> None:
        vertices = self._vertices
        iteration = self.state.iteration
        self._evaluate_pending(vertices)
        vertices.order()
        if self.reporter is not None:
            self.reporter.record_vertices(iteration, vertices, space.names)

        decision = self._transform(vertices, space)
        self._decisions[decision] = self._decisions.get(decision, 0) + 1

        if self.checkpoint_store is not None:
            self.checkpoint_store.save(self.state)

        best = min((vertex for vertex in vertices if vertex.is_evaluated), key=lambda vertex: vertex.cost)
        if self.reporter is not None:
            self.reporter.record_best(iteration, best)
        record = IterationRecord(
            iteration=iteration,
            decision=decision,
            best_cost=best.cost,
            simplex_size=vertices.simplex_size(),
        )
        self._log(f"Iteration {iteration}: {decision}, best cost {best.cost:.6g}")
        for callback in self.callbacks:
            callback(record)

    def _transform(self, vertices: VertexSet, space: ParameterSpace) -> str:
        """Replace the worst vertex, or shrink the simplex; return the decision tag."""
        iteration = self.state.iteration
        best, worst = vertices.best, vertices.worst
        centroid_point = vertices.centroid(n_excluded=1)
        reflected_point = reflect(centroid_point, worst.coordinates, self.meta_parameters.get("alpha"))
        expanded_point = expand(reflected_point, centroid_point, self.meta_parameters.get("gamma"))

        batch = [Vertex(centroid_point), Vertex(reflected_point)]
        if self.speculative:
            batch.append(Vertex(expanded_point))
        scored = self.evaluation.evaluate(batch, iteration)
        reflected = scored[1]

        replacement: Vertex | None = None
        if reflected.cost < best.cost:
            expanded = scored[2] if self.speculative else self._score(expanded_point)
            if expanded.cost < reflected.cost:
                replacement, decision = expanded, EXPAND
            else:
                replacement, decision = reflected, REFLECT
        elif reflected.cost < vertices.second_worst.cost:
            replacement, decision = reflected, REFLECT_ACCEPT
        else:
            pivot = reflected if reflected.cost < worst.cost else worst
            contracted = self._score(
                contract(centroid_point, pivot.coordinates, self.meta_parameters.get("beta"))
            )
            if contracted.cost < worst.cost:
                replacement, decision = contracted, CONTRACT

        if replacement is None:
            self._shrink(vertices, space)
            return SHRINK
        vertices.replace(len(vertices) - 1, self._clamp(replacement, space))
        return decision

    def _shrink(self, vertices: VertexSet, space: ParameterSpace) -> None:
        """Move every vertex but the best halfway (by ``tau``) towards the best one."""
        tau = self.meta_parameters.get("tau")
        best_point = vertices.best.coordinates
        shrunk = [Vertex(shrink(best_point, vertex.coordinates, tau)) for vertex in list(vertices)[1:]]
        scored = self.evaluation.evaluate(shrunk, self.state.iteration)
        for index, vertex in enumerate(scored, start=1):
            vertices.replace(index, self._clamp(vertex, space))

    def _finish(self, space: ParameterSpace) -> OptimizationResult:
        vertices = self._vertices
        self._evaluate_pending(vertices)
        vertices.order()
        best = vertices.best
        self._log(f"Finished after {self.state.iteration} iterations ({self._stop_reason}), cost {best.cost:.6g}")
        return OptimizationResult(
            parameters=space.as_mapping(best.coordinates),
            cost=best.cost,
            metadata={
                "function_name": self.function_name,
                "iterations": self.state.iteration,
                "stop_reason": self._stop_reason,
                "evaluations": self.evaluation.state.evaluations,
                "simplex_size": vertices.simplex_size(),
                "decisions": dict(self._decisions),
                "meta_parameters": self.meta_parameters.as_dict(),
            },
        )

    # Helpers ---------------------------------------------------------------------

    @property
    def _vertices(self) -> VertexSet:
        assert self.state.vertices is not None  # for type checkers
        return self.state.vertices

    def _resolve_step_sizes(self, space: ParameterSpace) -> np.ndarray:
        if self._step_size is None:
            return space.default_step_sizes()
        if self._step_size.shape != (space.dimension,):
            raise InvalidConfigurationError(
                f"Expected {space.dimension} step sizes, got {self._step_size.size}"
            )
        return self._step_size.copy()

    def _evaluate_pending(self, vertices: VertexSet) -> None:
        pending = vertices.unevaluated_indices()
        if not pending:
            return
        scored = self.evaluation.evaluate([vertices[index] for index in pending], self.state.iteration)
        for index, vertex in zip(pending, scored):
            vertices.replace(index, vertex)

    def _score(self, point: np.ndarray) -> Vertex:
        return self.evaluation.evaluate([Vertex(point)], self.state.iteration)[0]

    @staticmethod
    def _clamp(vertex: Vertex, space: ParameterSpace) -> Vertex:
        """Hard-clamp into the bounds; a moved vertex loses its cost and is re-evaluated."""
        clamped = space.clamp(vertex.coordinates)
        if np.array_equal(clamped, vertex.coordinates):
            return vertex
        return Vertex(clamped)

    @staticmethod
    def _check_restored(vertices: VertexSet, dimension: int) -> None:
        if vertices.dimension != dimension:
            raise InvalidConfigurationError(
                f"Checkpointed simplex has dimension {vertices.dimension}, cost function has {dimension}"
            )
        if not vertices.is_simplex:
            raise InvalidConfigurationError(
                f"Checkpointed simplex holds {len(vertices)} vertices, expected {dimension + 1}"
            )

    def _log(self, message: str) -> None:
        if self._log_writer is not None:
            self._log_writer(message)
