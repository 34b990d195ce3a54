"""Coordinator side of distributed vertex evaluation."""

from __future__ import annotations

from itertools import count
from typing import TYPE_CHECKING, Sequence

from ..errors import CostEvaluationError, WorkerCommunicationError
from ..transport import (
    COORDINATOR,
    DEFAULT_EVALUATION_TIMEOUT,
    EvaluationFailure,
    EvaluationRequest,
    MessageTransport,
    WorkerPool,
)
from ..vertex import Vertex
from .base import EvaluationStrategy

if TYPE_CHECKING:  # pragma: no cover
    from ..cost_function import CostFunction


class ParallelEvaluation(EvaluationStrategy):
    """Fan a batch out to workers and block until every reply is in.

    Each request gets its own tag so replies to concurrent requests (for example a reflection and
    an expansion scored together) can be told apart. Replies are only consumed once the whole
    batch has answered; a missing reply is fatal for the run. Each reply is awaited for at most
    ``timeout`` seconds (``None`` waits without limit).
    """

    def __init__(
        self,
        transport: MessageTransport,
        workers: Sequence[int],
        *,
        timeout: float | None = DEFAULT_EVALUATION_TIMEOUT,
        pool: WorkerPool | None = None,
    ) -> None:
        super().__init__()
        if not workers:
            raise ValueError("ParallelEvaluation needs at least one worker rank")
        self.transport = transport
        self.workers = tuple(workers)
        self.timeout = timeout
        self.pool = pool
        self._tags = count(1)

    @classmethod
    def with_local_workers(
        cls, worker_count: int, *, timeout: float | None = DEFAULT_EVALUATION_TIMEOUT
    ) -> "ParallelEvaluation":
        """Coordinator plus ``worker_count`` in-process worker threads."""
        pool = WorkerPool.local(worker_count)
        return cls(pool.transport, pool.workers, timeout=timeout, pool=pool)

    def bind(self, cost_function: "CostFunction") -> None:
        super().bind(cost_function)
        if self.pool is not None:
            self.pool.start(cost_function)

    def release(self) -> None:
        try:
            if self.pool is not None:
                self.pool.stop()
        finally:
            super().release()

    def send_vertex(self, vertex: Vertex, destination: int, tag: int, iteration: int = 0) -> None:
        self.transport.send(EvaluationRequest(iteration, vertex.copy()), destination, tag, source=COORDINATOR)

    def receive_vertex(self, source: int, tag: int) -> Vertex:
        envelope = self.transport.receive(COORDINATOR, source=source, tag=tag, timeout=self.timeout)
        payload = envelope.payload
        if isinstance(payload, EvaluationFailure):
            raise CostEvaluationError(f"Worker {envelope.source} failed: {payload.message}")
        if not isinstance(payload, Vertex) or not payload.is_evaluated:
            raise WorkerCommunicationError(
                f"Worker {envelope.source} answered tag {tag} with {type(payload).__name__}"
            )
        return payload.copy()

    def _evaluate_batch(self, vertices: list[Vertex], iteration: int) -> list[Vertex]:
        dispatched: list[tuple[int, int]] = []
        for position, vertex in enumerate(vertices):
            destination = self.workers[position % len(self.workers)]
            tag = next(self._tags)
            self.send_vertex(vertex, destination, tag, iteration)
            dispatched.append((destination, tag))
        return [self.receive_vertex(destination, tag) for destination, tag in dispatched]
