"""Point-to-point message passing between the coordinator and evaluation workers."""

from __future__ import annotations

import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from threading import Condition
from typing import TYPE_CHECKING, Any, Protocol, Sequence

from .errors import CostEvaluationError, WorkerCommunicationError
from .vertex import Vertex

if TYPE_CHECKING:  # pragma: no cover
    from .cost_function import CostFunction

COORDINATOR = 0
ANY_SOURCE = -1
ANY_TAG = -1
STOP_TAG = -2

# Seconds the coordinator waits for a single reply before the run is abandoned.
DEFAULT_EVALUATION_TIMEOUT = 60.0


@dataclass(frozen=True)
class Envelope:
    """Message as delivered to its destination."""

    source: int
    destination: int
    tag: int
    payload: Any


@dataclass(frozen=True)
class EvaluationRequest:
    """Vertex sent to a worker for scoring."""

    iteration: int
    vertex: Vertex


@dataclass(frozen=True)
class EvaluationFailure:
    """Reply sent back when the worker could not score its vertex."""

    message: str


class MessageTransport(Protocol):
    """Minimal send/receive capability needed by the parallel coordinator."""

    def send(self, payload: Any, destination: int, tag: int, *, source: int = COORDINATOR) -> None:
        """Deliver ``payload`` to the mailbox of ``destination``."""

    def receive(
        self,
        rank: int,
        source: int = ANY_SOURCE,
        tag: int = ANY_TAG,
        timeout: float | None = None,
    ) -> Envelope:
        """Block until a message for ``rank`` matching ``source`` and ``tag`` arrives."""


class QueueTransport:
    """In-process transport: one mailbox per rank, matched on source and tag."""

    def __init__(self, size: int) -> None:
        if size < 2:
            raise ValueError("QueueTransport needs a coordinator and at least one worker")
        self.size = size
        self._mailboxes: list[list[Envelope]] = [[] for _ in range(size)]
        self._condition = Condition()
        self._closed = False

    def send(self, payload: Any, destination: int, tag: int, *, source: int = COORDINATOR) -> None:
        self._check_rank(destination)
        with self._condition:
            if self._closed:
                raise WorkerCommunicationError("Transport is closed")
            self._mailboxes[destination].append(Envelope(source, destination, tag, payload))
            self._condition.notify_all()

    def receive(
        self,
        rank: int,
        source: int = ANY_SOURCE,
        tag: int = ANY_TAG,
        timeout: float | None = None,
    ) -> Envelope:
        self._check_rank(rank)
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._condition:
            while True:
                envelope = self._pop_match(rank, source, tag)
                if envelope is not None:
                    return envelope
                if self._closed:
                    raise WorkerCommunicationError(f"Transport closed while rank {rank} waited for tag {tag}")
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise WorkerCommunicationError(
                        f"Rank {rank} timed out after {timeout}s waiting for source={source} tag={tag}"
                    )
                self._condition.wait(remaining)

    def drain(self, rank: int) -> list[Envelope]:
        """Remove and return every message still queued for ``rank``."""
        self._check_rank(rank)
        with self._condition:
            pending = self._mailboxes[rank]
            self._mailboxes[rank] = []
        return pending

    def close(self) -> None:
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    def _pop_match(self, rank: int, source: int, tag: int) -> Envelope | None:
        mailbox = self._mailboxes[rank]
        for position, envelope in enumerate(mailbox):
            if source not in (ANY_SOURCE, envelope.source):
                continue
            if tag not in (ANY_TAG, envelope.tag):
                continue
            return mailbox.pop(position)
        return None

    def _check_rank(self, rank: int) -> None:
        if not 0 <= rank < self.size:
            raise ValueError(f"Rank {rank} outside transport of size {self.size}")


def serve_worker(transport: MessageTransport, rank: int, cost_function: "CostFunction") -> None:
    """
    Answer evaluation requests from the coordinator until a stop message arrives.

    Every reply carries the tag of its request. Workers keep no state between requests.
    """
    while True:
        try:
            envelope = transport.receive(rank, source=COORDINATOR)
        except WorkerCommunicationError:
            return
        if envelope.tag == STOP_TAG:
            return
        request = envelope.payload
        if not isinstance(request, EvaluationRequest):
            reply: Any = EvaluationFailure(f"Unexpected payload {type(request).__name__}")
        else:
            scored = request.vertex.copy()
            try:
                scored.cost = cost_function.get_evaluation(scored.coordinates)
                reply = scored
            except CostEvaluationError as exc:
                reply = EvaluationFailure(str(exc))
        try:
            transport.send(reply, COORDINATOR, envelope.tag, source=rank)
        except WorkerCommunicationError:
            return


class WorkerPool:
    """Evaluation workers hosted on a thread pool and attached to a transport.

    Each worker rank runs :func:`serve_worker` as one task of a ``ThreadPoolExecutor``. Stopping
    the pool collects every task result, so a worker that crashed is reported instead of lost.
    """

    def __init__(self, transport: MessageTransport, workers: Sequence[int]) -> None:
        if not workers:
            raise ValueError("WorkerPool needs at least one worker rank")
        if COORDINATOR in workers:
            raise ValueError("The coordinator rank cannot act as a worker")
        self.transport = transport
        self.workers = tuple(workers)
        self._executor: ThreadPoolExecutor | None = None
        self._futures: dict[Future, int] = {}

    @classmethod
    def local(cls, worker_count: int) -> "WorkerPool":
        """Create a pool of ``worker_count`` workers on a fresh :class:`QueueTransport`."""
        transport = QueueTransport(worker_count + 1)
        return cls(transport, range(1, worker_count + 1))

    @property
    def running(self) -> bool:
        return any(not future.done() for future in self._futures)

    def start(self, cost_function: "CostFunction") -> None:
        if self.running:
            return
        self._executor = ThreadPoolExecutor(
            max_workers=len(self.workers),
            thread_name_prefix="simplex-worker",
        )
        self._futures = {
            self._executor.submit(serve_worker, self.transport, rank, cost_function): rank
            for rank in self.workers
        }

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Ask every worker to stop and wait up to ``timeout`` seconds for them to finish.

        Replies still queued for the coordinator are discarded afterwards.

        Raises:
            WorkerCommunicationError: if a worker crashed or did not stop in time.
        """
        if self._executor is None:
            return
        for rank in self.workers:
            try:
                self.transport.send(None, rank, STOP_TAG)
            except WorkerCommunicationError:
                break
        done, pending = wait(self._futures, timeout=timeout)
        self._executor.shutdown(wait=False, cancel_futures=True)
        futures = self._futures
        self._executor = None
        self._futures = {}
        if isinstance(self.transport, QueueTransport):
            self.transport.drain(COORDINATOR)

        for future in done:
            exc = future.exception()
            if exc is not None:
                raise WorkerCommunicationError(f"Worker {futures[future]} crashed: {exc}") from exc
        if pending:
            ranks = sorted(futures[future] for future in pending)
            raise WorkerCommunicationError(f"Workers {ranks} did not stop within {timeout}s")
