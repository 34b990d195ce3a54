"""Persisted engine state and the stores that keep it between runs."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Any, Mapping

from .errors import CheckpointError
from .vertex import Vertex, VertexSet

CHECKPOINT_VERSION = 1


@dataclass
class EngineState:
    """Mutable state of one simplex run: the current simplex and iteration counter."""

    vertices: VertexSet | None = None
    iteration: int = 0

    def copy(self) -> "EngineState":
        return EngineState(
            vertices=self.vertices.copy() if self.vertices is not None else None,
            iteration=self.iteration,
        )


def encode_state(state: EngineState) -> dict[str, Any]:
    """Convert the engine state into a JSON serialisable dictionary."""
    if state.vertices is None:
        raise CheckpointError("Cannot encode an engine state without vertices")
    return {
        "version": CHECKPOINT_VERSION,
        "iteration": int(state.iteration),
        "vertices": [vertex.to_dict() for vertex in state.vertices],
    }


def decode_state(payload: Mapping[str, Any]) -> EngineState:
    """
    Rebuild an engine state from :func:`encode_state` output.

    Raises:
        CheckpointError: for an unsupported version or a malformed payload.
    """
    version = payload.get("version")
    if version != CHECKPOINT_VERSION:
        raise CheckpointError(f"Unsupported checkpoint version: {version!r}")
    try:
        items = list(payload["vertices"])
        if not all(isinstance(item, Mapping) for item in items):
            raise TypeError("every vertex entry must be an object with coordinates and cost")
        vertices = VertexSet([Vertex.from_dict(item) for item in items])
        iteration = int(payload["iteration"])
    except (KeyError, TypeError, ValueError) as exc:
        raise CheckpointError(f"Malformed checkpoint payload: {exc}") from exc
    if iteration < 0:
        raise CheckpointError(f"Checkpoint iteration must be non-negative, got {iteration}")
    return EngineState(vertices=vertices, iteration=iteration)


class CheckpointStoreProtocol:
    """Protocol-like base class for type hints."""

    def save(self, state: EngineState) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def restore(self) -> EngineState | None:  # pragma: no cover - interface only
        raise NotImplementedError


class InMemoryCheckpointStore(CheckpointStoreProtocol):
    """Thread-safe in-memory checkpoint, mainly for tests and embedded runs."""

    def __init__(self) -> None:
        self._payload: dict[str, Any] | None = None
        self._lock = Lock()

    def save(self, state: EngineState) -> None:
        payload = encode_state(state)
        with self._lock:
            self._payload = payload

    def restore(self) -> EngineState | None:
        with self._lock:
            payload = self._payload
        if payload is None:
            return None
        return decode_state(payload)

    def clear(self) -> None:
        with self._lock:
            self._payload = None


class FileCheckpointStore(CheckpointStoreProtocol):
    """JSON checkpoint file written atomically through a temporary sibling."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = Lock()

    def save(self, state: EngineState) -> None:
        payload = encode_state(state)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)

    def restore(self) -> EngineState | None:
        with self._lock:
            if not self.path.exists():
                return None
            text = self.path.read_text(encoding="utf-8")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CheckpointError(f"Failed to read checkpoint '{self.path}': {exc}") from exc
        if not isinstance(payload, Mapping):
            raise CheckpointError(f"Checkpoint '{self.path}' does not contain an object")
        return decode_state(payload)

    def clear(self) -> None:
        with self._lock:
            self.path.unlink(missing_ok=True)
