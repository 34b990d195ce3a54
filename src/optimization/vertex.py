"""Vertex and simplex value types."""

from __future__ import annotations

import math
from typing import Any, Iterator, Mapping, Sequence

import numpy as np


class Vertex:
    """Candidate point of the search space paired with its cost.

    The coordinates are always copied on construction, so two vertices never share storage.
    A cost of NaN marks a vertex that has not been evaluated yet.
    """

    __slots__ = ("coordinates", "cost")

    def __init__(self, coordinates: Sequence[float], cost: float = math.nan) -> None:
        self.coordinates = np.array(coordinates, dtype=float)
        if self.coordinates.ndim != 1:
            raise ValueError("Vertex coordinates must be a one-dimensional sequence")
        self.cost = float(cost)

    @property
    def dimension(self) -> int:
        return int(self.coordinates.shape[0])

    @property
    def is_evaluated(self) -> bool:
        return not math.isnan(self.cost)

    def copy(self) -> "Vertex":
        return Vertex(self.coordinates, self.cost)

    def to_dict(self) -> dict[str, Any]:
        return {
            "coordinates": [float(value) for value in self.coordinates],
            "cost": self.cost if self.is_evaluated else None,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Vertex":
        cost = payload.get("cost")
        return cls(payload["coordinates"], math.nan if cost is None else float(cost))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vertex):
            return NotImplemented
        if not np.array_equal(self.coordinates, other.coordinates):
            return False
        if self.is_evaluated or other.is_evaluated:
            return self.cost == other.cost
        return True

    def __repr__(self) -> str:
        coords = ", ".join(f"{value:g}" for value in self.coordinates)
        return f"Vertex([{coords}], cost={self.cost:g})"


class VertexSet:
    """Ordered collection of vertices of one dimension.

    The vertex count is not enforced here; :attr:`is_simplex` tells whether the set holds
    ``dimension + 1`` vertices, and the engine rejects anything else.

    Ordering is not intrinsic: callers sort explicitly with :meth:`order` and afterwards
    index 0 is the best vertex and the last index the worst.
    """

    def __init__(self, vertices: Sequence[Vertex]) -> None:
        items = [vertex.copy() for vertex in vertices]
        if not items:
            raise ValueError("A vertex set needs at least one vertex")
        dimension = items[0].dimension
        if any(vertex.dimension != dimension for vertex in items):
            raise ValueError("All vertices of a simplex must share the same dimension")
        self._vertices = items

    @property
    def dimension(self) -> int:
        return self._vertices[0].dimension

    def __len__(self) -> int:
        return len(self._vertices)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self._vertices)

    def __getitem__(self, index: int) -> Vertex:
        return self._vertices[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VertexSet):
            return NotImplemented
        return self._vertices == other._vertices

    def __repr__(self) -> str:
        return f"VertexSet({self._vertices!r})"

    @property
    def is_simplex(self) -> bool:
        """True when the set spans its space: exactly ``dimension + 1`` vertices."""
        return len(self._vertices) == self.dimension + 1

    @property
    def best(self) -> Vertex:
        return self._vertices[0]

    @property
    def worst(self) -> Vertex:
        return self._vertices[-1]

    @property
    def second_worst(self) -> Vertex:
        return self._vertices[-2]

    def replace(self, index: int, vertex: Vertex) -> None:
        if vertex.dimension != self.dimension:
            raise ValueError(f"Vertex has dimension {vertex.dimension}, simplex has {self.dimension}")
        self._vertices[index] = vertex.copy()

    def unevaluated_indices(self) -> list[int]:
        return [index for index, vertex in enumerate(self._vertices) if not vertex.is_evaluated]

    def order(self) -> None:
        """Sort ascending by cost; ties keep their current relative order."""
        if self.unevaluated_indices():
            raise ValueError("Every vertex must be evaluated before the simplex can be ordered")
        self._vertices.sort(key=lambda vertex: vertex.cost)

    def centroid(self, n_excluded: int = 1) -> np.ndarray:
        """
        Mean coordinates of the best ``len(self) - n_excluded`` vertices.

        The simplex is expected to be ordered already, so the excluded vertices are the worst ones.
        """
        count = len(self._vertices) - n_excluded
        if count <= 0:
            raise ValueError("Centroid needs at least one vertex")
        return np.mean([vertex.coordinates for vertex in self._vertices[:count]], axis=0)

    def simplex_size(self) -> float:
        """Average distance between the vertices and the centroid of the whole simplex."""
        centre = self.centroid(n_excluded=0)
        distances = np.linalg.norm(self.coordinates() - centre, axis=1)
        return float(distances.mean())

    def costs(self) -> list[float]:
        return [vertex.cost for vertex in self._vertices]

    def coordinates(self) -> np.ndarray:
        return np.vstack([vertex.coordinates for vertex in self._vertices])

    def copy(self) -> "VertexSet":
        return VertexSet(self._vertices)
