"""Reporting utilities for simplex runs."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Sequence

import pandas as pd

from .result import OptimizationResult
from .vertex import Vertex, VertexSet

COLUMN_WIDTH = 8


@dataclass
class SimplexReporter:
    """Append per-iteration progress to the two ``nmSimplex_<name>`` sinks."""

    output_root: Path
    function_name: str = ""

    def __post_init__(self) -> None:
        self.output_root = Path(self.output_root)

    @property
    def vertices_path(self) -> Path:
        return self.output_root / f"nmSimplex_{self.function_name}_Vertices"

    @property
    def f_value_path(self) -> Path:
        return self.output_root / f"nmSimplex_{self.function_name}_fValue"

    @staticmethod
    def vertex_table(vertex_set: VertexSet, names: Sequence[str]) -> pd.DataFrame:
        """
        Return the simplex as a DataFrame: one row per vertex, one column per parameter plus ``cost``.
        """
        frame = pd.DataFrame(vertex_set.coordinates(), columns=list(names))
        frame["cost"] = vertex_set.costs()
        frame.index = [f"A[{index}]" for index in range(len(vertex_set))]
        return frame

    def record_vertices(self, iteration: int, vertex_set: VertexSet, names: Sequence[str]) -> None:
        table = self.vertex_table(vertex_set, names)
        formatters = {name: _format_coordinate for name in names}
        formatters["cost"] = _format_cost
        rendered = table.to_string(formatters=formatters, col_space=COLUMN_WIDTH)
        self._append(self.vertices_path, f"  Iteration: {iteration}\n{rendered}\n\n")

    def record_best(self, iteration: int, vertex: Vertex) -> None:
        coordinates = "".join(_format_coordinate(value).rjust(COLUMN_WIDTH) for value in vertex.coordinates)
        line = f"Iteration {iteration:5d}   {'A[0]':>{COLUMN_WIDTH}}{coordinates}   f(A[0])={_format_cost(vertex.cost)}\n"
        self._append(self.f_value_path, line)

    @staticmethod
    def summary(result: OptimizationResult) -> Dict[str, Any]:
        """Compact JSON-ready overview of a finished run."""
        metadata = result.metadata
        return {
            "function_name": metadata.get("function_name"),
            "cost": result.cost,
            "parameters": dict(result.parameters),
            "iterations": metadata.get("iterations"),
            "evaluations": metadata.get("evaluations"),
            "stop_reason": metadata.get("stop_reason"),
            "decisions": dict(metadata.get("decisions", {})),
        }

    def _append(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(text)


def _format_coordinate(value: float) -> str:
    return f"{value:.2f}"


def _format_cost(value: float) -> str:
    return f"{value:.6g}"
