"""Outcome of a simplex run."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Mapping

import json


@dataclass
class OptimizationResult:
    """Best parameter assignment found by a run and its cost."""

    parameters: dict[str, float]
    cost: float
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict[str, Any]:
        """Convert the result into a JSON serialisable dictionary."""
        return {
            "parameters": dict(self.parameters),
            "cost": self.cost,
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "OptimizationResult":
        """Instantiate a result object from a serialised representation."""
        return cls(
            parameters={name: float(value) for name, value in payload.get("parameters", {}).items()},
            cost=float(payload["cost"]),
            metadata=dict(payload.get("metadata", {})),
            timestamp=payload.get("timestamp", datetime.now(UTC).isoformat()),
        )

    def export_json(self, destination: str | Path) -> Path:
        destination_path = Path(destination)
        destination_path.parent.mkdir(parents=True, exist_ok=True)
        destination_path.write_text(json.dumps(self.to_dict(), indent=2, default=str), encoding="utf-8")
        return destination_path
