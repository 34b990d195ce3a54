"""Parameter space definitions for bounded simplex searches."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, MutableMapping, NamedTuple, Sequence

import numpy as np

from .errors import InvalidConfigurationError


class ParameterBounds(NamedTuple):
    """Starting value and boundaries of a single dimension."""

    start: float
    left: float
    right: float
    name: str


@dataclass(frozen=True)
class ParameterDefinition:
    """Immutable description of a single search parameter."""

    name: str
    starting_value: float
    lower_bound: float
    upper_bound: float
    description: str = ""

    def validate(self) -> None:
        """
        Check that the starting value lies inside the declared boundaries.

        Raises:
            InvalidConfigurationError: if the bounds are inverted or the start is outside them.
        """
        if self.upper_bound < self.lower_bound:
            raise InvalidConfigurationError(f"Parameter {self.name} has upper_bound < lower_bound")
        if not self.lower_bound <= self.starting_value <= self.upper_bound:
            raise InvalidConfigurationError(
                f"Starting value {self.starting_value!r} of parameter {self.name} lies outside "
                f"[{self.lower_bound!r}, {self.upper_bound!r}]"
            )

    def default_step(self) -> float:
        """Half of the smallest distance between the starting value and a boundary."""
        return min(self.starting_value - self.lower_bound, self.upper_bound - self.starting_value) / 2.0


@dataclass
class ParameterSpace:
    """Ordered container of parameter definitions spanning the search space."""

    parameters: MutableMapping[str, ParameterDefinition] = field(default_factory=dict)

    @classmethod
    def from_definitions(cls, definitions: Sequence[ParameterDefinition]) -> "ParameterSpace":
        """Construct a parameter space from an ordered sequence of definitions."""
        parameters: Dict[str, ParameterDefinition] = {}
        for definition in definitions:
            if definition.name in parameters:
                raise InvalidConfigurationError(f"Duplicate parameter definition: {definition.name}")
            parameters[definition.name] = definition
        return cls(parameters=parameters)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ParameterSpace":
        """Load a parameter space definition from a YAML/JSON style mapping."""
        parameters_config = config.get("parameters", {}) if config else {}
        definitions: list[ParameterDefinition] = []
        for name, raw_definition in parameters_config.items():
            missing = [key for key in ("start", "lower_bound", "upper_bound") if key not in raw_definition]
            if missing:
                raise InvalidConfigurationError(f"Parameter {name} is missing: {', '.join(missing)}")
            definitions.append(
                ParameterDefinition(
                    name=name,
                    starting_value=float(raw_definition["start"]),
                    lower_bound=float(raw_definition["lower_bound"]),
                    upper_bound=float(raw_definition["upper_bound"]),
                    description=raw_definition.get("description", ""),
                )
            )
        return cls.from_definitions(definitions)

    def to_config(self) -> dict[str, Any]:
        """Serialize the parameter space back into a configuration mapping."""
        config: dict[str, Any] = {"parameters": {}}
        for name, definition in self.parameters.items():
            item: dict[str, Any] = {
                "start": definition.starting_value,
                "lower_bound": definition.lower_bound,
                "upper_bound": definition.upper_bound,
            }
            if definition.description:
                item["description"] = definition.description
            config["parameters"][name] = item
        return config

    @property
    def dimension(self) -> int:
        return len(self.parameters)

    @property
    def names(self) -> list[str]:
        return list(self.parameters)

    @property
    def definitions(self) -> list[ParameterDefinition]:
        return list(self.parameters.values())

    def bounds(self, index: int) -> ParameterBounds:
        """Return ``(start, left, right, name)`` of the parameter at ``index``."""
        definition = self.definitions[index]
        return ParameterBounds(
            start=definition.starting_value,
            left=definition.lower_bound,
            right=definition.upper_bound,
            name=definition.name,
        )

    def validate(self) -> None:
        """
        Validate the whole space before a run starts.

        Raises:
            InvalidConfigurationError: when the space is empty or any definition is inconsistent.
        """
        if self.dimension <= 0:
            raise InvalidConfigurationError("Parameter space must contain at least one parameter")
        for definition in self.parameters.values():
            definition.validate()

    def starting_point(self) -> np.ndarray:
        return np.array([item.starting_value for item in self.parameters.values()], dtype=float)

    def lower_bounds(self) -> np.ndarray:
        return np.array([item.lower_bound for item in self.parameters.values()], dtype=float)

    def upper_bounds(self) -> np.ndarray:
        return np.array([item.upper_bound for item in self.parameters.values()], dtype=float)

    def default_step_sizes(self) -> np.ndarray:
        return np.array([item.default_step() for item in self.parameters.values()], dtype=float)

    def clamp(self, coordinates: Sequence[float]) -> np.ndarray:
        """
        Clamp every coordinate into its ``[lower_bound, upper_bound]`` interval.

        Coordinates are handled independently; points already inside the box are returned unchanged.
        """
        values = np.asarray(coordinates, dtype=float)
        if values.shape != (self.dimension,):
            raise InvalidConfigurationError(
                f"Expected {self.dimension} coordinates, got shape {values.shape}"
            )
        return np.minimum(np.maximum(values, self.lower_bounds()), self.upper_bounds())

    def as_mapping(self, coordinates: Sequence[float]) -> dict[str, float]:
        """Pair coordinates with parameter names."""
        return {name: float(value) for name, value in zip(self.parameters, coordinates)}
