"""
Cost function boundary consumed by the simplex engine.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from threading import Lock
from typing import Callable, Dict, List, Sequence

import numpy as np

from .errors import CostEvaluationError, InvalidConfigurationError
from .parameter_space import ParameterBounds, ParameterSpace


class CostFunction(ABC):
    """Base class for every function minimised by the engine."""

    def __init__(self, parameter_space: ParameterSpace, name: str = ""):
        """
        Args:
            parameter_space: ordered parameters with starting values and boundaries
            name: label used in progress reports
        """
        self.parameter_space = parameter_space
        self.name = name or type(self).__name__
        self._evaluations = 0
        self._counter_lock = Lock()

    @abstractmethod
    def evaluate(self, coordinates: np.ndarray) -> float:
        """
        Compute the cost at ``coordinates``.

        Args:
            coordinates: one value per parameter, in parameter-space order

        Returns:
            float: the scalar cost (lower is better)
        """
        pass

    def dimension(self) -> int:
        return self.parameter_space.dimension

    def parameter_bounds(self, index: int) -> ParameterBounds:
        return self.parameter_space.bounds(index)

    @property
    def evaluations(self) -> int:
        """Number of completed :meth:`get_evaluation` calls."""
        return self._evaluations

    def get_evaluation(self, coordinates: Sequence[float]) -> float:
        """
        Evaluate the cost and check that a usable number came back.

        Raises:
            CostEvaluationError: when ``evaluate`` raises or returns NaN
        """
        point = np.array(coordinates, dtype=float)
        try:
            value = float(self.evaluate(point))
        except Exception as exc:
            raise CostEvaluationError(f"{self.name} failed at {point.tolist()}: {exc}") from exc
        if math.isnan(value):
            raise CostEvaluationError(f"{self.name} returned NaN at {point.tolist()}")
        with self._counter_lock:
            self._evaluations += 1
        return value


class CallableCostFunction(CostFunction):
    """Adapter turning a plain callable into a :class:`CostFunction`."""

    def __init__(
        self,
        func: Callable[[np.ndarray], float],
        parameter_space: ParameterSpace,
        name: str | None = None,
    ):
        super().__init__(parameter_space, name or getattr(func, "__name__", "function"))
        self._func = func

    def evaluate(self, coordinates: np.ndarray) -> float:
        return self._func(coordinates)


class CostFunctionRegistry:
    """Registry of reference functions used for sanity runs"""

    _functions: Dict[str, type[CostFunction]] = {}

    @classmethod
    def register(cls, function_class):
        """
        Class decorator registering a cost function under its lower-cased class name.

        Usage:
            @CostFunctionRegistry.register
            class Booth(CostFunction):
                def evaluate(self, coordinates):
                    ...
        """
        cls._functions[function_class.__name__.lower()] = function_class
        return function_class

    @classmethod
    def get(cls, name: str, parameter_space: ParameterSpace) -> CostFunction:
        """
        Build the registered function ``name`` over ``parameter_space``.

        Raises:
            InvalidConfigurationError: if nothing is registered under that name
        """
        key = name.lower()
        if key not in cls._functions:
            available = ", ".join(sorted(cls._functions)) or "none"
            raise InvalidConfigurationError(f"Cost function '{name}' is not registered. Available: {available}")
        return cls._functions[key](parameter_space, name=key)

    @classmethod
    def list_functions(cls) -> List[str]:
        return sorted(cls._functions)


@CostFunctionRegistry.register
class Sphere(CostFunction):
    """Sum of squared coordinates, minimum 0 at the origin."""

    def evaluate(self, coordinates: np.ndarray) -> float:
        return float(np.sum(coordinates**2))


@CostFunctionRegistry.register
class Rosenbrock(CostFunction):
    """Rosenbrock valley, minimum 0 at (1, ..., 1)."""

    def evaluate(self, coordinates: np.ndarray) -> float:
        head, tail = coordinates[:-1], coordinates[1:]
        return float(np.sum(100.0 * (tail - head**2) ** 2 + (1.0 - head) ** 2))
