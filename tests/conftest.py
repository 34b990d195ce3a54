"""Shared fixtures for the simplex test-suite."""

from __future__ import annotations

import pytest

from simplex_search.optimization import CallableCostFunction, ParameterDefinition, ParameterSpace


def _sum_of_squares(coordinates):
    return float((coordinates**2).sum())


@pytest.fixture
def plane_space() -> ParameterSpace:
    return ParameterSpace.from_definitions(
        [
            ParameterDefinition("x", starting_value=5.0, lower_bound=-10.0, upper_bound=10.0),
            ParameterDefinition("y", starting_value=5.0, lower_bound=-10.0, upper_bound=10.0),
        ]
    )


@pytest.fixture
def paraboloid(plane_space: ParameterSpace) -> CallableCostFunction:
    return CallableCostFunction(_sum_of_squares, plane_space, name="paraboloid")
