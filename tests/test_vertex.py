import math

import numpy as np
import pytest

from simplex_search.optimization import Vertex, VertexSet


def _vertex_set(points, costs):
    return VertexSet([Vertex(point, cost) for point, cost in zip(points, costs)])


def test_vertex_copies_coordinates():
    source = np.array([1.0, 2.0])
    vertex = Vertex(source)
    source[0] = 99.0

    assert vertex.coordinates.tolist() == [1.0, 2.0]
    assert not vertex.is_evaluated
    assert math.isnan(vertex.cost)


def test_order_is_non_decreasing_and_stable():
    vertex_set = _vertex_set([(0, 0), (1, 0), (0, 1), (1, 1)], [3.0, 1.0, 3.0, -2.0])
    vertex_set.order()

    costs = vertex_set.costs()
    assert costs == sorted(costs)
    # equal costs keep their input order
    assert vertex_set[2].coordinates.tolist() == [0.0, 0.0]
    assert vertex_set[3].coordinates.tolist() == [0.0, 1.0]
    assert vertex_set.best.cost == -2.0
    assert vertex_set.worst.cost == 3.0


def test_order_rejects_unevaluated_vertices():
    vertex_set = VertexSet([Vertex((0.0,), 1.0), Vertex((1.0,))])

    with pytest.raises(ValueError):
        vertex_set.order()


def test_centroid_excludes_worst_vertex():
    vertex_set = _vertex_set([(0, 0), (2, 0), (0, 2)], [0.0, 1.0, 2.0])
    vertex_set.order()

    np.testing.assert_allclose(vertex_set.centroid(), [1.0, 0.0], atol=1e-9)


def test_simplex_size_is_mean_distance_to_centre():
    vertex_set = _vertex_set([(-1, 0), (1, 0)], [0.0, 0.0])

    assert vertex_set.simplex_size() == pytest.approx(1.0)


def test_replace_stores_a_copy():
    vertex_set = _vertex_set([(0, 0), (2, 0), (0, 2)], [0.0, 1.0, 2.0])
    replacement = Vertex((5.0, 5.0), 0.5)
    vertex_set.replace(2, replacement)
    replacement.coordinates[0] = -1.0

    assert vertex_set.worst.coordinates.tolist() == [5.0, 5.0]
    assert vertex_set.is_simplex


def test_replace_rejects_wrong_dimension():
    vertex_set = _vertex_set([(0, 0), (2, 0), (0, 2)], [0.0, 1.0, 2.0])

    with pytest.raises(ValueError):
        vertex_set.replace(0, Vertex((1.0,)))


def test_vertex_dict_round_trip_keeps_unevaluated_marker():
    restored = Vertex.from_dict(Vertex((0.1, 0.2)).to_dict())

    assert restored.coordinates.tolist() == [0.1, 0.2]
    assert not restored.is_evaluated


def test_vertex_count_is_not_enforced_but_reported():
    vertex_set = VertexSet([Vertex((float(i), 0.0, 0.0), float(i)) for i in range(5)])

    assert len(vertex_set) == 5
    assert not vertex_set.is_simplex
