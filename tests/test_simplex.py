import numpy as np
import pytest

from simplex_search.optimization import (
    CallableCostFunction,
    CostEvaluationError,
    EngineState,
    InMemoryCheckpointStore,
    InvalidConfigurationError,
    ParameterDefinition,
    ParameterSpace,
    SimplexEngine,
    Vertex,
    VertexSet,
    contract,
    expand,
    reflect,
    shrink,
)


def _space(*definitions) -> ParameterSpace:
    return ParameterSpace.from_definitions([ParameterDefinition(*item) for item in definitions])


def test_reflection_through_centroid():
    reflected = reflect(np.array([1.0, 0.0]), np.array([0.0, 2.0]), 1.0)

    np.testing.assert_allclose(reflected, [2.0, -2.0], atol=1e-9)


def test_expansion_and_contraction_formulas():
    centroid = np.array([1.0, 0.0])
    reflected = np.array([2.0, -2.0])

    np.testing.assert_allclose(expand(reflected, centroid, 1.0), [3.0, -4.0])
    np.testing.assert_allclose(contract(centroid, np.array([0.0, 2.0]), 0.5), [0.5, 1.0])


def test_shrink_moves_each_vertex_towards_best():
    vertex_set = VertexSet([Vertex((0, 0), 0.0), Vertex((2, 0), 1.0), Vertex((0, 4), 2.0), Vertex((6, 6), 3.0)])
    best = vertex_set.best.coordinates
    shrunk = [shrink(best, vertex.coordinates, 0.5) for vertex in list(vertex_set)[1:]]

    assert [point.tolist() for point in shrunk] == [[1.0, 0.0], [0.0, 2.0], [3.0, 3.0]]


def test_zero_budget_returns_initial_clamped_simplex(paraboloid):
    engine = SimplexEngine(0, step_size=[10.0, 2.5])

    result = engine.run(paraboloid)

    assert result.parameters == {"x": 5.0, "y": 5.0}
    assert result.cost == 50.0
    assert result.metadata["iterations"] == 0
    assert result.metadata["decisions"] == {}
    assert result.metadata["evaluations"] == 3
    coordinates = sorted(vertex.coordinates.tolist() for vertex in engine.state.vertices)
    assert coordinates == [[5.0, 5.0], [5.0, 7.5], [10.0, 5.0]]


def test_paraboloid_converges_to_origin(paraboloid):
    engine = SimplexEngine(50)

    result = engine.run(paraboloid)

    assert result.cost < 1e-3
    assert abs(result.parameters["x"]) < 0.05
    assert abs(result.parameters["y"]) < 0.05
    assert result.metadata["iterations"] == 50
    assert result.metadata["stop_reason"] == "iteration budget reached"


def test_rosenbrock_improves_on_start():
    space = _space(("x", -1.2, -5.0, 5.0), ("y", 1.0, -5.0, 5.0))
    cost_function = CallableCostFunction(
        lambda p: 100.0 * (p[1] - p[0] ** 2) ** 2 + (1.0 - p[0]) ** 2, space
    )

    result = SimplexEngine(200).run(cost_function)

    assert result.cost < 1.0


def test_shrink_produces_distinct_vertices():
    known = {(0.0, 0.0): 0.0, (1.0, 0.0): 1.0, (0.0, 1.0): 2.0}

    def plateau(coordinates):
        return known.get(tuple(float(value) for value in coordinates), 10.0)

    space = _space(("x", 0.0, -5.0, 5.0), ("y", 0.0, -5.0, 5.0))
    decisions = []
    engine = SimplexEngine(1, step_size=[1.0, 1.0], callbacks=[lambda record: decisions.append(record.decision)])

    engine.run(CallableCostFunction(plateau, space))

    assert decisions == ["shrink"]
    coordinates = [vertex.coordinates.tolist() for vertex in engine.state.vertices]
    assert coordinates == [[0.0, 0.0], [0.5, 0.0], [0.0, 0.5]]


def test_replacement_is_clamped_into_bounds():
    space = _space(("x", 0.5, 0.0, 1.0), ("y", 0.5, 0.0, 1.0))
    cost_function = CallableCostFunction(lambda p: -(p[0] + p[1]), space)
    engine = SimplexEngine(30)
    snapshots = []
    engine.callbacks = (lambda record: snapshots.append(engine.state.vertices.coordinates()),)

    result = engine.run(cost_function)

    assert len(snapshots) == 30
    for coordinates in snapshots:
        assert coordinates.min() >= 0.0
        assert coordinates.max() <= 1.0
    assert result.cost < -1.9


def test_stop_flag_ends_run_between_cycles(paraboloid):
    engine = SimplexEngine(50)

    def stop_after_three(record):
        if record.iteration == 3:
            engine.request_stop("out of boundary")

    engine.callbacks = (stop_after_three,)
    result = engine.run(paraboloid)

    assert result.metadata["iterations"] == 3
    assert result.metadata["stop_reason"] == "out of boundary"


def test_preset_stop_flag_prevents_any_cycle(paraboloid):
    engine = SimplexEngine(50)
    engine.set_additional_information("checkboundary", "abort")

    result = engine.run(paraboloid)

    assert result.metadata["iterations"] == 0
    assert result.metadata["decisions"] == {}


def test_resume_from_checkpoint_matches_uninterrupted_run(plane_space):
    def bowl(p):
        return (p[0] - 1.0) ** 2 + 3.0 * (p[1] + 2.0) ** 2

    store = InMemoryCheckpointStore()
    SimplexEngine(12, checkpoint_store=store).run(CallableCostFunction(bowl, plane_space))
    assert store.restore().iteration == 12

    resumed = SimplexEngine(25, checkpoint_store=store).run(CallableCostFunction(bowl, plane_space))
    uninterrupted = SimplexEngine(25).run(CallableCostFunction(bowl, plane_space))

    assert resumed.metadata["iterations"] == 25
    assert resumed.parameters == uninterrupted.parameters
    assert resumed.cost == uninterrupted.cost


def test_speculative_expansion_takes_the_same_path(paraboloid, plane_space):
    plain = SimplexEngine(40).run(paraboloid)
    speculative_function = CallableCostFunction(lambda p: float((p**2).sum()), plane_space)
    speculative = SimplexEngine(40, speculative=True).run(speculative_function)

    assert speculative.parameters == plain.parameters
    assert speculative.metadata["decisions"] == plain.metadata["decisions"]


def test_meta_parameter_overrides_are_used(paraboloid):
    engine = SimplexEngine(10, meta_parameters={"gamma": 2.0})

    assert engine.get_meta_parameter("gamma") == 2.0
    assert engine.get_meta_parameter("alpha") == 1.0
    assert engine.run(paraboloid).metadata["meta_parameters"]["gamma"] == 2.0


def test_invalid_start_refuses_to_iterate():
    space = _space(("x", 20.0, -10.0, 10.0))
    calls = []
    cost_function = CallableCostFunction(lambda p: calls.append(p) or 0.0, space)

    with pytest.raises(InvalidConfigurationError):
        SimplexEngine(5).run(cost_function)
    assert calls == []


def test_step_size_length_must_match_dimension(paraboloid):
    with pytest.raises(InvalidConfigurationError):
        SimplexEngine(5, step_size=[1.0]).run(paraboloid)


def test_restored_simplex_must_match_dimension(paraboloid):
    store = InMemoryCheckpointStore()
    store.save(EngineState(vertices=VertexSet([Vertex([0.0], 0.0), Vertex([1.0], 1.0)]), iteration=3))

    with pytest.raises(InvalidConfigurationError):
        SimplexEngine(5, checkpoint_store=store).run(paraboloid)


def test_restored_set_must_hold_one_more_vertex_than_dimension(paraboloid):
    vertices = VertexSet([Vertex([float(i), 0.0], float(i)) for i in range(4)])
    store = InMemoryCheckpointStore()
    store.save(EngineState(vertices=vertices, iteration=3))

    assert not vertices.is_simplex
    with pytest.raises(InvalidConfigurationError):
        SimplexEngine(5, checkpoint_store=store).run(paraboloid)


def test_cost_function_failure_is_fatal(plane_space):
    def failing(p):
        if p[0] > 6.0:
            raise ArithmeticError("overflow")
        return float((p**2).sum())

    with pytest.raises(CostEvaluationError):
        SimplexEngine(5).run(CallableCostFunction(failing, plane_space))
