import json

import numpy as np
import pytest

from simplex_search.optimization import (
    CheckpointError,
    EngineState,
    FileCheckpointStore,
    InMemoryCheckpointStore,
    Vertex,
    VertexSet,
    decode_state,
    encode_state,
)


@pytest.fixture
def state() -> EngineState:
    rng = np.random.default_rng(7)
    vertices = VertexSet([Vertex(rng.normal(size=3), rng.normal()) for _ in range(5)])
    return EngineState(vertices=vertices, iteration=42)


def _assert_same_state(restored: EngineState, original: EngineState) -> None:
    assert restored.iteration == original.iteration
    assert len(restored.vertices) == len(original.vertices)
    for left, right in zip(restored.vertices, original.vertices):
        assert np.array_equal(left.coordinates, right.coordinates)
        assert left.cost == right.cost
    assert restored.vertices == original.vertices


def test_file_store_round_trip_is_exact(tmp_path, state):
    store = FileCheckpointStore(tmp_path / "run.json")
    store.save(state)

    _assert_same_state(store.restore(), state)


def test_in_memory_store_round_trip(state):
    store = InMemoryCheckpointStore()
    store.save(state)
    state.vertices.replace(0, Vertex([0.0, 0.0, 0.0], 0.0))

    restored = store.restore()
    assert restored.iteration == 42
    assert not np.array_equal(restored.vertices[0].coordinates, [0.0, 0.0, 0.0])


def test_missing_checkpoint_means_start_fresh(tmp_path):
    assert FileCheckpointStore(tmp_path / "absent.json").restore() is None
    assert InMemoryCheckpointStore().restore() is None


def test_unevaluated_cost_survives_encoding():
    original = EngineState(vertices=VertexSet([Vertex([1.0]), Vertex([2.0], 4.0)]), iteration=0)
    payload = json.loads(json.dumps(encode_state(original)))

    restored = decode_state(payload)
    assert not restored.vertices[0].is_evaluated
    assert restored.vertices[1].cost == 4.0


def test_unknown_version_is_rejected(state):
    payload = encode_state(state)
    payload["version"] = 99

    with pytest.raises(CheckpointError):
        decode_state(payload)


@pytest.mark.parametrize(
    "vertices",
    [
        [[0.0, 1.0], [2.0, 3.0]],
        [{"cost": 1.0}],
        [{"coordinates": [0.0, 1.0], "cost": "cheap"}],
        "A0A1",
        7,
    ],
)
def test_malformed_vertices_are_rejected(vertices):
    with pytest.raises(CheckpointError):
        decode_state({"version": 1, "iteration": 1, "vertices": vertices})


def test_file_with_bare_coordinate_lists_is_rejected(tmp_path):
    path = tmp_path / "run.json"
    payload = {"version": 1, "iteration": 1, "vertices": [[0.0, 1.0], [2.0, 3.0]]}
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(CheckpointError):
        FileCheckpointStore(path).restore()


def test_corrupt_file_is_rejected(tmp_path):
    path = tmp_path / "run.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(CheckpointError):
        FileCheckpointStore(path).restore()


def test_clear_removes_file(tmp_path, state):
    store = FileCheckpointStore(tmp_path / "run.json")
    store.save(state)
    store.clear()

    assert store.restore() is None
