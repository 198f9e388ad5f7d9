from planner_map.core.io.load_model import load_model
from planner_map.core.model import Status
from planner_map.core.validate.validate_model import summarize_model, validate_model


def _raw(nodes, links=None):
    return {"schema_version": "0.1.0", "nodes": nodes, "links": links or [], "__file__": "x.yaml"}


def test_validate_cabin_map():
    model, errors = validate_model(load_model("examples/cabin-map.yaml"))
    assert errors == []
    assert model is not None
    assert [n.id for n in model.nodes] == ["N-001", "N-002", "N-003", "N-004"]
    assert model.node("N-003").status is Status.IN_PROGRESS
    assert model.node("N-002").assigned_to == "Sarah"


def test_summary_lists_roots():
    model, _ = validate_model(load_model("examples/cabin-map.yaml"))
    out = summarize_model(model)
    assert out.startswith("OK: 4 nodes, 3 links")
    assert "Shelved=1" in out
    assert "Roots: N-001" in out


def test_invalid_status():
    model, errors = validate_model(load_model("examples/invalid-bad-status.yaml"))
    assert model is None
    assert [e.code for e in errors] == ["E_INVALID_ENUM"]
    assert errors[0].path == "nodes[0].status"


def test_duplicate_id():
    _, errors = validate_model(load_model("examples/invalid-duplicate-id.yaml"))
    assert [e.code for e in errors] == ["E_DUPLICATE_ID"]


def test_negative_and_non_numeric_estimates():
    _, errors = validate_model(
        _raw(
            [
                {"id": "A", "name": "A", "estimated_cost": -1},
                {"id": "B", "name": "B", "estimated_time": "lots"},
            ]
        )
    )
    assert {(e.code, e.path) for e in errors} == {
        ("E_NEGATIVE_ESTIMATE", "nodes[0].estimated_cost"),
        ("E_INVALID_TYPE", "nodes[1].estimated_time"),
    }


def test_bad_position():
    _, errors = validate_model(_raw([{"id": "A", "name": "A", "position": {"x": 1}}]))
    assert [e.code for e in errors] == ["E_INVALID_POSITION"]


def test_missing_schema_version_and_nodes():
    _, errors = validate_model({"__file__": "x.yaml"})
    assert {e.path for e in errors} == {"schema_version", "nodes"}


def test_link_ids_default_and_must_be_unique():
    model, errors = validate_model(_raw([{"id": "A", "name": "A"}, {"id": "B", "name": "B"}], [{"from": "A", "to": "B"}]))
    assert errors == []
    assert model.links[0].id == "A->B"

    _, errors = validate_model(
        _raw(
            [{"id": "A", "name": "A"}, {"id": "B", "name": "B"}],
            [{"from": "A", "to": "B"}, {"from": "A", "to": "B"}],
        )
    )
    assert [e.code for e in errors] == ["E_DUPLICATE_LINK_ID"]


def test_dangling_links_are_not_validation_errors():
    model, errors = validate_model(load_model("examples/dangling-link.yaml"))
    assert errors == []
    assert len(model.links) == 2


def test_non_finite_numbers_are_rejected():
    _, errors = validate_model(
        _raw(
            [
                {"id": "A", "name": "A", "estimated_cost": float("nan")},
                {"id": "B", "name": "B", "estimated_time": float("inf")},
                {"id": "C", "name": "C", "position": {"x": float("-inf"), "y": 0}},
            ]
        )
    )
    assert {(e.code, e.path) for e in errors} == {
        ("E_INVALID_TYPE", "nodes[0].estimated_cost"),
        ("E_INVALID_TYPE", "nodes[1].estimated_time"),
        ("E_INVALID_POSITION", "nodes[2].position"),
    }
