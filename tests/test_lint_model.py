from planner_map.core.io.load_model import load_model
from planner_map.core.lint.lint_model import lint_model


def _raw(nodes, links):
    return {"schema_version": "0.1.0", "nodes": nodes, "links": links, "__file__": "x.yaml"}


def _nodes(*ids, **extra):
    return [{"id": i, "name": i, **extra.get(i, {})} for i in ids]


def test_lint_cabin_map_is_clean():
    assert lint_model(load_model("examples/cabin-map.yaml")) == []


def test_cycle_detected():
    errors = lint_model(load_model("examples/cycle-map.yaml"))
    # B is required by A and by C, the back edge of the loop
    assert [(e.code, e.path) for e in errors] == [
        ("L_SHARED_SUBTREE", "nodes[1].id"),
        ("L_CYCLE_DETECTED", "nodes[2].id"),
    ]
    assert "B -> C -> B" in errors[1].message


def test_dangling_link():
    errors = lint_model(load_model("examples/dangling-link.yaml"))
    assert [(e.code, e.path) for e in errors] == [("L_DANGLING_LINK", "links[1]")]
    assert "GHOST" in errors[0].message


def test_self_loop_and_duplicate_link():
    errors = lint_model(
        _raw(
            _nodes("A", "B"),
            [{"from": "A", "to": "B"}, {"from": "A", "to": "B"}, {"from": "B", "to": "B"}],
        )
    )
    codes = [(e.code, e.path) for e in errors]
    assert ("L_DUPLICATE_LINK", "links[1]") in codes
    assert ("L_DUPLICATE_LINK", "links[0]") not in codes
    assert ("L_SELF_LOOP", "links[2]") in codes


def test_shared_subtree_is_flagged():
    errors = lint_model(_raw(_nodes("A", "B", "C"), [{"from": "A", "to": "C"}, {"from": "B", "to": "C"}]))
    assert [(e.code, e.path) for e in errors] == [("L_SHARED_SUBTREE", "nodes[2].id")]


def test_locked_without_position():
    errors = lint_model(_raw(_nodes("A", A={"position_locked": True}), []))
    assert [e.code for e in errors] == ["L_LOCKED_WITHOUT_POSITION"]


def test_unreachable_node():
    errors = lint_model(
        _raw(
            _nodes("R", "X", "Y"),
            [{"from": "R", "to": "X"}, {"from": "X", "to": "Y"}, {"from": "Y", "to": "X"}, {"from": "Y", "to": "R"}],
        )
    )
    # R has an incoming edge from Y, so nothing is a root and nothing is reported unreachable
    assert "L_UNREACHABLE_NODE" not in {e.code for e in errors}

    errors = lint_model(
        _raw(_nodes("R", "X", "Y"), [{"from": "X", "to": "Y"}, {"from": "Y", "to": "X"}])
    )
    unreachable = [e.path for e in errors if e.code == "L_UNREACHABLE_NODE"]
    assert unreachable == ["nodes[1].id", "nodes[2].id"]


def test_lint_ignores_bad_shape():
    assert lint_model({"nodes": "nope"}) == []
