import json

from planner_map.core.io.load_model import load_model
from planner_map.core.model import Point
from planner_map.core.scene.build_scene import (
    build_scene,
    format_amount,
    format_meta_line,
    reposition_scene,
    scene_to_dict,
)
from planner_map.core.validate.validate_model import validate_model


def _scene(**kwargs):
    model, _ = validate_model(load_model("examples/cabin-map.yaml"))
    return build_scene(model, **kwargs)


def test_format_helpers():
    assert format_amount(12000) == "12,000"
    assert format_amount(12.5) == "12.5"
    assert format_meta_line(time=80, cost=12000) == "80h and $12,000"
    assert format_meta_line(time=0, cost=5, prefix="Total: ") == "Total: $5"
    assert format_meta_line(time=0, cost=0) == ""


def test_scene_nodes_carry_totals_and_styles():
    scene = _scene(selected_id="N-002")
    nodes = {n.id: n for n in scene.nodes}

    assert scene.root_id == "N-001"
    assert nodes["N-001"].meta_lines == ["80h and $12,000", "Total: 117h and $14,300"]
    assert nodes["N-004"].meta_lines == ["10h and $3,000"]
    assert nodes["N-004"].classes == [
        "node",
        "node--shelved",
        "node--status-shelved",
        "node--dimmed",
        "node--both",
    ]
    assert "node--trey" in nodes["N-003"].classes
    assert nodes["N-002"].classes[-1] == "node--selected"
    assert nodes["N-001"].size.radius == 360


def test_scene_links_dim_under_shelved_nodes():
    scene = _scene()
    links = {lk.id: lk for lk in scene.links}
    assert links["L-3"].dimmed is True
    assert links["L-1"].dimmed is False
    # root ring distance is 720, well past the straight-line threshold
    assert links["L-1"].path.kind == "quadratic"


def test_reposition_moves_nodes_and_their_links():
    scene = _scene()
    moved = reposition_scene(scene, {"N-002": Point(700, 300)})
    nodes = {n.id: n for n in moved.nodes}
    links = {lk.id: lk for lk in moved.links}

    assert nodes["N-002"].position == Point(700, 300)
    assert nodes["N-002"].locked is True
    assert links["L-1"].path.end == Point(700, 300)
    assert links["L-1"].path.kind == "line"
    assert links["L-3"] == {lk.id: lk for lk in scene.links}["L-3"]


def test_scene_is_json_ready():
    data = json.loads(json.dumps(scene_to_dict(_scene(strategy="force"))))
    assert data["root_id"] == "N-001"
    assert [n["id"] for n in data["nodes"]] == ["N-001", "N-002", "N-003", "N-004"]
    assert {lk["kind"] for lk in data["links"]} <= {"line", "quadratic"}
    assert 0 < data["fit"]["scale"] <= 1
