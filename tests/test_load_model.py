import pytest

from planner_map.core.errors import MapLoadError
from planner_map.core.io.load_model import load_model, save_model
from planner_map.core.model import Point
from planner_map.core.validate.validate_model import validate_model


def test_load_yaml_success():
    raw = load_model("examples/cabin-map.yaml")
    assert raw["schema_version"] == "0.1.0"
    assert isinstance(raw["nodes"], list)
    assert raw["__file__"].endswith("cabin-map.yaml")


def test_load_missing_file():
    try:
        load_model("examples/does-not-exist.yaml")
        assert False, "expected MapLoadError"
    except MapLoadError as e:
        assert e.code == "E_FILE_NOT_FOUND"


def test_load_unsupported_format(tmp_path):
    p = tmp_path / "map.txt"
    p.write_text("hello", encoding="utf-8")
    with pytest.raises(MapLoadError) as exc:
        load_model(str(p))
    assert exc.value.code == "E_UNSUPPORTED_FORMAT"


def test_load_bad_json(tmp_path):
    p = tmp_path / "map.json"
    p.write_text("{nope", encoding="utf-8")
    with pytest.raises(MapLoadError) as exc:
        load_model(str(p))
    assert exc.value.code == "E_JSON_PARSE"


def test_top_level_must_be_mapping(tmp_path):
    p = tmp_path / "map.yaml"
    p.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(MapLoadError) as exc:
        load_model(str(p))
    assert exc.value.code == "E_INVALID_TOP_LEVEL"


def test_missing_links_default_to_empty(tmp_path):
    p = tmp_path / "map.yaml"
    p.write_text('schema_version: "0.1.0"\nnodes: []\n', encoding="utf-8")
    assert load_model(str(p))["links"] == []


@pytest.mark.parametrize("name", ["saved.yaml", "saved.json"])
def test_saved_map_keeps_locked_positions(tmp_path, name):
    model, _ = validate_model(load_model("examples/cabin-map.yaml"))
    node = model.node("N-003")
    node.position = Point(12.5, -40)
    node.position_locked = True

    out = tmp_path / name
    save_model(model, str(out))
    again, errors = validate_model(load_model(str(out)))

    assert errors == []
    assert again.node("N-003").position == Point(12.5, -40)
    assert again.node("N-003").position_locked is True
    assert again.node("N-002").position is None
    assert [lk.id for lk in again.links] == ["L-1", "L-2", "L-3"]


def test_link_shorthands_are_expanded(tmp_path):
    p = tmp_path / "map.yaml"
    p.write_text(
        'schema_version: "0.1.0"\n'
        "nodes:\n"
        "  - {id: N-001, name: Root}\n"
        "  - {id: N-002, name: Child}\n"
        "  - {id: N-003, name: Other}\n"
        "links:\n"
        '  - "N-001 -> N-002"\n'
        "  - [N-001, N-003]\n"
        "  - {id: keep, from: N-002, to: N-003}\n"
        "  - 42\n",
        encoding="utf-8",
    )
    raw = load_model(str(p))
    assert raw["links"][:3] == [
        {"from": "N-001", "to": "N-002"},
        {"from": "N-001", "to": "N-003"},
        {"id": "keep", "from": "N-002", "to": "N-003"},
    ]
    # left as-is for the validator to report
    assert raw["links"][3] == 42
