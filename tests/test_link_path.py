import pytest

from planner_map.core.geometry.link_path import build_link_geometry, build_link_path
from planner_map.core.graph.graph_index import build_index
from planner_map.core.model import Link, Node, Point


def test_link_at_threshold_is_straight():
    path = build_link_path(0, 0, 140, 0)
    assert path.kind == "line"
    assert path.control is None
    assert path.d == "M 0 0 L 140 0"


def test_long_link_bends_off_the_midpoint():
    path = build_link_path(0, 0, 300, 0)
    assert path.kind == "quadratic"
    assert path.control == Point(150, 100)
    assert path.d == "M 0 0 Q 150 100 300 0"
    assert path.arrow == Point(300, 0)


def test_bend_offset_is_capped():
    path = build_link_path(0, 0, 0, 900)
    # normal of (0, 900) is (-1, 0)
    assert path.control.x == pytest.approx(-140)
    assert path.control.y == pytest.approx(450)


def test_point_along_path():
    curve = build_link_path(0, 0, 300, 0)
    mid = curve.point_at(0.5)
    assert mid.x == pytest.approx(150)
    assert mid.y == pytest.approx(50)

    line = build_link_path(0, 0, 100, 0)
    assert line.point_at(0.25) == Point(25, 0)


def test_geometry_skips_dangling_links():
    nodes = [Node(id="A", name="A"), Node(id="B", name="B")]
    links = [Link(id="ok", from_id="A", to_id="B"), Link(id="bad", from_id="A", to_id="Z")]
    index = build_index(nodes, links)
    out = build_link_geometry(index, {"A": Point(0, 0), "B": Point(10, 0)}, links)
    assert [g.link.id for g in out] == ["ok"]
