from planner_map.core.graph.graph_index import (
    build_index,
    collect_descendants,
    collect_shelved_branch,
    find_roots,
    reachable_from_roots,
)
from planner_map.core.model import Link, Node, Status


def _link(a, b):
    return Link(id=f"{a}->{b}", from_id=a, to_id=b)


def test_build_index_keeps_link_order():
    nodes = [Node(id=x, name=x) for x in "ABCD"]
    links = [_link("A", "C"), _link("A", "B"), _link("B", "D"), _link("C", "D")]
    index = build_index(nodes, links)

    assert index.children("A") == ["C", "B"]
    assert index.incoming("D") == ["B", "C"]
    assert index.children("D") == []
    assert index.incoming("A") == []


def test_dangling_links_do_not_take_part_in_adjacency():
    nodes = [Node(id="A", name="A"), Node(id="B", name="B")]
    links = [_link("A", "B"), _link("GHOST", "A"), _link("B", "NOWHERE")]
    index = build_index(nodes, links)

    assert [lk.id for lk in index.dangling_links] == ["GHOST->A", "B->NOWHERE"]
    assert index.incoming("A") == []
    assert index.children("B") == []
    assert find_roots(index) == ("A", [])


def test_find_roots_first_in_node_order_wins():
    nodes = [Node(id=x, name=x) for x in ["X", "R1", "R2"]]
    index = build_index(nodes, [_link("R1", "X")])
    assert find_roots(index) == ("R1", ["R2"])


def test_pure_cycle_has_no_root():
    nodes = [Node(id="A", name="A"), Node(id="B", name="B")]
    index = build_index(nodes, [_link("A", "B"), _link("B", "A")])
    assert find_roots(index) == (None, [])
    assert reachable_from_roots(index) == set()


def test_collect_descendants_is_breadth_first_and_includes_start():
    nodes = [Node(id=x, name=x) for x in "ABCDE"]
    links = [_link("A", "B"), _link("A", "C"), _link("B", "D"), _link("D", "B"), _link("C", "E")]
    index = build_index(nodes, links)
    assert collect_descendants(index, "A") == ["A", "B", "C", "D", "E"]
    assert collect_descendants(index, "D") == ["D", "B"]


def test_shelved_branch_covers_everything_below_a_shelved_node():
    nodes = [
        Node(id="A", name="A"),
        Node(id="B", name="B", status=Status.SHELVED),
        Node(id="C", name="C"),
        Node(id="D", name="D"),
    ]
    index = build_index(nodes, [_link("A", "B"), _link("B", "C"), _link("A", "D")])
    assert collect_shelved_branch(index) == {"B", "C"}
