from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Optional

from planner_map.core.model import Link, Node, Status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphIndex:
    nodes: list[Node]
    nodes_by_id: dict[str, Node]
    children_map: dict[str, list[str]]  # from_id -> [to_id], link order
    incoming_map: dict[str, list[str]]  # to_id -> [from_id], link order
    dangling_links: list[Link] = field(default_factory=list)

    def children(self, node_id: str) -> list[str]:
        return self.children_map.get(node_id, [])

    def incoming(self, node_id: str) -> list[str]:
        return self.incoming_map.get(node_id, [])


def build_index(nodes: Iterable[Node], links: Iterable[Link]) -> GraphIndex:
    """Derive forward/reverse adjacency from the flat node/link lists.

    Bucket order is first-seen link order and is never re-sorted; it drives
    traversal order and therefore layout angles. Links with an endpoint that
    is not a known node are set aside in ``dangling_links`` and take no part
    in adjacency.
    """

    node_list = list(nodes)
    nodes_by_id: dict[str, Node] = {}
    for n in node_list:
        nodes_by_id.setdefault(n.id, n)

    children_map: dict[str, list[str]] = {}
    incoming_map: dict[str, list[str]] = {}
    dangling: list[Link] = []

    for link in links:
        if link.from_id not in nodes_by_id or link.to_id not in nodes_by_id:
            dangling.append(link)
            continue
        children_map.setdefault(link.from_id, []).append(link.to_id)
        incoming_map.setdefault(link.to_id, []).append(link.from_id)

    if dangling:
        logger.debug("ignoring %d dangling link(s)", len(dangling))

    return GraphIndex(
        nodes=node_list,
        nodes_by_id=nodes_by_id,
        children_map=children_map,
        incoming_map=incoming_map,
        dangling_links=dangling,
    )


def find_roots(index: GraphIndex) -> tuple[Optional[str], list[str]]:
    """Return (canonical_root, extra_roots).

    The canonical root is the first node, in node order, without incoming edges.
    """
    roots = [n.id for n in index.nodes if not index.incoming(n.id)]
    # Duplicate ids keep their first occurrence only.
    roots = list(dict.fromkeys(roots))
    if not roots:
        return None, []
    return roots[0], roots[1:]


def collect_descendants(index: GraphIndex, node_id: str) -> list[str]:
    """BFS over children_map from node_id, including node_id itself."""
    visited: dict[str, None] = {}
    q: deque[str] = deque([node_id])
    while q:
        cur = q.popleft()
        if cur in visited:
            continue
        visited[cur] = None
        for child in index.children(cur):
            if child not in visited:
                q.append(child)
    return list(visited)


def reachable_from_roots(index: GraphIndex) -> set[str]:
    root_id, extra_roots = find_roots(index)
    if root_id is None:
        return set()
    reached: set[str] = set()
    for rid in [root_id, *extra_roots]:
        if rid not in reached:
            reached.update(collect_descendants(index, rid))
    return reached


def collect_shelved_branch(index: GraphIndex) -> set[str]:
    """Every Shelved node plus everything reachable below one (renderer dimming set)."""
    q: deque[str] = deque(n.id for n in index.nodes if n.status is Status.SHELVED)
    seen: set[str] = set()
    while q:
        cur = q.popleft()
        if cur in seen:
            continue
        seen.add(cur)
        for child in index.children(cur):
            if child not in seen:
                q.append(child)
    return seen
