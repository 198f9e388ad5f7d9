from __future__ import annotations

import math
from typing import Any, Optional

from planner_map.core.graph.graph_index import build_index, collect_descendants
from planner_map.core.layout.layout_cache import LayoutCache
from planner_map.core.model import GraphModel, Link, Node, Status


EDITABLE_FIELDS = {"name", "description", "estimated_cost", "estimated_time", "status", "assigned_to"}


def add_node(model: GraphModel, *, name: str = "New Node", parent_id: Optional[str] = None) -> Node:
    """Append a fresh node. With ``parent_id`` it is also linked as that node's dependent."""
    existing = {n.id for n in model.nodes}
    node = Node(id=_unique_id(f"N-{len(model.nodes) + 1:03d}", existing), name=name)
    model.nodes.append(node)
    if parent_id is not None and model.node(parent_id) is not None:
        _append_link(model, parent_id, node.id)
    return node


def delete_node(model: GraphModel, node_id: str, cache: Optional[LayoutCache] = None) -> bool:
    """Remove a node together with every link touching it."""
    if model.node(node_id) is None:
        return False
    model.nodes = [n for n in model.nodes if n.id != node_id]
    model.links = [lk for lk in model.links if lk.from_id != node_id and lk.to_id != node_id]
    if cache is not None:
        cache.forget(node_id)
    return True


def create_link(model: GraphModel, *, dependent_id: str, required_id: str) -> Optional[Link]:
    """Record that ``dependent_id`` requires ``required_id``. Returns None for unusable pairs."""
    if not dependent_id or not required_id or dependent_id == required_id:
        return None
    if model.node(dependent_id) is None or model.node(required_id) is None:
        return None
    return _append_link(model, required_id, dependent_id)


def remove_link(model: GraphModel, link_id: str) -> bool:
    before = len(model.links)
    model.links = [lk for lk in model.links if lk.id != link_id]
    return len(model.links) != before


def update_node(model: GraphModel, node_id: str, **fields: Any) -> Optional[Node]:
    """Apply form edits. Non-numeric estimates become 0; status must be a known Status."""
    node = model.node(node_id)
    if node is None:
        return None

    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"unknown node field(s): {', '.join(sorted(unknown))}")

    for key, value in fields.items():
        if key in ("estimated_cost", "estimated_time"):
            setattr(node, key, _to_number(value))
        elif key == "status":
            node.status = value if isinstance(value, Status) else Status(str(value))
        else:
            setattr(node, key, "" if value is None else str(value))
    return node


def unlock_node(model: GraphModel, node_id: str, *, subtree: bool = False) -> list[str]:
    """Hand a dragged node (optionally its whole subtree) back to automatic layout."""
    if model.node(node_id) is None:
        return []
    if subtree:
        ids = collect_descendants(build_index(model.nodes, model.links), node_id)
    else:
        ids = [node_id]

    unlocked: list[str] = []
    for nid in ids:
        node = model.node(nid)
        if node is None or not node.position_locked:
            continue
        node.position_locked = False
        node.position = None
        unlocked.append(nid)
    return unlocked


def _append_link(model: GraphModel, from_id: str, to_id: str) -> Link:
    existing = {lk.id for lk in model.links}
    link = Link(id=_unique_id(f"L-{from_id}-{to_id}", existing), from_id=from_id, to_id=to_id)
    model.links.append(link)
    return link


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return int(number) if number.is_integer() else number


def _unique_id(base: str, existing: set[str]) -> str:
    if base not in existing:
        return base
    for ch in "ABCDEFGHIJKLMNOPQRSTUVWXYZ":
        candidate = f"{base}-{ch}"
        if candidate not in existing:
            return candidate
    raise ValueError(f"could not allocate unique id for base={base}")
