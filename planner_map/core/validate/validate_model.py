from __future__ import annotations

import math
from collections import Counter
from typing import Any, Iterable, Optional, cast

from planner_map.core.errors import MapValidationError
from planner_map.core.graph.graph_index import build_index, find_roots
from planner_map.core.model import GraphModel, Link, Node, Point, Status


ALLOWED_STATUSES: list[str] = [s.value for s in Status]


def _is_number(v: Any) -> bool:
    if isinstance(v, bool):
        return False
    return isinstance(v, int) or (isinstance(v, float) and math.isfinite(v))


def validate_model(raw: dict[str, Any]) -> tuple[Optional[GraphModel], list[MapValidationError]]:
    """Validate a planner map document.

    Returns (model, errors). Model is None when errors exist.
    Dangling links are not errors here; geometry ignores them and lint reports them.
    """

    file = cast(Optional[str], raw.get("__file__"))
    errors: list[MapValidationError] = []

    def err(code: str, message: str, path: str) -> None:
        errors.append(MapValidationError(code=code, message=message, file=file, path=path))

    schema_version = raw.get("schema_version")
    if not isinstance(schema_version, str) or not schema_version.strip():
        err("E_REQUIRED_FIELD", "schema_version is required and must be a non-empty string", "schema_version")

    nodes_raw = raw.get("nodes")
    if not isinstance(nodes_raw, list):
        err("E_REQUIRED_FIELD", "nodes is required and must be an array", "nodes")
        return None, _sorted(errors)

    links_raw = raw.get("links")
    if links_raw is None:
        links_raw = []
    if not isinstance(links_raw, list):
        err("E_INVALID_TYPE", "links must be an array", "links")
        links_raw = []

    nodes: list[Node] = []
    seen_ids: set[str] = set()

    for i, item in enumerate(nodes_raw):
        node_path = f"nodes[{i}]"
        if not isinstance(item, dict):
            err("E_INVALID_TYPE", "node must be an object", node_path)
            continue

        nid = item.get("id")
        if not isinstance(nid, str) or not nid.strip():
            err("E_REQUIRED_FIELD", "id is required and must be a non-empty string", f"{node_path}.id")
            continue
        if nid in seen_ids:
            err("E_DUPLICATE_ID", f"duplicate node id: {nid}", f"{node_path}.id")
            continue

        name = item.get("name")
        if not isinstance(name, str):
            err("E_REQUIRED_FIELD", "name is required and must be a string", f"{node_path}.name")
            continue

        description = item.get("description", "")
        if description is None:
            description = ""
        if not isinstance(description, str):
            err("E_INVALID_TYPE", "description must be a string", f"{node_path}.description")
            continue

        estimates: dict[str, float] = {}
        for key in ("estimated_cost", "estimated_time"):
            v = item.get(key, 0)
            if v is None:
                v = 0
            if not _is_number(v):
                err("E_INVALID_TYPE", f"{key} must be a finite number", f"{node_path}.{key}")
            elif v < 0:
                err("E_NEGATIVE_ESTIMATE", f"{key} must be >= 0", f"{node_path}.{key}")
            else:
                estimates[key] = v
        if len(estimates) != 2:
            continue

        status_raw = item.get("status", Status.CONSIDERING.value)
        if not isinstance(status_raw, str) or status_raw not in ALLOWED_STATUSES:
            err("E_INVALID_ENUM", f"status must be one of {ALLOWED_STATUSES}", f"{node_path}.status")
            continue

        assigned_to = item.get("assigned_to", "")
        if assigned_to is None:
            assigned_to = ""
        if not isinstance(assigned_to, str):
            err("E_INVALID_TYPE", "assigned_to must be a string", f"{node_path}.assigned_to")
            continue

        locked = item.get("position_locked", False)
        if not isinstance(locked, bool):
            err("E_INVALID_TYPE", "position_locked must be a boolean", f"{node_path}.position_locked")
            continue

        position: Optional[Point] = None
        pos_raw = item.get("position")
        if pos_raw is not None:
            if (
                not isinstance(pos_raw, dict)
                or not _is_number(pos_raw.get("x"))
                or not _is_number(pos_raw.get("y"))
            ):
                err("E_INVALID_POSITION", "position must be an object with finite numeric x and y", f"{node_path}.position")
                continue
            position = Point(float(pos_raw["x"]), float(pos_raw["y"]))

        seen_ids.add(nid)
        nodes.append(
            Node(
                id=nid,
                name=name,
                description=description,
                estimated_cost=estimates["estimated_cost"],
                estimated_time=estimates["estimated_time"],
                status=Status(status_raw),
                assigned_to=assigned_to,
                position_locked=locked,
                position=position,
            )
        )

    links: list[Link] = []
    seen_link_ids: set[str] = set()
    for i, item in enumerate(links_raw):
        link_path = f"links[{i}]"
        if not isinstance(item, dict):
            err("E_INVALID_TYPE", "link must be an object", link_path)
            continue

        ends: dict[str, str] = {}
        for key in ("from", "to"):
            v = item.get(key)
            if not isinstance(v, str) or not v.strip():
                err("E_REQUIRED_FIELD", f"{key} is required and must be a non-empty string", f"{link_path}.{key}")
            else:
                ends[key] = v
        if len(ends) != 2:
            continue

        lid = item.get("id")
        if lid is None:
            lid = f"{ends['from']}->{ends['to']}"
        if not isinstance(lid, str) or not lid.strip():
            err("E_INVALID_TYPE", "id must be a non-empty string", f"{link_path}.id")
            continue
        if lid in seen_link_ids:
            err("E_DUPLICATE_LINK_ID", f"duplicate link id: {lid}", f"{link_path}.id")
            continue

        seen_link_ids.add(lid)
        links.append(Link(id=lid, from_id=ends["from"], to_id=ends["to"]))

    if errors:
        return None, _sorted(errors)

    return GraphModel(schema_version=cast(str, schema_version), nodes=nodes, links=links), []


def summarize_model(model: GraphModel) -> str:
    counts = Counter([n.status for n in model.nodes])
    parts = [f"{s.value}={counts.get(s, 0)}" for s in Status]
    index = build_index(model.nodes, model.links)
    root_id, extra_roots = find_roots(index)
    roots = [r for r in [root_id, *extra_roots] if r is not None]
    return (
        f"OK: {len(model.nodes)} nodes, {len(model.links)} links ("
        + ", ".join(parts)
        + ")\nRoots: "
        + (", ".join(roots) if roots else "<none>")
    )


def _sorted(errors: Iterable[MapValidationError]) -> list[MapValidationError]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            e.path or "",
            e.code,
        ),
    )
