from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Callable

import yaml

from planner_map.core.errors import MapLoadError
from planner_map.core.model import GraphModel, Node


# suffix -> (parser, parse error code)
_PARSERS: dict[str, tuple[Callable[[str], Any], str]] = {
    ".yaml": (yaml.safe_load, "E_YAML_PARSE"),
    ".yml": (yaml.safe_load, "E_YAML_PARSE"),
    ".json": (json.loads, "E_JSON_PARSE"),
}

# "A -> B" shorthand: A is required by B
_ARROW = re.compile(r"^\s*(\S+)\s*->\s*(\S+)\s*$")


def load_model(path: str) -> dict[str, Any]:
    """Read a planner map file into a raw mapping.

    Returns ``schema_version``, ``nodes``, ``links`` and ``__file__``. Link
    shorthands (``"A -> B"`` or ``[A, B]``) are expanded to ``{from, to}``
    mappings; everything else is left for the validator.
    """

    p = Path(path)
    if not p.is_file():
        raise MapLoadError(code="E_FILE_NOT_FOUND", message="file does not exist", file=str(p))

    parser = _PARSERS.get(p.suffix.lower())
    if parser is None:
        supported = "/".join(sorted(_PARSERS))
        raise MapLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message=f"supported formats are {supported}",
            file=str(p),
        )

    parse, parse_code = parser
    try:
        data = parse(p.read_text(encoding="utf-8"))
    except (yaml.YAMLError, ValueError) as e:
        raise MapLoadError(code=parse_code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        raise MapLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object",
            file=str(p),
        )

    links = data.get("links", [])
    if isinstance(links, list):
        links = [_expand_link(item) for item in links]

    return {
        "schema_version": data.get("schema_version"),
        "nodes": data.get("nodes"),
        # A map without links is just a set of loose ideas.
        "links": links,
        "__file__": str(p),
    }


def _expand_link(item: Any) -> Any:
    if isinstance(item, str):
        m = _ARROW.match(item)
        if m:
            return {"from": m.group(1), "to": m.group(2)}
    elif isinstance(item, list) and len(item) == 2 and all(isinstance(x, str) for x in item):
        return {"from": item[0], "to": item[1]}
    return item


def model_to_dict(model: GraphModel) -> dict[str, Any]:
    return {
        "schema_version": model.schema_version,
        "nodes": [_node_to_dict(n) for n in model.nodes],
        "links": [{"id": lk.id, "from": lk.from_id, "to": lk.to_id} for lk in model.links],
    }


def save_model(model: GraphModel, path: str) -> None:
    p = Path(path)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)

    data = model_to_dict(model)
    if p.suffix.lower() == ".json":
        p.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        return
    with open(p, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False, allow_unicode=True)


def _node_to_dict(n: Node) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": n.id,
        "name": n.name,
        "description": n.description,
        "estimated_cost": n.estimated_cost,
        "estimated_time": n.estimated_time,
        "status": n.status.value,
        "assigned_to": n.assigned_to,
        "position_locked": n.position_locked,
    }
    if n.position is not None:
        out["position"] = {"x": n.position.x, "y": n.position.y}
    return out
