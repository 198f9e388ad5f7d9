from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Union

from planner_map.core.config.map_config import DEFAULT_CONFIG, MapConfig
from planner_map.core.geometry.link_path import LinkPath, build_link_geometry, build_link_path
from planner_map.core.geometry.view_transform import ViewTransform, fit_to_bounds
from planner_map.core.graph.graph_index import build_index, collect_shelved_branch, find_roots
from planner_map.core.layout.compute_layout import LayoutStrategy, compute_layout
from planner_map.core.layout.layout_cache import LayoutCache, Viewport
from planner_map.core.model import (
    ASSIGNEE_STYLES,
    STATUS_STYLES,
    ZERO_TOTALS,
    GraphModel,
    Node,
    NodeSize,
    Point,
    Status,
    Totals,
)
from planner_map.core.rollup.compute_totals import compute_totals
from planner_map.core.sizing.compute_sizes import compute_sizes


@dataclass(frozen=True)
class SceneNode:
    id: str
    name: str
    position: Point
    size: NodeSize
    totals: Totals
    classes: list[str]
    meta_lines: list[str]
    locked: bool


@dataclass(frozen=True)
class SceneLink:
    id: str
    from_id: str
    to_id: str
    path: LinkPath
    dimmed: bool


@dataclass(frozen=True)
class Scene:
    nodes: list[SceneNode]
    links: list[SceneLink]
    root_id: Optional[str]
    fit: ViewTransform


def format_amount(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def format_meta_line(*, time: float, cost: float, prefix: str = "") -> str:
    """``"80h and $12,000"``; empty when there is nothing to show."""
    parts: list[str] = []
    if time > 0:
        parts.append(f"{format_amount(time)}h")
    if cost > 0:
        parts.append(f"${format_amount(cost)}")
    if not parts:
        return ""
    return prefix + " and ".join(parts)


def node_classes(node: Node, *, dimmed: bool, selected: bool) -> list[str]:
    classes = ["node"]
    if node.status is Status.SHELVED:
        classes.append("node--shelved")
    classes.append(STATUS_STYLES[node.status])
    if dimmed:
        classes.append("node--dimmed")
    assignee = ASSIGNEE_STYLES.get(node.assigned_to)
    if assignee:
        classes.append(assignee)
    if selected:
        classes.append("node--selected")
    return classes


def build_scene(
    model: GraphModel,
    cache: Optional[LayoutCache] = None,
    *,
    config: MapConfig = DEFAULT_CONFIG,
    viewport: Optional[Viewport] = None,
    strategy: Union[str, LayoutStrategy, None] = None,
    selected_id: Optional[str] = None,
) -> Scene:
    """One full recompute: index -> totals -> sizes -> layout -> link geometry."""

    if cache is None:
        cache = LayoutCache()
    if viewport is None:
        viewport = Viewport.from_config(config)

    index = build_index(model.nodes, model.links)
    totals = compute_totals(index)
    sizes = compute_sizes(totals, index, config=config)
    positions = compute_layout(index, sizes, cache, viewport=viewport, strategy=strategy, config=config)
    shelved_branch = collect_shelved_branch(index)
    fallback_size = NodeSize.of_radius(config.fallback_radius)

    scene_nodes: list[SceneNode] = []
    for node in index.nodes:
        node_totals = totals.get(node.id, ZERO_TOTALS)
        meta = [
            format_meta_line(time=node.estimated_time, cost=node.estimated_cost),
            format_meta_line(time=node_totals.time, cost=node_totals.cost, prefix="Total: "),
        ]
        scene_nodes.append(
            SceneNode(
                id=node.id,
                name=node.name,
                position=positions.get(node.id, viewport.center),
                size=sizes.get(node.id, fallback_size),
                totals=node_totals,
                classes=node_classes(
                    node,
                    dimmed=node.id in shelved_branch,
                    selected=node.id == selected_id,
                ),
                meta_lines=[line for line in meta if line],
                locked=node.position_locked,
            )
        )

    scene_links = [
        SceneLink(
            id=g.link.id,
            from_id=g.link.from_id,
            to_id=g.link.to_id,
            path=g.path,
            dimmed=g.link.from_id in shelved_branch or g.link.to_id in shelved_branch,
        )
        for g in build_link_geometry(
            index,
            positions,
            model.links,
            threshold=config.curve_threshold,
            max_offset=config.curve_max_offset,
        )
    ]

    root_id, _ = find_roots(index)
    fit = fit_to_bounds(((n.position, n.size.radius) for n in scene_nodes), viewport, config)
    return Scene(nodes=scene_nodes, links=scene_links, root_id=root_id, fit=fit)


def reposition_scene(
    scene: Scene,
    positions: Mapping[str, Point],
    *,
    config: MapConfig = DEFAULT_CONFIG,
) -> Scene:
    """Move scene nodes to ``positions`` and rebuild the affected link paths, without a layout pass."""
    nodes = [
        replace(n, position=positions[n.id], locked=True)
        if n.id in positions and positions[n.id] != n.position
        else n
        for n in scene.nodes
    ]
    by_id = {n.id: n.position for n in nodes}

    links: list[SceneLink] = []
    for lk in scene.links:
        a, b = by_id.get(lk.from_id), by_id.get(lk.to_id)
        if a is None or b is None or (a == lk.path.start and b == lk.path.end):
            links.append(lk)
            continue
        path = build_link_path(
            a.x, a.y, b.x, b.y, threshold=config.curve_threshold, max_offset=config.curve_max_offset
        )
        links.append(replace(lk, path=path))
    return replace(scene, nodes=nodes, links=links)


def scene_to_dict(scene: Scene) -> dict[str, Any]:
    return {
        "root_id": scene.root_id,
        "fit": {"x": scene.fit.x, "y": scene.fit.y, "scale": scene.fit.scale},
        "nodes": [
            {
                "id": n.id,
                "name": n.name,
                "x": n.position.x,
                "y": n.position.y,
                "radius": n.size.radius,
                "width": n.size.width,
                "height": n.size.height,
                "total_cost": n.totals.cost,
                "total_time": n.totals.time,
                "classes": list(n.classes),
                "meta": list(n.meta_lines),
                "locked": n.locked,
            }
            for n in scene.nodes
        ],
        "links": [
            {
                "id": lk.id,
                "from": lk.from_id,
                "to": lk.to_id,
                "kind": lk.path.kind,
                "d": lk.path.d,
                "arrow": {"x": lk.path.arrow.x, "y": lk.path.arrow.y},
                "dimmed": lk.dimmed,
            }
            for lk in scene.links
        ],
    }
