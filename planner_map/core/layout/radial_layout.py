from __future__ import annotations

import math
from collections import deque
from typing import Mapping

from planner_map.core.config.map_config import DEFAULT_CONFIG, MapConfig
from planner_map.core.graph.graph_index import GraphIndex, find_roots
from planner_map.core.layout.layout_cache import LayoutCache, Viewport
from planner_map.core.model import NodeSize, Point


def seed_point(index: int, count: int, center: Point, config: MapConfig = DEFAULT_CONFIG) -> Point:
    """Stable first-render spot for the node at position ``index`` in node order."""
    angle = (index / max(count, 1)) * math.pi * 2
    radius = config.seed_radius + (index % config.seed_radius_bands) * config.seed_radius_step
    return Point(center.x + math.cos(angle) * radius, center.y + math.sin(angle) * radius)


def ring_point(center: Point, distance: float, slot: int, slots: int) -> Point:
    """Slot ``slot`` of ``slots`` evenly spaced on a circle, starting straight up."""
    angle = -math.pi / 2 + (math.pi * 2 / slots) * slot
    return Point(center.x + math.cos(angle) * distance, center.y + math.sin(angle) * distance)


def radius_of(sizes: Mapping[str, NodeSize], node_id: str, default: float) -> float:
    size = sizes.get(node_id)
    return size.radius if size else default


class RadialLayout:
    """Root in the middle, each child group on a ring around its parent.

    Per pass:
      1. seed every node without a cached position on a circle around the center
      2. canonical root goes to the viewport center
      3. extra roots go on a ring of ``extra_root_spread * root_radius`` around the root
      4. BFS from the roots places each parent's unlocked children evenly on a
         ring of ``parent + max(child) + gap``

    Locked nodes are never moved but their children are still visited.
    A child shared by several parents ends up on the ring of the last parent
    the BFS visits.
    """

    name = "radial"

    def __init__(self, config: MapConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def layout(
        self,
        index: GraphIndex,
        sizes: Mapping[str, NodeSize],
        cache: LayoutCache,
        locked: Mapping[str, Point],
        viewport: Viewport,
    ) -> dict[str, Point]:
        cfg = self.config
        positions = cache.positions
        cache.purge(index.nodes_by_id)
        center = viewport.center

        frozen = set(locked) | {n.id for n in index.nodes if n.position_locked}

        for i, node in enumerate(index.nodes):
            pinned = locked.get(node.id)
            if pinned is not None:
                positions[node.id] = pinned
            elif node.id not in positions:
                positions[node.id] = seed_point(i, len(index.nodes), center, cfg)

        root_id, extra_roots = find_roots(index)
        if root_id is None:
            return _ordered(index, positions)

        if root_id not in frozen:
            positions[root_id] = center

        if extra_roots:
            root_pos = positions.get(root_id, center)
            spread = radius_of(sizes, root_id, cfg.root_radius) * cfg.extra_root_spread
            for slot, extra_id in enumerate(extra_roots):
                if extra_id in frozen:
                    continue
                positions[extra_id] = ring_point(root_pos, spread, slot, len(extra_roots))

        queue: deque[str] = deque([root_id, *extra_roots])
        seen: set[str] = set(queue)

        while queue:
            parent_id = queue.popleft()
            parent_pos = positions.get(parent_id)
            if parent_pos is None:
                continue

            children = [c for c in dict.fromkeys(index.children(parent_id)) if c != parent_id]
            auto = [c for c in children if c not in frozen]
            if auto:
                parent_radius = radius_of(sizes, parent_id, cfg.root_radius)
                widest = max(radius_of(sizes, c, parent_radius * 0.5) for c in auto)
                distance = parent_radius + widest + cfg.child_gap
                for slot, child_id in enumerate(auto):
                    positions[child_id] = ring_point(parent_pos, distance, slot, len(auto))

            for child_id in children:
                if child_id not in seen:
                    seen.add(child_id)
                    queue.append(child_id)

        return _ordered(index, positions)


def _ordered(index: GraphIndex, positions: Mapping[str, Point]) -> dict[str, Point]:
    return {n.id: positions[n.id] for n in index.nodes if n.id in positions}
