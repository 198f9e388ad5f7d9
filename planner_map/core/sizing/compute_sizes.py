from __future__ import annotations

from collections import deque

from planner_map.core.config.map_config import DEFAULT_CONFIG, MapConfig
from planner_map.core.graph.graph_index import GraphIndex, find_roots
from planner_map.core.model import ZERO_TOTALS, NodeSize, Totals


def estimate_value(totals: Totals, rate: float) -> float:
    return totals.cost + totals.time * rate


def compute_sizes(
    totals: dict[str, Totals],
    index: GraphIndex,
    *,
    config: MapConfig = DEFAULT_CONFIG,
) -> dict[str, NodeSize]:
    """Turn rolled-up estimates into a radius per node.

    Children are sized relative to their siblings, never globally. The
    canonical root keeps ``root_radius``. Nodes the walk from the canonical
    root never reaches (including everything below an extra root) fall back
    to ``fallback_radius``.
    """

    sizes: dict[str, NodeSize] = {}
    root_id, extra_roots = find_roots(index)

    if root_id is not None:
        sizes[root_id] = NodeSize.of_radius(config.root_radius)
        if extra_roots:
            _size_sibling_group(root_id, extra_roots, sizes, totals, config)

        queue: deque[str] = deque([root_id])
        seen: set[str] = {root_id}
        while queue:
            parent_id = queue.popleft()
            children = [c for c in dict.fromkeys(index.children(parent_id)) if c != parent_id]
            _size_sibling_group(
                parent_id,
                # The canonical root keeps its fixed size even when a cycle points back at it.
                [c for c in children if c != root_id],
                sizes,
                totals,
                config,
            )
            for child_id in children:
                if child_id not in seen:
                    seen.add(child_id)
                    queue.append(child_id)

    fallback = NodeSize.of_radius(config.fallback_radius)
    for n in index.nodes:
        sizes.setdefault(n.id, fallback)
    return sizes


def _size_sibling_group(
    parent_id: str,
    child_ids: list[str],
    sizes: dict[str, NodeSize],
    totals: dict[str, Totals],
    config: MapConfig,
) -> None:
    if not child_ids:
        return

    parent = sizes.get(parent_id)
    parent_radius = parent.radius if parent else config.root_radius
    max_radius = parent_radius * config.max_child_ratio
    min_radius = max(parent_radius * config.min_child_ratio, config.min_child_radius)
    # Small parents can push the floor past the ceiling; keep the range ordered.
    max_radius = max(max_radius, min_radius)

    values = [estimate_value(totals.get(c, ZERO_TOTALS), config.estimate_rate) for c in child_ids]
    lo = min(values)
    hi = max(values)

    for child_id, value in zip(child_ids, values):
        if hi != lo:
            scale = (value - lo) / (hi - lo)
        elif len(child_ids) == 1:
            scale = 1.0
        else:
            scale = 0.5
        sizes[child_id] = NodeSize.of_radius(min_radius + (max_radius - min_radius) * scale)
