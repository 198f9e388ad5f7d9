from __future__ import annotations

import math
from typing import Mapping

from planner_map.core.config.map_config import DEFAULT_CONFIG, MapConfig
from planner_map.core.graph.graph_index import GraphIndex, reachable_from_roots
from planner_map.core.layout.layout_cache import LayoutCache, Viewport
from planner_map.core.layout.radial_layout import RadialLayout, radius_of
from planner_map.core.model import NodeSize, Point

REPULSION = 200000.0
SPRING = 0.02
CENTER_PULL = 0.002
DAMPING = 0.85
MAX_STEP = 12.0
ITERATIONS = 200


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


class ForceLayout:
    """Damped spring/repulsion relaxation seeded from the radial layout.

    Velocities restart at zero each pass and the iteration count is fixed, so
    the result depends only on the inputs. Locked nodes act as fixed anchors.
    """

    name = "force"

    def __init__(self, config: MapConfig = DEFAULT_CONFIG, *, iterations: int = ITERATIONS) -> None:
        self.config = config
        self.iterations = iterations

    def layout(
        self,
        index: GraphIndex,
        sizes: Mapping[str, NodeSize],
        cache: LayoutCache,
        locked: Mapping[str, Point],
        viewport: Viewport,
    ) -> dict[str, Point]:
        start = RadialLayout(self.config).layout(index, sizes, cache, locked, viewport)
        ids = list(start)
        if not ids:
            return start

        fixed = set(locked) | {n.id for n in index.nodes if n.position_locked}
        # Nodes no root reaches keep their seeded spot.
        fixed |= set(ids) - reachable_from_roots(index)
        slot = {nid: i for i, nid in enumerate(ids)}
        pos = [[start[nid].x, start[nid].y] for nid in ids]
        vel = [[0.0, 0.0] for _ in ids]
        radii = [radius_of(sizes, nid, self.config.fallback_radius) for nid in ids]

        springs: list[tuple[int, int]] = []
        for nid in ids:
            for child in index.children(nid):
                if child != nid and child in slot:
                    springs.append((slot[nid], slot[child]))

        center = viewport.center
        gap = self.config.child_gap

        for _ in range(self.iterations):
            forces = [[0.0, 0.0] for _ in ids]

            for i in range(len(ids)):
                xi, yi = pos[i]
                for j in range(i + 1, len(ids)):
                    dx = xi - pos[j][0]
                    dy = yi - pos[j][1]
                    if dx == 0 and dy == 0:
                        dx = 0.01
                    dist_sq = (dx * dx) + (dy * dy) + 1.0
                    dist = math.sqrt(dist_sq)
                    force = REPULSION / dist_sq
                    fx = (dx / dist) * force
                    fy = (dy / dist) * force
                    forces[i][0] += fx
                    forces[i][1] += fy
                    forces[j][0] -= fx
                    forces[j][1] -= fy

            for s, t in springs:
                dx = pos[t][0] - pos[s][0]
                dy = pos[t][1] - pos[s][1]
                dist = math.sqrt((dx * dx) + (dy * dy)) + 1e-6
                ideal = radii[s] + radii[t] + gap
                pull = (dist - ideal) * SPRING
                fx = (dx / dist) * pull
                fy = (dy / dist) * pull
                forces[s][0] += fx
                forces[s][1] += fy
                forces[t][0] -= fx
                forces[t][1] -= fy

            for i, nid in enumerate(ids):
                if nid in fixed:
                    vel[i] = [0.0, 0.0]
                    continue
                fx = forces[i][0] + (center.x - pos[i][0]) * CENTER_PULL
                fy = forces[i][1] + (center.y - pos[i][1]) * CENTER_PULL
                vel[i][0] = _clamp((vel[i][0] + fx) * DAMPING, -MAX_STEP, MAX_STEP)
                vel[i][1] = _clamp((vel[i][1] + fy) * DAMPING, -MAX_STEP, MAX_STEP)
                pos[i][0] += vel[i][0]
                pos[i][1] += vel[i][1]

        out: dict[str, Point] = {}
        for i, nid in enumerate(ids):
            out[nid] = Point(pos[i][0], pos[i][1])
            cache.positions[nid] = out[nid]
            cache.velocities[nid] = Point(vel[i][0], vel[i][1])
        return out
