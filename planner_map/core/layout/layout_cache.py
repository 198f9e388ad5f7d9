from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

from planner_map.core.config.map_config import DEFAULT_CONFIG, MapConfig
from planner_map.core.model import Point


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float

    @property
    def center(self) -> Point:
        return Point(self.width / 2, self.height / 2)

    @classmethod
    def from_config(cls, config: MapConfig = DEFAULT_CONFIG) -> Viewport:
        return cls(width=config.viewport_width, height=config.viewport_height)


@dataclass
class LayoutCache:
    """Positions and velocities keyed by node id.

    Entries appear the first time a node is laid out and are dropped once the
    node leaves the model.
    """

    positions: dict[str, Point] = field(default_factory=dict)
    velocities: dict[str, Point] = field(default_factory=dict)

    def purge(self, keep_ids: Iterable[str]) -> None:
        keep = set(keep_ids)
        for store in (self.positions, self.velocities):
            for node_id in [k for k in store if k not in keep]:
                del store[node_id]

    def forget(self, node_id: str) -> None:
        self.positions.pop(node_id, None)
        self.velocities.pop(node_id, None)

    def is_settled(self, tolerance: float = 0.05) -> bool:
        return all(math.hypot(v.x, v.y) <= tolerance for v in self.velocities.values())
