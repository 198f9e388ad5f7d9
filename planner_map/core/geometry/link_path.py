from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Literal, Mapping, Optional

from planner_map.core.config.map_config import DEFAULT_CONFIG
from planner_map.core.graph.graph_index import GraphIndex
from planner_map.core.model import Link, Point


PathKind = Literal["line", "quadratic"]


@dataclass(frozen=True)
class LinkPath:
    kind: PathKind
    start: Point
    end: Point
    control: Optional[Point] = None

    @property
    def arrow(self) -> Point:
        return self.end

    @property
    def d(self) -> str:
        """SVG path data."""
        if self.kind == "quadratic" and self.control is not None:
            return (
                f"M {_num(self.start.x)} {_num(self.start.y)} "
                f"Q {_num(self.control.x)} {_num(self.control.y)} "
                f"{_num(self.end.x)} {_num(self.end.y)}"
            )
        return (
            f"M {_num(self.start.x)} {_num(self.start.y)} "
            f"L {_num(self.end.x)} {_num(self.end.y)}"
        )

    def point_at(self, t: float) -> Point:
        u = 1 - t
        if self.kind == "quadratic" and self.control is not None:
            c = self.control
            return Point(
                u * u * self.start.x + 2 * u * t * c.x + t * t * self.end.x,
                u * u * self.start.y + 2 * u * t * c.y + t * t * self.end.y,
            )
        return Point(u * self.start.x + t * self.end.x, u * self.start.y + t * self.end.y)


@dataclass(frozen=True)
class LinkGeometry:
    link: Link
    path: LinkPath


def build_link_path(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    *,
    threshold: float = DEFAULT_CONFIG.curve_threshold,
    max_offset: float = DEFAULT_CONFIG.curve_max_offset,
) -> LinkPath:
    """Straight segment for short links, a bowed quadratic for long ones.

    The control point sits off the midpoint along the normal (-dy, dx) so every
    long link bends to the same side relative to its direction.
    """
    start = Point(x1, y1)
    end = Point(x2, y2)
    dx = x2 - x1
    dy = y2 - y1
    distance = math.hypot(dx, dy)
    if distance <= threshold:
        return LinkPath(kind="line", start=start, end=end)

    offset = min(distance / 3, max_offset)
    control = Point(
        (x1 + x2) / 2 + (-dy / distance) * offset,
        (y1 + y2) / 2 + (dx / distance) * offset,
    )
    return LinkPath(kind="quadratic", start=start, end=end, control=control)


def build_link_geometry(
    index: GraphIndex,
    positions: Mapping[str, Point],
    links: Iterable[Link],
    *,
    threshold: float = DEFAULT_CONFIG.curve_threshold,
    max_offset: float = DEFAULT_CONFIG.curve_max_offset,
) -> list[LinkGeometry]:
    out: list[LinkGeometry] = []
    for link in links:
        if link.from_id not in index.nodes_by_id or link.to_id not in index.nodes_by_id:
            continue
        a = positions.get(link.from_id)
        b = positions.get(link.to_id)
        if a is None or b is None:
            continue
        path = build_link_path(a.x, a.y, b.x, b.y, threshold=threshold, max_offset=max_offset)
        out.append(LinkGeometry(link=link, path=path))
    return out


def _num(v: float) -> str:
    s = f"{v:.2f}".rstrip("0").rstrip(".")
    return "0" if s == "-0" else s
