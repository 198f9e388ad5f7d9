from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from planner_map.core.config.map_config import DEFAULT_CONFIG, MapConfig
from planner_map.core.layout.layout_cache import Viewport
from planner_map.core.model import Point


@dataclass(frozen=True)
class ViewTransform:
    """Pan/zoom applied to map space: screen = map * scale + (x, y)."""

    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0

    def screen_to_map(self, screen_x: float, screen_y: float) -> Point:
        return Point((screen_x - self.x) / self.scale, (screen_y - self.y) / self.scale)

    def map_to_screen(self, point: Point) -> Point:
        return Point(point.x * self.scale + self.x, point.y * self.scale + self.y)

    def panned(self, dx: float, dy: float) -> ViewTransform:
        return replace(self, x=self.x + dx, y=self.y + dy)

    def zoom_at(
        self,
        screen_x: float,
        screen_y: float,
        wheel_delta_y: float,
        config: MapConfig = DEFAULT_CONFIG,
    ) -> ViewTransform:
        """Zoom by a wheel step while keeping the map point under the cursor fixed."""
        target = self.scale - wheel_delta_y * config.zoom_sensitivity
        scale = min(max(target, config.min_zoom), config.max_zoom)
        ratio = scale / self.scale
        return ViewTransform(
            x=screen_x - ratio * (screen_x - self.x),
            y=screen_y - ratio * (screen_y - self.y),
            scale=scale,
        )

    @staticmethod
    def reset() -> ViewTransform:
        return ViewTransform()


def fit_to_bounds(
    circles: Iterable[tuple[Point, float]],
    viewport: Viewport,
    config: MapConfig = DEFAULT_CONFIG,
) -> ViewTransform:
    """Transform that centers the bounding box of (center, radius) circles, never zooming in past 1."""
    items = list(circles)
    if not items:
        return ViewTransform()

    min_x = min(p.x - r for p, r in items)
    min_y = min(p.y - r for p, r in items)
    max_x = max(p.x + r for p, r in items)
    max_y = max(p.y + r for p, r in items)
    width = max_x - min_x
    height = max_y - min_y

    scale = min(
        viewport.width / (width + config.fit_padding),
        viewport.height / (height + config.fit_padding),
        1.0,
    )
    return ViewTransform(
        x=viewport.width / 2 - (min_x + width / 2) * scale,
        y=viewport.height / 2 - (min_y + height / 2) * scale,
        scale=scale,
    )
