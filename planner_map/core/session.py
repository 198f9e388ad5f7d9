from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from planner_map.core.config.map_config import DEFAULT_CONFIG, MapConfig
from planner_map.core.drag.subtree_drag import CommitFn, DragResult, SubtreeDrag
from planner_map.core.errors import MapStateError
from planner_map.core.geometry.view_transform import ViewTransform
from planner_map.core.layout.compute_layout import LayoutStrategy
from planner_map.core.layout.layout_cache import LayoutCache, Viewport
from planner_map.core.model import GraphModel, Point
from planner_map.core.scene.build_scene import Scene, build_scene, reposition_scene

logger = logging.getLogger(__name__)


@dataclass
class RefreshTicket:
    seq: int
    cancelled: bool = False


class MapSession:
    """Single owner of a model's positions.

    Only one recompute pass may be in flight, and drag updates are refused
    while it runs. A new refresh request cancels the pending one.
    """

    def __init__(
        self,
        model: GraphModel,
        *,
        config: MapConfig = DEFAULT_CONFIG,
        viewport: Optional[Viewport] = None,
        strategy: Union[str, LayoutStrategy, None] = None,
        on_commit: Optional[CommitFn] = None,
    ) -> None:
        self.model = model
        self.config = config
        self.viewport = viewport or Viewport.from_config(config)
        self.strategy = strategy
        self.cache = LayoutCache()
        self.view = ViewTransform()
        self.selected_id: Optional[str] = None
        self.scene: Optional[Scene] = None

        self._drag = SubtreeDrag(model, self.cache, threshold=config.drag_threshold, on_commit=on_commit)
        self._in_flight = False
        self._pending: Optional[RefreshTicket] = None
        self._seq = 0

    @property
    def layout_in_flight(self) -> bool:
        return self._in_flight

    @property
    def dragging(self) -> bool:
        return self._drag.active

    def recompute(self) -> Scene:
        self._guard("recompute")
        self._in_flight = True
        try:
            self.scene = build_scene(
                self.model,
                self.cache,
                config=self.config,
                viewport=self.viewport,
                strategy=self.strategy,
                selected_id=self.selected_id,
            )
        finally:
            self._in_flight = False
        return self.scene

    def schedule_refresh(self) -> RefreshTicket:
        if self._pending is not None and not self._pending.cancelled:
            self._pending.cancelled = True
            logger.debug("refresh %d cancelled", self._pending.seq)
        self._seq += 1
        self._pending = RefreshTicket(seq=self._seq)
        return self._pending

    def run_pending(self) -> Optional[Scene]:
        ticket, self._pending = self._pending, None
        if ticket is None or ticket.cancelled:
            return None
        return self.recompute()

    def pointer_to_map(self, screen_x: float, screen_y: float) -> Point:
        return self.view.screen_to_map(screen_x, screen_y)

    def begin_drag(self, node_id: str, pointer: Point) -> bool:
        self._guard("drag")
        started = self._drag.begin_drag(node_id, pointer)
        if started:
            self.selected_id = node_id
        return started

    def update_drag(self, pointer: Point) -> bool:
        self._guard("drag")
        moved = self._drag.update_drag(pointer)
        if moved and self.scene is not None:
            moving = {nid: self.cache.positions[nid] for nid in self._drag.moving_ids if nid in self.cache.positions}
            self.scene = reposition_scene(self.scene, moving, config=self.config)
        return moved

    def end_drag(self) -> Optional[DragResult]:
        self._guard("drag")
        result = self._drag.end_drag()
        if result is not None and result.moved_ids:
            self.schedule_refresh()
        return result

    def _guard(self, action: str) -> None:
        if self._in_flight:
            raise MapStateError(
                code="E_PASS_IN_FLIGHT",
                message=f"cannot {action} while a layout pass is in flight",
                path="session",
            )
