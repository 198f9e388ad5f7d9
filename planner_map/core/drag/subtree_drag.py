from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from planner_map.core.config.map_config import DEFAULT_CONFIG
from planner_map.core.graph.graph_index import build_index, collect_descendants
from planner_map.core.layout.layout_cache import LayoutCache
from planner_map.core.model import GraphModel, Node, Point

logger = logging.getLogger(__name__)

CommitFn = Callable[[GraphModel], None]


@dataclass(frozen=True)
class DragResult:
    node_id: str
    moved_ids: list[str]
    was_click: bool


@dataclass
class _DragState:
    node_id: str
    start_pointer: Point
    start_positions: dict[str, Point] = field(default_factory=dict)
    did_drag: bool = False


class SubtreeDrag:
    """Move a node and everything below it as one rigid body.

    Pointer points must already be in map space (pan/zoom removed). Every
    moved node is locked so later layout passes leave it where it was dropped.
    """

    def __init__(
        self,
        model: GraphModel,
        cache: LayoutCache,
        *,
        threshold: float = DEFAULT_CONFIG.drag_threshold,
        on_commit: Optional[CommitFn] = None,
    ) -> None:
        self.model = model
        self.cache = cache
        self.threshold = threshold
        self.on_commit = on_commit
        self._state: Optional[_DragState] = None

    @property
    def active(self) -> bool:
        return self._state is not None

    @property
    def moving_ids(self) -> list[str]:
        return list(self._state.start_positions) if self._state else []

    def begin_drag(self, node_id: str, pointer: Point) -> bool:
        index = build_index(self.model.nodes, self.model.links)
        if node_id not in index.nodes_by_id:
            return False

        state = _DragState(node_id=node_id, start_pointer=pointer)
        # Anything not laid out yet starts where the dragged node starts.
        anchor = self._known_position(index.nodes_by_id[node_id]) or pointer
        for nid in collect_descendants(index, node_id):
            state.start_positions[nid] = self._known_position(index.nodes_by_id[nid]) or anchor

        self._state = state
        return True

    def _known_position(self, node: Node) -> Optional[Point]:
        return self.cache.positions.get(node.id) or node.position

    def update_drag(self, pointer: Point) -> bool:
        """Apply the pointer delta to the moving subtree. Returns True if anything moved."""
        state = self._state
        if state is None:
            return False

        dx = pointer.x - state.start_pointer.x
        dy = pointer.y - state.start_pointer.y
        if not state.did_drag:
            if abs(dx) <= self.threshold and abs(dy) <= self.threshold:
                return False
            state.did_drag = True

        for nid, start in state.start_positions.items():
            node = self.model.node(nid)
            if node is None:
                continue
            moved = start.translated(dx, dy)
            node.position = moved
            node.position_locked = True
            self.cache.positions[nid] = moved
        return True

    def end_drag(self) -> Optional[DragResult]:
        state = self._state
        if state is None:
            return None
        self._state = None

        moved = list(state.start_positions) if state.did_drag else []
        if moved and self.on_commit is not None:
            self.on_commit(self.model)
        logger.debug("drag of %s ended, moved=%d", state.node_id, len(moved))
        return DragResult(node_id=state.node_id, moved_ids=moved, was_click=not state.did_drag)
