from __future__ import annotations

from typing import Callable, Mapping, Optional, Protocol, Union

from planner_map.core.config.map_config import DEFAULT_CONFIG, MapConfig, MapConfigError
from planner_map.core.graph.graph_index import GraphIndex
from planner_map.core.layout.force_layout import ForceLayout
from planner_map.core.layout.layout_cache import LayoutCache, Viewport
from planner_map.core.layout.radial_layout import RadialLayout
from planner_map.core.model import NodeSize, Point


class LayoutStrategy(Protocol):
    name: str

    def layout(
        self,
        index: GraphIndex,
        sizes: Mapping[str, NodeSize],
        cache: LayoutCache,
        locked: Mapping[str, Point],
        viewport: Viewport,
    ) -> dict[str, Point]: ...


LAYOUT_STRATEGIES: dict[str, Callable[[MapConfig], LayoutStrategy]] = {
    "radial": RadialLayout,
    "force": ForceLayout,
}


def get_strategy(name: str, config: MapConfig = DEFAULT_CONFIG) -> LayoutStrategy:
    factory = LAYOUT_STRATEGIES.get(name)
    if factory is None:
        raise MapConfigError(
            f"unknown layout strategy: {name} (choose one of: {', '.join(sorted(LAYOUT_STRATEGIES))})"
        )
    return factory(config)


def locked_overrides(index: GraphIndex) -> dict[str, Point]:
    return {
        n.id: n.position
        for n in index.nodes
        if n.position_locked and n.position is not None
    }


def compute_layout(
    index: GraphIndex,
    sizes: Mapping[str, NodeSize],
    cache: Optional[LayoutCache] = None,
    locked: Optional[Mapping[str, Point]] = None,
    *,
    viewport: Optional[Viewport] = None,
    strategy: Union[str, LayoutStrategy, None] = None,
    config: MapConfig = DEFAULT_CONFIG,
) -> dict[str, Point]:
    """Position every node for one pass.

    ``cache`` carries positions between passes (seeds for unreached nodes);
    ``locked`` defaults to the pinned positions found on the nodes.
    """

    if cache is None:
        cache = LayoutCache()
    if locked is None:
        locked = locked_overrides(index)
    if viewport is None:
        viewport = Viewport.from_config(config)
    if strategy is None:
        strategy = config.layout_strategy
    if isinstance(strategy, str):
        strategy = get_strategy(strategy, config)
    return strategy.layout(index, sizes, cache, locked, viewport)
