from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from planner_map.core.graph.graph_index import GraphIndex
from planner_map.core.model import ZERO_TOTALS, Status, Totals

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    node_id: str
    children: list[str]
    cost: float
    time: float
    next_child: int = 0


def compute_totals(index: GraphIndex) -> dict[str, Totals]:
    """Aggregate cost/time per node over its non-shelved descendants.

    Rules:
    - absent or Shelved node: {0, 0}, memoized. Ancestors add that zero and
      never look past a shelved node.
    - otherwise own estimate plus each child's total, in bucket order.
    - a child already on the trail (ancestors being expanded) contributes
      {0, 0} and is *not* memoized, so it is still computed properly when
      reached through a non-cyclic path.

    Shared subtrees are added once per parent that reaches them, so totals
    may overcount diamond-shaped graphs. This is the documented behavior.
    """

    memo: dict[str, Totals] = {}
    for n in index.nodes:
        _total_for(n.id, index, memo)
    return {n.id: memo[n.id] for n in index.nodes}


def _resolve(
    node_id: str, index: GraphIndex, memo: dict[str, Totals], trail: set[str]
) -> Optional[Totals]:
    """Return a known total for node_id, or None when it has to be expanded."""
    if node_id in memo:
        return memo[node_id]
    node = index.nodes_by_id.get(node_id)
    if node is None or node.status is Status.SHELVED:
        memo[node_id] = ZERO_TOTALS
        return ZERO_TOTALS
    if node_id in trail:
        logger.debug("cycle cut at %s", node_id)
        return ZERO_TOTALS
    return None


def _push(stack: list[_Frame], trail: set[str], node_id: str, index: GraphIndex) -> None:
    node = index.nodes_by_id[node_id]
    stack.append(
        _Frame(
            node_id=node_id,
            children=index.children(node_id),
            cost=node.estimated_cost,
            time=node.estimated_time,
        )
    )
    trail.add(node_id)


def _total_for(start_id: str, index: GraphIndex, memo: dict[str, Totals]) -> Totals:
    trail: set[str] = set()
    known = _resolve(start_id, index, memo, trail)
    if known is not None:
        return known

    stack: list[_Frame] = []
    _push(stack, trail, start_id, index)

    while stack:
        frame = stack[-1]
        if frame.next_child < len(frame.children):
            child_id = frame.children[frame.next_child]
            frame.next_child += 1
            child = _resolve(child_id, index, memo, trail)
            if child is None:
                _push(stack, trail, child_id, index)
            else:
                frame.cost += child.cost
                frame.time += child.time
            continue

        stack.pop()
        trail.discard(frame.node_id)
        done = Totals(cost=frame.cost, time=frame.time)
        memo[frame.node_id] = done
        if stack:
            stack[-1].cost += done.cost
            stack[-1].time += done.time

    return memo[start_id]
