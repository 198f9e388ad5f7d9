from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Status(str, Enum):
    CONSIDERING = "Considering"
    SHELVED = "Shelved"
    COMMITTED = "Committed"
    IN_PROGRESS = "In Progress"
    COMPLETE = "Complete"


STATUS_STYLES: dict[Status, str] = {
    Status.CONSIDERING: "node--status-considering",
    Status.SHELVED: "node--status-shelved",
    Status.COMMITTED: "node--status-committed",
    Status.IN_PROGRESS: "node--status-in-progress",
    Status.COMPLETE: "node--status-complete",
}

ASSIGNEE_STYLES: dict[str, str] = {
    "Trey": "node--trey",
    "Sarah": "node--sarah",
    "Both": "node--both",
}


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def translated(self, dx: float, dy: float) -> Point:
        return Point(self.x + dx, self.y + dy)


@dataclass
class Node:
    id: str
    name: str
    description: str = ""
    estimated_cost: float = 0
    estimated_time: float = 0  # hours
    status: Status = Status.CONSIDERING
    assigned_to: str = ""

    position_locked: bool = False
    position: Optional[Point] = None


@dataclass(frozen=True)
class Link:
    id: str
    from_id: str  # prerequisite
    to_id: str  # dependent


@dataclass
class GraphModel:
    schema_version: str
    nodes: list[Node] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)

    def node(self, node_id: str) -> Optional[Node]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None


@dataclass(frozen=True)
class Totals:
    cost: float
    time: float


ZERO_TOTALS = Totals(cost=0, time=0)


@dataclass(frozen=True)
class NodeSize:
    radius: float
    width: float
    height: float

    @classmethod
    def of_radius(cls, radius: float) -> NodeSize:
        return cls(radius=radius, width=radius * 2, height=radius * 2)
