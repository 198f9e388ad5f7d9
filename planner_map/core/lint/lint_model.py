from __future__ import annotations

from collections import Counter, deque
from typing import Any, Optional

from planner_map.core.errors import MapLintError


# Planner map lint rules:
# - L_DANGLING_LINK: link endpoint is not a known node (the link is never drawn)
# - L_SELF_LOOP: link from a node to itself
# - L_DUPLICATE_LINK: same from/to pair linked more than once
# - L_CYCLE_DETECTED: dependency cycle exists (rollups cut the cycle to zero)
# - L_UNREACHABLE_NODE: node not reachable from any root (keeps its seeded position)
# - L_SHARED_SUBTREE: node with several prerequisites; its total rolls into each of them
# - L_LOCKED_WITHOUT_POSITION: position_locked without a position to pin


def lint_model(raw: dict[str, Any]) -> list[MapLintError]:
    """Lint a planner map.

    Runs on top of validation and works on partially-invalid input (best
    effort). The CLI prints lint + validation errors together.
    """

    file = _cast_optional_str(raw.get("__file__"))

    nodes = raw.get("nodes")
    if not isinstance(nodes, list):
        # Let validator handle shape.
        return []

    id_to_index: dict[str, int] = {}
    for i, item in enumerate(nodes):
        if isinstance(item, dict) and isinstance(item.get("id"), str):
            id_to_index.setdefault(item["id"], i)

    links_raw = raw.get("links")
    links: list[tuple[int, str, str]] = []
    if isinstance(links_raw, list):
        for i, item in enumerate(links_raw):
            if not isinstance(item, dict):
                continue
            a, b = item.get("from"), item.get("to")
            if isinstance(a, str) and isinstance(b, str):
                links.append((i, a, b))

    errors: list[MapLintError] = []

    def err(code: str, message: str, path: str) -> None:
        errors.append(MapLintError(code=code, message=message, file=file, path=path))

    children: dict[str, list[str]] = {}
    incoming: dict[str, list[str]] = {}
    pair_counts = Counter((a, b) for _, a, b in links)
    reported_pairs: set[tuple[str, str]] = set()

    for i, a, b in links:
        missing = [x for x in (a, b) if x not in id_to_index]
        if missing:
            err("L_DANGLING_LINK", f"link references unknown node id(s): {', '.join(missing)}", f"links[{i}]")
            continue
        if a == b:
            err("L_SELF_LOOP", f"node {a} is linked to itself", f"links[{i}]")
        if pair_counts[(a, b)] > 1 and (a, b) in reported_pairs:
            err("L_DUPLICATE_LINK", f"duplicate link {a} -> {b} (count={pair_counts[(a, b)]})", f"links[{i}]")
        reported_pairs.add((a, b))
        children.setdefault(a, []).append(b)
        incoming.setdefault(b, []).append(a)

    for nid, parents in incoming.items():
        distinct = list(dict.fromkeys(p for p in parents if p != nid))
        if len(distinct) > 1:
            err(
                "L_SHARED_SUBTREE",
                f"node is required by {len(distinct)} nodes ({', '.join(distinct)}); its total counts toward each",
                f"nodes[{id_to_index[nid]}].id",
            )

    for nid, i in id_to_index.items():
        item = nodes[i]
        if item.get("position_locked") is True and item.get("position") is None:
            err("L_LOCKED_WITHOUT_POSITION", "position_locked is set but position is missing", f"nodes[{i}].position")

    roots = [nid for nid in id_to_index if not incoming.get(nid)]
    if roots:
        reachable = _reachable(roots, children)
        for nid in sorted(set(id_to_index) - reachable):
            err("L_UNREACHABLE_NODE", "node is not reachable from any root", f"nodes[{id_to_index[nid]}].id")

    for nid, msg in _detect_cycles(list(id_to_index), children):
        err("L_CYCLE_DETECTED", msg, f"nodes[{id_to_index[nid]}].id")

    return _sorted(errors)


def _reachable(roots: list[str], children: dict[str, list[str]]) -> set[str]:
    q: deque[str] = deque(roots)
    seen: set[str] = set()
    while q:
        cur = q.popleft()
        if cur in seen:
            continue
        seen.add(cur)
        for nxt in children.get(cur, []):
            if nxt not in seen:
                q.append(nxt)
    return seen


def _detect_cycles(ids: list[str], children: dict[str, list[str]]) -> list[tuple[str, str]]:
    WHITE, GRAY, BLACK = 0, 1, 2
    state: dict[str, int] = {nid: WHITE for nid in ids}
    emitted: set[str] = set()
    out: list[tuple[str, str]] = []

    for start in ids:
        if state[start] != WHITE:
            continue
        # Explicit stack of (node, next child position) instead of recursion.
        path: list[str] = [start]
        cursor: list[int] = [0]
        state[start] = GRAY
        while path:
            u = path[-1]
            kids = children.get(u, [])
            if cursor[-1] >= len(kids):
                state[u] = BLACK
                path.pop()
                cursor.pop()
                continue
            v = kids[cursor[-1]]
            cursor[-1] += 1
            if state.get(v, BLACK) == GRAY:
                cycle = path[path.index(v):] + [v]
                key = "->".join(cycle)
                if key not in emitted:
                    emitted.add(key)
                    out.append((u, "dependency cycle detected: " + " -> ".join(cycle)))
            elif state.get(v) == WHITE:
                state[v] = GRAY
                path.append(v)
                cursor.append(0)

    return out


def _sorted(errors: list[MapLintError]) -> list[MapLintError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))


def _cast_optional_str(v: Any) -> Optional[str]:
    return v if isinstance(v, str) else None
