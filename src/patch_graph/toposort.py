"""Topological sort for patch graphs."""

from __future__ import annotations

from collections import defaultdict

from patch_graph._deps import input_feeds
from patch_graph.models import Module, Patchable


def toposort(graph: Patchable, discovered: list[int]) -> list[Module]:
    """Return the *discovered* modules producers-first (Kahn's algorithm).

    *discovered* is the upstream visit order from :func:`discover`. Among
    ready modules the one discovered last is emitted first, which for a
    tree is exactly the reverse of the visit order.
    Raises ValueError if the modules contain a cycle.
    """
    if not discovered:
        return []

    rank = {mid: i for i, mid in enumerate(discovered)}
    module_map: dict[int, Module] = {mid: graph.get_module(mid) for mid in discovered}

    # Build in-degree and reverse adjacency
    in_degree: dict[int, int] = {mid: 0 for mid in discovered}
    reverse: dict[int, list[int]] = defaultdict(list)
    for mid, module in module_map.items():
        sources = {feed.source for feed in input_feeds(graph, module)}
        for source in sources:
            if source in in_degree:
                in_degree[mid] += 1
                reverse[source].append(mid)

    # Queue of negated ranks, kept sorted so the latest-discovered pops first
    queue = sorted(-rank[mid] for mid, deg in in_degree.items() if deg == 0)
    result: list[Module] = []

    while queue:
        current = discovered[-queue.pop(0)]
        result.append(module_map[current])
        for dependent in reverse[current]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                _insort(queue, -rank[dependent])

    if len(result) < len(module_map):
        cycle = sorted(mid for mid, deg in in_degree.items() if deg > 0)
        raise ValueError(
            f"Graph contains a cycle through modules: {', '.join(str(mid) for mid in cycle)}"
        )

    return result


def _insort(lst: list[int], val: int) -> None:
    """Insert val into sorted list lst, maintaining sort order."""
    lo, hi = 0, len(lst)
    while lo < hi:
        mid = (lo + hi) // 2
        if lst[mid] < val:
            lo = mid + 1
        else:
            hi = mid
    lst.insert(lo, val)
