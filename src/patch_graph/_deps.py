"""Shared dependency helpers for patch-graph analysis."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from patch_graph.models import Module, Patch, Patchable


@dataclass(slots=True)
class Feed:
    """A patch seen from the module whose input socket it plugs into."""

    patch: Patch
    socket: str
    source: int


def input_feeds(graph: Patchable, module: Module) -> list[Feed]:
    """Return the patches arriving on *module*'s input sockets.

    A patch feeds the module when its endpoint on the module names an input
    socket; the module at the other end is the producer. Patch orientation
    is not trusted, so loaded patches with swapped ends are still followed.
    Raises ValueError if a patch names a socket the module does not have.
    """
    feeds: list[Feed] = []
    for patch in graph.patches:
        ends = (
            (patch.to_module, patch.to_socket, patch.from_module),
            (patch.from_module, patch.from_socket, patch.to_module),
        )
        for near, socket_name, far in ends:
            if near != module.id:
                continue
            socket = module.unit.sockets.get(socket_name)
            if socket is None:
                raise ValueError(
                    f"Patch {patch.describe()} names unknown socket '{socket_name}' "
                    f"on module {module.id} ({module.kind})"
                )
            if socket.is_input:
                feeds.append(Feed(patch=patch, socket=socket_name, source=far))
                break
    return feeds


def discover(graph: Patchable, sinks: list[int]) -> list[int]:
    """Breadth-first walk upstream from *sinks*; return module ids in visit order.

    Only modules that can reach a sink are returned. Raises NodeNotFoundError
    if a patch points at a module that is not in the graph.
    """
    queue = deque(sinks)
    seen: set[int] = set()
    order: list[int] = []
    while queue:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        order.append(current)
        for feed in input_feeds(graph, graph.get_module(current)):
            if feed.source not in seen:
                queue.append(feed.source)
    return order
