from __future__ import annotations

from collections import defaultdict

from patch_graph.graphs import Instrument
from patch_graph.models import Module, Patchable, Socket


class GraphValidationError(str):
    """A structured validation error that behaves as a plain string.

    Subclasses ``str`` so callers can print, join or compare errors directly
    while still reading ``kind``, ``module_id``, ``socket`` and ``severity``.
    """

    kind: str
    module_id: int | None
    socket: str | None
    severity: str  # "error" | "warning"

    def __new__(
        cls,
        kind: str,
        message: str,
        *,
        module_id: int | None = None,
        socket: str | None = None,
        severity: str = "error",
    ) -> GraphValidationError:
        return super().__new__(cls, message)

    def __init__(
        self,
        kind: str,
        message: str,
        *,
        module_id: int | None = None,
        socket: str | None = None,
        severity: str = "error",
    ) -> None:
        self.kind = kind
        self.module_id = module_id
        self.socket = socket
        self.severity = severity


def validate_graph(graph: Patchable) -> list[GraphValidationError]:
    """Validate a patch graph and return a list of errors (empty = valid).

    Warnings (``severity == "warning"``) are appended after all errors.
    """
    errors: list[GraphValidationError] = []
    warnings: list[GraphValidationError] = []

    # 1. Unique ids
    modules: dict[int, Module] = {}
    for module in graph.modules:
        if module.id in modules:
            errors.append(
                GraphValidationError(
                    "duplicate_id", f"Duplicate module id: {module.id}", module_id=module.id
                )
            )
        modules.setdefault(module.id, module)

    # 2. Patch endpoints -- modules exist, sockets exist, types and directions agree
    valid: list[tuple[int, int]] = []
    for patch in graph.patches:
        ends: list[Socket] = []
        for module_id, socket_name in (
            (patch.from_module, patch.from_socket),
            (patch.to_module, patch.to_socket),
        ):
            module = modules.get(module_id)
            if module is None:
                errors.append(
                    GraphValidationError(
                        "dangling_ref",
                        f"Patch {patch.describe()} references unknown module {module_id}",
                        module_id=module_id,
                        socket=socket_name,
                    )
                )
                continue
            socket = module.unit.sockets.get(socket_name)
            if socket is None:
                errors.append(
                    GraphValidationError(
                        "unknown_socket",
                        f"Module {module_id} ({module.kind}) has no socket '{socket_name}'",
                        module_id=module_id,
                        socket=socket_name,
                    )
                )
                continue
            ends.append(socket)
        if len(ends) < 2:
            continue

        a, b = ends
        if not a.type == b.type == patch.type:
            errors.append(
                GraphValidationError(
                    "type_mismatch",
                    f"Patch {patch.describe()} joins {a.type.value} to {b.type.value} "
                    f"as {patch.type.value}",
                    module_id=patch.to_module,
                    socket=patch.to_socket,
                )
            )
            continue
        if a.direction == b.direction:
            errors.append(
                GraphValidationError(
                    "direction",
                    f"Patch {patch.describe()} joins two {a.direction.value} sockets",
                    module_id=patch.to_module,
                    socket=patch.to_socket,
                )
            )
            continue
        if a.is_input:
            valid.append((patch.to_module, patch.from_module))
        else:
            valid.append((patch.from_module, patch.to_module))

    # 3. No two patches between the same endpoints
    for i, patch in enumerate(graph.patches):
        if any(patch.is_isomorphic(earlier) for earlier in graph.patches[:i]):
            errors.append(
                GraphValidationError(
                    "duplicate_patch",
                    f"Duplicate patch {patch.describe()}",
                    module_id=patch.to_module,
                    socket=patch.to_socket,
                )
            )

    # 4. Sinks
    if isinstance(graph, Instrument):
        outputs = graph.modules_of_kind("output")
        if not outputs:
            warnings.append(
                GraphValidationError(
                    "missing_sink",
                    "Instrument has no output module and compiles to nothing",
                    severity="warning",
                )
            )
        elif len(outputs) > 1:
            warnings.append(
                GraphValidationError(
                    "multiple_sinks",
                    f"Instrument has {len(outputs)} output modules; only module "
                    f"{outputs[0].id} is compiled",
                    module_id=outputs[0].id,
                    severity="warning",
                )
            )

    # 5. No cycles -- Kahn's algorithm over producer -> consumer patches
    in_degree: dict[int, int] = {mid: 0 for mid in modules}
    reverse: dict[int, list[int]] = defaultdict(list)
    for producer, consumer in set(valid):
        in_degree[consumer] += 1
        reverse[producer].append(consumer)

    queue = [mid for mid, deg in in_degree.items() if deg == 0]
    visited = 0
    while queue:
        current = queue.pop()
        visited += 1
        for dependent in reverse[current]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if visited < len(modules):
        cycle = sorted(mid for mid, deg in in_degree.items() if deg > 0)
        errors.append(
            GraphValidationError(
                "cycle",
                f"Graph contains a cycle through modules: {', '.join(str(m) for m in cycle)}",
            )
        )

    errors.extend(warnings)
    return errors
