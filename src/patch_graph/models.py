from __future__ import annotations

import logging
import warnings
from enum import Enum
from typing import Any, Callable, ClassVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

logger = logging.getLogger(__name__)

# A compiled engine document: nested dicts of scalars, lists and dicts.
Document = dict[str, Any]

# Sequence units compile to functions that wrap a downstream document.
Transform = Callable[[Document], Document]

# A module reference: the Module instance itself or its integer id.
ModuleRef = Union["Module", int]


# ---------------------------------------------------------------------------
# Errors & warnings
# ---------------------------------------------------------------------------


class InvalidConnectionError(ValueError):
    """Raised when a connection names a socket the module does not have."""

    pass


class NodeNotFoundError(ValueError):
    """Raised when a module is not found in the graph."""

    pass


class DefinitionError(ValueError):
    """Raised when a generator or filter definition cannot be loaded."""

    pass


class ConnectionWarning(UserWarning):
    """Base class for rejected connection attempts."""

    pass


class PatchTypeWarning(ConnectionWarning):
    """Warning raised when two sockets of different port types are patched."""

    pass


class PatchDirectionWarning(ConnectionWarning):
    """Warning raised when two inputs (or two outputs) are patched together."""

    pass


# ---------------------------------------------------------------------------
# Ports & dials
# ---------------------------------------------------------------------------


class PortType(str, Enum):
    AUDIO = "audio"
    FREQUENCY = "frequency"
    PANNING = "panning"
    CLOCK = "clock"
    TRIGGER = "trigger"
    INTEGER = "integer"


class Direction(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


class Socket(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    direction: Direction
    type: PortType

    @property
    def is_input(self) -> bool:
        return self.direction is Direction.INPUT


def input_socket(name: str, port_type: PortType) -> Socket:
    return Socket(name=name, direction=Direction.INPUT, type=port_type)


def output_socket(name: str, port_type: PortType) -> Socket:
    return Socket(name=name, direction=Direction.OUTPUT, type=port_type)


class Dial(BaseModel):
    """A named numeric parameter with an inclusive range."""

    model_config = ConfigDict(validate_assignment=True)

    name: str = Field(min_length=1)
    min: float = 0.0
    max: float = 1.0
    value: float = 0.0

    @field_validator("value")
    @classmethod
    def validate_range(cls, value: float, info: ValidationInfo) -> float:
        lo = info.data.get("min")
        hi = info.data.get("max")
        if lo is not None and hi is not None and lo <= hi and not lo <= value <= hi:
            raise ValueError(
                f"Dial '{info.data.get('name')}' value {value} is outside [{lo}, {hi}]"
            )
        return value

    @model_validator(mode="after")
    def validate_bounds(self) -> Dial:
        if self.min > self.max:
            raise ValueError(f"Dial '{self.name}' has min {self.min} > max {self.max}")
        return self


def dial(name: str, lo: float, hi: float, value: float) -> Dial:
    return Dial(name=name, min=lo, max=hi, value=value)


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------


class Unit(BaseModel):
    """Base class of every node kind.

    Subclasses narrow ``kind`` to a ``Literal``, declare their sockets in
    ``SOCKETS`` and their dials in :meth:`dial_layout`, and override
    :meth:`compile`. A unit never refers to other units or modules: everything
    upstream reaches it through the ``connections`` argument of ``compile``.
    """

    kind: str
    dials: dict[str, Dial] = Field(default_factory=dict)

    SOCKETS: ClassVar[dict[str, Socket]] = {}

    def dial_layout(self) -> list[Dial]:
        """Return fresh dials (with defaults) for this unit's kind."""
        return []

    @model_validator(mode="after")
    def fill_dials(self) -> Unit:
        layout = {d.name: d for d in self.dial_layout()}
        unknown = sorted(set(self.dials) - set(layout))
        if unknown:
            raise ValueError(f"Unit '{self.kind}' has no dial(s): {', '.join(unknown)}")
        self.dials = {name: self.dials.get(name, default) for name, default in layout.items()}
        return self

    @property
    def sockets(self) -> dict[str, Socket]:
        return self.SOCKETS

    @property
    def inputs(self) -> list[Socket]:
        return [s for s in self.SOCKETS.values() if s.is_input]

    @property
    def outputs(self) -> list[Socket]:
        return [s for s in self.SOCKETS.values() if not s.is_input]

    def dial(self, name: str) -> float:
        return self.dials[name].value

    def set_dial(self, name: str, value: float) -> None:
        if name not in self.dials:
            raise KeyError(f"Unit '{self.kind}' has no dial '{name}'")
        self.dials[name].value = value

    def configure(self, **values: float) -> Unit:
        """Set several dials at once and return the unit."""
        for name, value in values.items():
            self.set_dial(name, value)
        return self

    def dial_values(self, *names: str) -> dict[str, float]:
        keys = names or tuple(self.dials)
        return {name: self.dials[name].value for name in keys}

    def compile(self, connections: dict[str, list[Any]]) -> Any:
        """Return this unit's contribution given its resolved upstream results.

        ``connections`` maps every input socket name to the results of the
        modules patched into it (empty list when unconnected).
        """
        return None


def combine(documents: list[Any]) -> Any:
    """Collapse the documents arriving on one socket into a single value.

    ``None`` entries (pass-through units) are dropped. No document gives
    ``None``, one is returned as is, several are wrapped in ``combined``.
    """
    present = [d for d in documents if d is not None]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return {"combined": present}


# ---------------------------------------------------------------------------
# Modules & patches
# ---------------------------------------------------------------------------


class Module(BaseModel):
    id: int = Field(ge=0)
    unit: Unit
    x: float = 0.0
    y: float = 0.0

    @property
    def kind(self) -> str:
        return self.unit.kind


class Patch(BaseModel):
    """A cable between two (module id, socket name) endpoints.

    ``from_*`` is the output side and ``to_*`` the input side when the patch
    was created through :meth:`Patchable.connect`.
    """

    from_module: int
    to_module: int
    from_socket: str = Field(min_length=1)
    to_socket: str = Field(min_length=1)
    type: PortType

    def is_isomorphic(self, other: Patch) -> bool:
        """True if both patches join the same unordered pair of endpoints."""
        return (
            self.from_module == other.from_module
            and self.to_module == other.to_module
            and self.from_socket == other.from_socket
            and self.to_socket == other.to_socket
        ) or (
            self.to_module == other.from_module
            and self.from_module == other.to_module
            and self.from_socket == other.to_socket
            and self.to_socket == other.from_socket
        )

    def touches(self, module_id: int, socket: str | None = None) -> bool:
        if socket is None:
            return module_id in (self.from_module, self.to_module)
        return (self.from_module == module_id and self.from_socket == socket) or (
            self.to_module == module_id and self.to_socket == socket
        )

    def other_end(self, module_id: int, socket: str) -> tuple[int, str]:
        if self.from_module == module_id and self.from_socket == socket:
            return self.to_module, self.to_socket
        return self.from_module, self.from_socket

    def describe(self) -> str:
        return f"{self.from_module}.{self.from_socket} -> {self.to_module}.{self.to_socket}"


# ---------------------------------------------------------------------------
# Patchable graph
# ---------------------------------------------------------------------------


class Patchable(BaseModel):
    """An ordered collection of modules plus the patches between them.

    Module ids come from ``next_id`` and are never reused.
    """

    modules: list[Module] = Field(default_factory=list)
    patches: list[Patch] = Field(default_factory=list)
    next_id: int = Field(default=0, ge=0)

    module_type: ClassVar[type[Module]] = Module

    @model_validator(mode="after")
    def sync_next_id(self) -> Patchable:
        if self.modules:
            self.next_id = max(self.next_id, max(m.id for m in self.modules) + 1)
        return self

    # -- modules -----------------------------------------------------------

    def add_module(self, unit: Unit, x: float = 0.0, y: float = 0.0) -> Module:
        module = self.module_type(id=self.next_id, unit=unit, x=x, y=y)
        self.modules.append(module)
        self.next_id += 1
        logger.debug("Added module %d (%s)", module.id, module.kind)
        return module

    def find_module(self, ref: ModuleRef) -> Module | None:
        if isinstance(ref, Module):
            return next((m for m in self.modules if m is ref), None)
        return next((m for m in self.modules if m.id == ref), None)

    def get_module(self, ref: ModuleRef) -> Module:
        module = self.find_module(ref)
        if module is None:
            label = ref.id if isinstance(ref, Module) else ref
            raise NodeNotFoundError(f"Module {label} is not part of this graph")
        return module

    def remove_module(self, ref: ModuleRef) -> Module:
        """Remove a module and every patch attached to it."""
        module = self.get_module(ref)
        self.modules = [m for m in self.modules if m is not module]
        self.patches = [p for p in self.patches if not p.touches(module.id)]
        logger.debug("Removed module %d (%s)", module.id, module.kind)
        return module

    def modules_of_kind(self, kind: str) -> list[Module]:
        return [m for m in self.modules if m.kind == kind]

    # -- patches -----------------------------------------------------------

    def patches_at(self, module_id: int, socket: str) -> list[Patch]:
        return [p for p in self.patches if p.touches(module_id, socket)]

    def connect(
        self,
        from_module: ModuleRef,
        to_module: ModuleRef,
        from_socket: str,
        to_socket: str,
    ) -> Patch | None:
        """Toggle a patch between two sockets.

        Returns the new patch, or ``None`` when an existing patch between the
        same endpoints was removed or the request was ignored. Type or
        direction mismatches emit a :class:`ConnectionWarning` and leave the
        graph unchanged.
        """
        src = self.find_module(from_module)
        dst = self.find_module(to_module)
        if src is None or dst is None:
            logger.debug("Ignoring patch request: module not in graph")
            return None
        if src.id == dst.id and from_socket == to_socket:
            return None

        a = _socket_of(src, from_socket)
        b = _socket_of(dst, to_socket)
        if a.type != b.type:
            warnings.warn(
                f"Cannot patch {a.type.value} socket '{from_socket}' of module {src.id} "
                f"to {b.type.value} socket '{to_socket}' of module {dst.id}",
                PatchTypeWarning,
                stacklevel=2,
            )
            return None
        if a.direction == b.direction:
            warnings.warn(
                f"Cannot patch {a.direction.value} socket '{from_socket}' of module {src.id} "
                f"to {b.direction.value} socket '{to_socket}' of module {dst.id}",
                PatchDirectionWarning,
                stacklevel=2,
            )
            return None

        if a.is_input:
            src, dst = dst, src
            from_socket, to_socket = to_socket, from_socket
        candidate = Patch(
            from_module=src.id,
            to_module=dst.id,
            from_socket=from_socket,
            to_socket=to_socket,
            type=a.type,
        )

        for i, existing in enumerate(self.patches):
            if existing.is_isomorphic(candidate):
                del self.patches[i]
                logger.debug("Disconnected %s", existing.describe())
                return None

        self.patches.append(candidate)
        logger.debug("Connected %s (%s)", candidate.describe(), candidate.type.value)
        return candidate


def _socket_of(module: Module, name: str) -> Socket:
    socket = module.unit.sockets.get(name)
    if socket is None:
        available = ", ".join(module.unit.sockets) or "none"
        raise InvalidConnectionError(
            f"Module {module.id} ({module.kind}) has no socket '{name}' (available: {available})"
        )
    return socket
