from __future__ import annotations

import copy
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import Field

from patch_graph.models import (
    Dial,
    Document,
    PortType,
    Socket,
    Transform,
    Unit,
    dial,
    input_socket,
    output_socket,
)


class SequenceInput(Unit):
    """The sequence clock. Compiles to nothing."""

    kind: Literal["input"] = "input"

    SOCKETS: ClassVar[dict[str, Socket]] = {
        "CLOCK": output_socket("CLOCK", PortType.CLOCK),
    }


class Pulse(Unit):
    """Fire every ``every`` beats of the incoming clock."""

    kind: Literal["pulse"] = "pulse"

    SOCKETS: ClassVar[dict[str, Socket]] = {
        "CLOCK": input_socket("CLOCK", PortType.CLOCK),
        "TRIG": output_socket("TRIG", PortType.TRIGGER),
    }

    def dial_layout(self) -> list[Dial]:
        return [dial("every", 0.0, 10.0, 1.0)]

    def compile(self, connections: dict[str, list[Any]]) -> Transform:
        every = self.dial("every")
        outer = [t for t in connections.get("CLOCK", []) if callable(t)]

        def transform(document: Document) -> Document:
            wrapped: Document = {"repeat": {"every": every, **document}}
            for wrap in outer:
                wrapped = wrap(wrapped)
            return wrapped

        return transform


class Range(Unit):
    """A stepped integer source (``range``, ``sweep`` or ``fade_in``)."""

    kind: Literal["range", "sweep", "fade_in"] = "range"

    SOCKETS: ClassVar[dict[str, Socket]] = {
        "OUT": output_socket("OUT", PortType.INTEGER),
    }

    def dial_layout(self) -> list[Dial]:
        return [
            dial("from", 0.0, 127.0, 0.0),
            dial("to", 0.0, 127.0, 127.0),
            dial("step", 0.0, 128.0, 1.0),
        ]

    def compile(self, connections: dict[str, list[Any]]) -> Document:
        return {self.kind: self.dial_values("from", "to", "step")}


class PlayNote(Unit):
    """The sequence sink: one note event per trigger reaching TRIG.

    ``channel`` overrides the owning sequence's channel when set.
    """

    kind: Literal["play_note"] = "play_note"
    channel: int | None = Field(default=None, ge=0)

    SOCKETS: ClassVar[dict[str, Socket]] = {
        "TRIG": input_socket("TRIG", PortType.TRIGGER),
        "NOTE": input_socket("NOTE", PortType.INTEGER),
        "VEL": input_socket("VEL", PortType.INTEGER),
    }

    def dial_layout(self) -> list[Dial]:
        return [
            dial("note", 0.0, 128.0, 1.0),
            dial("velocity", 0.0, 10.0, 1.0),
            dial("duration", 0.0, 10.0, 1.0),
        ]

    def compile(self, connections: dict[str, list[Any]]) -> list[Document]:
        note: Document = {"duration": self.dial("duration"), "channel": self.channel}
        for socket, name in (("NOTE", "note"), ("VEL", "velocity")):
            upstream = [d for d in connections.get(socket, []) if d is not None]
            if upstream:
                note[f"auto_{name}"] = upstream[0]
            else:
                note[name] = self.dial(name)
        base: Document = {"play_note": note}
        return [
            trigger(copy.deepcopy(base))
            for trigger in connections.get("TRIG", [])
            if callable(trigger)
        ]


SequenceUnit = Annotated[
    Union[SequenceInput, Pulse, Range, PlayNote],
    Field(discriminator="kind"),
]
