from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import Field, TypeAdapter

from patch_graph.config import get_settings
from patch_graph.instrument_units import ChannelInput, ChannelOutput, InstrumentUnit
from patch_graph.models import Document, Module, Patchable
from patch_graph.sequence_units import SequenceInput, SequenceUnit


class InstrumentModule(Module):
    unit: InstrumentUnit


class SequenceModule(Module):
    unit: SequenceUnit


class Instrument(Patchable):
    """A patch graph that compiles to one nested instrument document."""

    kind: Literal["instrument"] = "instrument"
    name: str | None = None
    bank_index: int | None = Field(default=None, ge=0)
    modules: list[InstrumentModule] = Field(default_factory=list)

    module_type: ClassVar[type[Module]] = InstrumentModule

    @property
    def title(self) -> str:
        return self.name or "instrument"

    def compile(self) -> Document | None:
        from patch_graph.compile import compile_instrument

        return compile_instrument(self)


class Sequence(Patchable):
    """A patch graph that compiles to a flat list of note events."""

    kind: Literal["sequence"] = "sequence"
    channel: int = Field(default=1, ge=0)
    modules: list[SequenceModule] = Field(default_factory=list)

    module_type: ClassVar[type[Module]] = SequenceModule

    @property
    def title(self) -> str:
        return f"sequence_{self.channel}"

    def compile(self) -> list[Document]:
        from patch_graph.compile import compile_sequence

        return compile_sequence(self)


AnyGraph = Annotated[Union[Instrument, Sequence], Field(discriminator="kind")]

_graph_adapter: TypeAdapter[Instrument | Sequence] = TypeAdapter(AnyGraph)


def new_instrument(name: str | None = None, bank_index: int | None = None) -> Instrument:
    """Create an instrument holding just its input and output modules."""
    instrument = Instrument(name=name, bank_index=bank_index)
    instrument.add_module(ChannelInput(), x=10, y=40)
    instrument.add_module(ChannelOutput(), x=700, y=40)
    return instrument


def new_sequence(channel: int | None = None) -> Sequence:
    """Create a sequence holding just its clock input."""
    if channel is None:
        channel = get_settings().default_channel
    sequence = Sequence(channel=channel)
    sequence.add_module(SequenceInput(), x=30, y=50)
    return sequence


def parse_graph(data: Any) -> Instrument | Sequence:
    """Validate a serialized graph, choosing the class from its ``kind``."""
    return _graph_adapter.validate_python(data)


def load_graph(path: str | Path) -> Instrument | Sequence:
    return parse_graph(json.loads(Path(path).read_text()))
