"""Typed patch graphs for synthesizer instruments and note sequences."""

from __future__ import annotations

from patch_graph.compile import (
    compile_graph,
    compile_graph_to_file,
    compile_instrument,
    compile_sequence,
)
from patch_graph.config import Settings, get_settings
from patch_graph.graphs import (
    AnyGraph,
    Instrument,
    InstrumentModule,
    Sequence,
    SequenceModule,
    load_graph,
    new_instrument,
    new_sequence,
    parse_graph,
)
from patch_graph.instrument_units import (
    ChannelInput,
    ChannelOutput,
    Filter,
    Generator,
    InstrumentUnit,
    Panning,
    Transpose,
    WavGenerator,
)
from patch_graph.loader import load_instrument
from patch_graph.log import configure_logging
from patch_graph.models import (
    ConnectionWarning,
    DefinitionError,
    Dial,
    Direction,
    Document,
    InvalidConnectionError,
    Module,
    NodeNotFoundError,
    Patch,
    Patchable,
    PatchDirectionWarning,
    PatchTypeWarning,
    PortType,
    Socket,
    Transform,
    Unit,
)
from patch_graph.sequence_units import PlayNote, Pulse, Range, SequenceInput, SequenceUnit
from patch_graph.toposort import toposort
from patch_graph.validate import GraphValidationError, validate_graph
from patch_graph.visualize import graph_to_dot, graph_to_dot_file

__all__ = [
    "AnyGraph",
    "ChannelInput",
    "ChannelOutput",
    "ConnectionWarning",
    "DefinitionError",
    "Dial",
    "Direction",
    "Document",
    "Filter",
    "Generator",
    "GraphValidationError",
    "Instrument",
    "InstrumentModule",
    "InstrumentUnit",
    "InvalidConnectionError",
    "Module",
    "NodeNotFoundError",
    "Panning",
    "Patch",
    "PatchDirectionWarning",
    "PatchTypeWarning",
    "Patchable",
    "PlayNote",
    "PortType",
    "Pulse",
    "Range",
    "Sequence",
    "SequenceInput",
    "SequenceModule",
    "SequenceUnit",
    "Settings",
    "Socket",
    "Transform",
    "Transpose",
    "Unit",
    "WavGenerator",
    "compile_graph",
    "compile_graph_to_file",
    "compile_instrument",
    "compile_sequence",
    "configure_logging",
    "get_settings",
    "graph_to_dot",
    "graph_to_dot_file",
    "load_graph",
    "load_instrument",
    "new_instrument",
    "new_sequence",
    "parse_graph",
    "toposort",
    "validate_graph",
]
