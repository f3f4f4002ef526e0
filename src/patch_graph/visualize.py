"""Graphviz DOT visualization for patch graphs."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from patch_graph.graphs import Instrument, Sequence
from patch_graph.instrument_units import (
    ChannelInput,
    ChannelOutput,
    Filter,
    Generator,
    Panning,
    Transpose,
    WavGenerator,
)
from patch_graph.models import Module, PortType
from patch_graph.sequence_units import PlayNote, Pulse, Range, SequenceInput

_PORT_COLORS: dict[PortType, str] = {
    PortType.AUDIO: "#d9534f",
    PortType.FREQUENCY: "#337ab7",
    PortType.PANNING: "#f0ad4e",
    PortType.CLOCK: "#5cb85c",
    PortType.TRIGGER: "#9b59b6",
    PortType.INTEGER: "#6c757d",
}


def _module_attrs(module: Module) -> tuple[str, str, str]:
    """Return (shape, fillcolor, label) for a module."""
    unit = module.unit
    head = f"{module.id}\\n{unit.kind}"
    if isinstance(unit, (ChannelInput, SequenceInput)):
        return "box", "#d4edda", head
    if isinstance(unit, (ChannelOutput, PlayNote)):
        return "box", "#f8d7da", head
    if isinstance(unit, Generator):
        return "box", "#e2d5f1", f"{head}\\npitch={unit.dial('pitch')}"
    if isinstance(unit, WavGenerator):
        return "box3d", "#e2d5f1", f"{head}\\n{unit.file or '?'}"
    if isinstance(unit, Filter):
        return "box", "#fde0c8", head
    if isinstance(unit, Transpose):
        return "box", "#fff3cd", f"{head}\\n{unit.dial('semitones'):+g} st"
    if isinstance(unit, Panning):
        return "box", "#fff3cd", head
    if isinstance(unit, Pulse):
        return "diamond", "#fff3cd", f"{head}\\nevery {unit.dial('every'):g}"
    if isinstance(unit, Range):
        return "ellipse", "#cce5ff", head
    return "box", "#ffffff", head


def graph_to_dot(graph: Instrument | Sequence) -> str:
    """Convert a patch graph to a Graphviz DOT string."""
    lines: list[str] = []
    w = lines.append

    w(f'digraph "{graph.title}" {{')
    w("    rankdir=LR;")
    w('    node [fontname="Helvetica" fontsize=10];')
    w('    edge [fontname="Helvetica" fontsize=8];')
    w("")

    for module in graph.modules:
        shape, color, label = _module_attrs(module)
        w(f'    "m{module.id}" [shape={shape} style=filled fillcolor="{color}" label="{label}"];')

    w("")

    # Edges run from the output socket's module to the input socket's module
    for patch in graph.patches:
        color = _PORT_COLORS.get(patch.type, "#000000")
        w(
            f'    "m{patch.from_module}" -> "m{patch.to_module}"'
            f' [color="{color}" label="{patch.from_socket} -> {patch.to_socket}"];'
        )

    w("}")
    return "\n".join(lines) + "\n"


def graph_to_dot_file(graph: Instrument | Sequence, output_dir: str | Path) -> Path:
    """Write a DOT file for the graph to output_dir/{title}.dot.

    If the ``dot`` binary is on PATH, also renders a PDF to
    ``output_dir/{title}.pdf``.

    Returns the path to the written ``.dot`` file.
    """
    dot_src = graph_to_dot(graph)
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    dot_path = out / f"{graph.title}.dot"
    dot_path.write_text(dot_src)

    dot_bin = shutil.which("dot")
    if dot_bin is not None:
        pdf_path = out / f"{graph.title}.pdf"
        subprocess.run(
            [dot_bin, "-Tpdf", str(dot_path), "-o", str(pdf_path)],
            check=True,
        )

    return dot_path
