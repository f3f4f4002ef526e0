"""Compile patch graphs to engine documents."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from patch_graph._deps import discover, input_feeds
from patch_graph.graphs import Instrument, Sequence
from patch_graph.models import Document, Module, Patchable
from patch_graph.sequence_units import PlayNote
from patch_graph.toposort import toposort

logger = logging.getLogger(__name__)


def compile_instrument(instrument: Instrument) -> Document | None:
    """Compile an instrument to its nested document.

    Only modules that can reach the output module contribute. Returns None
    when the instrument has no output module or nothing reaches it. With
    several output modules the first one in module order is used.
    Raises ValueError if the modules feeding the output contain a cycle or
    a patch references a missing module or socket.
    """
    snapshot = instrument.model_copy(deep=True)
    outputs = snapshot.modules_of_kind("output")
    if not outputs:
        logger.debug("Instrument %r has no output module", instrument.title)
        return None
    if len(outputs) > 1:
        logger.warning(
            "Instrument %r has %d output modules; compiling module %d",
            instrument.title,
            len(outputs),
            outputs[0].id,
        )
    sink = outputs[0]

    discovered = discover(snapshot, [sink.id])
    results = _run(snapshot, discovered)
    document = results[sink.id]
    if document is None:
        return None

    document = dict(document)
    if snapshot.name is not None:
        document["name"] = snapshot.name
    if snapshot.bank_index is not None:
        document["index"] = snapshot.bank_index
    return document


def compile_sequence(sequence: Sequence) -> list[Document]:
    """Compile a sequence to a flat list of play_note documents.

    Every play_note module is a sink. Each one emits one document per
    trigger chain reaching its TRIG socket, and the sinks' lists are
    concatenated in emission order. A play_note without its own channel
    takes the sequence's.
    """
    snapshot = sequence.model_copy(deep=True)
    sinks = snapshot.modules_of_kind("play_note")
    if not sinks:
        logger.debug("Sequence %r has no play_note modules", sequence.title)
        return []
    for module in sinks:
        if isinstance(module.unit, PlayNote) and module.unit.channel is None:
            module.unit.channel = snapshot.channel

    discovered = discover(snapshot, [m.id for m in sinks])
    documents: list[Document] = []
    for module, result in _emit(snapshot, discovered):
        if isinstance(module.unit, PlayNote):
            documents.extend(result)
    return documents


def compile_graph(graph: Patchable) -> Document | list[Document] | None:
    """Compile an instrument or a sequence."""
    if isinstance(graph, Instrument):
        return compile_instrument(graph)
    if isinstance(graph, Sequence):
        return compile_sequence(graph)
    raise TypeError(f"Cannot compile {type(graph).__name__}")


def compile_graph_to_file(
    graph: Instrument | Sequence, output_dir: str | Path, indent: int | None = 2
) -> Path:
    """Compile a graph and write {title}.json to output_dir.

    Creates the output directory if it doesn't exist.
    Returns the path to the written file.
    """
    document = compile_graph(graph)
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / f"{graph.title}.json"
    path.write_text(json.dumps(document, indent=indent) + "\n")
    return path


# ---------------------------------------------------------------------------
# Emission
# ---------------------------------------------------------------------------


def _run(graph: Patchable, discovered: list[int]) -> dict[int, Any]:
    return {module.id: result for module, result in _emit(graph, discovered)}


def _emit(graph: Patchable, discovered: list[int]) -> list[tuple[Module, Any]]:
    """Compile every discovered module producers-first.

    Results arriving on one socket are ordered by their producer's
    discovery position.
    """
    rank = {mid: i for i, mid in enumerate(discovered)}
    results: dict[int, Any] = {}
    emitted: list[tuple[Module, Any]] = []
    for module in toposort(graph, discovered):
        connections: dict[str, list[Any]] = {s.name: [] for s in module.unit.inputs}
        feeds = sorted(input_feeds(graph, module), key=lambda f: rank[f.source])
        for feed in feeds:
            connections[feed.socket].append(results[feed.source])
        result = module.unit.compile(connections)
        results[module.id] = result
        emitted.append((module, result))
        logger.debug("Compiled module %d (%s)", module.id, module.kind)
    return emitted
