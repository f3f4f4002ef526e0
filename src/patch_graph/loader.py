"""Rebuild instrument patch graphs from compiled instrument definitions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from patch_graph.graphs import Instrument, new_instrument
from patch_graph.instrument_units import Filter, Generator, Panning, Transpose, WavGenerator
from patch_graph.models import DefinitionError, Direction, Module, PortType, Unit

logger = logging.getLogger(__name__)

# Definition key -> generator kind, in lookup priority order.
GENERATOR_KEYS: dict[str, str] = {
    "triangle": "triangle",
    "sine": "sine",
    "square": "square",
    "sawtooth": "saw",
    "white_noise": "white_noise",
}

# Definition key -> filter kind, in lookup priority order.
FILTER_KEYS: dict[str, str] = {
    "lpf": "low pass filter",
    "hpf": "high pass filter",
    "delay": "delay",
    "distortion": "distortion",
    "overdrive": "overdrive",
    "flanger": "flanger",
    "average": "average",
}

_SOURCE_KEYS = (*GENERATOR_KEYS, "wav", "pulse")


def load_instrument(definition: Mapping[str, Any]) -> Instrument:
    """Build an editable instrument from a compiled instrument definition.

    The graph is assembled with :meth:`Instrument.connect` only, so every
    patch it holds is type-checked. Top-level ``name`` and ``index`` set the
    instrument's name and bank index.
    Raises DefinitionError if a definition (or a nested one) is not
    recognised.
    """
    if not isinstance(definition, Mapping):
        raise DefinitionError(f"Instrument definition must be an object, got {definition!r}")
    instrument = new_instrument(name=definition.get("name"), bank_index=definition.get("index"))
    source, sink = instrument.modules
    _load(instrument, definition, pitch=source, pan=None, sink=sink, required=True)
    logger.debug(
        "Loaded instrument %r: %d modules, %d patches",
        instrument.title,
        len(instrument.modules),
        len(instrument.patches),
    )
    return instrument


def _load(
    instrument: Instrument,
    definition: Any,
    *,
    pitch: Module,
    pan: Module | None,
    sink: Module,
    required: bool,
) -> None:
    if not isinstance(definition, Mapping):
        raise DefinitionError(f"Expected a definition object, got {definition!r}")

    if "combined" in definition:
        for item in definition["combined"]:
            _load(instrument, item, pitch=pitch, pan=pan, sink=sink, required=True)
    elif "panning" in definition:
        panner = instrument.add_module(Panning())
        _connect(instrument, pitch, "FREQ", panner, "FREQ")
        _load(instrument, definition["panning"], pitch=pitch, pan=panner, sink=sink, required=True)
    elif "transpose" in definition:
        body = definition["transpose"]
        transpose = _add_transpose(instrument, body, pitch)
        _load(instrument, body, pitch=transpose, pan=pan, sink=sink, required=True)
    elif any(key in definition for key in _SOURCE_KEYS):
        _load_source(instrument, definition, pitch=pitch, pan=pan, sink=sink)
    elif "vocoder" in definition:
        logger.warning("Skipping vocoder definition: vocoders cannot be edited as patch graphs")
    elif "filter" in definition:
        body = definition["filter"]
        effect = instrument.add_module(_filter(body))
        _connect(instrument, effect, "OUT", sink, "IN")
        _load(instrument, body, pitch=pitch, pan=pan, sink=effect, required=False)
    elif required:
        raise DefinitionError(f"Unknown instrument definition: {dict(definition)!r}")


def _load_source(
    instrument: Instrument,
    definition: Mapping[str, Any],
    *,
    pitch: Module,
    pan: Module | None,
    sink: Module,
) -> None:
    unit, params = _generator(definition)
    module = instrument.add_module(unit)
    _connect(instrument, module, "OUT", sink, "IN")

    if "pitch" in params and isinstance(unit, Generator):
        # A fixed pitch stays on the dial and the generator ignores the note
        _set_dials(unit, definition, pitch=params["pitch"])
    elif "auto_pitch" in params:
        chain = _load_pitch_chain(instrument, params["auto_pitch"], pitch)
        _connect(instrument, chain, "FREQ", module, _pitch_input(module))
    else:
        _connect(instrument, pitch, "FREQ", module, _pitch_input(module))

    if pan is not None:
        _connect(instrument, pan, "PAN", module, "PAN")
    elif "auto_panning" in params:
        _load_panner(instrument, params["auto_panning"], pitch, module)


def _load_panner(instrument: Instrument, definition: Any, pitch: Module, target: Module) -> None:
    """Rebuild the panning module of an ``auto_panning`` document."""
    body = definition.get("panning") if isinstance(definition, Mapping) else None
    if not isinstance(body, Mapping):
        raise DefinitionError(f"Unsupported auto_panning definition: {definition!r}")
    if "transpose" in body:
        pitch = _load_pitch_chain(instrument, body, pitch)
    panner = instrument.add_module(Panning())
    _connect(instrument, pitch, "FREQ", panner, "FREQ")
    _connect(instrument, panner, "PAN", target, "PAN")


def _load_pitch_chain(instrument: Instrument, definition: Any, pitch: Module) -> Module:
    """Rebuild the transpose chain of an ``auto_pitch`` document."""
    if not isinstance(definition, Mapping) or "transpose" not in definition:
        raise DefinitionError(f"Unsupported auto_pitch definition: {definition!r}")
    body = definition["transpose"]
    if isinstance(body, Mapping) and "transpose" in body:
        pitch = _load_pitch_chain(instrument, body, pitch)
    return _add_transpose(instrument, body, pitch)


def _add_transpose(instrument: Instrument, body: Any, pitch: Module) -> Module:
    if not isinstance(body, Mapping):
        raise DefinitionError(f"Expected a transpose object, got {body!r}")
    unit = Transpose()
    _set_dials(unit, body, semitones=body.get("semitones") or 0.0)
    transpose = instrument.add_module(unit)
    _connect(instrument, pitch, "FREQ", transpose, "FREQ IN")
    return transpose


# ---------------------------------------------------------------------------
# Unit factories
# ---------------------------------------------------------------------------


def _generator(definition: Mapping[str, Any]) -> tuple[Unit, Mapping[str, Any]]:
    key = next((k for k in GENERATOR_KEYS if k in definition), None)
    unit: Unit
    if key is not None:
        params = _params(definition, key)
        unit = Generator(kind=GENERATOR_KEYS[key])
    elif "wav" in definition:
        params = _params(definition, "wav")
        try:
            unit = WavGenerator(
                file=params.get("file") or "",
                pitched=params.get("pitched") or False,
                base_pitch=params.get("base_pitch") or 440.0,
            )
        except ValueError as e:
            raise DefinitionError(f"Invalid definition {dict(definition)!r}: {e}") from e
    else:
        params = _params(definition, "pulse")
        unit = Generator(kind="pulse")

    _set_dials(
        unit,
        definition,
        attack=params.get("attack") or 0.0,
        decay=params.get("decay") or 0.0,
        sustain=params.get("sustain") or 0.0,
        release=params.get("release") or 0.0,
        gain=params.get("gain") or 1.0,
    )
    return unit, params


def _filter(definition: Any) -> Filter:
    if not isinstance(definition, Mapping):
        raise DefinitionError(f"Expected a filter object, got {definition!r}")
    for key, kind in FILTER_KEYS.items():
        if key not in definition:
            continue
        unit = Filter(kind=kind)
        params = _params(definition, key)
        if key in ("lpf", "hpf"):
            _set_dials(unit, definition, cutoff=params.get("cutoff") or 5000.0)
        elif key == "delay":
            values = {name: params[name] for name in ("time", "factor", "feedback") if name in params}
            _set_dials(unit, definition, **values)
        return unit
    raise DefinitionError(f"Unknown filter definition: {dict(definition)!r}")


def _params(definition: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    params = definition[key]
    if params is None:
        return {}
    if not isinstance(params, Mapping):
        raise DefinitionError(f"'{key}' parameters must be an object, got {params!r}")
    return params


def _set_dials(unit: Unit, definition: Mapping[str, Any], **values: Any) -> None:
    try:
        unit.configure(**values)
    except ValueError as e:
        raise DefinitionError(f"Invalid definition {dict(definition)!r}: {e}") from e


# ---------------------------------------------------------------------------
# Patching
# ---------------------------------------------------------------------------


def _pitch_input(module: Module) -> str:
    """Name of the module's first frequency input socket."""
    for name, socket in module.unit.sockets.items():
        if socket.type is PortType.FREQUENCY and socket.direction is Direction.INPUT:
            return name
    raise DefinitionError(f"Module {module.id} ({module.kind}) has no frequency input")


def _connect(
    instrument: Instrument, producer: Module, output: str, consumer: Module, inlet: str
) -> None:
    if instrument.connect(producer, consumer, output, inlet) is None:
        raise DefinitionError(
            f"Could not patch {producer.kind}.{output} into {consumer.kind}.{inlet}"
        )
