from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import Field

from patch_graph.models import (
    Dial,
    Document,
    PortType,
    Socket,
    Unit,
    combine,
    dial,
    input_socket,
    output_socket,
)

GENERATOR_KINDS = ("sine", "triangle", "square", "saw", "white_noise", "pulse")

ENVELOPE_DIALS = ("gain", "panning", "attack", "decay", "sustain", "release")


def _generator_dials() -> list[Dial]:
    return [
        dial("pitch", 0.0, 22000.0, 0.0),
        dial("gain", 0.0, 4.0, 1.0),
        dial("panning", 0.0, 1.0, 0.5),
        dial("attack", 0.0, 10.0, 0.1),
        dial("decay", 0.0, 10.0, 0.1),
        dial("sustain", 0.0, 1.0, 0.8),
        dial("release", 0.0, 10.0, 0.1),
    ]


_GENERATOR_SOCKETS = {
    "FREQ": input_socket("FREQ", PortType.FREQUENCY),
    "PAN": input_socket("PAN", PortType.PANNING),
    "OUT": output_socket("OUT", PortType.AUDIO),
}


def _last(documents: list[Any]) -> Any:
    present = [d for d in documents if d is not None]
    return present[-1] if present else None


# ---------------------------------------------------------------------------
# Channel boundary
# ---------------------------------------------------------------------------


class ChannelInput(Unit):
    """Source of the played note's pitch. Compiles to nothing."""

    kind: Literal["input"] = "input"

    SOCKETS: ClassVar[dict[str, Socket]] = {
        "FREQ": output_socket("FREQ", PortType.FREQUENCY),
    }


class ChannelOutput(Unit):
    """The instrument's sink: whatever reaches IN is the instrument."""

    kind: Literal["output"] = "output"

    SOCKETS: ClassVar[dict[str, Socket]] = {
        "IN": input_socket("IN", PortType.AUDIO),
    }

    def compile(self, connections: dict[str, list[Any]]) -> Any:
        return combine(connections.get("IN", []))


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------


class Generator(Unit):
    """An oscillator or noise source with an ADSR envelope."""

    kind: Literal["sine", "triangle", "square", "saw", "white_noise", "pulse"]

    SOCKETS: ClassVar[dict[str, Socket]] = _GENERATOR_SOCKETS

    def dial_layout(self) -> list[Dial]:
        return _generator_dials()

    @property
    def document_key(self) -> str:
        return "sawtooth" if self.kind == "saw" else self.kind

    def compile(self, connections: dict[str, list[Any]]) -> Document:
        params: Document = self.dial_values(*ENVELOPE_DIALS)
        pitch = connections.get("FREQ", [])
        if pitch:
            auto_pitch = _last(pitch)
            if auto_pitch is not None:
                params["auto_pitch"] = auto_pitch
        else:
            params["pitch"] = self.dial("pitch")
        auto_panning = _last(connections.get("PAN", []))
        if auto_panning is not None:
            params["auto_panning"] = auto_panning
        return {self.document_key: params}


class WavGenerator(Unit):
    """Sample playback from a WAV file."""

    kind: Literal["wav"] = "wav"
    file: str = ""
    pitched: bool = False
    base_pitch: float = Field(default=440.0, gt=0)

    SOCKETS: ClassVar[dict[str, Socket]] = _GENERATOR_SOCKETS

    def dial_layout(self) -> list[Dial]:
        return _generator_dials()

    def compile(self, connections: dict[str, list[Any]]) -> Document:
        return {
            "wav": {
                "file": self.file,
                "gain": self.dial("gain"),
                "pitched": self.pitched,
                "base_pitch": self.base_pitch,
            }
        }


# ---------------------------------------------------------------------------
# Effects & pitch/pan processors
# ---------------------------------------------------------------------------

FILTER_KINDS = (
    "low pass filter",
    "high pass filter",
    "delay",
    "distortion",
    "overdrive",
    "flanger",
    "average",
)

# Filter kinds whose engine key differs from the unit kind.
FILTER_KEYS = {"low pass filter": "lpf", "high pass filter": "hpf"}


class Filter(Unit):
    """An audio effect wrapping everything patched into IN."""

    kind: Literal[
        "low pass filter",
        "high pass filter",
        "delay",
        "distortion",
        "overdrive",
        "flanger",
        "average",
    ]

    SOCKETS: ClassVar[dict[str, Socket]] = {
        "IN": input_socket("IN", PortType.AUDIO),
        "OUT": output_socket("OUT", PortType.AUDIO),
    }

    def dial_layout(self) -> list[Dial]:
        if self.kind in FILTER_KEYS:
            return [dial("cutoff", 1.0, 22000.0, 5000.0)]
        if self.kind == "delay":
            return [
                dial("time", 0.00001, 4.0, 1.0),
                dial("factor", 0.0, 2.0, 1.0),
                dial("feedback", 0.0, 2.0, 0.0),
            ]
        return []

    @property
    def document_key(self) -> str:
        return FILTER_KEYS.get(self.kind, self.kind)

    def compile(self, connections: dict[str, list[Any]]) -> Document:
        body: Document = {self.document_key: self.dial_values()}
        upstream = combine(connections.get("IN", []))
        if upstream is not None:
            body.update(upstream)
        return {"filter": body}


class Transpose(Unit):
    """Shift an incoming pitch by a number of semitones."""

    kind: Literal["transpose"] = "transpose"

    SOCKETS: ClassVar[dict[str, Socket]] = {
        "FREQ IN": input_socket("FREQ IN", PortType.FREQUENCY),
        "FREQ": output_socket("FREQ", PortType.FREQUENCY),
    }

    def dial_layout(self) -> list[Dial]:
        return [dial("semitones", -24.0, 24.0, 0.0)]

    def compile(self, connections: dict[str, list[Any]]) -> Document:
        body: Document = {"semitones": self.dial("semitones")}
        upstream = combine(connections.get("FREQ IN", []))
        if upstream is not None:
            body.update(upstream)
        return {"transpose": body}


class Panning(Unit):
    """Derive a panning signal from pitch."""

    kind: Literal["panning"] = "panning"

    SOCKETS: ClassVar[dict[str, Socket]] = {
        "FREQ": input_socket("FREQ", PortType.FREQUENCY),
        "PAN": output_socket("PAN", PortType.PANNING),
    }

    def compile(self, connections: dict[str, list[Any]]) -> Document:
        body: Document = {}
        upstream = combine(connections.get("FREQ", []))
        if upstream is not None:
            body.update(upstream)
        return {"panning": body}


InstrumentUnit = Annotated[
    Union[ChannelInput, ChannelOutput, Generator, WavGenerator, Filter, Transpose, Panning],
    Field(discriminator="kind"),
]
