"""Tests for rebuilding instruments from definitions."""

from __future__ import annotations

import logging

import pytest

from patch_graph import (
    DefinitionError,
    Filter,
    Generator,
    Instrument,
    Panning,
    Transpose,
    WavGenerator,
    compile_instrument,
    load_instrument,
    validate_graph,
)

LOADED_ENVELOPE = {
    "gain": 1.0,
    "panning": 0.5,
    "attack": 0.0,
    "decay": 0.0,
    "sustain": 0.0,
    "release": 0.0,
}


def _kinds(instrument: Instrument) -> list[str]:
    return [m.kind for m in instrument.modules]


class TestGenerators:
    def test_single_generator(self) -> None:
        instrument = load_instrument({"sine": {"attack": 0.2, "gain": 0.5}})
        assert _kinds(instrument) == ["input", "output", "sine"]
        sine = instrument.modules[2].unit
        assert isinstance(sine, Generator)
        assert sine.dial("attack") == 0.2
        assert sine.dial("gain") == 0.5
        assert sine.dial("sustain") == 0.0
        assert len(instrument.patches) == 2
        assert validate_graph(instrument) == []

    def test_pitch_follows_input(self) -> None:
        instrument = load_instrument({"square": {}})
        patch = next(p for p in instrument.patches if p.to_socket == "FREQ")
        assert (patch.from_module, patch.to_module) == (0, 2)

    def test_static_pitch_not_patched(self) -> None:
        instrument = load_instrument({"sine": {"pitch": 440}})
        assert [p.to_socket for p in instrument.patches] == ["IN"]
        assert compile_instrument(instrument) == {"sine": {**LOADED_ENVELOPE, "pitch": 440.0}}

    def test_sawtooth_key(self) -> None:
        instrument = load_instrument({"sawtooth": {}})
        assert instrument.modules[2].kind == "saw"
        doc = compile_instrument(instrument)
        assert doc is not None
        assert "sawtooth" in doc

    def test_pulse_generator(self) -> None:
        instrument = load_instrument({"pulse": {"release": 2}})
        unit = instrument.modules[2].unit
        assert isinstance(unit, Generator)
        assert unit.kind == "pulse"
        assert unit.dial("release") == 2.0

    def test_wav(self) -> None:
        instrument = load_instrument({"wav": {"file": "snare.wav", "gain": 1.5}})
        unit = instrument.modules[2].unit
        assert isinstance(unit, WavGenerator)
        assert unit.file == "snare.wav"
        assert unit.base_pitch == 440.0
        assert compile_instrument(instrument) == {
            "wav": {"file": "snare.wav", "gain": 1.5, "pitched": False, "base_pitch": 440.0}
        }

    def test_metadata(self) -> None:
        instrument = load_instrument({"sine": {}, "name": "bell", "index": 7})
        assert instrument.name == "bell"
        assert instrument.bank_index == 7


class TestStructure:
    def test_combined(self) -> None:
        instrument = load_instrument({"combined": [{"sine": {}}, {"square": {}}]})
        assert _kinds(instrument) == ["input", "output", "sine", "square"]
        doc = compile_instrument(instrument)
        assert doc is not None
        assert [list(d) for d in doc["combined"]] == [["sine"], ["square"]]

    def test_filter(self) -> None:
        instrument = load_instrument({"filter": {"lpf": {"cutoff": 800}, "triangle": {}}})
        assert _kinds(instrument) == ["input", "output", "low pass filter", "triangle"]
        lpf = instrument.modules[2].unit
        assert isinstance(lpf, Filter)
        assert lpf.dial("cutoff") == 800.0
        doc = compile_instrument(instrument)
        assert doc is not None
        assert doc["filter"]["lpf"] == {"cutoff": 800.0}
        assert "triangle" in doc["filter"]

    def test_filter_defaults(self) -> None:
        instrument = load_instrument({"filter": {"hpf": {}, "sine": {}}})
        unit = instrument.modules[2].unit
        assert isinstance(unit, Filter)
        assert unit.kind == "high pass filter"
        assert unit.dial("cutoff") == 5000.0

    def test_delay_filter(self) -> None:
        instrument = load_instrument({"filter": {"delay": {"time": 0.25}, "sine": {}}})
        unit = instrument.modules[2].unit
        assert isinstance(unit, Filter)
        assert unit.dial_values() == {"time": 0.25, "factor": 1.0, "feedback": 0.0}

    def test_empty_filter_body(self) -> None:
        instrument = load_instrument({"filter": {"overdrive": {}}})
        assert _kinds(instrument) == ["input", "output", "overdrive"]

    def test_transpose(self) -> None:
        instrument = load_instrument({"transpose": {"semitones": 12, "sine": {}}})
        assert _kinds(instrument) == ["input", "output", "transpose", "sine"]
        transpose = instrument.modules[2].unit
        assert isinstance(transpose, Transpose)
        assert transpose.dial("semitones") == 12.0
        doc = compile_instrument(instrument)
        assert doc is not None
        assert doc["sine"]["auto_pitch"] == {"transpose": {"semitones": 12.0}}

    def test_panning(self) -> None:
        instrument = load_instrument({"panning": {"sine": {}}})
        assert isinstance(instrument.modules[2].unit, Panning)
        doc = compile_instrument(instrument)
        assert doc is not None
        assert doc["sine"]["auto_panning"] == {"panning": {}}

    def test_vocoder_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        definition = {"combined": [{"vocoder": {"source": {}, "vocoder": {}}}, {"sine": {}}]}
        with caplog.at_level(logging.WARNING, logger="patch_graph"):
            instrument = load_instrument(definition)
        assert _kinds(instrument) == ["input", "output", "sine"]
        assert "vocoder" in caplog.text


class TestRoundTrip:
    @pytest.mark.parametrize(
        "definition",
        [
            {"sine": {**LOADED_ENVELOPE, "pitch": 220.0}},
            {
                "filter": {
                    "lpf": {"cutoff": 2000.0},
                    "sine": {**LOADED_ENVELOPE, "pitch": 440.0},
                },
                "name": "pad",
                "index": 2,
            },
            {"square": {**LOADED_ENVELOPE, "auto_pitch": {"transpose": {"semitones": 7.0}}}},
            {
                "triangle": {
                    **LOADED_ENVELOPE,
                    "auto_pitch": {
                        "transpose": {"semitones": 7.0, "transpose": {"semitones": -12.0}}
                    },
                    "auto_panning": {"panning": {}},
                }
            },
            {
                "combined": [
                    {"sine": {**LOADED_ENVELOPE, "pitch": 110.0}},
                    {"filter": {"distortion": {}, "white_noise": LOADED_ENVELOPE}},
                ]
            },
        ],
    )
    def test_compile_of_load_is_identity(self, definition: dict) -> None:
        assert compile_instrument(load_instrument(definition)) == definition


class TestErrors:
    def test_unknown_definition(self) -> None:
        with pytest.raises(DefinitionError, match="banjo"):
            load_instrument({"banjo": {}})

    def test_unknown_nested_definition(self) -> None:
        with pytest.raises(DefinitionError, match="kazoo"):
            load_instrument({"combined": [{"sine": {}}, {"kazoo": {}}]})

    def test_unknown_filter(self) -> None:
        with pytest.raises(DefinitionError, match="wah"):
            load_instrument({"filter": {"wah": {}, "sine": {}}})

    def test_out_of_range_dial(self) -> None:
        with pytest.raises(DefinitionError, match="gain"):
            load_instrument({"sine": {"gain": 9}})

    def test_not_an_object(self) -> None:
        with pytest.raises(DefinitionError):
            load_instrument(["sine"])  # type: ignore[arg-type]

    def test_bad_auto_pitch(self) -> None:
        with pytest.raises(DefinitionError, match="auto_pitch"):
            load_instrument({"sine": {"auto_pitch": {"lfo": {}}}})

    def test_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            load_instrument({})
