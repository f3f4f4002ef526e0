from __future__ import annotations

import pytest

from patch_graph import (
    Filter,
    Generator,
    Instrument,
    PlayNote,
    Pulse,
    Range,
    Sequence,
    get_settings,
    new_instrument,
    new_sequence,
)


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Settings are cached per process; tests that set env vars need a fresh read."""
    get_settings.cache_clear()


@pytest.fixture
def sine_instrument() -> Instrument:
    """input -> sine.FREQ, sine.OUT -> output.IN."""
    instrument = new_instrument(name="lead", bank_index=3)
    source, sink = instrument.modules
    sine = instrument.add_module(Generator(kind="sine"))
    instrument.connect(source, sine, "FREQ", "FREQ")
    instrument.connect(sine, sink, "OUT", "IN")
    return instrument


@pytest.fixture
def filtered_instrument() -> Instrument:
    """Static-pitch sine through a 2 kHz low pass filter."""
    instrument = new_instrument()
    _, sink = instrument.modules
    sine = instrument.add_module(Generator(kind="sine").configure(pitch=440))
    lpf = instrument.add_module(Filter(kind="low pass filter").configure(cutoff=2000))
    instrument.connect(sine, lpf, "OUT", "IN")
    instrument.connect(lpf, sink, "OUT", "IN")
    return instrument


@pytest.fixture
def pulse_sequence() -> Sequence:
    """clock -> pulse(every=2) -> play_note."""
    sequence = new_sequence(channel=2)
    (clock,) = sequence.modules
    pulse = sequence.add_module(Pulse().configure(every=2))
    note = sequence.add_module(PlayNote())
    sequence.connect(clock, pulse, "CLOCK", "CLOCK")
    sequence.connect(pulse, note, "TRIG", "TRIG")
    return sequence


@pytest.fixture
def ranged_sequence() -> Sequence:
    """Two pulses triggering one note whose number comes from a sweep."""
    sequence = new_sequence(channel=9)
    (clock,) = sequence.modules
    bar = sequence.add_module(Pulse().configure(every=4))
    beat = sequence.add_module(Pulse().configure(every=0.5))
    notes = sequence.add_module(Range(kind="sweep").configure(**{"from": 36, "to": 48, "step": 2}))
    play = sequence.add_module(PlayNote().configure(duration=0.25))
    sequence.connect(clock, bar, "CLOCK", "CLOCK")
    sequence.connect(clock, beat, "CLOCK", "CLOCK")
    sequence.connect(bar, play, "TRIG", "TRIG")
    sequence.connect(beat, play, "TRIG", "TRIG")
    sequence.connect(notes, play, "OUT", "NOTE")
    return sequence
