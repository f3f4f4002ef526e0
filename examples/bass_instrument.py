"""Detuned bass: two oscillators an octave apart through a low pass filter.

Demonstrates instrument patching:
  - The channel input's pitch feeds a square directly and a saw through
    a -12 semitone transpose.
  - Both generators land on the same filter input, so the compiled
    document groups them under "combined".
  - Patching the same pair of sockets twice removes the cable again.
"""

import json

from patch_graph import (
    Filter,
    Generator,
    Transpose,
    compile_graph_to_file,
    graph_to_dot_file,
    new_instrument,
    validate_graph,
)

instrument = new_instrument(name="bass", bank_index=1)
source, sink = instrument.modules

square = instrument.add_module(Generator(kind="square").configure(gain=0.6, release=0.3))
saw = instrument.add_module(Generator(kind="saw").configure(gain=0.4, release=0.3))
octave_down = instrument.add_module(Transpose().configure(semitones=-12))
lpf = instrument.add_module(Filter(kind="low pass filter").configure(cutoff=900))

instrument.connect(source, square, "FREQ", "FREQ")
instrument.connect(source, octave_down, "FREQ", "FREQ IN")
instrument.connect(octave_down, saw, "FREQ", "FREQ")
instrument.connect(square, lpf, "OUT", "IN")
instrument.connect(saw, lpf, "OUT", "IN")
instrument.connect(lpf, sink, "OUT", "IN")

# Toggle a stray cable on and off again
instrument.connect(square, sink, "OUT", "IN")
instrument.connect(square, sink, "OUT", "IN")

if __name__ == "__main__":
    errors = validate_graph(instrument)
    if errors:
        print("Validation errors:")
        for e in errors:
            print(f"  - {e}")
    else:
        print("Instrument is valid.")
    print()
    print(f"Modules: {[m.kind for m in instrument.modules]}")
    print(f"Patches: {len(instrument.patches)}")
    print()
    print(json.dumps(instrument.compile(), indent=2))

    path = compile_graph_to_file(instrument, "build")
    print(f"\nWrote {path}")
    dot_path = graph_to_dot_file(instrument, "build")
    print(f"Wrote {dot_path}")
