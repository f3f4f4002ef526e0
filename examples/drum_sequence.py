"""Four-on-the-floor kick with a rising hi-hat sweep on the percussion channel.

Demonstrates sequence patching:
  - Each pulse wraps the note it triggers in a "repeat" descriptor.
  - A sweep range drives the hat's note number.
  - The kick note carries its own channel; the hat inherits the sequence's.
"""

import json

from patch_graph import (
    PlayNote,
    Pulse,
    Range,
    compile_graph_to_file,
    new_sequence,
    validate_graph,
)

sequence = new_sequence(channel=9)
(clock,) = sequence.modules

kick_pulse = sequence.add_module(Pulse().configure(every=1))
kick = sequence.add_module(PlayNote(channel=10).configure(note=36, duration=0.1))

hat_pulse = sequence.add_module(Pulse().configure(every=0.25))
hat_notes = sequence.add_module(Range(kind="sweep").configure(**{"from": 42, "to": 46, "step": 2}))
hat = sequence.add_module(PlayNote().configure(duration=0.05))

sequence.connect(clock, kick_pulse, "CLOCK", "CLOCK")
sequence.connect(kick_pulse, kick, "TRIG", "TRIG")
sequence.connect(clock, hat_pulse, "CLOCK", "CLOCK")
sequence.connect(hat_pulse, hat, "TRIG", "TRIG")
sequence.connect(hat_notes, hat, "OUT", "NOTE")

if __name__ == "__main__":
    errors = validate_graph(sequence)
    print("Sequence is valid." if not errors else "\n".join(errors))
    print()
    print(json.dumps(sequence.compile(), indent=2))

    path = compile_graph_to_file(sequence, "build")
    print(f"\nWrote {path}")
