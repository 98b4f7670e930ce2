"""
Keystrum - play music by typing.

Keystrum turns a computer keyboard, a pointer pad, or a typed sentence into
MIDI notes. It generates note events only (no audio engine), so it can drive
any synth, sampler or DAW through a MIDI port.

Two ways to play:

- **Live keys.** Every key maps to a note, in a scale (Scale Lock) or
  chromatically, with octave and row offsets, power-chord expansion, a
  sustain latch, optional voice leading that keeps the line in one
  register, and "chug" play styles that repeat a held key on an 8th or 16th
  grid. Panic silences everything at any time.
- **Typing script.** Type a sentence and a chord chart (``Em D C G``).
  When armed, the sentence is read one character per grid tick and played
  inside the current chord, with one of four styles: Ballad Pick, Rock
  Strum, Power Chug or Synth Pulse. ``,`` rests, ``-`` holds, ``.``
  resolves, ``!`` accents. The result depends only on the text and
  settings, never on typing speed, and can be rendered deterministically.

Building blocks:

- **Theory.** Pitch classes, root notes, scales with wrapping degrees.
- **Mapping.** Key layouts and the key → note mapper, scale quantizing for
  the pad, nearest-octave voice leading.
- **Chords.** A forgiving chord-symbol parser (``F#m7``, ``D/F#``,
  ``Asus2``, ``E5``) and chart tokenizer that pulls chords out of pasted text.
- **Output.** A two-method note sink protocol with optional instrument and
  sample-bank capabilities; a mido MIDI output and a logging output.

Minimal example:

    ```python
    import keystrum

    scheduler = keystrum.VirtualScheduler()
    output = keystrum.RecordingNoteOutput(clock=scheduler.now)
    controller = keystrum.LiveController(output, scheduler=scheduler)
    controller.set_armed(True)

    performer = keystrum.TextPerformer(controller)
    performer.set_chord_chart_text("Em")
    performer.set_script_text("trust i seek and i find in you")
    performer.render(ticks=36)

    for event in output.events:
        print(event)
    ```

Package-level exports: ``LiveController``, ``TextPerformer``,
``NoteMapper``, ``VirtualScheduler``, ``RecordingNoteOutput``,
``parse_chord_symbol``.
"""

import keystrum.chords
import keystrum.controller
import keystrum.note_mapper
import keystrum.output
import keystrum.performer
import keystrum.scheduler


LiveController = keystrum.controller.LiveController
TextPerformer = keystrum.performer.TextPerformer
NoteMapper = keystrum.note_mapper.NoteMapper
VirtualScheduler = keystrum.scheduler.VirtualScheduler
RecordingNoteOutput = keystrum.output.RecordingNoteOutput
parse_chord_symbol = keystrum.chords.parse_chord_symbol
