"""Key → MIDI note mapping.

`NoteMapper` turns a key's position in a `KeyLayout` into a MIDI note:

- **musical** mode treats the position as a scale degree
  (``row * row_offset + col``) so every key lands on a scale tone.
- **chromatic** mode treats it as a semitone count, one semitone per key.

Both modes start from ``root.midi_number + octave_offset * 12``. A key that is
missing from the layout, or whose note falls outside 0-127, maps to ``None``;
callers treat that as "no note for this key" and never clamp.

`quantize_to_scale()` is the pad equivalent: it snaps an arbitrary MIDI note
to the nearest scale tone within a range above a root.
"""

import dataclasses
import enum
import typing

import keystrum.key_layout
import keystrum.theory


class MappingMode (str, enum.Enum):

	"""How key positions become pitches."""

	MUSICAL = "musical"
	CHROMATIC = "chromatic"


@dataclasses.dataclass
class NoteMapper:

	"""Mutable mapping state: mode, root, scale, offsets and layout.

	Example:
		```python
		mapper = NoteMapper(
			mode=MappingMode.MUSICAL,
			root=RootNote(PitchClass.E, 3),
			scale=keystrum.theory.MINOR_PENTATONIC,
		)
		mapper.midi_note("a")  # → 52
		mapper.midi_note("s")  # → 55
		```
	"""

	mode: MappingMode = MappingMode.MUSICAL
	root: keystrum.theory.RootNote = dataclasses.field(
		default_factory=lambda: keystrum.theory.RootNote(keystrum.theory.PitchClass.E, 3)
	)
	scale: keystrum.theory.Scale = keystrum.theory.MINOR_PENTATONIC
	octave_offset: int = 0
	# Degrees in musical mode, semitones in chromatic mode.
	row_offset: int = 5
	key_layout: keystrum.key_layout.KeyLayout = keystrum.key_layout.TYPEWRITER

	@property
	def base_midi (self) -> int:

		"""The note that position (0, 0) maps to."""

		return self.root.midi_number + self.octave_offset * 12

	def midi_note_number (self, key: str) -> typing.Optional[int]:

		"""Return the unclamped note number for *key*, or ``None`` when unmapped."""

		position = self.key_layout.position(key)

		if position is None:
			return None

		row, col = position

		if self.mode == MappingMode.MUSICAL:
			return self.base_midi + self.scale.pitch(row * self.row_offset + col)

		return self.base_midi + row * self.row_offset + col

	def midi_note (self, key: str) -> typing.Optional[int]:

		"""Return the MIDI note for *key*, or ``None`` if unmapped or out of range."""

		note = self.midi_note_number(key)

		if note is None or not keystrum.theory.is_valid_midi(note):
			return None

		return note


def quantize_to_scale (desired: int, root_midi: int, scale: keystrum.theory.Scale, range_semitones: int = 24) -> typing.Optional[int]:

	"""Snap *desired* to the nearest scale tone in ``[root_midi, root_midi + range_semitones]``.

	Ties go to the lower note. Returns *desired* unchanged for an empty scale
	and ``None`` when no scale tone falls inside the window.
	"""

	if not scale.semitone_offsets:
		return desired

	low = max(0, root_midi)
	high = min(127, root_midi + range_semitones)
	octaves = range_semitones // 12 + 2

	allowed = sorted({
		root_midi + octave * 12 + offset
		for octave in range(octaves)
		for offset in scale.semitone_offsets
		if low <= root_midi + octave * 12 + offset <= high
	})

	if not allowed:
		return None

	# min() returns the first of equally distant notes, so ties go low.
	return min(allowed, key=lambda note: abs(note - desired))
