"""Pitch classes, root notes and scales.

This module provides the small value types every other part of keystrum is
built from:

- `PitchClass`: the twelve semitone identities (``C`` = 0 ... ``B`` = 11).
- `RootNote`: a pitch class in a specific octave, convertible to a MIDI number
  using scientific pitch notation (**C4 = 60**, C-1 = 0).
- `Scale`: a named, strictly increasing list of semitone offsets with
  degree-to-pitch wrapping in both directions.

Module-level helpers:
- `note_name(midi)`: ``60`` → ``"C4"``.
- `pitch_class_name(midi)`: ``61`` → ``"C#"``.
- `get_scale(name)`: look up one of the `BUILTIN_SCALES` by name.
"""

import dataclasses
import enum
import typing


PC_TO_NOTE_NAME: typing.List[str] = [
	"C",
	"C#",
	"D",
	"D#",
	"E",
	"F",
	"F#",
	"G",
	"G#",
	"A",
	"A#",
	"B",
]


class PitchClass (enum.IntEnum):

	"""One of the twelve semitone identities, independent of octave."""

	C = 0
	C_SHARP = 1
	D = 2
	D_SHARP = 3
	E = 4
	F = 5
	F_SHARP = 6
	G = 7
	G_SHARP = 8
	A = 9
	A_SHARP = 10
	B = 11

	def __str__ (self) -> str:

		return PC_TO_NOTE_NAME[self.value]

	@property
	def display_name (self) -> str:

		"""Canonical sharp-spelled name (e.g. ``"F#"``)."""

		return PC_TO_NOTE_NAME[self.value]


@dataclasses.dataclass(frozen=True)
class RootNote:

	"""A pitch class pinned to an octave.

	Example:
		```python
		RootNote(PitchClass.E, 3).midi_number  # → 52
		RootNote(PitchClass.C, 4).midi_number  # → 60
		```
	"""

	pitch_class: PitchClass
	octave: int

	@property
	def midi_number (self) -> int:

		"""MIDI number in scientific pitch notation. Deliberately unclamped."""

		return (self.octave + 1) * 12 + int(self.pitch_class)

	def __str__ (self) -> str:

		return f"{self.pitch_class}{self.octave}"


@dataclasses.dataclass(frozen=True)
class Scale:

	"""A named scale described by semitone offsets from its root."""

	name: str
	semitone_offsets: typing.Tuple[int, ...]

	def pitch (self, degree: int) -> int:

		"""Return the semitone offset of a scale degree, wrapping by octaves.

		Degrees outside ``[0, len)`` wrap through the offset list, adding or
		subtracting 12 per wrapped octave. Negative degrees wrap downwards:
		degree ``-1`` of a five-note scale is ``offsets[4] - 12``.

		Parameters:
			degree: Any integer scale degree.

		Returns:
			Semitones above (or below) the scale root. An empty scale
			returns 0.

		Example:
			```python
			MINOR_PENTATONIC.pitch(0)   # → 0
			MINOR_PENTATONIC.pitch(5)   # → 12
			MINOR_PENTATONIC.pitch(-1)  # → -2
			```
		"""

		if not self.semitone_offsets:
			return 0

		octave, index = divmod(degree, len(self.semitone_offsets))

		return octave * 12 + self.semitone_offsets[index]

	def __len__ (self) -> int:

		return len(self.semitone_offsets)


MINOR_PENTATONIC = Scale("Minor Pentatonic", (0, 3, 5, 7, 10))
BLUES = Scale("Blues", (0, 3, 5, 6, 7, 10))
NATURAL_MINOR = Scale("Natural Minor", (0, 2, 3, 5, 7, 8, 10))
MAJOR = Scale("Major", (0, 2, 4, 5, 7, 9, 11))
MAJOR_PENTATONIC = Scale("Major Pentatonic", (0, 2, 4, 7, 9))

BUILTIN_SCALES: typing.List[Scale] = [
	MINOR_PENTATONIC,
	BLUES,
	NATURAL_MINOR,
	MAJOR,
	MAJOR_PENTATONIC,
]


def _scale_key (name: str) -> str:

	return name.strip().lower().replace("_", " ").replace("-", " ")


def get_scale (name: str) -> Scale:

	"""Look up a built-in scale by name.

	Matching ignores case and treats spaces, hyphens and underscores alike,
	so ``"minor_pentatonic"`` and ``"Minor Pentatonic"`` both work.

	Raises:
		ValueError: If no built-in scale has that name.
	"""

	wanted = _scale_key(name)

	for scale in BUILTIN_SCALES:
		if _scale_key(scale.name) == wanted:
			return scale

	available = ", ".join(scale.name for scale in BUILTIN_SCALES)
	raise ValueError(f"Unknown scale: {name!r}. Available: {available}")


def pitch_class_name (midi: int) -> str:

	"""Return the sharp-spelled pitch-class name of a MIDI note."""

	return PC_TO_NOTE_NAME[midi % 12]


def note_name (midi: int) -> str:

	"""Convert a MIDI note number to a name with octave (``52`` → ``"E3"``)."""

	return f"{pitch_class_name(midi)}{(midi // 12) - 1}"


def is_valid_midi (note: int) -> bool:

	"""True when *note* is inside the MIDI note range 0-127."""

	return 0 <= note <= 127
