"""Chord-symbol parsing and chord-tone derivation.

Parses lead-sheet chord symbols such as ``"Em"``, ``"D/F#"``, ``"Cmaj7"``,
``"A5"`` or ``"Gsus"`` into an immutable `ChordSymbol`, and expands a symbol
into concrete MIDI notes relative to the instrument's current base note.

Accepted grammar (case-insensitive after the root letter)::

	[A-G][#b]?(maj7|maj|min|m|sus2|sus4|sus|5)?(maj7|7)?(/[A-G][#b]?)?

Parsing never raises. Anything outside the grammar returns ``None`` so that a
chart full of prose degrades to "fewer chords" rather than an error.

Flats resolve to their sharp enharmonic (``"Bb"`` is stored as A#). The
original spelling survives only in `ChordSymbol.raw`.

Module-level helpers:
- `parse_pitch_class_prefix(token)`: ``"F#m"`` → ``PitchClass.F_SHARP``.
- `pitch_class_prefix_length(token)`: ``"F#maj7"`` → 2.
- `parse_root_and_bass(token)`: ``"D/F#"`` → ``(D, F#, "D/F#")``.
- `parse_chord_symbol(token)`: full parse into a `ChordSymbol`.
- `chord_notes(chord, ...)`: sorted, de-duplicated MIDI chord tones.
- `picking_notes(chord, ...)`: chord tones widened by an octave for picking.
"""

import dataclasses
import enum
import typing

import keystrum.theory


PitchClass = keystrum.theory.PitchClass


_LETTER_TO_PC: typing.Dict[str, int] = {
	"C": 0,
	"D": 2,
	"E": 4,
	"F": 5,
	"G": 7,
	"A": 9,
	"B": 11,
}


class Quality (str, enum.Enum):

	MAJOR = "major"
	MINOR = "minor"
	SUS2 = "sus2"
	SUS4 = "sus4"
	POWER = "power"


class Seventh (str, enum.Enum):

	NONE = "none"
	MINOR7 = "minor7"
	MAJOR7 = "major7"


TRIAD_INTERVALS: typing.Dict[Quality, typing.List[int]] = {
	Quality.MAJOR: [0, 4, 7],
	Quality.MINOR: [0, 3, 7],
	Quality.SUS2: [0, 2, 7],
	Quality.SUS4: [0, 5, 7],
	Quality.POWER: [0, 7, 12],
}

SEVENTH_INTERVAL: typing.Dict[Seventh, int] = {
	Seventh.MINOR7: 10,
	Seventh.MAJOR7: 11,
}

# Tried in order after the root; first match wins.
_QUALITY_PREFIXES: typing.List[typing.Tuple[str, Quality]] = [
	("maj", Quality.MAJOR),
	("min", Quality.MINOR),
	("m", Quality.MINOR),
	("sus2", Quality.SUS2),
	("sus4", Quality.SUS4),
	("sus", Quality.SUS4),
	("5", Quality.POWER),
]


@dataclasses.dataclass(frozen=True)
class ChordSymbol:

	"""A parsed chord symbol.

	Attributes:
		root: Root pitch class.
		quality: Triad quality (power chords omit the third).
		seventh: Added seventh, if any.
		bass: Slash-bass pitch class, or ``None`` for root-position bass.
		raw: The token exactly as it was parsed (after trimming).
	"""

	root: PitchClass
	quality: Quality = Quality.MAJOR
	seventh: Seventh = Seventh.NONE
	bass: typing.Optional[PitchClass] = None
	raw: str = ""

	def name (self) -> str:

		"""The symbol as written (falls back to a generated name)."""

		if self.raw:
			return self.raw

		suffix = {Quality.MAJOR: "", Quality.MINOR: "m", Quality.SUS2: "sus2", Quality.SUS4: "sus4", Quality.POWER: "5"}[self.quality]

		if self.seventh == Seventh.MAJOR7:
			suffix = "maj7" if self.quality == Quality.MAJOR else suffix + "maj7"
		elif self.seventh == Seventh.MINOR7:
			suffix += "7"

		name = f"{self.root}{suffix}"

		if self.bass is not None:
			name += f"/{self.bass}"

		return name


def parse_pitch_class_prefix (token: str) -> typing.Optional[PitchClass]:

	"""Parse the leading note letter and optional ``#``/``b`` of *token*.

	Example:
		```python
		parse_pitch_class_prefix("F#")   # → PitchClass.F_SHARP
		parse_pitch_class_prefix("Bb7")  # → PitchClass.A_SHARP
		parse_pitch_class_prefix("H")    # → None
		```
	"""

	trimmed = token.strip()

	if not trimmed:
		return None

	base = _LETTER_TO_PC.get(trimmed[0].upper())

	if base is None:
		return None

	if len(trimmed) >= 2:
		if trimmed[1] == "#":
			base = (base + 1) % 12
		elif trimmed[1] == "b":
			base = (base + 11) % 12

	return PitchClass(base)


def pitch_class_prefix_length (token: str) -> int:

	"""Number of characters the pitch-class prefix of *token* occupies (0, 1 or 2)."""

	if not token:
		return 0

	if len(token) >= 2 and token[1] in ("#", "b"):
		return 2

	return 1


def parse_root_and_bass (token: str) -> typing.Optional[typing.Tuple[PitchClass, typing.Optional[PitchClass], str]]:

	"""Parse only the root and optional slash bass of *token*, ignoring the suffix.

	Returns:
		``(root, bass, raw)`` or ``None`` when the token is empty or has no
		recognisable root letter.
	"""

	trimmed = token.strip()

	if not trimmed:
		return None

	main, bass_token = _split_slash(trimmed)
	root = parse_pitch_class_prefix(main)

	if root is None:
		return None

	bass = parse_pitch_class_prefix(bass_token) if bass_token is not None else None

	return root, bass, trimmed


def _split_slash (token: str) -> typing.Tuple[str, typing.Optional[str]]:

	"""Split once on ``/``, dropping empty pieces the way a forgiving chart reader should."""

	parts = [part for part in token.split("/", 1) if part]

	if not parts:
		return "", None

	if len(parts) == 1:
		return parts[0], None

	return parts[0], parts[1]


def parse_chord_symbol (token: str) -> typing.Optional[ChordSymbol]:

	"""Parse a full chord symbol.

	The suffix is consumed longest-match-first: ``maj7`` as a whole, else one
	quality prefix from ``maj``/``min``/``m``/``sus2``/``sus4``/``sus``/``5``
	followed by an optional ``maj7`` or ``7``. Leftover characters, or a slash
	bass that is more than a bare note name, fail the parse.

	Example:
		```python
		parse_chord_symbol("Cmaj7")  # → C major, MAJOR7
		parse_chord_symbol("Am7")    # → A minor, MINOR7
		parse_chord_symbol("D/F#")   # → D major over F#
		parse_chord_symbol("Cdim")   # → None
		```
	"""

	raw = token.strip()

	if not raw:
		return None

	main, bass_token = _split_slash(raw)
	main = main.strip()

	root = parse_pitch_class_prefix(main)

	if root is None:
		return None

	rest = main[pitch_class_prefix_length(main):].lower()
	quality = Quality.MAJOR
	seventh = Seventh.NONE

	if rest.startswith("maj7"):
		seventh = Seventh.MAJOR7
		rest = rest[4:]

	else:
		for prefix, candidate in _QUALITY_PREFIXES:
			if rest.startswith(prefix):
				quality = candidate
				rest = rest[len(prefix):]
				break

		if rest.startswith("maj7"):
			seventh = Seventh.MAJOR7
			rest = rest[4:]
		elif rest.startswith("7"):
			seventh = Seventh.MINOR7
			rest = rest[1:]

	if rest:
		return None

	bass: typing.Optional[PitchClass] = None

	if bass_token is not None:
		cleaned = bass_token.strip()

		if cleaned:
			if len(cleaned) != pitch_class_prefix_length(cleaned):
				return None

			bass = parse_pitch_class_prefix(cleaned)

			if bass is None:
				return None

	return ChordSymbol(root=root, quality=quality, seventh=seventh, bass=bass, raw=raw)


def chord_midi_root (pitch_class: int, base_midi: int, root_pitch_class: int) -> int:

	"""Place *pitch_class* in the octave below *base_midi*.

	The distance is measured upwards from the instrument's root pitch class,
	so the instrument root itself lands exactly one octave below the base.
	"""

	return base_midi - 12 + (pitch_class - root_pitch_class) % 12


def _unique_sorted (notes: typing.Iterable[int]) -> typing.List[int]:

	return sorted({note for note in notes if keystrum.theory.is_valid_midi(note)})


def chord_notes (chord: ChordSymbol, base_midi: int, root_pitch_class: int, power_chords: bool = False) -> typing.List[int]:

	"""Return sorted, de-duplicated MIDI notes for *chord*.

	Parameters:
		chord: The chord to voice.
		base_midi: The instrument's current base note (root + octave offset).
		root_pitch_class: Pitch class of the instrument's root; chord roots
			are placed relative to it.
		power_chords: Force a power-chord voicing regardless of quality.

	Returns:
		Power voicing ``[bass, root, root+7, root+12]``, or otherwise the bass
		followed by the triad (and seventh) built an octave above the chord
		root. Notes outside 0-127 are dropped.

	Example:
		```python
		em = parse_chord_symbol("Em")
		chord_notes(em, base_midi=52, root_pitch_class=4)  # → [40, 52, 55, 59]
		```
	"""

	root_midi = chord_midi_root(int(chord.root), base_midi, root_pitch_class)
	bass_midi = root_midi if chord.bass is None else chord_midi_root(int(chord.bass), base_midi, root_pitch_class)

	if power_chords or chord.quality == Quality.POWER:
		return _unique_sorted([bass_midi, root_midi, root_midi + 7, root_midi + 12])

	upper_root = root_midi + 12
	notes = [bass_midi] + [upper_root + interval for interval in TRIAD_INTERVALS[chord.quality]]

	if chord.seventh != Seventh.NONE:
		notes.append(upper_root + SEVENTH_INTERVAL[chord.seventh])

	return _unique_sorted(notes)


def picking_notes (chord: ChordSymbol, base_midi: int, root_pitch_class: int, power_chords: bool = False) -> typing.List[int]:

	"""Chord tones plus every non-bass tone an octave higher.

	The wider pool gives index-based picking room to move between registers.
	"""

	notes = chord_notes(chord, base_midi, root_pitch_class, power_chords)

	if len(notes) < 2:
		return notes

	return _unique_sorted(notes + [note + 12 for note in notes[1:]])
