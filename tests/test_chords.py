import pytest

import keystrum.chords

from keystrum.chords import PitchClass, Quality, Seventh


@pytest.mark.parametrize("token, root, quality, seventh, bass", [
	("Em", PitchClass.E, Quality.MINOR, Seventh.NONE, None),
	("C", PitchClass.C, Quality.MAJOR, Seventh.NONE, None),
	("Cmaj7", PitchClass.C, Quality.MAJOR, Seventh.MAJOR7, None),
	("CMAJ7", PitchClass.C, Quality.MAJOR, Seventh.MAJOR7, None),
	("Am7", PitchClass.A, Quality.MINOR, Seventh.MINOR7, None),
	("Amin", PitchClass.A, Quality.MINOR, Seventh.NONE, None),
	("C7", PitchClass.C, Quality.MAJOR, Seventh.MINOR7, None),
	("Cmmaj7", PitchClass.C, Quality.MINOR, Seventh.MAJOR7, None),
	("Asus2", PitchClass.A, Quality.SUS2, Seventh.NONE, None),
	("Gsus", PitchClass.G, Quality.SUS4, Seventh.NONE, None),
	("Dsus4", PitchClass.D, Quality.SUS4, Seventh.NONE, None),
	("E5", PitchClass.E, Quality.POWER, Seventh.NONE, None),
	("D/F#", PitchClass.D, Quality.MAJOR, Seventh.NONE, PitchClass.F_SHARP),
	("C/B", PitchClass.C, Quality.MAJOR, Seventh.NONE, PitchClass.B),
])
def test_parse_chord_symbol (token: str, root: PitchClass, quality: Quality, seventh: Seventh, bass: PitchClass) -> None:

	"""Valid symbols parse into root, quality, seventh and slash bass."""

	chord = keystrum.chords.parse_chord_symbol(token)

	assert chord is not None
	assert chord.root == root
	assert chord.quality == quality
	assert chord.seventh == seventh
	assert chord.bass == bass
	assert chord.raw == token


def test_flats_are_stored_as_sharps () -> None:

	"""Bb is A#; the flat spelling only survives in raw."""

	chord = keystrum.chords.parse_chord_symbol(" Bb ")

	assert chord is not None
	assert chord.root == PitchClass.A_SHARP
	assert chord.raw == "Bb"
	assert chord.name() == "Bb"


@pytest.mark.parametrize("token", ["", "   ", "H", "Cdim", "Cadd9", "D/F#m", "D/X", "hello"])
def test_parse_chord_symbol_rejects (token: str) -> None:

	"""Anything outside the grammar returns None instead of raising."""

	assert keystrum.chords.parse_chord_symbol(token) is None


def test_empty_slash_pieces_are_ignored () -> None:

	chord = keystrum.chords.parse_chord_symbol("D/")

	assert chord is not None
	assert chord.bass is None


def test_generated_names () -> None:

	assert keystrum.chords.ChordSymbol(PitchClass.A, Quality.MINOR, Seventh.MINOR7).name() == "Am7"
	assert keystrum.chords.ChordSymbol(PitchClass.C, Quality.MAJOR, Seventh.MAJOR7).name() == "Cmaj7"
	assert keystrum.chords.ChordSymbol(PitchClass.D, bass=PitchClass.F_SHARP).name() == "D/F#"
	assert keystrum.chords.ChordSymbol(PitchClass.E, Quality.POWER).name() == "E5"


def test_prefix_helpers () -> None:

	assert keystrum.chords.parse_pitch_class_prefix("F#m") == PitchClass.F_SHARP
	assert keystrum.chords.parse_pitch_class_prefix("bb7") == PitchClass.A_SHARP
	assert keystrum.chords.parse_pitch_class_prefix("H") is None
	assert keystrum.chords.pitch_class_prefix_length("F#maj7") == 2
	assert keystrum.chords.pitch_class_prefix_length("E") == 1
	assert keystrum.chords.pitch_class_prefix_length("") == 0


def test_parse_root_and_bass_ignores_suffix () -> None:

	assert keystrum.chords.parse_root_and_bass("Dsus4/F#") == (PitchClass.D, PitchClass.F_SHARP, "Dsus4/F#")
	assert keystrum.chords.parse_root_and_bass("Xm") is None
	assert keystrum.chords.parse_root_and_bass("") is None


# ---------------------------------------------------------------------------
# Chord tones
# ---------------------------------------------------------------------------

def _notes (token: str, power_chords: bool = False) -> list[int]:

	"""Voice *token* for an E3 instrument (base 52, root pitch class E)."""

	chord = keystrum.chords.parse_chord_symbol(token)
	assert chord is not None

	return keystrum.chords.chord_notes(chord, base_midi=52, root_pitch_class=4, power_chords=power_chords)


def test_chord_notes_minor_triad () -> None:

	"""Em: bass an octave below the base, triad on the base."""

	assert _notes("Em") == [40, 52, 55, 59]


def test_chord_notes_seventh () -> None:

	assert _notes("Am7") == [45, 57, 60, 64, 67]


def test_chord_notes_slash_bass () -> None:

	"""The bass is placed upwards from the instrument root, like the chord root."""

	assert _notes("D/F#") == [42, 62, 66, 69]


def test_chord_notes_power_voicing () -> None:

	assert _notes("E5") == [40, 47, 52]
	assert _notes("Em", power_chords=True) == [40, 47, 52]


def test_chord_notes_drop_out_of_range () -> None:

	chord = keystrum.chords.parse_chord_symbol("E")
	assert chord is not None

	assert keystrum.chords.chord_notes(chord, base_midi=5, root_pitch_class=4) == [5, 9, 12]


def test_picking_notes_adds_upper_octave () -> None:

	chord = keystrum.chords.parse_chord_symbol("Em")
	assert chord is not None

	assert keystrum.chords.picking_notes(chord, 52, 4) == [40, 52, 55, 59, 64, 67, 71]
