"""Ready-made setups and a small songbook of starter chord charts.

A `Preset` configures the controller (and, for the typing-script presets,
the performer) for a sound that works straight away. A `SongbookEntry` loads
a chord chart together with a fitting script style, and sometimes a grid
and tempo.

```python
apply_preset(PRESETS["rock-guitar"], controller, performer)
load_song(SONGBOOK["baba-oriley"], controller, performer)
```
"""

import dataclasses
import logging
import typing

import keystrum.controller
import keystrum.note_mapper
import keystrum.output
import keystrum.performer
import keystrum.theory


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Preset:

	"""Controller settings, plus performer settings for the typing-script presets.

	``None`` fields are left as they are.
	"""

	name: str
	instrument: keystrum.output.Instrument
	tempo_bpm: int
	strum: bool
	octave: int
	mapping_mode: typing.Optional[keystrum.note_mapper.MappingMode] = None
	scale: typing.Optional[keystrum.theory.Scale] = None
	power_chords: typing.Optional[bool] = None
	play_style: typing.Optional[keystrum.controller.PlayStyle] = None
	row_offset: typing.Optional[int] = None
	script: bool = False


PRESETS: typing.Dict[str, Preset] = {
	"pretty-piano": Preset(
		name = "Pretty Piano",
		instrument = keystrum.output.Instrument.PIANO,
		tempo_bpm = 140,
		strum = False,
		octave = 0,
		mapping_mode = keystrum.note_mapper.MappingMode.MUSICAL,
		scale = keystrum.theory.MINOR_PENTATONIC,
		power_chords = False,
		play_style = keystrum.controller.PlayStyle.HOLD,
		row_offset = 2,
	),
	"rock-guitar": Preset(
		name = "Rock Guitar",
		instrument = keystrum.output.Instrument.GUITAR_OVERDRIVEN,
		tempo_bpm = 140,
		strum = True,
		octave = -1,
		mapping_mode = keystrum.note_mapper.MappingMode.CHROMATIC,
		power_chords = True,
		play_style = keystrum.controller.PlayStyle.CHUG_8,
		row_offset = 5,
	),
	"guitar-chug": Preset(
		name = "Guitar Chug",
		instrument = keystrum.output.Instrument.GUITAR_DISTORTION,
		tempo_bpm = 160,
		strum = False,
		octave = -1,
		mapping_mode = keystrum.note_mapper.MappingMode.CHROMATIC,
		power_chords = True,
		play_style = keystrum.controller.PlayStyle.CHUG_16,
		row_offset = 5,
	),
	"script-piano": Preset(
		name = "Typing Script (Two-hand Piano)",
		instrument = keystrum.output.Instrument.PIANO,
		tempo_bpm = 120,
		strum = False,
		octave = 0,
		script = True,
	),
	"script-guitar": Preset(
		name = "Typing Script (Rock Guitar)",
		instrument = keystrum.output.Instrument.GUITAR_OVERDRIVEN,
		tempo_bpm = 120,
		strum = True,
		octave = -1,
		script = True,
	),
}


def apply_preset (preset: Preset, controller: keystrum.controller.LiveController, performer: typing.Optional[keystrum.performer.TextPerformer] = None) -> None:

	"""Apply *preset*. Script playback is stopped first so the change is clean."""

	if performer is not None:
		performer.stop_playback()

	controller.set_instrument(preset.instrument)

	if preset.mapping_mode is not None:
		controller.set_mapping_mode(preset.mapping_mode)

	if preset.scale is not None:
		controller.set_scale(preset.scale)

	if preset.power_chords is not None:
		controller.set_power_chords(preset.power_chords)

	if preset.play_style is not None:
		controller.set_play_style(preset.play_style)

	controller.set_tempo(preset.tempo_bpm)
	controller.set_strum(preset.strum)

	if preset.row_offset is not None:
		controller.set_row_offset(preset.row_offset)

	controller.set_octave(preset.octave)

	if preset.script and performer is not None:
		performer.set_mode(keystrum.performer.Mode.SCRIPT)
		performer.set_chord_style(keystrum.performer.ChordPlaybackStyle.TWO_HAND)
		performer.set_advance_mode(keystrum.performer.ChordAdvanceMode.EVERY_BAR)

	logger.info(f"Preset: {preset.name}")
	controller.set_action(f"Preset: {preset.name}.")


@dataclasses.dataclass(frozen=True)
class SongbookEntry:

	"""A starter chord chart with the style (and optionally grid and tempo) it sounds best in."""

	title: str
	chart: str
	style: keystrum.performer.ScriptStyle
	grid: keystrum.performer.TimingGrid = keystrum.performer.TimingGrid.OFF
	tempo_bpm: typing.Optional[int] = None


SONGBOOK: typing.Dict[str, SongbookEntry] = {
	"nothing-else-matters-intro": SongbookEntry(
		"Nothing Else Matters (Intro pick)", "Em",
		keystrum.performer.ScriptStyle.BALLAD_PICK, keystrum.performer.TimingGrid.TRIPLETS, 76,
	),
	"nothing-else-matters": SongbookEntry(
		"Nothing Else Matters", "Em D C G",
		keystrum.performer.ScriptStyle.BALLAD_PICK,
	),
	"free-bird": SongbookEntry(
		"Free Bird", "G D/F# Em F C D",
		keystrum.performer.ScriptStyle.ROCK_STRUM,
	),
	"sweet-child": SongbookEntry(
		"Sweet Child O' Mine", "D C G D",
		keystrum.performer.ScriptStyle.ROCK_STRUM,
	),
	"november-rain": SongbookEntry(
		"November Rain", "C G Am F",
		keystrum.performer.ScriptStyle.BALLAD_PICK,
	),
	"baba-oriley": SongbookEntry(
		"Baba O'Riley", "F C Bb",
		keystrum.performer.ScriptStyle.SYNTH_PULSE, keystrum.performer.TimingGrid.SIXTEENTHS, 118,
	),
	"highway-to-hell": SongbookEntry(
		"Highway to Hell", "A D/F# G D/F# G | E | A D G D",
		keystrum.performer.ScriptStyle.POWER_CHUG, keystrum.performer.TimingGrid.EIGHTHS, 116,
	),
	"with-arms-wide-open": SongbookEntry(
		"With Arms Wide Open", "C C/B Am | F C | E D | C C/B Am",
		keystrum.performer.ScriptStyle.BALLAD_PICK, keystrum.performer.TimingGrid.EIGHTHS, 92,
	),
	"wonderwall": SongbookEntry(
		"Pop/Rock I-V-vi-IV (Wonderwall-style)", "G D Em C",
		keystrum.performer.ScriptStyle.ROCK_STRUM,
	),
	"twelve-bar-blues": SongbookEntry(
		"12-bar Blues", "A7 D7 A7 A7 D7 D7 A7 A7 E7 D7 A7 E7",
		keystrum.performer.ScriptStyle.ROCK_STRUM,
	),
}


def load_song (entry: SongbookEntry, controller: keystrum.controller.LiveController, performer: keystrum.performer.TextPerformer) -> None:

	"""Load *entry*'s chart and style into the performer.

	Entries without a grid leave it off, which plays as sixteenths.
	"""

	performer.set_script_style(entry.style)
	performer.set_grid(entry.grid)

	if entry.tempo_bpm is not None:
		controller.set_tempo(entry.tempo_bpm)

	performer.set_chord_chart_text(entry.chart)
	controller.set_action(f"Song: {entry.title}.")


def get_preset (name: str) -> Preset:

	"""Look up a preset by key (``"rock-guitar"``) or display name (``"Rock Guitar"``).

	Raises:
		ValueError: For an unknown name.
	"""

	key = name.strip().lower()

	for preset_key, preset in PRESETS.items():
		if key in (preset_key, preset.name.lower()):
			return preset

	raise ValueError(f"Unknown preset: {name!r}. Expected one of {sorted(PRESETS)}")


def get_song (name: str) -> SongbookEntry:

	"""Look up a songbook entry by key or title.

	Raises:
		ValueError: For an unknown name.
	"""

	key = name.strip().lower()

	for song_key, entry in SONGBOOK.items():
		if key in (song_key, entry.title.lower()):
			return entry

	raise ValueError(f"Unknown song: {name!r}. Expected one of {sorted(SONGBOOK)}")
