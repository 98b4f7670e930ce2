import pytest

import keystrum.controller
import keystrum.note_mapper
import keystrum.output
import keystrum.performer
import keystrum.presets


def test_rock_guitar_preset (sampler_output) -> None:

	"""A preset sets instrument, mapping, style and offsets in one go."""

	controller = keystrum.controller.LiveController(sampler_output)
	keystrum.presets.apply_preset(keystrum.presets.PRESETS["rock-guitar"], controller)

	assert controller.instrument == keystrum.output.Instrument.GUITAR_OVERDRIVEN
	assert controller.mapping_mode == keystrum.note_mapper.MappingMode.CHROMATIC
	assert controller.power_chords
	assert controller.play_style == keystrum.controller.PlayStyle.CHUG_8
	assert controller.tempo_bpm == 140
	assert controller.octave_offset == -1
	assert controller.row_offset == 5
	assert controller.last_action == "Preset: Rock Guitar."


def test_script_preset_sets_performer (controller: keystrum.controller.LiveController, performer: keystrum.performer.TextPerformer) -> None:

	performer.set_mode(keystrum.performer.Mode.CHORDS)
	performer.set_chord_style(keystrum.performer.ChordPlaybackStyle.STABS)

	keystrum.presets.apply_preset(keystrum.presets.get_preset("script-piano"), controller, performer)

	assert performer.mode == keystrum.performer.Mode.SCRIPT
	assert performer.chord_style == keystrum.performer.ChordPlaybackStyle.TWO_HAND
	assert performer.advance_mode == keystrum.performer.ChordAdvanceMode.EVERY_BAR
	assert controller.tempo_bpm == 120


def test_preset_leaves_unset_fields_alone (controller: keystrum.controller.LiveController) -> None:

	controller.set_play_style(keystrum.controller.PlayStyle.CHUG_16)
	keystrum.presets.apply_preset(keystrum.presets.PRESETS["script-guitar"], controller)

	assert controller.play_style == keystrum.controller.PlayStyle.CHUG_16
	assert controller.octave_offset == -1


def test_load_song (controller: keystrum.controller.LiveController, performer: keystrum.performer.TextPerformer) -> None:

	keystrum.presets.load_song(keystrum.presets.SONGBOOK["nothing-else-matters-intro"], controller, performer)

	assert performer.chord_chart_text == "Em"
	assert performer.script_style == keystrum.performer.ScriptStyle.BALLAD_PICK
	assert performer.grid == keystrum.performer.TimingGrid.TRIPLETS
	assert controller.tempo_bpm == 76


def test_songbook_charts_all_parse () -> None:

	"""Every chart token except bar lines is a valid chord."""

	for entry in keystrum.presets.SONGBOOK.values():
		performer_chart = keystrum.performer.TextPerformer.chord_chart_from_text(entry.chart)

		assert performer_chart == entry.chart


def test_lookup_by_title_and_unknown_names () -> None:

	assert keystrum.presets.get_song("Baba O'Riley") is keystrum.presets.SONGBOOK["baba-oriley"]
	assert keystrum.presets.get_preset("Pretty Piano") is keystrum.presets.PRESETS["pretty-piano"]

	with pytest.raises(ValueError):
		keystrum.presets.get_song("stairway")

	with pytest.raises(ValueError):
		keystrum.presets.get_preset("banjo")
