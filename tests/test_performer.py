import asyncio
import typing

import pytest

import keystrum.controller
import keystrum.output
import keystrum.performer
import keystrum.scheduler

from keystrum.performer import ChordAdvanceMode, Mode, ScriptInputMode, ScriptStyle, TimingGrid


SIXTEENTH_AT_140 = 60.0 / 140 / 4


def _ons (output: keystrum.output.RecordingNoteOutput) -> list[int]:

	return [event.note for event in output.events if event.kind == "note_on"]


def _offs (output: keystrum.output.RecordingNoteOutput) -> list[int]:

	return [event.note for event in output.events if event.kind == "note_off"]


def _render (
	script: str,
	chart: str,
	ticks: int,
	style: ScriptStyle = ScriptStyle.BALLAD_PICK,
	grid: TimingGrid = TimingGrid.SIXTEENTHS,
	tempo: typing.Optional[int] = None,
) -> list[keystrum.output.NoteEvent]:

	"""Render on a fresh virtual clock, controller and output."""

	scheduler = keystrum.scheduler.VirtualScheduler()
	output = keystrum.output.RecordingNoteOutput(clock=scheduler.now)
	controller = keystrum.controller.LiveController(output, scheduler=scheduler)
	controller.set_armed(True)

	if tempo is not None:
		controller.set_tempo(tempo)

	performer = keystrum.performer.TextPerformer(controller)
	performer.set_script_style(style)
	performer.set_grid(grid)
	performer.set_chord_chart_text(chart)
	performer.set_script_text(script)
	performer.render(ticks)

	return output.events


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

def test_render_is_deterministic () -> None:

	"""Same text, chart and settings give the same events, note for note and tick for tick."""

	script = "trust i seek and i find in you"

	first = _render(script, "Em", 36, grid=TimingGrid.TRIPLETS, tempo=76)
	second = _render(script, "Em", 36, grid=TimingGrid.TRIPLETS, tempo=76)

	assert first
	assert first == second
	assert first[0].kind == "note_on"
	assert first[0].time == 0.0


def test_render_twice_on_one_performer_repeats (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput) -> None:

	"""A second render starts again from the top with fresh dynamics."""

	performer.set_chord_chart_text("Em D C G")
	performer.set_script_text("Seek, and you shall find.")

	performer.render(40)
	count = len(output.events)
	performer.render(40)

	first = output.events[:count]
	second = output.events[count:]

	assert [(event.kind, event.note, event.velocity) for event in first] == [(event.kind, event.note, event.velocity) for event in second]

	offset = second[0].time - first[0].time

	assert [event.time + offset for event in first] == pytest.approx([event.time for event in second])


def test_every_note_is_released (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput) -> None:

	performer.set_script_style(ScriptStyle.ROCK_STRUM)
	performer.set_chord_chart_text("G D/F# Em C")
	performer.set_script_text("Rock and roll, all night!")
	performer.render(64)

	ons = sorted(event.note for event in output.events if event.kind == "note_on")
	offs = sorted(event.note for event in output.events if event.kind == "note_off")

	assert set(ons) == set(offs)
	assert performer.controller.sounding_notes == set()


def test_render_argument_checks (output: keystrum.output.RecordingNoteOutput, performer: keystrum.performer.TextPerformer) -> None:

	with pytest.raises(ValueError):
		performer.render(-1)

	live = keystrum.performer.TextPerformer(keystrum.controller.LiveController(output))

	with pytest.raises(TypeError):
		live.render(4)


def test_render_turns_grid_on (performer: keystrum.performer.TextPerformer) -> None:

	performer.set_grid(TimingGrid.OFF)
	performer.render(0)

	assert performer.grid == TimingGrid.SIXTEENTHS


def test_tick_events (performer: keystrum.performer.TextPerformer) -> None:

	ticks: list[int] = []
	performer.events.on(keystrum.performer.TICK, ticks.append)

	performer.set_chord_chart_text("Em")
	performer.set_script_text("abc")
	performer.render(3)

	assert ticks == [1, 2, 3]


# ---------------------------------------------------------------------------
# Script characters
# ---------------------------------------------------------------------------

def test_rests_play_nothing () -> None:

	assert _render(",,,,", "Em", 4) == []


def test_no_chart_still_advances (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput) -> None:

	performer.set_script_text("abc")
	performer.render(2)

	assert output.events == []
	assert performer.script_index == 2
	assert performer.tick_index == 2


def test_space_rehits_bass_every_bar () -> None:

	events = _render(" ", "Em", 1)

	assert [(event.kind, event.note, event.velocity) for event in events] == [("note_on", 40, 90), ("note_off", 40, 0)]
	assert events[1].time == pytest.approx(0.45)


def test_space_advances_chord_on_spaces (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput) -> None:

	"""Each space plays the current chord (bass, then the upper tones) and moves on."""

	performer.set_advance_mode(ChordAdvanceMode.ON_SPACES)
	performer.set_chord_chart_text("Em D")
	performer.set_script_text(" ")
	performer.render(2)

	assert _ons(output) == [40, 52, 55, 59, 50, 62, 66, 69]
	assert performer.chart_index == 0


def test_new_bar_brings_new_chord_bass () -> None:

	"""Crossing into the next bar changes chord and sounds its bass."""

	events = _render(",,,,,,,,,", "Em D", 9, grid=TimingGrid.EIGHTHS)

	assert [event.note for event in events if event.kind == "note_on"] == [50]
	assert events[0].time == pytest.approx(8 * 60.0 / 140 / 2)


def test_resolve_and_accent () -> None:

	"""'.' plays the tonic an octave above the base; '!' an accented chord."""

	resolve = _render(".", "Em", 1)
	accent = _render("!", "Em", 1)

	assert [event.note for event in resolve if event.kind == "note_on"] == [64]
	assert [(event.note, event.velocity) for event in accent if event.kind == "note_on"] == [(40, 114), (52, 114), (55, 114), (59, 114)]


def test_ignored_punctuation () -> None:

	assert _render("?;:|", "Em", 4) == []


def test_hold_stretches_note () -> None:

	"""A note followed by two holds lasts three ticks (slightly stretched)."""

	held = _render("a--", "Em", 3)
	plain = _render("a,,", "Em", 3)

	assert [event.note for event in held if event.kind == "note_on"] == [47]
	assert held[-1].time == pytest.approx(SIXTEENTH_AT_140 * 3 * 1.05)
	assert plain[-1].time == pytest.approx(0.30)


def test_hold_floor_stops_at_bar_line (performer: keystrum.performer.TextPerformer) -> None:

	performer.set_chord_chart_text("Em")
	assert performer._hold_floor(3, 7, 8, 0.1) == pytest.approx(0.42)

	performer.set_chord_chart_text("Em D")
	assert performer._hold_floor(3, 7, 8, 0.1) == pytest.approx(0.105)
	assert performer._hold_floor(0, 0, 8, 0.1) == 0.0


def test_uppercase_is_accented () -> None:

	events = _render("T", "Em", 1)

	assert [(event.note, event.velocity) for event in events if event.kind == "note_on"] == [(40, 114)]


# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------

def test_ballad_pick_walks_registers_with_voice_leading () -> None:

	"""Bass, then low, mid and high picks, each led to the nearest pool note."""

	events = _render("tttt", "Em", 4)

	assert [event.note for event in events if event.kind == "note_on"] == [40, 55, 59, 64]


def test_ballad_pick_vowel_on_bass_step_plays_fifth () -> None:

	events = _render("a", "Em", 1)

	assert [event.note for event in events if event.kind == "note_on"] == [47]


def test_rock_strum_alternates_low_and_high_strings () -> None:

	events = _render("tt", "Em", 2, style=ScriptStyle.ROCK_STRUM)

	assert [event.note for event in events if event.kind == "note_on"] == [40, 52, 55, 52, 55, 59]


def test_rock_strum_vowel_picks_single_note () -> None:

	events = _render("a", "Em", 1, style=ScriptStyle.ROCK_STRUM)

	assert [event.note for event in events if event.kind == "note_on"] == [64]


def test_power_chug_hits_lowest_three () -> None:

	events = _render("t", "Em", 1, style=ScriptStyle.POWER_CHUG)

	assert [event.note for event in events if event.kind == "note_on"] == [40, 52, 55]


def test_power_chug_strums_power_chords (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput) -> None:

	performer.controller.set_power_chords(True)
	performer.set_script_style(ScriptStyle.POWER_CHUG)
	performer.set_chord_chart_text("E5")
	performer.set_script_text("t")
	performer.render(1)

	ons = [(event.note, event.time) for event in output.events if event.kind == "note_on"]

	assert ons == [(40, 0.0), (47, pytest.approx(0.012)), (52, pytest.approx(0.024))]


def test_synth_pulse_bass_then_octave_pulse () -> None:

	events = _render("tt", "Em", 2, style=ScriptStyle.SYNTH_PULSE)

	assert [event.note for event in events if event.kind == "note_on"] == [40, 71]


# ---------------------------------------------------------------------------
# Linear input
# ---------------------------------------------------------------------------

def _linear (performer: keystrum.performer.TextPerformer, script: str, chart: str = "Em D") -> None:

	performer.set_input_mode(ScriptInputMode.LINEAR)
	performer.set_chord_chart_text(chart)
	performer.set_script_text(script)


def test_linear_next_chord (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput) -> None:

	_linear(performer, "/")
	performer.render(1)

	assert _ons(output) == [50]
	assert performer.chart_index == 1


@pytest.mark.parametrize("script, expected", [
	("1", [40]),
	("2", [52]),
	("3", [55]),
	("4", [59]),
	("5", [40, 52, 55, 59]),
	("*", [40, 52, 55, 59]),
])
def test_linear_chord_tones (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput, script: str, expected: list[int]) -> None:

	_linear(performer, script)
	performer.render(1)

	assert _ons(output) == expected


def test_linear_arpeggios (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput) -> None:

	"""The down roll starts while the up roll still rings; only released notes strike again."""

	_linear(performer, "^v")
	performer.render(2)

	assert _ons(output) == [40, 52, 55, 59, 40]

	times = [event.time for event in output.events if event.kind == "note_on"][:4]
	step = SIXTEENTH_AT_140 * 0.22

	assert times == pytest.approx([0.0, step, 2 * step, 3 * step])


def test_linear_underscore_holds (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput) -> None:

	_linear(performer, "2__", chart="Em")
	performer.render(3)

	assert _ons(output) == [52]
	assert output.events[-1].time == pytest.approx(SIXTEENTH_AT_140 * 3 * 1.05)


def test_stop_cancels_pending_arpeggio_steps (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput, scheduler: keystrum.scheduler.VirtualScheduler) -> None:

	_linear(performer, "^")
	performer.play_tick(SIXTEENTH_AT_140)
	performer.stop_playback()
	scheduler.run_all()

	assert _ons(output) == [40]


def test_restart_rewinds_and_drops_pending_arpeggio_steps (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput, scheduler: keystrum.scheduler.VirtualScheduler) -> None:

	"""Restart goes back to the first tick, character and chord; steps scheduled before it never sound."""

	performer.set_advance_mode(ChordAdvanceMode.ON_SPACES)
	_linear(performer, "/^")
	performer.play_tick(SIXTEENTH_AT_140)
	scheduler.advance(SIXTEENTH_AT_140)
	performer.play_tick(SIXTEENTH_AT_140)

	assert performer.chart_index == 1
	assert performer.script_index == 0
	assert performer.tick_index == 2

	performer.restart()
	scheduler.run_all()

	# The D bass from "/" is still ringing when the roll starts on it, so only the bass sounds.
	assert _ons(output) == [50]
	assert _offs(output) == [50]
	assert performer.chart_index == 0
	assert performer.script_index == 0
	assert performer.tick_index == 0
	assert performer.virtual_timestamp == 0.0


def test_disarmed_performer_is_silent (performer: keystrum.performer.TextPerformer, output: keystrum.output.RecordingNoteOutput) -> None:

	performer.controller.set_armed(False)
	performer.set_chord_chart_text("Em")
	performer.set_script_text("tttt")
	performer.render(4)

	assert output.events == []


# ---------------------------------------------------------------------------
# Text state
# ---------------------------------------------------------------------------

def test_chart_and_script_positions_are_kept_when_they_fit (performer: keystrum.performer.TextPerformer) -> None:

	performer.set_chord_chart_text("Em D C G")
	performer.chart_index = 3
	performer.set_chord_chart_text("Em D")

	assert performer.chart_index == 1

	performer.set_script_text("hello")
	performer.move_script_cursor(3)

	assert performer.script_index == 2
	assert performer.highlighted_range == (2, 3)

	performer.set_script_text("hi")

	assert performer.script_index == 1


def test_highlight_in_chords_mode (performer: keystrum.performer.TextPerformer) -> None:

	performer.set_chord_chart_text("Em | D")
	performer.set_mode(Mode.CHORDS)
	performer.chart_index = 1

	assert performer.highlighted_range == (5, 6)
	assert performer.current_chord is not None
	assert performer.current_chord.raw == "D"


def test_status_text (performer: keystrum.performer.TextPerformer) -> None:

	assert "Chords: (none)" in performer.status_text

	performer.set_chord_chart_text("Em D")

	assert "Chord 1/2: Em   Next: D" in performer.status_text
	assert "Grid: 16ths@140" in performer.status_text


def test_chord_chart_from_text () -> None:

	assert keystrum.performer.TextPerformer.chord_chart_from_text("Intro: Am | F C G") == "Am | F C G"


def test_tick_interval_follows_grid_and_tempo (performer: keystrum.performer.TextPerformer) -> None:

	performer.controller.set_tempo(120)
	performer.set_grid(TimingGrid.TRIPLETS)

	assert performer.tick_interval() == pytest.approx(60.0 / 120 / 3)

	performer.set_grid(TimingGrid.OFF)

	assert performer.tick_interval() == pytest.approx(60.0 / 120 / 4)


# ---------------------------------------------------------------------------
# Live playback
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_live_playback_follows_arming () -> None:

	"""Playback runs while armed in script mode and stops when disarmed."""

	output = keystrum.output.RecordingNoteOutput()
	controller = keystrum.controller.LiveController(output)
	controller.set_tempo(240)

	performer = keystrum.performer.TextPerformer(controller)
	performer.set_chord_chart_text("Em")
	performer.set_script_text("tttt")
	controller.subscribe(performer.sync_playback)

	controller.set_armed(True)
	await asyncio.sleep(0.2)

	assert performer.is_playing
	assert performer.tick_index >= 2
	assert _ons(output)

	controller.set_armed(False)
	await asyncio.sleep(0)

	assert not performer.is_playing

	ticks = performer.tick_index
	await asyncio.sleep(0.15)

	assert performer.tick_index == ticks


@pytest.mark.asyncio
async def test_leaving_script_mode_stops_playback () -> None:

	controller = keystrum.controller.LiveController(keystrum.output.RecordingNoteOutput())
	performer = keystrum.performer.TextPerformer(controller)
	performer.set_chord_chart_text("Em")
	performer.set_script_text("abc")

	controller.set_armed(True)
	performer.sync_playback()

	assert performer.is_playing

	performer.set_mode(Mode.CHORDS)

	assert not performer.is_playing


@pytest.mark.asyncio
async def test_restart_keeps_live_playback_running () -> None:

	"""Restarting mid-playback rewinds to the top and the tick loop carries on."""

	controller = keystrum.controller.LiveController(keystrum.output.RecordingNoteOutput())
	controller.set_tempo(240)

	performer = keystrum.performer.TextPerformer(controller)
	performer.set_chord_chart_text("Em")
	performer.set_script_text("abcd")

	controller.set_armed(True)
	performer.sync_playback()
	await asyncio.sleep(0.2)

	assert performer.is_playing
	assert performer.tick_index >= 2

	performer.restart()

	assert performer.tick_index == 0

	await asyncio.sleep(0.2)

	assert performer.is_playing
	assert performer.tick_index >= 2

	performer.stop_playback()


@pytest.mark.asyncio
async def test_disarming_stops_playback_immediately () -> None:

	"""Disarm cancels the tick loop before set_armed returns, without waiting for a loop turn."""

	controller = keystrum.controller.LiveController(keystrum.output.RecordingNoteOutput())
	performer = keystrum.performer.TextPerformer(controller)
	performer.set_chord_chart_text("Em")
	performer.set_script_text("abc")

	controller.set_armed(True)
	performer.sync_playback()

	assert performer.is_playing

	controller.set_armed(False)

	assert not performer.is_playing
	assert performer.task is None
