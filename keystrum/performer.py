"""Text-to-music performance.

`TextPerformer` reads a script (any typed text) one character per grid tick
and plays it over a chord chart through a `LiveController`. Typing speed
doesn't matter: the grid sets the pace, so the same text, chart and settings
always produce the same notes.

Script syntax:

- whitespace: a word boundary. In *every bar* chord mode it re-hits the
  bass; in *on spaces* mode it plays the chord and moves to the next one.
- ``,`` rest, ``-`` hold (``_`` too in linear input). A note followed by
  holds lasts until the run of holds ends.
- ``.`` resolve to the tonic, ``!`` accented chord hit.
- ``? ; : |`` are ignored.
- anything else is handed to the active style (Ballad Pick, Rock Strum,
  Power Chug, Synth Pulse). Uppercase letters are accented; the letter
  itself picks which chord tone sounds.

Linear input adds single-character commands: ``/`` next chord, ``*`` chord
hit, ``^``/``v`` arpeggio up/down, ``1`` bass, ``2``-``4`` chord tones,
``5`` chord without bass.

Live playback runs an asyncio task with drift-corrected tick deadlines.
`render()` runs the same ticks synchronously on a `VirtualScheduler` and is
what tests and the ``render`` CLI mode use.

Example:
	```python
	scheduler = VirtualScheduler()
	controller = LiveController(output, scheduler=scheduler)
	controller.set_armed(True)

	performer = TextPerformer(controller)
	performer.set_chord_chart_text("Em D C G")
	performer.set_script_text("trust i seek and i find in you")
	performer.render(ticks=48)
	```
"""

import asyncio
import enum
import logging
import typing

import keystrum.chart
import keystrum.chords
import keystrum.constants
import keystrum.controller
import keystrum.event_emitter
import keystrum.scheduler
import keystrum.text_rhythm


logger = logging.getLogger(__name__)

TICK = "tick"
STATE_CHANGED = "state_changed"

BOUNDARY_PUNCTUATION = frozenset(",?;:|")
VOWELS = frozenset("aeiou")


class Mode (str, enum.Enum):

	"""Which text the performer is showing and playing from."""

	SCRIPT = "script"
	CHORDS = "chords"


class ScriptStyle (str, enum.Enum):

	BALLAD_PICK = "Ballad Pick"
	ROCK_STRUM = "Rock Strum"
	POWER_CHUG = "Power Chug"
	SYNTH_PULSE = "Synth Pulse"


class ScriptInputMode (str, enum.Enum):

	SENTENCE = "Sentence"
	LINEAR = "Linear"


class ChordPlaybackStyle (str, enum.Enum):

	"""How chord hits are voiced: all together, or bass then upper tones."""

	STABS = "Stabs"
	TWO_HAND = "Two-hand"


class ChordAdvanceMode (str, enum.Enum):

	EVERY_BAR = "Every bar"
	ON_SPACES = "On spaces"


class TimingGrid (str, enum.Enum):

	"""Tick resolution. ``OFF`` becomes sixteenths once playback starts."""

	OFF = "Off"
	EIGHTHS = "8ths"
	SIXTEENTHS = "16ths"
	TRIPLETS = "Triplets"

	@property
	def ticks_per_bar (self) -> int:

		return _TICKS_PER_BAR[self]

	def interval (self, bpm: float) -> typing.Optional[float]:

		"""Seconds per tick at *bpm*, or ``None`` when the grid is off."""

		if self == TimingGrid.OFF:
			return None

		quarter = 60.0 / bpm

		return quarter / _DIVISIONS_PER_QUARTER[self]


_TICKS_PER_BAR: typing.Dict[TimingGrid, int] = {
	TimingGrid.OFF: 16,
	TimingGrid.EIGHTHS: 8,
	TimingGrid.SIXTEENTHS: 16,
	TimingGrid.TRIPLETS: 12,
}

_DIVISIONS_PER_QUARTER: typing.Dict[TimingGrid, int] = {
	TimingGrid.EIGHTHS: 2,
	TimingGrid.SIXTEENTHS: 4,
	TimingGrid.TRIPLETS: 3,
}


class BalladStep (enum.Enum):

	BASS = "bass"
	LOW = "low"
	MID = "mid"
	HIGH = "high"


_B, _L, _M, _H = BalladStep.BASS, BalladStep.LOW, BalladStep.MID, BalladStep.HIGH

BALLAD_PATTERNS: typing.Dict[int, typing.List[BalladStep]] = {
	12: [_B, _L, _M, _H, _M, _L, _B, _L, _M, _H, _M, _L],
	16: [_B, _L, _M, _H],
}

BALLAD_FALLBACK_PATTERN: typing.List[BalladStep] = [_B, _L, _H, _L]


def ballad_step (tick_in_bar: int, bar_length: int) -> BalladStep:

	"""Which register a Ballad Pick tick plays: bass, or the low/mid/high melodic pool."""

	pattern = BALLAD_PATTERNS.get(bar_length, BALLAD_FALLBACK_PATTERN)
	return pattern[tick_in_bar % len(pattern)]


def character_index (character: str) -> int:

	"""Stable index for a character: ``a``-``z`` → 0-25, ``0``-``9`` → 26-35, other ASCII → its code, non-ASCII → 0."""

	lower = character.lower()

	if not lower or not lower[0].isascii():
		return 0

	value = ord(lower[0])

	if ord("a") <= value <= ord("z"):
		return value - ord("a")

	if ord("0") <= value <= ord("9"):
		return 26 + value - ord("0")

	return value


def is_vowel (character: str) -> bool:

	return character.lower() in VOWELS


def is_accent (character: str) -> bool:

	"""Uppercase ASCII letters are accented."""

	return len(character) == 1 and "A" <= character <= "Z"


def apply_hold (base_duration: float, hold_floor: float) -> float:

	"""Stretch *base_duration* to cover a hold run, if there is one."""

	if hold_floor <= 0:
		return base_duration

	return max(base_duration, hold_floor)


def _clamp (value: float, low: float, high: float) -> float:

	return min(high, max(low, value))


class _TickVelocity:

	"""Per-tick velocity, computed from the controller's dynamics on first use.

	A tick that plays nothing never touches the controller, so rests and
	holds don't count as onsets.
	"""

	def __init__ (self, controller: keystrum.controller.LiveController, timestamp: float) -> None:

		self._controller = controller
		self._timestamp = timestamp
		self._base: typing.Optional[int] = None

	def __call__ (self, accent: bool = False) -> int:

		if self._base is None:
			self._base = self._controller.next_velocity(self._timestamp)

		if accent:
			return min(keystrum.constants.MAX_VELOCITY, self._base + keystrum.constants.ACCENT_BOOST)

		return min(keystrum.constants.MAX_VELOCITY, self._base)


class TextPerformer:

	"""Plays script text over a chord chart, one character per grid tick.

	All sound goes through the controller, so arming, panic, instrument and
	strum settings apply to scripted playback exactly as to live keys.
	"""

	def __init__ (self, controller: keystrum.controller.LiveController) -> None:

		self.controller = controller
		self.events = keystrum.event_emitter.EventEmitter()

		self.mode = Mode.SCRIPT
		self.script_style = ScriptStyle.BALLAD_PICK
		self.input_mode = ScriptInputMode.SENTENCE
		self.chord_style = ChordPlaybackStyle.TWO_HAND
		self.grid = TimingGrid.SIXTEENTHS
		self.advance_mode = ChordAdvanceMode.EVERY_BAR

		self.chord_chart_text = ""
		self.script_text = ""
		self.chart: typing.List[keystrum.chart.ChartToken] = []

		self.chart_index = 0
		self.script_index = 0
		self.tick_index = 0
		self.virtual_timestamp = 0.0

		self._last_melody_note: typing.Optional[int] = None
		self._last_melody_chord_index: typing.Optional[int] = None

		self.generation = keystrum.scheduler.Generation()
		self._loop_generation = keystrum.scheduler.Generation()
		self.task: typing.Optional[asyncio.Task] = None

		self._styles: typing.Dict[ScriptStyle, typing.Callable[..., None]] = {
			ScriptStyle.BALLAD_PICK: self._play_ballad_pick,
			ScriptStyle.ROCK_STRUM: self._play_rock_strum,
			ScriptStyle.POWER_CHUG: self._play_power_chug,
			ScriptStyle.SYNTH_PULSE: self._play_synth_pulse,
		}

		controller.events.on(keystrum.controller.DISARMED, self.stop_playback)

	# ------------------------------------------------------------------
	# Observation

	def subscribe (self, callback: typing.Callable[[], typing.Any]) -> typing.Callable[[], None]:

		"""Call *callback* (coalesced) after every tick and settings change."""

		return self.events.subscribe(STATE_CHANGED, callback)

	def _changed (self) -> None:

		self.events.emit_soon(STATE_CHANGED)

	@property
	def is_playing (self) -> bool:

		return self.task is not None and not self.task.done()

	@property
	def highlighted_range (self) -> typing.Optional[typing.Tuple[int, int]]:

		"""``(start, end)`` of what is playing: the script character, or the chart token in chords mode."""

		if self.mode == Mode.CHORDS:
			if not self.chart:
				return None

			return self.chart[self.chart_index].range

		if not self.script_text:
			return None

		index = min(self.script_index, len(self.script_text) - 1)

		return index, index + 1

	@property
	def current_chord (self) -> typing.Optional[keystrum.chart.ChartToken]:

		if not self.chart:
			return None

		return self.chart[self.chart_index]

	@property
	def status_text (self) -> str:

		parts = [
			f"Input: {self.input_mode.value}",
			f"Style: {self.script_style.value}",
			f"Grid: {self.grid.value}@{self.controller.tempo_bpm}",
			f"Chord: {self.advance_mode.value}",
		]

		if not self.chart:
			parts.append("Chords: (none)")
		else:
			current = self.chart[self.chart_index].raw
			upcoming = self.chart[(self.chart_index + 1) % len(self.chart)].raw
			parts.append(f"Chord {self.chart_index + 1}/{len(self.chart)}: {current}   Next: {upcoming}")

		return "   ".join(parts)

	# ------------------------------------------------------------------
	# Settings

	def set_chord_chart_text (self, text: str) -> None:

		"""Replace the chart. The current chord index is kept when it still fits."""

		self.chord_chart_text = text
		self.chart = keystrum.chart.parse_chart(text)
		self.chart_index = min(self.chart_index, len(self.chart) - 1) if self.chart else 0
		logger.info(f"Chord chart: {' '.join(token.raw for token in self.chart) or '(none)'}")
		self._changed()

	def set_script_text (self, text: str) -> None:

		"""Replace the script. The read position is kept when it still fits."""

		self.script_text = text
		self.script_index = min(self.script_index, len(text) - 1) if text else 0
		self._changed()

	def move_script_cursor (self, location: int) -> None:

		"""Continue reading from the character just before text *location* (e.g. the caret)."""

		if not self.script_text:
			self.script_index = 0
		else:
			self.script_index = min(max(0, location - 1), len(self.script_text) - 1)

		self._changed()

	def set_mode (self, mode: Mode) -> None:

		"""Switch between script and chords. Leaving script mode stops playback; `sync_playback()` starts it."""

		self.mode = mode

		if mode != Mode.SCRIPT:
			self.stop_playback()

		self._changed()

	def set_script_style (self, style: ScriptStyle) -> None:

		self.script_style = style
		logger.info(f"Script style: {style.value}")
		self._changed()

	def set_input_mode (self, input_mode: ScriptInputMode) -> None:

		self.input_mode = input_mode
		self._changed()

	def set_chord_style (self, chord_style: ChordPlaybackStyle) -> None:

		self.chord_style = chord_style
		self._changed()

	def set_grid (self, grid: TimingGrid) -> None:

		"""Change the tick resolution; a running loop picks it up on the next tick."""

		self.grid = grid
		self._changed()

	def set_advance_mode (self, advance_mode: ChordAdvanceMode) -> None:

		self.advance_mode = advance_mode
		self._changed()

	@staticmethod
	def chord_chart_from_text (text: str) -> str:

		"""Pull a clean chart (chords and bar lines only) out of arbitrary text."""

		return keystrum.chart.chord_chart_from_text(text)

	# ------------------------------------------------------------------
	# Playback control

	def restart (self) -> None:

		"""Rewind to the first tick, character and chord, and cancel pending arpeggio steps."""

		self.script_index = 0
		self.tick_index = 0
		self.chart_index = 0
		self.virtual_timestamp = 0.0
		self._last_melody_note = None
		self._last_melody_chord_index = None
		self.generation.bump()
		self._changed()

	def sync_playback (self) -> None:

		"""Play while the controller is armed and the mode is script; stop otherwise."""

		self.update_playback(self.controller.armed and self.mode == Mode.SCRIPT)

	def update_playback (self, should_play: bool) -> None:

		if should_play:
			self._start_playback_if_needed()
		else:
			self.stop_playback()

	def stop_playback (self) -> None:

		"""Cancel the tick loop and any pending arpeggio steps."""

		self.generation.bump()
		self._loop_generation.bump()

		if self.task is not None:
			self.task.cancel()
			self.task = None
			logger.info("Script playback stopped")

		self._changed()

	def _prepare_playback (self) -> None:

		if self.grid == TimingGrid.OFF:
			self.grid = TimingGrid.SIXTEENTHS

		self.restart()

	def _start_playback_if_needed (self) -> None:

		if self.is_playing:
			return

		if not self.controller.armed:
			return

		self._prepare_playback()
		self.task = asyncio.create_task(self._run_loop(self._loop_generation.token()))
		logger.info("Script playback started")

	def tick_interval (self) -> float:

		"""Seconds per tick for the current tempo (never below 40 BPM) and grid."""

		bpm = max(keystrum.constants.MIN_TEMPO_BPM, self.controller.tempo_bpm)
		interval = self.grid.interval(bpm)

		return interval if interval is not None else 60.0 / bpm / 4.0

	async def _run_loop (self, token: keystrum.scheduler.GenerationToken) -> None:

		"""Play one tick per grid step until stopped or disarmed; a restart rewinds it in place.

		Tempo and grid are re-read every tick. Deadlines advance from the
		previous deadline rather than from "now", so the grid doesn't drift.
		"""

		loop = asyncio.get_running_loop()
		next_tick_time = loop.time()

		while token.valid and self.controller.armed:

			interval = self.tick_interval()
			self.play_tick(interval)
			self.events.emit(TICK, self.tick_index)

			next_tick_time += interval
			sleep_time = next_tick_time - loop.time()

			await asyncio.sleep(max(0.0, sleep_time))

		if self.task is asyncio.current_task():
			self.task = None

	def render (self, ticks: int) -> None:

		"""Play *ticks* ticks from the top as fast as possible on a virtual clock.

		The controller must use a `VirtualScheduler`. Every release due
		within the rendered span, and the tail of the last notes, has fired
		by the time this returns, so identical settings produce identical
		output.

		Raises:
			ValueError: If *ticks* is negative.
			TypeError: If the controller is not on a `VirtualScheduler`.
		"""

		if ticks < 0:
			raise ValueError("ticks must be zero or more")

		scheduler = self.controller.scheduler

		if not isinstance(scheduler, keystrum.scheduler.VirtualScheduler):
			raise TypeError("render() needs a controller running on a VirtualScheduler")

		self._prepare_playback()
		self.controller.reset_dynamics()

		for _ in range(ticks):
			interval = self.tick_interval()
			self.play_tick(interval)
			self.events.emit(TICK, self.tick_index)
			scheduler.advance(interval)

		scheduler.run_all()

	# ------------------------------------------------------------------
	# The tick

	def play_tick (self, interval: float) -> None:

		"""Play the current script character, then advance tick, clock and character.

		The advance happens however the tick ends, including when there is
		no script or no chart.
		"""

		velocity = _TickVelocity(self.controller, self.virtual_timestamp)

		try:
			self._play_tick(interval, velocity)
		finally:
			self.tick_index += 1
			self.virtual_timestamp += interval

			if self.script_text:
				self.script_index = (self.script_index + 1) % len(self.script_text)

			self._changed()

	def _play_tick (self, interval: float, velocity: _TickVelocity) -> None:

		if not self.script_text or not self.chart:
			return

		bar_length = max(1, self.grid.ticks_per_bar)
		tick_in_bar = self.tick_index % bar_length

		previous_chord_index = self.chart_index

		if self.advance_mode == ChordAdvanceMode.EVERY_BAR:
			self.chart_index = (self.tick_index // bar_length) % len(self.chart)

		chord = self.chart[self.chart_index].chord

		if self.chart_index != previous_chord_index:
			self._forget_melody()
			self._play_bass_note(chord, velocity())

		index = min(self.script_index, len(self.script_text) - 1)
		character = self.script_text[index]

		if character.isspace():
			if self.advance_mode == ChordAdvanceMode.EVERY_BAR:
				self._play_bass_note(chord, velocity())
			else:
				self._play_chord(chord, velocity(), include_bass=True)
				self.chart_index = (self.chart_index + 1) % len(self.chart)
			return

		if character == ",":
			return

		hold_characters = self._hold_characters()

		if character in hold_characters:
			return

		hold_ticks = keystrum.text_rhythm.hold_run_length(index, self.script_text, hold_characters)
		hold_floor = self._hold_floor(hold_ticks, tick_in_bar, bar_length, interval)

		if self.input_mode == ScriptInputMode.LINEAR:
			if self._play_linear_command(character, chord, velocity, interval, hold_floor):
				return

		if character == ".":
			self._play_resolve(velocity(), hold_floor)
			return

		if character == "!":
			self._play_chord(chord, velocity(accent=True), include_bass=True, hold_floor=hold_floor)
			return

		if character in BOUNDARY_PUNCTUATION:
			return

		self._styles[self.script_style](
			character,
			chord,
			tick_in_bar,
			bar_length,
			velocity(accent=is_accent(character)),
			interval,
			hold_floor,
		)

	def _hold_characters (self) -> typing.FrozenSet[str]:

		if self.input_mode == ScriptInputMode.LINEAR:
			return frozenset("-_")

		return keystrum.text_rhythm.DEFAULT_HOLD_CHARACTERS

	def _hold_floor (self, hold_ticks: int, tick_in_bar: int, bar_length: int, interval: float) -> float:

		"""Minimum duration for a note followed by *hold_ticks* holds (0 when there are none)."""

		if hold_ticks <= 0:
			return 0.0

		ticks = hold_ticks + 1

		# Don't hold across the bar line when the next bar brings a new chord.
		if self.advance_mode == ChordAdvanceMode.EVERY_BAR and len(self.chart) > 1:
			ticks = min(ticks, max(1, bar_length - tick_in_bar))

		return interval * ticks * keystrum.constants.HOLD_FLOOR_STRETCH

	def _forget_melody (self) -> None:

		self._last_melody_note = None
		self._last_melody_chord_index = None

	def _play_linear_command (
		self,
		character: str,
		chord: keystrum.chords.ChordSymbol,
		velocity: _TickVelocity,
		interval: float,
		hold_floor: float,
	) -> bool:

		"""Run a linear-input command; ``False`` if *character* isn't one."""

		if character == "/":
			self.chart_index = (self.chart_index + 1) % len(self.chart)
			self._forget_melody()
			self._play_bass_note(self.chart[self.chart_index].chord, velocity(), hold_floor)

		elif character == "*":
			self._play_chord(chord, velocity(), include_bass=True, hold_floor=hold_floor)

		elif character in ("^", "v"):
			self._play_arpeggio(chord, character == "^", velocity(), interval, hold_floor)

		elif character == ".":
			self._play_resolve(velocity(), hold_floor)

		elif character == "!":
			self._play_chord(chord, velocity(accent=True), include_bass=True, hold_floor=hold_floor)

		elif character in BOUNDARY_PUNCTUATION:
			pass

		elif character == "1":
			self._play_bass_note(chord, velocity(), hold_floor)

		elif character in ("2", "3", "4"):
			self._play_indexed_chord_tone(chord, int(character) - 1, velocity(), interval, hold_floor)

		elif character == "5":
			self._play_chord(chord, velocity(), include_bass=False, hold_floor=hold_floor)

		else:
			return False

		return True

	# ------------------------------------------------------------------
	# Building blocks

	def chord_notes (self, chord: keystrum.chords.ChordSymbol) -> typing.List[int]:

		"""Voice *chord* around the controller's current base note."""

		return keystrum.chords.chord_notes(chord, self.controller.base_midi, self.controller.root_pitch_class, self.controller.power_chords)

	def picking_notes (self, chord: keystrum.chords.ChordSymbol) -> typing.List[int]:

		return keystrum.chords.picking_notes(chord, self.controller.base_midi, self.controller.root_pitch_class, self.controller.power_chords)

	def _play_bass_note (self, chord: keystrum.chords.ChordSymbol, velocity: int, hold_floor: float = 0.0) -> None:

		notes = self.picking_notes(chord)

		if not notes:
			return

		self.controller.play_transient([notes[0]], velocity, apply_hold(0.45, hold_floor))

	def _play_chord (self, chord: keystrum.chords.ChordSymbol, velocity: int, include_bass: bool, hold_floor: float = 0.0) -> None:

		"""Chord hit in the current chord playback style."""

		notes = self.chord_notes(chord)

		if not notes:
			return

		chord_duration = apply_hold(0.30, hold_floor)
		bass_duration = apply_hold(0.55, hold_floor)

		if self.chord_style == ChordPlaybackStyle.STABS:
			self.controller.play_chord_hit(notes, velocity, chord_duration)
			return

		if include_bass:
			self.controller.play_transient([notes[0]], velocity, bass_duration)
			notes = notes[1:]

		if notes:
			self.controller.play_chord_hit(notes, velocity, chord_duration)

	def _play_resolve (self, velocity: int, hold_floor: float = 0.0) -> None:

		tonic = self.controller.base_midi + 12

		if not keystrum.constants.MIN_NOTE <= tonic <= keystrum.constants.MAX_NOTE:
			return

		self.controller.play_transient([tonic], velocity, apply_hold(0.45, hold_floor))
		self.controller.set_action("Resolve")

	def _play_indexed_chord_tone (self, chord: keystrum.chords.ChordSymbol, index: int, velocity: int, interval: float, hold_floor: float) -> None:

		notes = self.chord_notes(chord)

		if not notes:
			return

		note = notes[min(max(0, index), len(notes) - 1)]
		duration = apply_hold(_clamp(interval * 1.5, 0.12, 0.50), hold_floor)

		self.controller.play_transient([note], velocity, duration)

	def _play_arpeggio (self, chord: keystrum.chords.ChordSymbol, ascending: bool, velocity: int, interval: float, hold_floor: float) -> None:

		"""Roll up to four chord tones, 12-45 ms apart depending on tempo."""

		notes = self.chord_notes(chord)

		if len(notes) < 2:
			if notes:
				self.controller.play_transient([notes[0]], velocity, apply_hold(0.25, hold_floor))
			return

		ordered = notes[:4] if ascending else list(reversed(notes[:4]))
		step = _clamp(interval * 0.22, 0.012, 0.045)
		duration = apply_hold(_clamp(interval * 1.4, 0.12, 0.50), hold_floor)
		token = self.generation.token()

		for index, note in enumerate(ordered):
			if index == 0:
				self.controller.play_transient([note], velocity, duration)
				continue

			self.controller.scheduler.call_later(
				index * step,
				lambda note=note: self.controller.play_transient([note], velocity, duration),
				token,
			)

	def _pick_from_pool (self, character: str, chord: keystrum.chords.ChordSymbol, step: BalladStep) -> typing.Optional[typing.Tuple[int, typing.List[int]]]:

		"""Choose a melodic note from the low, mid or high pool. Returns ``(note, pool)``."""

		notes = self.picking_notes(chord)

		if not notes:
			return None

		if len(notes) < 2:
			return notes[0], [notes[0]]

		melodic = notes[1:]

		if step == BalladStep.LOW:
			pool = melodic[:max(1, len(melodic) // 2)]
		elif step == BalladStep.MID:
			third = max(1, len(melodic) // 3)
			pool = melodic[third:min(len(melodic), third * 2)]
		else:
			pool = melodic[-max(1, len(melodic) // 2):]

		if not pool:
			return None

		return pool[character_index(character) % len(pool)], pool

	def _voice_led (self, candidate: int, pool: typing.List[int], chord_index: int) -> int:

		"""Move *candidate* to the pool note nearest the previous melody note.

		The first note of a chord, and any move that would still jump more
		than 7 semitones, keep the candidate as picked.
		"""

		if not pool:
			return candidate

		if self._last_melody_chord_index != chord_index or self._last_melody_note is None:
			self._last_melody_chord_index = chord_index
			self._last_melody_note = candidate
			return candidate

		last = self._last_melody_note
		best = candidate
		best_distance = abs(candidate - last)

		for note in pool:
			distance = abs(note - last)

			if distance < best_distance:
				best = note
				best_distance = distance

		if best_distance > 7:
			best = candidate

		self._last_melody_note = best
		return best

	def _pick_note (self, character: str, chord: keystrum.chords.ChordSymbol) -> typing.Optional[int]:

		"""Vowels pick from the upper half of the melodic pool, other characters from the lower half."""

		notes = self.picking_notes(chord)

		if len(notes) < 2:
			return notes[0] if notes else None

		melodic = notes[1:]

		if is_vowel(character):
			pool = melodic[-max(1, len(melodic) // 2):]
		else:
			pool = melodic[:max(1, len(melodic) - len(melodic) // 2)]

		return pool[character_index(character) % len(pool)]

	# ------------------------------------------------------------------
	# Styles

	def _play_ballad_pick (self, character: str, chord: keystrum.chords.ChordSymbol, tick_in_bar: int, bar_length: int, velocity: int, interval: float, hold_floor: float) -> None:

		step = ballad_step(tick_in_bar, bar_length)

		if step == BalladStep.BASS:
			notes = self.chord_notes(chord)

			if not notes:
				return

			note = notes[0] + 7 if is_vowel(character) and notes[0] <= 120 else notes[0]
			duration = apply_hold(_clamp(interval * 2.4, 0.30, 0.70), hold_floor)
			self.controller.play_transient([note], velocity, duration)
			return

		picked = self._pick_from_pool(character, chord, step)

		if picked is None:
			return

		note = self._voice_led(picked[0], picked[1], self.chart_index)
		duration = apply_hold(_clamp(interval * 2.2, 0.20, 0.70), hold_floor)
		self.controller.play_transient([note], velocity, duration)

	def _play_rock_strum (self, character: str, chord: keystrum.chords.ChordSymbol, tick_in_bar: int, bar_length: int, velocity: int, interval: float, hold_floor: float) -> None:

		if is_vowel(character):
			note = self._pick_note(character, chord)

			if note is None:
				return

			duration = apply_hold(_clamp(interval * 1.4, 0.10, 0.45), hold_floor)
			self.controller.play_transient([note], velocity, duration)
			return

		notes = self.chord_notes(chord)

		if not notes:
			return

		count = min(3, len(notes))
		# Downstrokes on even ticks take the low strings, upstrokes the high ones.
		strum = notes[:count] if tick_in_bar % 2 == 0 else notes[-count:]
		duration = apply_hold(max(0.10, interval * 0.85), hold_floor)
		self.controller.play_chord_hit(strum, velocity, duration)

	def _play_power_chug (self, character: str, chord: keystrum.chords.ChordSymbol, tick_in_bar: int, bar_length: int, velocity: int, interval: float, hold_floor: float) -> None:

		notes = self.chord_notes(chord)

		if not notes:
			return

		duration = apply_hold(max(0.06, interval * 0.65), hold_floor)
		self.controller.play_chord_hit(notes[:3], velocity, duration)

	def _play_synth_pulse (self, character: str, chord: keystrum.chords.ChordSymbol, tick_in_bar: int, bar_length: int, velocity: int, interval: float, hold_floor: float) -> None:

		notes = self.picking_notes(chord)

		if len(notes) < 2:
			return

		bass, melodic = notes[0], notes[1:]

		if tick_in_bar % max(4, bar_length // 4) == 0:
			duration = apply_hold(_clamp(interval * 1.2, 0.10, 0.35), hold_floor)
			self.controller.play_transient([bass], velocity, duration)
			return

		note = melodic[(character_index(character) + tick_in_bar) % len(melodic)]

		if tick_in_bar % 2 == 1 and note <= 115:
			note += 12

		duration = apply_hold(_clamp(interval * 1.2, 0.10, 0.40), hold_floor)
		self.controller.play_transient([note], velocity, duration)
