"""Live keyboard and pad performance.

`LiveController` is the real-time half of keystrum. It turns key-down/key-up
events (and pointer positions on a pad) into ``note_on``/``note_off`` calls on
a `NoteOutput`, and also acts as the sound source for the text performer,
which plays through `play_transient()` and `play_chord_hit()`.

State it owns:

- **held notes** per physical key code, so a key-up releases exactly what
  its key-down started.
- **sustained notes**, parked there by a key-up (or pad release) while the
  sustain latch is down and released when it comes up again, unless some
  key or the pad still holds them.
- **pad notes** for the pad pointer.
- **chug tasks**, one asyncio task per held key in a chug play style, each
  firing short chord hits on a drift-corrected 8th/16th grid.
- **transient ref-counts**: a transient note auto-releases after its
  duration. Overlapping transients on one note send ``note_on`` for the
  first of them and ``note_off`` when the last of them ends.

`panic()` cancels all of it and silences everything that is still sounding.
It can be called at any time, any number of times.

Everything runs on one asyncio event loop thread. Delayed work (transient
releases, staggered strum notes) goes through a `Scheduler` and carries a
generation token; `panic()` bumps the generation so in-flight releases
become no-ops.

Example:
	```python
	controller = LiveController(LoggingNoteOutput())
	controller.toggle_armed()
	controller.handle_key_down(0, "a", timestamp=0.0)   # E3 sounds
	controller.handle_key_up(0, "a", timestamp=0.4)
	```
"""

import asyncio
import enum
import logging
import math
import typing

import keystrum.constants
import keystrum.event_emitter
import keystrum.key_layout
import keystrum.note_mapper
import keystrum.output
import keystrum.scheduler
import keystrum.theory
import keystrum.voice_leading


logger = logging.getLogger(__name__)

STATE_CHANGED = "state_changed"
DISARMED = "disarmed"


class PlayStyle (str, enum.Enum):

	"""What a held key does: sound until released, or repeat on a grid."""

	HOLD = "Hold"
	CHUG_8 = "Chug 8ths"
	CHUG_16 = "Chug 16ths"


class VoiceLeadMode (str, enum.Enum):

	OFF = "Off"
	SMOOTH = "Smooth"


class Modifier (enum.Flag):

	"""Modifier keys held during a key event."""

	NONE = 0
	SHIFT = enum.auto()
	CONTROL = enum.auto()
	OPTION = enum.auto()
	COMMAND = enum.auto()


class KeyDisplay (typing.NamedTuple):

	"""What a key currently plays, for drawing a keyboard map."""

	key: str
	midi_note: int
	note_name: str
	chord_label: typing.Optional[str] = None


HELP_TEXT = """\
Controls
  Cmd+Enter       Arm / disarm
  Ctrl+Opt+Cmd+M  Arm / disarm (global hotkey)
  Space           Sustain (hold)
  Shift+key       Octave-up note
  Opt+key         Octave-down (bass) note
  Ctrl+key        Chord hit (root + 5th + octave)
  [ / ]           Octave down / up
  Tab             Toggle power-chord mode
  \\               Toggle Scale Lock / All Notes
  Cmd+1..5        Pick scale (Scale Lock mode)
  Esc             Panic (all notes off)

Layout
  Typewriter: keys are mapped in typing order, home row first.
  Melodic: keys ordered by English letter frequency, so common letters
    cluster in a narrow pitch range.
  Voice Lead (Smooth): each note snaps to the octave nearest the last note.

Text mode
  1 character = 1 grid tick. ',' rest, '-' hold, '.' resolve, '!' accent.
  Styles: Ballad Pick / Rock Strum / Power Chug / Synth Pulse.
"""


class LiveController:

	"""Stateful keyboard/pad engine driving a single `NoteOutput`.

	Read state through the public attributes and properties; change it only
	through the methods, which keep the bookkeeping consistent and notify
	subscribers of ``"state_changed"``. Disarming also emits ``"disarmed"``
	synchronously, before `set_armed` returns.
	"""

	def __init__ (
		self,
		output: keystrum.output.NoteOutput,
		scheduler: typing.Optional[keystrum.scheduler.Scheduler] = None,
	) -> None:

		"""Create a disarmed controller with the default mapping (E3 minor pentatonic, typewriter layout).

		Parameters:
			output: Where note events go. Optional capabilities are detected
				with ``isinstance`` against the protocols in `keystrum.output`.
			scheduler: Clock and delayed-callback source. Defaults to the
				running asyncio loop; tests pass a `VirtualScheduler`.
		"""

		self.output = output
		self.scheduler: keystrum.scheduler.Scheduler = scheduler if scheduler is not None else keystrum.scheduler.AsyncioScheduler()
		self.events = keystrum.event_emitter.EventEmitter()

		self.mapper = keystrum.note_mapper.NoteMapper(
			mode = keystrum.note_mapper.MappingMode.MUSICAL,
			root = keystrum.theory.RootNote(keystrum.theory.PitchClass.E, 3),
			scale = keystrum.theory.BUILTIN_SCALES[0],
			octave_offset = 0,
			row_offset = 0,
			key_layout = keystrum.key_layout.TYPEWRITER,
		)

		self.armed: bool = False
		self.sustain_is_down: bool = False
		self.power_chords: bool = False
		self.strum: bool = True
		self.play_style: PlayStyle = PlayStyle.HOLD
		self.voice_lead_mode: VoiceLeadMode = VoiceLeadMode.OFF
		self.tempo_bpm: int = keystrum.constants.DEFAULT_TEMPO_BPM
		self.base_velocity: int = keystrum.constants.DEFAULT_BASE_VELOCITY
		self.last_velocity: int = keystrum.constants.FALLBACK_SCRIPT_VELOCITY
		self.last_played_note: typing.Optional[int] = None
		self.last_action: str = "Press Cmd+Enter to arm."

		self.instrument = keystrum.output.Instrument.PIANO
		self.sound_source_display_name = "Built-in"

		if isinstance(output, keystrum.output.InstrumentSelectableOutput):
			self.instrument = output.instrument

		if isinstance(output, keystrum.output.SoundBankSelectableOutput):
			self.sound_source_display_name = output.sound_source_display_name

		self._held_notes: typing.Dict[int, typing.Set[int]] = {}
		self._held_keys: typing.Dict[int, str] = {}
		self._sustained_notes: typing.Set[int] = set()
		self._pad_notes: typing.Set[int] = set()
		self._pad_base_note: typing.Optional[int] = None
		self._chug_tasks: typing.Dict[int, asyncio.Task] = {}

		self._transient_counts: typing.Dict[int, int] = {}
		self._transient_generation = keystrum.scheduler.Generation()

		self._last_voice_lead_note: typing.Optional[int] = None
		self._last_onset: typing.Optional[float] = None

	# ------------------------------------------------------------------
	# Observation

	def subscribe (self, callback: typing.Callable[[], typing.Any]) -> typing.Callable[[], None]:

		"""Call *callback* (coalesced) whenever observable state changes. Returns an unsubscribe function."""

		return self.events.subscribe(STATE_CHANGED, callback)

	def _changed (self) -> None:

		self.events.emit_soon(STATE_CHANGED)

	def set_action (self, action: str) -> None:

		"""Record a short user-facing description of the last thing that happened."""

		if action == self.last_action:
			return

		self.last_action = action
		self._changed()

	@property
	def base_midi (self) -> int:

		"""The note the first key maps to: root plus octave offset."""

		return self.mapper.base_midi

	@property
	def root_pitch_class (self) -> int:

		return int(self.mapper.root.pitch_class)

	@property
	def mapping_mode (self) -> keystrum.note_mapper.MappingMode:

		return self.mapper.mode

	@property
	def scale (self) -> keystrum.theory.Scale:

		return self.mapper.scale

	@property
	def octave_offset (self) -> int:

		return self.mapper.octave_offset

	@property
	def row_offset (self) -> int:

		return self.mapper.row_offset

	@property
	def key_layout (self) -> keystrum.key_layout.KeyLayout:

		return self.mapper.key_layout

	@property
	def held_keys (self) -> typing.Set[str]:

		"""Characters of the keys currently held or chugging."""

		return set(self._held_keys.values())

	@property
	def sounding_notes (self) -> typing.Set[int]:

		"""Every note the controller is currently responsible for releasing."""

		return self._tracked_notes() | set(self._transient_counts)

	@property
	def status_text (self) -> str:

		"""One-line summary of the whole controller state."""

		if self.mapper.mode == keystrum.note_mapper.MappingMode.MUSICAL:
			mode = f"Scale Lock ({self.mapper.root.pitch_class} {self.mapper.scale.name})"
		else:
			mode = f"All Notes (from {self.mapper.root.pitch_class})"

		octave = f"+{self.octave_offset}" if self.octave_offset >= 0 else f"{self.octave_offset}"
		voice_lead = "VL: on" if self.voice_lead_mode == VoiceLeadMode.SMOOTH else "VL: off"
		chords = "Power chords: ON" if self.power_chords else "Power chords: off"
		sustain = "Sustain: down" if self.sustain_is_down else "Sustain: up"

		if self.last_played_note is not None:
			last = f"Last: {keystrum.theory.note_name(self.last_played_note)} ({self.last_played_note})"
		else:
			last = "Last: -"

		parts = [
			"ARMED" if self.armed else "disarmed",
			mode,
			f"Layout: {self.key_layout.name}",
			voice_lead,
			f"Inst: {self.instrument.value}",
			f"Sound: {self.sound_source_display_name}",
			f"Style: {self.play_style.value} @{self.tempo_bpm}",
			f"Octave: {octave}",
			f"Vel: {self.last_velocity}",
			chords,
			sustain,
			last,
		]

		return " | ".join(parts)

	@property
	def help_text (self) -> str:

		return HELP_TEXT

	def display_for_key (self, key: str) -> typing.Optional[KeyDisplay]:

		"""Describe what *key* plays right now, or ``None`` if it is unmapped."""

		note = self.mapper.midi_note(key)

		if note is None:
			return None

		chord_label = f"{keystrum.theory.pitch_class_name(note)}5" if self.power_chords else None

		return KeyDisplay(key, note, keystrum.theory.note_name(note), chord_label)

	# ------------------------------------------------------------------
	# Settings

	def toggle_armed (self) -> None:

		"""Arm, or disarm and silence everything."""

		self.set_armed(not self.armed)

	def set_armed (self, armed: bool) -> None:

		if armed == self.armed:
			return

		self.armed = armed
		self.reset_dynamics()

		if armed:
			logger.info("Armed")
			self.set_action("Armed.")
		else:
			self.panic()
			self.events.emit(DISARMED)
			logger.info("Disarmed")
			self.set_action("Disarmed.")

		self._changed()

	def set_scale (self, scale: keystrum.theory.Scale) -> None:

		self.mapper.scale = scale
		self.set_action(f"Scale: {scale.name}.")

	def set_mapping_mode (self, mode: keystrum.note_mapper.MappingMode) -> None:

		if self.mapper.mode == mode:
			return

		self.mapper.mode = mode
		self.set_action("Scale Lock on." if mode == keystrum.note_mapper.MappingMode.MUSICAL else "All Notes on.")

	def toggle_mapping_mode (self) -> None:

		if self.mapper.mode == keystrum.note_mapper.MappingMode.MUSICAL:
			self.set_mapping_mode(keystrum.note_mapper.MappingMode.CHROMATIC)
		else:
			self.set_mapping_mode(keystrum.note_mapper.MappingMode.MUSICAL)

	def set_octave (self, octave: int) -> None:

		"""Set the global octave offset, clamped to -2..3."""

		self.mapper.octave_offset = min(max(octave, keystrum.constants.MIN_OCTAVE_OFFSET), keystrum.constants.MAX_OCTAVE_OFFSET)
		self.set_action(f"Octave {self.mapper.octave_offset}.")

	def shift_octave (self, delta: int) -> None:

		self.set_octave(self.mapper.octave_offset + delta)

	def set_row_offset (self, row_offset: int) -> None:

		"""Set the degree/semitone step between layout rows, clamped to 0..12."""

		self.mapper.row_offset = min(max(row_offset, keystrum.constants.MIN_ROW_OFFSET), keystrum.constants.MAX_ROW_OFFSET)
		self.set_action(f"Row offset {self.mapper.row_offset}.")

	def set_key_layout (self, layout: keystrum.key_layout.KeyLayout) -> None:

		"""Switch layout; the voice-leading reference is forgotten."""

		self.mapper.key_layout = layout
		self._last_voice_lead_note = None
		self.set_action(f"Layout: {layout.name}.")

	def clear_key_layout (self) -> None:

		"""Return to the default typewriter layout."""

		self.set_key_layout(keystrum.key_layout.TYPEWRITER)

	def set_voice_lead_mode (self, mode: VoiceLeadMode) -> None:

		if self.voice_lead_mode == mode:
			return

		self.voice_lead_mode = mode
		self._last_voice_lead_note = None
		self.set_action(f"Voice lead: {mode.value}.")

	def set_tempo (self, bpm: int) -> None:

		"""Set the tempo used by chug loops and the text performer, clamped to 40..240 BPM."""

		self.tempo_bpm = max(keystrum.constants.MIN_TEMPO_BPM, min(keystrum.constants.MAX_TEMPO_BPM, int(bpm)))
		logger.info(f"Tempo: {self.tempo_bpm} BPM")
		self.set_action(f"Tempo: {self.tempo_bpm} BPM.")

	def set_play_style (self, play_style: PlayStyle) -> None:

		self.play_style = play_style
		logger.info(f"Play style: {play_style.value}")
		self.set_action(f"Style: {play_style.value}.")

	def set_strum (self, on: bool) -> None:

		if self.strum == on:
			return

		self.strum = on
		self.set_action("Strum on." if on else "Strum off.")

	def toggle_strum (self) -> None:

		self.set_strum(not self.strum)

	def set_power_chords (self, on: bool) -> None:

		if self.power_chords == on:
			return

		self.power_chords = on
		self.set_action("Power chords on." if on else "Power chords off.")

	def toggle_power_chords (self) -> None:

		self.set_power_chords(not self.power_chords)

	def set_base_velocity (self, velocity: int) -> None:

		"""Set the centre of the dynamic range, clamped to 40..127."""

		clamped = max(keystrum.constants.MIN_BASE_VELOCITY, min(keystrum.constants.MAX_VELOCITY, int(velocity)))

		if clamped == self.base_velocity:
			return

		self.base_velocity = clamped
		self.set_action(f"Velocity: {clamped}.")

	def set_instrument (self, instrument: keystrum.output.Instrument) -> None:

		"""Switch timbre if the output supports it; otherwise just say so."""

		if not isinstance(self.output, keystrum.output.InstrumentSelectableOutput):
			self.set_action("Instrument switching not supported.")
			return

		self.output.set_instrument(instrument)
		self.instrument = instrument
		logger.info(f"Instrument: {instrument.value}")
		self.set_action(f"Instrument: {instrument.value}.")

	def use_built_in_sounds (self) -> bool:

		"""Drop any custom sample bank. Returns ``False`` if the output has no sample banks."""

		if not isinstance(self.output, keystrum.output.SoundBankSelectableOutput):
			self.set_action("Sound banks not supported.")
			return False

		self.output.use_built_in_sounds()
		self.sound_source_display_name = self.output.sound_source_display_name
		self.set_action("Sound: Built-in.")
		return True

	def set_sound_bank (self, path: str) -> bool:

		"""Load a custom sample bank from *path*.

		On failure the output keeps its previous sound, the reason is shown in
		`last_action`, and ``False`` is returned.
		"""

		if not isinstance(self.output, keystrum.output.SoundBankSelectableOutput):
			self.set_action("Sound banks not supported.")
			return False

		try:
			self.output.set_sound_bank(path)
		except keystrum.output.SoundBankError as error:
			logger.warning(f"Could not load sound bank {path!r}: {error}")
			self.sound_source_display_name = self.output.sound_source_display_name
			self.set_action(f"Couldn't load sound bank: {error}")
			return False

		self.sound_source_display_name = self.output.sound_source_display_name
		logger.info(f"Sound bank: {path}")
		self.set_action(f"Sound bank: {self.sound_source_display_name}.")
		return True

	# ------------------------------------------------------------------
	# Dynamics

	def reset_dynamics (self) -> None:

		"""Forget the previous onset so the next note plays at the base velocity."""

		self._last_onset = None

	def next_velocity (self, timestamp: float, accent: bool = False) -> int:

		"""Velocity for an onset at *timestamp*, from the time since the previous onset.

		The first onset plays at the base velocity. After that a gap of 30 ms
		or less plays 30 above base, a gap of 500 ms or more plays 30 below,
		linearly in between, never below 28. *accent* adds 24 (max 127).
		"""

		if self._last_onset is None:
			velocity = self.base_velocity
		else:
			delta = max(0.0, timestamp - self._last_onset)
			fast = keystrum.constants.FAST_ONSET_SECONDS
			slow = keystrum.constants.SLOW_ONSET_SECONDS
			t = (min(max(delta, fast), slow) - fast) / (slow - fast)
			velocity = self.base_velocity + keystrum.constants.DYNAMIC_RANGE - math.floor(t * 2 * keystrum.constants.DYNAMIC_RANGE + 0.5)
			velocity = max(keystrum.constants.MIN_DYNAMIC_VELOCITY, min(keystrum.constants.MAX_VELOCITY, velocity))

		self._last_onset = timestamp
		self.last_velocity = velocity
		self._changed()

		if accent:
			return min(keystrum.constants.MAX_VELOCITY, velocity + keystrum.constants.ACCENT_BOOST)

		return velocity

	# ------------------------------------------------------------------
	# Transients and chord hits

	def play_transient (self, notes: typing.Iterable[int], velocity: int, duration: float) -> None:

		"""Sound *notes* now and release each after *duration* seconds (clamped to 0.02..2.5).

		Overlapping requests on one note are ref-counted: only the first sends
		``note_on`` and only the last release sends ``note_off``.
		Nothing plays while disarmed.
		"""

		if not self.armed:
			return

		duration = max(keystrum.constants.MIN_TRANSIENT_SECONDS, min(duration, keystrum.constants.MAX_TRANSIENT_SECONDS))
		token = self._transient_generation.token()

		for note in notes:
			count = self._transient_counts.get(note, 0) + 1
			self._transient_counts[note] = count

			if count == 1:
				self.output.note_on(note, velocity)

			self.last_played_note = note

			self.scheduler.call_later(duration, lambda note=note: self._release_transient(note), token)

		self._changed()

	def _release_transient (self, note: int) -> None:

		remaining = self._transient_counts.get(note, 1) - 1

		if remaining <= 0:
			self._transient_counts.pop(note, None)
			self.output.note_off(note)
		else:
			self._transient_counts[note] = remaining

	def play_chord_hit (self, notes: typing.Iterable[int], velocity: int, duration: float) -> None:

		"""Play *notes* together, or strummed low to high 12 ms apart.

		Strumming applies when it is switched on, there is more than one
		note, and the instrument is a guitar (or power chords are on).
		"""

		ordered = sorted(notes)

		should_strum = (
			self.strum
			and len(ordered) > 1
			and (self.instrument != keystrum.output.Instrument.PIANO or self.power_chords)
		)

		if not should_strum:
			self.play_transient(ordered, velocity, duration)
			return

		token = self._transient_generation.token()

		for index, note in enumerate(ordered):
			if index == 0:
				self.play_transient([note], velocity, duration)
				continue

			self.scheduler.call_later(
				index * keystrum.constants.STRUM_STEP_SECONDS,
				lambda note=note: self.play_transient([note], velocity, duration),
				token,
			)

	# ------------------------------------------------------------------
	# Keys

	def handle_key_down (
		self,
		key_code: int,
		characters: typing.Optional[str],
		modifiers: Modifier = Modifier.NONE,
		is_repeat: bool = False,
		timestamp: float = 0.0,
	) -> None:

		"""Handle a physical key press.

		Control keys (arm, panic, sustain, octave, scale, mode toggles) act
		whatever the armed state. Any other key plays its mapped note when
		armed, unless it is already held.

		Parameters:
			key_code: Hardware virtual key code, used to pair key-down with key-up.
			characters: The character the key produces, ignoring modifiers.
			modifiers: Modifier keys held during the press.
			is_repeat: ``True`` for OS auto-repeat; such events are ignored.
			timestamp: Event time in seconds, for dynamics.
		"""

		if is_repeat:
			return

		command = Modifier.COMMAND in modifiers
		control = Modifier.CONTROL in modifiers
		option = Modifier.OPTION in modifiers

		if command and control and option and key_code == keystrum.constants.KEY_CODE_M:
			self.toggle_armed()
			return

		if command and key_code == keystrum.constants.KEY_CODE_RETURN:
			self.toggle_armed()
			return

		if key_code == keystrum.constants.KEY_CODE_ESCAPE:
			self.panic_now()
			return

		if key_code == keystrum.constants.KEY_CODE_SPACE:
			self.sustain_is_down = True
			self.set_action("Sustain down.")
			self._changed()
			return

		if not command and not control:
			if key_code == keystrum.constants.KEY_CODE_LEFT_BRACKET:
				self.shift_octave(-1)
				return

			if key_code == keystrum.constants.KEY_CODE_RIGHT_BRACKET:
				self.shift_octave(1)
				return

		key = (characters or "").lower()

		if command and key.isdigit():
			index = int(key)
			available = keystrum.theory.BUILTIN_SCALES

			if 1 <= index <= min(len(available), 5):
				self.set_scale(available[index - 1])
				return

		if not key:
			return

		if key == "[":
			self.shift_octave(-1)
			return

		if key == "]":
			self.shift_octave(1)
			return

		if key_code == keystrum.constants.KEY_CODE_TAB:
			self.toggle_power_chords()
			return

		if key == "\\":
			self.toggle_mapping_mode()
			return

		if command and control and option:
			return

		if not self.armed:
			return

		raw_note = self.mapper.midi_note(key)

		if raw_note is None:
			return

		if key_code in self._held_notes or key_code in self._chug_tasks:
			return

		self._held_keys[key_code] = key

		if self.play_style == PlayStyle.HOLD:
			base_note = self._apply_modifiers(self._apply_voice_leading(raw_note), modifiers)
			notes = self._notes_for_press(base_note, chord_modifier=control)
			self._held_notes[key_code] = notes

			velocity = self.next_velocity(timestamp)

			for note in sorted(notes):
				self.output.note_on(note, velocity)

			self.last_played_note = base_note
			self._last_voice_lead_note = base_note
			logger.debug(f"Key {key!r} -> {sorted(notes)} velocity={velocity}")
			self.set_action(f"Play {key} -> {keystrum.theory.note_name(base_note)}.")
		else:
			self._start_chug(key_code, key, modifiers, timestamp)

		self._changed()

	def handle_key_up (
		self,
		key_code: int,
		characters: typing.Optional[str] = None,
		modifiers: Modifier = Modifier.NONE,
		timestamp: float = 0.0,
	) -> None:

		"""Handle a physical key release: stop its chug, or release (or sustain) its notes."""

		if key_code == keystrum.constants.KEY_CODE_SPACE:
			self.sustain_is_down = False
			self._release_sustained_notes_not_held()
			self.set_action("Sustain up.")
			self._changed()
			return

		if not self.armed:
			return

		task = self._chug_tasks.pop(key_code, None)

		if task is not None:
			task.cancel()
			self._held_keys.pop(key_code, None)
			self.set_action("Chug stop.")
			self._changed()
			return

		notes = self._held_notes.pop(key_code, None)

		if notes is None:
			return

		self._held_keys.pop(key_code, None)

		if self.sustain_is_down:
			self._sustained_notes |= notes
		else:
			self._sustained_notes -= notes

			for note in sorted(notes):
				self.output.note_off(note)

		self._changed()

	def _apply_voice_leading (self, raw_note: int) -> int:

		if self.voice_lead_mode != VoiceLeadMode.SMOOTH:
			return raw_note

		return keystrum.voice_leading.smooth(raw_note, self._last_voice_lead_note)

	@staticmethod
	def _apply_modifiers (note: int, modifiers: Modifier) -> int:

		if Modifier.SHIFT in modifiers and note <= 115:
			note += 12

		if Modifier.OPTION in modifiers and note >= 12:
			note -= 12

		return note

	def _notes_for_press (self, base_note: int, chord_modifier: bool = False) -> typing.Set[int]:

		"""The note itself, or a power chord on it when power chords or the chord modifier are on."""

		notes = {base_note}

		if not (self.power_chords or chord_modifier):
			return notes

		if base_note <= 120:
			notes.add(base_note + 7)

		if base_note <= 115:
			notes.add(base_note + 12)

		return notes

	# ------------------------------------------------------------------
	# Chugging

	def chug_interval (self) -> float:

		"""Seconds between chug hits for the current tempo and play style."""

		quarter = 60.0 / self.tempo_bpm
		return quarter / 2.0 if self.play_style == PlayStyle.CHUG_8 else quarter / 4.0

	def _start_chug (self, key_code: int, key: str, modifiers: Modifier, timestamp: float) -> None:

		if self.play_style == PlayStyle.HOLD:
			return

		velocity = max(keystrum.constants.MIN_CHUG_VELOCITY, self.next_velocity(timestamp))

		self.set_action(f"Chug {key}.")
		self._chug_tasks[key_code] = asyncio.create_task(self._chug_loop(key, modifiers, velocity))

	async def _chug_loop (self, key: str, modifiers: Modifier, velocity: int) -> None:

		"""Fire a short chord hit for *key* on every grid step until cancelled.

		The key is re-mapped each time round, so octave, layout or mode changes
		apply while it repeats. Sleeps target an absolute deadline so timing
		errors do not accumulate.
		"""

		loop = asyncio.get_running_loop()
		next_hit_time = loop.time()

		while self.armed and self.play_style != PlayStyle.HOLD:

			interval = self.chug_interval()
			hit_duration = max(0.04, min(0.22, interval * 0.55))

			mapped = self.mapper.midi_note(key)

			if mapped is None:
				break

			base_note = self._apply_modifiers(self._apply_voice_leading(mapped), modifiers)
			notes = sorted(self._notes_for_press(base_note, chord_modifier=Modifier.CONTROL in modifiers))

			self.play_chord_hit(notes, velocity, hit_duration)
			self.last_played_note = base_note
			self._last_voice_lead_note = base_note

			next_hit_time += interval
			sleep_time = next_hit_time - loop.time()

			await asyncio.sleep(max(0.0, sleep_time))

	# ------------------------------------------------------------------
	# Pad

	def pad_note_for_position (self, x: float, y: float, accent: bool = False) -> typing.Optional[typing.Tuple[int, int]]:

		"""Map a normalized pad position to ``(note, velocity)``.

		*x* (0..1, left to right) spans two octaves up from the base note,
		snapped to the scale in Scale Lock mode. *y* (0..1, bottom to top) is
		loudness. *accent* adds 20 to the velocity.
		"""

		x = min(max(x, 0.0), 1.0)
		y = min(max(y, 0.0), 1.0)

		desired = self.base_midi + math.floor(x * keystrum.constants.PAD_RANGE_SEMITONES + 0.5)
		desired = min(max(desired, keystrum.constants.MIN_NOTE), keystrum.constants.MAX_NOTE)

		note: typing.Optional[int] = desired

		if self.mapper.mode == keystrum.note_mapper.MappingMode.MUSICAL:
			note = keystrum.note_mapper.quantize_to_scale(desired, self.base_midi, self.mapper.scale, keystrum.constants.PAD_RANGE_SEMITONES)

		if note is None:
			return None

		velocity = int(y * keystrum.constants.PAD_VELOCITY_SPAN + keystrum.constants.PAD_MIN_VELOCITY)

		if accent:
			velocity += keystrum.constants.PAD_ACCENT_BOOST

		velocity = min(max(velocity, keystrum.constants.PAD_MIN_VELOCITY), keystrum.constants.MAX_VELOCITY)

		return note, velocity

	def touchpad_note_on (self, base_note: int, velocity: int) -> None:

		"""Start (or restart) the pad note."""

		if not self.armed:
			return

		self._pad_note_update(base_note, velocity, allow_restart=True)

	def touchpad_note_update (self, base_note: int, velocity: int) -> None:

		"""Move the pad to *base_note*; does nothing if it is already there."""

		if not self.armed:
			return

		self._pad_note_update(base_note, velocity, allow_restart=False)

	def touchpad_note_off (self) -> None:

		"""Release the pad notes, or hand them to sustain."""

		if not self._pad_notes:
			return

		if self.sustain_is_down:
			self._sustained_notes |= self._pad_notes
		else:
			self._sustained_notes -= self._pad_notes

			for note in sorted(self._pad_notes):
				self.output.note_off(note)

		self._pad_notes = set()
		self._pad_base_note = None
		self._changed()

	def _pad_note_update (self, base_note: int, velocity: int, allow_restart: bool) -> None:

		if not allow_restart and self._pad_base_note == base_note:
			return

		if self._pad_notes:
			if self.sustain_is_down:
				self._sustained_notes |= self._pad_notes
			else:
				for note in sorted(self._pad_notes):
					self.output.note_off(note)

			self._pad_notes = set()

		self._pad_base_note = base_note
		self._pad_notes = self._notes_for_press(base_note)
		self.last_velocity = velocity

		for note in sorted(self._pad_notes):
			self.output.note_on(note, velocity)

		self.last_played_note = base_note
		self.set_action(f"Pad -> {keystrum.theory.note_name(base_note)}.")
		self._changed()

	# ------------------------------------------------------------------
	# Sustain and panic

	def _tracked_notes (self) -> typing.Set[int]:

		notes: typing.Set[int] = set()

		for held in self._held_notes.values():
			notes |= held

		return notes | self._sustained_notes | self._pad_notes

	def _release_sustained_notes_not_held (self) -> None:

		held: typing.Set[int] = set()

		for notes in self._held_notes.values():
			held |= notes

		held |= self._pad_notes

		for note in sorted(self._sustained_notes - held):
			self.output.note_off(note)

		self._sustained_notes &= held

	def panic (self) -> None:

		"""Stop every chug, invalidate pending releases and silence every tracked note.

		Leaves the controller with nothing held, sustained, padded or pending.
		Calling it again immediately sends nothing.
		"""

		notes = self._tracked_notes()

		for task in self._chug_tasks.values():
			task.cancel()

		self._chug_tasks = {}

		self._transient_generation.bump()

		for note in sorted(set(self._transient_counts) - notes):
			self.output.note_off(note)

		self._transient_counts = {}

		for note in sorted(notes):
			self.output.note_off(note)

		if notes:
			logger.info(f"Panic released {len(notes)} notes")

		self._held_notes = {}
		self._held_keys = {}
		self._sustained_notes = set()
		self._pad_notes = set()
		self._pad_base_note = None
		self.sustain_is_down = False
		self._last_voice_lead_note = None
		self._changed()

	def panic_now (self) -> None:

		"""User-facing panic: silence everything and reset dynamics."""

		logger.info("Panic")
		self.panic()
		self.reset_dynamics()
		self.set_action("Panic.")
