"""Note output sinks and their optional capabilities.

The performance core only needs two calls, ``note_on(note, velocity)`` and
``note_off(note)``. Everything else an output might offer (switching
instruments, loading a custom sample bank) is an optional capability
expressed as a separate protocol. The controller checks for a capability at
runtime with ``isinstance`` instead of requiring a common base class.

Concrete sinks:

- `MidoNoteOutput`: sends MIDI to a hardware or virtual port through mido.
  Instrument selection maps to General MIDI program changes.
- `LoggingNoteOutput`: logs every event; handy without any MIDI device.
- `RecordingNoteOutput`: keeps a time-stamped event list for render mode.

`select_output_device()` opens a mido output port by name, or auto-picks the
only available port.
"""

import enum
import logging
import typing

import mido


logger = logging.getLogger(__name__)


class Instrument (str, enum.Enum):

	"""The fixed set of named timbres an instrument-capable output offers."""

	PIANO = "Piano"
	GUITAR_CLEAN = "Guitar (Clean)"
	GUITAR_OVERDRIVEN = "Guitar (Overdriven)"
	GUITAR_DISTORTION = "Guitar (Distortion)"

	@property
	def midi_program (self) -> int:

		"""General MIDI program number (0-based)."""

		return _GM_PROGRAMS[self]


_GM_PROGRAMS: typing.Dict[Instrument, int] = {
	Instrument.PIANO: 0,
	Instrument.GUITAR_CLEAN: 27,
	Instrument.GUITAR_OVERDRIVEN: 29,
	Instrument.GUITAR_DISTORTION: 30,
}


class SoundBankError (OSError):

	"""Raised by an output that could not load a custom sample bank."""


@typing.runtime_checkable
class NoteOutput (typing.Protocol):

	"""The sink every note event ends up in."""

	def note_on (self, note: int, velocity: int) -> None:

		...

	def note_off (self, note: int) -> None:

		...


@typing.runtime_checkable
class InstrumentSelectableOutput (NoteOutput, typing.Protocol):

	"""An output that can switch between the built-in `Instrument` timbres."""

	instrument: Instrument

	def set_instrument (self, instrument: Instrument) -> None:

		...


@typing.runtime_checkable
class SoundBankSelectableOutput (NoteOutput, typing.Protocol):

	"""An output that can load a custom sample bank from a file."""

	sound_source_display_name: str

	def use_built_in_sounds (self) -> None:

		...

	def set_sound_bank (self, path: str) -> None:

		"""Load the bank at *path*, raising `SoundBankError` and keeping the previous sound on failure."""

		...


class LoggingNoteOutput:

	"""Console sink that logs each note event."""

	def note_on (self, note: int, velocity: int) -> None:

		logger.info(f"note_on note={note} velocity={velocity}")

	def note_off (self, note: int) -> None:

		logger.info(f"note_off note={note}")


class NoteEvent (typing.NamedTuple):

	"""One recorded output event. *velocity* is 0 for ``note_off``."""

	time: float
	kind: str
	note: int
	velocity: int = 0


class RecordingNoteOutput:

	"""Keeps every event in `events`, stamped with *clock*'s time.

	Render mode prints these; tests compare them.
	"""

	def __init__ (self, clock: typing.Optional[typing.Callable[[], float]] = None) -> None:

		self.clock = clock
		self.events: typing.List[NoteEvent] = []

	def note_on (self, note: int, velocity: int) -> None:

		self.events.append(NoteEvent(self._now(), "note_on", note, velocity))

	def note_off (self, note: int) -> None:

		self.events.append(NoteEvent(self._now(), "note_off", note))

	def _now (self) -> float:

		return self.clock() if self.clock is not None else 0.0


class MidoNoteOutput:

	"""Send note events to a mido output port on a single channel.

	Send failures are logged and swallowed so a disconnected device can never
	break the tick loop.
	"""

	def __init__ (self, port: typing.Any, channel: int = 0, instrument: Instrument = Instrument.PIANO) -> None:

		"""Wrap an already-open mido output port.

		Parameters:
			port: Object with ``send(message)`` and ``close()``, typically the
				result of ``mido.open_output()``.
			channel: MIDI channel (0-15).
			instrument: Initial timbre; a program change is sent immediately.
		"""

		if not 0 <= channel <= 15:
			raise ValueError(f"MIDI channel must be 0-15, got {channel}")

		self.port = port
		self.channel = channel
		self.instrument = instrument

		self._send(mido.Message("program_change", channel=self.channel, program=instrument.midi_program))

	def note_on (self, note: int, velocity: int) -> None:

		self._send(mido.Message("note_on", channel=self.channel, note=note, velocity=velocity))

	def note_off (self, note: int) -> None:

		self._send(mido.Message("note_off", channel=self.channel, note=note, velocity=0))

	def set_instrument (self, instrument: Instrument) -> None:

		"""Switch timbre with a General MIDI program change."""

		self.instrument = instrument
		self._send(mido.Message("program_change", channel=self.channel, program=instrument.midi_program))

	def all_notes_off (self) -> None:

		"""Send All Notes Off (CC 123) on the output channel."""

		self._send(mido.Message("control_change", channel=self.channel, control=123, value=0))

	def close (self) -> None:

		if self.port is not None:
			self.all_notes_off()
			self.port.close()
			self.port = None

	def _send (self, message: mido.Message) -> None:

		if self.port is None:
			return

		try:
			self.port.send(message)
		except Exception:
			logger.exception("MIDI send failed (device may be disconnected)")


def select_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""Open a mido output port.

	With *device_name*, opens exactly that port. Without it, opens the only
	available port; with several ports and no name, logs the choices and
	returns nothing rather than prompting, since keystrum usually runs with
	the terminal in cbreak mode.

	Returns:
		``(device_name, port)`` or ``(None, None)`` when nothing could be opened.
	"""

	try:
		outputs = mido.get_output_names()
	except Exception:
		logger.exception("Could not list MIDI outputs")
		return None, None

	logger.info(f"Available MIDI outputs: {outputs}")

	if not outputs:
		logger.error("No MIDI output devices found.")
		return None, None

	if device_name is None:
		if len(outputs) > 1:
			logger.error(f"Several MIDI outputs found; set midi.output_device to one of: {outputs}")
			return None, None

		device_name = outputs[0]

	elif device_name not in outputs:
		logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
		return None, None

	try:
		port = mido.open_output(device_name)
	except Exception:
		logger.exception(f"Failed to open MIDI output '{device_name}'")
		return None, None

	logger.info(f"Opened MIDI output: {device_name}")

	return device_name, port
