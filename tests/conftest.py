import typing

import mido
import pytest

import keystrum.controller
import keystrum.output
import keystrum.performer
import keystrum.scheduler


class FakeMidiOut:

	"""MIDI output stub that remembers what was sent."""

	def __init__ (self) -> None:

		self.sent: list[mido.Message] = []
		self.closed = False

	def send (self, message: mido.Message) -> None:

		"""Record an outgoing MIDI message."""

		self.sent.append(message)

	def close (self) -> None:

		"""Mark the fake device closed."""

		self.closed = True


class FakeSamplerOutput:

	"""Note output that also supports instruments and sample banks.

	``set_sound_bank`` fails for any path containing ``"broken"``.
	"""

	def __init__ (self) -> None:

		self.events: list[typing.Tuple[str, int, int]] = []
		self.instrument = keystrum.output.Instrument.PIANO
		self.sound_source_display_name = "Built-in"

	def note_on (self, note: int, velocity: int) -> None:

		self.events.append(("on", note, velocity))

	def note_off (self, note: int) -> None:

		self.events.append(("off", note, 0))

	def set_instrument (self, instrument: keystrum.output.Instrument) -> None:

		self.instrument = instrument

	def use_built_in_sounds (self) -> None:

		self.sound_source_display_name = "Built-in"

	def set_sound_bank (self, path: str) -> None:

		if "broken" in path:
			raise keystrum.output.SoundBankError(f"cannot read {path}")

		self.sound_source_display_name = path.rsplit("/", 1)[-1]


def _fake_get_output_names () -> list[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	return FakeMidiOut()


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use a fake MIDI output for all tests that need it."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def scheduler () -> keystrum.scheduler.VirtualScheduler:

	return keystrum.scheduler.VirtualScheduler()


@pytest.fixture
def output (scheduler: keystrum.scheduler.VirtualScheduler) -> keystrum.output.RecordingNoteOutput:

	return keystrum.output.RecordingNoteOutput(clock=scheduler.now)


@pytest.fixture
def controller (output: keystrum.output.RecordingNoteOutput, scheduler: keystrum.scheduler.VirtualScheduler) -> keystrum.controller.LiveController:

	"""An armed controller on a virtual clock."""

	controller = keystrum.controller.LiveController(output, scheduler=scheduler)
	controller.set_armed(True)
	return controller


@pytest.fixture
def performer (controller: keystrum.controller.LiveController) -> keystrum.performer.TextPerformer:

	return keystrum.performer.TextPerformer(controller)


@pytest.fixture
def sampler_output () -> FakeSamplerOutput:

	return FakeSamplerOutput()
