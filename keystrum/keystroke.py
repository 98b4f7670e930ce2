"""Terminal keyboard input for live playing.

A background thread reads single keystrokes from stdin in *cbreak* mode and
hands each one to the event loop, which routes it into the `LiveController`
the listener was built with.

A terminal only reports key presses, never releases, so every press is
turned into a short tap: key-down now and key-up ``tap_seconds`` later.
Pressing the same key again before then ends the earlier tap first. A few
keys have terminal-specific meanings:

- Enter arms or disarms.
- Escape panics.
- Space latches sustain: the first press puts it down, the next lifts it.
- Tab toggles power chords.
- Uppercase letters play with Shift (an octave up).

**Platform support:** Linux and macOS. Requires :mod:`tty` and
:mod:`termios` plus a real TTY on stdin. Elsewhere the listener logs a
warning and stays inactive. Check :data:`HOTKEYS_SUPPORTED` to branch on it.
"""

import asyncio
import logging
import queue
import select
import sys
import threading
import typing

import keystrum.constants
import keystrum.controller


logger = logging.getLogger(__name__)


#: ``True`` when the current platform supports single-keystroke input.
HOTKEYS_SUPPORTED: bool = False

#: Why keystroke input is unavailable, or ``None`` when it is available.
HOTKEYS_UNAVAILABLE_REASON: typing.Optional[str] = None

try:
	import termios
	import tty

	if not sys.stdin.isatty():
		raise OSError("stdin is not a TTY (running in a pipe or non-interactive context)")

	_fd = sys.stdin.fileno()
	_saved = termios.tcgetattr(_fd)
	termios.tcsetattr(_fd, termios.TCSADRAIN, _saved)

	HOTKEYS_SUPPORTED = True

except ImportError:
	HOTKEYS_UNAVAILABLE_REASON = (
		"The 'tty' and 'termios' modules are not available on this platform. "
		"Keystroke input requires a POSIX operating system (Linux or macOS)."
	)
except OSError as _e:
	HOTKEYS_UNAVAILABLE_REASON = (
		f"Keystroke input requires an interactive terminal (TTY) on stdin. "
		f"Reason: {_e}"
	)
except Exception as _e:
	HOTKEYS_UNAVAILABLE_REASON = f"Keystroke input unavailable: {_e}"


DEFAULT_TAP_SECONDS = 0.25

# Characters without a fixed key code get one above the hardware range.
_SYNTHETIC_KEY_CODE_BASE = 1000

_SPECIAL_KEY_CODES: typing.Dict[str, int] = {
	"\x1b": keystrum.constants.KEY_CODE_ESCAPE,
	"\t": keystrum.constants.KEY_CODE_TAB,
	" ": keystrum.constants.KEY_CODE_SPACE,
}


def key_event_for (character: str) -> typing.Tuple[int, str, keystrum.controller.Modifier]:

	"""Translate a terminal character into ``(key_code, characters, modifiers)``.

	Uppercase letters become their lowercase key with Shift held.
	"""

	if character in _SPECIAL_KEY_CODES:
		return _SPECIAL_KEY_CODES[character], character, keystrum.controller.Modifier.NONE

	modifiers = keystrum.controller.Modifier.NONE
	key = character

	if "A" <= character <= "Z":
		modifiers = keystrum.controller.Modifier.SHIFT
		key = character.lower()

	return _SYNTHETIC_KEY_CODE_BASE + ord(key), key, modifiers


class KeystrokeListener:

	"""Background daemon thread that plays a `LiveController` from stdin.

	Terminal settings are always restored when the thread ends, so a
	crashed listener will not leave the terminal in a broken state.

	Example::

		listener = KeystrokeListener(controller)
		listener.start()      # from inside the running event loop
		...
		listener.stop()
	"""

	def __init__ (self, controller: keystrum.controller.LiveController, tap_seconds: float = DEFAULT_TAP_SECONDS) -> None:

		"""Initialise the listener in a stopped state.

		Parameters:
			controller: Receives every key event.
			tap_seconds: How long a key counts as held after it is pressed.
		"""

		self.controller = controller
		self.tap_seconds = tap_seconds

		self._queue: queue.Queue[str] = queue.Queue()
		self._thread: typing.Optional[threading.Thread] = None
		self._running: bool = False
		self._loop: typing.Optional[asyncio.AbstractEventLoop] = None
		self._pending_releases: typing.Dict[int, asyncio.TimerHandle] = {}

		#: ``True`` after a successful :meth:`start` on a supported platform.
		self.active: bool = False

	def start (self) -> None:

		"""Start reading keystrokes. Must be called from inside the running event loop.

		Safe to call more than once. On an unsupported platform it logs a
		warning and leaves :attr:`active` ``False``.
		"""

		if self._running:
			return

		if not HOTKEYS_SUPPORTED:
			logger.warning(f"Keystroke input is not available and will be disabled. {HOTKEYS_UNAVAILABLE_REASON}")
			return

		self._loop = asyncio.get_running_loop()
		self._running = True
		self.active = True
		self._thread = threading.Thread(
			target = self._listen,
			name   = "keystrum-keystroke-listener",
			daemon = True,
		)
		self._thread.start()

	def stop (self) -> None:

		"""Signal the thread to stop and release any keys still tapped down."""

		self._running = False
		self.active = False

		for key_code, handle in list(self._pending_releases.items()):
			handle.cancel()
			self.controller.handle_key_up(key_code)

		self._pending_releases = {}

	def drain (self) -> typing.List[str]:

		"""Return all keystrokes that have arrived and not yet been handled."""

		keys: typing.List[str] = []

		while True:
			try:
				keys.append(self._queue.get_nowait())
			except queue.Empty:
				break

		return keys

	def handle_character (self, character: str) -> None:

		"""Route one terminal character into the controller (event-loop thread only)."""

		controller = self.controller

		if character in ("\n", "\r"):
			controller.toggle_armed()
			return

		key_code, key, modifiers = key_event_for(character)

		if key_code == keystrum.constants.KEY_CODE_SPACE:
			if controller.sustain_is_down:
				controller.handle_key_up(key_code, key)
			else:
				controller.handle_key_down(key_code, key)
			return

		now = self._loop.time() if self._loop is not None else 0.0

		pending = self._pending_releases.pop(key_code, None)

		if pending is not None:
			pending.cancel()
			controller.handle_key_up(key_code, key, modifiers, now)

		controller.handle_key_down(key_code, key, modifiers, False, now)

		if self._loop is not None:
			self._pending_releases[key_code] = self._loop.call_later(
				self.tap_seconds,
				self._release,
				key_code,
				key,
				modifiers,
			)

	def _release (self, key_code: int, key: str, modifiers: keystrum.controller.Modifier) -> None:

		self._pending_releases.pop(key_code, None)
		self.controller.handle_key_up(key_code, key, modifiers)

	def _deliver (self) -> None:

		for character in self.drain():
			self.handle_character(character)

	def _listen (self) -> None:

		"""Thread target: read characters until ``_running`` is cleared."""

		import termios  # noqa: PLC0415
		import tty      # noqa: PLC0415

		fd = sys.stdin.fileno()
		old_settings = termios.tcgetattr(fd)

		try:
			# cbreak: one character at a time, Ctrl+C still works.
			tty.setcbreak(fd)

			while self._running:
				ready, _, _ = select.select([sys.stdin], [], [], 0.1)

				if ready:
					char = sys.stdin.read(1)

					if char and self._loop is not None:
						self._queue.put(char)
						self._loop.call_soon_threadsafe(self._deliver)

		except Exception:
			logger.exception("Keystroke listener stopped unexpectedly")

		finally:
			termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
			self.active = False
