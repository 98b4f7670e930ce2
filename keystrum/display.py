"""Live terminal status line.

Shows the controller's state (armed, mapping, style, last note, ...) and,
when a performer is attached, the current chord and the script with the
playing character marked. The status region is written to **stderr** and
redrawn whenever the controller or performer reports a state change; log
messages scroll above it without disruption.

```python
display = Display(controller, performer)
display.start()
...
display.stop()
```
"""

import logging
import shutil
import sys
import typing

import keystrum.controller
import keystrum.performer


_SCRIPT_WINDOW = 24


class DisplayLogHandler (logging.Handler):

	"""Logging handler that clears and redraws the status region around log output.

	Installed by ``Display.start()`` and removed by ``Display.stop()``.
	"""

	def __init__ (self, display: "Display") -> None:

		super().__init__()
		self._display = display

	def emit (self, record: logging.LogRecord) -> None:

		"""Clear the status region, write the log message, then redraw."""

		try:
			self._display.clear_line()

			msg = self.format(record)
			sys.stderr.write(msg + "\n")
			sys.stderr.flush()

			self._display.draw()

		except Exception:
			self.handleError(record)


class Display:

	"""Persistent status region for a `LiveController` and optional `TextPerformer`."""

	def __init__ (self, controller: keystrum.controller.LiveController, performer: typing.Optional[keystrum.performer.TextPerformer] = None) -> None:

		"""Store the objects to read state from; nothing is drawn until `start()`.

		Parameters:
			controller: Source of the main status line.
			performer: When given, a second line shows the chord and script position.
		"""

		self._controller = controller
		self._performer = performer
		self._active: bool = False
		self._handler: typing.Optional[DisplayLogHandler] = None
		self._saved_handlers: typing.List[logging.Handler] = []
		self._unsubscribers: typing.List[typing.Callable[[], None]] = []
		self._lines: typing.List[str] = []
		self._drawn_line_count: int = 0

	def start (self) -> None:

		"""Install the log handler, subscribe to state changes and draw.

		Existing root logger handlers are saved and restored by ``stop()``.
		"""

		if self._active:
			return

		self._active = True

		root_logger = logging.getLogger()

		self._saved_handlers = list(root_logger.handlers)
		self._handler = DisplayLogHandler(self)

		if self._saved_handlers and self._saved_handlers[0].formatter:
			self._handler.setFormatter(self._saved_handlers[0].formatter)
		else:
			self._handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))

		root_logger.handlers.clear()
		root_logger.addHandler(self._handler)

		self._unsubscribers.append(self._controller.subscribe(self.update))

		if self._performer is not None:
			self._unsubscribers.append(self._performer.subscribe(self.update))

		self.update()

	def stop (self) -> None:

		"""Unsubscribe, clear the status region and restore the original log handlers."""

		if not self._active:
			return

		for unsubscribe in self._unsubscribers:
			unsubscribe()

		self._unsubscribers = []

		self.clear_line()
		self._active = False

		root_logger = logging.getLogger()
		root_logger.handlers.clear()

		for handler in self._saved_handlers:
			root_logger.addHandler(handler)

		self._saved_handlers = []
		self._handler = None

	def update (self) -> None:

		"""Rebuild the status lines from current state and redraw."""

		if not self._active:
			return

		width = shutil.get_terminal_size(fallback=(80, 24)).columns
		lines = [self._controller.status_text]

		if self._performer is not None:
			lines.append(self.format_performer_line())

		self._lines = [line[:max(1, width - 1)] for line in lines]
		self.draw()

	def draw (self) -> None:

		"""Write the current status region to the terminal."""

		if not self._active or not self._lines:
			return

		if self._drawn_line_count > 1:
			sys.stderr.write(f"\033[{self._drawn_line_count - 1}A")

		for line in self._lines[:-1]:
			sys.stderr.write(f"\r\033[K{line}\n")

		# Last line has no trailing newline, so the cursor stays on it.
		sys.stderr.write(f"\r\033[K{self._lines[-1]}")
		sys.stderr.flush()

		self._drawn_line_count = len(self._lines)

	def clear_line (self) -> None:

		"""Erase the whole status region."""

		if not self._active:
			return

		if self._drawn_line_count > 1:
			sys.stderr.write(f"\033[{self._drawn_line_count - 1}A")

			for _ in range(self._drawn_line_count):
				sys.stderr.write("\r\033[K\n")

			sys.stderr.write(f"\033[{self._drawn_line_count}A")
		else:
			sys.stderr.write("\r\033[K")

		sys.stderr.flush()
		self._drawn_line_count = 0

	def format_performer_line (self) -> str:

		"""Chord position plus a window of the script with the current character in brackets."""

		performer = self._performer

		if performer is None:
			return ""

		parts = [performer.status_text]
		highlighted = performer.highlighted_range
		text = performer.script_text if performer.mode == keystrum.performer.Mode.SCRIPT else performer.chord_chart_text

		if highlighted is not None and text:
			start, end = highlighted
			window_start = max(0, start - _SCRIPT_WINDOW // 2)
			before = text[window_start:start]
			current = text[start:end]
			after = text[end:end + _SCRIPT_WINDOW // 2]
			parts.append(f"{before}[{current}]{after}".replace("\n", " "))

		return "   ".join(parts)
