"""Named-event observer registry with coalesced change notifications.

The controller and performer announce every observable mutation through an
`EventEmitter` so a UI (the terminal `Display`, or anything else) can redraw
reactively. `subscribe()` returns an unsubscribe function, which keeps
observers independent of any particular UI toolkit.

`emit_soon()` coalesces: however many times it is called during one turn of
the event loop, listeners hear about it once. Outside a running loop it
delivers immediately.
"""

import asyncio
import logging
import typing


logger = logging.getLogger(__name__)

CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""A simple synchronous event emitter."""

	def __init__ (self) -> None:

		"""Initialize an empty event registry."""

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {}
		self._pending: typing.Set[str] = set()

	def on (self, event_name: str, callback: CallbackType) -> None:

		"""Register a callback for an event name."""

		self._listeners.setdefault(event_name, []).append(callback)

	def off (self, event_name: str, callback: CallbackType) -> None:

		"""Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		if event_name not in self._listeners or callback not in self._listeners[event_name]:
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)

	def subscribe (self, event_name: str, callback: CallbackType) -> typing.Callable[[], None]:

		"""Register *callback* and return a function that unregisters it.

		Calling the returned function more than once is harmless.
		"""

		self.on(event_name, callback)

		def unsubscribe () -> None:

			if callback in self._listeners.get(event_name, []):
				self._listeners[event_name].remove(callback)

		return unsubscribe

	def emit (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""Call every listener for *event_name* now.

		A listener that raises is logged and skipped; the remaining listeners
		still run.
		"""

		for callback in list(self._listeners.get(event_name, [])):

			if asyncio.iscoroutinefunction(callback):
				raise ValueError("Async callback encountered in emit")

			try:
				callback(*args, **kwargs)
			except Exception:
				logger.exception(f"Listener for {event_name!r} failed")

	def emit_soon (self, event_name: str) -> None:

		"""Emit *event_name* once at the end of the current event-loop turn."""

		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			self.emit(event_name)
			return

		if event_name in self._pending:
			return

		self._pending.add(event_name)
		loop.call_soon(self._flush, event_name)

	def _flush (self, event_name: str) -> None:

		self._pending.discard(event_name)
		self.emit(event_name)
