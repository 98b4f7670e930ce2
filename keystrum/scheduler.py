"""Delayed callbacks with generation-based cancellation.

Note releases, arpeggio steps and staggered strum notes are all "do this in
a few milliseconds" continuations. Each one is stamped with a
`GenerationToken` when it is scheduled. Stopping, restarting or panicking
bumps the owning `Generation`, and the scheduler drops any continuation whose
token has gone stale instead of running it. A stale continuation is a silent
no-op, never an error.

Two schedulers share one interface:

- `AsyncioScheduler` runs callbacks on the running asyncio event loop, so all
  state mutation happens on one thread.
- `VirtualScheduler` keeps its own clock and only runs callbacks when
  `advance()` moves time forward. Render mode and the tests use it to get
  identical event sequences on every run.
"""

import asyncio
import dataclasses
import heapq
import itertools
import logging
import typing


logger = logging.getLogger(__name__)


class Generation:

	"""A monotonically increasing counter that invalidates old tokens when bumped."""

	def __init__ (self) -> None:

		self.value: int = 0

	def bump (self) -> int:

		"""Invalidate every outstanding token and return the new value."""

		self.value += 1
		return self.value

	def token (self) -> "GenerationToken":

		"""Capture the current generation."""

		return GenerationToken(self, self.value)


@dataclasses.dataclass(frozen=True)
class GenerationToken:

	"""The generation a piece of scheduled work belongs to."""

	source: Generation
	value: int

	@property
	def valid (self) -> bool:

		return self.source.value == self.value


class Handle (typing.Protocol):

	def cancel (self) -> None:

		...


@typing.runtime_checkable
class Scheduler (typing.Protocol):

	"""Clock plus delayed-callback interface used by the performance engines."""

	def now (self) -> float:

		"""Current time in seconds."""

		...

	def call_later (self, delay: float, callback: typing.Callable[[], typing.Any], token: typing.Optional[GenerationToken] = None) -> Handle:

		"""Run *callback* after *delay* seconds unless *token* has gone stale."""

		...


def _guarded (callback: typing.Callable[[], typing.Any], token: typing.Optional[GenerationToken]) -> typing.Callable[[], None]:

	"""Wrap *callback* so it only runs while *token* is still current."""

	def run () -> None:

		if token is not None and not token.valid:
			return

		callback()

	return run


class AsyncioScheduler:

	"""Schedule continuations on the running asyncio event loop.

	Must be used from inside a running loop; every callback then runs on
	that loop's thread, which is what keeps shared state race-free.
	"""

	def now (self) -> float:

		return asyncio.get_running_loop().time()

	def call_later (self, delay: float, callback: typing.Callable[[], typing.Any], token: typing.Optional[GenerationToken] = None) -> asyncio.TimerHandle:

		return asyncio.get_running_loop().call_later(max(0.0, delay), _guarded(callback, token))


@dataclasses.dataclass
class _VirtualHandle:

	cancelled: bool = False

	def cancel (self) -> None:

		self.cancelled = True


class VirtualScheduler:

	"""Deterministic scheduler driven by explicit calls to `advance()`.

	Callbacks due at the same instant run in the order they were scheduled.
	A callback may schedule further callbacks; those run within the same
	`advance()` if they fall due before its target time.
	"""

	def __init__ (self, start: float = 0.0) -> None:

		self._now = start
		self._queue: typing.List[typing.Tuple[float, int, _VirtualHandle, typing.Callable[[], None]]] = []
		self._counter = itertools.count()

	def now (self) -> float:

		return self._now

	@property
	def pending (self) -> int:

		"""Number of callbacks waiting to run (including cancelled ones not yet discarded)."""

		return len(self._queue)

	def call_later (self, delay: float, callback: typing.Callable[[], typing.Any], token: typing.Optional[GenerationToken] = None) -> _VirtualHandle:

		handle = _VirtualHandle()
		due = self._now + max(0.0, delay)
		heapq.heappush(self._queue, (due, next(self._counter), handle, _guarded(callback, token)))
		return handle

	def advance (self, seconds: float) -> None:

		"""Move the clock forward by *seconds*, running every callback that falls due."""

		self.advance_to(self._now + seconds)

	def advance_to (self, target: float) -> None:

		"""Move the clock to *target* (never backwards), running due callbacks in time order."""

		while self._queue and self._queue[0][0] <= target:
			due, _, handle, callback = heapq.heappop(self._queue)
			self._now = max(self._now, due)

			if not handle.cancelled:
				callback()

		self._now = max(self._now, target)

	def run_all (self) -> None:

		"""Run every queued callback, advancing the clock to the last one."""

		while self._queue:
			self.advance_to(self._queue[0][0])
