"""Command-line entry point.

```
python -m keystrum [config.yaml] [--mode script|render|keys] [--ticks N]
```

- ``script`` (default): arm and play the configured script over the
  configured chart, live. The keyboard plays along; Enter disarms, Escape
  panics.
- ``render``: play the first ``--ticks`` ticks on a virtual clock and print
  the note events. Same config, same output, every time.
- ``keys``: play the keyboard live. Enter arms.

Notes go to ``midi.output_device`` when it is set (or when exactly one MIDI
output exists) and are logged otherwise.
"""

import argparse
import asyncio
import logging
import typing

import keystrum.config
import keystrum.controller
import keystrum.display
import keystrum.keystroke
import keystrum.output
import keystrum.performer
import keystrum.scheduler


logger = logging.getLogger(__name__)

DEFAULT_RENDER_TICKS = 48


def parse_args (argv: typing.Optional[typing.Sequence[str]] = None) -> argparse.Namespace:

	parser = argparse.ArgumentParser(prog="keystrum", description="Play music by typing.")
	parser.add_argument("config", nargs="?", default="config.yaml", help="YAML config file (default: config.yaml)")
	parser.add_argument("--mode", choices=["script", "render", "keys"], default="script")
	parser.add_argument("--ticks", type=int, default=DEFAULT_RENDER_TICKS, help="ticks to render in render mode")

	return parser.parse_args(argv)


def open_output (config: typing.Dict[str, typing.Any]) -> keystrum.output.NoteOutput:

	"""A mido output for the configured device, or a logging output when none can be opened."""

	midi = config.get("midi") or {}
	device_name, port = keystrum.output.select_output_device(midi.get("output_device"))

	if port is None:
		logger.warning("No MIDI output; notes will be logged instead.")
		return keystrum.output.LoggingNoteOutput()

	return keystrum.output.MidoNoteOutput(port, channel=int(midi.get("channel", 0)))


def render (config: typing.Dict[str, typing.Any], ticks: int) -> typing.List[keystrum.output.NoteEvent]:

	"""Render *ticks* ticks of the configured script and return the note events."""

	scheduler = keystrum.scheduler.VirtualScheduler()
	output = keystrum.output.RecordingNoteOutput(clock=scheduler.now)
	controller = keystrum.controller.LiveController(output, scheduler=scheduler)
	performer = keystrum.performer.TextPerformer(controller)

	keystrum.config.apply_config(config, controller, performer)
	controller.set_armed(True)
	performer.render(ticks)

	return output.events


async def run_live (config: typing.Dict[str, typing.Any], mode: str) -> None:

	"""Play live until cancelled (Ctrl+C)."""

	output = open_output(config)
	controller = keystrum.controller.LiveController(output)
	performer = keystrum.performer.TextPerformer(controller)

	keystrum.config.apply_config(config, controller, performer)

	display = keystrum.display.Display(controller, performer if mode == "script" else None)
	listener = keystrum.keystroke.KeystrokeListener(controller)

	if mode == "script":
		performer.set_mode(keystrum.performer.Mode.SCRIPT)
		controller.subscribe(performer.sync_playback)
		controller.set_armed(True)
		performer.sync_playback()
	else:
		performer.set_mode(keystrum.performer.Mode.CHORDS)
		logger.info("Press Enter to arm, Escape to panic, Ctrl+C to quit.")

	display.start()
	listener.start()

	try:
		await asyncio.Event().wait()
	finally:
		listener.stop()
		performer.stop_playback()
		controller.panic()
		display.stop()

		if isinstance(output, keystrum.output.MidoNoteOutput):
			output.close()


def main (argv: typing.Optional[typing.Sequence[str]] = None) -> None:

	"""Main entry point for the keystrum application."""

	logging.basicConfig(level=logging.INFO)

	args = parse_args(argv)
	config = keystrum.config.load_config(args.config)

	if args.mode == "render":
		for event in render(config, args.ticks):
			print(f"{event.time:8.3f}  {event.kind:<8}  {event.note:3d}  {event.velocity:3d}")
		return

	logger.info("keystrum starting...")

	try:
		asyncio.run(run_live(config, args.mode))
	except KeyboardInterrupt:
		logger.info("Stopping...")


if __name__ == "__main__":
	main()
