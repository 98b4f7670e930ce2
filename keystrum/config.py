"""YAML configuration.

A config file has up to three sections; every key is optional:

```yaml
controller:
  tempo: 120
  instrument: Guitar (Overdriven)
  mapping_mode: musical        # or chromatic
  scale: blues
  octave: -1
  row_offset: 5
  layout: melodic
  play_style: Chug 8ths
  strum: true
  power_chords: false
  voice_lead: smooth
  base_velocity: 96
  preset: rock-guitar          # applied before the keys above

performer:
  song: nothing-else-matters   # applied before the keys below
  style: Ballad Pick
  input_mode: sentence
  advance_mode: every bar
  grid: triplets
  chord_style: two-hand
  chart: "Em D C G"
  script: "trust i seek and i find in you"

midi:
  output_device: "IAC Driver Bus 1"
  channel: 0
```

Enum values may be given by value (``"Chug 8ths"``) or by name
(``chug_8``), case-insensitively. Unknown values raise ``ValueError``.
"""

import enum
import logging
import os
import typing

import yaml

import keystrum.controller
import keystrum.key_layout
import keystrum.note_mapper
import keystrum.output
import keystrum.performer
import keystrum.presets
import keystrum.theory


logger = logging.getLogger(__name__)

EnumType = typing.TypeVar("EnumType", bound=enum.Enum)


def load_config (config_path: str = "config.yaml") -> typing.Dict[str, typing.Any]:

	"""Load configuration from a YAML file; a missing or empty file gives ``{}``."""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, "r") as f:
		config = yaml.safe_load(f)

	if config is None:
		return {}

	if not isinstance(config, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping at the top level")

	return config


def _normalize (name: str) -> str:

	return str(name).strip().lower().replace("_", " ").replace("-", " ")


def parse_enum (enum_type: typing.Type[EnumType], value: typing.Any) -> EnumType:

	"""Find the member of *enum_type* whose value or name matches *value*.

	Raises:
		ValueError: If nothing matches.
	"""

	if isinstance(value, enum_type):
		return value

	wanted = _normalize(value)

	for member in enum_type:
		if wanted in (_normalize(member.value), _normalize(member.name)):
			return member

	choices = [member.value for member in enum_type]
	raise ValueError(f"Unknown {enum_type.__name__} {value!r}. Expected one of {choices}")


def apply_controller_config (section: typing.Dict[str, typing.Any], controller: keystrum.controller.LiveController) -> None:

	"""Apply a ``controller:`` section."""

	if "tempo" in section:
		tempo = section["tempo"]

		if not isinstance(tempo, (int, float)) or tempo <= 0:
			raise ValueError(f"tempo must be a positive number, got {tempo!r}")

		controller.set_tempo(int(tempo))

	if "instrument" in section:
		controller.set_instrument(parse_enum(keystrum.output.Instrument, section["instrument"]))

	if "mapping_mode" in section:
		controller.set_mapping_mode(parse_enum(keystrum.note_mapper.MappingMode, section["mapping_mode"]))

	if "scale" in section:
		controller.set_scale(keystrum.theory.get_scale(section["scale"]))

	if "octave" in section:
		controller.set_octave(int(section["octave"]))

	if "row_offset" in section:
		controller.set_row_offset(int(section["row_offset"]))

	if "layout" in section:
		controller.set_key_layout(keystrum.key_layout.get_layout(section["layout"]))

	if "play_style" in section:
		controller.set_play_style(parse_enum(keystrum.controller.PlayStyle, section["play_style"]))

	if "strum" in section:
		controller.set_strum(bool(section["strum"]))

	if "power_chords" in section:
		controller.set_power_chords(bool(section["power_chords"]))

	if "voice_lead" in section:
		voice_lead = section["voice_lead"]

		if isinstance(voice_lead, bool):
			voice_lead = keystrum.controller.VoiceLeadMode.SMOOTH if voice_lead else keystrum.controller.VoiceLeadMode.OFF

		controller.set_voice_lead_mode(parse_enum(keystrum.controller.VoiceLeadMode, voice_lead))

	if "base_velocity" in section:
		controller.set_base_velocity(int(section["base_velocity"]))


def apply_performer_config (section: typing.Dict[str, typing.Any], performer: keystrum.performer.TextPerformer) -> None:

	"""Apply a ``performer:`` section."""

	if "song" in section:
		keystrum.presets.load_song(keystrum.presets.get_song(section["song"]), performer.controller, performer)

	if "mode" in section:
		performer.set_mode(parse_enum(keystrum.performer.Mode, section["mode"]))

	if "style" in section:
		performer.set_script_style(parse_enum(keystrum.performer.ScriptStyle, section["style"]))

	if "input_mode" in section:
		performer.set_input_mode(parse_enum(keystrum.performer.ScriptInputMode, section["input_mode"]))

	if "advance_mode" in section:
		performer.set_advance_mode(parse_enum(keystrum.performer.ChordAdvanceMode, section["advance_mode"]))

	if "grid" in section:
		performer.set_grid(parse_enum(keystrum.performer.TimingGrid, section["grid"]))

	if "chord_style" in section:
		performer.set_chord_style(parse_enum(keystrum.performer.ChordPlaybackStyle, section["chord_style"]))

	if "chart" in section:
		performer.set_chord_chart_text(str(section["chart"]))

	if "script" in section:
		performer.set_script_text(str(section["script"]))


def apply_config (
	config: typing.Dict[str, typing.Any],
	controller: keystrum.controller.LiveController,
	performer: typing.Optional[keystrum.performer.TextPerformer] = None,
) -> None:

	"""Apply the ``controller:`` and ``performer:`` sections of *config*.

	A ``controller.preset`` is applied first so the other keys can adjust it.
	The ``midi:`` section is left to the caller, which owns the output port.

	Raises:
		ValueError: For unknown names or invalid values.
	"""

	controller_section = config.get("controller") or {}
	performer_section = config.get("performer") or {}

	if "preset" in controller_section:
		keystrum.presets.apply_preset(keystrum.presets.get_preset(controller_section["preset"]), controller, performer)

	apply_controller_config(controller_section, controller)

	if performer is not None:
		apply_performer_config(performer_section, performer)
