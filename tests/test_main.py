import pathlib

import mido
import pytest

import keystrum.__main__
import keystrum.config
import keystrum.output


CONFIG = """\
controller:
  tempo: 76
performer:
  song: nothing-else-matters-intro
  script: "trust i seek and i find in you"
"""


def test_parse_args_defaults () -> None:

	args = keystrum.__main__.parse_args([])

	assert args.config == "config.yaml"
	assert args.mode == "script"
	assert args.ticks == keystrum.__main__.DEFAULT_RENDER_TICKS


def test_render_from_config () -> None:

	"""Render mode plays from the config alone, the same way every time."""

	config = {"performer": {"chart": "Em D", "script": "hello"}}

	first = keystrum.__main__.render(config, 16)
	second = keystrum.__main__.render(config, 16)

	assert first
	assert first == second


def test_main_render_prints_events (tmp_path: pathlib.Path, capsys: pytest.CaptureFixture[str]) -> None:

	path = tmp_path / "config.yaml"
	path.write_text(CONFIG)

	keystrum.__main__.main([str(path), "--mode", "render", "--ticks", "12"])

	lines = capsys.readouterr().out.splitlines()

	assert lines
	assert "note_on" in lines[0]
	assert " 40 " in lines[0]


def test_open_output_uses_midi_port (patch_midi: None) -> None:

	output = keystrum.__main__.open_output({"midi": {"output_device": "Dummy MIDI", "channel": 1}})

	assert isinstance(output, keystrum.output.MidoNoteOutput)
	assert output.channel == 1


def test_open_output_falls_back_to_logging (monkeypatch: pytest.MonkeyPatch) -> None:

	monkeypatch.setattr(mido, "get_output_names", lambda: [])

	assert isinstance(keystrum.__main__.open_output({}), keystrum.output.LoggingNoteOutput)


@pytest.mark.parametrize("path", sorted((pathlib.Path(__file__).parent.parent / "examples").glob("*.yaml")), ids=lambda path: path.name)
def test_example_configs_render (path: pathlib.Path) -> None:

	config = keystrum.config.load_config(str(path))

	assert keystrum.__main__.render(config, 32)
