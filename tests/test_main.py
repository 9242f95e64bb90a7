"""Tests for the buildxvfb command line."""

import json
import sys

import pytest

from main import load_config, parse_args, run

unix_only = pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX processes")


def test_parse_args_command_after_separator():
    args = parse_args(["--display", "7", "--", "make", "check"])
    assert args.display_name == 7
    assert args.command == ["make", "check"]


def test_parse_args_requires_command():
    with pytest.raises(SystemExit):
        parse_args(["--auto-display"])


def test_load_config_cli_overrides_file(tmp_path):
    config_file = tmp_path / "job.json"
    config_file.write_text(json.dumps({"screen": "800x600x8", "timeout": 4}))
    args = parse_args(["--config", str(config_file), "--timeout", "2",
                       "--shutdown-with-build", "--", "true"])
    config = load_config(args)
    assert config["screen"] == "800x600x8"
    assert config["timeout"] == 2
    assert config["shutdown_with_build"] is True
    assert config["installation_name"] == "default"
    assert "debug" not in config


@unix_only
def test_run_publishes_display(tmp_path, fake_xvfb_home):
    home = fake_xvfb_home("exec sleep 30")
    check = "import os, sys; sys.exit(0 if os.environ.get('DISPLAY') == ':7' else 5)"
    args = parse_args(["--xvfb-home", home, "--display", "7", "--root", str(tmp_path),
                       "--", sys.executable, "-c", check])
    assert run(args) == 0
    assert not any(name.endswith("xvfb") for name in (p.name for p in tmp_path.iterdir()))


def test_run_reports_bad_config(tmp_path):
    args = parse_args(["--display", "-1", "--root", str(tmp_path), "--", "true"])
    assert run(args) == 1


def _error_lines(output: bytes) -> list[bytes]:
    return [line for line in output.splitlines() if line.startswith(b"ERROR")]


@unix_only
def test_run_early_exit_logs_one_error(tmp_path, fake_xvfb_home, capsysbinary):
    home = fake_xvfb_home("exit 3")
    args = parse_args(["--xvfb-home", home, "--display", "7", "--timeout", "1",
                       "--root", str(tmp_path), "--", "true"])
    assert run(args) == 1
    assert _error_lines(capsysbinary.readouterr().out) == [
        b"ERROR: Xvfb failed to start (exit code 3)",
    ]


def test_run_bad_config_logs_one_error(tmp_path, capsysbinary):
    args = parse_args(["--display", "-1", "--root", str(tmp_path), "--", "true"])
    assert run(args) == 1
    lines = _error_lines(capsysbinary.readouterr().out)
    assert len(lines) == 1
    assert b"display_name" in lines[0]
