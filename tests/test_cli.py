"""
Tests for the cleanview command-line interface
"""

import json
from unittest.mock import patch

import pytest

from cleanview.cli import create_parser, main


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("cleanview.cli.configure_logging"):
        yield


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    (root / ".gitignore").write_text("node_modules/\n*.log\n")
    settings_dir = root / ".vscode"
    settings_dir.mkdir()
    (settings_dir / "settings.json").write_text(json.dumps({
        "editor.tabSize": 4,
        "files.exclude": {"**/.git": True},
    }))
    return root


def run_cli(workspace, tmp_path, *argv):
    return main(["--root", str(workspace), "--state-dir", str(tmp_path / "state"), *argv])


def read_settings(workspace):
    return json.loads((workspace / ".vscode" / "settings.json").read_text())


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        create_parser().parse_args([])


def test_hide_then_show(workspace, tmp_path, capsys):
    assert run_cli(workspace, tmp_path, "hide") == 0
    assert "Gitignored files are now hidden" in capsys.readouterr().out

    settings = read_settings(workspace)
    assert settings["editor.tabSize"] == 4
    assert settings["files.exclude"] == {
        "**/.git": True,
        "**/node_modules/**": True,
        "**/*.log": True,
    }

    assert run_cli(workspace, tmp_path, "status") == 0
    assert capsys.readouterr().out == "CleanView (2) [hidden]\n"

    assert run_cli(workspace, tmp_path, "show") == 0
    assert read_settings(workspace)["files.exclude"] == {"**/.git": True}

    assert run_cli(workspace, tmp_path, "status") == 0
    assert capsys.readouterr().out.endswith("CleanView [visible]\n")


def test_toggle_survives_restart(workspace, tmp_path, capsys):
    run_cli(workspace, tmp_path, "toggle")
    run_cli(workspace, tmp_path, "toggle")

    output = capsys.readouterr().out
    assert "now hidden" in output
    assert "now visible" in output
    assert read_settings(workspace)["files.exclude"] == {"**/.git": True}


def test_check(workspace, tmp_path, capsys):
    assert run_cli(workspace, tmp_path, "check", "debug.log", "src/main.py") == 0

    assert capsys.readouterr().out.splitlines() == ["ignored\tdebug.log", "visible\tsrc/main.py"]


def test_invalid_settings_file(workspace, tmp_path, capsys):
    (workspace / ".vscode" / "settings.json").write_text("{ not json")

    assert run_cli(workspace, tmp_path, "hide") == 1
    assert "not valid JSON" in capsys.readouterr().err


def test_missing_root(tmp_path, capsys):
    assert main(["--root", str(tmp_path / "missing"), "status"]) == 1
    assert "is not a directory" in capsys.readouterr().err


def test_invalid_configuration_exits_cleanly(workspace, tmp_path, capsys, monkeypatch):
    monkeypatch.setenv("CLEANVIEW_DEBOUNCE_SECONDS", "-2")

    assert run_cli(workspace, tmp_path, "hide") == 1
    assert "debounce_seconds must be non-negative" in capsys.readouterr().err
    assert read_settings(workspace)["files.exclude"] == {"**/.git": True}


def test_settings_with_comments_are_rejected(workspace, tmp_path, capsys):
    settings_file = workspace / ".vscode" / "settings.json"
    settings_file.write_text('{\n    // user comment\n    "editor.tabSize": 4\n}\n')

    assert run_cli(workspace, tmp_path, "hide") == 1
    assert "comments and trailing commas are not supported" in capsys.readouterr().err
    assert "// user comment" in settings_file.read_text()
