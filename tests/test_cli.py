"""CLI tests for Tagflow -- both commands via Click's CliRunner.

Each test uses runner.isolated_filesystem() with a JSON trigger config and
a markdown note written to disk, since the CLI loads both from paths.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from tagflow.cli import cli

NOTE = "- read https://x.test/ep/12 #podcast\n- other\n"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    """Create a Click test runner."""
    return CliRunner()


def _write_config(triggers: list[dict], path: str = "podcast.json", tag: str = "#podcast") -> str:
    Path(path).write_text(json.dumps({"tag": tag, "triggers": triggers}), encoding="utf-8")
    return path


def _write_note(text: str = NOTE, path: str = "note.md") -> str:
    Path(path).write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# triggers command
# ---------------------------------------------------------------------------

class TestTriggersCommand:
    def test_lists_triggers(self, runner: CliRunner):
        with runner.isolated_filesystem():
            _write_config(
                [
                    {"type": "onEnter", "actions": [{"type": "extract"}, {"type": "append"}]},
                    {"type": "onDone", "actions": []},
                ]
            )
            result = runner.invoke(cli, ["triggers", "podcast.json"])
            assert result.exit_code == 0, result.output
            assert "#podcast" in result.output
            assert "onEnter" in result.output
            assert "onDone" in result.output
            assert "Warning" not in result.output

    def test_warns_on_unknown_action(self, runner: CliRunner):
        with runner.isolated_filesystem():
            _write_config([{"type": "onDone", "actions": [{"type": "teleport"}]}])
            result = runner.invoke(cli, ["triggers", "podcast.json"])
            assert result.exit_code == 0
            assert "Unknown action type: teleport" in result.output

    def test_invalid_config(self, runner: CliRunner):
        with runner.isolated_filesystem():
            Path("bad.json").write_text("{not json", encoding="utf-8")
            result = runner.invoke(cli, ["triggers", "bad.json"])
            assert result.exit_code == 1
            assert "Error:" in result.output

    def test_missing_config_file(self, runner: CliRunner):
        result = runner.invoke(cli, ["triggers", "does-not-exist.json"])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# run command
# ---------------------------------------------------------------------------

class TestRunCommand:
    def test_on_enter_appends_and_writes(self, runner: CliRunner):
        with runner.isolated_filesystem():
            _write_config(
                [
                    {
                        "type": "onEnter",
                        "actions": [
                            {"type": "extract", "from": "{{line}}", "pattern": "/ep\\/(?P<ep>\\d+)/"},
                            {"type": "append", "template": "episode {{ep}}"},
                        ],
                    }
                ]
            )
            _write_note()
            result = runner.invoke(
                cli, ["run", "podcast.json", "onEnter", "--file", "note.md", "--line", "0", "--write"]
            )
            assert result.exit_code == 0, result.output
            assert "OK" in result.output
            assert Path("note.md").read_text(encoding="utf-8") == (
                "- read https://x.test/ep/12 #podcast\n  - episode 12\n- other\n"
            )

    def test_without_write_leaves_file(self, runner: CliRunner):
        with runner.isolated_filesystem():
            _write_config([{"type": "onEnter", "actions": [{"type": "append", "template": "x"}]}])
            _write_note()
            result = runner.invoke(cli, ["run", "podcast.json", "onEnter", "--file", "note.md", "--line", "0"])
            assert result.exit_code == 0
            assert Path("note.md").read_text(encoding="utf-8") == NOTE

    def test_failure_inserts_error_and_exits(self, runner: CliRunner):
        with runner.isolated_filesystem():
            _write_config([{"type": "onEnter", "actions": [{"type": "extract", "from": "x", "pattern": "("}]}])
            _write_note()
            result = runner.invoke(
                cli, ["run", "podcast.json", "onEnter", "--file", "note.md", "--line", "0", "--write"]
            )
            assert result.exit_code == 1
            assert "FAILED" in result.output
            lines = Path("note.md").read_text(encoding="utf-8").split("\n")
            assert lines[1].startswith("  * Error: Invalid pattern")
            assert lines[2] == "- other"

    def test_missing_trigger(self, runner: CliRunner):
        with runner.isolated_filesystem():
            _write_config([{"type": "onEnter", "actions": []}])
            _write_note()
            result = runner.invoke(cli, ["run", "podcast.json", "onDone", "--file", "note.md"])
            assert result.exit_code == 1
            assert "TriggerNotFoundError" in result.output

    def test_data_and_return_value(self, runner: CliRunner):
        with runner.isolated_filesystem():
            _write_config(
                [
                    {
                        "type": "onData",
                        "actions": [
                            {"type": "set", "name": "n", "value": "{{data.count}}"},
                            {"type": "return", "value": "{{n}}"},
                        ],
                    }
                ]
            )
            _write_note()
            result = runner.invoke(
                cli, ["run", "podcast.json", "onData", "--file", "note.md", "--data", '{"count": 3}']
            )
            assert result.exit_code == 0, result.output
            assert "Returned: 3" in result.output

    def test_seeded_vars_shown_when_verbose(self, runner: CliRunner):
        with runner.isolated_filesystem():
            _write_config([{"type": "onData", "actions": [{"type": "set", "name": "greeting", "value": "hi {{who}}"}]}])
            _write_note()
            result = runner.invoke(
                cli, ["-v", "run", "podcast.json", "onData", "--file", "note.md", "--var", "who=ada"]
            )
            assert result.exit_code == 0, result.output
            assert "greeting" in result.output
            assert "hi ada" in result.output

    def test_bad_var(self, runner: CliRunner):
        with runner.isolated_filesystem():
            _write_config([{"type": "onData", "actions": []}])
            _write_note()
            result = runner.invoke(cli, ["run", "podcast.json", "onData", "--file", "note.md", "--var", "novalue"])
            assert result.exit_code == 2

    def test_bad_data(self, runner: CliRunner):
        with runner.isolated_filesystem():
            _write_config([{"type": "onData", "actions": []}])
            _write_note()
            result = runner.invoke(cli, ["run", "podcast.json", "onData", "--file", "note.md", "--data", "{oops"])
            assert result.exit_code == 1
            assert "not valid JSON" in result.output

    def test_unknown_event_rejected(self, runner: CliRunner):
        with runner.isolated_filesystem():
            _write_config([])
            _write_note()
            result = runner.invoke(cli, ["run", "podcast.json", "onBlink", "--file", "note.md"])
            assert result.exit_code == 2
