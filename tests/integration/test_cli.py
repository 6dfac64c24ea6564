"""CLI command tests using click's CliRunner."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner
from rich.console import Console

from boardsync.cli.commands.prefs import parse_value
from boardsync.cli.commands.root import cli
from boardsync.cli.render import board_table
from boardsync.cli.script import BatchMoveStep, MoveStep, parse_script
from tests.helpers import board_payload

if TYPE_CHECKING:
    from pathlib import Path

    from boardsync.core.models.entities import BoardSnapshot
    from boardsync.core.view import BoardView

pytestmark = pytest.mark.integration


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def board_file(tmp_path: Path, snapshot: BoardSnapshot) -> Path:
    path = tmp_path / "board.json"
    path.write_text(json.dumps(board_payload(snapshot)), encoding="utf-8")
    return path


def _script(tmp_path: Path, steps: list[dict[str, object]]) -> Path:
    path = tmp_path / "script.json"
    path.write_text(json.dumps({"steps": steps}), encoding="utf-8")
    return path


class TestRoot:
    def test_version(self, runner: CliRunner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("boardsync ")

    def test_no_command_prints_help(self, runner: CliRunner, tmp_path: Path):
        result = runner.invoke(cli, ["--config", str(tmp_path / "none.toml")])
        assert result.exit_code == 0
        assert "simulate" in result.output

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path, board_file: Path):
        config = tmp_path / "config.toml"
        config.write_text('[logging]\nlevel = "LOUD"\n', encoding="utf-8")

        result = runner.invoke(cli, ["--config", str(config), "check", str(board_file)])

        assert result.exit_code == 1
        assert "Invalid config" in result.output


class TestCheck:
    def test_consistent_board(self, runner: CliRunner, board_file: Path):
        result = runner.invoke(cli, ["check", str(board_file)])

        assert result.exit_code == 0, result.output
        assert "Board data is consistent" in result.output

    def test_reports_gaps(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "board.json"
        path.write_text(
            json.dumps(
                {
                    "id": 1,
                    "name": "Raw",
                    "columns": [{"id": 1, "name": "To Do", "status": "todo", "order": 1}],
                    "tasks": [
                        {"id": 1, "title": "a", "status": "todo", "boardPosition": 1},
                        {"id": 2, "title": "b", "status": "todo", "boardPosition": 3},
                    ],
                }
            ),
            encoding="utf-8",
        )

        result = runner.invoke(cli, ["check", str(path)])

        assert result.exit_code == 1
        assert "not dense" in result.output

    def test_invalid_json(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "board.json"
        path.write_text("{", encoding="utf-8")

        result = runner.invoke(cli, ["check", str(path)])

        assert result.exit_code == 1
        assert "invalid JSON" in result.output


class TestSimulate:
    def test_script_with_injected_failure(
        self, runner: CliRunner, tmp_path: Path, board_file: Path
    ):
        script = _script(
            tmp_path,
            [
                {"op": "move", "task": 3, "column": 10, "index": 0},
                {"op": "move", "task": 1, "column": 30},
                {"op": "move_column", "column": 30, "index": 0},
                {"op": "batch_move", "tasks": [1, 2], "column": 40},
                {"op": "delete_column", "column": 20},
            ],
        )

        result = runner.invoke(
            cli, ["simulate", str(board_file), str(script), "--fail", "update_task_status:1"]
        )

        assert result.exit_code == 0, result.output
        assert "1. move: confirmed" in result.output
        assert "2. move: rolled_back" in result.output
        assert "3. move_column: confirmed" in result.output
        assert "4. batch_move: 1/2 moved" in result.output
        assert "5. delete_column: rejected" in result.output

    def test_unknown_operation_in_fail_option(
        self, runner: CliRunner, tmp_path: Path, board_file: Path
    ):
        script = _script(tmp_path, [])
        result = runner.invoke(cli, ["simulate", str(board_file), str(script), "--fail", "nope"])

        assert result.exit_code == 2
        assert "unknown operation" in result.output

    def test_invalid_script(self, runner: CliRunner, tmp_path: Path, board_file: Path):
        script = _script(tmp_path, [{"op": "fly", "task": 1}])
        result = runner.invoke(cli, ["simulate", str(board_file), str(script)])

        assert result.exit_code == 1
        assert "invalid script" in result.output

    def test_unknown_column_in_batch(self, runner: CliRunner, tmp_path: Path, board_file: Path):
        script = _script(tmp_path, [{"op": "batch_move", "tasks": [1], "column": 99}])
        result = runner.invoke(cli, ["simulate", str(board_file), str(script)])

        assert result.exit_code == 1
        assert "Column 99 not found" in result.output

    def test_debug_prints_log(self, runner: CliRunner, tmp_path: Path, board_file: Path):
        script = _script(tmp_path, [{"op": "move", "task": 1, "column": 20}])
        result = runner.invoke(cli, ["simulate", str(board_file), str(script), "--debug"])

        assert result.exit_code == 0, result.output
        assert "Drag started" in result.output


class TestPrefs:
    def test_set_then_get(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "prefs.toml"

        saved = runner.invoke(
            cli, ["prefs", "set", "1", "10", "collapsed=true", "color=red", "--file", str(path)]
        )
        shown = runner.invoke(cli, ["prefs", "get", "1", "10", "--file", str(path)])

        assert saved.exit_code == 0, saved.output
        assert "Saved 2 preference(s)" in saved.output
        assert "collapsed = True" in shown.output
        assert "color = 'red'" in shown.output

    def test_get_empty(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "p.toml"
        result = runner.invoke(cli, ["prefs", "get", "1", "10", "--file", str(path)])
        assert "No preferences set" in result.output

    def test_bad_pair(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "p.toml"
        result = runner.invoke(cli, ["prefs", "set", "1", "10", "collapsed", "--file", str(path)])
        assert result.exit_code == 2

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("3", 3), ("1.5", 1.5), ('"quoted"', "quoted"), ("plain", "plain")],
    )
    def test_parse_value(self, raw: str, expected: object):
        assert parse_value(raw) == expected


class TestScript:
    def test_bare_list(self):
        steps = parse_script('[{"op": "move", "task": 1, "column": 2}]')
        assert steps == [MoveStep(op="move", task=1, column=2)]

    def test_wrapped(self):
        steps = parse_script('{"steps": [{"op": "batch_move", "tasks": [1], "column": 2}]}')
        assert steps == [BatchMoveStep(op="batch_move", tasks=[1], column=2)]


class TestRender:
    def test_board_table_lists_tasks_with_priority(self, view: BoardView):
        console = Console(record=True, width=200)
        console.print(board_table(view))
        text = console.export_text()

        assert "1:T1 (#1 MED), 2:T2 (#2 MED), 3:T3 (#3 MED)" in text
        assert "Column is under WIP limit (1/2)" in text
