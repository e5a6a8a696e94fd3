"""Tests for the tessera command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from tessera import __version__
from tessera.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def csv_file(tmp_path: Path) -> Path:
    path = tmp_path / "sales.csv"
    path.write_text("Region,Amount\nNorth,10\nSouth,\nEast,n/a\nWest,32.5\n")
    return path


class TestParseCommand:
    def test_wire_output(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["parse", "=sum(ColumnA)"])
        assert result.exit_code == 0
        assert result.output.strip() == "SUM:ColumnA"

    def test_json_output(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["parse", "=avg( Price )", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"function_name": "AVG", "argument": "Price"}

    def test_parse_error(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["parse", "SUM(ColumnA)"])
        assert result.exit_code == 1
        assert "must start with '='" in result.output


class TestAggregateCommand:
    def test_sum_args(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["aggregate", "SUM", "10", "20", "30"])
        assert result.exit_code == 0
        assert result.output.strip() == "60"

    def test_stdin_values(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["aggregate", "avg", "-"], input="1\n\nabc\n2\n")
        assert result.exit_code == 0
        assert result.output.strip() == "1.5"

    def test_count_json(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["aggregate", "count", "a", " ", "3", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"function_name": "COUNT", "value": 2.0}

    def test_no_numeric_values(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["aggregate", "MAX", "abc"])
        assert result.exit_code == 1
        assert "no numeric values" in result.output

    def test_unknown_kind(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["aggregate", "MEDIAN", "1"])
        assert result.exit_code == 1
        assert "Unknown function" in result.output


class TestEvalCommand:
    def test_eval(self, runner: CliRunner, csv_file: Path) -> None:
        result = runner.invoke(main, ["eval", str(csv_file), "=SUM(amount)"])
        assert result.exit_code == 0
        assert result.output.strip() == "42.5"

    def test_eval_count(self, runner: CliRunner, csv_file: Path) -> None:
        result = runner.invoke(main, ["eval", str(csv_file), "=COUNT(Amount)"])
        assert result.output.strip() == "3"

    def test_eval_json_error(self, runner: CliRunner, csv_file: Path) -> None:
        result = runner.invoke(main, ["eval", str(csv_file), "=SUM(Missing)", "--json"])
        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["result"] is None
        assert "not found" in payload["error"]

    def test_eval_uses_project_config_and_logs(self, runner: CliRunner, csv_file: Path, tmp_path: Path) -> None:
        project = tmp_path / "proj"
        project.mkdir()
        (project / "tessera.yaml").write_text("integer_results: false\n")

        result = runner.invoke(main, ["eval", str(csv_file), "=MIN(Amount)", "--project", str(project)])
        assert result.exit_code == 0
        assert result.output.strip() == "10.0"

        logs = runner.invoke(main, ["logs", "--project", str(project), "--json"])
        assert logs.exit_code == 0
        events = json.loads(logs.output)
        assert events[0]["event_type"] == "formula_calculated"


class TestLogsCommand:
    def test_no_logs(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(main, ["logs", "--project", str(tmp_path)])
        assert result.exit_code == 0
        assert "No events logged." in result.output


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
