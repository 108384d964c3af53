"""Unit tests for the recordwatch CLI."""

import asyncio
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from recordwatch.cli import _mirror, _watch, cli
from recordwatch.core.config import Settings
from recordwatch.core.logging import configure_logging
from recordwatch.domain.entities import Record


def write_json(path: Path, data) -> str:
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def json_lines(output: str) -> list[dict]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class TestInfoCommand:
    """Tests for `recordwatch info`."""

    def test_shows_configuration(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["--log-level", "ERROR", "info"])

        assert result.exit_code == 0
        assert "recordwatch v0.1.0" in result.stdout
        assert "Tick:" in result.stdout
        assert "ERROR" in result.stdout

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.stdout


class TestDiffCommand:
    """Tests for `recordwatch diff`."""

    def test_reports_changes_in_order(self, tmp_path) -> None:
        """Test adds and updates in new order, then deletes in old order."""
        old = write_json(tmp_path / "old.json", {"a": 1, "b": [1, 2], "c": 3, "d": 4})
        new = write_json(tmp_path / "new.json", {"e": 5, "b": [1, 2, 3], "a": 1})

        result = CliRunner().invoke(cli, ["--log-level", "ERROR", "diff", old, new])

        assert result.exit_code == 0
        assert json_lines(result.stdout) == [
            {"type": "add", "name": "e"},
            {"type": "update", "name": "b", "old_value": [1, 2]},
            {"type": "delete", "name": "c", "old_value": 3},
            {"type": "delete", "name": "d", "old_value": 4},
        ]

    def test_equal_documents_print_nothing(self, tmp_path) -> None:
        """Test that decoded containers are compared by content."""
        data = {"a": {"nested": [1]}, "b": None}
        old = write_json(tmp_path / "old.json", data)
        new = write_json(tmp_path / "new.json", data)

        result = CliRunner().invoke(cli, ["--log-level", "ERROR", "diff", old, new])

        assert result.exit_code == 0
        assert json_lines(result.stdout) == []

    def test_sealed_reports_prevent_extensions_last(self, tmp_path) -> None:
        """Test that --sealed appends a preventExtensions record."""
        old = write_json(tmp_path / "old.json", {"a": 1})
        new = write_json(tmp_path / "new.json", {})

        result = CliRunner().invoke(
            cli, ["--log-level", "ERROR", "diff", "--sealed", old, new]
        )

        assert json_lines(result.stdout) == [
            {"type": "delete", "name": "a", "old_value": 1},
            {"type": "preventExtensions"},
        ]

    def test_unreadable_file_exits_with_error(self, tmp_path) -> None:
        """Test that invalid input files exit with status 1."""
        good = write_json(tmp_path / "good.json", {})
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        array = write_json(tmp_path / "array.json", [1, 2])
        runner = CliRunner()

        assert runner.invoke(cli, ["diff", good, str(bad)]).exit_code == 1
        assert runner.invoke(cli, ["diff", good, array]).exit_code == 1
        assert runner.invoke(cli, ["diff", good, str(tmp_path / "nope.json")]).exit_code == 1


class TestWatchCommand:
    """Tests for `recordwatch watch`."""

    def test_watch_without_changes_prints_nothing(self, tmp_path) -> None:
        """Test that a bounded watch of an unchanged file is silent."""
        path = write_json(tmp_path / "watched.json", {"a": 1})

        result = CliRunner().invoke(
            cli,
            ["--log-level", "ERROR", "watch", path, "--interval-ms", "5", "--ticks", "3"],
        )

        assert result.exit_code == 0
        assert json_lines(result.stdout) == []

    def test_watch_requires_existing_file(self, tmp_path) -> None:
        result = CliRunner().invoke(cli, ["watch", str(tmp_path / "missing.json")])

        assert result.exit_code != 0

    @pytest.mark.parametrize("interval", ["0", "60001"])
    def test_interval_out_of_range_rejected(self, tmp_path, interval) -> None:
        """Test that --interval-ms is range checked before any settings are built."""
        path = write_json(tmp_path / "watched.json", {})

        result = CliRunner().invoke(cli, ["watch", path, "--interval-ms", interval])

        assert result.exit_code == 2
        assert "Invalid value" in result.output
        assert "ValidationError" not in result.output

    @pytest.mark.asyncio
    async def test_watch_prints_file_changes(self, tmp_path, capsys) -> None:
        """Test that edits to the watched file are printed as JSON lines."""
        configure_logging(
            Settings(environment="testing", log_format="console", log_level="ERROR")
        )
        watched = tmp_path / "watched.json"
        write_json(watched, {"a": 1, "gone": True})
        settings = Settings(environment="testing", tick_interval_ms=5)

        task = asyncio.create_task(_watch(str(watched), settings, ticks=40))
        await asyncio.sleep(0.05)
        staged = tmp_path / "staged.json"
        write_json(staged, {"a": 2, "b": [3]})
        staged.replace(watched)
        await task

        assert json_lines(capsys.readouterr().out) == [
            {"type": "update", "name": "a", "old_value": 1},
            {"type": "add", "name": "b"},
            {"type": "delete", "name": "gone", "old_value": True},
        ]

    def test_mirror_applies_file_content(self) -> None:
        """Test that reloads only reassign keys whose content changed."""
        items = [1, 2]
        record = Record({"a": 1, "items": items, "gone": True})

        _mirror(record, {"items": [1, 2], "a": 2, "new": "x"})

        assert record.to_dict() == {"a": 2, "items": [1, 2], "new": "x"}
        assert record["items"] is items
