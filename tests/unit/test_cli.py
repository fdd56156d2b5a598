from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from indexbench import main
from indexbench.errors import InsertionError

runner = CliRunner()


def test_info_shows_table_and_seed_defaults():
    result = runner.invoke(main.app, ["info"])

    assert result.exit_code == 0
    assert "table=" in result.output
    assert "batch=" in result.output


def test_configs_lists_defaults():
    result = runner.invoke(main.app, ["configs"])

    assert result.exit_code == 0
    assert "no_index" in result.output
    assert "composite_name_state_id" in result.output


def test_configs_reports_invalid_file(tmp_path: Path):
    path = tmp_path / "configs.json"
    path.write_text(json.dumps([{"name": "a"}, {"name": "a"}]), encoding="utf-8")

    result = runner.invoke(main.app, ["configs", "--config", str(path)])

    assert result.exit_code == 1
    assert "duplicate configuration names" in result.output


@pytest.mark.parametrize("args", [["--rows", "0"], ["--rows", "10", "--batch-size", "10001"]])
def test_seed_rejects_invalid_request_without_connecting(monkeypatch, args):
    def _no_connection(*a, **kw):
        raise AssertionError("must not connect")

    monkeypatch.setattr("indexbench.orchestrator.sync_connection", _no_connection)

    result = runner.invoke(main.app, ["seed", *args])

    assert result.exit_code == 1
    assert "invalid batch request" in result.output


def test_seed_rejects_unknown_mode():
    result = runner.invoke(main.app, ["seed", "--rows", "10", "--mode", "csv"])

    assert result.exit_code == 1
    assert "unknown mode" in result.output


def test_seed_reports_resume_offset_on_insertion_error(monkeypatch):
    def _failing_seed(**kwargs):
        raise InsertionError("duplicate key", committed_rows=2_000, next_offset=2_000)

    monkeypatch.setattr(main, "seed_table", _failing_seed)

    result = runner.invoke(main.app, ["seed", "--rows", "5000", "--batch-size", "1000"])

    assert result.exit_code == 1
    assert "--start-offset 2000" in result.output


def test_seed_prints_summary(monkeypatch):
    def _fake_seed(**kwargs):
        return {
            "table": "users",
            "mode": kwargs["mode"],
            "rows": kwargs["rows"],
            "batch_size": kwargs["batch_size"],
            "start_offset": 0,
            "next_offset": kwargs["rows"],
            "duration_seconds": 0.5,
            "throughput_rows_per_sec": 200.0,
            "peak_rss_bytes": None,
            "cpu_percent": 12.5,
        }

    monkeypatch.setattr(main, "seed_table", _fake_seed)

    result = runner.invoke(main.app, ["seed", "--rows", "100", "--batch-size", "10", "--mode", "series"])

    assert result.exit_code == 0
    assert "Seed Summary" in result.output
    assert "series" in result.output


@pytest.mark.parametrize("command", ["configs", "bench"])
def test_missing_config_file_is_reported(monkeypatch, tmp_path: Path, command):
    def _no_connection(*a, **kw):
        raise AssertionError("must not connect")

    monkeypatch.setattr("indexbench.orchestrator.sync_connection", _no_connection)

    result = runner.invoke(main.app, [command, "--config", str(tmp_path / "missing.json")])

    assert result.exit_code == 1
    assert "cannot read configurations" in result.output
