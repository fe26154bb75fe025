from __future__ import annotations

import json
import logging

import pytest
from typer.testing import CliRunner

from cli.rtree import app as rtree_app
from rangetree import config as rt_config
from rangetree.logging import set_log_level


@pytest.fixture(autouse=True)
def _clean_runtime(monkeypatch: pytest.MonkeyPatch):
    for key in ["RANGETREE_ENGINE", "RANGETREE_DEFAULT_OPERATION"]:
        monkeypatch.delenv(key, raising=False)
    rt_config.reset_runtime_config_cache()
    yield
    set_log_level(None)
    rt_config.reset_runtime_config_cache()


def test_rtree_query_prints_sum() -> None:
    runner = CliRunner()
    result = runner.invoke(rtree_app, ["query", "1", "3", "5", "7", "9", "11", "--left", "1", "--right", "4"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "24"


def test_rtree_query_with_min_operation() -> None:
    runner = CliRunner()
    result = runner.invoke(rtree_app, ["query", "4", "2", "8", "-l", "0", "-r", "2", "--op", "min"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "2"


def test_rtree_update_then_query() -> None:
    runner = CliRunner()
    result = runner.invoke(
        rtree_app,
        ["update", "1", "3", "5", "7", "9", "11", "--set", "2=100", "--left", "0", "--right", "5"],
    )
    assert result.exit_code == 0
    assert result.stdout.strip() == "131"


def test_rtree_query_out_of_range_exits_with_error() -> None:
    runner = CliRunner()
    result = runner.invoke(rtree_app, ["query", "1", "2", "3", "--left", "0", "--right", "3"])
    assert result.exit_code == 2
    assert "error:" in result.output


def test_rtree_update_rejects_malformed_assignment() -> None:
    runner = CliRunner()
    result = runner.invoke(rtree_app, ["update", "1", "2", "--set", "oops", "-l", "0", "-r", "1"])
    assert result.exit_code != 0


def test_rtree_operations_marks_default() -> None:
    runner = CliRunner()
    result = runner.invoke(rtree_app, ["operations"])
    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert "sum (default)" in lines
    assert "min" in lines


def test_rtree_benchmark_json() -> None:
    runner = CliRunner()
    result = runner.invoke(
        rtree_app,
        ["benchmark", "--size", "64", "--queries", "16", "--updates", "8", "--format", "json"],
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["size"] == 64
    assert payload["queries"] == 16
    assert payload["engine"] == "python"
    assert payload["build_seconds"] >= 0.0


def test_rtree_benchmark_text() -> None:
    runner = CliRunner()
    result = runner.invoke(rtree_app, ["benchmark", "--size", "16", "--queries", "4", "--updates", "0"])
    assert result.exit_code == 0
    assert "engine=python" in result.stdout


def test_rtree_log_level_option() -> None:
    runner = CliRunner()
    result = runner.invoke(rtree_app, ["--log-level", "debug", "query", "1", "2", "-l", "0", "-r", "1"])
    assert result.exit_code == 0
    assert logging.getLogger("rangetree.core.tree").level == logging.DEBUG


def test_rtree_rejects_unknown_log_level() -> None:
    runner = CliRunner()
    result = runner.invoke(rtree_app, ["--log-level", "chatty", "operations"])
    assert result.exit_code == 2
