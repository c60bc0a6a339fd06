from __future__ import annotations

import json
import logging
from pathlib import Path
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

from interlacex import config as cx_config
from interlacex.schedule import RunState

from cli.runtime import runtime_from_args
from cli.traverse import SimulatedClock, TraverseCLIOptions, app, run_traversal


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for key in (
        "INTERLACEX_INITIAL_BLOCK",
        "INTERLACEX_BATCH_SIZE",
        "INTERLACEX_BATCH_MIN",
        "INTERLACEX_BATCH_MAX",
        "INTERLACEX_TARGET_LOW_MS",
        "INTERLACEX_TARGET_HIGH_MS",
        "INTERLACEX_YIELD_ON_PASS",
    ):
        monkeypatch.delenv(key, raising=False)
    cx_config.reset_runtime_context()
    yield
    cx_config.reset_runtime_context()


def test_cli_traverse_reports_full_coverage() -> None:
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["--width", "40", "--height", "30", "--initial-block", "8", "--block-cost-us", "10"],
    )
    assert result.exit_code == 0, result.output
    assert "state=completed" in result.output
    assert "grid=40x30 initial_block=8" in result.output
    assert "blocks=1200" in result.output
    assert "uncovered_pixels=0" in result.output


def test_cli_traverse_activates_log_level_and_diagnostics(
    caplog: pytest.LogCaptureFixture,
) -> None:
    package_logger = logging.getLogger("interlacex")
    previous_level = package_logger.level
    cx_config.runtime_context()
    runner = CliRunner()
    try:
        result = runner.invoke(
            app,
            ["--width", "16", "--height", "16", "--log-level", "DEBUG", "--no-diagnostics"],
        )
    finally:
        active = cx_config.runtime_config()
        package_logger.setLevel(previous_level)

    assert result.exit_code == 0, result.output
    assert active.log_level == "DEBUG"
    assert active.enable_diagnostics is False
    batch_lines = [
        record.message for record in caplog.records if "op=interlace_batch" in record.message
    ]
    assert batch_lines
    assert "cpu_user_ms=NA" in batch_lines[-1]
    assert "rss_delta=NA" in batch_lines[-1]


def test_cli_traverse_rejects_bad_initial_block() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--width", "16", "--height", "16", "--initial-block", "3"])
    assert result.exit_code == 2
    assert "error:" in result.output


def test_cli_traverse_writes_batch_log(tmp_path: Path) -> None:
    runner = CliRunner()
    log_file = tmp_path / "traverse.jsonl"
    result = runner.invoke(
        app,
        [
            "--width",
            "64",
            "--height",
            "64",
            "--batch-size",
            "128",
            "--log-file",
            str(log_file),
        ],
    )
    assert result.exit_code == 0, result.output
    payloads = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert payloads[0]["budget"] == 128
    assert payloads[-1]["state"] == "completed"
    assert payloads[-1]["blocks"] == 64 * 64


def test_run_traversal_settles_batch_size_from_block_cost() -> None:
    summary = run_traversal(
        TraverseCLIOptions(width=128, height=128, initial_block=16, block_cost_us=200.0)
    )
    budgets = [record.budget for record in summary.handle.batches]

    assert summary.handle.state is RunState.COMPLETED
    assert budgets[:2] == [1024, 512]
    assert set(budgets[1:]) == {512}
    assert summary.final_batch_size == 512
    assert summary.uncovered == 0
    assert summary.simulated_seconds == pytest.approx(128 * 128 * 200e-6)


def test_run_traversal_yield_on_pass_matches_passes() -> None:
    summary = run_traversal(
        TraverseCLIOptions(width=32, height=32, initial_block=8, yield_on_pass=True)
    )
    assert [record.blocks for record in summary.handle.batches] == [
        16, 16, 32, 64, 128, 256, 512,
    ]
    assert summary.render()[-1].startswith("uncovered_pixels=0")


def test_simulated_clock_advances() -> None:
    clock = SimulatedClock()
    clock.advance(0.5)
    clock.advance(0.25)
    assert clock() == pytest.approx(0.75)


def test_runtime_from_args_accepts_namespace_and_mapping() -> None:
    from_namespace = runtime_from_args(
        SimpleNamespace(initial_block=4, batch_size=None, yield_on_pass=True, log_level=None)
    )
    assert from_namespace.initial_block == 4
    assert from_namespace.batch_size is None
    assert from_namespace.yield_on_pass is True

    from_mapping = runtime_from_args(
        {"batch_min": 128, "target_high_ms": 50}, extra_overrides={"target_low_ms": 10.0}
    )
    config = from_mapping.to_config()
    assert config.batch_min == 128
    assert config.batch_size == 1024
    assert (config.target_low_ms, config.target_high_ms) == (10.0, 50.0)
