from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

import nearbuild.cli
from nearbuild.cli import _exit_code, cli

EXAMPLE_PIPELINE = Path(__file__).resolve().parent.parent / "nearbuild_pipeline.py"


@pytest.fixture
def runner():
    return CliRunner()


def test_no_arguments_runs_the_build(runner, workspace, fake_cargo, monkeypatch):
    monkeypatch.chdir(workspace)

    result = runner.invoke(cli, [], obj={})

    assert result.exit_code == 0, result.output
    assert "BUILD STARTED" in result.output
    assert "SUCCESS" in result.output
    for name in ("adder.wasm", "delegator.wasm", "adder-metadata.json"):
        assert (workspace / "res" / name).stat().st_size > 0


def test_compile_failure_exit_code_is_propagated(runner, workspace, fake_cargo, monkeypatch):
    monkeypatch.setenv("FAKE_CARGO_FAIL", "build")

    result = runner.invoke(cli, ["build", "--workspace", str(workspace)], obj={})

    assert result.exit_code == 101
    assert "STEP FAILED: compile contracts" in result.output
    assert not (workspace / "res").exists()


def test_target_dir_option(runner, workspace, fake_cargo, tmp_path):
    out = tmp_path / "out-target"

    result = runner.invoke(
        cli,
        ["build", "--workspace", str(workspace), "--target-dir", str(out), "--skip-install"],
        obj={},
    )

    assert result.exit_code == 0, result.output
    assert (out / "wasm32-unknown-unknown" / "release" / "adder.wasm").exists()
    assert "install" not in fake_cargo.read_text()


def test_invalid_config_exits_2(runner, workspace):
    result = runner.invoke(cli, ["build", "--workspace", str(workspace), "--metadata-crate", "ghost"], obj={})

    assert result.exit_code == 2
    assert "Invalid configuration" in result.output


def test_plan_lists_steps_without_running(runner, workspace, fake_cargo):
    result = runner.invoke(cli, ["plan", "--workspace", str(workspace)], obj={})

    assert result.exit_code == 0, result.output
    assert "[compile] compile contracts" in result.output
    assert "(in adder)" in result.output
    assert fake_cargo.read_text() == ""


def test_pipeline_file(runner, tmp_path):
    f = tmp_path / "custom_pipeline.py"
    f.write_text(
        "from nearbuild import pipeline, sh, copy_step\n"
        "def build_pipeline():\n"
        "    return pipeline(\n"
        "        sh('make', 'echo data > built.txt'),\n"
        "        copy_step('copy', 'built.txt', 'res/built.txt'),\n"
        "    )\n"
    )

    result = runner.invoke(cli, ["build", "--workspace", str(tmp_path), "--pipeline", str(f)], obj={})

    assert result.exit_code == 0, result.output
    assert (tmp_path / "res" / "built.txt").read_text().strip() == "data"


def test_missing_pipeline_file(runner, tmp_path):
    result = runner.invoke(cli, ["build", "--pipeline", str(tmp_path / "nope.py")], obj={})

    assert result.exit_code == 1
    assert "Failed to load pipeline" in result.output


def test_empty_pipeline_is_rejected(runner, tmp_path):
    f = tmp_path / "empty.py"
    f.write_text("STEPS = []\n")

    result = runner.invoke(cli, ["build", "--workspace", str(tmp_path), "--pipeline", str(f)], obj={})

    assert result.exit_code == 1
    assert "Invalid pipeline" in result.output


@pytest.mark.parametrize("code, expected", [(101, 101), (1, 1), (-9, 137), (0, 1)])
def test_exit_code_mapping(code, expected):
    assert _exit_code(code) == expected


def test_example_pipeline_from_another_directory(runner, workspace, fake_cargo, tmp_path, monkeypatch):
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)

    result = runner.invoke(cli, ["build", "--workspace", str(workspace), "--pipeline", str(EXAMPLE_PIPELINE)], obj={})

    assert result.exit_code == 0, result.output
    for name in ("adder.wasm", "delegator.wasm", "adder-abi.json"):
        assert (workspace / "res" / name).stat().st_size > 0
    assert (workspace / "target" / "near" / "adder" / "abi.json").exists()
    assert not (elsewhere / "target").exists()


@pytest.mark.parametrize("extra", [["--skip-install"], ["--target-dir", "out"], ["--crate", "adder"]])
def test_pipeline_rejects_contract_options(runner, workspace, fake_cargo, extra):
    result = runner.invoke(
        cli, ["build", "--workspace", str(workspace), "--pipeline", str(EXAMPLE_PIPELINE), *extra], obj={}
    )

    assert result.exit_code == 2
    assert "cannot be combined with --pipeline" in result.output
    assert fake_cargo.read_text() == ""


def test_non_executable_tool_is_reported_as_step_failure(runner, tmp_path):
    tool = tmp_path / "tool"
    tool.write_text("#!/bin/sh\nexit 0\n")
    tool.chmod(0o644)
    f = tmp_path / "tool_pipeline.py"
    f.write_text(f"from nearbuild import Step\nSTEPS = [Step(name='install tool', run=[{str(tool)!r}], kind='install')]\n")

    result = runner.invoke(cli, ["build", "--workspace", str(tmp_path), "--pipeline", str(f)], obj={})

    assert result.exit_code == 126
    assert "STEP FAILED: install tool" in result.output
    assert "Traceback" not in result.output


def test_unexpected_error_in_build_is_reported(runner, workspace, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(nearbuild.cli, "run_pipeline", explode)

    result = runner.invoke(cli, ["build", "--workspace", str(workspace)], obj={})

    assert result.exit_code == 1
    assert "Error: disk on fire" in result.output
    assert not isinstance(result.exception, RuntimeError)


def test_unexpected_error_in_plan_is_reported(runner, workspace, monkeypatch):
    def explode(config):
        raise RuntimeError("bad manifest")

    monkeypatch.setattr(nearbuild.cli, "contract_pipeline", explode)

    result = runner.invoke(cli, ["plan", "--workspace", str(workspace)], obj={})

    assert result.exit_code == 1
    assert "Error: bad manifest" in result.output
