# runner.py
from __future__ import annotations

import inspect
import os
import runpy
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .artifacts import copy_artifact
from .config import BuildConfig
from .metadata import load_metadata
from .model import STEP_KINDS, PipelineResult, Step
from .ui.console import Console, get_console

OUTPUT_TAIL = 4000


TOOL_HINTS = {
    "cargo": "Install Rust (https://rustup.rs) or fix PATH.",
    "cargo-near": "Install cargo-near (cargo install cargo-near) or keep the install step.",
}

KIND_HINTS = {
    "compile": "Is the wasm target installed? rustup target add wasm32-unknown-unknown",
    "metadata": "Run `cargo near metadata` inside the contract directory to see the full error.",
}


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass
class PipelineError(Exception):
    """The pipeline definition itself is unusable (nothing was run)."""
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [self.message]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


@dataclass
class StepFailure(Exception):
    step: str
    cmd: str
    exit_code: int
    output: str = ""

    kind = "shell"

    def __str__(self) -> str:
        return f"step '{self.step}' failed (exit={self.exit_code}): {self.cmd}"


class ToolInstallFailure(StepFailure):
    kind = "install"


class CompileFailure(StepFailure):
    kind = "compile"


class MetadataExtractionFailure(StepFailure):
    kind = "metadata"


class CopyFailure(StepFailure):
    kind = "copy"


FAILURES = {
    "install": ToolInstallFailure,
    "compile": CompileFailure,
    "metadata": MetadataExtractionFailure,
    "copy": CopyFailure,
    "shell": StepFailure,
}


def _fail(step: Step, exit_code: int, output: str) -> StepFailure:
    cls = FAILURES.get(step.kind, StepFailure)
    return cls(step=step.name, cmd=step.command, exit_code=exit_code, output=output[-OUTPUT_TAIL:])


# ----------------------------------------------------------------------
# Pipeline loading (local file)
# ----------------------------------------------------------------------

def _takes_config(fn) -> bool:
    try:
        return len(inspect.signature(fn).parameters) > 0
    except (TypeError, ValueError):
        return False


def load_pipeline(path: str | Path, config: BuildConfig | None = None) -> List[Step]:
    """
    Load a pipeline from a python file path.

    The file must define either:
      - build_pipeline(config) -> List[Step]   (receives the BuildConfig)
      - build_pipeline() -> List[Step]
      - STEPS = [Step, ...]
    """
    pl_path = Path(path).expanduser().resolve()
    if not pl_path.exists():
        raise FileNotFoundError(f"Pipeline file not found: {pl_path}")
    if pl_path.suffix != ".py":
        raise ValueError(f"Pipeline must be a .py file, got: {pl_path.name}")

    module_name = f"nearbuild_pipeline_{pl_path.stem}"
    globals_dict = runpy.run_path(str(pl_path), run_name=module_name)

    steps = None
    build = globals_dict.get("build_pipeline")
    if callable(build):
        if _takes_config(build):
            steps = build(config if config is not None else BuildConfig())
        else:
            steps = build()
    elif "STEPS" in globals_dict:
        steps = globals_dict["STEPS"]

    if not isinstance(steps, list) or not all(isinstance(s, Step) for s in steps):
        raise TypeError(
            "Pipeline must return/define a List[Step]. "
            "Define build_pipeline() -> List[Step] or STEPS = [Step, ...]."
        )

    return steps


def validate_pipeline(steps: List[Step]) -> None:
    if not steps:
        raise PipelineError("Pipeline has no steps")

    seen = set()
    for s in steps:
        if s.name in seen:
            raise PipelineError(f"Duplicate step name: {s.name}")
        seen.add(s.name)

        if s.kind not in STEP_KINDS:
            raise PipelineError(f"Step '{s.name}' has unknown kind", {"kind": s.kind, "known": ",".join(STEP_KINDS)})
        if s.kind == "copy" and s.artifact is None:
            raise PipelineError(f"Copy step '{s.name}' has no artifact")
        if s.kind != "copy" and not s.run:
            raise PipelineError(f"Step '{s.name}' has no command")


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _run_copy(step: Step, root: Path) -> Path:
    try:
        return copy_artifact(step.artifact, root)
    except OSError as e:
        raise _fail(step, 1, str(e)) from e


def _check_produced(step: Step, root: Path) -> None:
    produced = root / step.produces
    try:
        load_metadata(produced)
    except (OSError, ValueError) as e:
        raise _fail(step, 1, str(e)) from e


def _run_step(step: Step, root: Path, console: Console) -> Optional[Path]:
    """
    Run one step. Returns the artifact destination for copy steps.
    Raises a StepFailure subclass on failure.
    """
    if step.kind == "copy":
        return _run_copy(step, root)

    cwd = (root / (step.cwd or ".")).resolve()
    if not cwd.is_dir():
        raise _fail(step, 1, f"working directory not found: {cwd}")

    env = os.environ.copy()
    env.update(step.env)

    console.print_debug(f"cwd={cwd} cmd={step.command}")

    try:
        proc = subprocess.run(
            step.run,
            shell=isinstance(step.run, str),
            cwd=str(cwd),
            env=env,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,  # keep stdout/stderr interleaved for diagnostics
        )
    except OSError as e:
        # shells report "not found" as 127 and "found but cannot run" as 126
        tool = step.run[0] if isinstance(step.run, list) else step.command.split()[0]
        if isinstance(e, FileNotFoundError):
            code, hint = 127, TOOL_HINTS.get(tool, f"Install {tool} or fix PATH.")
        else:
            code, hint = 126, f"Check that {tool} is an executable file."
        raise _fail(step, code, f"{e}\nHint: {hint}") from e

    if proc.returncode != 0:
        raise _fail(step, proc.returncode, proc.stdout or "")

    if step.kind == "metadata" and step.produces:
        _check_produced(step, root)

    return None


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_pipeline(
    steps: List[Step],
    *,
    workspace_root: str | Path = ".",
    console: Console | None = None,
) -> PipelineResult:
    """
    Run steps strictly in order, stopping at the first failure.

    A failing step ends the run: later steps (copies included) never start,
    and the result names the step, its exit code and its output tail.
    """
    console = console or get_console()
    validate_pipeline(steps)

    root = Path(workspace_root).resolve()
    result = PipelineResult(ok=True)

    for step in steps:
        console.print_step(step.name)
        result.executed.append(step.name)
        try:
            artifact = _run_step(step, root, console)
        except StepFailure as e:
            console.print_failure(
                step.name,
                e.output or str(e),
                exit_code=e.exit_code,
                hint=KIND_HINTS.get(e.kind),
            )
            result.ok = False
            result.failed_step = step.name
            result.failure_kind = e.kind
            result.exit_code = e.exit_code
            result.output = e.output
            result.artifacts = []
            return result

        console.print_success(step.name)
        if artifact is not None:
            result.artifacts.append(artifact)

    return result
