# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

STEP_KINDS = ("install", "compile", "metadata", "copy", "shell")


@dataclass(frozen=True)
class ArtifactSpec:
    """A (source, destination) pair describing one artifact copy."""
    source: str
    destination: str


@dataclass(frozen=True)
class Step:
    """
    A single unit of work inside a build pipeline.

    `run` is either an argv list (executed without a shell) or a shell string.
    Copy steps have no command; they carry an `artifact` instead.
    """
    name: str
    run: Union[List[str], str, None] = None
    cwd: str | None = None
    kind: str = "shell"
    env: Dict[str, str] = field(default_factory=dict)

    # copy steps
    artifact: Optional[ArtifactSpec] = None

    # metadata steps: file the tool must leave behind
    produces: str | None = None

    @property
    def command(self) -> str:
        """Printable form of the command."""
        if self.kind == "copy" and self.artifact is not None:
            return f"copy {self.artifact.source} -> {self.artifact.destination}"
        if isinstance(self.run, list):
            return " ".join(self.run)
        return self.run or ""


@dataclass
class PipelineResult:
    """
    Outcome of one pipeline run.

    On success `artifacts` lists every copy destination in pipeline order.
    On failure `failed_step` names the step that stopped the run.
    """
    ok: bool
    executed: List[str] = field(default_factory=list)
    artifacts: List[Path] = field(default_factory=list)

    failed_step: str | None = None
    failure_kind: str | None = None
    exit_code: int = 0
    output: str = ""

    @property
    def failed(self) -> bool:
        return not self.ok
