# src/nearbuild/dsl.py
from __future__ import annotations

from typing import Dict, List, Optional, Union

from .model import ArtifactSpec, Step


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def sh(name: str, cmd: Union[str, List[str]], *, cwd: str | None = None, env: Optional[Dict[str, str]] = None) -> Step:
    """Create a plain shell step."""
    return Step(name=name, run=cmd, cwd=cwd, kind="shell", env=env or {})


def install_step(name: str, tool_path: str, *, cwd: str | None = None, locked: bool = True) -> Step:
    """Install a cargo CLI tool from a local path."""
    cmd = ["cargo", "install", "--path", tool_path]
    if locked:
        cmd.append("--locked")
    return Step(name=name, run=cmd, cwd=cwd, kind="install")


def compile_step(
    name: str,
    target: str,
    *,
    target_dir: str | None = None,
    cwd: str | None = None,
    release: bool = True,
) -> Step:
    """Build every workspace member for `target`."""
    cmd = ["cargo", "build", "--all", "--target", target]
    if release:
        cmd.append("--release")
    env = {"CARGO_TARGET_DIR": target_dir} if target_dir else {}
    return Step(name=name, run=cmd, cwd=cwd, kind="compile", env=env)


def metadata_step(
    name: str,
    *,
    cwd: str,
    produces: str | None = None,
    target_dir: str | None = None,
) -> Step:
    """Run `cargo near metadata` from inside a contract directory."""
    env = {"CARGO_TARGET_DIR": target_dir} if target_dir else {}
    return Step(
        name=name,
        run=["cargo", "near", "metadata"],
        cwd=cwd,
        kind="metadata",
        env=env,
        produces=produces,
    )


def copy_step(name: str, source: str, destination: str) -> Step:
    """Copy a build output into the output directory."""
    return Step(name=name, kind="copy", artifact=ArtifactSpec(source=source, destination=destination))


# ---------------------------------------------------------------------
# Pipeline helper
# ---------------------------------------------------------------------

def pipeline(*steps: Step) -> List[Step]:
    """
    Pipeline definition helper, for pipeline files:

        from nearbuild import pipeline, sh, copy_step

        def build_pipeline():
            return pipeline(
                sh("compile", "cargo build --release"),
                copy_step("copy", "target/release/app", "res/app"),
            )

        STEPS = build_pipeline()
    """
    return list(steps)
