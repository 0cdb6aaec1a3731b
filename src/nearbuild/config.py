# config.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_TARGET_DIR = "target"
DEFAULT_OUT_DIR = "res"
DEFAULT_TOOL_PATH = "../../cargo-near"
DEFAULT_METADATA_FILE = "abi.json"  # what cargo-near writes

WASM_TARGET = "wasm32-unknown-unknown"


class BuildConfig(BaseModel):
    """
    Everything the contract pipeline needs to know, resolved once at startup.

    Relative paths are relative to `workspace`. `target_dir` follows cargo's
    convention and may also be absolute.
    """
    model_config = ConfigDict(frozen=True)

    workspace: Path = Path(".")
    target_dir: str = DEFAULT_TARGET_DIR
    out_dir: str = DEFAULT_OUT_DIR
    tool_path: str = DEFAULT_TOOL_PATH
    crates: tuple[str, ...] = Field(default=("adder", "delegator"))
    metadata_crate: str = "adder"
    metadata_file: str = DEFAULT_METADATA_FILE
    install_tool: bool = True

    @model_validator(mode="after")
    def _check_crates(self) -> BuildConfig:
        if not self.crates:
            raise ValueError("at least one crate must be configured")
        if len(set(self.crates)) != len(self.crates):
            raise ValueError(f"duplicate crate names: {list(self.crates)}")
        if self.metadata_crate not in self.crates:
            raise ValueError(
                f"metadata crate {self.metadata_crate!r} is not one of {list(self.crates)}"
            )
        return self

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> BuildConfig:
        """
        Build a config, taking the target dir from the environment.

        TARGET_DIR wins over CARGO_TARGET_DIR; both unset means "target".
        Explicit overrides that are None are ignored.
        """
        env = os.environ if env is None else env
        values = {"target_dir": env.get("TARGET_DIR") or env.get("CARGO_TARGET_DIR") or DEFAULT_TARGET_DIR}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    # ---- derived paths (relative to workspace unless absolute) ----

    @property
    def release_dir(self) -> Path:
        return Path(self.target_dir) / WASM_TARGET / "release"

    def metadata_output(self, crate: str) -> Path:
        return Path(self.target_dir) / "near" / crate / self.metadata_file
