# contracts.py
from __future__ import annotations

from pathlib import Path
from typing import List

from .artifacts import wasm_filename
from .config import WASM_TARGET, BuildConfig
from .dsl import compile_step, copy_step, install_step, metadata_step
from .metadata import read_package
from .model import Step


def _package_name(config: BuildConfig, crate: str) -> str:
    # crate directories usually match the package name; trust the manifest when present
    manifest = config.workspace / crate / "Cargo.toml"
    if manifest.is_file():
        return read_package(manifest).name
    return crate


def contract_pipeline(config: BuildConfig) -> List[Step]:
    """
    The contract build pipeline:

      1. install cargo-near from config.tool_path (unless install_tool is off)
      2. build every workspace member for wasm32-unknown-unknown, release
      3. extract metadata from inside the metadata crate's directory
      4. copy each crate's .wasm into out_dir
      5. copy the metadata JSON into out_dir as <crate>-metadata.json

    All paths are relative to the workspace root, which the runner receives
    separately. Tools get CARGO_TARGET_DIR as an absolute path so the
    metadata tool, which runs one directory down, writes to the same place.
    """
    target_abs = str((config.workspace.resolve() / config.target_dir).resolve())
    out = Path(config.out_dir)

    steps: List[Step] = []

    if config.install_tool:
        steps.append(install_step("install cargo-near", config.tool_path))

    steps.append(compile_step("compile contracts", WASM_TARGET, target_dir=target_abs))

    metadata_src = config.metadata_output(config.metadata_crate)
    steps.append(
        metadata_step(
            f"metadata {config.metadata_crate}",
            cwd=config.metadata_crate,
            produces=str(metadata_src),
            target_dir=target_abs,
        )
    )

    for crate in config.crates:
        wasm = config.release_dir / wasm_filename(_package_name(config, crate))
        steps.append(copy_step(f"copy {crate}.wasm", str(wasm), str(out / f"{crate}.wasm")))

    steps.append(
        copy_step(
            f"copy {config.metadata_crate}-metadata.json",
            str(metadata_src),
            str(out / f"{config.metadata_crate}-metadata.json"),
        )
    )

    return steps
