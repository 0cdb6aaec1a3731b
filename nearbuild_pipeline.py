# nearbuild_pipeline.py
# Variant of the contract build that extracts the ABI before compiling.
# Run with:
#   nearbuild build --pipeline nearbuild_pipeline.py
from __future__ import annotations

from nearbuild.artifacts import wasm_filename
from nearbuild.config import WASM_TARGET, BuildConfig
from nearbuild.dsl import pipeline, install_step, compile_step, metadata_step, copy_step


def build_pipeline(config: BuildConfig):
    # tools run in other directories, so they get the target dir anchored on the workspace;
    # produces/copy paths stay relative and the runner resolves them against the same root
    target_abs = str((config.workspace.resolve() / config.target_dir).resolve())
    abi = config.metadata_output(config.metadata_crate)

    steps = []
    if config.install_tool:
        steps.append(install_step("install cargo-near", config.tool_path))

    return pipeline(
        *steps,
        # ABI first; the tool builds what it needs on its own
        metadata_step(
            f"abi {config.metadata_crate}",
            cwd=config.metadata_crate,
            produces=str(abi),
            target_dir=target_abs,
        ),

        compile_step("compile contracts", WASM_TARGET, target_dir=target_abs),

        *[
            copy_step(f"copy {crate}.wasm", str(config.release_dir / wasm_filename(crate)), f"{config.out_dir}/{crate}.wasm")
            for crate in config.crates
        ],
        copy_step(f"copy {config.metadata_crate} abi", str(abi), f"{config.out_dir}/{config.metadata_crate}-abi.json"),
    )
