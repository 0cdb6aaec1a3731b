# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click
from pydantic import ValidationError

from nearbuild.config import BuildConfig
from nearbuild.contracts import contract_pipeline
from nearbuild.runner import PipelineError, load_pipeline, run_pipeline
from nearbuild.ui.console import Console, get_console, set_console


def _exit_code(code: int) -> int:
    # negative return codes mean "killed by signal n"
    if code < 0:
        return 128 - code
    return code or 1


def build_options(fn):
    """Options shared by `build` and `plan`."""
    options = [
        click.option("--workspace", default=".", type=click.Path(file_okay=False, path_type=Path), show_default=True,
                     help="Cargo workspace root"),
        click.option("--target-dir", default=None,
                     help="Build output root (defaults to $TARGET_DIR, then $CARGO_TARGET_DIR, then 'target')"),
        click.option("--out-dir", default=None, help="Artifact output directory [default: res]"),
        click.option("--tool-path", default=None, help="Local path cargo-near is installed from [default: ../../cargo-near]"),
        click.option("--crate", "crates", multiple=True, help="Contract crate to collect (repeatable) [default: adder, delegator]"),
        click.option("--metadata-crate", default=None, help="Crate to extract metadata from [default: adder]"),
        click.option("--metadata-file", default=None, help="File name the metadata tool writes [default: abi.json]"),
        click.option("--skip-install", is_flag=True, default=False, help="Do not install cargo-near first"),
        click.option("--pipeline", "pipeline_file", default=None, type=click.Path(dir_okay=False, path_type=Path),
                     help="Python file defining build_pipeline(config) or STEPS, instead of the contract pipeline"),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


# options that only shape the built-in contract pipeline
CONTRACT_OPTIONS = {
    "target_dir": "--target-dir",
    "out_dir": "--out-dir",
    "tool_path": "--tool-path",
    "crates": "--crate",
    "metadata_crate": "--metadata-crate",
    "metadata_file": "--metadata-file",
    "skip_install": "--skip-install",
}


def _check_pipeline_options(pipeline_file, options) -> None:
    if pipeline_file is None:
        return
    given = [flag for name, flag in CONTRACT_OPTIONS.items() if options.get(name)]
    if given:
        raise click.UsageError(
            f"{', '.join(given)} cannot be combined with --pipeline; "
            "the pipeline file receives the workspace and $TARGET_DIR through its BuildConfig"
        )


def _resolve_steps(workspace, target_dir, out_dir, tool_path, crates, metadata_crate, metadata_file, skip_install,
                   pipeline_file):
    console = get_console()

    try:
        config = BuildConfig.from_env(
            workspace=workspace,
            target_dir=target_dir,
            out_dir=out_dir,
            tool_path=tool_path,
            crates=tuple(crates) or None,
            metadata_crate=metadata_crate,
            metadata_file=metadata_file,
            install_tool=False if skip_install else None,
        )
    except ValidationError as e:
        console.print_error(
            "Invalid configuration",
            "The build configuration is not valid.",
            details=[err["msg"] for err in e.errors()],
        )
        sys.exit(2)

    console.print_debug(f"config={config.model_dump()}")

    if pipeline_file is not None:
        return load_pipeline(pipeline_file, config), pipeline_file.name
    return contract_pipeline(config), "contracts"


@click.group(invoke_without_command=True)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show commands, stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """nearbuild: build wasm contracts and collect their artifacts.

    Running without a command is the same as `nearbuild build`.
    """
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug

    if ctx.invoked_subcommand is None:
        ctx.invoke(build)


@cli.command()
@build_options
@click.pass_context
def build(ctx, workspace, pipeline_file, **kwargs):
    """Run the build pipeline, stopping at the first failing step."""
    console = get_console()
    _check_pipeline_options(pipeline_file, kwargs)

    try:
        steps, pipeline_name = _resolve_steps(workspace=workspace, pipeline_file=pipeline_file, **kwargs)

        console.print_run_started(
            workspace=str(Path(workspace).resolve()),
            pipeline=pipeline_name,
            step_count=len(steps),
        )

        result = run_pipeline(steps, workspace_root=workspace, console=console)

        console.print_results(result.ok, result.artifacts, failed_step=result.failed_step)

        if result.failed:
            sys.exit(_exit_code(result.exit_code))

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except PipelineError as e:
        console.print_error("Invalid pipeline", str(e))
        sys.exit(1)
    except (FileNotFoundError, ValueError, TypeError) as e:
        console.print_error("Failed to load pipeline", str(e))
        if ctx.obj.get("debug", False):
            console.print_exception(e)
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@build_options
@click.pass_context
def plan(ctx, workspace, pipeline_file, **kwargs):
    """Print the steps `build` would run, without running them."""
    console = get_console()
    _check_pipeline_options(pipeline_file, kwargs)

    try:
        steps, pipeline_name = _resolve_steps(workspace=workspace, pipeline_file=pipeline_file, **kwargs)
    except (FileNotFoundError, ValueError, TypeError) as e:
        console.print_error("Failed to load pipeline", str(e))
        if ctx.obj.get("debug", False):
            console.print_exception(e)
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    console.print_info(f"Pipeline: {pipeline_name} ({len(steps)} steps)")
    console.print_plan(steps)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
