"""Console output formatting utilities for nearbuild."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Sequence


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_run_started(
        self,
        workspace: str,
        pipeline: str,
        step_count: int,
    ) -> None:
        """Print run start information."""
        print("\nBUILD STARTED")
        print(f"Workspace: {workspace}")
        print(f"Pipeline: {pipeline}")
        print(f"Steps: {step_count}")
        print()

    def print_step(self, name: str) -> None:
        """Print step start message."""
        print(f"STEP: {name}")

    def print_success(self, name: str) -> None:
        """Print success message."""
        print(f"STATUS: success")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> None:
        """
        Print step failure, with the tool's output, to stderr.

        Args:
            name: Step name
            reason: Diagnostic output of the failing step
            exit_code: Optional exit code
            hint: Optional hint for user
        """
        print(f"STEP FAILED: {name}", file=sys.stderr)
        if exit_code is not None:
            print(f"Exit code: {exit_code}", file=sys.stderr)
        if reason:
            print(reason.rstrip("\n"), file=sys.stderr)
        if hint:
            print(f"Hint: {hint}", file=sys.stderr)

    def print_plan(self, steps: Sequence) -> None:
        """Print the steps a run would execute, without running them."""
        for i, step in enumerate(steps, start=1):
            where = f" (in {step.cwd})" if step.cwd else ""
            print(f"  {i}. [{step.kind}] {step.name}: {step.command}{where}")

    def print_results(self, ok: bool, artifacts: Sequence[Path], failed_step: Optional[str] = None) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        if ok:
            print("  SUCCESS")
            for a in artifacts:
                print(f"  {a}")
        else:
            print(f"  FAILED at: {failed_step}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
