"""Console output formatting utilities for chainrun."""

from __future__ import annotations

import sys
from typing import Iterable, Optional

from ..model import PlannedStep, RunResult, TaskDefinition


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_task_list(self, definitions: Iterable[TaskDefinition], heading: str = "Available tasks:") -> None:
        """Print task signatures with their one-line descriptions."""
        definitions = list(definitions)
        print(heading)
        width = max((len(d.signature()) for d in definitions), default=0)
        for d in definitions:
            if d.description:
                print(f"    {d.signature():<{width}} # {d.description}")
            else:
                print(f"    {d.signature()}")

    def print_plan(self, plan: list[PlannedStep]) -> None:
        """Print an execution plan, one step per line."""
        if not plan:
            print("(empty plan)")
            return
        for i, p in enumerate(plan, start=1):
            print(f"{i:>3}. [{p.task}] {p.step.display()}")
            print(f"     cwd: {p.cwd}")

    def print_step(self, planned: PlannedStep) -> None:
        """Echo a step's command line before it runs (stderr, like a shell trace)."""
        if planned.step.quiet:
            return
        print(planned.step.display(), file=sys.stderr)

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
    ) -> None:
        """Print a failed step summary."""
        print(f"STEP FAILED: {name}", file=sys.stderr)
        if exit_code is not None:
            print(f"Exit code: {exit_code}", file=sys.stderr)
        if self.debug:
            print(f"Error details: {reason}", file=sys.stderr)

    def print_results(self, result: RunResult) -> None:
        """Print final results summary (debug only; tools print their own output)."""
        if not self.debug:
            return
        print("\n" + "=" * 40, file=sys.stderr)
        print(f"RESULTS: {result.task}", file=sys.stderr)
        print("=" * 40, file=sys.stderr)
        for r in result.results:
            status = "SUCCESS" if r.ok else f"FAILED ({r.exit_code})"
            print(f"  [{r.task}] {r.step.label}: {status} in {r.duration:.1f}s", file=sys.stderr)

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
