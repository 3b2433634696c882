# cli.py
from __future__ import annotations

import sys
from typing import Sequence

import click

from chainrun.config import Settings, load_registry
from chainrun.errors import ConfigurationError, StepExecutionError, TaskFileError
from chainrun.logging_utils import configure_logging
from chainrun.registry import TaskRegistry
from chainrun.runner import Executor
from chainrun.ui.console import Console, get_console, set_console

DEFAULT_TASK = "default"


def exit_code_for(error: StepExecutionError) -> int:
    """Map a step failure to our own exit status (shell conventions)."""
    if error.interrupted:
        return 130
    if error.exit_code < 0:
        return 128 + (-error.exit_code)
    return error.exit_code or 1


def _load(ctx) -> TaskRegistry:
    settings: Settings = ctx.obj["settings"]
    console = get_console()
    try:
        registry = load_registry(settings.task_file, settings.project_root)
    except TaskFileError as e:
        console.print_error(
            "Could not load tasks",
            str(e),
            suggestion="Create chainrun_tasks.py defining tasks() or TASKS,\n"
                       "or point at one explicitly:\n  chainrun --file my_tasks.py list",
        )
        sys.exit(1)
    except ConfigurationError as e:
        console.print_error("Invalid task definitions", str(e))
        sys.exit(1)
    console.print_debug(
        f"loaded {len(registry)} task(s), project root {settings.project_root.resolve()}"
    )
    return registry


def _list(registry: TaskRegistry) -> None:
    get_console().print_task_list(d for d in registry if not d.private)


@click.group(invoke_without_command=True)
@click.option("--file", "task_file", default=None, help="Task file (defaults to chainrun_tasks.py if present)")
@click.option("--project-root", default=None, type=click.Path(file_okay=False), help="Directory step cwds are relative to")
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, task_file, project_root, debug):
    """chainrun: ordered, fail-fast task runner for multi-package workspaces."""
    settings = Settings.from_env().merged(task_file=task_file, project_root=project_root, debug=debug)
    set_console(Console(debug=settings.debug))
    configure_logging("DEBUG" if settings.debug else None)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings

    if ctx.invoked_subcommand is None:
        _list(_load(ctx))


@cli.command("list")
@click.option("--all", "show_all", is_flag=True, default=False, help="Include private tasks")
@click.pass_context
def list_cmd(ctx, show_all):
    """List available tasks."""
    registry = _load(ctx)
    if show_all:
        get_console().print_task_list(registry)
    else:
        _list(registry)


def _run(ctx, task: str, args: Sequence[str], *, dry_run: bool, capture: bool) -> None:
    console = get_console()
    settings: Settings = ctx.obj["settings"]
    registry = _load(ctx)

    if task == DEFAULT_TASK and not dry_run:
        _list(registry)
        return

    console.print_debug(f"task={task} args={list(args)} dry_run={dry_run} capture={capture}")
    executor = Executor(registry, console=console, capture_output=capture)
    try:
        result = executor.run(task, settings.project_root, args, dry_run=dry_run)
    except ConfigurationError as e:
        console.print_error("Invalid task definitions", str(e))
        sys.exit(1)
    except StepExecutionError as e:
        if capture:
            _write_captured(e.completed)
            _write_output(e.stdout, e.stderr)
        console.print_exception(e)
        sys.exit(exit_code_for(e))
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)

    if capture:
        _write_captured(result.results)


def _write_output(stdout: str | None, stderr: str | None) -> None:
    if stdout:
        sys.stdout.write(stdout)
    if stderr:
        sys.stderr.write(stderr)


def _write_captured(results) -> None:
    for r in results:
        _write_output(r.stdout, r.stderr)


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("task")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option("--dry-run", is_flag=True, default=False, help="Print the plan without running anything")
@click.option("--capture", is_flag=True, default=False, help="Capture step output and print it after each run")
@click.pass_context
def run(ctx, task, args, dry_run, capture):
    """Run TASK, passing ARGS to its parameters."""
    _run(ctx, task, args, dry_run=dry_run, capture=capture)


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("task")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def plan(ctx, task, args):
    """Print the fully expanded plan for TASK."""
    _run(ctx, task, args, dry_run=True, capture=False)


@cli.command()
@click.pass_context
def check(ctx):
    """Validate task definitions (unknown references, cycles)."""
    registry = _load(ctx)
    try:
        registry.validate()
    except ConfigurationError as e:
        get_console().print_error("Invalid task definitions", str(e))
        sys.exit(1)
    get_console().print_info(f"{len(registry)} task(s) OK")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
