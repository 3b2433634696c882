# runner.py
from __future__ import annotations

import os
import signal
import subprocess
import time
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from .dag import build_plan
from .errors import StepExecutionError, WorkingDirectoryError
from .logging_utils import get_logger
from .model import PlannedStep, RunResult, StepResult
from .registry import TaskRegistry
from .ui.console import Console, get_console

log = get_logger("chainrun.runner")


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _step_env(planned: PlannedStep, base_env: Optional[Mapping[str, str]]) -> dict[str, str]:
    env = dict(os.environ if base_env is None else base_env)
    env.update(planned.step.env)
    return env


def _run_step(
    planned: PlannedStep,
    *,
    capture_output: bool = False,
    base_env: Optional[Mapping[str, str]] = None,
) -> StepResult:
    """
    Run one step to completion in its own working directory.

    The cwd is handed to the child process only; our own working directory
    is never touched. A KeyboardInterrupt while the child runs is forwarded
    to it as SIGINT and reported as an interrupted StepExecutionError.
    """
    step = planned.step
    pipe = subprocess.PIPE if capture_output else None
    started = time.monotonic()

    if not planned.cwd.is_dir():
        # removed by an earlier step after the plan was built
        raise WorkingDirectoryError(task=planned.task, step=step.label, path=planned.cwd)

    try:
        proc = subprocess.Popen(
            step.argv(),
            cwd=str(planned.cwd),
            env=_step_env(planned, base_env),
            stdout=pipe,
            stderr=pipe,
            text=True,
        )
    except OSError as e:
        # Same convention as a shell: 127 not found, 126 found but not runnable
        code = 127 if isinstance(e, FileNotFoundError) else 126
        log.debug("cannot start %s: %s", step.command, e)
        return StepResult(task=planned.task, step=step, exit_code=code,
                          duration=time.monotonic() - started,
                          stderr=f"{step.command}: {e.strerror or e}" if capture_output else None)

    try:
        stdout, stderr = proc.communicate()
    except KeyboardInterrupt:
        log.debug("interrupt: forwarding SIGINT to pid %s", proc.pid)
        proc.send_signal(signal.SIGINT)
        stdout, stderr = proc.communicate()
        code = proc.returncode if proc.returncode else -signal.SIGINT
        raise StepExecutionError(
            task=planned.task,
            step=step,
            exit_code=code,
            interrupted=True,
            stdout=stdout,
            stderr=stderr,
        ) from None

    return StepResult(
        task=planned.task,
        step=step,
        exit_code=proc.returncode,
        duration=time.monotonic() - started,
        stdout=stdout,
        stderr=stderr,
    )


# ----------------------------------------------------------------------
# Executor
# ----------------------------------------------------------------------

class Executor:
    """
    Runs tasks from a registry, strictly one step at a time.

    Every configuration problem (unknown names, cycles, bad arguments,
    missing or out-of-root working directories) surfaces while building
    the plan, so a broken definition never runs half a pipeline. The one
    exception is a cwd that an earlier step deletes; that is caught just
    before the step starts.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        *,
        console: Console | None = None,
        capture_output: bool = False,
        env: Optional[Mapping[str, str]] = None,
    ):
        self.registry = registry
        self.console = console
        self.capture_output = capture_output
        self.env = env

    @property
    def _console(self) -> Console:
        return self.console or get_console()

    def plan(self, name: str, project_root: str | Path, args: Sequence[str] = ()) -> List[PlannedStep]:
        return build_plan(self.registry, name, project_root, args)

    def run(
        self,
        name: str,
        project_root: str | Path,
        args: Sequence[str] = (),
        *,
        dry_run: bool = False,
        check: bool = True,
    ) -> RunResult:
        """
        Expand `name` and run its plan, stopping at the first failing step.

        With check=True (default) a failure raises StepExecutionError;
        with check=False it is recorded on the returned RunResult instead.
        Interrupts always raise.
        """
        plan = self.plan(name, project_root, args)
        result = RunResult(task=name)

        if dry_run:
            self._console.print_plan(plan)
            return result

        log.info("running %s (%d step(s))", name, len(plan))
        for planned in plan:
            self._console.print_step(planned)
            try:
                step_result = _run_step(
                    planned,
                    capture_output=self.capture_output,
                    base_env=self.env,
                )
            except StepExecutionError as e:
                e.completed = list(result.results)
                raise

            result.results.append(step_result)
            log.debug("[%s] %s -> %s", planned.task, planned.step.label, step_result.exit_code)

            if not step_result.ok:
                result.failed = step_result
                self._console.print_failure(
                    planned.step.label,
                    reason=step_result.stderr or "",
                    exit_code=step_result.exit_code,
                )
                if check:
                    raise StepExecutionError(
                        task=planned.task,
                        step=planned.step,
                        exit_code=step_result.exit_code,
                        stdout=step_result.stdout,
                        stderr=step_result.stderr,
                        completed=result.results[:-1],
                    )
                break

        self._console.print_results(result)
        return result


def run_task(
    registry: TaskRegistry,
    name: str,
    project_root: str | Path = ".",
    args: Sequence[str] = (),
    **kwargs,
) -> RunResult:
    """Convenience: Executor(registry).run(name, project_root, args)."""
    return Executor(registry).run(name, project_root, args, **kwargs)
