# src/chainrun/dsl.py
from __future__ import annotations

import shlex
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .model import Element, Step, TaskDefinition, TaskRef


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def cmd(
    command: str,
    *args: str,
    cwd: str | None = None,
    env: Optional[Dict[str, str]] = None,
    name: str | None = None,
    quiet: bool = False,
) -> Step:
    """Create a step from an explicit argv."""
    return Step(
        command=command,
        args=tuple(args),
        cwd=cwd,
        env={k: str(v) for k, v in (env or {}).items()},
        name=name,
        quiet=quiet,
    )


def sh(
    line: str,
    *,
    cwd: str | None = None,
    env: Optional[Dict[str, str]] = None,
    name: str | None = None,
    quiet: bool = False,
) -> Step:
    """
    Create a step from a command line.

    The line is split with shlex, not run through a shell: no pipes,
    globbing or `&&`. Use `${PARAM}` for task parameters.
    """
    argv = shlex.split(line)
    if not argv:
        raise ValueError("sh() needs a non-empty command line")
    return cmd(argv[0], *argv[1:], cwd=cwd, env=env, name=name, quiet=quiet)


def ref(name: str, *args: str) -> TaskRef:
    """Reference another task, passing positional arguments."""
    return TaskRef(name=name, args=tuple(args))


def for_each(name: str, values: Iterable[str]) -> List[TaskRef]:
    """
    One reference per value, in order.

    Example:
        task("lint", sh("cargo fmt --all -- --check"),
             for_each("lint-subcrate", ["nodes-common", "nodes-observability"]))
    """
    return [ref(name, v) for v in values]


# ---------------------------------------------------------------------
# Task helper
# ---------------------------------------------------------------------

ElementSpec = Union[Element, Sequence[Element], str]


def _flatten(elements: Sequence[ElementSpec]) -> List[Element]:
    out: List[Element] = []
    for e in elements:
        if isinstance(e, (Step, TaskRef)):
            out.append(e)
        elif isinstance(e, str):
            # bare string = reference without arguments
            out.append(TaskRef(name=e))
        elif isinstance(e, (list, tuple)):
            out.extend(_flatten(e))
        else:
            raise TypeError(f"Not a step or task reference: {e!r}")
    return out


def task(
    name: str,
    *elements: ElementSpec,
    params: Sequence[str] = (),
    description: str | None = None,
    private: bool = False,
    cwd: str | None = None,  # default cwd applied to steps missing cwd
) -> TaskDefinition:
    """
    Define a task.

        task("check-pr", "lint", "test", description="Run lint then tests")
        task("lint-subcrate", sh("cargo clippy", cwd="${SUBCRATE}"), params=["SUBCRATE"])
    """
    flat = _flatten(elements)
    if cwd is not None:
        flat = [
            e if isinstance(e, TaskRef) or e.cwd is not None else replace(e, cwd=cwd)
            for e in flat
        ]
    if len(set(params)) != len(params):
        raise ValueError(f"task({name!r}) has duplicate parameter names: {list(params)}")

    return TaskDefinition(
        name=name,
        elements=tuple(flat),
        params=tuple(params),
        description=description,
        private=private,
    )


def collect(*definitions: TaskDefinition) -> List[TaskDefinition]:
    """
    Task file helper. Named so it doesn't collide with a file's own tasks():

        from chainrun import collect, task, sh

        def tasks():
            return collect(
                task(...),
                task(...),
            )

    Or define TASKS directly:
        TASKS = collect(task(...), task(...))
    """
    return list(definitions)
