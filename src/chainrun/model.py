# model.py
from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class Step:
    """A single external command inside a task."""
    command: str
    args: Tuple[str, ...] = ()
    cwd: str | None = None           # relative to the project root
    env: Mapping[str, str] = field(default_factory=dict, hash=False)
    name: str | None = None
    quiet: bool = False              # don't echo the command line

    def __post_init__(self) -> None:
        # read-only view of the overrides
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    def argv(self) -> List[str]:
        return [self.command, *self.args]

    def display(self) -> str:
        line = shlex.join(self.argv())
        if self.env:
            assigns = " ".join(f"{k}={shlex.quote(v)}" for k, v in self.env.items())
            line = f"{assigns} {line}"
        return line

    @property
    def label(self) -> str:
        return self.name or self.display()


@dataclass(frozen=True)
class TaskRef:
    """Reference to another task, with values for its parameters."""
    name: str
    args: Tuple[str, ...] = ()


Element = Union[Step, TaskRef]


@dataclass(frozen=True)
class TaskDefinition:
    """
    A named task: ordered steps and task references.

    `params` names positional parameters; their values are substituted into
    `${NAME}` placeholders in the task's steps and reference arguments.
    Private tasks are runnable but left out of listings.
    """
    name: str
    elements: Tuple[Element, ...] = ()
    params: Tuple[str, ...] = ()
    description: str | None = None
    private: bool = False

    @property
    def references(self) -> List[str]:
        return [e.name for e in self.elements if isinstance(e, TaskRef)]

    def signature(self) -> str:
        return " ".join([self.name, *self.params])


@dataclass(frozen=True)
class PlannedStep:
    """One entry of an execution plan: a bound step and where it runs."""
    task: str
    step: Step
    cwd: Path


@dataclass
class StepResult:
    task: str
    step: Step
    exit_code: int
    duration: float = 0.0
    stdout: Optional[str] = None
    stderr: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass
class RunResult:
    """Aggregated outcome of one `run`, first failure wins."""
    task: str
    results: List[StepResult] = field(default_factory=list)
    failed: Optional[StepResult] = None

    @property
    def ok(self) -> bool:
        return self.failed is None

    @property
    def exit_code(self) -> int:
        return 0 if self.failed is None else self.failed.exit_code
