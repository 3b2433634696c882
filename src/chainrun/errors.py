# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from .model import Step, StepResult


class ChainrunError(Exception):
    """Base class for everything chainrun raises on purpose."""


class ConfigurationError(ChainrunError):
    """
    A defect in the task definitions themselves.

    Raised before any step runs; never retried.
    """


@dataclass
class UnknownTaskError(ConfigurationError):
    name: str
    referenced_by: Optional[str] = None
    known: Tuple[str, ...] = ()

    def __str__(self) -> str:
        if self.referenced_by:
            msg = f"Task '{self.referenced_by}' references unknown task '{self.name}'"
        else:
            msg = f"Unknown task '{self.name}'"
        if self.known:
            msg += f". Known tasks: {', '.join(self.known)}"
        return msg


@dataclass
class DuplicateTaskError(ConfigurationError):
    name: str

    def __str__(self) -> str:
        return f"Duplicate task name: {self.name}"


@dataclass
class CyclicDependencyError(ConfigurationError):
    cycle: Tuple[str, ...]

    def __str__(self) -> str:
        return f"Task dependency cycle: {' -> '.join(self.cycle)}"


@dataclass
class TaskArgumentError(ConfigurationError):
    task: str
    params: Tuple[str, ...]
    given: Tuple[str, ...]
    referenced_by: Optional[str] = None
    missing: Optional[str] = None   # placeholder with no matching parameter

    def __str__(self) -> str:
        if self.missing is not None:
            return f"Task '{self.task}' uses undefined parameter '${{{self.missing}}}'"
        where = f" (from '{self.referenced_by}')" if self.referenced_by else ""
        expected = " ".join(self.params) or "no arguments"
        return (
            f"Task '{self.task}'{where} takes {len(self.params)} argument(s) "
            f"[{expected}], got {len(self.given)}: {list(self.given)}"
        )


@dataclass
class PlaceholderError(ConfigurationError):
    task: str
    text: str
    reason: str

    def __str__(self) -> str:
        return (
            f"Task '{self.task}': bad placeholder in {self.text!r} ({self.reason}); "
            "write a literal '$' as '$$'"
        )


@dataclass
class WorkingDirectoryError(ConfigurationError):
    task: str
    step: str
    path: Path
    reason: str = "cwd not found"

    def __str__(self) -> str:
        return f"[{self.task}] step '{self.step}' {self.reason}: {self.path}"


@dataclass
class TaskFileError(ConfigurationError):
    message: str
    path: Optional[Path] = None

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.message}: {self.path}"
        return self.message


@dataclass
class StepExecutionError(ChainrunError):
    """
    A step's process exited non-zero (or was interrupted).

    `completed` holds the results of the steps that ran successfully
    before this one; their side effects are not rolled back.
    """
    task: str
    step: "Step"
    exit_code: int
    interrupted: bool = False
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    completed: List["StepResult"] = field(default_factory=list)

    def __str__(self) -> str:
        reason = "interrupted" if self.interrupted else "failed"
        return (
            f"[{self.task}] step '{self.step.label}' {reason} "
            f"(exit={self.exit_code}): {self.step.display()}"
        )
