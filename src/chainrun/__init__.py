from .dsl import cmd, sh, ref, for_each, task, collect
from .registry import TaskRegistry
from .runner import Executor, run_task
from .model import Step, TaskRef, TaskDefinition, PlannedStep, StepResult, RunResult
from .errors import (
    ChainrunError,
    ConfigurationError,
    UnknownTaskError,
    DuplicateTaskError,
    CyclicDependencyError,
    TaskArgumentError,
    PlaceholderError,
    WorkingDirectoryError,
    TaskFileError,
    StepExecutionError,
)

__all__ = [
    "cmd", "sh", "ref", "for_each", "task", "collect",
    "TaskRegistry", "Executor", "run_task",
    "Step", "TaskRef", "TaskDefinition", "PlannedStep", "StepResult", "RunResult",
    "ChainrunError", "ConfigurationError", "UnknownTaskError", "DuplicateTaskError",
    "CyclicDependencyError", "TaskArgumentError", "PlaceholderError", "WorkingDirectoryError",
    "TaskFileError", "StepExecutionError",
]
