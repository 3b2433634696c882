# dag.py
from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Tuple

from .errors import (
    CyclicDependencyError,
    TaskArgumentError,
    UnknownTaskError,
    WorkingDirectoryError,
)
from .logging_utils import get_logger
from .model import PlannedStep, Step, TaskDefinition, TaskRef
from .registry import TaskRegistry
from .templating import substitute

log = get_logger("chainrun.dag")


def _bind(definition: TaskDefinition, args: Sequence[str], referenced_by: str | None) -> Dict[str, str]:
    if len(args) != len(definition.params):
        raise TaskArgumentError(
            task=definition.name,
            params=definition.params,
            given=tuple(args),
            referenced_by=referenced_by,
        )
    return dict(zip(definition.params, args))


def bind_step(step: Step, values: Mapping[str, str], task: str) -> Step:
    """Substitute `${PARAM}` placeholders in every string field of a step."""
    return replace(
        step,
        command=substitute(step.command, values, task),
        args=tuple(substitute(a, values, task) for a in step.args),
        cwd=substitute(step.cwd, values, task) if step.cwd is not None else None,
        env={k: substitute(v, values, task) for k, v in step.env.items()},
        name=substitute(step.name, values, task) if step.name is not None else None,
    )


def expand(registry: TaskRegistry, name: str, args: Sequence[str] = ()) -> List[Tuple[str, Step]]:
    """
    Flatten a task into its ordered (task name, bound step) pairs.

    Depth-first, pre-order, left-to-right. A name that shows up again on
    the current path is a cycle. Nothing is executed here.
    """
    definition = registry.lookup(name)
    out: List[Tuple[str, Step]] = []

    def walk(defn: TaskDefinition, values: Dict[str, str], path: List[str]) -> None:
        path = path + [defn.name]
        for element in defn.elements:
            if isinstance(element, TaskRef):
                if element.name in path:
                    cycle = path[path.index(element.name):] + [element.name]
                    raise CyclicDependencyError(tuple(cycle))
                if element.name not in registry:
                    raise UnknownTaskError(element.name, referenced_by=defn.name)
                child = registry.lookup(element.name)
                child_args = [substitute(a, values, defn.name) for a in element.args]
                walk(child, _bind(child, child_args, defn.name), path)
            else:
                out.append((defn.name, bind_step(element, values, defn.name)))

    walk(definition, _bind(definition, args, None), [])
    log.debug("expanded %s%s into %d step(s)", name, list(args) or "", len(out))
    return out


def resolve_plan(
    expanded: Sequence[Tuple[str, Step]],
    project_root: str | Path,
) -> List[PlannedStep]:
    """Attach an absolute working directory to every step, checking it exists
    and stays inside the project root."""
    root = Path(project_root).resolve()
    plan: List[PlannedStep] = []
    for task, step in expanded:
        cwd = (root / (step.cwd or ".")).resolve()
        if not cwd.is_relative_to(root):
            raise WorkingDirectoryError(
                task=task, step=step.label, path=cwd, reason="cwd outside project root"
            )
        if not cwd.is_dir():
            raise WorkingDirectoryError(task=task, step=step.label, path=cwd)
        plan.append(PlannedStep(task=task, step=step, cwd=cwd))
    return plan


def build_plan(
    registry: TaskRegistry,
    name: str,
    project_root: str | Path,
    args: Sequence[str] = (),
) -> List[PlannedStep]:
    return resolve_plan(expand(registry, name, args), project_root)
