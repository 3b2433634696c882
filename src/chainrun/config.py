# config.py
from __future__ import annotations

import os
import runpy
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .errors import TaskFileError
from .logging_utils import get_logger
from .model import TaskDefinition
from .registry import TaskRegistry

log = get_logger("chainrun.config")

DEFAULT_TASK_FILE = "chainrun_tasks.py"


@dataclass
class Settings:
    """
    Runtime settings. Environment variables first, CLI options override.

      CHAINRUN_FILE          task file path
      CHAINRUN_PROJECT_ROOT  directory step cwds are resolved against
      CHAINRUN_LOG_LEVEL     read by logging_utils
    """
    task_file: Optional[Path] = None
    project_root: Path = Path(".")
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        task_file = environ.get("CHAINRUN_FILE")
        return cls(
            task_file=Path(task_file) if task_file else None,
            project_root=Path(environ.get("CHAINRUN_PROJECT_ROOT", ".")),
        )

    def merged(
        self,
        *,
        task_file: str | Path | None = None,
        project_root: str | Path | None = None,
        debug: bool = False,
    ) -> "Settings":
        return Settings(
            task_file=Path(task_file) if task_file else self.task_file,
            project_root=Path(project_root) if project_root else self.project_root,
            debug=debug or self.debug,
        )


# ----------------------------------------------------------------------
# Task file discovery / loading
# ----------------------------------------------------------------------

def find_task_files(root: str | Path = ".") -> List[Path]:
    """chainrun_tasks.py first, then any other *_tasks.py in `root`."""
    root = Path(root)
    found: List[Path] = []
    default = root / DEFAULT_TASK_FILE
    if default.exists():
        found.append(default)
    for path in sorted(root.glob("*_tasks.py")):
        if path != default:
            found.append(path)
    return found


def discover_task_file(task_file: str | Path | None, root: str | Path = ".") -> Path:
    if task_file:
        path = Path(task_file)
        if not path.exists() and path.suffix != ".py":
            path = Path(str(path) + ".py")
        if not path.exists():
            raise TaskFileError("Task file not found", Path(task_file))
        return path

    candidates = find_task_files(root)
    if not candidates:
        raise TaskFileError(
            f"No task file found (looked for {DEFAULT_TASK_FILE} and *_tasks.py)",
            Path(root).resolve(),
        )
    if len(candidates) > 1:
        names = ", ".join(p.name for p in candidates)
        raise TaskFileError(f"Multiple task files found ({names}); pass --file", Path(root).resolve())
    return candidates[0]


def load_tasks(path: str | Path) -> List[TaskDefinition]:
    """
    Load task definitions from a python file.

    The file must define either:
      - tasks() -> List[TaskDefinition]
      - TASKS = [TaskDefinition, ...]
    """
    tf_path = Path(path).expanduser().resolve()
    if not tf_path.exists():
        raise TaskFileError("Task file not found", tf_path)
    if tf_path.suffix != ".py":
        raise TaskFileError("Task file must be a .py file", tf_path)

    log.debug("loading task file %s", tf_path)
    globals_dict = runpy.run_path(str(tf_path), run_name=f"chainrun_tasks_{tf_path.stem}")

    definitions = None
    if "tasks" in globals_dict and callable(globals_dict["tasks"]):
        definitions = globals_dict["tasks"]()
    elif "TASKS" in globals_dict:
        definitions = globals_dict["TASKS"]

    if not isinstance(definitions, list) or not all(isinstance(d, TaskDefinition) for d in definitions):
        raise TaskFileError(
            "Task file must define tasks() -> List[TaskDefinition] or TASKS = [...]",
            tf_path,
        )
    return definitions


def load_registry(task_file: str | Path | None, root: str | Path = ".") -> TaskRegistry:
    return TaskRegistry.from_definitions(load_tasks(discover_task_file(task_file, root)))
