# registry.py
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List

from .errors import CyclicDependencyError, DuplicateTaskError, UnknownTaskError
from .model import Step, TaskDefinition
from .templating import check


class TaskRegistry:
    """
    Named task definitions, kept in registration order.

    Definitions are immutable; the registry only ever grows.
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, TaskDefinition] = {}

    @classmethod
    def from_definitions(cls, definitions: Iterable[TaskDefinition]) -> "TaskRegistry":
        registry = cls()
        for definition in definitions:
            registry.register(definition.name, definition)
        return registry

    # -- mutation ------------------------------------------------------------

    def register(self, name: str, definition: TaskDefinition) -> TaskDefinition:
        if definition.name != name:
            raise ValueError(
                f"Cannot register task '{definition.name}' under a different name '{name}'"
            )
        if name in self._tasks:
            raise DuplicateTaskError(name)
        self._tasks[name] = definition
        return definition

    # -- query ---------------------------------------------------------------

    def lookup(self, name: str) -> TaskDefinition:
        try:
            return self._tasks[name]
        except KeyError:
            raise UnknownTaskError(name, known=tuple(self.list())) from None

    def list(self, include_private: bool = True) -> List[str]:
        return [
            name
            for name, definition in self._tasks.items()
            if include_private or not definition.private
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[TaskDefinition]:
        return iter(list(self._tasks.values()))

    # -- validation ----------------------------------------------------------

    def validate(self) -> None:
        """
        Check the whole reference graph without running or binding anything.

        Raises UnknownTaskError for a dangling reference,
        CyclicDependencyError for the first cycle found, and the same
        placeholder errors expansion would raise.
        """
        done: set[str] = set()

        def visit(name: str, path: List[str]) -> None:
            if name in path:
                raise CyclicDependencyError(tuple(path[path.index(name):] + [name]))
            if name in done:
                return
            definition = self._tasks[name]
            _check_placeholders(definition)
            for ref in definition.references:
                if ref not in self._tasks:
                    raise UnknownTaskError(ref, referenced_by=name)
                visit(ref, path + [name])
            done.add(name)

        for name in self._tasks:
            visit(name, [])


def _check_placeholders(definition: TaskDefinition) -> None:
    params = definition.params
    for element in definition.elements:
        if isinstance(element, Step):
            texts = [element.command, *element.args, element.cwd, element.name, *element.env.values()]
        else:
            texts = list(element.args)
        for text in texts:
            if text is not None:
                check(text, params, definition.name)
