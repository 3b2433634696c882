# templating.py
from __future__ import annotations

from string import Template
from typing import Collection, Mapping

from .errors import PlaceholderError, TaskArgumentError


def substitute(text: str, values: Mapping[str, str], task: str) -> str:
    """Fill `${NAME}` / `$NAME` from `values`; `$$` is a literal `$`."""
    try:
        return Template(text).substitute(values)
    except KeyError as e:
        raise TaskArgumentError(
            task=task, params=tuple(values), given=(), missing=e.args[0]
        ) from None
    except ValueError as e:
        raise PlaceholderError(task=task, text=text, reason=str(e)) from None


def check(text: str, params: Collection[str], task: str) -> None:
    """Static version of substitute(): same errors, nothing bound."""
    for m in Template.pattern.finditer(text):
        if m.group("invalid") is not None:
            raise PlaceholderError(
                task=task, text=text, reason=f"stray '$' at offset {m.start('invalid')}"
            )
        name = m.group("named") or m.group("braced")
        if name is not None and name not in params:
            raise TaskArgumentError(task=task, params=tuple(params), given=(), missing=name)
