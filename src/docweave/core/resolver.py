"""Extension resolution.

``resolve_extensions`` turns the caller's extension list into a
dependency-ordered, duplicate-free ``ResolvedExtensionSet``.

The walk considers the input list and every extension instance nested
in a ``requires`` list, so bundle extensions can carry their members.
When two extensions share a name, the first one met in the walk wins
and keeps its config.  Requirements are always placed before the
extension that declares them.
"""
from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Iterable, Iterator, Sequence

from docweave.core.errors import (
    CircularDependencyError,
    ExtensionConflictError,
    MissingDependencyError,
)
from docweave.extensions.base import Extension

logger = logging.getLogger(__name__)


class _Mark(Enum):
    IN_PROGRESS = auto()
    DONE = auto()


class ResolvedExtensionSet:
    """Ordered, dependency-closed, duplicate-free tuple of extensions."""

    __slots__ = ("_extensions", "_by_name")

    def __init__(self, extensions: Sequence[Extension]) -> None:
        self._extensions: tuple[Extension, ...] = tuple(extensions)
        self._by_name = {ext.name: ext for ext in self._extensions}

    def __iter__(self) -> Iterator[Extension]:
        return iter(self._extensions)

    def __len__(self) -> int:
        return len(self._extensions)

    def __getitem__(self, index: int) -> Extension:
        return self._extensions[index]

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Extension):
            return self._by_name.get(item.name) == item
        return item in self._by_name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResolvedExtensionSet):
            return NotImplemented
        return self._extensions == other._extensions

    def __hash__(self) -> int:
        return hash(self._extensions)

    def __repr__(self) -> str:
        return f"ResolvedExtensionSet({self.names()})"

    def get(self, name: str) -> Extension | None:
        return self._by_name.get(name)

    def names(self) -> list[str]:
        return [ext.name for ext in self._extensions]


def _collect(extensions: Iterable[Extension]) -> dict[str, Extension]:
    """Index every reachable extension instance by name; first wins."""
    found: dict[str, Extension] = {}

    def visit(ext: Extension) -> None:
        if ext.name in found:
            return
        found[ext.name] = ext
        for requirement in ext.requires:
            if isinstance(requirement, Extension):
                visit(requirement)

    for ext in extensions:
        visit(ext)
    return found


def resolve_extensions(extensions: Iterable[Extension]) -> ResolvedExtensionSet:
    """Resolve ``extensions`` into dependency order.

    Parameters
    ----------
    extensions:
        The caller's extension list.  Order matters: it fixes the output
        order among independent extensions and decides which duplicate
        wins.

    Returns
    -------
    ResolvedExtensionSet
        Every extension exactly once, each after all of its requirements.

    Raises
    ------
    MissingDependencyError
        If a required name is provided by no extension in the walk.
    CircularDependencyError
        If the ``requires`` graph has a cycle.
    ExtensionConflictError
        If two resolved extensions declare each other as conflicting.
    """
    roots = list(extensions)
    graph = _collect(roots)
    marks: dict[str, _Mark] = {}
    order: list[Extension] = []
    stack: list[str] = []

    def visit(ext: Extension) -> None:
        mark = marks.get(ext.name)
        if mark is _Mark.DONE:
            return
        if mark is _Mark.IN_PROGRESS:
            cycle = stack[stack.index(ext.name):] + [ext.name]
            raise CircularDependencyError(cycle)
        marks[ext.name] = _Mark.IN_PROGRESS
        stack.append(ext.name)
        for required in ext.required_names():
            dependency = graph.get(required)
            if dependency is None:
                raise MissingDependencyError(ext.name, required)
            visit(dependency)
        stack.pop()
        marks[ext.name] = _Mark.DONE
        order.append(ext)
        logger.debug("Resolved extension %r (%d)", ext.name, len(order))

    for ext in roots:
        visit(graph[ext.name])

    resolved = ResolvedExtensionSet(order)
    for ext in resolved:
        for name in ext.conflicts:
            if name in resolved:
                raise ExtensionConflictError(ext.name, name)
    return resolved
