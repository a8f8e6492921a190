"""Command registry.

Every extension may contribute named command factories.  The registry
merges them in resolution order: a later extension that contributes a
name already present replaces the earlier factory.  The core's own base
commands are registered first, under the owner ``"core"``, so any
extension can override them.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator, Mapping

from docweave.core.errors import UnknownCommandError
from docweave.extensions.base import (
    Category,
    CommandFactory,
    ProvidesCommands,
    ProvidesMarkType,
    ProvidesNodeType,
)

if TYPE_CHECKING:
    from docweave.core.editor import CoreEditor
    from docweave.core.resolver import ResolvedExtensionSet
    from docweave.core.state import Command
    from docweave.extensions.base import Extension
    from docweave.model.schema import MarkType, NodeType, Schema

logger = logging.getLogger(__name__)

CORE_OWNER = "core"


def own_type(ext: "Extension", schema: "Schema") -> "NodeType | MarkType | None":
    """The compiled type an extension contributed, if any."""
    if ext.category is Category.NODE and isinstance(ext, ProvidesNodeType):
        return schema.nodes.get(ext.provide_node_type().name)
    if ext.category is Category.MARK and isinstance(ext, ProvidesMarkType):
        return schema.marks.get(ext.provide_mark_type().name)
    return None


class CommandRegistry:
    """Name to command factory table with last-wins merging."""

    def __init__(self) -> None:
        self._factories: dict[str, CommandFactory] = {}
        self._owners: dict[str, str] = {}

    @classmethod
    def from_extensions(
        cls,
        resolved: "ResolvedExtensionSet",
        editor: "CoreEditor",
        schema: "Schema",
    ) -> "CommandRegistry":
        """Build the merged registry for ``resolved``."""
        from docweave.commands import base_command_factories

        registry = cls()
        registry.merge(base_command_factories(), CORE_OWNER)
        for ext in resolved:
            if isinstance(ext, ProvidesCommands):
                registry.merge(ext.provide_command_factories(editor, own_type(ext, schema)), ext.name)
        return registry

    def merge(self, factories: Mapping[str, CommandFactory], owner: str) -> None:
        """Add ``factories``, replacing any existing entries with the same name."""
        for name, factory in factories.items():
            previous = self._owners.get(name)
            if previous is not None:
                logger.debug("Command %r from %r overrides the one from %r", name, owner, previous)
            self._factories[name] = factory
            self._owners[name] = owner

    def get(self, name: str) -> CommandFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise UnknownCommandError(name) from None

    def create(self, name: str, *args: Any, **kwargs: Any) -> "Command":
        """Build the command ``name`` with the given arguments.

        Raises
        ------
        UnknownCommandError
            If no factory is registered under ``name``.
        """
        return self.get(name)(*args, **kwargs)

    def owner(self, name: str) -> str:
        """Name of the extension whose factory won for ``name``."""
        if name not in self._owners:
            raise UnknownCommandError(name)
        return self._owners[name]

    def names(self) -> list[str]:
        return list(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self._factories)

    def __len__(self) -> int:
        return len(self._factories)

    def __repr__(self) -> str:
        return f"CommandRegistry({len(self)} commands)"
