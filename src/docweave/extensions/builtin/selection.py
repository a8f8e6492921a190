"""Selection commands exposed as an extension."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from docweave.commands import select_all, select_text
from docweave.extensions.base import Category, CommandFactory, Extension
from docweave.extensions.registry import extension_registry

if TYPE_CHECKING:
    from docweave.core.editor import CoreEditor


@extension_registry.register()
class ExtensionSelection(Extension):
    """Adds ``select_all`` and ``select_text(start, length, block_index=0)``."""

    name = "selection"
    category = Category.BEHAVIOR

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        return {"select_all": select_all, "select_text": select_text}

    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]:
        return {"Mod-a": "select_all"}
