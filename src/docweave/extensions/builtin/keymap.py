"""Base key bindings for the editing keys and block structure.

``backspace``, ``delete`` and ``enter`` are ``first_command``
combinations of named registry commands.  The names are looked up when
the key is pressed, so an extension that overrides ``join_backward``
also changes what Backspace does.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from docweave.core.chain import first_command
from docweave.core.state import Command
from docweave.extensions.base import Category, CommandFactory, Extension
from docweave.extensions.registry import extension_registry

if TYPE_CHECKING:
    from docweave.core.editor import CoreEditor

BACKSPACE = ("undo_input_rule", "delete_selection", "join_backward", "select_node_backward", "delete_backward")
DELETE = ("delete_selection", "join_forward", "select_node_forward", "delete_forward")
ENTER = ("newline_in_code", "create_paragraph_near", "lift_empty_block", "split_block")


def _first_of(editor: "CoreEditor", names: tuple[str, ...]) -> CommandFactory:
    def factory() -> Command:
        return first_command(*(editor.commands.create(name) for name in names if name in editor.commands))

    return factory


@extension_registry.register()
class ExtensionBaseKeymap(Extension):
    name = "base-keymap"
    category = Category.BEHAVIOR

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        return {
            "backspace": _first_of(editor, BACKSPACE),
            "delete": _first_of(editor, DELETE),
            "enter": _first_of(editor, ENTER),
        }

    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]:
        return {
            "Backspace": "backspace",
            "Mod-Backspace": "backspace",
            "Shift-Backspace": "backspace",
            "Delete": "delete",
            "Mod-Delete": "delete",
            "Enter": "enter",
            "Escape": "select_parent_node",
            "Alt-ArrowUp": "join_up",
            "Alt-ArrowDown": "join_down",
            "Mod-BracketLeft": "lift",
        }
