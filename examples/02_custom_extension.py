#!/usr/bin/env python3
"""Example: Writing an extension

Defines an ``underline`` mark and a ``callout`` block node, registers them
by name, and mixes them into the basic-editor kit.  Extensions listed
later win command and key-binding collisions.

Usage:
    python examples/02_custom_extension.py

Requirements:
    pip install docweave
"""
from __future__ import annotations

from docweave.commands import set_block_type, toggle_mark
from docweave.core.editor import CoreEditor
from docweave.extensions import Category, Extension, extension_registry
from docweave.extensions.builtin import BasicEditor
from docweave.model.schema import AttributeSpec, MarkSpec, NodeSpec


@extension_registry.register()
class Underline(Extension):
    name = "underline"
    category = Category.MARK

    def provide_mark_type(self) -> MarkSpec:
        return MarkSpec("underline")

    def provide_command_factories(self, editor, type_):
        return {"toggle_underline": lambda: toggle_mark(type_)}

    def provide_key_bindings(self, editor):
        return {"Mod-u": "toggle_underline"}


@extension_registry.register()
class Callout(Extension):
    """A block holding inline text with a ``tone`` attribute."""

    name = "callout"
    category = Category.NODE
    requires = ("paragraph",)

    def provide_node_type(self) -> NodeSpec:
        return NodeSpec(
            "callout",
            content="inline*",
            group="block",
            attrs={"tone": AttributeSpec(default=self.config.get("tone", "info"))},
        )

    def provide_command_factories(self, editor, type_):
        return {"set_callout": lambda tone="info": set_block_type(type_, {"tone": tone})}


def main() -> None:
    editor = CoreEditor([BasicEditor(), Underline(), Callout({"tone": "warning"})], platform="mac")
    print(f"Order: {' -> '.join(editor.extensions.names())}")
    print(f"Meta-u runs {editor.keymap.lookup('Meta-u')!r} owned by {editor.keymap.owner('Meta-u')!r}")

    editor.chain().insert_text("Mind the gap").set_callout().select_text(0, 4).toggle_underline().run()
    print(editor.get_json())


if __name__ == "__main__":
    main()
