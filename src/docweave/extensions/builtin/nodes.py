"""Built-in node extensions: document, paragraph, heading, blockquote, code block, text, hard break."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from docweave.commands import insert_node, set_block_type, wrap_in
from docweave.extensions.base import Category, CommandFactory, Extension
from docweave.extensions.builtin.input_rules import InputRule, textblock_type_rule, wrapping_rule
from docweave.extensions.registry import extension_registry
from docweave.model.schema import AttributeSpec, NodeSpec, Schema

if TYPE_CHECKING:
    from docweave.core.editor import CoreEditor

HEADING_LEVELS = range(1, 7)


def _valid_level(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value in HEADING_LEVELS


@extension_registry.register()
class NodeDocument(Extension):
    """The document root.  A new document holds one empty paragraph."""

    name = "doc"
    category = Category.NODE

    def provide_node_type(self) -> NodeSpec:
        return NodeSpec(
            "doc",
            content=self.config.get("content", "block+"),
            top_node=True,
            empty_content=({"type": "paragraph"},),
        )


@extension_registry.register()
class NodeText(Extension):
    name = "text"
    category = Category.NODE

    def provide_node_type(self) -> NodeSpec:
        return NodeSpec("text", group="inline", inline=True)


@extension_registry.register()
class NodeParagraph(Extension):
    name = "paragraph"
    category = Category.NODE

    def provide_node_type(self) -> NodeSpec:
        return NodeSpec(
            "paragraph",
            content="inline*",
            group="block",
            hooks={"to_dom": ("p", 0), "parse_dom": ({"tag": "p"},)},
        )

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        return {"set_paragraph": lambda: set_block_type(type_)}

    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]:
        return {"Shift-Ctrl-0": "set_paragraph"}


@extension_registry.register()
class NodeHeading(Extension):
    """Headings with a ``level`` attribute from 1 to 6.

    ``set_heading(level)`` is the general command; ``set_heading_1`` to
    ``set_heading_6`` exist so levels can be bound to keys.
    """

    name = "heading"
    category = Category.NODE

    def provide_node_type(self) -> NodeSpec:
        return NodeSpec(
            "heading",
            content="inline*",
            group="block",
            attrs={"level": AttributeSpec(default=1, validate=_valid_level)},
            hooks={"to_dom": lambda node: (f"h{node.attrs['level']}", 0)},
        )

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        factories: dict[str, CommandFactory] = {
            "set_heading": lambda level=1: set_block_type(type_, {"level": level}),
        }
        for level in HEADING_LEVELS:
            factories[f"set_heading_{level}"] = lambda level=level: set_block_type(type_, {"level": level})
        return factories

    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]:
        return {f"Shift-Ctrl-{level}": f"set_heading_{level}" for level in HEADING_LEVELS}

    def provide_input_rules(self, editor: "CoreEditor", schema: Schema) -> list[InputRule]:
        return [
            textblock_type_rule(
                r"^(#{1,6})\s$", schema.node_type("heading"), lambda match: {"level": len(match.group(1))}
            )
        ]


@extension_registry.register()
class NodeBlockquote(Extension):
    name = "blockquote"
    category = Category.NODE
    requires = ("doc",)

    def provide_node_type(self) -> NodeSpec:
        return NodeSpec(
            "blockquote",
            content="block+",
            group="block",
            hooks={"to_dom": ("blockquote", 0), "parse_dom": ({"tag": "blockquote"},)},
        )

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        return {"wrap_in_blockquote": lambda: wrap_in(type_)}

    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]:
        return {"Ctrl->": "wrap_in_blockquote"}

    def provide_input_rules(self, editor: "CoreEditor", schema: Schema) -> list[InputRule]:
        return [wrapping_rule(r"^\s*>\s$", schema.node_type("blockquote"))]


@extension_registry.register()
class NodeCodeBlock(Extension):
    """Preformatted code.  Its text carries no marks and Enter inserts a newline."""

    name = "code_block"
    category = Category.NODE

    def provide_node_type(self) -> NodeSpec:
        return NodeSpec(
            "code_block",
            content="text*",
            group="block",
            marks="",
            code=True,
            attrs={"lang": AttributeSpec(default=None)},
            hooks={"to_dom": lambda node: ("pre", {"lang": node.attrs["lang"]}, ("code", 0))},
        )

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        return {"set_code_block": lambda lang=None: set_block_type(type_, {"lang": lang})}

    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]:
        return {"Shift-Ctrl-\\": "set_code_block"}

    def provide_input_rules(self, editor: "CoreEditor", schema: Schema) -> list[InputRule]:
        return [textblock_type_rule(r"^```$", schema.node_type("code_block"))]


@extension_registry.register()
class NodeHardBreak(Extension):
    name = "hard_break"
    category = Category.NODE

    def provide_node_type(self) -> NodeSpec:
        return NodeSpec("hard_break", group="inline", inline=True, hooks={"to_dom": ("br",)})

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        return {"insert_hard_break": lambda: insert_node(type_.create())}

    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]:
        return {"Shift-Enter": "insert_hard_break", "Mod-Enter": "insert_hard_break"}
