"""The ``basic-editor`` bundle.

A bundle is an extension whose ``requires`` list carries extension
instances.  The resolver walks those nested instances, so listing the
bundle alone is enough to get every member.  Per-member config is given
under the member's name::

    BasicEditor({"history": {"depth": 20}})
"""
from __future__ import annotations

from typing import Any, Mapping

from docweave.extensions.base import Category, Extension
from docweave.extensions.builtin.formats import ExtensionFormats
from docweave.extensions.builtin.history import ExtensionHistory
from docweave.extensions.builtin.input_rules import ExtensionInputRules
from docweave.extensions.builtin.keymap import ExtensionBaseKeymap
from docweave.extensions.builtin.marks import MarkCode, MarkItalic, MarkStrong
from docweave.extensions.builtin.nodes import (
    NodeBlockquote,
    NodeCodeBlock,
    NodeDocument,
    NodeHardBreak,
    NodeHeading,
    NodeParagraph,
    NodeText,
)
from docweave.extensions.builtin.selection import ExtensionSelection
from docweave.extensions.registry import extension_registry

MEMBERS: tuple[type[Extension], ...] = (
    NodeDocument,
    NodeText,
    NodeParagraph,
    NodeHeading,
    NodeBlockquote,
    NodeCodeBlock,
    NodeHardBreak,
    MarkItalic,
    MarkStrong,
    MarkCode,
    ExtensionSelection,
    ExtensionHistory,
    ExtensionInputRules,
    ExtensionBaseKeymap,
    ExtensionFormats,
)


@extension_registry.register()
class BasicEditor(Extension):
    name = "basic-editor"
    category = Category.BEHAVIOR

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        config = dict(config or {})
        members = [cls(config.get(cls.name)) for cls in MEMBERS]
        super().__init__(config, requires=members)
