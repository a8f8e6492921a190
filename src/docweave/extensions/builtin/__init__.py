"""Built-in extensions.

Importing this package registers every built-in extension class in
``docweave.extensions.registry.extension_registry``.
"""
from __future__ import annotations

from docweave.extensions.builtin.bundle import BasicEditor
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

__all__ = [
    "BasicEditor",
    "ExtensionBaseKeymap",
    "ExtensionFormats",
    "ExtensionHistory",
    "ExtensionInputRules",
    "ExtensionSelection",
    "MarkCode",
    "MarkItalic",
    "MarkStrong",
    "NodeBlockquote",
    "NodeCodeBlock",
    "NodeDocument",
    "NodeHardBreak",
    "NodeHeading",
    "NodeParagraph",
    "NodeText",
]
