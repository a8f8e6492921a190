"""Document serialization and deserialization.

Provides round-trip serialization of document trees to and from plain
dicts, JSON and YAML.  The dict form is the one ``Schema.node_from_json``
accepts: ``type``, then ``attrs``, ``marks``, ``content`` or ``text``,
with empty fields omitted.

Usage
-----
::

    from docweave.model.serializer import DocumentSerializer

    serializer = DocumentSerializer(editor.schema)
    json_text = serializer.to_json(editor.state.doc)
    doc = serializer.from_json(json_text)
    assert doc == editor.state.doc
"""
from __future__ import annotations

import json
from typing import Any

import yaml

from docweave.core.errors import ConversionError
from docweave.model.nodes import Mark, Node
from docweave.model.schema import Schema


class DocumentSerializer:
    """Converts between ``Node`` trees and plain Python data.

    Parameters
    ----------
    schema:
        Schema used to rebuild nodes on the way in.
    """

    def __init__(self, schema: Schema) -> None:
        self.schema = schema

    # ------------------------------------------------------------------
    # Serialization (Node → dict)
    # ------------------------------------------------------------------

    def to_dict(self, node: Node) -> dict[str, Any]:
        """Serialize ``node`` to a JSON-compatible dict."""
        data: dict[str, Any] = {"type": node.type.name}
        if node.attrs:
            data["attrs"] = dict(node.attrs)
        if node.marks:
            data["marks"] = [self._mark_to_dict(m) for m in node.marks]
        if node.text is not None:
            data["text"] = node.text
        elif node.content:
            data["content"] = [self.to_dict(child) for child in node.content]
        return data

    def _mark_to_dict(self, mark: Mark) -> dict[str, Any]:
        data: dict[str, Any] = {"type": mark.type.name}
        if mark.attrs:
            data["attrs"] = dict(mark.attrs)
        return data

    def to_json(self, node: Node, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(node), indent=indent, ensure_ascii=False)

    def to_yaml(self, node: Node) -> str:
        return yaml.safe_dump(self.to_dict(node), sort_keys=False, allow_unicode=True)

    # ------------------------------------------------------------------
    # Deserialization (dict → Node)
    # ------------------------------------------------------------------

    def from_dict(self, data: Any) -> Node:
        """Rebuild and check a document.

        Raises
        ------
        ContentError
            If the data does not describe a valid document.
        """
        doc = self.schema.node_from_json(data)
        self.schema.check(doc)
        return doc

    def from_json(self, text: str | bytes) -> Node:
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ConversionError(f"Invalid JSON document: {exc}") from exc
        return self.from_dict(data)

    def from_yaml(self, text: str | bytes) -> Node:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConversionError(f"Invalid YAML document: {exc}") from exc
        return self.from_dict(data)


# ---------------------------------------------------------------------------
# Debug dump
# ---------------------------------------------------------------------------


def _preview(text: str, limit: int = 20) -> str:
    text = text.replace("\n", "\\n")
    return text if len(text) <= limit else text[:limit] + "..."


def tree_string(node: Node) -> str:
    """Render ``node`` as an indented tree with positions, for debugging.

    Each node line shows its type, start position, size, end position and
    (for non-text nodes) content size, followed by its marks and a
    preview of its text.
    """
    lines: list[str] = []

    def walk(current: Node, pos: int, level: int) -> None:
        indent = "  " * level
        line = f"{indent}- [{current.type.name}] pos: {pos}, size: {current.node_size}, end: {pos + current.node_size}"
        if current.text is None:
            line += f", content: {current.content_size}"
        lines.append(line)
        if current.marks:
            lines.append(indent + "    " + ", ".join(f"({m.type.name})" for m in current.marks))
        if current.text is not None:
            lines.append(f'{indent}    "{_preview(current.text)}"')
        for child, offset in current.child_positions():
            walk(child, pos + offset + 1, level + 1)

    for child, offset in node.child_positions():
        walk(child, offset, 0)
    return "\n".join(lines) + ("\n" if lines else "")


def plain_text(node: Node, block_separator: str = "\n") -> str:
    """Text of every textblock, one block per line; hard breaks become newlines."""
    blocks: list[str] = []
    for block, _pos, _parent in node.descendants():
        if block.is_textblock:
            parts = [c.text if c.text is not None else "\n" for c in block.content]
            blocks.append("".join(parts))
    return block_separator.join(blocks)


__all__ = ["DocumentSerializer", "tree_string", "plain_text"]
