"""Document model: nodes, marks, content expressions and the schema."""
from __future__ import annotations

from docweave.model.nodes import Mark, Node
from docweave.model.schema import AttributeSpec, MarkSpec, MarkType, NodeSpec, NodeType, Schema

__all__ = [
    "AttributeSpec",
    "Mark",
    "MarkSpec",
    "MarkType",
    "Node",
    "NodeSpec",
    "NodeType",
    "Schema",
]
