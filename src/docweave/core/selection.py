"""Selections.

A selection is an immutable value describing a range of the document.
Three kinds exist:

``TextSelection``
    A caret or text range between ``anchor`` and ``head`` (either order).
``NodeSelection``
    A single node, addressed by the position directly before it.
``AllSelection``
    The whole document.

Selections are mapped through a transaction's ``Mapping`` whenever the
document changes, so they always point into the current document.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Union

from docweave.model.nodes import Node

if TYPE_CHECKING:
    from docweave.core.transform import Mapping as StepMapping


def _clamp(doc: Node, pos: int) -> int:
    return max(0, min(pos, doc.content_size))


def _textblock_ranges(doc: Node) -> list[tuple[int, int]]:
    return [
        (pos + 1, pos + 1 + node.content_size)
        for node, pos, _parent in doc.descendants()
        if node.is_textblock
    ]


def _nearest_text_pos(doc: Node, pos: int, bias: int = 1) -> int:
    """Return the valid caret position closest to ``pos``.

    Positions inside a textblock are returned unchanged.  Otherwise the
    search looks in the direction of ``bias`` first, then the other way.
    """
    ranges = _textblock_ranges(doc)
    if not ranges:
        return _clamp(doc, pos)
    for start, end in ranges:
        if start <= pos <= end:
            return pos
    after = [start for start, _end in ranges if start >= pos]
    before = [end for _start, end in ranges if end <= pos]
    if bias >= 0:
        return after[0] if after else before[-1]
    return before[-1] if before else after[0]


@dataclass(frozen=True)
class TextSelection:
    """A caret (``anchor == head``) or a text range."""

    anchor: int
    head: int

    @classmethod
    def create(cls, doc: Node, anchor: int, head: int | None = None) -> "TextSelection":
        """Build a selection with both ends clamped into ``doc``."""
        anchor = _clamp(doc, anchor)
        return cls(anchor, anchor if head is None else _clamp(doc, head))

    @classmethod
    def near(cls, doc: Node, pos: int, bias: int = 1) -> "TextSelection":
        """A caret at the valid text position closest to ``pos``."""
        target = _nearest_text_pos(doc, _clamp(doc, pos), bias)
        return cls(target, target)

    @classmethod
    def at_start(cls, doc: Node) -> "TextSelection":
        return cls.near(doc, 0)

    @classmethod
    def at_end(cls, doc: Node) -> "TextSelection":
        return cls.near(doc, doc.content_size, -1)

    @property
    def from_(self) -> int:
        return min(self.anchor, self.head)

    @property
    def to(self) -> int:
        return max(self.anchor, self.head)

    @property
    def empty(self) -> bool:
        return self.anchor == self.head

    def map(self, doc: Node, mapping: "StepMapping") -> "Selection":
        head = _clamp(doc, mapping.map(self.head))
        if self.empty:
            return TextSelection.near(doc, head)
        anchor = _clamp(doc, mapping.map(self.anchor))
        return TextSelection(_nearest_text_pos(doc, anchor), _nearest_text_pos(doc, head, -1))

    def to_json(self) -> dict[str, Any]:
        return {"type": "text", "anchor": self.anchor, "head": self.head}


@dataclass(frozen=True)
class NodeSelection:
    """Selects the single node that starts at ``pos``."""

    pos: int
    node: Node = field(compare=False, repr=False)

    @classmethod
    def create(cls, doc: Node, pos: int) -> "NodeSelection":
        node = doc.node_at(pos)
        if node is None or node.is_text:
            raise ValueError(f"No selectable node at position {pos}")
        return cls(pos, node)

    @property
    def anchor(self) -> int:
        return self.pos

    @property
    def head(self) -> int:
        return self.to

    @property
    def from_(self) -> int:
        return self.pos

    @property
    def to(self) -> int:
        return self.pos + self.node.node_size

    @property
    def empty(self) -> bool:
        return False

    def map(self, doc: Node, mapping: "StepMapping") -> "Selection":
        pos, deleted = mapping.map_result(self.pos, 1)
        node = doc.node_at(pos) if 0 <= pos < doc.content_size else None
        if deleted or node is None or node.type != self.node.type:
            return TextSelection.near(doc, pos)
        return NodeSelection(pos, node)

    def to_json(self) -> dict[str, Any]:
        return {"type": "node", "anchor": self.pos}


@dataclass(frozen=True)
class AllSelection:
    """Selects the whole document."""

    size: int

    @classmethod
    def create(cls, doc: Node) -> "AllSelection":
        return cls(doc.content_size)

    @property
    def anchor(self) -> int:
        return 0

    @property
    def head(self) -> int:
        return self.size

    @property
    def from_(self) -> int:
        return 0

    @property
    def to(self) -> int:
        return self.size

    @property
    def empty(self) -> bool:
        return self.size == 0

    def map(self, doc: Node, mapping: "StepMapping") -> "Selection":
        return AllSelection(doc.content_size)

    def to_json(self) -> dict[str, Any]:
        return {"type": "all"}


Selection = Union[TextSelection, NodeSelection, AllSelection]


def selection_from_json(doc: Node, data: Mapping[str, Any]) -> Selection:
    """Rebuild a selection saved with ``to_json`` against ``doc``."""
    kind = data.get("type")
    if kind == "all":
        return AllSelection.create(doc)
    if kind == "node":
        return NodeSelection.create(doc, int(data["anchor"]))
    if kind == "text":
        return TextSelection.create(doc, int(data["anchor"]), int(data["head"]))
    raise ValueError(f"Unknown selection type {kind!r}")
