"""Document tree definitions for docweave.

A document is a tree of immutable ``Node`` values.  Every edit produces
new nodes; untouched subtrees are shared between the old and the new
document, so retaining an old document is cheap.

Positions
---------
Positions are integers that count tokens in document order:

* each character of a text node counts 1;
* a leaf node (for example a hard break) counts 1;
* entering and leaving any other node counts 1 each.

Position 0 is the start of the root node's content.  For the document
``doc(paragraph("Hi"))`` the paragraph opens at 0, ``H`` sits between 1
and 2, and the paragraph closes at 3, giving a content size of 4.
``ResolvedPos`` translates a position into its path through the tree.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Iterator, Mapping

if TYPE_CHECKING:
    from docweave.model.schema import MarkType, NodeType

_NO_ATTRS: Mapping[str, Any] = MappingProxyType({})


# ---------------------------------------------------------------------------
# Marks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Mark:
    """Styling applied to an inline node, e.g. emphasis or a link.

    Parameters
    ----------
    type:
        The compiled ``MarkType`` from the schema.
    attrs:
        Attribute values, with schema defaults already filled in.
    """

    type: "MarkType"
    attrs: Mapping[str, Any] = field(default_factory=lambda: _NO_ATTRS, hash=False)

    def __repr__(self) -> str:
        if self.attrs:
            return f"Mark({self.type.name}, {dict(self.attrs)!r})"
        return f"Mark({self.type.name})"

    def is_in_set(self, marks: tuple["Mark", ...]) -> bool:
        """Return True if an identical mark is in ``marks``."""
        return any(m == self for m in marks)

    def add_to_set(self, marks: tuple["Mark", ...]) -> tuple["Mark", ...]:
        """Return ``marks`` with this mark added.

        Marks this one excludes are dropped.  If a mark in the set
        excludes this one, the set is returned unchanged.  The result is
        ordered by schema rank.
        """
        result: list[Mark] = []
        for other in marks:
            if other == self:
                return marks
            if self.type.excludes(other.type):
                continue
            if other.type.excludes(self.type):
                return marks
            result.append(other)
        result.append(self)
        result.sort(key=lambda m: m.type.rank)
        return tuple(result)

    def remove_from_set(self, marks: tuple["Mark", ...]) -> tuple["Mark", ...]:
        """Return ``marks`` without this mark."""
        return tuple(m for m in marks if m != self)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Node:
    """A single node in a document tree.

    Parameters
    ----------
    type:
        The compiled ``NodeType`` from the schema.
    attrs:
        Attribute values, with schema defaults already filled in.
    content:
        Child nodes.  Always empty for text and leaf nodes.
    marks:
        Marks applied to this node (inline nodes only).
    text:
        The text of a text node; ``None`` for every other node.
    """

    type: "NodeType"
    attrs: Mapping[str, Any] = field(default_factory=lambda: _NO_ATTRS, hash=False)
    content: tuple["Node", ...] = ()
    marks: tuple[Mark, ...] = ()
    text: str | None = None

    def __repr__(self) -> str:
        if self.text is not None:
            inner = repr(self.text)
        else:
            inner = ", ".join(repr(child) for child in self.content)
        for mark in reversed(self.marks):
            inner = f"{mark.type.name}({inner})"
        if self.text is not None:
            return inner
        return f"{self.type.name}({inner})"

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    @property
    def is_text(self) -> bool:
        return self.text is not None

    @property
    def is_leaf(self) -> bool:
        return self.is_text or self.type.is_leaf

    @property
    def is_inline(self) -> bool:
        return self.type.is_inline

    @property
    def is_block(self) -> bool:
        return self.type.is_block

    @property
    def is_textblock(self) -> bool:
        return self.type.is_textblock

    # ------------------------------------------------------------------
    # Sizes
    # ------------------------------------------------------------------

    @property
    def content_size(self) -> int:
        """Size of this node's content, excluding its own open/close tokens."""
        return fragment_size(self.content)

    @property
    def node_size(self) -> int:
        """Number of positions this node occupies in its parent."""
        if self.text is not None:
            return len(self.text)
        if self.type.is_leaf:
            return 1
        return self.content_size + 2

    @property
    def child_count(self) -> int:
        return len(self.content)

    def child(self, index: int) -> "Node":
        return self.content[index]

    @property
    def text_content(self) -> str:
        """Concatenated text of all descendant text nodes."""
        if self.text is not None:
            return self.text
        return "".join(child.text_content for child in self.content)

    # ------------------------------------------------------------------
    # Copying
    # ------------------------------------------------------------------

    def copy(self, content: tuple["Node", ...]) -> "Node":
        """Return a node of the same type, attrs, and marks with new content."""
        return replace(self, content=tuple(content))

    def mark(self, marks: tuple[Mark, ...]) -> "Node":
        """Return this node with its marks replaced."""
        return replace(self, marks=tuple(marks))

    def with_text(self, text: str) -> "Node":
        return replace(self, text=text)

    def cut_text(self, start: int, end: int | None = None) -> "Node":
        """Return a text node holding ``text[start:end]``."""
        assert self.text is not None
        return replace(self, text=self.text[start:end])

    def replace_child(self, index: int, node: "Node") -> "Node":
        content = list(self.content)
        content[index] = node
        return self.copy(tuple(content))

    def same_markup(self, other: "Node") -> bool:
        """Return True if ``other`` has the same type, attrs, and marks."""
        return (
            self.type == other.type
            and dict(self.attrs) == dict(other.attrs)
            and self.marks == other.marks
        )

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def child_positions(self) -> Iterator[tuple["Node", int]]:
        """Yield ``(child, offset)`` pairs, offsets relative to content start."""
        offset = 0
        for child in self.content:
            yield child, offset
            offset += child.node_size

    def descendants(self) -> Iterator[tuple["Node", int, "Node"]]:
        """Yield ``(node, pos, parent)`` for every descendant in document order."""
        yield from self._walk(0, self.content_size)

    def nodes_between(self, from_: int, to: int) -> Iterator[tuple["Node", int, "Node"]]:
        """Yield ``(node, pos, parent)`` for descendants touching ``[from_, to)``."""
        yield from self._walk(from_, to)

    def _walk(self, from_: int, to: int, base: int = 0) -> Iterator[tuple["Node", int, "Node"]]:
        for child, offset in self.child_positions():
            start = base + offset
            if start >= to:
                break
            if start + child.node_size > from_:
                yield child, start, self
                if child.content:
                    yield from child._walk(from_, to, start + 1)

    def node_at(self, pos: int) -> "Node | None":
        """Return the node starting directly after ``pos``, if any."""
        node = self
        while True:
            index, offset = find_index(node.content, pos)
            if index >= len(node.content):
                return None
            child = node.content[index]
            if offset == pos or child.is_text:
                return child
            pos -= offset + 1
            node = child

    def range_has_mark(self, from_: int, to: int, mark_type: "MarkType") -> bool:
        """Return True if any inline node in ``[from_, to)`` carries ``mark_type``."""
        for node, _pos, _parent in self.nodes_between(from_, to):
            if any(m.type == mark_type for m in node.marks):
                return True
        return False

    def resolve(self, pos: int) -> "ResolvedPos":
        """Resolve ``pos`` against this node, which must be a document root."""
        return ResolvedPos.resolve(self, pos)

    def check(self) -> None:
        """Raise ``ContentError`` if this subtree does not match its schema."""
        self.type.check_content(self.content)
        for child in self.content:
            child.check()


# ---------------------------------------------------------------------------
# Fragment helpers (operate on plain tuples of nodes)
# ---------------------------------------------------------------------------


def fragment_size(nodes: tuple[Node, ...]) -> int:
    return sum(node.node_size for node in nodes)


def find_index(nodes: tuple[Node, ...], pos: int) -> tuple[int, int]:
    """Return ``(index, offset)`` of the child that ``pos`` points into.

    When ``pos`` falls exactly on a boundary the index of the child
    *after* the boundary is returned, with ``offset == pos``.
    """
    offset = 0
    for index, child in enumerate(nodes):
        end = offset + child.node_size
        if end > pos:
            return index, offset
        offset = end
    return len(nodes), offset


def cut_fragment(nodes: tuple[Node, ...], from_: int, to: int | None = None) -> tuple[Node, ...]:
    """Return the slice of ``nodes`` between content offsets ``from_`` and ``to``.

    Text nodes are split at the boundaries.  Non-text children must not
    be partially covered by the range.
    """
    if to is None:
        to = fragment_size(nodes)
    result: list[Node] = []
    offset = 0
    for child in nodes:
        end = offset + child.node_size
        if end > from_ and offset < to:
            if child.is_text and (offset < from_ or end > to):
                child = child.cut_text(max(0, from_ - offset), min(child.node_size, to - offset))
            result.append(child)
        offset = end
        if offset >= to:
            break
    return tuple(result)


def normalize_inline(nodes: tuple[Node, ...] | list[Node]) -> tuple[Node, ...]:
    """Merge adjacent text nodes with equal marks and drop empty text nodes."""
    result: list[Node] = []
    for node in nodes:
        if node.is_text:
            if not node.text:
                continue
            if result and result[-1].is_text and result[-1].marks == node.marks:
                assert result[-1].text is not None
                result[-1] = result[-1].with_text(result[-1].text + node.text)
                continue
        result.append(node)
    return tuple(result)


def map_inline(
    node: Node,
    from_: int,
    to: int,
    fn: Callable[[Node, Node], Node],
    base: int = 0,
) -> Node:
    """Rebuild ``node`` with ``fn(inline, parent)`` applied to inline content in range.

    Text nodes straddling the boundaries are split so that only the
    covered characters are passed to ``fn``.  ``base`` is the position of
    ``node``'s content start.
    """
    if not node.content:
        return node
    changed = False
    new_content: list[Node] = []
    for child, offset in node.child_positions():
        start = base + offset
        end = start + child.node_size
        if end <= from_ or start >= to:
            new_content.append(child)
            continue
        if child.is_inline:
            if child.is_text and (start < from_ or end > to):
                cut_from = max(from_, start) - start
                cut_to = min(to, end) - start
                before = child.cut_text(0, cut_from)
                middle = child.cut_text(cut_from, cut_to)
                after = child.cut_text(cut_to)
                new_content.extend([before, fn(middle, node), after])
            else:
                new_content.append(fn(child, node))
            changed = True
        else:
            updated = map_inline(child, from_, to, fn, start + 1)
            changed = changed or updated is not child
            new_content.append(updated)
    if not changed:
        return node
    if node.is_textblock:
        return node.copy(normalize_inline(new_content))
    return node.copy(tuple(new_content))


# ---------------------------------------------------------------------------
# Resolved positions
# ---------------------------------------------------------------------------


class ResolvedPos:
    """A position together with the path of ancestor nodes that contain it.

    Parameters
    ----------
    pos:
        The absolute position.
    path:
        Flat list of ``(node, index, offset)`` triples from the root
        down to the parent, where ``offset`` is the absolute position
        of the child at ``index``.
    parent_offset:
        Offset of ``pos`` within the parent's content.
    """

    __slots__ = ("pos", "path", "parent_offset", "depth")

    def __init__(self, pos: int, path: list[Any], parent_offset: int) -> None:
        self.pos = pos
        self.path = path
        self.parent_offset = parent_offset
        self.depth = len(path) // 3 - 1

    def __repr__(self) -> str:
        names = "/".join(self.node(d).type.name for d in range(self.depth + 1))
        return f"ResolvedPos({self.pos}, {names}:{self.parent_offset})"

    @classmethod
    def resolve(cls, doc: Node, pos: int) -> "ResolvedPos":
        if not 0 <= pos <= doc.content_size:
            raise IndexError(f"Position {pos} out of range (0..{doc.content_size})")
        path: list[Any] = []
        start = 0
        parent_offset = pos
        node = doc
        while True:
            index, offset = find_index(node.content, parent_offset)
            remaining = parent_offset - offset
            path.extend([node, index, start + offset])
            if not remaining:
                break
            child = node.content[index]
            if child.is_text:
                break
            node = child
            parent_offset = remaining - 1
            start += offset + 1
        return cls(pos, path, parent_offset)

    def _depth(self, depth: int | None) -> int:
        if depth is None:
            return self.depth
        if depth < 0:
            return self.depth + depth
        return depth

    @property
    def parent(self) -> Node:
        return self.node(self.depth)

    @property
    def doc(self) -> Node:
        return self.node(0)

    def node(self, depth: int | None = None) -> Node:
        return self.path[self._depth(depth) * 3]

    def index(self, depth: int | None = None) -> int:
        return self.path[self._depth(depth) * 3 + 1]

    def index_after(self, depth: int | None = None) -> int:
        depth = self._depth(depth)
        return self.index(depth) + (0 if depth == self.depth and not self.text_offset else 1)

    def start(self, depth: int | None = None) -> int:
        """Absolute position where the content of the ancestor at ``depth`` starts."""
        depth = self._depth(depth)
        return 0 if depth == 0 else self.path[depth * 3 - 1] + 1

    def end(self, depth: int | None = None) -> int:
        depth = self._depth(depth)
        return self.start(depth) + self.node(depth).content_size

    def before(self, depth: int | None = None) -> int:
        """Position directly before the ancestor at ``depth`` (depth >= 1)."""
        depth = self._depth(depth)
        if not depth:
            raise IndexError("There is no position before the top-level node")
        return self.path[depth * 3 - 1]

    def after(self, depth: int | None = None) -> int:
        depth = self._depth(depth)
        if not depth:
            raise IndexError("There is no position after the top-level node")
        return self.path[depth * 3 - 1] + self.node(depth).node_size

    @property
    def text_offset(self) -> int:
        return self.pos - self.path[-1]

    @property
    def node_after(self) -> Node | None:
        parent = self.parent
        index = self.index(self.depth)
        if index == parent.child_count:
            return None
        child = parent.child(index)
        offset = self.text_offset
        return child.cut_text(offset) if offset else child

    @property
    def node_before(self) -> Node | None:
        index = self.index(self.depth)
        offset = self.text_offset
        if offset:
            return self.parent.child(index).cut_text(0, offset)
        return None if index == 0 else self.parent.child(index - 1)

    def marks(self) -> tuple[Mark, ...]:
        """Marks that text inserted at this position should inherit."""
        parent = self.parent
        index = self.index()
        if not parent.content:
            return ()
        if self.text_offset:
            return parent.child(index).marks
        main = parent.child(index - 1) if index > 0 else None
        other = parent.child(index) if index < parent.child_count else None
        if main is None:
            main, other = other, None
        if main is None:
            return ()
        marks = main.marks
        for mark in main.marks:
            if mark.type.spec.inclusive is False and (other is None or not mark.is_in_set(other.marks)):
                marks = mark.remove_from_set(marks)
        return marks

    def same_parent(self, other: "ResolvedPos") -> bool:
        return self.depth == other.depth and self.start() == other.start()

    def shared_depth(self, pos: int) -> int:
        """Deepest depth whose node contains both this position and ``pos``."""
        for depth in range(self.depth, 0, -1):
            if self.start(depth) <= pos <= self.end(depth):
                return depth
        return 0
