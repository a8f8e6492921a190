"""Steps, position mapping and transactions.

Every document change is expressed as a sequence of ``Step`` values.
A step knows how to apply itself to a document (raising ``StepError``
when it cannot) and how positions move across it (its ``StepMap``).

A ``Transaction`` collects steps built against one ``EditorState``,
together with the selection, stored marks and metadata that result from
them.  The state store applies a transaction as a single unit.

Usage
-----
::

    tr = editor.state.tr
    tr.insert_text("Hello", 1)
    tr.add_mark(1, 6, editor.schema.mark("strong"))
    editor.dispatch(tr)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Sequence, Union

from docweave.core.errors import StaleTransactionError, StepError
from docweave.core.selection import Selection, TextSelection
from docweave.model.nodes import Mark, Node, cut_fragment, fragment_size, map_inline, normalize_inline

if TYPE_CHECKING:
    from docweave.core.state import EditorState
    from docweave.model.schema import MarkType, NodeType

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Position mapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StepMap:
    """How one step moves positions: ``old_size`` tokens at ``start`` became ``new_size``."""

    start: int
    old_size: int
    new_size: int

    @classmethod
    def empty(cls) -> "StepMap":
        return cls(0, 0, 0)

    def map_result(self, pos: int, assoc: int = 1) -> tuple[int, bool]:
        """Map ``pos`` and report whether the content next to it was deleted.

        ``assoc`` decides the side a position sticks to when content is
        inserted exactly at it: negative keeps it before the insertion.
        """
        if not self.old_size and not self.new_size:
            return pos, False
        end = self.start + self.old_size
        if pos < self.start:
            return pos, False
        if pos > end:
            return pos + self.new_size - self.old_size, False
        if not self.old_size:
            side = assoc
        elif pos == self.start:
            side = -1
        elif pos == end:
            side = 1
        else:
            side = assoc
        mapped = self.start + (0 if side < 0 else self.new_size)
        deleted = bool(self.old_size) and pos != (self.start if assoc < 0 else end)
        return mapped, deleted

    def map(self, pos: int, assoc: int = 1) -> int:
        return self.map_result(pos, assoc)[0]


class Mapping:
    """An ordered pipeline of ``StepMap`` values."""

    def __init__(self, maps: Iterable[StepMap] = ()) -> None:
        self.maps: list[StepMap] = list(maps)

    def __len__(self) -> int:
        return len(self.maps)

    def append(self, step_map: StepMap) -> None:
        self.maps.append(step_map)

    def slice(self, start: int = 0, end: int | None = None) -> "Mapping":
        return Mapping(self.maps[start:end])

    def map_result(self, pos: int, assoc: int = 1) -> tuple[int, bool]:
        deleted = False
        for step_map in self.maps:
            pos, gone = step_map.map_result(pos, assoc)
            deleted = deleted or gone
        return pos, deleted

    def map(self, pos: int, assoc: int = 1) -> int:
        return self.map_result(pos, assoc)[0]


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


def _rebuild(doc: Node, from_: int, to: int, build: Any) -> Node:
    """Replace the parent shared by ``from_`` and ``to`` with ``build(parent, start)``."""
    if not 0 <= from_ <= to <= doc.content_size:
        raise StepError(f"Range {from_}..{to} is outside the document (0..{doc.content_size})")
    rfrom = doc.resolve(from_)
    rto = doc.resolve(to)
    if not rfrom.same_parent(rto):
        raise StepError(f"Range {from_}..{to} crosses node boundaries")
    node = build(rfrom.parent, rfrom.start())
    for depth in range(rfrom.depth - 1, -1, -1):
        node = rfrom.node(depth).replace_child(rfrom.index(depth), node)
    return node


@dataclass(frozen=True)
class ReplaceStep:
    """Replace the range ``from_..to`` with ``content``.

    Both ends must lie in the same parent node, and the parent's new
    children must satisfy its content expression.
    """

    from_: int
    to: int
    content: tuple[Node, ...] = ()

    def apply(self, doc: Node) -> Node:
        def build(parent: Node, start: int) -> Node:
            children = (
                cut_fragment(parent.content, 0, self.from_ - start)
                + tuple(self.content)
                + cut_fragment(parent.content, self.to - start)
            )
            if parent.type.inline_content:
                children = normalize_inline(children)
            if not parent.type.valid_content(children):
                names = " ".join(c.type.name for c in children) or "<empty>"
                raise StepError(
                    f"Replacing {self.from_}..{self.to} leaves {parent.type.name!r} "
                    f"with invalid content [{names}]"
                )
            return parent.copy(children)

        return _rebuild(doc, self.from_, self.to, build)

    def get_map(self) -> StepMap:
        return StepMap(self.from_, self.to - self.from_, fragment_size(tuple(self.content)))

    def invert(self, doc: Node) -> "ReplaceStep":
        """The step that undoes this one; ``doc`` is the document it was applied to."""
        rfrom = doc.resolve(self.from_)
        start = rfrom.start()
        removed = cut_fragment(rfrom.parent.content, self.from_ - start, self.to - start)
        return ReplaceStep(self.from_, self.from_ + fragment_size(tuple(self.content)), removed)


class InsertStep(ReplaceStep):
    """Insert ``content`` at ``pos``."""

    def __init__(self, pos: int, content: Sequence[Node]) -> None:
        super().__init__(pos, pos, tuple(content))


class DeleteStep(ReplaceStep):
    """Delete the range ``from_..to``."""

    def __init__(self, from_: int, to: int) -> None:
        super().__init__(from_, to, ())


@dataclass(frozen=True)
class AddMarkStep:
    """Add ``mark`` to inline content in ``from_..to`` where the parent allows it."""

    from_: int
    to: int
    mark: Mark

    def apply(self, doc: Node) -> Node:
        if not 0 <= self.from_ <= self.to <= doc.content_size:
            raise StepError(f"Range {self.from_}..{self.to} is outside the document")

        def add(inline: Node, parent: Node) -> Node:
            if not parent.type.allows_mark_type(self.mark.type):
                return inline
            return inline.mark(self.mark.add_to_set(inline.marks))

        return map_inline(doc, self.from_, self.to, add)

    def get_map(self) -> StepMap:
        return StepMap.empty()

    def invert(self, doc: Node) -> "RemoveMarkStep":
        return RemoveMarkStep(self.from_, self.to, self.mark)


@dataclass(frozen=True)
class RemoveMarkStep:
    """Remove ``mark`` (a ``Mark``, or every mark of a ``MarkType``) from ``from_..to``."""

    from_: int
    to: int
    mark: Union[Mark, "MarkType"]

    def apply(self, doc: Node) -> Node:
        if not 0 <= self.from_ <= self.to <= doc.content_size:
            raise StepError(f"Range {self.from_}..{self.to} is outside the document")

        def remove(inline: Node, parent: Node) -> Node:
            return inline.mark(self.mark.remove_from_set(inline.marks))

        return map_inline(doc, self.from_, self.to, remove)

    def get_map(self) -> StepMap:
        return StepMap.empty()

    def invert(self, doc: Node) -> AddMarkStep:
        if not isinstance(self.mark, Mark):
            raise StepError(f"Removing every {self.mark.name!r} mark cannot be inverted")
        return AddMarkStep(self.from_, self.to, self.mark)


@dataclass(frozen=True)
class SetNodeMarkupStep:
    """Give the node at ``pos`` a new type and/or attributes, keeping its content.

    Positions inside the node do not move.
    """

    pos: int
    node_type: "NodeType"
    attrs: Any = None

    def apply(self, doc: Node) -> Node:
        node = doc.node_at(self.pos) if 0 <= self.pos < doc.content_size else None
        if node is None or node.is_text:
            raise StepError(f"No node at position {self.pos}")
        content = node.content
        if self.node_type.inline_content:
            content = normalize_inline(
                [child.mark(self.node_type.allowed_marks(child.marks)) for child in content]
            )
        attrs = self.attrs if self.attrs is not None else (
            node.attrs if self.node_type == node.type else None
        )
        replacement = self.node_type.create(attrs, content, node.marks)
        if not self.node_type.valid_content(replacement.content):
            raise StepError(f"Content of {node.type.name!r} is not valid for {self.node_type.name!r}")
        return ReplaceStep(self.pos, self.pos + node.node_size, (replacement,)).apply(doc)

    def get_map(self) -> StepMap:
        return StepMap.empty()

    def invert(self, doc: Node) -> ReplaceStep:
        node = doc.node_at(self.pos)
        if node is None:
            raise StepError(f"No node at position {self.pos}")
        return ReplaceStep(self.pos, self.pos + node.node_size, (node,))


Step = Union[ReplaceStep, AddMarkStep, RemoveMarkStep, SetNodeMarkupStep]


# ---------------------------------------------------------------------------
# Transaction
# ---------------------------------------------------------------------------


class Transaction:
    """A batch of steps plus the selection and metadata that go with them.

    Create one with ``state.tr``; helper methods return ``self`` so calls
    can be chained.  Steps that cannot apply raise ``StepError`` and leave
    the transaction unchanged.
    """

    def __init__(self, state: "EditorState") -> None:
        self.before: Node = state.doc
        self.doc: Node = state.doc
        self.steps: list[Step] = []
        self.docs: list[Node] = []
        self.mapping = Mapping()
        self.selection_before: Selection = state.selection
        self.stored_marks: tuple[Mark, ...] | None = state.stored_marks
        self.meta: dict[str, Any] = {}
        self._selection: Selection = state.selection
        self._selection_for = 0
        self._selection_set = False
        self._stored_marks_set = False

    def __repr__(self) -> str:
        return f"Transaction(steps={len(self.steps)}, selection_set={self._selection_set}, meta={self.meta!r})"

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def step(self, step: Step) -> "Transaction":
        """Apply ``step`` to the current document and record it."""
        doc = step.apply(self.doc)
        self.docs.append(self.doc)
        self.steps.append(step)
        self.mapping.append(step.get_map())
        self.doc = doc
        if not self._stored_marks_set:
            self.stored_marks = None
        return self

    def replace(self, from_: int, to: int, content: Sequence[Node] = ()) -> "Transaction":
        return self.step(ReplaceStep(from_, to, tuple(content)))

    def insert(self, pos: int, *nodes: Node) -> "Transaction":
        return self.step(InsertStep(pos, nodes))

    def delete(self, from_: int, to: int) -> "Transaction":
        if from_ == to:
            return self
        return self.step(DeleteStep(from_, to))

    def replace_with(self, from_: int, to: int, node: Node) -> "Transaction":
        return self.replace(from_, to, (node,))

    def add_mark(self, from_: int, to: int, mark: Mark) -> "Transaction":
        return self.step(AddMarkStep(from_, to, mark))

    def remove_mark(self, from_: int, to: int, mark: Union[Mark, "MarkType"]) -> "Transaction":
        return self.step(RemoveMarkStep(from_, to, mark))

    def insert_text(self, text: str, from_: int | None = None, to: int | None = None) -> "Transaction":
        """Insert ``text``, replacing ``from_..to`` or the selection.

        The text takes the stored marks, or else the marks at the
        insertion point.  When the selection was used, the caret ends up
        after the inserted text.
        """
        use_selection = from_ is None
        if from_ is None:
            from_, to = self.selection.from_, self.selection.to
        to = from_ if to is None else to
        if not text:
            return self.delete(from_, to)
        rpos = self.doc.resolve(from_)
        marks = self.stored_marks
        if marks is None:
            if from_ == to:
                marks = rpos.marks()
            else:
                after = rpos.node_after
                marks = after.marks if after is not None and after.is_inline else ()
        schema = self.doc.type.schema
        marks = rpos.parent.type.allowed_marks(marks)
        self.replace(from_, to, (schema.text(text, marks),))
        if use_selection:
            self.set_selection(TextSelection.near(self.doc, from_ + len(text), -1))
        return self

    def set_node_markup(
        self,
        pos: int,
        node_type: "NodeType | None" = None,
        attrs: dict[str, Any] | None = None,
    ) -> "Transaction":
        """Change the type or attributes of the node starting at ``pos``."""
        node = self.doc.node_at(pos)
        if node is None or node.is_text:
            raise StepError(f"No node at position {pos}")
        return self.step(SetNodeMarkupStep(pos, node_type or node.type, attrs))

    def split(self, pos: int, type_after: "NodeType | None" = None) -> "Transaction":
        """Split the textblock around ``pos`` into two blocks."""
        rpos = self.doc.resolve(pos)
        parent = rpos.parent
        if not parent.is_textblock or rpos.depth < 1:
            raise StepError(f"Position {pos} is not inside a textblock")
        offset = rpos.parent_offset
        first = parent.copy(cut_fragment(parent.content, 0, offset))
        after_type = type_after or parent.type
        second_attrs = parent.attrs if after_type == parent.type else None
        second = after_type.create(second_attrs, cut_fragment(parent.content, offset))
        return self.replace(rpos.before(), rpos.after(), (first, second))

    def join(self, pos: int) -> "Transaction":
        """Merge the two sibling blocks that meet at ``pos``."""
        rpos = self.doc.resolve(pos)
        before, after = rpos.node_before, rpos.node_after
        if before is None or after is None or before.is_inline or after.is_inline:
            raise StepError(f"Nothing to join at position {pos}")
        content = before.content + after.content
        if before.type.inline_content:
            content = normalize_inline(content)
        if not before.type.valid_content(content):
            raise StepError(f"Cannot join {before.type.name!r} with {after.type.name!r}")
        merged = before.copy(content)
        return self.replace(pos - before.node_size, pos + after.node_size, (merged,))

    # ------------------------------------------------------------------
    # Selection, stored marks, metadata
    # ------------------------------------------------------------------

    @property
    def selection(self) -> Selection:
        """The selection after all steps so far, mapped lazily."""
        if self._selection_for < len(self.steps):
            self._selection = self._selection.map(self.doc, self.mapping.slice(self._selection_for))
            self._selection_for = len(self.steps)
        return self._selection

    def set_selection(self, selection: Selection) -> "Transaction":
        if selection.to > self.doc.content_size:
            raise StepError(f"Selection {selection!r} points outside the document")
        self._selection = selection
        self._selection_for = len(self.steps)
        self._selection_set = True
        if not self._stored_marks_set:
            self.stored_marks = None
        return self

    @property
    def selection_set(self) -> bool:
        return self._selection_set

    def set_stored_marks(self, marks: Sequence[Mark] | None) -> "Transaction":
        self.stored_marks = tuple(marks) if marks is not None else None
        self._stored_marks_set = True
        return self

    @property
    def stored_marks_set(self) -> bool:
        return self._stored_marks_set

    def set_meta(self, key: str, value: Any) -> "Transaction":
        self.meta[key] = value
        return self

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self.meta.get(key, default)

    @property
    def doc_changed(self) -> bool:
        return bool(self.steps)

    @property
    def is_empty(self) -> bool:
        """True when committing this transaction would change nothing."""
        return not (self.steps or self._selection_set or self._stored_marks_set or self.meta)

    def absorb(self, other: "Transaction") -> "Transaction":
        """Append ``other``, which must have been built on the state this transaction produces.

        The result is what committing this transaction and then ``other``
        would give: ``other`` started from this transaction's stored
        marks, so its own stored marks are the final ones.
        """
        if other.before is not self.doc:
            raise StaleTransactionError("Cannot absorb a transaction built on a different document")
        for step, doc in zip(other.steps, other.docs):
            self.docs.append(doc)
            self.steps.append(step)
            self.mapping.append(step.get_map())
        self.doc = other.doc
        if other.selection_set:
            self.set_selection(other.selection)
        self.stored_marks = other.stored_marks
        if other.stored_marks_set:
            self._stored_marks_set = True
        elif other.steps or other.selection_set:
            self._stored_marks_set = False
        self.meta.update(other.meta)
        return self
