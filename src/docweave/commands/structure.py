"""Block structure commands.

Joining a block with its sibling, wrapping blocks in a node such as a
blockquote or lifting them out again, and the small helpers the Enter
key tries before splitting a block.
"""
from __future__ import annotations

from typing import Any, Mapping

from docweave.commands.helpers import attempt, caret, node_type_for
from docweave.core.errors import StepError
from docweave.core.selection import NodeSelection, Selection, TextSelection
from docweave.core.state import Command, Dispatch, EditorState
from docweave.core.transform import Transaction
from docweave.model.nodes import Node, ResolvedPos, fragment_size, normalize_inline
from docweave.model.schema import NodeType


def _joinable(before: Node | None, after: Node | None) -> bool:
    if before is None or after is None or before.is_inline or after.is_inline or before.is_leaf:
        return False
    content = before.content + after.content
    if before.type.inline_content:
        content = normalize_inline(content)
    return before.type.valid_content(content)


def _join_point(rpos: ResolvedPos, forward: bool) -> int | None:
    """The closest boundary above ``rpos`` where two sibling blocks can be joined."""
    for depth in range(rpos.depth, 0, -1):
        parent = rpos.node(depth - 1)
        index = rpos.index(depth - 1)
        node = rpos.node(depth)
        if forward:
            if index + 1 < parent.child_count and _joinable(node, parent.child(index + 1)):
                return rpos.after(depth)
        elif index > 0 and _joinable(parent.child(index - 1), node):
            return rpos.before(depth)
    return None


def _join(state: EditorState, dispatch: Dispatch | None, forward: bool) -> bool:
    selection = state.selection
    doc = state.doc
    if isinstance(selection, NodeSelection):
        if selection.node.is_inline:
            return False
        point = selection.to if forward else selection.from_
        rpoint = doc.resolve(point)
        if not _joinable(rpoint.node_before, rpoint.node_after):
            return False
    elif isinstance(selection, TextSelection):
        found = _join_point(doc.resolve(selection.to if forward else selection.from_), forward)
        if found is None:
            return False
        point = found
    else:
        return False

    def moved(pos: int) -> int:
        # the closing and opening tokens at the join point disappear
        return pos - 2 if pos >= point else pos

    def build(tr: Transaction) -> bool:
        before = doc.resolve(point).node_before
        tr.join(point)
        if isinstance(selection, NodeSelection):
            tr.set_selection(NodeSelection.create(tr.doc, point - before.node_size))
        else:
            tr.set_selection(TextSelection(moved(selection.anchor), moved(selection.head)))
        return True

    return attempt(state, dispatch, build)


def join_up() -> Command:
    """Join the block at the selection with the sibling before it.

    With a caret, the innermost block that has a joinable previous
    sibling is used, so a paragraph inside a blockquote joins its
    neighbour paragraph before the blockquote would join anything.
    """

    def join_up_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        return _join(state, dispatch, forward=False)

    return join_up_command


def join_down() -> Command:
    """Join the block at the selection with the sibling after it."""

    def join_down_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        return _join(state, dispatch, forward=True)

    return join_down_command


# ---------------------------------------------------------------------------
# Wrapping and lifting
# ---------------------------------------------------------------------------


def _block_range(doc: Node, selection: Selection) -> tuple[ResolvedPos, int, int, int] | None:
    """The node around the selected blocks: ``(rpos, depth, first, last)``.

    ``first`` and ``last`` are the indices of the covered children of the
    node at ``depth``.  None when the selection covers no whole block.
    """
    rfrom = doc.resolve(selection.from_)
    if isinstance(selection, NodeSelection):
        if selection.node.is_inline:
            return None
        depth = rfrom.depth
        first = last = rfrom.index(depth)
    elif isinstance(selection, TextSelection):
        rto = doc.resolve(selection.to)
        if not rfrom.parent.is_textblock or not rto.parent.is_textblock:
            return None
        depth = rfrom.shared_depth(selection.to)
        if depth == rfrom.depth:
            depth -= 1
        first, last = rfrom.index(depth), rto.index(depth)
    else:
        return None
    return rfrom, depth, first, last


def wrap_in(node_type: NodeType | str, attrs: Mapping[str, Any] | None = None) -> Command:
    """Wrap the blocks touched by the selection in a new ``node_type`` node."""

    def wrap_in_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = state.selection
        found = _block_range(state.doc, selection)
        if found is None:
            return False
        rpos, depth, first, last = found
        parent = rpos.node(depth)
        start = rpos.start(depth) + fragment_size(parent.content[:first])
        body = parent.content[first:last + 1]

        def build(tr: Transaction) -> bool:
            wrapper = node_type_for(state.schema, node_type).create_checked(attrs, body)
            tr.replace(start, start + fragment_size(body), (wrapper,))
            if isinstance(selection, NodeSelection):
                tr.set_selection(NodeSelection.create(tr.doc, selection.pos + 1))
            else:
                tr.set_selection(TextSelection(selection.anchor + 1, selection.head + 1))
            return True

        return attempt(state, dispatch, build)

    return wrap_in_command


def _lift(tr: Transaction, rpos: ResolvedPos, depth: int, first: int, last: int) -> int:
    """Move children ``first..last`` of the wrapper at ``depth`` out of it.

    The wrapper is split around the lifted children.  Returns how far
    positions inside the lifted children moved.
    """
    wrapper = rpos.node(depth)
    head = wrapper.content[:first]
    body = wrapper.content[first:last + 1]
    tail = wrapper.content[last + 1:]
    for part in (head, tail):
        if part and not wrapper.type.valid_content(part):
            raise StepError(f"Cannot split {wrapper.type.name!r} around the lifted blocks")
    pieces = ([wrapper.copy(head)] if head else []) + list(body) + ([wrapper.copy(tail)] if tail else [])
    tr.replace(rpos.before(depth), rpos.after(depth), pieces)
    return 1 if head else -1


def _lift_selection(state: EditorState, dispatch: Dispatch | None) -> bool:
    selection = state.selection
    found = _block_range(state.doc, selection)
    if found is None or found[1] < 1:
        return False
    rpos, depth, first, last = found

    def build(tr: Transaction) -> bool:
        delta = _lift(tr, rpos, depth, first, last)
        if isinstance(selection, NodeSelection):
            tr.set_selection(NodeSelection.create(tr.doc, selection.pos + delta))
        else:
            tr.set_selection(TextSelection(selection.anchor + delta, selection.head + delta))
        return True

    return attempt(state, dispatch, build)


def lift() -> Command:
    """Move the selected blocks out of their wrapping node.

    Fails at the top level of the document, and when the blocks are not
    allowed where the wrapper sits.
    """

    def lift_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        return _lift_selection(state, dispatch)

    return lift_command


def lift_empty_block() -> Command:
    """Lift an empty textblock with the caret out of its wrapper.

    This is what makes Enter on an empty line leave a blockquote.
    """

    def lift_empty_block_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        rpos = caret(state)
        if rpos is None or rpos.parent.content_size or rpos.depth < 2:
            return False
        depth = rpos.depth - 1
        index = rpos.index(depth)

        def build(tr: Transaction) -> bool:
            delta = _lift(tr, rpos, depth, index, index)
            tr.set_selection(TextSelection(rpos.pos + delta, rpos.pos + delta))
            return True

        return attempt(state, dispatch, build)

    return lift_empty_block_command


# ---------------------------------------------------------------------------
# Enter helpers
# ---------------------------------------------------------------------------


def newline_in_code() -> Command:
    """Insert a newline character when the selection is inside a code block."""

    def newline_in_code_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = state.selection
        if not isinstance(selection, TextSelection):
            return False
        rfrom = state.doc.resolve(selection.from_)
        if not rfrom.parent.type.spec.code or not rfrom.same_parent(state.doc.resolve(selection.to)):
            return False
        return attempt(state, dispatch, lambda tr: bool(tr.insert_text("\n")))

    return newline_in_code_command


def create_paragraph_near() -> Command:
    """With a block node selected, open an empty textblock next to it.

    The new block goes before the selected node when that node is the
    first child of its parent, and after it otherwise.
    """

    def create_paragraph_near_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = state.selection
        if not isinstance(selection, NodeSelection) or selection.node.is_inline:
            return False
        rfrom = state.doc.resolve(selection.from_)
        node_type = rfrom.parent.type.content_match.default_type()
        if node_type is None or not node_type.is_textblock:
            return False
        side = selection.from_ if rfrom.parent_offset == 0 else selection.to

        def build(tr: Transaction) -> bool:
            tr.insert(side, node_type.create_and_fill())
            tr.set_selection(TextSelection(side + 1, side + 1))
            return True

        return attempt(state, dispatch, build)

    return create_paragraph_near_command
