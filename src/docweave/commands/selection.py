"""Selection commands."""
from __future__ import annotations

from docweave.core.selection import AllSelection, NodeSelection, Selection, TextSelection
from docweave.core.state import Command, Dispatch, EditorState
from docweave.model.nodes import Node


def _dispatch_selection(state: EditorState, dispatch: Dispatch | None, selection: Selection) -> bool:
    if dispatch is not None:
        dispatch(state.tr.set_selection(selection))
    return True


def set_selection(anchor: int | Selection, head: int | None = None) -> Command:
    """Move the selection.  Integer positions build a ``TextSelection``."""

    def set_selection_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        if isinstance(anchor, int):
            size = state.doc.content_size
            end = anchor if head is None else head
            if not (0 <= anchor <= size and 0 <= end <= size):
                return False
            selection: Selection = TextSelection(anchor, end)
        else:
            selection = anchor
            if selection.to > state.doc.content_size:
                return False
        return _dispatch_selection(state, dispatch, selection)

    return set_selection_command


def select_all() -> Command:
    def select_all_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        return _dispatch_selection(state, dispatch, AllSelection.create(state.doc))

    return select_all_command


def textblocks(doc: Node) -> list[tuple[Node, int]]:
    """Every textblock with the position before it, in document order."""
    return [(node, pos) for node, pos, _parent in doc.descendants() if node.is_textblock]


def select_text(start: int, length: int = 0, block_index: int = 0) -> Command:
    """Select ``length`` characters from offset ``start`` of the ``block_index``-th textblock."""

    def select_text_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        blocks = textblocks(state.doc)
        if start < 0 or length < 0 or not 0 <= block_index < len(blocks):
            return False
        block, pos = blocks[block_index]
        if start + length > block.content_size:
            return False
        anchor = pos + 1 + start
        return _dispatch_selection(state, dispatch, TextSelection(anchor, anchor + length))

    return select_text_command


def select_parent_node() -> Command:
    """Select the innermost node that contains the whole selection."""

    def select_parent_node_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = state.selection
        rfrom = state.doc.resolve(selection.from_)
        depth = rfrom.shared_depth(selection.to)
        if depth == 0:
            return False
        return _dispatch_selection(state, dispatch, NodeSelection.create(state.doc, rfrom.before(depth)))

    return select_parent_node_command


def select_node_backward() -> Command:
    """At the start of a textblock, select the node before it."""

    def select_node_backward_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = state.selection
        if not isinstance(selection, TextSelection) or not selection.empty:
            return False
        rpos = state.doc.resolve(selection.head)
        if not rpos.parent.is_textblock or rpos.parent_offset > 0 or rpos.depth < 1:
            return False
        before = rpos.before()
        previous = state.doc.resolve(before).node_before
        if previous is None:
            return False
        return _dispatch_selection(state, dispatch, NodeSelection(before - previous.node_size, previous))

    return select_node_backward_command


def select_node_forward() -> Command:
    """At the end of a textblock, select the node after it."""

    def select_node_forward_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = state.selection
        if not isinstance(selection, TextSelection) or not selection.empty:
            return False
        rpos = state.doc.resolve(selection.head)
        if not rpos.parent.is_textblock or rpos.parent_offset < rpos.parent.content_size or rpos.depth < 1:
            return False
        after = rpos.after()
        following = state.doc.resolve(after).node_after
        if following is None:
            return False
        return _dispatch_selection(state, dispatch, NodeSelection(after, following))

    return select_node_forward_command
