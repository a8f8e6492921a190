"""Text editing commands: typing, deleting, joining and splitting blocks."""
from __future__ import annotations

from docweave.commands.helpers import attempt, caret, delete_range
from docweave.core.selection import NodeSelection, TextSelection
from docweave.core.state import Command, Dispatch, EditorState
from docweave.core.transform import Transaction
from docweave.model.nodes import Node


def insert_text(text: str) -> Command:
    """Replace the selection with ``text``; the caret ends up after it."""

    def insert_text_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = state.selection
        rfrom = state.doc.resolve(selection.from_)
        if not rfrom.same_parent(state.doc.resolve(selection.to)) or not rfrom.parent.is_textblock:
            return False
        return attempt(state, dispatch, lambda tr: bool(tr.insert_text(text)))

    return insert_text_command


def insert_node(node: Node) -> Command:
    """Replace the selection with the inline ``node`` (e.g. a hard break)."""

    def insert_node_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = state.selection
        rfrom = state.doc.resolve(selection.from_)
        if not rfrom.same_parent(state.doc.resolve(selection.to)) or not rfrom.parent.is_textblock:
            return False

        def build(tr: Transaction) -> bool:
            tr.replace_with(selection.from_, selection.to, node)
            tr.set_selection(TextSelection.near(tr.doc, selection.from_ + node.node_size))
            return True

        return attempt(state, dispatch, build)

    return insert_node_command


def delete_selection() -> Command:
    """Delete the selected content.  Fails on an empty selection."""

    def delete_selection_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = state.selection
        if selection.empty:
            return False
        return attempt(state, dispatch, lambda tr: delete_range(tr, selection.from_, selection.to))

    return delete_selection_command


def delete_backward() -> Command:
    """Delete the character or inline node before the caret."""

    def delete_backward_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        rpos = caret(state)
        if rpos is None or rpos.parent_offset == 0:
            return False
        return attempt(state, dispatch, lambda tr: delete_range(tr, rpos.pos - 1, rpos.pos))

    return delete_backward_command


def delete_forward() -> Command:
    """Delete the character or inline node after the caret."""

    def delete_forward_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        rpos = caret(state)
        if rpos is None or rpos.parent_offset == rpos.parent.content_size:
            return False
        return attempt(state, dispatch, lambda tr: delete_range(tr, rpos.pos, rpos.pos + 1))

    return delete_forward_command


def join_backward() -> Command:
    """At the start of a textblock, merge it into the block before it.

    A leaf block before the caret (one that holds no content) is deleted
    instead.
    """

    def join_backward_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        rpos = caret(state)
        if rpos is None or rpos.parent_offset > 0 or rpos.depth < 1:
            return False
        before = rpos.before()
        previous = state.doc.resolve(before).node_before
        if previous is None:
            return False

        def build(tr: Transaction) -> bool:
            if previous.is_textblock:
                tr.join(before)
                tr.set_selection(TextSelection(before - 1, before - 1))
            elif previous.is_leaf:
                tr.delete(before - previous.node_size, before)
                tr.set_selection(TextSelection.near(tr.doc, before - previous.node_size))
            else:
                return False
            return True

        return attempt(state, dispatch, build)

    return join_backward_command


def join_forward() -> Command:
    """At the end of a textblock, merge the following block into it."""

    def join_forward_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        rpos = caret(state)
        if rpos is None or rpos.parent_offset < rpos.parent.content_size or rpos.depth < 1:
            return False
        after = rpos.after()
        following = state.doc.resolve(after).node_after
        if following is None:
            return False

        def build(tr: Transaction) -> bool:
            if following.is_textblock:
                tr.join(after)
            elif following.is_leaf:
                tr.delete(after, after + following.node_size)
            else:
                return False
            tr.set_selection(TextSelection(rpos.pos, rpos.pos))
            return True

        return attempt(state, dispatch, build)

    return join_forward_command


def split_block() -> Command:
    """Split the textblock at the selection, deleting selected content first.

    Splitting at the end of a block starts the default block type of the
    parent (a paragraph after a heading).
    """

    def split_block_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = state.selection
        if isinstance(selection, NodeSelection):
            return False
        if not state.doc.resolve(selection.from_).parent.is_textblock:
            return False

        def build(tr: Transaction) -> bool:
            if not selection.empty and not delete_range(tr, selection.from_, selection.to):
                return False
            pos = tr.selection.from_
            rpos = tr.doc.resolve(pos)
            if not rpos.parent.is_textblock or rpos.depth < 1:
                return False
            type_after = None
            if rpos.parent_offset == rpos.parent.content_size:
                type_after = rpos.node(rpos.depth - 1).type.content_match.default_type()
            tr.split(pos, type_after)
            tr.set_selection(TextSelection(pos + 2, pos + 2))
            return True

        return attempt(state, dispatch, build)

    return split_block_command
