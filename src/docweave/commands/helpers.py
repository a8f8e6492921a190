"""Shared helpers for the built-in commands."""
from __future__ import annotations

from typing import Callable

from docweave.core.errors import ContentError, StepError
from docweave.core.selection import TextSelection
from docweave.core.state import Dispatch, EditorState
from docweave.core.transform import Transaction
from docweave.model.nodes import ResolvedPos, cut_fragment, normalize_inline
from docweave.model.schema import MarkType, NodeType, Schema


def attempt(
    state: EditorState,
    dispatch: Dispatch | None,
    build: Callable[[Transaction], bool],
) -> bool:
    """Build a transaction with ``build`` and dispatch it if that worked.

    ``build`` returns False, or raises ``StepError`` / ``ContentError``,
    when the command does not apply; the command then returns False and
    nothing is dispatched.  The transaction is built in dry runs too, so
    a check never disagrees with the real run.
    """
    tr = state.tr
    try:
        if not build(tr):
            return False
    except (StepError, ContentError):
        return False
    if dispatch is not None:
        dispatch(tr)
    return True


def caret(state: EditorState) -> ResolvedPos | None:
    """Resolved caret position inside a textblock, or None."""
    selection = state.selection
    if not isinstance(selection, TextSelection) or not selection.empty:
        return None
    rpos = state.doc.resolve(selection.head)
    return rpos if rpos.parent.is_textblock else None


def node_type_for(schema: Schema, type_or_name: NodeType | str) -> NodeType:
    if isinstance(type_or_name, str):
        return schema.node_type(type_or_name)
    return type_or_name


def mark_type_for(schema: Schema, type_or_name: MarkType | str) -> MarkType:
    if isinstance(type_or_name, str):
        return schema.mark_type(type_or_name)
    return type_or_name


def delete_range(tr: Transaction, from_: int, to: int) -> bool:
    """Delete ``from_..to``, joining the textblocks at both ends if they differ.

    Returns False when the range cannot be deleted with the supported
    shapes: a range inside one parent, or a range between two sibling
    textblocks.
    """
    if from_ == to:
        return False
    doc = tr.doc
    rfrom, rto = doc.resolve(from_), doc.resolve(to)
    if rfrom.same_parent(rto):
        parent = rfrom.parent
        if not parent.is_textblock and from_ == rfrom.start() and to == rfrom.end():
            tr.replace(from_, to, parent.type.content_match.fill())
        else:
            tr.delete(from_, to)
    elif (
        rfrom.parent.is_textblock
        and rto.parent.is_textblock
        and rfrom.depth == rto.depth
        and rfrom.shared_depth(to) == rfrom.depth - 1
    ):
        first, last = rfrom.parent, rto.parent
        content = cut_fragment(first.content, 0, rfrom.parent_offset) + cut_fragment(
            last.content, rto.parent_offset
        )
        merged = first.copy(normalize_inline(content))
        tr.replace(rfrom.before(), rto.after(), (merged,))
    else:
        return False
    tr.set_selection(TextSelection.near(tr.doc, from_))
    return True
