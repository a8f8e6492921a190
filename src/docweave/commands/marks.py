"""Mark commands."""
from __future__ import annotations

from typing import Any, Mapping

from docweave.commands.helpers import attempt, mark_type_for
from docweave.core.selection import TextSelection
from docweave.core.state import Command, Dispatch, EditorState
from docweave.core.transform import Transaction
from docweave.model.schema import MarkType


def toggle_mark(mark: MarkType | str, attrs: Mapping[str, Any] | None = None) -> Command:
    """Add ``mark`` to the selection, or remove it if any selected text has it.

    With an empty selection the mark is toggled in the stored marks, so
    it applies to the next typed text.  Fails where no selected content
    allows the mark.
    """

    def toggle_mark_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        mark_type = mark_type_for(state.schema, mark)
        selection = state.selection
        doc = state.doc

        if selection.empty and isinstance(selection, TextSelection):
            rpos = doc.resolve(selection.head)
            if not rpos.parent.is_textblock or not rpos.parent.type.allows_mark_type(mark_type):
                return False

            def build_stored(tr: Transaction) -> bool:
                marks = state.stored_marks if state.stored_marks is not None else rpos.marks()
                if mark_type.is_in_set(marks):
                    tr.set_stored_marks(mark_type.remove_from_set(marks))
                else:
                    tr.set_stored_marks(mark_type.create(attrs).add_to_set(marks))
                return True

            return attempt(state, dispatch, build_stored)

        from_, to = selection.from_, selection.to
        applicable = any(
            node.is_inline and parent.type.allows_mark_type(mark_type)
            for node, _pos, parent in doc.nodes_between(from_, to)
        )
        if not applicable:
            return False

        def build(tr: Transaction) -> bool:
            if doc.range_has_mark(from_, to, mark_type):
                tr.remove_mark(from_, to, mark_type)
            else:
                tr.add_mark(from_, to, mark_type.create(attrs))
            return True

        return attempt(state, dispatch, build)

    return toggle_mark_command
