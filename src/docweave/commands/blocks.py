"""Block type commands."""
from __future__ import annotations

from typing import Any, Mapping

from docweave.commands.helpers import attempt, node_type_for
from docweave.core.errors import ContentError
from docweave.core.state import Command, Dispatch, EditorState
from docweave.core.transform import Transaction
from docweave.model.schema import NodeType


def set_block_type(node_type: NodeType | str, attrs: Mapping[str, Any] | None = None) -> Command:
    """Turn every textblock touched by the selection into ``node_type``.

    Fails when every touched block already has that type and those
    attributes, or when the type is not allowed where a block sits.
    """

    def set_block_type_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        target = node_type_for(state.schema, node_type)
        if not target.is_textblock:
            return False
        try:
            wanted = dict(target.compute_attrs(attrs))
        except ContentError:
            return False
        selection = state.selection
        positions = [
            pos
            for node, pos, _parent in state.doc.nodes_between(selection.from_, max(selection.to, selection.from_ + 1))
            if node.is_textblock and not (node.type == target and dict(node.attrs) == wanted)
        ]
        if not positions:
            return False

        def build(tr: Transaction) -> bool:
            for pos in positions:
                tr.set_node_markup(pos, target, wanted)
            return True

        return attempt(state, dispatch, build)

    return set_block_type_command
