"""Built-in command factories.

Each factory returns a command ``(state, dispatch=None) -> bool``.  The
editor registers ``base_command_factories()`` before any extension, so
extensions may override them by name.
"""
from __future__ import annotations

from docweave.commands.blocks import set_block_type
from docweave.commands.marks import toggle_mark
from docweave.commands.selection import (
    select_all,
    select_node_backward,
    select_node_forward,
    select_parent_node,
    select_text,
    set_selection,
)
from docweave.commands.structure import (
    create_paragraph_near,
    join_down,
    join_up,
    lift,
    lift_empty_block,
    newline_in_code,
    wrap_in,
)
from docweave.commands.text import (
    delete_backward,
    delete_forward,
    delete_selection,
    insert_node,
    insert_text,
    join_backward,
    join_forward,
    split_block,
)
from docweave.core.chain import first_command
from docweave.extensions.base import CommandFactory


def base_command_factories() -> dict[str, CommandFactory]:
    """The commands every editor has, keyed by registry name."""
    return {
        "first_command": first_command,
        "insert_text": insert_text,
        "insert_node": insert_node,
        "delete_selection": delete_selection,
        "delete_backward": delete_backward,
        "delete_forward": delete_forward,
        "join_backward": join_backward,
        "join_forward": join_forward,
        "select_node_backward": select_node_backward,
        "select_node_forward": select_node_forward,
        "split_block": split_block,
        "join_up": join_up,
        "join_down": join_down,
        "lift": lift,
        "lift_empty_block": lift_empty_block,
        "create_paragraph_near": create_paragraph_near,
        "newline_in_code": newline_in_code,
        "wrap_in": wrap_in,
        "toggle_mark": toggle_mark,
        "set_block_type": set_block_type,
        "set_selection": set_selection,
        "select_parent_node": select_parent_node,
    }


__all__ = [
    "base_command_factories",
    "create_paragraph_near",
    "delete_backward",
    "delete_forward",
    "delete_selection",
    "first_command",
    "insert_node",
    "insert_text",
    "join_backward",
    "join_down",
    "join_forward",
    "join_up",
    "lift",
    "lift_empty_block",
    "newline_in_code",
    "select_all",
    "select_node_backward",
    "select_node_forward",
    "select_parent_node",
    "select_text",
    "set_block_type",
    "set_selection",
    "split_block",
    "toggle_mark",
    "wrap_in",
]
