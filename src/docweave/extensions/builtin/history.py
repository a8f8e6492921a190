"""Undo/redo history.

History is kept as behavior-local state: a stack of ``(doc, selection)``
snapshots taken before every recorded transaction.  Undo swaps the
current document for the latest snapshot in one whole-document
transaction tagged with a ``Restore`` record, so history changes travel
through the ordinary pipeline and reach observers like any other edit.

When a chain merges an undo with later edits, the restored document is
recorded as an ordinary snapshot and the redo stack is dropped, exactly
as if the commands had been committed one by one.

Transactions with the meta ``add_to_history=False`` are not recorded.
Snapshots cannot be mapped through an unrecorded document change, so
such a change starts the history afresh.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from docweave.core.selection import Selection
from docweave.core.state import Behavior, Command, Dispatch, EditorState
from docweave.core.transform import Transaction
from docweave.extensions.base import Category, CommandFactory, Extension
from docweave.extensions.registry import extension_registry
from docweave.model.nodes import Node
from docweave.model.schema import Schema

if TYPE_CHECKING:
    from docweave.core.editor import CoreEditor

HISTORY_KEY = "history"
DEFAULT_DEPTH = 100

Snapshot = tuple[Node, Selection]


@dataclass(frozen=True)
class HistoryState:
    done: tuple[Snapshot, ...] = ()
    undone: tuple[Snapshot, ...] = ()


@dataclass(frozen=True)
class Restore:
    """Meta attached by undo/redo: the history to install and the document it belongs to."""

    history: HistoryState
    doc: Node
    selection: Selection


def _init(config: Mapping[str, Any], state: EditorState) -> HistoryState:
    return HistoryState()


def _push(done: tuple[Snapshot, ...], snapshot: Snapshot, depth: int) -> tuple[Snapshot, ...]:
    if depth <= 0:
        return ()
    return (*done, snapshot)[-depth:]


def _make_apply(depth: int):
    def apply(tr: Transaction, value: HistoryState, old: EditorState, new: EditorState) -> HistoryState:
        if tr.doc_changed and tr.get_meta("add_to_history", True) is False:
            return HistoryState()
        restore: Restore | None = tr.get_meta(HISTORY_KEY)
        if restore is not None:
            if restore.doc is tr.doc:
                return restore.history
            # edits followed the undo/redo in the same transaction
            return HistoryState(_push(restore.history.done, (restore.doc, restore.selection), depth), ())
        if not tr.doc_changed:
            return value
        return HistoryState(_push(value.done, (old.doc, old.selection), depth), ())

    return apply


def _restore(state: EditorState, dispatch: Dispatch | None, undo: bool) -> bool:
    history: HistoryState | None = state.behavior_states.get(HISTORY_KEY)
    if history is None:
        return False
    source = history.done if undo else history.undone
    if not source:
        return False
    if dispatch is not None:
        doc, selection = source[-1]
        current = (state.doc, state.selection)
        if undo:
            updated = HistoryState(history.done[:-1], (*history.undone, current))
        else:
            updated = HistoryState((*history.done, current), history.undone[:-1])
        tr = state.tr.replace(0, state.doc.content_size, doc.content)
        tr.set_selection(selection)
        tr.set_meta(HISTORY_KEY, Restore(updated, tr.doc, tr.selection))
        dispatch(tr)
    return True


def undo() -> Command:
    def undo_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        return _restore(state, dispatch, undo=True)

    return undo_command


def redo() -> Command:
    def redo_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        return _restore(state, dispatch, undo=False)

    return redo_command


def undo_depth(state: EditorState) -> int:
    history: HistoryState | None = state.behavior_states.get(HISTORY_KEY)
    return len(history.done) if history else 0


def redo_depth(state: EditorState) -> int:
    history: HistoryState | None = state.behavior_states.get(HISTORY_KEY)
    return len(history.undone) if history else 0


@extension_registry.register()
class ExtensionHistory(Extension):
    """Undo/redo.  Config: ``depth`` (maximum undo steps, default 100; 0 records nothing)."""

    name = "history"
    category = Category.BEHAVIOR

    @property
    def depth(self) -> int:
        return int(self.config.get("depth", DEFAULT_DEPTH))

    def provide_behaviors(self, editor: "CoreEditor", schema: Schema) -> Sequence[Behavior]:
        return [Behavior(HISTORY_KEY, init=_init, apply=_make_apply(self.depth), config=self.config)]

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        return {"undo": undo, "redo": redo}

    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]:
        return {"Mod-z": "undo", "Shift-Mod-z": "redo", "Mod-y": "redo"}
