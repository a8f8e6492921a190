"""Editor state, behaviors and the state store.

``EditorState`` is an immutable snapshot: document, selection, stored
marks and the local state of every behavior.  ``state.apply(tr)``
returns the next snapshot; nothing is ever changed in place.

``StateStore`` holds the current snapshot.  All mutation goes through
``StateStore.apply``, which swaps the reference and then notifies
observers synchronously, in subscription order.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Sequence

from docweave.core.errors import StaleTransactionError
from docweave.core.selection import Selection, TextSelection
from docweave.core.transform import Transaction
from docweave.model.nodes import Mark, Node
from docweave.model.schema import Schema

logger = logging.getLogger(__name__)

Dispatch = Callable[[Transaction], None]
Command = Callable[["EditorState", Optional[Dispatch]], bool]
Observer = Callable[[Transaction, "EditorState"], None]


@dataclass(frozen=True)
class Behavior:
    """An editor-level plugin with optional local state.

    Parameters
    ----------
    key:
        Unique key; the behavior's local state is stored under it.
    init:
        ``init(config, state) -> value`` computes the initial local state.
        ``state`` is the new editor state with every document field set.
    apply:
        ``apply(tr, value, old_state, new_state) -> value`` computes the
        local state after a transaction.  ``new_state`` carries the new
        document and selection but not yet the new behavior states.
    props:
        Opaque values handed to rendering collaborators untouched.
    config:
        Passed to ``init``.
    """

    key: str
    init: Callable[[Mapping[str, Any], "EditorState"], Any] | None = None
    apply: Callable[[Transaction, Any, "EditorState", "EditorState"], Any] | None = None
    props: Mapping[str, Any] = field(default_factory=dict, compare=False)
    config: Mapping[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class EditorState:
    """Immutable snapshot of the editor."""

    doc: Node
    selection: Selection
    schema: Schema
    behaviors: tuple[Behavior, ...] = ()
    behavior_states: Mapping[str, Any] = field(default_factory=dict)
    stored_marks: tuple[Mark, ...] | None = None

    @classmethod
    def create(
        cls,
        schema: Schema,
        doc: Node | None = None,
        selection: Selection | None = None,
        behaviors: Sequence[Behavior] = (),
    ) -> "EditorState":
        """Build the first state for ``schema``.

        ``doc`` defaults to the schema's empty document and ``selection``
        to a caret at the first text position.
        """
        if doc is None:
            doc = schema.empty_document()
        else:
            schema.check(doc)
        state = cls(
            doc=doc,
            selection=selection or TextSelection.at_start(doc),
            schema=schema,
            behaviors=tuple(behaviors),
        )
        states = {
            b.key: b.init(b.config, state) if b.init is not None else None
            for b in state.behaviors
        }
        return dataclasses.replace(state, behavior_states=MappingProxyType(states))

    @property
    def tr(self) -> Transaction:
        """Start a new transaction on this state."""
        return Transaction(self)

    def apply(self, tr: Transaction) -> "EditorState":
        """Return the state that results from ``tr``.

        Raises
        ------
        StaleTransactionError
            If ``tr`` was not built from this state's document.
        """
        if tr.before is not self.doc:
            raise StaleTransactionError("Transaction was built from a different document")
        new = dataclasses.replace(
            self,
            doc=tr.doc,
            selection=tr.selection,
            stored_marks=tr.stored_marks,
        )
        states: dict[str, Any] = {}
        for behavior in self.behaviors:
            value = self.behavior_states.get(behavior.key)
            if behavior.apply is not None:
                value = behavior.apply(tr, value, self, new)
            states[behavior.key] = value
        return dataclasses.replace(new, behavior_states=MappingProxyType(states))

    def behavior_state(self, key: str) -> Any:
        """Return the local state of the behavior registered under ``key``."""
        if key not in self.behavior_states:
            raise KeyError(f"No behavior with key {key!r}")
        return self.behavior_states[key]


class StateStore:
    """Holds the current ``EditorState`` and notifies observers of changes.

    Parameters
    ----------
    state:
        The initial state.
    """

    def __init__(self, state: EditorState) -> None:
        self._state = state
        self._observers: list[Observer] = []

    @property
    def state(self) -> EditorState:
        return self._state

    def apply(self, tr: Transaction) -> EditorState:
        """Commit ``tr``: swap in the new state, then notify observers.

        Observers run after the swap, so ``store.state`` is already the
        new state when they are called.  An observer may apply further
        transactions.
        """
        new_state = self._state.apply(tr)
        self._state = new_state
        logger.debug("Committed %r", tr)
        for observer in list(self._observers):
            observer(tr, new_state)
        return new_state

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer``; return a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe
