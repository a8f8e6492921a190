"""Unit tests for docweave.core.state — EditorState, behaviors and StateStore."""
from __future__ import annotations

import dataclasses
from typing import Any

import pytest

from docweave.core.errors import ContentError, StaleTransactionError
from docweave.core.selection import TextSelection
from docweave.core.state import Behavior, EditorState, StateStore
from docweave.core.transform import Transaction
from docweave.model.schema import Schema


def _change_counter() -> Behavior:
    """Counts committed transactions that changed the document."""

    def init(config: Any, state: EditorState) -> int:
        return config.get("start", 0)

    def apply(tr: Transaction, value: int, old: EditorState, new: EditorState) -> int:
        return value + 1 if tr.doc_changed else value

    return Behavior("changes", init=init, apply=apply, config={"start": 10})


class TestEditorState:
    def test_create_defaults(self, schema: Schema) -> None:
        state = EditorState.create(schema)
        assert [n.type.name for n in state.doc.content] == ["paragraph"]
        assert state.selection == TextSelection(1, 1)
        assert state.stored_marks is None

    def test_create_checks_document(self, schema: Schema) -> None:
        with pytest.raises(ContentError):
            EditorState.create(schema, schema.node("doc"))

    def test_state_is_immutable(self, schema: Schema) -> None:
        state = EditorState.create(schema)
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.doc = state.doc  # type: ignore[misc]

    def test_apply_returns_new_state(self, schema: Schema) -> None:
        state = EditorState.create(schema)
        new = state.apply(state.tr.insert_text("Hi"))
        assert new.doc.text_content == "Hi"
        assert new.selection == TextSelection(3, 3)
        assert state.doc.text_content == ""

    def test_apply_rejects_stale_transaction(self, schema: Schema) -> None:
        state = EditorState.create(schema)
        tr = state.tr.insert_text("a")
        newer = state.apply(tr)
        with pytest.raises(StaleTransactionError):
            newer.apply(tr)

    def test_stored_marks_follow_transaction(self, schema: Schema) -> None:
        state = EditorState.create(schema)
        em = schema.mark("em")
        new = state.apply(state.tr.set_stored_marks([em]))
        assert new.stored_marks == (em,)
        assert new.apply(new.tr.insert_text("x")).doc.content[0].content[0].marks == (em,)


class TestBehaviors:
    def test_init_receives_config(self, schema: Schema) -> None:
        state = EditorState.create(schema, behaviors=[_change_counter()])
        assert state.behavior_state("changes") == 10

    def test_apply_updates_local_state(self, schema: Schema) -> None:
        state = EditorState.create(schema, behaviors=[_change_counter()])
        state = state.apply(state.tr.insert_text("a"))
        state = state.apply(state.tr.set_meta("noop", True))
        assert state.behavior_state("changes") == 11

    def test_behavior_without_hooks_keeps_none(self, schema: Schema) -> None:
        state = EditorState.create(schema, behaviors=[Behavior("plain", props={"x": 1})])
        assert state.behavior_state("plain") is None
        assert state.behaviors[0].props == {"x": 1}

    def test_unknown_behavior_key(self, schema: Schema) -> None:
        with pytest.raises(KeyError):
            EditorState.create(schema).behavior_state("history")


class TestStateStore:
    def test_apply_swaps_then_notifies(self, schema: Schema) -> None:
        store = StateStore(EditorState.create(schema))
        seen: list[str] = []

        def observer(tr: Transaction, state: EditorState) -> None:
            assert store.state is state
            seen.append(state.doc.text_content)

        store.subscribe(observer)
        store.apply(store.state.tr.insert_text("Hi"))
        assert seen == ["Hi"]

    def test_observers_run_in_subscription_order(self, schema: Schema) -> None:
        store = StateStore(EditorState.create(schema))
        calls: list[int] = []
        store.subscribe(lambda tr, state: calls.append(1))
        store.subscribe(lambda tr, state: calls.append(2))
        store.apply(store.state.tr.insert_text("x"))
        assert calls == [1, 2]

    def test_unsubscribe(self, schema: Schema) -> None:
        store = StateStore(EditorState.create(schema))
        calls: list[Transaction] = []
        unsubscribe = store.subscribe(lambda tr, state: calls.append(tr))
        unsubscribe()
        unsubscribe()
        store.apply(store.state.tr.insert_text("x"))
        assert calls == []

    def test_observer_may_apply_follow_up(self, schema: Schema) -> None:
        store = StateStore(EditorState.create(schema))

        def observer(tr: Transaction, state: EditorState) -> None:
            if tr.get_meta("follow_up") is None:
                store.apply(state.tr.insert_text("!").set_meta("follow_up", True))

        store.subscribe(observer)
        store.apply(store.state.tr.insert_text("Hi"))
        assert store.state.doc.text_content == "Hi!"
