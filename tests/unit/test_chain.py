"""Unit tests for docweave.core.chain — command execution and pipelines."""
from __future__ import annotations

from typing import Any

import pytest

from docweave.core.chain import TransactionPipeline, execute, first_command
from docweave.core.editor import CoreEditor
from docweave.core.errors import CommandContractError, UnknownCommandError
from docweave.core.state import Command, Dispatch, EditorState, StateStore
from docweave.core.transform import Transaction

# ---------------------------------------------------------------------------
# Test commands
# ---------------------------------------------------------------------------


def append(text: str) -> Command:
    """Insert ``text`` at the end of the first paragraph."""

    def command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        if dispatch is not None:
            end = state.doc.content[0].node_size - 1
            dispatch(state.tr.insert_text(text, end))
        return True

    return command


def never(state: EditorState, dispatch: Dispatch | None = None) -> bool:
    return False


def noop(state: EditorState, dispatch: Dispatch | None = None) -> bool:
    return True


def twice(state: EditorState, dispatch: Dispatch | None = None) -> bool:
    if dispatch is not None:
        dispatch(state.tr.insert_text("a", 1))
        dispatch(state.tr.insert_text("b", 1))
    return True


def dispatch_then_fail(state: EditorState, dispatch: Dispatch | None = None) -> bool:
    if dispatch is not None:
        dispatch(state.tr.insert_text("a", 1))
    return False


class Recorder:
    """A command that records how it was called."""

    def __init__(self, applies: bool) -> None:
        self.applies = applies
        self.checks = 0
        self.runs = 0

    def __call__(self, state: EditorState, dispatch: Dispatch | None = None) -> bool:
        if dispatch is None:
            self.checks += 1
            return self.applies
        self.runs += 1
        if self.applies:
            dispatch(state.tr.set_meta("ran", True))
        return self.applies


@pytest.fixture()
def store(hello_editor: CoreEditor) -> StateStore:
    return StateStore(hello_editor.state)


@pytest.fixture()
def commits(store: StateStore) -> list[Transaction]:
    seen: list[Transaction] = []
    store.subscribe(lambda tr, state: seen.append(tr))
    return seen


# ---------------------------------------------------------------------------
# execute
# ---------------------------------------------------------------------------


class TestExecute:
    def test_captures_transaction(self, store: StateStore) -> None:
        ok, tr = execute(append("!"), store.state)
        assert ok and tr is not None
        assert tr.doc.text_content == "Hello world!"

    def test_success_without_dispatch(self, store: StateStore) -> None:
        assert execute(noop, store.state) == (True, None)

    def test_failure(self, store: StateStore) -> None:
        assert execute(never, store.state) == (False, None)

    def test_double_dispatch_is_a_contract_error(self, store: StateStore) -> None:
        with pytest.raises(CommandContractError, match="more than once"):
            execute(twice, store.state)

    def test_dispatch_then_false_is_a_contract_error(self, store: StateStore) -> None:
        with pytest.raises(CommandContractError, match="returned False"):
            execute(dispatch_then_fail, store.state)


# ---------------------------------------------------------------------------
# TransactionPipeline
# ---------------------------------------------------------------------------


class TestTransactionPipeline:
    def test_commands_see_previous_results(self, store: StateStore, commits: list[Transaction]) -> None:
        assert TransactionPipeline(store).run(append(","), append(" again"))
        assert store.state.doc.text_content == "Hello world, again"
        assert len(commits) == 1
        assert len(commits[0].steps) == 2

    def test_failure_aborts_everything(self, store: StateStore, commits: list[Transaction]) -> None:
        before = store.state
        assert not TransactionPipeline(store).run(append("!"), never)
        assert store.state is before
        assert commits == []

    def test_no_change_commits_nothing(self, store: StateStore, commits: list[Transaction]) -> None:
        assert TransactionPipeline(store).run(noop)
        assert commits == []

    def test_empty_chain_succeeds(self, store: StateStore) -> None:
        assert TransactionPipeline(store).run()

    def test_can_never_mutates(self, store: StateStore, commits: list[Transaction]) -> None:
        before = store.state
        assert TransactionPipeline(store).can(append("!"), noop)
        assert not TransactionPipeline(store).can(append("!"), never)
        assert store.state is before
        assert commits == []

    def test_contract_errors_propagate(self, store: StateStore) -> None:
        before = store.state
        with pytest.raises(CommandContractError):
            TransactionPipeline(store).run(append("!"), twice)
        assert store.state is before


# ---------------------------------------------------------------------------
# first_command
# ---------------------------------------------------------------------------


class TestFirstCommand:
    def test_runs_first_applicable(self, store: StateStore) -> None:
        skipped, chosen, later = Recorder(False), Recorder(True), Recorder(True)
        assert TransactionPipeline(store).run(first_command(skipped, chosen, later))
        assert (skipped.checks, skipped.runs) == (1, 0)
        assert (chosen.checks, chosen.runs) == (1, 1)
        assert (later.checks, later.runs) == (0, 0)

    def test_fails_when_none_apply(self, store: StateStore) -> None:
        assert not TransactionPipeline(store).run(first_command(never, Recorder(False)))

    def test_dry_run(self, store: StateStore) -> None:
        chosen = Recorder(True)
        assert first_command(never, chosen)(store.state)
        assert chosen.runs == 0

    def test_name_lists_candidates(self) -> None:
        assert first_command(never, noop).__qualname__ == "first_command(never, noop)"


# ---------------------------------------------------------------------------
# ChainedCommands
# ---------------------------------------------------------------------------


class TestChainedCommands:
    def test_registry_commands(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().select_text(5).insert_text(",").run()
        assert hello_editor.state.doc.text_content == "Hello, world"

    def test_failing_command_rolls_back(self, hello_editor: CoreEditor) -> None:
        before = hello_editor.state
        assert not hello_editor.chain().insert_text("x").select_text(500).run()
        assert hello_editor.state is before

    def test_dry_run(self, hello_editor: CoreEditor) -> None:
        before = hello_editor.state
        assert hello_editor.can().select_text(0, 5).toggle_strong().run()
        assert not hello_editor.can().select_text(0, 50).run()
        assert hello_editor.state is before

    def test_can_copies_staged_commands(self, hello_editor: CoreEditor) -> None:
        chain = hello_editor.chain().insert_text("A")
        check = chain.can()
        assert len(check.staged) == 1
        assert check.run()
        assert hello_editor.state.doc.text_content == "Hello world"
        assert chain.run()
        assert hello_editor.state.doc.text_content == "AHello world"

    def test_raw_and_first_commands(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().command(append("!")).first(never, append("?")).run()
        assert hello_editor.state.doc.text_content == "Hello world!?"

    def test_unknown_command(self, hello_editor: CoreEditor) -> None:
        with pytest.raises(UnknownCommandError) as exc_info:
            hello_editor.chain().frobnicate()
        assert exc_info.value.command_name == "frobnicate"

    def test_private_names_are_attribute_errors(self, hello_editor: CoreEditor) -> None:
        with pytest.raises(AttributeError):
            hello_editor.chain()._secret

    def test_factory_arguments(self, hello_editor: CoreEditor) -> None:
        kwargs: dict[str, Any] = {"level": 3}
        assert hello_editor.chain().set_heading(**kwargs).run()
        assert hello_editor.state.doc.content[0].attrs["level"] == 3

    def test_stored_marks_are_consumed_by_later_typing(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().toggle_italic().insert_text("x").run()
        assert hello_editor.state.stored_marks is None
        first = hello_editor.state.doc.content[0].content[0]
        assert first.text == "x"
        assert [mark.type.name for mark in first.marks] == ["em"]

    def test_stored_marks_survive_a_selection_only_chain(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().set_selection(3).toggle_italic().run()
        assert [mark.type.name for mark in hello_editor.state.stored_marks] == ["em"]

    def test_unknown_command_is_not_an_attribute(self, hello_editor: CoreEditor) -> None:
        chain = hello_editor.chain()
        assert not hasattr(chain, "no_such_command")
        assert getattr(chain, "no_such_command", None) is None
        with pytest.raises(AttributeError):
            chain.no_such_command
