"""Command chains and the transaction pipeline.

A command is a callable ``command(state, dispatch=None) -> bool``.
Called without ``dispatch`` it only reports whether it would apply.
Called with ``dispatch`` and returning ``True`` it may call ``dispatch``
once with a transaction built from ``state``.

``TransactionPipeline.run`` executes several commands as one atomic
unit: each command sees the state left by the previous one, any
``False`` aborts the whole chain with no effect, and success commits a
single merged transaction to the store.

Usage
-----
::

    editor.chain().select_text(0, 5).toggle_strong().run()
    editor.can().toggle_italic().run()   # dry run, never mutates
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from docweave.core.errors import CommandContractError
from docweave.core.state import Command, Dispatch, EditorState, StateStore
from docweave.core.transform import Transaction

if TYPE_CHECKING:
    from docweave.core.registry import CommandRegistry

logger = logging.getLogger(__name__)


def command_name(command: Command) -> str:
    return getattr(command, "__qualname__", None) or repr(command)


class _Capture:
    """A dispatch function that records the single transaction it receives."""

    __slots__ = ("tr",)

    def __init__(self) -> None:
        self.tr: Transaction | None = None

    def __call__(self, tr: Transaction) -> None:
        if self.tr is not None:
            raise CommandContractError("Command called dispatch more than once")
        self.tr = tr


def execute(command: Command, state: EditorState) -> tuple[bool, Transaction | None]:
    """Run ``command`` with a capturing dispatch.

    Returns whether it succeeded and the transaction it dispatched, if
    any.  Exceptions raised by the command propagate unchanged.

    Raises
    ------
    CommandContractError
        If the command dispatched twice, or dispatched and returned False.
    """
    capture = _Capture()
    result = command(state, capture)
    if not result:
        if capture.tr is not None:
            raise CommandContractError(
                f"Command {command_name(command)} dispatched a transaction and then returned False"
            )
        return False, None
    return True, capture.tr


def first_command(*commands: Command) -> Command:
    """Combine ``commands`` into one that runs the first applicable candidate.

    Each candidate is checked without dispatch against the unmodified
    state, in order.  The first that reports success is executed and its
    result returned; later candidates are never executed.
    """

    def command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        for candidate in commands:
            if not candidate(state, None):
                continue
            if dispatch is None:
                return True
            logger.debug("first_command: running %s", command_name(candidate))
            return candidate(state, dispatch)
        return False

    command.__qualname__ = "first_command(" + ", ".join(command_name(c) for c in commands) + ")"
    return command


class TransactionPipeline:
    """Runs commands against a ``StateStore``.

    Parameters
    ----------
    store:
        The store whose state commands read and to which merged
        transactions are committed.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store

    def run(self, *commands: Command) -> bool:
        """Execute ``commands`` in order as one atomic unit.

        Returns
        -------
        bool
            ``False`` if any command returned ``False``; the store is then
            untouched.  ``True`` otherwise, after committing the merged
            transaction once (nothing is committed when no command
            changed anything).
        """
        base = self._store.state
        working = base
        merged = base.tr
        for command in commands:
            ok, tr = execute(command, working)
            if not ok:
                logger.debug("Chain aborted: %s returned False", command_name(command))
                return False
            if tr is not None:
                working = working.apply(tr)
                merged.absorb(tr)
        if merged.is_empty:
            return True
        self._store.apply(merged)
        return True

    def can(self, *commands: Command) -> bool:
        """Return True if every command applies to the current state.

        Each command is called without dispatch against the same,
        unmodified state.
        """
        state = self._store.state
        return all(command(state, None) for command in commands)


class ChainedCommands:
    """Fluent builder that stages commands for one pipeline run.

    Attribute access looks the name up in the command registry and
    returns a function that stages the command built from its
    arguments.  Unknown names raise ``UnknownCommandError``.
    """

    def __init__(
        self,
        pipeline: TransactionPipeline,
        registry: "CommandRegistry",
        dry_run: bool = False,
    ) -> None:
        self._pipeline = pipeline
        self._registry = registry
        self._dry_run = dry_run
        self._staged: list[Command] = []

    def __repr__(self) -> str:
        names = ", ".join(command_name(c) for c in self._staged)
        return f"ChainedCommands([{names}], dry_run={self._dry_run})"

    def __getattr__(self, name: str) -> Callable[..., "ChainedCommands"]:
        if name.startswith("_"):
            raise AttributeError(name)
        factory = self._registry.get(name)

        def stage(*args: Any, **kwargs: Any) -> "ChainedCommands":
            self._staged.append(factory(*args, **kwargs))
            return self

        stage.__name__ = name
        return stage

    def command(self, command: Command) -> "ChainedCommands":
        """Stage a raw command."""
        self._staged.append(command)
        return self

    def first(self, *commands: Command) -> "ChainedCommands":
        """Stage ``first_command(*commands)``."""
        self._staged.append(first_command(*commands))
        return self

    def can(self) -> "ChainedCommands":
        """Return a dry-run copy of the commands staged so far."""
        copy = ChainedCommands(self._pipeline, self._registry, dry_run=True)
        copy._staged = list(self._staged)
        return copy

    @property
    def staged(self) -> tuple[Command, ...]:
        return tuple(self._staged)

    def run(self) -> bool:
        if self._dry_run:
            return self._pipeline.can(*self._staged)
        return self._pipeline.run(*self._staged)
