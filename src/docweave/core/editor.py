"""The core editor: composition root for extensions, schema and state.

Construction runs the whole assembly pipeline once: resolve the
extension list, assemble the schema, merge commands and key bindings,
collect behaviors and converters, and create the initial state.  Any
configuration error propagates out of the constructor; there is no
partially built editor.

Usage
-----
::

    from docweave.core.editor import CoreEditor
    from docweave.extensions.builtin import BasicEditor

    editor = CoreEditor([BasicEditor()])
    editor.chain().insert_text("Hello world").select_text(0, 5).toggle_strong().run()
    editor.on("changed", lambda event: print(event.state.doc))
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from docweave.core.assembler import assemble_schema
from docweave.core.chain import ChainedCommands, TransactionPipeline
from docweave.core.errors import ConfigurationError, ContentError, ConversionError
from docweave.core.keymap import Keymap, default_platform
from docweave.core.registry import CommandRegistry
from docweave.core.resolver import ResolvedExtensionSet, resolve_extensions
from docweave.core.selection import TextSelection
from docweave.core.state import Behavior, Command, EditorState, StateStore
from docweave.core.transform import Transaction
from docweave.extensions.base import Converter, Extension, ProvidesBehaviors, ProvidesConverters
from docweave.model.nodes import Node
from docweave.model.serializer import DocumentSerializer, tree_string

if TYPE_CHECKING:
    from docweave.config import EditorOptions

logger = logging.getLogger(__name__)

EVENTS: tuple[str, ...] = ("changed", "selection", "doc:loaded")

Content = Mapping[str, Any] | Node | None


@dataclass(frozen=True)
class ChangeEvent:
    """Sent to ``"changed"`` handlers once per committed transaction."""

    editor: "CoreEditor"
    transaction: Transaction
    state: EditorState


@dataclass(frozen=True)
class LoadResult:
    """Outcome of ``CoreEditor.load_document``."""

    ok: bool
    error: Exception | None = None


class CoreEditor:
    """An editor instance assembled from a list of extensions.

    Parameters
    ----------
    extensions:
        Extension instances, in priority order.
    content:
        Initial document as a JSON-like mapping or a ``Node``.  ``None``
        creates the root node's empty content.
    platform:
        ``"mac"`` or ``"pc"``; decides what ``Mod`` means in key chords.
        Defaults to the running platform.

    Raises
    ------
    ConfigurationError
        Any resolution, schema or behavior configuration error.
    ContentError
        If ``content`` does not fit the assembled schema.
    """

    def __init__(
        self,
        extensions: Iterable[Extension],
        content: Content = None,
        platform: str | None = None,
    ) -> None:
        self.platform = platform or default_platform()
        self.extensions: ResolvedExtensionSet = resolve_extensions(extensions)
        logger.debug("Extension order: %s", ", ".join(self.extensions.names()))
        self.schema = assemble_schema(self.extensions)
        self.commands = CommandRegistry.from_extensions(self.extensions, self, self.schema)
        self.keymap = Keymap.from_extensions(self.extensions, self, self.commands, self.platform)
        self.behaviors: tuple[Behavior, ...] = self._collect_behaviors()
        self.converters: dict[str, Converter] = self._collect_converters()
        self._handlers: dict[str, list[Callable[[Any], None]]] = {event: [] for event in EVENTS}
        state = EditorState.create(self.schema, self._to_doc(content), behaviors=self.behaviors)
        self._store = StateStore(state)
        self._pipeline = TransactionPipeline(self._store)
        self._store.subscribe(self._on_commit)

    @classmethod
    def from_options(cls, options: "EditorOptions") -> "CoreEditor":
        """Build an editor from loaded configuration."""
        return cls(options.build_extensions(), content=options.content, platform=options.platform)

    def __repr__(self) -> str:
        return f"CoreEditor(extensions={self.extensions.names()})"

    # ------------------------------------------------------------------
    # Assembly helpers
    # ------------------------------------------------------------------

    def _collect_behaviors(self) -> tuple[Behavior, ...]:
        behaviors: list[Behavior] = []
        owners: dict[str, str] = {}
        for ext in self.extensions:
            if not isinstance(ext, ProvidesBehaviors):
                continue
            for behavior in ext.provide_behaviors(self, self.schema):
                if behavior.key in owners:
                    raise ConfigurationError(
                        f"Behavior key {behavior.key!r} from {ext.name!r} is already "
                        f"used by {owners[behavior.key]!r}"
                    )
                owners[behavior.key] = ext.name
                behaviors.append(behavior)
        return tuple(behaviors)

    def _collect_converters(self) -> dict[str, Converter]:
        converters: dict[str, Converter] = {}
        for ext in self.extensions:
            if isinstance(ext, ProvidesConverters):
                converters.update(ext.provide_converters(self, self.schema))
        return converters

    def _to_doc(self, content: Content) -> Node | None:
        if content is None:
            return None
        if isinstance(content, Node):
            self.schema.check(content)
            return content
        return DocumentSerializer(self.schema).from_dict(content)

    # ------------------------------------------------------------------
    # State and commands
    # ------------------------------------------------------------------

    @property
    def state(self) -> EditorState:
        return self._store.state

    def chain(self) -> ChainedCommands:
        """Start a command chain; finish it with ``.run()``."""
        return ChainedCommands(self._pipeline, self.commands)

    def can(self) -> ChainedCommands:
        """Start a dry-run chain; ``.run()`` reports applicability only."""
        return ChainedCommands(self._pipeline, self.commands, dry_run=True)

    def run(self, *commands: Command) -> bool:
        """Run raw commands as one atomic chain."""
        return self._pipeline.run(*commands)

    def dispatch(self, tr: Transaction) -> EditorState:
        """Commit a transaction built from ``editor.state.tr``."""
        return self._store.apply(tr)

    def subscribe(self, observer: Callable[[Transaction, EditorState], None]) -> Callable[[], None]:
        """Observe every committed transaction; returns an unsubscribe callable."""
        return self._store.subscribe(observer)

    def handle_key(self, chord: str) -> bool:
        """Run the command bound to ``chord``.  False when nothing is bound.

        A malformed chord (empty, or with an unknown modifier) is never
        bound, so it also gives False.
        """
        try:
            name = self.keymap.lookup(chord)
        except ValueError:
            logger.debug("Ignoring malformed key chord %r", chord)
            return False
        if name is None:
            return False
        logger.debug("Key %r -> %r", chord, name)
        return self._pipeline.run(self.commands.create(name))

    def get_extension(self, name: str) -> Extension | None:
        return self.extensions.get(name)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, handler: Callable[[Any], None]) -> None:
        """Register ``handler`` for ``"changed"``, ``"selection"`` or ``"doc:loaded"``."""
        if event not in self._handlers:
            raise ValueError(f"Unknown event {event!r}; expected one of {', '.join(EVENTS)}")
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Callable[[Any], None]) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def _emit(self, event: str, payload: Any) -> None:
        for handler in list(self._handlers[event]):
            handler(payload)

    def _on_commit(self, tr: Transaction, state: EditorState) -> None:
        event = ChangeEvent(self, tr, state)
        self._emit("changed", event)
        if tr.selection_before != state.selection:
            self._emit("selection", event)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def get_json(self) -> dict[str, Any]:
        return DocumentSerializer(self.schema).to_dict(self.state.doc)

    def get_document_as_tree(self) -> str:
        return tree_string(self.state.doc)

    def set_document(self, content: Content) -> None:
        """Replace the whole document.  ``None`` resets to the empty document."""
        doc = self._to_doc(content) or self.schema.empty_document()
        self._replace_document(doc)

    def _replace_document(self, doc: Node) -> None:
        tr = self.state.tr
        tr.replace(0, self.state.doc.content_size, doc.content)
        tr.set_selection(TextSelection.at_start(tr.doc))
        tr.set_meta("add_to_history", False)
        self.dispatch(tr)

    def load_document(self, mime_type: str, data: bytes) -> LoadResult:
        """Load ``data`` with the converter registered for ``mime_type``.

        On failure the state is left unchanged and the result carries the
        error; nothing is raised.
        """
        converter = self.converters.get(mime_type)
        if converter is None:
            return LoadResult(False, ConversionError(f"No converter for {mime_type!r}"))
        try:
            doc = converter.to_doc(data, self.schema)
            self.schema.check(doc)
        except (ConversionError, ContentError) as exc:
            logger.debug("Loading %s failed: %s", mime_type, exc)
            return LoadResult(False, exc)
        self._replace_document(doc)
        self._emit("doc:loaded", self)
        return LoadResult(True)

    def save_document(self, mime_type: str) -> bytes:
        """Serialize the current document.

        Raises
        ------
        ConversionError
            If no converter handles ``mime_type``.
        """
        converter = self.converters.get(mime_type)
        if converter is None:
            raise ConversionError(f"No converter for {mime_type!r}")
        return converter.from_doc(self.state.doc, self.schema)
