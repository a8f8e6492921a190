"""Input rules: text typed at the end of a pattern triggers a transformation.

Typing ``# `` at the start of a paragraph turns it into a heading and
typing ``->`` produces an arrow.  Rules come from every extension that
implements ``provide_input_rules``; this extension runs them and keeps
the last applied rule as behavior-local state so ``undo_input_rule``
(bound first on Backspace) can take it back.

The record is dropped by any later change to the document or the
selection, so only a rule that has just fired can be undone.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Sequence, Union

from docweave.commands import insert_text
from docweave.commands.helpers import attempt, node_type_for
from docweave.core.chain import first_command
from docweave.core.errors import ContentError, StepError
from docweave.core.selection import TextSelection
from docweave.core.state import Behavior, Command, Dispatch, EditorState
from docweave.core.transform import Step, Transaction
from docweave.extensions.base import Category, CommandFactory, Extension, ProvidesInputRules
from docweave.extensions.registry import extension_registry
from docweave.model.nodes import Node
from docweave.model.schema import NodeType, Schema

if TYPE_CHECKING:
    from docweave.core.editor import CoreEditor

logger = logging.getLogger(__name__)

INPUT_RULES_KEY = "input_rules"
MAX_MATCH = 500
LEAF_CHAR = "\ufffc"

Handler = Callable[[Transaction, EditorState, "re.Match[str]", int, int], Optional[Transaction]]


@dataclass(frozen=True)
class InputRule:
    """A pattern and what to do when typing completes it.

    Parameters
    ----------
    pattern:
        Regular expression matched against the text before the caret
        with the typed text appended.  It should end with ``$``.
    handler:
        A replacement string, or a callable
        ``(tr, state, match, start, end)`` that adds steps to ``tr`` and
        returns it, or returns None when the rule does not apply.
        ``start..end`` is the document range the match covers, minus the
        typed text, which is not in the document yet.
    undoable:
        Whether ``undo_input_rule`` can take the rule back.
    in_code:
        ``False`` skips code blocks, ``True`` runs everywhere and
        ``"only"`` runs in code blocks only.
    """

    pattern: "re.Pattern[str]"
    handler: Union[str, Handler]
    undoable: bool = True
    in_code: Union[bool, str] = False

    def __post_init__(self) -> None:
        if isinstance(self.pattern, str):
            object.__setattr__(self, "pattern", re.compile(self.pattern))

    def applies_in(self, node_type: NodeType) -> bool:
        if node_type.spec.code:
            return bool(self.in_code)
        return self.in_code != "only"

    def run(self, tr: Transaction, state: EditorState, match: "re.Match[str]", start: int, end: int) -> Transaction | None:
        if callable(self.handler):
            return self.handler(tr, state, match, start, end)
        return _replace_text(self.handler, tr, match, start, end)


def _replace_text(replacement: str, tr: Transaction, match: "re.Match[str]", start: int, end: int) -> Transaction:
    """Replace the matched text, or only the first group when there is one."""
    insert = replacement
    group = match.group(1) if match.re.groups else None
    if group:
        offset = match.group(0).rfind(group)
        insert += match.group(0)[offset + len(group):]
        start += offset
        cut_off = start - end
        if cut_off > 0:
            insert = match.group(0)[offset - cut_off:offset] + insert
            start = end
    return tr.insert_text(insert, start, end)


def text_rule(pattern: str, replacement: str, **options: Any) -> InputRule:
    """A rule that replaces the matched text with ``replacement``."""
    return InputRule(re.compile(pattern), replacement, **options)


def textblock_type_rule(
    pattern: str,
    node_type: NodeType | str,
    attrs: Mapping[str, Any] | Callable[["re.Match[str]"], Mapping[str, Any]] | None = None,
) -> InputRule:
    """A rule that deletes the matched text and turns its textblock into ``node_type``.

    ``attrs`` may be a callable that computes the attributes from the
    match, e.g. the heading level from the number of ``#`` characters.
    """

    def handler(tr: Transaction, state: EditorState, match: "re.Match[str]", start: int, end: int) -> Transaction | None:
        rstart = state.doc.resolve(start)
        if rstart.depth < 1:
            return None
        values = attrs(match) if callable(attrs) else attrs
        tr.delete(start, end)
        tr.set_node_markup(rstart.before(), node_type_for(state.schema, node_type), dict(values or {}) or None)
        return tr

    return InputRule(re.compile(pattern), handler)


def wrapping_rule(
    pattern: str,
    node_type: NodeType | str,
    attrs: Mapping[str, Any] | None = None,
) -> InputRule:
    """A rule that deletes the matched text and wraps its textblock in ``node_type``."""

    def handler(tr: Transaction, state: EditorState, match: "re.Match[str]", start: int, end: int) -> Transaction | None:
        rstart = state.doc.resolve(start)
        if rstart.depth < 1:
            return None
        tr.delete(start, end)
        pos = rstart.before()
        block = tr.doc.node_at(pos)
        wrapper = node_type_for(state.schema, node_type).create_checked(attrs, (block,))
        tr.replace(pos, pos + block.node_size, (wrapper,))
        tr.set_selection(TextSelection(start + 1, start + 1))
        return tr

    return InputRule(re.compile(pattern), handler)


# ---------------------------------------------------------------------------
# Behavior state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AppliedRule:
    """What ``undo_input_rule`` needs to take the last rule back."""

    steps: tuple[Step, ...]
    docs: tuple[Node, ...]
    from_: int
    to: int
    text: str
    doc: Node


def _apply(tr: Transaction, value: AppliedRule | None, old: EditorState, new: EditorState) -> AppliedRule | None:
    applied: AppliedRule | None = tr.get_meta(INPUT_RULES_KEY)
    if applied is not None and applied.doc is tr.doc:
        return applied
    if tr.doc_changed or tr.selection_set:
        return None
    return value


def _textblock_text(parent: Node, end: int) -> str:
    text = "".join(child.text if child.is_text else LEAF_CHAR for child in parent.content)
    return text[max(0, end - MAX_MATCH):end]


def collect_rules(editor: "CoreEditor") -> list[InputRule]:
    """Input rules from every resolved extension, in extension order."""
    rules: list[InputRule] = []
    for ext in editor.extensions:
        if isinstance(ext, ProvidesInputRules):
            rules.extend(ext.provide_input_rules(editor, editor.schema))
    return rules


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def run_input_rules(rules: Sequence[InputRule], text: str) -> Command:
    """Apply the first rule that ``text``, typed over the selection, completes.

    Fails when no rule matches, so ``first_command(run_input_rules(...),
    insert_text(...))`` types the text plainly otherwise.
    """

    def run_input_rules_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        selection = state.selection
        if not isinstance(selection, TextSelection):
            return False
        rfrom = state.doc.resolve(selection.from_)
        parent = rfrom.parent
        if not parent.is_textblock or not rfrom.same_parent(state.doc.resolve(selection.to)):
            return False
        text_before = _textblock_text(parent, rfrom.parent_offset) + text
        for rule in rules:
            if not rule.applies_in(parent.type):
                continue
            match = rule.pattern.search(text_before)
            if match is None:
                continue
            start = selection.from_ - (len(match.group(0)) - len(text))
            try:
                tr = rule.run(state.tr, state, match, start, selection.to)
            except (StepError, ContentError) as exc:
                logger.debug("Input rule %s did not apply: %s", rule.pattern.pattern, exc)
                continue
            if tr is None or not tr.doc_changed:
                continue
            if rule.undoable:
                tr.set_meta(
                    INPUT_RULES_KEY,
                    AppliedRule(tuple(tr.steps), tuple(tr.docs), selection.from_, selection.to, text, tr.doc),
                )
            if dispatch is not None:
                dispatch(tr)
            return True
        return False

    return run_input_rules_command


def undo_input_rule() -> Command:
    """Take back the rule that has just fired and keep the typed text instead."""

    def undo_input_rule_command(state: EditorState, dispatch: Dispatch | None = None) -> bool:
        applied: AppliedRule | None = state.behavior_states.get(INPUT_RULES_KEY)
        if applied is None or applied.doc is not state.doc:
            return False

        def build(tr: Transaction) -> bool:
            for step, doc in zip(reversed(applied.steps), reversed(applied.docs)):
                tr.step(step.invert(doc))
            tr.insert_text(applied.text, applied.from_, applied.to)
            caret = applied.from_ + len(applied.text)
            tr.set_selection(TextSelection(caret, caret))
            return True

        return attempt(state, dispatch, build)

    return undo_input_rule_command


@extension_registry.register()
class ExtensionInputRules(Extension):
    """Runs input rules.  Config: ``typography`` (default True) adds arrow and symbol rules."""

    name = "input-rules"
    category = Category.BEHAVIOR

    def provide_input_rules(self, editor: "CoreEditor", schema: Schema) -> Sequence[InputRule]:
        if not self.config.get("typography", True):
            return []
        return [
            text_rule(r"->$", "→"),
            text_rule(r"<-$", "←"),
            text_rule(r"\.\.\.$", "…"),
            text_rule(r"\(c\)$", "©"),
        ]

    def provide_behaviors(self, editor: "CoreEditor", schema: Schema) -> Sequence[Behavior]:
        return [Behavior(INPUT_RULES_KEY, apply=_apply, config=self.config)]

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        def type_text(text: str) -> Command:
            return first_command(run_input_rules(collect_rules(editor), text), insert_text(text))

        return {
            "run_input_rules": lambda text: run_input_rules(collect_rules(editor), text),
            "type_text": type_text,
            "undo_input_rule": undo_input_rule,
        }
