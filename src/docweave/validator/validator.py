"""Validators for schema drafts and JSON-like documents.

``SchemaValidator`` runs the assembly rules from ``docweave.validator.rules``
against a ``SchemaDraft``.  In strict mode, warnings are promoted to
errors so that CI pipelines can enforce tighter quality gates.

``validate_document`` checks a JSON-like document against a compiled
``Schema`` without building nodes, reporting every problem at once
rather than stopping at the first ``ContentError``.

Usage
-----
::

    from docweave.validator import validate_document

    diagnostics = validate_document(data, editor.schema)
    errors = [d for d in diagnostics if d.is_error]
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from docweave.core.errors import ContentError
from docweave.validator.diagnostics import Diagnostic, DiagnosticSeverity
from docweave.validator.rules import DEFAULT_RULES, SchemaRule

if TYPE_CHECKING:
    from docweave.core.assembler import SchemaDraft
    from docweave.model.schema import NodeType, Schema


class SchemaValidator:
    """Runs schema assembly rules over a draft.

    Parameters
    ----------
    rules:
        The list of rules to run.  Defaults to all built-in rules
        (``DEFAULT_RULES``).
    strict:
        When ``True``, WARNING-level diagnostics are promoted to ERROR
        severity.
    """

    def __init__(
        self,
        rules: list[SchemaRule] | None = None,
        strict: bool = False,
    ) -> None:
        self._rules: list[SchemaRule] = rules if rules is not None else list(DEFAULT_RULES)
        self._strict: bool = strict

    def validate(self, draft: "SchemaDraft") -> list[Diagnostic]:
        """Run all rules against ``draft`` and return the collected diagnostics.

        Diagnostics keep rule order, then contribution order within a
        rule, so the first error always names the earliest offender.
        """
        diagnostics: list[Diagnostic] = []
        for rule in self._rules:
            diagnostics.extend(rule(draft))
        if self._strict:
            diagnostics = [_promote(d) for d in diagnostics]
        return diagnostics

    def add_rule(self, rule: SchemaRule) -> None:
        """Add a custom rule to this validator instance."""
        self._rules.append(rule)

    @property
    def rule_count(self) -> int:
        return len(self._rules)


def _promote(diagnostic: Diagnostic) -> Diagnostic:
    if diagnostic.severity != DiagnosticSeverity.WARNING:
        return diagnostic
    return Diagnostic(
        severity=DiagnosticSeverity.ERROR,
        code=diagnostic.code,
        message=diagnostic.message,
        source=diagnostic.source,
        suggestion=diagnostic.suggestion,
        rule=diagnostic.rule,
    )


# ---------------------------------------------------------------------------
# Document validation
# ---------------------------------------------------------------------------
#
#     DW101  Malformed node or mark data
#     DW102  Unknown node type
#     DW103  Unknown or disallowed mark
#     DW104  Invalid attributes
#     DW105  Children do not match the content expression
#     DW106  Wrong root node type


def _error(code: str, message: str, path: str, rule: str, suggestion: str | None = None) -> Diagnostic:
    return Diagnostic(
        severity=DiagnosticSeverity.ERROR,
        code=code,
        message=message,
        source=path,
        suggestion=suggestion,
        rule=rule,
    )


def validate_document(data: Any, schema: "Schema") -> list[Diagnostic]:
    """Validate a JSON-like document against ``schema``.

    Parameters
    ----------
    data:
        A mapping in the shape produced by ``DocumentSerializer.to_dict``.
    schema:
        The compiled schema to check against.

    Returns
    -------
    list[Diagnostic]
        Every finding in document order.  Empty when ``data`` would load
        cleanly with ``Schema.node_from_json``.
    """
    diagnostics: list[Diagnostic] = []
    root = schema.top_node_type.name
    if isinstance(data, Mapping) and data.get("type") not in (None, root):
        diagnostics.append(_error(
            "DW106",
            f"Document root must be {root!r}, got {data.get('type')!r}",
            "doc",
            "root_type",
        ))
    _check_node(data, schema, "doc", None, diagnostics)
    return diagnostics


def _check_node(
    data: Any,
    schema: "Schema",
    path: str,
    parent: "NodeType | None",
    diagnostics: list[Diagnostic],
) -> "NodeType | None":
    if not isinstance(data, Mapping) or not isinstance(data.get("type"), str):
        diagnostics.append(_error("DW101", "Node data must be a mapping with a 'type' string", path, "node_shape"))
        return None
    type_name = data["type"]
    node_type = schema.nodes.get(type_name)
    if node_type is None:
        diagnostics.append(_error(
            "DW102",
            f"Unknown node type {type_name!r}",
            path,
            "known_types",
            suggestion=f"Known node types: {', '.join(schema.nodes)}",
        ))
        return None

    _check_marks(data.get("marks") or (), schema, path, parent, diagnostics)

    if node_type.is_text:
        if not isinstance(data.get("text"), str) or not data["text"]:
            diagnostics.append(_error("DW101", "Text node requires a non-empty 'text' string", path, "node_shape"))
        return node_type

    try:
        node_type.compute_attrs(data.get("attrs"))
    except ContentError as exc:
        diagnostics.append(_error("DW104", str(exc), path, "attributes"))

    children = data.get("content") or ()
    if not isinstance(children, (list, tuple)):
        diagnostics.append(_error("DW101", "'content' must be a list", path, "node_shape"))
        return node_type
    child_types = [
        _check_node(child, schema, f"{path}/{index}", node_type, diagnostics)
        for index, child in enumerate(children)
    ]
    if all(t is not None for t in child_types) and not node_type.content_match.matches(child_types):  # type: ignore[arg-type]
        names = " ".join(t.name for t in child_types if t is not None) or "<empty>"
        diagnostics.append(_error(
            "DW105",
            f"Children [{names}] do not match {node_type.name!r} content "
            f"{node_type.content_match.source!r}",
            path,
            "content_match",
        ))
    return node_type


def _check_marks(
    marks: Any,
    schema: "Schema",
    path: str,
    parent: "NodeType | None",
    diagnostics: list[Diagnostic],
) -> None:
    for mark_data in marks:
        if not isinstance(mark_data, Mapping) or not isinstance(mark_data.get("type"), str):
            diagnostics.append(_error("DW101", "Mark data must be a mapping with a 'type' string", path, "node_shape"))
            continue
        mark_type = schema.marks.get(mark_data["type"])
        if mark_type is None:
            diagnostics.append(_error("DW103", f"Unknown mark type {mark_data['type']!r}", path, "known_marks"))
            continue
        if parent is not None and not parent.allows_mark_type(mark_type):
            diagnostics.append(_error(
                "DW103",
                f"Mark {mark_type.name!r} is not allowed inside {parent.name!r}",
                path,
                "known_marks",
            ))
        try:
            mark_type.create(mark_data.get("attrs"))
        except ContentError as exc:
            diagnostics.append(_error("DW104", str(exc), path, "attributes"))
