"""Schema assembly rules.

Each rule is a callable that accepts a ``SchemaDraft`` and returns a
list of ``Diagnostic`` objects.  Rules are composed into the
``SchemaValidator`` which runs them in order and aggregates results.

Rule codes use the ``DW`` prefix followed by a three-digit number:

    DW001  Duplicate type name across nodes and marks
    DW002  Missing or ambiguous root node
    DW003  Mark exclusion references an unknown mark
    DW004  Node content or allowed-marks expression references an unknown name
    DW005  Node type unreachable from the root (warning)
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from docweave.core.errors import ContentExpressionError
from docweave.model.content import parse_content_expression, referenced_names
from docweave.validator.diagnostics import Diagnostic, DiagnosticSeverity

if TYPE_CHECKING:
    from docweave.core.assembler import SchemaDraft

SchemaRule = Callable[["SchemaDraft"], list[Diagnostic]]


def _make(
    code: str,
    severity: DiagnosticSeverity,
    message: str,
    source: str,
    suggestion: str | None = None,
    rule: str = "",
) -> Diagnostic:
    return Diagnostic(
        severity=severity,
        code=code,
        message=message,
        source=source,
        suggestion=suggestion,
        rule=rule,
    )


# ---------------------------------------------------------------------------
# DW001 — duplicate type names
# ---------------------------------------------------------------------------


def rule_duplicate_types(draft: "SchemaDraft") -> list[Diagnostic]:
    """DW001: Type names must be unique across nodes and marks combined."""
    diagnostics: list[Diagnostic] = []
    seen: dict[str, str] = {}
    for contribution in [*draft.nodes, *draft.marks]:
        name = contribution.spec.name
        if name in seen:
            diagnostics.append(_make(
                "DW001",
                DiagnosticSeverity.ERROR,
                f"Type {name!r} is already declared by extension {seen[name]!r}",
                contribution.source,
                suggestion=f"Drop one of the extensions declaring {name!r} or rename its type",
                rule="duplicate_types",
            ))
        else:
            seen[name] = contribution.source
    return diagnostics


# ---------------------------------------------------------------------------
# DW002 — root node
# ---------------------------------------------------------------------------


def rule_root_node(draft: "SchemaDraft") -> list[Diagnostic]:
    """DW002: Exactly one node type must act as the document root."""
    flagged = [c for c in draft.nodes if c.spec.top_node]
    if len(flagged) > 1:
        first = flagged[0]
        return [
            _make(
                "DW002",
                DiagnosticSeverity.ERROR,
                f"Multiple root nodes: {c.spec.name!r} and {first.spec.name!r}",
                c.source,
                suggestion="Only one node type may set top_node=True",
                rule="root_node",
            )
            for c in flagged[1:]
        ]
    if not flagged and "doc" not in draft.node_names():
        return [_make(
            "DW002",
            DiagnosticSeverity.ERROR,
            "No root node: no node type sets top_node=True and no 'doc' node exists",
            "<schema>",
            suggestion="Add a document extension (e.g. 'doc') to the extension list",
            rule="root_node",
        )]
    return []


# ---------------------------------------------------------------------------
# DW003 — mark exclusions
# ---------------------------------------------------------------------------


def rule_mark_exclusions(draft: "SchemaDraft") -> list[Diagnostic]:
    """DW003: A mark's exclusion set may only name marks in the schema."""
    diagnostics: list[Diagnostic] = []
    known = draft.mark_names() | draft.mark_groups()
    for contribution in draft.marks:
        excludes = contribution.spec.excludes
        if not excludes or excludes == "_":
            continue
        for name in excludes.split():
            if name not in known:
                diagnostics.append(_make(
                    "DW003",
                    DiagnosticSeverity.ERROR,
                    f"Mark {contribution.spec.name!r} excludes unknown mark {name!r}",
                    contribution.source,
                    suggestion=f"Add the extension providing {name!r} or remove it from excludes",
                    rule="mark_exclusions",
                ))
    return diagnostics


# ---------------------------------------------------------------------------
# DW004 — content expression references
# ---------------------------------------------------------------------------


def rule_content_references(draft: "SchemaDraft") -> list[Diagnostic]:
    """DW004: Content expressions may only name node types or node groups."""
    diagnostics: list[Diagnostic] = []
    node_known = draft.node_names() | draft.node_groups()
    mark_known = draft.mark_names() | draft.mark_groups() | {"_"}
    for contribution in draft.nodes:
        spec = contribution.spec
        try:
            expr = parse_content_expression(spec.content)
        except ContentExpressionError as exc:
            diagnostics.append(_make(
                "DW004",
                DiagnosticSeverity.ERROR,
                f"Node {spec.name!r}: {exc}",
                contribution.source,
                rule="content_references",
            ))
            continue
        for ref in referenced_names(expr):
            if ref.name not in node_known:
                diagnostics.append(_make(
                    "DW004",
                    DiagnosticSeverity.ERROR,
                    f"Node {spec.name!r} content {spec.content!r} references unknown "
                    f"node or group {ref.name!r}",
                    contribution.source,
                    suggestion=f"Add the extension providing {ref.name!r}",
                    rule="content_references",
                ))
        for name in (spec.marks or "").split():
            if name not in mark_known:
                diagnostics.append(_make(
                    "DW004",
                    DiagnosticSeverity.ERROR,
                    f"Node {spec.name!r} allows unknown mark {name!r}",
                    contribution.source,
                    rule="content_references",
                ))
    return diagnostics


# ---------------------------------------------------------------------------
# DW005 — unreachable node types
# ---------------------------------------------------------------------------


def rule_unreachable_nodes(draft: "SchemaDraft") -> list[Diagnostic]:
    """DW005: Node types no content expression can reach from the root."""
    root = draft.root_name()
    if root is None:
        return []
    by_name = {c.spec.name: c for c in draft.nodes}
    reachable = {root}
    pending = [root]
    while pending:
        contribution = by_name.get(pending.pop())
        if contribution is None:
            continue
        try:
            refs = referenced_names(parse_content_expression(contribution.spec.content))
        except ContentExpressionError:
            continue
        for ref in refs:
            members = [ref.name] if ref.name in by_name else [
                c.spec.name for c in draft.nodes if ref.name in c.spec.group.split()
            ]
            for name in members:
                if name not in reachable:
                    reachable.add(name)
                    pending.append(name)
    return [
        _make(
            "DW005",
            DiagnosticSeverity.WARNING,
            f"Node {c.spec.name!r} cannot appear in any document rooted at {root!r}",
            c.source,
            suggestion="Add it to a group used by a content expression",
            rule="unreachable_nodes",
        )
        for c in draft.nodes
        if c.spec.name not in reachable
    ]


DEFAULT_RULES: list[SchemaRule] = [
    rule_duplicate_types,
    rule_root_node,
    rule_mark_exclusions,
    rule_content_references,
    rule_unreachable_nodes,
]
