"""Type descriptors and the compiled document schema.

Extensions describe their contribution with plain ``NodeSpec`` /
``MarkSpec`` values.  The assembler (``docweave.core.assembler``)
validates the merged set and compiles it into a ``Schema`` holding one
``NodeType`` or ``MarkType`` per name.  A ``Schema`` is read-only once
built; a new extension list means a new schema.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from docweave.core.errors import ContentError, SchemaError
from docweave.model.content import ContentMatch, parse_content_expression
from docweave.model.nodes import Mark, Node, normalize_inline

_EMPTY: Mapping[str, Any] = MappingProxyType({})


class _Required:
    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED: Any = _Required()


# ---------------------------------------------------------------------------
# Descriptors (what extensions contribute)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AttributeSpec:
    """Declaration of one node or mark attribute.

    Parameters
    ----------
    default:
        Value used when the attribute is not given.  ``REQUIRED`` means
        callers must always supply it.
    validate:
        Optional predicate; a value for which it returns False is
        rejected with ``ContentError``.
    """

    default: Any = REQUIRED
    validate: Callable[[Any], bool] | None = field(default=None, compare=False)

    @property
    def is_required(self) -> bool:
        return self.default is REQUIRED


@dataclass(frozen=True)
class NodeSpec:
    """Descriptor for a node type.

    Parameters
    ----------
    name:
        Unique type name across nodes and marks.
    content:
        Content expression (see ``docweave.model.content``).  Empty
        means the node is a leaf.
    group:
        Space-separated group names this type belongs to.
    inline:
        Whether the node is inline (text, hard breaks) or block level.
    atom:
        Treated as a single unit by selection commands.
    marks:
        Marks allowed inside this node: ``"_"`` for all, ``""`` for
        none, or space-separated mark/group names.  ``None`` means all
        marks for textblocks and none otherwise.
    attrs:
        Attribute declarations.
    top_node:
        Marks the document root.
    empty_content:
        JSON-like children used when a fresh document is created.
    code:
        The node holds code; commands leave its text unstyled.
    hooks:
        Opaque serialization hooks (``to_dom``, ``parse_dom``, ...)
        passed through to rendering collaborators untouched.
    """

    name: str
    content: str = ""
    group: str = ""
    inline: bool = False
    atom: bool = False
    marks: str | None = None
    attrs: Mapping[str, AttributeSpec] = field(default_factory=dict)
    top_node: bool = False
    empty_content: tuple[Mapping[str, Any], ...] | None = None
    code: bool = False
    hooks: Mapping[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class MarkSpec:
    """Descriptor for a mark type.

    Parameters
    ----------
    name:
        Unique type name across nodes and marks.
    attrs:
        Attribute declarations.
    excludes:
        Space-separated names of marks that cannot coexist with this
        one, ``"_"`` for all marks, ``""`` for none.  ``None`` means the
        mark only excludes other instances of itself.
    inclusive:
        Whether text typed at the mark's end inherits it.
    group:
        Space-separated group names.
    hooks:
        Opaque serialization hooks.
    """

    name: str
    attrs: Mapping[str, AttributeSpec] = field(default_factory=dict)
    excludes: str | None = None
    inclusive: bool = True
    group: str = ""
    hooks: Mapping[str, Any] = field(default_factory=dict, compare=False)


def _compute_attrs(owner: str, specs: Mapping[str, AttributeSpec], given: Mapping[str, Any] | None) -> Mapping[str, Any]:
    given = given or {}
    unknown = set(given) - set(specs)
    if unknown:
        raise ContentError(f"Unknown attribute(s) for {owner!r}: {', '.join(sorted(map(str, unknown)))}")
    values: dict[str, Any] = {}
    for name, spec in specs.items():
        if name in given:
            value = given[name]
        elif spec.is_required:
            raise ContentError(f"No value supplied for required attribute {name!r} of {owner!r}")
        else:
            value = spec.default
        if spec.validate is not None and not spec.validate(value):
            raise ContentError(f"Invalid value {value!r} for attribute {name!r} of {owner!r}")
        values[name] = value
    return MappingProxyType(values) if values else _EMPTY


def _attrs_from_json(data: Mapping[str, Any]) -> Mapping[str, Any] | None:
    attrs = data.get("attrs")
    if attrs is not None and not isinstance(attrs, Mapping):
        raise ContentError(f"'attrs' of {data['type']!r} must be a mapping, got {type(attrs).__name__}")
    return attrs


def _list_from_json(data: Mapping[str, Any], key: str) -> Sequence[Any]:
    value = data.get(key)
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ContentError(f"'{key}' of {data['type']!r} must be a list, got {type(value).__name__}")
    return value


# ---------------------------------------------------------------------------
# Compiled types
# ---------------------------------------------------------------------------


class NodeType:
    """A compiled node type.  Equality and hashing use the type name."""

    def __init__(self, spec: NodeSpec, index: int, schema: "Schema") -> None:
        self.name = spec.name
        self.spec = spec
        self.index = index
        self.schema = schema
        self.groups: tuple[str, ...] = tuple(spec.group.split())
        self.content_match: ContentMatch = ContentMatch("", None, lambda _name: ())
        self.mark_set: tuple[MarkType, ...] | None = None
        self.inline_content = False

    def __repr__(self) -> str:
        return f"NodeType({self.name!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NodeType) and other.name == self.name

    def __hash__(self) -> int:
        return hash(("node", self.name))

    @property
    def is_text(self) -> bool:
        return self.name == "text"

    @property
    def is_inline(self) -> bool:
        return self.spec.inline or self.is_text

    @property
    def is_block(self) -> bool:
        return not self.is_inline

    @property
    def is_textblock(self) -> bool:
        return self.is_block and self.inline_content

    @property
    def is_leaf(self) -> bool:
        return self.content_match.is_empty

    @property
    def is_atom(self) -> bool:
        return self.is_leaf or self.spec.atom

    @property
    def has_required_attrs(self) -> bool:
        return any(a.is_required for a in self.spec.attrs.values())

    def compute_attrs(self, attrs: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
        return _compute_attrs(self.name, self.spec.attrs, attrs)

    def allows_mark_type(self, mark_type: "MarkType") -> bool:
        return self.mark_set is None or mark_type in self.mark_set

    def allowed_marks(self, marks: Sequence[Mark]) -> tuple[Mark, ...]:
        """Return ``marks`` filtered down to the ones this node allows."""
        return tuple(m for m in marks if self.allows_mark_type(m.type))

    def valid_content(self, content: Sequence[Node]) -> bool:
        if not self.content_match.matches(child.type for child in content):
            return False
        return all(all(self.allows_mark_type(m.type) for m in child.marks) for child in content)

    def check_content(self, content: Sequence[Node]) -> None:
        if not self.valid_content(content):
            names = " ".join(child.type.name for child in content) or "<empty>"
            raise ContentError(
                f"Invalid content for node {self.name!r}: [{names}] does not match "
                f"{self.content_match.source!r} or carries disallowed marks"
            )

    def create(
        self,
        attrs: Mapping[str, Any] | None = None,
        content: Sequence[Node] = (),
        marks: Sequence[Mark] = (),
    ) -> Node:
        """Create a node of this type without checking its content."""
        if self.is_text:
            raise ContentError("Text nodes are created with Schema.text()")
        return Node(self, self.compute_attrs(attrs), tuple(content), tuple(marks))

    def create_checked(
        self,
        attrs: Mapping[str, Any] | None = None,
        content: Sequence[Node] = (),
        marks: Sequence[Mark] = (),
    ) -> Node:
        """Like ``create`` but raise ``ContentError`` on invalid content."""
        self.check_content(content)
        return self.create(attrs, content, marks)

    def create_and_fill(self, attrs: Mapping[str, Any] | None = None) -> Node:
        """Create a node, filling required content with default children."""
        return self.create(attrs, self.content_match.fill())


class MarkType:
    """A compiled mark type.  Equality and hashing use the type name."""

    def __init__(self, spec: MarkSpec, rank: int, schema: "Schema") -> None:
        self.name = spec.name
        self.spec = spec
        self.rank = rank
        self.schema = schema
        self.groups: tuple[str, ...] = tuple(spec.group.split())
        self.excluded: tuple[MarkType, ...] = ()

    def __repr__(self) -> str:
        return f"MarkType({self.name!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MarkType) and other.name == self.name

    def __hash__(self) -> int:
        return hash(("mark", self.name))

    def create(self, attrs: Mapping[str, Any] | None = None) -> Mark:
        return Mark(self, _compute_attrs(self.name, self.spec.attrs, attrs))

    def excludes(self, other: "MarkType") -> bool:
        return other in self.excluded

    def is_in_set(self, marks: Sequence[Mark]) -> Mark | None:
        """Return the first mark of this type in ``marks``, if any."""
        for mark in marks:
            if mark.type == self:
                return mark
        return None

    def remove_from_set(self, marks: Sequence[Mark]) -> tuple[Mark, ...]:
        return tuple(m for m in marks if m.type != self)


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class Schema:
    """The merged, read-only table of node and mark types.

    Parameters
    ----------
    node_specs:
        Node descriptors in resolution order.
    mark_specs:
        Mark descriptors in resolution order; order defines mark rank.
    top_node:
        Name of the root node type.

    Raises
    ------
    SchemaError
        Only for problems the assembler's rules did not already catch;
        normally schemas are built through ``assemble_schema``.
    """

    def __init__(self, node_specs: Sequence[NodeSpec], mark_specs: Sequence[MarkSpec], top_node: str) -> None:
        nodes = {spec.name: NodeType(spec, i, self) for i, spec in enumerate(node_specs)}
        marks = {spec.name: MarkType(spec, i, self) for i, spec in enumerate(mark_specs)}
        self.nodes: Mapping[str, NodeType] = MappingProxyType(nodes)
        self.marks: Mapping[str, MarkType] = MappingProxyType(marks)
        if top_node not in nodes:
            from docweave.validator.diagnostics import Diagnostic, DiagnosticSeverity

            raise SchemaError([
                Diagnostic(
                    severity=DiagnosticSeverity.ERROR,
                    code="DW002",
                    message=f"Root node {top_node!r} is not defined",
                    source="<schema>",
                    rule="root_node",
                )
            ])
        self.top_node_type: NodeType = nodes[top_node]

        for node_type in nodes.values():
            expr = parse_content_expression(node_type.spec.content)
            node_type.content_match = ContentMatch(node_type.spec.content, expr, self.node_types_for)
        for node_type in nodes.values():
            node_type.inline_content = any(t.is_inline for t in node_type.content_match.types())
            mark_expr = node_type.spec.marks
            if mark_expr is None:
                mark_expr = "_" if node_type.inline_content else ""
            node_type.mark_set = None if mark_expr == "_" else tuple(self.mark_types_for(mark_expr))
        for mark_type in marks.values():
            excludes = mark_type.spec.excludes
            if excludes is None:
                mark_type.excluded = (mark_type,)
            elif excludes == "_":
                mark_type.excluded = tuple(marks.values())
            else:
                mark_type.excluded = tuple(self.mark_types_for(excludes))

    def __repr__(self) -> str:
        return f"Schema(nodes={list(self.nodes)}, marks={list(self.marks)})"

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def node_types_for(self, name: str) -> list[NodeType]:
        """Return the node type named ``name`` or every member of group ``name``."""
        if name in self.nodes:
            return [self.nodes[name]]
        return [t for t in self.nodes.values() if name in t.groups]

    def mark_types_for(self, expr: str) -> list[MarkType]:
        result: list[MarkType] = []
        for name in expr.split():
            if name == "_":
                return list(self.marks.values())
            if name in self.marks:
                result.append(self.marks[name])
            else:
                result.extend(t for t in self.marks.values() if name in t.groups)
        return result

    def node_type(self, name: str) -> NodeType:
        try:
            return self.nodes[name]
        except KeyError:
            raise ContentError(f"Unknown node type {name!r}") from None

    def mark_type(self, name: str) -> MarkType:
        try:
            return self.marks[name]
        except KeyError:
            raise ContentError(f"Unknown mark type {name!r}") from None

    def signature(self) -> tuple[tuple[str, ...], tuple[str, ...], tuple[tuple[str, tuple[str, ...]], ...]]:
        """Names and attribute names of every type, for comparing assemblies."""
        attrs = tuple(
            (name, tuple(t.spec.attrs)) for name, t in [*self.nodes.items(), *self.marks.items()]
        )
        return tuple(self.nodes), tuple(self.marks), attrs

    # ------------------------------------------------------------------
    # Node construction
    # ------------------------------------------------------------------

    def text(self, text: str, marks: Sequence[Mark] = ()) -> Node:
        if not text:
            raise ContentError("Empty text nodes are not allowed")
        text_type = self.node_type("text")
        return Node(text_type, _EMPTY, (), tuple(marks), text)

    def node(
        self,
        type_name: str,
        attrs: Mapping[str, Any] | None = None,
        content: Sequence[Node] = (),
        marks: Sequence[Mark] = (),
    ) -> Node:
        return self.node_type(type_name).create(attrs, content, marks)

    def mark(self, type_name: str, attrs: Mapping[str, Any] | None = None) -> Mark:
        return self.mark_type(type_name).create(attrs)

    def default_textblock_type(self) -> NodeType | None:
        """The first textblock type in schema order, usually ``paragraph``."""
        for node_type in self.nodes.values():
            if node_type.is_textblock and not node_type.has_required_attrs:
                return node_type
        return None

    def empty_document(self) -> Node:
        """Create the root node with its declared empty content."""
        top = self.top_node_type
        if top.spec.empty_content is not None:
            children = tuple(self.node_from_json(child) for child in top.spec.empty_content)
            return top.create_checked(None, children)
        return top.create_and_fill()

    # ------------------------------------------------------------------
    # JSON-like input
    # ------------------------------------------------------------------

    def mark_from_json(self, data: Mapping[str, Any]) -> Mark:
        if not isinstance(data, Mapping) or not isinstance(data.get("type"), str):
            raise ContentError(f"Invalid mark data: {data!r}")
        return self.mark_type(data["type"]).create(_attrs_from_json(data))

    def node_from_json(self, data: Mapping[str, Any]) -> Node:
        """Build a node tree from its JSON-like form and check it.

        Raises
        ------
        ContentError
            If the data is malformed, a type is unknown or the content
            does not fit the schema.
        """
        if not isinstance(data, Mapping) or not isinstance(data.get("type"), str):
            raise ContentError(f"Invalid node data: {data!r}")
        marks = tuple(self.mark_from_json(m) for m in _list_from_json(data, "marks"))
        if data["type"] == "text":
            text = data.get("text")
            if not isinstance(text, str):
                raise ContentError("Text node without a string 'text' field")
            return self.text(text, marks)
        node_type = self.node_type(data["type"])
        content = tuple(self.node_from_json(child) for child in _list_from_json(data, "content"))
        if node_type.inline_content:
            content = normalize_inline(content)
        node = node_type.create(_attrs_from_json(data), content, marks)
        node_type.check_content(node.content)
        return node

    def check(self, doc: Node) -> None:
        """Raise ``ContentError`` if ``doc`` is not a valid document for this schema."""
        if doc.type != self.top_node_type:
            raise ContentError(
                f"Document root must be {self.top_node_type.name!r}, got {doc.type.name!r}"
            )
        doc.check()
