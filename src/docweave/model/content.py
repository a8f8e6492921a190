"""Node content expressions.

A node type declares which children it accepts with a small grammar::

    expr   ::= seq ( '|' seq )*
    seq    ::= atom+
    atom   ::= ( NAME | '(' expr ')' ) quant?
    quant  ::= '*' | '+' | '?' | '{' INT '}' | '{' INT ',' '}' | '{' INT ',' INT '}'

``NAME`` refers either to a node type or to a group declared by node
types (``group="block"``).  Examples: ``"block+"``, ``"inline*"``,
``"heading paragraph*"``, ``"(paragraph | heading){1,3}"``.

Expressions are parsed once into a tiny AST (used by the schema rules to
check references) and then compiled into a regular expression over one
private-use character per node type, so matching a child sequence is a
single ``re.fullmatch`` call.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Final, Iterable, Sequence, Union

from docweave.core.errors import ContentError, ContentExpressionError

if TYPE_CHECKING:
    from docweave.model.schema import NodeType

_TOKEN_RE: Final[re.Pattern[str]] = re.compile(
    r"\s*(?:(?P<name>[A-Za-z_][\w-]*)|(?P<range>\{\s*\d+\s*(?:,\s*\d*\s*)?\})|(?P<punct>[()|*+?]))"
)
_RANGE_RE: Final[re.Pattern[str]] = re.compile(r"\{\s*(\d+)\s*(,)?\s*(\d*)\s*\}")

# First code point used to encode node types; the private-use area
# cannot collide with regex syntax.
_TOKEN_BASE: Final[int] = 0xE000


# ---------------------------------------------------------------------------
# AST
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NameRef:
    """A reference to a node type or group name."""

    name: str
    offset: int


@dataclass(frozen=True, slots=True)
class Seq:
    items: tuple["ContentExpr", ...]


@dataclass(frozen=True, slots=True)
class Choice:
    options: tuple["ContentExpr", ...]


@dataclass(frozen=True, slots=True)
class Repeat:
    """``expr`` repeated between ``min`` and ``max`` times (``max=None``: unbounded)."""

    expr: "ContentExpr"
    min: int
    max: int | None


ContentExpr = Union[NameRef, Seq, Choice, Repeat]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    value: str
    offset: int


def _tokenize(source: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(source):
        if source[pos:].strip() == "":
            break
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            offset = pos + len(source[pos:]) - len(source[pos:].lstrip())
            raise ContentExpressionError(
                f"unexpected character {source[offset]!r}", source, offset
            )
        kind = match.lastgroup or "punct"
        tokens.append(_Token(kind, match.group(kind), match.start(kind)))
        pos = match.end()
    return tokens


class _Parser:
    __slots__ = ("_source", "_tokens", "_pos")

    def __init__(self, source: str) -> None:
        self._source = source
        self._tokens = _tokenize(source)
        self._pos = 0

    def _peek(self) -> _Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _error(self, message: str) -> ContentExpressionError:
        token = self._peek()
        offset = token.offset if token is not None else len(self._source)
        return ContentExpressionError(message, self._source, offset)

    def parse(self) -> ContentExpr:
        expr = self._parse_choice()
        if self._peek() is not None:
            raise self._error(f"unexpected {self._peek().value!r}")  # type: ignore[union-attr]
        return expr

    def _parse_choice(self) -> ContentExpr:
        options = [self._parse_seq()]
        while (token := self._peek()) is not None and token.value == "|":
            self._pos += 1
            options.append(self._parse_seq())
        return options[0] if len(options) == 1 else Choice(tuple(options))

    def _parse_seq(self) -> ContentExpr:
        items: list[ContentExpr] = []
        while (token := self._peek()) is not None and token.value not in (")", "|"):
            items.append(self._parse_atom())
        if not items:
            raise self._error("expected a node name or '('")
        return items[0] if len(items) == 1 else Seq(tuple(items))

    def _parse_atom(self) -> ContentExpr:
        token = self._peek()
        assert token is not None
        expr: ContentExpr
        if token.value == "(":
            self._pos += 1
            expr = self._parse_choice()
            closing = self._peek()
            if closing is None or closing.value != ")":
                raise self._error("expected ')'")
            self._pos += 1
        elif token.kind == "name":
            self._pos += 1
            expr = NameRef(token.value, token.offset)
        else:
            raise self._error(f"unexpected {token.value!r}")
        return self._parse_quantifier(expr)

    def _parse_quantifier(self, expr: ContentExpr) -> ContentExpr:
        token = self._peek()
        if token is None:
            return expr
        if token.value == "*":
            self._pos += 1
            return Repeat(expr, 0, None)
        if token.value == "+":
            self._pos += 1
            return Repeat(expr, 1, None)
        if token.value == "?":
            self._pos += 1
            return Repeat(expr, 0, 1)
        if token.kind == "range":
            self._pos += 1
            match = _RANGE_RE.fullmatch(token.value)
            assert match is not None
            low = int(match.group(1))
            if match.group(2) is None:
                high: int | None = low
            else:
                high = int(match.group(3)) if match.group(3) else None
            if high is not None and high < low:
                raise ContentExpressionError(
                    f"range maximum {high} is below minimum {low}", self._source, token.offset
                )
            return Repeat(expr, low, high)
        return expr


def parse_content_expression(source: str) -> ContentExpr | None:
    """Parse ``source`` into a content AST.

    Returns ``None`` for an empty expression, which marks a leaf node.

    Raises
    ------
    ContentExpressionError
        If the expression is malformed.
    """
    if not source.strip():
        return None
    return _Parser(source).parse()


def referenced_names(expr: ContentExpr | None) -> list[NameRef]:
    """Return every ``NameRef`` in ``expr`` in source order."""
    if expr is None:
        return []
    if isinstance(expr, NameRef):
        return [expr]
    if isinstance(expr, Repeat):
        return referenced_names(expr.expr)
    children = expr.items if isinstance(expr, Seq) else expr.options
    return [ref for child in children for ref in referenced_names(child)]


# ---------------------------------------------------------------------------
# Compiled matcher
# ---------------------------------------------------------------------------


def type_token(node_type: "NodeType") -> str:
    """Return the single character that encodes ``node_type`` in a match string."""
    return chr(_TOKEN_BASE + node_type.index)


class ContentMatch:
    """Compiled content expression for one node type.

    Parameters
    ----------
    source:
        The original expression text.
    expr:
        Parsed AST, or ``None`` for leaf nodes.
    lookup:
        Maps a name to the node types it stands for (a single type, or
        every member of a group), in schema order.
    """

    def __init__(
        self,
        source: str,
        expr: ContentExpr | None,
        lookup: Callable[[str], Sequence["NodeType"]],
    ) -> None:
        self.source = source
        self.expr = expr
        self._lookup = lookup
        self._pattern = re.compile(self._compile(expr)) if expr is not None else None

    def __repr__(self) -> str:
        return f"ContentMatch({self.source!r})"

    @property
    def is_empty(self) -> bool:
        """True when the node accepts no content at all (a leaf)."""
        return self.expr is None

    def _types_for(self, ref: NameRef) -> Sequence["NodeType"]:
        types = self._lookup(ref.name)
        if not types:
            raise ContentExpressionError(
                f"no node type or group named {ref.name!r}", self.source, ref.offset
            )
        return types

    def _compile(self, expr: ContentExpr) -> str:
        if isinstance(expr, NameRef):
            chars = "".join(type_token(t) for t in self._types_for(expr))
            return f"[{chars}]"
        if isinstance(expr, Seq):
            return "".join(self._compile(item) for item in expr.items)
        if isinstance(expr, Choice):
            return "(?:" + "|".join(self._compile(option) for option in expr.options) + ")"
        inner = f"(?:{self._compile(expr.expr)})"
        if expr.max is None:
            if expr.min == 0:
                return inner + "*"
            if expr.min == 1:
                return inner + "+"
            return inner + f"{{{expr.min},}}"
        if (expr.min, expr.max) == (0, 1):
            return inner + "?"
        return inner + f"{{{expr.min},{expr.max}}}"

    def types(self) -> list["NodeType"]:
        """All node types the expression mentions, deduplicated, in order."""
        seen: dict[str, "NodeType"] = {}
        for ref in referenced_names(self.expr):
            for node_type in self._types_for(ref):
                seen.setdefault(node_type.name, node_type)
        return list(seen.values())

    def matches(self, types: Iterable["NodeType"]) -> bool:
        """Return True if the full child-type sequence is accepted."""
        encoded = "".join(type_token(t) for t in types)
        if self._pattern is None:
            return not encoded
        return self._pattern.fullmatch(encoded) is not None

    def default_type(self) -> "NodeType | None":
        """Pick the type used to fill required content.

        The first mentioned textblock without required attributes wins;
        otherwise the first mentioned type that can be created empty.
        """
        candidates = [t for t in self.types() if not t.has_required_attrs and not t.is_text]
        for node_type in candidates:
            if node_type.is_textblock:
                return node_type
        return candidates[0] if candidates else None

    def fill(self) -> tuple:
        """Return the smallest default content that satisfies this expression.

        Raises
        ------
        ContentError
            If no default content can be constructed.
        """
        if self._pattern is None or self.matches(()):
            return ()
        node_type = self.default_type()
        if node_type is not None:
            for count in range(1, 4):
                children = tuple(node_type.create_and_fill() for _ in range(count))
                if self.matches(child.type for child in children):
                    return children
        raise ContentError(f"Cannot create default content for expression {self.source!r}")
