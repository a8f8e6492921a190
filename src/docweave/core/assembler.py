"""Schema assembly.

``assemble_schema`` collects the node and mark descriptors contributed
by a ``ResolvedExtensionSet``, lets schema-configuring extensions adjust
the draft, validates it with the rules in ``docweave.validator.rules``
and compiles it into a read-only ``Schema``.

Usage
-----
::

    from docweave.core.assembler import assemble_schema
    from docweave.core.resolver import resolve_extensions

    schema = assemble_schema(resolve_extensions(extensions))
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from docweave.core.errors import SchemaError
from docweave.core.resolver import ResolvedExtensionSet
from docweave.extensions.base import (
    Category,
    ConfiguresSchema,
    ProvidesMarkType,
    ProvidesNodeType,
)
from docweave.model.schema import AttributeSpec, MarkSpec, NodeSpec, Schema
from docweave.validator.diagnostics import Diagnostic
from docweave.validator.rules import rule_root_node
from docweave.validator.validator import SchemaValidator

logger = logging.getLogger(__name__)


@dataclass
class Contribution:
    """A type descriptor together with the extension that contributed it."""

    source: str
    spec: Union[NodeSpec, MarkSpec]


@dataclass
class SchemaDraft:
    """The mutable, not-yet-validated collection of type descriptors."""

    nodes: list[Contribution] = field(default_factory=list)
    marks: list[Contribution] = field(default_factory=list)

    def node_names(self) -> set[str]:
        return {c.spec.name for c in self.nodes}

    def mark_names(self) -> set[str]:
        return {c.spec.name for c in self.marks}

    def node_groups(self) -> set[str]:
        return {g for c in self.nodes for g in c.spec.group.split()}

    def mark_groups(self) -> set[str]:
        return {g for c in self.marks for g in c.spec.group.split()}

    def root_name(self) -> str | None:
        """Name of the root node: the first flagged node, else ``doc`` if present."""
        for contribution in self.nodes:
            if contribution.spec.top_node:
                return contribution.spec.name
        return "doc" if "doc" in self.node_names() else None

    def _find(self, contributions: list[Contribution], name: str) -> Contribution:
        for contribution in contributions:
            if contribution.spec.name == name:
                return contribution
        raise KeyError(name)

    def node(self, name: str) -> NodeSpec:
        return self._find(self.nodes, name).spec  # type: ignore[return-value]

    def mark(self, name: str) -> MarkSpec:
        return self._find(self.marks, name).spec  # type: ignore[return-value]

    def update_node(self, name: str, **changes: Any) -> None:
        """Replace fields of the node descriptor named ``name``."""
        contribution = self._find(self.nodes, name)
        contribution.spec = dataclasses.replace(contribution.spec, **changes)

    def update_mark(self, name: str, **changes: Any) -> None:
        """Replace fields of the mark descriptor named ``name``."""
        contribution = self._find(self.marks, name)
        contribution.spec = dataclasses.replace(contribution.spec, **changes)

    def add_node_attribute(self, name: str, attr: str, spec: AttributeSpec) -> None:
        """Declare an extra attribute on an existing node type."""
        attrs = dict(self.node(name).attrs)
        attrs[attr] = spec
        self.update_node(name, attrs=attrs)


def build_draft(resolved: ResolvedExtensionSet) -> SchemaDraft:
    """Collect descriptors in resolution order and apply schema configurators."""
    draft = SchemaDraft()
    for ext in resolved:
        if ext.category is Category.NODE and isinstance(ext, ProvidesNodeType):
            draft.nodes.append(Contribution(ext.name, ext.provide_node_type()))
        elif ext.category is Category.MARK and isinstance(ext, ProvidesMarkType):
            draft.marks.append(Contribution(ext.name, ext.provide_mark_type()))
    for ext in resolved:
        if isinstance(ext, ConfiguresSchema):
            ext.configure_schema(draft)
            logger.debug("Extension %r configured the schema draft", ext.name)
    return draft


def check_draft(draft: SchemaDraft, strict: bool = False) -> list[Diagnostic]:
    """Run the assembly rules and return every diagnostic."""
    return SchemaValidator(strict=strict).validate(draft)


def assemble_schema(resolved: ResolvedExtensionSet, strict: bool = False) -> Schema:
    """Build the document schema for ``resolved``.

    Parameters
    ----------
    resolved:
        Output of ``resolve_extensions``.
    strict:
        Promote rule warnings to errors.

    Returns
    -------
    Schema
        A read-only schema; mark rank follows resolution order.

    Raises
    ------
    SchemaError
        If any rule reports an error.  ``SchemaError.diagnostics``
        carries every error found, not only the first.
    """
    draft = build_draft(resolved)
    diagnostics = check_draft(draft, strict=strict)
    for diagnostic in diagnostics:
        if not diagnostic.is_error:
            logger.warning("%s", diagnostic)
    errors = [d for d in diagnostics if d.is_error]
    if errors:
        raise SchemaError(errors)
    root = draft.root_name()
    if root is None:
        raise SchemaError(rule_root_node(draft))
    schema = Schema(
        [c.spec for c in draft.nodes],  # type: ignore[misc]
        [c.spec for c in draft.marks],  # type: ignore[misc]
        root,
    )
    logger.debug("Assembled schema: %d node types, %d mark types", len(schema.nodes), len(schema.marks))
    return schema
