"""Extension descriptors and capability protocols.

An extension is a small immutable value: a unique ``name``, a
``category``, the names (or nested instances) it ``requires`` and a
read-only ``config`` mapping.  Everything an extension contributes is
optional and discovered by capability: the core checks
``isinstance(ext, ProvidesCommands)`` and friends instead of calling
no-op defaults on a base class.

Example
-------
::

    from docweave.extensions.base import Category, Extension
    from docweave.model.schema import MarkSpec

    class Underline(Extension):
        name = "underline"
        category = Category.MARK

        def provide_mark_type(self) -> MarkSpec:
            return MarkSpec("underline")

        def provide_command_factories(self, editor, type_):
            from docweave.commands import toggle_mark
            return {"toggle_underline": lambda: toggle_mark(type_)}

        def provide_key_bindings(self, editor):
            return {"Mod-u": "toggle_underline"}
"""
from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Mapping,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)

if TYPE_CHECKING:
    from docweave.core.assembler import SchemaDraft
    from docweave.core.editor import CoreEditor
    from docweave.core.state import Behavior, Command
    from docweave.extensions.builtin.input_rules import InputRule
    from docweave.model.nodes import Node
    from docweave.model.schema import MarkSpec, MarkType, NodeSpec, NodeType, Schema


class Category(str, Enum):
    """What an extension primarily contributes."""

    NODE = "node"
    MARK = "mark"
    BEHAVIOR = "behavior"


Requirement = Union[str, "Extension"]


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _hashable(value: Any) -> Any:
    if isinstance(value, Mapping):
        return tuple(sorted((k, _hashable(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple)):
        return tuple(_hashable(v) for v in value)
    return value


class Extension:
    """Base class for extension descriptors.

    Subclasses normally set ``name``, ``category``, ``requires`` and
    ``conflicts`` as class attributes; the constructor keywords exist so
    one-off descriptors can be built without a subclass.

    Parameters
    ----------
    config:
        Extension-specific settings.  Stored as a read-only mapping.
    name:
        Overrides the class-level ``name``.
    category:
        Overrides the class-level ``category``.
    requires:
        Overrides the class-level ``requires``.

    Raises
    ------
    ValueError
        If the extension ends up without a name.
    """

    name: str = ""
    category: Category = Category.BEHAVIOR
    requires: Sequence[Requirement] = ()
    conflicts: Sequence[str] = ()
    config: Mapping[str, Any]

    def __init__(
        self,
        config: Mapping[str, Any] | None = None,
        *,
        name: str | None = None,
        category: Category | None = None,
        requires: Sequence[Requirement] | None = None,
    ) -> None:
        values = {
            "name": name if name is not None else type(self).name,
            "category": Category(category) if category is not None else type(self).category,
            "requires": tuple(requires if requires is not None else type(self).requires),
            "conflicts": tuple(type(self).conflicts),
            "config": _freeze(dict(config or {})),
        }
        if not values["name"]:
            raise ValueError(f"{type(self).__name__} has no extension name")
        self.__dict__.update(values)

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError(f"Extension {self.name!r} is immutable; cannot set {key!r}")

    def __delattr__(self, key: str) -> None:
        raise AttributeError(f"Extension {self.name!r} is immutable; cannot delete {key!r}")

    def __repr__(self) -> str:
        config = f", config={dict(self.config)!r}" if self.config else ""
        return f"{type(self).__name__}(name={self.name!r}, category={self.category.value}{config})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Extension):
            return NotImplemented
        return (
            self.name == other.name
            and self.category == other.category
            and _hashable(self.config) == _hashable(other.config)
        )

    def __hash__(self) -> int:
        return hash((self.name, self.category, _hashable(self.config)))

    def required_names(self) -> list[str]:
        """Names of every requirement, whether given as a name or an instance."""
        return [r if isinstance(r, str) else r.name for r in self.requires]


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------

CommandFactory = Callable[..., "Command"]


@runtime_checkable
class ProvidesNodeType(Protocol):
    def provide_node_type(self) -> "NodeSpec": ...


@runtime_checkable
class ProvidesMarkType(Protocol):
    def provide_mark_type(self) -> "MarkSpec": ...


@runtime_checkable
class ProvidesCommands(Protocol):
    def provide_command_factories(
        self, editor: "CoreEditor", type_: "NodeType | MarkType | None"
    ) -> Mapping[str, CommandFactory]: ...


@runtime_checkable
class ProvidesKeyBindings(Protocol):
    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]: ...


@runtime_checkable
class ProvidesBehaviors(Protocol):
    def provide_behaviors(self, editor: "CoreEditor", schema: "Schema") -> Sequence["Behavior"]: ...


@runtime_checkable
class ProvidesInputRules(Protocol):
    def provide_input_rules(self, editor: "CoreEditor", schema: "Schema") -> Sequence["InputRule"]: ...


@runtime_checkable
class ConfiguresSchema(Protocol):
    def configure_schema(self, draft: "SchemaDraft") -> None: ...


@runtime_checkable
class Converter(Protocol):
    """Reads and writes documents in one mime type."""

    def to_doc(self, data: bytes, schema: "Schema") -> "Node": ...

    def from_doc(self, doc: "Node", schema: "Schema") -> bytes: ...


@runtime_checkable
class ProvidesConverters(Protocol):
    def provide_converters(self, editor: "CoreEditor", schema: "Schema") -> Mapping[str, Converter]: ...
