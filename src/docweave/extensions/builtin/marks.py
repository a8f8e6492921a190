"""Built-in mark extensions: emphasis, strong and inline code."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from docweave.commands import toggle_mark
from docweave.extensions.base import Category, CommandFactory, Extension
from docweave.extensions.registry import extension_registry
from docweave.model.schema import MarkSpec

if TYPE_CHECKING:
    from docweave.core.editor import CoreEditor


@extension_registry.register()
class MarkItalic(Extension):
    name = "em"
    category = Category.MARK

    def provide_mark_type(self) -> MarkSpec:
        return MarkSpec("em", hooks={"to_dom": ("em", 0), "parse_dom": ({"tag": "i"}, {"tag": "em"})})

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        return {"toggle_italic": lambda: toggle_mark(type_)}

    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]:
        return {"Mod-i": "toggle_italic"}


@extension_registry.register()
class MarkStrong(Extension):
    name = "strong"
    category = Category.MARK

    def provide_mark_type(self) -> MarkSpec:
        return MarkSpec("strong", hooks={"to_dom": ("strong", 0), "parse_dom": ({"tag": "b"}, {"tag": "strong"})})

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        return {"toggle_strong": lambda: toggle_mark(type_)}

    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]:
        return {"Mod-b": "toggle_strong"}


@extension_registry.register()
class MarkCode(Extension):
    """Inline code.  Excludes every other mark and does not extend while typing."""

    name = "code"
    category = Category.MARK

    def provide_mark_type(self) -> MarkSpec:
        return MarkSpec("code", excludes="_", inclusive=False, hooks={"to_dom": ("code", 0)})

    def provide_command_factories(self, editor: "CoreEditor", type_: Any) -> Mapping[str, CommandFactory]:
        return {"toggle_code": lambda: toggle_mark(type_)}

    def provide_key_bindings(self, editor: "CoreEditor") -> Mapping[str, str]:
        return {"Mod-e": "toggle_code"}
