"""docweave: extensible rich-document editor core.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import docweave

    editor = docweave.create_editor()
    editor.chain().insert_text("Hello world").select_text(2, 4).toggle_italic().run()

    # Serialize and inspect
    editor.get_json()
    print(editor.get_document_as_tree())

    # Validate an external document against the editor's schema
    diagnostics = docweave.validate(data, editor.schema)

    docweave.__version__
    '0.1.0'
"""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Mapping

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from docweave.core.editor import CoreEditor
    from docweave.extensions.base import Extension
    from docweave.model.schema import Schema
    from docweave.validator.diagnostics import Diagnostic


def create_editor(
    extensions: Iterable["Extension"] | None = None,
    content: Mapping[str, Any] | None = None,
    platform: str | None = None,
) -> "CoreEditor":
    """Create a ``CoreEditor``.

    Parameters
    ----------
    extensions:
        Extension instances in priority order.  Defaults to the
        ``basic-editor`` kit.
    content:
        Initial document as a JSON-like mapping.
    platform:
        ``"mac"`` or ``"pc"``; defaults to the running platform.

    Raises
    ------
    docweave.core.errors.ConfigurationError
        If the extensions cannot be resolved or the schema is invalid.
    """
    from docweave.core.editor import CoreEditor

    if extensions is None:
        from docweave.extensions.builtin import BasicEditor

        extensions = [BasicEditor()]
    return CoreEditor(extensions, content=content, platform=platform)


def load_editor(config_path: str | Path) -> "CoreEditor":
    """Create a ``CoreEditor`` from a YAML options file.

    Raises
    ------
    docweave.core.errors.ConfigFileError
        If the file is unreadable, malformed, or names unknown extensions.
    """
    from docweave.config import load_options
    from docweave.core.editor import CoreEditor

    return CoreEditor.from_options(load_options(config_path))


def validate(data: Any, schema: "Schema") -> list["Diagnostic"]:
    """Check JSON-like document ``data`` against ``schema``.

    Returns
    -------
    list[Diagnostic]
        Every problem found; empty when the document fits.
    """
    from docweave.validator.validator import validate_document

    return validate_document(data, schema)


__all__ = [
    "__version__",
    "create_editor",
    "load_editor",
    "validate",
]
