"""Shared test fixtures for docweave.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

from typing import Any

import pytest

from docweave.core.editor import CoreEditor
from docweave.extensions.builtin import BasicEditor
from docweave.model.schema import Schema


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "docweave"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def editor() -> CoreEditor:
    """A basic-editor kit instance with PC key semantics and an empty document."""
    return CoreEditor([BasicEditor()], platform="pc")


@pytest.fixture()
def schema(editor: CoreEditor) -> Schema:
    return editor.schema


@pytest.fixture()
def hello_doc() -> dict[str, Any]:
    """``doc(paragraph("Hello world"))``; text spans positions 1..12."""
    return {
        "type": "doc",
        "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Hello world"}]}],
    }


@pytest.fixture()
def hello_editor(hello_doc: dict[str, Any]) -> CoreEditor:
    return CoreEditor([BasicEditor()], content=hello_doc, platform="pc")
