#!/usr/bin/env python3
"""Example: Document validation

Checks JSON-like documents against an assembled schema and prints every
diagnostic, with its code and location path.

Usage:
    python examples/03_validation.py

Requirements:
    pip install docweave
"""
from __future__ import annotations

import docweave

VALID_DOC = {
    "type": "doc",
    "content": [
        {"type": "heading", "attrs": {"level": 2}, "content": [{"type": "text", "text": "Agenda"}]},
        {"type": "paragraph", "content": [{"type": "text", "text": "Ship it.", "marks": [{"type": "em"}]}]},
    ],
}

INVALID_DOC = {
    "type": "doc",
    "content": [
        {"type": "heading", "attrs": {"level": 9}, "content": [{"type": "text", "text": "Too deep"}]},
        {"type": "table"},
        {"type": "paragraph", "content": [{"type": "text", "text": "x", "marks": [{"type": "blink"}]}]},
    ],
}


def print_diagnostics(label: str, diagnostics: list[object]) -> None:
    print(f"\n{label} ({len(diagnostics)} diagnostics):")
    if not diagnostics:
        print("  No issues found.")
        return
    for diag in diagnostics:
        print(f"  {diag}")


def main() -> None:
    editor = docweave.create_editor(platform="pc")
    print_diagnostics("Valid document", docweave.validate(VALID_DOC, editor.schema))
    print_diagnostics("Invalid document", docweave.validate(INVALID_DOC, editor.schema))


if __name__ == "__main__":
    main()
