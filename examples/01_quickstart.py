#!/usr/bin/env python3
"""Example: Quickstart — docweave

Minimal working example: build an editor from the basic-editor kit, edit
the document with a command chain, undo it, and serialize the result.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install docweave
"""
from __future__ import annotations

import docweave


def main() -> None:
    print(f"docweave version: {docweave.__version__}")

    # Step 1: Assemble an editor
    editor = docweave.create_editor(platform="pc")
    print(f"Extensions: {', '.join(editor.extensions.names())}")

    # Step 2: Run a chain; every step lands in one transaction
    ok = editor.chain().insert_text("Hello world").select_text(0, 5).toggle_strong().run()
    print(f"Chain applied: {ok}")
    print(editor.get_document_as_tree())

    # Step 3: Key bindings route to the same commands
    editor.handle_key("End")  # unbound: nothing happens
    editor.handle_key("Ctrl-z")
    print(f"After undo: {editor.get_json()}")

    # Step 4: Dry-run a command without changing anything
    print(f"Can toggle italic on a caret: {editor.can().toggle_italic().run()}")


if __name__ == "__main__":
    main()
