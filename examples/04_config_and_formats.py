#!/usr/bin/env python3
"""Example: YAML configuration and format converters

Builds an editor from a YAML options file, loads plain text through the
``text/plain`` converter, and saves the document as YAML.

Usage:
    python examples/04_config_and_formats.py

Requirements:
    pip install docweave
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import docweave

CONFIG = """\
platform: pc
extensions:
  - basic-editor
  - name: history
    config: {depth: 5}
"""


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "editor.yaml"
        path.write_text(CONFIG, encoding="utf-8")
        editor = docweave.load_editor(path)

    editor.on("doc:loaded", lambda ed: print("Document loaded"))
    result = editor.load_document("text/plain", b"First line\nSecond line\n")
    print(f"Load ok: {result.ok}")

    failed = editor.load_document("application/json", b"{not json")
    print(f"Bad JSON rejected: {failed.error}")

    print(editor.save_document("application/x-yaml").decode("utf-8"))


if __name__ == "__main__":
    main()
