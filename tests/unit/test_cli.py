"""Unit tests for the docweave command-line interface."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml
from click.testing import CliRunner

from docweave.cli.main import cli


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def hello_json(tmp_path: Path, hello_doc: dict[str, Any]) -> Path:
    path = tmp_path / "hello.json"
    path.write_text(json.dumps(hello_doc), encoding="utf-8")
    return path


@pytest.fixture()
def pc_config(tmp_path: Path) -> Path:
    path = tmp_path / "editor.yaml"
    path.write_text("platform: pc\nextensions: [basic-editor]\n", encoding="utf-8")
    return path


class TestInfoCommands:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "docweave" in result.output
        assert "v0.1.0" in result.output

    def test_plugins(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["plugins"])
        assert result.exit_code == 0
        assert "Registered extensions" in result.output
        assert "history" in result.output

    def test_extensions(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["extensions"])
        assert result.exit_code == 0
        assert "Resolved extensions" in result.output
        assert "base-keymap" in result.output

    def test_schema(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["schema"])
        assert result.exit_code == 0
        assert "Node types (root: doc)" in result.output
        assert "hard_break" in result.output
        assert "Mark types" in result.output

    def test_keymap_for_mac(self, runner: CliRunner, pc_config: Path) -> None:
        result = runner.invoke(cli, ["keymap", "--config", str(pc_config), "--platform", "mac"])
        assert result.exit_code == 0
        assert "Keymap (mac)" in result.output
        assert "Meta-z" in result.output

    def test_keymap_from_config(self, runner: CliRunner, pc_config: Path) -> None:
        result = runner.invoke(cli, ["keymap", "-c", str(pc_config)])
        assert result.exit_code == 0
        assert "Ctrl-b" in result.output

    def test_bad_config(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("extensions: [tables]\n", encoding="utf-8")
        result = runner.invoke(cli, ["schema", "--config", str(path)])
        assert result.exit_code == 1
        assert "Configuration error" in result.output


class TestValidateCommand:
    def test_valid_document(self, runner: CliRunner, hello_json: Path) -> None:
        result = runner.invoke(cli, ["validate", str(hello_json)])
        assert result.exit_code == 0
        assert "OK" in result.output

    def test_invalid_document(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({"type": "doc", "content": [{"type": "table"}]}), encoding="utf-8")
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "DW102" in result.output
        assert "Summary" in result.output

    def test_parse_error(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{broken", encoding="utf-8")
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Parse error" in result.output

    def test_missing_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["validate", str(tmp_path / "absent.json")])
        assert result.exit_code == 1
        assert "File not found" in result.output


class TestConvertCommand:
    def test_text_to_json_stdout(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("first\nsecond\n", encoding="utf-8")
        result = runner.invoke(cli, ["convert", str(path)])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [block["content"][0]["text"] for block in data["content"]] == ["first", "second"]

    def test_json_to_yaml_file(self, runner: CliRunner, hello_json: Path, tmp_path: Path, hello_doc: dict[str, Any]) -> None:
        out = tmp_path / "hello.yaml"
        result = runner.invoke(cli, ["convert", str(hello_json), "--to", "application/x-yaml", "-o", str(out)])
        assert result.exit_code == 0
        assert yaml.safe_load(out.read_text(encoding="utf-8")) == hello_doc

    def test_unknown_suffix(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "doc.html"
        path.write_text("<p>hi</p>", encoding="utf-8")
        result = runner.invoke(cli, ["convert", str(path)])
        assert result.exit_code == 1
        assert "--from" in result.output

    def test_unknown_target(self, runner: CliRunner, hello_json: Path) -> None:
        result = runner.invoke(cli, ["convert", str(hello_json), "--to", "application/pdf"])
        assert result.exit_code == 1
        assert "No converter" in result.output

    def test_load_failure(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text('{"type": "doc", "content": []}', encoding="utf-8")
        result = runner.invoke(cli, ["convert", str(path), "--to", "text/plain"])
        assert result.exit_code == 1
        assert "Cannot load" in result.output


class TestTreeCommand:
    def test_tree(self, runner: CliRunner, hello_json: Path) -> None:
        result = runner.invoke(cli, ["tree", str(hello_json)])
        assert result.exit_code == 0
        assert "[paragraph] pos: 0" in result.output
        assert "Hello world" in result.output
