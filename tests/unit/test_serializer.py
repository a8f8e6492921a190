"""Unit tests for docweave.model.serializer and the built-in format converters."""
from __future__ import annotations

import json
from typing import Any

import pytest
import yaml

from docweave.core.errors import ContentError, ConversionError
from docweave.extensions.builtin.formats import JsonConverter, PlainTextConverter, YamlConverter
from docweave.model.nodes import Node
from docweave.model.schema import Schema
from docweave.model.serializer import DocumentSerializer, plain_text, tree_string


@pytest.fixture()
def serializer(schema: Schema) -> DocumentSerializer:
    return DocumentSerializer(schema)


@pytest.fixture()
def rich_doc(schema: Schema) -> Node:
    """A heading plus a paragraph with an italic run and a hard break."""
    return schema.node("doc", None, [
        schema.node("heading", {"level": 2}, [schema.text("Title")]),
        schema.node("paragraph", None, [
            schema.text("plain "),
            schema.text("italic", [schema.mark("em")]),
            schema.node("hard_break"),
            schema.text("next line"),
        ]),
    ])


class TestDocumentSerializer:
    def test_to_dict_omits_empty_fields(self, serializer: DocumentSerializer, schema: Schema, hello_doc: dict[str, Any]) -> None:
        doc = serializer.from_dict(hello_doc)
        assert serializer.to_dict(doc) == hello_doc

    def test_to_dict_attrs_and_marks(self, serializer: DocumentSerializer, rich_doc: Node) -> None:
        data = serializer.to_dict(rich_doc)
        assert data["content"][0] == {
            "type": "heading",
            "attrs": {"level": 2},
            "content": [{"type": "text", "text": "Title"}],
        }
        assert data["content"][1]["content"][1] == {
            "type": "text",
            "marks": [{"type": "em"}],
            "text": "italic",
        }
        assert data["content"][1]["content"][2] == {"type": "hard_break"}

    def test_json_round_trip(self, serializer: DocumentSerializer, rich_doc: Node) -> None:
        text = serializer.to_json(rich_doc)
        assert json.loads(text)["type"] == "doc"
        assert serializer.from_json(text) == rich_doc

    def test_yaml_round_trip(self, serializer: DocumentSerializer, rich_doc: Node) -> None:
        text = serializer.to_yaml(rich_doc)
        assert yaml.safe_load(text)["content"][0]["attrs"] == {"level": 2}
        assert serializer.from_yaml(text) == rich_doc

    def test_invalid_json(self, serializer: DocumentSerializer) -> None:
        with pytest.raises(ConversionError, match="Invalid JSON"):
            serializer.from_json("{not json")

    def test_invalid_yaml(self, serializer: DocumentSerializer) -> None:
        with pytest.raises(ConversionError, match="Invalid YAML"):
            serializer.from_yaml("type: [unclosed")

    def test_from_dict_checks_root(self, serializer: DocumentSerializer) -> None:
        with pytest.raises(ContentError, match="root"):
            serializer.from_dict({"type": "paragraph"})


class TestTreeString:
    def test_positions(self, serializer: DocumentSerializer, hello_doc: dict[str, Any]) -> None:
        lines = tree_string(serializer.from_dict(hello_doc)).splitlines()
        assert lines == [
            "- [paragraph] pos: 0, size: 13, end: 13, content: 11",
            "  - [text] pos: 1, size: 11, end: 12",
            '      "Hello world"',
        ]

    def test_marks_and_long_text(self, schema: Schema) -> None:
        doc = schema.node("doc", None, [
            schema.node("paragraph", None, [schema.text("a" * 30, [schema.mark("strong")])]),
        ])
        lines = tree_string(doc).splitlines()
        assert lines[2] == "      (strong)"
        assert lines[3] == '      "' + "a" * 20 + '..."'


class TestPlainText:
    def test_blocks_and_breaks(self, rich_doc: Node) -> None:
        assert plain_text(rich_doc) == "Title\nplain italic\nnext line"


class TestConverters:
    def test_json_converter(self, schema: Schema, rich_doc: Node) -> None:
        converter = JsonConverter()
        data = converter.from_doc(rich_doc, schema)
        assert isinstance(data, bytes)
        assert converter.to_doc(data, schema) == rich_doc

    def test_yaml_converter(self, schema: Schema, rich_doc: Node) -> None:
        converter = YamlConverter()
        assert converter.to_doc(converter.from_doc(rich_doc, schema), schema) == rich_doc

    def test_plain_text_import(self, schema: Schema) -> None:
        doc = PlainTextConverter().to_doc(b"first\n\nthird\n", schema)
        assert [(b.type.name, b.text_content) for b in doc.content] == [
            ("paragraph", "first"),
            ("paragraph", ""),
            ("paragraph", "third"),
        ]

    def test_plain_text_empty_input(self, schema: Schema) -> None:
        doc = PlainTextConverter().to_doc(b"", schema)
        assert doc == schema.empty_document()

    def test_plain_text_export(self, schema: Schema, rich_doc: Node) -> None:
        assert PlainTextConverter().from_doc(rich_doc, schema) == b"Title\nplain italic\nnext line\n"

    def test_invalid_utf8(self, schema: Schema) -> None:
        with pytest.raises(ConversionError, match="UTF-8"):
            JsonConverter().to_doc(b"\xff\xfe", schema)
