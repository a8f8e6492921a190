"""Document converters for JSON, YAML and plain text."""
from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from docweave.core.errors import ContentError, ConversionError
from docweave.extensions.base import Category, Converter, Extension
from docweave.extensions.registry import extension_registry
from docweave.model.nodes import Node
from docweave.model.schema import Schema
from docweave.model.serializer import DocumentSerializer, plain_text

if TYPE_CHECKING:
    from docweave.core.editor import CoreEditor

JSON_MIME = "application/json"
YAML_MIME = "application/x-yaml"
TEXT_MIME = "text/plain"


def _decode(data: bytes | str) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ConversionError(f"Document is not valid UTF-8: {exc}") from exc


class JsonConverter:
    def to_doc(self, data: bytes, schema: Schema) -> Node:
        return DocumentSerializer(schema).from_json(_decode(data))

    def from_doc(self, doc: Node, schema: Schema) -> bytes:
        return DocumentSerializer(schema).to_json(doc).encode("utf-8")


class YamlConverter:
    def to_doc(self, data: bytes, schema: Schema) -> Node:
        return DocumentSerializer(schema).from_yaml(_decode(data))

    def from_doc(self, doc: Node, schema: Schema) -> bytes:
        return DocumentSerializer(schema).to_yaml(doc).encode("utf-8")


class PlainTextConverter:
    """One default textblock per line; marks and block types are dropped on export."""

    def to_doc(self, data: bytes, schema: Schema) -> Node:
        block_type = schema.default_textblock_type()
        if block_type is None:
            raise ConversionError("Schema has no textblock type to hold plain text")
        blocks = [
            block_type.create(None, (schema.text(line),) if line else ())
            for line in _decode(data).splitlines() or [""]
        ]
        try:
            return schema.top_node_type.create_checked(None, blocks)
        except ContentError as exc:
            raise ConversionError(f"Plain text does not fit the schema: {exc}") from exc

    def from_doc(self, doc: Node, schema: Schema) -> bytes:
        return (plain_text(doc) + "\n").encode("utf-8")


@extension_registry.register()
class ExtensionFormats(Extension):
    name = "formats"
    category = Category.BEHAVIOR

    def provide_converters(self, editor: "CoreEditor", schema: Schema) -> Mapping[str, Converter]:
        return {
            JSON_MIME: JsonConverter(),
            YAML_MIME: YamlConverter(),
            TEXT_MIME: PlainTextConverter(),
        }


__all__ = [
    "ExtensionFormats",
    "JsonConverter",
    "YamlConverter",
    "PlainTextConverter",
    "JSON_MIME",
    "YAML_MIME",
    "TEXT_MIME",
]
