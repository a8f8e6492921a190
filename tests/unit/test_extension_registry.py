"""Unit tests for docweave.extensions.registry — ExtensionRegistry, error
types, entry-point loading, and all public methods.
"""
from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest

from docweave.extensions.base import Category, Extension
from docweave.extensions.registry import (
    ExtensionAlreadyRegisteredError,
    ExtensionNotFoundError,
    ExtensionRegistry,
    extension_registry,
)


# ---------------------------------------------------------------------------
# Test fixtures — concrete extension classes
# ---------------------------------------------------------------------------


class Underline(Extension):
    name = "underline"
    category = Category.MARK


class Mention(Extension):
    name = "mention"
    category = Category.NODE


class Nameless(Extension):
    pass


class NotAnExtension:
    """Does NOT subclass Extension — used for error path testing."""
    pass


def _fresh_registry() -> ExtensionRegistry:
    """Return a new empty registry for each test."""
    return ExtensionRegistry()


# ===========================================================================
# Error types
# ===========================================================================


class TestExtensionNotFoundError:
    def test_is_key_error(self) -> None:
        with pytest.raises(KeyError):
            raise ExtensionNotFoundError("ghost", ["a", "b"])

    def test_has_extension_name_attribute(self) -> None:
        assert ExtensionNotFoundError("ghost", []).extension_name == "ghost"

    def test_message_lists_available_names(self) -> None:
        message = str(ExtensionNotFoundError("ghost", ["history", "em"]))
        assert "ghost" in message
        assert "history, em" in message

    def test_message_without_available_names(self) -> None:
        assert "<none>" in str(ExtensionNotFoundError("ghost", []))


class TestExtensionAlreadyRegisteredError:
    def test_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            raise ExtensionAlreadyRegisteredError("dup")

    def test_has_extension_name_attribute(self) -> None:
        assert ExtensionAlreadyRegisteredError("dup").extension_name == "dup"


# ===========================================================================
# Registration
# ===========================================================================


class TestRegister:
    def test_decorator_uses_class_name_attribute(self) -> None:
        registry = _fresh_registry()

        @registry.register()
        class Highlight(Extension):
            name = "highlight"

        assert registry.get("highlight") is Highlight

    def test_decorator_with_explicit_name(self) -> None:
        registry = _fresh_registry()
        registry.register("u")(Underline)
        assert registry.get("u") is Underline

    def test_duplicate_name_raises(self) -> None:
        registry = _fresh_registry()
        registry.register_class("underline", Underline)
        with pytest.raises(ExtensionAlreadyRegisteredError):
            registry.register_class("underline", Mention)

    def test_wrong_base_class_raises_type_error(self) -> None:
        registry = _fresh_registry()
        with pytest.raises(TypeError):
            registry.register_class("bad", NotAnExtension)  # type: ignore[arg-type]

    def test_non_class_raises_type_error(self) -> None:
        registry = _fresh_registry()
        with pytest.raises(TypeError):
            registry.register_class("bad", "not_a_class")  # type: ignore[arg-type]

    def test_nameless_class_raises_type_error(self) -> None:
        registry = _fresh_registry()
        with pytest.raises(TypeError):
            registry.register()(Nameless)

    def test_register_logs_debug_message(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        with caplog.at_level(logging.DEBUG, logger="docweave.extensions.registry"):
            registry.register_class("underline", Underline)
        assert "underline" in caplog.text


class TestDeregister:
    def test_deregister_removes_class(self) -> None:
        registry = _fresh_registry()
        registry.register_class("underline", Underline)
        registry.deregister("underline")
        assert "underline" not in registry
        assert len(registry) == 0

    def test_deregister_unknown_raises(self) -> None:
        with pytest.raises(ExtensionNotFoundError):
            _fresh_registry().deregister("ghost")


# ===========================================================================
# Lookup and instantiation
# ===========================================================================


class TestLookup:
    def test_get_unknown_raises_with_available_names(self) -> None:
        registry = _fresh_registry()
        registry.register_class("underline", Underline)
        with pytest.raises(ExtensionNotFoundError) as exc_info:
            registry.get("ghost")
        assert exc_info.value.available == ["underline"]

    def test_create_passes_config(self) -> None:
        registry = _fresh_registry()
        registry.register_class("underline", Underline)
        ext = registry.create("underline", {"color": "red"})
        assert isinstance(ext, Underline)
        assert ext.config["color"] == "red"

    def test_list_extensions_is_sorted(self) -> None:
        registry = _fresh_registry()
        registry.register_class("underline", Underline)
        registry.register_class("mention", Mention)
        assert registry.list_extensions() == ["mention", "underline"]

    def test_repr_lists_names(self) -> None:
        registry = _fresh_registry()
        registry.register_class("mention", Mention)
        assert "mention" in repr(registry)


class TestBuiltinRegistrations:
    def test_builtins_are_registered_on_import(self) -> None:
        import docweave.extensions.builtin  # noqa: F401

        for name in ("basic-editor", "doc", "paragraph", "heading", "em", "strong", "history"):
            assert name in extension_registry

    def test_bundle_created_by_name_carries_member_config(self) -> None:
        import docweave.extensions.builtin  # noqa: F401

        bundle = extension_registry.create("basic-editor", {"history": {"depth": 5}})
        history = next(r for r in bundle.requires if isinstance(r, Extension) and r.name == "history")
        assert history.config["depth"] == 5


# ===========================================================================
# load_entrypoints
# ===========================================================================


class TestLoadEntrypoints:
    def test_empty_group_does_nothing(self) -> None:
        registry = _fresh_registry()
        with patch(
            "docweave.extensions.registry.importlib.metadata.entry_points",
            return_value=[],
        ):
            registry.load_entrypoints()
        assert len(registry) == 0

    def test_registers_valid_extension(self) -> None:
        registry = _fresh_registry()
        mock_ep = MagicMock()
        mock_ep.name = "mention"
        mock_ep.load.return_value = Mention

        with patch(
            "docweave.extensions.registry.importlib.metadata.entry_points",
            return_value=[mock_ep],
        ):
            registry.load_entrypoints()

        assert registry.get("mention") is Mention

    def test_skips_already_registered(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        registry.register_class("mention", Mention)
        mock_ep = MagicMock()
        mock_ep.name = "mention"

        with patch(
            "docweave.extensions.registry.importlib.metadata.entry_points",
            return_value=[mock_ep],
        ):
            with caplog.at_level(logging.DEBUG, logger="docweave.extensions.registry"):
                registry.load_entrypoints()

        mock_ep.load.assert_not_called()
        assert "mention" in caplog.text
        assert len(registry) == 1

    def test_load_failure_is_logged_and_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        mock_ep = MagicMock()
        mock_ep.name = "broken"
        mock_ep.load.side_effect = ImportError("no module named broken")

        with patch(
            "docweave.extensions.registry.importlib.metadata.entry_points",
            return_value=[mock_ep],
        ):
            with caplog.at_level(logging.ERROR, logger="docweave.extensions.registry"):
                registry.load_entrypoints()

        assert len(registry) == 0
        assert "broken" in caplog.text

    def test_wrong_type_is_skipped(self) -> None:
        registry = _fresh_registry()
        mock_ep = MagicMock()
        mock_ep.name = "not-an-extension"
        mock_ep.load.return_value = NotAnExtension

        with patch(
            "docweave.extensions.registry.importlib.metadata.entry_points",
            return_value=[mock_ep],
        ):
            registry.load_entrypoints()

        assert len(registry) == 0
