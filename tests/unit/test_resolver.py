"""Unit tests for docweave.core.resolver."""
from __future__ import annotations

import logging

import pytest

from docweave.core.errors import (
    CircularDependencyError,
    ConfigurationError,
    ExtensionConflictError,
    MissingDependencyError,
    ResolutionError,
)
from docweave.core.resolver import ResolvedExtensionSet, resolve_extensions
from docweave.extensions.base import Category, Extension


def _ext(name: str, *requires: str | Extension, config: dict | None = None) -> Extension:
    return Extension(config, name=name, requires=requires)


class Tables(Extension):
    name = "tables"
    conflicts = ("grid",)


# ===========================================================================
# Ordering
# ===========================================================================


class TestOrdering:
    def test_independent_extensions_keep_input_order(self) -> None:
        resolved = resolve_extensions([_ext("c"), _ext("a"), _ext("b")])
        assert resolved.names() == ["c", "a", "b"]

    def test_requirement_is_placed_before_requirer(self) -> None:
        resolved = resolve_extensions([_ext("b", "a"), _ext("a")])
        assert resolved.names() == ["a", "b"]

    def test_duplicates_collapse_to_one_entry(self) -> None:
        a = _ext("a")
        resolved = resolve_extensions([a, _ext("b", "a"), a])
        assert resolved.names() == ["a", "b"]

    def test_transitive_requirements(self) -> None:
        resolved = resolve_extensions([_ext("c", "b"), _ext("b", "a"), _ext("a")])
        assert resolved.names() == ["a", "b", "c"]

    def test_first_duplicate_wins_with_its_config(self) -> None:
        resolved = resolve_extensions([_ext("a", config={"x": 1}), _ext("a", config={"x": 2})])
        assert len(resolved) == 1
        assert resolved[0].config["x"] == 1

    def test_resolution_is_deterministic(self) -> None:
        def extensions() -> list[Extension]:
            return [
                _ext("editor", _ext("history", "doc"), _ext("doc"), "keymap"),
                _ext("keymap", "doc"),
                _ext("formats", config={"indent": 2}),
            ]

        first = resolve_extensions(extensions())
        second = resolve_extensions(extensions())
        assert first == second
        assert first.names() == second.names() == ["doc", "history", "keymap", "editor", "formats"]
        assert [ext.config for ext in first] == [ext.config for ext in second]

    def test_nested_instances_are_resolved(self) -> None:
        bundle = _ext("bundle", _ext("a"), _ext("b", "a"))
        resolved = resolve_extensions([bundle])
        assert resolved.names() == ["a", "b", "bundle"]

    def test_top_level_instance_beats_nested_duplicate(self) -> None:
        bundle = _ext("bundle", _ext("a", config={"depth": 1}))
        resolved = resolve_extensions([_ext("a", config={"depth": 9}), bundle])
        assert resolved.get("a").config["depth"] == 9  # type: ignore[union-attr]

    def test_empty_input(self) -> None:
        assert len(resolve_extensions([])) == 0

    def test_logs_each_resolved_extension(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="docweave.core.resolver"):
            resolve_extensions([_ext("alpha")])
        assert "alpha" in caplog.text


# ===========================================================================
# Failures
# ===========================================================================


class TestFailures:
    def test_missing_dependency(self) -> None:
        with pytest.raises(MissingDependencyError) as exc_info:
            resolve_extensions([_ext("b", "ghost")])
        assert exc_info.value.requirer == "b"
        assert exc_info.value.required == "ghost"

    def test_two_node_cycle(self) -> None:
        with pytest.raises(CircularDependencyError) as exc_info:
            resolve_extensions([_ext("a", "b"), _ext("b", "a")])
        assert exc_info.value.cycle == ["a", "b", "a"]

    def test_self_requirement_is_a_cycle(self) -> None:
        with pytest.raises(CircularDependencyError) as exc_info:
            resolve_extensions([_ext("a", "a")])
        assert exc_info.value.cycle == ["a", "a"]

    def test_cycle_message_names_path(self) -> None:
        with pytest.raises(CircularDependencyError, match="a -> b -> c -> a"):
            resolve_extensions([_ext("a", "b"), _ext("b", "c"), _ext("c", "a")])

    def test_declared_conflict(self) -> None:
        with pytest.raises(ExtensionConflictError) as exc_info:
            resolve_extensions([Tables(), _ext("grid")])
        assert exc_info.value.extension == "tables"
        assert exc_info.value.conflicting == "grid"

    def test_errors_are_configuration_errors(self) -> None:
        assert issubclass(MissingDependencyError, ResolutionError)
        assert issubclass(CircularDependencyError, ResolutionError)
        assert issubclass(ResolutionError, ConfigurationError)
        assert issubclass(ExtensionConflictError, ConfigurationError)


# ===========================================================================
# ResolvedExtensionSet
# ===========================================================================


class TestResolvedExtensionSet:
    def test_contains_by_name_and_instance(self) -> None:
        a = _ext("a", config={"x": 1})
        resolved = ResolvedExtensionSet([a])
        assert "a" in resolved
        assert a in resolved
        assert _ext("a", config={"x": 2}) not in resolved

    def test_equality_and_hash(self) -> None:
        first = resolve_extensions([_ext("a"), _ext("b")])
        second = resolve_extensions([_ext("a"), _ext("b")])
        assert first == second
        assert hash(first) == hash(second)

    def test_get_unknown_returns_none(self) -> None:
        assert ResolvedExtensionSet([]).get("a") is None


# ===========================================================================
# Extension values
# ===========================================================================


class TestExtensionValue:
    def test_extension_is_immutable(self) -> None:
        ext = _ext("a")
        with pytest.raises(AttributeError):
            ext.name = "b"  # type: ignore[misc]

    def test_config_is_read_only(self) -> None:
        ext = _ext("a", config={"x": 1})
        with pytest.raises(TypeError):
            ext.config["x"] = 2  # type: ignore[index]

    def test_equal_extensions_hash_alike(self) -> None:
        assert _ext("a", config={"x": [1, 2]}) == _ext("a", config={"x": [1, 2]})
        assert hash(_ext("a", config={"x": 1})) == hash(_ext("a", config={"x": 1}))

    def test_name_is_required(self) -> None:
        with pytest.raises(ValueError):
            Extension()

    def test_required_names_mixes_strings_and_instances(self) -> None:
        ext = _ext("c", "a", _ext("b"))
        assert ext.required_names() == ["a", "b"]

    def test_default_category_is_behavior(self) -> None:
        assert _ext("a").category is Category.BEHAVIOR
