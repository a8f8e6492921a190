"""Unit tests for the block structure commands in docweave.commands.structure."""
from __future__ import annotations

from typing import Any

import pytest

from docweave.core.editor import CoreEditor
from docweave.core.selection import NodeSelection, TextSelection
from docweave.extensions.builtin import BasicEditor


def _text(content: str) -> list[dict[str, Any]]:
    return [{"type": "text", "text": content}] if content else []


def _p(content: str = "") -> dict[str, Any]:
    return {"type": "paragraph", "content": _text(content)}


def _editor(*blocks: dict[str, Any]) -> CoreEditor:
    return CoreEditor([BasicEditor()], content={"type": "doc", "content": list(blocks)}, platform="pc")


def _blocks(editor: CoreEditor) -> list[tuple[str, str]]:
    return [(b.type.name, b.text_content) for b in editor.state.doc.content]


@pytest.fixture()
def quote_editor() -> CoreEditor:
    """``blockquote(paragraph("ab"), paragraph("cd")), paragraph("ef")``.

    The quoted paragraphs hold text at 2..4 and 6..8; "ef" sits at 11..13.
    """
    return _editor({"type": "blockquote", "content": [_p("ab"), _p("cd")]}, _p("ef"))


@pytest.fixture()
def two_editor() -> CoreEditor:
    """``paragraph("ab"), paragraph("cd")``; blocks start at 0 and 4."""
    return _editor(_p("ab"), _p("cd"))


# ---------------------------------------------------------------------------
# Joining
# ---------------------------------------------------------------------------


class TestJoin:
    def test_join_up_inside_wrapper(self, quote_editor: CoreEditor) -> None:
        assert quote_editor.chain().set_selection(7).join_up().run()
        assert _blocks(quote_editor) == [("blockquote", "abcd"), ("paragraph", "ef")]
        assert quote_editor.state.selection == TextSelection(5, 5)

    def test_join_up_needs_compatible_sibling(self, quote_editor: CoreEditor) -> None:
        quote_editor.chain().set_selection(12).run()
        assert not quote_editor.can().join_up().run()

    def test_join_up_in_first_block_fails(self, two_editor: CoreEditor) -> None:
        assert not two_editor.can().join_up().run()

    def test_join_down_keeps_caret(self, quote_editor: CoreEditor) -> None:
        assert quote_editor.chain().set_selection(3).join_down().run()
        assert _blocks(quote_editor) == [("blockquote", "abcd"), ("paragraph", "ef")]
        assert quote_editor.state.selection == TextSelection(3, 3)

    def test_join_down_with_selected_node(self, two_editor: CoreEditor) -> None:
        two_editor.chain().set_selection(NodeSelection.create(two_editor.state.doc, 0)).run()
        assert two_editor.chain().join_down().run()
        assert _blocks(two_editor) == [("paragraph", "abcd")]
        selection = two_editor.state.selection
        assert isinstance(selection, NodeSelection) and selection.pos == 0

    def test_keys(self, two_editor: CoreEditor) -> None:
        two_editor.chain().set_selection(6).run()
        assert two_editor.handle_key("Alt-ArrowUp")
        assert _blocks(two_editor) == [("paragraph", "abcd")]
        assert two_editor.handle_key("Alt-ArrowDown") is False


# ---------------------------------------------------------------------------
# Wrapping and lifting
# ---------------------------------------------------------------------------


class TestLift:
    def test_lift_last_child_splits_wrapper(self, quote_editor: CoreEditor) -> None:
        assert quote_editor.chain().set_selection(7).lift().run()
        assert _blocks(quote_editor) == [("blockquote", "ab"), ("paragraph", "cd"), ("paragraph", "ef")]
        assert quote_editor.state.selection == TextSelection(8, 8)

    def test_lift_first_child(self, quote_editor: CoreEditor) -> None:
        assert quote_editor.chain().set_selection(3).lift().run()
        assert _blocks(quote_editor) == [("paragraph", "ab"), ("blockquote", "cd"), ("paragraph", "ef")]
        assert quote_editor.state.selection == TextSelection(2, 2)

    def test_lift_every_selected_child(self, quote_editor: CoreEditor) -> None:
        assert quote_editor.chain().set_selection(3, 7).lift().run()
        assert _blocks(quote_editor) == [("paragraph", "ab"), ("paragraph", "cd"), ("paragraph", "ef")]
        assert quote_editor.state.selection == TextSelection(2, 6)

    def test_lift_at_top_level_fails(self, quote_editor: CoreEditor) -> None:
        quote_editor.chain().set_selection(12).run()
        assert not quote_editor.can().lift().run()

    def test_lift_key(self, quote_editor: CoreEditor) -> None:
        quote_editor.chain().set_selection(7).run()
        assert quote_editor.handle_key("Mod-BracketLeft")
        assert _blocks(quote_editor)[1] == ("paragraph", "cd")


class TestWrap:
    def test_wrap_block_in_blockquote(self, two_editor: CoreEditor) -> None:
        two_editor.chain().set_selection(6).run()
        assert two_editor.chain().wrap_in_blockquote().run()
        assert _blocks(two_editor) == [("paragraph", "ab"), ("blockquote", "cd")]
        assert two_editor.state.selection == TextSelection(7, 7)

        assert two_editor.chain().lift().run()
        assert _blocks(two_editor) == [("paragraph", "ab"), ("paragraph", "cd")]
        assert two_editor.state.selection == TextSelection(6, 6)

    def test_wrap_several_blocks(self, two_editor: CoreEditor) -> None:
        assert two_editor.chain().set_selection(2, 6).wrap_in("blockquote").run()
        assert _blocks(two_editor) == [("blockquote", "abcd")]
        assert two_editor.state.doc.content[0].child_count == 2
        assert two_editor.state.selection == TextSelection(3, 7)

    def test_wrap_in_textblock_fails(self, two_editor: CoreEditor) -> None:
        assert not two_editor.can().wrap_in("heading").run()


# ---------------------------------------------------------------------------
# Enter
# ---------------------------------------------------------------------------


class TestEnter:
    def test_empty_block_leaves_wrapper(self) -> None:
        editor = _editor({"type": "blockquote", "content": [_p("ab"), _p()]}, _p("ef"))
        editor.chain().set_selection(6).run()
        assert editor.handle_key("Enter")
        assert _blocks(editor) == [("blockquote", "ab"), ("paragraph", ""), ("paragraph", "ef")]
        assert editor.state.selection == TextSelection(7, 7)

    def test_lift_empty_block_needs_empty_block(self, quote_editor: CoreEditor) -> None:
        quote_editor.chain().set_selection(3).run()
        assert not quote_editor.can().lift_empty_block().run()

    def test_empty_top_level_block_is_split(self, editor: CoreEditor) -> None:
        assert editor.handle_key("Enter")
        assert _blocks(editor) == [("paragraph", ""), ("paragraph", "")]

    def test_newline_in_code(self) -> None:
        editor = _editor({"type": "code_block", "content": _text("ab")})
        editor.chain().set_selection(2).run()
        assert editor.handle_key("Enter")
        assert _blocks(editor) == [("code_block", "a\nb")]
        assert editor.state.selection == TextSelection(3, 3)

    def test_newline_outside_code_fails(self, two_editor: CoreEditor) -> None:
        assert not two_editor.can().newline_in_code().run()

    def test_paragraph_after_selected_block(self, two_editor: CoreEditor) -> None:
        two_editor.chain().set_selection(NodeSelection.create(two_editor.state.doc, 4)).run()
        assert two_editor.handle_key("Enter")
        assert _blocks(two_editor) == [("paragraph", "ab"), ("paragraph", "cd"), ("paragraph", "")]
        assert two_editor.state.selection == TextSelection(9, 9)

    def test_paragraph_before_selected_first_block(self, two_editor: CoreEditor) -> None:
        two_editor.chain().set_selection(NodeSelection.create(two_editor.state.doc, 0)).run()
        assert two_editor.chain().create_paragraph_near().run()
        assert _blocks(two_editor) == [("paragraph", ""), ("paragraph", "ab"), ("paragraph", "cd")]
        assert two_editor.state.selection == TextSelection(1, 1)

    def test_create_paragraph_near_needs_node_selection(self, two_editor: CoreEditor) -> None:
        assert not two_editor.can().create_paragraph_near().run()
