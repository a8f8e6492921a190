"""Unit tests for the built-in commands in docweave.commands."""
from __future__ import annotations

from typing import Any

import pytest

from docweave.core.editor import CoreEditor
from docweave.core.selection import AllSelection, NodeSelection, TextSelection
from docweave.extensions.builtin import BasicEditor


def _blocks(editor: CoreEditor) -> list[tuple[str, str]]:
    return [(b.type.name, b.text_content) for b in editor.state.doc.content]


@pytest.fixture()
def two_editor() -> CoreEditor:
    """Editor holding ``paragraph("ab"), paragraph("cd")``; blocks start at 0 and 4."""
    content: dict[str, Any] = {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": "ab"}]},
            {"type": "paragraph", "content": [{"type": "text", "text": "cd"}]},
        ],
    }
    return CoreEditor([BasicEditor()], content=content, platform="pc")


# ---------------------------------------------------------------------------
# Typing and inserting
# ---------------------------------------------------------------------------


class TestInsert:
    def test_insert_text_at_caret(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().insert_text("Oh, ").run()
        assert hello_editor.state.doc.text_content == "Oh, Hello world"
        assert hello_editor.state.selection == TextSelection(5, 5)

    def test_insert_text_replaces_range(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().select_text(6, 5).insert_text("there").run()
        assert hello_editor.state.doc.text_content == "Hello there"

    def test_insert_text_needs_textblock(self, hello_editor: CoreEditor) -> None:
        assert not hello_editor.chain().select_all().insert_text("x").run()

    def test_insert_hard_break(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().select_text(5).insert_hard_break().run()
        paragraph = hello_editor.state.doc.content[0]
        assert [child.type.name for child in paragraph.content] == ["text", "hard_break", "text"]
        assert hello_editor.state.selection == TextSelection(7, 7)


# ---------------------------------------------------------------------------
# Deleting and joining
# ---------------------------------------------------------------------------


class TestDelete:
    def test_delete_selection(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().select_text(0, 6).delete_selection().run()
        assert hello_editor.state.doc.text_content == "world"
        assert hello_editor.state.selection == TextSelection(1, 1)

    def test_delete_empty_selection_fails(self, hello_editor: CoreEditor) -> None:
        assert not hello_editor.can().delete_selection().run()

    def test_delete_across_blocks(self, two_editor: CoreEditor) -> None:
        assert two_editor.chain().set_selection(2, 6).delete_selection().run()
        assert _blocks(two_editor) == [("paragraph", "ad")]
        assert two_editor.state.selection == TextSelection(2, 2)

    def test_delete_everything(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().select_all().delete_selection().run()
        assert _blocks(hello_editor) == [("paragraph", "")]

    def test_delete_backward(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().set_selection(12).delete_backward().run()
        assert hello_editor.state.doc.text_content == "Hello worl"

    def test_delete_backward_at_block_start(self, hello_editor: CoreEditor) -> None:
        assert not hello_editor.can().delete_backward().run()

    def test_delete_forward(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().delete_forward().run()
        assert hello_editor.state.doc.text_content == "ello world"

    def test_join_backward(self, two_editor: CoreEditor) -> None:
        assert two_editor.chain().set_selection(5).join_backward().run()
        assert _blocks(two_editor) == [("paragraph", "abcd")]
        assert two_editor.state.selection == TextSelection(3, 3)

    def test_join_backward_in_first_block(self, two_editor: CoreEditor) -> None:
        assert not two_editor.can().join_backward().run()

    def test_join_forward(self, two_editor: CoreEditor) -> None:
        assert two_editor.chain().set_selection(3).join_forward().run()
        assert _blocks(two_editor) == [("paragraph", "abcd")]
        assert two_editor.state.selection == TextSelection(3, 3)

    def test_backspace_key_joins(self, two_editor: CoreEditor) -> None:
        two_editor.chain().set_selection(5).run()
        assert two_editor.handle_key("Backspace")
        assert _blocks(two_editor) == [("paragraph", "abcd")]

    def test_backspace_key_deletes_character(self, hello_editor: CoreEditor) -> None:
        hello_editor.chain().set_selection(3).run()
        assert hello_editor.handle_key("Backspace")
        assert hello_editor.state.doc.text_content == "Hllo world"


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------


class TestSplitBlock:
    def test_split_in_middle(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().select_text(5).split_block().run()
        assert _blocks(hello_editor) == [("paragraph", "Hello"), ("paragraph", " world")]
        assert hello_editor.state.selection == TextSelection(8, 8)

    def test_split_range_deletes_first(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().select_text(5, 1).split_block().run()
        assert _blocks(hello_editor) == [("paragraph", "Hello"), ("paragraph", "world")]

    def test_split_heading_at_end_starts_paragraph(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().set_heading(level=1).set_selection(12).split_block().run()
        assert _blocks(hello_editor) == [("heading", "Hello world"), ("paragraph", "")]

    def test_split_heading_in_middle_keeps_type(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().set_heading(level=2).select_text(5).split_block().run()
        levels = [b.attrs.get("level") for b in hello_editor.state.doc.content]
        assert levels == [2, 2]

    def test_enter_key(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.handle_key("Enter")
        assert _blocks(hello_editor) == [("paragraph", ""), ("paragraph", "Hello world")]


# ---------------------------------------------------------------------------
# Marks
# ---------------------------------------------------------------------------


class TestToggleMark:
    def test_add_and_remove(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().select_text(2, 4).toggle_italic().run()
        paragraph = hello_editor.state.doc.content[0]
        assert [(c.text, [m.type.name for m in c.marks]) for c in paragraph.content] == [
            ("He", []),
            ("llo ", ["em"]),
            ("world", []),
        ]
        assert hello_editor.chain().toggle_italic().run()
        assert hello_editor.state.doc.content[0].child_count == 1

    def test_partial_mark_is_removed(self, hello_editor: CoreEditor) -> None:
        hello_editor.chain().select_text(0, 5).toggle_strong().run()
        assert hello_editor.chain().select_all().toggle_strong().run()
        assert hello_editor.state.doc.content[0].content[0].marks == ()

    def test_stored_mark_applies_to_typing(self, hello_editor: CoreEditor, schema: Any) -> None:
        assert hello_editor.chain().set_selection(12).toggle_italic().insert_text("!").run()
        last = hello_editor.state.doc.content[0].content[-1]
        assert last.text == "!"
        assert last.marks == (schema.mark("em"),)

    def test_stored_mark_toggles_off(self, hello_editor: CoreEditor) -> None:
        hello_editor.chain().toggle_strong().run()
        assert hello_editor.state.stored_marks
        hello_editor.chain().toggle_strong().run()
        assert hello_editor.state.stored_marks == ()

    def test_code_excludes_other_marks(self, hello_editor: CoreEditor) -> None:
        hello_editor.chain().select_text(0, 5).toggle_strong().toggle_code().run()
        marks = hello_editor.state.doc.content[0].content[0].marks
        assert [m.type.name for m in marks] == ["code"]

    def test_toggle_mark_by_name(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().select_text(0, 5).toggle_mark("strong").run()
        assert hello_editor.state.doc.content[0].content[0].marks[0].type.name == "strong"


# ---------------------------------------------------------------------------
# Block types
# ---------------------------------------------------------------------------


class TestSetBlockType:
    def test_set_heading(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().set_block_type("heading", {"level": 2}).run()
        heading = hello_editor.state.doc.content[0]
        assert (heading.type.name, heading.attrs["level"]) == ("heading", 2)

    def test_same_type_fails(self, hello_editor: CoreEditor) -> None:
        assert not hello_editor.can().set_paragraph().run()

    def test_invalid_attrs_fail(self, hello_editor: CoreEditor) -> None:
        assert not hello_editor.can().set_block_type("heading", {"level": 9}).run()

    def test_non_textblock_fails(self, hello_editor: CoreEditor) -> None:
        assert not hello_editor.can().set_block_type("hard_break").run()

    def test_covers_every_selected_block(self, two_editor: CoreEditor) -> None:
        assert two_editor.chain().select_all().set_heading_3().run()
        assert [b.attrs.get("level") for b in two_editor.state.doc.content] == [3, 3]

    def test_heading_key(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.handle_key("Ctrl-Shift-1")
        assert _blocks(hello_editor) == [("heading", "Hello world")]


# ---------------------------------------------------------------------------
# Selection commands
# ---------------------------------------------------------------------------


class TestSelectionCommands:
    def test_set_selection_range(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.chain().set_selection(2, 5).run()
        assert hello_editor.state.selection == TextSelection(2, 5)

    def test_set_selection_out_of_range(self, hello_editor: CoreEditor) -> None:
        assert not hello_editor.can().set_selection(0, 99).run()

    def test_select_all(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.handle_key("Mod-a")
        assert hello_editor.state.selection == AllSelection(13)

    def test_select_text_in_other_block(self, two_editor: CoreEditor) -> None:
        assert two_editor.chain().select_text(1, 1, block_index=1).run()
        assert two_editor.state.selection == TextSelection(6, 7)

    @pytest.mark.parametrize(
        ("start", "length", "block_index"),
        [(-1, 0, 0), (0, 3, 0), (0, 0, 2)],
    )
    def test_select_text_out_of_range(self, two_editor: CoreEditor, start: int, length: int, block_index: int) -> None:
        assert not two_editor.can().select_text(start, length, block_index).run()

    def test_select_parent_node(self, hello_editor: CoreEditor) -> None:
        assert hello_editor.handle_key("Escape")
        selection = hello_editor.state.selection
        assert isinstance(selection, NodeSelection)
        assert selection.pos == 0
        assert not hello_editor.can().select_parent_node().run()

    def test_select_node_backward(self, two_editor: CoreEditor) -> None:
        assert two_editor.chain().set_selection(5).select_node_backward().run()
        selection = two_editor.state.selection
        assert isinstance(selection, NodeSelection)
        assert selection.pos == 0

    def test_select_node_forward(self, two_editor: CoreEditor) -> None:
        assert two_editor.chain().set_selection(3).select_node_forward().run()
        assert two_editor.state.selection.from_ == 4

    def test_select_node_forward_needs_block_end(self, two_editor: CoreEditor) -> None:
        assert not two_editor.can().select_node_forward().run()
