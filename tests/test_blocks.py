from __future__ import annotations

import pytest

from inkwell.editor import blocks
from inkwell.editor.document_model import SelectionRange


def test_block_prefix_detection() -> None:
    assert blocks.block_prefix("## Title") == "## "
    assert blocks.block_prefix("- item") == "- "
    assert blocks.block_prefix("12. step") == "12. "
    assert blocks.block_prefix("> quote") == "> "
    assert blocks.block_prefix("#hashtag") == ""


def test_set_heading_prefixes_line_and_keeps_caret_column(make_surface) -> None:
    surface = make_surface("hello")
    blocks.set_heading(surface, 5, 2)
    assert surface.text == "## hello"
    assert surface.get_selection() == SelectionRange.caret(8)


def test_set_heading_replaces_existing_heading(make_surface) -> None:
    surface = make_surface("# title")
    blocks.set_heading(surface, 7, 2)
    assert surface.text == "## title"
    assert surface.get_selection() == SelectionRange.caret(8)


def test_set_heading_only_touches_caret_line(make_surface) -> None:
    surface = make_surface("first\nsecond\nthird")
    blocks.set_heading(surface, 8, 1)
    assert surface.text == "first\n# second\nthird"


def test_set_heading_rejects_invalid_level(make_surface) -> None:
    surface = make_surface("x")
    with pytest.raises(ValueError):
        blocks.set_heading(surface, 0, 7)


def test_bullet_list_toggles(make_surface) -> None:
    surface = make_surface("item")
    blocks.toggle_bullet_list(surface, 0)
    assert surface.text == "- item"
    assert surface.get_selection() == SelectionRange.caret(2)

    blocks.toggle_bullet_list(surface, 2)
    assert surface.text == "item"
    assert surface.get_selection() == SelectionRange.caret(0)


def test_ordered_list_swaps_other_block_markers(make_surface) -> None:
    surface = make_surface("- item")
    blocks.toggle_ordered_list(surface, 6)
    assert surface.text == "1. item"


def test_blockquote(make_surface) -> None:
    surface = make_surface("quoted")
    blocks.toggle_blockquote(surface, 0)
    assert surface.text == "> quoted"


def test_code_block_fences_and_unfences(make_surface) -> None:
    surface = make_surface("a\nprint()\nb")
    blocks.toggle_code_block(surface, 2)
    assert surface.text == "a\n```\nprint()\n```\nb"
    assert surface.get_selection() == SelectionRange.caret(6)

    blocks.toggle_code_block(surface, 6)
    assert surface.text == "a\nprint()\nb"
    assert surface.get_selection() == SelectionRange.caret(2)


def test_horizontal_rule_on_empty_line(make_surface) -> None:
    surface = make_surface("")
    blocks.insert_horizontal_rule(surface, 0)
    assert surface.text == "---\n"


def test_horizontal_rule_after_text(make_surface) -> None:
    surface = make_surface("text")
    blocks.insert_horizontal_rule(surface, 2)
    assert surface.text == "text\n---\n"
