"""Tests for the headless document surface."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from inkwell.editor.document_model import DocumentState, SelectionRange, TextChange


class TestSelectionRange:
    def test_start_end_normalize_backwards_selection(self) -> None:
        selection = SelectionRange(7, 2)
        assert (selection.start, selection.end) == (2, 7)
        assert selection.length == 5
        assert not selection.is_collapsed

    def test_from_value_accepts_common_shapes(self) -> None:
        assert SelectionRange.from_value((1, 4)) == SelectionRange(1, 4)
        assert SelectionRange.from_value({"start": 2, "end": 3}) == SelectionRange(2, 3)
        assert SelectionRange.from_value({"anchor": 5, "head": 1}) == SelectionRange(5, 1)
        assert SelectionRange.from_value(SimpleNamespace(start=0, end=3)) == SelectionRange(0, 3)

    def test_from_value_rejects_strings(self) -> None:
        with pytest.raises(TypeError):
            SelectionRange.from_value("0,3")

    def test_clamp_limits_offsets_to_text(self) -> None:
        assert SelectionRange(-3, 40).clamp(10) == SelectionRange(0, 10)


def test_get_text_returns_exact_span(make_surface) -> None:
    surface = make_surface("teh cat sat")
    assert surface.get_text(SelectionRange(0, 11)) == "teh cat sat"
    assert surface.get_text(SelectionRange(4, 7)) == "cat"
    assert surface.get_text() == "teh cat sat"


def test_replace_emits_change_and_moves_caret(make_surface) -> None:
    surface = make_surface("hello world")
    changes: list[TextChange] = []
    carets: list[SelectionRange] = []
    surface.add_text_listener(lambda change, state: changes.append(change))
    surface.on_selection_changed(carets.append)

    caret = surface.replace(SelectionRange(6, 11), "there")

    assert surface.text == "hello there"
    assert caret == SelectionRange.caret(11)
    assert changes == [TextChange(6, 11, "there", "programmatic")]
    assert carets[-1] == SelectionRange.caret(11)
    assert surface.document.dirty


def test_selection_is_updated_before_text_listeners_run(make_surface) -> None:
    surface = make_surface("abc")
    seen: list[SelectionRange] = []
    surface.add_text_listener(lambda change, state: seen.append(surface.get_selection()))

    surface.set_selection(SelectionRange.caret(3))
    surface.type_text("d")

    assert seen == [SelectionRange.caret(4)]


def test_type_text_is_user_sourced(make_surface) -> None:
    surface = make_surface("")
    sources: list[str] = []
    surface.add_text_listener(lambda change, state: sources.append(change.source))

    surface.type_text("a")
    surface.insert_at_caret("b")

    assert sources == ["user", "programmatic"]
    assert surface.last_change_source == "programmatic"


def test_insert_at_caret_replaces_active_selection(make_surface) -> None:
    surface = make_surface("one two")
    surface.set_selection(0, 3)
    surface.insert_at_caret("1")
    assert surface.text == "1 two"


def test_backspace_removes_previous_character(make_surface) -> None:
    surface = make_surface("ab")
    surface.set_selection(SelectionRange.caret(2))
    surface.backspace()
    assert surface.text == "a"
    surface.set_selection(SelectionRange.caret(0))
    assert surface.backspace() == SelectionRange.caret(0)
    assert surface.text == "a"


def test_empty_replace_is_a_no_op(make_surface) -> None:
    surface = make_surface("abc")
    changes: list[TextChange] = []
    surface.add_text_listener(lambda change, state: changes.append(change))
    surface.replace(SelectionRange.caret(1), "")
    assert changes == []
    assert not surface.undo()


def test_undo_and_redo_restore_text_and_selection(make_surface) -> None:
    surface = make_surface("draft")
    surface.set_selection(0, 5)
    surface.replace(surface.get_selection(), "final")

    assert surface.undo()
    assert surface.text == "draft"
    assert surface.get_selection() == SelectionRange(0, 5)
    assert surface.redo()
    assert surface.text == "final"
    assert not surface.redo()


def test_undo_history_is_bounded(make_surface) -> None:
    surface = make_surface("")
    for _ in range(surface.MAX_HISTORY + 10):
        surface.insert_at_caret("x")
    undone = 0
    while surface.undo():
        undone += 1
    assert undone == surface.MAX_HISTORY


def test_apply_user_change_records_view_edit(make_surface) -> None:
    surface = make_surface("hello")
    changes: list[TextChange] = []
    surface.add_text_listener(lambda change, state: changes.append(change))

    surface.apply_user_change(5, 0, "!")

    assert surface.text == "hello!"
    assert changes[-1] == TextChange(5, 5, "!", "user")
    assert surface.get_selection() == SelectionRange.caret(6)


def test_load_document_collapses_to_clamped_caret(make_surface) -> None:
    surface = make_surface("a long first document")
    surface.set_selection(2, 15)

    surface.load_document(DocumentState(text="short", document_id="next"))

    assert surface.document_id == "next"
    assert surface.get_selection() == SelectionRange.caret(5)
    assert not surface.undo()


def test_rect_for_range_requires_layout(make_surface) -> None:
    surface = make_surface("hello", layout=False)
    assert surface.rect_for_range(SelectionRange(0, 5)) is None


def test_line_bounds(make_surface) -> None:
    surface = make_surface("one\ntwo\nthree")
    assert surface.line_bounds(0) == (0, 3)
    assert surface.line_bounds(5) == (4, 7)
    assert surface.line_bounds(13) == (8, 13)
