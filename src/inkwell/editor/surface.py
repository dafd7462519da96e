"""Headless document surface consumed by the authoring core.

The surface keeps the document buffer, the active selection, and a small undo
history. It is deliberately free of Qt so the selection tracker, suggestion
engine, and AI pipeline can be driven from tests; :mod:`inkwell.ui.editor_view`
binds it to a ``QPlainTextEdit`` for the desktop app.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from .document_model import ChangeSource, DocumentState, SelectionRange, TextChange
from .geometry import LayoutProvider, Rect

LOGGER = logging.getLogger(__name__)


class TextChangeListener(Protocol):
    """Callback invoked after the document buffer mutates."""

    def __call__(self, change: TextChange, state: DocumentState) -> None:
        ...


class SelectionListener(Protocol):
    """Callback invoked whenever the selection or caret moves."""

    def __call__(self, selection: SelectionRange) -> None:
        ...


@dataclass(slots=True)
class _UndoEntry:
    """Text + selection snapshot for undo/redo bookkeeping."""

    text: str
    selection: SelectionRange


class DocumentSurface:
    """In-memory document exposing selection reads and range edits."""

    MAX_HISTORY = 50

    def __init__(self, document: DocumentState | None = None, *, layout: LayoutProvider | None = None) -> None:
        self._state = document or DocumentState()
        self._text = self._state.text
        self._selection = SelectionRange()
        self._layout = layout
        self._text_listeners: list[TextChangeListener] = []
        self._selection_listeners: list[SelectionListener] = []
        self._undo_stack: list[_UndoEntry] = []
        self._redo_stack: list[_UndoEntry] = []
        self._last_change_source: ChangeSource = "programmatic"

    # ------------------------------------------------------------------
    # Document accessors
    # ------------------------------------------------------------------
    @property
    def text(self) -> str:
        return self._text

    @property
    def document(self) -> DocumentState:
        return self._state

    @property
    def document_id(self) -> str:
        return self._state.document_id

    @property
    def last_change_source(self) -> ChangeSource:
        return self._last_change_source

    def load_document(self, document: DocumentState) -> None:
        """Replace the whole document; the selection collapses to a caret."""

        caret = min(self._selection.head, len(document.text))
        previous_length = len(self._text)
        self._state = document
        self._text = document.text
        self._undo_stack.clear()
        self._redo_stack.clear()
        self._selection = SelectionRange.caret(caret)
        LOGGER.debug("Loaded document %s (%d chars)", document.document_id, len(document.text))
        self._emit_text_changed(TextChange(0, previous_length, document.text, "programmatic"))
        self._notify_selection()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    def set_layout(self, layout: LayoutProvider | None) -> None:
        self._layout = layout

    def rect_for_range(self, selection: SelectionRange) -> Rect | None:
        """Return the bounding box of ``selection`` or ``None`` without live geometry."""

        if self._layout is None:
            return None
        clamped = selection.clamp(len(self._text))
        try:
            return self._layout.rect_for_range(clamped.start, clamped.end)
        except Exception:  # pragma: no cover - layout backends may be torn down mid-call
            LOGGER.debug("Layout provider failed to resolve geometry", exc_info=True)
            return None

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def get_selection(self) -> SelectionRange:
        return self._selection

    def set_selection(self, selection: SelectionRange | Any, head: int | None = None) -> None:
        """Move the selection; accepts a range-like value or ``(anchor, head)`` ints."""

        if head is not None:
            resolved = SelectionRange(int(selection), int(head))
        else:
            resolved = SelectionRange.from_value(selection)
        self._apply_selection(resolved.clamp(len(self._text)))

    def get_text(self, selection: SelectionRange | Any | None = None) -> str:
        """Return the exact character span covered by ``selection``."""

        if selection is None:
            return self._text
        resolved = SelectionRange.from_value(selection).clamp(len(self._text))
        return self._text[resolved.start : resolved.end]

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def replace(self, selection: SelectionRange | Any, text: str, *, source: ChangeSource = "programmatic") -> SelectionRange:
        """Replace ``selection`` with ``text`` and park the caret after it."""

        resolved = SelectionRange.from_value(selection).clamp(len(self._text))
        start, end = resolved.start, resolved.end
        if start == end and not text:
            return SelectionRange.caret(start)
        self._push_undo_snapshot()
        self._text = self._text[:start] + text + self._text[end:]
        self._state.update_text(self._text)
        self._last_change_source = source
        caret = SelectionRange.caret(start + len(text))
        self._selection = caret
        self._emit_text_changed(TextChange(start, end, text, source))
        self._notify_selection()
        return caret

    def insert_at_caret(self, text: str) -> SelectionRange:
        """Insert ``text`` at the caret, replacing any active selection."""

        return self.replace(self._selection, text)

    def delete_range(self, selection: SelectionRange | Any) -> SelectionRange:
        return self.replace(selection, "")

    def type_text(self, text: str) -> SelectionRange:
        """Simulate keyboard input at the caret."""

        return self.replace(self._selection, text, source="user")

    def backspace(self) -> SelectionRange:
        """Simulate a Backspace keystroke."""

        selection = self._selection
        if selection.is_collapsed:
            if selection.head == 0:
                return selection
            selection = SelectionRange(selection.head - 1, selection.head)
        return self.replace(selection, "", source="user")

    def apply_user_change(self, position: int, removed: int, inserted: str) -> None:
        """Record an edit that already happened in a bound view."""

        start = max(0, min(position, len(self._text)))
        end = max(start, min(start + removed, len(self._text)))
        self._push_undo_snapshot()
        self._text = self._text[:start] + inserted + self._text[end:]
        self._state.update_text(self._text)
        self._last_change_source = "user"
        self._selection = SelectionRange.caret(start + len(inserted))
        self._emit_text_changed(TextChange(start, end, inserted, "user"))
        self._notify_selection()

    # ------------------------------------------------------------------
    # Undo/redo support
    # ------------------------------------------------------------------
    def undo(self) -> bool:
        if not self._undo_stack:
            return False
        entry = self._undo_stack.pop()
        self._redo_stack.append(_UndoEntry(self._text, self._selection))
        self._restore(entry)
        return True

    def redo(self) -> bool:
        if not self._redo_stack:
            return False
        entry = self._redo_stack.pop()
        self._undo_stack.append(_UndoEntry(self._text, self._selection))
        self._restore(entry)
        return True

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_text_listener(self, listener: TextChangeListener) -> None:
        self._text_listeners.append(listener)

    def remove_text_listener(self, listener: TextChangeListener) -> None:
        if listener in self._text_listeners:
            self._text_listeners.remove(listener)

    def on_selection_changed(self, listener: SelectionListener) -> None:
        """Register a callback fired on every selection mutation."""

        self._selection_listeners.append(listener)

    def remove_selection_listener(self, listener: SelectionListener) -> None:
        if listener in self._selection_listeners:
            self._selection_listeners.remove(listener)

    # ------------------------------------------------------------------
    # Line helpers
    # ------------------------------------------------------------------
    def line_bounds(self, position: int) -> tuple[int, int]:
        """Return ``(start, end)`` of the line containing ``position`` (newline excluded)."""

        position = max(0, min(position, len(self._text)))
        start = self._text.rfind("\n", 0, position) + 1
        end = self._text.find("\n", position)
        if end == -1:
            end = len(self._text)
        return start, end

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _restore(self, entry: _UndoEntry) -> None:
        previous_length = len(self._text)
        self._text = entry.text
        self._state.update_text(entry.text)
        self._last_change_source = "programmatic"
        self._selection = entry.selection.clamp(len(self._text))
        self._emit_text_changed(TextChange(0, previous_length, entry.text, "programmatic"))
        self._notify_selection()

    def _push_undo_snapshot(self) -> None:
        self._undo_stack.append(_UndoEntry(self._text, self._selection))
        if len(self._undo_stack) > self.MAX_HISTORY:
            self._undo_stack.pop(0)
        self._redo_stack.clear()

    def _apply_selection(self, selection: SelectionRange) -> None:
        self._selection = selection
        self._notify_selection()

    def _notify_selection(self) -> None:
        selection = self._selection
        for listener in list(self._selection_listeners):
            listener(selection)

    def _emit_text_changed(self, change: TextChange) -> None:
        for listener in list(self._text_listeners):
            listener(change, self._state)


__all__ = ["DocumentSurface", "SelectionListener", "TextChangeListener"]
