"""``QPlainTextEdit`` bound to a :class:`DocumentSurface`.

The surface stays the source of truth. Typing in the widget is diffed
against the surface text and recorded as a user change; programmatic edits
on the surface (slash commands, toolbar marks, AI apply) are mirrored back
into the widget. A ``_syncing`` guard keeps the two directions from echoing.

Offsets are shared as-is, so characters outside the Basic Multilingual Plane
(which Qt counts as two UTF-16 units) can shift positions after them.
"""

from __future__ import annotations

import logging
from typing import Any

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeySequence, QTextCursor
from PySide6.QtWidgets import QPlainTextEdit

from ..commands.suggestion import SuggestionEngine
from ..editor import formatting
from ..editor.document_model import DocumentState, SelectionRange, TextChange
from ..editor.geometry import Rect
from ..editor.selection_tracker import SelectionTracker
from ..editor.surface import DocumentSurface

LOGGER = logging.getLogger(__name__)

_NAVIGATION_KEYS = {
    Qt.Key.Key_Up: "up",
    Qt.Key.Key_Down: "down",
    Qt.Key.Key_Return: "enter",
    Qt.Key.Key_Enter: "enter",
    Qt.Key.Key_Escape: "escape",
}

_MARK_SHORTCUTS = (
    (QKeySequence.StandardKey.Bold, "bold"),
    (QKeySequence.StandardKey.Italic, "italic"),
    (QKeySequence.StandardKey.Underline, "underline"),
)


class QtLayoutProvider:
    """Reads selection geometry from the widget's cursor rectangles (viewport coordinates)."""

    def __init__(self, view: QPlainTextEdit) -> None:
        self._view = view

    def rect_for_range(self, start: int, end: int) -> Rect | None:
        document = self._view.document()
        limit = max(0, document.characterCount() - 1)
        cursor = QTextCursor(document)
        cursor.setPosition(min(start, limit))
        first = self._view.cursorRect(cursor)
        cursor.setPosition(min(end, limit))
        last = self._view.cursorRect(cursor)
        head = Rect(first.x(), first.y(), first.width(), first.height())
        tail = Rect(last.x(), last.y(), last.width(), last.height())
        return head.united(tail)


def common_affixes(old: str, new: str) -> tuple[int, int]:
    """Length of the shared prefix and of the shared suffix not overlapping it."""

    limit = min(len(old), len(new))
    prefix = 0
    while prefix < limit and old[prefix] == new[prefix]:
        prefix += 1
    suffix = 0
    while suffix < limit - prefix and old[len(old) - 1 - suffix] == new[len(new) - 1 - suffix]:
        suffix += 1
    return prefix, suffix


class EditorView(QPlainTextEdit):
    """Markdown editing widget for one surface."""

    def __init__(self, surface: DocumentSurface, parent: Any | None = None) -> None:
        super().__init__(parent)
        self._surface = surface
        self._syncing = False
        self._tracker: SelectionTracker | None = None
        self._suggestions: SuggestionEngine | None = None
        self.setObjectName("inkwell-editor")
        self.setTabChangesFocus(False)
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.WidgetWidth)

        surface.set_layout(QtLayoutProvider(self))
        self._load_from_surface()
        surface.add_text_listener(self._handle_surface_text_changed)
        surface.on_selection_changed(self._handle_surface_selection_changed)
        self.textChanged.connect(self._handle_view_text_changed)  # type: ignore[attr-defined]
        self.cursorPositionChanged.connect(self._handle_view_cursor_changed)  # type: ignore[attr-defined]
        self.selectionChanged.connect(self._handle_view_cursor_changed)  # type: ignore[attr-defined]
        self.verticalScrollBar().valueChanged.connect(self._handle_viewport_moved)  # type: ignore[attr-defined]

    @property
    def surface(self) -> DocumentSurface:
        return self._surface

    def attach(self, *, tracker: SelectionTracker | None = None, suggestions: SuggestionEngine | None = None) -> None:
        self._tracker = tracker
        self._suggestions = suggestions

    def reload(self) -> None:
        """Re-read the whole surface, e.g. after ``load_document``."""

        self._load_from_surface()

    def detach(self) -> None:
        self._surface.remove_text_listener(self._handle_surface_text_changed)
        self._surface.remove_selection_listener(self._handle_surface_selection_changed)
        self._surface.set_layout(None)

    # ------------------------------------------------------------------
    # Qt event overrides
    # ------------------------------------------------------------------
    def keyPressEvent(self, event: Any) -> None:  # noqa: N802 - Qt override
        engine = self._suggestions
        if engine is not None and engine.is_open:
            name = _NAVIGATION_KEYS.get(event.key())
            if name is not None and engine.handle_key(name):
                event.accept()
                return
        for sequence, mark in _MARK_SHORTCUTS:
            if event.matches(sequence):
                formatting.toggle_mark(self._surface, self._surface.get_selection(), mark)
                event.accept()
                return
        super().keyPressEvent(event)

    def focusOutEvent(self, event: Any) -> None:  # noqa: N802 - Qt override
        super().focusOutEvent(event)
        if self._tracker is not None:
            self._tracker.focus_lost()

    def focusInEvent(self, event: Any) -> None:  # noqa: N802 - Qt override
        super().focusInEvent(event)
        if self._tracker is not None:
            self._tracker.focus_gained()

    def resizeEvent(self, event: Any) -> None:  # noqa: N802 - Qt override
        super().resizeEvent(event)
        self._handle_viewport_moved()

    # ------------------------------------------------------------------
    # View -> surface
    # ------------------------------------------------------------------
    def _handle_view_text_changed(self) -> None:
        if self._syncing:
            return
        old = self._surface.text
        new = self.toPlainText()
        if old == new:
            return
        prefix, suffix = common_affixes(old, new)
        removed = len(old) - prefix - suffix
        inserted = new[prefix : len(new) - suffix]
        self._syncing = True
        try:
            self._surface.apply_user_change(prefix, removed, inserted)
        finally:
            self._syncing = False

    def _handle_view_cursor_changed(self) -> None:
        if self._syncing:
            return
        cursor = self.textCursor()
        selection = SelectionRange(cursor.anchor(), cursor.position())
        if selection == self._surface.get_selection():
            return
        self._syncing = True
        try:
            self._surface.set_selection(selection)
        finally:
            self._syncing = False

    def _handle_viewport_moved(self, *_: Any) -> None:
        if self._tracker is not None:
            self._tracker.refresh()

    # ------------------------------------------------------------------
    # Surface -> view
    # ------------------------------------------------------------------
    def _handle_surface_text_changed(self, change: TextChange, state: DocumentState) -> None:
        del state
        if self._syncing:
            return
        self._syncing = True
        try:
            cursor = QTextCursor(self.document())
            cursor.setPosition(change.start)
            cursor.setPosition(change.end, QTextCursor.MoveMode.KeepAnchor)
            cursor.insertText(change.inserted)
        finally:
            self._syncing = False
        if self.toPlainText() != self._surface.text:
            LOGGER.debug("Editor view drifted from surface; reloading")
            self._load_from_surface()

    def _handle_surface_selection_changed(self, selection: SelectionRange) -> None:
        if self._syncing:
            return
        self._apply_cursor(selection)

    def _apply_cursor(self, selection: SelectionRange) -> None:
        cursor = self.textCursor()
        if cursor.anchor() == selection.anchor and cursor.position() == selection.head:
            return
        self._syncing = True
        try:
            cursor.setPosition(selection.anchor)
            cursor.setPosition(selection.head, QTextCursor.MoveMode.KeepAnchor)
            self.setTextCursor(cursor)
        finally:
            self._syncing = False

    def _load_from_surface(self) -> None:
        self._syncing = True
        try:
            self.setPlainText(self._surface.text)
        finally:
            self._syncing = False
        self._apply_cursor(self._surface.get_selection())


__all__ = ["EditorView", "QtLayoutProvider", "common_affixes"]
