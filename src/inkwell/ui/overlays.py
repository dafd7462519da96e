"""Floating overlays drawn over the editor viewport.

Each overlay renders state owned by a headless controller and forwards
clicks back to it; none of them keeps editing state of its own.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPlainTextEdit,
    QPushButton,
    QToolButton,
    QVBoxLayout,
)

from ..ai.errors import EditError
from ..ai.pipeline import AIEditPipeline
from ..ai.session import EditSession, SessionStatus
from ..commands.suggestion import SuggestionEngine
from ..editor import formatting
from ..editor.geometry import AnchorCalculator, AnchorPoint
from ..editor.selection_tracker import SelectionState, SelectionTracker
from ..editor.surface import DocumentSurface

LOGGER = logging.getLogger(__name__)

_TOOLBAR_MARKS: tuple[tuple[str, str, str], ...] = (
    ("bold", "B", "Bold"),
    ("italic", "I", "Italic"),
    ("underline", "U", "Underline"),
    ("strikethrough", "S", "Strikethrough"),
    ("code", "</>", "Inline code"),
)
_POPOVER_WIDTH = 360


def _move_to(widget: Any, anchor: AnchorPoint) -> None:
    widget.move(int(anchor.left), int(anchor.top))


class FloatingToolbar(QFrame):
    """Inline formatting buttons plus the AI entry point, shown over a selection."""

    def __init__(
        self,
        surface: DocumentSurface,
        tracker: SelectionTracker,
        *,
        calculator: AnchorCalculator,
        on_ai_edit: Callable[[], None],
        ai_available: Callable[[], bool],
        parent: Any | None = None,
    ) -> None:
        super().__init__(parent)
        self._surface = surface
        self._on_ai_edit = on_ai_edit
        self._ai_available = ai_available
        self.setObjectName("inkwell-floating-toolbar")
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.setFixedSize(int(calculator.overlay_width), int(calculator.overlay_height))
        self.setFocusPolicy(Qt.FocusPolicy.NoFocus)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(4, 2, 4, 2)
        layout.setSpacing(2)
        self._mark_buttons: dict[str, QToolButton] = {}
        for mark, label, tooltip in _TOOLBAR_MARKS:
            button = self._make_button(label, tooltip)
            button.clicked.connect(lambda _checked=False, name=mark: self._toggle(name))  # type: ignore[attr-defined]
            layout.addWidget(button)
            self._mark_buttons[mark] = button
        self._ai_button = self._make_button("AI", "Edit the selection with AI")
        self._ai_button.clicked.connect(self._handle_ai_clicked)  # type: ignore[attr-defined]
        layout.addWidget(self._ai_button)

        self.hide()
        tracker.add_listener(self.render)

    @property
    def ai_button(self) -> QToolButton:
        return self._ai_button

    def render(self, state: SelectionState) -> None:
        if not state.toolbar_visible or state.anchor is None:
            self.hide()
            return
        for mark, button in self._mark_buttons.items():
            button.setDown(formatting.is_mark_active(self._surface, state.selection, mark))
        self._ai_button.setEnabled(self._ai_available())
        _move_to(self, state.anchor)
        self.show()
        self.raise_()

    def _make_button(self, label: str, tooltip: str) -> QToolButton:
        button = QToolButton(self)
        button.setText(label)
        button.setToolTip(tooltip)
        button.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        button.setAutoRaise(True)
        return button

    def _toggle(self, mark: str) -> None:
        formatting.toggle_mark(self._surface, self._surface.get_selection(), mark)

    def _handle_ai_clicked(self) -> None:
        if self._ai_available():
            self._on_ai_edit()


class SuggestionPopup(QFrame):
    """List of matching slash commands under the caret."""

    ROW_HEIGHT = 36

    def __init__(self, engine: SuggestionEngine, parent: Any | None = None) -> None:
        super().__init__(parent)
        self._engine = engine
        self.setObjectName("inkwell-suggestions")
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self.setFixedWidth(260)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(2, 2, 2, 2)
        self._list = QListWidget(self)
        self._list.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self._list.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self._list.itemClicked.connect(self._handle_item_clicked)  # type: ignore[attr-defined]
        layout.addWidget(self._list)

        self.hide()
        engine.add_listener(self.render)

    @property
    def list_widget(self) -> QListWidget:
        return self._list

    def render(self, engine: SuggestionEngine) -> None:
        if not engine.is_open:
            self.hide()
            return
        self._list.clear()
        if engine.is_empty:
            item = QListWidgetItem("No matching commands")
            item.setFlags(Qt.ItemFlag.NoItemFlags)
            self._list.addItem(item)
        else:
            for command in engine.visible_items:
                item = QListWidgetItem(f"{command.icon}  {command.title}\n{command.description}")
                item.setToolTip(command.description)
                self._list.addItem(item)
            self._list.setCurrentRow(engine.selected_index - engine.scroll_offset)
        rows = max(1, self._list.count())
        self.setFixedHeight(rows * self.ROW_HEIGHT + 8)
        anchor = engine.anchor
        if anchor is not None:
            _move_to(self, anchor)
        self.show()
        self.raise_()

    def _handle_item_clicked(self, item: QListWidgetItem) -> None:
        row = self._list.row(item)
        if row < 0 or self._engine.is_empty:
            return
        self._engine.commit(self._engine.scroll_offset + row)


class AIEditPopover(QFrame):
    """Instruction entry, quick chips, loading/error state and result preview for one session."""

    def __init__(
        self,
        pipeline: AIEditPipeline,
        surface: DocumentSurface,
        *,
        calculator: AnchorCalculator,
        parent: Any | None = None,
    ) -> None:
        super().__init__(parent)
        self._pipeline = pipeline
        self._surface = surface
        self._calculator = calculator
        self._submit_task: asyncio.Future | None = None
        self.setObjectName("inkwell-ai-popover")
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.setFixedWidth(_POPOVER_WIDTH)

        layout = QVBoxLayout(self)
        self._title = QLabel("AI Edit", self)
        layout.addWidget(self._title)
        self._selection_preview = QLabel(self)
        self._selection_preview.setWordWrap(True)
        layout.addWidget(self._selection_preview)

        self._instruction = QLineEdit(self)
        self._instruction.setPlaceholderText("Describe how to edit the text...")
        self._instruction.textEdited.connect(self._handle_instruction_edited)  # type: ignore[attr-defined]
        self._instruction.returnPressed.connect(self.submit)  # type: ignore[attr-defined]
        layout.addWidget(self._instruction)

        chips = QGridLayout()
        for index, label in enumerate(pipeline.quick_instructions):
            chip = QPushButton(label, self)
            chip.setFlat(True)
            chip.clicked.connect(lambda _checked=False, value=label: self._use_quick_instruction(value))  # type: ignore[attr-defined]
            chips.addWidget(chip, index // 3, index % 3)
        layout.addLayout(chips)

        self._status = QLabel(self)
        self._status.setWordWrap(True)
        layout.addWidget(self._status)

        self._result = QPlainTextEdit(self)
        self._result.setReadOnly(True)
        self._result.setMaximumHeight(140)
        layout.addWidget(self._result)

        buttons = QHBoxLayout()
        self._submit_button = QPushButton("Submit", self)
        self._submit_button.clicked.connect(self.submit)  # type: ignore[attr-defined]
        self._apply_button = QPushButton("Apply", self)
        self._apply_button.clicked.connect(self.apply)  # type: ignore[attr-defined]
        self._close_button = QPushButton("Cancel", self)
        self._close_button.clicked.connect(self._pipeline.close)  # type: ignore[attr-defined]
        buttons.addWidget(self._submit_button)
        buttons.addStretch(1)
        buttons.addWidget(self._apply_button)
        buttons.addWidget(self._close_button)
        layout.addLayout(buttons)

        self._error: str | None = None
        self.hide()
        pipeline.add_listener(self.render)

    @property
    def instruction_input(self) -> QLineEdit:
        return self._instruction

    @property
    def submit_button(self) -> QPushButton:
        return self._submit_button

    @property
    def apply_button(self) -> QPushButton:
        return self._apply_button

    @property
    def status_text(self) -> str:
        return self._status.text()

    def render(self, session: EditSession | None) -> None:
        if session is None:
            self._error = None
            self._instruction.clear()
            self._result.clear()
            self.hide()
            return
        if self._instruction.text() != session.instruction:
            self._instruction.setText(session.instruction)
        if session.has_selection:
            preview = session.selected_text if len(session.selected_text) <= 120 else session.selected_text[:117] + "..."
            self._selection_preview.setText(f"Selected: {preview}")
        else:
            self._selection_preview.setText("Insert at cursor")
        loading = session.status is SessionStatus.SUBMITTING
        self._instruction.setEnabled(not loading)
        self._submit_button.setEnabled(session.can_submit)
        self._submit_button.setText("Retry" if session.status is SessionStatus.FAILED else "Submit")
        self._apply_button.setEnabled(session.can_apply)
        self._result.setPlainText(session.result.edited_text if session.result else "")
        if loading:
            self._status.setText("Working...")
        elif session.status is SessionStatus.FAILED and session.error is not None:
            self._status.setText(session.error.message)
        elif self._error:
            self._status.setText(self._error)
        elif session.result is not None and session.result.is_empty:
            self._status.setText("The AI returned no usable output")
        elif session.result is not None:
            self._status.setText(session.result.explanation or "")
        else:
            self._status.clear()
        self._place(session)
        if not self.isVisible():
            self.show()
            self.raise_()
            self._instruction.setFocus()

    def submit(self) -> None:
        if self._submit_task is not None and not self._submit_task.done():
            return
        self._error = None
        self._submit_task = asyncio.ensure_future(self._submit(self._instruction.text()))

    def apply(self) -> None:
        try:
            self._pipeline.apply()
        except EditError as exc:
            self._show_error(exc.message)

    def keyPressEvent(self, event: Any) -> None:  # noqa: N802 - Qt override
        if event.key() == Qt.Key.Key_Escape:
            self._pipeline.close()
            event.accept()
            return
        super().keyPressEvent(event)

    async def _submit(self, instruction: str) -> None:
        try:
            await self._pipeline.submit(instruction)
        except EditError as exc:
            self._show_error(exc.message)

    def _show_error(self, message: str) -> None:
        self._error = message
        self.render(self._pipeline.session)

    def _handle_instruction_edited(self, text: str) -> None:
        self._error = None
        if self._pipeline.session is not None:
            self._pipeline.set_instruction(text)

    def _use_quick_instruction(self, label: str) -> None:
        session = self._pipeline.session
        if session is None or session.is_loading:
            return
        self._error = None
        self._pipeline.use_quick_instruction(label)
        self._instruction.setFocus()

    def _place(self, session: EditSession) -> None:
        rect = self._surface.rect_for_range(session.selection)
        if rect is None:
            return
        _move_to(self, self._calculator.below_start(rect))


__all__ = ["AIEditPopover", "FloatingToolbar", "SuggestionPopup"]
