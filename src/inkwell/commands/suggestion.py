"""Slash-triggered suggestion menu state machine.

States are ``CLOSED`` and ``OPEN(query, selected_index)``. Typing the trigger
character at a word boundary opens the menu; the query is always re-derived
from the document text between the trigger and the caret, so Backspace,
paste, and caret moves are handled the same way as typed characters.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable

from ..editor.document_model import DocumentState, SelectionRange, TextChange
from ..editor.geometry import AnchorCalculator, AnchorPoint
from ..editor.surface import DocumentSurface
from ..events import CommandApplied, EventBus
from .descriptors import CommandDescriptor, CommandRegistry

LOGGER = logging.getLogger(__name__)

DEFAULT_TRIGGER = "/"
DEFAULT_MAX_VISIBLE = 8

_KEY_ALIASES = {
    "up": "up",
    "arrowup": "up",
    "down": "down",
    "arrowdown": "down",
    "enter": "enter",
    "return": "enter",
    "escape": "escape",
    "esc": "escape",
}


class SuggestionStatus(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"


SuggestionListener = Callable[["SuggestionEngine"], None]


class SuggestionEngine:
    """Filterable command menu anchored to the caret."""

    def __init__(
        self,
        surface: DocumentSurface,
        registry: CommandRegistry,
        *,
        trigger: str = DEFAULT_TRIGGER,
        max_visible: int = DEFAULT_MAX_VISIBLE,
        calculator: AnchorCalculator | None = None,
        bus: EventBus | None = None,
    ) -> None:
        if len(trigger) != 1:
            raise ValueError("Trigger must be a single character")
        self._surface = surface
        self._registry = registry
        self._trigger = trigger
        self._max_visible = max(1, int(max_visible))
        self._calculator = calculator or AnchorCalculator()
        self._bus = bus
        self._listeners: list[SuggestionListener] = []
        self._reset()
        surface.add_text_listener(self._handle_text_changed)
        surface.on_selection_changed(self._handle_selection_changed)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def status(self) -> SuggestionStatus:
        return self._status

    @property
    def is_open(self) -> bool:
        return self._status is SuggestionStatus.OPEN

    @property
    def trigger(self) -> str:
        return self._trigger

    @property
    def query(self) -> str:
        return self._query

    @property
    def selected_index(self) -> int:
        return self._selected_index

    @property
    def items(self) -> tuple[CommandDescriptor, ...]:
        return self._items

    @property
    def is_empty(self) -> bool:
        return self.is_open and not self._items

    @property
    def selected_item(self) -> CommandDescriptor | None:
        if not self._items:
            return None
        return self._items[self._selected_index]

    @property
    def trigger_range(self) -> SelectionRange | None:
        """Span from the trigger character to the caret while open."""

        if not self.is_open or self._trigger_start is None:
            return None
        return SelectionRange(self._trigger_start, self._trigger_start + 1 + len(self._query))

    @property
    def anchor(self) -> AnchorPoint | None:
        return self._anchor

    @property
    def scroll_offset(self) -> int:
        return self._scroll_offset

    @property
    def max_visible(self) -> int:
        return self._max_visible

    @property
    def visible_items(self) -> tuple[CommandDescriptor, ...]:
        return self._items[self._scroll_offset : self._scroll_offset + self._max_visible]

    def add_listener(self, listener: SuggestionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SuggestionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Keyboard + pointer input
    # ------------------------------------------------------------------
    def handle_key(self, key: str) -> bool:
        """Route a navigation key; returns ``True`` when the menu consumed it."""

        if not self.is_open:
            return False
        action = _KEY_ALIASES.get(key.strip().lower())
        if action == "up":
            self.move_up()
        elif action == "down":
            self.move_down()
        elif action == "enter":
            self.commit()
        elif action == "escape":
            self.dismiss()
        else:
            return False
        return True

    def move_up(self) -> None:
        count = len(self._items)
        if not self.is_open or count == 0:
            return
        self._select((self._selected_index - 1 + count) % count)

    def move_down(self) -> None:
        count = len(self._items)
        if not self.is_open or count == 0:
            return
        self._select((self._selected_index + 1) % count)

    def select_index(self, index: int) -> None:
        """Highlight ``index`` (pointer hover)."""

        if not self.is_open or not 0 <= index < len(self._items):
            return
        self._select(index)

    def commit(self, index: int | None = None) -> CommandDescriptor | None:
        """Run the highlighted (or given) command against the trigger range.

        With no matching items the menu simply closes.
        """

        if not self.is_open:
            return None
        if index is not None:
            self.select_index(index)
        command = self.selected_item
        trigger_range = self.trigger_range
        self._close("commit")
        if command is None or trigger_range is None:
            return None
        LOGGER.debug("Applying slash command %s over %s", command.command_id, trigger_range.as_tuple())
        caret = command.apply(self._surface, trigger_range)
        if self._bus is not None:
            self._bus.publish(CommandApplied(command_id=command.command_id, position=caret))
        return command

    def dismiss(self) -> None:
        """Close without running anything (Escape)."""

        if self.is_open:
            self._close("dismiss")

    def close(self) -> None:
        self.dismiss()
        self._surface.remove_text_listener(self._handle_text_changed)
        self._surface.remove_selection_listener(self._handle_selection_changed)
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Surface notifications
    # ------------------------------------------------------------------
    def _handle_text_changed(self, change: TextChange, state: DocumentState) -> None:
        del state
        if not self.is_open:
            if self._is_trigger_keystroke(change):
                self._open(change.start)
            return
        trigger_start = self._trigger_start
        if trigger_start is None or change.start <= trigger_start:
            # the edit touched the trigger itself or text before it
            self._close("edit at or before trigger")
            return
        self._sync_query()

    def _handle_selection_changed(self, selection: SelectionRange) -> None:
        del selection
        if self.is_open:
            self._sync_query()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _is_trigger_keystroke(self, change: TextChange) -> bool:
        if change.source != "user" or change.inserted != self._trigger:
            return False
        if change.start == 0:
            return True
        text = self._surface.text
        return text[change.start - 1].isspace()

    def _open(self, position: int) -> None:
        self._status = SuggestionStatus.OPEN
        self._trigger_start = position
        self._query = ""
        self._items = self._registry.filter("")
        self._selected_index = 0
        self._scroll_offset = 0
        self._anchor = self._caret_anchor()
        LOGGER.debug("Suggestion menu opened at offset %d", position)
        self._notify()

    def _sync_query(self) -> None:
        start = self._trigger_start
        text = self._surface.text
        selection = self._surface.get_selection()
        caret = selection.head
        if (
            start is None
            or not selection.is_collapsed
            or start >= len(text)
            or text[start] != self._trigger
            or caret <= start
        ):
            self._close("caret left trigger range")
            return
        query = text[start + 1 : caret]
        if any(char.isspace() for char in query):
            self._close("whitespace in query")
            return
        if query == self._query:
            return
        self._query = query
        self._items = self._registry.filter(query)
        self._selected_index = 0
        self._scroll_offset = 0
        self._anchor = self._caret_anchor()
        self._notify()

    def _select(self, index: int) -> None:
        self._selected_index = index
        if index < self._scroll_offset:
            self._scroll_offset = index
        elif index >= self._scroll_offset + self._max_visible:
            self._scroll_offset = index - self._max_visible + 1
        self._notify()

    def _caret_anchor(self) -> AnchorPoint | None:
        caret = self._surface.get_selection().head
        rect = self._surface.rect_for_range(SelectionRange.caret(caret))
        if rect is None:
            return None
        return self._calculator.below_start(rect)

    def _close(self, reason: str) -> None:
        LOGGER.debug("Suggestion menu closed (%s)", reason)
        self._reset()
        self._notify()

    def _reset(self) -> None:
        self._status = SuggestionStatus.CLOSED
        self._trigger_start: int | None = None
        self._query = ""
        self._items: tuple[CommandDescriptor, ...] = ()
        self._selected_index = 0
        self._scroll_offset = 0
        self._anchor: AnchorPoint | None = None

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)


__all__ = [
    "DEFAULT_MAX_VISIBLE",
    "DEFAULT_TRIGGER",
    "SuggestionEngine",
    "SuggestionListener",
    "SuggestionStatus",
]
