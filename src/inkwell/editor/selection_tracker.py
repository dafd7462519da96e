"""Tracks the live selection and anchors the floating toolbar to it."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from .document_model import SelectionRange
from .geometry import AnchorCalculator, AnchorPoint
from .surface import DocumentSurface
from .timers import PendingTimer

LOGGER = logging.getLogger(__name__)

DEFAULT_HIDE_DELAY = 0.2


@dataclass(slots=True, frozen=True)
class SelectionState:
    """What the floating toolbar needs to know about the current selection."""

    text: str = ""
    selection: SelectionRange = SelectionRange()
    anchor: AnchorPoint | None = None
    toolbar_visible: bool = False


SelectionStateListener = Callable[[SelectionState], None]


class SelectionTracker:
    """Turns selection-changed notifications into text snapshots and anchors.

    Geometry is read on the next loop iteration rather than inside the
    notification, so the host has finished laying out the new selection. A
    burst of notifications keeps a single pending recomputation which reads
    whatever the selection is by the time it runs.
    """

    def __init__(
        self,
        surface: DocumentSurface,
        *,
        calculator: AnchorCalculator | None = None,
        hide_delay: float = DEFAULT_HIDE_DELAY,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._surface = surface
        self._calculator = calculator or AnchorCalculator()
        self._state = SelectionState()
        self._listeners: list[SelectionStateListener] = []
        self._recompute_timer = PendingTimer(self._recompute, loop=loop, name="anchor recompute")
        self._hide_timer = PendingTimer(self._hide_now, delay=hide_delay, loop=loop, name="toolbar hide")
        surface.on_selection_changed(self._handle_selection_changed)

    # ------------------------------------------------------------------
    # Published state
    # ------------------------------------------------------------------
    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def selection_text(self) -> str:
        return self._state.text

    @property
    def anchor(self) -> AnchorPoint | None:
        return self._state.anchor

    @property
    def toolbar_visible(self) -> bool:
        return self._state.toolbar_visible

    @property
    def hide_pending(self) -> bool:
        return self._hide_timer.pending

    def add_listener(self, listener: SelectionStateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SelectionStateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Host notifications
    # ------------------------------------------------------------------
    def focus_lost(self) -> None:
        """Start the grace window before hiding the toolbar.

        Clicking a toolbar button steals focus from the editor for a moment;
        the toolbar only disappears if nothing brings the selection back.
        """

        if self._state.toolbar_visible:
            self._hide_timer.schedule()

    def focus_gained(self) -> None:
        self._hide_timer.cancel()

    def hide(self) -> None:
        """Hide the toolbar immediately (e.g. after Escape)."""

        self._hide_timer.cancel()
        self._hide_now()

    def refresh(self) -> None:
        """Re-read geometry after a scroll or reflow."""

        self._recompute_timer.schedule()

    def flush(self) -> None:
        """Run a pending recomputation right away."""

        self._recompute_timer.flush()

    def close(self) -> None:
        self._recompute_timer.cancel()
        self._hide_timer.cancel()
        self._surface.remove_selection_listener(self._handle_selection_changed)
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _handle_selection_changed(self, selection: SelectionRange) -> None:
        if not selection.is_collapsed:
            self._hide_timer.cancel()
        self._recompute_timer.schedule()

    def _recompute(self) -> None:
        selection = self._surface.get_selection()
        if selection.is_collapsed:
            self._hide_timer.cancel()
            self._publish(SelectionState(selection=selection))
            return
        text = self._surface.get_text(selection)
        rect = self._surface.rect_for_range(selection)
        if rect is None:
            LOGGER.debug("No live geometry for selection %s; toolbar stays hidden", selection.as_tuple())
            anchor = None
        else:
            anchor = self._calculator.above_centered(rect)
        self._hide_timer.cancel()
        self._publish(
            SelectionState(
                text=text,
                selection=selection,
                anchor=anchor,
                toolbar_visible=anchor is not None and bool(text),
            )
        )

    def _hide_now(self) -> None:
        if not self._state.toolbar_visible and self._state.anchor is None:
            return
        current = self._state
        self._publish(SelectionState(text=current.text, selection=current.selection))

    def _publish(self, state: SelectionState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)


__all__ = ["DEFAULT_HIDE_DELAY", "SelectionState", "SelectionStateListener", "SelectionTracker"]
