"""Trailing-edge autosave for the active document."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from ..events import DocumentSaved, EventBus
from .document_model import DocumentState, TextChange
from .surface import DocumentSurface
from .timers import PendingTimer

LOGGER = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_DELAY = 1.0


class DocumentSink(Protocol):
    """Persistence collaborator receiving debounced saves."""

    def save(self, document_id: str, content: str) -> None:
        ...


class AutosaveController:
    """Coalesces bursts of edits into a single ``save`` call.

    Every text change re-arms one timer; only the change that is still the
    latest when the timer fires gets persisted.
    """

    def __init__(
        self,
        surface: DocumentSurface,
        sink: DocumentSink,
        *,
        delay: float = DEFAULT_AUTOSAVE_DELAY,
        enabled: bool = True,
        bus: EventBus | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._surface = surface
        self._sink = sink
        self._bus = bus
        self.enabled = enabled
        self._timer = PendingTimer(self._save_now, delay=delay, loop=loop, name="autosave")
        self.save_count = 0
        surface.add_text_listener(self._handle_text_changed)

    @property
    def pending(self) -> bool:
        return self._timer.pending

    def flush(self) -> bool:
        """Persist a pending change immediately."""

        return self._timer.flush()

    def cancel(self) -> None:
        self._timer.cancel()

    def close(self) -> None:
        self._timer.cancel()
        self._surface.remove_text_listener(self._handle_text_changed)

    def _handle_text_changed(self, change: TextChange, state: DocumentState) -> None:
        del change
        # A freshly loaded document is clean; nothing to persist yet.
        if not self.enabled or not state.dirty:
            return
        self._timer.schedule()

    def _save_now(self) -> None:
        document_id = self._surface.document_id
        content = self._surface.text
        try:
            self._sink.save(document_id, content)
        except OSError as exc:
            LOGGER.warning("Autosave failed for document %s: %s", document_id, exc)
            return
        self.save_count += 1
        self._surface.document.dirty = False
        LOGGER.debug("Autosaved document %s (%d chars)", document_id, len(content))
        if self._bus is not None:
            self._bus.publish(DocumentSaved(document_id=document_id, length=len(content)))


__all__ = ["AutosaveController", "DEFAULT_AUTOSAVE_DELAY", "DocumentSink"]
