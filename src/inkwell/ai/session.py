"""State for a single AI edit, from opening the popover to apply/close."""

from __future__ import annotations

import asyncio
import enum
import uuid
from dataclasses import dataclass, field

from ..editor.document_model import SelectionRange
from .errors import EditError
from .types import EditRequest, EditResult


class SessionStatus(enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    RESULT = "result"
    FAILED = "failed"
    CLOSED = "closed"


@dataclass(slots=True, eq=False)
class EditSession:
    """One open AI edit.

    ``selection`` is the span captured when the session opened; a collapsed
    range means the edit will be inserted at that caret. ``token`` changes on
    every submit and on close so late responses can recognise themselves as
    stale.
    """

    selection: SelectionRange
    selected_text: str = ""
    context: str | None = None
    instruction: str = ""
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: SessionStatus = SessionStatus.IDLE
    request: EditRequest | None = None
    provider_id: str | None = None
    result: EditResult | None = None
    error: EditError | None = None
    token: int = 0
    task: asyncio.Task | None = field(default=None, repr=False)

    @property
    def has_selection(self) -> bool:
        return bool(self.selected_text)

    @property
    def is_loading(self) -> bool:
        return self.status is SessionStatus.SUBMITTING

    @property
    def is_closed(self) -> bool:
        return self.status is SessionStatus.CLOSED

    @property
    def can_submit(self) -> bool:
        return not self.is_closed and not self.is_loading and bool(self.instruction.strip())

    @property
    def can_apply(self) -> bool:
        return self.status is SessionStatus.RESULT and self.result is not None and not self.result.is_empty

    def begin(self, request: EditRequest, provider_id: str) -> int:
        self.token += 1
        self.request = request
        self.provider_id = provider_id
        self.result = None
        self.error = None
        self.status = SessionStatus.SUBMITTING
        return self.token

    def is_current(self, token: int) -> bool:
        return not self.is_closed and self.token == token

    def complete(self, result: EditResult) -> None:
        self.result = result
        self.status = SessionStatus.RESULT

    def fail(self, error: EditError) -> None:
        self.error = error
        self.status = SessionStatus.FAILED

    def abandon(self) -> None:
        """Return to ``IDLE`` after the submitting coroutine itself was cancelled."""

        if self.status is SessionStatus.SUBMITTING:
            self.status = SessionStatus.IDLE

    def invalidate(self) -> None:
        self.token += 1
        self.status = SessionStatus.CLOSED
        task, self.task = self.task, None
        if task is not None and not task.done():
            task.cancel()


__all__ = ["EditSession", "SessionStatus"]
