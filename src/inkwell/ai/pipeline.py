"""Coordinates AI edit sessions between the document, the registry and adapters."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from ..editor.document_model import SelectionRange
from ..editor.surface import DocumentSurface
from ..events import (
    AIEditApplied,
    AIEditClosed,
    AIEditCompleted,
    AIEditFailed,
    AIEditRequested,
    AIEditSubmitted,
    EventBus,
)
from .errors import StaleSessionError, TransportError, ValidationError
from .prompts import QUICK_INSTRUCTIONS
from .providers.registry import ProviderRegistry
from .session import EditSession, SessionStatus
from .types import EditRequest, EditResult

LOGGER = logging.getLogger(__name__)

DEFAULT_CONTEXT_CHARS = 500

PipelineListener = Callable[["EditSession | None"], None]


class AIEditPipeline:
    """Owns at most one :class:`EditSession` at a time.

    Opening a new session closes the previous one. A submission runs as an
    :class:`asyncio.Task`; closing the session cancels that task and bumps the
    session token so a response that still slips through is discarded.
    """

    def __init__(
        self,
        surface: DocumentSurface,
        registry: ProviderRegistry,
        *,
        bus: EventBus | None = None,
        context_chars: int = DEFAULT_CONTEXT_CHARS,
        quick_instructions: tuple[str, ...] = QUICK_INSTRUCTIONS,
    ) -> None:
        self._surface = surface
        self._registry = registry
        self._bus = bus or registry.bus
        self._context_chars = max(0, int(context_chars))
        self._quick_instructions = tuple(quick_instructions)
        self._session: EditSession | None = None
        self._listeners: list[PipelineListener] = []
        self._bus.subscribe(AIEditRequested, self._handle_edit_requested)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def session(self) -> EditSession | None:
        return self._session

    @property
    def quick_instructions(self) -> tuple[str, ...]:
        return self._quick_instructions

    def has_active_provider(self) -> bool:
        return self._registry.has_active_provider()

    def add_listener(self, listener: PipelineListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: PipelineListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    def open_session(self, selection: SelectionRange | None = None, context: str | None = None) -> EditSession:
        """Capture ``selection`` (the current one by default) and start a session.

        Without an explicit ``context`` the text around the captured span is
        used.
        """

        if self._session is not None:
            self.close()
        captured = (selection or self._surface.get_selection()).clamp(len(self._surface.text))
        selected_text = "" if captured.is_collapsed else self._surface.get_text(captured)
        session = EditSession(
            selection=captured,
            selected_text=selected_text,
            context=context if context is not None else self._surrounding_context(captured),
        )
        self._session = session
        LOGGER.debug(
            "Opened AI edit session %s over %s (%d chars selected)",
            session.session_id,
            captured.as_tuple(),
            len(selected_text),
        )
        self._notify()
        return session

    def open_at_caret(self, caret: int) -> EditSession:
        return self.open_session(SelectionRange.caret(caret))

    def set_instruction(self, instruction: str) -> None:
        session = self._require_session()
        session.instruction = instruction
        self._notify()

    def use_quick_instruction(self, value: int | str) -> str:
        """Fill the instruction from a quick chip, by index or by label."""

        if isinstance(value, int):
            try:
                instruction = self._quick_instructions[value]
            except IndexError:
                raise ValueError(f"No quick instruction at index {value}") from None
        else:
            instruction = value
        self.set_instruction(instruction)
        return instruction

    async def submit(self, instruction: str | None = None) -> EditResult | None:
        """Send the session's instruction to the active provider.

        Returns ``None`` when a request is already in flight or when the
        session was closed before the response arrived. Raises
        :class:`ValidationError` before any network call when the instruction
        is blank or no provider is usable, and :class:`TransportError` when the
        request fails; a failed session can be submitted again.
        """

        session = self._require_session()
        if instruction is not None:
            session.instruction = instruction
        if session.is_loading:
            LOGGER.debug("Ignoring submit for session %s: request already in flight", session.session_id)
            return None
        if not session.instruction.strip():
            raise ValidationError.empty_instruction()
        provider = self._registry.resolve_active_provider()
        if provider is None:
            raise ValidationError.no_active_provider()

        request = EditRequest.build(session.instruction, session.selected_text, session.context)
        adapter = self._registry.adapter_for(provider)
        token = session.begin(request, provider.id)
        LOGGER.info("Submitting AI edit %s to provider %s", session.session_id, provider.id)
        self._bus.publish(AIEditSubmitted(session.session_id, provider.id, request.instruction))
        self._notify()

        task = asyncio.ensure_future(adapter.send(provider, request))
        session.task = task
        try:
            try:
                result = await task
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if session.is_current(token):
                    session.abandon()
                    raise
                if current is not None and current.cancelling():
                    raise
                raise StaleSessionError() from None
            except Exception as exc:
                if isinstance(exc, TransportError):
                    error = exc
                else:
                    LOGGER.exception("Adapter for %s raised an unexpected error", provider.id)
                    error = TransportError.connection_failed(str(exc) or type(exc).__name__)
                self._ensure_current(session, token)
                session.fail(error)
                LOGGER.warning("AI edit %s failed: %s", session.session_id, error)
                self._bus.publish(AIEditFailed(session.session_id, error.message, error.status_code))
                self._notify()
                if error is exc:
                    raise
                raise error from exc
            self._ensure_current(session, token)
        except StaleSessionError:
            LOGGER.debug("Discarding response for closed session %s", session.session_id)
            return None
        finally:
            if session.task is task:
                session.task = None

        session.complete(result)
        LOGGER.info("AI edit %s returned %d chars", session.session_id, len(result.edited_text))
        self._bus.publish(AIEditCompleted(session.session_id, result.edited_text))
        self._notify()
        return result

    def apply(self) -> SelectionRange:
        """Write the session's result into the document and end the session.

        A session that captured selected text has exactly that span replaced;
        otherwise the result is inserted at the captured caret.
        """

        session = self._require_session()
        result = session.result
        if result is None or not session.can_apply:
            raise ValidationError.empty_result()
        text = result.edited_text
        if session.has_selection:
            target = session.selection
        else:
            target = SelectionRange.caret(session.selection.head)
            self._surface.set_selection(target)
        target = target.clamp(len(self._surface.text))
        caret = self._surface.replace(target, text)
        self._bus.publish(AIEditApplied(session.session_id, target.start, target.start + len(text), text))
        self._destroy(session, applied=True)
        return caret

    def close(self) -> None:
        session = self._session
        if session is None:
            return
        self._destroy(session, applied=False)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _handle_edit_requested(self, event: AIEditRequested) -> None:
        self.open_at_caret(event.caret)

    def _require_session(self) -> EditSession:
        session = self._session
        if session is None or session.is_closed:
            raise ValidationError.no_session()
        return session

    def _ensure_current(self, session: EditSession, token: int) -> None:
        if self._session is not session or not session.is_current(token):
            raise StaleSessionError(details={"session_id": session.session_id})

    def _destroy(self, session: EditSession, *, applied: bool) -> None:
        was_loading = session.status is SessionStatus.SUBMITTING
        session.invalidate()
        if self._session is session:
            self._session = None
        LOGGER.debug(
            "Closed AI edit session %s (applied=%s, cancelled_request=%s)",
            session.session_id,
            applied,
            was_loading,
        )
        self._bus.publish(AIEditClosed(session.session_id, applied))
        self._notify()

    def _surrounding_context(self, selection: SelectionRange) -> str | None:
        if self._context_chars <= 0:
            return None
        text = self._surface.text
        before = text[max(0, selection.start - self._context_chars) : selection.start].strip()
        after = text[selection.end : selection.end + self._context_chars].strip()
        parts = [part for part in (before, after) if part]
        if not parts:
            return None
        return "\n...\n".join(parts)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._session)


__all__ = ["AIEditPipeline", "DEFAULT_CONTEXT_CHARS", "PipelineListener"]
