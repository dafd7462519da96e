"""Typed publish/subscribe channel shared by the editor core and UI shells.

Components never reach for globals to talk to each other: the provider
registry, the slash palette, and the AI edit pipeline each receive an
:class:`EventBus` and publish the events below on it. A second window that
wants provider updates subscribes to :class:`ProvidersChanged` explicitly.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar
from weakref import WeakMethod

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events published on the bus."""


# =============================================================================
# Provider events
# =============================================================================


@dataclass(slots=True)
class ProvidersChanged(Event):
    """Emitted after any provider configuration or the default changes.

    Attributes:
        provider_ids: Provider ids in registration order.
        default_provider: Id of the default provider, if any.
        active_provider: Id the resolution policy currently picks, if any.
    """

    provider_ids: tuple[str, ...]
    default_provider: str | None
    active_provider: str | None


# =============================================================================
# Command palette events
# =============================================================================


@dataclass(slots=True)
class CommandApplied(Event):
    """Emitted after a slash command ran against the document."""

    command_id: str
    position: int


@dataclass(slots=True)
class AIEditRequested(Event):
    """Asks the AI edit pipeline to open at ``caret`` with no selected text."""

    caret: int
    source: str = "slash"


# =============================================================================
# AI edit session events
# =============================================================================


@dataclass(slots=True)
class AIEditSubmitted(Event):
    session_id: str
    provider_id: str
    instruction: str


@dataclass(slots=True)
class AIEditCompleted(Event):
    session_id: str
    edited_text: str


@dataclass(slots=True)
class AIEditFailed(Event):
    """Emitted when a submission fails at the transport level.

    Attributes:
        session_id: The session whose request failed.
        message: Human readable description shown as a dismissible notice.
        status_code: HTTP status when the backend answered, otherwise ``None``.
    """

    session_id: str
    message: str
    status_code: int | None = None


@dataclass(slots=True)
class AIEditApplied(Event):
    session_id: str
    start: int
    end: int
    text: str


@dataclass(slots=True)
class AIEditClosed(Event):
    session_id: str
    applied: bool


# =============================================================================
# Persistence events
# =============================================================================


@dataclass(slots=True)
class DocumentSaved(Event):
    document_id: str
    length: int


class EventBus(Generic[E]):
    """Synchronous publish/subscribe bus.

    Handlers for bound methods are held weakly so short-lived widgets do not
    leak through their subscriptions; plain functions are held strongly.
    The bus is not thread-safe; use it from the event loop thread only.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for events of exactly ``event_type``."""

        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed handler %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        handlers = self._handlers.get(event_type)
        if handlers is None:
            return
        for index, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(index)
                logger.debug("Unsubscribed handler %s from %s", _handler_name(handler), event_type.__name__)
                return

    def publish(self, event: E) -> None:
        """Invoke every handler in subscription order.

        A handler that raises is logged and the remaining handlers still run.
        """

        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            logger.debug("No handlers for event type %s", event_type.__name__)
            return

        dead: list[_HandlerRef] = []
        for handler_ref in list(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(handler_ref)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
        if dead:
            # handlers may have changed during dispatch; drop by identity
            handlers[:] = [handler_ref for handler_ref in handlers if not any(handler_ref is gone for gone in dead)]

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event_type: type[E] | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for everything else."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: Any, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> "_HandlerRef":
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref
        return self._ref()

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "ProvidersChanged",
    "CommandApplied",
    "AIEditRequested",
    "AIEditSubmitted",
    "AIEditCompleted",
    "AIEditFailed",
    "AIEditApplied",
    "AIEditClosed",
    "DocumentSaved",
]
