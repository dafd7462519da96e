"""Single-slot timers scheduled on the asyncio (qasync) event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

LOGGER = logging.getLogger(__name__)


class PendingTimer:
    """Cancel-replace timer: scheduling again drops the previous callback.

    With ``delay=0`` the callback runs on the next loop iteration, which is how
    geometry reads get deferred until the host has laid out a new selection.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        *,
        delay: float = 0.0,
        loop: asyncio.AbstractEventLoop | None = None,
        name: str = "timer",
    ) -> None:
        self._callback = callback
        self.delay = max(0.0, float(delay))
        self._loop = loop
        self._handle: asyncio.Handle | None = None
        self._name = name

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, delay: float | None = None) -> None:
        """(Re)arm the timer, discarding any callback still waiting."""

        self.cancel()
        loop = self._resolve_loop()
        wait = self.delay if delay is None else max(0.0, float(delay))
        if wait <= 0:
            self._handle = loop.call_soon(self._fire)
        else:
            self._handle = loop.call_later(wait, self._fire)

    def cancel(self) -> bool:
        handle = self._handle
        if handle is None:
            return False
        self._handle = None
        handle.cancel()
        return True

    def flush(self) -> bool:
        """Run a pending callback immediately; returns ``False`` if none was armed."""

        if not self.cancel():
            return False
        self._callback()
        return True

    def _fire(self) -> None:
        self._handle = None
        try:
            self._callback()
        except Exception:
            LOGGER.exception("Scheduled %s callback failed", self._name)

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                raise RuntimeError(
                    f"Cannot schedule the {self._name} timer: pass loop= or schedule it while an event loop is running"
                ) from None
        return self._loop


__all__ = ["PendingTimer"]
