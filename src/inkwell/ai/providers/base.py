"""Adapter interface shared by every backend family."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping

from ..types import EditRequest, EditResult
from .config import AdapterFamily, ProviderConfig

LOGGER = logging.getLogger(__name__)

# Short edits: a few paragraphs of output, some variety in wording.
TEMPERATURE = 0.7
MAX_TOKENS = 2000
DEFAULT_TIMEOUT = 60.0


class ProviderAdapter(ABC):
    """Serializes an :class:`EditRequest` for one wire protocol and parses the reply.

    ``send`` makes exactly one POST. Non-success responses and connection
    faults raise :class:`~inkwell.ai.errors.TransportError`; a reply missing
    the expected text field yields an empty ``edited_text`` instead.
    """

    family: AdapterFamily

    def __init__(self, *, timeout: float | None = DEFAULT_TIMEOUT, debug_logging: bool = False) -> None:
        self.timeout = timeout
        self.debug_logging = debug_logging

    @abstractmethod
    async def send(self, config: ProviderConfig, request: EditRequest) -> EditResult:
        """Submit ``request`` to the backend described by ``config``."""

    def _result(self, config: ProviderConfig, text: str) -> EditResult:
        return EditResult(edited_text=text, explanation=f"Edited by {config.name or config.id}")

    def _log_payload(self, config: ProviderConfig, payload: Mapping[str, Any]) -> None:
        if not self.debug_logging:
            return
        try:
            serialized = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            LOGGER.debug("AI edit payload for %s (unserializable): %s", config.id, payload)
        else:
            LOGGER.debug("AI edit payload for %s:\n%s", config.id, serialized)


def field_value(container: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an attribute-style response object."""

    if container is None:
        return None
    if isinstance(container, Mapping):
        return container.get(name)
    return getattr(container, name, None)


def first_item(container: Any) -> Any:
    if isinstance(container, (list, tuple)) and container:
        return container[0]
    return None


def as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


__all__ = [
    "DEFAULT_TIMEOUT",
    "MAX_TOKENS",
    "ProviderAdapter",
    "TEMPERATURE",
    "as_text",
    "field_value",
    "first_item",
]
