"""Adapter for OpenAI-compatible chat-completions endpoints."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

import httpx
from openai import APIConnectionError, APIResponseValidationError, APIStatusError, AsyncOpenAI

from ..errors import TransportError
from ..prompts import build_chat_messages
from ..types import EditRequest, EditResult
from .base import DEFAULT_TIMEOUT, MAX_TOKENS, TEMPERATURE, ProviderAdapter, as_text, field_value, first_item
from .config import AdapterFamily, ProviderConfig

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"

ClientFactory = Callable[[ProviderConfig], Any]


class ChatCompletionAdapter(ProviderAdapter):
    """POSTs ``{base_url}/chat/completions`` through :class:`openai.AsyncOpenAI`.

    The SDK's own retry loop is disabled: a failed edit surfaces to the user
    immediately and is only resubmitted on request.
    """

    family = AdapterFamily.CHAT_COMPLETIONS

    def __init__(
        self,
        *,
        timeout: float | None = DEFAULT_TIMEOUT,
        debug_logging: bool = False,
        client_factory: ClientFactory | None = None,
    ) -> None:
        super().__init__(timeout=timeout, debug_logging=debug_logging)
        self._client_factory = client_factory or self._build_client

    def _build_client(self, config: ProviderConfig) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=config.api_key,
            base_url=(config.base_url or DEFAULT_BASE_URL).rstrip("/"),
            timeout=self.timeout,
            max_retries=0,
        )

    def build_payload(self, config: ProviderConfig, request: EditRequest) -> dict[str, Any]:
        return {
            "model": config.model,
            "messages": build_chat_messages(request),
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }

    async def send(self, config: ProviderConfig, request: EditRequest) -> EditResult:
        payload = self.build_payload(config, request)
        self._log_payload(config, payload)
        try:
            client = self._client_factory(config)
        except (httpx.InvalidURL, ValueError) as exc:
            raise TransportError.connection_failed(f"invalid request: {exc}") from exc
        try:
            response = await client.chat.completions.create(**payload)
        except APIStatusError as exc:
            reason = getattr(exc.response, "reason_phrase", None)
            raise TransportError.from_status(exc.status_code, reason) from exc
        except APIConnectionError as exc:
            raise TransportError.connection_failed(str(exc) or type(exc).__name__) from exc
        except (httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise TransportError.connection_failed(f"invalid request: {exc}") from exc
        except (APIResponseValidationError, ValueError) as exc:
            LOGGER.warning("Provider %s returned an unreadable response: %s", config.id, exc)
            response = None
        finally:
            await _close_client(client)
        return self._result(config, extract_message_content(response))


def extract_message_content(response: Any) -> str:
    """Return ``choices[0].message.content`` or ``""`` when any level is missing."""

    choice = first_item(field_value(response, "choices"))
    message = field_value(choice, "message")
    return as_text(field_value(message, "content"))


async def _close_client(client: Any) -> None:
    close = getattr(client, "close", None)
    if close is None:
        return
    result = close()
    if inspect.isawaitable(result):
        await result


__all__ = ["ChatCompletionAdapter", "DEFAULT_BASE_URL", "extract_message_content"]
