"""Adapter for Anthropic-style ``/v1/messages`` endpoints, spoken over httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import TransportError
from ..prompts import build_single_prompt
from ..types import EditRequest, EditResult
from .base import DEFAULT_TIMEOUT, MAX_TOKENS, TEMPERATURE, ProviderAdapter, as_text, field_value, first_item
from .config import AdapterFamily, ProviderConfig

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com"
API_VERSION = "2023-06-01"


def messages_endpoint(base_url: str | None) -> str:
    """Accept bases with or without the ``/v1`` suffix."""

    base = (base_url or DEFAULT_BASE_URL).rstrip("/")
    if base.endswith("/messages"):
        return base
    if base.endswith("/v1"):
        return f"{base}/messages"
    return f"{base}/v1/messages"


class MessagesAdapter(ProviderAdapter):
    """Sends a single user turn and reads ``content[0].text`` from the reply."""

    family = AdapterFamily.MESSAGES

    def __init__(
        self,
        *,
        timeout: float | None = DEFAULT_TIMEOUT,
        debug_logging: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, debug_logging=debug_logging)
        self._transport = transport

    def build_payload(self, config: ProviderConfig, request: EditRequest) -> dict[str, Any]:
        return {
            "model": config.model,
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
            "messages": [{"role": "user", "content": build_single_prompt(request)}],
        }

    def build_headers(self, config: ProviderConfig) -> dict[str, str]:
        return {
            "x-api-key": config.api_key,
            "anthropic-version": API_VERSION,
            "content-type": "application/json",
        }

    async def send(self, config: ProviderConfig, request: EditRequest) -> EditResult:
        payload = self.build_payload(config, request)
        self._log_payload(config, payload)
        url = messages_endpoint(config.base_url)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, headers=self.build_headers(config), json=payload)
            except httpx.HTTPError as exc:
                raise TransportError.connection_failed(str(exc) or type(exc).__name__) from exc
            except (httpx.InvalidURL, UnicodeEncodeError) as exc:
                # malformed base URL, or a key that cannot be sent as a header
                raise TransportError.connection_failed(f"invalid request: {exc}") from exc
        if not response.is_success:
            raise TransportError.from_status(response.status_code, response.reason_phrase)
        try:
            data = response.json()
        except ValueError:
            LOGGER.warning("Provider %s returned a non-JSON body", config.id)
            data = None
        return self._result(config, extract_text_block(data))


def extract_text_block(data: Any) -> str:
    block = first_item(field_value(data, "content"))
    return as_text(field_value(block, "text"))


__all__ = ["API_VERSION", "DEFAULT_BASE_URL", "MessagesAdapter", "extract_text_block", "messages_endpoint"]
