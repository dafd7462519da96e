"""Wire-level tests for the backend adapters."""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any

import httpx
import openai
import pytest

from inkwell.ai.errors import ErrorCode, TransportError
from inkwell.ai.providers import MAX_TOKENS, TEMPERATURE, ChatCompletionAdapter, MessagesAdapter, ProviderConfig
from inkwell.ai.providers.chat_completions import extract_message_content
from inkwell.ai.types import EditRequest

REQUEST = EditRequest.build("Fix grammar", "teh cat sat", "Before\n...\nAfter")


def _messages_config(**kwargs: Any) -> ProviderConfig:
    defaults = dict(id="claude", name="Claude", api_key="sk-ant", base_url="https://api.anthropic.com", model="claude-test", enabled=True)
    defaults.update(kwargs)
    return ProviderConfig(**defaults)


def _chat_config(**kwargs: Any) -> ProviderConfig:
    defaults = dict(id="openai", name="OpenAI", api_key="sk-oa", base_url="https://api.openai.com/v1", model="gpt-test", enabled=True)
    defaults.update(kwargs)
    return ProviderConfig(**defaults)


class TestMessagesAdapter:
    @pytest.mark.asyncio
    async def test_posts_single_user_turn(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"content": [{"type": "text", "text": "The cat sat"}]})

        adapter = MessagesAdapter(transport=httpx.MockTransport(handler))
        result = await adapter.send(_messages_config(), REQUEST)

        assert result.edited_text == "The cat sat"
        assert result.explanation == "Edited by Claude"
        (request,) = captured
        assert str(request.url) == "https://api.anthropic.com/v1/messages"
        assert request.headers["x-api-key"] == "sk-ant"
        assert request.headers["anthropic-version"] == "2023-06-01"
        body = json.loads(request.content)
        assert body["model"] == "claude-test"
        assert body["max_tokens"] == MAX_TOKENS
        assert body["temperature"] == TEMPERATURE
        assert len(body["messages"]) == 1
        prompt = body["messages"][0]["content"]
        assert prompt.startswith("Fix grammar")
        assert "teh cat sat" in prompt
        assert prompt.endswith("Return only the edited text, without any explanation or commentary.")

    @pytest.mark.asyncio
    async def test_error_status_raises_transport_error(self) -> None:
        adapter = MessagesAdapter(transport=httpx.MockTransport(lambda request: httpx.Response(429)))
        with pytest.raises(TransportError) as excinfo:
            await adapter.send(_messages_config(), REQUEST)
        assert excinfo.value.status_code == 429
        assert excinfo.value.message == "AI request failed: 429 Too Many Requests"

    @pytest.mark.asyncio
    async def test_connection_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        adapter = MessagesAdapter(transport=httpx.MockTransport(handler))
        with pytest.raises(TransportError) as excinfo:
            await adapter.send(_messages_config(), REQUEST)
        assert excinfo.value.code == ErrorCode.CONNECTION_FAILED
        assert excinfo.value.status_code is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, content=b"<html>not json</html>"),
            httpx.Response(200, json={"content": []}),
            httpx.Response(200, json={"content": [{"type": "text", "text": None}]}),
        ],
    )
    async def test_malformed_reply_yields_empty_text(self, response: httpx.Response) -> None:
        adapter = MessagesAdapter(transport=httpx.MockTransport(lambda request: response))
        result = await adapter.send(_messages_config(), REQUEST)
        assert result.edited_text == ""
        assert result.is_empty

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "changes",
        [
            {"api_key": "sk-–abc"},
            {"base_url": "http://[::1"},
        ],
        ids=["non-ascii-key", "malformed-base-url"],
    )
    async def test_unsendable_request_raises_transport_error(self, changes: dict[str, str]) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"content": [{"type": "text", "text": "unused"}]})

        adapter = MessagesAdapter(transport=httpx.MockTransport(handler))
        with pytest.raises(TransportError) as excinfo:
            await adapter.send(_messages_config(**changes), REQUEST)
        assert excinfo.value.code == ErrorCode.CONNECTION_FAILED
        assert excinfo.value.message.startswith("AI request failed: invalid request:")
        assert calls == []


class _FakeCompletions:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def create(self, **payload: Any) -> Any:
        self.calls.append(payload)
        if self.error is not None:
            raise self.error
        return self.response


class _FakeClient:
    def __init__(self, completions: _FakeCompletions) -> None:
        self.chat = SimpleNamespace(completions=completions)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def _chat_adapter(completions: _FakeCompletions) -> tuple[ChatCompletionAdapter, list[_FakeClient]]:
    clients: list[_FakeClient] = []

    def factory(config: ProviderConfig) -> _FakeClient:
        client = _FakeClient(completions)
        clients.append(client)
        return client

    return ChatCompletionAdapter(client_factory=factory), clients


class TestChatCompletionAdapter:
    @pytest.mark.asyncio
    async def test_sends_system_and_user_messages(self) -> None:
        completions = _FakeCompletions({"choices": [{"message": {"content": "The cat sat"}}]})
        adapter, clients = _chat_adapter(completions)

        result = await adapter.send(_chat_config(), REQUEST)

        assert result.edited_text == "The cat sat"
        (payload,) = completions.calls
        assert payload["model"] == "gpt-test"
        assert payload["temperature"] == TEMPERATURE
        assert payload["max_tokens"] == MAX_TOKENS
        assert [message["role"] for message in payload["messages"]] == ["system", "user"]
        user = payload["messages"][1]["content"]
        assert user.startswith("Instruction: Fix grammar")
        assert "Text to edit:\nteh cat sat" in user
        assert "Context:\nBefore\n...\nAfter" in user
        assert clients[0].closed

    @pytest.mark.asyncio
    async def test_missing_choices_yield_empty_text(self) -> None:
        adapter, _ = _chat_adapter(_FakeCompletions({"choices": []}))
        result = await adapter.send(_chat_config(), REQUEST)
        assert result.edited_text == ""

    @pytest.mark.asyncio
    async def test_status_error_maps_to_transport_error(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = openai.APIStatusError("unauthorized", response=httpx.Response(401, request=request), body=None)
        adapter, clients = _chat_adapter(_FakeCompletions(error=error))

        with pytest.raises(TransportError) as excinfo:
            await adapter.send(_chat_config(), REQUEST)

        assert excinfo.value.status_code == 401
        assert excinfo.value.message == "AI request failed: 401 Unauthorized"
        assert clients[0].closed

    @pytest.mark.asyncio
    async def test_connection_error_maps_to_transport_error(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        adapter, _ = _chat_adapter(_FakeCompletions(error=openai.APIConnectionError(request=request)))
        with pytest.raises(TransportError) as excinfo:
            await adapter.send(_chat_config(), REQUEST)
        assert excinfo.value.code == ErrorCode.CONNECTION_FAILED

    @pytest.mark.asyncio
    async def test_header_encoding_failure_maps_to_transport_error(self) -> None:
        error = UnicodeEncodeError("ascii", "sk-–abc", 3, 4, "ordinal not in range(128)")
        adapter, clients = _chat_adapter(_FakeCompletions(error=error))
        with pytest.raises(TransportError) as excinfo:
            await adapter.send(_chat_config(api_key="sk-–abc"), REQUEST)
        assert excinfo.value.code == ErrorCode.CONNECTION_FAILED
        assert clients[0].closed

    def test_default_client_disables_retries(self) -> None:
        adapter = ChatCompletionAdapter(timeout=5.0)
        client = adapter._build_client(_chat_config(base_url="https://llm.example.com/v1/"))
        assert client.max_retries == 0
        assert str(client.base_url).rstrip("/") == "https://llm.example.com/v1"


def test_extract_message_content_accepts_sdk_objects() -> None:
    response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="done"))])
    assert extract_message_content(response) == "done"
    assert extract_message_content(None) == ""
