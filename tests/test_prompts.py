"""Prompt assembly for both adapter families."""

from __future__ import annotations

import pytest

from inkwell.ai.prompts import (
    RETURN_ONLY_INSTRUCTION,
    SYSTEM_PROMPT,
    build_chat_messages,
    build_single_prompt,
    build_user_message,
)
from inkwell.ai.types import EditRequest


def test_user_message_orders_instruction_selection_context() -> None:
    request = EditRequest("Fix grammar", selected_text="teh cat", context="A story.")
    assert build_user_message(request) == "Instruction: Fix grammar\n\nText to edit:\nteh cat\n\nContext:\nA story."


def test_user_message_omits_missing_sections() -> None:
    assert build_user_message(EditRequest("Write a title")) == "Instruction: Write a title"


def test_chat_messages_start_with_system_prompt() -> None:
    messages = build_chat_messages(EditRequest("Expand", selected_text="Hi"))
    assert [message["role"] for message in messages] == ["system", "user"]
    assert messages[0]["content"] == SYSTEM_PROMPT


def test_single_prompt_puts_context_before_text_and_ends_with_return_only() -> None:
    prompt = build_single_prompt(EditRequest("Shorten", selected_text="long words", context="intro"))
    assert prompt == f"Shorten\n\nContext:\nintro\n\nText:\nlong words\n\n{RETURN_ONLY_INSTRUCTION}"


def test_build_trims_and_drops_empty_sections() -> None:
    request = EditRequest.build("  Fix  ", selected_text="", context="   ")
    assert request == EditRequest("Fix")


def test_blank_instruction_is_rejected() -> None:
    with pytest.raises(ValueError):
        EditRequest("   ")
