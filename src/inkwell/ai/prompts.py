"""Prompt text for AI edits."""

from __future__ import annotations

from typing import Any

from .types import EditRequest

SYSTEM_PROMPT = (
    "You are a professional text editing assistant. Edit the text according to the "
    "user's instruction and reply with the edited result only, without any explanation."
)

RETURN_ONLY_INSTRUCTION = "Return only the edited text, without any explanation or commentary."

QUICK_INSTRUCTIONS: tuple[str, ...] = (
    "Fix grammar",
    "Make it concise",
    "Make it more formal",
    "Translate to English",
    "Summarize key points",
    "Expand",
)


def build_user_message(request: EditRequest) -> str:
    """Instruction first, then the labeled selection and context sections."""

    parts = [f"Instruction: {request.instruction}"]
    if request.selected_text:
        parts.append(f"Text to edit:\n{request.selected_text}")
    if request.context:
        parts.append(f"Context:\n{request.context}")
    return "\n\n".join(parts)


def build_chat_messages(request: EditRequest) -> list[dict[str, Any]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_message(request)},
    ]


def build_single_prompt(request: EditRequest) -> str:
    """Single-turn prompt for message-style backends."""

    parts = [request.instruction]
    if request.context:
        parts.append(f"Context:\n{request.context}")
    if request.selected_text:
        parts.append(f"Text:\n{request.selected_text}")
    parts.append(RETURN_ONLY_INSTRUCTION)
    return "\n\n".join(parts)


__all__ = [
    "QUICK_INSTRUCTIONS",
    "RETURN_ONLY_INSTRUCTION",
    "SYSTEM_PROMPT",
    "build_chat_messages",
    "build_single_prompt",
    "build_user_message",
]
