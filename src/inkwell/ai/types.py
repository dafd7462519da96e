"""Canonical request/response shapes shared by every provider adapter."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class EditRequest:
    """One submission to a text-generation backend; never mutated once built."""

    instruction: str
    selected_text: str | None = None
    context: str | None = None

    def __post_init__(self) -> None:
        if not self.instruction or not self.instruction.strip():
            raise ValueError("EditRequest.instruction must be non-empty")

    @classmethod
    def build(cls, instruction: str, selected_text: str | None = None, context: str | None = None) -> "EditRequest":
        """Trim the instruction and drop empty optional sections."""

        return cls(
            instruction=instruction.strip(),
            selected_text=selected_text or None,
            context=(context or "").strip() or None,
        )


@dataclass(slots=True, frozen=True)
class EditResult:
    """Backend-independent edit output."""

    edited_text: str
    explanation: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.edited_text.strip()


__all__ = ["EditRequest", "EditResult"]
