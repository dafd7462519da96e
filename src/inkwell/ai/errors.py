"""Error taxonomy for the AI edit pipeline.

Every failure is local to one editing session:

* :class:`ValidationError` - rejected before any network call (empty
  instruction, no active provider, nothing to apply).
* :class:`TransportError` - the backend answered with a non-success status or
  could not be reached. Never retried automatically.
* :class:`StaleSessionError` - a response arrived for a session that is
  already closed. Raised and swallowed inside the pipeline only.

Malformed responses are *not* errors: adapters degrade them to an empty
``edited_text``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


class ErrorCode:
    """Machine-readable error identifiers."""

    EMPTY_INSTRUCTION = "empty_instruction"
    NO_ACTIVE_PROVIDER = "no_active_provider"
    NO_SESSION = "no_session"
    EMPTY_RESULT = "empty_result"
    REQUEST_FAILED = "request_failed"
    CONNECTION_FAILED = "connection_failed"
    STALE_SESSION = "stale_session"


@dataclass
class EditError(Exception):
    """Base exception for AI edit failures."""

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    severity: ClassVar[str] = "error"

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return payload

    def __str__(self) -> str:
        return self.message


@dataclass
class ValidationError(EditError):
    """User-correctable problem detected before contacting a backend."""

    code: str = field(default=ErrorCode.EMPTY_INSTRUCTION)
    message: str = field(default="Enter an editing instruction")
    details: dict[str, Any] = field(default_factory=dict)

    severity: ClassVar[str] = "warning"

    @classmethod
    def empty_instruction(cls) -> "ValidationError":
        return cls()

    @classmethod
    def no_active_provider(cls) -> "ValidationError":
        return cls(
            code=ErrorCode.NO_ACTIVE_PROVIDER,
            message="Configure and enable an AI provider in settings first",
        )

    @classmethod
    def no_session(cls) -> "ValidationError":
        return cls(code=ErrorCode.NO_SESSION, message="No AI edit is in progress")

    @classmethod
    def empty_result(cls) -> "ValidationError":
        return cls(code=ErrorCode.EMPTY_RESULT, message="The AI returned no usable output")


@dataclass
class TransportError(EditError):
    """The request failed at the HTTP/connection level."""

    code: str = field(default=ErrorCode.REQUEST_FAILED)
    message: str = field(default="AI request failed")
    details: dict[str, Any] = field(default_factory=dict)
    status_code: int | None = field(default=None)

    @classmethod
    def from_status(cls, status_code: int, reason: str | None = None) -> "TransportError":
        description = f"{status_code} {reason}".strip() if reason else str(status_code)
        return cls(
            message=f"AI request failed: {description}",
            status_code=status_code,
            details={"status": description},
        )

    @classmethod
    def connection_failed(cls, reason: str) -> "TransportError":
        return cls(
            code=ErrorCode.CONNECTION_FAILED,
            message=f"AI request failed: {reason}",
            details={"reason": reason},
        )

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        return payload


@dataclass
class StaleSessionError(EditError):
    """A response resolved after its session was closed."""

    code: str = field(default=ErrorCode.STALE_SESSION)
    message: str = field(default="AI edit session is no longer active")
    details: dict[str, Any] = field(default_factory=dict)

    severity: ClassVar[str] = "debug"


__all__ = [
    "EditError",
    "ErrorCode",
    "StaleSessionError",
    "TransportError",
    "ValidationError",
]
