"""Dataclasses representing editor document state, selections, and edits."""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

ChangeSource = Literal["user", "programmatic"]


def _utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""

    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class SelectionRange:
    """Selection span in the document's flat text coordinate space.

    ``anchor`` is where the selection started and ``head`` is where the caret
    currently sits; the range is *collapsed* (a bare caret) when both match.
    """

    anchor: int = 0
    head: int = 0

    @classmethod
    def caret(cls, position: int) -> "SelectionRange":
        return cls(position, position)

    @classmethod
    def from_value(cls, value: Any) -> "SelectionRange":
        """Coerce tuples, mappings, or other ranges into a selection."""

        if isinstance(value, SelectionRange):
            return value
        if isinstance(value, Mapping):
            if "anchor" in value or "head" in value:
                anchor = value.get("anchor", value.get("head", 0))
                head = value.get("head", anchor)
            else:
                anchor = value.get("start", 0)
                head = value.get("end", anchor)
            return cls(int(anchor), int(head))
        start = getattr(value, "start", None)
        end = getattr(value, "end", None)
        if start is not None and end is not None and not isinstance(value, (str, bytes)):
            return cls(int(start), int(end))
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and len(value) == 2:
            return cls(int(value[0]), int(value[1]))
        raise TypeError(f"Cannot build a selection from {type(value).__name__}")

    @property
    def start(self) -> int:
        return min(self.anchor, self.head)

    @property
    def end(self) -> int:
        return max(self.anchor, self.head)

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_collapsed(self) -> bool:
        return self.anchor == self.head

    def clamp(self, length: int) -> "SelectionRange":
        """Return a copy whose offsets are valid positions in a text of ``length``."""

        anchor = max(0, min(int(self.anchor), length))
        head = max(0, min(int(self.head), length))
        if anchor == self.anchor and head == self.head:
            return self
        return SelectionRange(anchor, head)

    def as_tuple(self) -> tuple[int, int]:
        """Return ``(start, end)`` for serialization."""

        return (self.start, self.end)


@dataclass(slots=True, frozen=True)
class TextChange:
    """Describes one mutation of the document buffer.

    ``start``/``end`` address the replaced slice in the text *before* the
    change and ``inserted`` is the new content placed there.
    """

    start: int
    end: int
    inserted: str
    source: ChangeSource = "programmatic"


@dataclass(slots=True)
class DocumentState:
    """The text of one document plus its save bookkeeping."""

    text: str = ""
    document_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    dirty: bool = False
    version_id: int = 1
    updated_at: datetime = field(default_factory=_utcnow)

    def update_text(self, new_text: str) -> None:
        """Update the document text and mark it dirty."""

        self.text = new_text
        self.dirty = True
        self.version_id += 1
        self.updated_at = _utcnow()


__all__ = [
    "ChangeSource",
    "DocumentState",
    "SelectionRange",
    "TextChange",
]
