"""Inline mark toggles exposed by the floating toolbar."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .document_model import SelectionRange
from .surface import DocumentSurface


@dataclass(slots=True, frozen=True)
class InlineMark:
    """Markdown/HTML delimiters wrapped around a selection."""

    name: str
    opening: str
    closing: str


INLINE_MARKS: Mapping[str, InlineMark] = {
    mark.name: mark
    for mark in (
        InlineMark("bold", "**", "**"),
        InlineMark("italic", "*", "*"),
        InlineMark("underline", "<u>", "</u>"),
        InlineMark("strikethrough", "~~", "~~"),
        InlineMark("code", "`", "`"),
    )
}


def is_mark_active(surface: DocumentSurface, selection: SelectionRange, name: str) -> bool:
    """Return ``True`` when ``selection`` is already wrapped by the mark."""

    mark = _resolve(name)
    text = surface.text
    start, end = selection.start, selection.end
    before = text[max(0, start - len(mark.opening)) : start]
    after = text[end : end + len(mark.closing)]
    if before != mark.opening or after != mark.closing:
        return False
    if mark.name == "italic":
        # ``*`` inside ``**`` belongs to bold.
        outer_before = text[max(0, start - 2) : start]
        outer_after = text[end : end + 2]
        return not (outer_before == "**" and outer_after == "**")
    return True


def toggle_mark(surface: DocumentSurface, selection: SelectionRange, name: str) -> SelectionRange:
    """Wrap or unwrap ``selection`` and return the range covering the inner text."""

    mark = _resolve(name)
    selection = selection.clamp(len(surface.text))
    start, end = selection.start, selection.end
    inner = surface.text[start:end]
    if is_mark_active(surface, selection, name):
        outer = SelectionRange(start - len(mark.opening), end + len(mark.closing))
        surface.replace(outer, inner)
        result = SelectionRange(outer.start, outer.start + len(inner))
    else:
        surface.replace(selection, f"{mark.opening}{inner}{mark.closing}")
        inner_start = start + len(mark.opening)
        result = SelectionRange(inner_start, inner_start + len(inner))
    surface.set_selection(result)
    return result


def _resolve(name: str) -> InlineMark:
    try:
        return INLINE_MARKS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown inline mark: {name}") from exc


__all__ = ["INLINE_MARKS", "InlineMark", "is_mark_active", "toggle_mark"]
