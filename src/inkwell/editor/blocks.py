"""Markdown block transforms applied by slash commands."""

from __future__ import annotations

import logging
import re

from .document_model import SelectionRange
from .surface import DocumentSurface

LOGGER = logging.getLogger(__name__)

_BLOCK_PREFIX_RE = re.compile(r"^(?:#{1,6} |[-*+] |\d+\. |> )")
_CODE_FENCE = "```"
HORIZONTAL_RULE = "---"


def block_prefix(line: str) -> str:
    """Return the Markdown block marker at the start of ``line`` (may be empty)."""

    match = _BLOCK_PREFIX_RE.match(line)
    return match.group(0) if match else ""


def set_line_prefix(surface: DocumentSurface, position: int, prefix: str) -> None:
    """Swap the block marker of the line holding ``position`` for ``prefix``."""

    line_start, line_end = surface.line_bounds(position)
    line = surface.text[line_start:line_end]
    current = block_prefix(line)
    offset_in_line = max(0, position - line_start - len(current))
    if current != prefix:
        surface.replace(SelectionRange(line_start, line_start + len(current)), prefix)
    surface.set_selection(SelectionRange.caret(line_start + len(prefix) + offset_in_line))


def toggle_line_prefix(surface: DocumentSurface, position: int, prefix: str) -> None:
    """Apply ``prefix`` to the line, or strip it when the line already has it."""

    line_start, line_end = surface.line_bounds(position)
    line = surface.text[line_start:line_end]
    if block_prefix(line) == prefix:
        set_line_prefix(surface, position, "")
    else:
        set_line_prefix(surface, position, prefix)


def set_heading(surface: DocumentSurface, position: int, level: int) -> None:
    if not 1 <= level <= 6:
        raise ValueError(f"Heading level must be between 1 and 6, got {level}")
    set_line_prefix(surface, position, "#" * level + " ")


def toggle_bullet_list(surface: DocumentSurface, position: int) -> None:
    toggle_line_prefix(surface, position, "- ")


def toggle_ordered_list(surface: DocumentSurface, position: int) -> None:
    toggle_line_prefix(surface, position, "1. ")


def toggle_blockquote(surface: DocumentSurface, position: int) -> None:
    toggle_line_prefix(surface, position, "> ")


def toggle_code_block(surface: DocumentSurface, position: int) -> None:
    """Fence the caret's line as a code block, or remove surrounding fences."""

    text = surface.text
    line_start, line_end = surface.line_bounds(position)
    previous_start, _ = surface.line_bounds(max(0, line_start - 1))
    next_end = text.find("\n", line_end + 1)
    if next_end == -1:
        next_end = len(text)
    has_open = line_start > 0 and text[previous_start : line_start - 1] == _CODE_FENCE
    has_close = line_end < len(text) and text[line_end + 1 : next_end] == _CODE_FENCE
    if has_open and has_close:
        body = text[line_start:line_end]
        surface.replace(SelectionRange(previous_start, next_end), body)
        surface.set_selection(SelectionRange.caret(previous_start + (position - line_start)))
        return
    body = text[line_start:line_end]
    fenced = f"{_CODE_FENCE}\n{body}\n{_CODE_FENCE}"
    surface.replace(SelectionRange(line_start, line_end), fenced)
    surface.set_selection(SelectionRange.caret(line_start + len(_CODE_FENCE) + 1 + (position - line_start)))


def insert_horizontal_rule(surface: DocumentSurface, position: int) -> None:
    """Insert a thematic break on its own line and park the caret below it."""

    line_start, line_end = surface.line_bounds(position)
    line = surface.text[line_start:line_end]
    if not line.strip():
        surface.replace(SelectionRange(line_start, line_end), f"{HORIZONTAL_RULE}\n")
    else:
        surface.replace(SelectionRange.caret(line_end), f"\n{HORIZONTAL_RULE}\n")
    LOGGER.debug("Inserted horizontal rule near offset %d", position)


__all__ = [
    "HORIZONTAL_RULE",
    "block_prefix",
    "insert_horizontal_rule",
    "set_heading",
    "set_line_prefix",
    "toggle_blockquote",
    "toggle_bullet_list",
    "toggle_code_block",
    "toggle_line_prefix",
    "toggle_ordered_list",
]
