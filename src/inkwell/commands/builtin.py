"""Built-in slash commands."""

from __future__ import annotations

from functools import partial

from ..editor import blocks
from ..editor.surface import DocumentSurface
from ..events import AIEditRequested, EventBus
from .descriptors import CommandDescriptor, CommandRegistry

AI_EDIT_COMMAND_ID = "ai-edit"


def _heading(level: int, surface: DocumentSurface, caret: int) -> None:
    blocks.set_heading(surface, caret, level)


def _request_ai_edit(bus: EventBus, surface: DocumentSurface, caret: int) -> None:
    del surface
    bus.publish(AIEditRequested(caret=caret, source="slash"))


def build_default_commands(bus: EventBus) -> CommandRegistry:
    """Return the static palette; the AI entry publishes on ``bus``."""

    return CommandRegistry(
        [
            CommandDescriptor("heading-1", "Heading 1", "Large section heading", "H1", partial(_heading, 1)),
            CommandDescriptor("heading-2", "Heading 2", "Medium section heading", "H2", partial(_heading, 2)),
            CommandDescriptor("heading-3", "Heading 3", "Small section heading", "H3", partial(_heading, 3)),
            CommandDescriptor("bullet-list", "Bullet List", "Create a bulleted list", "•", blocks.toggle_bullet_list),
            CommandDescriptor("ordered-list", "Numbered List", "Create a numbered list", "1.", blocks.toggle_ordered_list),
            CommandDescriptor("blockquote", "Quote", "Insert a quote block", "”", blocks.toggle_blockquote),
            CommandDescriptor("code-block", "Code Block", "Insert a fenced code block", "</>", blocks.toggle_code_block),
            CommandDescriptor("divider", "Divider", "Insert a horizontal rule", "―", blocks.insert_horizontal_rule),
            CommandDescriptor(
                AI_EDIT_COMMAND_ID,
                "AI Edit",
                "Write or edit text with AI",
                "✨",
                partial(_request_ai_edit, bus),
            ),
        ]
    )


__all__ = ["AI_EDIT_COMMAND_ID", "build_default_commands"]
