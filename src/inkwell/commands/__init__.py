"""Slash command palette: descriptors, built-in commands and the suggestion menu."""

from .builtin import AI_EDIT_COMMAND_ID, build_default_commands
from .descriptors import CommandAction, CommandDescriptor, CommandRegistry
from .suggestion import SuggestionEngine, SuggestionStatus

__all__ = [
    "AI_EDIT_COMMAND_ID",
    "CommandAction",
    "CommandDescriptor",
    "CommandRegistry",
    "SuggestionEngine",
    "SuggestionStatus",
    "build_default_commands",
]
