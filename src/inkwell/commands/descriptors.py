"""Command descriptors and the static registry backing the slash palette."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping

from ..editor.document_model import SelectionRange
from ..editor.surface import DocumentSurface

CommandAction = Callable[[DocumentSurface, int], None]


@dataclass(slots=True, frozen=True)
class CommandDescriptor:
    """Immutable palette entry.

    ``action`` receives the surface and the caret position left behind once
    the trigger range (trigger character plus typed query) has been removed.
    """

    command_id: str
    title: str
    description: str
    icon: str
    action: CommandAction

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match over title, description and id."""

        needle = query.strip().casefold()
        if not needle:
            return True
        haystacks = (self.title, self.description, self.command_id)
        return any(needle in value.casefold() for value in haystacks if value)

    def apply(self, surface: DocumentSurface, trigger_range: SelectionRange) -> int:
        """Delete the trigger range, then run the command at the resulting caret."""

        caret = surface.delete_range(trigger_range).head
        self.action(surface, caret)
        return caret


class CommandRegistry:
    """Read-only arena of descriptors indexed by id, in registration order."""

    __slots__ = ("_order", "_by_id")

    def __init__(self, commands: Iterable[CommandDescriptor]) -> None:
        ordered = tuple(commands)
        by_id: dict[str, CommandDescriptor] = {}
        for command in ordered:
            if command.command_id in by_id:
                raise ValueError(f"Duplicate command id: {command.command_id}")
            by_id[command.command_id] = command
        self._order = ordered
        self._by_id: Mapping[str, CommandDescriptor] = MappingProxyType(by_id)

    def __iter__(self) -> Iterator[CommandDescriptor]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, command_id: object) -> bool:
        return command_id in self._by_id

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(command.command_id for command in self._order)

    def get(self, command_id: str) -> CommandDescriptor | None:
        return self._by_id.get(command_id)

    def require(self, command_id: str) -> CommandDescriptor:
        command = self._by_id.get(command_id)
        if command is None:
            raise KeyError(f"Unknown command: {command_id}")
        return command

    def filter(self, query: str) -> tuple[CommandDescriptor, ...]:
        return tuple(command for command in self._order if command.matches(query))


__all__ = ["CommandAction", "CommandDescriptor", "CommandRegistry"]
