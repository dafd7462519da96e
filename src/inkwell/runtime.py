"""Wires the headless editor components for one document window."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .ai.pipeline import AIEditPipeline
from .ai.providers.registry import ProviderRegistry, build_default_adapters
from .commands.builtin import build_default_commands
from .commands.descriptors import CommandRegistry
from .commands.suggestion import SuggestionEngine
from .editor.autosave import AutosaveController, DocumentSink
from .editor.document_model import DocumentState
from .editor.geometry import AnchorCalculator
from .editor.selection_tracker import SelectionTracker
from .editor.surface import DocumentSurface
from .events import EventBus
from .services.settings import Settings
from .services.storage import FileDocumentStore

LOGGER = logging.getLogger(__name__)

DEFAULT_DOCUMENT_ID = "untitled"


@dataclass(slots=True)
class EditorRuntime:
    """Everything a window needs, without any Qt objects."""

    settings: Settings
    bus: EventBus
    surface: DocumentSurface
    registry: ProviderRegistry
    commands: CommandRegistry
    calculator: AnchorCalculator
    tracker: SelectionTracker
    suggestions: SuggestionEngine
    pipeline: AIEditPipeline
    autosave: AutosaveController
    store: DocumentSink

    def open_document(self, document_id: str, text: str | None = None) -> None:
        """Flush the current document, then load ``document_id`` from the store."""

        self.autosave.flush()
        self.pipeline.close()
        self.suggestions.dismiss()
        if text is None and isinstance(self.store, FileDocumentStore):
            text = self.store.load(document_id)
        self.surface.load_document(DocumentState(text=text or "", document_id=document_id))
        LOGGER.info("Opened document %s (%d chars)", document_id, len(self.surface.text))

    def shutdown(self) -> None:
        self.autosave.flush()
        self.autosave.close()
        self.pipeline.close()
        self.suggestions.close()
        self.tracker.close()


def build_runtime(
    settings: Settings,
    *,
    document_id: str = DEFAULT_DOCUMENT_ID,
    store: DocumentSink | None = None,
    bus: EventBus | None = None,
    registry: ProviderRegistry | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> EditorRuntime:
    bus = bus or EventBus()
    store = store or FileDocumentStore(settings.document_dir)
    if registry is None:
        registry = ProviderRegistry(
            settings.providers,
            default_provider=settings.default_provider,
            bus=bus,
            adapters=build_default_adapters(timeout=settings.request_timeout, debug_logging=settings.debug_logging),
        )
    text = store.load(document_id) if isinstance(store, FileDocumentStore) else None
    surface = DocumentSurface(DocumentState(text=text or "", document_id=document_id))
    calculator = AnchorCalculator()
    commands = build_default_commands(bus)
    return EditorRuntime(
        settings=settings,
        bus=bus,
        surface=surface,
        registry=registry,
        commands=commands,
        calculator=calculator,
        tracker=SelectionTracker(surface, calculator=calculator, hide_delay=settings.toolbar_hide_delay, loop=loop),
        suggestions=SuggestionEngine(surface, commands, trigger=settings.trigger_char, calculator=calculator, bus=bus),
        pipeline=AIEditPipeline(surface, registry, bus=bus, context_chars=settings.context_chars),
        autosave=AutosaveController(
            surface,
            store,
            delay=settings.autosave_delay,
            enabled=settings.autosave,
            bus=bus,
            loop=loop,
        ),
        store=store,
    )


__all__ = ["DEFAULT_DOCUMENT_ID", "EditorRuntime", "build_runtime"]
