"""Top-level editor window."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QApplication, QFileDialog, QMainWindow

from ..events import AIEditFailed, DocumentSaved, ProvidersChanged
from ..runtime import DEFAULT_DOCUMENT_ID, EditorRuntime, build_runtime
from ..services.settings import Settings, SettingsStore
from ..services.storage import FileDocumentStore, document_id_for
from .editor_view import EditorView
from .overlays import AIEditPopover, FloatingToolbar, SuggestionPopup
from .provider_dialog import ProviderSettingsDialog

LOGGER = logging.getLogger(__name__)

WINDOW_TITLE = "Inkwell"


@dataclass(slots=True)
class WindowContext:
    """Shared context passed to the main window when constructing the UI."""

    settings: Optional[Settings] = None
    settings_store: Optional[SettingsStore] = None
    document_store: Optional[FileDocumentStore] = None
    runtime: Optional[EditorRuntime] = None
    loop: Optional[asyncio.AbstractEventLoop] = None


class MainWindow(QMainWindow):
    """Hosts the editor view and its overlays for a single document."""

    def __init__(self, context: WindowContext, *, document_id: str = DEFAULT_DOCUMENT_ID) -> None:
        super().__init__()
        self._context = context
        settings = context.settings or Settings()
        self._runtime = context.runtime or build_runtime(
            settings,
            document_id=document_id,
            store=context.document_store,
            loop=context.loop,
        )
        runtime = self._runtime

        self._editor = EditorView(runtime.surface, self)
        self._editor.attach(tracker=runtime.tracker, suggestions=runtime.suggestions)
        self.setCentralWidget(self._editor)
        viewport = self._editor.viewport()
        self._toolbar = FloatingToolbar(
            runtime.surface,
            runtime.tracker,
            calculator=runtime.calculator,
            on_ai_edit=self.open_ai_edit,
            ai_available=runtime.registry.has_active_provider,
            parent=viewport,
        )
        self._suggestion_popup = SuggestionPopup(runtime.suggestions, parent=viewport)
        self._ai_popover = AIEditPopover(
            runtime.pipeline,
            runtime.surface,
            calculator=runtime.calculator,
            parent=viewport,
        )

        self._build_menus()
        runtime.bus.subscribe(DocumentSaved, self._handle_document_saved)
        runtime.bus.subscribe(ProvidersChanged, self._handle_providers_changed)
        runtime.bus.subscribe(AIEditFailed, self._handle_ai_failed)
        self._update_title()
        self.resize(960, 720)

    @property
    def runtime(self) -> EditorRuntime:
        return self._runtime

    @property
    def editor(self) -> EditorView:
        return self._editor

    @property
    def floating_toolbar(self) -> FloatingToolbar:
        return self._toolbar

    @property
    def suggestion_popup(self) -> SuggestionPopup:
        return self._suggestion_popup

    @property
    def ai_popover(self) -> AIEditPopover:
        return self._ai_popover

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def open_ai_edit(self) -> None:
        if not self._runtime.registry.has_active_provider():
            self.statusBar().showMessage("Configure and enable an AI provider first", 5000)
            return
        self._runtime.pipeline.open_session()

    def open_document(self, path: Path) -> None:
        text = path.read_text(encoding="utf-8")
        self._runtime.open_document(document_id_for(path.stem), text)
        self._editor.reload()
        self._update_title()

    def save_now(self) -> None:
        if not self._runtime.autosave.flush():
            self.statusBar().showMessage("No unsaved changes", 2000)

    def edit_providers(self) -> None:
        runtime = self._runtime
        dialog = ProviderSettingsDialog(
            runtime.registry.providers,
            default_provider=runtime.registry.default_provider,
            parent=self,
        )
        if not dialog.exec():
            return
        providers = dialog.providers()
        default_provider = dialog.default_provider()
        runtime.registry.replace_all(providers, default_provider=default_provider)
        runtime.settings.providers = providers
        runtime.settings.default_provider = default_provider
        store = self._context.settings_store
        if store is None:
            return
        try:
            store.save(runtime.settings)
        except OSError as exc:
            LOGGER.warning("Unable to save provider settings: %s", exc)
            self.statusBar().showMessage(f"Unable to save settings: {exc}", 5000)

    def closeEvent(self, event: Any) -> None:  # noqa: N802 - Qt override
        LOGGER.debug("MainWindow: close event")
        self._runtime.shutdown()
        self._editor.detach()
        super().closeEvent(event)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _build_menus(self) -> None:
        menu_bar = self.menuBar()
        file_menu = menu_bar.addMenu("&File")
        self._add_action(file_menu, "&Open...", QKeySequence.StandardKey.Open, self._prompt_open)
        self._add_action(file_menu, "&Save", QKeySequence.StandardKey.Save, self.save_now)
        file_menu.addSeparator()
        self._add_action(file_menu, "&Quit", QKeySequence.StandardKey.Quit, self.close)

        ai_menu = menu_bar.addMenu("&AI")
        self._add_action(ai_menu, "&Edit with AI...", QKeySequence("Ctrl+K"), self.open_ai_edit)
        self._add_action(ai_menu, "&Providers...", None, self.edit_providers)

    def _add_action(self, menu: Any, text: str, shortcut: Any, callback: Any) -> QAction:
        action = QAction(text, self)
        if shortcut is not None:
            action.setShortcut(shortcut)
        action.triggered.connect(callback)  # type: ignore[attr-defined]
        menu.addAction(action)
        return action

    def _prompt_open(self) -> None:
        filename, _ = QFileDialog.getOpenFileName(self, "Open Markdown", "", "Markdown (*.md *.markdown *.txt)")
        if filename:
            self.open_document(Path(filename))

    def _update_title(self) -> None:
        self.setWindowTitle(f"{self._runtime.surface.document_id} - {WINDOW_TITLE}")

    def _handle_document_saved(self, event: DocumentSaved) -> None:
        self.statusBar().showMessage(f"Saved {event.document_id}", 2000)

    def _handle_providers_changed(self, event: ProvidersChanged) -> None:
        active = event.active_provider or "none"
        self.statusBar().showMessage(f"Active AI provider: {active}", 3000)

    def _handle_ai_failed(self, event: AIEditFailed) -> None:
        self.statusBar().showMessage(event.message, 5000)


def run_window(context: WindowContext, *, document_path: Path | None = None) -> MainWindow:
    """Create and show a window, optionally opening ``document_path``."""

    if QApplication.instance() is None:
        raise RuntimeError("A QApplication must exist before creating the main window")
    window = MainWindow(context)
    if document_path is not None:
        window.open_document(document_path)
    window.show()
    return window


__all__ = ["MainWindow", "WindowContext", "run_window"]
