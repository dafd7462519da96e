"""Headless wiring of one editor window."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from inkwell.ai.providers import ProviderConfig
from inkwell.editor.document_model import SelectionRange
from inkwell.events import AIEditRequested, DocumentSaved
from inkwell.runtime import DEFAULT_DOCUMENT_ID, build_runtime
from inkwell.services.settings import Settings


def _settings(tmp_path: Path, **changes) -> Settings:
    return Settings(**{"document_dir": str(tmp_path), "autosave_delay": 0.01, **changes})


@pytest.mark.asyncio
async def test_runtime_loads_existing_document(tmp_path: Path) -> None:
    (tmp_path / "notes.md").write_text("# Notes", encoding="utf-8")
    runtime = build_runtime(_settings(tmp_path), document_id="notes")

    assert runtime.surface.text == "# Notes"
    assert not runtime.surface.document.dirty
    assert not runtime.autosave.pending
    runtime.shutdown()


@pytest.mark.asyncio
async def test_typing_reaches_every_component(tmp_path: Path) -> None:
    runtime = build_runtime(_settings(tmp_path))
    saved: list[DocumentSaved] = []
    runtime.bus.subscribe(DocumentSaved, saved.append)

    runtime.surface.type_text("/")
    assert runtime.suggestions.is_open
    runtime.suggestions.dismiss()
    runtime.surface.set_selection(0, 1)
    await asyncio.sleep(0.05)

    assert runtime.tracker.selection_text == "/"
    assert (tmp_path / f"{DEFAULT_DOCUMENT_ID}.md").read_text(encoding="utf-8") == "/"
    assert saved == [DocumentSaved(DEFAULT_DOCUMENT_ID, 1)]
    runtime.shutdown()


@pytest.mark.asyncio
async def test_settings_drive_components(tmp_path: Path) -> None:
    settings = _settings(
        tmp_path,
        trigger_char=";",
        autosave=False,
        providers=[ProviderConfig("openai", "OpenAI", api_key="sk", enabled=True)],
        default_provider="openai",
    )
    runtime = build_runtime(settings)

    runtime.surface.type_text(";")
    assert runtime.suggestions.is_open
    assert not runtime.autosave.pending
    assert runtime.registry.resolve_active_provider().id == "openai"

    runtime.bus.publish(AIEditRequested(caret=0))
    assert runtime.pipeline.session is not None
    runtime.shutdown()
    assert runtime.pipeline.session is None


@pytest.mark.asyncio
async def test_open_document_flushes_previous_one(tmp_path: Path) -> None:
    runtime = build_runtime(_settings(tmp_path, autosave_delay=10.0))
    runtime.surface.type_text("draft")
    runtime.surface.set_selection(SelectionRange(0, 5))
    runtime.pipeline.open_session()

    runtime.open_document("second", "other text")

    assert (tmp_path / f"{DEFAULT_DOCUMENT_ID}.md").read_text(encoding="utf-8") == "draft"
    assert runtime.surface.document_id == "second"
    assert runtime.surface.text == "other text"
    assert runtime.pipeline.session is None
    assert not runtime.autosave.pending
    runtime.shutdown()
