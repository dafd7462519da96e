"""Shared pytest fixtures."""

from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from inkwell.editor.document_model import DocumentState  # noqa: E402
from inkwell.editor.geometry import MonospaceLayout  # noqa: E402
from inkwell.editor.surface import DocumentSurface  # noqa: E402
from inkwell.events import EventBus  # noqa: E402


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def make_surface():
    """Factory for surfaces with a monospace layout so geometry is available."""

    def _factory(text: str = "", *, document_id: str = "doc", layout: bool = True) -> DocumentSurface:
        surface = DocumentSurface(DocumentState(text=text, document_id=document_id))
        if layout:
            surface.set_layout(MonospaceLayout(lambda: surface.text))
        return surface

    return _factory


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("INKWELL_"):
            monkeypatch.delenv(name, raising=False)
