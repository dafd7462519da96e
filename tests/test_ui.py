"""Smoke tests for the Qt shell using pytest-qt."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

pytest.importorskip("PySide6")

from PySide6.QtCore import Qt  # noqa: E402

from inkwell.ai.providers import ProviderConfig  # noqa: E402
from inkwell.editor.document_model import SelectionRange  # noqa: E402
from inkwell.runtime import build_runtime  # noqa: E402
from inkwell.services.settings import Settings, SettingsStore  # noqa: E402
from inkwell.services.storage import FileDocumentStore  # noqa: E402
from inkwell.ui.editor_view import common_affixes  # noqa: E402
from inkwell.ui.main_window import MainWindow, WindowContext  # noqa: E402
from inkwell.ui.provider_dialog import ProviderSettingsDialog  # noqa: E402


@pytest.fixture
def event_loop_for_ui():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def window(qtbot, tmp_path: Path, event_loop_for_ui):
    settings = Settings(document_dir=str(tmp_path), autosave_delay=10.0)
    store = FileDocumentStore(tmp_path)
    runtime = build_runtime(settings, store=store, loop=event_loop_for_ui)
    context = WindowContext(
        settings=settings,
        settings_store=SettingsStore(tmp_path / "settings.json"),
        document_store=store,
        runtime=runtime,
    )
    main_window = MainWindow(context)
    qtbot.addWidget(main_window)
    return main_window


@pytest.mark.parametrize(
    ("old", "new", "expected"),
    [
        ("hello", "hello!", (5, 0)),
        ("hello", "jello", (0, 4)),
        ("aaa", "aaaa", (3, 0)),
        ("abc", "", (0, 0)),
    ],
)
def test_common_affixes(old: str, new: str, expected: tuple[int, int]) -> None:
    assert common_affixes(old, new) == expected


def test_typing_in_view_updates_surface(window: MainWindow, qtbot) -> None:
    qtbot.keyClicks(window.editor, "hi there")
    surface = window.runtime.surface
    assert surface.text == "hi there"
    assert surface.last_change_source == "user"
    assert surface.get_selection() == SelectionRange.caret(8)


def test_surface_edits_are_mirrored_into_view(window: MainWindow) -> None:
    surface = window.runtime.surface
    surface.replace(SelectionRange.caret(0), "# Title")
    assert window.editor.toPlainText() == "# Title"
    surface.undo()
    assert window.editor.toPlainText() == ""


def test_slash_menu_popup_follows_engine(window: MainWindow, qtbot) -> None:
    window.show()
    qtbot.keyClicks(window.editor, "/head")
    popup = window.suggestion_popup
    assert window.runtime.suggestions.is_open
    assert popup.list_widget.count() == 3

    qtbot.keyClick(window.editor, Qt.Key.Key_Return)
    assert window.editor.toPlainText() == "# "
    assert not popup.isVisible()


def test_slash_menu_shows_placeholder_without_matches(window: MainWindow, qtbot) -> None:
    window.show()
    qtbot.keyClicks(window.editor, "/zzz")
    popup = window.suggestion_popup
    assert popup.list_widget.count() == 1
    assert popup.list_widget.item(0).text() == "No matching commands"


def test_ai_edit_requires_active_provider(window: MainWindow) -> None:
    window.open_ai_edit()
    assert window.runtime.pipeline.session is None

    window.runtime.registry.register(ProviderConfig("openai", "OpenAI", api_key="sk", enabled=True))
    window.open_ai_edit()
    assert window.runtime.pipeline.session is not None


def test_close_flushes_autosave(window: MainWindow, qtbot, tmp_path: Path) -> None:
    window.show()
    qtbot.keyClicks(window.editor, "draft")
    window.close()
    assert (tmp_path / "untitled.md").read_text(encoding="utf-8") == "draft"


def test_provider_dialog_round_trip(qtbot) -> None:
    providers = [
        ProviderConfig("openai", "OpenAI", model="gpt-test"),
        ProviderConfig("claude", "Claude", api_key="sk-ant", enabled=True),
    ]
    dialog = ProviderSettingsDialog(providers, default_provider="claude")
    qtbot.addWidget(dialog)

    assert dialog.providers() == providers
    assert dialog.default_provider() == "claude"
