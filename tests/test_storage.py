from __future__ import annotations

from pathlib import Path

import pytest

from inkwell.services.storage import FileDocumentStore, document_id_for, write_text_atomic


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    store = FileDocumentStore(tmp_path)
    store.save("notes", "# Notes\n")
    assert (tmp_path / "notes.md").read_text(encoding="utf-8") == "# Notes\n"
    assert store.load("notes") == "# Notes\n"
    assert store.exists("notes")


def test_missing_document_loads_as_none(tmp_path: Path) -> None:
    assert FileDocumentStore(tmp_path).load("ghost") is None


@pytest.mark.parametrize("document_id", ["", "..", "../escape", "with space", "a/b"])
def test_invalid_ids_are_rejected(tmp_path: Path, document_id: str) -> None:
    with pytest.raises(ValueError):
        FileDocumentStore(tmp_path).path_for(document_id)


@pytest.mark.parametrize(
    ("name", "expected"),
    [("Meeting notes", "Meeting-notes"), ("résumé", "r-sum"), ("...", "untitled"), ("plan_v2", "plan_v2")],
)
def test_document_id_for(name: str, expected: str) -> None:
    assert document_id_for(name) == expected


def test_atomic_write_creates_parents_and_leaves_no_temp_files(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "file.txt"
    write_text_atomic(target, "one")
    write_text_atomic(target, "two")
    assert target.read_text(encoding="utf-8") == "two"
    assert [path.name for path in target.parent.iterdir()] == ["file.txt"]
